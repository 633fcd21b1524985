import pytest

from crud_service.settings import get_settings

ENV_VARS = [
    "PERSISTENCE_BACKEND",
    "DATABASE_URL",
    "DB_POOL_SIZE",
    "HTTP_HOST",
    "HTTP_PORT",
    "GRPC_HOST",
    "GRPC_PORT",
    "GRPC_MAX_WORKERS",
    "GRPC_REFLECTION",
    "CORS_ALLOW_ORIGINS",
    "LOG_LEVEL",
]


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults(clean_env):
    settings = get_settings()
    assert settings.persistence_backend == "sqlite"
    assert settings.database_url == "sqlite:///./data/tasks.db"
    assert settings.db_pool_size == 5
    assert (settings.http_host, settings.http_port) == ("0.0.0.0", 3000)
    assert (settings.grpc_host, settings.grpc_port) == ("[::]", 50051)
    assert settings.grpc_max_workers == 10
    assert settings.grpc_reflection is True
    assert settings.cors_allow_origins == ["*"]
    assert settings.log_level == "INFO"


def test_overrides(clean_env):
    clean_env.setenv("PERSISTENCE_BACKEND", "Memory")
    clean_env.setenv("DATABASE_URL", "sqlite:////tmp/other.db")
    clean_env.setenv("HTTP_PORT", "8080")
    clean_env.setenv("GRPC_PORT", "0")
    clean_env.setenv("GRPC_REFLECTION", "off")
    clean_env.setenv("CORS_ALLOW_ORIGINS", "http://a.example, http://b.example")
    clean_env.setenv("LOG_LEVEL", "debug")

    settings = get_settings()
    assert settings.persistence_backend == "memory"
    assert settings.database_url == "sqlite:////tmp/other.db"
    assert settings.http_port == 8080
    assert settings.grpc_port == 0
    assert settings.grpc_reflection is False
    assert settings.cors_allow_origins == ["http://a.example", "http://b.example"]
    assert settings.log_level == "DEBUG"


def test_invalid_values_fall_back(clean_env):
    clean_env.setenv("PERSISTENCE_BACKEND", "postgres-cluster")
    clean_env.setenv("DB_POOL_SIZE", "0")
    clean_env.setenv("HTTP_PORT", "not-a-port")
    clean_env.setenv("GRPC_REFLECTION", "maybe")
    clean_env.setenv("LOG_LEVEL", "chatty")

    settings = get_settings()
    assert settings.persistence_backend == "sqlite"
    assert settings.db_pool_size == 5
    assert settings.http_port == 3000
    assert settings.grpc_reflection is True
    assert settings.log_level == "INFO"
