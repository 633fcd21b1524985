from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - PERSISTENCE_BACKEND: 'sqlite' (default) or 'memory'
    - DATABASE_URL: SQLAlchemy URL of the store. Default 'sqlite:///./data/tasks.db'
    - DB_POOL_SIZE: number of pooled connections (default: 5)
    - HTTP_HOST / HTTP_PORT: bind address of the HTTP server (default: 0.0.0.0:3000)
    - GRPC_HOST / GRPC_PORT: bind address of the gRPC server (default: [::]:50051)
    - GRPC_MAX_WORKERS: size of the gRPC handler thread pool (default: 10)
    - GRPC_REFLECTION: 'true' to register the gRPC reflection service (default: true)
    - CORS_ALLOW_ORIGINS: comma-separated list of allowed origins; '*' by default
    - LOG_LEVEL: root log level name (default: INFO)
    """

    persistence_backend: str
    database_url: str
    db_pool_size: int
    http_host: str
    http_port: int
    grpc_host: str
    grpc_port: int
    grpc_max_workers: int
    grpc_reflection: bool
    cors_allow_origins: List[str]
    log_level: str


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _parse_bool(value: str, default: bool = False) -> bool:
    v = value.strip().lower()
    if v in {"1", "true", "yes", "on"}:
        return True
    if v in {"0", "false", "no", "off"}:
        return False
    return default


def _parse_int(value: str, default: int, minimum: int = 0) -> int:
    try:
        parsed = int(value.strip())
    except ValueError:
        return default
    return parsed if parsed >= minimum else default


def _parse_origins(origins_value: str) -> List[str]:
    """
    Parse CORS origins from env. Supports:
    - '*' to allow all origins
    - Comma-separated list of origins
    """
    value = origins_value.strip()
    if value == "*":
        return ["*"]
    return [o.strip() for o in value.split(",") if o.strip()]


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return application settings loaded from environment variables."""
    backend = _get_env("PERSISTENCE_BACKEND", "sqlite").strip().lower()
    if backend not in {"memory", "sqlite"}:
        backend = "sqlite"

    log_level = _get_env("LOG_LEVEL", "INFO").strip().upper()
    if log_level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
        log_level = "INFO"

    return Settings(
        persistence_backend=backend,
        database_url=_get_env("DATABASE_URL", "sqlite:///./data/tasks.db").strip(),
        db_pool_size=_parse_int(_get_env("DB_POOL_SIZE", "5"), 5, minimum=1),
        http_host=_get_env("HTTP_HOST", "0.0.0.0").strip(),
        http_port=_parse_int(_get_env("HTTP_PORT", "3000"), 3000),
        grpc_host=_get_env("GRPC_HOST", "[::]").strip(),
        grpc_port=_parse_int(_get_env("GRPC_PORT", "50051"), 50051),
        grpc_max_workers=_parse_int(_get_env("GRPC_MAX_WORKERS", "10"), 10, minimum=1),
        grpc_reflection=_parse_bool(_get_env("GRPC_REFLECTION", "true"), True),
        cors_allow_origins=_parse_origins(_get_env("CORS_ALLOW_ORIGINS", "*")),
        log_level=log_level,
    )
