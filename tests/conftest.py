import dataclasses

import grpc
import pytest
from fastapi.testclient import TestClient

from crud_service.db import create_pool, init_db
from crud_service.errors import BackendFailure
from crud_service.main import create_app
from crud_service.policy import EntityAdapter
from crud_service.repositories import InMemoryTaskRepository, build_repositories
from crud_service.rpc.server import build_grpc_server
from crud_service.rpc.service import ServiceStub
from crud_service.settings import get_settings


def make_settings(**overrides):
    return dataclasses.replace(get_settings(), **overrides)


class BrokenTaskRepository(InMemoryTaskRepository):
    def list(self):
        raise BackendFailure("disk I/O error at /var/lib/secret.db")

    def delete(self, entity_id):
        raise BackendFailure("database is locked")


@pytest.fixture
def pool(tmp_path):
    engine = create_pool(f"sqlite:///{tmp_path / 'test.db'}")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture(params=["sqlite", "memory"])
def backend(request):
    return request.param


@pytest.fixture
def repositories(backend, request):
    settings = make_settings(persistence_backend=backend)
    if backend == "memory":
        return build_repositories(settings)
    return build_repositories(settings, request.getfixturevalue("pool"))


@pytest.fixture
def client(repositories, backend):
    return TestClient(create_app(repositories, make_settings(persistence_backend=backend)))


@pytest.fixture
def grpc_channel(repositories):
    server, port = build_grpc_server(
        [EntityAdapter(r) for r in repositories.values()], "127.0.0.1:0", max_workers=4
    )
    server.start()
    channel = grpc.insecure_channel(f"127.0.0.1:{port}")
    yield channel
    channel.close()
    server.stop(None)


@pytest.fixture
def task_stub(grpc_channel):
    return ServiceStub(grpc_channel, "task")


@pytest.fixture
def todo_stub(grpc_channel):
    return ServiceStub(grpc_channel, "todo")


@pytest.fixture
def user_stub(grpc_channel):
    return ServiceStub(grpc_channel, "user")
