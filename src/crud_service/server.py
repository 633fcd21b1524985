"""
Process bootstrap: one connection pool, the gRPC server and the HTTP server.

Usage:
    python -m crud_service
"""
from __future__ import annotations

import logging
from typing import Optional

import uvicorn

from .logging_config import configure_logging
from .main import create_app, default_repositories
from .policy import EntityAdapter
from .rpc.server import build_grpc_server
from .settings import Settings, get_settings

logger = logging.getLogger(__name__)

GRPC_SHUTDOWN_GRACE = 5.0


# PUBLIC_INTERFACE
def serve(settings: Optional[Settings] = None) -> None:
    """
    Run both protocol servers on the same repositories until the HTTP server exits.

    The gRPC server runs on its own thread pool; uvicorn owns the main thread
    and its signal handling. gRPC is stopped gracefully once uvicorn returns.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    repositories = default_repositories(settings)
    adapters = [EntityAdapter(repository) for repository in repositories.values()]

    grpc_server, grpc_port = build_grpc_server(
        adapters,
        f"{settings.grpc_host}:{settings.grpc_port}",
        max_workers=settings.grpc_max_workers,
        enable_reflection=settings.grpc_reflection,
    )
    grpc_server.start()
    logger.info("gRPC server listening on %s:%d", settings.grpc_host, grpc_port)

    app = create_app(repositories, settings)
    logger.info("HTTP server listening on %s:%d", settings.http_host, settings.http_port)
    try:
        uvicorn.run(app, host=settings.http_host, port=settings.http_port, log_level=settings.log_level.lower())
    finally:
        logger.info("stopping gRPC server")
        grpc_server.stop(GRPC_SHUTDOWN_GRACE).wait()


def main() -> None:
    serve()


if __name__ == "__main__":
    main()
