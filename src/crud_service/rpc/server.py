from __future__ import annotations

import logging
from concurrent import futures
from typing import Iterable, Tuple

import grpc
from grpc_reflection.v1alpha import reflection

from ..policy import EntityAdapter
from .service import EntityService

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
def build_grpc_server(
    adapters: Iterable[EntityAdapter],
    address: str,
    max_workers: int = 10,
    enable_reflection: bool = True,
) -> Tuple[grpc.Server, int]:
    """
    Create (but do not start) a gRPC server exposing one service per adapter.

    Returns the server and the port actually bound, which differs from the
    requested one when ``address`` ends in ``:0``.
    """
    server = grpc.server(futures.ThreadPoolExecutor(max_workers=max_workers))
    services = [EntityService(adapter) for adapter in adapters]
    server.add_generic_rpc_handlers(tuple(service.handler() for service in services))

    if enable_reflection:
        names = [service.proto.service_name for service in services]
        reflection.enable_server_reflection((*names, reflection.SERVICE_NAME), server)

    port = server.add_insecure_port(address)
    logger.info(
        "gRPC services %s bound to port %d",
        ", ".join(service.proto.service_name for service in services),
        port,
    )
    return server, port
