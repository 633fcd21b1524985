"""
Task, todo and user CRUD service.

The same repositories are served over HTTP/JSON (FastAPI, see ``main.create_app``)
and gRPC (see ``rpc.server.build_grpc_server``); ``server.serve`` runs both.
"""

__version__ = "0.1.0"
