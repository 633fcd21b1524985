from __future__ import annotations

import logging
from typing import Any, Callable, Dict

import grpc
from google.protobuf.message import Message

from ..policy import GRPC_STATUS, EntityAdapter, Result
from .protos import PROTOS, ProtoModule

logger = logging.getLogger(__name__)


class EntityService:
    """
    gRPC servicer for one entity kind. Decodes requests, calls the shared
    adapter and aborts with the mapped status code on failure.
    """

    def __init__(self, adapter: EntityAdapter) -> None:
        self.adapter = adapter
        self.kind = adapter.kind
        self.proto: ProtoModule = PROTOS[self.kind.name]

    def _reply(self, result: Result, context: grpc.ServicerContext, build: Callable[[Any], Message]) -> Message:
        if not result.ok:
            logger.debug("%s rpc failed: %s %s", self.kind.name, result.outcome.value, result.message)
            context.abort(GRPC_STATUS[result.outcome], result.message)
        return build(result.payload)

    def _entity(self, payload: Dict[str, Any]) -> Message:
        return self.proto.entity(**payload)

    def create(self, request: Message, context: grpc.ServicerContext) -> Message:
        fields = {name: getattr(request, name) for name in self.kind.required_fields}
        return self._reply(self.adapter.create(fields), context, self._entity)

    def get(self, request: Message, context: grpc.ServicerContext) -> Message:
        return self._reply(self.adapter.get(request.id), context, self._entity)

    def list(self, request: Message, context: grpc.ServicerContext) -> Message:
        response = self.proto.methods[f"List{self.kind.plural.capitalize()}"].response

        def build(items):
            return response(**{self.proto.list_field: [self._entity(item) for item in items]})

        return self._reply(self.adapter.list(), context, build)

    def update(self, request: Message, context: grpc.ServicerContext) -> Message:
        # Presence comes from the proto3 optional fields; unset fields never reach the store.
        provided = {name: getattr(request, name) for name in self.kind.field_names if request.HasField(name)}
        return self._reply(self.adapter.update(request.id, provided), context, self._entity)

    def delete(self, request: Message, context: grpc.ServicerContext) -> Message:
        response = self.proto.methods[f"Delete{self.kind.label}"].response
        return self._reply(self.adapter.delete(request.id), context, lambda _: response(success=True))

    def handler(self) -> grpc.GenericRpcHandler:
        """Return the generic handler serving this kind's methods."""
        handlers = {
            method.name: grpc.unary_unary_rpc_method_handler(
                getattr(self, method.handler),
                request_deserializer=method.request.FromString,
                response_serializer=method.response.SerializeToString,
            )
            for method in self.proto.methods.values()
        }
        return grpc.method_handlers_generic_handler(self.proto.service_name, handlers)


class ServiceStub:
    """
    Client for one entity kind's service; exposes one callable per RPC,
    e.g. ``ServiceStub(channel, "task").CreateTask(request)``.
    """

    def __init__(self, channel: grpc.Channel, kind_name: str) -> None:
        self.proto = PROTOS[kind_name]
        for method in self.proto.methods.values():
            setattr(
                self,
                method.name,
                channel.unary_unary(
                    f"/{self.proto.service_name}/{method.name}",
                    request_serializer=method.request.SerializeToString,
                    response_deserializer=method.response.FromString,
                ),
            )

    def message(self, name: str) -> Any:
        return self.proto.message(name)
