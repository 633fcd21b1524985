"""
Protobuf messages and service descriptors for every entity kind.

The descriptors are assembled from the EntityKind descriptions at import time
and registered in the default descriptor pool, which is also what the gRPC
reflection service reads. For the task kind this is equivalent to:

    syntax = "proto3";
    package task;

    message Task { int64 id = 1; string title = 2; string description = 3; bool completed = 4; }
    message CreateTaskRequest { string title = 1; string description = 2; }
    message GetTaskRequest { int64 id = 1; }
    message ListTasksRequest {}
    message ListTasksResponse { repeated Task tasks = 1; }
    message UpdateTaskRequest {
      int64 id = 1;
      optional string title = 2;
      optional string description = 3;
      optional bool completed = 4;
    }
    message DeleteTaskRequest { int64 id = 1; }
    message DeleteTaskResponse { bool success = 1; }

    service TaskService {
      rpc CreateTask(CreateTaskRequest) returns (Task);
      rpc GetTask(GetTaskRequest) returns (Task);
      rpc ListTasks(ListTasksRequest) returns (ListTasksResponse);
      rpc UpdateTask(UpdateTaskRequest) returns (Task);
      rpc DeleteTask(DeleteTaskRequest) returns (DeleteTaskResponse);
    }
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Type

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory
from google.protobuf.message import Message

from ..models import ENTITY_KINDS, EntityKind

_FDP = descriptor_pb2.FieldDescriptorProto

_FIELD_TYPES = {
    int: _FDP.TYPE_INT64,
    str: _FDP.TYPE_STRING,
    bool: _FDP.TYPE_BOOL,
}


@dataclass(frozen=True)
class RpcMethod:
    name: str
    handler: str
    request: Type[Message]
    response: Type[Message]


@dataclass(frozen=True)
class ProtoModule:
    """Message classes and methods of one entity kind's gRPC service."""

    kind: EntityKind
    package: str
    service_name: str
    messages: Dict[str, Type[Message]]
    methods: Dict[str, RpcMethod]

    @property
    def entity(self) -> Type[Message]:
        return self.messages[self.kind.label]

    @property
    def list_field(self) -> str:
        return self.kind.plural

    def message(self, name: str) -> Type[Message]:
        return self.messages[name]


def _add_field(
    message: descriptor_pb2.DescriptorProto,
    name: str,
    number: int,
    py_type: type,
    optional: bool = False,
) -> None:
    field = message.field.add(name=name, number=number, type=_FIELD_TYPES[py_type], label=_FDP.LABEL_OPTIONAL)
    if optional:
        # proto3 explicit presence: a synthetic oneof per field.
        field.proto3_optional = True
        field.oneof_index = len(message.oneof_decl)
        message.oneof_decl.add(name=f"_{name}")


def _message_names(kind: EntityKind) -> Dict[str, str]:
    label, plural = kind.label, kind.plural.capitalize()
    return {
        "create": f"Create{label}Request",
        "get": f"Get{label}Request",
        "list": f"List{plural}Request",
        "list_response": f"List{plural}Response",
        "update": f"Update{label}Request",
        "delete": f"Delete{label}Request",
        "delete_response": f"Delete{label}Response",
    }


def build_file_descriptor(kind: EntityKind) -> descriptor_pb2.FileDescriptorProto:
    """Describe the messages and service of ``kind`` as a proto3 file."""
    package = kind.name
    label = kind.label
    names = _message_names(kind)
    fdp = descriptor_pb2.FileDescriptorProto(
        name=f"crud_service/{package}.proto",
        package=package,
        syntax="proto3",
    )

    entity = fdp.message_type.add(name=label)
    _add_field(entity, "id", 1, int)
    for number, fspec in enumerate(kind.fields, start=2):
        _add_field(entity, fspec.name, number, fspec.type)

    create = fdp.message_type.add(name=names["create"])
    for number, fspec in enumerate((f for f in kind.fields if f.required), start=1):
        _add_field(create, fspec.name, number, fspec.type)

    for key in ("get", "delete"):
        _add_field(fdp.message_type.add(name=names[key]), "id", 1, int)

    fdp.message_type.add(name=names["list"])
    list_response = fdp.message_type.add(name=names["list_response"])
    list_response.field.add(
        name=kind.plural,
        number=1,
        type=_FDP.TYPE_MESSAGE,
        label=_FDP.LABEL_REPEATED,
        type_name=f".{package}.{label}",
    )

    update = fdp.message_type.add(name=names["update"])
    _add_field(update, "id", 1, int)
    for number, fspec in enumerate(kind.fields, start=2):
        _add_field(update, fspec.name, number, fspec.type, optional=True)

    _add_field(fdp.message_type.add(name=names["delete_response"]), "success", 1, bool)

    service = fdp.service.add(name=f"{label}Service")
    for method, request, response in _method_table(kind):
        service.method.add(name=method, input_type=f".{package}.{request}", output_type=f".{package}.{response}")
    return fdp


def _method_table(kind: EntityKind):
    names = _message_names(kind)
    label, plural = kind.label, kind.plural.capitalize()
    return (
        (f"Create{label}", names["create"], label),
        (f"Get{label}", names["get"], label),
        (f"List{plural}", names["list"], names["list_response"]),
        (f"Update{label}", names["update"], label),
        (f"Delete{label}", names["delete"], names["delete_response"]),
    )


_HANDLERS = ("create", "get", "list", "update", "delete")


def _register(kind: EntityKind, pool: descriptor_pool.DescriptorPool) -> ProtoModule:
    fdp = build_file_descriptor(kind)
    pool.AddSerializedFile(fdp.SerializeToString())
    messages = {
        m.name: message_factory.GetMessageClass(pool.FindMessageTypeByName(f"{fdp.package}.{m.name}"))
        for m in fdp.message_type
    }
    methods = {
        name: RpcMethod(name=name, handler=handler, request=messages[request], response=messages[response])
        for handler, (name, request, response) in zip(_HANDLERS, _method_table(kind))
    }
    return ProtoModule(
        kind=kind,
        package=fdp.package,
        service_name=f"{fdp.package}.{kind.label}Service",
        messages=messages,
        methods=methods,
    )


PROTOS: Dict[str, ProtoModule] = {
    kind.name: _register(kind, descriptor_pool.Default()) for kind in ENTITY_KINDS
}
