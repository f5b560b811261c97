"""Protobuf schema of the gateway's message frame.

The gateway speaks a fixed protobuf schema (package ``tedapi``). Rather than
shipping protoc output, the file descriptor is declared here as data and
registered in a private descriptor pool, so the message classes below are
ordinary protobuf messages with the exact field numbering the device
expects::

    Message           { MessageEnvelope message = 1; Tail tail = 2; }
    MessageEnvelope   { int32 deliveryChannel = 1; Participant sender = 2;
                        Participant recipient = 3;
                        oneof body { QueryType payload = 16;
                                     ConfigType config = 15; } }
    Participant       { oneof id { string din = 1; int32 local = 3; } }
    QueryType         { oneof id { PayloadQuerySend send = 1;
                                   PayloadString recv = 2; } }
    PayloadQuerySend  { int32 num = 1; PayloadString payload = 2;
                        bytes code = 3; StringValue b = 4; }
    PayloadString     { int32 value = 1; string text = 2; }
    StringValue       { string value = 1; }
    ConfigType        { oneof config { PayloadConfigSend send = 1;
                                       PayloadConfigRecv recv = 2; } }
    PayloadConfigSend { int32 num = 1; string file = 2; }
    PayloadConfigRecv { ConfigString file = 1; bytes code = 2; }
    ConfigString      { string name = 1; string text = 100; }
    Tail              { int32 value = 1; }
"""

from __future__ import annotations

from google.protobuf import descriptor_pb2, descriptor_pool
from google.protobuf.message_factory import GetMessageClass

PACKAGE = "tedapi"

_F = descriptor_pb2.FieldDescriptorProto
_INT32 = _F.TYPE_INT32
_STRING = _F.TYPE_STRING
_BYTES = _F.TYPE_BYTES
_MESSAGE = _F.TYPE_MESSAGE

# (name, number, type, message type name, oneof index)
_FieldSpec = tuple[str, int, int, str | None, int | None]

# message name -> (oneof names, fields)
_SCHEMA: dict[str, tuple[tuple[str, ...], tuple[_FieldSpec, ...]]] = {
    "Message": (
        (),
        (
            ("message", 1, _MESSAGE, "MessageEnvelope", None),
            ("tail", 2, _MESSAGE, "Tail", None),
        ),
    ),
    "MessageEnvelope": (
        ("body",),
        (
            ("deliveryChannel", 1, _INT32, None, None),
            ("sender", 2, _MESSAGE, "Participant", None),
            ("recipient", 3, _MESSAGE, "Participant", None),
            ("payload", 16, _MESSAGE, "QueryType", 0),
            ("config", 15, _MESSAGE, "ConfigType", 0),
        ),
    ),
    "Participant": (
        ("id",),
        (
            ("din", 1, _STRING, None, 0),
            ("local", 3, _INT32, None, 0),
        ),
    ),
    "QueryType": (
        ("id",),
        (
            ("send", 1, _MESSAGE, "PayloadQuerySend", 0),
            ("recv", 2, _MESSAGE, "PayloadString", 0),
        ),
    ),
    "PayloadQuerySend": (
        (),
        (
            ("num", 1, _INT32, None, None),
            ("payload", 2, _MESSAGE, "PayloadString", None),
            ("code", 3, _BYTES, None, None),
            ("b", 4, _MESSAGE, "StringValue", None),
        ),
    ),
    "PayloadString": (
        (),
        (
            ("value", 1, _INT32, None, None),
            ("text", 2, _STRING, None, None),
        ),
    ),
    "StringValue": (
        (),
        (("value", 1, _STRING, None, None),),
    ),
    "ConfigType": (
        ("config",),
        (
            ("send", 1, _MESSAGE, "PayloadConfigSend", 0),
            ("recv", 2, _MESSAGE, "PayloadConfigRecv", 0),
        ),
    ),
    "PayloadConfigSend": (
        (),
        (
            ("num", 1, _INT32, None, None),
            ("file", 2, _STRING, None, None),
        ),
    ),
    "PayloadConfigRecv": (
        (),
        (
            ("file", 1, _MESSAGE, "ConfigString", None),
            ("code", 2, _BYTES, None, None),
        ),
    ),
    "ConfigString": (
        (),
        (
            ("name", 1, _STRING, None, None),
            ("text", 100, _STRING, None, None),
        ),
    ),
    "Tail": (
        (),
        (("value", 1, _INT32, None, None),),
    ),
}


def build_file_descriptor() -> descriptor_pb2.FileDescriptorProto:
    """Build the ``tedapi.proto`` file descriptor from the schema table."""
    file_proto = descriptor_pb2.FileDescriptorProto(
        name="tedapi.proto",
        package=PACKAGE,
        syntax="proto3",
    )
    for message_name, (oneofs, fields) in _SCHEMA.items():
        message_proto = file_proto.message_type.add(name=message_name)
        for oneof_name in oneofs:
            message_proto.oneof_decl.add(name=oneof_name)
        for name, number, field_type, type_name, oneof_index in fields:
            field_proto = message_proto.field.add(
                name=name,
                number=number,
                label=_F.LABEL_OPTIONAL,
                type=field_type,
            )
            if type_name is not None:
                field_proto.type_name = f".{PACKAGE}.{type_name}"
            if oneof_index is not None:
                field_proto.oneof_index = oneof_index
    return file_proto


_POOL = descriptor_pool.DescriptorPool()
_POOL.AddSerializedFile(build_file_descriptor().SerializeToString())


def _message_class(name: str) -> type:
    return GetMessageClass(_POOL.FindMessageTypeByName(f"{PACKAGE}.{name}"))


Message = _message_class("Message")
MessageEnvelope = _message_class("MessageEnvelope")
Participant = _message_class("Participant")
QueryType = _message_class("QueryType")
PayloadQuerySend = _message_class("PayloadQuerySend")
PayloadString = _message_class("PayloadString")
StringValue = _message_class("StringValue")
ConfigType = _message_class("ConfigType")
PayloadConfigSend = _message_class("PayloadConfigSend")
PayloadConfigRecv = _message_class("PayloadConfigRecv")
ConfigString = _message_class("ConfigString")
Tail = _message_class("Tail")

__all__ = [
    "ConfigString",
    "ConfigType",
    "Message",
    "MessageEnvelope",
    "Participant",
    "PayloadConfigRecv",
    "PayloadConfigSend",
    "PayloadQuerySend",
    "PayloadString",
    "QueryType",
    "StringValue",
    "Tail",
    "build_file_descriptor",
]
