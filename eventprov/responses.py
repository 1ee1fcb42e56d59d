"""Decoding of JSON responses returned by the registry service."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from eventprov.models import Event, EventReceiver, EventReceiverGroup


def _load(source: Any) -> dict:
    if hasattr(source, "read"):
        source = source.read()
    if isinstance(source, (bytes, bytearray)):
        source = source.decode()
    data = json.loads(source)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError("expected a JSON object")
    return data


def _records(data: dict, key: str, kind) -> list:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(item, dict) for item in value):
        raise ValueError(f"field {key!r} must be a list of objects")
    return [kind.from_dict(item) for item in value]


def _ident(data: dict, key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"field {key!r} must be a string")
    return value


@dataclass
class Response:
    """A JSON response with a data field and an optional errors field."""

    data: Any = None
    errors: Any = None


def decode_resp_from_json(source: Any) -> Response:
    """Read a Response from JSON text, bytes or a readable file object."""
    data = _load(source)
    return Response(data=data.get("data"), errors=data.get("errors"))


@dataclass
class RespGraphQL:
    """The data and errors returned by a GraphQL query or mutation."""

    events: list[Event] = field(default_factory=list)
    event_receivers: list[EventReceiver] = field(default_factory=list)
    event_receiver_groups: list[EventReceiverGroup] = field(default_factory=list)
    create_event: str = ""
    create_event_receiver: str = ""
    create_event_receiver_group: str = ""
    errors: Any = None


def decode_graphql_resp_from_json(source: Any) -> RespGraphQL:
    """Read a RespGraphQL from JSON text, bytes or a readable file object."""
    body = _load(source)
    data = body.get("data")
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError("field 'data' must be an object")
    return RespGraphQL(
        events=_records(data, "events", Event),
        event_receivers=_records(data, "event_receivers", EventReceiver),
        event_receiver_groups=_records(data, "event_receiver_groups", EventReceiverGroup),
        create_event=_ident(data, "create_event"),
        create_event_receiver=_ident(data, "create_event_receiver"),
        create_event_receiver_group=_ident(data, "create_event_receiver_group"),
        errors=body.get("errors"),
    )