"""CloudEvents-style messages announcing registry changes on the message bus."""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any

import yaml

from eventprov.models import Event, EventReceiver, EventReceiverGroup
from eventprov.utils import now_rfc3339

API_V1 = "v1"
CLOUD_EVENTS_SPEC = "1.0"

SOURCE = "epr"
PLATFORM_ID = "event-provenance-registry"
TYPE_RECEIVER_CREATED = "epr.event.receiver.created"
TYPE_GROUP_CREATED = "epr.event.receiver.group.created"
TYPE_GROUP_MODIFIED = "epr.event.receiver.group.modified"
PACKAGE_RECEIVER = "event.receiver"
PACKAGE_GROUP = "event.receiver.group"


def _str(data: dict, key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"field {key!r} must be a string")
    return value


def _bool(data: dict, key: str) -> bool:
    value = data.get(key)
    if value is None:
        return False
    if not isinstance(value, bool):
        raise ValueError(f"field {key!r} must be a boolean")
    return value


def _records(data: dict, key: str, kind) -> list:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(item, dict) for item in value):
        raise ValueError(f"field {key!r} must be a list of objects")
    return [kind.from_dict(item) for item in value]


def _json_default(obj: Any) -> Any:
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    if isinstance(obj, datetime):
        return obj.isoformat()
    raise TypeError(f"object of type {type(obj).__name__} is not JSON serializable")


@dataclass
class Data:
    """The records that caused a message."""

    events: list[Event] = field(default_factory=list)
    event_receivers: list[EventReceiver] = field(default_factory=list)
    event_receiver_groups: list[EventReceiverGroup] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Return the data as a JSON-ready mapping; empty lists become null."""
        return {
            "events": [e.to_dict() for e in self.events] or None,
            "event_receivers": [r.to_dict() for r in self.event_receivers] or None,
            "event_receiver_groups": [g.to_dict() for g in self.event_receiver_groups] or None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Data:
        """Build the data from a decoded JSON mapping."""
        return cls(
            events=_records(data, "events", Event),
            event_receivers=_records(data, "event_receivers", EventReceiver),
            event_receiver_groups=_records(data, "event_receiver_groups", EventReceiverGroup),
        )


@dataclass
class Message:
    """A message following the CloudEvents 1.0 layout, with registry extensions."""

    success: bool = False
    id: str = ""
    specversion: str = ""
    type: str = ""
    source: str = ""
    api_version: str = ""
    name: str = ""
    version: str = ""
    release: str = ""
    platform_id: str = ""
    package: str = ""
    data: Data = field(default_factory=Data)

    def to_dict(self) -> dict:
        """Return the message as a JSON-ready mapping."""
        return {
            "success": self.success,
            "id": self.id,
            "specversion": self.specversion,
            "type": self.type,
            "source": self.source,
            "api_version": self.api_version,
            "name": self.name,
            "version": self.version,
            "release": self.release,
            "platform_id": self.platform_id,
            "package": self.package,
            "data": self.data.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> Message:
        """Build a message from a decoded JSON mapping; unknown keys are ignored."""
        payload = data.get("data")
        if payload is not None and not isinstance(payload, dict):
            raise ValueError("field 'data' must be an object")
        return cls(
            success=_bool(data, "success"),
            id=_str(data, "id"),
            specversion=_str(data, "specversion"),
            type=_str(data, "type"),
            source=_str(data, "source"),
            api_version=_str(data, "api_version"),
            name=_str(data, "name"),
            version=_str(data, "version"),
            release=_str(data, "release"),
            platform_id=_str(data, "platform_id"),
            package=_str(data, "package"),
            data=Data.from_dict(payload) if payload else Data(),
        )

    def to_json(self) -> str:
        """Return the message as indented JSON."""
        return json.dumps(self.to_dict(), indent=4)

    def to_yaml(self) -> str:
        """Return the message as YAML."""
        return yaml.safe_dump(self.to_dict(), sort_keys=False)


def new_message() -> Message:
    """Return an empty message carrying the spec and API versions."""
    return Message(specversion=CLOUD_EVENTS_SPEC, api_version=API_V1)


def new_event_message(event: Event) -> Message:
    """Return the message announcing a created event."""
    receiver = replace(event.event_receiver)
    return Message(
        success=event.success,
        id=event.id,
        specversion=CLOUD_EVENTS_SPEC,
        source=SOURCE,
        type=event.event_receiver.type,
        api_version=API_V1,
        name=event.name,
        version=event.version,
        release=event.release,
        platform_id=event.platform_id,
        package=event.package,
        data=Data(events=[event], event_receivers=[receiver]),
    )


def new_event_receiver_message(receiver: EventReceiver) -> Message:
    """Return the message announcing a created event receiver."""
    return Message(
        success=True,
        id=receiver.id,
        specversion=CLOUD_EVENTS_SPEC,
        source=SOURCE,
        type=TYPE_RECEIVER_CREATED,
        api_version=API_V1,
        name=receiver.name,
        version=receiver.version,
        release=now_rfc3339(),
        platform_id=PLATFORM_ID,
        package=PACKAGE_RECEIVER,
        data=Data(event_receivers=[receiver]),
    )


def _group_message(group: EventReceiverGroup, msg_type: str) -> Message:
    return Message(
        success=True,
        id=group.id,
        specversion=CLOUD_EVENTS_SPEC,
        source=SOURCE,
        type=msg_type,
        api_version=API_V1,
        name=group.name,
        version=group.version,
        release=now_rfc3339(),
        platform_id=PLATFORM_ID,
        package=PACKAGE_GROUP,
        data=Data(event_receiver_groups=[group]),
    )


def new_event_receiver_group_created(group: EventReceiverGroup) -> Message:
    """Return the message announcing a created event receiver group."""
    return _group_message(group, TYPE_GROUP_CREATED)


def new_event_receiver_group_modified(group: EventReceiverGroup) -> Message:
    """Return the message announcing a modified event receiver group."""
    return _group_message(group, TYPE_GROUP_MODIFIED)


def new_event_receiver_group_complete(event: Event, group: EventReceiverGroup) -> Message:
    """Return the message announcing that ``event`` completed ``group``."""
    return Message(
        success=True,
        id=group.id,
        specversion=CLOUD_EVENTS_SPEC,
        source=SOURCE,
        type=group.type,
        api_version=API_V1,
        name=event.name,
        version=event.version,
        release=event.release,
        package=event.package,
        platform_id=event.platform_id,
        data=Data(events=[event], event_receiver_groups=[group]),
    )


def decode_from_json(source: Any) -> Message:
    """Read a Message from JSON text, bytes or a readable file object."""
    if hasattr(source, "read"):
        source = source.read()
    if isinstance(source, (bytes, bytearray)):
        source = source.decode()
    data = json.loads(source)
    if not isinstance(data, dict):
        raise ValueError("expected a JSON object")
    return Message.from_dict(data)


class EncodedMessage:
    """A value bound for a topic, JSON-encoded once on first use."""

    def __init__(self, value: Any, topic: str = "") -> None:
        self.value = value
        self.topic = topic
        self._encoded: bytes | None = None
        self._error: Exception | None = None

    def _ensure_encoded(self) -> None:
        if self._encoded is None and self._error is None:
            try:
                self._encoded = json.dumps(
                    self.value, default=_json_default, separators=(",", ":")
                ).encode()
            except (TypeError, ValueError) as exc:
                self._error = exc

    def length(self) -> int:
        """Return the length of the encoded value, or 0 if it cannot be encoded."""
        self._ensure_encoded()
        return len(self._encoded) if self._encoded is not None else 0

    def encode(self) -> bytes:
        """Return the encoded value; raise the encoding error if there was one."""
        self._ensure_encoded()
        if self._error is not None:
            raise self._error
        return self._encoded