"""Records kept by the registry: events, event receivers and receiver groups."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

import yaml

_FRACTION = re.compile(r"\.(\d+)")


def _parse_time(value: Any) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    if not isinstance(value, str):
        raise ValueError(f"invalid time value: {value!r}")
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    text = _FRACTION.sub(lambda m: "." + (m.group(1) + "000000")[:6], text, count=1)
    try:
        return datetime.fromisoformat(text)
    except ValueError as exc:
        raise ValueError(f"invalid time value: {value!r}") from exc


def _format_time(value: datetime | None) -> str | None:
    return None if value is None else value.isoformat()


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


def _str_list(data: dict, key: str) -> list[str]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ValueError(f"field {key!r} must be a list of strings")
    return list(value)


def _load_object(source: Any) -> dict:
    if hasattr(source, "read"):
        source = source.read()
    if isinstance(source, (bytes, bytearray)):
        source = source.decode()
    data = json.loads(source)
    if not isinstance(data, dict):
        raise ValueError("expected a JSON object")
    return data


def _to_yaml(data: dict) -> str:
    return yaml.safe_dump(data, sort_keys=False)


@dataclass
class EventReceiver:
    """A receiver that accepts events whose payload matches its schema."""

    id: str = ""
    name: str = ""
    type: str = ""
    version: str = ""
    description: str = ""
    schema: Any = None
    fingerprint: str = ""
    created_at: datetime | None = None

    def to_dict(self) -> dict:
        """Return the receiver as a JSON-ready mapping."""
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "version": self.version,
            "description": self.description,
            "schema": self.schema,
            "fingerprint": self.fingerprint,
            "created_at": _format_time(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: dict) -> EventReceiver:
        """Build a receiver from a decoded JSON mapping."""
        return cls(
            id=_str(data, "id"),
            name=_str(data, "name"),
            type=_str(data, "type"),
            version=_str(data, "version"),
            description=_str(data, "description"),
            schema=data.get("schema"),
            fingerprint=_str(data, "fingerprint"),
            created_at=_parse_time(data.get("created_at")),
        )

    def to_json(self) -> str:
        """Return the receiver as indented JSON."""
        return json.dumps(self.to_dict(), indent=4)

    def to_yaml(self) -> str:
        """Return the receiver as YAML."""
        return _to_yaml(self.to_dict())


@dataclass
class Event:
    """An event recorded against an event receiver."""

    id: str = ""
    name: str = ""
    version: str = ""
    release: str = ""
    platform_id: str = ""
    package: str = ""
    description: str = ""
    payload: Any = None
    success: bool = False
    created_at: datetime | None = None
    event_receiver_id: str = ""
    event_receiver: EventReceiver = field(default_factory=EventReceiver)

    def to_dict(self) -> dict:
        """Return the event as a JSON-ready mapping."""
        return {
            "id": self.id,
            "name": self.name,
            "version": self.version,
            "release": self.release,
            "platform_id": self.platform_id,
            "package": self.package,
            "description": self.description,
            "payload": self.payload,
            "success": self.success,
            "created_at": _format_time(self.created_at),
            "event_receiver_id": self.event_receiver_id,
            "EventReceiver": self.event_receiver.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> Event:
        """Build an event from a decoded JSON mapping."""
        receiver = data.get("EventReceiver")
        if receiver is not None and not isinstance(receiver, dict):
            raise ValueError("field 'EventReceiver' must be an object")
        return cls(
            id=_str(data, "id"),
            name=_str(data, "name"),
            version=_str(data, "version"),
            release=_str(data, "release"),
            platform_id=_str(data, "platform_id"),
            package=_str(data, "package"),
            description=_str(data, "description"),
            payload=data.get("payload"),
            success=_bool(data, "success"),
            created_at=_parse_time(data.get("created_at")),
            event_receiver_id=_str(data, "event_receiver_id"),
            event_receiver=EventReceiver.from_dict(receiver) if receiver else EventReceiver(),
        )

    def to_json(self) -> str:
        """Return the event as indented JSON."""
        return json.dumps(self.to_dict(), indent=4)

    def to_yaml(self) -> str:
        """Return the event as YAML."""
        return _to_yaml(self.to_dict())


@dataclass
class EventReceiverGroup:
    """A group of event receivers that completes when all of them have events."""

    id: str = ""
    name: str = ""
    type: str = ""
    version: str = ""
    description: str = ""
    enabled: bool = False
    event_receiver_ids: list[str] = field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def to_dict(self) -> dict:
        """Return the group as a JSON-ready mapping."""
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "version": self.version,
            "description": self.description,
            "enabled": self.enabled,
            "event_receiver_ids": list(self.event_receiver_ids),
            "created_at": _format_time(self.created_at),
            "updated_at": _format_time(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: dict) -> EventReceiverGroup:
        """Build a group from a decoded JSON mapping."""
        return cls(
            id=_str(data, "id"),
            name=_str(data, "name"),
            type=_str(data, "type"),
            version=_str(data, "version"),
            description=_str(data, "description"),
            enabled=_bool(data, "enabled"),
            event_receiver_ids=_str_list(data, "event_receiver_ids"),
            created_at=_parse_time(data.get("created_at")),
            updated_at=_parse_time(data.get("updated_at")),
        )

    def to_json(self) -> str:
        """Return the group as indented JSON."""
        return json.dumps(self.to_dict(), indent=4)

    def to_yaml(self) -> str:
        """Return the group as YAML."""
        return _to_yaml(self.to_dict())


def event_from_json(source: Any) -> Event:
    """Read an Event from JSON text, bytes or a readable file object."""
    return Event.from_dict(_load_object(source))


def event_receiver_from_json(source: Any) -> EventReceiver:
    """Read an EventReceiver from JSON text, bytes or a readable file object."""
    return EventReceiver.from_dict(_load_object(source))


def event_receiver_group_from_json(source: Any) -> EventReceiverGroup:
    """Read an EventReceiverGroup from JSON text, bytes or a readable file object."""
    return EventReceiverGroup.from_dict(_load_object(source))