"""Validated creation of registry records, announced on the message bus."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any

import jsonschema

from eventprov.errors import InvalidInputError
from eventprov.message import new_event_receiver_group_created, new_event_receiver_message
from eventprov.models import EventReceiver, EventReceiverGroup
from eventprov.produce import TopicProducer
from eventprov.storage import Database

logger = logging.getLogger(__name__)


def _blank(value: str) -> bool:
    return not value.strip()


def _raise_if_any(problems: list[str]) -> None:
    if problems:
        raise InvalidInputError("\n".join(problems))


def _schema_problem(schema: Any) -> str | None:
    if schema is None or (isinstance(schema, (str, bytes, bytearray)) and not schema):
        return "schema is required"
    if isinstance(schema, (str, bytes, bytearray)):
        try:
            schema = json.loads(schema)
        except ValueError as exc:
            return f"failed to parse schema: {exc}"
    if not isinstance(schema, (dict, bool)):
        return "failed to parse schema: schema must be a JSON object or boolean"
    try:
        jsonschema.validators.validator_for(schema).check_schema(schema)
    except jsonschema.exceptions.SchemaError as exc:
        return f"failed to parse schema: {exc.message}"
    return None


@dataclass
class EventInput:
    """Fields a caller supplies to record an event."""

    name: str = ""
    version: str = ""
    release: str = ""
    platform_id: str = ""
    package: str = ""
    description: str = ""
    payload: Any = None
    success: bool = False
    event_receiver_id: str = ""

    def validate(self) -> None:
        """Raise InvalidInputError listing every blank required field."""
        checks = [
            (self.name, "name cannot be blank"),
            (self.version, "version cannot be blank"),
            (self.release, "release cannot be blank"),
            (self.platform_id, "platform id cannot be blank"),
            (self.package, "package cannot be blank"),
            (self.description, "description cannot be blank"),
            (self.event_receiver_id, "event receiver id cannot be blank"),
        ]
        _raise_if_any([message for value, message in checks if _blank(value)])


@dataclass
class EventReceiverInput:
    """Fields a caller supplies to create an event receiver."""

    name: str = ""
    type: str = ""
    version: str = ""
    description: str = ""
    schema: Any = None

    def validate(self) -> None:
        """Raise InvalidInputError listing blank fields and schema problems."""
        checks = [
            (self.name, "name cannot be blank"),
            (self.type, "type cannot be blank"),
            (self.version, "version cannot be blank"),
            (self.description, "description cannot be blank"),
        ]
        problems = [message for value, message in checks if _blank(value)]
        schema_problem = _schema_problem(self.schema)
        if schema_problem:
            problems.append(schema_problem)
        _raise_if_any(problems)


@dataclass
class EventReceiverGroupInput:
    """Fields a caller supplies to create an event receiver group."""

    name: str = ""
    type: str = ""
    version: str = ""
    description: str = ""
    enabled: bool = False
    event_receiver_ids: list[str] = field(default_factory=list)

    def validate(self) -> None:
        """Raise InvalidInputError listing blank fields and receiver id problems."""
        checks = [
            (self.name, "name cannot be blank"),
            (self.type, "type cannot be blank"),
            (self.version, "version cannot be blank"),
            (self.description, "description cannot be blank"),
        ]
        problems = [message for value, message in checks if _blank(value)]
        if not self.event_receiver_ids:
            problems.append("need at least one event receiver id")
        elif any(_blank(receiver_id) for receiver_id in self.event_receiver_ids):
            problems.append("event receiver ids cannot be blank")
        _raise_if_any(problems)


def create_event_receiver(
    producer: TopicProducer, db: Database, data: EventReceiverInput
) -> EventReceiver:
    """Validate, store and announce a new event receiver."""
    data.validate()
    schema = data.schema
    if isinstance(schema, (str, bytes, bytearray)):
        schema = json.loads(schema)
    partial = EventReceiver(
        name=data.name,
        type=data.type,
        version=data.version,
        description=data.description,
        schema=schema,
    )
    try:
        receiver = db.create_event_receiver(partial)
    except Exception:
        logger.error("error creating event receiver: input=%r", data, exc_info=True)
        raise
    producer.async_send(new_event_receiver_message(receiver))
    logger.info("created eventReceiver %s", receiver.id)
    return receiver


def create_event_receiver_group(
    producer: TopicProducer, db: Database, data: EventReceiverGroupInput
) -> EventReceiverGroup:
    """Validate, store and announce a new event receiver group."""
    data.validate()
    partial = EventReceiverGroup(
        name=data.name,
        type=data.type,
        version=data.version,
        description=data.description,
        enabled=data.enabled,
        event_receiver_ids=list(data.event_receiver_ids),
    )
    try:
        group = db.create_event_receiver_group(partial)
    except Exception:
        logger.error("error creating event receiver group: input=%r", data, exc_info=True)
        raise
    producer.async_send(new_event_receiver_group_created(group))
    logger.info("created eventReceiverGroup %s", group.id)
    return group