"""Relational storage for events, event receivers and receiver groups."""

from __future__ import annotations

import json
import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any

import jsonschema
import sqlalchemy as sa
from sqlalchemy.engine import URL

from eventprov.errors import InvalidInputError, MissingObjectError
from eventprov.models import Event, EventReceiver, EventReceiverGroup
from eventprov.utils import Seed, new_ulid_as_string

logger = logging.getLogger(__name__)

_PAYLOAD_MISMATCH = "event payload did not match event receiver schema"

_metadata = sa.MetaData()

_receivers = sa.Table(
    "event_receivers",
    _metadata,
    sa.Column("id", sa.String(255), primary_key=True),
    sa.Column("name", sa.String(255), nullable=False),
    sa.Column("type", sa.String(255), nullable=False),
    sa.Column("version", sa.String(255), nullable=False),
    sa.Column("description", sa.String(255), nullable=False),
    sa.Column("schema", sa.JSON, nullable=False),
    sa.Column("fingerprint", sa.String(255), nullable=False),
    sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
)

_events = sa.Table(
    "events",
    _metadata,
    sa.Column("id", sa.String(255), primary_key=True),
    sa.Column("name", sa.String(255), nullable=False),
    sa.Column("version", sa.String(255), nullable=False),
    sa.Column("release", sa.String(255), nullable=False),
    sa.Column("platform_id", sa.String(255), nullable=False),
    sa.Column("package", sa.String(255), nullable=False),
    sa.Column("description", sa.String(255), nullable=False),
    sa.Column("payload", sa.JSON, nullable=False),
    sa.Column("success", sa.Boolean, nullable=False),
    sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    sa.Column(
        "event_receiver_id", sa.String(255), sa.ForeignKey("event_receivers.id"), nullable=False
    ),
)

_groups = sa.Table(
    "event_receiver_groups",
    _metadata,
    sa.Column("id", sa.String(255), primary_key=True),
    sa.Column("name", sa.String(255), nullable=False),
    sa.Column("type", sa.String(255), nullable=False),
    sa.Column("version", sa.String(255), nullable=False),
    sa.Column("description", sa.String(255), nullable=False),
    sa.Column("enabled", sa.Boolean, nullable=False),
    sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
)

_links = sa.Table(
    "event_receiver_group_to_event_receivers",
    _metadata,
    sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
    sa.Column(
        "event_receiver_id", sa.String(255), sa.ForeignKey("event_receivers.id"), nullable=False
    ),
    sa.Column(
        "event_receiver_group_id",
        sa.String(255),
        sa.ForeignKey("event_receiver_groups.id"),
        nullable=False,
    ),
)


def postgres_url(host: str, user: str, password: str, ssl_mode: str, database: str, port: int) -> URL:
    """Return the connection URL for a PostgreSQL database."""
    return URL.create(
        "postgresql",
        username=user,
        password=password,
        host=host,
        port=port,
        database=database,
        query={"sslmode": ssl_mode} if ssl_mode else {},
    )


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _aware(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _conditions(table: sa.Table, criteria: dict[str, Any]) -> list:
    conditions = []
    for key, value in criteria.items():
        if key not in table.c:
            raise ValueError(f"unknown field {key!r} for {table.name}")
        conditions.append(table.c[key] == value)
    return conditions


def _single(items: list, kind: str, ident: str):
    if not items:
        raise MissingObjectError(f"{kind} with id {ident} not found")
    if len(items) > 1:
        raise RuntimeError(f"found multiple {kind}s with id {ident}")
    return items[0]


def _receiver_from_row(row) -> EventReceiver:
    return EventReceiver(
        id=row["id"],
        name=row["name"],
        type=row["type"],
        version=row["version"],
        description=row["description"],
        schema=row["schema"],
        fingerprint=row["fingerprint"],
        created_at=_aware(row["created_at"]),
    )


def _event_from_row(row, receiver: EventReceiver) -> Event:
    return Event(
        id=row["id"],
        name=row["name"],
        version=row["version"],
        release=row["release"],
        platform_id=row["platform_id"],
        package=row["package"],
        description=row["description"],
        payload=row["payload"],
        success=row["success"],
        created_at=_aware(row["created_at"]),
        event_receiver_id=row["event_receiver_id"],
        event_receiver=receiver,
    )


def _error_location(error: jsonschema.exceptions.ValidationError) -> str:
    return ".".join(str(part) for part in error.absolute_path) or "(root)"


def validate_receiver_schema(schema: Any, payload: Any) -> None:
    """Check ``payload`` against a receiver's JSON schema.

    ``schema`` may be JSON text or an already decoded schema. Raises ValueError
    when the schema is missing or invalid, or when the payload does not match.
    """
    if isinstance(schema, (str, bytes, bytearray)):
        if not schema:
            raise ValueError("schema is required")
        schema = json.loads(schema)
    if schema is None:
        raise ValueError("schema is required")
    if not isinstance(schema, (dict, bool)):
        raise ValueError("schema must be a JSON object or boolean")
    validator_cls = jsonschema.validators.validator_for(schema)
    try:
        validator_cls.check_schema(schema)
    except jsonschema.exceptions.SchemaError as exc:
        raise ValueError(f"invalid schema: {exc.message}") from exc
    problems = [
        f"{_error_location(error)}: {error.message}"
        for error in validator_cls(schema).iter_errors(payload)
    ]
    if problems:
        message = "\n".join([_PAYLOAD_MISMATCH, *problems])
        logger.error("invalid schema: %s", message)
        raise ValueError(message)


class Database:
    """Access to the registry's tables through an SQLAlchemy engine."""

    def __init__(self, url: str | URL, **engine_options: Any) -> None:
        self.engine = sa.create_engine(url, **engine_options)

    def __enter__(self) -> Database:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def sync_schema(self) -> None:
        """Create any tables that do not exist yet."""
        _metadata.create_all(self.engine)

    def close(self) -> None:
        """Release the engine's connections."""
        self.engine.dispose()

    def create_event(self, event: Event) -> Event:
        """Store an event and return it with its new id and receiver.

        Raises InvalidInputError when the receiver does not exist or the payload
        does not match the receiver's schema.
        """
        try:
            receiver = self.find_event_receiver_by_id(event.event_receiver_id)
        except MissingObjectError as exc:
            raise InvalidInputError("receiver for event does not exist") from exc
        try:
            validate_receiver_schema(receiver.schema, event.payload)
        except ValueError as exc:
            raise InvalidInputError(str(exc)) from exc

        created = replace(
            event,
            id=new_ulid_as_string(),
            created_at=event.created_at or _now(),
            event_receiver=receiver,
        )
        with self.engine.begin() as conn:
            conn.execute(
                sa.insert(_events).values(
                    id=created.id,
                    name=created.name,
                    version=created.version,
                    release=created.release,
                    platform_id=created.platform_id,
                    package=created.package,
                    description=created.description,
                    payload=created.payload,
                    success=created.success,
                    created_at=created.created_at,
                    event_receiver_id=created.event_receiver_id,
                )
            )
        return created

    def find_event_by_id(self, event_id: str) -> Event:
        """Return the event with ``event_id``; raise MissingObjectError if there is none."""
        return _single(self.find_event({"id": event_id}), "event", event_id)

    def find_event(self, criteria: dict[str, Any]) -> list[Event]:
        """Return events whose fields equal every value in ``criteria``, with their receivers."""
        stmt = sa.select(_events).where(*_conditions(_events, criteria)).order_by(_events.c.id)
        with self.engine.connect() as conn:
            rows = conn.execute(stmt).mappings().all()
            receiver_ids = {row["event_receiver_id"] for row in rows}
            receivers: dict[str, EventReceiver] = {}
            if receiver_ids:
                receiver_rows = conn.execute(
                    sa.select(_receivers).where(_receivers.c.id.in_(receiver_ids))
                ).mappings()
                receivers = {row["id"]: _receiver_from_row(row) for row in receiver_rows}
        return [
            _event_from_row(row, receivers.get(row["event_receiver_id"], EventReceiver()))
            for row in rows
        ]

    def create_event_receiver(self, receiver: EventReceiver) -> EventReceiver:
        """Store a receiver with a new id and fingerprint and return it."""
        seed = Seed(
            name=receiver.name,
            type=receiver.type,
            version=receiver.version,
            description=receiver.description,
        )
        created = replace(
            receiver,
            id=new_ulid_as_string(),
            fingerprint=seed.fingerprint(),
            created_at=receiver.created_at or _now(),
        )
        with self.engine.begin() as conn:
            conn.execute(
                sa.insert(_receivers).values(
                    id=created.id,
                    name=created.name,
                    type=created.type,
                    version=created.version,
                    description=created.description,
                    schema=created.schema,
                    fingerprint=created.fingerprint,
                    created_at=created.created_at,
                )
            )
        return created

    def find_event_receiver_by_id(self, receiver_id: str) -> EventReceiver:
        """Return the receiver with ``receiver_id``; raise MissingObjectError if there is none."""
        return _single(self.find_event_receiver({"id": receiver_id}), "eventReceiver", receiver_id)

    def find_event_receiver(self, criteria: dict[str, Any]) -> list[EventReceiver]:
        """Return receivers whose fields equal every value in ``criteria``."""
        stmt = (
            sa.select(_receivers)
            .where(*_conditions(_receivers, criteria))
            .order_by(_receivers.c.id)
        )
        with self.engine.connect() as conn:
            return [_receiver_from_row(row) for row in conn.execute(stmt).mappings()]

    def create_event_receiver_group(self, group: EventReceiverGroup) -> EventReceiverGroup:
        """Store a group and its receiver links in one transaction and return it."""
        now = _now()
        created = replace(
            group,
            id=new_ulid_as_string(),
            event_receiver_ids=list(group.event_receiver_ids),
            created_at=group.created_at or now,
            updated_at=group.updated_at or now,
        )
        with self.engine.begin() as conn:
            conn.execute(
                sa.insert(_groups).values(
                    id=created.id,
                    name=created.name,
                    type=created.type,
                    version=created.version,
                    description=created.description,
                    enabled=created.enabled,
                    created_at=created.created_at,
                    updated_at=created.updated_at,
                )
            )
            if created.event_receiver_ids:
                conn.execute(
                    sa.insert(_links),
                    [
                        {"event_receiver_id": receiver_id, "event_receiver_group_id": created.id}
                        for receiver_id in created.event_receiver_ids
                    ],
                )
        return created

    def find_event_receiver_group_by_id(self, group_id: str) -> EventReceiverGroup:
        """Return the group with ``group_id``; raise MissingObjectError if there is none."""
        return _single(
            self.find_event_receiver_group({"id": group_id}), "eventReceiverGroup", group_id
        )

    def find_event_receiver_group(self, criteria: dict[str, Any]) -> list[EventReceiverGroup]:
        """Return groups whose fields equal every value in ``criteria``, with their receiver ids."""
        stmt = sa.select(_groups).where(*_conditions(_groups, criteria)).order_by(_groups.c.id)
        groups = []
        with self.engine.connect() as conn:
            for row in conn.execute(stmt).mappings().all():
                receiver_ids = conn.execute(
                    sa.select(_links.c.event_receiver_id)
                    .where(_links.c.event_receiver_group_id == row["id"])
                    .order_by(_links.c.id)
                ).scalars().all()
                groups.append(
                    EventReceiverGroup(
                        id=row["id"],
                        name=row["name"],
                        type=row["type"],
                        version=row["version"],
                        description=row["description"],
                        enabled=row["enabled"],
                        event_receiver_ids=list(receiver_ids),
                        created_at=_aware(row["created_at"]),
                        updated_at=_aware(row["updated_at"]),
                    )
                )
        return groups

    def set_event_receiver_group_enabled(self, group_id: str, enabled: bool) -> None:
        """Enable or disable the group with ``group_id``."""
        with self.engine.begin() as conn:
            conn.execute(
                sa.update(_groups)
                .where(_groups.c.id == group_id)
                .values(enabled=enabled, updated_at=_now())
            )