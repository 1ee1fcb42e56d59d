import pytest

from eventprov.errors import InvalidInputError, MissingObjectError
from eventprov.models import Event, EventReceiver, EventReceiverGroup
from eventprov.storage import Database, postgres_url, validate_receiver_schema
from eventprov.utils import Seed

SCHEMA = {
    "type": "object",
    "properties": {"name": {"type": "string"}},
    "required": ["name"],
}


@pytest.fixture
def db(tmp_path):
    database = Database(f"sqlite:///{tmp_path / 'epr.db'}")
    database.sync_schema()
    yield database
    database.close()


def _receiver(db):
    return db.create_event_receiver(
        EventReceiver(
            name="foobar",
            type="foobar.test",
            version="1.0.0",
            description="foobar is the description",
            schema=SCHEMA,
        )
    )


def _event(receiver_id, payload):
    return Event(
        name="foo",
        version="1.0.0",
        release="20231129",
        platform_id="aarch64-gnu-linux-7",
        package="OCI",
        description="Test Description",
        payload=payload,
        success=True,
        event_receiver_id=receiver_id,
    )


def test_postgres_url():
    password = "password"
    url = postgres_url("db.example.com", "user", password, "disable", "epr", 5432)
    assert url.drivername == "postgresql"
    assert url.host == "db.example.com"
    assert url.port == 5432
    assert url.database == "epr"
    assert url.query["sslmode"] == "disable"
    assert "sslmode" not in postgres_url("localhost", "user", password, "", "epr", 5432).query


def test_create_and_find_event_receiver(db):
    created = _receiver(db)
    assert len(created.id) == 26
    seed = Seed(name="foobar", type="foobar.test", version="1.0.0", description="foobar is the description")
    assert created.fingerprint == seed.fingerprint()
    assert db.find_event_receiver_by_id(created.id) == created
    assert db.find_event_receiver({"name": "foobar"}) == [created]


def test_find_missing_receiver_raises(db):
    with pytest.raises(MissingObjectError) as info:
        db.find_event_receiver_by_id("nope")
    assert "nope" in str(info.value)


def test_create_event_and_find(db):
    receiver = _receiver(db)
    created = db.create_event(_event(receiver.id, {"name": "value"}))
    assert len(created.id) == 26
    assert created.event_receiver == receiver
    found = db.find_event_by_id(created.id)
    assert found == created
    assert db.find_event({"name": "foo", "version": "1.0.0"}) == [created]
    assert db.find_event({"name": "other"}) == []


def test_create_event_missing_receiver(db):
    with pytest.raises(InvalidInputError) as info:
        db.create_event(_event("missing", {"name": "value"}))
    assert str(info.value) == "invalid input: receiver for event does not exist"


def test_create_event_payload_mismatch(db):
    receiver = _receiver(db)
    with pytest.raises(InvalidInputError) as info:
        db.create_event(_event(receiver.id, {"other": 1}))
    assert "event payload did not match event receiver schema" in str(info.value)
    assert db.find_event({}) == []


def test_find_missing_event_raises(db):
    with pytest.raises(MissingObjectError):
        db.find_event_by_id("missing")


def test_unknown_criteria_field(db):
    with pytest.raises(ValueError):
        db.find_event({"colour": "red"})


def test_create_and_find_group(db):
    first = _receiver(db)
    second = _receiver(db)
    group = db.create_event_receiver_group(
        EventReceiverGroup(
            name="clash",
            type="com.event.group.example",
            version="1.0.0",
            description="a group",
            enabled=True,
            event_receiver_ids=[second.id, first.id],
        )
    )
    found = db.find_event_receiver_group_by_id(group.id)
    assert found == group
    assert found.event_receiver_ids == [second.id, first.id]


def test_set_group_enabled(db):
    receiver = _receiver(db)
    group = db.create_event_receiver_group(
        EventReceiverGroup(
            name="clash",
            type="com.event.group.example",
            version="1.0.0",
            description="a group",
            enabled=True,
            event_receiver_ids=[receiver.id],
        )
    )
    db.set_event_receiver_group_enabled(group.id, False)
    found = db.find_event_receiver_group_by_id(group.id)
    assert found.enabled is False
    assert found.updated_at >= group.updated_at


def test_find_missing_group_raises(db):
    with pytest.raises(MissingObjectError):
        db.find_event_receiver_group_by_id("missing")


def test_validate_receiver_schema_accepts_text():
    assert validate_receiver_schema('{"type": "object"}', {"a": 1}) is None
    with pytest.raises(ValueError):
        validate_receiver_schema('{"type": "object"}', [1])


def test_validate_receiver_schema_errors():
    with pytest.raises(ValueError):
        validate_receiver_schema("{not json", {})
    with pytest.raises(ValueError):
        validate_receiver_schema({"type": 5}, {})
    with pytest.raises(ValueError) as info:
        validate_receiver_schema(None, {})
    assert str(info.value) == "schema is required"


def test_validate_receiver_schema_mismatch_message():
    with pytest.raises(ValueError) as info:
        validate_receiver_schema(SCHEMA, {"name": 3})
    lines = str(info.value).splitlines()
    assert lines[0] == "event payload did not match event receiver schema"
    assert lines[1].startswith("name:")