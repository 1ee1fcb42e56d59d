# eventprov

`eventprov` is a Python library for an event provenance registry. The registry records what has happened in a build and release pipeline, for example "package X version Y passed its tests on platform Z". It also records which receivers accept such events, and which groups of receivers belong together.

The library is made up of these modules:

- **`eventprov.models`** holds the records. There are three kinds: `Event`, `EventReceiver` and `EventReceiverGroup`. Each one has `to_json()`, `to_yaml()` and `to_dict()`. To read a record back from JSON text, bytes or a file object, use one of these:
  - `event_from_json`
  - `event_receiver_from_json`
  - `event_receiver_group_from_json`
- **`eventprov.storage`** has a `Database` class built on SQLAlchemy. It stores the records and looks them up, and it checks each event's payload against the JSON Schema of its receiver. `validate_receiver_schema` performs that check by itself.
- **`eventprov.epr`** holds the validated inputs `EventInput`, `EventReceiverInput` and `EventReceiverGroupInput`. There are also two workflows, `create_event_receiver` and `create_event_receiver_group`. Each one validates its input, stores the record and announces it through a producer.
- **`eventprov.message`** builds messages in the CloudEvents 1.0 layout (`Message`, `Data`) for registry changes. `EncodedMessage` JSON-encodes a value the first time it is needed.
- **`eventprov.produce`** and **`eventprov.sasl`** cover Kafka client settings and producers:
  - `new_config`, `new_scram_config`, `new_plain_config` and `new_config_env` return the client settings;
  - `Producer` is the abstract producer interface;
  - `DisabledProducer` throws away every value it is given;
  - `TopicProducer` sends to one fixed topic.
- **`eventprov.graphql`** and **`eventprov.responses`** build the bodies of GraphQL requests and decode the service's responses.
- **`eventprov.client`** has a `Client` for a running registry service. It covers health checks, creating records and GraphQL searches.
- **`eventprov.status`** and **`eventprov.version`** produce service status reports and version strings.
- **`eventprov.errors`** defines `MissingObjectError` and `InvalidInputError`, plus `sanitize_error`.
- **`eventprov.utils`** provides ULID and UUID generation, bcrypt key hashing (`BCrypt`) and receiver fingerprints (`Seed`).

## Storing records

```python
from eventprov.models import Event, EventReceiver
from eventprov.storage import Database

with Database("sqlite:///registry.db") as db:
    db.sync_schema()
    receiver = db.create_event_receiver(
        EventReceiver(
            name="foo",
            type="foo.test",
            version="1.0.0",
            description="tests for foo",
            schema={"type": "object", "required": ["name"]},
        )
    )
    event = db.create_event(
        Event(
            name="foo",
            version="1.0.0",
            release="20231129",
            platform_id="x64-oci-linux-2",
            package="docker",
            description="foo passed",
            payload={"name": "value"},
            success=True,
            event_receiver_id=receiver.id,
        )
    )
    print(db.find_event_by_id(event.id).event_receiver.name)
```

`Database` accepts any URL or `URL` object that SQLAlchemy can open. `postgres_url(host, user, password, ssl_mode, database, port)` builds a PostgreSQL URL. You must install a PostgreSQL driver for SQLAlchemy separately, because this package does not depend on one.

Each new receiver, group and event gets a fresh ULID as its id. A receiver also gets a fingerprint. `create_event` raises `InvalidInputError` in two cases: the receiver does not exist, or the payload does not match the receiver's schema. The `find_*_by_id` methods raise `MissingObjectError` when nothing matches.

## Creating receivers and groups with announcements

```python
from eventprov.epr import EventReceiverInput, create_event_receiver
from eventprov.produce import DisabledProducer, TopicProducer
from eventprov.storage import Database

producer = TopicProducer(DisabledProducer(), "registry.events")
with Database("sqlite:///registry.db") as db:
    db.sync_schema()
    receiver = create_event_receiver(
        producer,
        db,
        EventReceiverInput(
            name="foobar",
            type="foobar.test",
            version="1.0.0",
            description="foobar is the description",
            schema={"type": "object"},
        ),
    )
```

`validate()` reports every problem in one `InvalidInputError`. That covers each blank field, a missing or invalid schema, and missing or blank receiver ids. `sanitize_error` lets `MissingObjectError` and `InvalidInputError` through unchanged. Any other exception becomes a generic "internal server error".

## Talking to a registry service

```python
from eventprov.client import Client, ClientError

with Client("http://localhost:8042") as client:
    if client.check_readiness():
        print(client.check_status())
    try:
        events = client.search_events(
            {"name": "foo", "version": "1.0.0"},
            ["id", "name", "version", "release", "platform_id", "package", "success"],
        )
    except ClientError as exc:
        print("search failed:", exc)
```

The request methods raise `ClientError` when the service answers with a status of 400 or above, or below 200. If the body holds an `errors` field, its content appears in the message. The `search_*` methods also raise `ClientError` when the GraphQL response reports errors. Connection failures come through as `requests` exceptions.

`get_curl_search` returns the `curl` command line that performs the same search.

## Building GraphQL requests

```python
from eventprov.graphql import new_graphql_search_request

req = new_graphql_search_request("event_receivers", {"name": "foobar"}, ["id", "name", "type"])
print(req.query)
# query ($obj: FindEventReceiverInput!){event_receivers(event_receiver: $obj) {id,name,type}}
print(req.to_dict())
```

Searches accept `events`, `event_receivers` and `event_receiver_groups`. `new_graphql_mutation_request` accepts `create_event`, `create_event_receiver` and `create_event_receiver_group`. Any other operation name produces an empty query.

## Kafka settings

`get_sasl_authentication()` reads `SASL_USERNAME`, `SASL_PASSWORD` and `SASL_MECHANISM` from the environment. `SASL_MECHANISM` may be `PLAIN`, `SCRAM` or `OAUTH2`.

`new_config_env(version)` returns the matching `KafkaClientConfig`. It turns SASL on only when all three settings are present. Choosing `OAUTH2` raises `ValueError`, because that mechanism is not supported.

## What this package does not do

- It does not run a registry server. There is no HTTP or GraphQL service, and no command to start one. `Client` and `eventprov.status` only talk to a service that is already running.
- It does not connect to Kafka. `KafkaClientConfig` only describes the settings. The only producer included is `DisabledProducer`, which discards values. To publish for real, implement `Producer` yourself. There is also no consumer for reading messages back off the bus.
- It does not work out which receiver groups an event completes. `eventprov.epr` has no event-creation workflow that announces events or group completions; use `Database.create_event` to store events directly.

## Running the tests

Install the `test` extra, then run `pytest`.