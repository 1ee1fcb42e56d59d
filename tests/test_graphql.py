import pytest

from eventprov.graphql import (
    GraphQLRequest,
    new_graphql_mutation_request,
    new_graphql_search_request,
)

PARAMS = {"name": "foo", "version": "1.0.0"}
RECEIVER_FIELDS = ["id", "name", "type", "version", "description"]


def test_search_events():
    fields = [
        "id",
        "name",
        "version",
        "release",
        "platform_id",
        "package",
        "description",
        "success",
        "event_receiver_id",
    ]
    req = new_graphql_search_request("events", PARAMS, fields)
    assert req.query == (
        "query ($obj: FindEventInput!){events(event: $obj) "
        "{id,name,version,release,platform_id,package,description,success,event_receiver_id}}"
    )
    assert req.variables == {"obj": PARAMS}


def test_search_event_receivers():
    req = new_graphql_search_request("event_receivers", PARAMS, RECEIVER_FIELDS)
    assert req.query == (
        "query ($obj: FindEventReceiverInput!){event_receivers(event_receiver: $obj) "
        "{id,name,type,version,description}}"
    )


def test_search_event_receiver_groups():
    req = new_graphql_search_request("event_receiver_groups", PARAMS, RECEIVER_FIELDS)
    assert req.query == (
        "query ($obj: FindEventReceiverGroupInput!)"
        "{event_receiver_groups(event_receiver_group: $obj) {id,name,type,version,description}}"
    )


def test_search_unknown_operation_gives_empty_query():
    req = new_graphql_search_request("nothing", PARAMS, RECEIVER_FIELDS)
    assert req.query == ""
    assert req.variables == {"obj": PARAMS}


@pytest.mark.parametrize(
    "operation, expected",
    [
        ("create_event", "mutation ($obj: CreateEventInput!){create_event(event: $obj)}"),
        (
            "create_event_receiver",
            "mutation ($obj: CreateEventReceiverInput!){create_event_receiver(event_receiver: $obj)}",
        ),
        (
            "create_event_receiver_group",
            "mutation ($obj: CreateEventReceiverGroupInput!)"
            "{create_event_receiver_group(event_receiver_group: $obj)}",
        ),
    ],
)
def test_mutations(operation, expected):
    req = new_graphql_mutation_request(operation, PARAMS)
    assert req.query == expected
    assert req.variables == {"obj": PARAMS}


def test_mutation_unknown_operation_gives_empty_query():
    assert new_graphql_mutation_request("delete_event", PARAMS).query == ""


def test_to_dict_omits_empty_operation_name():
    body = new_graphql_search_request("events", PARAMS, ["id"]).to_dict()
    assert set(body) == {"query", "variables"}
    assert body["variables"] == {"obj": PARAMS}


def test_to_dict_includes_operation_name_and_omits_empty_variables():
    body = GraphQLRequest(query="{x}", operation="op").to_dict()
    assert body == {"query": "{x}", "operationName": "op"}