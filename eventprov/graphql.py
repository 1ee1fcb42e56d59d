"""GraphQL request bodies for searching and creating registry records."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

EVENTS_QUERY = "events"
EVENT_RECEIVERS_QUERY = "event_receivers"
EVENT_RECEIVER_GROUPS_QUERY = "event_receiver_groups"
EVENT_QUERY = "event"
EVENT_RECEIVER_QUERY = "event_receiver"
EVENT_RECEIVER_GROUP_QUERY = "event_receiver_group"
CREATE_EVENT_QUERY = "create_event"
CREATE_EVENT_RECEIVER_QUERY = "create_event_receiver"
CREATE_EVENT_RECEIVER_GROUP_QUERY = "create_event_receiver_group"
FIND_EVENT_INPUT = "FindEventInput!"
FIND_EVENT_RECEIVER_INPUT = "FindEventReceiverInput!"
FIND_EVENT_RECEIVER_GROUP_INPUT = "FindEventReceiverGroupInput!"
CREATE_EVENT_INPUT = "CreateEventInput!"
CREATE_EVENT_RECEIVER_INPUT = "CreateEventReceiverInput!"
CREATE_EVENT_RECEIVER_GROUP_INPUT = "CreateEventReceiverGroupInput!"

_SEARCHES = {
    EVENTS_QUERY: (FIND_EVENT_INPUT, EVENT_QUERY),
    EVENT_RECEIVERS_QUERY: (FIND_EVENT_RECEIVER_INPUT, EVENT_RECEIVER_QUERY),
    EVENT_RECEIVER_GROUPS_QUERY: (FIND_EVENT_RECEIVER_GROUP_INPUT, EVENT_RECEIVER_GROUP_QUERY),
}

_MUTATIONS = {
    CREATE_EVENT_QUERY: (CREATE_EVENT_INPUT, EVENT_QUERY),
    CREATE_EVENT_RECEIVER_QUERY: (CREATE_EVENT_RECEIVER_INPUT, EVENT_RECEIVER_QUERY),
    CREATE_EVENT_RECEIVER_GROUP_QUERY: (
        CREATE_EVENT_RECEIVER_GROUP_INPUT,
        EVENT_RECEIVER_GROUP_QUERY,
    ),
}


@dataclass
class GraphQLRequest:
    """The body of a GraphQL request."""

    query: str
    operation: str = ""
    variables: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-ready body; empty operation name and variables are left out."""
        body: dict[str, Any] = {"query": self.query}
        if self.operation:
            body["operationName"] = self.operation
        if self.variables:
            body["variables"] = self.variables
        return body


def new_graphql_search_request(
    operation: str, params: dict[str, Any], fields: list[str]
) -> GraphQLRequest:
    """Return a search for ``operation`` (events, event_receivers or event_receiver_groups).

    An unknown operation gives an empty query.
    """
    query = ""
    if operation in _SEARCHES:
        input_type, argument = _SEARCHES[operation]
        query = f"query ($obj: {input_type}){{{operation}({argument}: $obj) {{{','.join(fields)}}}}}"
    return GraphQLRequest(query=query, variables={"obj": params})


def new_graphql_mutation_request(operation: str, params: dict[str, Any]) -> GraphQLRequest:
    """Return a create mutation for ``operation``; an unknown operation gives an empty query."""
    query = ""
    if operation in _MUTATIONS:
        input_type, argument = _MUTATIONS[operation]
        query = f"mutation ($obj: {input_type}){{{operation}({argument}: $obj)}}"
    return GraphQLRequest(query=query, variables={"obj": params})