"""HTTP client for the event provenance registry service."""

from __future__ import annotations

import json
import logging
from typing import Any
from urllib.parse import urlsplit, urlunsplit

import requests

from eventprov.graphql import (
    EVENT_RECEIVER_GROUPS_QUERY,
    EVENT_RECEIVERS_QUERY,
    EVENTS_QUERY,
    new_graphql_search_request,
)
from eventprov.models import Event, EventReceiver, EventReceiverGroup
from eventprov.responses import decode_graphql_resp_from_json

logger = logging.getLogger(__name__)

DEFAULT_API_VERSION = "/api/v1"
DEFAULT_HEALTH = "/healthz"
REQUEST_TIMEOUT = 300.0

_SUPPORTED_METHODS = frozenset({"GET", "POST", "DELETE", "PATCH", "PUT"})


class ClientError(Exception):
    """A request to the registry failed; carries the status code and response body."""

    def __init__(self, message: str, status_code: int | None = None, content: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.content = content


def _clean(path: str) -> str:
    rooted = path.startswith("/")
    parts: list[str] = []
    for segment in path.split("/"):
        if segment in ("", "."):
            continue
        if segment == "..":
            if parts and parts[-1] != "..":
                parts.pop()
            elif not rooted:
                parts.append("..")
            continue
        parts.append(segment)
    result = "/".join(parts)
    if rooted:
        return "/" + result
    return result or "."


def _parse_url(url: str):
    if any(ord(ch) < 0x20 or ord(ch) == 0x7F for ch in url):
        raise ValueError(f"invalid control character in URL {url!r}")
    if url.startswith(":"):
        raise ValueError(f"parse {url!r}: missing protocol scheme")
    parts = urlsplit(url)
    parts.port  # raises ValueError for an invalid port
    return parts


def _join_url(base: str, *elements: str) -> str:
    parts = _parse_url(base)
    first = parts.path
    segments = [first, *elements]
    if first.startswith("/"):
        joined = _clean("/".join(segments))
    else:
        joined = _clean("/".join(["/" + first, *elements]))[1:]
    if segments[-1].endswith("/") and not joined.endswith("/"):
        joined += "/"
    if parts.netloc and joined and not joined.startswith("/"):
        joined = "/" + joined
    return urlunsplit(parts._replace(path=joined))


def _encode(value: Any) -> bytes:
    if hasattr(value, "to_dict"):
        value = value.to_dict()
    return json.dumps(value).encode()


class Client:
    """Talks to an instance of the registry at ``url``."""

    def __init__(
        self,
        url: str,
        api_version: str = DEFAULT_API_VERSION,
        health: str = DEFAULT_HEALTH,
        session: requests.Session | None = None,
    ) -> None:
        self.url = url
        self.api_version = api_version
        self.health = health
        self.session = session or requests.Session()

    def __enter__(self) -> Client:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self.session.close()

    def _request(self, method: str, endpoint: str, payload: bytes | None = None) -> str:
        if method not in _SUPPORTED_METHODS:
            raise ValueError(f"request type {method} not supported")
        resp = self.session.request(
            method,
            endpoint,
            data=payload,
            headers={"Content-Type": "application/json"},
            timeout=REQUEST_TIMEOUT,
        )
        content = resp.text
        status = resp.status_code
        if status >= 400 or status < 200:
            try:
                body = json.loads(content)
            except ValueError:
                body = None
            if not isinstance(body, dict):
                raise ClientError(f"request returned status code {status}", status, content)
            raise ClientError(
                f"request returned status code {status} ({body.get('errors')})", status, content
            )
        return content

    def do_get(self, endpoint: str) -> str:
        """GET ``endpoint`` and return the response body."""
        return self._request("GET", endpoint)

    def do_post(self, endpoint: str, payload: bytes) -> str:
        """POST ``payload`` to ``endpoint`` and return the response body."""
        return self._request("POST", endpoint, payload)

    def do_delete(self, endpoint: str, payload: bytes) -> str:
        """DELETE ``endpoint`` with ``payload`` and return the response body."""
        return self._request("DELETE", endpoint, payload)

    def do_patch(self, endpoint: str, payload: bytes) -> str:
        """PATCH ``endpoint`` with ``payload`` and return the response body."""
        return self._request("PATCH", endpoint, payload)

    def do_put(self, endpoint: str, payload: bytes) -> str:
        """PUT ``payload`` to ``endpoint`` and return the response body."""
        return self._request("PUT", endpoint, payload)

    def get_endpoint(self, end: str) -> str:
        """Return the URL of an API endpoint."""
        return _join_url(self.url, self.api_version, end)

    def health_endpoint(self, end: str) -> str:
        """Return the URL of a health endpoint."""
        return _join_url(self.url, self.health, end)

    def graphql_endpoint(self) -> str:
        """Return the URL of the GraphQL endpoint."""
        return _join_url(self.url, self.api_version, "graphql")

    def graphql_query_endpoint(self) -> str:
        """Return the URL of the GraphQL query endpoint."""
        return _join_url(self.url, self.api_version, "graphql", "query")

    def check_readiness(self) -> bool:
        """Return True when the service reports ready; raise otherwise."""
        content = self.do_get(self.health_endpoint("/readiness"))
        logger.debug("Check Readiness: %s", content)
        return True

    def check_liveness(self) -> bool:
        """Return True when the service reports alive; raise otherwise."""
        content = self.do_get(self.health_endpoint("/liveness"))
        logger.debug("Check Liveness: %s", content)
        return True

    def check_status(self) -> str:
        """Return the service's status document."""
        content = self.do_get(self.health_endpoint("/status"))
        logger.debug("Check Status: %s", content)
        return content

    def create_event(self, event: Event) -> str:
        """Create an event and return the service's response."""
        return self.do_post(self.get_endpoint("/events"), _encode(event))

    def create_event_receiver(self, receiver: EventReceiver) -> str:
        """Create an event receiver and return the service's response."""
        return self.do_post(self.get_endpoint("/receivers"), _encode(receiver))

    def create_event_receiver_group(self, group: EventReceiverGroup) -> str:
        """Create an event receiver group and return the service's response."""
        return self.do_post(self.get_endpoint("/groups"), _encode(group))

    def modify_event_receiver_group(self, group: EventReceiverGroup) -> str:
        """Update the group with ``group.id`` and return the service's response."""
        return self.do_patch(self.get_endpoint("/groups/" + group.id), _encode(group))

    def _search_body(self, operation: str, params: dict[str, Any], fields: list[str]) -> str:
        request = new_graphql_search_request(operation, params, fields)
        return json.dumps(request.to_dict(), sort_keys=True, separators=(",", ":"))

    def search(self, operation: str, params: dict[str, Any], fields: list[str]) -> str:
        """Run a GraphQL search and return the raw response."""
        endpoint = self.graphql_query_endpoint()
        body = self._search_body(operation, params, fields)
        return self.do_post(endpoint, body.encode())

    def search_events(self, params: dict[str, Any], fields: list[str]) -> list[Event]:
        """Return events matching ``params``, with the given fields filled in."""
        response = self.search(EVENTS_QUERY, params, fields)
        logger.debug("Response: %s", response)
        result = decode_graphql_resp_from_json(response)
        if result.errors is not None:
            raise ClientError(f"when searching for Event returned: errors: {result.errors}")
        return result.events

    def search_event_receivers(
        self, params: dict[str, Any], fields: list[str]
    ) -> list[EventReceiver]:
        """Return event receivers matching ``params``."""
        result = decode_graphql_resp_from_json(self.search(EVENT_RECEIVERS_QUERY, params, fields))
        if result.errors is not None:
            raise ClientError(
                f"when searching for eventReceiver returned: errors: {result.errors}"
            )
        return result.event_receivers

    def search_event_receiver_groups(
        self, params: dict[str, Any], fields: list[str]
    ) -> list[EventReceiverGroup]:
        """Return event receiver groups matching ``params``."""
        result = decode_graphql_resp_from_json(
            self.search(EVENT_RECEIVER_GROUPS_QUERY, params, fields)
        )
        if result.errors is not None:
            raise ClientError(
                f"when searching for eventReceiverGroup returned: errors: {result.errors}"
            )
        return result.event_receiver_groups

    def get_curl_search(self, operation: str, params: dict[str, Any], fields: list[str]) -> str:
        """Return a curl command line that performs the same search."""
        endpoint = self.graphql_query_endpoint()
        body = self._search_body(operation, params, fields)
        return f"curl -X POST -H \"content-type:application/json\" -d '{body}' {endpoint}"