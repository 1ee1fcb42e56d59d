import json
from datetime import datetime, timedelta

import pytest
import responses

from eventprov.config import new_config, with_kafka, with_server, with_storage
from eventprov.status import (
    Health,
    Status,
    _format_duration,
    get_uptime,
    new_health,
    new_metadata,
    new_status,
    request_response_body,
)

BASE = "http://testserver.example.com"


def _server_config():
    cfg = new_config(
        with_server("localhost", "8080", "/resources", True, True),
        with_storage("postgres", "user", "pass", "ssl", "postgres", 5432, 10, 10, 10),
        with_kafka(
            True,
            "2.6",
            "re.server.kafka:9092,re.server.kafka:9093,re.server.kafka:9094".split(","),
            "re.server.topics.test.one",
        ),
    )
    return cfg.server


def test_the_status():
    with responses.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        rsps.add(responses.GET, "http://localhost:8080/healthz/liveness",
                 body='{"data":{"alive":true}}', status=200)
        rsps.add(responses.GET, "http://localhost:8080/healthz/readiness",
                 body='{"data":{"ready":true}}', status=200)
        status = new_status(_server_config())

    assert status.metadata.verbose is True
    assert status.metadata.resources == "/resources"
    assert status.service.name == "server"
    assert status.service.version == "dev"
    assert status.debug is True
    assert status.health.readiness == b'{"data":{"ready":true}}'
    assert status.health.liveness == b'{"data":{"alive":true}}'


def test_request_response_body_happy_path():
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, BASE + "/happypath", body='{"data":{"alive":true}}\n')
        body = request_response_body(BASE + "/happypath")
    assert body.decode().strip() == '{"data":{"alive":true}}'


def test_request_response_body_fake_url():
    assert request_response_body("fakeurl").decode() == (
        '{"error" : "failed to perform Get request from \'fakeurl\'"}'
    )


def test_request_response_body_bad_status():
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, BASE + "/badStatus", status=403)
        body = request_response_body(BASE + "/badStatus")
    assert body.decode() == '{"error" : "bad status: 403 at \'' + BASE + '/badStatus\'"}'


def test_new_health_unreachable_gives_error_bodies():
    with responses.RequestsMock(assert_all_requests_are_fired=False):
        health = new_health("localhost:8080")
    readiness = json.loads(health.readiness)
    assert "healthz/readiness" in readiness["error"]
    assert "healthz/liveness" in json.loads(health.liveness)["error"]


def test_new_metadata():
    meta = new_metadata(_server_config())
    assert meta.to_dict() == {"verbose": True, "resources": "/resources"}


def test_status_to_json_round_trip():
    with responses.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        rsps.add(responses.GET, "http://localhost:8080/healthz/readiness",
                 body='{"data":{"ready":true}}')
        rsps.add(responses.GET, "http://localhost:8080/healthz/liveness",
                 body='{"data":{"alive":true}}')
        status = new_status(_server_config())
    data = json.loads(status.to_json())
    assert data["health"]["readiness"] == {"data": {"ready": True}}
    assert data["service"] == {"name": "server", "version": "dev", "release": "dirty"}
    assert data["metadata"] == {"verbose": True, "resources": "/resources"}
    assert data["debug"] is True


def test_status_to_json_invalid_health():
    status = Status(health=Health(readiness=b"not json", liveness=b"{}"))
    assert status.to_json() == '{"error" : "failed to marshal status"}'


def test_get_uptime_hours():
    uptime = get_uptime(datetime.now() - timedelta(hours=2, minutes=3))
    assert uptime.startswith("2h3m")
    assert uptime.endswith("s")


def test_get_uptime_future_start_is_negative():
    assert get_uptime(datetime.now() + timedelta(hours=1)).startswith("-")


@pytest.mark.parametrize(
    "delta, expected",
    [
        (timedelta(0), "0s"),
        (timedelta(seconds=1.5), "1.5s"),
        (timedelta(minutes=90), "1h30m0s"),
        (timedelta(microseconds=1500), "1.5ms"),
        (timedelta(microseconds=1), "1µs"),
        (timedelta(minutes=2, seconds=5), "2m5s"),
    ],
)
def test_format_duration(delta, expected):
    assert _format_duration(delta) == expected