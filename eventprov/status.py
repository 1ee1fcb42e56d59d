"""Status report of a running server, including its health checks."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

import requests

from eventprov.config import ServerConfig
from eventprov.version import Version, new_version

logger = logging.getLogger(__name__)

_REQUEST_TIMEOUT = 300.0
_MARSHAL_FAILURE = '{"error" : "failed to marshal status"}'


@dataclass
class Health:
    """Raw JSON bodies returned by the readiness and liveness endpoints."""

    readiness: bytes = b""
    liveness: bytes = b""


@dataclass
class Metadata:
    """Service-specific status fields."""

    verbose: bool = False
    resources: str = ""

    def to_dict(self) -> dict:
        """Return the metadata as a JSON-ready mapping."""
        return {"verbose": self.verbose, "resources": self.resources}


def _raw_json(value: bytes) -> Any:
    if not value:
        return {}
    return json.loads(value)


@dataclass
class Status:
    """Characteristics of the running service."""

    service: Version | None = None
    uptime: str = ""
    debug: bool = False
    health: Health = field(default_factory=Health)
    start_time: datetime | None = None
    host: str = ""
    port: str = ""
    metadata: Any = None

    def to_json(self) -> str:
        """Return the status as indented JSON, or an error object if it cannot be encoded."""
        try:
            service = None
            if self.service is not None:
                service = {
                    "name": self.service.name,
                    "version": self.service.version,
                    "release": self.service.release,
                }
            metadata = self.metadata
            if hasattr(metadata, "to_dict"):
                metadata = metadata.to_dict()
            body = {
                "service": service,
                "uptime": self.uptime,
                "debug": self.debug,
                "health": {
                    "readiness": _raw_json(self.health.readiness),
                    "liveness": _raw_json(self.health.liveness),
                },
                "start_time": None if self.start_time is None else self.start_time.isoformat(),
                "host": self.host,
                "port": self.port,
                "metadata": metadata,
            }
            return json.dumps(body, indent=2)
        except (TypeError, ValueError):
            return _MARSHAL_FAILURE


def new_metadata(cfg: ServerConfig) -> Metadata:
    """Return the metadata of a server configuration."""
    return Metadata(verbose=cfg.verbose_api, resources=cfg.resource_dir)


def new_status(cfg: ServerConfig) -> Status:
    """Return the status of the server described by ``cfg``, querying its health endpoints."""
    return Status(
        service=new_version(),
        debug=cfg.debug,
        start_time=cfg.start_time,
        uptime=get_uptime(cfg.start_time),
        health=new_health(cfg.srv_addr()),
        metadata=new_metadata(cfg),
    )


def new_health(server: str) -> Health:
    """Query the readiness and liveness endpoints of the server at HOST:PORT."""
    return Health(
        readiness=request_response_body(f"http://{server}/healthz/readiness"),
        liveness=request_response_body(f"http://{server}/healthz/liveness"),
    )


def request_response_body(url: str) -> bytes:
    """GET ``url`` and return the body, or a JSON error object describing the failure."""
    pre = '{"error" : '
    end = f"'{url}'\"}}"
    try:
        resp = requests.get(url, timeout=_REQUEST_TIMEOUT, stream=True)
    except requests.RequestException as exc:
        logger.error("error: %s", exc)
        return f'{pre}"failed to perform Get request from {end}'.encode()
    except ValueError:
        return f'{pre}"failed formulate request for {end}'.encode()
    with resp:
        if resp.status_code != 200:
            return f'{pre}"bad status: {resp.status_code} at {end}'.encode()
        try:
            return resp.content
        except requests.RequestException:
            return f'{pre}"unable to read response body from {end}'.encode()


def _decimal(value: int, digits: int) -> str:
    whole, frac = divmod(value, 10**digits)
    if not frac:
        return str(whole)
    return f"{whole}.{frac:0{digits}d}".rstrip("0")


def _format_duration(delta: timedelta) -> str:
    ns = (delta // timedelta(microseconds=1)) * 1000
    if ns == 0:
        return "0s"
    sign = "-" if ns < 0 else ""
    ns = abs(ns)
    if ns < 1_000:
        return f"{sign}{ns}ns"
    if ns < 1_000_000:
        return f"{sign}{_decimal(ns, 3)}µs"
    if ns < 1_000_000_000:
        return f"{sign}{_decimal(ns, 6)}ms"
    hours, rem = divmod(ns, 3_600_000_000_000)
    minutes, rem = divmod(rem, 60_000_000_000)
    seconds = _decimal(rem, 9) + "s"
    if hours:
        return f"{sign}{hours}h{minutes}m{seconds}"
    if minutes:
        return f"{sign}{minutes}m{seconds}"
    return sign + seconds


def get_uptime(start: datetime) -> str:
    """Return the time elapsed since ``start`` in the form 1h2m3.5s."""
    now = datetime.now(start.tzinfo) if start.tzinfo else datetime.now()
    return _format_duration(now - start)