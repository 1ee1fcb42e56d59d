"""Application configuration assembled from option functions."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable

VERSION = "dev"
COMMIT = "dirty"

logger = logging.getLogger(__name__)


@dataclass
class ServerConfig:
    """Settings for the HTTP server."""

    host: str = ""
    port: str = ""
    resource_dir: str = ""
    debug: bool = False
    verbose_api: bool = False
    start_time: datetime = field(default_factory=datetime.now)

    def srv_addr(self) -> str:
        """Return HOST:PORT."""
        return f"{self.host}:{self.port}"


@dataclass
class StorageConfig:
    """Settings for the database connection."""

    name: str = ""
    host: str = ""
    port: int = 0
    user: str = ""
    password: str = field(default="", repr=False)
    ssl_mode: str = ""
    max_connections: int = 0
    idle_connections: int = 0
    connection_life: int = 0


@dataclass
class AuthConfig:
    """Settings for authentication."""

    client_id: str = ""
    trusted_issuers: list[str] = field(default_factory=list)


@dataclass
class KafkaConfig:
    """Settings for the Kafka message bus."""

    tls: bool = False
    version: str = ""
    topic: str = ""
    peers: list[str] = field(default_factory=list)


def _fmt(value) -> str:
    if isinstance(value, bool):
        return str(value).lower()
    return str(value)


@dataclass
class Config:
    """The complete application configuration."""

    server: ServerConfig | None = None
    storage: StorageConfig | None = None
    kafka: KafkaConfig | None = None
    auth: AuthConfig | None = None

    def summary(self) -> list[str]:
        """Return the configuration lines that log_info reports."""
        return [
            f"Host: {self.server.host}",
            f"Port: {self.server.port}",
            f"Storage Host: {self.storage.host}",
            f"Storage Name: {self.storage.name}",
            f"Kafka Peers: [{' '.join(self.kafka.peers)}]",
            f"Kafka Version: {self.kafka.version}",
            f"Kafka TLS: {_fmt(self.kafka.tls)}",
            f"Kafka Topic: {self.kafka.topic}",
            f"Debug: {_fmt(self.server.debug)}",
            f"Verbose API: {_fmt(self.server.verbose_api)}",
        ]

    def log_info(self) -> list[str]:
        """Log most of the configuration at info level and return the lines logged."""
        lines = self.summary()
        for line in lines:
            logger.info(line)
        return lines


Option = Callable[[Config], None]


def new_config(*args: Option) -> Config:
    """Build a Config and apply each option to it in turn."""
    cfg = Config()
    for option in args:
        option(cfg)
    return cfg


def with_storage(
    host: str,
    user: str,
    password: str,
    ssl_mode: str,
    name: str,
    port: int,
    max_connections: int,
    idle_connections: int,
    connection_life: int,
) -> Option:
    """Return an option that sets the storage configuration."""

    def apply(cfg: Config) -> None:
        cfg.storage = StorageConfig(
            name=name,
            host=host,
            port=port,
            user=user,
            password=password,
            ssl_mode=ssl_mode,
            max_connections=max_connections,
            idle_connections=idle_connections,
            connection_life=connection_life,
        )

    return apply


def with_server(host: str, port: str, resource_dir: str, debug: bool, verbose: bool) -> Option:
    """Return an option that sets the server configuration, stamping the start time."""

    def apply(cfg: Config) -> None:
        cfg.server = ServerConfig(
            host=host,
            port=port,
            resource_dir=resource_dir,
            debug=debug,
            verbose_api=verbose,
            start_time=datetime.now(),
        )

    return apply


def with_kafka(tls: bool, version: str, peers: list[str], topic: str) -> Option:
    """Return an option that sets the Kafka configuration."""

    def apply(cfg: Config) -> None:
        cfg.kafka = KafkaConfig(tls=tls, version=version, topic=topic, peers=list(peers))

    return apply


def with_auth(client_id: str, trusted_issuers: list[str]) -> Option:
    """Return an option that sets the authentication configuration."""

    def apply(cfg: Config) -> None:
        cfg.auth = AuthConfig(client_id=client_id, trusted_issuers=list(trusted_issuers))

    return apply