"""Kafka client settings and producers for publishing registry messages."""

from __future__ import annotations

import abc
import logging
import re
from dataclasses import dataclass, field
from typing import Any

from eventprov.sasl import Mechanism, get_sasl_authentication
from eventprov.utils import new_ulid_as_string

logger = logging.getLogger(__name__)

WAIT_FOR_ALL = -1
SASL_TYPE_SCRAM_SHA512 = "SCRAM-SHA-512"
SASL_TYPE_PLAINTEXT = "PLAIN"

_PRE_KAFKA1 = re.compile(r"^0\.\d+\.\d+\.\d+$")
_POST_KAFKA1 = re.compile(r"^\d+\.\d+\.\d+$")


def _parse_kafka_version(version: str) -> tuple[int, ...]:
    if not (_PRE_KAFKA1.match(version) or _POST_KAFKA1.match(version)):
        raise ValueError(f"invalid version `{version}`")
    return tuple(int(part) for part in version.split("."))


@dataclass
class KafkaClientConfig:
    """Settings a Kafka client is created with."""

    version: tuple[int, ...]
    client_id: str
    required_acks: int = WAIT_FOR_ALL
    retry_max: int = 10
    return_successes: bool = True
    partitioner: str = "hash"
    metadata_timeout: float = 30.0
    tls_enabled: bool = False
    sasl_enabled: bool = False
    sasl_user: str = ""
    sasl_password: str = field(default="", repr=False)
    sasl_mechanism: str = ""
    scram_hash: str = ""


def new_config(version: str) -> KafkaClientConfig:
    """Return client settings with TLS and SASL disabled.

    Raises ValueError when ``version`` is not a valid Kafka version.
    """
    return KafkaClientConfig(
        version=_parse_kafka_version(version),
        client_id="server.service" + new_ulid_as_string(),
    )


def _sasl_config(user: str, password: str, version: str) -> KafkaClientConfig:
    cfg = new_config(version)
    cfg.tls_enabled = True
    cfg.sasl_enabled = True
    cfg.sasl_user = user
    cfg.sasl_password = password
    return cfg


def new_scram_config(user: str, password: str, version: str) -> KafkaClientConfig:
    """Return client settings for SASL SCRAM-SHA-512 over TLS."""
    cfg = _sasl_config(user, password, version)
    cfg.sasl_mechanism = SASL_TYPE_SCRAM_SHA512
    cfg.scram_hash = "sha512"
    return cfg


def new_plain_config(user: str, password: str, version: str) -> KafkaClientConfig:
    """Return client settings for SASL PLAIN over TLS."""
    cfg = _sasl_config(user, password, version)
    cfg.sasl_mechanism = SASL_TYPE_PLAINTEXT
    return cfg


def new_config_env(version: str) -> KafkaClientConfig:
    """Return client settings chosen by SASL_USERNAME, SASL_PASSWORD and SASL_MECHANISM.

    Without complete SASL settings, SASL stays disabled. Raises ValueError for
    the OAUTH2 mechanism, which is not supported.
    """
    auth = get_sasl_authentication()
    if not auth.sasl_enabled():
        logger.info("no Kafka Authentication Enabled")
        return new_config(version)
    if auth.mechanism is Mechanism.SCRAM:
        logger.info("Kafka Authentication Mechanism: SASL SCRAM")
        return new_scram_config(auth.username, auth.password, version)
    if auth.mechanism is Mechanism.PLAIN:
        logger.info("Kafka Authentication Mechanism: SASL PLAIN")
        return new_plain_config(auth.username, auth.password, version)
    if auth.mechanism is Mechanism.OAUTH2:
        logger.info("Kafka Authentication Mechanism: SASL OAUTH2")
        raise ValueError("SASL_MECHANISM 'OAUTH2' not currently supported")
    raise ValueError("SASL_MECHANISM not supported")


class Producer(abc.ABC):
    """Publishes values to topics on a message bus."""

    @abc.abstractmethod
    def async_send(self, topic: str, value: Any) -> None:
        """Queue ``value`` for ``topic`` without waiting for delivery."""

    @abc.abstractmethod
    def send(self, topic: str, value: Any) -> None:
        """Publish ``value`` on ``topic`` and wait for delivery."""

    @abc.abstractmethod
    def consume_successes(self) -> bool:
        """Start logging successful deliveries; return whether a consumer started."""

    @abc.abstractmethod
    def consume_errors(self) -> bool:
        """Start logging failed deliveries; return whether a consumer started."""

    @abc.abstractmethod
    def close(self) -> None:
        """Shut the producer down."""

    def __enter__(self) -> Producer:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


@dataclass
class DisabledProducer(Producer):
    """A producer used when no brokers are configured; it drops every value.

    ``dropped`` counts the values discarded and ``closed`` records shutdown.
    """

    dropped: int = 0
    closed: bool = False

    def _drop(self) -> None:
        logger.debug("kafka messaging disabled")
        self.dropped += 1

    def async_send(self, topic: str, value: Any) -> None:
        """Drop the value."""
        self._drop()

    def send(self, topic: str, value: Any) -> None:
        """Drop the value."""
        self._drop()

    def consume_successes(self) -> bool:
        """Start nothing, since there are no deliveries; return False."""
        logger.debug("kafka messaging disabled")
        return False

    def consume_errors(self) -> bool:
        """Start nothing, since there are no deliveries; return False."""
        logger.debug("kafka messaging disabled")
        return False

    def close(self) -> None:
        """Mark the producer closed."""
        logger.info("shutting down kafka producer")
        self.closed = True


@dataclass
class TopicProducer:
    """Sends values to one fixed topic through a producer."""

    producer: Producer
    topic: str

    def async_send(self, data: Any) -> None:
        """Queue ``data`` on the topic."""
        self.producer.async_send(self.topic, data)

    def send(self, data: Any) -> None:
        """Publish ``data`` on the topic and wait for delivery."""
        self.producer.send(self.topic, data)