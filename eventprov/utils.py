"""Small helpers: identifiers, environment lookup, hashing and fingerprints."""

from __future__ import annotations

import hashlib
import os
import secrets
import time
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone

import bcrypt

_CROCKFORD = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"
_MAX_TIMESTAMP = (1 << 48) - 1
_ENTROPY_BYTES = 10
_BCRYPT_MIN_COST = 4


def now_rfc3339() -> str:
    """Return the current local time formatted as RFC 3339 with second precision."""
    text = datetime.now().astimezone().isoformat(timespec="seconds")
    if text.endswith("+00:00"):
        text = text[:-6] + "Z"
    return text


def get_env(key: str, fallback: str) -> str:
    """Return the environment variable ``key``, or ``fallback`` when it is unset."""
    return os.environ.get(key, fallback)


@dataclass(frozen=True)
class ULID:
    """A universally unique lexicographically sortable identifier."""

    timestamp: int
    entropy: bytes

    def __post_init__(self) -> None:
        if not 0 <= self.timestamp <= _MAX_TIMESTAMP:
            raise ValueError("ULID timestamp out of range")
        if len(self.entropy) != _ENTROPY_BYTES:
            raise ValueError(f"ULID entropy must be {_ENTROPY_BYTES} bytes")

    def __str__(self) -> str:
        value = (self.timestamp << 80) | int.from_bytes(self.entropy, "big")
        chars = []
        for _ in range(26):
            chars.append(_CROCKFORD[value & 0x1F])
            value >>= 5
        return "".join(reversed(chars))


def new_ulid() -> ULID:
    """Return a new ULID for the current time."""
    return ULID(
        timestamp=time.time_ns() // 1_000_000,
        entropy=secrets.token_bytes(_ENTROPY_BYTES),
    )


def new_ulid_as_string() -> str:
    """Return a new ULID as its 26-character string."""
    return str(new_ulid())


def new_uuid() -> uuid.UUID:
    """Return a new time-based UUID."""
    return uuid.uuid1()


def new_uuid_as_string() -> str:
    """Return a new time-based UUID as a string."""
    return str(new_uuid())


class BCrypt:
    """Salted hashing and verification of an API key."""

    def __init__(self, key: str) -> None:
        self._key = key.encode()

    def hash(self) -> str:
        """Hash the key with a fresh salt at the minimum cost."""
        return bcrypt.hashpw(self._key, bcrypt.gensalt(rounds=_BCRYPT_MIN_COST)).decode()

    def equal(self, hashed: str) -> bool:
        """Return whether ``hashed`` is a hash of the key.

        Raises ValueError when ``hashed`` is not a valid bcrypt hash.
        """
        return bcrypt.checkpw(self._key, hashed.encode())


def int_in_slice(value: int, items) -> bool:
    """Return whether ``value`` occurs in ``items``."""
    return value in items


def string_in_slice(value: str, items) -> bool:
    """Return whether ``value`` occurs in ``items``."""
    return value in items


def deep_equal_string_array(first, second) -> bool:
    """Return whether both lists have the same length and every item of ``first`` is in ``second``."""
    if len(first) != len(second):
        return False
    return all(item in second for item in first)


@dataclass
class Seed:
    """The fields a receiver or group fingerprint is computed from."""

    name: str = ""
    type: str = ""
    version: str = ""
    description: str = ""

    def fingerprint(self) -> str:
        """Return the SHA-256 hex digest of type, description, name and version, in that order."""
        seed = " ".join(("v1", self.type, self.description, self.name, self.version))
        return hashlib.sha256(seed.encode()).hexdigest()