"""SASL authentication settings read from the environment."""

from __future__ import annotations

import enum
import os
from dataclasses import dataclass, field


class Mechanism(enum.IntEnum):
    """SASL authentication mechanism."""

    NONE = 0
    PLAIN = 1
    SCRAM = 2
    OAUTH2 = 3


@dataclass
class SASLAuthentication:
    """SASL credentials and the mechanism to use them with."""

    mechanism: Mechanism = Mechanism.NONE
    username: str = ""
    password: str = field(default="", repr=False)

    def sasl_enabled(self) -> bool:
        """Return whether a username, a password and a mechanism are all set."""
        return bool(self.username) and bool(self.password) and self.mechanism is not Mechanism.NONE


def _mechanism_from_env() -> Mechanism:
    value = os.environ.get("SASL_MECHANISM", "")
    if value in ("PLAIN", "SCRAM", "OAUTH2"):
        return Mechanism[value]
    return Mechanism.NONE


def get_sasl_authentication() -> SASLAuthentication:
    """Read SASL_USERNAME, SASL_PASSWORD and SASL_MECHANISM from the environment."""
    return SASLAuthentication(
        mechanism=_mechanism_from_env(),
        username=os.environ.get("SASL_USERNAME", ""),
        password=os.environ.get("SASL_PASSWORD", ""),
    )