"""Name, version and release of the server."""

from __future__ import annotations

import json
from dataclasses import dataclass

from eventprov import config

APP_NAME = "server"
APP_VERSION = config.VERSION
APP_RELEASE = config.COMMIT


@dataclass
class Version:
    """Version information of the application."""

    name: str
    version: str
    release: str


def get_version() -> str:
    """Return name-version-release."""
    return f"{APP_NAME}-{APP_VERSION}-{APP_RELEASE}"


def get_version_json() -> str:
    """Return the version information as a JSON object string."""
    return json.dumps({"name": APP_NAME, "version": APP_VERSION, "release": APP_RELEASE})


def new_version() -> Version:
    """Return a populated Version."""
    return Version(name=APP_NAME, version=APP_VERSION, release=APP_RELEASE)