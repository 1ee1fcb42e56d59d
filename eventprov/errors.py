"""Error types shared across the registry, and sanitising of errors for clients."""

from __future__ import annotations

INTERNAL_SERVER_ERROR = "internal server error"


class MissingObjectError(Exception):
    """A requested object does not exist."""

    def __init__(self, msg: str) -> None:
        super().__init__(msg)
        self.msg = msg

    def __str__(self) -> str:
        return f"object not found: {self.msg}"


class InvalidInputError(Exception):
    """The caller supplied input that cannot be accepted."""

    def __init__(self, msg: str) -> None:
        super().__init__(msg)
        self.msg = msg

    def __str__(self) -> str:
        return f"invalid input: {self.msg}"


def sanitize_error(err: BaseException | None) -> BaseException | None:
    """Return an error that is safe to show to a client.

    Missing-object and invalid-input errors pass through unchanged; anything
    else is replaced by a generic internal server error.
    """
    if err is None:
        return None
    if isinstance(err, (MissingObjectError, InvalidInputError)):
        return err
    return RuntimeError(INTERNAL_SERVER_ERROR)