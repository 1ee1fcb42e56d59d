import pytest

from eventprov.errors import InvalidInputError, MissingObjectError, sanitize_error


def test_missing_object_message():
    err = MissingObjectError("event 1")
    assert str(err).startswith("object not found: ")
    assert str(err).endswith("event 1")
    assert err.msg == "event 1"


def test_invalid_input_message():
    err = InvalidInputError("name cannot be blank")
    assert str(err) == "invalid input: name cannot be blank"
    assert err.msg == "name cannot be blank"


def test_sanitized_error_can_be_raised_and_caught():
    original = MissingObjectError("thing")
    result = sanitize_error(original)
    assert result is original
    assert result.msg == "thing"
    assert str(result) == "object not found: thing"
    with pytest.raises(MissingObjectError, match="object not found: thing"):
        raise result


def test_sanitize_none():
    assert sanitize_error(None) is None


@pytest.mark.parametrize(
    "err", [MissingObjectError("a"), InvalidInputError("b")]
)
def test_sanitize_passes_client_errors_through(err):
    assert sanitize_error(err) is err


@pytest.mark.parametrize("err", [ValueError("db down"), KeyError("x"), RuntimeError("boom")])
def test_sanitize_hides_server_errors(err):
    result = sanitize_error(err)
    assert result is not err
    assert str(result) == "internal server error"
    assert "db down" not in str(result)