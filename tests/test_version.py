import json

from eventprov.version import get_version, get_version_json, new_version


def test_version():
    assert get_version() == "server-dev-dirty"
    assert get_version_json() == '{"name": "server", "version": "dev", "release": "dirty"}'
    ver = new_version()
    assert ver.name == "server"
    assert ver.version == "dev"
    assert ver.release == "dirty"


def test_version_json_matches_struct():
    ver = new_version()
    assert json.loads(get_version_json()) == {
        "name": ver.name,
        "version": ver.version,
        "release": ver.release,
    }