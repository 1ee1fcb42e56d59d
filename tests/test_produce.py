import logging

import pytest

from eventprov import produce


class _Recorder(produce.Producer):
    def __init__(self):
        self.calls = []

    def async_send(self, topic, value):
        self.calls.append(("async", topic, value))

    def send(self, topic, value):
        self.calls.append(("sync", topic, value))

    def consume_successes(self):
        self.calls.append(("successes",))

    def consume_errors(self):
        self.calls.append(("errors",))

    def close(self):
        self.calls.append(("close",))


@pytest.fixture
def clean_env(monkeypatch):
    for key in ("SASL_USERNAME", "SASL_PASSWORD", "SASL_MECHANISM"):
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


def test_new_config_defaults():
    cfg = produce.new_config("2.6.0")
    assert cfg.version == (2, 6, 0)
    assert cfg.retry_max == 10
    assert cfg.required_acks == produce.WAIT_FOR_ALL
    assert cfg.return_successes is True
    assert cfg.metadata_timeout == 30.0
    assert cfg.tls_enabled is False
    assert cfg.sasl_enabled is False


def test_new_config_client_id_has_ulid_suffix():
    cfg = produce.new_config("2.6.0")
    assert cfg.client_id.startswith("server.service")
    assert len(cfg.client_id) == len("server.service") + 26


def test_new_config_accepts_pre_kafka1_version():
    assert produce.new_config("0.10.2.0").version == (0, 10, 2, 0)


@pytest.mark.parametrize("version", ["2.6", "abc", "", "1.2.3.4"])
def test_new_config_rejects_invalid_version(version):
    with pytest.raises(ValueError):
        produce.new_config(version)


def test_new_scram_config():
    password = "password"
    cfg = produce.new_scram_config("user", password, "2.6.0")
    assert cfg.tls_enabled and cfg.sasl_enabled
    assert cfg.sasl_user == "user"
    assert cfg.sasl_password == password
    assert cfg.sasl_mechanism == produce.SASL_TYPE_SCRAM_SHA512
    assert cfg.scram_hash == "sha512"


def test_new_plain_config():
    password = "password"
    cfg = produce.new_plain_config("user", password, "2.6.0")
    assert cfg.tls_enabled and cfg.sasl_enabled
    assert cfg.sasl_mechanism == produce.SASL_TYPE_PLAINTEXT


def test_config_repr_hides_password():
    password = "password"
    cfg = produce.new_plain_config("user", password, "2.6.0")
    assert "password" not in repr(cfg).replace("sasl_password", "")


def test_new_config_env_without_sasl(clean_env):
    cfg = produce.new_config_env("2.6.0")
    assert cfg.sasl_enabled is False


def test_new_config_env_scram(clean_env):
    clean_env.setenv("SASL_USERNAME", "user")
    clean_env.setenv("SASL_PASSWORD", "password")
    clean_env.setenv("SASL_MECHANISM", "SCRAM")
    cfg = produce.new_config_env("2.6.0")
    assert cfg.sasl_mechanism == produce.SASL_TYPE_SCRAM_SHA512
    assert cfg.sasl_user == "user"


def test_new_config_env_plain(clean_env):
    clean_env.setenv("SASL_USERNAME", "user")
    clean_env.setenv("SASL_PASSWORD", "password")
    clean_env.setenv("SASL_MECHANISM", "PLAIN")
    assert produce.new_config_env("2.6.0").sasl_mechanism == produce.SASL_TYPE_PLAINTEXT


def test_new_config_env_oauth2_unsupported(clean_env):
    clean_env.setenv("SASL_USERNAME", "user")
    clean_env.setenv("SASL_PASSWORD", "password")
    clean_env.setenv("SASL_MECHANISM", "OAUTH2")
    with pytest.raises(ValueError, match="OAUTH2"):
        produce.new_config_env("2.6.0")


def test_new_config_env_unknown_mechanism_disables_sasl(clean_env):
    clean_env.setenv("SASL_USERNAME", "user")
    clean_env.setenv("SASL_PASSWORD", "password")
    clean_env.setenv("SASL_MECHANISM", "garbo")
    assert produce.new_config_env("2.6.0").sasl_enabled is False


def test_topic_producer_async_send():
    recorder = _Recorder()
    produce.TopicProducer(recorder, "server.events").async_send({"a": 1})
    assert recorder.calls == [("async", "server.events", {"a": 1})]


def test_topic_producer_send():
    recorder = _Recorder()
    produce.TopicProducer(recorder, "server.events").send("data")
    assert recorder.calls == [("sync", "server.events", "data")]


def test_disabled_producer_logs_and_drops(caplog):
    producer = produce.DisabledProducer()
    with caplog.at_level(logging.DEBUG, logger="eventprov.produce"):
        producer.async_send("topic", {"a": 1})
        producer.send("topic", {"a": 1})
    assert [r.getMessage() for r in caplog.records] == ["kafka messaging disabled"] * 2


def test_disabled_producer_close_via_context_manager(caplog):
    with caplog.at_level(logging.INFO, logger="eventprov.produce"):
        with produce.DisabledProducer() as producer:
            producer.consume_successes()
    assert caplog.records[-1].getMessage() == "shutting down kafka producer"


def test_producer_cannot_be_instantiated():
    with pytest.raises(TypeError):
        produce.Producer()