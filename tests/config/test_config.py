"""Tests for collector configuration loading."""

from pathlib import Path

import pytest
import yaml

from config.config import (
    DEFAULT_CONFIG_FILE,
    CollectorConfig,
    _deep_merge,
    _expand_env_vars,
    load_config,
    load_yaml,
)


def _write_config(path: Path, data: dict) -> Path:
    path.write_text(yaml.safe_dump(data))
    return path


@pytest.fixture
def minimal_config(tmp_path):
    return _write_config(
        tmp_path / "config.yaml",
        {
            "kafka": {"connection": {"bootstrap_servers": "broker:9092"}},
            "collector": {"metrics_topic": "pipeline.metrics"},
        },
    )


class TestLoadYaml:

    def test_missing_file_returns_empty(self, tmp_path):
        assert load_yaml(tmp_path / "absent.yaml") == {}

    def test_empty_file_returns_empty(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_yaml(path) == {}


class TestExpandEnvVars:

    def test_expands_set_variable(self, monkeypatch):
        monkeypatch.setenv("METRICS_TOPIC", "from.env")
        assert _expand_env_vars({"t": "${METRICS_TOPIC}"}) == {"t": "from.env"}

    def test_uses_default_when_unset(self, monkeypatch):
        monkeypatch.delenv("METRICS_TOPIC", raising=False)
        assert _expand_env_vars("${METRICS_TOPIC:-fallback}") == "fallback"

    def test_empty_default(self, monkeypatch):
        monkeypatch.delenv("KAFKA_SASL_USERNAME", raising=False)
        assert _expand_env_vars("${KAFKA_SASL_USERNAME:-}") == ""

    def test_unset_without_default_left_as_is(self, monkeypatch):
        monkeypatch.delenv("NOT_SET_ANYWHERE", raising=False)
        assert _expand_env_vars("${NOT_SET_ANYWHERE}") == "${NOT_SET_ANYWHERE}"

    def test_recurses_into_lists_and_passes_scalars(self, monkeypatch):
        monkeypatch.setenv("X", "1")
        assert _expand_env_vars(["${X}", 2, None]) == ["1", 2, None]


class TestDeepMerge:

    def test_nested_merge(self):
        base = {"kafka": {"connection": {"bootstrap_servers": "a", "request_timeout_ms": 1}}}
        overlay = {"kafka": {"connection": {"bootstrap_servers": "b"}}}

        merged = _deep_merge(base, overlay)
        assert merged["kafka"]["connection"] == {"bootstrap_servers": "b", "request_timeout_ms": 1}
        assert base["kafka"]["connection"]["bootstrap_servers"] == "a"

    def test_scalar_replaces_dict(self):
        assert _deep_merge({"a": {"b": 1}}, {"a": 2}) == {"a": 2}


class TestLoadConfig:

    def test_minimal_config_defaults(self, minimal_config):
        config = load_config(minimal_config)

        assert config.bootstrap_servers == "broker:9092"
        assert config.metrics_topic == "pipeline.metrics"
        assert config.output_dir == "metrics"
        assert config.starting_offset == 0
        assert config.sample_number == -1
        assert config.reservoir_size == 0
        assert config.thread_num == 4

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.yaml")

    def test_missing_collector_section(self, tmp_path):
        path = _write_config(
            tmp_path / "c.yaml", {"kafka": {"connection": {"bootstrap_servers": "b:9092"}}}
        )
        with pytest.raises(ValueError, match="collector"):
            load_config(path)

    def test_overrides_applied(self, minimal_config):
        config = load_config(
            minimal_config,
            overrides={
                "kafka": {"connection": {"bootstrap_servers": "other:9092"}},
                "collector": {"sample_number": 100, "thread_num": 8},
            },
        )
        assert config.bootstrap_servers == "other:9092"
        assert config.sample_number == 100
        assert config.thread_num == 8
        assert config.metrics_topic == "pipeline.metrics"

    def test_flat_kafka_section(self, tmp_path):
        path = _write_config(
            tmp_path / "c.yaml",
            {"kafka": {"bootstrap_servers": "flat:9092"}, "collector": {"metrics_topic": "m"}},
        )
        assert load_config(path).bootstrap_servers == "flat:9092"

    def test_numeric_strings_from_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("THREADS", "6")
        path = _write_config(
            tmp_path / "c.yaml",
            {
                "kafka": {"connection": {"bootstrap_servers": "b:9092"}},
                "collector": {"metrics_topic": "m", "thread_num": "${THREADS}"},
            },
        )
        assert load_config(path).thread_num == 6

    def test_non_integer_rejected(self, minimal_config):
        with pytest.raises(ValueError, match="thread_num must be an integer"):
            load_config(minimal_config, overrides={"collector": {"thread_num": "many"}})

    def test_missing_topic_rejected(self, tmp_path):
        path = _write_config(
            tmp_path / "c.yaml",
            {"kafka": {"connection": {"bootstrap_servers": "b:9092"}}, "collector": {}},
        )
        with pytest.raises(ValueError, match="metrics_topic"):
            load_config(path)

    def test_default_config_file_loads_with_env(self, monkeypatch):
        monkeypatch.setenv("METRICS_TOPIC", "pipeline.metrics")
        monkeypatch.setenv("KAFKA_BOOTSTRAP_SERVERS", "env-broker:9092")
        monkeypatch.delenv("KAFKA_SECURITY_PROTOCOL", raising=False)
        monkeypatch.delenv("METRICS_OUTPUT_DIR", raising=False)

        config = load_config()
        assert DEFAULT_CONFIG_FILE.exists()
        assert config.bootstrap_servers == "env-broker:9092"
        assert config.metrics_topic == "pipeline.metrics"
        assert config.security_protocol == "PLAINTEXT"


class TestCollectorConfigValidation:

    def _config(self, **kwargs):
        values = {"bootstrap_servers": "b:9092", "metrics_topic": "m"}
        values.update(kwargs)
        return CollectorConfig(**values)

    def test_valid(self):
        self._config().validate()

    @pytest.mark.parametrize(
        "field,value",
        [
            ("bootstrap_servers", ""),
            ("metrics_topic", ""),
            ("output_dir", ""),
            ("security_protocol", "KERBEROS"),
            ("request_timeout_ms", 0),
            ("starting_offset", -1),
            ("thread_num", 0),
            ("fetch_timeout_ms", 0),
            ("max_poll_records", 0),
        ],
    )
    def test_invalid(self, field, value):
        with pytest.raises(ValueError, match=field):
            self._config(**{field: value}).validate()

    def test_sasl_mechanism_checked_only_for_sasl(self):
        self._config(sasl_mechanism="BOGUS").validate()
        with pytest.raises(ValueError, match="sasl_mechanism"):
            self._config(security_protocol="SASL_SSL", sasl_mechanism="BOGUS").validate()

    def test_negative_sample_number_and_reservoir_allowed(self):
        self._config(sample_number=-5, reservoir_size=-1).validate()


class TestKafkaClientConfig:

    def test_plaintext(self):
        client = CollectorConfig(bootstrap_servers="b:9092").kafka_client_config()
        assert client == {
            "bootstrap_servers": "b:9092",
            "request_timeout_ms": 30000,
            "metadata_max_age_ms": 300000,
        }

    def test_sasl(self):
        client = CollectorConfig(
            bootstrap_servers="b:9092",
            security_protocol="SASL_SSL",
            sasl_mechanism="SCRAM-SHA-512",
            sasl_plain_username="u",
            sasl_plain_password="p",
        ).kafka_client_config()

        assert client["security_protocol"] == "SASL_SSL"
        assert client["sasl_mechanism"] == "SCRAM-SHA-512"
        assert client["sasl_plain_username"] == "u"
        assert client["sasl_plain_password"] == "p"

    def test_ssl_without_sasl_credentials(self):
        client = CollectorConfig(
            bootstrap_servers="b:9092", security_protocol="SSL"
        ).kafka_client_config()
        assert client["security_protocol"] == "SSL"
        assert "sasl_mechanism" not in client
