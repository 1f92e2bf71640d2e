"""Latency collector configuration from YAML file.

Loads from config/config.yaml with all settings in one place:
- Kafka connection settings shared by the metadata lookup and fetch jobs
- Collector settings (metrics topic, output directory, sampling, threads)

Environment variables ARE supported using ${VAR_NAME} syntax in YAML files.
"""

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

# Configure module logger
logger = logging.getLogger(__name__)

VALID_SECURITY_PROTOCOLS = ["PLAINTEXT", "SSL", "SASL_PLAINTEXT", "SASL_SSL"]
VALID_SASL_MECHANISMS = ["PLAIN", "SCRAM-SHA-256", "SCRAM-SHA-512"]


def load_yaml(path: Path) -> Dict[str, Any]:
    """Load YAML file and return dict."""
    if not path.exists():
        return {}
    with open(path, "r") as f:
        return yaml.safe_load(f) or {}


def _expand_env_vars(data: Any) -> Any:
    """Recursively expand ${VAR_NAME} and ${VAR_NAME:-default} environment variables in config data."""
    if isinstance(data, dict):
        return {key: _expand_env_vars(value) for key, value in data.items()}
    elif isinstance(data, list):
        return [_expand_env_vars(item) for item in data]
    elif isinstance(data, str):
        # Support both ${VAR} and ${VAR:-default} syntax
        pattern = r"\$\{([^}:]+)(?::-(([^}]*))?)?\}"

        def replacer(match):
            var_name = match.group(1)
            default_value = match.group(2) if match.group(2) is not None else match.group(0)
            return os.getenv(var_name, default_value)

        return re.sub(pattern, replacer, data)
    else:
        return data


# Default config file: config/config.yaml in src/ directory
DEFAULT_CONFIG_FILE = Path(__file__).parent / "config.yaml"


@dataclass
class CollectorConfig:
    """Latency collector configuration.

    Configuration structure:
        kafka:
          connection: {...}     # Shared connection settings
        collector: {...}        # Measurement pass settings

    All timing values in milliseconds unless otherwise noted.
    """

    # =========================================================================
    # CONNECTION SETTINGS (shared by metadata lookup and fetch jobs)
    # =========================================================================
    bootstrap_servers: str = ""
    security_protocol: str = "PLAINTEXT"
    sasl_mechanism: str = "PLAIN"
    sasl_plain_username: str = ""
    sasl_plain_password: str = ""
    request_timeout_ms: int = 30000
    metadata_max_age_ms: int = 300000

    # =========================================================================
    # COLLECTOR SETTINGS
    # =========================================================================
    metrics_topic: str = ""
    output_dir: str = "metrics"
    starting_offset: int = 0
    sample_number: int = -1  # negative = fetch every partition until exhausted
    reservoir_size: int = 0  # <= 0 = keep every observed latency
    thread_num: int = 4
    fetch_timeout_ms: int = 5000
    max_poll_records: int = 500

    def kafka_client_config(self) -> Dict[str, Any]:
        """Connection settings shared by every aiokafka client the collector opens."""
        client_config: Dict[str, Any] = {
            "bootstrap_servers": self.bootstrap_servers,
            "request_timeout_ms": self.request_timeout_ms,
            "metadata_max_age_ms": self.metadata_max_age_ms,
        }

        if self.security_protocol != "PLAINTEXT":
            client_config["security_protocol"] = self.security_protocol
            if self.security_protocol.startswith("SASL"):
                client_config["sasl_mechanism"] = self.sasl_mechanism
                client_config["sasl_plain_username"] = self.sasl_plain_username
                client_config["sasl_plain_password"] = self.sasl_plain_password

        return client_config

    def validate(self) -> None:
        """Validate configuration for correctness and constraints.

        Checks required fields, enumerations, and numeric ranges.
        """
        if not self.bootstrap_servers:
            raise ValueError("bootstrap_servers is required in kafka.connection section")
        if not self.metrics_topic:
            raise ValueError("metrics_topic is required in collector section")
        if not self.output_dir:
            raise ValueError("output_dir is required in collector section")

        settings = {
            "security_protocol": self.security_protocol,
            "sasl_mechanism": self.sasl_mechanism,
            "request_timeout_ms": self.request_timeout_ms,
            "starting_offset": self.starting_offset,
            "thread_num": self.thread_num,
            "fetch_timeout_ms": self.fetch_timeout_ms,
            "max_poll_records": self.max_poll_records,
        }
        self._validate_enum(settings, "security_protocol", VALID_SECURITY_PROTOCOLS, "kafka.connection")
        if self.security_protocol.startswith("SASL"):
            self._validate_enum(settings, "sasl_mechanism", VALID_SASL_MECHANISMS, "kafka.connection")
        self._validate_min(settings, "request_timeout_ms", 0, inclusive=False, context="kafka.connection")
        self._validate_min(settings, "starting_offset", 0, inclusive=True, context="collector")
        self._validate_min(settings, "thread_num", 1, inclusive=True, context="collector")
        self._validate_min(settings, "fetch_timeout_ms", 0, inclusive=False, context="collector")
        self._validate_min(settings, "max_poll_records", 1, inclusive=True, context="collector")

    @staticmethod
    def _validate_enum(
        settings: Dict[str, Any],
        key: str,
        valid_values: List[Any],
        context: str
    ) -> None:
        """Validate that a setting's value is in a list of valid values."""
        if key in settings and settings[key] not in valid_values:
            raise ValueError(
                f"{context}: {key} must be one of {valid_values}, "
                f"got '{settings[key]}'"
            )

    @staticmethod
    def _validate_min(
        settings: Dict[str, Any],
        key: str,
        min_value: float,
        inclusive: bool,
        context: str
    ) -> None:
        """Validate that a setting's value meets a minimum threshold."""
        if key in settings:
            value = settings[key]
            if inclusive and value < min_value:
                raise ValueError(
                    f"{context}: {key} must be >= {min_value}, got {value}"
                )
            elif not inclusive and value <= min_value:
                raise ValueError(
                    f"{context}: {key} must be > {min_value}, got {value}"
                )


def _deep_merge(base: Dict[str, Any], overlay: Dict[str, Any]) -> Dict[str, Any]:
    """Deep merge overlay into base dict."""
    result = base.copy()
    for key, value in overlay.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _as_int(value: Any, key: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValueError(f"{key} must be an integer, got '{value}'") from None


def load_config(
    config_path: Optional[Path] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> CollectorConfig:
    """Load collector configuration from config.yaml file.

    Overrides use the same nested structure as the YAML file and are deep-merged
    on top of it (the CLI passes its flags this way).

    Environment variables ARE supported using ${VAR_NAME} syntax in YAML files.
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_FILE

    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path}\n" f"Expected file: config/config.yaml"
        )

    logger.info(f"Loading configuration from file: {config_path}")
    yaml_data = load_yaml(config_path)
    yaml_data = _expand_env_vars(yaml_data)

    if overrides:
        logger.debug(f"Applying overrides: {list(overrides.keys())}")
        yaml_data = _deep_merge(yaml_data, overrides)

    if "collector" not in yaml_data:
        raise ValueError(
            "Invalid config file: missing 'collector:' section\n"
            "See src/config/config.yaml for correct structure"
        )

    kafka_config = yaml_data.get("kafka", {})
    connection = kafka_config.get("connection", {})
    if not connection:
        connection = kafka_config
    collector = yaml_data["collector"]

    config = CollectorConfig(
        bootstrap_servers=connection.get("bootstrap_servers", ""),
        security_protocol=connection.get("security_protocol", "PLAINTEXT"),
        sasl_mechanism=connection.get("sasl_mechanism", "PLAIN"),
        sasl_plain_username=connection.get("sasl_plain_username", ""),
        sasl_plain_password=connection.get("sasl_plain_password", ""),
        request_timeout_ms=_as_int(connection.get("request_timeout_ms", 30000), "request_timeout_ms"),
        metadata_max_age_ms=_as_int(connection.get("metadata_max_age_ms", 300000), "metadata_max_age_ms"),
        metrics_topic=collector.get("metrics_topic", ""),
        output_dir=str(collector.get("output_dir", "metrics")),
        starting_offset=_as_int(collector.get("starting_offset", 0), "starting_offset"),
        sample_number=_as_int(collector.get("sample_number", -1), "sample_number"),
        reservoir_size=_as_int(collector.get("reservoir_size", 0), "reservoir_size"),
        thread_num=_as_int(collector.get("thread_num", 4), "thread_num"),
        fetch_timeout_ms=_as_int(collector.get("fetch_timeout_ms", 5000), "fetch_timeout_ms"),
        max_poll_records=_as_int(collector.get("max_poll_records", 500), "max_poll_records"),
    )

    logger.debug("Configuration loaded successfully:")
    logger.debug(f"  - Bootstrap servers: {config.bootstrap_servers}")
    logger.debug(f"  - Metrics topic: {config.metrics_topic}")

    logger.debug("Validating configuration...")
    config.validate()
    logger.debug("Configuration validation passed")

    return config
