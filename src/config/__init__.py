"""Configuration loading for the latency collector.

Configuration is loaded from a single YAML file (default: config/config.yaml)
with ${VAR} / ${VAR:-default} environment variable expansion.

Configuration Structure
-----------------------

kafka:
    connection:          # bootstrap servers, security, timeouts
collector:               # metrics topic, output dir, sampling, threads

Usage Examples
--------------

    >>> from config import load_config
    >>> config = load_config()
    >>> config.metrics_topic
    'pipeline.metrics'

Custom config path and overrides:
    >>> from pathlib import Path
    >>> config = load_config(
    ...     config_path=Path("/custom/path/config.yaml"),
    ...     overrides={"collector": {"thread_num": 16}},
    ... )

Configuration Priority
----------------------

1. Overrides passed to load_config() (command-line flags)
2. Environment variables referenced from the YAML file
3. YAML values
4. CollectorConfig defaults
"""

from config.config import (
    DEFAULT_CONFIG_FILE,
    CollectorConfig,
    load_config,
    load_yaml,
)

__all__ = [
    "CollectorConfig",
    "load_config",
    "load_yaml",
    "DEFAULT_CONFIG_FILE",
]
