"""
Entry point for a latency collection run.

Usage:
    # Use src/config/config.yaml (with ${VAR} expansion)
    python -m latency_collector

    # Override individual settings
    python -m latency_collector --topic pipeline.metrics --sample-number 100000
    python -m latency_collector --config /etc/collector.yaml --thread-num 16

    # Containerized runs: logs to stdout only
    python -m latency_collector --log-to-stdout

Exit codes:
    0   report row written
    1   configuration error or failed run (no row written)
    130 interrupted
"""

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

from config.config import load_config
from core.errors.exceptions import is_transient_error, wrap_exception
from core.logging import (
    LogContext,
    detect_log_output_mode,
    generate_cycle_id,
    get_logger,
    log_exception,
    log_startup_banner,
    setup_logging,
)
from latency_collector import __version__
from latency_collector.collector import LatencyCollector

# Project root directory (where .env file is located)
# __main__.py is at src/latency_collector/__main__.py, so root is 3 levels up
PROJECT_ROOT = Path(__file__).parent.parent.parent

# Placeholder logger until setup_logging() is called in main()
logger = logging.getLogger(__name__)

# CLI flag -> (config section, key)
_OVERRIDE_FLAGS = {
    "bootstrap_servers": ("kafka", "bootstrap_servers"),
    "topic": ("collector", "metrics_topic"),
    "output_dir": ("collector", "output_dir"),
    "starting_offset": ("collector", "starting_offset"),
    "sample_number": ("collector", "sample_number"),
    "reservoir_size": ("collector", "reservoir_size"),
    "thread_num": ("collector", "thread_num"),
}


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="latency_collector",
        description="Collect end-to-end latency and throughput from a Kafka metrics topic",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Read every marker record of the configured topic
    python -m latency_collector

    # Sample 100000 records across all partitions with 8 threads
    python -m latency_collector --topic pipeline.metrics --sample-number 100000 --thread-num 8

    # Bound the latency reservoir
    python -m latency_collector --reservoir-size 50000
        """,
    )

    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to config.yaml (default: src/config/config.yaml)",
    )
    parser.add_argument(
        "--bootstrap-servers",
        default=None,
        help="Kafka bootstrap servers (overrides kafka.connection.bootstrap_servers)",
    )
    parser.add_argument(
        "--topic",
        default=None,
        help="Metrics topic to read marker records from",
    )
    parser.add_argument(
        "--output-dir",
        default=None,
        help="Directory receiving <topic>.csv",
    )
    parser.add_argument(
        "--starting-offset",
        type=int,
        default=None,
        help="Offset every partition is read from",
    )
    parser.add_argument(
        "--sample-number",
        type=int,
        default=None,
        help="Total records sampled across partitions (negative = read everything)",
    )
    parser.add_argument(
        "--reservoir-size",
        type=int,
        default=None,
        help="Latencies kept for percentiles (<= 0 = keep all)",
    )
    parser.add_argument(
        "--thread-num",
        type=int,
        default=None,
        help="Partitions fetched in parallel",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Logging level (default: INFO)",
    )
    parser.add_argument(
        "--log-dir",
        type=str,
        default=None,
        help="Log directory path (default: from LOG_DIR env var or ./logs)",
    )
    parser.add_argument(
        "--log-to-stdout",
        action="store_true",
        help="Send all log output to stdout only, skipping file handlers. "
        "Can also be set via LOG_TO_STDOUT environment variable.",
    )

    return parser.parse_args(argv)


def build_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """Turn the CLI flags that were given into a nested config overlay."""
    overrides: Dict[str, Any] = {}
    for attr, (section, key) in _OVERRIDE_FLAGS.items():
        value = getattr(args, attr)
        if value is None:
            continue
        if section == "kafka":
            overrides.setdefault("kafka", {}).setdefault("connection", {})[key] = value
        else:
            overrides.setdefault(section, {})[key] = value
    return overrides


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv(PROJECT_ROOT / ".env")

    global logger
    args = parse_args(argv)

    log_level = getattr(logging, args.log_level)
    json_logs = os.getenv("JSON_LOGS", "true").lower() in ("true", "1", "yes")
    log_dir = Path(args.log_dir or os.getenv("LOG_DIR", "logs"))
    log_to_stdout = args.log_to_stdout or os.getenv(
        "LOG_TO_STDOUT", "false"
    ).lower() in ("true", "1", "yes")

    setup_logging(
        name="latency_collector",
        stage="collect",
        domain="latency",
        log_dir=log_dir,
        json_format=json_logs,
        console_level=log_level,
        worker_id=os.getenv("WORKER_ID", "latency-collector"),
        log_to_stdout=log_to_stdout,
    )
    logger = get_logger(__name__)

    try:
        config = load_config(config_path=args.config, overrides=build_overrides(args))
    except (FileNotFoundError, ValueError) as e:
        logger.error(f"Configuration error: {e}")
        return 1

    cycle_id = generate_cycle_id()
    with LogContext(cycle_id=cycle_id):
        log_startup_banner(
            logger,
            "Kafka Latency Collector",
            version=__version__,
            cycle_id=cycle_id,
            topic=config.metrics_topic,
            bootstrap_servers=config.bootstrap_servers,
            output_dir=config.output_dir,
            thread_num=config.thread_num,
            sample_number=config.sample_number,
            reservoir_size=config.reservoir_size,
            log_output_mode=detect_log_output_mode(),
        )

        try:
            LatencyCollector(config).start()
        except KeyboardInterrupt:
            logger.info("Keyboard interrupt received, aborting run")
            return 130
        except Exception as e:
            error = wrap_exception(e)
            log_exception(
                logger,
                e,
                "Latency collection failed",
                topic=config.metrics_topic,
                error_category=error.category.value,
                rerun_may_help=is_transient_error(error),
            )
            return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
