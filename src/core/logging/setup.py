"""Logging setup for a collector run."""

import io
import itertools
import logging
import secrets
import shutil
import sys
import threading
from datetime import datetime
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

from core.logging.context import set_log_context
from core.logging.formatters import ConsoleFormatter, JSONFormatter

DEFAULT_LOG_DIR = Path("logs")
DEFAULT_CONSOLE_LEVEL = logging.INFO
DEFAULT_FILE_LEVEL = logging.DEBUG

# A run rarely outlives a day; rotation only matters for long sampling passes
DEFAULT_ROTATION_WHEN = "midnight"
DEFAULT_BACKUP_COUNT = 7

PLAIN_FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"

# Kafka client loggers are chatty at INFO (connection churn, fetch sessions)
NOISY_LOGGERS = [
    "aiokafka",
    "aiokafka.conn",
    "aiokafka.consumer.fetcher",
    "kafka",
]

_instance_ids = itertools.count()
_instance_lock = threading.Lock()


def _next_instance_id() -> str:
    with _instance_lock:
        return str(next(_instance_ids))


class ArchivingTimedRotatingFileHandler(TimedRotatingFileHandler):
    """
    Rotating file handler that moves rotated files out of the live directory.

    After a rollover (collect.log -> collect.log.2026-10-17) every rotated
    sibling of the log file is moved into ``archive_dir``, which defaults to
    an ``archive`` folder beside the log file.
    """

    def __init__(self, filename, archive_dir=None, **kwargs):
        super().__init__(filename, **kwargs)
        log_path = Path(self.baseFilename)
        self.archive_dir = Path(archive_dir) if archive_dir else log_path.parent / "archive"
        self.archive_dir.mkdir(parents=True, exist_ok=True)

    def doRollover(self):
        super().doRollover()

        log_path = Path(self.baseFilename)
        rotated = [p for p in log_path.parent.glob(f"{log_path.name}.*") if p != log_path]
        for path in rotated:
            try:
                shutil.move(str(path), str(self.archive_dir / path.name))
            except OSError as e:
                # Logging from inside a handler would recurse
                print(f"Warning: Failed to archive {path}: {e}", file=sys.stderr)


def get_log_file_path(
    log_dir: Path,
    domain: str | None = None,
    stage: str | None = None,
    instance_id: str | None = None,
) -> Path:
    """
    Path of the log file for one run.

    Layout: ``{log_dir}/{domain}/{YYYY-MM-DD}/{domain}_{stage}_{MMDD}_{HHMM}_{instance}.log``,
    e.g. ``logs/latency/2026-10-17/latency_collect_1017_1430_0.log``. Without
    a domain the date folder sits directly under log_dir.
    """
    now = datetime.now()
    prefix = "_".join(part for part in (domain, stage) if part) or "collector"
    instance = instance_id or _next_instance_id()
    filename = f"{prefix}_{now:%m%d}_{now:%H%M}_{instance}.log"

    base = log_dir / domain if domain else log_dir
    return base / f"{now:%Y-%m-%d}" / filename


def _stdout_handler() -> logging.StreamHandler:
    # Windows consoles cannot encode every character a broker error may carry
    if sys.platform == "win32":
        return logging.StreamHandler(
            io.TextIOWrapper(sys.stdout.buffer, encoding="utf-8", errors="replace")
        )
    return logging.StreamHandler(sys.stdout)


def _archive_dir_for(log_file: Path, log_dir: Path) -> Path:
    """Mirror the log's domain/date layout under ``{log_dir}/archive``."""
    try:
        return log_dir / "archive" / log_file.relative_to(log_dir).parent
    except ValueError:
        return log_file.parent / "archive"


def _file_handler(
    log_file: Path,
    log_dir: Path,
    json_format: bool,
    level: int,
    rotation_when: str,
    backup_count: int,
) -> ArchivingTimedRotatingFileHandler:
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = ArchivingTimedRotatingFileHandler(
        log_file,
        archive_dir=_archive_dir_for(log_file, log_dir),
        when=rotation_when,
        backupCount=backup_count,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(JSONFormatter() if json_format else logging.Formatter(PLAIN_FILE_FORMAT))
    return handler


def setup_logging(
    name: str = "latency_collector",
    stage: str | None = None,
    domain: str | None = None,
    log_dir: Path | None = None,
    json_format: bool = True,
    console_level: int = DEFAULT_CONSOLE_LEVEL,
    file_level: int = DEFAULT_FILE_LEVEL,
    rotation_when: str = DEFAULT_ROTATION_WHEN,
    backup_count: int = DEFAULT_BACKUP_COUNT,
    suppress_noisy: bool = True,
    worker_id: str | None = None,
    use_instance_id: bool = True,
    log_to_stdout: bool = False,
) -> logging.Logger:
    """
    Configure the root logger for a collector run.

    By default records go to a colourised console handler at
    ``console_level`` and to a rotating file at ``file_level`` (JSON unless
    ``json_format`` is False). With ``log_to_stdout`` the file is skipped and
    the console handler takes every record either handler would have taken,
    which suits containers that collect stdout.

    stage, domain and worker_id are also set as log context so every record
    of the run carries them.

    Returns:
        The logger called ``name``
    """
    log_dir = log_dir or DEFAULT_LOG_DIR
    set_log_context(worker_id=worker_id, stage=stage, domain=domain)

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    root.handlers.clear()

    console = _stdout_handler()
    console.setFormatter(ConsoleFormatter())

    log_file = None
    if log_to_stdout:
        console.setLevel(min(console_level, file_level))
    else:
        console.setLevel(console_level)
        log_file = get_log_file_path(
            log_dir,
            domain=domain,
            stage=stage,
            instance_id=_next_instance_id() if use_instance_id else None,
        )
        root.addHandler(
            _file_handler(log_file, log_dir, json_format, file_level, rotation_when, backup_count)
        )
    root.addHandler(console)

    if suppress_noisy:
        for logger_name in NOISY_LOGGERS:
            logging.getLogger(logger_name).setLevel(logging.WARNING)

    logger = logging.getLogger(name)
    if log_file is None:
        logger.debug("Logging initialized: stdout-only mode")
    else:
        logger.debug(f"Logging initialized: file={log_file}, json={json_format}")
    return logger


def get_logger(name: str) -> logging.Logger:
    """Module logger; use instead of logging.getLogger() for consistent naming."""
    return logging.getLogger(name)


def generate_cycle_id() -> str:
    """Run identifier: ``c-YYYYMMDD-HHMMSS-xxxx`` with a random hex suffix."""
    return f"c-{datetime.now():%Y%m%d-%H%M%S}-{secrets.token_hex(2)}"
