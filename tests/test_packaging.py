"""Tests for the declared interpreter floor."""

import datetime
import tomllib
from pathlib import Path

PYPROJECT = Path(__file__).parent.parent / "pyproject.toml"


class TestRequiresPython:

    def test_floor_supports_datetime_utc(self):
        # core.logging.formatters imports datetime.UTC, added in 3.11
        project = tomllib.loads(PYPROJECT.read_text(encoding="utf-8"))["project"]
        assert project["requires-python"] == ">=3.11"
        assert hasattr(datetime, "UTC")
