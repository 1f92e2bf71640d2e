from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from pathlib import Path

from core.utils.json_serializers import json_serializer


class Color(Enum):
    RED = "red"


@dataclass(frozen=True)
class Window:
    min_time_ms: int
    max_time_ms: int


class TestJsonSerializer:

    def test_serializes_datetime_to_isoformat(self):
        assert json_serializer(datetime(2025, 6, 15, 10, 30, 0)) == "2025-06-15T10:30:00"

    def test_serializes_date_to_isoformat(self):
        assert json_serializer(date(2025, 12, 25)) == "2025-12-25"

    def test_serializes_path(self):
        assert json_serializer(Path("/tmp/metrics.csv")) == "/tmp/metrics.csv"

    def test_serializes_set_sorted(self):
        assert json_serializer({2, 0, 1}) == [0, 1, 2]
        assert json_serializer(frozenset({"b", "a"})) == ["a", "b"]

    def test_serializes_dataclass_instance(self):
        assert json_serializer(Window(1, 2)) == {"min_time_ms": 1, "max_time_ms": 2}

    def test_dataclass_type_falls_back_to_str(self):
        assert json_serializer(Window) == str(Window)

    def test_serializes_enum_value(self):
        assert json_serializer(Color.RED) == "red"

    def test_fallback_to_str(self):
        assert json_serializer(object.__new__(object)).startswith("<object")
