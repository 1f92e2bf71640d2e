"""Tests for run-level logging context variables."""

import contextvars

import pytest

from core.logging.context import clear_log_context, get_log_context, set_log_context


class TestLogContext:

    @pytest.fixture(autouse=True)
    def clear_context(self):
        clear_log_context()
        yield
        clear_log_context()

    def test_defaults_are_empty(self):
        assert get_log_context() == {
            "cycle_id": "",
            "stage": "",
            "worker_id": "",
            "domain": "",
        }

    def test_set_only_given_fields(self):
        set_log_context(cycle_id="c-1", domain="latency")
        set_log_context(stage="collect")

        ctx = get_log_context()
        assert ctx["cycle_id"] == "c-1"
        assert ctx["domain"] == "latency"
        assert ctx["stage"] == "collect"
        assert ctx["worker_id"] == ""

    def test_clear(self):
        set_log_context(cycle_id="c-1", stage="collect", worker_id="w", domain="latency")
        clear_log_context()
        assert all(value == "" for value in get_log_context().values())

    def test_copied_context_sees_caller_values(self):
        set_log_context(cycle_id="c-42")
        ctx = contextvars.copy_context()
        assert ctx.run(lambda: get_log_context()["cycle_id"]) == "c-42"

    def test_changes_in_copied_context_do_not_leak(self):
        set_log_context(stage="collect")
        contextvars.copy_context().run(set_log_context, stage="fetch")
        assert get_log_context()["stage"] == "collect"
