# ============================================================================
# STRUCTURED LOGGING TESTS
# ============================================================================
# EPOCH: 1 - HEALTH KERNEL
# STATUS: Tests - Logging context and formatters
# PURPOSE: Verify log_context nesting and formatter output
# CREATED: 17 OCT 2026
# ============================================================================
"""
Structured Logging Tests

Run with:
    pytest tests/test_logging.py -v
"""

import asyncio
import json
import logging

from core.logging import (
    ComponentType,
    HumanFormatter,
    StructuredFormatter,
    get_current_context,
    get_logger,
    log_context,
)


def make_record(message="probe finished", level=logging.INFO):
    return logging.LogRecord(
        name="health.executor",
        level=level,
        pathname=__file__,
        lineno=10,
        msg=message,
        args=(),
        exc_info=None,
    )


class TestLogContext:
    """log_context() stack."""

    def test_nesting_merges_and_restores(self):
        with log_context(plugin="runner"):
            with log_context(probe_name="db"):
                context = get_current_context()
                assert context.plugin == "runner"
                assert context.probe_name == "db"
            assert get_current_context().probe_name is None

        assert get_current_context().to_dict() == {}

    def test_tasks_keep_their_own_context(self):
        seen = {}

        async def probe(name):
            with log_context(probe_name=name):
                await asyncio.sleep(0.01)
                seen[name] = get_current_context().probe_name

        async def run():
            await asyncio.gather(probe("db"), probe("cache"))

        asyncio.run(run())
        assert seen == {"db": "db", "cache": "cache"}


class TestFormatters:
    """StructuredFormatter and HumanFormatter."""

    def test_structured_formatter(self):
        formatter = StructuredFormatter(include_source=False)

        with log_context(probe_name="db", plugin="runner"):
            data = json.loads(formatter.format(make_record()))

        assert data["message"] == "probe finished"
        assert data["level"] == "INFO"
        assert data["context"] == {"probe_name": "db", "plugin": "runner"}
        assert "source" not in data

    def test_human_formatter(self):
        with log_context(probe_name="db"):
            line = HumanFormatter().format(make_record())

        assert "[probe=db]" in line
        assert line.endswith("health.executor [probe=db]: probe finished")

    def test_context_logger_adds_component(self, caplog):
        logger = get_logger("tests.logging", ComponentType.SCHEDULER)

        with caplog.at_level(logging.INFO, logger="tests.logging"):
            with log_context(probe_name="db"):
                logger.info("tick")

        record = caplog.records[-1]
        assert record.extra["component"] == "scheduler"
        assert record.extra["probe_name"] == "db"
