"""
Tests for the log formatters
"""
import json
import logging
import sys
from datetime import datetime, timezone

import pytest

from reliability.domain.models import LogEntry, LogLevel
from reliability.infrastructure.logging import (
    CompactFormatter,
    ConsoleFormatter,
    JsonFormatter,
    SimpleFormatter,
)
from reliability.infrastructure.logging.formatters import (
    LEVEL_COLORS,
    RESET_COLOR,
    entry_from_record,
    iso_timestamp,
    level_for_number,
)

TIMESTAMP = datetime(2024, 1, 2, 3, 4, 5, 678000, tzinfo=timezone.utc)


@pytest.fixture
def entry() -> LogEntry:
    return LogEntry(
        timestamp=TIMESTAMP,
        level=LogLevel.INFO,
        message="Document indexed",
        component="indexer",
        request_id="req-1234567890abcdef",
    )


class TestJsonFormatter:
    """One JSON object per entry"""

    def test_required_and_optional_fields(self, entry):
        payload = json.loads(JsonFormatter().format_entry(entry))

        assert payload == {
            "timestamp": "2024-01-02T03:04:05.678000+00:00",
            "level": "INFO",
            "message": "Document indexed",
            "component": "indexer",
            "request_id": "req-1234567890abcdef",
        }

    def test_unset_fields_are_omitted(self):
        payload = json.loads(JsonFormatter().format_entry(LogEntry(level=LogLevel.DEBUG, message="bare")))

        assert set(payload) == {"timestamp", "level", "message"}

    def test_data_is_made_serializable(self):
        entry = LogEntry(
            level=LogLevel.WARN,
            message="odd data",
            data={"when": TIMESTAMP, "level": LogLevel.ERROR, "tags": {"a"}, "error": ValueError("v")},
        )

        payload = json.loads(JsonFormatter().format_entry(entry))

        assert payload["data"]["when"] == "2024-01-02T03:04:05.678000+00:00"
        assert payload["data"]["level"] == 40
        assert payload["data"]["tags"] == ["a"]
        assert payload["data"]["error"] == {"type": "ValueError", "message": "v"}


class TestConsoleFormatter:
    """Human-readable console lines"""

    def test_plain_layout(self, entry):
        line = ConsoleFormatter(use_colors=False).format_entry(entry)

        assert line == "[2024-01-02T03:04:05.678Z] INFO [indexer] [req:req-1234]: Document indexed"

    def test_data_block(self):
        entry = LogEntry(timestamp=TIMESTAMP, level=LogLevel.ERROR, message="failed", data={"code": 7})

        line = ConsoleFormatter(use_colors=False).format_entry(entry)

        assert line == '[2024-01-02T03:04:05.678Z] ERROR: failed\nData: {\n  "code": 7\n}'

    @pytest.mark.parametrize("level", list(LogLevel))
    def test_level_colors(self, level):
        entry = LogEntry(timestamp=TIMESTAMP, level=level, message="colored")

        line = ConsoleFormatter().format_entry(entry)

        assert line.startswith(f"{LEVEL_COLORS[level]}[")
        assert f"{level.name}{RESET_COLOR}" in line


class TestTextFormatters:
    """Simple and compact layouts"""

    def test_simple_with_component(self, entry):
        assert SimpleFormatter().format_entry(entry) == (
            "2024-01-02T03:04:05.678Z INFO [indexer]: Document indexed"
        )

    def test_simple_without_component(self):
        entry = LogEntry(timestamp=TIMESTAMP, level=LogLevel.WARN, message="slow")
        assert SimpleFormatter().format_entry(entry) == "2024-01-02T03:04:05.678Z WARN: slow"

    def test_compact_uses_local_time_and_initial(self, entry):
        expected_time = TIMESTAMP.astimezone().strftime("%H:%M:%S")
        assert CompactFormatter().format_entry(entry) == f"{expected_time} I Document indexed"

    def test_iso_timestamp_normalizes_to_utc(self):
        assert iso_timestamp(TIMESTAMP) == "2024-01-02T03:04:05.678Z"


class TestStdlibRecords:
    """Formatting records that did not come from the facade"""

    def test_plain_record_is_converted(self):
        record = logging.makeLogRecord({
            "name": "ingest",
            "levelno": logging.ERROR,
            "levelname": "ERROR",
            "msg": "failed to read %s",
            "args": ("a.pdf",),
            "correlation_id": "corr-42",
        })

        payload = json.loads(JsonFormatter().format(record))

        assert payload["message"] == "failed to read a.pdf"
        assert payload["level"] == "ERROR"
        assert payload["component"] == "ingest"
        assert payload["request_id"] == "corr-42"

    def test_exception_info_lands_in_data(self):
        try:
            raise KeyError("missing")
        except KeyError:
            exc_info = sys.exc_info()

        record = logging.makeLogRecord({
            "name": "ingest",
            "levelno": logging.ERROR,
            "msg": "lookup failed",
            "exc_info": exc_info,
        })

        entry = entry_from_record(record)

        assert "KeyError" in entry.data["exception"]

    def test_facade_entry_is_reused(self, entry):
        record = logging.makeLogRecord({"msg": "ignored", "entry": entry})
        assert entry_from_record(record) is entry

    @pytest.mark.parametrize("levelno,expected", [
        (5, LogLevel.DEBUG),
        (20, LogLevel.INFO),
        (25, LogLevel.INFO),
        (30, LogLevel.WARN),
        (60, LogLevel.CRITICAL),
    ])
    def test_level_for_number(self, levelno, expected):
        assert level_for_number(levelno) == expected
