"""
Tests for the log transports
"""
import json
import logging
import threading
from io import StringIO

import pytest

from reliability.domain.models import LogLevel
from reliability.infrastructure.logging import (
    ConsoleTransport,
    FileState,
    FileTransport,
    Logger,
    LoggerConfig,
    MemoryTransport,
    NullTransport,
    SimpleFormatter,
)

PADDING = "x" * 300


def logger_for(*transports) -> Logger:
    return Logger(LoggerConfig(name="transport-test", level=LogLevel.DEBUG, transports=list(transports)))


def read_lines(path):
    return [json.loads(line) for line in path.read_text().splitlines()]


class TestFileTransport:
    """Newline-delimited JSON output with size-based rotation"""

    def test_writes_json_lines(self, tmp_path):
        path = tmp_path / "app.log"
        transport = FileTransport(path, LogLevel.DEBUG)
        logger = logger_for(transport)

        logger.info("started", {"port": 8080})
        logger.debug("details")

        lines = read_lines(path)
        assert [line["message"] for line in lines] == ["started", "details"]
        assert lines[0]["level"] == "INFO"
        assert lines[0]["data"] == {"port": 8080}
        assert "component" not in lines[0]

    def test_creates_parent_directories(self, tmp_path):
        path = tmp_path / "nested" / "deeper" / "app.log"
        FileTransport(path)

        assert path.exists()

    def test_rotation_moves_full_file_aside(self, tmp_path):
        path = tmp_path / "app.log"
        transport = FileTransport(path, max_file_size=200, max_files=2)
        logger = logger_for(transport)

        logger.info(f"first {PADDING}")
        logger.info(f"second {PADDING}")

        rotated = tmp_path / "app.1.log"
        assert [line["message"] for line in read_lines(rotated)] == [f"first {PADDING}"]
        assert [line["message"] for line in read_lines(path)] == [f"second {PADDING}"]
        assert transport.state == FileState.OPEN

    def test_retention_keeps_max_files_rotated(self, tmp_path):
        path = tmp_path / "app.log"
        logger = logger_for(FileTransport(path, max_file_size=200, max_files=2))

        for index in range(1, 6):
            logger.info(f"entry {index} {PADDING}")

        assert sorted(p.name for p in tmp_path.iterdir()) == ["app.1.log", "app.2.log", "app.log"]
        assert read_lines(path)[0]["message"].startswith("entry 5")
        assert read_lines(tmp_path / "app.1.log")[0]["message"].startswith("entry 4")
        assert read_lines(tmp_path / "app.2.log")[0]["message"].startswith("entry 3")

    def test_oversized_existing_file_rotated_on_open(self, tmp_path):
        path = tmp_path / "app.log"
        path.write_text("old content " * 50)

        transport = FileTransport(path, max_file_size=100)

        assert (tmp_path / "app.1.log").read_text().startswith("old content")
        assert path.read_text() == ""
        assert transport.state == FileState.OPEN

    def test_rotated_path_naming(self, tmp_path):
        transport = FileTransport(tmp_path / "service.jsonl")
        assert transport.rotated_path(3) == tmp_path / "service.3.jsonl"

    def test_write_after_close_reopens(self, tmp_path):
        path = tmp_path / "app.log"
        transport = FileTransport(path)
        logger = logger_for(transport)

        logger.info("before")
        transport.close()
        assert transport.state == FileState.CLOSED

        logger.info("after")

        assert [line["message"] for line in read_lines(path)] == ["before", "after"]
        assert transport.state == FileState.OPEN

    @pytest.mark.parametrize("kwargs", [{"max_file_size": 0}, {"max_files": 0}])
    def test_invalid_limits(self, tmp_path, kwargs):
        with pytest.raises(ValueError):
            FileTransport(tmp_path / "app.log", **kwargs)

    def test_custom_formatter(self, tmp_path):
        path = tmp_path / "app.txt"
        logger = logger_for(FileTransport(path, formatter=SimpleFormatter()))

        logger.warn("plain text")

        assert path.read_text().rstrip("\n").endswith("WARN: plain text")

    def test_concurrent_writes_lose_no_lines(self, tmp_path):
        path = tmp_path / "app.log"
        logger = logger_for(FileTransport(path, max_file_size=2000, max_files=100))
        threads_count = 4
        per_thread = 50

        def worker(index: int) -> None:
            for i in range(per_thread):
                logger.info(f"thread {index} line {i}")

        threads = [threading.Thread(target=worker, args=(index,)) for index in range(threads_count)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        lines = []
        for file in tmp_path.iterdir():
            lines.extend(read_lines(file))
        assert len(lines) == threads_count * per_thread


class TestConsoleTransport:
    """Console output split across stdout and stderr"""

    def test_levels_routed_to_streams(self):
        out, err = StringIO(), StringIO()
        logger = logger_for(ConsoleTransport(LogLevel.DEBUG, use_colors=False, stream=out, error_stream=err))

        logger.debug("debugging")
        logger.info("informing")
        logger.warn("warning")
        logger.critical("failing")

        assert out.getvalue().count("\n") == 2
        assert "DEBUG: debugging" in out.getvalue()
        assert "INFO: informing" in out.getvalue()
        assert "WARN: warning" in err.getvalue()
        assert "CRITICAL: failing" in err.getvalue()

    def test_min_level_filters(self):
        out, err = StringIO(), StringIO()
        logger = logger_for(ConsoleTransport(LogLevel.ERROR, use_colors=False, stream=out, error_stream=err))

        logger.warn("hidden")
        logger.error("shown")

        assert out.getvalue() == ""
        assert err.getvalue().count("\n") == 1

    def test_defaults_to_process_streams(self, capsys):
        logger = logger_for(ConsoleTransport(use_colors=False))

        logger.info("to stdout")
        logger.error("to stderr")

        captured = capsys.readouterr()
        assert "to stdout" in captured.out
        assert "to stderr" in captured.err


class TestMemoryTransport:
    """Bounded in-memory capture"""

    def test_oldest_entries_evicted(self):
        memory = MemoryTransport()
        logger = logger_for(memory)

        for index in range(1001):
            logger.info(str(index))

        entries = memory.get_entries()
        assert memory.get_count() == 1000
        assert entries[0].message == "1"
        assert entries[-1].message == "1000"

    def test_filter_by_level_and_clear(self):
        memory = MemoryTransport()
        logger = logger_for(memory)

        logger.info("a")
        logger.error("b")
        logger.info("c")

        assert [entry.message for entry in memory.get_entries_by_level(LogLevel.INFO)] == ["a", "c"]

        memory.clear()
        assert memory.get_count() == 0

    def test_custom_capacity(self):
        memory = MemoryTransport(max_entries=2)
        logger = logger_for(memory)

        for message in ("a", "b", "c"):
            logger.info(message)

        assert [entry.message for entry in memory.get_entries()] == ["b", "c"]

    def test_attached_to_stdlib_logger(self):
        memory = MemoryTransport()
        stdlib_logger = logging.getLogger("reliability.tests.stdlib")
        stdlib_logger.setLevel(logging.DEBUG)
        stdlib_logger.addHandler(memory)
        try:
            stdlib_logger.warning("disk at %d%%", 91)
        finally:
            stdlib_logger.removeHandler(memory)

        entry = memory.get_entries()[0]
        assert entry.message == "disk at 91%"
        assert entry.level == LogLevel.WARN
        assert entry.component == "reliability.tests.stdlib"


class TestNullTransport:
    """Discarding transport"""

    def test_accepts_everything(self):
        transport = NullTransport()
        logger = logger_for(transport)

        logger.debug("gone")
        logger.critical("gone too")

        assert transport.min_level == LogLevel.DEBUG
        assert transport.name == "null"
