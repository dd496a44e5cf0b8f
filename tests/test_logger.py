import io
import json
import logging
import re
import sys
import threading

import pytest

from resticm import logger as log
from resticm.logger import Level, LogConfig, Logger, configure, parse_level

_STAMP_WIDTH = len("[2024-01-02 03:04:05] ")


def _close_files(logger):
    for out in logger.outputs:
        if out is not sys.stdout:
            out.close()


@pytest.mark.parametrize(
    "level, threshold, should_log",
    [
        (Level.DEBUG, Level.DEBUG, True),
        (Level.INFO, Level.DEBUG, True),
        (Level.WARN, Level.DEBUG, True),
        (Level.ERROR, Level.DEBUG, True),
        (Level.DEBUG, Level.INFO, False),
        (Level.INFO, Level.INFO, True),
        (Level.WARN, Level.INFO, True),
        (Level.ERROR, Level.INFO, True),
        (Level.DEBUG, Level.WARN, False),
        (Level.INFO, Level.WARN, False),
        (Level.WARN, Level.WARN, True),
        (Level.ERROR, Level.WARN, True),
        (Level.DEBUG, Level.ERROR, False),
        (Level.INFO, Level.ERROR, False),
        (Level.WARN, Level.ERROR, False),
        (Level.ERROR, Level.ERROR, True),
    ],
)
def test_logger_levels(level, threshold, should_log):
    buf = io.StringIO()
    logger = Logger(threshold, [buf])
    logger._log(level, "message", ())
    assert (buf.getvalue() != "") is should_log


@pytest.mark.parametrize(
    "level, want",
    [
        (Level.DEBUG, "DEBUG"),
        (Level.INFO, "INFO"),
        (Level.WARN, "WARN"),
        (Level.ERROR, "ERROR"),
    ],
)
def test_level_string(level, want):
    assert str(level) == want


def test_unknown_level_value_rejected():
    with pytest.raises(ValueError):
        Level(99)


@pytest.mark.parametrize(
    "text, want",
    [
        ("debug", Level.DEBUG),
        ("DEBUG", Level.DEBUG),
        ("info", Level.INFO),
        ("INFO", Level.INFO),
        ("warn", Level.WARN),
        ("WARN", Level.WARN),
        ("warning", Level.WARN),
        ("WARNING", Level.WARN),
        ("error", Level.ERROR),
        ("ERROR", Level.ERROR),
        ("unknown", Level.INFO),
        ("", Level.INFO),
    ],
)
def test_parse_level(text, want):
    assert parse_level(text) == want


def test_logger_with_prefix():
    logger = Logger(Level.INFO, prefix="test")
    child = logger.with_prefix("submodule")
    assert child.prefix == "submodule"
    assert logger.prefix == "test"
    assert child.outputs is logger.outputs
    assert child.level == Level.INFO


def test_new_logger():
    logger = Logger(Level.WARN)
    assert logger.level == Level.WARN
    assert len(logger.outputs) == 1
    assert logger.json_mode is False


def test_configure_with_file(tmp_path):
    log_file = tmp_path / "test.log"
    logger = configure(
        LogConfig(file=str(log_file), level="debug", console=False, json=True)
    )
    try:
        assert logger.level == Level.DEBUG
        assert logger.json_mode is True
        assert len(logger.outputs) == 1
        logger.debug("written %d", 7)
    finally:
        _close_files(logger)
    content = log_file.read_text()
    assert '"level":"DEBUG"' in content
    assert '"msg":"written 7"' in content


def test_configure_creates_directory(tmp_path):
    log_file = tmp_path / "nested" / "dir" / "app.log"
    logger = configure(LogConfig(file=str(log_file), console=True))
    try:
        assert log_file.exists()
        assert len(logger.outputs) == 2
        assert logger.outputs[0] is sys.stdout
    finally:
        _close_files(logger)


def test_configure_with_console():
    logger = configure(LogConfig(level="info", console=True, json=False))
    assert logger.level == Level.INFO
    assert logger.json_mode is False
    assert logger.outputs == [sys.stdout]


def test_configure_without_outputs_falls_back_to_stdout():
    logger = configure(LogConfig(level="error"))
    assert logger.outputs == [sys.stdout]
    assert logger.level == Level.ERROR


def test_default_logger():
    original = log.get_default()
    try:
        replacement = Logger(Level.ERROR)
        log.set_default(replacement)
        assert log.get_default() is replacement
    finally:
        log.set_default(original)


def test_init_sets_prefix():
    std = log.init("resticm")
    assert len(std.handlers) == 1
    record = logging.LogRecord("resticm", logging.INFO, __file__, 1, "hello", None, None)
    line = std.handlers[0].format(record)
    assert re.fullmatch(r"resticm \d{4}/\d\d/\d\d \d\d:\d\d:\d\d hello", line)


def test_log_methods_use_default():
    original = log.get_default()
    buf = io.StringIO()
    try:
        log.set_default(Logger(Level.ERROR, [buf]))
        log.debug("test debug %s", "message")
        log.info("test info %s", "message")
        log.warn("test warn %s", "message")
        log.error("test error %s", "message")
    finally:
        log.set_default(original)
    lines = buf.getvalue().splitlines()
    assert len(lines) == 1
    assert lines[0].endswith("[ERROR] test error message")


def test_level_comparison():
    levels = [parse_level(name) for name in ("debug", "info", "warn", "error")]
    assert levels == sorted(levels)
    assert levels == [Level.DEBUG, Level.INFO, Level.WARN, Level.ERROR]
    assert parse_level("debug") < parse_level("info") < parse_level("warn") < parse_level("error")


def test_logger_concurrent_setters():
    logger = Logger(Level.INFO)
    prefixes = {chr(ord("a") + n) for n in range(10)}

    def worker(n):
        logger.set_level(Level(n % 4))
        logger.set_prefix(chr(ord("a") + n))

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(10)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    assert logger.level in set(Level)
    assert logger.prefix in prefixes


def test_outputs_default():
    logger = Logger(Level.INFO)
    assert logger.outputs == [sys.stdout]


def test_logger_state():
    logger = Logger(Level.INFO)
    logger.set_level(Level.DEBUG)
    logger.set_prefix("test")
    assert logger.level == Level.DEBUG
    assert logger.prefix == "test"


def test_plain_line_format():
    buf = io.StringIO()
    Logger(Level.INFO, [buf]).info("hello %s", "world")
    text = buf.getvalue()
    assert text[_STAMP_WIDTH:] == "[INFO] hello world\n"
    assert re.fullmatch(r"\[\d{4}-\d\d-\d\d \d\d:\d\d:\d\d\] ", text[:_STAMP_WIDTH]) is not None


def test_prefixed_line_format():
    buf = io.StringIO()
    Logger(Level.INFO, [buf], prefix="backup").warn("careful")
    text = buf.getvalue()
    assert text[_STAMP_WIDTH:] == "[WARN] [backup] careful\n"
    assert text.startswith("[")


def test_json_line_format():
    buf = io.StringIO()
    Logger(Level.INFO, [buf], json_mode=True).error("boom")
    text = buf.getvalue()
    assert text.endswith("}\n")
    data = json.loads(text)
    assert list(data) == ["time", "level", "msg"]
    assert data["level"] == "ERROR"
    assert data["msg"] == "boom"


def test_message_without_args_is_not_formatted():
    buf = io.StringIO()
    Logger(Level.INFO, [buf]).info("100% done")
    assert buf.getvalue().endswith("100% done\n")


def test_writes_to_every_output():
    first, second = io.StringIO(), io.StringIO()
    Logger(Level.INFO, [first, second]).info("twice")
    assert first.getvalue() == second.getvalue()
    assert first.getvalue().endswith("twice\n")


def test_fatal_logs_and_exits():
    buf = io.StringIO()
    with pytest.raises(SystemExit) as info:
        Logger(Level.INFO, [buf]).fatal("stop %d", 1)
    assert info.value.code == 1
    assert "[ERROR] stop 1" in buf.getvalue()