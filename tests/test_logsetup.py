import gzip
import re

import pytest

from apkdk.logsetup import (
    ERROR_PREFIX,
    INFO_PREFIX,
    TRACE_PREFIX,
    WARNING_PREFIX,
    DummyLogger,
    LevelLogger,
    Logger,
    init_default_logging,
    init_roll_file_logging,
)


def test_dummy_logger_discards_everything(capsys):
    dummy = DummyLogger()
    dummy.info("a")
    dummy.warning("b")
    dummy.error("c")
    dummy.trace("d")
    dummy.fatal_error("e")
    dummy.clear()
    captured = capsys.readouterr()
    assert captured.out == ""
    assert captured.err == ""
    assert dummy.is_trace_enabled() is False
    assert isinstance(dummy, Logger)


def test_default_info_line_format(capsys):
    logger = init_default_logging(False)
    logger.info("hello")
    line = capsys.readouterr().out.strip()
    assert line[: len(INFO_PREFIX)] == INFO_PREFIX
    stamp, message = line[len(INFO_PREFIX) :].split(": ", 1)
    assert message == "hello"
    pattern = r"\d{4}/\d{2}/\d{2} \d{2}:\d{2}:\d{2}\.\d{3}"
    assert bool(re.fullmatch(pattern, stamp)) is True
    assert logger.is_trace_enabled() is False


def test_default_warning_goes_to_stdout(capsys):
    logger = init_default_logging(False)
    logger.warning("careful")
    captured = capsys.readouterr()
    assert captured.out.startswith(WARNING_PREFIX)
    assert captured.out.rstrip().endswith(": careful")
    assert captured.err == ""


def test_default_error_goes_to_stderr_with_location(capsys):
    logger = init_default_logging(False)
    logger.error("broken")
    captured = capsys.readouterr()
    assert captured.out == ""
    assert captured.err.startswith(ERROR_PREFIX)
    assert "test_logsetup.py:" in captured.err
    assert captured.err.rstrip().endswith(": broken")


def test_trace_disabled_writes_nothing(capsys):
    logger = init_default_logging(False)
    logger.trace("hidden")
    assert logger.is_trace_enabled() is False
    assert capsys.readouterr().out == ""


def test_trace_enabled_writes(capsys):
    logger = init_default_logging(True)
    logger.trace("shown")
    out = capsys.readouterr().out
    assert logger.is_trace_enabled() is True
    assert out.startswith(TRACE_PREFIX)
    assert out.rstrip().endswith(": shown")


def test_fatal_error_exits_with_status_one(capsys):
    logger = init_default_logging(False)
    with pytest.raises(SystemExit) as info:
        logger.fatal_error("fatal")
    assert info.value.code == 1
    err = capsys.readouterr().err
    assert err.startswith(ERROR_PREFIX)
    assert "fatal" in err


def test_roll_file_logging_writes_lines(tmp_path):
    path = tmp_path / "app.log"
    logger = init_roll_file_logging(str(path), True)
    logger.trace("t1")
    logger.info("i1")
    logger.warning("w1")
    logger.error("e1")
    logger.clear()
    lines = path.read_text(encoding="utf-8").splitlines()
    assert [line[: len(INFO_PREFIX)] for line in lines] == [
        TRACE_PREFIX,
        INFO_PREFIX,
        WARNING_PREFIX,
        ERROR_PREFIX,
    ]
    assert lines[1].endswith(": i1")
    assert "test_logsetup.py:" in lines[3]


def test_roll_file_logging_appends(tmp_path):
    path = tmp_path / "app.log"
    first = init_roll_file_logging(str(path), False)
    first.info("one")
    first.clear()
    second = init_roll_file_logging(str(path), False)
    second.info("two")
    second.trace("never")
    second.clear()
    lines = path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 2
    assert lines[0].endswith(": one")
    assert lines[1].endswith(": two")


def test_roll_file_logging_bad_path_raises(tmp_path):
    with pytest.raises(OSError):
        init_roll_file_logging(str(tmp_path / "missing" / "app.log"), False)


def test_roll_file_rolls_over_and_compresses(tmp_path):
    path = tmp_path / "app.log"
    logger = init_roll_file_logging(str(path), False)
    logger.info("x" * (6 * 1024 * 1024))
    logger.info("after")
    logger.clear()
    backup = tmp_path / "app.log.1.gz"
    assert backup.exists()
    with gzip.open(backup, "rt", encoding="utf-8") as handle:
        content = handle.read()
    assert content == "" or content.startswith(INFO_PREFIX)
    assert path.read_text(encoding="utf-8").rstrip().endswith(": after")


def test_level_logger_clear_stops_output(capsys):
    logger = init_default_logging(False)
    logger.clear()
    logger.info("gone")
    assert capsys.readouterr().out == ""
    assert isinstance(logger, LevelLogger)