"""Tests for logging utilities."""

import logging
from logging.handlers import RotatingFileHandler

import colorama
import pytest

import src.utils.logging as logging_module
from src.utils.logging import CleanFormatter, ColorFormatter, Logger


def _record(msg) -> logging.LogRecord:
    return logging.LogRecord(
        name="test",
        level=logging.INFO,
        pathname=__file__,
        lineno=10,
        msg=msg,
        args=(),
        exc_info=None,
    )


def test_color_formatter_applies_color_codes():
    """ColorFormatter colors the level and the marked sections."""
    formatter = ColorFormatter("%(levelname)s:%(message)s")
    original_message = "$$'Show A'$$ $${anime_id: 1}$$ created"
    record = _record(original_message)

    formatted = formatter.format(record)

    assert colorama.Fore.GREEN in formatted
    assert colorama.Fore.LIGHTBLUE_EX in formatted
    assert colorama.Style.DIM in formatted
    assert record.msg == original_message
    assert record.levelname == "INFO"


def test_clean_formatter_removes_markers():
    """CleanFormatter strips markers but keeps their content."""
    formatter = CleanFormatter("%(message)s")
    original_message = "linked $$'Bangumi 123'$$ and $${anime_id: 1}$$"
    record = _record(original_message)

    formatted = formatter.format(record)

    assert formatted == "linked 'Bangumi 123' and {anime_id: 1}"
    assert record.msg == original_message


def test_clean_formatter_handles_non_string_messages():
    """CleanFormatter delegates to the base formatter for non-str messages."""
    formatter = CleanFormatter("%(message)s")

    assert formatter.format(_record({"value": 1})) == "{'value': 1}"


def test_logger_prefixes_class_name():
    """Messages logged from a method are prefixed with the class name."""
    logger = Logger("test")
    logger.setLevel(logging.DEBUG)
    captured = []

    class ListHandler(logging.Handler):
        def emit(self, record):
            captured.append(record.getMessage())

    logger.addHandler(ListHandler())

    class Sample:
        def __init__(self, bound_logger: Logger):
            self.log = bound_logger

        def run(self):
            self.log.info("hello")

    Sample(logger).run()
    logger.info("plain")

    assert captured == ["Sample: hello", "plain"]


def test_logger_success_level_records_message():
    """SUCCESS sits between INFO and WARNING and is named."""
    logger = Logger("test")
    logger.setLevel(Logger.SUCCESS)
    records: list[logging.LogRecord] = []

    class CaptureHandler(logging.Handler):
        def emit(self, record):
            records.append(record)

    logger.addHandler(CaptureHandler())

    logger.info("hidden")
    logger.success("operation complete")

    assert [r.levelname for r in records] == ["SUCCESS"]
    assert logging.INFO < records[0].levelno < logging.WARNING
    assert records[0].getMessage() == "operation complete"


def test_logger_setup_creates_file_and_console_handlers(
    tmp_path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Setup honors the SUCCESS level and configures both handlers."""
    logger = Logger("setup-test")
    monkeypatch.setattr(logging_module, "_supports_color", lambda: True)

    logger.setup("SUCCESS", log_dir=str(tmp_path))

    assert (tmp_path / "setup-test.SUCCESS.log").exists()
    assert logger.level == Logger.SUCCESS
    handlers = logger.handlers[:]
    assert any(isinstance(h, RotatingFileHandler) for h in handlers)
    assert any(isinstance(h.formatter, ColorFormatter) for h in handlers)

    for handler in handlers:
        handler.close()
        logger.removeHandler(handler)


def test_logger_setup_replaces_handlers_without_color(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Repeated setup replaces handlers and falls back to plain output."""
    logger = Logger("color-test")
    logger.addHandler(logging.NullHandler())
    monkeypatch.setattr(logging_module, "_supports_color", lambda: False)

    logger.setup("INFO")

    assert len(logger.handlers) == 1
    assert isinstance(logger.handlers[0].formatter, CleanFormatter)
    for handler in logger.handlers[:]:
        handler.close()
        logger.removeHandler(handler)


def test_application_logger_is_cached():
    """get_logger returns the same configured application logger."""
    first = logging_module.get_logger()

    assert first is logging_module.get_logger()
    assert first.name == "AniShelf"
    assert isinstance(first, Logger)
