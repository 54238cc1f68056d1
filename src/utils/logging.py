"""Logging utilities module."""

import logging
import re
import sys
from functools import lru_cache
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import ClassVar

import colorama
from colorama import Fore, Style

__all__ = ["CleanFormatter", "ColorFormatter", "Logger", "get_logger"]

# Markers understood by both formatters:
#   $$'value'$$  -> highlighted quoted value
#   $${a: b}$$   -> dimmed structured context
QUOTED_PATTERN = re.compile(r"\$\$'((?:[^']|'(?!\$\$))*)'\$\$")
BRACED_PATTERN = re.compile(r"\$\$\{(.*?)\}\$\$")

LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class ColorFormatter(logging.Formatter):
    """Formatter that adds terminal colors to log messages.

    Levels are colored by severity, quoted markers are highlighted in light blue
    and braced markers are dimmed.
    """

    COLORS: ClassVar[dict[str, str]] = {
        "DEBUG": Fore.CYAN,
        "INFO": Fore.GREEN,
        "SUCCESS": Fore.GREEN + Style.BRIGHT,
        "WARNING": Fore.YELLOW,
        "ERROR": Fore.RED,
        "CRITICAL": Fore.RED + Style.BRIGHT,
    }

    def format(self, record: logging.LogRecord) -> str:
        """Formats a log record with ANSI color codes.

        Args:
            record (logging.LogRecord): Log record to format

        Returns:
            str: Color-formatted log message
        """
        orig_msg = record.msg
        orig_levelname = record.levelname
        record.levelname = (
            f"{self.COLORS.get(record.levelname, '')}{record.levelname}"
            f"{Style.RESET_ALL}"
        )

        if isinstance(record.msg, str):
            record.msg = QUOTED_PATTERN.sub(
                f"{Fore.LIGHTBLUE_EX}'\\1'{Style.RESET_ALL}", record.msg
            )
            record.msg = BRACED_PATTERN.sub(
                f"{Style.DIM}{{\\1}}{Style.RESET_ALL}", record.msg
            )

        try:
            return super().format(record)
        finally:
            record.levelname = orig_levelname
            record.msg = orig_msg


class CleanFormatter(logging.Formatter):
    """Formatter that strips color markers from log messages.

    Used for file output and for consoles without ANSI support.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Formats a log record by removing color markers."""
        if not isinstance(record.msg, str):
            return super().format(record)

        orig_msg = record.msg
        record.msg = BRACED_PATTERN.sub("{\\1}", QUOTED_PATTERN.sub("'\\1'", orig_msg))
        try:
            return super().format(record)
        finally:
            record.msg = orig_msg


def _supports_color() -> bool:
    """Return whether stdout is an ANSI capable terminal."""
    if not (hasattr(sys.stdout, "isatty") and sys.stdout.isatty()):
        return False
    try:
        if sys.platform == "win32":
            colorama.just_fix_windows_console()
        else:
            colorama.init()
    except (AttributeError, OSError):
        return False
    return True


class Logger(logging.Logger):
    """Logger with a SUCCESS level and class name prefixing."""

    SUCCESS = logging.INFO + 5

    def __init__(self, name, level=logging.NOTSET):
        """Initialize the logger and register the SUCCESS level name."""
        super().__init__(name, level)

        if logging.getLevelName(self.SUCCESS) != "SUCCESS":
            logging.addLevelName(self.SUCCESS, "SUCCESS")

    def _log(
        self,
        level,
        msg,
        args,
        exc_info=None,
        extra=None,
        stack_info=False,
        stacklevel=1,
    ):
        """Prefix messages logged from inside a method with the owning class name."""
        try:
            # 0: _log, 1: info/debug/success/..., 2: the caller
            frame = sys._getframe(2)
            class_name = None
            if "self" in frame.f_locals:
                obj = frame.f_locals["self"]
                if not isinstance(obj, logging.Logger):
                    class_name = obj.__class__.__name__
            elif "cls" in frame.f_locals:
                cls = frame.f_locals["cls"]
                if isinstance(cls, type):
                    class_name = cls.__name__

            if class_name and isinstance(msg, str):
                msg = f"{class_name}: {msg}"
        except (ValueError, KeyError, AttributeError):
            pass

        super()._log(
            level,
            msg,
            args,
            exc_info=exc_info,
            extra=extra,
            stack_info=stack_info,
            stacklevel=stacklevel + 1,
        )

    def success(self, msg, *args, **kwargs):
        """Log a message with SUCCESS level."""
        self.log(self.SUCCESS, msg, *args, **kwargs)

    def setup(self, log_level: str, log_dir: str | None = None) -> None:
        """Configure console output and, when a directory is given, a log file.

        Args:
            log_level (str): Logging level ('DEBUG', 'INFO', 'SUCCESS', etc.)
            log_dir (str | None, optional): Directory where log files will be stored.
        """
        log_level = str(log_level).upper()
        if log_level == "SUCCESS":
            log_level_literal = self.SUCCESS
        else:
            log_level_literal = getattr(logging, log_level)

        self.setLevel(log_level_literal)

        for handler in self.handlers[:]:
            self.removeHandler(handler)
            handler.close()

        log_format = (
            "%(asctime)s - %(name)s - %(levelname)s\t%(filename)s:%(lineno)d\t"
            "%(message)s"
            if log_level_literal <= logging.DEBUG
            else "%(asctime)s - %(name)s - %(levelname)s\t%(message)s"
        )

        console_handler = logging.StreamHandler()
        console_formatter_cls = ColorFormatter if _supports_color() else CleanFormatter
        console_handler.setFormatter(
            console_formatter_cls(log_format, datefmt=DATE_FORMAT)
        )
        console_handler.setLevel(log_level_literal)
        self.addHandler(console_handler)

        if log_dir is None:
            return

        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            log_path / f"{self.name}.{log_level}.log",
            maxBytes=LOG_FILE_MAX_BYTES,
            backupCount=LOG_FILE_BACKUPS,
            encoding="utf-8",
        )
        file_handler.setFormatter(CleanFormatter(log_format, datefmt=DATE_FORMAT))
        file_handler.setLevel(log_level_literal)
        self.addHandler(file_handler)


logging.setLoggerClass(Logger)


def _get_logger(
    log_name: str, log_level: str = "INFO", log_dir: str | Path | None = None
) -> Logger:
    """Get a configured instance of Logger.

    Args:
        log_name (str): Name of the logger and base name for log file.
        log_level (str): Logging level. Defaults to "INFO".
        log_dir (str | Path | None): Directory where log files will be stored.

    Returns:
        Logger: Configured logger instance
    """
    logger = logging.getLogger(log_name)
    if not isinstance(logger, Logger):
        logger = Logger(log_name)

    logger.setup(log_level, str(log_dir) if log_dir is not None else None)
    return logger


@lru_cache(maxsize=1)
def get_logger() -> Logger:
    """Get the main application logger, configured from the app settings."""
    from src.config.settings import get_config

    config = get_config()

    return _get_logger(
        log_name="AniShelf",
        log_level=config.log_level,
        log_dir=config.data_path / "logs",
    )
