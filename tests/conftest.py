"""Shared pytest configuration and fixtures for the test suite."""

import atexit
import os
import shutil
import tempfile
from pathlib import Path

import pytest
import yaml

_TEST_DATA_DIR = Path(tempfile.mkdtemp(prefix="anishelf-tests-"))
os.environ["ANISHELF_DATA_PATH"] = str(_TEST_DATA_DIR)
_TEST_CONFIG_FILE = _TEST_DATA_DIR / "config.yaml"

_TEST_CONFIG_FILE.write_text(
    yaml.safe_dump(
        {
            "log_level": "DEBUG",
            "enabled_sites": ["Bangumi", "AniList"],
            "bangumi": {"user_agent": "anishelf-tests/0.0"},
        },
        sort_keys=False,
    ),
    encoding="utf-8",
)

from src.config import settings as settings_module  # noqa: E402

settings_module.get_config.cache_clear()


@pytest.fixture
def data_dir() -> Path:
    """Return the data directory shared by the test session."""
    return _TEST_DATA_DIR


@atexit.register
def _cleanup_test_data_dir() -> None:
    """Remove the temporary test data directory after the test session."""
    shutil.rmtree(_TEST_DATA_DIR, ignore_errors=True)
