"""AniShelf: anime library catalog reconciliation and metadata refresh."""

from src.utils.logging import Logger, get_logger
from src.utils.version import get_git_hash, get_pyproject_version

__license__ = "MIT"
__version__ = get_pyproject_version()
__git_hash__ = get_git_hash()

ANISHELF_HEADER = f"""
+-------------------------------------------------------------------------------+
|                               A N I S H E L F                                 |
+-------------------------------------------------------------------------------+
|                                                                               |
|  Version: {__version__:<68}|
|  Git Hash: {__git_hash__:<67}|
|  License: {__license__:<68}|
|                                                                               |
+-------------------------------------------------------------------------------+
""".strip()

log: Logger = get_logger()
