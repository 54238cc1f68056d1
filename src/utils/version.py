"""Version Utilities Module."""

from functools import lru_cache
from pathlib import Path

import tomlkit

__all__ = ["get_git_hash", "get_pyproject_version"]

ROOT_DIR = Path(__file__).resolve().parent.parent.parent


@lru_cache(maxsize=1)
def get_pyproject_version() -> str:
    """Get AniShelf's version from the pyproject.toml file.

    Returns:
        str: AniShelf's version, or "unknown" if it cannot be determined
    """
    toml_file = ROOT_DIR / "pyproject.toml"
    if not toml_file.is_file():
        return "unknown"

    with toml_file.open("r", encoding="utf-8") as f:
        toml_data = tomlkit.load(f)

    project = toml_data.get("project", {})
    return str(project.get("version", "unknown"))


@lru_cache(maxsize=1)
def get_git_hash() -> str:
    """Get the commit hash of the checked out AniShelf repository.

    Returns:
        str: The current commit hash, or "unknown" outside a git checkout
    """
    git_dir_path = ROOT_DIR / ".git"
    head_file = git_dir_path / "HEAD"
    if not head_file.is_file():
        return "unknown"

    head = head_file.read_text().strip()
    if not head.startswith("ref: refs/heads/"):
        return head or "unknown"  # detached HEAD holds the hash itself

    ref_path = git_dir_path / head.removeprefix("ref: ")
    if not ref_path.is_file():
        return "unknown"
    return ref_path.read_text().strip()
