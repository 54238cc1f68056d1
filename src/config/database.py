"""Database Configuration for AniShelf."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from src.config.settings import get_config
from src.exceptions import DataPathError, MigrationError

__all__ = ["AniShelfDB", "db"]

ALEMBIC_DIR = Path(__file__).resolve().parent.parent.parent / "alembic"


def set_sqlite_pragmas(engine: Engine) -> None:
    """Enable WAL and foreign key enforcement on every new SQLite connection."""

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, _connection_record):
        cur = dbapi_connection.cursor()
        try:
            cur.execute("PRAGMA journal_mode=WAL;")
            cur.execute("PRAGMA synchronous=NORMAL;")
            cur.execute("PRAGMA foreign_keys=ON;")
        finally:
            cur.close()


class AniShelfDB:
    """Database manager for the AniShelf catalog.

    Handles creation of the SQLite database file, the engine and session
    factory, and runs Alembic migrations to bring the schema up to date.
    """

    def __init__(self, data_path: Path) -> None:
        """Initializes the database manager.

        Args:
            data_path (Path): Directory where the database should be stored

        Raises:
            DataPathError: If data_path exists but is a file instead of a directory
        """
        self.data_path = data_path
        self.db_path = data_path / "anishelf.db"

        self.engine = self._setup_db()
        self.session_factory = sessionmaker(
            bind=self.engine,
            autoflush=False,
            autocommit=False,
            expire_on_commit=False,
            future=True,
        )
        self._do_migrations()

    def _setup_db(self) -> Engine:
        """Creates the data directory and the SQLite engine.

        Returns:
            Engine: Configured SQLAlchemy engine instance
        """
        import src.models  # noqa: F401

        if not self.data_path.exists():
            self.data_path.mkdir(parents=True, exist_ok=True)
        elif self.data_path.is_file():
            raise DataPathError(
                f"The path '{self.data_path}' is a file, please delete it first "
                "or choose a different data folder path"
            )

        engine = create_engine(
            f"sqlite:///{self.db_path}",
            connect_args={"check_same_thread": False},
            pool_pre_ping=True,
            future=True,
        )
        set_sqlite_pragmas(engine)
        return engine

    def _do_migrations(self) -> None:
        """Runs all pending Alembic migrations against the database.

        Raises:
            MigrationError: If Alembic cannot resolve or apply the revisions
        """
        from alembic import command
        from alembic.config import Config
        from alembic.util.exc import CommandError

        cfg = Config()
        cfg.set_main_option("script_location", str(ALEMBIC_DIR))
        cfg.set_main_option("sqlalchemy.url", f"sqlite:///{self.db_path}")

        try:
            command.upgrade(cfg, "head")
        except CommandError as e:
            raise MigrationError(f"Failed to migrate {self.db_path}: {e}") from e


@lru_cache(maxsize=1)
def db() -> AniShelfDB:
    """Return the application's database manager, migrating on first use."""
    return AniShelfDB(get_config().data_path)
