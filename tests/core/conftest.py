"""Fixtures backing core tests with an in-memory catalog."""

from collections.abc import Callable, Iterator
from types import SimpleNamespace

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from src.config.database import set_sqlite_pragmas
from src.core.store import CatalogStore
from src.models.db import Anime, Base, LibFile, Library


@pytest.fixture
def session_factory() -> Iterator[sessionmaker[Session]]:
    """Yield a session factory bound to a fresh in-memory SQLite database."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    set_sqlite_pragmas(engine)
    Base.metadata.create_all(engine)

    yield sessionmaker(bind=engine, expire_on_commit=False, future=True)

    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def store(session_factory: sessionmaker[Session]) -> CatalogStore:
    """Return a catalog store over the in-memory database."""
    return CatalogStore(session_factory)


@pytest.fixture
def library(session_factory: sessionmaker[Session]) -> Library:
    """Create the library that test files belong to."""
    with session_factory() as session:
        lib = Library(name="Anime", path="/media/anime")
        session.add(lib)
        session.commit()
        return lib


@pytest.fixture
def make_files(
    session_factory: sessionmaker[Session], library: Library
) -> Callable[..., list[int]]:
    """Return a helper creating LibFile rows and returning their IDs."""

    def _make(
        *names: str,
        path: str = "/media/anime",
        removed: bool = False,
        is_dir: bool = False,
        anime_id: int | None = None,
    ) -> list[int]:
        with session_factory() as session:
            files = [
                LibFile(
                    library_id=library.id,
                    path=path,
                    name=name,
                    is_dir=is_dir,
                    removed=removed,
                    anime_id=anime_id,
                )
                for name in names
            ]
            session.add_all(files)
            session.commit()
            return [f.id for f in files]

    return _make


@pytest.fixture
def make_anime(session_factory: sessionmaker[Session]) -> Callable[..., Anime]:
    """Return a helper inserting an anime row directly."""

    def _make(name: str, **columns) -> Anime:
        with session_factory() as session:
            anime = Anime(name=name, **columns)
            session.add(anime)
            session.commit()
            return anime

    return _make


@pytest.fixture
def file_owners(
    session_factory: sessionmaker[Session],
) -> Callable[[list[int]], dict[int, int | None]]:
    """Return a helper mapping file IDs to the anime they are associated with."""

    def _owners(file_ids: list[int]) -> dict[int, int | None]:
        with session_factory() as session:
            return {
                file_id: session.get(LibFile, file_id).anime_id
                for file_id in file_ids
            }

    return _owners


class FakeResponse:
    """Canned stand-in for an aiohttp response context."""

    def __init__(self, body=None, status=200, headers=None, error=None):
        self.body = body
        self.status = status
        self.headers = headers or {}
        self.error = error

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False

    def raise_for_status(self) -> None:
        return None

    async def text(self) -> str:
        return ""

    async def json(self):
        if self.error is not None:
            raise self.error
        return self.body


class FakeSession:
    """Hands out queued responses in request order."""

    closed = False

    def __init__(self, responses: list[dict]):
        self.responses = [FakeResponse(**response) for response in responses]
        self.urls: list[str] = []
        self.sleeps: list[float] = []

    def get(self, url: str, **_) -> FakeResponse:
        self.urls.append(url)
        return self.responses.pop(0)

    post = get

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def stub_http(monkeypatch: pytest.MonkeyPatch) -> Callable[..., FakeSession]:
    """Return a helper that answers a client's requests with canned responses.

    Each response is given as keyword arguments for ``FakeResponse``. Retry
    delays are recorded on the returned session instead of being slept.
    """

    def _stub(client, *responses: dict) -> FakeSession:
        session = FakeSession(list(responses))

        async def _get_session():
            return session

        async def _sleep(delay: float) -> None:
            session.sleeps.append(delay)

        monkeypatch.setattr(client, "_get_session", _get_session)
        for module in ("src.core.bangumi", "src.core.anilist"):
            monkeypatch.setattr(f"{module}.asyncio", SimpleNamespace(sleep=_sleep))
        return session

    return _stub
