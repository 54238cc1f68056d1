"""SQLAlchemy-backed access to the anime catalog tables."""

from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from datetime import datetime
from itertools import batched

from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import DataError, IntegrityError
from sqlalchemy.orm import Session, selectinload
from sqlalchemy.sql import or_, select, update

from src import log
from src.exceptions import (
    AnimeNotFoundError,
    CatalogError,
    DuplicateAnimeError,
    FileReassignError,
    SiteLinkError,
)
from src.models.db.anime import Anime, AnimeSite
from src.models.db.base import utcnow
from src.models.db.housekeeping import Housekeeping
from src.models.db.library import LibFile
from src.models.schemas.anime import AnimeInfo, AnimePayload

__all__ = ["CatalogStore", "stale_site_clause"]


def stale_site_clause(before: datetime):
    """SQL predicate matching site links never refreshed or refreshed by ``before``."""
    return or_(AnimeSite.last_update.is_(None), AnimeSite.last_update <= before)


class CatalogStore:
    """Typed read/write operations against anime, site link and file rows.

    Every method runs in its own short-lived session and commits before
    returning, so each call is an independent unit of work. Integrity and
    data errors are translated into ``CatalogError`` subclasses; anything else
    raised by the database (e.g. it being unreachable) propagates unchanged.
    """

    _SQLITE_SAFE_VARIABLES = 900

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        """Create a store bound to a session factory.

        Args:
            session_factory (Callable[[], Session]): Factory returning new sessions,
                typically a ``sessionmaker``.
        """
        self.session_factory = session_factory

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Yield a new session and close it afterwards."""
        session = self.session_factory()
        try:
            yield session
        finally:
            session.close()

    def create_anime(self, payload: AnimePayload) -> Anime:
        """Insert a new anime row.

        Args:
            payload (AnimePayload): Proposed anime fields; nested sites are ignored.

        Returns:
            Anime: The persisted anime with its assigned key.

        Raises:
            DuplicateAnimeError: If an anime with the same name already exists.
            CatalogError: If the payload is rejected by the database.
        """
        with self.session() as session:
            anime = Anime(**payload.columns())
            session.add(anime)
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise DuplicateAnimeError(
                    f"Anime '{payload.name}' conflicts with an existing entry"
                ) from exc
            except DataError as exc:
                session.rollback()
                raise CatalogError(f"Anime '{payload.name}' was rejected") from exc

            session.refresh(anime)
            return anime

    def get_anime(self, anime_id: int) -> Anime:
        """Return an anime with its site links loaded.

        Raises:
            AnimeNotFoundError: If no anime has the given key.
        """
        with self.session() as session:
            anime = session.execute(
                select(Anime)
                .where(Anime.id == anime_id)
                .options(selectinload(Anime.sites))
            ).scalar_one_or_none()

        if anime is None:
            raise AnimeNotFoundError(f"Anime {anime_id} does not exist")
        return anime

    def upsert_site_link(
        self, site_id: str, site_type: str, anime_id: int
    ) -> AnimeSite:
        """Attach a site link to an anime unless the link already exists.

        The insert and the conflict check happen in a single statement, so two
        concurrent callers can never create duplicate ``(site_id, site_type)``
        rows. An existing link keeps its current owner.

        Args:
            site_id (str): Identifier of the record on the external site.
            site_type (str): Site tag, e.g. ``"Bangumi"``.
            anime_id (int): Anime that should own a newly created link.

        Returns:
            AnimeSite: The created or pre-existing link.

        Raises:
            SiteLinkError: If the link cannot be written (e.g. unknown anime).
        """
        with self.session() as session:
            stmt = (
                sqlite_insert(AnimeSite)
                .values(site_id=site_id, site_type=site_type, anime_id=anime_id)
                .on_conflict_do_nothing(index_elements=["site_id", "site_type"])
            )
            try:
                session.execute(stmt)
                session.commit()
            except (IntegrityError, DataError) as exc:
                session.rollback()
                raise SiteLinkError(
                    f"Could not attach {site_type} {site_id} to anime {anime_id}"
                ) from exc

            site = session.execute(
                select(AnimeSite).where(
                    AnimeSite.site_id == site_id,
                    AnimeSite.site_type == site_type,
                )
            ).scalar_one()

        if site.anime_id != anime_id:
            log.debug(
                f"Site link $$'{site_type} {site_id}'$$ already belongs to anime "
                f"$${{anime_id: {site.anime_id}}}$$; leaving it unchanged"
            )
        return site

    def bulk_reassign_files(self, file_ids: Iterable[int], anime_id: int) -> int:
        """Associate library files with an anime.

        Only files that are not removed and not already associated with
        ``anime_id`` are touched, so repeating a call reports zero updates.

        Args:
            file_ids (Iterable[int]): Identifiers of the files to reassign.
            anime_id (int): Target anime key.

        Returns:
            int: Number of file rows actually updated.

        Raises:
            FileReassignError: If the update is rejected (e.g. unknown anime).
        """
        ids = list(dict.fromkeys(file_ids))
        if not ids:
            return 0

        count = 0
        with self.session() as session:
            try:
                for chunk in batched(ids, self._SQLITE_SAFE_VARIABLES, strict=False):
                    result = session.execute(
                        update(LibFile)
                        .where(
                            LibFile.id.in_(chunk),
                            LibFile.removed.is_(False),
                            or_(
                                LibFile.anime_id.is_(None),
                                LibFile.anime_id != anime_id,
                            ),
                        )
                        .values(anime_id=anime_id)
                        .execution_options(synchronize_session=False)
                    )
                    count += result.rowcount or 0
                session.commit()
            except (IntegrityError, DataError) as exc:
                session.rollback()
                raise FileReassignError(
                    f"Could not associate {len(ids)} file(s) with anime {anime_id}"
                ) from exc

        return count

    def find_anime_with_stale_sites(self, before: datetime) -> list[Anime]:
        """Return anime having at least one site link that is stale at ``before``.

        The returned anime carry all of their site links, fresh ones included.
        """
        with self.session() as session:
            return list(
                session.execute(
                    select(Anime)
                    .where(Anime.sites.any(stale_site_clause(before)))
                    .options(selectinload(Anime.sites))
                    .order_by(Anime.id)
                )
                .scalars()
                .all()
            )

    def find_anime_by_site(self, site_id: str, site_type: str) -> list[Anime]:
        """Return every anime linked to the given external record."""
        with self.session() as session:
            return list(
                session.execute(
                    select(Anime)
                    .join(Anime.sites)
                    .where(
                        AnimeSite.site_id == site_id, AnimeSite.site_type == site_type
                    )
                    .options(selectinload(Anime.sites))
                    .order_by(Anime.id)
                )
                .scalars()
                .unique()
                .all()
            )

    def apply_site_info(
        self,
        site_id: str,
        site_type: str,
        info: AnimeInfo,
        updated_at: datetime | None = None,
    ) -> int:
        """Write refreshed metadata to every anime linked to an external record.

        Also stamps the matching site links with ``updated_at`` (now by default).

        Returns:
            int: Number of anime updated.

        Raises:
            AnimeNotFoundError: If no link exists for the record any more.
            CatalogError: If the new values are rejected by the database.
        """
        updated_at = updated_at or utcnow()
        values = info.columns()

        with self.session() as session:
            sites = (
                session.execute(
                    select(AnimeSite)
                    .where(
                        AnimeSite.site_id == site_id, AnimeSite.site_type == site_type
                    )
                    .options(selectinload(AnimeSite.anime))
                )
                .scalars()
                .all()
            )
            if not sites:
                raise AnimeNotFoundError(
                    f"No anime is linked to {site_type} {site_id}"
                )

            for site in sites:
                for column, value in values.items():
                    setattr(site.anime, column, value)
                site.last_update = updated_at

            try:
                session.commit()
            except (IntegrityError, DataError) as exc:
                session.rollback()
                raise CatalogError(
                    f"Refreshed data for {site_type} {site_id} was rejected"
                ) from exc

        return len(sites)

    def get_state(self, key: str) -> str | None:
        """Return a housekeeping value, or ``None`` if it was never set."""
        with self.session() as session:
            row = session.get(Housekeeping, key)
            return row.value if row else None

    def set_state(self, key: str, value: str | None) -> None:
        """Create or replace a housekeeping value."""
        with self.session() as session:
            session.merge(Housekeeping(key=key, value=value))
            session.commit()
