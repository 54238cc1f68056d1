"""Library and scanned file models."""

from __future__ import annotations

from sqlalchemy import Boolean, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models.db.base import Base, TimestampMixin

__all__ = ["LibFile", "Library"]


class Library(TimestampMixin, Base):
    """A scanned root directory."""

    __tablename__ = "library"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    path: Mapped[str] = mapped_column(String, nullable=False)

    files: Mapped[list[LibFile]] = relationship(back_populates="library")


class LibFile(TimestampMixin, Base):
    """A file or directory found inside a library.

    ``path`` is the absolute POSIX parent directory and ``name`` the base name.
    Rows are soft-deleted through ``removed``.
    """

    __tablename__ = "lib_file"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    library_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("library.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    path: Mapped[str] = mapped_column(String, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    is_dir: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    removed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    anime_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("anime.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    library: Mapped[Library] = relationship(back_populates="files")

    __table_args__ = (UniqueConstraint("library_id", "path", "name"),)

    def __repr__(self) -> str:
        return f"<LibFile:{self.id}:{self.path}/{self.name}>"
