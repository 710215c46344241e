"""
Bookmark value type and its SQLAlchemy record.

The engine works with immutable Bookmark values; BookmarkRecord is only the
on-disk shape used by SqlStore.
"""
from dataclasses import dataclass, replace
from typing import Optional

from sqlalchemy import Integer, String, Index
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from linkshelf.constants import UNSAVED_ID, MAX_TITLE_LENGTH, MAX_URL_LENGTH
from linkshelf.urls import extract_domain


@dataclass(frozen=True)
class Bookmark:
    """
    A saved link.

    Attributes:
        title: Display title, non-empty
        url: Normalized absolute http/https URL
        id: Store-assigned identity; UNSAVED_ID until persisted
    """
    title: str
    url: str
    id: int = UNSAVED_ID

    @property
    def is_persisted(self) -> bool:
        return self.id != UNSAVED_ID

    @property
    def domain(self) -> str:
        """Host of the URL, for grouping and display."""
        return extract_domain(self.url)

    def with_id(self, id: int) -> "Bookmark":
        return replace(self, id=id)

    def to_dict(self) -> dict:
        return {"id": self.id, "title": self.title, "url": self.url}


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


class BookmarkRecord(Base):
    """
    Durable row for a bookmark.

    AUTOINCREMENT keeps SQLite from handing out the id of a deleted row again.
    """
    __tablename__ = 'bookmarks'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(MAX_TITLE_LENGTH), nullable=False)
    url: Mapped[str] = mapped_column(String(MAX_URL_LENGTH), nullable=False, index=True)

    __table_args__ = (
        Index('ix_bookmarks_title', 'title'),
        {'sqlite_autoincrement': True},
    )

    @classmethod
    def from_bookmark(cls, bookmark: Bookmark) -> "BookmarkRecord":
        id: Optional[int] = bookmark.id if bookmark.is_persisted else None
        return cls(id=id, title=bookmark.title, url=bookmark.url)

    def to_bookmark(self) -> Bookmark:
        return Bookmark(title=self.title, url=self.url, id=self.id)

    def __repr__(self):
        return f"<BookmarkRecord(id={self.id}, title='{self.title[:50]}', url='{self.url[:50]}')>"
