"""
View projection: the filtered, sorted sequence shown to the user.

project() is a pure function of (bookmarks, metadata, criteria). It returns a
fully materialized list every call, so callers can re-run it whenever any
input changes and compare results directly.
"""
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Iterable, List, Mapping, Sequence

from linkshelf.constants import ALL_CATEGORIES, CATEGORIES
from linkshelf.errors import UnknownCategory
from linkshelf.metadata import Metadata, priority_rank
from linkshelf.models import Bookmark


class SortMode(Enum):
    """Available orderings for the projected view."""
    RECENCY = "recency"    # id ascending, oldest first
    TITLE = "title"        # lower-cased title, then id
    PRIORITY = "priority"  # marker rank, then lower-cased title, then id

    @classmethod
    def parse(cls, value: str) -> "SortMode":
        try:
            return cls(value.strip().lower())
        except ValueError:
            choices = ", ".join(mode.value for mode in cls)
            raise ValueError(f"Unknown sort mode: {value!r} (choose from {choices})") from None


@dataclass(frozen=True)
class Criteria:
    """
    Filter and sort settings for a projection.

    Attributes:
        query: Case-insensitive substring matched against title and URL;
            spaces are significant, a blank query matches everything
        category: ALL_CATEGORIES or one category label
        sort: Ordering of the filtered bookmarks (a mode name is accepted)
        reverse: Display hint; project() ignores it, display_order() applies it
    """
    query: str = ""
    category: str = ALL_CATEGORIES
    sort: SortMode = SortMode.RECENCY
    reverse: bool = False

    def __post_init__(self):
        if isinstance(self.sort, str):
            object.__setattr__(self, "sort", SortMode.parse(self.sort))
        elif not isinstance(self.sort, SortMode):
            raise ValueError(f"Unknown sort mode: {self.sort!r}")
        if self.category != ALL_CATEGORIES and self.category not in CATEGORIES:
            raise UnknownCategory(self.category)

    def with_changes(self, **changes) -> "Criteria":
        return replace(self, **changes)


@dataclass(frozen=True)
class ProjectedBookmark:
    """A bookmark paired with the metadata it was projected with."""
    bookmark: Bookmark
    metadata: Metadata

    @property
    def id(self) -> int:
        return self.bookmark.id

    @property
    def title(self) -> str:
        return self.bookmark.title

    @property
    def url(self) -> str:
        return self.bookmark.url


def matches(bookmark: Bookmark, metadata: Metadata, criteria: Criteria) -> bool:
    """Text match AND category match."""
    query = criteria.query.lower()
    text_ok = (
        not query.strip()
        or query in bookmark.title.lower()
        or query in bookmark.url.lower()
    )
    category_ok = (
        criteria.category == ALL_CATEGORIES
        or criteria.category == metadata.category
    )
    return text_ok and category_ok


def sort_key(mode: SortMode) -> Callable[[ProjectedBookmark], tuple]:
    """Key function giving a total order for the sort mode."""
    if mode is SortMode.TITLE:
        return lambda item: (item.title.lower(), item.id)
    if mode is SortMode.PRIORITY:
        return lambda item: (priority_rank(item.metadata.priority), item.title.lower(), item.id)
    return lambda item: (item.id,)


def project(
    bookmarks: Iterable[Bookmark],
    metadata: Mapping[int, Metadata],
    criteria: Criteria
) -> List[ProjectedBookmark]:
    """
    Filter and sort bookmarks for display.

    Args:
        bookmarks: Canonical list from the store
        metadata: Side-table entries keyed by bookmark id
        criteria: Active filter/sort settings

    Returns:
        New list in engine order (see SortMode); use display_order() to
        apply criteria.reverse
    """
    default = Metadata()
    selected = []
    for bookmark in bookmarks:
        meta = metadata.get(bookmark.id, default)
        if matches(bookmark, meta, criteria):
            selected.append(ProjectedBookmark(bookmark, meta))
    selected.sort(key=sort_key(criteria.sort))
    return selected


def display_order(items: Sequence[ProjectedBookmark], criteria: Criteria) -> List[ProjectedBookmark]:
    """Items in the order a consumer should render them."""
    return list(reversed(items)) if criteria.reverse else list(items)
