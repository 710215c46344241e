"""
Metadata side-table and its reconciliation with the canonical bookmark list.

Categories and priority markers are UI-only attributes: they live in memory,
keyed by bookmark id, and are never written to the store. Every time the
store emits a new canonical list, reconcile() converges the table onto the
list's id set:

- ids that just appeared get default metadata, then any pending category
  or expected assignment for them
- ids that disappeared are pruned

After a pass the table's keys equal the canonical ids exactly.
"""
import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import AbstractSet, Dict, FrozenSet, Iterator, Mapping, Optional, Union

from linkshelf.constants import CATEGORIES, DEFAULT_CATEGORY
from linkshelf.errors import UnknownCategory, UnknownPriority

logger = logging.getLogger(__name__)


class Priority(Enum):
    """Priority markers, declared in display order (first = shown first)."""
    HOT = "🔥"
    ROCKET = "🚀"
    STAR = "⭐"
    PIN = "📌"
    HEART = "❤️"
    SLEEP = "💤"

    @property
    def rank(self) -> int:
        return _RANKS[self]


_RANKS = {priority: index for index, priority in enumerate(Priority)}
UNRANKED = len(_RANKS)
DEFAULT_PRIORITY = Priority.STAR

# Marker spellings that differ from the enum values
_MARKER_ALIASES = {"❤": Priority.HEART}


def priority_rank(marker: Union[Priority, str, None]) -> int:
    """Sort rank of a marker; unknown or missing markers rank last."""
    if isinstance(marker, Priority):
        return marker.rank
    if marker is None:
        return UNRANKED
    try:
        return parse_priority(marker).rank
    except UnknownPriority:
        return UNRANKED


def parse_priority(value: Union[Priority, str]) -> Priority:
    """
    Resolve a Priority from an enum member, its marker, or its name.

    Examples:
        parse_priority("🔥")    -> Priority.HOT
        parse_priority("sleep") -> Priority.SLEEP
    """
    if isinstance(value, Priority):
        return value
    text = value.strip()
    if text in _MARKER_ALIASES:
        return _MARKER_ALIASES[text]
    try:
        return Priority(text)
    except ValueError:
        pass
    try:
        return Priority[text.upper()]
    except KeyError:
        raise UnknownPriority(value) from None


def resolve_category(label: Optional[str]) -> str:
    """
    Canonical category label for user input.

    Blank input means the default category; known labels match
    case-insensitively.

    Raises:
        UnknownCategory: label is not one of CATEGORIES
    """
    if label is None or not label.strip():
        return DEFAULT_CATEGORY
    wanted = label.strip().lower()
    for category in CATEGORIES:
        if category.lower() == wanted:
            return category
    raise UnknownCategory(label)


@dataclass(frozen=True)
class Metadata:
    """Per-bookmark UI attributes."""
    priority: Priority = DEFAULT_PRIORITY
    category: str = DEFAULT_CATEGORY


@dataclass(frozen=True)
class ReconcileResult:
    """What a reconciliation pass changed."""
    added: FrozenSet[int] = field(default_factory=frozenset)
    removed: FrozenSet[int] = field(default_factory=frozenset)
    pending_consumed: bool = False

    @property
    def changed(self) -> bool:
        return bool(self.added or self.removed or self.pending_consumed)


class MetadataTable:
    """
    In-memory mapping from bookmark id to Metadata.

    Holds two kinds of deferred assignment:

    - pending_category: one-shot slot, applied to every id that appears in the
      next pass with at least one new id, then cleared
    - expectations: metadata registered for a specific id the store has
      acknowledged but not yet emitted
    """

    def __init__(self):
        self._entries: Dict[int, Metadata] = {}
        self._known_ids: FrozenSet[int] = frozenset()
        self._expected: Dict[int, Metadata] = {}
        self.pending_category: Optional[str] = None

    def __contains__(self, bookmark_id: object) -> bool:
        return bookmark_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[int]:
        return iter(self._entries)

    @property
    def known_ids(self) -> FrozenSet[int]:
        """Canonical ids seen by the last reconciliation pass."""
        return self._known_ids

    def get(self, bookmark_id: int) -> Optional[Metadata]:
        return self._entries.get(bookmark_id)

    def snapshot(self) -> Mapping[int, Metadata]:
        """Copy of the current entries, safe to hand to the projection."""
        return dict(self._entries)

    def set_pending(self, category: Optional[str]) -> None:
        """Arm the one-shot category slot for the next new bookmark(s)."""
        self.pending_category = category

    def expect(self, bookmark_id: int, metadata: Metadata) -> bool:
        """
        Register metadata for a bookmark the store has just written.

        The value is held until the id appears as new in a reconciliation
        pass. If the id is already known it is also applied at once; the
        held copy then covers a removal that has not been reconciled yet
        (delete followed by restore) and is dropped by the next pass that
        sees the id unchanged.

        Returns:
            True if the table changed immediately
        """
        self._expected[bookmark_id] = metadata
        if bookmark_id in self._known_ids:
            self._entries[bookmark_id] = metadata
            return True
        return False

    def forget(self, bookmark_id: int) -> Optional[Metadata]:
        """
        Drop the expectation held for a bookmark that is being deleted.

        Returns:
            The expected metadata, or None if nothing was held
        """
        return self._expected.pop(bookmark_id, None)

    def update(
        self,
        bookmark_id: int,
        priority: Optional[Priority] = None,
        category: Optional[str] = None
    ) -> bool:
        """
        Change the metadata of a known bookmark.

        Returns:
            True if updated, False if the id is not in the table
        """
        current = self._entries.get(bookmark_id)
        if current is None:
            return False
        changes = {}
        if priority is not None:
            changes["priority"] = priority
        if category is not None:
            changes["category"] = category
        self._entries[bookmark_id] = replace(current, **changes)
        return True

    def reconcile(
        self,
        canonical_ids: AbstractSet[int],
        pending_category: Optional[str] = None
    ) -> ReconcileResult:
        """
        Converge the table onto a new canonical id set.

        Args:
            canonical_ids: ids of every bookmark in the latest store emission
            pending_category: one-shot category for new ids; falls back to
                the table's own pending slot when None

        Returns:
            ReconcileResult describing the pass
        """
        canonical = frozenset(canonical_ids)
        new_ids = canonical - self._known_ids

        for bookmark_id in canonical:
            if bookmark_id not in self._entries:
                self._entries[bookmark_id] = Metadata()

        pending = pending_category if pending_category is not None else self.pending_category
        consumed = False
        if pending is not None and new_ids:
            for bookmark_id in new_ids:
                self._entries[bookmark_id] = replace(self._entries[bookmark_id], category=pending)
            self.pending_category = None
            consumed = True

        for bookmark_id in new_ids.intersection(self._expected):
            self._entries[bookmark_id] = self._expected.pop(bookmark_id)
        for bookmark_id in (canonical - new_ids).intersection(self._expected):
            del self._expected[bookmark_id]

        removed = frozenset(self._entries.keys() - canonical)
        for bookmark_id in removed:
            del self._entries[bookmark_id]

        self._known_ids = canonical

        if new_ids or removed:
            logger.debug(
                f"Reconciled {len(canonical)} bookmarks: "
                f"{len(new_ids)} new, {len(removed)} pruned"
                + (f", pending category '{pending}' applied" if consumed else "")
            )

        return ReconcileResult(added=new_ids, removed=removed, pending_consumed=consumed)
