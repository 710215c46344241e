"""
Bookmark service: the public facade over store, metadata and projection.

Commands go down (add/delete/restore -> store); state comes back up as
store snapshots, which are reconciled into the metadata side-table and
projected into the view every subscriber receives.

Example:
    >>> async with BookmarkService(MemoryStore()) as service:
    ...     feed = service.observe()
    ...     await anext(feed)                 # [] - the current view
    ...     await service.add("My Site", "mysite.org", "Work")
    ...     view = await anext(feed)          # the new bookmark, category Work
"""
import asyncio
import contextlib
import logging
from collections import OrderedDict
from dataclasses import dataclass
from enum import Enum
from typing import AsyncIterator, Dict, List, Optional, Union

from linkshelf.config import LinkshelfConfig, get_config
from linkshelf.constants import DEFAULT_CATEGORY, DEFAULT_GRACE_PERIOD, RESTORE_HISTORY
from linkshelf.errors import EmptyField, InvalidUrl, UnknownCategory
from linkshelf.metadata import Metadata, MetadataTable, Priority, parse_priority, resolve_category
from linkshelf.models import Bookmark
from linkshelf.projection import Criteria, ProjectedBookmark, SortMode, project
from linkshelf.store import BookmarkStore, open_store
from linkshelf.urls import normalize_url

logger = logging.getLogger(__name__)

# Queued to each subscriber by close(); ends its observe() iterator
_CLOSED = object()


class AddStatus(Enum):
    """Outcome of BookmarkService.add()."""
    ADDED = "added"
    EMPTY_FIELD = "empty_field"
    INVALID_URL = "invalid_url"
    INVALID_CATEGORY = "invalid_category"


@dataclass(frozen=True)
class AddResult:
    """
    Result of an add attempt.

    Rejected input never reaches the store; the status says why, and
    detail carries the offending value (or field name for EMPTY_FIELD).
    """
    status: AddStatus
    bookmark: Optional[Bookmark] = None
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.status is AddStatus.ADDED

    def raise_for_status(self) -> None:
        """Raise the matching LinkshelfError if the add was rejected."""
        if self.status is AddStatus.EMPTY_FIELD:
            raise EmptyField(self.detail)
        if self.status is AddStatus.INVALID_URL:
            raise InvalidUrl(self.detail)
        if self.status is AddStatus.INVALID_CATEGORY:
            raise UnknownCategory(self.detail)


class BookmarkService:
    """
    Coordinates the store, the metadata side-table and the live view.

    One upstream task follows the store while at least one observe()
    iterator is open; it is paused grace_period seconds after the last one
    closes. The canonical list and metadata survive the pause.
    """

    def __init__(
        self,
        store: BookmarkStore,
        criteria: Optional[Criteria] = None,
        grace_period: float = DEFAULT_GRACE_PERIOD,
        restore_history: int = RESTORE_HISTORY,
        default_category: str = DEFAULT_CATEGORY
    ):
        self.store = store
        self.metadata = MetadataTable()
        self.grace_period = grace_period
        self.default_category = resolve_category(default_category)
        self._criteria = criteria or Criteria()
        self._bookmarks: List[Bookmark] = []
        self._loaded = False
        self._subscribers: List[asyncio.Queue] = []
        self._upstream: Optional[asyncio.Task] = None
        self._stop_handle: Optional[asyncio.TimerHandle] = None
        self._add_lock = asyncio.Lock()
        self._restore_history = restore_history
        self._deleted: "OrderedDict[int, Metadata]" = OrderedDict()

    @classmethod
    def from_config(
        cls,
        config: Optional[LinkshelfConfig] = None,
        store: Optional[BookmarkStore] = None
    ) -> "BookmarkService":
        """Build a service (and its store, unless given) from configuration."""
        config = config or get_config()
        sort = SortMode.parse(config.default_sort)
        criteria = Criteria(sort=sort, reverse=config.newest_first and sort is SortMode.RECENCY)
        return cls(
            store or open_store(config),
            criteria=criteria,
            grace_period=config.subscription_grace_seconds,
            default_category=config.default_category
        )

    async def __aenter__(self) -> "BookmarkService":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # State

    @property
    def criteria(self) -> Criteria:
        return self._criteria

    @property
    def bookmarks(self) -> List[Bookmark]:
        """Canonical list as of the last store snapshot."""
        return list(self._bookmarks)

    @property
    def view(self) -> List[ProjectedBookmark]:
        """Current projection of the canonical list."""
        return project(self._bookmarks, self.metadata.snapshot(), self._criteria)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    @property
    def is_following(self) -> bool:
        """Whether the upstream store feed is live."""
        return self._upstream is not None

    def get(self, bookmark_id: int) -> Optional[ProjectedBookmark]:
        """Bookmark and metadata by id, ignoring the active criteria."""
        for bookmark in self._bookmarks:
            if bookmark.id == bookmark_id:
                return ProjectedBookmark(bookmark, self.metadata.get(bookmark_id) or Metadata())
        return None

    def set_criteria(self, **changes) -> Criteria:
        """
        Change filter/sort settings and re-emit the view.

        Args:
            **changes: Criteria fields (query, category, sort, reverse)
        """
        self._criteria = self._criteria.with_changes(**changes)
        self._publish()
        return self._criteria

    # ------------------------------------------------------------------
    # Live view

    async def observe(self) -> AsyncIterator[List[ProjectedBookmark]]:
        """
        Live, continuously updated projection.

        Yields the current view (once the store has reported at least once),
        then a new view after every store snapshot, metadata edit or criteria
        change. Close the iterator to unsubscribe; it ends by itself when
        the service is closed.

        Raises:
            Exception: whatever broke the upstream store feed
        """
        queue: asyncio.Queue = asyncio.Queue()
        self._subscribers.append(queue)
        self._cancel_stop()
        if self._upstream is None:
            self._start_upstream()
        elif self._loaded:
            queue.put_nowait(self.view)
        try:
            while True:
                item = await queue.get()
                if item is _CLOSED:
                    return
                if isinstance(item, Exception):
                    raise item
                yield item
        finally:
            self._subscribers.remove(queue)
            if not self._subscribers:
                self._schedule_stop()

    async def load(self) -> List[ProjectedBookmark]:
        """
        Pull the store's current list once and reconcile it.

        For one-shot callers that do not keep a subscription open.
        """
        self._apply_snapshot(await self.store.all())
        return self.view

    def _start_upstream(self) -> None:
        logger.debug("Starting bookmark feed")
        self._upstream = asyncio.get_running_loop().create_task(self._follow_store())

    async def _follow_store(self) -> None:
        try:
            async for bookmarks in self.store.observe_all():
                self._apply_snapshot(bookmarks)
        except Exception as e:
            logger.exception("Bookmark feed failed")
            self._upstream = None
            for queue in self._subscribers:
                queue.put_nowait(e)

    def _schedule_stop(self) -> None:
        if self._upstream is None:
            return
        if self.grace_period <= 0:
            self._stop_upstream()
            return
        loop = self._upstream.get_loop()
        self._stop_handle = loop.call_later(self.grace_period, self._stop_upstream)

    def _cancel_stop(self) -> None:
        if self._stop_handle is not None:
            self._stop_handle.cancel()
            self._stop_handle = None

    def _stop_upstream(self) -> None:
        self._stop_handle = None
        if self._subscribers or self._upstream is None:
            return
        logger.debug("No subscribers left, pausing bookmark feed")
        self._upstream.cancel()
        self._upstream = None

    def _apply_snapshot(self, bookmarks: List[Bookmark]) -> None:
        self._bookmarks = list(bookmarks)
        self.metadata.reconcile({bookmark.id for bookmark in self._bookmarks})
        self._loaded = True
        self._publish()

    def _publish(self) -> None:
        if not self._subscribers:
            return
        view = self.view
        for queue in self._subscribers:
            queue.put_nowait(list(view))

    async def close(self) -> None:
        """Stop following the store and end every open observe() iterator."""
        self._cancel_stop()
        for queue in self._subscribers:
            queue.put_nowait(_CLOSED)
        task, self._upstream = self._upstream, None
        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

    # ------------------------------------------------------------------
    # Commands

    async def add(self, title: str, raw_url: str, category: Optional[str] = None) -> AddResult:
        """
        Add a bookmark.

        Empty fields, URLs that do not normalize and unknown categories are
        rejected without touching the store.

        Args:
            title: Display title (trimmed)
            raw_url: URL as typed (trimmed and normalized)
            category: Category label; blank means the default category

        Returns:
            AddResult; on success it holds the stored bookmark
        """
        title = (title or "").strip()
        raw_url = (raw_url or "").strip()
        if not title or not raw_url:
            field_name = "title" if not title else "url"
            logger.info(f"Ignoring add with empty {field_name}")
            return AddResult(AddStatus.EMPTY_FIELD, detail=field_name)

        url = normalize_url(raw_url)
        if url is None:
            logger.info(f"Ignoring add with invalid URL: {raw_url!r}")
            return AddResult(AddStatus.INVALID_URL, detail=raw_url)

        try:
            label = resolve_category(category if category and category.strip() else self.default_category)
        except UnknownCategory:
            logger.info(f"Ignoring add with unknown category: {category!r}")
            return AddResult(AddStatus.INVALID_CATEGORY, detail=category or "")

        async with self._add_lock:
            bookmark_id = await self.store.insert(Bookmark(title=title, url=url))
            if self.metadata.expect(bookmark_id, Metadata(category=label)):
                self._publish()

        return AddResult(AddStatus.ADDED, bookmark=Bookmark(title=title, url=url, id=bookmark_id))

    async def delete(self, bookmark: Bookmark) -> bool:
        """
        Delete a bookmark; its metadata is remembered for restore().

        A bookmark added since the last store snapshot has no table entry
        yet; the metadata expected for it is remembered instead.

        Returns:
            True if the store removed a record, False if none matched
        """
        expected = self.metadata.forget(bookmark.id)
        current = self.metadata.get(bookmark.id) or expected
        if current is not None:
            self._deleted[bookmark.id] = current
            self._deleted.move_to_end(bookmark.id)
            while len(self._deleted) > self._restore_history:
                self._deleted.popitem(last=False)
        return await self.store.delete(bookmark)

    async def restore(self, bookmark: Bookmark) -> int:
        """
        Re-insert a deleted bookmark under its original id.

        The metadata it had when deleted comes back with it. A bookmark
        without an id is stored as a new bookmark.

        Returns:
            The stored id
        """
        remembered = self._deleted.pop(bookmark.id, None)
        bookmark_id = await self.store.insert(bookmark)
        if remembered is not None and self.metadata.expect(bookmark_id, remembered):
            self._publish()
        return bookmark_id

    def set_priority(self, bookmark_id: int, priority: Union[Priority, str]) -> bool:
        """
        Change a bookmark's priority marker.

        Returns:
            True if updated, False if the id is unknown

        Raises:
            UnknownPriority: priority does not name a marker
        """
        updated = self.metadata.update(bookmark_id, priority=parse_priority(priority))
        if updated:
            self._publish()
        return updated

    def set_category(self, bookmark_id: int, category: str) -> bool:
        """
        Change a bookmark's category.

        Returns:
            True if updated, False if the id is unknown

        Raises:
            UnknownCategory: category is not a known label
        """
        updated = self.metadata.update(bookmark_id, category=resolve_category(category))
        if updated:
            self._publish()
        return updated

    def categories(self) -> Dict[str, int]:
        """Number of bookmarks per category."""
        counts: Dict[str, int] = {}
        for bookmark_id in self.metadata:
            label = self.metadata.get(bookmark_id).category
            counts[label] = counts.get(label, 0) + 1
        return counts
