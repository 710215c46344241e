"""
Linkshelf - reactive bookmark manager

A small bookmark engine: a durable, observable store of (title, url) pairs,
plus in-memory categories and priority markers, projected into a live,
filtered and sorted view.

Design Principles:
- The store is the source of truth; everything else is derived from its snapshots
- Categories and priority markers are session state, never persisted
- The view is a pure function of bookmarks, metadata and criteria
- SQLite by default, any SQLAlchemy connection string works

Example Usage:
    >>> from linkshelf import BookmarkService, MemoryStore
    >>> async with BookmarkService(MemoryStore()) as service:
    ...     result = await service.add("Example", "example.com", "Work")
    ...     view = await service.load()
"""

__version__ = "0.1.0"
__author__ = "Linkshelf Contributors"

# Service API
from linkshelf.service import BookmarkService, AddResult, AddStatus

# Stores
from linkshelf.store import BookmarkStore, MemoryStore, SqlStore, open_store

# Configuration
from linkshelf.config import LinkshelfConfig, get_config, init_config

# Models
from linkshelf.models import Bookmark
from linkshelf.metadata import Metadata, MetadataTable, Priority
from linkshelf.projection import Criteria, ProjectedBookmark, SortMode, project

# Utilities
from linkshelf.urls import normalize_url, extract_domain

# Errors
from linkshelf.errors import (
    LinkshelfError,
    InvalidUrl,
    EmptyField,
    UnknownCategory,
    UnknownPriority,
    StoreError,
)

__all__ = [
    "BookmarkService",
    "AddResult",
    "AddStatus",
    "BookmarkStore",
    "MemoryStore",
    "SqlStore",
    "open_store",
    "LinkshelfConfig",
    "get_config",
    "init_config",
    "Bookmark",
    "Metadata",
    "MetadataTable",
    "Priority",
    "Criteria",
    "ProjectedBookmark",
    "SortMode",
    "project",
    "normalize_url",
    "extract_domain",
    "LinkshelfError",
    "InvalidUrl",
    "EmptyField",
    "UnknownCategory",
    "UnknownPriority",
    "StoreError",
]
