"""
Exception taxonomy for Linkshelf.

Input problems subclass ValueError so callers that only know about the
standard library still catch them.
"""


class LinkshelfError(Exception):
    """Base class for all Linkshelf errors."""


class InvalidUrl(LinkshelfError, ValueError):
    """Raw URL text could not be normalized into an http/https URL."""

    def __init__(self, raw: str):
        super().__init__(f"Invalid URL: {raw!r}")
        self.raw = raw


class EmptyField(LinkshelfError, ValueError):
    """A required field was empty after trimming."""

    def __init__(self, field_name: str):
        super().__init__(f"{field_name} must not be empty")
        self.field_name = field_name


class UnknownCategory(LinkshelfError, ValueError):
    """Category label is not one of the known categories."""

    def __init__(self, label: str):
        super().__init__(f"Unknown category: {label!r}")
        self.label = label


class UnknownPriority(LinkshelfError, ValueError):
    """Priority name or marker does not map to a Priority."""

    def __init__(self, value: str):
        super().__init__(f"Unknown priority: {value!r}")
        self.value = value


class StoreError(LinkshelfError):
    """The durable store failed to read or write."""
