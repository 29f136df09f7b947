"""Exception types raised by pywikiclient.

Transport failures raised by aiohttp (connection errors, HTTP status errors,
timeouts) are not wrapped and propagate unchanged.
"""

from typing import Any

__all__ = (
    "WikiClientError",
    "SchemaMismatchError",
    "InvalidEditTargetError",
    "DuplicateKeyError",
    "CollectionReadOnlyError",
    "ApiError",
)


class WikiClientError(Exception):
    """Base class of all errors raised by this package."""


class SchemaMismatchError(WikiClientError, ValueError):
    """A JSON node does not have the shape the API is documented to return."""


class InvalidEditTargetError(WikiClientError, LookupError):
    """An edit updates or removes something the entity does not have."""


class DuplicateKeyError(WikiClientError, KeyError):
    """An item with the same key is already in a single-valued collection."""


class CollectionReadOnlyError(WikiClientError, TypeError):
    """A mutator was called on a frozen collection."""


class ApiError(WikiClientError):
    """The MediaWiki API answered with an ``error`` object."""

    def __init__(self, code: str, info: str, details: Any = None):
        super().__init__(f"{code}: {info}")
        self.code = code
        self.info = info
        self.details = details
