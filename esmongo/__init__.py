"""
esmongo - document-database driver API on top of Elasticsearch.

Main entry point for connecting and getting collection handles.
"""

from esmongo.client import Db, MongoClient
from esmongo.collection import Collection
from esmongo.config import ClientOptions
from esmongo.core.errors import (
    BackendError,
    EsMongoError,
    InvalidStateError,
    TranslationError,
    UnsupportedOperationError,
    UnsupportedOptionError,
)
from esmongo.execution.cursor import DEFAULT_PAGE_SIZE, Cursor, FilterCursor, ResultList

__all__ = [
    "MongoClient",
    "Db",
    "Collection",
    "ClientOptions",
    "Cursor",
    "FilterCursor",
    "ResultList",
    "DEFAULT_PAGE_SIZE",
    "EsMongoError",
    "TranslationError",
    "UnsupportedOperationError",
    "UnsupportedOptionError",
    "InvalidStateError",
    "BackendError",
]
