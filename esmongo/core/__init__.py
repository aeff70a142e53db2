"""Core interfaces, models and errors for esmongo."""

from esmongo.core.interfaces import (
    IQueryTranslator,
    IUpdateTranslator,
    IQueryExecutor,
)
from esmongo.core.models import (
    Page,
    SearchRequest,
    InsertOneResult,
    UpdateResult,
)
from esmongo.core.errors import (
    EsMongoError,
    TranslationError,
    UnsupportedOperationError,
    UnsupportedOptionError,
    InvalidStateError,
    BackendError,
)

__all__ = [
    "IQueryTranslator",
    "IUpdateTranslator",
    "IQueryExecutor",
    "Page",
    "SearchRequest",
    "InsertOneResult",
    "UpdateResult",
    "EsMongoError",
    "TranslationError",
    "UnsupportedOperationError",
    "UnsupportedOptionError",
    "InvalidStateError",
    "BackendError",
]
