"""
Exception hierarchy for the document-API-over-Elasticsearch layer.

Every error raised by the translators, cursors and collection facade
inherits from ``EsMongoError``.
"""

from typing import Any, Dict, Optional


class EsMongoError(Exception):
    """Base exception for all esmongo errors."""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.__class__.__name__,
            "message": str(self),
        }


class TranslationError(EsMongoError):
    """Filter or update document has a shape that cannot be translated."""
    pass


class UnsupportedOperationError(TranslationError):
    """Update operator other than ``$set``."""
    pass


class UnsupportedOptionError(EsMongoError):
    """Recognized option, or option combination, that is not implemented."""
    pass


class InvalidStateError(EsMongoError):
    """Method invoked out of protocol order, or internal invariant broken."""
    pass


class BackendError(EsMongoError):
    """
    Failure reported by the Elasticsearch client.

    The client exception is kept both as ``cause`` and as ``__cause__``.
    """

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.message = message
        self.cause = cause
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        if self.cause is not None:
            data["cause"] = type(self.cause).__name__
        return data
