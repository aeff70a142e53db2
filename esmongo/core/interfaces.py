"""
Abstract interfaces for the backend adapter and the translators.

These protocols define the contract the collection facade and the cursor
rely on, so the Elasticsearch specifics stay in one place.
"""

from typing import Any, Dict, Optional, Protocol

from esmongo.core.models import Page, SearchRequest


class IQueryTranslator(Protocol):
    """
    Translate a document-driver filter into the backend's query document.
    """

    def translate(self, filter: Dict[str, Any]) -> Dict[str, Any]:
        """
        Convert a filter expression to a backend query document.

        Args:
            filter: Filter expression, e.g. ``{"age": {"$gt": 3}}``

        Returns:
            Backend query document (``match_all`` for an empty filter)
        """
        ...


class IUpdateTranslator(Protocol):
    """Translate an update document into a server-side mutation script."""

    def translate_update(self, update: Dict[str, Any]) -> str:
        """
        Convert an update document to a mutation script.

        Args:
            update: Update document, e.g. ``{"$set": {"name": "x"}}``

        Returns:
            Newline-joined script source
        """
        ...


class IQueryExecutor(Protocol):
    """
    Execute requests against one backend.

    Every method is a single request/response round trip; failures are
    raised as ``BackendError``.
    """

    def search(self, index: str, request: SearchRequest) -> Page:
        """
        Fetch one page of hits.

        Args:
            index: Index (collection) name
            request: Query, sort, source filter, offset and size

        Returns:
            Page of raw hits with the exact total-match count
        """
        ...

    def index_document(
        self, index: str, body: Dict[str, Any], doc_id: Optional[str] = None
    ) -> str:
        """
        Store one document.

        Args:
            index: Index (collection) name
            body: Document body without the identifier
            doc_id: Identifier to store the document under

        Returns:
            Identifier assigned by the backend
        """
        ...

    def update_by_query(
        self, index: str, query: Dict[str, Any], script: str
    ) -> None:
        """
        Run a mutation script against every document matching a query.

        Args:
            index: Index (collection) name
            query: Backend query document
            script: Mutation script source
        """
        ...
