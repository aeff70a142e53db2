"""
Elasticsearch query executor.

Executes search, index and update-by-query requests and returns
normalized results. This is the only module that calls the client.
"""

import json
import logging
from typing import Any, Dict, Optional

from elasticsearch import ApiError, Elasticsearch, TransportError

from esmongo.core.errors import BackendError
from esmongo.core.models import Page, SearchRequest
from esmongo.query.update_translator import SCRIPT_LANG

logger = logging.getLogger(__name__)


class ESQueryExecutor:
    """
    Executes requests against one Elasticsearch cluster.

    Implements the IQueryExecutor interface for Elasticsearch.
    """

    def __init__(self, es_client: Elasticsearch, refresh_on_updates: bool = False):
        """
        Initialize Elasticsearch query executor.

        Args:
            es_client: Connected Elasticsearch client
            refresh_on_updates: Refresh the index after every write so the
                next search sees it
        """
        self.es_client = es_client
        self.refresh_on_updates = refresh_on_updates

    def search(self, index: str, request: SearchRequest) -> Page:
        """
        Fetch one page of hits.

        Args:
            index: Name of the index to query
            request: Query, sort, source filter, offset and size

        Returns:
            Page of raw hits with the exact total-match count
        """
        body: Dict[str, Any] = {"query": request.query}
        if request.sort:
            body["sort"] = request.sort
        if request.source is not None:
            body["_source"] = request.source
        body["from"] = request.from_
        body["size"] = request.size
        logger.debug("search %s: %s", index, _dump(body))

        try:
            response = self.es_client.search(
                index=index,
                query=request.query,
                sort=request.sort,
                source=request.source,
                from_=request.from_,
                size=request.size,
                track_total_hits=True,
            )
        except (ApiError, TransportError) as e:
            logger.error("search on index '%s' failed: %s", index, e)
            raise BackendError(f"search on index '{index}' failed: {e}", e) from e

        hits = response["hits"]
        total = hits["total"]["value"] if isinstance(hits["total"], dict) else hits["total"]
        page = Page(hits=list(hits["hits"]), total=total)
        logger.debug(
            "search %s: from=%d size=%d -> %d hits of %d",
            index, request.from_, request.size, len(page.hits), page.total,
        )
        return page

    def index_document(
        self, index: str, body: Dict[str, Any], doc_id: Optional[str] = None
    ) -> str:
        """
        Store one document.

        Args:
            index: Name of the index
            body: Document body without ``_id``
            doc_id: Identifier to store the document under

        Returns:
            Identifier assigned by Elasticsearch
        """
        logger.debug("index %s id=%s: %s", index, doc_id, _dump(body))
        try:
            response = self.es_client.index(
                index=index,
                id=doc_id,
                document=body,
                refresh="true" if self.refresh_on_updates else "false",
            )
        except (ApiError, TransportError) as e:
            logger.error("index into '%s' failed: %s", index, e)
            raise BackendError(f"index into '{index}' failed: {e}", e) from e
        return response["_id"]

    def update_by_query(
        self, index: str, query: Dict[str, Any], script: str
    ) -> None:
        """
        Run a painless script against every document matching a query.

        Args:
            index: Name of the index
            query: Elasticsearch query document
            script: Painless script source
        """
        script_body = {"lang": SCRIPT_LANG, "source": script}
        logger.debug(
            "update_by_query %s: %s", index, _dump({"query": query, "script": script_body})
        )
        try:
            self.es_client.update_by_query(
                index=index,
                query=query,
                script=script_body,
                refresh=self.refresh_on_updates,
            )
        except (ApiError, TransportError) as e:
            logger.error("update_by_query on '%s' failed: %s", index, e)
            raise BackendError(f"update_by_query on '{index}' failed: {e}", e) from e

    def create_index(self, index: str, mappings: Optional[Dict[str, Any]] = None) -> None:
        """Create an index, optionally with explicit mappings."""
        try:
            if mappings:
                self.es_client.indices.create(index=index, mappings=mappings)
            else:
                self.es_client.indices.create(index=index)
        except (ApiError, TransportError) as e:
            logger.error("creating index '%s' failed: %s", index, e)
            raise BackendError(f"creating index '{index}' failed: {e}", e) from e
        logger.info("created index %s", index)

    def delete_index(self, index: str) -> None:
        """Delete an index."""
        try:
            self.es_client.indices.delete(index=index)
        except (ApiError, TransportError) as e:
            logger.error("deleting index '%s' failed: %s", index, e)
            raise BackendError(f"deleting index '{index}' failed: {e}", e) from e
        logger.info("deleted index %s", index)


def _dump(body: Dict[str, Any]) -> str:
    return json.dumps(body, default=str)
