"""
Collection facade.

Binds the query translator, the update translator and the paginated
cursor to one index.
"""

import logging
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional

from bson import ObjectId

from esmongo.core.errors import UnsupportedOptionError
from esmongo.core.interfaces import IQueryExecutor, IQueryTranslator, IUpdateTranslator
from esmongo.core.models import InsertOneResult, UpdateResult
from esmongo.execution.cursor import Cursor, FilterCursor
from esmongo.execution.result_formatter import ID_FIELD, ResultFormatter
from esmongo.query.translator import ESQueryTranslator
from esmongo.query.update_translator import ESUpdateTranslator

if TYPE_CHECKING:
    from esmongo.client import Db

logger = logging.getLogger(__name__)


class Collection:
    """
    Driver-shaped collection backed by one Elasticsearch index.
    """

    def __init__(
        self,
        db: "Db",
        collection_name: str,
        translator: Optional[IQueryTranslator] = None,
        update_translator: Optional[IUpdateTranslator] = None,
    ):
        """
        Initialize a collection handle.

        Args:
            db: Owning database handle
            collection_name: Name of the backing index
            translator: Filter translator, defaults to ``ESQueryTranslator``
            update_translator: Update translator, defaults to
                ``ESUpdateTranslator``
        """
        self._db = db
        self._collection_name = collection_name
        self.translator: IQueryTranslator = translator or ESQueryTranslator()
        self.update_translator: IUpdateTranslator = (
            update_translator or ESUpdateTranslator()
        )

    def find(
        self,
        filter: Optional[Mapping[str, Any]] = None,
        options: Optional[Mapping[str, Any]] = None,
    ) -> Cursor:
        """
        Find documents matching a filter.

        Nothing is sent until the cursor is read.

        Args:
            filter: Filter expression, ``None`` or ``{}`` matches everything
            options: ``projection`` and/or ``es_page_size``

        Returns:
            Lazily paginated cursor
        """
        return FilterCursor(self, filter, options)

    def find_one(
        self,
        filter: Optional[Mapping[str, Any]] = None,
        options: Optional[Mapping[str, Any]] = None,
    ) -> Optional[Dict[str, Any]]:
        """Return the first matching document, or None."""
        results = self.find(filter, options).limit(1).to_array()
        return results[0] if results else None

    def insert_one(
        self,
        doc: Mapping[str, Any],
        options: Optional[Mapping[str, Any]] = None,
    ) -> InsertOneResult:
        """
        Insert one document.

        The caller's ``_id`` is used when present, otherwise a new
        ObjectId is generated. ``doc`` itself is not modified.

        Args:
            doc: Document to insert
            options: Insert options; none are supported

        Returns:
            Acknowledgement carrying the caller's identifier, or the one
            Elasticsearch reports for a generated id
        """
        if options:
            raise UnsupportedOptionError("not implemented: insert with options")

        body = dict(doc)
        caller_id = body.pop(ID_FIELD, None)
        doc_id = ObjectId() if caller_id is None else caller_id

        assigned_id = self.executor.index_document(
            self._collection_name, body, doc_id=str(doc_id)
        )
        if caller_id is not None:
            return InsertOneResult(inserted_id=caller_id)
        return InsertOneResult(inserted_id=ResultFormatter.normalize_id(assigned_id))

    def update_many(
        self,
        filter: Optional[Mapping[str, Any]],
        update: Mapping[str, Any],
        options: Optional[Mapping[str, Any]] = None,
    ) -> UpdateResult:
        """
        Apply a ``$set`` update to every matching document.

        Args:
            filter: Filter expression
            update: ``{"$set": {...}}``
            options: Update options; none are supported (no upsert,
                write concern or array filters)

        Returns:
            Acknowledgement without counts
        """
        if options:
            raise UnsupportedOptionError("not implemented: update with options")

        script = self.update_translator.translate_update(update)
        query = self.translator.translate(filter)
        self.executor.update_by_query(self._collection_name, query, script)
        return UpdateResult()

    def update_one(
        self,
        filter: Optional[Mapping[str, Any]],
        update: Mapping[str, Any],
        options: Optional[Mapping[str, Any]] = None,
    ) -> UpdateResult:
        """
        Same as ``update_many``: every matching document is updated, not
        only the first one.
        """
        return self.update_many(filter, update, options)

    @property
    def executor(self) -> IQueryExecutor:
        return self._db.client.executor

    @property
    def page_size(self) -> int:
        return self._db.client.options.page_size

    @property
    def collection_name(self) -> str:
        return self._collection_name

    @property
    def db(self) -> "Db":
        return self._db
