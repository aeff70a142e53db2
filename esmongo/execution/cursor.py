"""
Cursors over paginated search results.

``Cursor`` carries the driver-style builder options; ``FilterCursor``
stitches successive Elasticsearch pages into one lazily fetched sequence.
"""

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Iterator, List, Mapping, Optional

from esmongo.core.errors import (
    InvalidStateError,
    TranslationError,
    UnsupportedOptionError,
)
from esmongo.core.interfaces import IQueryExecutor, IQueryTranslator
from esmongo.core.models import Page, SearchRequest
from esmongo.execution.result_formatter import ResultFormatter

if TYPE_CHECKING:
    from esmongo.collection import Collection

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 100

PAGE_SIZE_OPTION = "es_page_size"
PROJECTION_OPTION = "projection"
SUPPORTED_FIND_OPTIONS = (PROJECTION_OPTION, PAGE_SIZE_OPTION)

SORT_DIRECTIONS = {1: "asc", -1: "desc"}


class CursorState(Enum):
    UNSTARTED = "unstarted"
    FETCHING = "fetching"
    HOLDING_PAGE = "holding_page"
    EXHAUSTED = "exhausted"
    CLOSED = "closed"


class ResultList(list):
    """List of records with the total-match count of the query attached."""

    def __init__(self, records: List[Dict[str, Any]] = (), total: Optional[int] = None):
        super().__init__(records)
        self.total = total


class Cursor(ABC):
    """
    Driver-shaped cursor options: sort, skip, limit and projection.

    Builder methods return the cursor so calls can be chained. They can
    only be used before the first page is fetched.
    """

    def __init__(self):
        self._limit: Optional[int] = None
        self._skip: int = 0
        self._sort_key_or_list: Any = None
        self._sort_direction: Optional[int] = None
        self._projection: Optional[Mapping[str, Any]] = None

    def limit(self, value: int) -> "Cursor":
        """Return at most ``value`` records; ``0`` means no limit."""
        self._check_modifiable()
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise UnsupportedOptionError(f"limit must be a non-negative integer: {value!r}")
        self._limit = value or None
        return self

    def skip(self, value: int) -> "Cursor":
        """Skip the first ``value`` matching records."""
        self._check_modifiable()
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise UnsupportedOptionError(f"skip must be a non-negative integer: {value!r}")
        self._skip = value
        return self

    def sort(self, key_or_list: Any, direction: Optional[int] = None) -> "Cursor":
        """
        Set the sort specification.

        Only the ``{field: 1}`` / ``{field: -1}`` form is supported; it is
        validated when the query runs.
        """
        self._check_modifiable()
        self._sort_key_or_list = key_or_list
        self._sort_direction = direction
        return self

    def project(self, value: Mapping[str, Any]) -> "Cursor":
        """Set the projection, ``{field: truthy}`` includes, falsy excludes."""
        self._check_modifiable()
        self._projection = value
        return self

    def to_array(self) -> ResultList:
        """
        Drain the cursor into a list.

        ``close()`` always runs, also when reading raises.
        """
        try:
            records: List[Dict[str, Any]] = []
            while self.has_next():
                record = self.next()
                if record is not None:
                    records.append(record)
            return ResultList(records, total=self.total)
        finally:
            self.close()

    @property
    def total(self) -> Optional[int]:
        return None

    @abstractmethod
    def has_next(self) -> bool:
        """Return True if another record can be read."""

    @abstractmethod
    def next(self) -> Optional[Dict[str, Any]]:
        """Return the next record, or None once exhausted."""

    @abstractmethod
    def close(self) -> None:
        """Release the cursor; further reads are invalid."""

    def _check_modifiable(self) -> None:
        pass

    def __iter__(self) -> Iterator[Dict[str, Any]]:
        return self

    def __next__(self) -> Dict[str, Any]:
        if not self.has_next():
            raise StopIteration
        record = self.next()
        if record is None:
            raise StopIteration
        return record

    def __enter__(self) -> "Cursor":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


class FilterCursor(Cursor):
    """
    Cursor over the hits of one filter, fetched one page at a time.

    Pages are only requested when the held page is drained; nothing is
    prefetched. Every page is an independent search request, so writes
    landing between two fetches can shift results (skipped or repeated
    records). Not safe for concurrent use.
    """

    def __init__(
        self,
        collection: "Collection",
        filter: Optional[Mapping[str, Any]] = None,
        options: Optional[Mapping[str, Any]] = None,
    ):
        """
        Initialize a filter cursor.

        Args:
            collection: Collection whose index is searched
            filter: Filter expression
            options: Find options (``projection``, ``es_page_size``)
        """
        super().__init__()
        self._collection = collection
        self._filter = filter
        self._options: Mapping[str, Any] = options or {}

        self._state = CursorState.UNSTARTED
        self._request: Optional[SearchRequest] = None
        self._page_size: int = collection.page_size
        self._results_offset = 0
        self._page: Optional[Page] = None
        self._read_index = 0
        self._total: Optional[int] = None

    @property
    def state(self) -> CursorState:
        return self._state

    @property
    def total(self) -> Optional[int]:
        """Total-match count reported by the most recent page, if any."""
        return self._total

    @property
    def translator(self) -> IQueryTranslator:
        return self._collection.translator

    @property
    def executor(self) -> IQueryExecutor:
        return self._collection.executor

    def has_next(self) -> bool:
        """Return True if another record can be read, fetching pages as needed."""
        if self._state in (CursorState.CLOSED, CursorState.FETCHING):
            raise InvalidStateError(f"has_next() on a {self._state.value} cursor")

        if self._state == CursorState.UNSTARTED:
            self._request = self._build_request()
            self._fetch(self._results_offset, CursorState.UNSTARTED)

        while self._state == CursorState.HOLDING_PAGE:
            page = self._page
            if page is None:
                raise InvalidStateError("holding_page cursor without a page")

            if self._read_index < len(page.hits):
                return True

            consumed = self._results_offset + self._read_index
            if self._limit is not None and consumed >= self._limit:
                self._exhaust()
            elif self._skip + consumed >= page.total or not page.hits:
                self._exhaust()
            else:
                logger.debug(
                    "page drained at %d of %d, fetching next page", consumed, page.total
                )
                self._fetch(consumed, CursorState.HOLDING_PAGE)

        return False

    def next(self) -> Optional[Dict[str, Any]]:
        """
        Return the next record, or None once the cursor is exhausted.

        ``has_next()`` has to be called first.
        """
        if self._state == CursorState.UNSTARTED:
            raise InvalidStateError("next() called before has_next()")
        if self._state in (CursorState.CLOSED, CursorState.FETCHING):
            raise InvalidStateError(f"next() on a {self._state.value} cursor")
        if not self.has_next():
            return None

        hit = self._page.hits[self._read_index]
        self._read_index += 1
        return ResultFormatter.format_hit(hit)

    def close(self) -> None:
        """
        Release the held page. Idempotent.

        There is no server-side cursor to tear down.
        """
        self._page = None
        self._state = CursorState.CLOSED

    def _check_modifiable(self) -> None:
        if self._state != CursorState.UNSTARTED:
            raise InvalidStateError("cannot change cursor options after the query has run")

    def _fetch(self, offset: int, previous: CursorState) -> None:
        """Fetch the page starting ``offset`` records after skip."""
        if self._request is None:
            raise InvalidStateError("fetch without a prepared request")

        size = self._page_size
        if self._limit is not None:
            size = min(size, self._limit - offset)

        request = self._request.model_copy(
            update={"from_": self._skip + offset, "size": size}
        )
        self._state = CursorState.FETCHING
        try:
            page = self.executor.search(self._collection.collection_name, request)
        except Exception:
            # the held page, if any, stays as it was; a retry re-fetches
            self._state = previous
            raise

        self._page = page
        self._results_offset = offset
        self._read_index = 0
        self._total = page.total
        self._state = CursorState.HOLDING_PAGE

    def _exhaust(self) -> None:
        self._page = None
        self._state = CursorState.EXHAUSTED

    def _build_request(self) -> SearchRequest:
        """Validate the options once and build the first-page request."""
        projection = self._projection
        for option_key, option_value in self._options.items():
            if option_key == PROJECTION_OPTION:
                if projection is not None:
                    raise UnsupportedOptionError(
                        "not implemented: project() together with the projection option"
                    )
                projection = option_value
            elif option_key == PAGE_SIZE_OPTION:
                if (
                    isinstance(option_value, bool)
                    or not isinstance(option_value, int)
                    or option_value < 1
                ):
                    raise UnsupportedOptionError(
                        f"{PAGE_SIZE_OPTION} must be a positive integer: {option_value!r}"
                    )
                self._page_size = option_value
            else:
                raise UnsupportedOptionError(
                    f"not implemented: find option '{option_key}', "
                    f"supported options are {list(SUPPORTED_FIND_OPTIONS)}"
                )

        return SearchRequest(
            query=self.translator.translate(self._filter),
            sort=self._build_sort(),
            source=self._build_source_filter(projection),
            from_=self._skip,
            size=self._page_size,
        )

    def _build_sort(self) -> Optional[List[Dict[str, Any]]]:
        key_or_list = self._sort_key_or_list
        if key_or_list is None and self._sort_direction is None:
            return None
        if self._sort_direction is not None:
            raise UnsupportedOptionError("not implemented: sort with a separate direction")
        if isinstance(key_or_list, str):
            raise UnsupportedOptionError("not implemented: sort by field name string")
        if isinstance(key_or_list, (list, tuple)):
            raise UnsupportedOptionError("not implemented: sort by list")
        if not isinstance(key_or_list, Mapping):
            raise UnsupportedOptionError(
                f"not implemented: sort by {type(key_or_list).__name__}"
            )
        if len(key_or_list) != 1:
            raise UnsupportedOptionError("not implemented: sort by multiple keys")

        (key, value), = key_or_list.items()
        if isinstance(value, bool) or not isinstance(value, int) or value not in SORT_DIRECTIONS:
            raise TranslationError(f"invalid sort direction: {value!r}")
        return [{key: {"order": SORT_DIRECTIONS[value]}}]

    @staticmethod
    def _build_source_filter(
        projection: Optional[Mapping[str, Any]],
    ) -> Optional[Dict[str, List[str]]]:
        if not projection:
            return None
        includes: List[str] = []
        excludes: List[str] = []
        for key, value in projection.items():
            if value:
                includes.append(key)
            else:
                excludes.append(key)
        return {"includes": includes, "excludes": excludes}
