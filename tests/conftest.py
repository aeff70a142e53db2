"""Shared fixtures: an in-memory stand-in for the Elasticsearch client calls we use."""

import itertools
import json
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import pytest
from elasticsearch.serializer import JSONSerializer

from esmongo import ClientOptions, MongoClient
from esmongo.query import ESQueryTranslator, ESUpdateTranslator

SCRIPT_STATEMENT = re.compile(r'^ctx\._source\[("(?:[^"\\]|\\.)*")\] = (.*);$')
DATE_EXPRESSION = re.compile(r"^ZonedDateTime\.ofInstant\(Instant\.ofEpochMilli\((-?\d+)L\)")
LONG_LITERAL = re.compile(r"(-?\d+)L\b")

SERIALIZER = JSONSerializer()


def matches(doc: Dict[str, Any], query: Dict[str, Any]) -> bool:
    """Evaluate the subset of the query DSL the translator produces."""
    (kind, body), = query.items()

    if kind == "match_all":
        return True
    if kind == "term":
        (field, spec), = body.items()
        value = spec["value"] if isinstance(spec, dict) else spec
        if field not in doc:
            return False
        actual = doc[field]
        if isinstance(actual, bool) or isinstance(value, bool):
            return actual is value
        return actual == value
    if kind == "range":
        (field, spec), = body.items()
        if field not in doc or doc[field] is None:
            return False
        (op, bound), = spec.items()
        actual = doc[field]
        return {
            "lt": actual < bound,
            "gt": actual > bound,
            "lte": actual <= bound,
            "gte": actual >= bound,
        }[op]
    if kind == "exists":
        return doc.get(body["field"]) is not None
    if kind == "query_string":
        needle = body["query"].lower()
        return any(isinstance(v, str) and needle in v.lower() for v in doc.values())
    if kind == "bool":
        must = _as_list(body.get("must"))
        should = _as_list(body.get("should"))
        must_not = _as_list(body.get("must_not"))
        if not all(matches(doc, q) for q in must):
            return False
        if any(matches(doc, q) for q in must_not):
            return False
        if should:
            needed = body.get("minimum_should_match", 1)
            return sum(1 for q in should if matches(doc, q)) >= needed
        return True

    raise AssertionError(f"unexpected query clause: {kind}")


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    return value if isinstance(value, list) else [value]


def parse_painless_literal(source: str) -> Any:
    date_match = DATE_EXPRESSION.match(source)
    if date_match:
        millis = int(date_match.group(1))
        stamp = datetime.fromtimestamp(millis / 1000, tz=timezone.utc)
        return stamp.strftime("%Y-%m-%dT%H:%M:%S.") + f"{stamp.microsecond // 1000:03d}Z"
    return json.loads(LONG_LITERAL.sub(r"\1", source))


class FakeIndices:
    def __init__(self, es: "FakeElasticsearch"):
        self._es = es

    def create(self, index: str, mappings: Optional[Dict[str, Any]] = None, **kwargs):
        self._es.indices_store.setdefault(index, {})
        self._es.mappings[index] = mappings
        return {"acknowledged": True, "index": index}

    def delete(self, index: str, **kwargs):
        self._es.indices_store.pop(index, None)
        return {"acknowledged": True}


class FakeElasticsearch:
    """
    Records every call and keeps documents in insertion order per index.
    """

    def __init__(self):
        self.indices_store: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self.mappings: Dict[str, Any] = {}
        self.calls: List[tuple] = []
        self.indices = FakeIndices(self)
        self.closed = False
        self.fail_search_after: Optional[int] = None
        self._ids = itertools.count(1)

    def info(self):
        self.calls.append(("info", {}))
        return {"cluster_name": "fake", "version": {"number": "8.0.0"}}

    def close(self):
        self.closed = True

    def index(self, index: str, document: Dict[str, Any], id: Optional[str] = None, **kwargs):
        self.calls.append(("index", dict(index=index, document=document, id=id, **kwargs)))
        doc_id = id if id is not None else f"auto-{next(self._ids)}"
        # stored the way the client serializes it
        self.indices_store.setdefault(index, {})[doc_id] = json.loads(
            SERIALIZER.dumps(document)
        )
        return {"_id": doc_id, "result": "created"}

    def search(self, index: str, query: Dict[str, Any], from_: int = 0, size: int = 10,
               sort=None, source=None, **kwargs):
        self.calls.append(
            ("search", dict(index=index, query=query, from_=from_, size=size,
                            sort=sort, source=source, **kwargs))
        )
        searches = sum(1 for name, _ in self.calls if name == "search")
        if self.fail_search_after is not None and searches > self.fail_search_after:
            from elasticsearch import ConnectionError as ESConnectionError
            raise ESConnectionError("connection lost")

        docs = [
            (doc_id, doc)
            for doc_id, doc in self.indices_store.get(index, {}).items()
            if matches(doc, query)
        ]
        if sort:
            (field, spec), = sort[0].items()
            reverse = spec["order"] == "desc"
            present = [d for d in docs if d[1].get(field) is not None]
            missing = [d for d in docs if d[1].get(field) is None]
            docs = sorted(present, key=lambda d: d[1][field], reverse=reverse) + missing

        hits = [
            {"_index": index, "_id": doc_id, "_source": self._filter_source(doc, source)}
            for doc_id, doc in docs[from_:from_ + size]
        ]
        return {"hits": {"total": {"value": len(docs), "relation": "eq"}, "hits": hits}}

    def update_by_query(self, index: str, query: Dict[str, Any], script: Dict[str, Any], **kwargs):
        self.calls.append(("update_by_query", dict(index=index, query=query, script=script, **kwargs)))
        assignments = []
        for line in script["source"].splitlines():
            statement = SCRIPT_STATEMENT.match(line)
            assert statement, f"unexpected script line: {line!r}"
            assignments.append(
                (json.loads(statement.group(1)), parse_painless_literal(statement.group(2)))
            )

        updated = 0
        for doc in self.indices_store.get(index, {}).values():
            if matches(doc, query):
                for field, value in assignments:
                    doc[field] = value
                updated += 1
        return {"updated": updated}

    def searches(self) -> List[Dict[str, Any]]:
        return [kwargs for name, kwargs in self.calls if name == "search"]

    @staticmethod
    def _filter_source(doc: Dict[str, Any], source: Optional[Dict[str, List[str]]]):
        if not source:
            return dict(doc)
        includes = source.get("includes") or []
        excludes = source.get("excludes") or []
        filtered = {k: v for k, v in doc.items() if not includes or k in includes}
        return {k: v for k, v in filtered.items() if k not in excludes}


@pytest.fixture
def es():
    return FakeElasticsearch()


@pytest.fixture
def page_size():
    return 3


@pytest.fixture
def client(es, page_size):
    mongo_client = MongoClient(
        ClientOptions(refresh_on_updates=True, page_size=page_size), es_client=es
    )
    mongo_client.connect()
    yield mongo_client
    mongo_client.close()


@pytest.fixture
def db(client):
    return client.db("test")


@pytest.fixture
def collection(db):
    return db.create_collection("things")


@pytest.fixture
def translator():
    return ESQueryTranslator()


@pytest.fixture
def update_translator():
    return ESUpdateTranslator()
