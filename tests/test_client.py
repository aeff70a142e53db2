"""Tests for configuration, client/db handles and the Elasticsearch executor."""

from unittest.mock import MagicMock

import pytest
from elasticsearch import ConnectionError as ESConnectionError
from pydantic import ValidationError

from esmongo import ClientOptions, MongoClient
from esmongo.adapters.elasticsearch import ESQueryExecutor
from esmongo.core.errors import BackendError, InvalidStateError, UnsupportedOptionError
from esmongo.core.models import SearchRequest


class TestClientOptions:
    def test_defaults(self):
        options = ClientOptions()
        assert options.hosts == ["http://localhost:9200"]
        assert options.refresh_on_updates is False
        assert options.page_size == 100
        assert options.client_kwargs() == {"hosts": ["http://localhost:9200"]}

    def test_page_size_must_be_positive(self):
        with pytest.raises(ValidationError):
            ClientOptions(page_size=0)

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("ESMONGO_HOSTS", "http://a:9200, http://b:9200")
        monkeypatch.setenv("ESMONGO_USERNAME", "elastic")
        monkeypatch.setenv("ESMONGO_PASSWORD", "secret")
        monkeypatch.setenv("ESMONGO_REQUEST_TIMEOUT", "2.5")
        monkeypatch.setenv("ESMONGO_REFRESH_ON_UPDATES", "true")
        monkeypatch.setenv("ESMONGO_PAGE_SIZE", "25")

        options = ClientOptions.from_env()

        assert options.hosts == ["http://a:9200", "http://b:9200"]
        assert options.basic_auth == ("elastic", "secret")
        assert options.request_timeout == 2.5
        assert options.refresh_on_updates is True
        assert options.page_size == 25
        assert options.client_kwargs() == {
            "hosts": ["http://a:9200", "http://b:9200"],
            "basic_auth": ("elastic", "secret"),
            "request_timeout": 2.5,
        }

    def test_overrides_win_over_env(self, monkeypatch):
        monkeypatch.setenv("ESMONGO_PAGE_SIZE", "25")
        assert ClientOptions.from_env(page_size=7).page_size == 7


class TestMongoClient:
    def test_connect_checks_the_cluster(self, es):
        client = MongoClient(ClientOptions(), es_client=es).connect()
        assert es.calls[0][0] == "info"
        assert client.es_client is es

    def test_unconnected_client(self, es):
        client = MongoClient(ClientOptions(), es_client=es)
        with pytest.raises(InvalidStateError, match="not connected"):
            client.es_client
        with pytest.raises(InvalidStateError):
            client.db("test").collection("things").insert_one({"a": 1})

    def test_failed_connect_raises_backend_error(self):
        es_client = MagicMock()
        es_client.info.side_effect = ESConnectionError("refused")
        with pytest.raises(BackendError):
            MongoClient(ClientOptions(), es_client=es_client).connect()

    def test_context_manager_closes(self, es):
        with MongoClient(ClientOptions(), es_client=es) as client:
            assert client.db("test").name == "test"
        assert es.closed

    def test_collection_options_are_rejected(self, db):
        with pytest.raises(UnsupportedOptionError):
            db.collection("things", {"strict": True})

    def test_create_and_drop_collection(self, db, es):
        db.create_collection("people", mappings={"properties": {"name": {"type": "keyword"}}})
        assert "people" in es.indices_store
        assert es.mappings["people"] == {"properties": {"name": {"type": "keyword"}}}

        db.drop_collection("people")
        assert "people" not in es.indices_store


class TestESQueryExecutor:
    def test_search_passes_every_part_of_the_request(self):
        es_client = MagicMock()
        es_client.search.return_value = {
            "hits": {"total": {"value": 5, "relation": "eq"}, "hits": [{"_id": "a"}]}
        }
        executor = ESQueryExecutor(es_client)
        request = SearchRequest(
            query={"match_all": {}},
            sort=[{"n": {"order": "asc"}}],
            source={"includes": ["n"], "excludes": []},
            from_=4,
            size=2,
        )

        page = executor.search("things", request)

        es_client.search.assert_called_once_with(
            index="things",
            query={"match_all": {}},
            sort=[{"n": {"order": "asc"}}],
            source={"includes": ["n"], "excludes": []},
            from_=4,
            size=2,
            track_total_hits=True,
        )
        assert page.total == 5
        assert page.hits == [{"_id": "a"}]

    def test_search_accepts_legacy_integer_total(self):
        es_client = MagicMock()
        es_client.search.return_value = {"hits": {"total": 3, "hits": []}}
        page = ESQueryExecutor(es_client).search(
            "things", SearchRequest(query={"match_all": {}}, size=1)
        )
        assert page.total == 3

    @pytest.mark.parametrize("method", ["search", "index", "update_by_query"])
    def test_client_errors_become_backend_errors(self, method):
        es_client = MagicMock()
        cause = ESConnectionError("boom")
        getattr(es_client, method).side_effect = cause
        executor = ESQueryExecutor(es_client)

        with pytest.raises(BackendError) as excinfo:
            if method == "search":
                executor.search("things", SearchRequest(query={"match_all": {}}, size=1))
            elif method == "index":
                executor.index_document("things", {"a": 1})
            else:
                executor.update_by_query("things", {"match_all": {}}, "")

        assert excinfo.value.cause is cause
        assert excinfo.value.__cause__ is cause
        assert excinfo.value.to_dict()["error"] == "BackendError"

    def test_index_refresh_flag(self):
        es_client = MagicMock()
        es_client.index.return_value = {"_id": "x"}

        assert ESQueryExecutor(es_client).index_document("things", {"a": 1}, "x") == "x"
        assert es_client.index.call_args.kwargs["refresh"] == "false"
