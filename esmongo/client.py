"""
Driver-shaped client and database handles.

``MongoClient`` owns the Elasticsearch connection; ``Db`` hands out
collections, each backed by one index.
"""

import logging
from typing import Any, Dict, Optional

from elasticsearch import ApiError, Elasticsearch, TransportError

from esmongo.adapters.elasticsearch import ESQueryExecutor
from esmongo.collection import Collection
from esmongo.config import ClientOptions
from esmongo.core.errors import BackendError, InvalidStateError, UnsupportedOptionError

logger = logging.getLogger(__name__)


class MongoClient:
    """
    Entry point: a document-driver style client talking to Elasticsearch.

    Example:
        client = MongoClient(ClientOptions(hosts=["http://localhost:9200"]))
        client.connect()
        users = client.db("app").collection("users")
        users.insert_one({"name": "ada"})
    """

    def __init__(
        self,
        options: Optional[ClientOptions] = None,
        es_client: Optional[Elasticsearch] = None,
    ):
        """
        Initialize the client; nothing is sent until ``connect()``.

        Args:
            options: Client options, defaults to ``ClientOptions.from_env()``
            es_client: Pre-built Elasticsearch client to use instead of
                creating one from ``options``
        """
        self._options = options
        self._es_client = es_client
        self._connected = False
        self._executor: Optional[ESQueryExecutor] = None

    def connect(self, options: Optional[ClientOptions] = None) -> "MongoClient":
        """
        Connect to the cluster and check it answers.

        Args:
            options: Replaces the options given to the constructor

        Returns:
            The client itself
        """
        if options is not None:
            self._options = options
        if self._options is None:
            self._options = ClientOptions.from_env()

        if self._es_client is None:
            self._es_client = Elasticsearch(**self._options.client_kwargs())

        logger.debug("connecting to %s", self._options.hosts)
        try:
            info = self._es_client.info()
        except (ApiError, TransportError) as e:
            logger.error("connecting to %s failed: %s", self._options.hosts, e)
            raise BackendError(f"connecting to {self._options.hosts} failed: {e}", e) from e
        logger.info(
            "connected to elasticsearch cluster %s (version %s)",
            info.get("cluster_name"),
            info.get("version", {}).get("number"),
        )

        self._executor = ESQueryExecutor(
            self._es_client, refresh_on_updates=self._options.refresh_on_updates
        )
        self._connected = True
        return self

    def close(self) -> None:
        """Close the underlying Elasticsearch client."""
        if self._es_client is not None and self._connected:
            self._es_client.close()
            logger.info("elasticsearch client closed")
        self._connected = False

    def db(self, db_name: str) -> "Db":
        return Db(self, db_name)

    @property
    def es_client(self) -> Elasticsearch:
        if not self._connected or self._es_client is None:
            raise InvalidStateError("not connected")
        return self._es_client

    @property
    def executor(self) -> ESQueryExecutor:
        if not self._connected or self._executor is None:
            raise InvalidStateError("not connected")
        return self._executor

    @property
    def options(self) -> ClientOptions:
        if self._options is None:
            raise InvalidStateError("not connected")
        return self._options

    def __enter__(self) -> "MongoClient":
        if not self._connected:
            self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


class Db:
    """
    Database handle. Elasticsearch has no databases, so the name is only
    carried along; every collection maps to an index of the same name.
    """

    def __init__(self, client: MongoClient, db_name: str):
        self._client = client
        self._db_name = db_name

    def collection(self, name: str, options: Optional[Dict[str, Any]] = None) -> Collection:
        """
        Get a collection handle.

        Args:
            name: Collection (index) name
            options: Collection options; none are supported

        Returns:
            Collection bound to the index ``name``
        """
        if options:
            raise UnsupportedOptionError("not implemented: collection options")
        return Collection(self, name)

    def create_collection(
        self, name: str, mappings: Optional[Dict[str, Any]] = None
    ) -> Collection:
        """Create the backing index and return its collection handle."""
        self._client.executor.create_index(name, mappings=mappings)
        return Collection(self, name)

    def drop_collection(self, name: str) -> None:
        """Delete the backing index."""
        self._client.executor.delete_index(name)

    @property
    def client(self) -> MongoClient:
        return self._client

    @property
    def name(self) -> str:
        return self._db_name
