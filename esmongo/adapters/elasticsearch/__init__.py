"""Elasticsearch adapter for esmongo."""

from esmongo.adapters.elasticsearch.executor import ESQueryExecutor

__all__ = ["ESQueryExecutor"]
