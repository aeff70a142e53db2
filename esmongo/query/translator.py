"""
Elasticsearch query translator.

Converts document-driver filter expressions to Elasticsearch query DSL.
"""

from typing import Any, Dict, List, Mapping, Optional

from esmongo.core.errors import TranslationError
from esmongo.query.filter_nodes import (
    AllOf,
    AnyOf,
    Conjunction,
    Equals,
    Exists,
    FilterNode,
    NotEquals,
    Range,
    TextSearch,
    parse_filter,
)


class ESQueryTranslator:
    """
    Translates filter expressions to Elasticsearch DSL.

    Implements the IQueryTranslator interface. Stateless; one instance can
    be shared by every collection.
    """

    def translate(self, filter: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
        """
        Convert a filter expression to an Elasticsearch query document.

        Args:
            filter: Filter expression, e.g. ``{"age": {"$gte": 18}}``

        Returns:
            ``{"match_all": {}}`` for an empty filter, otherwise a
            ``bool.must`` group with one clause per filter key

        Raises:
            TranslationError: If the filter has an unsupported shape
        """
        return self._translate_node(parse_filter(filter))

    def _translate_node(self, node: FilterNode) -> Dict[str, Any]:
        if isinstance(node, Conjunction):
            if not node.clauses:
                return {"match_all": {}}
            must_clauses: List[Dict[str, Any]] = [
                self._translate_node(clause) for clause in node.clauses
            ]
            return {"bool": {"must": must_clauses}}

        if isinstance(node, Equals):
            return self._term(node.field, node.value)

        if isinstance(node, NotEquals):
            return {"bool": {"must_not": self._term(node.field, node.value)}}

        if isinstance(node, Range):
            return {"range": {node.field: {node.op: node.value}}}

        if isinstance(node, Exists):
            return {"exists": {"field": node.field}}

        if isinstance(node, TextSearch):
            return {"query_string": {"query": node.query}}

        if isinstance(node, AnyOf):
            return {
                "bool": {
                    "should": [self._translate_node(b) for b in node.branches],
                    "minimum_should_match": 1,
                }
            }

        if isinstance(node, AllOf):
            return {"bool": {"must": [self._translate_node(b) for b in node.branches]}}

        raise TranslationError(f"unknown filter node: {type(node).__name__}")

    @staticmethod
    def _term(field: str, value: Any) -> Dict[str, Any]:
        return {"term": {field: {"value": value}}}
