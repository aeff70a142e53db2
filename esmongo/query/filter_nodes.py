"""
Filter grammar.

A raw filter mapping is parsed once into a closed set of node kinds;
the translator only ever sees nodes, never raw ``$``-prefixed keys.
"""

import logging
from datetime import date, datetime
from typing import Any, List, Literal, Mapping, Optional

from pydantic import BaseModel

from esmongo.core.errors import TranslationError

logger = logging.getLogger(__name__)

OPERATOR_PREFIX = "$"

RANGE_OPERATORS = ("$lt", "$gt", "$lte", "$gte")

TERM_TYPES = (str, int, float, bool)
RANGE_TYPES = (str, int, float, datetime, date)


class FilterNode(BaseModel):
    """Base class for every node of a parsed filter."""


class Conjunction(FilterNode):
    """Implicit AND of every key of one filter mapping."""

    clauses: List[FilterNode] = []


class Equals(FilterNode):
    field: str
    value: Any


class NotEquals(FilterNode):
    field: str
    value: Any


class Range(FilterNode):
    field: str
    op: Literal["lt", "gt", "lte", "gte"]
    value: Any


class Exists(FilterNode):
    # the $exists flag is not kept: only presence is ever checked
    field: str


class TextSearch(FilterNode):
    query: str


class AnyOf(FilterNode):
    branches: List[Conjunction]


class AllOf(FilterNode):
    branches: List[Conjunction]


def parse_filter(filter: Optional[Mapping[str, Any]]) -> Conjunction:
    """
    Parse a filter mapping into a node tree.

    ``$or`` and ``$and`` need a nonempty list, as the document driver
    requires. An empty list is rejected rather than sent as an empty
    should or must group.

    Args:
        filter: Filter expression; ``None`` is the same as ``{}``

    Returns:
        Root conjunction (no clauses for an empty filter)

    Raises:
        TranslationError: On any malformed or unsupported shape
    """
    if filter is None:
        return Conjunction(clauses=[])
    if not isinstance(filter, Mapping):
        raise TranslationError(
            f"filter must be a mapping, got {type(filter).__name__}"
        )

    clauses: List[FilterNode] = []
    for key, value in filter.items():
        if not isinstance(key, str):
            raise TranslationError(f"filter keys must be strings: {key!r}")

        if key == "$text":
            clauses.append(_parse_text(value))
        elif key == "$or":
            clauses.append(AnyOf(branches=_parse_branches(key, value)))
        elif key == "$and":
            clauses.append(AllOf(branches=_parse_branches(key, value)))
        elif key.startswith(OPERATOR_PREFIX):
            raise TranslationError(f"unsupported query operator: {key}")
        elif isinstance(value, Mapping):
            clauses.append(_parse_field_operator(key, value))
        else:
            clauses.append(Equals(field=key, value=_term_value(key, value)))

    return Conjunction(clauses=clauses)


def _parse_text(value: Any) -> TextSearch:
    if not isinstance(value, Mapping) or set(value.keys()) != {"$search"}:
        raise TranslationError("$text only supports {'$search': <string>}")
    search = value["$search"]
    if not isinstance(search, str):
        raise TranslationError("$text.$search must be a string")
    return TextSearch(query=search)


def _parse_branches(key: str, value: Any) -> List[Conjunction]:
    if not isinstance(value, (list, tuple)):
        raise TranslationError(f"{key} must be an array")
    if not value:
        raise TranslationError(f"{key} must be a nonempty array")
    return [parse_filter(sub_filter) for sub_filter in value]


def _parse_field_operator(field: str, value: Mapping[str, Any]) -> FilterNode:
    """Parse ``{field: {<op>: <operand>}}``; exactly one operator is allowed."""
    operators = list(value.keys())
    if not any(isinstance(op, str) and op.startswith(OPERATOR_PREFIX) for op in operators):
        raise TranslationError(
            f"embedded document equality is not supported for field '{field}'"
        )
    if len(operators) != 1:
        raise TranslationError(
            f"only one operator per field is supported, "
            f"got {sorted(map(str, operators))} for field '{field}'"
        )

    op = operators[0]
    operand = value[op]

    if op == "$eq":
        return Equals(field=field, value=_term_value(field, operand))
    if op == "$ne":
        return NotEquals(field=field, value=_term_value(field, operand))
    if op in RANGE_OPERATORS:
        return Range(field=field, op=op[1:], value=_range_value(field, op, operand))
    if op == "$not":
        if not isinstance(operand, Mapping) or list(operand.keys()) != ["$eq"]:
            raise TranslationError("only $not $eq queries are supported")
        return NotEquals(field=field, value=_term_value(field, operand["$eq"]))
    if op == "$exists":
        if not operand:
            logger.warning(
                "$exists: %r on field '%s' is translated as a presence check",
                operand,
                field,
            )
        return Exists(field=field)

    raise TranslationError(f"unsupported operator {op} on field '{field}'")


def _term_value(field: str, value: Any) -> Any:
    if value is None:
        raise TranslationError(
            f"cannot match field '{field}' against null: "
            "missing values are not indexed"
        )
    if not isinstance(value, TERM_TYPES):
        raise TranslationError(
            f"not implemented: non-string/non-number/non-boolean value "
            f"{type(value).__name__} for field '{field}'"
        )
    return value


def _range_value(field: str, op: str, value: Any) -> Any:
    if value is None or isinstance(value, bool) or not isinstance(value, RANGE_TYPES):
        raise TranslationError(
            f"{op} on field '{field}' needs a number, string or date, "
            f"got {type(value).__name__}"
        )
    return value
