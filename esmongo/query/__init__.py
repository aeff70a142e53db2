"""Filter and update translation to Elasticsearch."""

from esmongo.query.filter_nodes import parse_filter
from esmongo.query.translator import ESQueryTranslator
from esmongo.query.update_translator import ESUpdateTranslator

__all__ = ["parse_filter", "ESQueryTranslator", "ESUpdateTranslator"]
