"""
Result formatting utilities.

Turns raw Elasticsearch hits back into driver-shaped records.
"""

import re
from datetime import datetime
from typing import Any, Dict

from bson import ObjectId

ID_FIELD = "_id"

ISO_DATE_TIME = re.compile(
    r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d{1,6})?(Z|[+-]\d{2}:\d{2})?$"
)


class ResultFormatter:
    """
    Formats search hits into caller records.

    The backend identifier is normalized (ObjectId when it has the
    canonical 24-hex form, plain string otherwise) and merged in front of
    the decoded ``_source`` body.
    """

    @staticmethod
    def normalize_id(raw_id: Any) -> Any:
        """
        Normalize a backend identifier.

        Args:
            raw_id: ``_id`` as returned by Elasticsearch

        Returns:
            ``ObjectId`` if ``raw_id`` is a 24-character hex string,
            otherwise ``raw_id`` unchanged
        """
        if isinstance(raw_id, str) and len(raw_id) == 24 and ObjectId.is_valid(raw_id):
            return ObjectId(raw_id)
        return raw_id

    @classmethod
    def format_hit(cls, hit: Dict[str, Any]) -> Dict[str, Any]:
        """
        Format a single search hit.

        Args:
            hit: Raw hit with ``_id`` and ``_source``

        Returns:
            Record with ``_id`` merged into the decoded body
        """
        record: Dict[str, Any] = {}
        if ID_FIELD in hit:
            record[ID_FIELD] = cls.normalize_id(hit[ID_FIELD])
        source = cls.decode_values(dict(hit.get("_source") or {}))
        source.pop(ID_FIELD, None)
        record.update(source)
        return record

    @classmethod
    def decode_values(cls, value: Any) -> Any:
        """Recursively turn ISO-8601 date-time strings into datetimes."""
        if isinstance(value, dict):
            return {
                k: v if k == ID_FIELD else cls.decode_values(v)
                for k, v in value.items()
            }
        if isinstance(value, list):
            return [cls.decode_values(v) for v in value]
        if isinstance(value, str) and ISO_DATE_TIME.match(value):
            return cls._parse_date_time(value)
        return value

    @staticmethod
    def _parse_date_time(value: str) -> Any:
        if value.endswith("Z"):
            value = value[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(value)
        except ValueError:
            # shaped like a date-time but not a valid one (e.g. month 13)
            return value
