"""
Elasticsearch update translator.

Converts ``$set`` update documents to painless scripts for
update-by-query.
"""

import math
from datetime import datetime, timezone
from typing import Any, List, Mapping

from esmongo.core.errors import TranslationError, UnsupportedOperationError

SCRIPT_LANG = "painless"

# painless int literal bounds; anything wider needs the long suffix
INT_MIN = -(2 ** 31)
INT_MAX = 2 ** 31 - 1

SET_OPERATOR = "$set"


class ESUpdateTranslator:
    """
    Translates update documents to painless mutation scripts.

    Implements the IUpdateTranslator interface.
    """

    def translate_update(self, update: Mapping[str, Any]) -> str:
        """
        Convert an update document to a painless script.

        Args:
            update: Update document, only ``{"$set": {...}}`` is supported

        Returns:
            One ``ctx._source["field"] = value;`` statement per line

        Raises:
            UnsupportedOperationError: For any operator other than ``$set``
            TranslationError: If a ``$set`` value cannot be rendered
        """
        if not isinstance(update, Mapping) or not update:
            raise TranslationError("update must be a non-empty mapping")

        for key in update:
            if key != SET_OPERATOR:
                raise UnsupportedOperationError(f"not implemented: update {key}")

        fields = update[SET_OPERATOR]
        if not isinstance(fields, Mapping):
            raise TranslationError("$set value must be a mapping")

        statements: List[str] = []
        for field, value in fields.items():
            statements.append(
                f"ctx._source[{self._quote(str(field))}] = {self.render_literal(value)};"
            )
        return "\n".join(statements)

    def render_literal(self, value: Any) -> str:
        """
        Render a Python value as a painless literal.

        Args:
            value: Value from the ``$set`` mapping

        Returns:
            Painless source for the value
        """
        if isinstance(value, str):
            return self._quote(value)
        if callable(getattr(value, "timestamp", None)):
            # naive datetimes are UTC, as on the index and search paths
            if isinstance(value, datetime) and value.tzinfo is None:
                value = value.replace(tzinfo=timezone.utc)
            millis = int(value.timestamp() * 1000)
            return (
                f"ZonedDateTime.ofInstant(Instant.ofEpochMilli({millis}L), "
                f"ZoneId.of('Z'))"
            )
        if value is None:
            return "null"
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, int):
            if INT_MIN <= value <= INT_MAX:
                return str(value)
            return f"{value}L"
        if isinstance(value, float):
            if not math.isfinite(value):
                raise TranslationError(f"cannot render {value!r} in an update script")
            return repr(value)
        if isinstance(value, (list, tuple)):
            return "[" + ", ".join(self.render_literal(v) for v in value) + "]"
        if isinstance(value, Mapping):
            if not value:
                return "[:]"
            entries = ", ".join(
                f"{self._quote(str(k))}: {self.render_literal(v)}"
                for k, v in value.items()
            )
            return f"[{entries}]"

        raise TranslationError(
            f"cannot render {type(value).__name__} value in an update script"
        )

    @staticmethod
    def _quote(value: str) -> str:
        escaped = value.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'
