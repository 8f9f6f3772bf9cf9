"""
SQL Safety Utilities
====================

Helpers that prevent SQL-injection via identifier interpolation.

Table names reach SQL through the generic store surface (``sensor_<n>``
tables are discovered at runtime), so they are validated with
``require_identifier()`` before being quoted. Column names coming from a dict
are filtered with ``safe_columns()`` against the columns that actually exist.

Usage::

    from infrastructure.database.sql_safety import require_identifier, safe_columns

    table = require_identifier(table)
    cols = safe_columns(values, existing_columns, context="upsert_row")
    set_clause, params = build_set_clause(cols)
"""

from __future__ import annotations

import logging
import re
from typing import Any

logger = logging.getLogger(__name__)

# Identifiers must be simple: letters, digits, underscores.
_IDENT_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def is_identifier(name: Any) -> bool:
    return isinstance(name, str) and bool(_IDENT_RE.match(name))


def require_identifier(name: Any) -> str:
    """Return *name* unchanged if it is a plain identifier, else raise ``ValueError``."""
    if not is_identifier(name):
        raise ValueError(f"Invalid SQL identifier: {name!r}")
    return name


def safe_columns(
    data: dict[str, Any],
    allowed: frozenset[str] | set[str],
    *,
    context: str = "",
    drop_none: bool = False,
) -> dict[str, Any]:
    """Return *data* filtered to keys present in *allowed*.

    Parameters
    ----------
    data:
        Incoming dict (e.g. a settings row from the service layer).
    allowed:
        Set of column names that may be interpolated into SQL.
    context:
        Optional label for log messages (e.g. ``"upsert_row"``).
    drop_none:
        If ``True``, also drop keys whose value is ``None``.

    Returns
    -------
    dict[str, Any]
        Filtered copy, safe for SQL column-name interpolation.
    """
    filtered: dict[str, Any] = {}
    rejected: list[str] = []

    for key, value in data.items():
        if key not in allowed or not is_identifier(key):
            rejected.append(key)
            continue
        if drop_none and value is None:
            continue
        filtered[key] = value

    if rejected:
        logger.warning(
            "safe_columns(%s): dropped non-allowed keys: %s",
            context or "?",
            rejected,
        )

    return filtered


def build_set_clause(cols: dict[str, Any]) -> tuple[str, list[Any]]:
    """Build a ``SET col1 = ?, col2 = ?`` fragment from *cols*.

    Returns ``(sql_fragment, values_list)``.

    >>> build_set_clause({"enabled": True, "interval_minutes": 5})
    ('enabled = ?, interval_minutes = ?', [True, 5])
    """
    clause = ", ".join(f"{k} = ?" for k in cols)
    return clause, list(cols.values())


def build_insert_parts(cols: dict[str, Any]) -> tuple[str, str, list[Any]]:
    """Build column-list, placeholder-list, and values for INSERT.

    Returns ``(columns_sql, placeholders_sql, values_list)``.

    >>> build_insert_parts({"id": 1, "enabled": False})
    ('id, enabled', '?, ?', [1, False])
    """
    keys = list(cols.keys())
    columns_sql = ", ".join(keys)
    placeholders_sql = ", ".join("?" for _ in keys)
    return columns_sql, placeholders_sql, list(cols.values())


def build_where_clause(filters: dict[str, Any]) -> tuple[str, list[Any]]:
    """Build an ``a = ? AND b IS NULL`` fragment; ``None`` values match NULL.

    >>> build_where_clause({"id": 1, "fecha_fin": None})
    ('id = ? AND fecha_fin IS NULL', [1])
    """
    parts: list[str] = []
    values: list[Any] = []
    for key, value in filters.items():
        require_identifier(key)
        if value is None:
            parts.append(f"{key} IS NULL")
        else:
            parts.append(f"{key} = ?")
            values.append(value)
    return " AND ".join(parts), values
