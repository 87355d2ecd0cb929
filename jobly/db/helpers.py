from __future__ import annotations

import re
from typing import Any, Mapping, Sequence

from sqlalchemy.exc import IntegrityError

from ..errors import BadRequestError
from .models import SetClause

_PLACEHOLDER_RE = re.compile(r"\$(\d+)")

_OPERATION_PATTERNS = (
    ("insert", re.compile(r"^\s*INSERT\s+INTO\s+[`\"]?(\w+)", re.IGNORECASE)),
    ("update", re.compile(r"^\s*UPDATE\s+[`\"]?(\w+)", re.IGNORECASE)),
    ("delete", re.compile(r"^\s*DELETE\s+FROM\s+[`\"]?(\w+)", re.IGNORECASE)),
    ("select", re.compile(r"^\s*SELECT\b.*?\bFROM\s+[`\"]?(\w+)", re.IGNORECASE | re.DOTALL)),
)

UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"
CHECK_VIOLATION = "23514"
NOT_NULL_VIOLATION = "23502"


def as_number(field: str, value: Any) -> float:
    """
    Coerce a caller-supplied numeric field.

    Raises:
        BadRequestError: value is not a number or numeric string
    """
    try:
        return float(value)
    except (TypeError, ValueError):
        raise BadRequestError(f"{field} must be a number, got {value!r}") from None


def resolve_column(key: str, name_translation: Mapping[str, str] | None) -> str:
    """Physical column for a logical field name; unmapped names pass through."""
    if not name_translation:
        return key
    return name_translation.get(key, key)


def compile_set_clause(
    field_updates: Mapping[str, Any],
    name_translation: Mapping[str, str] | None = None,
) -> SetClause:
    """
    Build the SET clause for a partial UPDATE.

    Keys of `field_updates` are logical field names; `name_translation`
    maps the ones whose storage column differs:

        >>> clause = compile_set_clause({"foo": 1, "bar": "two"}, {"bar": "grill"})
        >>> clause.sql
        '"foo"=$1, "grill"=$2'
        >>> clause.values
        (1, 'two')

    Placeholders are 1-based and follow the iteration order of
    `field_updates`, so $N always binds values[N-1]. Callers appending
    a WHERE clause continue numbering at len(values) + 1.

    ⚠️ SECURITY CONTRACT ⚠️
    Column names are wrapped in double quotes verbatim and are NOT escaped.
    Keys of `field_updates` and values of `name_translation` MUST be trusted
    identifiers (hardcoded or whitelisted), never raw user input. Values are
    always bound as parameters.

    Raises:
        BadRequestError: If `field_updates` is empty
    """
    if not field_updates:
        raise BadRequestError("No data to update")

    columns = tuple(
        f'"{resolve_column(key, name_translation)}"=${idx}'
        for idx, key in enumerate(field_updates, start=1)
    )
    return SetClause(columns=columns, values=tuple(field_updates.values()))


def bind_positional(sql: str, values: Sequence[Any]) -> tuple[str, dict[str, Any]]:
    """
    Rewrite `$N` placeholders into SQLAlchemy named binds.

    `$N` becomes `:pN` and binds values[N-1]. A placeholder may appear more
    than once; values that no placeholder references are still bound.

    Raises:
        ValueError: If a placeholder falls outside 1..len(values)
    """
    count = len(values)

    def _replace(match: re.Match) -> str:
        position = int(match.group(1))
        if position < 1 or position > count:
            raise ValueError(
                f"Placeholder ${position} has no matching value ({count} value(s) supplied)"
            )
        return f":p{position}"

    rewritten = _PLACEHOLDER_RE.sub(_replace, sql)
    params = {f"p{idx}": value for idx, value in enumerate(values, start=1)}
    return rewritten, params


def parse_sql_operation(sql: Any) -> tuple[str, str]:
    """
    Best-effort (table, op_type) for metric labels.

    Returns ("unknown", "unknown") for statements it does not recognize.
    """
    statement = str(sql)
    for op_type, pattern in _OPERATION_PATTERNS:
        match = pattern.search(statement)
        if match:
            return match.group(1).lower(), op_type
    return "unknown", "unknown"


def _sqlstate(exc: Exception) -> str | None:
    orig = getattr(exc, "orig", None)
    # psycopg 3 exposes `sqlstate`, psycopg2 exposes `pgcode`
    return getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)


def is_unique_violation(exc: IntegrityError) -> bool:
    if _sqlstate(exc) == UNIQUE_VIOLATION:
        return True
    return "duplicate key" in str(getattr(exc, "orig", exc)).lower()


def is_foreign_key_violation(exc: IntegrityError) -> bool:
    if _sqlstate(exc) == FOREIGN_KEY_VIOLATION:
        return True
    return "foreign key constraint" in str(getattr(exc, "orig", exc)).lower()


def is_check_violation(exc: IntegrityError) -> bool:
    if _sqlstate(exc) == CHECK_VIOLATION:
        return True
    return "check constraint" in str(getattr(exc, "orig", exc)).lower()


def is_not_null_violation(exc: IntegrityError) -> bool:
    if _sqlstate(exc) == NOT_NULL_VIOLATION:
        return True
    return "not-null constraint" in str(getattr(exc, "orig", exc)).lower()
