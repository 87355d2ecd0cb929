from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Sequence

from .models import WhereClause

logger = logging.getLogger(__name__)


def _passthrough(value: Any) -> Any:
    return value


def _is_present(value: Any) -> bool:
    return value is not None


def _contains(value: Any) -> str:
    return f"%{value}%"


@dataclass(frozen=True)
class Predicate:
    """
    One recognized search criterion.

    `template` holds a single `{}` slot that receives the placeholder
    (e.g. "salary >= {}" -> "salary >= $2"). `applies` decides whether the
    criterion contributes at all; `transform` maps the criterion value to the
    bound parameter.
    """
    key: str
    template: str
    transform: Callable[[Any], Any] = _passthrough
    applies: Callable[[Any], bool] = _is_present


# Emission order is list order, independent of the criteria's key order.
JOB_FILTERS: tuple[Predicate, ...] = (
    Predicate("title", "title ILIKE {}", transform=_contains),
    Predicate("min_salary", "salary >= {}"),
    Predicate("has_equity", "equity > {}", transform=lambda _value: 0, applies=bool),
)

COMPANY_FILTERS: tuple[Predicate, ...] = (
    Predicate("name", "name ILIKE {}", transform=_contains),
    Predicate("min_employees", "num_employees >= {}"),
    Predicate("max_employees", "num_employees <= {}"),
)


def compile_where_clause(
    criteria: Mapping[str, Any] | None,
    filters: Sequence[Predicate] = JOB_FILTERS,
    start: int = 1,
) -> WhereClause | None:
    """
    Compose a conjunctive WHERE clause from optional search criteria.

        >>> clause = compile_where_clause({"title": "j", "min_salary": 1, "has_equity": False})
        >>> clause.sql
        'title ILIKE $1 AND salary >= $2'
        >>> clause.values
        ('%j%', 1)

    Returns None when no recognized criterion contributes ("no filter");
    callers then run their unfiltered query instead of emitting `WHERE`.

    Values are not validated here. Keys that match no filter are ignored and
    logged at WARNING level.

    Args:
        criteria: Search criteria keyed by filter name, or None
        filters: Recognized predicates, in emission order
        start: Ordinal of the first placeholder
    """
    if not criteria:
        return None

    known = {predicate.key for predicate in filters}
    unknown = sorted(key for key in criteria if key not in known)
    if unknown:
        logger.warning("Ignoring unrecognized search criteria: %s", ", ".join(unknown))

    predicates: list[str] = []
    values: list[Any] = []
    for predicate in filters:
        if predicate.key not in criteria:
            continue
        value = criteria[predicate.key]
        if not predicate.applies(value):
            continue
        values.append(predicate.transform(value))
        predicates.append(predicate.template.format(f"${start + len(values) - 1}"))

    if not predicates:
        return None
    return WhereClause(predicates=tuple(predicates), values=tuple(values))
