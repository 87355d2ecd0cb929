from dataclasses import dataclass
from typing import Any, Tuple


@dataclass(frozen=True)
class SetClause:
    """
    Compiled `SET` clause of a partial UPDATE.

    columns[i] is a fragment like '"company_handle"=$3' whose placeholder
    binds values[i].
    """
    columns: Tuple[str, ...]
    values: Tuple[Any, ...]

    @property
    def sql(self) -> str:
        return ", ".join(self.columns)


@dataclass(frozen=True)
class WhereClause:
    """
    Compiled conjunctive `WHERE` clause. Never empty: "no filter" is
    represented by the absence of a WhereClause, not by an empty one.
    """
    predicates: Tuple[str, ...]
    values: Tuple[Any, ...]

    def __post_init__(self) -> None:
        if not self.predicates:
            raise ValueError("WhereClause requires at least one predicate")
        if len(self.predicates) != len(self.values):
            raise ValueError(
                f"predicate/value count mismatch: {len(self.predicates)} != {len(self.values)}"
            )

    @property
    def sql(self) -> str:
        return " AND ".join(self.predicates)
