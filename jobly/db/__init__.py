from .filters import COMPANY_FILTERS, JOB_FILTERS, Predicate, compile_where_clause
from .helpers import compile_set_clause, resolve_column
from .models import SetClause, WhereClause
from .session import DbSession

__all__ = [
    "DbSession",
    "SetClause",
    "WhereClause",
    "Predicate",
    "JOB_FILTERS",
    "COMPANY_FILTERS",
    "compile_set_clause",
    "compile_where_clause",
    "resolve_column",
]
