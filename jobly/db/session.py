from __future__ import annotations

import time
from typing import Any, Mapping, Sequence, Union

from sqlalchemy import text
from sqlalchemy.engine import Connection, CursorResult, Engine
from sqlalchemy.sql import TextClause

from .helpers import bind_positional, parse_sql_operation
from .metrics import observe_db_query

Params = Union[Sequence[Any], Mapping[str, Any], None]


class DbSession:
    """
    Transactional wrapper around a SQLAlchemy Engine connection.

    Use as:
        with DbSession(engine) as session:
            row = session.fetch_one("SELECT * FROM jobs WHERE id = $1", [job_id])

    Statements may use positional `$N` placeholders with a sequence of values
    or SQLAlchemy `:name` binds with a mapping. The transaction commits when
    the block exits cleanly and rolls back when it raises.
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        self._conn: Connection | None = None
        self._tx = None

    def __enter__(self) -> "DbSession":
        if self._conn is not None:
            raise RuntimeError("DbSession is already active; nested sessions are not allowed")
        self._conn = self.engine.connect()
        self._tx = self._conn.begin()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            if self._tx is not None:
                if exc_type:
                    self._tx.rollback()
                else:
                    self._tx.commit()
        finally:
            if self._conn is not None:
                self._conn.close()

            self._conn = None
            self._tx = None

        # propagate exceptions (if any)
        return False

    def _connection(self) -> Connection:
        if self._conn is None:
            raise RuntimeError("DbSession is not active; use within a context manager")
        return self._conn

    def _run(self, sql: str | TextClause, params: Params) -> CursorResult:
        conn = self._connection()
        if isinstance(sql, str):
            if params is not None and not isinstance(params, Mapping):
                sql, params = bind_positional(sql, params)
            stmt = text(sql)
        else:
            stmt = sql
        table, op_type = parse_sql_operation(stmt)

        start_time = time.monotonic()
        status = "success"
        try:
            return conn.execute(stmt, params or {})
        except Exception:
            status = "error"
            raise
        finally:
            observe_db_query(table, op_type, status, time.monotonic() - start_time)

    def execute(self, sql: str | TextClause, params: Params = None) -> int:
        """
        Execute a non-SELECT statement and return affected row count.
        """
        result = self._run(sql, params)
        try:
            if result.rowcount is None:
                raise RuntimeError(
                    "execute() received None rowcount for statement. "
                    "This may indicate a DDL statement or unsupported operation type."
                )
            return int(result.rowcount)
        finally:
            result.close()

    def execute_scalar(self, sql: str | TextClause, params: Params = None) -> Any:
        """
        Execute a statement expected to return a single scalar value.
        """
        result = self._run(sql, params)
        try:
            return result.scalar_one_or_none()
        finally:
            result.close()

    def fetch_one(self, sql: str | TextClause, params: Params = None) -> dict[str, Any] | None:
        """
        Execute a statement expected to return 0 or 1 row. Raises if more than one row.
        """
        result = self._run(sql, params)
        try:
            row = result.mappings().one_or_none()
            if row is None:
                return None
            return dict(row)
        finally:
            result.close()

    def fetch_all(self, sql: str | TextClause, params: Params = None) -> list[dict[str, Any]]:
        """
        Execute a statement returning multiple rows.
        """
        result = self._run(sql, params)
        try:
            return [dict(row) for row in result.mappings()]
        finally:
            result.close()
