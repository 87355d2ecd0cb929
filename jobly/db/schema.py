from __future__ import annotations

from .session import DbSession

SCHEMA_STATEMENTS = (
    """
    CREATE TABLE IF NOT EXISTS companies (
        handle VARCHAR(25) PRIMARY KEY CHECK (handle = lower(handle)),
        name TEXT UNIQUE NOT NULL,
        num_employees INTEGER CHECK (num_employees >= 0),
        description TEXT NOT NULL,
        logo_url TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS jobs (
        id SERIAL PRIMARY KEY,
        title TEXT NOT NULL,
        salary INTEGER CHECK (salary >= 0),
        equity NUMERIC CHECK (equity <= 1.0),
        company_handle VARCHAR(25) NOT NULL
            REFERENCES companies ON DELETE CASCADE,
        UNIQUE (title, company_handle)
    )
    """,
)

# Reverse dependency order.
DROP_STATEMENTS = (
    "DROP TABLE IF EXISTS jobs",
    "DROP TABLE IF EXISTS companies",
)


def create_schema(session: DbSession) -> None:
    for statement in SCHEMA_STATEMENTS:
        session.execute(statement)


def drop_schema(session: DbSession) -> None:
    for statement in DROP_STATEMENTS:
        session.execute(statement)
