from __future__ import annotations

import logging
from typing import Any, Mapping

from sqlalchemy.engine import Engine
from sqlalchemy.exc import DataError, IntegrityError

from ..db.filters import COMPANY_FILTERS, compile_where_clause
from ..db.helpers import (
    as_number,
    compile_set_clause,
    is_check_violation,
    is_not_null_violation,
    is_unique_violation,
)
from ..db.session import DbSession
from ..errors import BadRequestError, DuplicateKeyError, NotFoundError

logger = logging.getLogger(__name__)

COMPANY_COLUMNS = (
    'handle, name, description, num_employees AS "numEmployees", logo_url AS "logoUrl"'
)

COMPANY_NAME_TRANSLATION = {
    "numEmployees": "num_employees",
    "logoUrl": "logo_url",
}

UPDATABLE_FIELDS = frozenset({"name", "description", "numEmployees", "logoUrl"})


class Company:
    """Repository for the `companies` table."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def create(self, data: Mapping[str, Any]) -> dict[str, Any]:
        """
        Insert a company and return it.

        data should be {handle, name, description, numEmployees, logoUrl}.

        Raises:
            BadRequestError: numEmployees is not a non-negative number, or the
                store rejects the data
            DuplicateKeyError: handle or name is already taken
        """
        handle = data.get("handle")
        num_employees = data.get("numEmployees")
        if num_employees is not None and as_number("numEmployees", num_employees) < 0:
            raise BadRequestError("numEmployees cannot be negative")

        try:
            with DbSession(self.engine) as session:
                duplicate = session.fetch_one(
                    "SELECT handle FROM companies WHERE handle = $1", [handle]
                )
                if duplicate is not None:
                    logger.info("Rejected duplicate company %s", handle)
                    raise DuplicateKeyError(f"Duplicate company: {handle}")

                company = session.fetch_one(
                    f"""INSERT INTO companies
                        (handle, name, description, num_employees, logo_url)
                        VALUES ($1, $2, $3, $4, $5)
                        RETURNING {COMPANY_COLUMNS}""",
                    [
                        handle,
                        data.get("name"),
                        data.get("description"),
                        num_employees,
                        data.get("logoUrl"),
                    ],
                )
        except IntegrityError as exc:
            if is_unique_violation(exc):
                raise DuplicateKeyError(f"Duplicate company: {handle}") from exc
            if is_check_violation(exc):
                raise BadRequestError(f"Invalid company data: {exc.orig}") from exc
            if is_not_null_violation(exc):
                raise BadRequestError(f"Missing required company data: {exc.orig}") from exc
            raise
        except DataError as exc:
            raise BadRequestError(f"Invalid company data: {exc.orig}") from exc

        logger.debug("Created company %s", handle)
        return company

    def find_all(self) -> list[dict[str, Any]]:
        with DbSession(self.engine) as session:
            return session.fetch_all(f"SELECT {COMPANY_COLUMNS} FROM companies ORDER BY name")

    def find_matching(self, criteria: Mapping[str, Any] | None) -> list[dict[str, Any]]:
        """
        Companies matching every recognized criterion: name (case-insensitive
        substring), min_employees, max_employees.

        Raises:
            BadRequestError: a bound is not numeric, or min_employees is
                greater than max_employees
        """
        criteria = criteria or {}
        min_employees = criteria.get("min_employees")
        max_employees = criteria.get("max_employees")
        if (
            min_employees is not None
            and max_employees is not None
            and as_number("min_employees", min_employees) > as_number("max_employees", max_employees)
        ):
            raise BadRequestError("min_employees cannot be greater than max_employees")

        where = compile_where_clause(criteria, COMPANY_FILTERS)
        if where is None:
            return self.find_all()

        with DbSession(self.engine) as session:
            return session.fetch_all(
                f"SELECT {COMPANY_COLUMNS} FROM companies WHERE {where.sql} ORDER BY name",
                list(where.values),
            )

    def get(self, handle: str) -> dict[str, Any]:
        """
        Company with its jobs: {..., jobs: [{id, title, salary, equity}, ...]}.

        Raises:
            NotFoundError: no company has this handle
        """
        with DbSession(self.engine) as session:
            company = session.fetch_one(
                f"SELECT {COMPANY_COLUMNS} FROM companies WHERE handle = $1", [handle]
            )
            if company is None:
                raise NotFoundError(f"No company: {handle}")

            company["jobs"] = session.fetch_all(
                """SELECT id, title, salary, CAST(equity AS FLOAT) AS equity
                   FROM jobs
                   WHERE company_handle = $1
                   ORDER BY id""",
                [handle],
            )
        return company

    def update(self, handle: str, data: Mapping[str, Any]) -> dict[str, Any]:
        """
        Partially update a company. The handle itself cannot change.

        Raises:
            BadRequestError: data is empty, names other fields, or is rejected
            DuplicateKeyError: the new name is taken
            NotFoundError: no company has this handle
        """
        unknown = sorted(set(data) - UPDATABLE_FIELDS)
        if unknown:
            raise BadRequestError(f"Cannot update company fields: {', '.join(unknown)}")

        clause = compile_set_clause(data, COMPANY_NAME_TRANSLATION)
        handle_idx = len(clause.values) + 1

        try:
            with DbSession(self.engine) as session:
                company = session.fetch_one(
                    f"""UPDATE companies SET {clause.sql}
                        WHERE handle = ${handle_idx}
                        RETURNING {COMPANY_COLUMNS}""",
                    [*clause.values, handle],
                )
        except IntegrityError as exc:
            if is_unique_violation(exc):
                raise DuplicateKeyError(f"Duplicate company name: {data.get('name')}") from exc
            if is_check_violation(exc):
                raise BadRequestError(f"Invalid company data: {exc.orig}") from exc
            if is_not_null_violation(exc):
                raise BadRequestError(f"Missing required company data: {exc.orig}") from exc
            raise
        except DataError as exc:
            raise BadRequestError(f"Invalid company data: {exc.orig}") from exc

        if company is None:
            raise NotFoundError(f"No company: {handle}")
        return company

    def remove(self, handle: str) -> None:
        """
        Delete a company and, by cascade, its jobs.

        Raises:
            NotFoundError: no company has this handle
        """
        with DbSession(self.engine) as session:
            row = session.fetch_one(
                "DELETE FROM companies WHERE handle = $1 RETURNING handle", [handle]
            )

        if row is None:
            raise NotFoundError(f"No company: {handle}")
        logger.debug("Removed company %s", handle)
