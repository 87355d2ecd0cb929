from __future__ import annotations

import logging
from typing import Any, Mapping

from sqlalchemy.engine import Engine
from sqlalchemy.exc import DataError, IntegrityError

from ..db.filters import JOB_FILTERS, compile_where_clause
from ..db.helpers import (
    as_number,
    compile_set_clause,
    is_check_violation,
    is_foreign_key_violation,
    is_not_null_violation,
    is_unique_violation,
)
from ..db.session import DbSession
from ..errors import BadRequestError, DuplicateKeyError, JoblyError, NotFoundError

logger = logging.getLogger(__name__)

JOB_COLUMNS = (
    "id, title, salary, CAST(equity AS FLOAT) AS equity, "
    'company_handle AS "companyHandle"'
)

# Logical and storage names coincide for these, so updates need no translation.
UPDATABLE_FIELDS = frozenset({"title", "salary", "equity"})


def check_job_rules(data: Mapping[str, Any]) -> None:
    """
    Business rules shared by create and update.

    Raises:
        BadRequestError: salary is not positive, or equity is outside [0, 1]
    """
    salary = data.get("salary")
    if salary is not None and as_number("salary", salary) <= 0:
        raise BadRequestError("Salary must be positive")

    equity = data.get("equity")
    if equity is not None and not 0 <= as_number("equity", equity) <= 1:
        raise BadRequestError("Equity must be between 0 and 1.0")


class Job:
    """
    Repository for the `jobs` table.

    Records are dicts shaped {id, title, salary, equity, companyHandle}.
    Every method runs in its own DbSession, so each call is atomic.
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def create(self, data: Mapping[str, Any]) -> dict[str, Any]:
        """
        Insert a job and return it.

        data should be {title, salary, equity, companyHandle}; salary and
        equity may be omitted or None.

        Raises:
            BadRequestError: business rules fail or the company does not exist
            DuplicateKeyError: the company already posts a job with this title
        """
        check_job_rules(data)
        title = data.get("title")
        company_handle = data.get("companyHandle")
        if not title or not company_handle:
            raise BadRequestError("title and companyHandle are required")

        with DbSession(self.engine) as session:
            company = session.fetch_one(
                "SELECT handle FROM companies WHERE handle = $1", [company_handle]
            )
            if company is None:
                raise BadRequestError(f"Company {company_handle} does not exist")

            duplicate = session.fetch_one(
                "SELECT id FROM jobs WHERE title = $1 AND company_handle = $2",
                [title, company_handle],
            )
            if duplicate is not None:
                logger.info("Rejected duplicate job %r at %s", title, company_handle)
                raise DuplicateKeyError(f"Duplicate job posting: {title} at {company_handle}")

            try:
                job = session.fetch_one(
                    f"""INSERT INTO jobs (title, salary, equity, company_handle)
                        VALUES ($1, $2, $3, $4)
                        RETURNING {JOB_COLUMNS}""",
                    [title, data.get("salary"), data.get("equity"), company_handle],
                )
            except IntegrityError as exc:
                translated = self._translate_integrity_error(exc, title, company_handle)
                if translated is None:
                    raise
                raise translated from exc
            except DataError as exc:
                raise BadRequestError(f"Invalid job data: {exc.orig}") from exc

        logger.debug("Created job %s (%r at %s)", job["id"], title, company_handle)
        return job

    def find_all(self) -> list[dict[str, Any]]:
        """All jobs, newest first."""
        with DbSession(self.engine) as session:
            return session.fetch_all(f"SELECT {JOB_COLUMNS} FROM jobs ORDER BY id DESC")

    def find_matching(self, criteria: Mapping[str, Any] | None) -> list[dict[str, Any]]:
        """
        Jobs matching every recognized criterion.

        Recognized criteria: title (case-insensitive substring), min_salary,
        has_equity. Without any recognized criterion this is find_all().
        """
        where = compile_where_clause(criteria, JOB_FILTERS)
        if where is None:
            return self.find_all()

        with DbSession(self.engine) as session:
            return session.fetch_all(
                f"SELECT {JOB_COLUMNS} FROM jobs WHERE {where.sql} ORDER BY id DESC",
                list(where.values),
            )

    def get(self, job_id: int) -> dict[str, Any]:
        """
        Raises:
            NotFoundError: no job has this id
        """
        with DbSession(self.engine) as session:
            job = session.fetch_one(f"SELECT {JOB_COLUMNS} FROM jobs WHERE id = $1", [job_id])

        if job is None:
            raise NotFoundError(f"No job: {job_id}")
        return job

    def update(self, job_id: int, data: Mapping[str, Any]) -> dict[str, Any]:
        """
        Partially update a job and return it.

        Only title, salary and equity can change; a job never moves to
        another company.

        Raises:
            BadRequestError: data is empty, names other fields, breaks a
                business rule, or is rejected by the store
            DuplicateKeyError: the new title collides at the same company
            NotFoundError: no job has this id
        """
        unknown = sorted(set(data) - UPDATABLE_FIELDS)
        if unknown:
            raise BadRequestError(f"Cannot update job fields: {', '.join(unknown)}")
        check_job_rules(data)

        clause = compile_set_clause(data)
        id_idx = len(clause.values) + 1

        try:
            with DbSession(self.engine) as session:
                job = session.fetch_one(
                    f"""UPDATE jobs SET {clause.sql}
                        WHERE id = ${id_idx}
                        RETURNING {JOB_COLUMNS}""",
                    [*clause.values, job_id],
                )
        except IntegrityError as exc:
            translated = self._translate_integrity_error(exc, data.get("title"), None)
            if translated is None:
                raise
            raise translated from exc
        except DataError as exc:
            raise BadRequestError(f"Invalid job data: {exc.orig}") from exc

        if job is None:
            raise NotFoundError(f"No job: {job_id}")
        return job

    def remove(self, job_id: int) -> None:
        """
        Raises:
            NotFoundError: no job has this id
        """
        with DbSession(self.engine) as session:
            row = session.fetch_one("DELETE FROM jobs WHERE id = $1 RETURNING id", [job_id])

        if row is None:
            raise NotFoundError(f"No job: {job_id}")
        logger.debug("Removed job %s", job_id)

    @staticmethod
    def _translate_integrity_error(
        exc: IntegrityError, title: str | None, company_handle: str | None
    ) -> JoblyError | None:
        if is_unique_violation(exc):
            logger.info("Rejected duplicate job %r at %s", title, company_handle)
            return DuplicateKeyError(f"Duplicate job posting: {title}")
        if is_foreign_key_violation(exc):
            return BadRequestError(f"Company {company_handle} does not exist")
        if is_check_violation(exc):
            return BadRequestError(f"Invalid job data: {exc.orig}")
        if is_not_null_violation(exc):
            return BadRequestError(f"Missing required job data: {exc.orig}")
        return None
