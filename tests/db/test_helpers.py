from __future__ import annotations

from types import SimpleNamespace

import pytest

from jobly.db.helpers import (
    as_number,
    bind_positional,
    compile_set_clause,
    is_check_violation,
    is_foreign_key_violation,
    is_not_null_violation,
    is_unique_violation,
    parse_sql_operation,
    resolve_column,
)
from jobly.errors import BadRequestError


class TestCompileSetClause:
    def test_translates_mapped_names_and_numbers_placeholders(self) -> None:
        clause = compile_set_clause({"foo": 1, "bar": "two"}, {"bar": "grill"})

        assert clause.sql == '"foo"=$1, "grill"=$2'
        assert clause.values == (1, "two")

    def test_empty_update_is_bad_request(self) -> None:
        with pytest.raises(BadRequestError):
            compile_set_clause({}, {})

    def test_empty_update_is_bad_request_without_translation(self) -> None:
        with pytest.raises(BadRequestError):
            compile_set_clause({})

    def test_unmapped_keys_pass_through_unchanged(self) -> None:
        clause = compile_set_clause({"title": "t", "salary": 5})

        assert clause.columns == ('"title"=$1', '"salary"=$2')

    def test_translation_wins_over_logical_key(self) -> None:
        clause = compile_set_clause(
            {"numEmployees": 3, "logoUrl": None},
            {"numEmployees": "num_employees", "logoUrl": "logo_url"},
        )

        assert clause.sql == '"num_employees"=$1, "logo_url"=$2'
        assert "numEmployees" not in clause.sql

    def test_placeholder_n_binds_value_n_minus_1(self) -> None:
        data = {"a": 10, "b": None, "c": True, "d": "x", "e": 2.5}
        clause = compile_set_clause(data, {"c": "see"})

        assert len(clause.values) == len(data)
        for n, fragment in enumerate(clause.columns, start=1):
            assert fragment.endswith(f"=${n}")
        assert clause.values == (10, None, True, "x", 2.5)

    def test_translation_entries_for_absent_keys_are_ignored(self) -> None:
        clause = compile_set_clause({"title": "t"}, {"companyHandle": "company_handle"})

        assert clause.sql == '"title"=$1'


class TestResolveColumn:
    def test_mapped(self) -> None:
        assert resolve_column("companyHandle", {"companyHandle": "company_handle"}) == "company_handle"

    def test_unmapped(self) -> None:
        assert resolve_column("title", {"companyHandle": "company_handle"}) == "title"

    def test_no_table(self) -> None:
        assert resolve_column("title", None) == "title"


class TestBindPositional:
    def test_rewrites_placeholders_to_named_binds(self) -> None:
        sql, params = bind_positional("UPDATE jobs SET \"title\"=$1 WHERE id = $2", ["t", 7])

        assert sql == 'UPDATE jobs SET "title"=:p1 WHERE id = :p2'
        assert params == {"p1": "t", "p2": 7}

    def test_double_digit_placeholders(self) -> None:
        values = list(range(12))
        sql, params = bind_positional("SELECT $1, $10, $12", values)

        assert sql == "SELECT :p1, :p10, :p12"
        assert params["p10"] == 9
        assert params["p12"] == 11

    def test_repeated_placeholder(self) -> None:
        sql, params = bind_positional("SELECT $1 WHERE a = $1", ["x"])

        assert sql == "SELECT :p1 WHERE a = :p1"
        assert params == {"p1": "x"}

    @pytest.mark.parametrize("sql", ["SELECT $2", "SELECT $0"])
    def test_out_of_range_placeholder_raises(self, sql: str) -> None:
        with pytest.raises(ValueError):
            bind_positional(sql, ["only-one"])


class TestParseSqlOperation:
    @pytest.mark.parametrize(
        ("sql", "expected"),
        [
            ("INSERT INTO jobs (title) VALUES ($1)", ("jobs", "insert")),
            ('UPDATE companies SET "name"=$1 WHERE handle = $2', ("companies", "update")),
            ("DELETE FROM jobs WHERE id = $1 RETURNING id", ("jobs", "delete")),
            ("SELECT id,\n  title\nFROM jobs\nORDER BY id", ("jobs", "select")),
            ("CREATE TABLE x (id INT)", ("unknown", "unknown")),
        ],
    )
    def test_classifies_statement(self, sql: str, expected: tuple[str, str]) -> None:
        assert parse_sql_operation(sql) == expected


class _Orig(Exception):
    def __init__(self, message: str, sqlstate: str | None = None) -> None:
        super().__init__(message)
        self.sqlstate = sqlstate


class TestIntegrityClassification:
    def test_unique_violation_by_sqlstate(self) -> None:
        exc = SimpleNamespace(orig=_Orig("boom", "23505"))
        assert is_unique_violation(exc)
        assert not is_foreign_key_violation(exc)

    def test_unique_violation_by_message(self) -> None:
        exc = SimpleNamespace(orig=_Orig('duplicate key value violates unique constraint "jobs_pkey"'))
        assert is_unique_violation(exc)

    def test_foreign_key_violation(self) -> None:
        exc = SimpleNamespace(orig=_Orig("boom", "23503"))
        assert is_foreign_key_violation(exc)
        assert not is_unique_violation(exc)

    def test_check_violation(self) -> None:
        exc = SimpleNamespace(orig=_Orig('violates check constraint "jobs_salary_check"'))
        assert is_check_violation(exc)

    def test_not_null_violation_by_sqlstate(self) -> None:
        exc = SimpleNamespace(orig=_Orig("boom", "23502"))
        assert is_not_null_violation(exc)
        assert not is_check_violation(exc)

    def test_not_null_violation_by_message(self) -> None:
        exc = SimpleNamespace(orig=_Orig('null value in column "title" violates not-null constraint'))
        assert is_not_null_violation(exc)
        assert not is_unique_violation(exc)


class TestAsNumber:
    @pytest.mark.parametrize(("value", "expected"), [(5, 5.0), ("5", 5.0), ("0.25", 0.25)])
    def test_accepts_numbers_and_numeric_strings(self, value, expected: float) -> None:
        assert as_number("numEmployees", value) == expected

    @pytest.mark.parametrize("value", ["lots", None, [1]])
    def test_rejects_everything_else(self, value) -> None:
        with pytest.raises(BadRequestError, match="numEmployees"):
            as_number("numEmployees", value)
