"""Tests for running and judging individual examples."""

from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

from curriculum_eval.connection.protocol import QueryResponse
from curriculum_eval.context.registry import create_database_with_context
from curriculum_eval.errors import QueryExecutionError
from curriculum_eval.evaluators import example_runner
from curriculum_eval.evaluators.example_runner import (
    error_message,
    format_section_result,
    format_test_result,
    validate_results,
)
from curriculum_eval.models.enums import ExampleType, TransactionType
from curriculum_eval.models.results import ExampleTestResult, ResultBounds, SectionTestResult
from curriculum_eval.models.section import ExampleExpectation, ParsedSection


@pytest_asyncio.fixture
async def social_db(fake_db, social_registry):
    """Fake database seeded with the social-network context."""
    await create_database_with_context(fake_db, "db", social_registry, "social-network")
    fake_db.queries.clear()
    return fake_db


class TestValidateResults:
    """Tests for validate_results."""

    def test_no_expectation_passes(self):
        assert validate_results(0, None) == (None, None)

    def test_results_expected_but_none(self):
        error, bounds = validate_results(0, ExampleExpectation(results=True))

        assert error == "Expected results but got none"
        assert bounds == ResultBounds(min=1)

    def test_results_expected_and_found(self):
        assert validate_results(3, ExampleExpectation(results=True)) == (None, None)

    def test_min(self):
        error, bounds = validate_results(1, ExampleExpectation(min=2))

        assert error == "Expected at least 2 results but got 1"
        assert bounds == ResultBounds(min=2)

    def test_max(self):
        error, bounds = validate_results(5, ExampleExpectation(min=1, max=3))

        assert error == "Expected at most 3 results but got 5"
        assert bounds == ResultBounds(min=1, max=3)

    def test_within_bounds(self):
        error, bounds = validate_results(2, ExampleExpectation(min=1, max=3))

        assert error is None
        assert bounds == ResultBounds(min=1, max=3)

    def test_results_check_runs_before_min(self):
        error, _ = validate_results(0, ExampleExpectation(results=True, min=5))

        assert error == "Expected results but got none"

    def test_zero_max(self):
        assert validate_results(0, ExampleExpectation(max=0))[0] is None


class TestErrorMessage:
    """Tests for error_message normalisation."""

    def test_structured_error_uses_message(self):
        error = QueryExecutionError("Type label 'x' not found", code="INF2")

        assert error_message(error) == "Type label 'x' not found"

    def test_plain_exception(self):
        assert error_message(RuntimeError("boom")) == "boom"

    def test_exception_without_text(self):
        assert error_message(RuntimeError()) == "RuntimeError"

    def test_exception_wrapping_a_dict(self):
        assert error_message(RuntimeError({"message": "wrapped"})) == "wrapped"

    def test_dict(self):
        assert error_message({"message": "from dict"}) == "from dict"

    def test_other_values_as_json(self):
        assert error_message({"code": 7}) == '{"code": 7}'


class TestTestExample:
    """Tests for test_example."""

    @pytest.mark.asyncio
    async def test_readonly_never_executes(self, make_example):
        connection = AsyncMock()

        result = await example_runner.test_example(
            connection, "db", make_example(type=ExampleType.READONLY)
        )

        assert result.passed
        connection.execute_query.assert_not_called()

    @pytest.mark.asyncio
    async def test_example_with_rows(self, social_db, make_example):
        example = make_example(expect=ExampleExpectation(results=True, min=2))

        result = await example_runner.test_example(social_db, "db", example)

        assert result.passed
        assert result.actual_results == 2
        assert result.expected_results == ResultBounds(min=2)
        assert result.source == "lesson.md:7"
        assert result.query == "match $p isa person;"
        assert result.execution_time_ms >= 0
        assert social_db.queries[-1][2] == TransactionType.READ

    @pytest.mark.asyncio
    async def test_example_too_few_rows(self, social_db, make_example):
        example = make_example(expect=ExampleExpectation(min=5))

        result = await example_runner.test_example(social_db, "db", example)

        assert not result.passed
        assert result.error == "Expected at least 5 results but got 2"
        assert result.actual_results == 2

    @pytest.mark.asyncio
    async def test_example_without_expectation_passes_on_success(self, social_db, make_example):
        result = await example_runner.test_example(social_db, "db", make_example())

        assert result.passed
        assert result.expected_results is None

    @pytest.mark.asyncio
    async def test_example_query_error(self, social_db, make_example):
        example = make_example(query="match $x isa spaceship;")

        result = await example_runner.test_example(social_db, "db", example)

        assert not result.passed
        assert result.error == "Type label 'spaceship' not found"

    @pytest.mark.asyncio
    async def test_non_match_response_counts_zero(self, make_example):
        connection = AsyncMock()
        connection.execute_query.return_value = QueryResponse(
            query="fetch", transaction_type=TransactionType.READ, data={"type": "fetch"}
        )
        example = make_example(expect=ExampleExpectation(results=True))

        result = await example_runner.test_example(connection, "db", example)

        assert not result.passed
        assert result.actual_results == 0

    @pytest.mark.asyncio
    async def test_schema_runs_in_schema_transaction(self, social_db, make_example):
        example = make_example(type=ExampleType.SCHEMA, query="define entity city;")

        result = await example_runner.test_example(social_db, "db", example)

        assert result.passed
        assert social_db.queries[-1][2] == TransactionType.SCHEMA
        assert social_db.count("db", "city") == 0
        assert "city" in social_db.databases["db"]

    @pytest.mark.asyncio
    async def test_schema_failure(self, make_example):
        connection = AsyncMock()
        connection.execute_query.side_effect = QueryExecutionError("Invalid define")

        result = await example_runner.test_example(
            connection, "db", make_example(type=ExampleType.SCHEMA, query="define nonsense")
        )

        assert not result.passed
        assert result.error == "Invalid define"

    @pytest.mark.asyncio
    async def test_invalid_passes_when_query_fails(self, social_db, make_example):
        example = make_example(
            type=ExampleType.INVALID,
            query="match $x isa spaceship;",
            expect=ExampleExpectation(error="NOT FOUND"),
        )

        result = await example_runner.test_example(social_db, "db", example)

        assert result.passed
        assert social_db.queries[-1][2] == TransactionType.READ

    @pytest.mark.asyncio
    async def test_invalid_without_pattern_passes_on_any_failure(self, social_db, make_example):
        example = make_example(type=ExampleType.INVALID, query="match $x isa spaceship;")

        result = await example_runner.test_example(social_db, "db", example)

        assert result.passed

    @pytest.mark.asyncio
    async def test_invalid_with_wrong_error(self, social_db, make_example):
        example = make_example(
            type=ExampleType.INVALID,
            query="match $x isa spaceship;",
            expect=ExampleExpectation(error="syntax error"),
        )

        result = await example_runner.test_example(social_db, "db", example)

        assert not result.passed
        assert result.error == (
            'Expected error containing "syntax error" '
            "but got \"Type label 'spaceship' not found\""
        )

    @pytest.mark.asyncio
    async def test_invalid_that_succeeds(self, social_db, make_example):
        example = make_example(type=ExampleType.INVALID)

        result = await example_runner.test_example(social_db, "db", example)

        assert not result.passed
        assert result.error == "Expected query to fail but it succeeded"


class TestTestSection:
    """Tests for test_section."""

    @pytest.mark.asyncio
    async def test_runs_examples_in_order(self, social_db, make_example):
        section = ParsedSection(
            id="people",
            title="People",
            context="social-network",
            examples=[
                make_example("first", expect=ExampleExpectation(results=True)),
                make_example("second", query="match $x isa spaceship;"),
                make_example("third", type=ExampleType.READONLY),
            ],
            source_file="lesson.md",
        )
        seen = []

        result = await example_runner.test_section(
            social_db, "db", section, on_result=lambda r: seen.append(r.example_id)
        )

        assert [e.example_id for e in result.examples] == ["first", "second", "third"]
        assert seen == ["first", "second", "third"]
        assert result.passed_count == 2
        assert not result.all_passed
        assert result.context == "social-network"

    @pytest.mark.asyncio
    async def test_empty_section(self, fake_db):
        section = ParsedSection(id="empty", title="Empty", source_file="e.md")

        result = await example_runner.test_section(fake_db, "db", section)

        assert result.examples == []
        assert result.all_passed
        assert fake_db.queries == []


class TestFormatting:
    """Tests for terminal formatting."""

    def test_format_pass(self):
        result = ExampleTestResult(
            example_id="ok",
            passed=True,
            actual_results=3,
            execution_time_ms=12.4,
            query="match $p isa person;",
            source="a.md:3",
        )

        assert format_test_result(result) == "✓ [ok] (3 results) (12ms)"

    def test_format_fail(self):
        result = ExampleTestResult(
            example_id="bad",
            passed=False,
            error="Expected results but got none",
            query="match\n$p isa person;",
            source="a.md:9",
        )

        assert format_test_result(result) == (
            "✗ [bad] Expected results but got none\n"
            "  Source: a.md:9\n"
            "  Query: match $p isa person;"
        )

    def test_format_section(self):
        result = SectionTestResult(
            section_id="s",
            section_title="Section",
            examples=[
                ExampleTestResult(example_id="a", passed=True, query="q", source="s.md:1"),
                ExampleTestResult(example_id="b", passed=False, query="q", source="s.md:5"),
            ],
            total_time_ms=40,
        )

        assert format_section_result(result) == "✗ Section [s] (1/2 examples, 40ms)"
