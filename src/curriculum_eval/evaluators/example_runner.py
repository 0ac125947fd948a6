"""Run parsed examples against a database and judge the outcome."""

import json
import logging
import time
from typing import Any, Callable, Optional

from curriculum_eval.connection.protocol import DatabaseConnection
from curriculum_eval.models.enums import ExampleType, TransactionType
from curriculum_eval.models.results import ExampleTestResult, ResultBounds, SectionTestResult
from curriculum_eval.models.section import ExampleExpectation, ParsedExample, ParsedSection

logger = logging.getLogger("curriculum_eval.evaluators.example_runner")

PASS_MARK = "✓"
FAIL_MARK = "✗"


async def test_example(
    connection: DatabaseConnection,
    database: str,
    example: ParsedExample,
) -> ExampleTestResult:
    """Run one example and compare the outcome with its expectation.

    - readonly: always passes, nothing is executed
    - schema: runs in a schema transaction, passes if it succeeds
    - invalid: runs in a read transaction, passes if it fails (with the
      expected error text, when one is given)
    - example: runs in a read transaction, passes if the row count meets
      the expectation

    Never raises; unexpected errors become a failed result.

    Args:
        connection: Database connection.
        database: Database to run against.
        example: The example to run.

    Returns:
        ExampleTestResult for the example.
    """
    start = time.perf_counter()
    try:
        if example.type == ExampleType.READONLY:
            result = _result(example, start, passed=True)
        elif example.type == ExampleType.SCHEMA:
            await connection.execute_query(database, example.query, TransactionType.SCHEMA)
            result = _result(example, start, passed=True)
        elif example.type == ExampleType.INVALID:
            result = await _test_invalid_example(connection, database, example, start)
        else:
            result = await _test_match_example(connection, database, example, start)
    except Exception as e:
        result = _result(example, start, passed=False, error=error_message(e))

    logger.debug(format_test_result(result))
    return result


async def _test_invalid_example(
    connection: DatabaseConnection,
    database: str,
    example: ParsedExample,
    start: float,
) -> ExampleTestResult:
    try:
        await connection.execute_query(database, example.query, TransactionType.READ)
    except Exception as e:
        message = error_message(e)
        expected = example.expect.error if example.expect else None
        if expected and expected.lower() not in message.lower():
            return _result(
                example,
                start,
                passed=False,
                error=f'Expected error containing "{expected}" but got "{message}"',
            )
        return _result(example, start, passed=True)

    return _result(example, start, passed=False, error="Expected query to fail but it succeeded")


async def _test_match_example(
    connection: DatabaseConnection,
    database: str,
    example: ParsedExample,
    start: float,
) -> ExampleTestResult:
    response = await connection.execute_query(database, example.query, TransactionType.READ)

    count = 0
    if response.data.get("type") == "match":
        count = len(response.data.get("answers") or [])

    error, bounds = validate_results(count, example.expect)
    return _result(
        example,
        start,
        passed=error is None,
        error=error,
        actual_results=count,
        expected_results=bounds,
    )


def validate_results(
    actual_count: int,
    expect: Optional[ExampleExpectation],
) -> tuple[Optional[str], Optional[ResultBounds]]:
    """Check a row count against an expectation.

    Checks run in order: results, then min, then max. The first failure wins.

    Returns:
        (error message or None, bounds that were checked or None).
    """
    if expect is None:
        return None, None

    if expect.results and actual_count == 0:
        return "Expected results but got none", ResultBounds(min=1)

    bounds: dict[str, int] = {}
    if expect.min is not None:
        bounds["min"] = expect.min
        if actual_count < expect.min:
            return (
                f"Expected at least {expect.min} results but got {actual_count}",
                ResultBounds(**bounds),
            )

    if expect.max is not None:
        bounds["max"] = expect.max
        if actual_count > expect.max:
            return (
                f"Expected at most {expect.max} results but got {actual_count}",
                ResultBounds(**bounds),
            )

    return None, ResultBounds(**bounds) if bounds else None


def error_message(error: Any) -> str:
    """Readable message for any error a connection may raise."""
    message = getattr(error, "message", None)
    if isinstance(message, str) and message:
        return message

    if isinstance(error, BaseException):
        if len(error.args) == 1 and not isinstance(error.args[0], str):
            return error_message(error.args[0])
        return str(error) or type(error).__name__

    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])

    try:
        return json.dumps(error, default=str)
    except (TypeError, ValueError):
        return repr(error)


def _result(
    example: ParsedExample,
    start: float,
    passed: bool,
    error: Optional[str] = None,
    actual_results: Optional[int] = None,
    expected_results: Optional[ResultBounds] = None,
) -> ExampleTestResult:
    return ExampleTestResult(
        example_id=example.id,
        passed=passed,
        error=error,
        actual_results=actual_results,
        expected_results=expected_results,
        execution_time_ms=(time.perf_counter() - start) * 1000,
        query=example.query,
        source=example.source,
    )


async def test_section(
    connection: DatabaseConnection,
    database: str,
    section: ParsedSection,
    on_result: Optional[Callable[[ExampleTestResult], None]] = None,
) -> SectionTestResult:
    """Run every example of a section in order on one database.

    Args:
        connection: Database connection.
        database: Database to run against.
        section: Section whose examples are run.
        on_result: Called with each example result as it completes.
    """
    start = time.perf_counter()
    results = []
    for example in section.examples:
        result = await test_example(connection, database, example)
        results.append(result)
        if on_result:
            on_result(result)
    return SectionTestResult(
        section_id=section.id,
        section_title=section.title,
        context=section.context,
        examples=results,
        total_time_ms=(time.perf_counter() - start) * 1000,
    )


def format_test_result(result: ExampleTestResult) -> str:
    """Format an example result for the terminal."""
    if result.passed:
        info = f" ({result.actual_results} results)" if result.actual_results is not None else ""
        return f"{PASS_MARK} [{result.example_id}]{info} ({result.execution_time_ms:.0f}ms)"

    return (
        f"{FAIL_MARK} [{result.example_id}] {result.error}\n"
        f"  Source: {result.source}\n"
        f"  Query: {result.query_preview}"
    )


def format_section_result(result: SectionTestResult) -> str:
    """Format a one-line section summary."""
    status = PASS_MARK if result.all_passed else FAIL_MARK
    return (
        f"{status} {result.section_title} [{result.section_id}] "
        f"({result.passed_count}/{len(result.examples)} examples, {result.total_time_ms:.0f}ms)"
    )
