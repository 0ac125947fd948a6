"""Pytest configuration and fixtures."""

import re
import shutil
from pathlib import Path
from typing import Optional

import pytest

from curriculum_eval.connection.protocol import QueryResponse, detect_transaction_type
from curriculum_eval.context.registry import ContextRegistry
from curriculum_eval.errors import QueryExecutionError
from curriculum_eval.models.context import ContextFiles
from curriculum_eval.models.enums import ExampleType, TransactionType
from curriculum_eval.models.section import ExampleExpectation, ParsedExample

DEFINE_PATTERN = re.compile(r"\b(?:entity|relation|attribute)\s+([\w-]+)")
ISA_PATTERN = re.compile(r"\bisa\s+([\w-]+)")
INSERT_KEYWORD = re.compile(r"\binsert\b")


class FakeTypeDB:
    """In-memory stand-in for a TypeDB server.

    Understands just enough TypeQL for the tests:
    - ``define`` with entity/relation/attribute declarations
    - ``insert ... isa T`` and ``match ... insert ... isa T``
    - ``match $x isa T;`` returning one row per instance of T
    """

    def __init__(self):
        self.databases: dict[str, dict[str, int]] = {}
        self.queries: list[tuple[str, str, TransactionType]] = []
        self.closed = False

    async def execute_query(
        self,
        database: str,
        query: str,
        transaction_type: Optional[TransactionType] = None,
    ) -> QueryResponse:
        tx_type = transaction_type or detect_transaction_type(query)
        self.queries.append((database, query, tx_type))

        if database not in self.databases:
            raise QueryExecutionError(f"Database '{database}' does not exist", code="DB_NOT_FOUND")
        types = self.databases[database]
        text = query.strip()

        if text.startswith("define"):
            if tx_type != TransactionType.SCHEMA:
                raise QueryExecutionError("Schema queries need a schema transaction")
            for label in DEFINE_PATTERN.findall(text):
                types.setdefault(label, 0)
            return QueryResponse(query=query, transaction_type=tx_type)

        if INSERT_KEYWORD.search(text):
            if tx_type == TransactionType.READ:
                raise QueryExecutionError("Cannot write in a read transaction")
            match_part, insert_part = INSERT_KEYWORD.split(text, maxsplit=1)
            for label in ISA_PATTERN.findall(match_part):
                self._require_type(types, label)
            for label in ISA_PATTERN.findall(insert_part):
                self._require_type(types, label)
                types[label] += 1
            return QueryResponse(query=query, transaction_type=tx_type)

        if text.startswith("match"):
            labels = ISA_PATTERN.findall(text)
            for label in labels:
                self._require_type(types, label)
            count = types[labels[0]] if labels else 0
            return QueryResponse(
                query=query,
                transaction_type=tx_type,
                data={"type": "match", "answers": [{} for _ in range(count)]},
            )

        raise QueryExecutionError(f"Unsupported query: {text[:30]}")

    @staticmethod
    def _require_type(types: dict[str, int], label: str) -> None:
        if label not in types:
            raise QueryExecutionError(f"Type label '{label}' not found", code="INF2")

    async def create_database(self, name: str) -> None:
        if name in self.databases:
            raise QueryExecutionError(f"Database '{name}' already exists")
        self.databases[name] = {}

    async def delete_database(self, name: str) -> None:
        if name not in self.databases:
            raise QueryExecutionError(f"Database '{name}' does not exist", code="DB_NOT_FOUND")
        del self.databases[name]

    async def database_exists(self, name: str) -> bool:
        return name in self.databases

    async def close(self) -> None:
        self.closed = True

    def count(self, database: str, label: str) -> int:
        """Number of instances of a type (test helper)."""
        return self.databases[database].get(label, 0)


SOCIAL_SCHEMA = """\
# Social network schema
define
  entity person, owns name, plays friendship:friend;
  relation friendship, relates friend;
  attribute name, value string;
"""

SOCIAL_SEED = """\
insert $p isa person, has name "Alice";
insert $p isa person, has name "Bob";

match
  $a isa person, has name "Alice";
  $b isa person, has name "Bob";
insert
  (friend: $a, friend: $b) isa friendship;
"""


@pytest.fixture
def fixtures_dir() -> Path:
    """Get the path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def curriculum_dir(fixtures_dir: Path) -> Path:
    """Get the path to the sample curriculum."""
    return fixtures_dir / "curriculum"


@pytest.fixture
def curriculum_copy(curriculum_dir: Path, tmp_path: Path) -> Path:
    """A writable copy of the sample curriculum."""
    target = tmp_path / "curriculum"
    shutil.copytree(curriculum_dir, target)
    return target


@pytest.fixture
def fake_db() -> FakeTypeDB:
    """An empty in-memory TypeDB."""
    return FakeTypeDB()


@pytest.fixture
def social_registry() -> ContextRegistry:
    """Registry holding a small social-network context."""
    registry = ContextRegistry()
    registry.register(
        "social-network",
        ContextFiles(schema_text=SOCIAL_SCHEMA, seed=SOCIAL_SEED, description="People"),
    )
    return registry


@pytest.fixture
def make_example():
    """Factory for examples shaped like parser output."""

    def _make(
        example_id: str = "ex",
        type: ExampleType = ExampleType.EXAMPLE,
        query: str = "match $p isa person;",
        expect: Optional[ExampleExpectation] = None,
    ) -> ParsedExample:
        return ParsedExample(
            id=example_id,
            type=type,
            query=query,
            expect=expect,
            source_file="lesson.md",
            line_number=7,
        )

    return _make
