"""Protocol definitions for database connections."""

import re
from typing import Any, Optional, Protocol, runtime_checkable

from pydantic import BaseModel, Field

from curriculum_eval.models.enums import TransactionType

SCHEMA_KEYWORDS = ("define", "undefine", "redefine")
WRITE_KEYWORD_PATTERN = re.compile(r"\b(insert|delete|update|put)\b", re.IGNORECASE)


class QueryResponse(BaseModel):
    """Result of executing a query.

    ``data["type"]`` is one of:
    - "match": rows in ``data["answers"]``
    - "fetch": JSON documents in ``data["documents"]``
    - "ok": the query succeeded with nothing to return
    """

    query: str
    transaction_type: TransactionType
    execution_time_ms: float = 0.0
    data: dict[str, Any] = Field(default_factory=lambda: {"type": "ok"})

    @property
    def row_count(self) -> int:
        """Number of rows for match results, 0 otherwise."""
        if self.data.get("type") == "match":
            return len(self.data.get("answers") or [])
        return 0


def detect_transaction_type(query: str) -> TransactionType:
    """Guess the transaction type a query needs.

    Schema keywords at the start of the query or of any line win, then
    write keywords anywhere in the query, otherwise read.
    """
    normalized = query.lower().strip()
    for keyword in SCHEMA_KEYWORDS:
        if normalized.startswith(keyword) or f"\n{keyword}" in normalized:
            return TransactionType.SCHEMA
    if WRITE_KEYWORD_PATTERN.search(normalized):
        return TransactionType.WRITE
    return TransactionType.READ


@runtime_checkable
class DatabaseConnection(Protocol):
    """Protocol for TypeDB connections.

    The runner and context loader only depend on this protocol, so any
    backend (HTTP, embedded, a test double) can be swapped in.
    """

    async def execute_query(
        self,
        database: str,
        query: str,
        transaction_type: Optional[TransactionType] = None,
    ) -> QueryResponse:
        """Execute a query in its own transaction.

        Args:
            database: Target database name.
            query: TypeQL query text.
            transaction_type: Transaction to open; detected from the query
                when omitted.

        Returns:
            QueryResponse with the result data.

        Raises:
            Exception: Any error reported by the server.
        """
        ...

    async def create_database(self, name: str) -> None:
        """Create a database."""
        ...

    async def delete_database(self, name: str) -> None:
        """Delete a database. Raises if it does not exist."""
        ...

    async def database_exists(self, name: str) -> bool:
        """Check whether a database exists."""
        ...

    async def close(self) -> None:
        """Release any resources held by the connection."""
        ...
