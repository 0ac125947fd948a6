"""Database connection abstraction and implementations."""

from curriculum_eval.connection.factory import create_connection
from curriculum_eval.connection.http import TypeDBHttpConnection
from curriculum_eval.connection.protocol import (
    DatabaseConnection,
    QueryResponse,
    detect_transaction_type,
)

__all__ = [
    "DatabaseConnection",
    "QueryResponse",
    "TypeDBHttpConnection",
    "create_connection",
    "detect_transaction_type",
]
