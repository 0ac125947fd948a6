"""Exception types for the curriculum evaluation pipeline."""

from typing import Any, Optional


class CurriculumEvalError(Exception):
    """Base class for all curriculum evaluation errors."""


class ContentRootError(CurriculumEvalError):
    """The curriculum content root cannot be read at all."""


class ContextNotFoundError(CurriculumEvalError, KeyError):
    """A context was requested that has not been registered."""

    def __init__(self, name: str, available: list[str]):
        self.name = name
        self.available = available
        super().__init__(
            f"Context '{name}' not found. "
            f"Available contexts: {', '.join(available) or 'none'}"
        )

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return self.args[0]


class QueryExecutionError(CurriculumEvalError):
    """Structured error raised by a database connection.

    Attributes:
        code: Short machine-readable code (e.g. "QUERY_ERROR", "HTTP_404").
        message: Human-readable message from the server.
        details: Raw error payload, if any.
    """

    def __init__(
        self,
        message: str,
        code: str = "QUERY_ERROR",
        details: Optional[Any] = None,
    ):
        self.message = message
        self.code = code
        self.details = details
        super().__init__(message)

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"
