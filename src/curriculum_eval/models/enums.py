"""Enumerations for the curriculum evaluation system."""

from enum import Enum


class ExampleType(str, Enum):
    """How an annotated code fence is handled.

    - example: runnable query that should succeed
    - invalid: query that should fail (demonstrates errors)
    - schema: schema definition query
    - readonly: display only, never executed
    """

    EXAMPLE = "example"
    INVALID = "invalid"
    SCHEMA = "schema"
    READONLY = "readonly"

    @classmethod
    def from_token(cls, token: str) -> "ExampleType | None":
        """Convert a fence type token to an ExampleType.

        Args:
            token: The type token from the fence opener (e.g. "example").

        Returns:
            Matching ExampleType, or None if the token is not recognised.
        """
        try:
            return cls(token)
        except ValueError:
            return None


class TransactionType(str, Enum):
    """TypeDB transaction types."""

    READ = "read"
    WRITE = "write"
    SCHEMA = "schema"


class DiagnosticCode(str, Enum):
    """Codes for recoverable authoring problems found while parsing."""

    MISSING_ID = "missing-id"
    MISSING_TITLE = "missing-title"
    INVALID_FRONT_MATTER = "invalid-front-matter"
    UNKNOWN_EXAMPLE_TYPE = "unknown-example-type"
    MISSING_EXAMPLE_ID = "missing-example-id"
    INVALID_ATTRIBUTE = "invalid-attribute"
    UNTERMINATED_FENCE = "unterminated-fence"
