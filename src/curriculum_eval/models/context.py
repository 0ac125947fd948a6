"""Context (schema + seed dataset) models."""

from pydantic import BaseModel, ConfigDict


class ContextFiles(BaseModel):
    """Schema and seed text registered for a context."""

    schema_text: str = ""
    seed: str = ""
    description: str = ""

    model_config = ConfigDict(frozen=True)


class ContextMeta(BaseModel):
    """Context metadata discovered in the contexts directory."""

    name: str  # Directory name under _contexts
    description: str = ""
    schema_file: str
    seed_file: str

    model_config = ConfigDict(frozen=True)


class LoadedContext(BaseModel):
    """A context with its schema and seed content loaded."""

    name: str
    description: str = ""
    schema_text: str = ""
    seed: str = ""

    model_config = ConfigDict(frozen=True)

    @property
    def has_schema(self) -> bool:
        """Whether the schema text has any content."""
        return bool(self.schema_text.strip())

    @property
    def has_seed(self) -> bool:
        """Whether the seed text has any content."""
        return bool(self.seed.strip())
