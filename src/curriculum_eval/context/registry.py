"""Registry of named contexts and helpers to apply them to a database."""

import logging
from typing import Iterator, Union

from curriculum_eval.connection.protocol import DatabaseConnection
from curriculum_eval.context.statement_splitter import split_statements
from curriculum_eval.errors import ContextNotFoundError
from curriculum_eval.models.bundle import CurriculumBundle
from curriculum_eval.models.context import ContextFiles, LoadedContext
from curriculum_eval.models.enums import TransactionType

logger = logging.getLogger("curriculum_eval.context.registry")

LESSON_DATABASE_PREFIX = "learn_"


class ContextRegistry:
    """In-memory mapping of context name to its schema and seed text."""

    def __init__(self):
        self._contexts: dict[str, ContextFiles] = {}

    @classmethod
    def from_bundle(cls, bundle: CurriculumBundle) -> "ContextRegistry":
        """Create a registry holding every context loaded into a bundle."""
        registry = cls()
        registry.register_bundle(bundle)
        return registry

    def register(self, name: str, files: Union[ContextFiles, LoadedContext]) -> None:
        """Register context files under a name.

        Registering an existing name replaces it.
        """
        if name in self._contexts:
            logger.debug(f"Replacing registered context '{name}'")
        self._contexts[name] = ContextFiles(
            schema_text=files.schema_text,
            seed=files.seed,
            description=files.description,
        )

    def register_bundle(self, bundle: CurriculumBundle) -> None:
        """Register every loaded context of a bundle."""
        for name, context in bundle.loaded_contexts.items():
            self.register(name, context)

    def load(self, name: str) -> LoadedContext:
        """Get a registered context.

        Raises:
            ContextNotFoundError: If no context is registered under the name.
        """
        files = self._contexts.get(name)
        if files is None:
            raise ContextNotFoundError(name, self.names())
        return LoadedContext(
            name=name,
            description=files.description,
            schema_text=files.schema_text,
            seed=files.seed,
        )

    def has(self, name: str) -> bool:
        """Whether a context is registered."""
        return name in self._contexts

    def names(self) -> list[str]:
        """Registered context names in registration order."""
        return list(self._contexts)

    def clear(self) -> None:
        """Remove all registered contexts."""
        self._contexts.clear()

    def __contains__(self, name: object) -> bool:
        return name in self._contexts

    def __len__(self) -> int:
        return len(self._contexts)

    def __iter__(self) -> Iterator[str]:
        return iter(self._contexts)


def lesson_database_name(
    context_name: str,
    suffix: str = "",
    prefix: str = LESSON_DATABASE_PREFIX,
) -> str:
    """Database name used for a context.

    Example:
        lesson_database_name("social-network") == "learn_social_network"
    """
    return f"{prefix}{context_name.replace('-', '_')}{suffix}"


def strip_comment_lines(text: str) -> str:
    """Remove lines that are TypeQL comments."""
    return "\n".join(line for line in text.split("\n") if not line.strip().startswith("#"))


async def apply_context(
    connection: DatabaseConnection,
    database: str,
    context: LoadedContext,
) -> None:
    """Apply a context's schema and seed data to a database.

    The schema runs in one schema transaction. Seed statements run one per
    write transaction; a failing seed statement is logged and skipped.

    Args:
        connection: Database connection.
        database: Target database (must exist).
        context: Context to apply.

    Raises:
        Exception: If the schema is rejected.
    """
    if context.has_schema:
        await connection.execute_query(
            database, strip_comment_lines(context.schema_text), TransactionType.SCHEMA
        )
    else:
        logger.debug(f"Context '{context.name}' has no schema, skipping schema step")

    if not context.has_seed:
        return

    statements = split_statements(context.seed)
    applied = 0
    for statement in statements:
        try:
            await connection.execute_query(database, statement, TransactionType.WRITE)
            applied += 1
        except Exception as e:
            logger.warning(f"Seed statement failed in context '{context.name}': {e}")

    logger.debug(
        f"Applied context '{context.name}' to {database}: "
        f"{applied}/{len(statements)} seed statements"
    )


async def load_and_apply_context(
    connection: DatabaseConnection,
    database: str,
    registry: ContextRegistry,
    name: str,
) -> LoadedContext:
    """Look up a registered context and apply it to a database.

    Raises:
        ContextNotFoundError: If the context is not registered.
    """
    context = registry.load(name)
    await apply_context(connection, database, context)
    return context


async def reset_database(connection: DatabaseConnection, database: str) -> None:
    """Drop a database if present and create it empty."""
    try:
        await connection.delete_database(database)
    except Exception as e:
        logger.debug(f"Database {database} not deleted before create: {e}")
    await connection.create_database(database)


async def create_database_with_context(
    connection: DatabaseConnection,
    database: str,
    registry: ContextRegistry,
    name: str,
) -> LoadedContext:
    """Create a fresh database with a context applied.

    An existing database with the same name is deleted first.

    Returns:
        The context that was applied.
    """
    await reset_database(connection, database)
    return await load_and_apply_context(connection, database, registry, name)
