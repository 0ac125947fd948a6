"""Factory function for creating database connections."""

from typing import Optional

from curriculum_eval.config.models import DatabaseConfig
from curriculum_eval.connection.http import TypeDBHttpConnection
from curriculum_eval.connection.protocol import DatabaseConnection


def create_connection(
    config: Optional[DatabaseConfig] = None,
    address: Optional[str] = None,
) -> DatabaseConnection:
    """Create a database connection based on configuration.

    Args:
        config: DatabaseConfig with connection settings.
        address: Override server address.

    Returns:
        DatabaseConnection instance.
    """
    if config is None:
        config = DatabaseConfig()

    return TypeDBHttpConnection(
        address=address or config.address,
        username=config.username,
        password=config.password,
        timeout=config.timeout_seconds,
        retry_attempts=config.retry_attempts,
    )
