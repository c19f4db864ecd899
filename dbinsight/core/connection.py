"""
Database Connection Manager

Opens a SQLite database file through SQLAlchemy and exposes the
query capability the analysis core runs against.
"""

from typing import Optional, Any, List, Dict, Generator, Protocol
from contextlib import contextmanager
import logging

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine, Connection
from sqlalchemy.pool import StaticPool
from sqlalchemy.exc import SQLAlchemyError

from dbinsight.config import DatabaseConfig

logger = logging.getLogger(__name__)


class DatabaseConnectionError(Exception):
    """Custom exception for database connection errors."""
    pass


class QueryCapability(Protocol):
    """Anything that can run a read-only SQL statement and return rows."""

    def execute(self, query: str) -> List[Dict[str, Any]]:
        ...


class DatabaseConnectionManager:
    """
    Manages the connection to one SQLite database.

    Features:
    - Lazy engine creation
    - Shared in-memory database across connections
    - Context manager support for safe connection handling
    """

    def __init__(self, config: DatabaseConfig):
        """
        Initialize the connection manager.

        Args:
            config: Database configuration object
        """
        self.config = config
        self._engine: Optional[Engine] = None

    @property
    def engine(self) -> Engine:
        """Get or create the database engine."""
        if self._engine is None:
            self._engine = self._create_engine()
        return self._engine

    def _create_engine(self) -> Engine:
        """Create SQLAlchemy engine with appropriate settings."""
        connection_string = self.config.get_connection_string()

        engine_kwargs: Dict[str, Any] = {
            "connect_args": {"timeout": self.config.connection_timeout},
        }

        # Every connection must see the same in-memory database
        if self.config.is_memory:
            engine_kwargs["connect_args"]["check_same_thread"] = False
            engine_kwargs["poolclass"] = StaticPool

        try:
            engine = create_engine(connection_string, **engine_kwargs)
            logger.info(f"Created database engine for {connection_string}")
            return engine
        except Exception as e:
            raise DatabaseConnectionError(f"Failed to create engine: {e}")

    @contextmanager
    def get_connection(self) -> Generator[Connection, None, None]:
        """
        Get a database connection as a context manager.

        Yields:
            Database connection

        Example:
            with manager.get_connection() as conn:
                result = conn.execute(query)
        """
        connection = None
        try:
            connection = self.engine.connect()
            yield connection
        except SQLAlchemyError as e:
            logger.error(f"Database error: {e}")
            raise DatabaseConnectionError(f"Connection error: {e}")
        finally:
            if connection:
                connection.close()

    def test_connection(self) -> bool:
        """
        Test the database connection.

        Returns:
            True if connection is successful, False otherwise
        """
        try:
            with self.get_connection() as conn:
                conn.execute(text("SELECT 1"))
            logger.info("Database connection test successful")
            return True
        except Exception as e:
            logger.error(f"Connection test failed: {e}")
            return False

    def execute(self, query: str, params: Optional[Dict] = None) -> List[Dict[str, Any]]:
        """
        Execute a query and return results as list of dictionaries.

        Args:
            query: SQL query string
            params: Optional query parameters

        Returns:
            List of row dictionaries
        """
        with self.get_connection() as conn:
            result = conn.execute(text(query), params or {})
            if not result.returns_rows:
                return []
            columns = list(result.keys())
            return [dict(zip(columns, row)) for row in result.fetchall()]

    def execute_script(self, statements: List[str]):
        """Run setup statements in one transaction (demo and test databases)."""
        with self.engine.begin() as conn:
            for statement in statements:
                conn.execute(text(statement))

    def get_database_info(self) -> Dict[str, Any]:
        """Get database engine information."""
        info = {
            "type": "sqlite",
            "dialect": str(self.engine.dialect.name),
            "path": self.config.db_path or ":memory:",
        }

        try:
            with self.get_connection() as conn:
                result = conn.execute(text("SELECT sqlite_version()"))
                info["version"] = result.scalar()
        except Exception as e:
            logger.warning(f"Could not get database version: {e}")
            info["version"] = "Unknown"

        return info

    def close(self):
        """Dispose of the engine."""
        if self._engine:
            self._engine.dispose()
            self._engine = None
            logger.info("Database connection closed")

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
