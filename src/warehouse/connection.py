"""
PostgreSQL connection pool management using psycopg3

This module provides a connection pool for the sample store with explicit
transaction scopes. Every driver error escaping a pool operation is raised as
StorageUnavailable.
"""
import os
import time
from contextlib import contextmanager
from typing import Iterator

import psycopg
from psycopg.conninfo import make_conninfo
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool

from src.core.config import PipelineSettings
from src.core.errors import StorageUnavailable


class DatabaseConnectionPool:
    """
    PostgreSQL connection pool manager using psycopg3

    The pool is owned by the caller and injected into the store and the
    trend query; there is no process-wide instance.
    """

    def __init__(
        self,
        host: str | None = None,
        port: int | None = None,
        database: str | None = None,
        user: str | None = None,
        password: str | None = None,
        min_size: int = 1,
        max_size: int = 4,
        timeout: float = 30.0,
    ) -> None:
        """
        Initialize database connection pool

        Args:
            host: Database host (defaults to env var DB_HOST)
            port: Database port (defaults to env var DB_PORT)
            database: Database name (defaults to env var DB_NAME)
            user: Database user (defaults to env var DB_USER)
            password: Database password (defaults to env var DB_PASSWORD)
            min_size: Minimum pool size
            max_size: Maximum pool size
            timeout: Connection timeout in seconds
        """
        self.host = host or os.getenv("DB_HOST", "localhost")
        self.port = port or int(os.getenv("DB_PORT", "5432"))
        self.database = database or os.getenv("DB_NAME", "wastewater")
        self.user = user or os.getenv("DB_USER", "pipeline")
        self.password = password or os.getenv("DB_PASSWORD")

        # Security: Require password to be explicitly set
        if not self.password:
            raise ValueError(
                "Database password must be provided. "
                "Set DB_PASSWORD environment variable or pass to constructor."
            )

        self.min_size = min_size
        self.max_size = max_size
        self.timeout = timeout

        self.conninfo = make_conninfo(
            host=self.host,
            port=self.port,
            dbname=self.database,
            user=self.user,
            password=self.password,
            connect_timeout=int(self.timeout),
        )

        self._pool: ConnectionPool | None = None

    @classmethod
    def from_settings(cls, settings: PipelineSettings, **kwargs) -> "DatabaseConnectionPool":
        """Build a pool from loaded pipeline settings."""
        return cls(
            host=settings.db_host,
            port=settings.db_port,
            database=settings.db_name,
            user=settings.db_user,
            password=settings.db_password,
            **kwargs,
        )

    def open(self, max_retries: int = 3, retry_delay: float = 2.0) -> None:
        """
        Open the connection pool with retry logic.

        Args:
            max_retries: Maximum number of connection attempts
            retry_delay: Delay between retries in seconds

        Raises:
            StorageUnavailable: If connection fails after all retries
        """
        if self._pool is not None:
            return

        for attempt in range(1, max_retries + 1):
            # A pool that failed to fill is closed and cannot be reopened
            pool = ConnectionPool(
                conninfo=self.conninfo,
                min_size=self.min_size,
                max_size=self.max_size,
                timeout=self.timeout,
                kwargs={"row_factory": dict_row},  # Return rows as dictionaries
                open=False,
            )
            try:
                pool.open(wait=True, timeout=self.timeout)
            except psycopg.Error as e:
                pool.close()
                if attempt < max_retries:
                    time.sleep(retry_delay)
                    continue
                raise StorageUnavailable(
                    f"Failed to connect to database after {max_retries} attempts: {e}"
                ) from e
            self._pool = pool
            return

    def close(self) -> None:
        """Close the connection pool"""
        if self._pool is not None:
            self._pool.close()
            self._pool = None

    @contextmanager
    def get_connection(self) -> Iterator[psycopg.Connection]:
        """
        Get a connection from the pool

        Yields:
            psycopg.Connection: Database connection

        Raises:
            RuntimeError: If pool is not open
        """
        if self._pool is None:
            raise RuntimeError("Connection pool is not open. Call open() first.")

        with self._pool.connection() as conn:
            yield conn

    @contextmanager
    def transaction(self) -> Iterator[psycopg.Cursor]:
        """
        Run a block inside one database transaction.

        Commits when the block exits normally and rolls back on any exception.

        Yields:
            psycopg.Cursor: Cursor bound to the transaction

        Raises:
            StorageUnavailable: If the driver reports an error (after rollback)
        """
        try:
            with self.get_connection() as conn:
                with conn.transaction():
                    with conn.cursor() as cur:
                        yield cur
        except psycopg.Error as e:
            raise StorageUnavailable(f"Storage operation failed: {e}") from e

    def execute_query(self, query: str, params: tuple | None = None) -> list[dict]:
        """
        Execute a read-only query and return results

        Args:
            query: SQL SELECT query
            params: Query parameters (optional)

        Returns:
            List of dictionaries (one per row)
        """
        with self.transaction() as cur:
            cur.execute(query, params)
            return cur.fetchall()

    def execute_command(self, command: str, params: tuple | None = None) -> int:
        """
        Execute a data-modifying or DDL command in its own transaction

        Args:
            command: SQL command
            params: Command parameters (optional)

        Returns:
            Number of rows affected
        """
        with self.transaction() as cur:
            cur.execute(command, params)
            return cur.rowcount

    def __enter__(self):
        """Context manager entry"""
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit"""
        self.close()
        return False
