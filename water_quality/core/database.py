"""
PostgreSQL connection management shared by the artifact store.
"""

from contextlib import contextmanager
from typing import Any

import psycopg2
import structlog

logger = structlog.get_logger(__name__)


class PostgresConnection:
    """Base class holding one PostgreSQL connection with cursor helpers"""

    def __init__(
        self,
        host: str,
        port: int,
        database: str,
        user: str,
        password: str,
        connect_timeout: int = 10,
    ):
        self.host = host
        self.port = port
        self.database = database
        self.user = user
        self.password = password
        self.connect_timeout = connect_timeout
        self.connection = None
        self._connect()

    def _connect(self):
        """Open the connection, re-raising driver errors after logging them"""
        try:
            self.connection = psycopg2.connect(
                host=self.host,
                port=self.port,
                database=self.database,
                user=self.user,
                password=self.password,
                connect_timeout=self.connect_timeout,
                application_name="water-quality-engine",
            )
            logger.info(
                "PostgreSQL connection established",
                host=self.host,
                database=self.database,
            )
        except Exception as e:
            logger.error("Failed to connect to PostgreSQL", host=self.host, error=str(e))
            raise

    @contextmanager
    def get_cursor(self):
        """Cursor context manager: commit on success, rollback on error"""
        cursor = self.connection.cursor()
        try:
            yield cursor
            self.connection.commit()
        except Exception as e:
            self.connection.rollback()
            logger.error("Database operation failed", error=str(e))
            raise
        finally:
            cursor.close()

    def execute(self, query: str, params: dict[str, Any] | tuple | None = None) -> int:
        """Execute a statement and return the affected row count"""
        with self.get_cursor() as cursor:
            cursor.execute(query, params)
            return cursor.rowcount

    def fetch_one(self, query: str, params: dict[str, Any] | tuple | None = None):
        """Execute a query and return its first row (or None)"""
        with self.get_cursor() as cursor:
            cursor.execute(query, params)
            return cursor.fetchone()

    def check_health(self) -> bool:
        """Check if the connection answers a trivial query"""
        try:
            row = self.fetch_one("SELECT 1")
            return row is not None and row[0] == 1
        except Exception as e:
            logger.error("Database health check failed", error=str(e))
            return False

    def close(self):
        """Close the connection"""
        if self.connection:
            self.connection.close()
            self.connection = None
            logger.info("PostgreSQL connection closed")
