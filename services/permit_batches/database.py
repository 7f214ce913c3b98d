"""PostgreSQL access for executing SQL batch files."""
import logging
from contextlib import contextmanager
from typing import Iterator, Protocol

import psycopg2

from .utils import ConfigurationError

logger = logging.getLogger(__name__)


class SqlExecutor(Protocol):
    """Anything that can run one SQL statement and report affected rows."""

    def execute(self, sql: str) -> int:
        ...


def get_connection(database_url: str):
    """Get PostgreSQL connection from DATABASE_URL."""
    if not database_url:
        raise ConfigurationError("DATABASE_URL environment variable not set")
    return psycopg2.connect(database_url)


@contextmanager
def connect(database_url: str) -> Iterator["psycopg2.extensions.connection"]:
    """
    Open a connection for the duration of a run.

    The connection is closed on every exit path, including exceptions
    raised mid-run.
    """
    conn = get_connection(database_url)
    logger.info("Connected to database")
    try:
        yield conn
    finally:
        conn.close()
        logger.info("Database connection closed")


class PostgresExecutor:
    """Executes each statement in its own transaction."""

    def __init__(self, conn):
        self.conn = conn

    def execute(self, sql: str) -> int:
        """
        Run one statement and commit.

        On failure the transaction is rolled back so the connection can be
        used for the next batch, then the error is re-raised.
        """
        try:
            with self.conn.cursor() as cur:
                cur.execute(sql)
                affected = cur.rowcount if cur.rowcount is not None and cur.rowcount > 0 else 0
            self.conn.commit()
        except Exception:
            self.conn.rollback()
            raise
        return affected
