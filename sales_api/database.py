"""
Database Layer

Database layer providing SQL dialects (SQLite and PostgreSQL), a bounded
thread-safe connection pool with idle eviction and acquisition timeouts, and
a database manager that owns the pool for the lifetime of the application.

Author: Waqqas Hanafi
Copyright: © 2025 Calaveras County Health and Human Services Agency
"""

import math
import sqlite3
import logging
import threading
import time
from pathlib import Path
from typing import List, Optional, Tuple, Any
from contextlib import contextmanager
from abc import ABC, abstractmethod

try:
    import psycopg2
    POSTGRES_AVAILABLE = True
except ImportError:
    POSTGRES_AVAILABLE = False

from .config import config, DatabaseConfig
from .exceptions import PoolTimeoutError, QueryBuildError


class SQLDialect(ABC):
    """Storage-engine specific SQL fragments and connection factory"""

    name: str = ""
    placeholder: str = "?"
    primary_key_type: str = "INTEGER PRIMARY KEY"
    # LIMIT operand meaning "no limit", needed when only OFFSET is given
    unbounded_limit: str = "ALL"

    @abstractmethod
    def connect(self) -> Any:
        """Open a new DB-API connection"""
        pass

    @abstractmethod
    def date_trunc(self, granularity: str, column: str) -> str:
        """SQL expression truncating a date column to the granularity boundary"""
        pass

    @abstractmethod
    def table_exists_sql(self) -> str:
        """Query returning a row when the bound table name exists"""
        pass


class SQLiteDialect(SQLDialect):
    """SQLite dialect; weeks start on Monday (ISO)"""

    name = "sqlite"
    placeholder = "?"
    primary_key_type = "INTEGER PRIMARY KEY"
    unbounded_limit = "-1"

    # Quarter start: YYYY-(((month - 1) / 3) * 3 + 1)-01
    _TRUNC_TEMPLATES = {
        'day': "date({col})",
        'week': "date({col}, 'weekday 0', '-6 days')",
        'month': "date({col}, 'start of month')",
        'quarter': (
            "printf('%s-%02d-01', strftime('%Y', {col}), "
            "((CAST(strftime('%m', {col}) AS INTEGER) - 1) / 3) * 3 + 1)"
        ),
        'year': "date({col}, 'start of year')",
    }

    def __init__(self, db_path: Path, timeout: float = 30.0, journal_mode: str = "WAL"):
        self.db_path = Path(db_path)
        self.timeout = timeout
        self.journal_mode = journal_mode

    def connect(self) -> sqlite3.Connection:
        """Create a new SQLite connection"""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(
            str(self.db_path),
            timeout=self.timeout,
            check_same_thread=False
        )
        conn.execute("PRAGMA foreign_keys = ON")
        conn.execute(f"PRAGMA journal_mode = {self.journal_mode}")
        conn.execute("PRAGMA synchronous = NORMAL")
        return conn

    def date_trunc(self, granularity: str, column: str) -> str:
        if granularity not in self._TRUNC_TEMPLATES:
            raise QueryBuildError(f"Invalid granularity: {granularity}")
        return self._TRUNC_TEMPLATES[granularity].format(col=column)

    def table_exists_sql(self) -> str:
        return "SELECT name FROM sqlite_master WHERE type = 'table' AND name = ?"


class PostgreSQLDialect(SQLDialect):
    """PostgreSQL dialect; DATE_TRUNC('week') is ISO (Monday start)"""

    name = "postgresql"
    placeholder = "%s"
    primary_key_type = "SERIAL PRIMARY KEY"
    unbounded_limit = "ALL"

    _GRANULARITIES = ('day', 'week', 'month', 'quarter', 'year')

    def __init__(self, host: str, database: str, username: str = "",
                 password: str = "", port: int = 5432, timeout: float = 2.0):
        if not POSTGRES_AVAILABLE:
            raise ImportError(
                "PostgreSQL support requires psycopg2. "
                "Install with: pip install psycopg2-binary"
            )
        self.host = host
        self.port = port
        self.database = database
        self.username = username
        self.password = password
        self.timeout = timeout

    def connect(self):
        """Create a new PostgreSQL connection"""
        return psycopg2.connect(
            host=self.host,
            port=self.port,
            dbname=self.database,
            user=self.username,
            password=self.password,
            connect_timeout=max(1, math.ceil(self.timeout))
        )

    def date_trunc(self, granularity: str, column: str) -> str:
        if granularity not in self._GRANULARITIES:
            raise QueryBuildError(f"Invalid granularity: {granularity}")
        return f"DATE_TRUNC('{granularity}', {column})::date"

    def table_exists_sql(self) -> str:
        return (
            "SELECT tablename FROM pg_tables "
            "WHERE schemaname = 'public' AND tablename = %s"
        )


def create_dialect(db_config: DatabaseConfig) -> SQLDialect:
    """Build the dialect described by the database configuration"""
    if db_config.db_type == 'sqlite':
        return SQLiteDialect(
            db_config.path,
            timeout=db_config.connection_timeout_seconds,
            journal_mode=db_config.journal_mode
        )
    if db_config.db_type == 'postgresql':
        return PostgreSQLDialect(
            host=db_config.postgresql_host,
            port=db_config.postgresql_port,
            database=db_config.postgresql_database,
            username=db_config.postgresql_username,
            password=db_config.postgresql_password,
            timeout=db_config.connection_timeout_seconds
        )
    raise ValueError(f"Unsupported database type: {db_config.db_type}")


class DatabaseConnectionPool:
    """Bounded thread-safe connection pool with idle eviction"""

    def __init__(self, dialect: SQLDialect, max_connections: int = 20,
                 idle_timeout: float = 30.0, acquire_timeout: float = 2.0):
        self.dialect = dialect
        self.max_connections = max_connections
        self.idle_timeout = idle_timeout
        self.acquire_timeout = acquire_timeout
        # Idle connections with the monotonic time they were returned
        self._idle: List[Tuple[Any, float]] = []
        self._condition = threading.Condition()
        self._created_connections = 0
        self._closed = False
        self.logger = logging.getLogger(self.__class__.__name__)

    def _discard(self, conn):
        """Close a connection and free its slot (caller holds the lock)"""
        try:
            conn.close()
        except Exception as e:
            self.logger.warning(f"Error closing connection: {e}")
        self._created_connections -= 1

    def _evict_idle(self):
        """Close connections idle for longer than idle_timeout (caller holds the lock)"""
        cutoff = time.monotonic() - self.idle_timeout
        kept = []
        evicted = 0
        for conn, returned_at in self._idle:
            if returned_at < cutoff:
                self._discard(conn)
                evicted += 1
            else:
                kept.append((conn, returned_at))
        self._idle = kept
        if evicted:
            self.logger.debug(f"Evicted {evicted} idle connections, pool size: {self._created_connections}/{self.max_connections}")

    def _acquire(self):
        deadline = time.monotonic() + self.acquire_timeout
        with self._condition:
            if self._closed:
                raise RuntimeError("Connection pool is closed")
            self._evict_idle()
            while True:
                if self._idle:
                    conn, _ = self._idle.pop()
                    return conn
                if self._created_connections < self.max_connections:
                    self._created_connections += 1
                    break
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    self.logger.error(f"Pool exhausted: no connection within {self.acquire_timeout}s")
                    raise PoolTimeoutError(self.acquire_timeout)
                self._condition.wait(remaining)

        try:
            return self.dialect.connect()
        except Exception:
            with self._condition:
                self._created_connections -= 1
                self._condition.notify()
            raise

    def _release(self, conn, broken: bool = False):
        with self._condition:
            if broken or self._closed:
                self._discard(conn)
            else:
                self._idle.append((conn, time.monotonic()))
            self._condition.notify()

    @contextmanager
    def get_connection(self):
        """Get a connection from the pool; it is returned when the block exits"""
        conn = self._acquire()
        broken = False
        try:
            yield conn
        except Exception as e:
            self.logger.error(f"Database error: {e}")
            raise
        finally:
            # Reports are read-only; end any implicit transaction before reuse
            try:
                conn.rollback()
            except Exception as e:
                self.logger.warning(f"Discarding connection after failed rollback: {e}")
                broken = True
            self._release(conn, broken)

    def close_all(self):
        """Close all idle connections and refuse new checkouts"""
        with self._condition:
            self._closed = True
            for conn, _ in self._idle:
                self._discard(conn)
            self._idle.clear()
            self._condition.notify_all()

    def get_pool_stats(self):
        """Get connection pool statistics for monitoring"""
        with self._condition:
            return {
                'created_connections': self._created_connections,
                'max_connections': self.max_connections,
                'available': len(self._idle),
                'in_use': self._created_connections - len(self._idle)
            }


class DatabaseManager:
    """
    Owns the dialect and connection pool for one application instance.
    Constructed explicitly and closed by whoever created it.
    """

    def __init__(self, db_config: Optional[DatabaseConfig] = None,
                 dialect: Optional[SQLDialect] = None):
        db_config = db_config or config.database
        self.dialect = dialect or create_dialect(db_config)
        self.pool = DatabaseConnectionPool(
            self.dialect,
            max_connections=db_config.max_connections,
            idle_timeout=db_config.idle_timeout_seconds,
            acquire_timeout=db_config.connection_timeout_seconds
        )
        self.logger = logging.getLogger(self.__class__.__name__)

    def table_exists(self, table_name: str) -> bool:
        """Check if a table exists"""
        with self.pool.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(self.dialect.table_exists_sql(), (table_name,))
            return cursor.fetchone() is not None

    def close(self):
        """Close all database connections and cleanup resources"""
        try:
            self.pool.close_all()
            self.logger.info("Database manager closed - all connections released")
        except Exception as e:
            self.logger.error(f"Error closing database manager: {e}", exc_info=True)


def create_database_manager(db_config: Optional[DatabaseConfig] = None) -> DatabaseManager:
    """Create a database manager from configuration"""
    return DatabaseManager(db_config or config.database)
