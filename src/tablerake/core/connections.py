"""Connections to the job store (SQLite) and the data store (DuckDB).

The job store holds ingestion jobs, their log lines and the task queue; the
data store holds the destination tables the worker creates. One
ConnectionManager owns both and is shared by the API handlers, the
dispatcher and every worker thread.

Usage:
    manager = ConnectionManager(ConnectionConfig.for_directory(Path("./out")))
    manager.initialize()

    with manager.session_scope() as session:
        session.add(job)

    with manager.duckdb_cursor() as cursor:
        cursor.execute('SELECT COUNT(*) FROM "gdp"').fetchone()

    with manager.duckdb_write() as conn:
        conn.execute('INSERT OR IGNORE INTO "gdp" VALUES (?, ?)', [...])

    manager.close()
"""

from __future__ import annotations

import threading
from collections.abc import Generator
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import duckdb
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from tablerake.core.logging import get_logger
from tablerake.storage import init_database

logger = get_logger(__name__)

JOB_STORE_FILE = "jobs.db"
DATA_STORE_FILE = "data.duckdb"


@dataclass
class ConnectionConfig:
    """Where the two stores live and how they are tuned.

    Attributes:
        sqlite_path: Job store file
        duckdb_path: Data store file
        pool_size: SQLAlchemy pool size (API handlers plus workers)
        max_overflow: Extra connections allowed beyond pool_size
        busy_timeout: Seconds SQLite waits on a locked database
        duckdb_memory_limit: DuckDB memory limit, e.g. "2GB"
        echo_sql: Log every SQL statement
    """

    sqlite_path: Path
    duckdb_path: Path
    pool_size: int = 5
    max_overflow: int = 10
    busy_timeout: float = 30.0
    duckdb_memory_limit: str = "2GB"
    echo_sql: bool = False

    @classmethod
    def for_directory(cls, output_dir: Path, **overrides: Any) -> ConnectionConfig:
        """Both stores inside output_dir (jobs.db, data.duckdb)."""
        return cls(
            sqlite_path=output_dir / JOB_STORE_FILE,
            duckdb_path=output_dir / DATA_STORE_FILE,
            **overrides,
        )


@dataclass
class ConnectionManager:
    """Shared, thread-safe access to the job store and the data store.

    - session_scope(): one SQLAlchemy session per call; commits are
      serialized so concurrent workers do not trip over SQLite's writer lock
    - duckdb_cursor(): per-call cursor for reads
    - duckdb_write(): the single DuckDB connection behind a mutex; every
      DDL statement and row insert goes through here
    """

    config: ConnectionConfig
    _engine: Engine | None = field(default=None, init=False, repr=False)
    _sessions: sessionmaker[Session] | None = field(default=None, init=False, repr=False)
    _duckdb: duckdb.DuckDBPyConnection | None = field(default=None, init=False, repr=False)
    _commit_lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)
    _duckdb_lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)
    _init_lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)
    _ready: bool = field(default=False, init=False, repr=False)

    def initialize(self, data_store: bool = True) -> None:
        """Open the stores and create the job store tables. Idempotent.

        Args:
            data_store: Also open DuckDB. Readers of job status and logs pass
                False so they do not contend for the file lock a worker holds.

        Raises:
            RuntimeError: A store could not be opened
        """
        with self._init_lock:
            if self._ready:
                return
            try:
                self._open_job_store()
                if data_store:
                    self._open_data_store()
            except Exception as e:
                self.close()
                raise RuntimeError(f"Failed to open stores: {e}") from e
            self._ready = True

        logger.debug(
            "stores_opened",
            job_store=str(self.config.sqlite_path),
            data_store=str(self.config.duckdb_path) if data_store else None,
        )

    def _open_job_store(self) -> None:
        self.config.sqlite_path.parent.mkdir(parents=True, exist_ok=True)
        engine = create_engine(
            f"sqlite:///{self.config.sqlite_path}",
            echo=self.config.echo_sql,
            pool_size=self.config.pool_size,
            max_overflow=self.config.max_overflow,
            pool_pre_ping=True,
            connect_args={"check_same_thread": False},
        )
        busy_ms = int(self.config.busy_timeout * 1000)

        @event.listens_for(engine, "connect")
        def _sqlite_pragmas(dbapi_conn: Any, _record: Any) -> None:
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            # WAL: status polling does not block the worker's progress writes
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute(f"PRAGMA busy_timeout={busy_ms}")
            cursor.execute("PRAGMA synchronous=NORMAL")
            cursor.close()

        init_database(engine)
        self._engine = engine
        # Flushing happens at commit, under the commit lock
        self._sessions = sessionmaker(engine, expire_on_commit=False, autoflush=False)

    def _open_data_store(self) -> None:
        self.config.duckdb_path.parent.mkdir(parents=True, exist_ok=True)
        self._duckdb = duckdb.connect(str(self.config.duckdb_path))
        self._duckdb.execute(f"SET memory_limit='{self.config.duckdb_memory_limit}'")

    def _require_ready(self) -> None:
        if not self._ready:
            raise RuntimeError("ConnectionManager not initialized. Call initialize() first.")

    def _require_data_store(self) -> duckdb.DuckDBPyConnection:
        self._require_ready()
        if self._duckdb is None:
            raise RuntimeError("Data store not opened. Call initialize(data_store=True).")
        return self._duckdb

    @contextmanager
    def session_scope(self) -> Generator[Session]:
        """Session that commits on success and rolls back on any exception.

        Raises:
            RuntimeError: If the manager is not initialized
        """
        self._require_ready()
        assert self._sessions is not None

        session = self._sessions()
        try:
            yield session
            with self._commit_lock:
                session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    @contextmanager
    def duckdb_cursor(self) -> Generator[duckdb.DuckDBPyConnection]:
        """Read cursor on the data store."""
        cursor = self._require_data_store().cursor()
        try:
            yield cursor
        finally:
            cursor.close()

    @contextmanager
    def duckdb_write(self) -> Generator[duckdb.DuckDBPyConnection]:
        """Exclusive use of the data store connection for DDL and inserts."""
        conn = self._require_data_store()
        with self._duckdb_lock:
            yield conn

    @property
    def engine(self) -> Engine:
        self._require_ready()
        assert self._engine is not None
        return self._engine

    def close(self) -> None:
        """Release both stores. Safe to call more than once."""
        if self._duckdb is not None:
            try:
                self._duckdb.close()
            except duckdb.Error as e:
                logger.warning("data_store_close_failed", error=str(e))
            self._duckdb = None

        if self._engine is not None:
            self._engine.dispose()
            self._engine = None

        self._sessions = None
        self._ready = False


# Process-wide manager for the API
_default_manager: ConnectionManager | None = None


def get_connection_manager(
    output_dir: Path | None = None,
    config: ConnectionConfig | None = None,
) -> ConnectionManager:
    """Shared manager, created and initialized on first call.

    Args:
        output_dir: Directory for both stores (defaults to settings.output_dir)
        config: Full configuration, takes precedence over output_dir
    """
    global _default_manager

    if _default_manager is None:
        if config is None:
            if output_dir is None:
                from tablerake.core.config import get_settings

                output_dir = get_settings().output_dir
            config = ConnectionConfig.for_directory(output_dir)

        _default_manager = ConnectionManager(config)
        _default_manager.initialize()

    return _default_manager


def close_default_manager() -> None:
    global _default_manager

    if _default_manager is not None:
        _default_manager.close()
        _default_manager = None


__all__ = [
    "ConnectionConfig",
    "ConnectionManager",
    "close_default_manager",
    "get_connection_manager",
]
