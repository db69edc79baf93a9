"""SQLite-backed review database holding projects, analyses and comparisons."""

import sqlite3
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Optional, TypeVar

from ..exceptions import PersistenceError
from ..logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

# Current schema version (bump when tables change).
_SCHEMA_VERSION = 1

# Seconds a connection waits on a locked database before raising.
_BUSY_TIMEOUT = 5.0


class ReviewDB:
    """Manages the review SQLite database.

    Connections run in autocommit mode; multi-row writes go through
    :func:`transaction` so they are all-or-nothing.

    Usage::

        with ReviewDB(".delta-insight/review.db") as db:
            save_project(db.conn, owner_id, "my project")
    """

    def __init__(self, db_path: str) -> None:
        self.db_path: Path = Path(db_path)
        self._conn: Optional[sqlite3.Connection] = None

    @property
    def conn(self) -> sqlite3.Connection:
        """Return the active connection. Raises if not connected."""
        if self._conn is None:
            raise RuntimeError("ReviewDB is not connected. Use as context manager or call connect().")
        return self._conn

    # ── lifecycle ─────────────────────────────────────────────────

    def connect(self) -> sqlite3.Connection:
        """Open (or create) the database and run migrations."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(self.db_path), timeout=_BUSY_TIMEOUT, isolation_level=None)
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA foreign_keys=ON")
        conn.row_factory = sqlite3.Row
        self._conn = conn
        self._migrate()
        logger.debug("Review DB connected at %s", self.db_path)
        return conn

    def close(self) -> None:
        """Close the connection if open."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> "ReviewDB":
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # ── migration ─────────────────────────────────────────────────

    def _migrate(self) -> None:
        """Idempotently create all tables.

        A database already at the current schema version is left untouched,
        so opening a connection for a read never takes the write lock.
        """
        c = self.conn
        if self._schema_current():
            return

        with transaction(c):
            c.execute(
                """
                CREATE TABLE IF NOT EXISTS schema_version (
                    version INTEGER NOT NULL
                )
                """
            )
            row = c.execute("SELECT version FROM schema_version").fetchone()
            if row is None:
                c.execute(
                    "INSERT INTO schema_version (version) VALUES (?)",
                    (_SCHEMA_VERSION,),
                )

            # ── projects ─────────────────────────────────────────────
            c.execute(
                """
                CREATE TABLE IF NOT EXISTS projects (
                    id          TEXT PRIMARY KEY,
                    owner_id    TEXT NOT NULL,
                    name        TEXT NOT NULL,
                    description TEXT,
                    created_at  TEXT NOT NULL
                )
                """
            )

            # ── code_versions (source text is never stored) ──────────
            c.execute(
                """
                CREATE TABLE IF NOT EXISTS code_versions (
                    id            TEXT PRIMARY KEY,
                    project_id    TEXT NOT NULL REFERENCES projects(id) ON DELETE CASCADE,
                    version_label TEXT,
                    uploaded_at   TEXT NOT NULL
                )
                """
            )

            # ── analyses (1:1 with code_versions) ────────────────────
            c.execute(
                """
                CREATE TABLE IF NOT EXISTS analyses (
                    id              TEXT PRIMARY KEY,
                    code_version_id TEXT NOT NULL UNIQUE
                                    REFERENCES code_versions(id) ON DELETE CASCADE,
                    summary         TEXT NOT NULL,
                    status          TEXT NOT NULL DEFAULT 'completed'
                                    CHECK (status IN ('completed', 'failed')),
                    failure_reason  TEXT,
                    created_at      TEXT NOT NULL
                )
                """
            )

            # ── issues ───────────────────────────────────────────────
            c.execute(
                """
                CREATE TABLE IF NOT EXISTS issues (
                    id             INTEGER PRIMARY KEY AUTOINCREMENT,
                    analysis_id    TEXT    NOT NULL REFERENCES analyses(id) ON DELETE CASCADE,
                    position       INTEGER NOT NULL,
                    issue_code     TEXT    NOT NULL,
                    severity       TEXT    NOT NULL CHECK (severity IN ('low', 'medium', 'high')),
                    complexity     TEXT    NOT NULL CHECK (complexity IN ('O_1', 'O_n', 'O_n2')),
                    function_name  TEXT,
                    start_line     INTEGER,
                    end_line       INTEGER,
                    before_snippet TEXT,
                    after_snippet  TEXT
                )
                """
            )

            # ── comparisons (one per ordered analysis pair) ──────────
            c.execute(
                """
                CREATE TABLE IF NOT EXISTS comparisons (
                    id               TEXT PRIMARY KEY,
                    project_id       TEXT NOT NULL REFERENCES projects(id) ON DELETE CASCADE,
                    from_analysis_id TEXT NOT NULL REFERENCES analyses(id) ON DELETE CASCADE,
                    to_analysis_id   TEXT NOT NULL REFERENCES analyses(id) ON DELETE CASCADE,
                    created_at       TEXT NOT NULL,
                    UNIQUE (from_analysis_id, to_analysis_id)
                )
                """
            )

            # ── comparison_results ───────────────────────────────────
            c.execute(
                """
                CREATE TABLE IF NOT EXISTS comparison_results (
                    id                INTEGER PRIMARY KEY AUTOINCREMENT,
                    comparison_id     TEXT NOT NULL REFERENCES comparisons(id) ON DELETE CASCADE,
                    issue_code        TEXT NOT NULL,
                    change_type       TEXT NOT NULL
                                      CHECK (change_type IN ('IMPROVED', 'UNCHANGED', 'WORSENED')),
                    before_severity   TEXT,
                    before_complexity TEXT,
                    after_severity    TEXT,
                    after_complexity  TEXT,
                    UNIQUE (comparison_id, issue_code)
                )
                """
            )

            # ── explanations (at most one per comparison) ────────────
            c.execute(
                """
                CREATE TABLE IF NOT EXISTS explanations (
                    id            TEXT PRIMARY KEY,
                    comparison_id TEXT NOT NULL UNIQUE
                                  REFERENCES comparisons(id) ON DELETE CASCADE,
                    explanation   TEXT NOT NULL,
                    created_at    TEXT NOT NULL
                )
                """
            )

            # ── indexes ──────────────────────────────────────────────
            c.execute("CREATE INDEX IF NOT EXISTS idx_projects_owner ON projects(owner_id)")
            c.execute(
                "CREATE INDEX IF NOT EXISTS idx_code_versions_project ON code_versions(project_id)"
            )
            c.execute("CREATE INDEX IF NOT EXISTS idx_analyses_created ON analyses(created_at)")
            c.execute(
                "CREATE INDEX IF NOT EXISTS idx_issues_analysis ON issues(analysis_id, position)"
            )
            c.execute("CREATE INDEX IF NOT EXISTS idx_issues_code ON issues(issue_code)")
            c.execute(
                "CREATE INDEX IF NOT EXISTS idx_comparisons_project ON comparisons(project_id)"
            )
            c.execute(
                "CREATE INDEX IF NOT EXISTS idx_comparison_results_comparison "
                "ON comparison_results(comparison_id)"
            )
        logger.debug("Review DB schema at version %d", _SCHEMA_VERSION)

    def _schema_current(self) -> bool:
        c = self.conn
        table = c.execute(
            "SELECT name FROM sqlite_master WHERE type = 'table' AND name = 'schema_version'"
        ).fetchone()
        if table is None:
            return False
        row = c.execute("SELECT MAX(version) AS version FROM schema_version").fetchone()
        return row["version"] is not None and row["version"] >= _SCHEMA_VERSION


@contextmanager
def transaction(conn: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
    """Run the enclosed statements as one all-or-nothing write transaction.

    ``BEGIN IMMEDIATE`` takes the write lock up front, so two writers racing
    on the same rows serialize here instead of failing mid-way.
    """
    conn.execute("BEGIN IMMEDIATE")
    try:
        yield conn
        conn.execute("COMMIT")
    except BaseException:
        if conn.in_transaction:
            conn.execute("ROLLBACK")
        raise


def retry_locked(operation: str, fn: Callable[[], T], retries: int, delay: float = 0.05) -> T:
    """Call *fn*, retrying while SQLite reports the database as locked or busy.

    ``sqlite3.IntegrityError`` and every other exception propagate at once.
    After *retries* extra attempts the last ``OperationalError`` is raised as
    a ``PersistenceError``.
    """
    attempt = 0
    while True:
        try:
            return fn()
        except sqlite3.OperationalError as e:
            if attempt >= retries:
                raise PersistenceError(operation, str(e)) from e
            attempt += 1
            logger.warning("%s: %s (retry %d/%d)", operation, e, attempt, retries)
            time.sleep(delay * (2 ** (attempt - 1)))
