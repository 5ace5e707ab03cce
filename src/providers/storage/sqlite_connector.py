"""SQLite-backed feedback storage connector.

Persists each feedback submission as one row in a local SQLite database.
Uses ``aiosqlite`` for async I/O.  Also offers the optional analytics
capability (totals, per-category counts, busiest pages).
"""

from __future__ import annotations

import re
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from uuid import uuid4

import aiosqlite
import structlog

from src.interfaces.storage_connector import IAnalyticsCapable, IStorageConnector
from src.models.feedback import FeedbackRecord
from src.models.storage import AnalyticsData, PageStat, StorageResult, TimeRange
from src.utils.errors import ConfigurationError, ConnectorUnavailableError, is_retryable

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/feedback.db")
_DEFAULT_TABLE = "feedback"
_TOP_PAGES = 10

_TABLE_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

_CREATE_TABLE_SQL = """\
CREATE TABLE IF NOT EXISTS {table} (
    id               TEXT PRIMARY KEY,
    page             TEXT NOT NULL,
    category         TEXT NOT NULL,
    comment          TEXT,
    highlighted_text TEXT,
    section_id       TEXT,
    suggested_tag    TEXT,
    user_agent       TEXT,
    user_id          TEXT,
    user_email       TEXT,
    user_name        TEXT,
    timestamp        TEXT NOT NULL,
    created_at       TEXT NOT NULL
);
"""

_CREATE_INDICES_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_{table}_page ON {table}(page);",
    "CREATE INDEX IF NOT EXISTS idx_{table}_category ON {table}(category);",
]

_INSERT_SQL = """\
INSERT INTO {table} (
    id, page, category, comment, highlighted_text, section_id, suggested_tag,
    user_agent, user_id, user_email, user_name, timestamp, created_at
) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
"""


class SQLiteConnector(IStorageConnector, IAnalyticsCapable):
    """Database storage connector backed by a single SQLite table.

    Parameters
    ----------
    db_path:
        Database file; parent directories are created on ``initialize()``.
    table:
        Table holding feedback rows.  Must be a plain SQL identifier.
    """

    def __init__(
        self,
        db_path: str | Path = _DEFAULT_DB_PATH,
        table: str = _DEFAULT_TABLE,
    ) -> None:
        if not _TABLE_NAME_RE.match(table):
            raise ConfigurationError(
                message=f"Invalid feedback table name: {table!r}",
                provider_name="sqlite",
            )
        self._db_path = Path(db_path)
        self._table = table
        self._initialized = False

    @property
    def name(self) -> str:
        return "sqlite"

    @property
    def table(self) -> str:
        return self._table

    async def initialize(self) -> None:
        """Create the feedback table and indices if they don't exist."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(_CREATE_TABLE_SQL.format(table=self._table))
            for idx_sql in _CREATE_INDICES_SQL:
                await db.execute(idx_sql.format(table=self._table))
            await db.commit()
        self._initialized = True
        logger.info("feedback_db_initialized", path=str(self._db_path), table=self._table)

    # ------------------------------------------------------------------
    # IStorageConnector implementation
    # ------------------------------------------------------------------

    async def detect_availability(self) -> bool:
        return self._initialized

    async def health_check(self) -> bool:
        if not self._initialized:
            return False
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                cursor = await db.execute(f"SELECT COUNT(*) FROM {self._table}")
                await cursor.fetchone()
        except (sqlite3.Error, OSError) as exc:
            logger.debug("sqlite_health_check_failed", error=str(exc))
            return False
        return True

    async def store(self, record: FeedbackRecord) -> StorageResult:
        """Insert *record* as a new row; returns the generated row id."""
        if not self._initialized:
            exc = ConnectorUnavailableError("SQLite connector not initialized", provider_name=self.name)
            return StorageResult.failed(exc.message, retryable=exc.retryable)

        row_id = f"feedback_{uuid4()}"
        created_at = datetime.now(tz=timezone.utc).isoformat()  # noqa: UP017
        params = (
            row_id,
            record.page,
            record.category.value,
            record.comment,
            record.highlighted_text,
            record.section_id,
            record.suggested_tag,
            record.user_agent,
            record.user_id,
            record.user_email,
            record.user_name,
            record.timestamp,
            created_at,
        )
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                await db.execute(_INSERT_SQL.format(table=self._table), params)
                await db.commit()
        except (sqlite3.Error, OSError) as exc:
            logger.warning("sqlite_store_failed", error=str(exc), page=record.page)
            return StorageResult.failed(str(exc), retryable=is_retryable(exc))

        logger.info("feedback_row_inserted", id=row_id, page=record.page, category=record.category.value)
        return StorageResult.ok(
            id=row_id,
            metadata={"tableName": self._table, "insertedAt": created_at},
        )

    # ------------------------------------------------------------------
    # IAnalyticsCapable implementation
    # ------------------------------------------------------------------

    async def get_analytics(self) -> AnalyticsData:
        """Return totals, per-category counts and the ten busiest pages."""
        if not self._initialized:
            return AnalyticsData()

        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                f"SELECT COUNT(*) AS total, MIN(created_at) AS first, MAX(created_at) AS last "
                f"FROM {self._table}"
            )
            totals = await cursor.fetchone()
            cursor = await db.execute(
                f"SELECT category, COUNT(*) AS count FROM {self._table} GROUP BY category"
            )
            category_rows = await cursor.fetchall()
            cursor = await db.execute(
                f"SELECT page, COUNT(*) AS count FROM {self._table} "
                f"GROUP BY page ORDER BY count DESC, page ASC LIMIT ?",
                (_TOP_PAGES,),
            )
            page_rows = await cursor.fetchall()

        time_range = None
        if totals["first"] and totals["last"]:
            time_range = TimeRange(
                start=datetime.fromisoformat(totals["first"]),
                end=datetime.fromisoformat(totals["last"]),
            )
        return AnalyticsData(
            total_feedback=totals["total"] or 0,
            categories={row["category"]: row["count"] for row in category_rows},
            page_stats=[PageStat(page=row["page"], count=row["count"]) for row in page_rows],
            time_range=time_range,
        )
