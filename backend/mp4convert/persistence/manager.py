"""
SQLite-backed job store.

Single-file SQLite database holding the conversion_jobs table.
One connection per operation, so the store is safe to share between the
request handlers and the background conversion threads.
"""

import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from ..jobs.models import ConversionJob, JobCreate, JobStatus, utc_now
from ..jobs.store import JobStore, apply_status
from .errors import PersistenceError, SchemaError

logger = logging.getLogger(__name__)


# Database schema version for migrations
SCHEMA_VERSION = 1

_JOB_COLUMNS = (
    "id, original_name, mime_type, size, status, progress, "
    "output_url, error, created_at"
)


def _row_to_job(row: sqlite3.Row) -> ConversionJob:
    return ConversionJob(
        id=row["id"],
        original_name=row["original_name"],
        mime_type=row["mime_type"],
        size=row["size"],
        status=JobStatus(row["status"]),
        progress=row["progress"],
        output_url=row["output_url"],
        error=row["error"],
        created_at=datetime.fromisoformat(row["created_at"]),
    )


class SQLiteJobStore(JobStore):
    """
    Durable JobStore on top of sqlite3.

    Stores:
    - Conversion jobs (one row per uploaded file)

    Does NOT store:
    - Uploaded or converted media (remain on disk)
    - Transcoder output
    """

    def __init__(self, db_path: Optional[str] = None):
        """
        Initialize the store and apply schema migrations.

        Args:
            db_path: Path to SQLite database file (defaults to ./jobs.db)
        """
        if db_path is None:
            db_path = str(Path.cwd() / "jobs.db")

        self.db_path = str(db_path)
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()

    @contextmanager
    def _connect(self):
        """Context manager for database connections."""
        conn = sqlite3.connect(self.db_path, timeout=30)
        conn.row_factory = sqlite3.Row  # Access columns by name
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise PersistenceError(f"Database operation failed: {e}") from e
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _ensure_schema(self):
        """Create schema if it doesn't exist."""
        with self._connect() as conn:
            conn.execute("PRAGMA journal_mode=WAL")
            cursor = conn.cursor()

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS schema_version (
                    version INTEGER PRIMARY KEY,
                    applied_at TEXT NOT NULL
                )
            """)

            cursor.execute("SELECT version FROM schema_version ORDER BY version DESC LIMIT 1")
            row = cursor.fetchone()
            current_version = row[0] if row else 0

            if current_version > SCHEMA_VERSION:
                raise SchemaError(
                    f"Database {self.db_path} has schema version {current_version}, "
                    f"newer than supported version {SCHEMA_VERSION}"
                )

            if current_version < SCHEMA_VERSION:
                self._migrate_schema(conn, current_version)

    def _migrate_schema(self, conn, from_version: int):
        """Apply schema migrations."""
        cursor = conn.cursor()

        if from_version < 1:
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS conversion_jobs (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    original_name TEXT NOT NULL,
                    mime_type TEXT,
                    size INTEGER,
                    status TEXT NOT NULL DEFAULT 'pending',
                    progress INTEGER DEFAULT 0,
                    output_url TEXT,
                    error TEXT,
                    created_at TEXT NOT NULL
                )
            """)

            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_conversion_jobs_created_at
                ON conversion_jobs (created_at)
            """)

            cursor.execute(
                "INSERT INTO schema_version (version, applied_at) VALUES (?, ?)",
                (1, utc_now().isoformat())
            )
            logger.info(f"Applied schema version 1 to {self.db_path}")

    def _fetch(self, conn, job_id: int) -> Optional[ConversionJob]:
        row = conn.execute(
            f"SELECT {_JOB_COLUMNS} FROM conversion_jobs WHERE id = ?", (job_id,)
        ).fetchone()
        return _row_to_job(row) if row else None

    # Job operations

    def create(self, fields: JobCreate) -> ConversionJob:
        created_at = utc_now().isoformat(timespec="microseconds")
        with self._connect() as conn:
            cursor = conn.execute("""
                INSERT INTO conversion_jobs (
                    original_name, mime_type, size, status, progress, created_at
                ) VALUES (?, ?, ?, ?, ?, ?)
            """, (
                fields.original_name,
                fields.mime_type,
                fields.size,
                JobStatus.PENDING.value,
                0,
                created_at,
            ))
            return self._fetch(conn, cursor.lastrowid)

    def get(self, job_id: int) -> Optional[ConversionJob]:
        with self._connect() as conn:
            return self._fetch(conn, job_id)

    def list(self) -> List[ConversionJob]:
        with self._connect() as conn:
            rows = conn.execute(
                f"SELECT {_JOB_COLUMNS} FROM conversion_jobs "
                "ORDER BY created_at DESC, id DESC"
            ).fetchall()
            return [_row_to_job(row) for row in rows]

    def update_status(
        self,
        job_id: int,
        status: JobStatus,
        output_url: Optional[str] = None,
        error: Optional[str] = None,
    ) -> Optional[ConversionJob]:
        with self._connect() as conn:
            job = self._fetch(conn, job_id)
            if job is None:
                return None

            updated = apply_status(job, status, output_url=output_url, error=error)
            conn.execute("""
                UPDATE conversion_jobs
                SET status = ?, progress = ?, output_url = ?, error = ?
                WHERE id = ?
            """, (
                updated.status.value,
                updated.progress,
                updated.output_url,
                updated.error,
                job_id,
            ))
            return updated

    def update_progress(self, job_id: int, progress: int) -> Optional[ConversionJob]:
        with self._connect() as conn:
            conn.execute(
                "UPDATE conversion_jobs SET progress = ? WHERE id = ?",
                (progress, job_id),
            )
            return self._fetch(conn, job_id)

    def delete(self, job_id: int) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM conversion_jobs WHERE id = ?", (job_id,))

    def delete_all(self) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM conversion_jobs")
