"""
SQLite persistence tests.

Covers durability across store instances and schema versioning.
"""

import sqlite3

import pytest

from mp4convert.jobs.models import JobCreate, JobStatus
from mp4convert.persistence.errors import SchemaError
from mp4convert.persistence.manager import SCHEMA_VERSION, SQLiteJobStore


def test_jobs_survive_reopen(tmp_path):
    """A new store instance on the same file sees earlier jobs and their state."""
    db_path = str(tmp_path / "jobs.db")

    store = SQLiteJobStore(db_path=db_path)
    job = store.create(JobCreate(original_name="clip.flv", size=1000))
    store.update_status(job.id, JobStatus.PROCESSING)
    store.update_status(job.id, JobStatus.COMPLETED, output_url="/converted/converted_clip.mp4")

    reopened = SQLiteJobStore(db_path=db_path)
    loaded = reopened.get(job.id)

    assert loaded.status == JobStatus.COMPLETED
    assert loaded.progress == 100
    assert loaded.output_url == "/converted/converted_clip.mp4"
    assert loaded.created_at == job.created_at


def test_ids_continue_after_reopen(tmp_path):
    db_path = str(tmp_path / "jobs.db")
    first = SQLiteJobStore(db_path=db_path).create(JobCreate(original_name="a.avi"))
    second = SQLiteJobStore(db_path=db_path).create(JobCreate(original_name="b.avi"))
    assert second.id > first.id


def test_schema_version_recorded(tmp_path):
    db_path = tmp_path / "jobs.db"
    SQLiteJobStore(db_path=str(db_path))

    conn = sqlite3.connect(db_path)
    try:
        versions = [row[0] for row in conn.execute("SELECT version FROM schema_version")]
    finally:
        conn.close()

    assert versions == [SCHEMA_VERSION]


def test_migration_is_applied_once(tmp_path):
    db_path = tmp_path / "jobs.db"
    SQLiteJobStore(db_path=str(db_path))
    SQLiteJobStore(db_path=str(db_path))

    conn = sqlite3.connect(db_path)
    try:
        count = conn.execute("SELECT COUNT(*) FROM schema_version").fetchone()[0]
    finally:
        conn.close()

    assert count == 1


def test_newer_schema_is_rejected(tmp_path):
    db_path = tmp_path / "jobs.db"
    SQLiteJobStore(db_path=str(db_path))

    conn = sqlite3.connect(db_path)
    conn.execute(
        "INSERT INTO schema_version (version, applied_at) VALUES (?, ?)",
        (SCHEMA_VERSION + 1, "2099-01-01T00:00:00"),
    )
    conn.commit()
    conn.close()

    with pytest.raises(SchemaError):
        SQLiteJobStore(db_path=str(db_path))


def test_creates_parent_directory(tmp_path):
    db_path = tmp_path / "nested" / "dir" / "jobs.db"
    SQLiteJobStore(db_path=str(db_path))
    assert db_path.is_file()
