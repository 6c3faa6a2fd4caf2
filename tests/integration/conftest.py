import os
import uuid
from collections.abc import Generator
from importlib import resources
from typing import Any

import psycopg
import pytest

from shelfscan.config.settings import Settings
from shelfscan.database.connection import close_pool, get_connection, init_pool
from shelfscan.database.models import DetectionJobRecord, NewJobImage
from shelfscan.database.repositories.job_repository import NOTIFY_CHANNEL, JobRepository


def _test_settings() -> Settings:
    os.environ.setdefault("DB_DATABASE", "shelfscan_test")
    return Settings()


def _conninfo(settings: Settings) -> str:
    return (
        f"host={settings.db_host} port={settings.db_port} dbname={settings.db_database} "
        f"user={settings.db_username} password={settings.db_password} connect_timeout=3"
    )


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    return _test_settings()


@pytest.fixture(scope="session")
def integration_pool(test_settings: Settings) -> Generator[None, None, None]:
    try:
        with psycopg.connect(_conninfo(test_settings)) as conn:
            conn.execute(resources.files("shelfscan.database").joinpath("schema.sql").read_text())
            conn.commit()
    except Exception as e:
        pytest.skip(
            f"PostgreSQL test DB not available: {e}. "
            "Set DB_* env to point at a disposable database"
        )
    init_pool(test_settings, max_size=4)
    try:
        yield
    finally:
        close_pool()


@pytest.fixture
def db_conn(integration_pool: None) -> Generator[psycopg.Connection[Any], None, None]:
    with get_connection() as conn:
        with conn.cursor() as cur:
            cur.execute(
                "TRUNCATE detection_jobs, storage_audit_log, family_books, book_catalog, users"
            )
        conn.commit()
        yield conn


@pytest.fixture
def listen_conn(
    integration_pool: None, test_settings: Settings
) -> Generator[psycopg.Connection[Any], None, None]:
    """A separate autocommit connection listening on the job channel."""
    with psycopg.connect(_conninfo(test_settings), autocommit=True) as conn:
        conn.execute(f"LISTEN {NOTIFY_CHANNEL}")
        yield conn


@pytest.fixture
def owner_id() -> str:
    return str(uuid.uuid4())


@pytest.fixture
def job_repo() -> JobRepository:
    return JobRepository()


@pytest.fixture
def seed_job(
    db_conn: psycopg.Connection[Any],
    job_repo: JobRepository,
    owner_id: str,
) -> DetectionJobRecord:
    job_id = str(uuid.uuid4())
    return job_repo.create(
        job_id,
        owner_id,
        NewJobImage(
            storage_path=f"{owner_id}/{job_id}.jpg",
            original_filename="shelf.jpg",
            mime_type="image/jpeg",
            size_bytes=1024,
            thumbnail="dGh1bWI=",
        ),
        ai_model="example",
    )


def set_columns(conn: psycopg.Connection[Any], job_id: str, **columns: Any) -> None:
    """Force column values on a job row, for setting up timing scenarios."""
    assignments = ", ".join(f"{name} = %s" for name in columns)
    with conn.cursor() as cur:
        cur.execute(
            f"UPDATE detection_jobs SET {assignments} WHERE id = %s",
            (*columns.values(), job_id),
        )
    conn.commit()
