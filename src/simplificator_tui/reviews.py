"""SQLite-backed review store.

Reviews are append-only: each scored submission is inserted once and listed
newest first. Uses aiosqlite so the Textual event loop never blocks on disk.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path

import aiosqlite

from .models import Review

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS reviews (
    id           INTEGER PRIMARY KEY AUTOINCREMENT,
    title        TEXT NOT NULL,
    code_snippet TEXT NOT NULL,
    description  TEXT NOT NULL,
    score        INTEGER NOT NULL,
    created_at   TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_reviews_created ON reviews(created_at);
"""

_COLUMNS = "id, title, code_snippet, description, score, created_at"


async def init_db(db_path: str) -> aiosqlite.Connection:
    """Open the review database and create the schema if needed.

    Creates parent directories for file paths. ``":memory:"`` is passed
    through untouched.
    """
    if db_path == ":memory:":
        target = db_path
    else:
        resolved = Path(db_path).expanduser()
        resolved.parent.mkdir(parents=True, exist_ok=True)
        target = str(resolved)

    db = await aiosqlite.connect(target)
    await db.execute("PRAGMA journal_mode=WAL")
    await db.executescript(_SCHEMA)
    await db.commit()

    logger.info("Review database initialized at %s", target)
    return db


async def close_db(db: aiosqlite.Connection) -> None:
    """Close the database connection."""
    await db.close()


def _row_to_review(row: tuple) -> Review:
    return Review(
        id=row[0],
        title=row[1],
        code_snippet=row[2],
        description=row[3],
        score=row[4],
        created_at=row[5],
    )


class ReviewStore:
    """Insert and list reviews on an open aiosqlite connection."""

    def __init__(self, db: aiosqlite.Connection) -> None:
        self._db = db

    async def insert_review(
        self,
        title: str,
        code_snippet: str,
        description: str,
        score: int,
        created_at: datetime | None = None,
    ) -> Review:
        stamp = (created_at or datetime.now(timezone.utc)).isoformat()
        cursor = await self._db.execute(
            """
            INSERT INTO reviews (title, code_snippet, description, score, created_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (title, code_snippet, description, score, stamp),
        )
        await self._db.commit()
        review_id = cursor.lastrowid
        await cursor.close()

        logger.debug("Saved review %s (%d/10): %s", review_id, score, title)
        return Review(
            id=review_id,
            title=title,
            code_snippet=code_snippet,
            description=description,
            score=score,
            created_at=stamp,
        )

    async def list_reviews(self, limit: int | None = None) -> list[Review]:
        """Return reviews ordered by recency, newest first."""
        query = f"SELECT {_COLUMNS} FROM reviews ORDER BY created_at DESC, id DESC"  # noqa: S608
        params: tuple = ()
        if limit is not None:
            query += " LIMIT ?"
            params = (limit,)

        async with self._db.execute(query, params) as cursor:
            rows = await cursor.fetchall()
        return [_row_to_review(row) for row in rows]
