from __future__ import annotations

import sqlite3
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import aiosqlite

from pipelines.errors import PersistenceFailure


async def get_connection(db_path: str, timeout: Optional[float] = 30.0) -> aiosqlite.Connection:
    """Open an async SQLite connection with sane pragmas for local use.

    - WAL journal for fewer writer blocks
    - NORMAL synchronous for performance
    - foreign_keys ON to enforce integrity
    """
    conn = await aiosqlite.connect(db_path, timeout=timeout or 30.0)
    # Pragmas
    if db_path != ":memory:":
        await conn.execute("PRAGMA journal_mode=WAL;")
    await conn.execute("PRAGMA synchronous=NORMAL;")
    await conn.execute("PRAGMA foreign_keys=ON;")
    return conn


@asynccontextmanager
async def write_tx(conn: aiosqlite.Connection, what: str) -> AsyncIterator[aiosqlite.Connection]:
    """Commit on success; roll back on any failure, including cancellation.

    SQLite errors are re-raised as PersistenceFailure; anything else propagates as is.
    """
    try:
        yield conn
        await conn.commit()
    except sqlite3.Error as e:
        await conn.rollback()
        raise PersistenceFailure(f"{what} failed: {e}") from e
    except BaseException:
        await conn.rollback()
        raise
