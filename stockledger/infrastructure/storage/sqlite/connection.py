"""
aiosqlite connection handling for the inventory database.

Connections are opened lazily, up to ``pool_size``, and reused in LIFO
order. Every connection runs in WAL mode with foreign keys enforced, which
the append-only ledger triggers and product references rely on.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path

import aiosqlite

from stockledger.config import get_logger, get_settings
from stockledger.core.exceptions import RepositoryError

logger = get_logger(__name__)

PRAGMAS = (
    "PRAGMA journal_mode=WAL",
    "PRAGMA synchronous=NORMAL",
    "PRAGMA foreign_keys=ON",
)


class ConnectionPool:
    """At most ``pool_size`` open connections to one database file."""

    def __init__(self, db_path: Path, pool_size: int = 5, busy_timeout: int = 30000):
        self.db_path = Path(db_path)
        self.pool_size = pool_size
        self.busy_timeout = busy_timeout

        self._slots = asyncio.Semaphore(pool_size)
        self._idle: asyncio.LifoQueue[aiosqlite.Connection] = asyncio.LifoQueue()
        self._opened: list[aiosqlite.Connection] = []

    @property
    def open_connections(self) -> int:
        return len(self._opened)

    async def initialize(self) -> None:
        """Create the data directory and check the database opens."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        async with self.acquire() as conn:
            await conn.execute("SELECT 1")
        logger.info("sqlite_pool_ready", db_path=str(self.db_path), max_size=self.pool_size)

    async def _open(self) -> aiosqlite.Connection:
        conn = await aiosqlite.connect(self.db_path)
        for pragma in (*PRAGMAS, f"PRAGMA busy_timeout={self.busy_timeout}"):
            await conn.execute(pragma)
        conn.row_factory = aiosqlite.Row
        self._opened.append(conn)
        return conn

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[aiosqlite.Connection]:
        async with self._slots:
            try:
                conn = self._idle.get_nowait()
            except asyncio.QueueEmpty:
                conn = await self._open()
            try:
                yield conn
            finally:
                self._idle.put_nowait(conn)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """A connection whose work is committed together or not at all."""
        async with self.acquire() as conn:
            try:
                yield conn
            except BaseException:
                await conn.rollback()
                raise
            else:
                await conn.commit()

    async def close(self) -> None:
        while not self._idle.empty():
            self._idle.get_nowait()
        count = len(self._opened)
        for conn in self._opened:
            await conn.close()
        self._opened.clear()
        logger.info("sqlite_pool_closed", closed=count)


_pool: ConnectionPool | None = None


async def get_pool() -> ConnectionPool:
    global _pool
    if _pool is None:
        storage = get_settings().storage
        _pool = ConnectionPool(storage.db_path, storage.pool_size, storage.busy_timeout)
        await _pool.initialize()
    return _pool


async def close_pool() -> None:
    global _pool
    pool, _pool = _pool, None
    if pool is not None:
        await pool.close()


@asynccontextmanager
async def get_connection() -> AsyncIterator[aiosqlite.Connection]:
    async with (await get_pool()).acquire() as conn:
        yield conn


@asynccontextmanager
async def get_transaction() -> AsyncIterator[aiosqlite.Connection]:
    async with (await get_pool()).transaction() as conn:
        yield conn


@asynccontextmanager
async def translate_errors(operation: str) -> AsyncIterator[None]:
    """Re-raise driver errors as RepositoryError."""
    try:
        yield
    except aiosqlite.Error as e:
        logger.error("sqlite_error", operation=operation, error=str(e))
        raise RepositoryError(operation, str(e)) from e


def to_db_time(value: datetime) -> str:
    """
    Serialize a timestamp for storage.

    Naive values are taken as UTC. Fixed-width UTC ISO strings sort
    chronologically, so range filters can compare them as text.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def from_db_time(value: str | None) -> datetime | None:
    if not value:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
