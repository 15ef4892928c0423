"""Tests for the SQLite connection pool and time helpers."""

from datetime import datetime, timedelta, timezone

import pytest

from stockledger.infrastructure.storage.sqlite.connection import (
    ConnectionPool,
    from_db_time,
    to_db_time,
)


class TestConnectionPool:
    async def test_acquire_and_close(self, temp_db_path):
        pool = ConnectionPool(temp_db_path, pool_size=2, busy_timeout=1000)
        assert pool.open_connections == 0
        async with pool.acquire() as conn:
            cursor = await conn.execute("SELECT 1")
            assert (await cursor.fetchone())[0] == 1
        assert pool.open_connections == 1
        await pool.close()
        assert pool.open_connections == 0

    async def test_transaction_rolls_back(self, temp_db_path):
        pool = ConnectionPool(temp_db_path, pool_size=1)
        async with pool.transaction() as conn:
            await conn.execute("CREATE TABLE t (x INTEGER)")

        with pytest.raises(RuntimeError):
            async with pool.transaction() as conn:
                await conn.execute("INSERT INTO t VALUES (1)")
                raise RuntimeError("abort")

        async with pool.acquire() as conn:
            cursor = await conn.execute("SELECT COUNT(*) FROM t")
            assert (await cursor.fetchone())[0] == 0
        await pool.close()


class TestTimeHelpers:
    def test_round_trip_normalizes_to_utc(self):
        value = datetime(2024, 3, 1, 14, 0, tzinfo=timezone(timedelta(hours=4)))
        stored = to_db_time(value)
        assert stored == "2024-03-01T10:00:00.000000+00:00"
        assert from_db_time(stored) == value

    def test_naive_taken_as_utc(self):
        assert to_db_time(datetime(2024, 3, 1)) == "2024-03-01T00:00:00.000000+00:00"

    def test_empty(self):
        assert from_db_time(None) is None
        assert from_db_time("") is None

    def test_text_order_is_chronological(self):
        early = to_db_time(datetime(2024, 3, 1, 9, 0, 0, 5, tzinfo=timezone.utc))
        late = to_db_time(datetime(2024, 3, 1, 10, 0, tzinfo=timezone.utc))
        assert early < late
