from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import aiosqlite

logger = logging.getLogger("pagewiki.pool")


class PoolTimeout(Exception):
    pass


class ConnectionPool:
    """Bounded set of aiosqlite connections handed out one lease at a time."""

    def __init__(self, database: str, max_size: int = 30, acquire_timeout: float | None = None):
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self.database = database
        self.max_size = max_size
        self.acquire_timeout = acquire_timeout
        self._slots = asyncio.Semaphore(max_size)
        self._idle: list[aiosqlite.Connection] = []
        self._in_use = 0
        self._closed = False

    @property
    def in_use(self) -> int:
        return self._in_use

    async def _connect(self) -> aiosqlite.Connection:
        # autocommit: every statement is its own transaction
        return await aiosqlite.connect(self.database, isolation_level=None)

    async def open(self) -> None:
        conn = await self._connect()
        try:
            await conn.execute("select 1")
        except Exception:
            await conn.close()
            raise
        self._idle.append(conn)
        logger.info("Connection pool open on %s (max_size=%d)", self.database, self.max_size)

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[aiosqlite.Connection]:
        if self._closed:
            raise RuntimeError("Connection pool is closed")
        try:
            await asyncio.wait_for(self._slots.acquire(), self.acquire_timeout)
        except asyncio.TimeoutError:
            raise PoolTimeout(
                f"No connection available within {self.acquire_timeout}s (max_size={self.max_size})"
            ) from None

        try:
            conn = self._idle.pop() if self._idle else await self._connect()
        except BaseException:
            self._slots.release()
            raise

        self._in_use += 1
        try:
            yield conn
        finally:
            self._in_use -= 1
            if self._closed:
                await conn.close()
            else:
                self._idle.append(conn)
            self._slots.release()

    async def close(self) -> None:
        self._closed = True
        idle, self._idle = self._idle, []
        for conn in idle:
            await conn.close()
        logger.info("Connection pool on %s closed", self.database)
