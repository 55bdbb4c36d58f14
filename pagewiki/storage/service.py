from __future__ import annotations

import logging
import sqlite3
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from pagewiki.core.bus import EventBus, Message
from pagewiki.core.errors import DataIntegrityError, ErrorCode
from pagewiki.models import (
    ACTION,
    Action,
    AllPagesReply,
    CreatePageRequest,
    DeletePageRequest,
    GetPageReply,
    GetPageRequest,
    SavePageRequest,
)
from pagewiki.storage.catalog import QueryId
from pagewiki.storage.pool import ConnectionPool, PoolTimeout

logger = logging.getLogger("pagewiki.storage")


class StorageService:
    """Consumes page envelopes from the bus and runs them against the pool."""

    def __init__(self, pool: ConnectionPool, queries: Mapping[QueryId, str], address: str):
        self.pool = pool
        self.queries = queries
        self.address = address
        self.listening = False

    async def start(self, bus: EventBus) -> None:
        await self.pool.open()
        async with self.pool.connection() as conn:
            try:
                await conn.execute(self.queries[QueryId.CREATE_PAGES_TABLE])
            except sqlite3.Error:
                logger.error("Cannot create table in db", exc_info=True)
                raise
        bus.consumer(self.address, self.handle)
        self.listening = True
        logger.info("Storage service listening on %s", self.address)

    async def stop(self, bus: EventBus) -> None:
        bus.unregister(self.address)
        self.listening = False
        await self.pool.close()

    async def handle(self, message: Message) -> None:
        raw_action = message.headers.get(ACTION)
        if raw_action is None:
            logger.error("No action in message (headers: %s, body: %s)", message.headers, message.body)
            message.fail(ErrorCode.NO_ACTION_SPECIFIED, "No action header provided")
            return
        try:
            action = Action(raw_action)
        except ValueError:
            message.fail(ErrorCode.BAD_ACTION, f"Invalid action '{raw_action}'. No handlers found")
            return

        body = message.body or {}
        try:
            message.reply(await self.dispatch(action, body))
        except ValidationError as e:
            logger.warning("Invalid %s payload: %s", action.value, e)
            message.fail(ErrorCode.INVALID_PAYLOAD, str(e))
        except PoolTimeout as e:
            logger.error("Connection acquisition timed out for %s: %s", action.value, e)
            message.fail(ErrorCode.TIMEOUT, str(e))
        except (sqlite3.Error, DataIntegrityError) as e:
            logger.error("Database query error", exc_info=True)
            message.fail(ErrorCode.DB_ERROR, str(e))

    async def dispatch(self, action: Action, body: dict[str, Any]) -> dict[str, Any] | None:
        match action:
            case Action.GET_PAGE:
                return await self.get_page(GetPageRequest.model_validate(body))
            case Action.ALL_PAGES:
                return await self.all_pages()
            case Action.CREATE_PAGE:
                await self.create_page(CreatePageRequest.model_validate(body))
            case Action.SAVE_PAGE:
                await self.save_page(SavePageRequest.model_validate(body))
            case Action.DELETE_PAGE:
                await self.delete_page(DeletePageRequest.model_validate(body))
        return None

    async def _fetch_all(self, query_id: QueryId, params: tuple = ()) -> list[tuple]:
        async with self.pool.connection() as conn:
            cursor = await conn.execute(self.queries[query_id], params)
            try:
                return list(await cursor.fetchall())
            finally:
                await cursor.close()

    async def _update(self, query_id: QueryId, params: tuple) -> int:
        async with self.pool.connection() as conn:
            cursor = await conn.execute(self.queries[query_id], params)
            try:
                return cursor.rowcount
            finally:
                await cursor.close()

    async def get_page(self, req: GetPageRequest) -> dict[str, Any]:
        rows = await self._fetch_all(QueryId.GET_PAGE, (req.page,))
        if not rows:
            return GetPageReply(found=False).model_dump(by_alias=True, exclude_none=True)
        if len(rows) > 1:
            raise DataIntegrityError(f"{len(rows)} pages share the name '{req.page}'")
        page_id, content = rows[0]
        return GetPageReply(found=True, id=page_id, raw_content=content).model_dump(by_alias=True)

    async def all_pages(self) -> dict[str, Any]:
        rows = await self._fetch_all(QueryId.ALL_PAGES)
        return AllPagesReply(pages=sorted(row[0] for row in rows)).model_dump()

    async def create_page(self, req: CreatePageRequest) -> None:
        await self._update(QueryId.CREATE_PAGE, (req.title, req.markdown))
        logger.debug("Create page named '%s'", req.title)

    async def save_page(self, req: SavePageRequest) -> None:
        # a stale id updates nothing and still succeeds
        updated = await self._update(QueryId.SAVE_PAGE, (req.markdown, req.id))
        logger.debug("Update page id=%s (%d row(s))", req.id, updated)

    async def delete_page(self, req: DeletePageRequest) -> None:
        updated = await self._update(QueryId.DELETE_PAGE, (req.id,))
        if updated == 1:
            logger.debug("Page with id=%s was deleted", req.id)
        else:
            logger.warning("Cant delete page. No page with id=%s found", req.id)
