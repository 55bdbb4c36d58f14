"""In-process request/reply message bus.

Each address has at most one consumer. ``request`` hands the message to the
consumer in a fresh task and waits for exactly one reply; every way a request
can end without a reply is turned into a ``ReplyException``.
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from pagewiki.core.errors import ErrorCode, ReplyException, ReplyFailure

logger = logging.getLogger("pagewiki.bus")

Handler = Callable[["Message"], Awaitable[None]]


@dataclass
class Message:
    address: str
    headers: dict[str, str]
    body: dict[str, Any] | None
    _reply: asyncio.Future = field(repr=False)

    @property
    def replied(self) -> bool:
        return self._reply.done()

    def reply(self, body: dict[str, Any] | None = None) -> None:
        if self._reply.done():
            logger.warning("Dropping second reply on %s", self.address)
            return
        self._reply.set_result(Message(self.address, {}, body, self._reply))

    def fail(self, code: ErrorCode, message: str) -> None:
        if self._reply.done():
            logger.warning("Dropping failure %s on %s: already replied", code.value, self.address)
            return
        self._reply.set_exception(ReplyException(ReplyFailure.RECIPIENT_FAILURE, message, code=code))


class EventBus:
    def __init__(self, default_timeout: float | None = 30.0):
        self.default_timeout = default_timeout
        self._consumers: dict[str, Handler] = {}
        self._tasks: set[asyncio.Task] = set()

    def consumer(self, address: str, handler: Handler) -> None:
        if address in self._consumers:
            raise ValueError(f"Address '{address}' already has a consumer")
        self._consumers[address] = handler
        logger.info("Consumer registered on %s", address)

    def unregister(self, address: str) -> None:
        self._consumers.pop(address, None)

    def has_consumer(self, address: str) -> bool:
        return address in self._consumers

    async def request(
        self,
        address: str,
        body: dict[str, Any] | None = None,
        *,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> Message:
        handler = self._consumers.get(address)
        if handler is None:
            raise ReplyException(ReplyFailure.NO_HANDLERS, f"No handlers for address {address}")

        reply: asyncio.Future = asyncio.get_running_loop().create_future()
        message = Message(address, dict(headers or {}), body, reply)
        task = asyncio.create_task(self._deliver(handler, message))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

        wait_for = self.default_timeout if timeout is None else timeout
        try:
            return await asyncio.wait_for(reply, wait_for)
        except asyncio.TimeoutError:
            raise ReplyException(
                ReplyFailure.TIMEOUT,
                f"Timed out after waiting {wait_for}s for a reply on {address}",
            ) from None

    async def _deliver(self, handler: Handler, message: Message) -> None:
        try:
            await handler(message)
        except Exception as e:
            logger.exception("Consumer on %s raised", message.address)
            if not message.replied:
                message._reply.set_exception(ReplyException(ReplyFailure.RECIPIENT_FAILURE, str(e)))
            return
        if not message.replied:
            message._reply.set_exception(
                ReplyException(ReplyFailure.RECIPIENT_FAILURE, f"Consumer on {message.address} did not reply")
            )

    async def close(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        self._consumers.clear()
