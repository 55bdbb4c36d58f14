import asyncio

import pytest

from pagewiki.core.bus import EventBus
from pagewiki.core.errors import ErrorCode, ReplyException, ReplyFailure


def run(coro):
    return asyncio.run(coro)


def test_request_without_consumer_fails_no_handlers():
    async def scenario():
        bus = EventBus()
        with pytest.raises(ReplyException) as exc:
            await bus.request("nowhere", {"x": 1})
        assert exc.value.failure is ReplyFailure.NO_HANDLERS

    run(scenario())


def test_reply_reaches_requester_with_headers():
    async def scenario():
        bus = EventBus()

        async def echo(message):
            message.reply({"action": message.headers["action"], "body": message.body})

        bus.consumer("echo", echo)
        reply = await bus.request("echo", {"page": "Home"}, headers={"action": "get-page"})
        assert reply.body == {"action": "get-page", "body": {"page": "Home"}}

    run(scenario())


def test_fail_carries_code():
    async def scenario():
        bus = EventBus()

        async def refuse(message):
            message.fail(ErrorCode.BAD_ACTION, "nope")

        bus.consumer("refuse", refuse)
        with pytest.raises(ReplyException) as exc:
            await bus.request("refuse")
        assert exc.value.failure is ReplyFailure.RECIPIENT_FAILURE
        assert exc.value.code is ErrorCode.BAD_ACTION
        assert exc.value.message == "nope"

    run(scenario())


def test_consumer_returning_without_reply_is_a_failure():
    async def scenario():
        bus = EventBus()

        async def silent(message):
            return None

        bus.consumer("silent", silent)
        with pytest.raises(ReplyException) as exc:
            await bus.request("silent")
        assert exc.value.failure is ReplyFailure.RECIPIENT_FAILURE
        assert "did not reply" in exc.value.message

    run(scenario())


def test_consumer_exception_becomes_failure():
    async def scenario():
        bus = EventBus()

        async def broken(message):
            raise RuntimeError("kaboom")

        bus.consumer("broken", broken)
        with pytest.raises(ReplyException) as exc:
            await bus.request("broken")
        assert exc.value.failure is ReplyFailure.RECIPIENT_FAILURE
        assert exc.value.message == "kaboom"

    run(scenario())


def test_reply_timeout():
    async def scenario():
        bus = EventBus()

        async def slow(message):
            await asyncio.sleep(1)
            message.reply({})

        bus.consumer("slow", slow)
        with pytest.raises(ReplyException) as exc:
            await bus.request("slow", timeout=0.05)
        assert exc.value.failure is ReplyFailure.TIMEOUT
        await bus.close()

    run(scenario())


def test_second_reply_is_dropped():
    async def scenario():
        bus = EventBus()

        async def twice(message):
            message.reply({"n": 1})
            message.reply({"n": 2})
            message.fail(ErrorCode.DB_ERROR, "late")

        bus.consumer("twice", twice)
        reply = await bus.request("twice")
        assert reply.body == {"n": 1}

    run(scenario())


def test_concurrent_requests_get_their_own_reply():
    async def scenario():
        bus = EventBus()

        async def delayed(message):
            n = message.body["n"]
            await asyncio.sleep(0.01 * (5 - n))
            message.reply({"n": n})

        bus.consumer("delayed", delayed)
        replies = await asyncio.gather(*(bus.request("delayed", {"n": n}) for n in range(5)))
        assert [r.body["n"] for r in replies] == list(range(5))

    run(scenario())


def test_one_consumer_per_address():
    bus = EventBus()

    async def handler(message):
        message.reply()

    bus.consumer("a", handler)
    with pytest.raises(ValueError):
        bus.consumer("a", handler)
    bus.unregister("a")
    assert not bus.has_consumer("a")
