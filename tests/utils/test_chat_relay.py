import asyncio

from craftbot.config import ChatConfig
from craftbot.core.errors import ActionError
from craftbot.utils.chat import MAX_MESSAGE_LENGTH, ChatRelay


def test_long_messages_are_split(world):
    relay = ChatRelay(world, ChatConfig(message_delay=0))
    relay.say("x" * (MAX_MESSAGE_LENGTH * 2 + 10))

    assert [len(m) for m in relay.pending] == [MAX_MESSAGE_LENGTH, MAX_MESSAGE_LENGTH, 10]


def test_flush_one_sends_oldest(world):
    relay = ChatRelay(world, ChatConfig(message_delay=0))
    relay.say("first")
    relay.say("second")

    assert asyncio.run(relay.flush_one())
    assert world.chat_log == ["first"]
    assert relay.pending == ["second"]


def test_drain_sends_everything(world):
    relay = ChatRelay(world, ChatConfig(message_delay=0))
    for line in ("a", "b", "c"):
        relay.say(line)

    asyncio.run(relay.drain())

    assert world.chat_log == ["a", "b", "c"]
    assert relay.sent == ["a", "b", "c"]
    assert not asyncio.run(relay.flush_one())


def test_blank_lines_not_queued(world):
    relay = ChatRelay(world, ChatConfig(message_delay=0))
    relay.say("   ")
    assert relay.pending == []


def test_send_error_drops_message(world, monkeypatch):
    relay = ChatRelay(world, ChatConfig(message_delay=0))

    async def broken(message):
        raise ActionError("disconnected")

    monkeypatch.setattr(world, "chat", broken)
    relay.say("hello")

    assert asyncio.run(relay.flush_one())
    assert relay.sent == []
    assert relay.pending == []
