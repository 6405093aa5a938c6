"""Tests for registry module

CorrelationRegistry and HostChannels: registration, delivery, drop of
unsolicited messages and idempotent removal.
"""

import pytest

from pixmap_bridge.errors import ChannelFailure
from pixmap_bridge.frame import MessageId
from pixmap_bridge.registry import (
    CorrelationRegistry,
    DuplicateRegistration,
    HostChannels,
    TEXT_CHANNEL,
    BINARY_CHANNEL,
)
from pixmap_bridge.waiter import Waiter


# TEST020: register stores the waiter under its identifier
@pytest.mark.asyncio
async def test_020_register():
    registry = CorrelationRegistry(TEXT_CHANNEL)
    waiter = Waiter()
    registry.register(MessageId(1), waiter)

    assert MessageId(1) in registry
    assert registry.pending(MessageId(1)) is waiter
    assert len(registry) == 1


# TEST021: A second registration for the same identifier raises DuplicateRegistration
@pytest.mark.asyncio
async def test_021_duplicate_registration():
    registry = CorrelationRegistry(BINARY_CHANNEL)
    first = Waiter()
    registry.register(MessageId(7), first)

    with pytest.raises(DuplicateRegistration) as exc_info:
        registry.register(MessageId(7), Waiter())

    assert exc_info.value.channel == BINARY_CHANNEL
    assert exc_info.value.identifier == MessageId(7)
    assert registry.pending(MessageId(7)) is first


# TEST022: deliver resolves the waiter and removes the entry
@pytest.mark.asyncio
async def test_022_deliver_resolves_and_removes():
    registry = CorrelationRegistry(TEXT_CHANNEL)
    waiter = Waiter()
    registry.register(MessageId(3), waiter)

    assert registry.deliver(MessageId(3), {"bounds": {}})

    assert MessageId(3) not in registry
    assert await waiter.wait() == {"bounds": {}}


# TEST023: Delivering an exception fails the waiter
@pytest.mark.asyncio
async def test_023_deliver_error_fails_waiter():
    registry = CorrelationRegistry(TEXT_CHANNEL)
    waiter = Waiter()
    registry.register(MessageId(3), waiter)

    assert registry.deliver(MessageId(3), ChannelFailure("E", "bad"))

    assert waiter.is_failed()
    with pytest.raises(ChannelFailure):
        await waiter.wait()


# TEST024: Delivery with no registered waiter is dropped
@pytest.mark.asyncio
async def test_024_unsolicited_delivery_dropped():
    registry = CorrelationRegistry(TEXT_CHANNEL)
    assert not registry.deliver(MessageId(99), "hello")
    assert len(registry) == 0


# TEST025: remove is idempotent and abandons the pending waiter
@pytest.mark.asyncio
async def test_025_remove_idempotent():
    registry = CorrelationRegistry(BINARY_CHANNEL)
    waiter = Waiter()
    registry.register(MessageId(5), waiter)

    assert registry.remove(MessageId(5)) is waiter
    assert waiter.is_abandoned()
    assert registry.remove(MessageId(5)) is None
    assert MessageId(5) not in registry


# TEST026: A delivery after remove is dropped
@pytest.mark.asyncio
async def test_026_delivery_after_remove_dropped():
    registry = CorrelationRegistry(BINARY_CHANNEL)
    registry.register(MessageId(5), Waiter())
    registry.remove(MessageId(5))
    assert not registry.deliver(MessageId(5), b"late")


# TEST027: Textual and binary registries are independent
@pytest.mark.asyncio
async def test_027_channels_independent():
    channels = HostChannels()
    text_waiter = Waiter()
    binary_waiter = Waiter()
    channels.text.register(MessageId(1), text_waiter)
    channels.binary.register(MessageId(1), binary_waiter)

    channels.on_binary_message(MessageId(1), b"pixels")

    assert text_waiter.is_pending()
    assert binary_waiter.is_resolved()
    assert channels.holds(MessageId(1))


# TEST028: on_error_message fails the textual waiter only
@pytest.mark.asyncio
async def test_028_error_routes_to_text():
    channels = HostChannels()
    text_waiter = Waiter()
    binary_waiter = Waiter()
    channels.text.register(MessageId(2), text_waiter)
    channels.binary.register(MessageId(2), binary_waiter)

    channels.on_error_message(MessageId(2), ChannelFailure("JSX", "script error"))

    assert text_waiter.is_failed()
    assert binary_waiter.is_pending()


# TEST029: release removes both entries for an identifier and leaves others
@pytest.mark.asyncio
async def test_029_release():
    channels = HostChannels()
    channels.text.register(MessageId(1), Waiter())
    channels.binary.register(MessageId(1), Waiter())
    channels.text.register(MessageId(2), Waiter())

    channels.release(MessageId(1))

    assert not channels.holds(MessageId(1))
    assert MessageId(2) in channels.text


# TEST030: fail_all fails every pending waiter and clears both registries
@pytest.mark.asyncio
async def test_030_fail_all():
    channels = HostChannels()
    waiters = [Waiter(), Waiter(), Waiter()]
    channels.text.register(MessageId(1), waiters[0])
    channels.text.register(MessageId(2), waiters[1])
    channels.binary.register(MessageId(1), waiters[2])

    channels.fail_all(ChannelFailure("GONE", "host gone"))

    assert all(w.is_failed() for w in waiters)
    assert len(channels.text) == 0
    assert len(channels.binary) == 0
