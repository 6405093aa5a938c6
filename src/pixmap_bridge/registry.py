"""Correlation registries - identifier to pending Waiter

Two independent registries exist per host connection, one for the textual
channel and one for the binary channel. All mutation happens synchronously on
the event loop thread, so lookup, removal and settlement of an entry can never
interleave with another delivery.
"""

from typing import Any, Dict, Optional

from pixmap_bridge import log
from pixmap_bridge.frame import MessageId
from pixmap_bridge.waiter import Waiter


TEXT_CHANNEL = "text"
BINARY_CHANNEL = "binary"


class RegistryError(Exception):
    """Base registry error"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class DuplicateRegistration(RegistryError):
    """A waiter is already registered for the identifier on this channel"""

    def __init__(self, channel: str, identifier: MessageId):
        super().__init__(f"Waiter already registered on {channel} channel for {identifier}")
        self.channel = channel
        self.identifier = identifier


class CorrelationRegistry:
    """Maps a correlation identifier to the waiter pending on one channel"""

    def __init__(self, channel: str):
        self.channel = channel
        self._waiters: Dict[MessageId, Waiter] = {}

    def register(self, identifier: MessageId, waiter: Waiter) -> None:
        """Store the waiter for identifier

        Raises:
            DuplicateRegistration: If an entry already exists
        """
        if identifier in self._waiters:
            raise DuplicateRegistration(self.channel, identifier)
        self._waiters[identifier] = waiter

    def deliver(self, identifier: MessageId, message: Any) -> bool:
        """Settle and remove the waiter for identifier

        An exception instance fails the waiter; any other value resolves it.
        Deliveries with no listener are dropped.

        Returns:
            True if a waiter received the message
        """
        waiter = self._waiters.pop(identifier, None)
        if waiter is None:
            log.debug("Registry", f"Dropped {self.channel} message for {identifier}: no listener")
            return False
        if not waiter.is_pending():
            return False
        if isinstance(message, BaseException):
            waiter.fail(message)
        else:
            waiter.resolve(message)
        return True

    def remove(self, identifier: MessageId) -> Optional[Waiter]:
        """Remove the entry for identifier, abandoning it if still pending

        Idempotent: removing an absent identifier returns None.
        """
        waiter = self._waiters.pop(identifier, None)
        if waiter is not None:
            waiter.abandon()
        return waiter

    def pending(self, identifier: MessageId) -> Optional[Waiter]:
        return self._waiters.get(identifier)

    def fail_all(self, error: BaseException) -> int:
        """Fail every pending waiter and clear the registry"""
        waiters = list(self._waiters.values())
        self._waiters.clear()
        failed = 0
        for waiter in waiters:
            if waiter.is_pending():
                waiter.fail(error)
                failed += 1
        return failed

    def __contains__(self, identifier: MessageId) -> bool:
        return identifier in self._waiters

    def __len__(self) -> int:
        return len(self._waiters)


class HostChannels:
    """The textual and binary registries of one host connection"""

    def __init__(self):
        self.text = CorrelationRegistry(TEXT_CHANNEL)
        self.binary = CorrelationRegistry(BINARY_CHANNEL)

    def on_text_message(self, identifier: MessageId, value: Any) -> bool:
        return self.text.deliver(identifier, value)

    def on_binary_message(self, identifier: MessageId, data: bytes) -> bool:
        return self.binary.deliver(identifier, data)

    def on_error_message(self, identifier: MessageId, error: BaseException) -> bool:
        """Route a host error for identifier to its textual waiter"""
        return self.text.deliver(identifier, error)

    def release(self, identifier: MessageId) -> None:
        """Remove both entries for identifier"""
        self.text.remove(identifier)
        self.binary.remove(identifier)

    def holds(self, identifier: MessageId) -> bool:
        return identifier in self.text or identifier in self.binary

    def fail_all(self, error: BaseException) -> None:
        self.text.fail_all(error)
        self.binary.fail_all(error)
