"""Per-request collectors for the textual and binary channels

The host answers a pixmap script with any number of textual messages in no
fixed order relative to the pixmap itself. Only the textual message that is
an object carrying "bounds" is terminal; everything else on the textual
channel is skipped. The binary channel carries at most one pixmap.
"""

import asyncio
from collections import deque
from enum import Enum
from typing import Any, Deque, Optional

from pixmap_bridge import log
from pixmap_bridge.errors import ChannelFailure, PixmapBridgeError, WaiterTimeout
from pixmap_bridge.frame import MessageId
from pixmap_bridge.registry import CorrelationRegistry
from pixmap_bridge.waiter import Waiter


class CollectorState(Enum):
    COLLECTING = "collecting"
    TERMINAL = "terminal"
    FAILED = "failed"


def is_terminal_message(value: Any) -> bool:
    """True for a structured textual message carrying a bounds attribute"""
    return isinstance(value, dict) and "bounds" in value


def as_channel_failure(error: BaseException) -> ChannelFailure:
    return ChannelFailure("CHANNEL_ERROR", str(error) or type(error).__name__)


def _ignore(_error: BaseException) -> None:
    # Failures reach collect() through Waiter.wait(); nothing to re-arm
    pass


class TextualStreamCollector:
    """Consumes textual messages for one request until the terminal one

    Each waiter is re-armed synchronously when it resolves with a non-terminal
    message, so at most one textual waiter is pending for the identifier and
    no message is lost between two installs. collect() walks the installed
    waiters in order, one await per message.
    """

    def __init__(
        self,
        registry: CorrelationRegistry,
        identifier: MessageId,
        timeout: Optional[float] = None,
    ):
        self.registry = registry
        self.identifier = identifier
        self.timeout = timeout
        self.state = CollectorState.COLLECTING
        self.messages_seen = 0
        self._installed: Deque[Waiter] = deque()

    def start(self) -> None:
        """Install the first waiter"""
        if not self._installed:
            self._install()

    def _install(self) -> None:
        waiter = Waiter()
        waiter.on_settled(self._rearm, _ignore)
        self.registry.register(self.identifier, waiter)
        self._installed.append(waiter)

    def _rearm(self, value: Any) -> None:
        if not is_terminal_message(value):
            self._install()

    async def collect(self) -> Any:
        """Wait for the terminal message and return it

        Raises:
            ChannelFailure: If a waiter fails or times out
        """
        self.start()
        while True:
            waiter = self._installed.popleft()
            try:
                value = await waiter.wait(self.timeout)
            except asyncio.TimeoutError:
                self.state = CollectorState.FAILED
                self.registry.remove(self.identifier)
                raise WaiterTimeout(self.registry.channel, self.timeout)
            except PixmapBridgeError:
                self.state = CollectorState.FAILED
                raise
            except Exception as e:
                self.state = CollectorState.FAILED
                raise as_channel_failure(e) from e

            self.messages_seen += 1
            if is_terminal_message(value):
                self.state = CollectorState.TERMINAL
                return value

            log.debug(
                "Collector",
                f"Skipping non-terminal message #{self.messages_seen} for {self.identifier}",
            )


class BinarySlot:
    """Holds the single pixmap waiter of one request, if one is expected"""

    def __init__(
        self,
        registry: CorrelationRegistry,
        identifier: MessageId,
        expect_payload: bool,
        timeout: Optional[float] = None,
    ):
        self.registry = registry
        self.identifier = identifier
        self.expect_payload = expect_payload
        self.timeout = timeout
        self._waiter: Optional[Waiter] = None

    def open(self) -> None:
        """Register the pixmap waiter; bounds-only requests register nothing"""
        if self.expect_payload and self._waiter is None:
            self._waiter = Waiter()
            self.registry.register(self.identifier, self._waiter)

    async def receive(self) -> Optional[bytes]:
        """Wait for the pixmap bytes, or None when no payload is expected

        Raises:
            ChannelFailure: If the waiter fails or times out
        """
        if not self.expect_payload:
            return None
        self.open()
        try:
            return await self._waiter.wait(self.timeout)
        except asyncio.TimeoutError:
            self.registry.remove(self.identifier)
            raise WaiterTimeout(self.registry.channel, self.timeout)
        except PixmapBridgeError:
            raise
        except Exception as e:
            raise as_channel_failure(e) from e
