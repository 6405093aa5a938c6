"""Request Coordinator - one pixmap request from dispatch to joined result

Dispatching the pixmap script yields a correlation identifier. The host then
answers with a variable sequence of textual messages and, unless the request
is bounds-only, one pixmap message. The coordinator collects both sides under
the identifier, joins them in whatever order they settle, shapes the result
and removes every registry entry for the identifier on the way out.

Usage:
```python
channels = HostChannels()
coordinator = RequestCoordinator(connection.execute_script, channels)
bounds = await coordinator.perform({"documentId": 1, "layerId": 2, "boundsOnly": True})
```
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

from pixmap_bridge import log
from pixmap_bridge.collector import BinarySlot, TextualStreamCollector
from pixmap_bridge.config import DEFAULT_PIXMAP_SCRIPT
from pixmap_bridge.errors import DispatchFailure, UnexpectedResponseShape
from pixmap_bridge.frame import MessageId
from pixmap_bridge.pixmap import Pixmap, decode_pixmap
from pixmap_bridge.registry import HostChannels


Dispatch = Callable[[str, Dict[str, Any]], Awaitable[MessageId]]


@dataclass
class RequestContext:
    """State of one in-flight request"""
    identifier: MessageId
    params: Dict[str, Any]
    text_outcome: Any = None
    binary_outcome: Any = None
    result: Any = None
    error: Optional[BaseException] = None


def shape_result(
    bounds_only: bool,
    text_outcome: Any,
    binary_outcome: Any,
    decode: Callable[[bytes], Pixmap] = decode_pixmap,
) -> Any:
    """Combine the joined outcomes into the caller's result

    Returns:
        The bounds value for bounds-only requests, otherwise the decoded
        pixmap annotated with bounds

    Raises:
        UnexpectedResponseShape: If the outcomes match neither shape
    """
    bounds = text_outcome.get("bounds") if isinstance(text_outcome, dict) else None

    if bounds_only and bounds:
        return bounds

    if not bounds_only and bounds and binary_outcome:
        pixmap = decode(binary_outcome)
        pixmap.bounds = bounds
        return pixmap

    raise UnexpectedResponseShape(text_outcome, binary_outcome)


class RequestCoordinator:
    """Runs pixmap requests against one host's correlation registries"""

    def __init__(
        self,
        dispatch: Dispatch,
        channels: HostChannels,
        script_ref: str = DEFAULT_PIXMAP_SCRIPT,
        waiter_timeout: Optional[float] = None,
        decode: Callable[[bytes], Pixmap] = decode_pixmap,
    ):
        self._dispatch = dispatch
        self.channels = channels
        self.script_ref = script_ref
        self.waiter_timeout = waiter_timeout
        self._decode = decode
        self.in_flight: Dict[MessageId, RequestContext] = {}

    async def perform(self, params: Dict[str, Any]) -> Any:
        """Dispatch one request and return its shaped result

        Raises:
            DispatchFailure: If the host could not start the script
            ChannelFailure: If a channel failed before both outcomes arrived
            UnexpectedResponseShape: If the outcomes do not fit together
        """
        bounds_only = bool(params.get("boundsOnly"))

        try:
            identifier = await self._dispatch(self.script_ref, params)
        except DispatchFailure:
            raise
        except Exception as e:
            raise DispatchFailure(f"Failed to dispatch {self.script_ref}: {e}") from e

        context = RequestContext(identifier=identifier, params=params)
        self.in_flight[identifier] = context

        text = TextualStreamCollector(self.channels.text, identifier, self.waiter_timeout)
        slot = BinarySlot(
            self.channels.binary, identifier,
            expect_payload=not bounds_only,
            timeout=self.waiter_timeout,
        )

        try:
            # Both registrations happen before the first suspension point
            text.start()
            slot.open()

            context.text_outcome, context.binary_outcome = await self._join(text, slot)
            context.result = shape_result(
                bounds_only, context.text_outcome, context.binary_outcome, self._decode
            )
            return context.result
        except Exception as e:
            context.error = e
            log.info("Coordinator", f"Request {identifier} failed: {e}")
            raise
        finally:
            self.channels.release(identifier)
            del self.in_flight[identifier]

    @staticmethod
    async def _join(text: TextualStreamCollector, slot: BinarySlot) -> Tuple[Any, Any]:
        """Wait for both outcomes

        The first failure on either side ends the wait. So does a terminal
        textual message whose bounds are empty, since no pixmap can make that
        request succeed; the binary outcome is then reported as None.
        """
        text_task = asyncio.ensure_future(text.collect())
        binary_task = asyncio.ensure_future(slot.receive())
        tasks = (text_task, binary_task)

        try:
            pending = set(tasks)
            while pending:
                done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
                if any(task.cancelled() or task.exception() is not None for task in done):
                    break
                if text_task in done and not text_task.result().get("bounds"):
                    break
        finally:
            pending = [task for task in tasks if not task.done()]
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

        errors = [task.exception() for task in tasks if not task.cancelled()]
        for error in errors:
            if error is not None:
                raise error

        if binary_task.cancelled():
            return text_task.result(), None
        return text_task.result(), binary_task.result()
