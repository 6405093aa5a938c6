"""Waiter - single-resolution future for one message on one channel

A Waiter starts pending and settles exactly once, either resolved with a value
or failed with an error. The collector that creates a Waiter holds the only
strong reference to it; registries only map identifiers to it while it is
pending.

Continuations registered with on_settled run synchronously inside resolve()
or fail(), before the delivering call returns. Collectors rely on this to
install their next waiter before the host's next message can be routed.

Usage:
```python
waiter = Waiter()
waiter.on_settled(print, print)
waiter.resolve({"bounds": {"top": 0, "left": 0, "bottom": 10, "right": 10}})
value = await waiter.wait()
```
"""

import asyncio
from typing import Any, Callable, List, Optional, Tuple


class WaiterAlreadySettled(Exception):
    """Waiter was settled a second time"""

    def __init__(self):
        super().__init__("Waiter already settled")


class Waiter:
    """Single-resolution future bound to the running event loop"""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        if loop is None:
            loop = asyncio.get_running_loop()
        self._future: asyncio.Future = loop.create_future()
        self._continuations: List[Tuple[Callable, Callable]] = []

    def resolve(self, value: Any) -> None:
        """Settle with a value

        Raises:
            WaiterAlreadySettled: If the waiter is no longer pending
        """
        if self._future.done():
            raise WaiterAlreadySettled()
        self._future.set_result(value)
        for on_success, _ in self._drain():
            on_success(value)

    def fail(self, error: BaseException) -> None:
        """Settle with an error

        Raises:
            WaiterAlreadySettled: If the waiter is no longer pending
        """
        if self._future.done():
            raise WaiterAlreadySettled()
        self._future.set_exception(error)
        for _, on_failure in self._drain():
            on_failure(error)

    def abandon(self) -> None:
        """Drop a pending waiter during request cleanup

        No continuation runs for an abandoned waiter. Abandoning a settled
        waiter is a no-op.
        """
        if not self._future.done():
            self._continuations.clear()
            self._future.cancel()

    def on_settled(
        self,
        on_success: Callable[[Any], None],
        on_failure: Callable[[BaseException], None],
    ) -> None:
        """Register continuations invoked once when the waiter settles

        If the waiter has already settled the matching continuation runs
        immediately. Nothing runs for an abandoned waiter.
        """
        if self._future.cancelled():
            return
        if not self._future.done():
            self._continuations.append((on_success, on_failure))
            return
        error = self._future.exception()
        if error is not None:
            on_failure(error)
        else:
            on_success(self._future.result())

    def _drain(self) -> List[Tuple[Callable, Callable]]:
        continuations, self._continuations = self._continuations, []
        return continuations

    async def wait(self, timeout: Optional[float] = None) -> Any:
        """Suspend until the waiter settles

        Raises:
            The failure error, or asyncio.TimeoutError when timeout elapses.
            A timed out waiter is abandoned.
        """
        if timeout is None:
            return await self._future
        return await asyncio.wait_for(self._future, timeout)

    def is_pending(self) -> bool:
        return not self._future.done()

    def is_resolved(self) -> bool:
        return (
            self._future.done()
            and not self._future.cancelled()
            and self._future.exception() is None
        )

    def is_failed(self) -> bool:
        return (
            self._future.done()
            and not self._future.cancelled()
            and self._future.exception() is not None
        )

    def is_abandoned(self) -> bool:
        return self._future.cancelled()

    def __repr__(self):
        if self.is_pending():
            state = "pending"
        elif self.is_abandoned():
            state = "abandoned"
        elif self.is_failed():
            state = "failed"
        else:
            state = "resolved"
        return f"Waiter({state})"
