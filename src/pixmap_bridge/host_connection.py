"""Host Connection - async runtime for talking to the host process

The HostConnection owns the byte streams to a running host process. It:

- Dispatches scripts (EXECUTE frames) and hands back their correlation ids
- Reads every frame the host emits and routes it by id into the textual or
  binary correlation registry
- Fails all pending waiters when the host goes away

Usage:
```python
import asyncio
from pixmap_bridge.config import BridgeConfig
from pixmap_bridge.host_connection import HostConnection

async def main():
    process = await asyncio.create_subprocess_exec(
        "./host",
        stdin=asyncio.subprocess.PIPE,
        stdout=asyncio.subprocess.PIPE
    )

    connection = HostConnection.for_config(process.stdout, process.stdin, BridgeConfig())
    message_id = await connection.execute_script("./jsx/getLayerPixmap.jsx", params)
```
"""

import asyncio
import itertools
from dataclasses import dataclass
from typing import Any, Dict, Optional

from pixmap_bridge import log
from pixmap_bridge.config import BridgeConfig
from pixmap_bridge.errors import ChannelFailure, DispatchFailure, HostExited
from pixmap_bridge.frame import Frame, FrameError, FrameType, MessageId
from pixmap_bridge.frame_io import AsyncFrameReader, AsyncFrameWriter, DEFAULT_MAX_FRAME
from pixmap_bridge.registry import HostChannels


class WriterCommand:
    """Commands sent to the writer task"""
    pass


@dataclass
class WriteFrame(WriterCommand):
    """Write a frame"""
    frame: Frame


@dataclass
class Shutdown(WriterCommand):
    """Shutdown the writer"""
    pass


class HostConnection:
    """Async client side of the host protocol

    The writer queue is unbounded so execute_script never suspends before
    returning its id; callers register their waiters before the frame can
    reach the host.
    """

    def __init__(
        self,
        reader: AsyncFrameReader,
        writer: AsyncFrameWriter,
        channels: Optional[HostChannels] = None,
    ):
        """Internal constructor - use open() to start the background tasks"""
        self._reader = reader
        self._writer = writer
        self.channels = channels if channels is not None else HostChannels()
        self._writer_queue: asyncio.Queue = asyncio.Queue()
        self._ids = itertools.count(1)
        self.closed = False
        self.reader_task: Optional[asyncio.Task] = None
        self.writer_task: Optional[asyncio.Task] = None

    @classmethod
    def open(
        cls,
        stdout,
        stdin,
        channels: Optional[HostChannels] = None,
        max_frame: int = DEFAULT_MAX_FRAME,
    ) -> "HostConnection":
        """Wrap host streams and start the reader and writer tasks

        Args:
            stdout: Host output stream (asyncio.StreamReader)
            stdin: Host input stream (asyncio.StreamWriter)
            channels: Registries to deliver into; a fresh pair by default
            max_frame: Largest frame accepted in either direction
        """
        connection = cls(
            AsyncFrameReader(stdout, max_frame),
            AsyncFrameWriter(stdin, max_frame),
            channels,
        )
        connection.writer_task = asyncio.ensure_future(connection._writer_loop())
        connection.reader_task = asyncio.ensure_future(connection._reader_loop())
        return connection

    @classmethod
    def for_config(
        cls,
        stdout,
        stdin,
        config: Optional[BridgeConfig] = None,
        channels: Optional[HostChannels] = None,
    ) -> "HostConnection":
        """open() with the frame size limit taken from config"""
        if config is None:
            config = BridgeConfig()
        return cls.open(stdout, stdin, channels, max_frame=config.max_frame)

    async def execute_script(self, script_ref: str, params: Dict[str, Any]) -> MessageId:
        """Ask the host to run script_ref with params

        Returns:
            The correlation id of every message the script produces

        Raises:
            DispatchFailure: If the connection is closed
        """
        if self.closed:
            raise DispatchFailure(f"Cannot run {script_ref}: host connection is closed")

        message_id = MessageId(next(self._ids))
        self._writer_queue.put_nowait(WriteFrame(Frame.execute(message_id, script_ref, params)))
        log.debug("Host", f"Dispatched {script_ref} as {message_id}")
        return message_id

    async def _writer_loop(self) -> None:
        """Writer loop - sends frames from the queue"""
        while True:
            cmd = await self._writer_queue.get()
            if isinstance(cmd, Shutdown):
                break
            try:
                await self._writer.write(cmd.frame)
            except (FrameError, ConnectionError, OSError) as e:
                log.error("Host", f"Writer error: {e}")
                self._close(ChannelFailure("WRITE_ERROR", str(e)))
                break

    async def _reader_loop(self) -> None:
        """Reader loop - reads frames and routes them to waiting requests"""
        while True:
            try:
                frame = await self._reader.read()
            except (FrameError, ConnectionError, OSError) as e:
                log.error("Host", f"Read error: {e}")
                self._close(ChannelFailure("READ_ERROR", str(e)))
                break

            if frame is None:
                self._close(HostExited())
                break

            try:
                self.route(frame)
            except Exception as e:
                log.error("Host", f"Failed to route {frame!r}: {e}")
                self._close(ChannelFailure("READ_ERROR", f"Failed to route {frame!r}: {e}"))
                break

    def route(self, frame: Frame) -> bool:
        """Deliver one host frame into the matching registry

        Returns:
            True if a waiter received it
        """
        if frame.frame_type == FrameType.SCRIPT_RESULT:
            return self.channels.on_text_message(frame.id, frame.text_value())

        if frame.frame_type == FrameType.PIXMAP:
            return self.channels.on_binary_message(frame.id, frame.payload or b"")

        if frame.frame_type == FrameType.ERR:
            error = ChannelFailure(
                frame.error_code() or "UNKNOWN",
                frame.error_message() or "Unknown error",
            )
            return self.channels.on_error_message(frame.id, error)

        log.warn("Host", f"Ignoring unexpected {frame.frame_type.name} frame for {frame.id}")
        return False

    def _close(self, error: BaseException) -> None:
        if self.closed:
            return
        self.closed = True
        self.channels.fail_all(error)

    async def shutdown(self) -> None:
        """Stop the background tasks; pending requests fail with HostExited"""
        self._close(HostExited())
        self._writer_queue.put_nowait(Shutdown())

        tasks = [t for t in (self.reader_task, self.writer_task) if t is not None]
        if self.reader_task is not None and not self.reader_task.done():
            self.reader_task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
