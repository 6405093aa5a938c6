"""Async frame I/O over a host stream

## Wire Format

```
┌─────────────────────────────────────────────────────────┐
│  4 bytes: u32 big-endian length                         │
├─────────────────────────────────────────────────────────┤
│  N bytes: CBOR-encoded Frame                            │
└─────────────────────────────────────────────────────────┘
```
"""

import asyncio
from typing import Optional

from pixmap_bridge.frame import Frame, FrameError, encode_frame, decode_frame


# A whole pixmap travels in one frame
DEFAULT_MAX_FRAME = 64 * 1024 * 1024


class FrameTooLarge(FrameError):
    """Frame exceeds the size limit"""

    def __init__(self, size: int, max_size: int):
        super().__init__(f"Frame too large: {size} bytes (max {max_size})")
        self.size = size
        self.max = max_size


class UnexpectedEof(FrameError):
    """Stream ended in the middle of a frame"""
    pass


class AsyncFrameReader:
    """Reads length-prefixed CBOR frames from an asyncio.StreamReader"""

    def __init__(self, stream, max_frame: int = DEFAULT_MAX_FRAME):
        self.stream = stream
        self.max_frame = max_frame

    async def read(self) -> Optional[Frame]:
        """Read one frame

        Returns:
            Frame if read successfully, None on clean EOF

        Raises:
            FrameError: If the stream is truncated or the frame is invalid
        """
        try:
            length_bytes = await self.stream.readexactly(4)
        except asyncio.IncompleteReadError as e:
            if not e.partial:
                return None
            raise UnexpectedEof("Truncated length prefix")

        frame_len = int.from_bytes(length_bytes, byteorder="big")
        if frame_len > self.max_frame:
            raise FrameTooLarge(frame_len, self.max_frame)

        try:
            frame_data = await self.stream.readexactly(frame_len)
        except asyncio.IncompleteReadError:
            raise UnexpectedEof("Incomplete frame data")

        return decode_frame(frame_data)


class AsyncFrameWriter:
    """Writes length-prefixed CBOR frames to an asyncio.StreamWriter"""

    def __init__(self, stream, max_frame: int = DEFAULT_MAX_FRAME):
        self.stream = stream
        self.max_frame = max_frame

    async def write(self, frame: Frame) -> None:
        frame_data = encode_frame(frame)
        frame_len = len(frame_data)
        if frame_len > self.max_frame:
            raise FrameTooLarge(frame_len, self.max_frame)

        self.stream.write(frame_len.to_bytes(4, byteorder="big") + frame_data)
        await self.stream.drain()
