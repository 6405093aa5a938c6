"""Pixmap decoding

A pixmap message starts with a 16-byte big-endian header followed by the
pixel rows:

  format (u8) | width (u32) | height (u32) | row_bytes (u32) |
  color_mode (u8) | channel_count (u8) | bits_per_channel (u8)
"""

import struct
from typing import Any, Optional

from pixmap_bridge.errors import PixmapBridgeError

HEADER = struct.Struct(">BIIIBBB")


class PixmapDecodeError(PixmapBridgeError):
    """Pixmap bytes are malformed"""
    pass


class Pixmap:
    """Decoded pixmap with optional layer bounds"""

    def __init__(
        self,
        format: int,
        width: int,
        height: int,
        row_bytes: int,
        color_mode: int,
        channel_count: int,
        bits_per_channel: int,
        pixels: bytes,
    ):
        self.format = format
        self.width = width
        self.height = height
        self.row_bytes = row_bytes
        self.color_mode = color_mode
        self.channel_count = channel_count
        self.bits_per_channel = bits_per_channel
        self.pixels = pixels
        self.bounds: Optional[Any] = None

    @property
    def bytes_per_pixel(self) -> int:
        return self.bits_per_channel // 8 * self.channel_count

    @property
    def padding(self) -> int:
        """Bytes at the end of each row beyond the pixel data"""
        return self.row_bytes - self.width * self.bytes_per_pixel

    def __repr__(self):
        return (
            f"Pixmap({self.width}x{self.height}, channels={self.channel_count}, "
            f"bits={self.bits_per_channel}, bounds={self.bounds!r})"
        )


def decode_pixmap(data: bytes) -> Pixmap:
    """Decode raw pixmap bytes

    Raises:
        PixmapDecodeError: If the header or pixel data is truncated
    """
    if len(data) < HEADER.size:
        raise PixmapDecodeError(f"Pixmap header truncated: {len(data)} bytes")

    (fmt, width, height, row_bytes,
     color_mode, channel_count, bits_per_channel) = HEADER.unpack_from(data, 0)

    end = HEADER.size + row_bytes * height
    if len(data) < end:
        raise PixmapDecodeError(
            f"Pixmap data truncated: expected {end - HEADER.size} pixel bytes, "
            f"got {len(data) - HEADER.size}"
        )

    return Pixmap(
        format=fmt,
        width=width,
        height=height,
        row_bytes=row_bytes,
        color_mode=color_mode,
        channel_count=channel_count,
        bits_per_channel=bits_per_channel,
        pixels=bytes(data[HEADER.size:end]),
    )


def encode_pixmap(pixmap: Pixmap) -> bytes:
    """Serialize a pixmap back to its wire form (used by host simulators)"""
    header = HEADER.pack(
        pixmap.format,
        pixmap.width,
        pixmap.height,
        pixmap.row_bytes,
        pixmap.color_mode,
        pixmap.channel_count,
        pixmap.bits_per_channel,
    )
    return header + pixmap.pixels
