"""Tests for pixmap module"""

import pytest

from pixmap_bridge.pixmap import HEADER, Pixmap, PixmapDecodeError, decode_pixmap, encode_pixmap


def make_pixmap_bytes(width, height, channels=4, bits=8, padding=0, trailing=b""):
    row_bytes = width * channels * bits // 8 + padding
    header = HEADER.pack(1, width, height, row_bytes, 3, channels, bits)
    return header + bytes(i % 251 for i in range(row_bytes * height)) + trailing


# TEST140: Header fields decode from the 16-byte big-endian header
def test_140_decode_header():
    pixmap = decode_pixmap(make_pixmap_bytes(300, 2))

    assert HEADER.size == 16
    assert pixmap.format == 1
    assert pixmap.width == 300
    assert pixmap.height == 2
    assert pixmap.row_bytes == 1200
    assert pixmap.color_mode == 3
    assert pixmap.channel_count == 4
    assert pixmap.bits_per_channel == 8
    assert pixmap.bytes_per_pixel == 4
    assert pixmap.padding == 0
    assert len(pixmap.pixels) == 2400
    assert pixmap.bounds is None


# TEST141: Row padding is reported and kept in the pixel data
def test_141_row_padding():
    pixmap = decode_pixmap(make_pixmap_bytes(3, 2, padding=4))
    assert pixmap.row_bytes == 16
    assert pixmap.padding == 4
    assert len(pixmap.pixels) == 32


# TEST142: Trailing bytes past the pixel rows are ignored
def test_142_trailing_bytes():
    pixmap = decode_pixmap(make_pixmap_bytes(1, 1, trailing=b"\xff\xff"))
    assert len(pixmap.pixels) == 4


# TEST143: 16-bit channels double bytes per pixel
def test_143_sixteen_bit():
    pixmap = decode_pixmap(make_pixmap_bytes(2, 2, channels=3, bits=16))
    assert pixmap.bytes_per_pixel == 6
    assert pixmap.row_bytes == 12


# TEST144: Truncated header raises PixmapDecodeError
def test_144_truncated_header():
    with pytest.raises(PixmapDecodeError, match="header"):
        decode_pixmap(b"\x01\x00\x00")


# TEST145: Truncated pixel data raises PixmapDecodeError
def test_145_truncated_pixels():
    data = make_pixmap_bytes(4, 4)
    with pytest.raises(PixmapDecodeError, match="truncated"):
        decode_pixmap(data[:-1])


# TEST146: encode_pixmap writes the wire form decode_pixmap reads
def test_146_encode_matches_wire_form():
    data = make_pixmap_bytes(5, 3)
    assert encode_pixmap(decode_pixmap(data)) == data


# TEST147: Pixmap repr mentions size and bounds
def test_147_repr():
    pixmap = Pixmap(1, 2, 3, 8, 3, 4, 8, b"\x00" * 24)
    pixmap.bounds = {"top": 1}
    assert "2x3" in repr(pixmap)
    assert "top" in repr(pixmap)
