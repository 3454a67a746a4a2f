"""Bounds-checked sequential reader over an in-memory byte buffer.

All multi-byte integers in a Standard MIDI File are big-endian.  Variable
length quantities (VLQ) pack 7 bits per byte, most significant group
first, with the high bit of every byte except the last set:

  0x00000000 -> 00
  0x0000007F -> 7F
  0x00000080 -> 81 00
  0x00003FFF -> FF 7F
  0x0FFFFFFF -> FF FF FF 7F

Four bytes (28 significant bits) is the format maximum.
"""

from __future__ import annotations

import struct

from .errors import MalformedVLQ, UnexpectedEndOfBuffer

MAX_VLQ_BYTES = 4
MAX_VLQ_VALUE = 0x0FFFFFFF


class ByteCursor:
    """Read primitives from ``data`` starting at ``offset``.

    ``end`` limits the readable window (defaults to the buffer length), which
    lets a track decoder confine itself to one chunk.  Positions reported in
    errors are absolute offsets into ``data``.
    """

    def __init__(self, data: bytes, offset: int = 0, end: int | None = None) -> None:
        if end is None:
            end = len(data)
        if not 0 <= offset <= end <= len(data):
            raise ValueError(
                f"invalid cursor window [{offset}, {end}) for {len(data)} bytes"
            )
        self._data = data
        self._pos = offset
        self._end = end

    @property
    def position(self) -> int:
        return self._pos

    @property
    def end(self) -> int:
        return self._end

    def remaining(self) -> int:
        return self._end - self._pos

    def _require(self, count: int) -> None:
        if count < 0:
            raise ValueError(f"negative read length {count}")
        if self.remaining() < count:
            raise UnexpectedEndOfBuffer(
                f"need {count} bytes, {self.remaining()} remaining", self._pos
            )

    def peek_uint8(self) -> int:
        self._require(1)
        return self._data[self._pos]

    def read_uint8(self) -> int:
        self._require(1)
        value = self._data[self._pos]
        self._pos += 1
        return value

    def read_uint16(self) -> int:
        self._require(2)
        value = struct.unpack_from(">H", self._data, self._pos)[0]
        self._pos += 2
        return value

    def read_uint32(self) -> int:
        self._require(4)
        value = struct.unpack_from(">I", self._data, self._pos)[0]
        self._pos += 4
        return value

    def read_bytes(self, count: int) -> bytes:
        self._require(count)
        value = bytes(self._data[self._pos : self._pos + count])
        self._pos += count
        return value

    def skip(self, count: int) -> None:
        self._require(count)
        self._pos += count

    def read_vlq(self) -> int:
        start = self._pos
        value = 0
        for _ in range(MAX_VLQ_BYTES):
            if self.remaining() < 1:
                raise MalformedVLQ("buffer exhausted inside variable-length quantity", start)
            byte = self._data[self._pos]
            self._pos += 1
            value = (value << 7) | (byte & 0x7F)
            if not byte & 0x80:
                return value
        raise MalformedVLQ(
            f"variable-length quantity longer than {MAX_VLQ_BYTES} bytes", start
        )

    def sub_cursor(self, length: int) -> "ByteCursor":
        """Return a cursor over the next ``length`` bytes and skip past them."""

        self._require(length)
        child = ByteCursor(self._data, self._pos, self._pos + length)
        self._pos += length
        return child


def encode_vlq(value: int) -> bytes:
    """Encode ``value`` as a variable-length quantity."""

    if not 0 <= value <= MAX_VLQ_VALUE:
        raise ValueError(f"VLQ value out of range: {value}")
    groups = [value & 0x7F]
    value >>= 7
    while value:
        groups.append((value & 0x7F) | 0x80)
        value >>= 7
    return bytes(reversed(groups))
