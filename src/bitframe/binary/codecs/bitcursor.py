from __future__ import annotations
import struct
from typing import BinaryIO, Iterator, Tuple

from bitframe.errors import FileReadError

CHUNK_SIZE = 4096


class Cursor:
    """Reads big-endian words off a packet header buffer."""
    __slots__ = ("buf", "pos")

    def __init__(self, data: bytes | bytearray | memoryview):
        self.buf = memoryview(data)
        self.pos = 0

    def take(self, n: int) -> bytes:
        end = self.pos + n
        if end > len(self.buf):
            raise FileReadError(f"header underrun: {n} bytes wanted at offset {self.pos}, {len(self.buf)} held")
        chunk = self.buf[self.pos:end].tobytes()
        self.pos = end
        return chunk

    def u16(self) -> int:
        return struct.unpack(">H", self.take(2))[0]


class BitCursor:
    """
    Walks a binary stream one bit at a time, MSB-first within each byte.

    `index` is the absolute bit position of the next bit; the intra-byte
    offset is always `index % 8` and a new byte is fetched when it wraps to 0.
    """
    __slots__ = ("stream", "index", "invert", "_chunk", "_chunk_pos", "_byte", "_offset", "_eof")

    def __init__(self, stream: BinaryIO, *, invert: bool = False):
        self.stream = stream
        self.index = 0
        self.invert = 1 if invert else 0
        self._chunk = b""
        self._chunk_pos = 0
        self._byte = 0
        self._offset = 0
        self._eof = False

    def _next_byte(self) -> bool:
        if self._chunk_pos >= len(self._chunk):
            try:
                self._chunk = self.stream.read(CHUNK_SIZE)
            except (OSError, ValueError) as e:
                # ValueError: the stream was closed under us
                raise FileReadError(f"read failed at bit {self.index}: {e}") from e
            self._chunk_pos = 0
            if not self._chunk:
                self._eof = True
                return False
        self._byte = self._chunk[self._chunk_pos]
        self._chunk_pos += 1
        return True

    def next_bit(self) -> Tuple[int, bool]:
        """Return (bit, more); more is False once the stream is exhausted."""
        if self._offset == 0:
            if self._eof or not self._next_byte():
                return 0, False
        bit = (self._byte >> (7 - self._offset)) & 1
        self._offset = (self._offset + 1) & 7
        self.index += 1
        return bit ^ self.invert, True

    def skip(self, n: int) -> int:
        """Consume up to n bits; returns how many were available."""
        done = 0
        while done < n:
            _, more = self.next_bit()
            if not more:
                break
            done += 1
        return done

    def __iter__(self) -> Iterator[int]:
        while True:
            bit, more = self.next_bit()
            if not more:
                return
            yield bit
