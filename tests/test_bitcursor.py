import io

import pytest

from bitframe.binary.codecs.bitcursor import BitCursor, Cursor
from bitframe.errors import FileReadError


def test_bits_come_out_msb_first():
    cur = BitCursor(io.BytesIO(b"\xA5"))
    bits = [cur.next_bit() for _ in range(8)]
    assert bits == [(1, True), (0, True), (1, True), (0, True), (0, True), (1, True), (0, True), (1, True)]
    assert cur.next_bit() == (0, False)
    assert cur.index == 8


def test_invert_flips_every_bit():
    assert list(BitCursor(io.BytesIO(b"\xA5"), invert=True)) == [0, 1, 0, 1, 1, 0, 1, 0]


def test_index_tracks_bits_across_bytes():
    cur = BitCursor(io.BytesIO(b"\x00\xff"))
    assert cur.skip(11) == 11
    assert cur.index == 11
    assert cur.next_bit() == (1, True)


def test_skip_past_end_reports_available_bits():
    cur = BitCursor(io.BytesIO(b"\x01"))
    assert cur.skip(20) == 8
    assert cur.next_bit() == (0, False)


def test_empty_stream_has_no_bits():
    assert list(BitCursor(io.BytesIO(b""))) == []


def test_closed_stream_is_a_read_failure():
    stream = io.BytesIO(b"\x01\x02")
    cur = BitCursor(stream)
    stream.close()
    with pytest.raises(FileReadError):
        cur.next_bit()


def test_byte_cursor_reads_big_endian():
    cur = Cursor(b"\x12\x34\x56\x78\x9a")
    assert cur.u16() == 0x1234
    assert cur.u16() == 0x5678
    assert cur.pos == 4
    with pytest.raises(FileReadError):
        cur.u16()
