import io

import numpy as np
import pytest

from bitframe.binary.image import batch_encode_images, encode_image, read_image_preamble, write_image
from bitframe.errors import AllocationError, BadFileTypeError, BadParameterError, Status
from bitframe.models.common import BitOrder
from bitframe.models.image import PREAMBLE_SIZE, ImagePreamble


def test_row_count_law():
    img = encode_image(b"\x00" * 4, block_body_bits=16, block_count=2, row_width=4, bit_depth=2)
    assert img.preamble.row_count == 16 // (4 * 2)
    assert img.pixels.shape == (2, 2, 4)
    assert img.preamble.pixel_width == 1


def test_depth_one_reproduces_body_bits():
    data = b"\xa5\x3c"
    img = encode_image(data, block_body_bits=8, block_count=2, row_width=4)
    bits = np.unpackbits(np.frombuffer(data, dtype=np.uint8))
    assert img.pixels.reshape(-1).tolist() == bits.tolist()
    assert img.pixels[0].tolist() == [[1, 0, 1, 0], [0, 1, 0, 1]]
    assert img.frames_complete == 2 and img.warning is None


def test_scale_maps_ones_to_255():
    img = encode_image(b"\x80", block_body_bits=8, block_count=1, row_width=8, scale=True)
    assert img.pixels[0, 0].tolist() == [255, 0, 0, 0, 0, 0, 0, 0]


def test_bit_order():
    data = b"\xa5\x0f"
    msb = encode_image(data, block_body_bits=16, block_count=1, row_width=2, bit_depth=4, bit_order=BitOrder.MSB)
    lsb = encode_image(data, block_body_bits=16, block_count=1, row_width=2, bit_depth=4, bit_order=0)
    assert msb.pixels.reshape(-1).tolist() == [0xA, 0x5, 0x0, 0xF]
    assert lsb.pixels.reshape(-1).tolist() == [0x5, 0xA, 0x0, 0xF]


def test_wide_pixels():
    img = encode_image(b"\x12\x34", block_body_bits=16, block_count=1, row_width=1, bit_depth=16)
    assert img.preamble.pixel_width == 2
    assert img.pixels[0, 0, 0] == 0x1234
    assert img.to_bytes()[PREAMBLE_SIZE:] == b"\x34\x12"


def test_32_bit_pixels_clip_negative_to_zero():
    img = encode_image(
        b"\x80\x00\x00\x01\x00\x00\x01\x00", block_body_bits=64, block_count=1, row_width=2, bit_depth=32,
    )
    assert img.preamble.pixel_width == 4
    assert img.pixels.reshape(-1).tolist() == [0, 256]


def test_prologue_and_headers_are_dropped():
    img = encode_image(
        b"\xf0\xa5\x00",
        prologue_bits=4, block_header_bits=4, block_body_bits=4, block_count=2, row_width=4,
    )
    assert img.pixels.tolist() == [[[1, 0, 1, 0]], [[0, 0, 0, 0]]]


def test_invert():
    img = encode_image(b"\xf0", block_body_bits=8, block_count=1, row_width=8, invert=True)
    assert img.pixels.reshape(-1).tolist() == [0, 0, 0, 0, 1, 1, 1, 1]


def test_short_stream_leaves_zero_frames_and_warns():
    img = encode_image(b"\xff", block_body_bits=8, block_count=3, row_width=8)
    assert img.frames_complete == 1
    assert img.warning
    assert img.pixels[1:].sum() == 0


@pytest.mark.parametrize(
    "params",
    [
        dict(bit_depth=0),
        dict(bit_depth=33),
        dict(bit_depth=2, scale=True),
        dict(row_width=0),
        dict(row_width=-3),
    ],
)
def test_bad_image_parameters(params):
    kwargs = dict(block_body_bits=8, block_count=1, row_width=8)
    kwargs.update(params)
    with pytest.raises(BadParameterError):
        encode_image(b"\x00", **kwargs)


def test_written_file_layout(tmp_path):
    dst = tmp_path / "img.raw"
    write_image(b"\xa5" * 4, dst, block_body_bits=16, block_count=2, row_width=2, bit_depth=4)
    raw = dst.read_bytes()
    assert raw[:6] == b"\xff\xff\xaa\xaa\x20\x00"
    # row_width:i32, row_count:i32, pixel_width:i16, frame_count:i16
    assert raw[6:18] == b"\x02\x00\x00\x00\x02\x00\x00\x00\x01\x00\x02\x00"
    assert len(raw) == PREAMBLE_SIZE + 2 * 2 * 2
    pre = read_image_preamble(dst)
    assert (pre.row_width, pre.row_count, pre.frame_count, pre.pixel_width, pre.version) == (2, 2, 2, 1, 1)
    assert raw[PREAMBLE_SIZE:] == bytes([0xA, 0x5] * 4)


def test_preamble_rejects_other_files():
    with pytest.raises(BadFileTypeError):
        ImagePreamble.from_bytes(b"\x00" * 32)
    with pytest.raises(BadFileTypeError):
        read_image_preamble(b"\xff\xff\xaa\xaa")


def test_batch_sweep(tmp_path):
    paths = batch_encode_images(
        io.BytesIO(b"\x5a" * 8), tmp_path / "sweep.raw",
        row_width=2, row_width_end=4, block_body_bits=64, block_count=1,
    )
    assert [p.name for p in paths] == ["sweep_2.raw", "sweep_3.raw", "sweep_4.raw"]
    assert [read_image_preamble(p).row_width for p in paths] == [2, 3, 4]
    assert [read_image_preamble(p).row_count for p in paths] == [32, 21, 16]


def test_batch_sweep_range_checked(tmp_path):
    with pytest.raises(BadParameterError):
        batch_encode_images(b"\x00", tmp_path / "x.raw", row_width=5, row_width_end=4, block_body_bits=8, block_count=1)


def test_pixel_buffer_allocation_failure(monkeypatch):
    import bitframe.binary.image as image_mod

    def no_memory(*args, **kwargs):
        raise MemoryError

    monkeypatch.setattr(image_mod.np, "zeros", no_memory)
    with pytest.raises(AllocationError) as info:
        encode_image(b"\x00" * 4, block_body_bits=16, block_count=2, row_width=4)
    assert info.value.status == Status.MEMORY
