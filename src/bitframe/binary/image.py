from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List

import numpy as np

from .codecs.bitcursor import BitCursor
from .codecs.frame_model import FrameModel
from .streams import Sink, Source, open_input, open_output, read_exact
from bitframe.errors import AllocationError, BadParameterError
from bitframe.models.common import BitOrder, FrameLayout, ImageOptions, Section, build
from bitframe.models.image import PIXEL_DTYPES, PREAMBLE_SIZE, EncodedImage, ImagePreamble

log = logging.getLogger(__name__)


def _clip(value: int, pixel_width: int, scale: bool) -> int:
    if pixel_width == 1:
        if scale and value:
            return 255
        return min(value, 255)
    if pixel_width == 2:
        return min(value, 65535)
    # 4-byte pixels are signed; anything that lands negative is clipped to 0
    return value if value < 2**31 else 0


def encode_image(
    source: Source,
    *,
    prologue_bits: int = 0,
    block_header_bits: int = 0,
    block_body_bits: int,
    block_count: int,
    row_width: int,
    bit_depth: int = 1,
    bit_order: BitOrder | int = BitOrder.MSB,
    scale: bool = False,
    invert: bool = False,
) -> EncodedImage:
    """
    Pack block body bits into pixels of `bit_depth` bits, one frame per block.

    Prologue and block header bits are consumed and dropped, as is the
    footer. Each frame holds block_body_bits // (row_width * bit_depth)
    rows; body bits past the last full row are dropped. If the stream ends
    early the missing pixels stay 0 and `warning` says so.
    """
    layout = build(
        FrameLayout,
        prologue_bits=prologue_bits,
        block_header_bits=block_header_bits,
        block_body_bits=block_body_bits,
        block_count=block_count,
    )
    opts = build(ImageOptions, row_width=row_width, bit_depth=bit_depth, bit_order=bit_order, scale=scale)
    preamble = build(
        ImagePreamble,
        row_width=opts.row_width,
        row_count=layout.block_body_bits // (opts.row_width * opts.bit_depth),
        pixel_width=opts.pixel_width,
        frame_count=layout.block_count,
    )

    try:
        pixels = np.zeros(
            (preamble.frame_count, preamble.row_count, preamble.row_width),
            dtype=PIXEL_DTYPES[preamble.pixel_width],
        )
    except (MemoryError, ValueError) as e:
        raise AllocationError(f"cannot allocate {preamble.payload_size} pixel bytes: {e}") from e

    flat = pixels.reshape(preamble.frame_count, -1)
    per_frame = preamble.pixels_per_frame
    depth = opts.bit_depth
    msb_first = opts.bit_order == BitOrder.MSB
    value = 0

    with open_input(source) as inp:
        model = FrameModel(layout)
        for fb in model.classify(BitCursor(inp, invert=invert)):
            if fb.section is Section.FOOTER:
                break
            if fb.section is not Section.BLOCK_BODY:
                continue
            j = fb.offset % depth
            if j == 0:
                value = 0
            if fb.bit:
                value |= 1 << ((depth - 1 - j) if msb_first else j)
            if j == depth - 1:
                idx = fb.offset // depth
                if idx < per_frame:
                    flat[fb.block, idx] = _clip(value, preamble.pixel_width, opts.scale)

    image = EncodedImage(preamble=preamble, pixels=pixels, frames_complete=model.blocks_complete)
    if model.blocks_complete < layout.block_count:
        image.warning = f"stream ended after {model.blocks_complete} of {layout.block_count} frames"
        log.warning(image.warning)
    log.debug(
        "image %dx%d x%d frames, %d-byte pixels",
        preamble.row_width, preamble.row_count, preamble.frame_count, preamble.pixel_width,
    )
    return image


def write_image(source: Source, output: Sink, **params) -> EncodedImage:
    """encode_image() and write preamble + pixels to `output`."""
    image = encode_image(source, **params)
    with open_output(output, binary=True) as out:
        out.write(image.to_bytes())
    return image


def batch_encode_images(
    source: Source,
    output: str | os.PathLike,
    *,
    row_width: int,
    row_width_end: int,
    **params,
) -> List[Path]:
    """
    Repeat write_image for every row width in [row_width, row_width_end],
    writing `<stem>_<width><suffix>` next to `output`.
    """
    if row_width < 1 or row_width_end < row_width:
        raise BadParameterError(f"bad row width range {row_width}..{row_width_end}")

    if not isinstance(source, (str, os.PathLike, bytes, bytearray, memoryview)):
        # a caller stream can only be walked once
        with open_input(source) as inp:
            source = b"".join(iter(lambda: read_exact(inp, 65536), b""))

    base = Path(output)
    written: List[Path] = []
    for width in range(row_width, row_width_end + 1):
        target = base.with_name(f"{base.stem}_{width}{base.suffix}")
        write_image(source, target, row_width=width, **params)
        written.append(target)
        log.info("wrote %s", target)
    return written


def read_image_preamble(source: Source) -> ImagePreamble:
    with open_input(source) as inp:
        return ImagePreamble.from_bytes(read_exact(inp, PREAMBLE_SIZE))
