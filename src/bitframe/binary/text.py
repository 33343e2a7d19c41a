"""
Text projections of packed bit streams.

Bits are written as comma separated "0"/"1" tokens. `text_dump` lays the
stream out by section: one line for the prologue, one per block header,
`row_width` tokens per line inside a block body, an empty line between
section instances, and the footer as a single unterminated list.
"""
from __future__ import annotations

import logging
import re

from .codecs.bitcursor import BitCursor
from .codecs.frame_model import FrameModel
from .streams import Sink, Source, open_input, open_output, open_text_input, read_exact
from .streams import skip_bytes as advance_bytes
from bitframe.errors import BadFormatError, BadParameterError
from bitframe.models.common import FrameLayout, Section, build
from bitframe.models.reports import ExtractResult, FrameTally, HexDumpResult, TextToBitsResult

log = logging.getLogger(__name__)

_TOKEN_SPLIT = re.compile(r"[\s,]+")


def text_dump(
    source: Source,
    output: Sink,
    *,
    prologue_bits: int = 0,
    block_header_bits: int = 0,
    block_body_bits: int,
    block_count: int,
    row_width: int,
    invert: bool = False,
) -> FrameTally:
    layout = build(
        FrameLayout,
        prologue_bits=prologue_bits,
        block_header_bits=block_header_bits,
        block_body_bits=block_body_bits,
        block_count=block_count,
    )
    if row_width < 1:
        raise BadParameterError("row_width must be >= 1")

    with open_input(source) as inp, open_output(output) as out:
        model = FrameModel(layout)
        prev = None
        for fb in model.classify(BitCursor(inp, invert=invert)):
            here = (fb.section, fb.block)
            if prev is not None and here != prev:
                out.write("\n")
            prev = here

            tok = "1" if fb.bit else "0"
            if fb.section is Section.FOOTER:
                out.write(tok if fb.offset == 0 else "," + tok)
            elif fb.section is Section.BLOCK_BODY:
                last_col = fb.offset % row_width == row_width - 1
                out.write(tok + ("\n" if last_col else ","))
            else:
                length = layout.prologue_bits if fb.section is Section.PROLOGUE else layout.block_header_bits
                out.write(tok + ("\n" if fb.offset == length - 1 else ","))

    return FrameTally(
        total_bits=model.total_bits,
        footer_bits=model.footer_bits,
        blocks_complete=model.blocks_complete,
        consistent=model.consistent,
    )


def extract_bits(
    source: Source,
    output: Sink,
    *,
    skip_bits: int,
    copy_bits: int,
    row_width: int = 0,
    invert: bool = False,
) -> ExtractResult:
    """
    Copy `copy_bits` bits after the first `skip_bits` as comma tokens,
    `row_width` per line (0: everything on one line).
    A stream that ends early is reported through `warning`, not raised.
    """
    if skip_bits < 0:
        raise BadParameterError("# of bits to skip < 0")
    if copy_bits <= 0:
        raise BadParameterError("# of bits to copy <= 0")
    if row_width < 0:
        raise BadParameterError("row_width must be >= 0")

    # the skipped range is a prologue, the copied range a single block
    layout = FrameLayout(prologue_bits=skip_bits, block_body_bits=copy_bits, block_count=1)

    copied = 0
    with open_input(source) as inp, open_output(output) as out:
        model = FrameModel(layout)
        for fb in model.classify(BitCursor(inp, invert=invert)):
            if fb.section is Section.FOOTER:
                break
            if fb.section is not Section.BLOCK_BODY:
                continue
            tok = "1" if fb.bit else "0"
            if row_width == 0:
                out.write(tok if fb.offset == 0 else "," + tok)
            else:
                out.write(tok + ("\n" if fb.offset % row_width == row_width - 1 else ","))
            copied += 1

    result = ExtractResult(skipped_bits=min(model.total_bits, skip_bits), copied_bits=copied)
    if copied != copy_bits:
        result.warning = f"unexpected end of input: copied {copied} of {copy_bits} bits"
        log.warning(result.warning)
    return result


def text_to_bits(source: Source, output: Sink) -> TextToBitsResult:
    """
    Pack a list of integer tokens into bytes, MSB first.
    0 is a 0 bit, any positive value a 1 bit; negative or non-numeric
    tokens are rejected. An incomplete final byte is zero padded.
    """
    result = TextToBitsResult()
    value = 0
    nbits = 0
    with open_text_input(source) as inp, open_output(output, binary=True) as out:
        for line_no, line in enumerate(inp, 1):
            for tok in _TOKEN_SPLIT.split(line):
                if not tok:
                    continue
                try:
                    bit = int(tok)
                except ValueError as e:
                    raise BadFormatError(f"line {line_no}: not an integer: {tok!r}") from e
                if bit < 0:
                    raise BadFormatError(f"line {line_no}: negative value {bit}")
                if bit > 0:
                    value |= 0x80 >> nbits
                    result.one_bits += 1
                result.total_bits += 1
                nbits += 1
                if nbits == 8:
                    out.write(bytes((value,)))
                    result.bytes_written += 1
                    value = 0
                    nbits = 0
        if nbits:
            out.write(bytes((value,)))
            result.bytes_written += 1

    log.info("packed %d bits (%d set) into %d bytes", result.total_bits, result.one_bits, result.bytes_written)
    return result


def hex_dump(source: Source, output: Sink, *, row_width: int, skip_bytes: int = 0) -> HexDumpResult:
    """Write each byte as "%02x ", `row_width` per line (0: no line breaks)."""
    if row_width < 0:
        raise BadParameterError("row_width must be >= 0")
    if skip_bytes < 0:
        raise BadParameterError("skip_bytes must be >= 0")

    dumped = 0
    col = 0
    with open_input(source) as inp, open_output(output) as out:
        advance_bytes(inp, skip_bytes)
        while True:
            chunk = read_exact(inp, 4096)
            if not chunk:
                break
            for b in chunk:
                out.write(f"{b:02x} ")
                dumped += 1
                col += 1
                if row_width and col >= row_width:
                    out.write("\n")
                    col = 0
        if row_width and col:
            out.write("\n")
    return HexDumpResult(bytes_dumped=dumped)
