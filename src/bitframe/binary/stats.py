"""Set-bit statistics and linear bit scans (distance between ones, runs)."""
from __future__ import annotations

import logging
from typing import List, Optional, TextIO

from .codecs.bitcursor import BitCursor
from .codecs.frame_model import FrameModel
from .streams import Sink, Source, open_input, open_output
from bitframe.errors import BadParameterError
from bitframe.models.common import FrameLayout, Section, build
from bitframe.models.reports import DistanceReport, Run, RunReport, SectionStat, StreamStats

log = logging.getLogger(__name__)

INCONSISTENT_SIZE = "Inconsistent size of file with selected parameters\nFilesize smaller than expected"


def _write_section(out: TextIO, st: SectionStat) -> None:
    if st.section is Section.PROLOGUE:
        out.write(f"Number of bits set in prologue (header): {st.ones:6d}, {st.percentage:5.1f}%\n")
    elif st.section is Section.BLOCK_HEADER:
        out.write(f"Number of bits set in header, block {st.block:3d}: {st.ones:6d}, {st.percentage:5.1f}%\n")
    elif st.section is Section.BLOCK_BODY:
        out.write(f"Number of bits set in body, block {st.block:3d}: {st.ones:6d}, {st.percentage:5.1f}%\n")
    else:
        out.write(f"Number of bits found in footer: {st.length:6d}\n")
        out.write(f"Number of bits set in footer: {st.ones:6d}, {st.percentage:5.1f}%\n")


def bitstream_stats(
    source: Source,
    output: Optional[Sink] = None,
    *,
    prologue_bits: int = 0,
    block_header_bits: int = 0,
    block_body_bits: int,
    block_count: int,
    invert: bool = False,
) -> StreamStats:
    """
    Count set bits per section instance: the prologue, each block header,
    each block body and the footer. A stream too short for the layout is
    reported as inconsistent instead of producing a percentage for the
    partial section.
    """
    layout = build(
        FrameLayout,
        prologue_bits=prologue_bits,
        block_header_bits=block_header_bits,
        block_body_bits=block_body_bits,
        block_count=block_count,
    )
    sections: List[SectionStat] = []

    with open_input(source) as inp:
        model = FrameModel(layout)
        current = None
        ones = 0
        total_ones = 0
        for fb in model.classify(BitCursor(inp, invert=invert)):
            here = (fb.section, fb.block)
            if here != current:
                if current is not None:
                    sections.append(_closed(layout, current, ones))
                current = here
                ones = 0
            ones += fb.bit
            total_ones += fb.bit

        # the section in flight only counts if it got all of its bits
        if current is not None and (current[0] is Section.FOOTER or model.section_complete):
            if current[0] is Section.FOOTER:
                sections.append(SectionStat(section=Section.FOOTER, length=model.footer_bits, ones=ones))
            else:
                sections.append(_closed(layout, current, ones))

    stats = StreamStats(
        sections=sections,
        total_bits=model.total_bits,
        footer_bits=model.footer_bits,
        blocks_complete=model.blocks_complete,
        consistent=model.consistent,
        total_ones=total_ones,
    )
    if not stats.consistent:
        stats.warning = INCONSISTENT_SIZE.replace("\n", "; ")
        log.warning("stream of %d bits is too short for layout (%d framed bits)", stats.total_bits, layout.framed_bits)

    if output is not None:
        with open_output(output) as out:
            _write_report(out, layout, stats)
    return stats


def _closed(layout: FrameLayout, key, ones: int) -> SectionStat:
    section, block = key
    if section is Section.PROLOGUE:
        return SectionStat(section=section, length=layout.prologue_bits, ones=ones)
    if section is Section.BLOCK_HEADER:
        return SectionStat(section=section, block=block, length=layout.block_header_bits, ones=ones)
    return SectionStat(section=section, block=block, length=layout.block_body_bits, ones=ones)


def _write_report(out: TextIO, layout: FrameLayout, stats: StreamStats) -> None:
    out.write("Bitstream file stats\n")
    out.write(f"File report settings:\nHeader size:{layout.prologue_bits}\nNumber of Blocks:{layout.block_count}\n")
    out.write(f"Header size per block:{layout.block_header_bits}\nBlock size:{layout.block_body_bits}\n\n")
    out.write("Bit stats:\n")
    for st in stats.sections:
        _write_section(out, st)
    if stats.footer_bits == 0:
        if not stats.consistent:
            out.write(INCONSISTENT_SIZE + "\n")
        out.write("No footer bits\n")
    out.write(f"Total number of bits set: {stats.total_ones}\n")


def bit_distance(source: Source, output: Sink, *, skip_bits: int = 0) -> DistanceReport:
    """
    For every 1 bit after `skip_bits`, write its position (relative to the
    skip) and the distance to the previous 1. The first distance is taken
    from the last skipped bit.
    """
    if skip_bits < 0:
        raise BadParameterError("skip_bits must be >= 0")

    num_ones = 0
    with open_input(source) as inp, open_output(output) as out:
        cur = BitCursor(inp)
        cur.skip(skip_bits)
        last_one = skip_bits - 1
        for bit in cur:
            if bit:
                pos = cur.index - 1
                num_ones += 1
                out.write(f"{pos - skip_bits:5d},{pos - last_one:5d}\n")
                last_one = pos
        out.write(f"Number of ones: {num_ones:5d}\n")
    return DistanceReport(num_ones=num_ones)


def bit_sequences(source: Source, output: Sink, *, skip_bits: int = 0) -> RunReport:
    """
    Run-length scan after `skip_bits`: one line per run of equal bits
    giving its start position, length and bit value.
    """
    if skip_bits < 0:
        raise BadParameterError("skip_bits must be >= 0")

    report = RunReport()
    with open_input(source) as inp, open_output(output) as out:
        cur = BitCursor(inp)
        cur.skip(skip_bits)
        run_bit: Optional[int] = None
        run_start = 0
        run_len = 0

        def flush() -> None:
            run = Run(start=run_start, length=run_len, bit=run_bit)
            report.runs.append(run)
            out.write(f"{run.start:5d},{run.length:5d},{run.bit:d}\n")

        for bit in cur:
            if bit:
                report.num_ones += 1
            else:
                report.num_zeros += 1
            if bit == run_bit:
                run_len += 1
                continue
            if run_bit is not None:
                flush()
            run_bit = bit
            run_start = cur.index - 1 - skip_bits
            run_len = 1
        # trailing run is flushed with its own length, whichever bit it holds
        if run_bit is not None:
            flush()

        out.write(f"Number of ones: {report.num_ones:5d}\n")
        out.write(f"Number of zeros: {report.num_zeros:5d}\n")
    return report
