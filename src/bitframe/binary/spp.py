"""
Space packet walker.

Reads primary headers back to back, skips idle packets, writes packets
whose APID matches the target (header line + hex data) and optionally a
running summary of every non-idle packet.
"""
from __future__ import annotations

import logging
from contextlib import ExitStack
from typing import BinaryIO, Optional, TextIO

from .codecs.spp_header import HEADER_COLUMNS, check_primary_header, decode_primary_header, format_header
from .streams import Sink, Source, open_input, open_output, read_exact, skip_bytes as advance_bytes
from bitframe.errors import AllocationError, BadFileTypeError, BadParameterError, BitframeError, FileReadError
from bitframe.models.common import build
from bitframe.models.spp import PRIMARY_HEADER_SIZE, PacketType, SppCounts, SppOptions, SppResult

log = logging.getLogger(__name__)


def _write_totals(out: TextIO, counts: SppCounts) -> None:
    out.write("\n")
    out.write(f"Number of packets: {counts.packets}\n")
    out.write(f"Number of idle packets: {counts.idle_packets}\n")
    out.write(f"Number of telemetry packets: {counts.telemetry_packets}\n")
    out.write(f"Number of command packets: {counts.command_packets}\n")
    out.write(f"Number of APID matches: {counts.apid_matches}\n")
    out.write(f"Bytes processed: {counts.bytes_processed}\n")


def _read_field(inp: BinaryIO, length: int, index: int) -> bytes:
    try:
        data = read_exact(inp, length)
    except MemoryError as e:
        raise AllocationError(f"packet {index}: cannot allocate {length} data bytes") from e
    if len(data) != length:
        raise FileReadError(f"packet {index}: data field needs {length} bytes, only {len(data)} left")
    return data


def _skip_field(inp: BinaryIO, length: int, index: int) -> None:
    skipped = advance_bytes(inp, length)
    if skipped != length:
        raise FileReadError(f"packet {index}: data field needs {length} bytes, only {skipped} left")


def extract_spp(
    source: Source,
    match_output: Sink,
    summary_output: Optional[Sink] = None,
    *,
    target_apid: int,
    skip_bytes: int = 0,
    secondary_header_size: int = 0,
    strict: bool = False,
    save_summary: bool = False,
) -> SppResult:
    """
    Walk every packet of `source` after the first `skip_bytes` bytes.

    The walk ends normally when fewer than 6 header bytes remain. Running
    out before the first header is BadFileTypeError; a data field that is
    cut short is FileReadError. Errors raised here carry the counts
    reached so far as `exc.counts`.
    """
    opts = build(
        SppOptions,
        target_apid=target_apid,
        skip_bytes=skip_bytes,
        secondary_header_size=secondary_header_size,
        strict=strict,
        save_summary=save_summary,
    )
    if opts.save_summary and summary_output is None:
        raise BadParameterError("save_summary requires a summary output")

    counts = SppCounts()
    with ExitStack() as stack:
        inp = stack.enter_context(open_input(source))
        out = stack.enter_context(open_output(match_output))
        summary = stack.enter_context(open_output(summary_output)) if opts.save_summary else None

        out.write(HEADER_COLUMNS + " Data\n")
        if summary is not None:
            summary.write(HEADER_COLUMNS + "\n")

        try:
            offset = advance_bytes(inp, opts.skip_bytes)
            if offset != opts.skip_bytes:
                raise BadFileTypeError(f"stream shorter than skip_bytes={opts.skip_bytes}")
            _walk(inp, out, summary, opts, counts)
        except BitframeError as e:
            e.counts = counts
            if summary is not None:
                _write_totals(summary, counts)
            raise

        if summary is not None:
            _write_totals(summary, counts)

    log.info(
        "SPP walk: %d packets (%d idle, %d TM, %d TC), %d matches for APID 0x%03X",
        counts.packets, counts.idle_packets, counts.telemetry_packets,
        counts.command_packets, counts.apid_matches, opts.target_apid,
    )
    return SppResult(counts=counts, end_offset=opts.skip_bytes + counts.bytes_processed)


def _walk(inp: BinaryIO, out: TextIO, summary: Optional[TextIO], opts: SppOptions, counts: SppCounts) -> None:
    index = 0
    while True:
        raw = read_exact(inp, PRIMARY_HEADER_SIZE)
        if len(raw) < PRIMARY_HEADER_SIZE:
            if index == 0:
                raise BadFileTypeError("no complete space packet primary header in stream")
            if raw:
                log.debug("ignoring %d trailing bytes after packet %d", len(raw), index - 1)
            return

        hdr = decode_primary_header(raw)
        check_primary_header(hdr, strict=opts.strict)
        counts.packets += 1
        counts.bytes_processed += PRIMARY_HEADER_SIZE

        if hdr.is_idle:
            _skip_field(inp, hdr.data_length, index)
            counts.idle_packets += 1
            counts.bytes_processed += hdr.data_length
            index += 1
            continue

        if hdr.packet_type is PacketType.TELEMETRY:
            counts.telemetry_packets += 1
        else:
            counts.command_packets += 1

        line = format_header(index, hdr)
        matched = hdr.apid == opts.target_apid
        if matched:
            data = _read_field(inp, hdr.data_length, index)
            payload = data[opts.secondary_header_size:]
            if payload:
                line += " " + " ".join(f"{b:02x}" for b in payload)
            out.write(line + "\n")
            counts.apid_matches += 1
        else:
            _skip_field(inp, hdr.data_length, index)
        counts.bytes_processed += hdr.data_length

        if summary is not None:
            summary.write(line + (" *" if matched else "") + "\n")
        index += 1
