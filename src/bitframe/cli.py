from __future__ import annotations
import argparse, json, logging, sys

from .errors import STATUS_MESSAGES, BitframeError, status_of
from .models.common import BitOrder
from .utils.logging import configure_logging

log = logging.getLogger(__name__)


def _emit(model) -> None:
    print(json.dumps(model.model_dump(mode="json"), indent=2))


def _layout_args(args) -> dict:
    return dict(
        prologue_bits=args.prologue,
        block_header_bits=args.header,
        block_body_bits=args.body,
        block_count=args.blocks,
    )


def cmd_text(args):
    from .binary.text import text_dump
    _emit(text_dump(args.input, args.output, row_width=args.row_width, invert=args.invert, **_layout_args(args)))


def cmd_stats(args):
    from .binary.stats import bitstream_stats
    stats = bitstream_stats(args.input, args.output, invert=args.invert, **_layout_args(args))
    print(f"bits={stats.total_bits}, ones={stats.total_ones}, footer={stats.footer_bits}, consistent={stats.consistent}")


def cmd_extract(args):
    from .binary.text import extract_bits
    res = extract_bits(
        args.input, args.output,
        skip_bits=args.skip, copy_bits=args.copy, row_width=args.row_width, invert=args.invert,
    )
    _emit(res)
    if res.warning:
        print(f"Warning: {res.warning}", file=sys.stderr)


def _image_args(args) -> dict:
    return dict(
        bit_depth=args.depth,
        bit_order=BitOrder[args.bit_order.upper()],
        scale=args.scale,
        invert=args.invert,
        **_layout_args(args),
    )


def cmd_image(args):
    from .binary.image import write_image
    img = write_image(args.input, args.output, row_width=args.row_width, **_image_args(args))
    _emit(img.preamble)
    if img.warning:
        print(f"Warning: {img.warning}", file=sys.stderr)


def cmd_batch_image(args):
    from .binary.image import batch_encode_images
    paths = batch_encode_images(
        args.input, args.output,
        row_width=args.row_width, row_width_end=args.row_width_end,
        **_image_args(args),
    )
    for p in paths:
        print(p)


def cmd_distance(args):
    from .binary.stats import bit_distance
    _emit(bit_distance(args.input, args.output, skip_bits=args.skip))


def cmd_sequences(args):
    from .binary.stats import bit_sequences
    rep = bit_sequences(args.input, args.output, skip_bits=args.skip)
    print(f"runs={len(rep.runs)}, ones={rep.num_ones}, zeros={rep.num_zeros}")


def cmd_hexdump(args):
    from .binary.text import hex_dump
    _emit(hex_dump(args.input, args.output, row_width=args.row_width, skip_bytes=args.skip_bytes))


def cmd_text_to_bits(args):
    from .binary.text import text_to_bits
    _emit(text_to_bits(args.input, args.output))


def cmd_spp(args):
    from .binary.spp import extract_spp
    res = extract_spp(
        args.input, args.output, args.summary,
        target_apid=args.apid,
        skip_bytes=args.skip_bytes,
        secondary_header_size=args.secondary_header_size,
        strict=args.strict,
        save_summary=args.summary is not None,
    )
    _emit(res)


def _add_layout(sp) -> None:
    sp.add_argument("--prologue", type=int, default=0, help="# of prologue bits (0: none)")
    sp.add_argument("--header", type=int, default=0, help="# of header bits per block (0: none)")
    sp.add_argument("--body", type=int, required=True, help="# of body bits per block")
    sp.add_argument("--blocks", type=int, default=1, help="# of blocks")
    sp.add_argument("--invert", action="store_true", help="flip every bit before decoding")


def _add_image(sp) -> None:
    sp.add_argument("--depth", type=int, default=1, help="bits per pixel (1..32)")
    sp.add_argument("--bit-order", default="msb", choices=["msb", "lsb"])
    sp.add_argument("--scale", action="store_true", help="map 1 to 255 (depth 1 only)")


def build_parser():
    p = argparse.ArgumentParser(prog="bitframe", description="Packed bit stream and space packet utilities")
    p.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING ... (default: $BITFRAME_LOG_LEVEL or INFO)")
    sub = p.add_subparsers(dest="cmd", required=True)

    sp = sub.add_parser("text", help="bit stream to sectioned 0/1 text")
    sp.add_argument("input"); sp.add_argument("output")
    _add_layout(sp)
    sp.add_argument("--row-width", type=int, default=8, help="body bits per text line")
    sp.set_defaults(func=cmd_text)

    sp = sub.add_parser("stats", help="set-bit counts per section")
    sp.add_argument("input"); sp.add_argument("output")
    _add_layout(sp)
    sp.set_defaults(func=cmd_stats)

    sp = sub.add_parser("extract", help="copy a bit range to text")
    sp.add_argument("input"); sp.add_argument("output")
    sp.add_argument("--skip", type=int, default=0, help="# of bits to skip")
    sp.add_argument("--copy", type=int, required=True, help="# of bits to copy")
    sp.add_argument("--row-width", type=int, default=0, help="bits per line (0: one line)")
    sp.add_argument("--invert", action="store_true", help="flip every bit before copying")
    sp.set_defaults(func=cmd_extract)

    sp = sub.add_parser("image", help="bit stream to raw image file")
    sp.add_argument("input"); sp.add_argument("output")
    _add_layout(sp); _add_image(sp)
    sp.add_argument("--row-width", type=int, required=True, help="pixels per row")
    sp.set_defaults(func=cmd_image)

    sp = sub.add_parser("batch-image", help="image for every row width in a range")
    sp.add_argument("input"); sp.add_argument("output")
    _add_layout(sp); _add_image(sp)
    sp.add_argument("--row-width", type=int, required=True, help="first row width")
    sp.add_argument("--row-width-end", type=int, required=True, help="last row width (inclusive)")
    sp.set_defaults(func=cmd_batch_image)

    sp = sub.add_parser("distance", help="distance between consecutive 1 bits")
    sp.add_argument("input"); sp.add_argument("output")
    sp.add_argument("--skip", type=int, default=0, help="# of bits to skip")
    sp.set_defaults(func=cmd_distance)

    sp = sub.add_parser("sequences", help="run lengths of 0s and 1s")
    sp.add_argument("input"); sp.add_argument("output")
    sp.add_argument("--skip", type=int, default=0, help="# of bits to skip")
    sp.set_defaults(func=cmd_sequences)

    sp = sub.add_parser("hexdump", help="hex dump of any file")
    sp.add_argument("input"); sp.add_argument("output")
    sp.add_argument("--row-width", type=int, default=16, help="bytes per line (0: one line)")
    sp.add_argument("--skip-bytes", type=int, default=0)
    sp.set_defaults(func=cmd_hexdump)

    sp = sub.add_parser("text-to-bits", help="0/1 text to packed bit stream")
    sp.add_argument("input"); sp.add_argument("output")
    sp.set_defaults(func=cmd_text_to_bits)

    sp = sub.add_parser("spp", help="extract space packets for one APID")
    sp.add_argument("input"); sp.add_argument("output")
    sp.add_argument("--apid", required=True, type=lambda s: int(s, 0), help="target APID (decimal or 0x...)")
    sp.add_argument("--summary", default=None, help="write a running packet summary here")
    sp.add_argument("--skip-bytes", type=int, default=0)
    sp.add_argument("--secondary-header-size", type=int, default=0)
    sp.add_argument("--strict", action="store_true")
    sp.set_defaults(func=cmd_spp)

    return p


def main(argv=None):
    p = build_parser()
    ns = p.parse_args(argv)
    configure_logging(ns.log_level)
    try:
        ns.func(ns)
    except (BitframeError, OSError, MemoryError) as e:
        status = status_of(e)
        print(f"{STATUS_MESSAGES[status]}: {e}", file=sys.stderr)
        log.debug("command %s failed", ns.cmd, exc_info=True)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
