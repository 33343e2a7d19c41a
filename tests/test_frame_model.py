import io

from bitframe.binary.codecs.bitcursor import BitCursor
from bitframe.binary.codecs.frame_model import FrameModel
from bitframe.models.common import FrameLayout, Section


def _walk(data: bytes, invert: bool = False, **layout):
    model = FrameModel(FrameLayout(**layout))
    bits = list(model.classify(BitCursor(io.BytesIO(data), invert=invert)))
    return model, bits


def test_zero_length_sections_are_skipped():
    _, bits = _walk(b"\x80", block_body_bits=8, block_count=1)
    assert bits[0].section is Section.BLOCK_BODY
    assert bits[0].block == 0 and bits[0].offset == 0
    assert all(b.section is Section.BLOCK_BODY for b in bits)


def test_section_order_and_footer():
    model, bits = _walk(
        b"\xff\x00",
        prologue_bits=2, block_header_bits=1, block_body_bits=2, block_count=2,
    )
    P, H, B, F = Section.PROLOGUE, Section.BLOCK_HEADER, Section.BLOCK_BODY, Section.FOOTER
    assert [b.section for b in bits] == [P, P, H, B, B, H, B, B] + [F] * 8
    assert [b.block for b in bits[:8]] == [0, 0, 0, 0, 0, 1, 1, 1]
    # block index saturates at block_count in the footer
    assert {b.block for b in bits[8:]} == {2}
    assert [b.offset for b in bits[8:]] == list(range(8))
    assert model.footer_bits == 8
    assert model.blocks_complete == 2
    assert model.consistent


def test_stream_ending_inside_prologue_just_stops():
    model, bits = _walk(b"\x01", prologue_bits=12, block_body_bits=4, block_count=1)
    assert len(bits) == 8
    assert all(b.section is Section.PROLOGUE for b in bits)
    assert not model.prologue_complete
    assert not model.consistent


def test_block_ending_on_last_bit_counts_as_complete():
    model, bits = _walk(b"\xf0\x0f", block_body_bits=8, block_count=2)
    assert model.blocks_complete == 2
    assert model.footer_bits == 0
    assert bits[-1].section is Section.BLOCK_BODY and bits[-1].offset == 7


def test_invert_then_reinvert_matches_plain_walk():
    layout = dict(prologue_bits=3, block_header_bits=2, block_body_bits=5, block_count=2)
    data = b"\x3c\xa5\x5a"
    _, plain = _walk(data, **layout)
    _, inverted = _walk(data, invert=True, **layout)
    assert [b._replace(bit=b.bit ^ 1) for b in inverted] == plain


def test_layout_accounting():
    layout = FrameLayout(prologue_bits=5, block_header_bits=3, block_body_bits=10, block_count=4)
    assert layout.block_bits == 13
    assert layout.framed_bits == 57
