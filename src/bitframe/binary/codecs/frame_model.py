from __future__ import annotations
import logging
from typing import Iterator, NamedTuple, Optional

from .bitcursor import BitCursor
from bitframe.models.common import FrameLayout, Section

log = logging.getLogger(__name__)


class FramedBit(NamedTuple):
    bit: int
    section: Section
    offset: int   # bit offset within the current section instance
    block: int    # 0-based; equals block_count once in the footer


class FrameModel:
    """
    Prologue / block header / block body / footer state machine.

    One instance per traversal. `classify` tags every bit pulled from the
    cursor with the section it falls in; the tallies below are valid once
    the generator is exhausted (or stopped early).
    """

    def __init__(self, layout: FrameLayout):
        self.layout = layout
        self.total_bits = 0
        self.footer_bits = 0
        self.prologue_complete = layout.prologue_bits == 0
        self.blocks_complete = 0
        self.section = Section.PROLOGUE
        self.offset = 0
        self.block = 0
        self._started = False

    def _length(self, section: Section) -> Optional[int]:
        if section is Section.PROLOGUE:
            return self.layout.prologue_bits
        if section is Section.BLOCK_HEADER:
            return self.layout.block_header_bits
        if section is Section.BLOCK_BODY:
            return self.layout.block_body_bits
        return None  # footer runs to end of stream

    def _advance(self) -> None:
        """Move past every exhausted (or zero-length) section."""
        length = self._length(self.section)
        while length is not None and self.offset >= length:
            if self.section is Section.PROLOGUE:
                self.section = Section.BLOCK_HEADER
            elif self.section is Section.BLOCK_HEADER:
                self.section = Section.BLOCK_BODY
            else:
                self.block += 1
                if self.block < self.layout.block_count:
                    self.section = Section.BLOCK_HEADER
                else:
                    self.section = Section.FOOTER
            self.offset = 0
            length = self._length(self.section)

    @property
    def section_complete(self) -> bool:
        """True when the section instance in flight has all of its declared bits."""
        length = self._length(self.section)
        return length is None or self.offset >= length

    @property
    def consistent(self) -> bool:
        """Prologue and every declared block were fully present in the stream."""
        return self.prologue_complete and self.blocks_complete == self.layout.block_count

    def classify(self, cursor: BitCursor) -> Iterator[FramedBit]:
        if self._started:
            raise RuntimeError("FrameModel is single-use; create a new one per traversal")
        self._started = True

        body_bits = self.layout.block_body_bits
        for bit in cursor:
            self._advance()
            yield FramedBit(bit, self.section, self.offset, self.block)
            self.offset += 1
            self.total_bits += 1
            if self.section is Section.FOOTER:
                self.footer_bits += 1
            elif self.section is Section.BLOCK_BODY and self.offset == body_bits:
                self.blocks_complete += 1
            elif self.section is Section.PROLOGUE and self.offset == self.layout.prologue_bits:
                self.prologue_complete = True

        log.debug(
            "frame walk done: %d bits, %d/%d blocks, %d footer bits",
            self.total_bits, self.blocks_complete, self.layout.block_count, self.footer_bits,
        )
