from __future__ import annotations
from typing import List, Optional

from pydantic import BaseModel, Field

from .common import Outcome, Section


class FrameTally(Outcome):
    """What a framed traversal actually saw."""
    total_bits: int = Field(0, ge=0)
    footer_bits: int = Field(0, ge=0)
    blocks_complete: int = Field(0, ge=0)
    consistent: bool = True


class SectionStat(BaseModel):
    section: Section
    block: Optional[int] = None
    length: int = Field(..., ge=0)
    ones: int = Field(..., ge=0)

    @property
    def percentage(self) -> float:
        return 100.0 * self.ones / self.length if self.length else 0.0


class StreamStats(FrameTally):
    sections: List[SectionStat] = Field(default_factory=list)
    total_ones: int = Field(0, ge=0)


class ExtractResult(Outcome):
    skipped_bits: int = Field(0, ge=0)
    copied_bits: int = Field(0, ge=0)


class TextToBitsResult(Outcome):
    total_bits: int = Field(0, ge=0)
    one_bits: int = Field(0, ge=0)
    bytes_written: int = Field(0, ge=0)


class HexDumpResult(Outcome):
    bytes_dumped: int = Field(0, ge=0)


class DistanceReport(Outcome):
    num_ones: int = Field(0, ge=0)


class Run(BaseModel):
    start: int = Field(..., ge=0)
    length: int = Field(..., ge=1)
    bit: int = Field(..., ge=0, le=1)


class RunReport(Outcome):
    runs: List[Run] = Field(default_factory=list)
    num_ones: int = Field(0, ge=0)
    num_zeros: int = Field(0, ge=0)
