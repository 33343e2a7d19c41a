from __future__ import annotations
from enum import Enum, IntEnum
from typing import Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from ..errors import BadParameterError, Status

M = TypeVar("M", bound=BaseModel)


class Section(str, Enum):
    PROLOGUE = "prologue"
    BLOCK_HEADER = "header"
    BLOCK_BODY = "body"
    FOOTER = "footer"


class BitOrder(IntEnum):
    """Order in which stream bits are assembled into a multi-bit value."""
    LSB = 0
    MSB = 1


class FrameLayout(BaseModel):
    """prologue + block_count * (block header + block body) + footer"""
    model_config = ConfigDict(frozen=True)

    prologue_bits: int = Field(0, ge=0)
    block_header_bits: int = Field(0, ge=0)
    block_body_bits: int = Field(..., ge=1)
    block_count: int = Field(..., ge=1)

    @property
    def block_bits(self) -> int:
        return self.block_header_bits + self.block_body_bits

    @property
    def framed_bits(self) -> int:
        """Bits claimed by the prologue and all blocks; anything after is footer."""
        return self.prologue_bits + self.block_count * self.block_bits


class ImageOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    row_width: int = Field(..., ge=1)
    bit_depth: int = Field(1, ge=1, le=32)
    bit_order: BitOrder = BitOrder.MSB
    scale: bool = False

    @model_validator(mode="after")
    def _scale_needs_binary(self) -> "ImageOptions":
        if self.scale and self.bit_depth != 1:
            raise ValueError("scale can only be used with bit_depth 1")
        return self

    @property
    def pixel_width(self) -> int:
        if self.bit_depth <= 8:
            return 1
        if self.bit_depth <= 16:
            return 2
        return 4


class Outcome(BaseModel):
    """Common tail of every operation result."""
    status: Status = Status.SUCCESS
    warning: Optional[str] = None


def build(model: Type[M], **values) -> M:
    """Construct a configuration model, reporting violations as BadParameterError."""
    try:
        return model(**values)
    except ValidationError as e:
        raise BadParameterError(f"invalid {model.__name__}: {e}") from e
