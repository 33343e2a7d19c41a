from __future__ import annotations
import struct
from typing import Literal

import numpy as np
from pydantic import BaseModel, ConfigDict, Field

from .common import Outcome
from ..errors import BadFileTypeError

IMAGE_FORMAT_ID = 0xAAAA
PREAMBLE_VERSION = 1

# endian, format id, header size, row width, row count, pixel width,
# frame count, version, 6 reserved shorts; little-endian, 32 bytes
_PREAMBLE = struct.Struct("<hHhiihhh6h")
PREAMBLE_SIZE = _PREAMBLE.size

PIXEL_DTYPES = {1: np.dtype("u1"), 2: np.dtype("<u2"), 4: np.dtype("<i4")}


class ImagePreamble(BaseModel):
    """Fixed header written in front of the raw pixel payload."""
    model_config = ConfigDict(frozen=True)

    endian: int = -1          # -1: little-endian payload
    format_id: int = IMAGE_FORMAT_ID
    header_size: int = PREAMBLE_SIZE
    row_width: int = Field(..., ge=1, le=2**31 - 1)
    row_count: int = Field(..., ge=0, le=2**31 - 1)
    pixel_width: Literal[1, 2, 4]
    frame_count: int = Field(..., ge=1, le=2**15 - 1)
    version: int = PREAMBLE_VERSION

    @property
    def pixels_per_frame(self) -> int:
        return self.row_width * self.row_count

    @property
    def payload_size(self) -> int:
        return self.frame_count * self.pixels_per_frame * self.pixel_width

    def to_bytes(self) -> bytes:
        return _PREAMBLE.pack(
            self.endian, self.format_id, self.header_size,
            self.row_width, self.row_count, self.pixel_width,
            self.frame_count, self.version, *([0] * 6),
        )

    @classmethod
    def from_bytes(cls, raw: bytes) -> "ImagePreamble":
        if len(raw) < PREAMBLE_SIZE:
            raise BadFileTypeError(f"image preamble needs {PREAMBLE_SIZE} bytes, got {len(raw)}")
        (endian, format_id, header_size, row_width, row_count,
         pixel_width, frame_count, version, *_reserved) = _PREAMBLE.unpack(raw[:PREAMBLE_SIZE])
        if format_id != IMAGE_FORMAT_ID or endian not in (0, -1):
            raise BadFileTypeError(f"not an image file (id=0x{format_id:04x}, endian={endian})")
        try:
            return cls(
                endian=endian, format_id=format_id, header_size=header_size,
                row_width=row_width, row_count=row_count, pixel_width=pixel_width,
                frame_count=frame_count, version=version,
            )
        except ValueError as e:
            raise BadFileTypeError(f"corrupt image preamble: {e}") from e


class EncodedImage(Outcome):
    """Preamble plus pixels shaped (frame_count, row_count, row_width)."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    preamble: ImagePreamble
    pixels: np.ndarray
    frames_complete: int = Field(0, ge=0)

    def to_bytes(self) -> bytes:
        dtype = PIXEL_DTYPES[self.preamble.pixel_width]
        return self.preamble.to_bytes() + self.pixels.astype(dtype, copy=False).tobytes()
