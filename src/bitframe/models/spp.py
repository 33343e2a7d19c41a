from __future__ import annotations
from enum import IntEnum

from pydantic import BaseModel, ConfigDict, Field

from .common import Outcome

PRIMARY_HEADER_SIZE = 6
IDLE_APID = 0x7FF
TIME_APID = 0x000
SEQ_UNSEGMENTED = 3


class PacketType(IntEnum):
    TELEMETRY = 0
    TELECOMMAND = 1


class SppPrimaryHeader(BaseModel):
    """Unpacked 6-byte space packet primary header."""
    model_config = ConfigDict(frozen=True)

    pvn: int = Field(..., ge=0, le=7)
    packet_type: PacketType
    sec_header_flag: int = Field(..., ge=0, le=1)
    apid: int = Field(..., ge=0, le=0x7FF)
    seq_flag: int = Field(..., ge=0, le=3)
    seq_count: int = Field(..., ge=0, le=0x3FFF)
    data_length: int = Field(..., ge=1, le=0x10000)  # effective length: wire field + 1

    @property
    def is_idle(self) -> bool:
        return self.apid == IDLE_APID

    @property
    def packet_size(self) -> int:
        return PRIMARY_HEADER_SIZE + self.data_length


class SppOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    target_apid: int = Field(..., ge=0, le=0x7FF)
    skip_bytes: int = Field(0, ge=0)
    secondary_header_size: int = Field(0, ge=0)
    strict: bool = False
    save_summary: bool = False


class SppCounts(BaseModel):
    packets: int = 0
    idle_packets: int = 0
    telemetry_packets: int = 0
    command_packets: int = 0
    apid_matches: int = 0
    bytes_processed: int = 0


class SppResult(Outcome):
    counts: SppCounts = Field(default_factory=SppCounts)
    end_offset: int = Field(0, ge=0)   # stream position after the last packet
