from __future__ import annotations
from .bitcursor import Cursor
from bitframe.errors import BadFileTypeError
from bitframe.models.spp import (
    PRIMARY_HEADER_SIZE,
    IDLE_APID,
    SEQ_UNSEGMENTED,
    TIME_APID,
    PacketType,
    SppPrimaryHeader,
)

HEADER_COLUMNS = "  Packet PVN Type Sec  APID Flag  Count Length"


class InvalidPacketError(BadFileTypeError):
    pass


def decode_primary_header(raw: bytes) -> SppPrimaryHeader:
    """
    6-byte primary header, three big-endian words:
      ID   = PVN(3) Type(1) SecHdr(1) APID(11)
      SEQ  = SeqFlag(2) SeqCount(14)
      LEN  = data field length - 1
    """
    if len(raw) != PRIMARY_HEADER_SIZE:
        raise ValueError(f"primary header is {PRIMARY_HEADER_SIZE} bytes, got {len(raw)}")
    cur = Cursor(raw)
    ident = cur.u16()
    seq = cur.u16()
    length = cur.u16()
    return SppPrimaryHeader(
        pvn=(ident >> 13) & 0x07,
        packet_type=PacketType((ident >> 12) & 0x01),
        sec_header_flag=(ident >> 11) & 0x01,
        apid=ident & 0x07FF,
        seq_flag=(seq >> 14) & 0x03,
        seq_count=seq & 0x3FFF,
        data_length=length + 1,
    )


def encode_primary_header(hdr: SppPrimaryHeader) -> bytes:
    ident = (hdr.pvn << 13) | (int(hdr.packet_type) << 12) | (hdr.sec_header_flag << 11) | hdr.apid
    seq = (hdr.seq_flag << 14) | hdr.seq_count
    out = bytearray()
    out += ident.to_bytes(2, "big")
    out += seq.to_bytes(2, "big")
    out += (hdr.data_length - 1).to_bytes(2, "big")
    return bytes(out)


def check_primary_header(hdr: SppPrimaryHeader, *, strict: bool = False) -> None:
    """
    PVN must be 0. Strict mode also wants a secondary header on telemetry
    (except idle and time packets) and unsegmented sequence flags.
    """
    if hdr.pvn != 0:
        raise InvalidPacketError(f"unsupported packet version {hdr.pvn}")
    if not strict:
        return
    if (hdr.packet_type is PacketType.TELEMETRY and hdr.sec_header_flag != 1
            and hdr.apid not in (IDLE_APID, TIME_APID)):
        raise InvalidPacketError(f"telemetry packet APID 0x{hdr.apid:03X} has no secondary header")
    if hdr.seq_flag != SEQ_UNSEGMENTED:
        raise InvalidPacketError(f"segmented packet (sequence flag {hdr.seq_flag})")


def format_header(index: int, hdr: SppPrimaryHeader) -> str:
    return (
        f"{index:8d} {hdr.pvn:3d} {int(hdr.packet_type):4d} {hdr.sec_header_flag:3d} "
        f"0x{hdr.apid:03X} {hdr.seq_flag:4d} {hdr.seq_count:6d} {hdr.data_length:6d}"
    )
