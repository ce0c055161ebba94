"""SCTP common header and chunk header packing."""

from __future__ import annotations

import struct
from enum import IntEnum

SCTP_HDR_LEN = 12
SCTP_PORT_MAX = 65535

SCTP_TYPEFLAG_REPORT = 1
SCTP_TYPEFLAG_SKIP = 2

_HEADER = struct.Struct("!HHII")
_CHUNK = struct.Struct("!BBH")
_INIT = struct.Struct("!BBHIIHHI")


class ChunkType(IntEnum):
    """SCTP chunk types."""

    DATA = 0x00
    INIT = 0x01
    INIT_ACK = 0x02
    SACK = 0x03
    HEARTBEAT = 0x04
    HEARTBEAT_ACK = 0x05
    ABORT = 0x06
    SHUTDOWN = 0x07
    SHUTDOWN_ACK = 0x08
    ERROR = 0x09
    COOKIE_ECHO = 0x0A
    COOKIE_ACK = 0x0B
    ECNE = 0x0C
    CWR = 0x0D
    SHUTDOWN_COMPLETE = 0x0E
    AUTH = 0x0F
    ASCONF_ACK = 0x80
    PKTDROP = 0x81
    PAD = 0x84
    FORWARD_TSN = 0xC0
    ASCONF = 0xC1


def _pack(layout: struct.Struct, *values) -> bytes:
    try:
        return layout.pack(*values)
    except struct.error as exc:
        raise ValueError(str(exc)) from None


def pack_sctp_header(sport, dport, vtag) -> bytes:
    """Return a 12-byte SCTP common header with a zero checksum."""
    return _pack(_HEADER, sport, dport, vtag, 0)


def pack_chunk_header(chunk_type, flags, length) -> bytes:
    """Return a 4-byte chunk header."""
    return _pack(_CHUNK, int(chunk_type), flags, length)


def pack_init_chunk(chunk_type, flags, length, itag, arwnd, nos, nis, itsn) -> bytes:
    """Return a 20-byte INIT or INIT ACK chunk header."""
    return _pack(_INIT, int(chunk_type), flags, length, itag, arwnd, nos, nis, itsn)