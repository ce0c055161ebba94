"""UDP header constants and header packing."""

from __future__ import annotations

import struct

UDP_HDR_LEN = 8
UDP_PORT_MAX = 65535

_HEADER = struct.Struct("!HHHH")


def pack_udp_header(sport, dport, length) -> bytes:
    """Return an 8-byte UDP header with a zero checksum."""
    try:
        return _HEADER.pack(sport, dport, length, 0)
    except struct.error as exc:
        raise ValueError(str(exc)) from None