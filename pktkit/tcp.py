"""TCP header constants, header packing and sequence number arithmetic."""

from __future__ import annotations

import struct
from enum import IntEnum, IntFlag

TCP_HDR_LEN = 20
TCP_OPT_LEN = 2
TCP_OPT_LEN_MAX = 40
TCP_HDR_LEN_MAX = TCP_HDR_LEN + TCP_OPT_LEN_MAX

TCP_PORT_MAX = 65535
TCP_WIN_MAX = 65535

# Option types
TCP_OPT_EOL = 0
TCP_OPT_NOP = 1
TCP_OPT_MSS = 2
TCP_OPT_WSCALE = 3
TCP_OPT_SACKOK = 4
TCP_OPT_SACK = 5
TCP_OPT_ECHO = 6
TCP_OPT_ECHOREPLY = 7
TCP_OPT_TIMESTAMP = 8
TCP_OPT_POCONN = 9
TCP_OPT_POSVC = 10
TCP_OPT_CC = 11
TCP_OPT_CCNEW = 12
TCP_OPT_CCECHO = 13
TCP_OPT_ALTSUM = 14
TCP_OPT_ALTSUMDATA = 15
TCP_OPT_SKEETER = 16
TCP_OPT_BUBBA = 17
TCP_OPT_TRAILSUM = 18
TCP_OPT_MD5 = 19
TCP_OPT_SCPS = 20
TCP_OPT_SNACK = 21
TCP_OPT_REC = 22
TCP_OPT_CORRUPT = 23
TCP_OPT_SNAP = 24
TCP_OPT_TCPCOMP = 26
TCP_OPT_MAX = 27

_HEADER = struct.Struct("!HHIIBBHHH")


class TcpFlags(IntFlag):
    """TCP control flags."""

    FIN = 0x01
    SYN = 0x02
    RST = 0x04
    PUSH = 0x08
    ACK = 0x10
    URG = 0x20
    ECE = 0x40
    CWR = 0x80


class TcpState(IntEnum):
    """States of the TCP finite state machine."""

    CLOSED = 0
    LISTEN = 1
    SYN_SENT = 2
    SYN_RECEIVED = 3
    ESTABLISHED = 4
    CLOSE_WAIT = 5
    FIN_WAIT_1 = 6
    CLOSING = 7
    LAST_ACK = 8
    FIN_WAIT_2 = 9
    TIME_WAIT = 10


def pack_tcp_header(sport, dport, seq, ack, flags, win, urp) -> bytes:
    """Return a 20-byte TCP header with data offset 5 and a zero checksum."""
    try:
        return _HEADER.pack(
            sport, dport, seq, ack, 5 << 4, int(flags), win, 0, urp
        )
    except struct.error as exc:
        raise ValueError(str(exc)) from None


def _seq_diff(a, b) -> int:
    diff = (a - b) & 0xFFFFFFFF
    return diff - (1 << 32) if diff & 0x80000000 else diff


def seq_lt(a, b) -> bool:
    """True if sequence number a comes before b, modulo 2**32."""
    return _seq_diff(a, b) < 0


def seq_leq(a, b) -> bool:
    """True if sequence number a comes before or equals b, modulo 2**32."""
    return _seq_diff(a, b) <= 0


def seq_gt(a, b) -> bool:
    """True if sequence number a comes after b, modulo 2**32."""
    return _seq_diff(a, b) > 0


def seq_geq(a, b) -> bool:
    """True if sequence number a comes after or equals b, modulo 2**32."""
    return _seq_diff(a, b) >= 0


def opt_typeonly(opt_type) -> bool:
    """True for options that consist of the type byte alone."""
    return opt_type in (TCP_OPT_EOL, TCP_OPT_NOP)