"""ICMP message types, codes and header packing."""

from __future__ import annotations

import struct
from enum import IntEnum

ICMP_HDR_LEN = 4
ICMP_LEN_MIN = 8

ICMP_CODE_NONE = 0

# Destination unreachable codes
ICMP_UNREACH_NET = 0
ICMP_UNREACH_HOST = 1
ICMP_UNREACH_PROTO = 2
ICMP_UNREACH_PORT = 3
ICMP_UNREACH_NEEDFRAG = 4
ICMP_UNREACH_SRCFAIL = 5
ICMP_UNREACH_NET_UNKNOWN = 6
ICMP_UNREACH_HOST_UNKNOWN = 7
ICMP_UNREACH_ISOLATED = 8
ICMP_UNREACH_NET_PROHIB = 9
ICMP_UNREACH_HOST_PROHIB = 10
ICMP_UNREACH_TOSNET = 11
ICMP_UNREACH_TOSHOST = 12
ICMP_UNREACH_FILTER_PROHIB = 13
ICMP_UNREACH_HOST_PRECEDENCE = 14
ICMP_UNREACH_PRECEDENCE_CUTOFF = 15

# Redirect codes
ICMP_REDIRECT_NET = 0
ICMP_REDIRECT_HOST = 1
ICMP_REDIRECT_TOSNET = 2
ICMP_REDIRECT_TOSHOST = 3

# Router advertisement codes
ICMP_RTRADVERT_NORMAL = 0
ICMP_RTRADVERT_NOROUTE_COMMON = 16

# Time exceeded codes
ICMP_TIMEXCEED_INTRANS = 0
ICMP_TIMEXCEED_REASS = 1

# Parameter problem codes
ICMP_PARAMPROB_ERRATPTR = 0
ICMP_PARAMPROB_OPTABSENT = 1
ICMP_PARAMPROB_LENGTH = 2

# Photuris codes
ICMP_PHOTURIS_UNKNOWN_INDEX = 0
ICMP_PHOTURIS_AUTH_FAILED = 1
ICMP_PHOTURIS_DECOMPRESS_FAILED = 2
ICMP_PHOTURIS_DECRYPT_FAILED = 3
ICMP_PHOTURIS_NEED_AUTHN = 4
ICMP_PHOTURIS_NEED_AUTHZ = 5

ICMP_TYPE_MAX = 40

ICMP_RTR_PREF_NODEFAULT = 0x80000000


class IcmpType(IntEnum):
    """ICMP message types."""

    ECHOREPLY = 0
    UNREACH = 3
    SRCQUENCH = 4
    REDIRECT = 5
    ALTHOSTADDR = 6
    ECHO = 8
    RTRADVERT = 9
    RTRSOLICIT = 10
    TIMEXCEED = 11
    PARAMPROB = 12
    TSTAMP = 13
    TSTAMPREPLY = 14
    INFO = 15
    INFOREPLY = 16
    MASK = 17
    MASKREPLY = 18
    TRACEROUTE = 30
    DATACONVERR = 31
    MOBILE_REDIRECT = 32
    IPV6_WHEREAREYOU = 33
    IPV6_IAMHERE = 34
    MOBILE_REG = 35
    MOBILE_REGREPLY = 36
    DNS = 37
    DNSREPLY = 38
    SKIP = 39
    PHOTURIS = 40


_INFO_TYPES = frozenset(
    {
        IcmpType.ECHOREPLY,
        IcmpType.ECHO,
        IcmpType.RTRADVERT,
        IcmpType.RTRSOLICIT,
        IcmpType.TSTAMP,
        IcmpType.TSTAMPREPLY,
        IcmpType.INFO,
        IcmpType.INFOREPLY,
        IcmpType.MASK,
        IcmpType.MASKREPLY,
    }
)


def _pack(fmt: str, *values) -> bytes:
    try:
        return struct.pack(fmt, *values)
    except struct.error as exc:
        raise ValueError(str(exc)) from None


def is_info_type(icmp_type) -> bool:
    """True for query/informational message types."""
    return icmp_type in _INFO_TYPES


def pack_icmp_header(icmp_type, code) -> bytes:
    """Return a 4-byte ICMP header with a zero checksum."""
    return _pack("!BBH", int(icmp_type), int(code), 0)


def pack_echo(icmp_type, code, ident, seq, data=b"") -> bytes:
    """Return an echo message: header, identifier, sequence and data."""
    return pack_icmp_header(icmp_type, code) + _pack("!HH", ident, seq) + bytes(data)


def pack_quote(icmp_type, code, word, packet=b"") -> bytes:
    """Return a message quoting an offending packet after a 32-bit word."""
    return pack_icmp_header(icmp_type, code) + _pack("!I", word) + bytes(packet)


def pack_mask(icmp_type, code, ident, seq, mask) -> bytes:
    """Return an address mask request or reply."""
    return pack_icmp_header(icmp_type, code) + _pack("!HHI", ident, seq, mask)


def pack_needfrag(icmp_type, code, mtu, packet=b"") -> bytes:
    """Return a fragmentation-needed message carrying the next-hop MTU."""
    return pack_icmp_header(icmp_type, code) + _pack("!HH", 0, mtu) + bytes(packet)