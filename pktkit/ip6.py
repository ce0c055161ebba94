"""IPv6 constants, header packing, checksums and TCP option insertion."""

from __future__ import annotations

import struct

from pktkit.addr import Addr
from pktkit.checksum import cksum_add, cksum_carry
from pktkit.icmp import ICMP_HDR_LEN
from pktkit.ip import IP_HDR_LEN_MAX, IpOpt, IpProto
from pktkit.tcp import TCP_HDR_LEN
from pktkit.udp import UDP_HDR_LEN

IP6_ADDR_LEN = 16
IP6_ADDR_BITS = 128

IP6_HDR_LEN = 40
IP6_LEN_MIN = IP6_HDR_LEN
IP6_LEN_MAX = 65535

IP6_MTU_MIN = 1280

IP6_VERSION = 0x60
IP6_VERSION_MASK = 0xF0

# Masks over the first header word and fragment field, in network order
IP6_FLOWINFO_MASK = 0x0FFFFFFF
IP6_FLOWLABEL_MASK = 0x000FFFFF
IP6_OFF_MASK = 0xFFF8
IP6_RESERVED_MASK = 0x0006
IP6_MORE_FRAG = 0x0001

IP6_HLIM_DEFAULT = 64
IP6_HLIM_MAX = 255

IP6_OPT_PAD1 = 0x00
IP6_OPT_PADN = 0x01
IP6_OPT_JUMBO = 0xC2
IP6_OPT_JUMBO_LEN = 6
IP6_OPT_RTALERT = 0x05
IP6_OPT_RTALERT_LEN = 4
IP6_OPT_RTALERT_MLD = 0
IP6_OPT_RTALERT_RSVP = 1
IP6_OPT_RTALERT_ACTNET = 2
IP6_OPT_LEN_MIN = 2

IP6_OPT_TYPE_SKIP = 0x00
IP6_OPT_TYPE_DISCARD = 0x40
IP6_OPT_TYPE_FORCEICMP = 0x80
IP6_OPT_TYPE_ICMP = 0xC0
IP6_OPT_MUTABLE = 0x20

IP6_ADDR_UNSPEC = b"\x00" * 16
IP6_ADDR_LOOPBACK = b"\x00" * 15 + b"\x01"

_EXT_HEADERS = frozenset(
    {IpProto.HOPOPTS, IpProto.DSTOPTS, IpProto.ROUTING, IpProto.FRAGMENT}
)

_HEADER = struct.Struct("!IHBB16s16s")


def ip6_opt_type(opt_type) -> int:
    """High two bits of an IPv6 option type."""
    return opt_type & 0xC0


def pack_ip6_header(
    traffic_class, flow_label, payload_len, next_header, hop_limit, src, dst
) -> bytes:
    """Return a 40-byte IPv6 header."""
    if not 0 <= traffic_class <= 0xFF:
        raise ValueError(f"traffic class {traffic_class} out of range")
    word = 0x60000000 | (traffic_class << 20) | (flow_label & IP6_FLOWLABEL_MASK)
    try:
        return _HEADER.pack(
            word,
            payload_len,
            int(next_header),
            hop_limit,
            Addr.from_ipv6(src).data,
            Addr.from_ipv6(dst).data,
        )
    except struct.error as exc:
        raise ValueError(str(exc)) from None


def _pseudo_sum(segment, nxt, pseudo) -> int:
    total = cksum_add(segment) + ((nxt + len(segment)) & 0xFFFF)
    return cksum_add(pseudo, total)


def ip6_checksum(packet) -> bytes:
    """Return the IPv6 packet with its transport checksum filled in."""
    buf = bytearray(packet)
    if len(buf) < IP6_HDR_LEN:
        return bytes(buf)

    nxt = buf[6]
    pos = IP6_HDR_LEN
    while nxt in _EXT_HEADERS:
        if pos + 2 > len(buf):
            return bytes(buf)
        nxt = buf[pos]
        pos += (buf[pos + 1] + 1) << 3
    if pos > len(buf):
        return bytes(buf)

    length = len(buf) - pos
    pseudo = bytes(buf[8:40])

    if nxt == IpProto.TCP and length >= TCP_HDR_LEN:
        buf[pos + 16 : pos + 18] = b"\x00\x00"
        struct.pack_into("!H", buf, pos + 16, cksum_carry(_pseudo_sum(buf[pos:], nxt, pseudo)))
    elif nxt == IpProto.UDP and length >= UDP_HDR_LEN:
        buf[pos + 6 : pos + 8] = b"\x00\x00"
        value = cksum_carry(_pseudo_sum(buf[pos:], nxt, pseudo)) or 0xFFFF
        struct.pack_into("!H", buf, pos + 6, value)
    elif nxt == IpProto.ICMPV6 and length >= ICMP_HDR_LEN:
        buf[pos + 2 : pos + 4] = b"\x00\x00"
        struct.pack_into("!H", buf, pos + 2, cksum_carry(_pseudo_sum(buf[pos:], nxt, pseudo)))
    elif nxt in (IpProto.ICMP, IpProto.IGMP) and length >= ICMP_HDR_LEN:
        buf[pos + 2 : pos + 4] = b"\x00\x00"
        struct.pack_into("!H", buf, pos + 2, cksum_carry(cksum_add(buf[pos:])))
    return bytes(buf)


def ip6_add_option(packet, size, proto, option) -> bytes:
    """Insert a TCP option after the TCP header of an IPv6 packet.

    ``size`` is the largest total length the packet may grow to.
    """
    if proto != IpProto.TCP:
        raise ValueError("options can only be added to TCP headers")
    buf = bytes(packet)
    opt = bytes(option)
    if not opt:
        raise ValueError("empty option")
    if len(buf) < IP6_HDR_LEN + TCP_HDR_LEN:
        raise ValueError("truncated packet")

    tcp_start = IP6_HDR_LEN
    hl = (buf[tcp_start + 12] >> 4) << 2
    insert_at = tcp_start + hl
    plen = int.from_bytes(buf[4:6], "big")
    total = plen + IP6_HDR_LEN
    if total < insert_at or len(buf) < total:
        raise ValueError("truncated packet")

    padlen = -len(opt) % 4
    if hl + len(opt) + padlen > IP_HDR_LEN_MAX or total + len(opt) + padlen > size:
        raise ValueError("option does not fit")

    added = bytes([IpOpt.NOP]) * padlen + opt
    out = bytearray(buf[:insert_at] + added + buf[insert_at:total])
    end = insert_at + len(added)
    out[tcp_start + 12] = (((end - tcp_start) >> 2) & 0x0F) << 4 | (out[tcp_start + 12] & 0x0F)
    struct.pack_into("!H", out, 4, (plen + len(added)) & 0xFFFF)
    return bytes(out)