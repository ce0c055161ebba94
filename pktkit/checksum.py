"""Internet checksums, CRC-32C and IPv4/TCP option insertion."""

from __future__ import annotations

import struct

from pktkit.icmp import ICMP_HDR_LEN
from pktkit.ip import (
    IP_HDR_LEN,
    IP_HDR_LEN_MAX,
    IP_MF,
    IP_OFFMASK,
    IpOpt,
    IpProto,
    opt_typeonly,
)
from pktkit.sctp import SCTP_HDR_LEN
from pktkit.tcp import TCP_HDR_LEN
from pktkit.udp import UDP_HDR_LEN


def _make_crc32c_table() -> tuple[int, ...]:
    table = []
    for byte in range(256):
        crc = byte
        for _ in range(8):
            crc = (crc >> 1) ^ 0x82F63B78 if crc & 1 else crc >> 1
        table.append(crc)
    return tuple(table)


_CRC32C_TABLE = _make_crc32c_table()


def cksum_add(data, cksum=0) -> int:
    """Add the 16-bit big-endian words of data to a running sum."""
    data = bytes(data)
    even = len(data) & ~1
    cksum += sum(struct.unpack(f"!{even // 2}H", data[:even]))
    if len(data) & 1:
        cksum += data[-1] << 8
    return cksum


def cksum_carry(value) -> int:
    """Fold a running sum into a 16-bit ones' complement checksum."""
    value = (value >> 16) + (value & 0xFFFF)
    return ~(value + (value >> 16)) & 0xFFFF


def crc32c(data) -> int:
    """CRC-32C (Castagnoli) of data."""
    crc = 0xFFFFFFFF
    for byte in bytes(data):
        crc = _CRC32C_TABLE[(crc ^ byte) & 0xFF] ^ (crc >> 8)
    return crc ^ 0xFFFFFFFF


def _pseudo_sum(segment, proto, pseudo) -> int:
    total = cksum_add(segment) + ((proto + len(segment)) & 0xFFFF)
    return cksum_add(pseudo, total)


def ip_checksum(packet) -> bytes:
    """Return the IPv4 packet with header and transport checksums filled in."""
    buf = bytearray(packet)
    if len(buf) < IP_HDR_LEN:
        return bytes(buf)

    hl = (buf[0] & 0x0F) << 2
    buf[10:12] = b"\x00\x00"
    struct.pack_into("!H", buf, 10, cksum_carry(cksum_add(buf[:hl])))

    off = int.from_bytes(buf[6:8], "big")
    if off & (IP_OFFMASK | IP_MF):
        return bytes(buf)

    length = len(buf) - hl
    if length < 0:
        return bytes(buf)
    proto = buf[9]
    pseudo = bytes(buf[12:20])

    if proto == IpProto.TCP and length >= TCP_HDR_LEN:
        buf[hl + 16 : hl + 18] = b"\x00\x00"
        value = cksum_carry(_pseudo_sum(buf[hl:], proto, pseudo))
        struct.pack_into("!H", buf, hl + 16, value)
    elif proto == IpProto.UDP and length >= UDP_HDR_LEN:
        buf[hl + 6 : hl + 8] = b"\x00\x00"
        value = cksum_carry(_pseudo_sum(buf[hl:], proto, pseudo)) or 0xFFFF
        struct.pack_into("!H", buf, hl + 6, value)
    elif proto == IpProto.SCTP and length >= SCTP_HDR_LEN:
        buf[hl + 8 : hl + 12] = b"\x00\x00\x00\x00"
        buf[hl + 8 : hl + 12] = crc32c(buf[hl:]).to_bytes(4, "little")
    elif proto in (IpProto.ICMP, IpProto.IGMP) and length >= ICMP_HDR_LEN:
        buf[hl + 2 : hl + 4] = b"\x00\x00"
        struct.pack_into("!H", buf, hl + 2, cksum_carry(cksum_add(buf[hl:])))
    return bytes(buf)


def ip_add_option(packet, size, proto, option) -> bytes:
    """Insert an IP or TCP option, NOP-padded to a word boundary.

    ``size`` is the largest total length the packet may grow to. Returns the
    packet with the option inserted and lengths updated.
    """
    if proto not in (IpProto.IP, IpProto.TCP):
        raise ValueError("options can only be added to IP or TCP headers")
    buf = bytes(packet)
    opt = bytes(option)
    if not opt:
        raise ValueError("empty option")
    if len(buf) < IP_HDR_LEN:
        raise ValueError("truncated IP header")

    ip_hl = (buf[0] & 0x0F) << 2
    hl = ip_hl
    insert_at = ip_hl
    tcp_start = ip_hl
    if proto == IpProto.TCP:
        if len(buf) < tcp_start + TCP_HDR_LEN:
            raise ValueError("truncated TCP header")
        hl = (buf[tcp_start + 12] >> 4) << 2
        insert_at = tcp_start + hl

    ip_len = int.from_bytes(buf[2:4], "big")
    if ip_len < insert_at or len(buf) < ip_len:
        raise ValueError("truncated packet")

    padlen = -len(opt) % 4
    if hl + len(opt) + padlen > IP_HDR_LEN_MAX or ip_len + len(opt) + padlen > size:
        raise ValueError("option does not fit")
    if opt_typeonly(opt[0]):
        opt = opt[:1]

    added = bytes([IpOpt.NOP]) * padlen + opt
    out = bytearray(buf[:insert_at] + added + buf[insert_at:ip_len])
    end = insert_at + len(added)
    if proto == IpProto.IP:
        out[0] = (out[0] & 0xF0) | ((end >> 2) & 0x0F)
    else:
        out[tcp_start + 12] = (((end - tcp_start) >> 2) & 0x0F) << 4 | (
            out[tcp_start + 12] & 0x0F
        )
    struct.pack_into("!H", out, 2, (ip_len + len(added)) & 0xFFFF)
    return bytes(out)