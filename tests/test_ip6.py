import pytest

from pktkit.checksum import cksum_add, cksum_carry
from pktkit.icmp import pack_echo
from pktkit.ip import IpProto
from pktkit.ip6 import (
    IP6_ADDR_LOOPBACK,
    IP6_HDR_LEN,
    ip6_add_option,
    ip6_checksum,
    pack_ip6_header,
)
from pktkit.tcp import TcpFlags, pack_tcp_header
from pktkit.udp import pack_udp_header

SRC = "fe80::1"
DST = "fe80::2"


def _pseudo_ok(packet, start, nxt):
    seg = packet[start:]
    pseudo = packet[8:40] + len(seg).to_bytes(4, "big") + bytes([0, 0, 0, nxt])
    return cksum_carry(cksum_add(pseudo + seg)) == 0


def test_header_layout():
    h = pack_ip6_header(0, 0, 0, IpProto.TCP, 64, "::1", "::2")
    assert len(h) == IP6_HDR_LEN
    assert h[:4] == b"\x60\x00\x00\x00"
    assert h[6] == IpProto.TCP
    assert h[7] == 64
    assert h[8:24] == IP6_ADDR_LOOPBACK


def test_header_class_and_flow():
    h = pack_ip6_header(0xAB, 0x12345, 8, IpProto.UDP, 1, SRC, DST)
    assert h[:4] == bytes.fromhex("6ab12345")
    assert h[4:6] == (8).to_bytes(2, "big")


def test_header_bad_class():
    with pytest.raises(ValueError):
        pack_ip6_header(256, 0, 0, IpProto.TCP, 64, SRC, DST)


def test_udp_checksum_verifies():
    udp = pack_udp_header(1000, 2000, 12) + b"data"
    pkt = pack_ip6_header(0, 0, len(udp), IpProto.UDP, 64, SRC, DST) + udp
    out = ip6_checksum(pkt)
    assert _pseudo_ok(out, 40, IpProto.UDP)
    assert out[:46] == pkt[:46]


def test_icmpv6_checksum_verifies():
    icmp = pack_echo(128, 0, 1, 1, b"xyz")
    pkt = pack_ip6_header(0, 0, len(icmp), IpProto.ICMPV6, 64, SRC, DST) + icmp
    out = ip6_checksum(pkt)
    assert _pseudo_ok(out, 40, IpProto.ICMPV6)


def test_checksum_skips_extension_header():
    ext = bytes([IpProto.UDP, 0]) + b"\x01\x04\x00\x00\x00\x00"
    udp = pack_udp_header(1, 2, 8)
    pkt = pack_ip6_header(0, 0, len(ext) + len(udp), IpProto.HOPOPTS, 64, SRC, DST) + ext + udp
    out = ip6_checksum(pkt)
    assert out[40:48] == ext
    assert _pseudo_ok(out, 48, IpProto.UDP)


def test_truncated_extension_unchanged():
    pkt = pack_ip6_header(0, 0, 0, IpProto.HOPOPTS, 64, SRC, DST)
    assert ip6_checksum(pkt) == pkt


def test_add_tcp_option():
    tcp = pack_tcp_header(1, 2, 3, 4, TcpFlags.SYN, 1024, 0)
    pkt = pack_ip6_header(0, 0, len(tcp), IpProto.TCP, 64, SRC, DST) + tcp
    out = ip6_add_option(pkt, 100, IpProto.TCP, b"\x02\x04\x05\xb4")
    assert len(out) == len(pkt) + 4
    assert out[52] >> 4 == 6
    assert out[60:64] == b"\x02\x04\x05\xb4"
    assert int.from_bytes(out[4:6], "big") == len(tcp) + 4


def test_add_option_keeps_payload():
    tcp = pack_tcp_header(1, 2, 3, 4, TcpFlags.ACK, 1024, 0) + b"PAYLOAD!"
    pkt = pack_ip6_header(0, 0, len(tcp), IpProto.TCP, 64, SRC, DST) + tcp
    out = ip6_add_option(pkt, 200, IpProto.TCP, b"\x04\x02")
    assert out[60:64] == b"\x01\x01\x04\x02"
    assert out[64:] == b"PAYLOAD!"


def test_add_option_bad_proto():
    tcp = pack_tcp_header(1, 2, 3, 4, TcpFlags.SYN, 1024, 0)
    pkt = pack_ip6_header(0, 0, len(tcp), IpProto.TCP, 64, SRC, DST) + tcp
    with pytest.raises(ValueError):
        ip6_add_option(pkt, 100, IpProto.UDP, b"\x02\x04\x05\xb4")


def test_add_option_too_big():
    tcp = pack_tcp_header(1, 2, 3, 4, TcpFlags.SYN, 1024, 0)
    pkt = pack_ip6_header(0, 0, len(tcp), IpProto.TCP, 64, SRC, DST) + tcp
    with pytest.raises(ValueError):
        ip6_add_option(pkt, len(pkt), IpProto.TCP, b"\x02\x04\x05\xb4")