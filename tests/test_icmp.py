import struct

import pytest

from pktkit.icmp import (
    ICMP_CODE_NONE,
    ICMP_HDR_LEN,
    ICMP_UNREACH_NEEDFRAG,
    ICMP_UNREACH_PORT,
    IcmpType,
    is_info_type,
    pack_echo,
    pack_icmp_header,
    pack_mask,
    pack_needfrag,
    pack_quote,
)


@pytest.mark.parametrize(
    "icmp_type", [IcmpType.ECHO, IcmpType.ECHOREPLY, IcmpType.MASK, IcmpType.TSTAMP]
)
def test_info_types(icmp_type):
    assert is_info_type(icmp_type)


@pytest.mark.parametrize(
    "icmp_type", [IcmpType.UNREACH, IcmpType.REDIRECT, IcmpType.TIMEXCEED]
)
def test_error_types_are_not_info(icmp_type):
    assert not is_info_type(icmp_type)


def test_basic_header():
    hdr = pack_icmp_header(IcmpType.UNREACH, ICMP_UNREACH_PORT)
    assert len(hdr) == ICMP_HDR_LEN
    assert struct.unpack("!BBH", hdr) == (int(IcmpType.UNREACH), ICMP_UNREACH_PORT, 0)


def test_header_type_out_of_range():
    with pytest.raises(ValueError):
        pack_icmp_header(-1, 0)


def test_echo_round_trip():
    msg = pack_echo(IcmpType.ECHO, ICMP_CODE_NONE, 0x1234, 7, b"hello")
    assert msg[:ICMP_HDR_LEN] == pack_icmp_header(IcmpType.ECHO, ICMP_CODE_NONE)
    assert struct.unpack("!HH", msg[4:8]) == (0x1234, 7)
    assert msg[8:] == b"hello"


def test_quote_round_trip():
    inner = bytes(range(28))
    msg = pack_quote(IcmpType.TIMEXCEED, 0, 0xC0A80001, inner)
    assert struct.unpack("!I", msg[4:8]) == (0xC0A80001,)
    assert msg[8:] == inner


def test_mask_round_trip():
    msg = pack_mask(IcmpType.MASKREPLY, 0, 9, 10, 0xFFFFFF00)
    assert msg[0] == int(IcmpType.MASKREPLY)
    assert struct.unpack("!HHI", msg[4:]) == (9, 10, 0xFFFFFF00)


def test_needfrag_round_trip():
    inner = b"\x45" + bytes(27)
    msg = pack_needfrag(IcmpType.UNREACH, ICMP_UNREACH_NEEDFRAG, 1400, inner)
    assert msg[1] == ICMP_UNREACH_NEEDFRAG
    assert struct.unpack("!HH", msg[4:8]) == (0, 1400)
    assert msg[8:] == inner


def test_needfrag_mtu_out_of_range():
    with pytest.raises(ValueError):
        pack_needfrag(IcmpType.UNREACH, ICMP_UNREACH_NEEDFRAG, 0x10000, b"")