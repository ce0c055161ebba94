import struct

import pytest

from pktkit.addr import Addr
from pktkit.eth import (
    ETH_ADDR_BROADCAST,
    ETH_HDR_LEN,
    ETH_MTU,
    EthType,
    is_multicast,
    pack_eth_header,
)

DST = "02:00:00:00:00:01"
SRC = "02:00:00:00:00:02"


def test_header_layout():
    header = pack_eth_header(DST, SRC, EthType.IP)
    assert len(header) == ETH_HDR_LEN
    assert header[:6] == Addr.from_eth(DST).data
    assert header[6:12] == Addr.from_eth(SRC).data
    assert header[12:] == b"\x08\x00"


def test_header_accepts_addr_and_bytes():
    a = pack_eth_header(Addr.from_eth(DST), Addr.from_eth(SRC).data, EthType.IPV6)
    b = pack_eth_header(DST, SRC, 0x86DD)
    assert a == b
    assert struct.unpack("!H", a[12:])[0] == EthType.IPV6


def test_header_rejects_bad_type():
    with pytest.raises(ValueError):
        pack_eth_header(DST, SRC, 0x10000)


def test_header_rejects_non_eth_addr():
    with pytest.raises(ValueError):
        pack_eth_header(Addr.from_ipv4("1.2.3.4"), SRC, EthType.IP)


def test_multicast_detection():
    assert is_multicast(ETH_ADDR_BROADCAST)
    assert is_multicast("01:00:5e:00:00:01")
    assert not is_multicast(DST)


def test_mtu_fills_maximum_frame():
    header = pack_eth_header(DST, SRC, EthType.IP)
    assert len(header) + ETH_MTU + 4 == 1518