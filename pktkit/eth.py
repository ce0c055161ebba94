"""Ethernet framing constants and header packing."""

from __future__ import annotations

import struct
from enum import IntEnum

from pktkit.addr import Addr, AddrType

ETH_ADDR_LEN = 6
ETH_ADDR_BITS = 48
ETH_TYPE_LEN = 2
ETH_CRC_LEN = 4
ETH_HDR_LEN = 14

ETH_LEN_MIN = 64
ETH_LEN_MAX = 1518

ETH_MTU = ETH_LEN_MAX - ETH_HDR_LEN - ETH_CRC_LEN
ETH_MIN = ETH_LEN_MIN - ETH_HDR_LEN - ETH_CRC_LEN

ETH_ADDR_BROADCAST = b"\xff\xff\xff\xff\xff\xff"


class EthType(IntEnum):
    """Ethernet payload types."""

    PUP = 0x0200
    IP = 0x0800
    ARP = 0x0806
    REVARP = 0x8035
    VLAN_8021Q = 0x8100
    IPV6 = 0x86DD
    MPLS = 0x8847
    MPLS_MCAST = 0x8848
    PPPOEDISC = 0x8863
    PPPOE = 0x8864
    LOOPBACK = 0x9000


def _eth_bytes(address) -> bytes:
    if isinstance(address, Addr):
        if address.type is not AddrType.ETH:
            raise ValueError("not an Ethernet address")
        return address.data
    return Addr.from_eth(address).data


def pack_eth_header(dst, src, eth_type) -> bytes:
    """Return a 14-byte Ethernet header."""
    if not 0 <= int(eth_type) <= 0xFFFF:
        raise ValueError(f"Ethernet type {eth_type} out of range")
    return _eth_bytes(dst) + _eth_bytes(src) + struct.pack("!H", int(eth_type))


def is_multicast(address) -> bool:
    """True if the address is a multicast or broadcast address."""
    return bool(_eth_bytes(address)[0] & 0x01)