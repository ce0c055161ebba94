"""ARP constants and Ethernet/IPv4 ARP message packing."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import IntEnum

from pktkit.addr import Addr, AddrType

ARP_HDR_LEN = 8
ARP_ETHIP_LEN = 20

ARP_HRD_ETH = 0x0001
ARP_HRD_IEEE802 = 0x0006
ARP_HRD_IEEE80211_RADIOTAP = 0x0323

ARP_PRO_IP = 0x0800

_ETH_ADDR_LEN = 6
_IP_ADDR_LEN = 4

_HEADER = struct.Struct("!HHBBH")


class ArpOp(IntEnum):
    """ARP operations."""

    REQUEST = 1
    REPLY = 2
    REVREQUEST = 3
    REVREPLY = 4


@dataclass(frozen=True)
class ArpEntry:
    """An ARP cache entry: protocol address and hardware address."""

    pa: Addr
    ha: Addr


def _eth_bytes(address) -> bytes:
    if isinstance(address, Addr):
        if address.type is not AddrType.ETH:
            raise ValueError("not an Ethernet address")
        return address.data
    return Addr.from_eth(address).data


def _ip_bytes(address) -> bytes:
    return Addr.from_ipv4(address).data


def pack_arp_ethip(op, sha, spa, tha, tpa) -> bytes:
    """Return a 28-byte Ethernet/IPv4 ARP message."""
    try:
        header = _HEADER.pack(
            ARP_HRD_ETH, ARP_PRO_IP, _ETH_ADDR_LEN, _IP_ADDR_LEN, int(op)
        )
    except struct.error as exc:
        raise ValueError(str(exc)) from None
    return header + _eth_bytes(sha) + _ip_bytes(spa) + _eth_bytes(tha) + _ip_bytes(tpa)