"""Neighbour table changes on Linux through netlink."""

from __future__ import annotations

import errno
import os
import socket
import struct
from dataclasses import dataclass

from pktkit.addr import Addr, AddrType

RTM_NEWNEIGH = 28
RTM_DELNEIGH = 29

NLM_F_REQUEST = 0x01
NLM_F_ACK = 0x04
NLM_F_EXCL = 0x200
NLM_F_CREATE = 0x400
NLMSG_ERROR = 2

NUD_PERMANENT = 0x80
NDA_DST = 1
NDA_LLADDR = 2

LINUX_AF_INET = 2
LINUX_AF_INET6 = 10

_NLMSG = struct.Struct("=IHHII")
_NDMSG = struct.Struct("=BBHiHBB")
_RTATTR = struct.Struct("=HH")


@dataclass(frozen=True)
class NdiscEntry:
    """A neighbour entry: interface index, protocol and hardware address."""

    intf_index: int
    pa: Addr
    ha: Addr | None = None


def _attr(attr_type: int, data: bytes) -> bytes:
    raw = _RTATTR.pack(_RTATTR.size + len(data), attr_type) + data
    return raw + bytes(-len(raw) % 4)


def build_neigh_request(entry: NdiscEntry, msg_type: int, flags: int, seq: int) -> bytes:
    """Return a netlink neighbour request that asks for an acknowledgement."""
    if entry.pa.type is AddrType.IP:
        family = LINUX_AF_INET
    elif entry.pa.type is AddrType.IP6:
        family = LINUX_AF_INET6
    else:
        raise ValueError("protocol address must be IPv4 or IPv6")
    body = _NDMSG.pack(family, 0, 0, entry.intf_index, NUD_PERMANENT, 0, 0)
    body += _attr(NDA_DST, entry.pa.data)
    if msg_type == RTM_NEWNEIGH:
        if entry.ha is None or entry.ha.type is not AddrType.ETH:
            raise ValueError("an Ethernet hardware address is required")
        body += _attr(NDA_LLADDR, entry.ha.data)
    header = _NLMSG.pack(
        _NLMSG.size + len(body),
        msg_type,
        NLM_F_REQUEST | flags | NLM_F_ACK,
        seq & 0xFFFFFFFF,
        0,
    )
    return header + body


def parse_ack(reply, seq: int) -> None:
    """Check a netlink acknowledgement, raising OSError on a kernel error."""
    reply = bytes(reply)
    if len(reply) < _NLMSG.size:
        raise ValueError("short netlink reply")
    length, msg_type, _flags, reply_seq, _pid = _NLMSG.unpack_from(reply)
    if length < _NLMSG.size or length > len(reply) or reply_seq != seq:
        raise ValueError("malformed or unexpected netlink reply")
    if msg_type != NLMSG_ERROR:
        raise ValueError(f"unexpected netlink message type {msg_type}")
    if length < _NLMSG.size + 4:
        raise ValueError("truncated netlink error message")
    code = -struct.unpack_from("=i", reply, _NLMSG.size)[0]
    if code:
        raise OSError(code, os.strerror(code))


class Ndisc:
    """Handle on the kernel neighbour (ARP / neighbour discovery) table."""

    def __init__(self) -> None:
        if not hasattr(socket, "AF_NETLINK"):
            raise OSError(errno.ENOSYS, "neighbour table access needs netlink")
        self._seq = 0
        self._sock = socket.socket(socket.AF_NETLINK, socket.SOCK_RAW, socket.NETLINK_ROUTE)
        try:
            self._sock.bind((0, 0))
        except OSError:
            self._sock.close()
            raise

    def _modify(self, entry: NdiscEntry, msg_type: int, flags: int) -> None:
        self._seq = (self._seq + 1) & 0xFFFFFFFF
        self._sock.sendto(build_neigh_request(entry, msg_type, flags, self._seq), (0, 0))
        reply = self._sock.recv(512)
        if not reply:
            raise OSError(errno.EIO, "empty netlink reply")
        parse_ack(reply, self._seq)

    def add(self, entry: NdiscEntry) -> None:
        """Add a permanent neighbour entry; fails if one already exists."""
        self._modify(entry, RTM_NEWNEIGH, NLM_F_CREATE | NLM_F_EXCL)

    def delete(self, entry: NdiscEntry) -> None:
        """Delete a neighbour entry."""
        self._modify(entry, RTM_DELNEIGH, 0)

    def get(self, entry: NdiscEntry) -> NdiscEntry:
        """Look up a neighbour entry (not supported by this backend)."""
        raise OSError(errno.ENOSYS, os.strerror(errno.ENOSYS))

    def loop(self):
        """List neighbour entries (not supported by this backend)."""
        raise OSError(errno.ENOSYS, os.strerror(errno.ENOSYS))

    def close(self) -> None:
        self._sock.close()

    def __enter__(self) -> Ndisc:
        return self

    def __exit__(self, *args) -> None:
        self.close()