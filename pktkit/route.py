"""Kernel routing table access on Linux through ioctl, netlink and /proc."""

from __future__ import annotations

import array
import errno
import fcntl
import itertools
import os
import socket
import struct
import sys
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from pktkit.addr import Addr, AddrType
from pktkit.ip import IP_ADDR_ANY

PROC_ROUTE_FILE = "/proc/net/route"
PROC_IPV6_ROUTE_FILE = "/proc/net/ipv6_route"

RTF_UP = 0x0001
RTF_GATEWAY = 0x0002
RTF_HOST = 0x0004

SIOCADDRT = 0x890B
SIOCDELRT = 0x890C

NLM_F_REQUEST = 0x01
NLMSG_ERROR = 2
RTM_GETROUTE = 26
RTA_DST = 1
RTA_GATEWAY = 5

# Linux address family numbers used inside netlink messages.
LINUX_AF_INET = 2
LINUX_AF_INET6 = 10

_NLMSG = struct.Struct("=IHHII")
_RTMSG = struct.Struct("=BBBBBBBBI")
_RTATTR = struct.Struct("=HH")
_RTENTRY = struct.Struct("@L16s16s16sHhLPhPLLH0L")
_IN6_RTMSG = struct.Struct("@16s16s16sIHHILIi0L")

_IP6_UNSPEC = bytes(16)
_DEFAULT_ROUTE_PROBE = b"\x60\x06\x06\x06"
_IPV4_FIELD_BASES = (16, 16, 16, 10, 10, 10, 16, 10, 10, 10)

_getroute_seq = itertools.count(1)


@dataclass(frozen=True)
class RouteEntry:
    """A routing table entry: destination network and gateway."""

    dst: Addr
    gw: Addr | None = None


def _align(length: int) -> int:
    return (length + 3) & ~3


def _leading_ones(data: bytes) -> int:
    width = len(data) * 8
    inverted = ~int.from_bytes(data, "big") & ((1 << width) - 1)
    return width - inverted.bit_length()


def _family(address: Addr) -> tuple[int, int]:
    if address.type is AddrType.IP:
        return LINUX_AF_INET, 4
    if address.type is AddrType.IP6:
        return LINUX_AF_INET6, 16
    raise ValueError(f"cannot route a {address.type.name} address")


def _attributes(data: bytes) -> Iterator[tuple[int, bytes]]:
    pos = 0
    while len(data) - pos >= _RTATTR.size:
        rta_len, rta_type = _RTATTR.unpack_from(data, pos)
        if rta_len < _RTATTR.size or rta_len > len(data) - pos:
            return
        yield rta_type, data[pos + _RTATTR.size : pos + rta_len]
        pos += _align(rta_len)


def _scan_numbers(fields: list[str]) -> list[int]:
    values = []
    for text, base in zip(fields, _IPV4_FIELD_BASES):
        try:
            values.append(int(text, base) & 0xFFFFFFFF)
        except ValueError:
            break
    return values


def parse_ipv4_routes(lines: Iterable[str]) -> Iterator[RouteEntry]:
    """Yield gateway routes that are up from /proc/net/route lines."""
    for line in lines:
        fields = line.split()
        if not fields:
            continue
        values = _scan_numbers(fields[1:])
        # The interface name plus at least nine numeric columns.
        if len(values) < 9:
            continue
        dst, gw, flags, _refcnt, _use, _metric, mask = values[:7]
        if not flags & RTF_UP or gw == 0:
            continue
        mask_bytes = mask.to_bytes(4, sys.byteorder)
        yield RouteEntry(
            Addr(AddrType.IP, _leading_ones(mask_bytes), dst.to_bytes(4, sys.byteorder)),
            Addr(AddrType.IP, 32, gw.to_bytes(4, sys.byteorder)),
        )


def parse_ipv6_routes(lines: Iterable[str]) -> Iterator[RouteEntry]:
    """Yield every route listed in /proc/net/ipv6_route lines."""
    for line in lines:
        fields = line.split()
        if len(fields) < 5:
            continue
        try:
            dst = bytes.fromhex(fields[0])
            dlen = int(fields[1], 16)
            nexthop = bytes.fromhex(fields[4])
            yield RouteEntry(
                Addr(AddrType.IP6, dlen, dst),
                Addr(AddrType.IP6, 128, nexthop),
            )
        except ValueError:
            continue


def build_getroute_request(dst: Addr, seq: int) -> bytes:
    """Return an RTM_GETROUTE netlink request for the destination."""
    family, alen = _family(dst)
    if family == LINUX_AF_INET and dst.data == IP_ADDR_ANY:
        # A zero destination cannot be looked up; probe an arbitrary address.
        data = _DEFAULT_ROUTE_PROBE
    else:
        data = dst.data
    rtmsg = _RTMSG.pack(family, dst.bits, 0, 0, 0, 0, 0, 0, 0)
    attr = _RTATTR.pack(_RTATTR.size + alen, RTA_DST) + data
    body = rtmsg + attr
    # The length field covers four trailing zero bytes beyond the attribute.
    length = 2 * _NLMSG.size + _RTATTR.size + alen
    body += bytes(length - _NLMSG.size - len(body))
    return _NLMSG.pack(length, RTM_GETROUTE, NLM_F_REQUEST, seq & 0xFFFFFFFF, 0) + body


def parse_getroute_reply(reply, dst: Addr, seq: int) -> Addr:
    """Return the gateway found in an RTM_GETROUTE reply."""
    reply = bytes(reply)
    if len(reply) < _NLMSG.size:
        raise ValueError("short netlink reply")
    length, msg_type, _flags, reply_seq, _pid = _NLMSG.unpack_from(reply)
    if length < _NLMSG.size or length > len(reply) or reply_seq != seq:
        raise ValueError("malformed or unexpected netlink reply")
    if msg_type == NLMSG_ERROR:
        code = -struct.unpack_from("=i", reply, _NLMSG.size)[0] if length >= 20 else 0
        code = code or errno.EIO
        raise OSError(code, os.strerror(code))
    _af, alen = _family(dst)
    start = _NLMSG.size + _RTMSG.size
    for attr_type, value in _attributes(reply[start:length]):
        if attr_type == RTA_GATEWAY:
            return Addr(dst.type, alen * 8, value[:alen])
    raise LookupError(f"no gateway for {dst}")


def _sockaddr_in(data: bytes) -> bytes:
    return struct.pack("=H", socket.AF_INET) + b"\x00\x00" + data + bytes(8)


def _mask_sockaddr(bits: int) -> bytes:
    mask = (0xFFFFFFFF << (32 - bits)) & 0xFFFFFFFF
    return _sockaddr_in(mask.to_bytes(4, "big"))


def _route_dst(entry: RouteEntry) -> Addr:
    return entry.dst if entry.dst.is_host() else entry.dst.network()


def _rtentry(dst: Addr, gw: bytes, bits: int, flags: int, dev_ptr: int = 0) -> bytes:
    return _RTENTRY.pack(
        0,
        _sockaddr_in(dst.data),
        _sockaddr_in(gw),
        _mask_sockaddr(bits),
        flags,
        0,
        0,
        0,
        0,
        dev_ptr,
        0,
        0,
        0,
    )


def _require_ipv4(entry: RouteEntry, need_gw: bool) -> None:
    if entry.dst.type is not AddrType.IP:
        raise ValueError("IPv4 destination required")
    if entry.gw is None:
        if need_gw:
            raise ValueError("gateway required")
    elif entry.gw.type is not AddrType.IP:
        raise ValueError("IPv4 gateway required")


def _require_ipv6(entry: RouteEntry) -> None:
    if entry.dst.type is not AddrType.IP6:
        raise ValueError("IPv6 destination required")
    if entry.gw is not None and entry.gw.type is not AddrType.IP6:
        raise ValueError("IPv6 gateway required")


def _read_routes(ipv4_path: str, ipv6_path: str) -> Iterator[RouteEntry]:
    for path, parser in ((ipv4_path, parse_ipv4_routes), (ipv6_path, parse_ipv6_routes)):
        try:
            handle = open(path, encoding="ascii", errors="replace")
        except OSError:
            continue
        with handle:
            yield from parser(handle)


class Route:
    """Handle on the kernel routing table."""

    def __init__(self) -> None:
        if not hasattr(socket, "AF_NETLINK"):
            raise OSError(errno.ENOSYS, "routing table access needs netlink")
        self._socks: list[socket.socket] = []
        try:
            self._fd = self._open(socket.AF_INET, socket.SOCK_DGRAM, 0)
            self._fd6 = self._open(socket.AF_INET6, socket.SOCK_DGRAM, 0)
            self._nl = self._open(socket.AF_NETLINK, socket.SOCK_RAW, socket.NETLINK_ROUTE)
            self._nl.bind((0, 0))
        except OSError:
            self.close()
            raise

    def _open(self, family, kind, proto) -> socket.socket:
        sock = socket.socket(family, kind, proto)
        self._socks.append(sock)
        return sock

    @staticmethod
    def _ioctl(sock: socket.socket, request: int, buf: bytes) -> None:
        fcntl.ioctl(sock.fileno(), request, buf)

    def add(self, entry: RouteEntry) -> None:
        """Add an IPv4 route through a gateway."""
        _require_ipv4(entry, need_gw=True)
        flags = RTF_UP | RTF_GATEWAY | (RTF_HOST if entry.dst.is_host() else 0)
        self._ioctl(self._fd, SIOCADDRT, _rtentry(_route_dst(entry), entry.gw.data, entry.dst.bits, flags))

    def add_dev(self, entry: RouteEntry, dev: str) -> None:
        """Add an IPv4 route bound to a network device."""
        _require_ipv4(entry, need_gw=False)
        gw = entry.gw.data if entry.gw is not None else IP_ADDR_ANY
        flags = RTF_UP | (RTF_HOST if entry.dst.is_host() else 0)
        if gw != IP_ADDR_ANY:
            flags |= RTF_GATEWAY
        name = array.array("B", os.fsencode(dev) + b"\x00")
        buf = _rtentry(_route_dst(entry), gw, entry.dst.bits, flags, name.buffer_info()[0])
        self._ioctl(self._fd, SIOCADDRT, buf)

    def add6(self, entry: RouteEntry, intf_index: int) -> None:
        """Add an IPv6 route on the interface with the given index."""
        _require_ipv6(entry)
        flags = RTF_UP | (RTF_HOST if entry.dst.is_host() else 0)
        gw = entry.gw.data if entry.gw is not None else _IP6_UNSPEC
        if gw != _IP6_UNSPEC:
            flags |= RTF_GATEWAY
        buf = _IN6_RTMSG.pack(
            _route_dst(entry).data, _IP6_UNSPEC, gw, 0, entry.dst.bits, 0, 1, 0, flags, intf_index
        )
        self._ioctl(self._fd6, SIOCADDRT, buf)

    def delete(self, entry: RouteEntry) -> None:
        """Delete an IPv4 route."""
        _require_ipv4(entry, need_gw=False)
        flags = RTF_UP | (RTF_HOST if entry.dst.is_host() else 0)
        self._ioctl(self._fd, SIOCDELRT, _rtentry(_route_dst(entry), IP_ADDR_ANY, entry.dst.bits, flags))

    def delete6(self, entry: RouteEntry, intf_index: int) -> None:
        """Delete an IPv6 route on the interface with the given index."""
        _require_ipv6(entry)
        flags = RTF_UP | (RTF_HOST if entry.dst.is_host() else 0)
        gw = entry.gw.data if entry.gw is not None else _IP6_UNSPEC
        buf = _IN6_RTMSG.pack(
            _route_dst(entry).data, _IP6_UNSPEC, gw, 0, entry.dst.bits, 0, 1, 0, flags, intf_index
        )
        self._ioctl(self._fd6, SIOCDELRT, buf)

    def get(self, entry: RouteEntry) -> RouteEntry:
        """Look up the gateway used to reach entry.dst."""
        seq = next(_getroute_seq) & 0xFFFFFFFF
        self._nl.sendto(build_getroute_request(entry.dst, seq), (0, 0))
        reply = self._nl.recv(512)
        if not reply:
            raise OSError(errno.EIO, "empty netlink reply")
        return RouteEntry(entry.dst, parse_getroute_reply(reply, entry.dst, seq))

    def loop(self) -> Iterator[RouteEntry]:
        """Iterate over IPv4 gateway routes, then all IPv6 routes."""
        return _read_routes(PROC_ROUTE_FILE, PROC_IPV6_ROUTE_FILE)

    def close(self) -> None:
        while self._socks:
            self._socks.pop().close()

    def __enter__(self) -> Route:
        return self

    def __exit__(self, *args) -> None:
        self.close()