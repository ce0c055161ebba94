"""Sending complete IPv4 packets through a raw socket."""

from __future__ import annotations

import errno
import socket
import struct
import sys

_SNDBUF_STEP = 128
_SNDBUF_LIMIT = 1048576
_IP_HDR_LEN = 20


def _destination(packet: bytes) -> str:
    if len(packet) < _IP_HDR_LEN:
        raise ValueError("packet shorter than an IPv4 header")
    return socket.inet_ntoa(packet[16:20])


def _host_order(packet: bytes) -> bytes:
    """Rewrite ip_len and ip_off from network to host byte order."""
    if len(packet) < _IP_HDR_LEN:
        raise ValueError("packet shorter than an IPv4 header")
    length = struct.unpack_from("!H", packet, 2)[0]
    off = struct.unpack_from("!H", packet, 6)[0]
    out = bytearray(packet)
    struct.pack_into("=H", out, 2, length)
    struct.pack_into("=H", out, 6, off)
    return bytes(out)


class IpSender:
    """Raw socket that sends packets with caller-built IPv4 headers."""

    # Some kernels expect ip_len and ip_off in host byte order on raw sockets.
    host_order_lengths = sys.platform == "darwin"

    def __init__(self) -> None:
        self._sock = socket.socket(socket.AF_INET, socket.SOCK_RAW, socket.IPPROTO_RAW)
        try:
            self._configure()
        except OSError:
            self._sock.close()
            raise

    def _configure(self) -> None:
        sock = self._sock
        if hasattr(socket, "IP_HDRINCL"):
            sock.setsockopt(socket.IPPROTO_IP, socket.IP_HDRINCL, 1)
        size = sock.getsockopt(socket.SOL_SOCKET, socket.SO_SNDBUF) + _SNDBUF_STEP
        while size < _SNDBUF_LIMIT:
            try:
                sock.setsockopt(socket.SOL_SOCKET, socket.SO_SNDBUF, size)
            except OSError as exc:
                if exc.errno == errno.ENOBUFS:
                    break
                raise
            size += _SNDBUF_STEP
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_BROADCAST, 1)

    def send(self, packet) -> int:
        """Send a complete IPv4 packet to its destination address."""
        data = bytes(packet)
        dst = _destination(data)
        if self.host_order_lengths:
            data = _host_order(data)
        return self._sock.sendto(data, (dst, 0))

    def close(self) -> None:
        self._sock.close()

    def __enter__(self) -> IpSender:
        return self

    def __exit__(self, *args) -> None:
        self.close()