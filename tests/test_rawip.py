import errno
import socket
import struct
from unittest.mock import patch

import pytest

from pktkit.ip import pack_ip_header
from pktkit.rawip import IpSender, _destination, _host_order

PACKET = pack_ip_header(0, 28, 1, 0, 64, 17, "10.0.0.1", "10.0.0.2") + bytes(8)


def _sndbuf_calls(sock):
    return [
        c.args[2]
        for c in sock.setsockopt.call_args_list
        if c.args[:2] == (socket.SOL_SOCKET, socket.SO_SNDBUF)
    ]


def test_destination_of_packet():
    assert _destination(PACKET) == "10.0.0.2"


def test_short_packet_rejected():
    with pytest.raises(ValueError):
        _destination(PACKET[:10])
    with pytest.raises(ValueError):
        _host_order(PACKET[:10])


def test_host_order_keeps_values():
    converted = _host_order(PACKET)
    assert struct.unpack_from("=H", converted, 2)[0] == 28
    assert struct.unpack_from("=H", converted, 6)[0] == 0
    assert converted[8:] == PACKET[8:]


def test_send_uses_packet_destination():
    with patch("socket.socket") as factory:
        sock = factory.return_value
        sock.getsockopt.return_value = 1048576 - 256
        sock.sendto.return_value = len(PACKET)
        with IpSender() as sender:
            sender.host_order_lengths = False
            assert sender.send(PACKET) == len(PACKET)
    sock.sendto.assert_called_once_with(PACKET, ("10.0.0.2", 0))
    assert sock.close.called


def test_send_buffer_grows_in_steps():
    with patch("socket.socket") as factory:
        sock = factory.return_value
        sock.getsockopt.return_value = 1048576 - 300
        sock.sendto.return_value = len(PACKET)
        with IpSender() as sender:
            sender.host_order_lengths = False
            assert sender.send(PACKET) == len(PACKET)
    sizes = _sndbuf_calls(sock)
    assert sizes == [1048576 - 172, 1048576 - 44]
    sock.setsockopt.assert_any_call(socket.SOL_SOCKET, socket.SO_BROADCAST, 1)


def test_enobufs_stops_growth():
    def refuse(level, name, value):
        if name == socket.SO_SNDBUF:
            raise OSError(errno.ENOBUFS, "no buffers")

    with patch("socket.socket") as factory:
        sock = factory.return_value
        sock.getsockopt.return_value = 4096
        sock.setsockopt.side_effect = refuse
        sock.sendto.return_value = len(PACKET)
        with IpSender() as sender:
            sender.host_order_lengths = False
            assert sender.send(PACKET) == len(PACKET)
    assert len(_sndbuf_calls(sock)) == 1


def test_other_errors_close_socket():
    def refuse(level, name, value):
        if name == socket.SO_SNDBUF:
            raise OSError(errno.EPERM, "denied")

    with patch("socket.socket") as factory:
        sock = factory.return_value
        sock.getsockopt.return_value = 4096
        sock.setsockopt.side_effect = refuse
        with pytest.raises(PermissionError):
            IpSender()
    assert sock.close.called


def test_host_order_send():
    with patch("socket.socket") as factory:
        sock = factory.return_value
        sock.getsockopt.return_value = 1048576
        sock.sendto.return_value = len(PACKET)
        sender = IpSender()
        sender.host_order_lengths = True
        result = sender.send(PACKET)
        sender.close()
    assert result == len(PACKET)
    sent = sock.sendto.call_args.args[0]
    assert struct.unpack_from("=H", sent, 2)[0] == 28