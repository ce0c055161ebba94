import errno
import struct
from unittest.mock import patch

import pytest

from pktkit.addr import Addr
from pktkit.ndisc import (
    LINUX_AF_INET,
    LINUX_AF_INET6,
    NDA_DST,
    NDA_LLADDR,
    NLM_F_ACK,
    NLM_F_CREATE,
    NLM_F_EXCL,
    NLM_F_REQUEST,
    NLMSG_ERROR,
    NUD_PERMANENT,
    RTM_DELNEIGH,
    RTM_NEWNEIGH,
    Ndisc,
    NdiscEntry,
    build_neigh_request,
    parse_ack,
)

PA = Addr.from_ipv4("192.0.2.7")
HA = Addr.from_eth("02:00:00:00:00:01")


def _ack(seq, code=0, msg_type=NLMSG_ERROR):
    body = struct.pack("=i", code) + bytes(16)
    return struct.pack("=IHHII", 16 + len(body), msg_type, 0, seq, 0) + body


def test_add_request_layout():
    req = build_neigh_request(NdiscEntry(3, PA, HA), RTM_NEWNEIGH, NLM_F_CREATE | NLM_F_EXCL, 9)
    length, msg_type, flags, seq, _pid = struct.unpack_from("=IHHII", req)
    assert length == len(req)
    assert len(req) % 4 == 0
    assert msg_type == RTM_NEWNEIGH
    assert flags == NLM_F_REQUEST | NLM_F_ACK | NLM_F_CREATE | NLM_F_EXCL
    assert seq == 9
    family, _, _, ifindex, state, _, _ = struct.unpack_from("=BBHiHBB", req, 16)
    assert (family, ifindex, state) == (LINUX_AF_INET, 3, NUD_PERMANENT)
    assert struct.unpack_from("=HH", req, 28) == (8, NDA_DST)
    assert req[32:36] == PA.data
    assert struct.unpack_from("=HH", req, 36) == (10, NDA_LLADDR)
    assert req[40:46] == HA.data


def test_delete_request_has_no_hardware_address():
    req = build_neigh_request(NdiscEntry(3, PA, HA), RTM_DELNEIGH, 0, 1)
    assert struct.unpack_from("=I", req)[0] == len(req)
    assert req.endswith(PA.data)
    assert HA.data not in req


def test_ipv6_request():
    pa = Addr.from_ipv6("2001:db8::7")
    req = build_neigh_request(NdiscEntry(2, pa, HA), RTM_NEWNEIGH, 0, 4)
    assert req[16] == LINUX_AF_INET6
    assert pa.data in req
    assert struct.unpack_from("=I", req)[0] == len(req)


def test_request_errors():
    with pytest.raises(ValueError):
        build_neigh_request(NdiscEntry(1, HA, HA), RTM_DELNEIGH, 0, 1)
    with pytest.raises(ValueError):
        build_neigh_request(NdiscEntry(1, PA), RTM_NEWNEIGH, 0, 1)


def test_parse_ack_success():
    assert parse_ack(_ack(5), 5) is None


def test_parse_ack_kernel_error():
    with pytest.raises(OSError) as info:
        parse_ack(_ack(5, -errno.EEXIST), 5)
    assert info.value.errno == errno.EEXIST


def test_parse_ack_rejects_bad_replies():
    with pytest.raises(ValueError):
        parse_ack(_ack(5), 6)
    with pytest.raises(ValueError):
        parse_ack(b"\x00" * 8, 5)
    with pytest.raises(ValueError):
        parse_ack(_ack(5, msg_type=24), 5)


def test_add_and_delete_through_socket():
    with patch("socket.socket") as factory:
        sock = factory.return_value
        sock.recv.side_effect = [_ack(1), _ack(2, -errno.ENOENT)]
        with Ndisc() as table:
            assert table.add(NdiscEntry(3, PA, HA)) is None
            with pytest.raises(OSError) as info:
                table.delete(NdiscEntry(3, PA))
    assert info.value.errno == errno.ENOENT
    first = sock.sendto.call_args_list[0].args
    assert struct.unpack_from("=HHI", first[0], 4)[2] == 1
    assert first[1] == (0, 0)
    assert sock.close.called


def test_get_and_loop_unsupported():
    with patch("socket.socket"):
        with Ndisc() as table:
            with pytest.raises(OSError) as info:
                table.get(NdiscEntry(1, PA))
            assert info.value.errno == errno.ENOSYS
            with pytest.raises(OSError):
                table.loop()