"""IPv4 header constants, option helpers and classful address tests."""

from __future__ import annotations

import ipaddress
import struct
from enum import IntEnum

from pktkit.addr import Addr, AddrType

IP_ADDR_LEN = 4
IP_ADDR_BITS = 32

IP_HDR_LEN = 20
IP_OPT_LEN = 2
IP_OPT_LEN_MAX = 40
IP_HDR_LEN_MAX = IP_HDR_LEN + IP_OPT_LEN_MAX

IP_LEN_MAX = 65535
IP_LEN_MIN = IP_HDR_LEN

# Type of service
IP_TOS_DEFAULT = 0x00
IP_TOS_LOWDELAY = 0x10
IP_TOS_THROUGHPUT = 0x08
IP_TOS_RELIABILITY = 0x04
IP_TOS_LOWCOST = 0x02
IP_TOS_ECT = 0x02
IP_TOS_CE = 0x01

IP_TOS_PREC_ROUTINE = 0x00
IP_TOS_PREC_PRIORITY = 0x20
IP_TOS_PREC_IMMEDIATE = 0x40
IP_TOS_PREC_FLASH = 0x60
IP_TOS_PREC_FLASHOVERRIDE = 0x80
IP_TOS_PREC_CRITIC_ECP = 0xA0
IP_TOS_PREC_INTERNETCONTROL = 0xC0
IP_TOS_PREC_NETCONTROL = 0xE0

# Fragmentation flags
IP_RF = 0x8000
IP_DF = 0x4000
IP_MF = 0x2000
IP_OFFMASK = 0x1FFF

IP_TTL_DEFAULT = 64
IP_TTL_MAX = 255

# Option classes
IP_OPT_CONTROL = 0x00
IP_OPT_DEBMEAS = 0x40
IP_OPT_COPY = 0x80
IP_OPT_RESERVED1 = 0x20
IP_OPT_RESERVED2 = 0x60
IP_OPT_MAX = 25

# Security option values
IP_OPT_SEC_UNCLASS = 0x0000
IP_OPT_SEC_CONFID = 0xF135
IP_OPT_SEC_EFTO = 0x789A
IP_OPT_SEC_MMMM = 0xBC4D
IP_OPT_SEC_PROG = 0x5E26
IP_OPT_SEC_RESTR = 0xAF13
IP_OPT_SEC_SECRET = 0xD788
IP_OPT_SEC_TOPSECRET = 0x6BC5

IP_OPT_TS_TSONLY = 0
IP_OPT_TS_TSADDR = 1
IP_OPT_TS_PRESPEC = 3

# Reserved addresses, in network byte order
IP_ADDR_ANY = b"\x00\x00\x00\x00"
IP_ADDR_BROADCAST = b"\xff\xff\xff\xff"
IP_ADDR_LOOPBACK = b"\x7f\x00\x00\x01"
IP_ADDR_MCAST_ALL = b"\xe0\x00\x00\x01"
IP_ADDR_MCAST_LOCAL = b"\xe0\x00\x00\xff"


class IpProto(IntEnum):
    """IP protocol numbers."""

    IP = 0
    HOPOPTS = 0
    ICMP = 1
    IGMP = 2
    GGP = 3
    IPIP = 4
    ST = 5
    TCP = 6
    CBT = 7
    EGP = 8
    IGP = 9
    BBNRCC = 10
    NVP = 11
    PUP = 12
    ARGUS = 13
    EMCON = 14
    XNET = 15
    CHAOS = 16
    UDP = 17
    MUX = 18
    DCNMEAS = 19
    HMP = 20
    PRM = 21
    IDP = 22
    TRUNK1 = 23
    TRUNK2 = 24
    LEAF1 = 25
    LEAF2 = 26
    RDP = 27
    IRTP = 28
    TP = 29
    NETBLT = 30
    MFPNSP = 31
    MERITINP = 32
    SEP = 33
    PC3 = 34
    IDPR = 35
    XTP = 36
    DDP = 37
    CMTP = 38
    TPPP = 39
    IL = 40
    IPV6 = 41
    SDRP = 42
    ROUTING = 43
    FRAGMENT = 44
    RSVP = 46
    GRE = 47
    MHRP = 48
    ENA = 49
    ESP = 50
    AH = 51
    INLSP = 52
    SWIPE = 53
    NARP = 54
    MOBILE = 55
    TLSP = 56
    SKIP = 57
    ICMPV6 = 58
    NONE = 59
    DSTOPTS = 60
    ANYHOST = 61
    CFTP = 62
    ANYNET = 63
    EXPAK = 64
    KRYPTOLAN = 65
    RVD = 66
    IPPC = 67
    DISTFS = 68
    SATMON = 69
    VISA = 70
    IPCV = 71
    CPNX = 72
    CPHB = 73
    WSN = 74
    PVP = 75
    BRSATMON = 76
    SUNND = 77
    WBMON = 78
    WBEXPAK = 79
    EON = 80
    VMTP = 81
    SVMTP = 82
    VINES = 83
    TTP = 84
    NSFIGP = 85
    DGP = 86
    TCF = 87
    EIGRP = 88
    OSPF = 89
    SPRITERPC = 90
    LARP = 91
    MTP = 92
    AX25 = 93
    IPIPENCAP = 94
    MICP = 95
    SCCSP = 96
    ETHERIP = 97
    ENCAP = 98
    ANYENC = 99
    GMTP = 100
    IFMP = 101
    PNNI = 102
    PIM = 103
    ARIS = 104
    SCPS = 105
    QNX = 106
    AN = 107
    IPCOMP = 108
    SNP = 109
    COMPAQPEER = 110
    IPXIP = 111
    VRRP = 112
    PGM = 113
    ANY0HOP = 114
    L2TP = 115
    DDX = 116
    IATP = 117
    STP = 118
    SRP = 119
    UTI = 120
    SMP = 121
    SM = 122
    PTP = 123
    ISIS = 124
    FIRE = 125
    CRTP = 126
    CRUDP = 127
    SSCOPMCE = 128
    IPLT = 129
    SPS = 130
    PIPE = 131
    SCTP = 132
    FC = 133
    RSVPIGN = 134
    RAW = 255
    RESERVED = 255


class IpOpt(IntEnum):
    """IP option types."""

    EOL = 0
    NOP = 1
    SEC = 2 | IP_OPT_COPY
    LSRR = 3 | IP_OPT_COPY
    TS = 4 | IP_OPT_DEBMEAS
    ESEC = 5 | IP_OPT_COPY
    CIPSO = 6 | IP_OPT_COPY
    RR = 7
    SATID = 8 | IP_OPT_COPY
    SSRR = 9 | IP_OPT_COPY
    ZSU = 10
    MTUP = 11
    MTUR = 12
    FINN = 13 | IP_OPT_COPY | IP_OPT_DEBMEAS
    VISA = 14 | IP_OPT_COPY
    ENCODE = 15
    IMITD = 16 | IP_OPT_COPY
    EIP = 17 | IP_OPT_COPY
    TR = 18 | IP_OPT_DEBMEAS
    ADDEXT = 19 | IP_OPT_COPY
    RTRALT = 20 | IP_OPT_COPY
    SDB = 21 | IP_OPT_COPY
    NSAPA = 22 | IP_OPT_COPY
    DPS = 23 | IP_OPT_COPY
    UMP = 24 | IP_OPT_COPY


def _ipv4_bytes(address) -> bytes:
    if isinstance(address, Addr):
        if address.type is not AddrType.IP:
            raise ValueError("not an IPv4 address")
        return address.data
    if isinstance(address, (bytes, bytearray)):
        if len(address) != IP_ADDR_LEN:
            raise ValueError("IPv4 address needs 4 bytes")
        return bytes(address)
    try:
        return ipaddress.IPv4Address(address).packed
    except ipaddress.AddressValueError as exc:
        raise ValueError(str(exc)) from None


def _ipv4_int(address) -> int:
    return int.from_bytes(_ipv4_bytes(address), "big")


def pack_ip_header(tos, length, ident, off, ttl, proto, src, dst) -> bytes:
    """Return a 20-byte IPv4 header (version 4, no options, zero checksum)."""
    try:
        return struct.pack(
            "!BBHHHBBH4s4s",
            (4 << 4) | 5,
            tos,
            length,
            ident,
            off,
            ttl,
            int(proto),
            0,
            _ipv4_bytes(src),
            _ipv4_bytes(dst),
        )
    except struct.error as exc:
        raise ValueError(str(exc)) from None


def opt_copied(opt_type) -> bool:
    """True if the option is copied into every fragment."""
    return bool(opt_type & 0x80)


def opt_class(opt_type) -> int:
    """Option class bits of an option type."""
    return opt_type & 0x60


def opt_number(opt_type) -> int:
    """Option number bits of an option type."""
    return opt_type & 0x1F


def opt_typeonly(opt_type) -> bool:
    """True for options that consist of the type byte alone."""
    return opt_type in (IpOpt.EOL, IpOpt.NOP)


def is_class_a(address) -> bool:
    return (_ipv4_int(address) & 0x80000000) == 0


def is_class_b(address) -> bool:
    return (_ipv4_int(address) & 0xC0000000) == 0x80000000


def is_class_c(address) -> bool:
    return (_ipv4_int(address) & 0xE0000000) == 0xC0000000


def is_multicast(address) -> bool:
    return (_ipv4_int(address) & 0xF0000000) == 0xE0000000


def is_experimental(address) -> bool:
    return (_ipv4_int(address) & 0xF0000000) == 0xF0000000


def is_local_group(address) -> bool:
    return (_ipv4_int(address) & 0xFFFFFF00) == 0xE0000000