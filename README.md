# pktkit

Build raw network packets byte by byte, fill in their checksums, and work
with the Linux kernel's routing and neighbour tables. Pure Python, no
dependencies outside the standard library.

## Modules

| Module | What it holds |
| --- | --- |
| `pktkit.addr` | `AddrType` and `Addr`, an Ethernet, IPv4 or IPv6 address with a prefix length |
| `pktkit.eth` | `EthType`, Ethernet constants, `pack_eth_header`, `is_multicast` |
| `pktkit.ip` | `IpProto`, `IpOpt`, IPv4 constants, `pack_ip_header`, option-type helpers, classful address tests |
| `pktkit.ip6` | IPv6 constants, `pack_ip6_header`, `ip6_checksum`, `ip6_add_option`, `ip6_opt_type` |
| `pktkit.tcp` | `TcpFlags`, `TcpState`, `pack_tcp_header`, sequence-number comparisons |
| `pktkit.udp` | `pack_udp_header` |
| `pktkit.sctp` | `ChunkType`, `pack_sctp_header`, `pack_chunk_header`, `pack_init_chunk` |
| `pktkit.icmp` | `IcmpType`, ICMP codes, `is_info_type` and message packers |
| `pktkit.arp` | `ArpOp`, `ArpEntry`, `pack_arp_ethip` |
| `pktkit.checksum` | `cksum_add`, `cksum_carry`, `crc32c`, `ip_checksum`, `ip_add_option` |
| `pktkit.rand` | `Rand`, a seedable RC4-style pseudorandom generator |
| `pktkit.route` | `RouteEntry`, `Route`, and parsers/builders for `/proc` and netlink data |
| `pktkit.ndisc` | `NdiscEntry`, `Ndisc`, and the netlink request builder / ack parser |
| `pktkit.rawip` | `IpSender`, a raw socket for sending complete IPv4 packets |

## Addresses

`Addr` is a frozen dataclass with `type`, `bits` and `data` (the address in
network byte order).

```python
from pktkit.addr import Addr

net = Addr.from_ipv4("192.0.2.77/24")
str(net)              # '192.0.2.77/24'
str(net.network())    # '192.0.2.0/24'
net.is_host()         # False

Addr.from_ipv6("2001:db8::1").bits      # 128
str(Addr.from_eth("02-00-00-00-00-01")) # '02:00:00:00:00:01'
```

`from_ipv4` and `from_ipv6` take text (with an optional `/n`), raw bytes or
an integer; `from_eth` takes colon- or dash-separated text or six bytes.
Malformed input raises `ValueError`.

## Building packets

Every `pack_*` function returns `bytes` in network byte order, with checksum
fields left at zero. Address arguments accept an `Addr` or anything the
matching `Addr.from_*` accepts. Out-of-range field values raise `ValueError`.

```python
from pktkit.addr import Addr
from pktkit.checksum import ip_checksum
from pktkit.ip import IpProto, pack_ip_header
from pktkit.udp import pack_udp_header

src = Addr.from_ipv4("192.0.2.1")
dst = Addr.from_ipv4("192.0.2.2")
payload = b"hello"
udp = pack_udp_header(1234, 53, 8 + len(payload)) + payload
ip = pack_ip_header(0, 20 + len(udp), 1, 0, 64, IpProto.UDP, src, dst)
packet = ip_checksum(ip + udp)
```

Other packers: `pack_eth_header(dst, src, eth_type)`,
`pack_ip6_header(traffic_class, flow_label, payload_len, next_header,
hop_limit, src, dst)`, `pack_tcp_header(sport, dport, seq, ack, flags, win,
urp)` (data offset 5), `pack_sctp_header`, `pack_chunk_header`,
`pack_init_chunk`, the ICMP helpers `pack_icmp_header`, `pack_echo`,
`pack_quote`, `pack_mask`, `pack_needfrag`, and `pack_arp_ethip(op, sha,
spa, tha, tpa)` for a 28-byte Ethernet/IPv4 ARP message.

`pktkit.tcp.seq_lt`, `seq_leq`, `seq_gt` and `seq_geq` compare sequence
numbers modulo 2**32.

## Checksums and options

- `ip_checksum(packet)` returns a copy of an IPv4 packet with the header
  checksum filled in and, for unfragmented packets, the TCP, UDP, ICMP or
  IGMP checksum or the SCTP CRC-32C. A UDP checksum that comes out as zero is
  written as `0xffff`. Packets shorter than an IPv4 header come back
  unchanged.
- `ip6_checksum(packet)` does the same for the upper-layer header of an IPv6
  packet, stepping over hop-by-hop, destination, routing and fragment
  extension headers; ICMPv6 is included.
- `cksum_add(data, cksum=0)` and `cksum_carry(value)` are the building
  blocks of the 16-bit ones' complement sum; `crc32c(data)` is the plain
  CRC-32C.
- `ip_add_option(packet, size, proto, option)` inserts an option into the IP
  header (`proto=IpProto.IP`) or the TCP header (`proto=IpProto.TCP`),
  padding with NOPs in front to a 4-byte boundary and updating the header
  length and total length. `size` is the largest total length the packet may
  reach. It raises `ValueError` if the option would not fit. EOL and NOP
  options are inserted as a single byte.
- `ip6_add_option(packet, size, proto, option)` inserts a TCP option in an
  IPv6 packet whose TCP header follows the fixed header directly, updating
  the payload length.

Checksums are not recomputed by the option functions; call `ip_checksum` or
`ip6_checksum` afterwards.

## Pseudo-random numbers

```python
from pktkit.rand import Rand

r = Rand(b"seed")          # deterministic; Rand() seeds from os.urandom and the clock
r.get(8)                   # 8 bytes
r.uint8(), r.uint16(), r.uint32()
r.add(b"more")             # stir extra key material in
r.set(b"seed")             # reset and rekey
items = [1, 2, 3, 4]
r.shuffle(items)           # in place
```

Empty seed data raises `ValueError`. `Rand` is meant for packet fields such
as IDs and ports, not for cryptography, and `shuffle` does not produce a
uniformly distributed permutation.

## Routing table (Linux)

```python
from pktkit.addr import Addr
from pktkit.route import Route, RouteEntry

with Route() as routes:
    for entry in routes.loop():
        print(entry.dst, "via", entry.gw)
    found = routes.get(RouteEntry(Addr.from_ipv4("198.51.100.7")))
    print(found.gw)
```

- `loop()` yields IPv4 routes that are up and have a gateway (from
  `/proc/net/route`), then every IPv6 route (from `/proc/net/ipv6_route`).
- `get(entry)` asks the kernel over netlink which gateway reaches
  `entry.dst` and returns a new `RouteEntry`; it raises `LookupError` when
  the route has no gateway and `OSError` when the kernel reports an error.
- `add(entry)` (gateway required), `add_dev(entry, dev)`, `delete(entry)`
  change IPv4 routes; `add6(entry, intf_index)` and
  `delete6(entry, intf_index)` change IPv6 routes. They raise `OSError` on
  failure and `ValueError` for addresses of the wrong family.

The parsing helpers `parse_ipv4_routes(lines)`, `parse_ipv6_routes(lines)`,
`build_getroute_request(dst, seq)` and `parse_getroute_reply(reply, dst,
seq)` work on plain data and can be used without a `Route` handle.

## Neighbour table (Linux)

```python
from pktkit.addr import Addr
from pktkit.ndisc import Ndisc, NdiscEntry

entry = NdiscEntry(2, Addr.from_ipv6("2001:db8::5"), Addr.from_eth("02:00:00:00:00:05"))
with Ndisc() as table:
    table.add(entry)       # permanent entry; fails if one exists
    table.delete(entry)
```

`Ndisc.get` and `Ndisc.loop` are not supported and raise `OSError` with
`ENOSYS`. `build_neigh_request` and `parse_ack` build and check the netlink
messages on their own.

## Sending raw IPv4

```python
from pktkit.rawip import IpSender

with IpSender() as sender:
    sender.send(packet)    # sent to the destination in the packet's header
```

Changing routes or neighbours and opening a raw socket need the matching
privileges (usually root, `CAP_NET_ADMIN` or `CAP_NET_RAW`). On systems
without netlink, `Route()` and `Ndisc()` raise `OSError` with `ENOSYS`.

## What it does not do

pktkit has no command-line tool. It does not read or change the ARP cache
(`ArpEntry` is only a data holder), configure network interfaces, manage
firewall rules, open tunnel devices or send Ethernet frames; nor does it
parse received packets back into fields.

## Running the tests

```
pip install -e .[test]
pytest
```