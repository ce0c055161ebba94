"""Network addresses tagged with a type and a prefix length."""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass
from enum import IntEnum


class AddrType(IntEnum):
    """Kind of address held by an :class:`Addr`."""

    NONE = 0
    ETH = 1
    IP = 2
    IP6 = 3


_DATA_LEN = {AddrType.NONE: 0, AddrType.ETH: 6, AddrType.IP: 4, AddrType.IP6: 16}
_MAX_BITS = {AddrType.NONE: 0, AddrType.ETH: 48, AddrType.IP: 32, AddrType.IP6: 128}


def _split_prefix(text: str, bits: int | None) -> tuple[str, int | None]:
    if "/" in text:
        host, _, prefix = text.partition("/")
        try:
            parsed = int(prefix)
        except ValueError:
            raise ValueError(f"invalid prefix length in {text!r}") from None
        return host, parsed if bits is None else bits
    return text, bits


@dataclass(frozen=True)
class Addr:
    """An Ethernet, IPv4 or IPv6 address with a prefix length in bits."""

    type: AddrType
    bits: int
    data: bytes

    def __post_init__(self) -> None:
        object.__setattr__(self, "type", AddrType(self.type))
        object.__setattr__(self, "data", bytes(self.data))
        if len(self.data) != _DATA_LEN[self.type]:
            raise ValueError(
                f"{self.type.name} address needs {_DATA_LEN[self.type]} bytes, "
                f"got {len(self.data)}"
            )
        if not 0 <= self.bits <= _MAX_BITS[self.type]:
            raise ValueError(f"prefix length {self.bits} out of range for {self.type.name}")

    @classmethod
    def from_ipv4(cls, value, bits=None) -> Addr:
        """Build an IPv4 address from text (optionally "a.b.c.d/n"), bytes or int."""
        if isinstance(value, Addr):
            if value.type is not AddrType.IP:
                raise ValueError("not an IPv4 address")
            return cls(AddrType.IP, value.bits if bits is None else bits, value.data)
        if isinstance(value, str):
            value, bits = _split_prefix(value, bits)
        if isinstance(value, (bytes, bytearray)):
            if len(value) != 4:
                raise ValueError("IPv4 address needs 4 bytes")
            data = bytes(value)
        else:
            try:
                data = ipaddress.IPv4Address(value).packed
            except ipaddress.AddressValueError as exc:
                raise ValueError(str(exc)) from None
        return cls(AddrType.IP, 32 if bits is None else bits, data)

    @classmethod
    def from_ipv6(cls, value, bits=None) -> Addr:
        """Build an IPv6 address from text (optionally "addr/n"), bytes or int."""
        if isinstance(value, Addr):
            if value.type is not AddrType.IP6:
                raise ValueError("not an IPv6 address")
            return cls(AddrType.IP6, value.bits if bits is None else bits, value.data)
        if isinstance(value, str):
            value, bits = _split_prefix(value, bits)
        if isinstance(value, (bytes, bytearray)):
            if len(value) != 16:
                raise ValueError("IPv6 address needs 16 bytes")
            data = bytes(value)
        else:
            try:
                data = ipaddress.IPv6Address(value).packed
            except ipaddress.AddressValueError as exc:
                raise ValueError(str(exc)) from None
        return cls(AddrType.IP6, 128 if bits is None else bits, data)

    @classmethod
    def from_eth(cls, value) -> Addr:
        """Build an Ethernet address from "xx:xx:xx:xx:xx:xx" text or 6 bytes."""
        if isinstance(value, str):
            parts = value.replace("-", ":").split(":")
            if len(parts) != 6:
                raise ValueError(f"invalid Ethernet address {value!r}")
            try:
                octets = [int(part, 16) for part in parts]
            except ValueError:
                raise ValueError(f"invalid Ethernet address {value!r}") from None
            if any(not 0 <= octet <= 0xFF or not part for octet, part in zip(octets, parts)):
                raise ValueError(f"invalid Ethernet address {value!r}")
            data = bytes(octets)
        else:
            data = bytes(value)
            if len(data) != 6:
                raise ValueError("Ethernet address needs 6 bytes")
        return cls(AddrType.ETH, 48, data)

    def is_host(self) -> bool:
        """True for an IPv4 /32 or IPv6 /128 address."""
        return (self.type is AddrType.IP and self.bits == 32) or (
            self.type is AddrType.IP6 and self.bits == 128
        )

    def network(self) -> Addr:
        """Return the address with all host bits cleared."""
        if self.type not in (AddrType.IP, AddrType.IP6):
            raise ValueError(f"no network for a {self.type.name} address")
        width = _MAX_BITS[self.type]
        mask = ((1 << width) - 1) ^ ((1 << (width - self.bits)) - 1)
        value = int.from_bytes(self.data, "big") & mask
        return Addr(self.type, self.bits, value.to_bytes(len(self.data), "big"))

    def __bytes__(self) -> bytes:
        return self.data

    def __str__(self) -> str:
        if self.type is AddrType.ETH:
            return ":".join(f"{octet:02x}" for octet in self.data)
        if self.type is AddrType.IP:
            text = str(ipaddress.IPv4Address(self.data))
            return text if self.bits == 32 else f"{text}/{self.bits}"
        if self.type is AddrType.IP6:
            text = str(ipaddress.IPv6Address(self.data))
            return text if self.bits == 128 else f"{text}/{self.bits}"
        return ""