"""Packet header construction, checksums, pseudorandom numbers and Linux route/neighbour table access."""

__version__ = "0.1.0"