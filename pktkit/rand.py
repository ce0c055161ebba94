"""Seedable arc4-style pseudorandom byte generator."""

from __future__ import annotations

import os
import time
from itertools import cycle, islice


class Rand:
    """Pseudorandom generator keyed from a seed or from system entropy."""

    def __init__(self, seed=None) -> None:
        self._s = list(range(256))
        self._i = 0
        self._j = 0
        if seed is None:
            material = time.time_ns().to_bytes(16, "little") + os.urandom(240)
            self._add_random(material[:128])
            self._add_random(material[128:])
        else:
            self.set(seed)

    def _reset(self) -> None:
        self._s = list(range(256))
        self._i = 0
        self._j = 0

    def _add_random(self, data: bytes) -> None:
        if not data:
            raise ValueError("seed data must not be empty")
        s = self._s
        i = (self._i - 1) & 0xFF
        j = self._j
        for key in islice(cycle(data), 256):
            i = (i + 1) & 0xFF
            si = s[i]
            j = (j + si + key) & 0xFF
            s[i] = s[j]
            s[j] = si
        self._i = i
        self._j = i

    def _byte(self) -> int:
        s = self._s
        self._i = (self._i + 1) & 0xFF
        si = s[self._i]
        self._j = (self._j + si) & 0xFF
        sj = s[self._j]
        s[self._i] = sj
        s[self._j] = si
        return s[(si + sj) & 0xFF]

    def get(self, length) -> bytes:
        """Return length pseudorandom bytes."""
        return bytes(self._byte() for _ in range(length))

    def set(self, seed) -> None:
        """Reset the state and key it from seed."""
        data = bytes(seed)
        if not data:
            raise ValueError("seed data must not be empty")
        self._reset()
        self._add_random(data)
        self._add_random(data)

    def add(self, data) -> None:
        """Stir more key material into the current state."""
        self._add_random(bytes(data))

    def uint8(self) -> int:
        return self._byte()

    def uint16(self) -> int:
        return (self._byte() << 8) | self._byte()

    def uint32(self) -> int:
        value = 0
        for _ in range(4):
            value = (value << 8) | self._byte()
        return value

    def shuffle(self, items) -> None:
        """Shuffle a mutable sequence in place."""
        count = len(items)
        if count < 2:
            return
        for i in range(count):
            j = self.uint32() % (count - 1)
            if j != i:
                items[i], items[j] = items[j], items[i]