"""
Probabilistic "seen before" filter for discovered links.
"""
from __future__ import annotations

import hashlib
import math


class BloomFilter:
    """
    Bloom filter over link strings.

    Sized for ``capacity`` items at the given ``error_rate``. Membership
    checks never miss an added item; they may wrongly report an unseen item
    as present with roughly ``error_rate`` probability once the filter is
    full. Items cannot be removed.
    """

    __slots__ = ("capacity", "error_rate", "num_bits", "num_hashes", "_bits", "_count")

    def __init__(self, capacity: int = 10_000, error_rate: float = 0.01) -> None:
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        if not 0 < error_rate < 1:
            raise ValueError(f"error_rate must be between 0 and 1, got {error_rate}")

        self.capacity = capacity
        self.error_rate = error_rate
        self.num_bits = math.ceil(-capacity * math.log(error_rate) / math.log(2) ** 2)
        self.num_hashes = max(1, round(self.num_bits / capacity * math.log(2)))
        self._bits = bytearray((self.num_bits + 7) // 8)
        self._count = 0

    def __len__(self) -> int:
        """Number of items added (duplicates observed are not counted)."""
        return self._count

    def __contains__(self, item: str) -> bool:
        return all(self._bits[i >> 3] & (1 << (i & 7)) for i in self._positions(item))

    def add(self, item: str) -> None:
        for i in self._positions(item):
            self._bits[i >> 3] |= 1 << (i & 7)
        self._count += 1

    def observe(self, item: str) -> bool:
        """Return True if ``item`` was already seen, otherwise remember it."""
        if item in self:
            return True
        self.add(item)
        return False

    def _positions(self, item: str):
        # Double hashing: h1 + i*h2 over two halves of one digest.
        digest = hashlib.blake2b(item.encode("utf-8"), digest_size=16).digest()
        h1 = int.from_bytes(digest[:8], "big")
        h2 = int.from_bytes(digest[8:], "big") | 1
        return ((h1 + i * h2) % self.num_bits for i in range(self.num_hashes))
