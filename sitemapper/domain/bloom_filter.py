import hashlib
import math


class BloomFilter:
    """Fixed-size probabilistic set membership over a bit array.

    Never reports a false negative; reports false positives at roughly the
    configured rate while the number of inserted items stays within
    `capacity`. Positions are derived by double hashing a single blake2b
    digest.

    Not thread-safe: `add` is a read-modify-write on the bitmap, so
    concurrent writers must hold a lock (DedupIndex does).
    """

    def __init__(self, capacity: int, false_positive_rate: float = 0.01):
        if capacity <= 0:
            raise ValueError("capacity must be > 0")
        if not 0.0 < false_positive_rate < 1.0:
            raise ValueError("false_positive_rate must be between 0 and 1")
        self.capacity = int(capacity)
        self.false_positive_rate = float(false_positive_rate)
        self.num_bits = max(8, int(math.ceil(-self.capacity * math.log(self.false_positive_rate) / (math.log(2) ** 2))))
        self.num_hashes = max(1, int(round(self.num_bits / self.capacity * math.log(2))))
        self._bits = bytearray((self.num_bits + 7) // 8)
        self._count = 0

    def _positions(self, item: str):
        digest = hashlib.blake2b(item.encode("utf-8"), digest_size=16).digest()
        h1 = int.from_bytes(digest[:8], "little")
        h2 = int.from_bytes(digest[8:], "little") | 1
        for i in range(self.num_hashes):
            yield (h1 + i * h2) % self.num_bits

    def add(self, item: str) -> bool:
        """Insert `item`. Returns True if at least one bit was newly set."""
        changed = False
        for pos in self._positions(item):
            byte, mask = pos >> 3, 1 << (pos & 7)
            if not self._bits[byte] & mask:
                self._bits[byte] |= mask
                changed = True
        if changed:
            self._count += 1
        return changed

    def might_contain(self, item: str) -> bool:
        return all(self._bits[pos >> 3] & (1 << (pos & 7)) for pos in self._positions(item))

    __contains__ = might_contain

    @property
    def approximate_count(self) -> int:
        return self._count
