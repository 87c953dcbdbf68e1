import logging
import threading
from typing import Iterable, Optional

from sitemapper.domain.bloom_filter import BloomFilter

logger = logging.getLogger(__name__)

DEFAULT_MIN_CAPACITY = 10_000
DEFAULT_FALSE_POSITIVE_RATE = 0.01
RESUME_FALSE_POSITIVE_RATE = 0.0001


class DedupIndex:
    """
    Answers "have we seen this URL?" for a crawl of up to millions of URLs.

    A Bloom filter screens lookups: a filter miss means the URL is new. The
    exact set is consulted only when the filter claims possible membership,
    so filter false positives are corrected (and counted) instead of
    dropping new URLs. Filter and set are both mutated under one lock.
    """

    def __init__(self, expected_items: int = 0, *, false_positive_rate: float = DEFAULT_FALSE_POSITIVE_RATE,
                 min_capacity: int = DEFAULT_MIN_CAPACITY):
        self._lock = threading.Lock()
        self._exact: set = set()
        self._min_capacity = int(min_capacity)
        self._filter = BloomFilter(max(int(expected_items) * 3, self._min_capacity), false_positive_rate)
        self._false_positives = 0

    def seen(self, url: Optional[str]) -> bool:
        """Return True if `url` was already known; otherwise record it and return False.

        Empty URLs are reported as seen so they are never admitted.
        """
        if not url:
            return True
        with self._lock:
            if self._filter.might_contain(url):
                if url in self._exact:
                    return True
                self._false_positives += 1
            self._exact.add(url)
            self._filter.add(url)
        return False

    def __contains__(self, url) -> bool:
        if not url:
            return False
        with self._lock:
            return url in self._exact

    def __len__(self) -> int:
        with self._lock:
            return len(self._exact)

    def seed(self, urls: Iterable[str], *, rebuild_threshold: int = DEFAULT_MIN_CAPACITY,
             rebuild_false_positive_rate: float = RESUME_FALSE_POSITIVE_RATE) -> bool:
        """Load already-known URLs, e.g. from a resumed project.

        Above `rebuild_threshold` URLs the filter is rebuilt at 3x the known
        count with a lower false-positive rate. Returns True if it was rebuilt.
        """
        with self._lock:
            self._exact.update(u for u in urls if u)
            known = len(self._exact)
            rebuilt = False
            if known > rebuild_threshold:
                self._filter = BloomFilter(known * 3, rebuild_false_positive_rate)
                rebuilt = True
            elif known * 3 > self._filter.capacity:
                self._filter = BloomFilter(max(known * 3, self._min_capacity), self._filter.false_positive_rate)
            # every exact entry must be in the filter, or seen() would miss it
            for url in self._exact:
                self._filter.add(url)
        if rebuilt:
            logger.info(
                "Rebuilt dedup filter for %d known URLs (capacity=%d, fpr=%s)",
                known, self._filter.capacity, rebuild_false_positive_rate,
            )
        return rebuilt

    @property
    def false_positive_rate(self) -> float:
        return self._filter.false_positive_rate

    @property
    def filter_capacity(self) -> int:
        return self._filter.capacity

    def stats(self) -> dict:
        with self._lock:
            count = len(self._exact)
            false_positives = self._false_positives
        return {
            "count": count,
            "filter_capacity": self._filter.capacity,
            "filter_false_positive_rate": self._filter.false_positive_rate,
            "false_positive_corrections": false_positives,
        }
