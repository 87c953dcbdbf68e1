import logging
import threading
import time
from dataclasses import replace
from typing import Callable, Optional

from sitemapper.domain.settings import EngineSettings
from sitemapper.domain.throughput import ThroughputSettings

logger = logging.getLogger(__name__)

MIN_BATCH_SIZE, MAX_BATCH_SIZE = 50, 500
MIN_CONCURRENCY, MAX_CONCURRENCY = 1, 8
MIN_DELAY_MS, MAX_DELAY_MS = 0, 1000
MIN_TARGET_MS, MAX_TARGET_MS = 1000, 5000


def _clamp(value, low, high):
    return max(low, min(high, value))


def clamp_settings(s: ThroughputSettings) -> ThroughputSettings:
    return replace(
        s,
        batch_size=_clamp(int(s.batch_size), MIN_BATCH_SIZE, MAX_BATCH_SIZE),
        concurrency=_clamp(int(s.concurrency), MIN_CONCURRENCY, MAX_CONCURRENCY),
        inter_batch_delay_ms=_clamp(int(s.inter_batch_delay_ms), MIN_DELAY_MS, MAX_DELAY_MS),
        target_batch_duration_ms=_clamp(int(s.target_batch_duration_ms), MIN_TARGET_MS, MAX_TARGET_MS),
        storage_chunk_size=max(1, int(s.storage_chunk_size)),
    )


class ThroughputController:
    """Adapts crawl batch size, concurrency and pacing to the observed discovery rate.

    Rates are new URLs per second. `adjust()` applies the first matching
    rule: very large and large dataset profiles first, then incremental
    nudges, then periodic housekeeping every tenth adjustment. Results are
    always clamped to the tunable bounds.
    """

    def __init__(self, *, settings: Optional[EngineSettings] = None, initial: Optional[ThroughputSettings] = None,
                 clock: Callable[[], float] = time.monotonic):
        self._engine = settings or EngineSettings()
        self._lock = threading.Lock()
        base = initial or ThroughputSettings(storage_chunk_size=self._engine.storage_chunk_size)
        self._settings = clamp_settings(base)
        self._adjustments = 0
        self._clock = clock
        self._last_summary = clock()

    @property
    def adjustment_count(self) -> int:
        with self._lock:
            return self._adjustments

    def snapshot(self) -> ThroughputSettings:
        with self._lock:
            return self._settings

    def update(self, **values) -> ThroughputSettings:
        """Set tunables at runtime; values are clamped to the same bounds as `adjust()`."""
        with self._lock:
            self._settings = clamp_settings(replace(self._settings, **values))
            return self._settings

    def reset(self, initial: Optional[ThroughputSettings] = None) -> ThroughputSettings:
        with self._lock:
            self._settings = clamp_settings(initial or ThroughputSettings(storage_chunk_size=self._engine.storage_chunk_size))
            self._adjustments = 0
            return self._settings

    def adjust(self, current_rate: float, average_rate: float, total_found: int) -> ThroughputSettings:
        with self._lock:
            self._adjustments += 1
            count = self._adjustments
            s = self._settings
            engine = self._engine

            if total_found > engine.very_large_dataset_threshold:
                s = replace(s, batch_size=500, concurrency=8, inter_batch_delay_ms=0,
                            use_chunked_storage=True, storage_chunk_size=engine.very_large_chunk_size)
                return self._commit(s, "very-large dataset profile", current_rate, average_rate, total_found)
            if total_found > engine.large_dataset_threshold:
                s = replace(s, batch_size=300, concurrency=6, inter_batch_delay_ms=100, use_chunked_storage=True)
                return self._commit(s, "large dataset profile", current_rate, average_rate, total_found)

            if current_rate < 0.5:
                s = replace(
                    s,
                    batch_size=min(500, s.batch_size + 100),
                    inter_batch_delay_ms=max(0, s.inter_batch_delay_ms - 200),
                    target_batch_duration_ms=min(5000, s.target_batch_duration_ms + 1000),
                    concurrency=min(8, s.concurrency + 1),
                )
                reason = "very slow discovery"
            elif current_rate < 1.0:
                s = replace(
                    s,
                    batch_size=min(500, s.batch_size + 50),
                    inter_batch_delay_ms=max(0, s.inter_batch_delay_ms - 100),
                    concurrency=min(6, s.concurrency + 1),
                )
                reason = "slow discovery"
            elif current_rate > 10:
                # fast but small crawls are left alone
                if total_found > 5000:
                    s = replace(
                        s,
                        batch_size=max(50, s.batch_size - 20),
                        inter_batch_delay_ms=min(1000, s.inter_batch_delay_ms + 50),
                        target_batch_duration_ms=max(1000, s.target_batch_duration_ms - 500),
                    )
                reason = "fast discovery"
            elif count > 3 and current_rate < average_rate * 0.8:
                s = replace(
                    s,
                    batch_size=min(300, s.batch_size + 25),
                    inter_batch_delay_ms=max(100, s.inter_batch_delay_ms - 50),
                )
                reason = "below average"
            else:
                reason = "steady"

            if count % 10 == 0:
                if current_rate > 5 and s.batch_size > 200:
                    s = replace(s, batch_size=max(150, s.batch_size - 50))
                if count > 30 and current_rate < 1:
                    s = replace(s, use_time_based_throttling=not s.use_time_based_throttling)
                    logger.info("Time-based throttling %s", "enabled" if s.use_time_based_throttling else "disabled")

            return self._commit(s, reason, current_rate, average_rate, total_found)

    def _commit(self, s: ThroughputSettings, reason: str, current_rate: float, average_rate: float,
                total_found: int) -> ThroughputSettings:
        self._settings = clamp_settings(s)
        logger.debug(
            "Throughput adjustment #%d (%s): rate=%.2f avg=%.2f total=%d -> batch=%d concurrency=%d delay=%dms",
            self._adjustments, reason, current_rate, average_rate, total_found,
            self._settings.batch_size, self._settings.concurrency, self._settings.inter_batch_delay_ms,
        )
        now = self._clock()
        if now - self._last_summary >= self._engine.summary_log_interval_seconds:
            self._last_summary = now
            logger.info(
                "Throughput: %d found, %.2f URLs/s (avg %.2f), batch=%d concurrency=%d delay=%dms chunked=%s",
                total_found, current_rate, average_rate, self._settings.batch_size,
                self._settings.concurrency, self._settings.inter_batch_delay_ms, self._settings.use_chunked_storage,
            )
        return self._settings
