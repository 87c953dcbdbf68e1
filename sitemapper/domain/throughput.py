from dataclasses import asdict, dataclass


@dataclass(frozen=True)
class ThroughputSettings:
    """Crawl tunables produced by the throughput controller."""

    batch_size: int = 250
    concurrency: int = 4
    inter_batch_delay_ms: int = 500
    use_time_based_throttling: bool = True
    target_batch_duration_ms: int = 2000
    use_chunked_storage: bool = False
    storage_chunk_size: int = 50_000

    def to_dict(self) -> dict:
        return asdict(self)
