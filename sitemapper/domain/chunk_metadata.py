from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping

from sitemapper.utils.datetime_utils import parse_to_utc_naive, to_iso, utc_now


@dataclass(frozen=True)
class ChunkMetadata:
    """Describes a result set stored as numbered chunk blobs.

    Recomputed on every full rewrite; its absence means single-blob storage.
    """

    total_chunks: int
    total_results: int
    chunk_size: int
    last_updated: datetime
    deduplicated: bool = True

    def to_dict(self) -> dict:
        return {
            "totalChunks": self.total_chunks,
            "totalResults": self.total_results,
            "chunkSize": self.chunk_size,
            "lastUpdated": to_iso(self.last_updated),
            "deduplicated": self.deduplicated,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ChunkMetadata":
        return cls(
            total_chunks=int(data["totalChunks"]),
            total_results=int(data.get("totalResults", 0)),
            chunk_size=int(data.get("chunkSize", 0)),
            last_updated=parse_to_utc_naive(data.get("lastUpdated")) or utc_now(),
            deduplicated=bool(data.get("deduplicated", False)),
        )
