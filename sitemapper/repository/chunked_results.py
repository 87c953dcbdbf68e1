import logging
import math
import re
from typing import Iterable, List, Optional, Tuple

from sitemapper.domain.chunk_metadata import ChunkMetadata
from sitemapper.domain.crawl_result import CrawlResult
from sitemapper.exceptions import IncompleteResultsError, StorageError
from sitemapper.utils.datetime_utils import utc_now

logger = logging.getLogger(__name__)

CRAWL_BLOB = "crawl"
METADATA_BLOB = "crawl_metadata"
CHUNK_PREFIX = "crawl_chunk"
_CHUNK_NAME = re.compile(r"^crawl_chunk(\d+)$")


def chunk_name(index: int) -> str:
    return f"{CHUNK_PREFIX}{index}"


def dedupe_results(results: Iterable[CrawlResult]) -> Tuple[List[CrawlResult], int]:
    """Drop repeated URLs, keeping the first occurrence. Returns (unique, removed)."""
    seen = set()
    unique: List[CrawlResult] = []
    removed = 0
    for r in results:
        if r.url in seen:
            removed += 1
            continue
        seen.add(r.url)
        unique.append(r)
    return unique, removed


class ChunkedResultStore:
    """Persists a project's crawl results as one blob or as numbered chunks.

    Sets at or below `chunk_size` are written as a single `crawl` blob;
    larger sets are split into `crawl_chunk{N}` blobs followed by a
    `crawl_metadata` record, which is written last.
    """

    def __init__(self, store, *, chunk_size: int = 50_000):
        if chunk_size <= 0:
            raise ValueError("chunk_size must be > 0")
        self._store = store
        self.chunk_size = int(chunk_size)

    def save_set(self, results: Iterable[CrawlResult], project_id: str, *, chunk_size: Optional[int] = None) -> bool:
        size = max(1, int(chunk_size or self.chunk_size))
        unique, removed = dedupe_results(results)
        if removed:
            logger.info("Removed %d duplicate results before saving %s", removed, project_id)
        try:
            if len(unique) <= size:
                self._store.save(project_id, CRAWL_BLOB, [r.to_dict() for r in unique])
                self._store.delete(project_id, METADATA_BLOB)
                self._remove_chunks_from(project_id, 0)
            else:
                total_chunks = math.ceil(len(unique) / size)
                for index in range(total_chunks):
                    chunk = unique[index * size:(index + 1) * size]
                    self._store.save(project_id, chunk_name(index), [r.to_dict() for r in chunk])
                metadata = ChunkMetadata(
                    total_chunks=total_chunks,
                    total_results=len(unique),
                    chunk_size=size,
                    last_updated=utc_now(),
                    deduplicated=True,
                )
                self._store.save(project_id, METADATA_BLOB, metadata.to_dict())
                self._remove_chunks_from(project_id, total_chunks)
                self._store.delete(project_id, CRAWL_BLOB)
                logger.info("Saved %d results for %s in %d chunks", len(unique), project_id, total_chunks)
        except StorageError as e:
            logger.warning("Failed to save results for %s: %s", project_id, e)
            return False
        return True

    def load_set(self, project_id: str, *, strict: bool = False) -> List[CrawlResult]:
        """Return the full deduplicated result set.

        Missing or unreadable chunks are skipped with a warning. With `strict`,
        they raise IncompleteResultsError instead, so a caller that rewrites
        the set never replaces stored data it could not read.
        """
        try:
            metadata = self.load_metadata(project_id)
            if metadata is None:
                metadata = self._backfill_metadata(project_id)
            if metadata is not None:
                results, unreadable = self._load_chunked(project_id, metadata)
                if unreadable and strict:
                    raise IncompleteResultsError(project_id, f"chunks {unreadable} could not be read")
                return results

            raw = self._store.load(project_id, CRAWL_BLOB)
        except StorageError as e:
            if strict:
                raise IncompleteResultsError(project_id, str(e)) from e
            logger.warning("Failed to load results for %s: %s", project_id, e)
            return []
        if raw is None:
            return []
        results, _ = dedupe_results(self._decode(project_id, raw))
        if len(results) > self.chunk_size:
            logger.info("Migrating %d results for %s to chunked storage", len(results), project_id)
            self.save_set(results, project_id)
        return results

    def load_metadata(self, project_id: str) -> Optional[ChunkMetadata]:
        raw = self._store.load(project_id, METADATA_BLOB)
        if raw is None:
            return None
        try:
            return ChunkMetadata.from_dict(raw)
        except (KeyError, TypeError, ValueError):
            logger.warning("Ignoring unreadable chunk metadata for %s", project_id)
            return None

    def save_chunk(self, project_id: str, index: int, results: Iterable[CrawlResult]) -> bool:
        """Write one chunk and keep the metadata totals in step.

        A set still stored as a single `crawl` blob is first moved to
        `crawl_chunk0`, the chunk `load_chunk(id, 0)` already reads it as, so
        index 0 replaces it and index 1 extends it. An index past the end
        would leave a gap and is rejected.
        """
        if index < 0:
            raise ValueError("chunk index must be >= 0")
        chunk = list(results)
        try:
            metadata = (
                self.load_metadata(project_id)
                or self._backfill_metadata(project_id)
                or self._migrate_single_blob(project_id)
            )
            total_chunks = metadata.total_chunks if metadata else 0
            if index > total_chunks:
                raise ValueError(f"chunk {index} would leave a gap after {total_chunks} chunks")
            replaced = 0
            if index < total_chunks:
                replaced = len(self._store.load(project_id, chunk_name(index)) or [])
            self._store.save(project_id, chunk_name(index), [r.to_dict() for r in chunk])
            self._store.save(project_id, METADATA_BLOB, ChunkMetadata(
                total_chunks=max(total_chunks, index + 1),
                total_results=(metadata.total_results if metadata else 0) - replaced + len(chunk),
                chunk_size=metadata.chunk_size if metadata else self.chunk_size,
                last_updated=utc_now(),
                deduplicated=False,
            ).to_dict())
        except StorageError as e:
            logger.warning("Failed to save chunk %d for %s: %s", index, project_id, e)
            return False
        return True

    def load_chunk(self, project_id: str, index: int) -> List[CrawlResult]:
        """Return one chunk; an out-of-range index yields an empty list."""
        if index < 0:
            return []
        try:
            metadata = self.load_metadata(project_id)
            if metadata is None:
                if index != 0:
                    return []
                raw = self._store.load(project_id, CRAWL_BLOB)
            elif index >= metadata.total_chunks:
                return []
            else:
                raw = self._store.load(project_id, chunk_name(index))
        except StorageError as e:
            logger.warning("Failed to load chunk %d for %s: %s", index, project_id, e)
            return []
        return self._decode(project_id, raw) if raw is not None else []

    def count(self, project_id: str) -> int:
        metadata = self.load_metadata(project_id)
        if metadata is not None:
            return metadata.total_results
        return len(self.load_set(project_id))

    def _load_chunked(self, project_id: str, metadata: ChunkMetadata) -> Tuple[List[CrawlResult], List[int]]:
        """Merge all chunks; returns (results, indexes of chunks that could not be read)."""
        seen = set()
        merged: List[CrawlResult] = []
        unreadable: List[int] = []
        for index in range(metadata.total_chunks):
            try:
                raw = self._store.load(project_id, chunk_name(index))
            except StorageError as e:
                logger.warning("Unreadable chunk %d of %d for %s: %s", index, metadata.total_chunks, project_id, e)
                unreadable.append(index)
                continue
            if raw is None:
                logger.warning("Missing chunk %d of %d for %s", index, metadata.total_chunks, project_id)
                unreadable.append(index)
                continue
            for r in self._decode(project_id, raw):
                if r.url not in seen:
                    seen.add(r.url)
                    merged.append(r)
        logger.debug("Loaded %d results for %s from %d chunks", len(merged), project_id, metadata.total_chunks)
        return merged, unreadable

    def _migrate_single_blob(self, project_id: str) -> Optional[ChunkMetadata]:
        raw = self._store.load(project_id, CRAWL_BLOB)
        if raw is None:
            return None
        results, _ = dedupe_results(self._decode(project_id, raw))
        self._store.save(project_id, chunk_name(0), [r.to_dict() for r in results])
        metadata = ChunkMetadata(
            total_chunks=1,
            total_results=len(results),
            chunk_size=max(self.chunk_size, len(results)),
            last_updated=utc_now(),
            deduplicated=True,
        )
        self._store.save(project_id, METADATA_BLOB, metadata.to_dict())
        self._store.delete(project_id, CRAWL_BLOB)
        logger.info("Moved %d results for %s from the single blob into chunk 0", len(results), project_id)
        return metadata

    def _chunk_indexes(self, project_id: str) -> List[int]:
        indexes = []
        for name in self._store.list_names(project_id):
            m = _CHUNK_NAME.match(name)
            if m:
                indexes.append(int(m.group(1)))
        return sorted(indexes)

    def _backfill_metadata(self, project_id: str) -> Optional[ChunkMetadata]:
        indexes = self._chunk_indexes(project_id)
        if not indexes:
            return None
        total_chunks = indexes[-1] + 1
        total = 0
        largest = 0
        for index in indexes:
            size = len(self._store.load(project_id, chunk_name(index)) or [])
            total += size
            largest = max(largest, size)
        metadata = ChunkMetadata(
            total_chunks=total_chunks,
            total_results=total,
            chunk_size=largest or self.chunk_size,
            last_updated=utc_now(),
            deduplicated=False,
        )
        logger.info("Backfilled chunk metadata for %s (%d chunks)", project_id, total_chunks)
        self._store.save(project_id, METADATA_BLOB, metadata.to_dict())
        return metadata

    def _remove_chunks_from(self, project_id: str, first_stale: int) -> None:
        for index in self._chunk_indexes(project_id):
            if index >= first_stale:
                self._store.delete(project_id, chunk_name(index))

    def _decode(self, project_id: str, raw) -> List[CrawlResult]:
        if not isinstance(raw, list):
            logger.warning("Unexpected result blob type for %s: %s", project_id, type(raw).__name__)
            return []
        results = []
        skipped = 0
        for item in raw:
            try:
                results.append(CrawlResult.from_dict(item))
            except (KeyError, TypeError, ValueError):
                skipped += 1
        if skipped:
            logger.warning("Skipped %d unreadable results for %s", skipped, project_id)
        return results
