"""Persistence for validation collections.

Small runs are stored as one `validation` blob. Large runs are stored as a
`metadata` record plus a separate `urls` blob holding every result; during
such a run `metadata` carries only the most recent results.
"""
import logging
from collections.abc import Mapping
from typing import Any, Dict, List, Optional

from sitemapper.domain.validation import CollectionStatus, ValidationCollection, ValidationResult
from sitemapper.exceptions import CollectionDecodeError, StorageError
from sitemapper.utils.datetime_utils import parse_to_utc_naive

logger = logging.getLogger(__name__)

VALIDATION_BLOB = "validation"
METADATA_BLOB = "metadata"
URLS_BLOB = "urls"

# Older records used different keys for the same fields.
FIELD_ALIASES: Dict[str, str] = {
    "siteMapId": "sourceId",
    "sourceMapId": "sourceId",
    "urls": "results",
    "validUrls": "validCount",
    "warningUrls": "warningCount",
    "invalidUrls": "invalidCount",
}


def _normalize_status(value: Any) -> Optional[CollectionStatus]:
    if value is None:
        return None
    wanted = str(value).replace("_", "").replace("-", "").lower()
    for status in CollectionStatus:
        if status.value.lower() == wanted:
            return status
    return None


class ValidationRepository:
    def __init__(self, store):
        self._store = store

    def save(self, collection: ValidationCollection) -> bool:
        """Write the full collection as a single blob."""
        try:
            self._store.save(collection.id, VALIDATION_BLOB, collection.to_dict())
            self._store.delete(collection.id, METADATA_BLOB)
            self._store.delete(collection.id, URLS_BLOB)
        except StorageError as e:
            logger.warning("Failed to save validation collection %s: %s", collection.id, e)
            return False
        return True

    def save_snapshot(self, collection: ValidationCollection, *, recent_results: int = 1000) -> bool:
        """Write counters plus the most recent results only."""
        data = collection.to_dict(recent_results=recent_results)
        data["resultsStoredSeparately"] = False
        try:
            self._store.save(collection.id, METADATA_BLOB, data)
        except StorageError as e:
            logger.warning("Failed to save validation snapshot %s: %s", collection.id, e)
            return False
        return True

    def save_split(self, collection: ValidationCollection) -> bool:
        """Write the `metadata` + `urls` pair holding the complete result list."""
        data = collection.to_dict(include_results=False)
        data["resultsStoredSeparately"] = True
        try:
            self._store.save(collection.id, URLS_BLOB, [r.to_dict() for r in collection.results_snapshot()])
            self._store.save(collection.id, METADATA_BLOB, data)
        except StorageError as e:
            logger.warning("Failed to save validation collection %s: %s", collection.id, e)
            return False
        return True

    def list_ids(self) -> List[str]:
        ids = []
        for store_id in self._store.list_ids():
            names = self._store.list_names(store_id)
            if VALIDATION_BLOB in names or METADATA_BLOB in names:
                ids.append(store_id)
        return ids

    def load(self, collection_id: str) -> Optional[ValidationCollection]:
        meta = self._store.load(collection_id, METADATA_BLOB)
        if meta is not None:
            collection = self._decode(collection_id, meta, resave=False)
            if isinstance(meta, Mapping) and meta.get("resultsStoredSeparately"):
                collection.results = self._salvage_results(collection_id, self._store.load(collection_id, URLS_BLOB))
            return collection

        raw = self._store.load(collection_id, VALIDATION_BLOB)
        if raw is None:
            return None
        return self._decode(collection_id, raw, resave=True)

    def _decode(self, collection_id: str, raw: Any, *, resave: bool) -> ValidationCollection:
        try:
            return ValidationCollection.from_dict(raw)
        except CollectionDecodeError as e:
            logger.warning("Strict decode failed for %s (%s); trying field-mapped recovery", collection_id, e.reason)
        collection = self.recover(collection_id, raw)
        if resave and self.save(collection):
            logger.info("Re-saved recovered validation collection %s", collection_id)
        return collection

    def recover(self, collection_id: str, raw: Any) -> ValidationCollection:
        """Rebuild a collection from a raw record written under an older schema."""
        if not isinstance(raw, Mapping):
            raise CollectionDecodeError(collection_id, f"expected an object, got {type(raw).__name__}")

        data: Dict[str, Any] = {}
        for key, value in raw.items():
            canonical = FIELD_ALIASES.get(key, key)
            if canonical in data and canonical != key:
                continue
            data[canonical] = value

        results = self._salvage_results(collection_id, data.get("results"))
        if not results:
            results = self._salvage_results(collection_id, self._store.load(collection_id, URLS_BLOB))

        def counter(key: str, status: str) -> int:
            try:
                return int(data[key])
            except (KeyError, TypeError, ValueError):
                return sum(1 for r in results if r.status.value == status)

        valid = counter("validCount", "Valid")
        warning = counter("warningCount", "Warning")
        invalid = counter("invalidCount", "Error")
        try:
            total = int(data.get("totalUrls"))
        except (TypeError, ValueError):
            total = 0
        total = max(total, valid + warning + invalid, len(results))

        status = _normalize_status(data.get("status"))
        if status is None:
            status = CollectionStatus.COMPLETED if data.get("completedAt") else CollectionStatus.CREATED

        explicit = data.get("explicitUrls")
        collection = ValidationCollection(
            id=str(data.get("id") or collection_id),
            name=str(data.get("name") or collection_id),
            source_id=data.get("sourceId"),
            status=status,
            message=str(data.get("message") or ""),
            total_urls=total,
            valid_count=valid,
            warning_count=warning,
            invalid_count=invalid,
            results=results,
            explicit_urls=[str(u) for u in explicit] if isinstance(explicit, list) else [],
            created_at=parse_to_utc_naive(data.get("createdAt")),
            updated_at=parse_to_utc_naive(data.get("updatedAt")),
            completed_at=parse_to_utc_naive(data.get("completedAt")),
        )
        logger.info("Recovered validation collection %s with %d results", collection_id, len(results))
        return collection

    def _salvage_results(self, collection_id: str, raw: Any) -> List[ValidationResult]:
        if not isinstance(raw, list):
            return []
        results = []
        skipped = 0
        for item in raw:
            try:
                results.append(ValidationResult.from_dict(item))
            except (KeyError, TypeError, ValueError, AttributeError):
                skipped += 1
        if skipped:
            logger.warning("Dropped %d unreadable results while loading %s", skipped, collection_id)
        return results
