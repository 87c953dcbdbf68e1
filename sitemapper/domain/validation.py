"""Validation collection and per-URL validation result models."""
from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from sitemapper.exceptions import CollectionDecodeError
from sitemapper.utils.datetime_utils import parse_to_utc_naive, to_iso, utc_now


class ValidationStatus(str, Enum):
    VALID = "Valid"
    WARNING = "Warning"
    ERROR = "Error"
    CANCELED = "Canceled"


class CollectionStatus(str, Enum):
    CREATED = "Created"
    IN_PROGRESS = "InProgress"
    COMPLETED = "Completed"
    STOPPED = "Stopped"
    ERROR = "Error"


@dataclass(frozen=True)
class ValidationResult:
    url: str
    status: ValidationStatus
    message: str
    asset_type: str = "unknown"
    url_name: str = ""
    status_code: Optional[int] = None
    content_type: Optional[str] = None
    metadata: Dict[str, str] = field(default_factory=dict)
    validated_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> dict:
        return {
            "url": self.url,
            "status": self.status.value,
            "message": self.message,
            "assetType": self.asset_type,
            "urlName": self.url_name,
            "statusCode": self.status_code,
            "contentType": self.content_type,
            "metadata": dict(self.metadata),
            "validatedAt": to_iso(self.validated_at),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ValidationResult":
        status_code = data.get("statusCode")
        return cls(
            url=str(data["url"]),
            status=ValidationStatus(data["status"]),
            message=str(data.get("message") or ""),
            asset_type=str(data.get("assetType") or "unknown"),
            url_name=str(data.get("urlName") or ""),
            status_code=int(status_code) if status_code is not None else None,
            content_type=data.get("contentType"),
            metadata={str(k): str(v) for k, v in (data.get("metadata") or {}).items()},
            validated_at=parse_to_utc_naive(data.get("validatedAt")) or utc_now(),
        )


_COUNTER_FOR_STATUS = {
    ValidationStatus.VALID: "valid_count",
    ValidationStatus.WARNING: "warning_count",
    ValidationStatus.ERROR: "invalid_count",
}


class ValidationCollection:
    """A validation run's durable record.

    Results are append-only and counters never decrease. All mutation goes
    through `record()` / `mark()`, which hold the collection lock so a
    counter increment and its result append are observed together.
    """

    def __init__(
        self,
        id: str,
        name: str,
        source_id: Optional[str],
        *,
        status: CollectionStatus = CollectionStatus.CREATED,
        message: str = "",
        total_urls: int = 0,
        valid_count: int = 0,
        warning_count: int = 0,
        invalid_count: int = 0,
        results: Optional[List[ValidationResult]] = None,
        explicit_urls: Optional[List[str]] = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
        completed_at: Optional[datetime] = None,
    ):
        self._lock = threading.Lock()
        self.id = id
        self.name = name
        self.source_id = source_id
        self.status = status
        self.message = message
        self.total_urls = total_urls
        self.valid_count = valid_count
        self.warning_count = warning_count
        self.invalid_count = invalid_count
        self.results: List[ValidationResult] = list(results or [])
        self.explicit_urls: List[str] = list(explicit_urls or [])
        self.created_at = created_at or utc_now()
        self.updated_at = updated_at or self.created_at
        self.completed_at = completed_at

    def __repr__(self):
        return f"<ValidationCollection id={self.id} status={self.status.value} results={len(self.results)}/{self.total_urls}>"

    @property
    def validated_count(self) -> int:
        return self.valid_count + self.warning_count + self.invalid_count

    def record(self, result: ValidationResult) -> int:
        """Append a completed result and bump its counter. Returns the validated count."""
        counter = _COUNTER_FOR_STATUS.get(result.status)
        with self._lock:
            if counter is None:
                return self.validated_count
            self.results.append(result)
            setattr(self, counter, getattr(self, counter) + 1)
            self.updated_at = utc_now()
            return self.validated_count

    def mark(self, status: CollectionStatus, message: Optional[str] = None, *, completed: bool = False) -> None:
        with self._lock:
            self.status = status
            if message is not None:
                self.message = message
            now = utc_now()
            self.updated_at = now
            if completed:
                self.completed_at = now

    def begin(self, total_urls: int) -> None:
        """Reset for a fresh run over `total_urls` URLs."""
        with self._lock:
            self.total_urls = total_urls
            self.valid_count = self.warning_count = self.invalid_count = 0
            self.results = []
            self.status = CollectionStatus.IN_PROGRESS
            self.message = f"Validating {total_urls} URLs"
            self.completed_at = None
            self.updated_at = utc_now()

    def to_dict(self, *, include_results: bool = True, recent_results: Optional[int] = None) -> dict:
        with self._lock:
            if not include_results:
                results = []
            elif recent_results is not None:
                results = self.results[-recent_results:] if recent_results > 0 else []
            else:
                results = list(self.results)
            return {
                "id": self.id,
                "name": self.name,
                "sourceId": self.source_id,
                "status": self.status.value,
                "message": self.message,
                "totalUrls": self.total_urls,
                "validCount": self.valid_count,
                "warningCount": self.warning_count,
                "invalidCount": self.invalid_count,
                "explicitUrls": list(self.explicit_urls),
                "createdAt": to_iso(self.created_at),
                "updatedAt": to_iso(self.updated_at),
                "completedAt": to_iso(self.completed_at),
                "results": [r.to_dict() for r in results],
            }

    def results_snapshot(self) -> List[ValidationResult]:
        with self._lock:
            return list(self.results)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ValidationCollection":
        """Strict decode of the current schema; raises CollectionDecodeError on any mismatch."""
        collection_id = str(data.get("id", "?")) if isinstance(data, Mapping) else "?"
        try:
            return cls(
                id=str(data["id"]),
                name=str(data["name"]),
                source_id=data["sourceId"],
                status=CollectionStatus(data["status"]),
                message=str(data.get("message") or ""),
                total_urls=int(data["totalUrls"]),
                valid_count=int(data["validCount"]),
                warning_count=int(data["warningCount"]),
                invalid_count=int(data["invalidCount"]),
                results=[ValidationResult.from_dict(r) for r in data["results"]],
                explicit_urls=[str(u) for u in data.get("explicitUrls") or []],
                created_at=parse_to_utc_naive(data.get("createdAt")),
                updated_at=parse_to_utc_naive(data.get("updatedAt")),
                completed_at=parse_to_utc_naive(data.get("completedAt")),
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise CollectionDecodeError(collection_id, f"{type(e).__name__}: {e}") from e
