from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Mapping, Optional

from sitemapper.utils.datetime_utils import parse_to_utc_naive, to_iso, utc_now


class ProjectStatus(str, Enum):
    CREATED = "Created"
    CRAWLING = "Crawling"
    COMPLETED = "Completed"
    STOPPED = "Stopped"
    FAILED = "Failed"

    @property
    def is_terminal(self) -> bool:
        return self in (ProjectStatus.COMPLETED, ProjectStatus.STOPPED, ProjectStatus.FAILED)


@dataclass(frozen=True)
class Project:
    """A crawl project rooted at a seed URL.

    `max_pages` of 0 means no per-project cap (the engine-wide cap still applies).
    """

    id: str
    name: str
    seed_url: str
    crawl_depth: int = 1
    max_pages: int = 0
    status: ProjectStatus = ProjectStatus.CREATED
    error: Optional[str] = None
    created_at: datetime = field(default_factory=utc_now)
    last_modified: datetime = field(default_factory=utc_now)

    def with_status(self, status: ProjectStatus, error: Optional[str] = None) -> "Project":
        return replace(self, status=status, error=error, last_modified=utc_now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "seedUrl": self.seed_url,
            "crawlDepth": self.crawl_depth,
            "maxPages": self.max_pages,
            "status": self.status.value,
            "error": self.error,
            "createdAt": to_iso(self.created_at),
            "lastModified": to_iso(self.last_modified),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Project":
        return cls(
            id=str(data["id"]),
            name=str(data.get("name") or data["id"]),
            seed_url=str(data["seedUrl"]),
            crawl_depth=int(data.get("crawlDepth", 1)),
            max_pages=int(data.get("maxPages", 0)),
            status=ProjectStatus(data.get("status") or ProjectStatus.CREATED.value),
            error=data.get("error"),
            created_at=parse_to_utc_naive(data.get("createdAt")) or utc_now(),
            last_modified=parse_to_utc_naive(data.get("lastModified")) or utc_now(),
        )
