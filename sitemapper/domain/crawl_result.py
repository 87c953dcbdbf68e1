"""Crawl result data model."""
from enum import Enum
from typing import Any, Mapping, NamedTuple


class CrawlStatus(str, Enum):
    OK = "OK"
    EXCLUDED = "Excluded"
    ERROR = "Error"


class CrawlResult(NamedTuple):
    """A single discovered URL.

    Results are unique by `url` within a persisted collection.
    """
    url: str
    """Absolute URL that was discovered"""

    title: str
    """Human-readable title (fetched or synthesized)"""

    status: CrawlStatus = CrawlStatus.OK
    """OK, Excluded (matched an exclude pattern) or Error (fetch failed)"""

    def to_dict(self) -> dict:
        return {"url": self.url, "title": self.title, "status": self.status.value}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CrawlResult":
        url = data["url"]
        if not isinstance(url, str) or not url:
            raise ValueError("crawl result url must be a non-empty string")
        return cls(
            url=url,
            title=str(data.get("title") or ""),
            status=CrawlStatus(data.get("status") or CrawlStatus.OK.value),
        )
