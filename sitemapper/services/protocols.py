"""Protocol (interface) definitions for services."""

from typing import Any, List, Optional, Protocol, Sequence

from sitemapper.domain.crawl_pattern import CrawlPattern


class ProjectStore(Protocol):
    """Named JSON blobs grouped under an id (a project or a validation collection).

    Implementations must make `save` atomic: a reader sees either the previous
    blob or the new one, never a partial write.
    """

    def load(self, store_id: str, name: str) -> Optional[Any]:
        """Return the decoded blob, or None if it does not exist."""
        ...

    def save(self, store_id: str, name: str, data: Any) -> None:
        ...

    def delete(self, store_id: str, name: str) -> bool:
        ...

    def list_names(self, store_id: str) -> List[str]:
        ...

    def list_ids(self) -> List[str]:
        ...


class DiscoveryHintProvider(Protocol):
    """Suggests include/exclude URL patterns for a seed URL.

    May return None or raise; callers fall back to default patterns.
    """

    def analyze(self, seed_url: str) -> Optional[Sequence[CrawlPattern]]:
        ...


class UrlSource(Protocol):
    """Supplies the URLs a validation run should check for a source id."""

    def load_urls(self, source_id: str) -> List[str]:
        ...
