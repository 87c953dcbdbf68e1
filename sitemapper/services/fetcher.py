from __future__ import annotations

import logging
import random
from typing import Optional, Protocol, Sequence
from urllib.parse import urlsplit

from sitemapper.domain.crawl_result import CrawlResult, CrawlStatus
from sitemapper.domain.settings import DEFAULT_TITLE_SUFFIXES
from sitemapper.exceptions import HttpFetchError

logger = logging.getLogger(__name__)


class Fetcher(Protocol):
    """Turn a candidate URL into a crawl result.

    This is intentionally small so the discovery crawl can run simulated
    (no network) or against the live site.
    """

    def fetch(self, url: str, stop_event=None) -> CrawlResult: ...


def title_from_slug(slug: Optional[str]) -> str:
    if not slug:
        return "Home Page"
    return " ".join(word[:1].upper() + word[1:] for word in slug.replace("-", " ").split(" "))


def slug_from_url(url: str) -> str:
    try:
        path = urlsplit(url).path
    except ValueError:
        return ""
    parts = [p for p in path.split("/") if p]
    return parts[-1] if parts else "home"


class SimulatedFetcher:
    """Synthesizes a page title from the URL slug plus a site suffix."""

    def __init__(self, *, title_suffixes: Sequence[str] = DEFAULT_TITLE_SUFFIXES, rng: Optional[random.Random] = None):
        self._suffixes = tuple(title_suffixes) or ("",)
        self._rng = rng or random.Random()

    def title_for(self, url: str) -> str:
        suffix = self._rng.choice(self._suffixes)
        title = title_from_slug(slug_from_url(url))
        return f"{title} {suffix}".strip()

    def fetch(self, url: str, stop_event=None) -> CrawlResult:
        return CrawlResult(url=url, title=self.title_for(url), status=CrawlStatus.OK)


class HttpServiceFetcher:
    """Fetches the live page; the title comes from the HTML when present."""

    def __init__(self, http_service, title_extractor):
        self._http_service = http_service
        self._title_extractor = title_extractor

    def fetch(self, url: str, stop_event=None) -> CrawlResult:
        try:
            response = self._http_service.fetch(url)
        except HttpFetchError as e:
            logger.warning("Fetch failed for %s: %s", url, e)
            return CrawlResult(url=url, title="", status=CrawlStatus.ERROR)
        if response.status_code >= 400:
            return CrawlResult(url=url, title=f"HTTP {response.status_code}", status=CrawlStatus.ERROR)
        title = self._title_extractor.extract(response.text) or title_from_slug(slug_from_url(url))
        return CrawlResult(url=url, title=title, status=CrawlStatus.OK)
