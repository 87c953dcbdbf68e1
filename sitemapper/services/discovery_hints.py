import logging
from typing import List, Optional, Sequence

from sitemapper.domain.crawl_pattern import CrawlPattern

logger = logging.getLogger(__name__)

DEFAULT_PATTERNS = (
    CrawlPattern("/", True),
    CrawlPattern("/*", True),
    CrawlPattern("/*/", True),
    CrawlPattern("/wp-admin/*", False),
    CrawlPattern("/wp-login.php", False),
    CrawlPattern("/wp-includes/*", False),
    CrawlPattern("/wp-content/*", False),
    CrawlPattern("/feed/", False),
    CrawlPattern("/xmlrpc.php", False),
)

# Used when the hint provider itself fails.
FALLBACK_PATTERNS = (
    CrawlPattern("/", True),
    CrawlPattern("/*", True),
    CrawlPattern("/wp-admin/*", False),
    CrawlPattern("/feed/", False),
)


class StaticDiscoveryHints:
    """Hint provider that suggests a fixed pattern list for every seed."""

    def __init__(self, patterns: Optional[Sequence[CrawlPattern]] = None):
        self._patterns = tuple(patterns) if patterns is not None else DEFAULT_PATTERNS

    def analyze(self, seed_url: str) -> List[CrawlPattern]:
        return list(self._patterns)


def analyze_seed(provider, seed_url: str) -> List[CrawlPattern]:
    """Ask `provider` for patterns; fall back to defaults on None/empty or error."""
    if provider is None:
        return list(DEFAULT_PATTERNS)
    try:
        patterns = provider.analyze(seed_url)
    except Exception as e:
        logger.warning("Discovery hint provider failed for %s: %s", seed_url, e, exc_info=True)
        return list(FALLBACK_PATTERNS)
    if not patterns:
        logger.info("No discovery hints for %s; using default patterns", seed_url)
        return list(DEFAULT_PATTERNS)
    return [p if isinstance(p, CrawlPattern) else CrawlPattern.from_dict(p) for p in patterns]
