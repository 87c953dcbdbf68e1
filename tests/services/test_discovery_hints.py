from unittest.mock import Mock

from sitemapper.domain import CrawlPattern
from sitemapper.services.discovery_hints import (
    DEFAULT_PATTERNS,
    FALLBACK_PATTERNS,
    StaticDiscoveryHints,
    analyze_seed,
)


def test_no_provider_uses_defaults():
    assert analyze_seed(None, "https://example.com/") == list(DEFAULT_PATTERNS)


def test_empty_answer_uses_defaults():
    provider = Mock(analyze=Mock(return_value=[]))
    assert analyze_seed(provider, "https://example.com/") == list(DEFAULT_PATTERNS)


def test_failing_provider_uses_fallback():
    provider = Mock(analyze=Mock(side_effect=RuntimeError("boom")))
    assert analyze_seed(provider, "https://example.com/") == list(FALLBACK_PATTERNS)


def test_mapping_answers_are_converted():
    provider = Mock(analyze=Mock(return_value=[{"pattern": "/blog/*", "include": True}]))
    assert analyze_seed(provider, "https://example.com/") == [CrawlPattern("/blog/*", True)]


def test_static_hints():
    hints = StaticDiscoveryHints([CrawlPattern("/news/*")])
    assert hints.analyze("https://example.com/") == [CrawlPattern("/news/*", True)]
