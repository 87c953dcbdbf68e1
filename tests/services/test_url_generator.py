import random
import re
from datetime import date

from sitemapper.domain import CrawlPattern
from sitemapper.domain.settings import GeneratorVocabulary
from sitemapper.services.discovery_hints import DEFAULT_PATTERNS
from sitemapper.services.url_generator import PatternUrlGenerator, domain_of, normalize_seed


def _generator(**kwargs):
    return PatternUrlGenerator(rng=random.Random(7), today=lambda: date(2024, 6, 15), **kwargs)


def test_normalize_seed_and_domain():
    assert normalize_seed("example.com") == "https://example.com/"
    assert normalize_seed("HTTP://Example.com/news?x=1") == "http://example.com/news?x=1"
    assert domain_of("https://Example.com:8080/a") == "example.com:8080"


def test_generate_starts_with_month_archives_within_limit():
    urls = _generator().generate("example.com", set(), 5)

    assert len(urls) == 5
    assert all(re.fullmatch(r"https://example\.com/\d{4}/\d{2}/", u) for u in urls)
    assert len(set(urls)) == 5


def test_generate_never_returns_future_months():
    urls = _generator().generate("example.com", set(), 10_000)
    months = [u for u in urls if re.fullmatch(r"https://example\.com/\d{4}/\d{2}/", u)]
    assert "https://example.com/2024/07/" not in months
    assert "https://example.com/2024/06/" in months


def test_generate_skips_known_urls():
    known = {f"https://example.com/{y}/{m:02d}/" for y in range(2000, 2025) for m in range(1, 13)}
    urls = _generator().generate("example.com", known, 3)
    assert urls[0].startswith("https://example.com/category/")


def test_generate_exhausts_small_vocabulary():
    vocab = GeneratorVocabulary(categories=("news",), tags=("mars",), authors=("jane",),
                                category_pages=2, tag_pages=2, author_pages=2)
    gen = _generator(vocabulary=vocab)
    everything = gen.generate("example.com", set(), 100_000)

    assert "https://example.com/category/news/page/2/" in everything
    assert "https://example.com/author/jane/" in everything
    all_months = {f"https://example.com/{y}/{m:02d}/" for y in range(2000, 2025) for m in range(1, 13)}
    assert gen.generate("example.com", set(everything) | all_months, 10) == []
    assert gen.generate("example.com", set(), 0) == []


def test_direct_guesses_are_unique_and_limited():
    urls = _generator().generate_direct_guesses("example.com", set(), 30)
    assert len(urls) == 30
    assert len(set(urls)) == 30
    assert any("/article/" in u for u in urls)


def test_initial_exploration_with_default_patterns():
    targets = _generator().initial_exploration("example.com", DEFAULT_PATTERNS)

    assert targets[0].url == "https://example.com/"
    assert targets[0].pattern is None
    urls = [t.url for t in targets]
    assert "https://example.com/example/1" in urls
    assert "https://example.com/example/2" in urls
    excluded = [t.url for t in targets if not t.include]
    assert "https://example.com/wp-admin/example" in excluded
    assert "https://example.com/feed/" in excluded
    assert len(excluded) == 6


def test_initial_exploration_root_pattern():
    targets = _generator().initial_exploration("https://example.com/news", [CrawlPattern("/", True)])
    assert [t.url for t in targets] == ["https://example.com/news", "https://example.com/"]
