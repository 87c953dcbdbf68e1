"""Candidate URL generation for sites whose archive structure is predictable."""
import logging
import random
from datetime import date
from typing import Callable, Container, Iterator, List, NamedTuple, Optional, Sequence
from urllib.parse import urlsplit

from sitemapper.domain.crawl_pattern import CrawlPattern
from sitemapper.domain.settings import GeneratorVocabulary

logger = logging.getLogger(__name__)


class ExplorationTarget(NamedTuple):
    url: str
    pattern: Optional[str]
    include: bool


def domain_of(seed: str) -> str:
    """Host (lowercased, with port if any) of a seed URL or bare domain."""
    value = seed.strip()
    if "://" not in value:
        value = "https://" + value
    return (urlsplit(value).netloc or "").lower()


def normalize_seed(seed: str) -> str:
    """Absolute root-ish form of a seed: scheme defaults to https, empty path becomes '/'."""
    value = seed.strip()
    if "://" not in value:
        value = "https://" + value
    parts = urlsplit(value)
    path = parts.path or "/"
    query = f"?{parts.query}" if parts.query else ""
    return f"{parts.scheme.lower()}://{parts.netloc.lower()}{path}{query}"


class PatternUrlGenerator:
    """Produces not-yet-known candidate URLs from site archive patterns.

    Strategies run in order (month archives, category archives, tag
    archives, author archives) and stop as soon as `limit` URLs are
    collected. Generation has no side effects besides consuming randomness.
    """

    def __init__(self, vocabulary: Optional[GeneratorVocabulary] = None, *,
                 rng: Optional[random.Random] = None, today: Optional[Callable[[], date]] = None):
        self.vocabulary = vocabulary or GeneratorVocabulary()
        self._rng = rng or random.Random()
        self._today = today or date.today

    def generate(self, domain: str, known_urls: Container[str], limit: int) -> List[str]:
        strategies = (
            ("date archive", self._date_archives),
            ("category archive", self._category_archives),
            ("tag archive", self._tag_archives),
            ("author archive", self._author_archives),
        )
        return self._collect(domain, known_urls, limit, strategies)

    def generate_direct_guesses(self, domain: str, known_urls: Container[str], limit: int) -> List[str]:
        """Fallback guesses: bare slugs, dated slugs and sequential article ids."""
        if limit <= 0:
            return []
        today = self._today()
        base_offset = self._rng.randrange(10_000)
        out: List[str] = []
        emitted = set()
        attempts = 0
        max_attempts = limit * 3
        while len(out) < limit and attempts < max_attempts:
            slug = self.random_slug()
            month = self._rng.randint(1, today.month)
            day = self._rng.randint(1, 28)
            candidates = (
                f"https://{domain}/{slug}/",
                f"https://{domain}/{today.year}/{month:02d}/{day:02d}/{slug}/",
                f"https://{domain}/article/{base_offset + attempts}/",
            )
            attempts += 1
            for url in candidates:
                if url in emitted or url in known_urls:
                    continue
                emitted.add(url)
                out.append(url)
                if len(out) >= limit:
                    break
        logger.info("Generated %d direct-guess URLs for %s", len(out), domain)
        return out

    def random_slug(self) -> str:
        count = self._rng.randint(2, 4)
        terms = self.vocabulary.slug_terms
        return "-".join(self._rng.choice(terms) for _ in range(count))

    def initial_exploration(self, seed_url: str, patterns: Sequence[CrawlPattern]) -> List[ExplorationTarget]:
        """Seed plus a few pages per include pattern and one page per exclude pattern."""
        seed = normalize_seed(seed_url)
        root = f"{urlsplit(seed).scheme}://{urlsplit(seed).netloc}"
        targets = [ExplorationTarget(seed, None, True)]
        for p in patterns:
            base = p.pattern.replace("*", "example")
            if p.include:
                base = base.rstrip("/")
                if not base:
                    targets.append(ExplorationTarget(root + "/", p.pattern, True))
                    continue
                for n in (1, 2):
                    targets.append(ExplorationTarget(f"{root}{base}/{n}", p.pattern, True))
            else:
                targets.append(ExplorationTarget(root + base, p.pattern, False))
        return targets

    def _collect(self, domain, known_urls, limit, strategies) -> List[str]:
        out: List[str] = []
        if limit <= 0:
            return out
        emitted = set()
        for label, strategy in strategies:
            produced = 0
            for url in strategy(domain):
                if url in emitted or url in known_urls:
                    continue
                emitted.add(url)
                out.append(url)
                produced += 1
                if len(out) >= limit:
                    logger.info("Reached generation limit of %d during %s URLs", limit, label)
                    return out
            logger.debug("Generated %d %s URLs for %s", produced, label, domain)
        return out

    def _date_archives(self, domain: str) -> Iterator[str]:
        today = self._today()
        start_year = max(2000, today.year - self._rng.randrange(10) - 15)
        years = list(range(start_year, today.year + 1))
        self._rng.shuffle(years)
        for year in years:
            months = list(range(1, 13))
            self._rng.shuffle(months)
            for month in months:
                if year == today.year and month > today.month:
                    continue
                yield f"https://{domain}/{year:04d}/{month:02d}/"

    def _paged(self, domain: str, kind: str, names: Sequence[str], last_page: int) -> Iterator[str]:
        for name in names:
            base = f"https://{domain}/{kind}/{name}/"
            yield base
            for page in range(2, last_page + 1):
                yield f"{base}page/{page}/"

    def _category_archives(self, domain: str) -> Iterator[str]:
        return self._paged(domain, "category", self.vocabulary.categories, self.vocabulary.category_pages)

    def _tag_archives(self, domain: str) -> Iterator[str]:
        return self._paged(domain, "tag", self.vocabulary.tags, self.vocabulary.tag_pages)

    def _author_archives(self, domain: str) -> Iterator[str]:
        return self._paged(domain, "author", self.vocabulary.authors, self.vocabulary.author_pages)
