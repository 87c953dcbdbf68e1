"""Engine tunables and generator vocabulary.

Defaults match the behavior of the crawl and validation engines. A YAML
settings file (see `SettingsFileStore`) may override any field; unknown keys
are logged and ignored.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields, replace
from typing import Any, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)


DEFAULT_CATEGORIES = (
    "civil", "commercial", "military", "launch", "satellites",
    "science-and-tech", "commentary", "missions", "people",
)

DEFAULT_TAGS = (
    "nasa", "spacex", "rocket", "satellite", "launch", "moon", "mars",
    "space-station", "iss", "artemis", "boeing", "blue-origin", "china",
    "esa", "congress", "science", "earth-observation", "ula", "jaxa",
)

DEFAULT_AUTHORS = (
    "jeff-foust", "sandra-erwin", "debra-werner", "jason-rainbow",
    "caleb-henry", "doug-messier", "brian-berger", "chelsea-gohd",
)

DEFAULT_SLUG_TERMS = (
    "nasa", "spacex", "launch", "rocket", "satellite", "mission", "space", "orbit",
    "mars", "moon", "artemis", "iss", "station", "commercial", "science", "research",
    "exploration", "crew", "astronaut", "technology", "earth", "observation", "solar",
    "jupiter", "venus", "asteroid", "spacecraft", "capsule", "booster", "falcon",
    "starship", "boeing", "northrop", "lockheed", "blue-origin", "virgin", "ula",
    "space-force", "test", "success", "delay", "funding", "contract", "award", "program",
)

DEFAULT_TITLE_SUFFIXES = (
    "| SpaceNews", "- Latest Updates", "| Space Industry News",
    "- Mission Details", "| Launch Report",
)


@dataclass(frozen=True)
class GeneratorVocabulary:
    """Site vocabulary the pattern generator draws candidate paths from."""

    categories: Tuple[str, ...] = DEFAULT_CATEGORIES
    tags: Tuple[str, ...] = DEFAULT_TAGS
    authors: Tuple[str, ...] = DEFAULT_AUTHORS
    slug_terms: Tuple[str, ...] = DEFAULT_SLUG_TERMS
    title_suffixes: Tuple[str, ...] = DEFAULT_TITLE_SUFFIXES
    category_pages: int = 50
    tag_pages: int = 20
    author_pages: int = 15

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "GeneratorVocabulary":
        if not data:
            return cls()
        values = {}
        for f in fields(cls):
            if f.name not in data:
                continue
            raw = data[f.name]
            values[f.name] = int(raw) if f.name.endswith("_pages") else tuple(str(v) for v in raw)
        return cls(**values)


@dataclass(frozen=True)
class EngineSettings:
    # storage
    storage_chunk_size: int = 50_000
    very_large_chunk_size: int = 100_000
    large_dataset_threshold: int = 100_000
    very_large_dataset_threshold: int = 500_000

    # crawl loop
    max_crawl_urls: int = 1_000_000
    checkpoint_interval: int = 10_000
    resume_skip_seed_threshold: int = 1_000
    filter_rebuild_threshold: int = 10_000
    generation_limit: int = 10_000
    fallback_generation_limit: int = 5_000
    fallback_guesses_enabled: bool = True
    max_idle_rounds: int = 3
    adjust_interval_seconds: float = 5.0
    summary_log_interval_seconds: float = 30.0

    # validation
    validation_batch_threshold: int = 10_000
    validation_outer_batch_size: int = 1_000
    validation_max_workers: int = 10
    very_large_validation_threshold: int = 1_000_000
    very_large_validation_batch_size: int = 2_000
    very_large_validation_workers: int = 20
    snapshot_threshold: int = 100_000
    snapshot_recent_results: int = 1_000
    executor_shutdown_grace_seconds: float = 5.0
    load_retries: int = 3
    load_retry_delay_seconds: float = 0.5

    taxonomy_domains: Tuple[str, ...] = ("spacenews.com",)
    vocabulary: GeneratorVocabulary = field(default_factory=GeneratorVocabulary)

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "EngineSettings":
        """Build settings from a parsed settings file, ignoring unknown keys."""
        settings = cls()
        if not data:
            return settings
        known = {f.name: f for f in fields(cls)}
        overrides = {}
        for key, raw in data.items():
            if key not in known:
                logger.warning("Ignoring unknown engine setting %r", key)
                continue
            if key == "vocabulary":
                overrides[key] = GeneratorVocabulary.from_mapping(raw)
            elif key == "taxonomy_domains":
                overrides[key] = tuple(str(d).lower() for d in raw or ())
            else:
                default = getattr(settings, key)
                try:
                    overrides[key] = _coerce(raw, type(default))
                except (TypeError, ValueError):
                    logger.exception("Invalid engine setting %s: %r", key, raw)
        return replace(settings, **overrides)


def _coerce(raw: Any, target: type) -> Any:
    if target is bool:
        if isinstance(raw, str):
            return raw.strip().lower() in ("1", "true", "yes", "on")
        return bool(raw)
    return target(raw)
