import logging
import uuid
from concurrent.futures import Future
from dataclasses import fields
from typing import List, Optional, Sequence
from urllib.parse import urlsplit

from sitemapper.domain.crawl_result import CrawlResult
from sitemapper.domain.events import CRAWL, VALIDATION
from sitemapper.domain.project import Project
from sitemapper.domain.run_state import ValidationRunState
from sitemapper.domain.throughput import ThroughputSettings
from sitemapper.domain.validation import ValidationCollection
from sitemapper.exceptions import CollectionNotFoundError, InvalidInputError, ProjectNotFoundError
from sitemapper.services.url_generator import domain_of, normalize_seed

logger = logging.getLogger(__name__)

_TUNABLE_FIELDS = {f.name for f in fields(ThroughputSettings)}


def validate_seed_url(seed_url: Optional[str]) -> str:
    """Normalize a seed URL or bare domain; raise InvalidInputError if it cannot be crawled."""
    if seed_url is None or not str(seed_url).strip():
        raise InvalidInputError("seed_url", "must not be empty")
    value = str(seed_url).strip()
    if "://" in value:
        scheme = value.split("://", 1)[0].lower()
        if scheme not in ("http", "https"):
            raise InvalidInputError("seed_url", "only HTTP and HTTPS protocols are supported")
    try:
        normalized = normalize_seed(value)
        host = urlsplit(normalized).hostname
    except ValueError as e:
        raise InvalidInputError("seed_url", f"malformed URL ({e})") from e
    if not host or " " in value:
        raise InvalidInputError("seed_url", "malformed URL")
    return normalized


class SitemapEngine:
    """Control surface for projects, crawl runs, validation runs and tunables."""

    def __init__(self, *, projects, results_store, orchestrator, pipeline, controller, events, registry):
        self.projects = projects
        self.results_store = results_store
        self.orchestrator = orchestrator
        self.pipeline = pipeline
        self.controller = controller
        self.events = events
        self.registry = registry

    # projects

    def create_project(self, name: Optional[str], seed_url: str, crawl_depth: int = 1, max_pages: int = 0) -> Project:
        seed = validate_seed_url(seed_url)
        if int(crawl_depth) < 1:
            raise InvalidInputError("crawl_depth", "must be >= 1")
        if int(max_pages) < 0:
            raise InvalidInputError("max_pages", "must be >= 0")
        project = Project(
            id=str(uuid.uuid4()),
            name=(name or "").strip() or domain_of(seed),
            seed_url=seed,
            crawl_depth=int(crawl_depth),
            max_pages=int(max_pages),
        )
        self.projects.save(project)
        logger.info("Created project %s (%s) for %s", project.id, project.name, seed)
        return project

    def get_project(self, project_id: str) -> Project:
        project = self.projects.get(project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)
        return project

    def list_projects(self) -> List[Project]:
        return self.projects.list_projects()

    def get_results(self, project_id: str) -> List[CrawlResult]:
        self.get_project(project_id)
        return self.results_store.load_set(project_id)

    def get_results_chunk(self, project_id: str, index: int) -> List[CrawlResult]:
        self.get_project(project_id)
        return self.results_store.load_chunk(project_id, index)

    # crawl runs

    def start_crawl(self, project_id: str, status_cb=None, results_cb=None, stop_checker=None) -> Future:
        return self.orchestrator.start(project_id, status_cb, results_cb, stop_checker)

    def stop_crawl(self, project_id: str) -> bool:
        return self.orchestrator.stop(project_id)

    def crawl_status(self, project_id: str) -> Optional[dict]:
        return self.orchestrator.status(project_id)

    # validation runs

    def create_validation(self, source_id: Optional[str], name: Optional[str] = None,
                          urls: Optional[Sequence[str]] = None) -> ValidationCollection:
        if urls is not None and not all(isinstance(u, str) for u in urls):
            raise InvalidInputError("urls", "must be a list of strings")
        if not urls:
            if not source_id:
                raise InvalidInputError("source_id", "required when no URLs are given")
            self.get_project(source_id)
        return self.pipeline.create(source_id, name, urls)

    def get_validation(self, collection_id: str) -> ValidationCollection:
        collection = self.pipeline.get(collection_id)
        if collection is None:
            raise CollectionNotFoundError(collection_id)
        return collection

    def list_validations(self) -> List[ValidationCollection]:
        return self.pipeline.list_collections()

    def start_validation(self, collection_id: str, concurrency: int = 10, enrich: bool = False) -> Future:
        return self.pipeline.start(collection_id, concurrency, enrich)

    def stop_validation(self, collection_id: str) -> bool:
        return self.pipeline.stop(collection_id)

    def validation_status(self, collection_id: str) -> ValidationRunState:
        return self.pipeline.status(collection_id)

    def active_runs(self, kind: Optional[str] = None) -> List[dict]:
        """Crawl and validation runs that are running or stopping, optionally of one kind."""
        if kind is not None and kind not in (CRAWL, VALIDATION):
            raise InvalidInputError("kind", f"must be '{CRAWL}' or '{VALIDATION}'")
        return self.registry.list_active(kind)

    # tunables

    def get_tuning(self) -> ThroughputSettings:
        return self.controller.snapshot()

    def update_tuning(self, **values) -> ThroughputSettings:
        unknown = set(values) - _TUNABLE_FIELDS
        if unknown:
            raise InvalidInputError("tuning", f"unknown settings {sorted(unknown)}")
        updated = self.controller.update(**values)
        logger.info("Tunables updated: %s", values)
        return updated
