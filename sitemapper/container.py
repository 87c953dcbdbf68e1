"""Dependency injection container for the application."""
import os

from dependency_injector import containers, providers
import requests

from sitemapper import config as env
from sitemapper.repository.blob_store import InMemoryProjectStore, JsonFileProjectStore
from sitemapper.repository.chunked_results import ChunkedResultStore
from sitemapper.repository.projects import ProjectRepository
from sitemapper.repository.validations import ValidationRepository
from sitemapper.services.asset_classifier import AssetClassifier
from sitemapper.services.crawl_orchestrator import CrawlOrchestrator
from sitemapper.services.discovery_hints import StaticDiscoveryHints
from sitemapper.services.engine import SitemapEngine
from sitemapper.services.events import EventChannel
from sitemapper.services.fetcher import HttpServiceFetcher, SimulatedFetcher
from sitemapper.services.fetcher_factory import FetcherFactory
from sitemapper.services.http_service import HttpService
from sitemapper.services.run_registry import InMemoryRunRegistry
from sitemapper.services.settings_file_store import SettingsFileStore
from sitemapper.services.throughput_controller import ThroughputController
from sitemapper.services.title_extractor import TitleExtractor
from sitemapper.services.url_generator import PatternUrlGenerator
from sitemapper.services.url_validator import UrlValidator
from sitemapper.services.validation_pipeline import CrawlResultsUrlSource, ValidationPipeline


# Environment variables used by the container (read via `sitemapper.config` helpers).
#
# Notes:
# - Types are enforced by the helper used (`get_int_env`, `get_float_env`, etc.).
# - Defaults shown here are the effective defaults used when the env var is unset.
# - These are injected into services via `config = providers.Configuration(default=ENV)`.
#
# SITEMAPPER_DATA_DIR (str, default: "data")
#   Root directory for project and validation blobs (file storage only).
#
# SITEMAPPER_STORAGE (str, default: "file")
#   "file" for JSON blobs on disk, "memory" for a process-local store.
#
# USER_AGENT (str, default: "Sitemapper/0.1")
#   User-Agent header for outbound HTTP requests.
#
# HTTP_CONNECT_TIMEOUT / HTTP_READ_TIMEOUT (float seconds, default: 10 / 15)
#   Connect and read timeouts for validation probes and live fetches.
#
# SITEMAPPER_FETCH_MODE (str, default: "simulated")
#   "simulated" synthesizes titles from URL slugs; "http" fetches live pages.
#
# SITEMAPPER_SETTINGS_FILE (str, default: "sitemapper.yml")
#   Optional YAML file with engine thresholds and generator vocabulary.
#
# SITEMAPPER_MAX_COMPLETED_RUNS (int, default: 1000)
#   How many finished run records the registry retains (oldest evicted first).
#
# SITEMAPPER_EVENT_QUEUE_SIZE (int, default: 10000)
#   Capacity of the event queue; the oldest event is dropped when full.
ENV = {
    "SITEMAPPER_DATA_DIR": env.get_str_env("SITEMAPPER_DATA_DIR", "data"),
    "SITEMAPPER_STORAGE": env.get_str_env("SITEMAPPER_STORAGE", "file").strip().lower(),
    "USER_AGENT": env.get_str_env("USER_AGENT", "Sitemapper/0.1"),
    "HTTP_CONNECT_TIMEOUT": env.get_float_env("HTTP_CONNECT_TIMEOUT", 10.0),
    "HTTP_READ_TIMEOUT": env.get_float_env("HTTP_READ_TIMEOUT", 15.0),
    "SITEMAPPER_FETCH_MODE": env.get_str_env("SITEMAPPER_FETCH_MODE", "simulated").strip().lower(),
    "SITEMAPPER_SETTINGS_FILE": env.get_str_env("SITEMAPPER_SETTINGS_FILE", "sitemapper.yml"),
    "SITEMAPPER_MAX_COMPLETED_RUNS": env.get_int_env("SITEMAPPER_MAX_COMPLETED_RUNS", 1000),
    "SITEMAPPER_EVENT_QUEUE_SIZE": env.get_int_env("SITEMAPPER_EVENT_QUEUE_SIZE", 10_000),
}


def make_project_store(storage: str, data_dir: str):
    if storage == "memory":
        return InMemoryProjectStore()
    if storage != "file":
        raise ValueError(f"Unknown storage backend: {storage!r}")
    return JsonFileProjectStore(base_dir=os.path.abspath(data_dir))


class Container(containers.DeclarativeContainer):
    """Dependency injection container for the sitemapper engine."""

    # Configuration
    config = providers.Configuration(default=ENV)

    settings_file_store = providers.Singleton(
        SettingsFileStore,
        path=config.SITEMAPPER_SETTINGS_FILE,
    )

    engine_settings = providers.Singleton(
        SettingsFileStore.load_settings,
        settings_file_store,
    )

    # Storage
    project_store = providers.Singleton(
        make_project_store,
        storage=config.SITEMAPPER_STORAGE,
        data_dir=config.SITEMAPPER_DATA_DIR,
    )

    projects_repository = providers.Singleton(
        ProjectRepository,
        store=project_store,
    )

    results_store = providers.Singleton(
        ChunkedResultStore,
        project_store,
        chunk_size=engine_settings.provided.storage_chunk_size,
    )

    validations_repository = providers.Singleton(
        ValidationRepository,
        store=project_store,
    )

    # Run bookkeeping
    run_registry = providers.Singleton(
        InMemoryRunRegistry,
        max_completed_records=config.SITEMAPPER_MAX_COMPLETED_RUNS.as_(int),
    )

    event_channel = providers.Singleton(
        EventChannel,
        maxsize=config.SITEMAPPER_EVENT_QUEUE_SIZE.as_(int),
    )

    throughput_controller = providers.Singleton(
        ThroughputController,
        settings=engine_settings,
    )

    # HTTP
    http_service = providers.Singleton(
        HttpService,
        user_agent=config.USER_AGENT.as_(str),
        http_client=providers.Object(requests.get),
        timeout=config.HTTP_CONNECT_TIMEOUT.as_(float),
        head_client=providers.Object(requests.head),
        read_timeout=config.HTTP_READ_TIMEOUT.as_(float),
    )

    title_extractor = providers.Singleton(TitleExtractor)

    # Discovery
    url_generator = providers.Singleton(
        PatternUrlGenerator,
        vocabulary=engine_settings.provided.vocabulary,
    )

    simulated_fetcher = providers.Singleton(
        SimulatedFetcher,
        title_suffixes=engine_settings.provided.vocabulary.title_suffixes,
    )

    page_fetcher = providers.Singleton(
        HttpServiceFetcher,
        http_service=http_service,
        title_extractor=title_extractor,
    )

    fetcher_factory = providers.Singleton(
        FetcherFactory,
        simulated_fetcher=simulated_fetcher,
        http_fetcher=page_fetcher,
    )

    discovery_hints = providers.Singleton(StaticDiscoveryHints)

    crawl_orchestrator = providers.Singleton(
        CrawlOrchestrator,
        projects=projects_repository,
        results_store=results_store,
        generator=url_generator,
        fetcher=providers.Callable(
            lambda factory, mode: factory.get(mode),
            fetcher_factory,
            config.SITEMAPPER_FETCH_MODE,
        ),
        controller=throughput_controller,
        registry=run_registry,
        events=event_channel,
        hint_provider=discovery_hints,
        settings=engine_settings,
    )

    # Validation
    asset_classifier = providers.Singleton(
        AssetClassifier,
        taxonomy_domains=engine_settings.provided.taxonomy_domains,
    )

    url_validator = providers.Singleton(
        UrlValidator,
        http_service=http_service,
        classifier=asset_classifier,
        title_extractor=title_extractor,
    )

    url_source = providers.Singleton(
        CrawlResultsUrlSource,
        results_store=results_store,
    )

    validation_pipeline = providers.Singleton(
        ValidationPipeline,
        repository=validations_repository,
        validator=url_validator,
        url_source=url_source,
        registry=run_registry,
        events=event_channel,
        settings=engine_settings,
    )

    engine = providers.Singleton(
        SitemapEngine,
        projects=projects_repository,
        results_store=results_store,
        orchestrator=crawl_orchestrator,
        pipeline=validation_pipeline,
        controller=throughput_controller,
        events=event_channel,
        registry=run_registry,
    )
