import threading
from unittest.mock import Mock

import pytest

from sitemapper.domain import CrawlResult, CrawlStatus
from sitemapper.domain.http_response import HttpResponse
from sitemapper.domain.run_state import RunState
from sitemapper.domain.settings import EngineSettings
from sitemapper.domain.validation import CollectionStatus, ValidationResult, ValidationStatus
from sitemapper.exceptions import CollectionNotFoundError, InvalidInputError, RunAlreadyActiveError
from sitemapper.repository.blob_store import InMemoryProjectStore
from sitemapper.repository.chunked_results import ChunkedResultStore
from sitemapper.repository.validations import ValidationRepository
from sitemapper.services.asset_classifier import AssetClassifier
from sitemapper.services.events import EventChannel
from sitemapper.services.run_registry import InMemoryRunRegistry
from sitemapper.services.title_extractor import TitleExtractor
from sitemapper.services.url_validator import UrlValidator
from sitemapper.services.validation_pipeline import (
    NO_URLS_MESSAGE,
    CrawlResultsUrlSource,
    ValidationPipeline,
    should_save,
)

CODES = {
    "https://site.test/ok": 200,
    "https://site.test/moved": 301,
    "https://site.test/missing": 404,
}


def _http_service():
    return Mock(head=Mock(side_effect=lambda url: HttpResponse(CODES[url], "", "text/html")))


def _pipeline(validator=None, settings=None):
    store = InMemoryProjectStore()
    results = ChunkedResultStore(store)
    validator = validator or UrlValidator(
        http_service=_http_service(),
        classifier=AssetClassifier(),
        title_extractor=TitleExtractor(),
    )
    pipeline = ValidationPipeline(
        repository=ValidationRepository(store),
        validator=validator,
        url_source=CrawlResultsUrlSource(results),
        registry=InMemoryRunRegistry(),
        events=EventChannel(),
        settings=settings,
        sleep=lambda s: None,
    )
    return pipeline, results


def test_should_save_schedule():
    assert should_save(5, 50_000)
    assert should_save(500, 500)
    assert should_save(30, 500) and not should_save(31, 500)
    assert should_save(300, 5_000) and not should_save(350, 5_000)
    assert should_save(20_000, 500_000) and not should_save(21_000, 500_000)


def test_counts_valid_warning_and_invalid():
    pipeline, _ = _pipeline()
    collection = pipeline.create(None, "Mixed", urls=list(CODES) + ["ftp://x"])

    done = pipeline.start(collection.id, concurrency=2).result(timeout=10)

    assert done.status is CollectionStatus.COMPLETED
    assert (done.valid_count, done.warning_count, done.invalid_count) == (1, 1, 2)
    assert done.validated_count == 4
    stored = pipeline.get(collection.id)
    assert stored.validated_count == 4
    assert stored.completed_at is not None
    state = pipeline.status(collection.id)
    assert state.state is RunState.COMPLETED
    assert state.progress == 1.0


def test_urls_come_from_crawl_results_without_excluded():
    pipeline, results = _pipeline()
    results.save_set([
        CrawlResult("https://site.test/ok", "Ok"),
        CrawlResult("https://site.test/missing", "Missing"),
        CrawlResult("https://site.test/wp-admin/example", "Excluded by /wp-admin/*", CrawlStatus.EXCLUDED),
    ], "p1")
    collection = pipeline.create("p1")

    done = pipeline.start(collection.id).result(timeout=10)

    assert done.total_urls == 2
    assert (done.valid_count, done.invalid_count) == (1, 1)


def test_empty_source_completes_with_message():
    pipeline, _ = _pipeline()
    collection = pipeline.create("p-empty")

    done = pipeline.start(collection.id).result(timeout=10)

    assert done.status is CollectionStatus.COMPLETED
    assert done.message == NO_URLS_MESSAGE
    assert done.validated_count == 0


def test_start_errors_are_synchronous():
    pipeline, _ = _pipeline()
    with pytest.raises(CollectionNotFoundError):
        pipeline.start("nope")
    collection = pipeline.create(None, urls=["https://site.test/ok"])
    with pytest.raises(InvalidInputError):
        pipeline.start(collection.id, concurrency=0)


def test_stop_cancels_remaining_work():
    release = threading.Event()
    started = threading.Event()

    class BlockingValidator:
        def validate(self, url, enrich=False):
            started.set()
            release.wait(5)
            return ValidationResult(url, ValidationStatus.VALID, "HTTP 200 OK")

    pipeline, _ = _pipeline(validator=BlockingValidator())
    urls = [f"https://site.test/{i}" for i in range(3)]
    collection = pipeline.create(None, urls=urls)

    future = pipeline.start(collection.id, concurrency=1)
    assert started.wait(5)
    with pytest.raises(RunAlreadyActiveError):
        pipeline.start(collection.id)
    assert pipeline.stop(collection.id)
    release.set()
    done = future.result(timeout=10)

    state = pipeline.status(collection.id)
    assert done.status is CollectionStatus.STOPPED
    assert state.state is RunState.STOPPED
    assert done.validated_count + state.canceled_count == 3
    assert done.validated_count < 3
    assert pipeline.stop(collection.id) is False


def test_validator_crash_becomes_error_result():
    validator = Mock(validate=Mock(side_effect=RuntimeError("bug")))
    pipeline, _ = _pipeline(validator=validator)
    collection = pipeline.create(None, urls=["https://site.test/ok"])

    done = pipeline.start(collection.id).result(timeout=10)

    assert done.invalid_count == 1
    assert done.results[0].message == "Validation error: bug"


def test_large_run_uses_outer_batches_and_split_storage():
    settings = EngineSettings(validation_batch_threshold=4, validation_outer_batch_size=2, snapshot_threshold=4)
    validator = Mock(validate=Mock(side_effect=lambda url, enrich=False: ValidationResult(
        url, ValidationStatus.VALID, "HTTP 200 OK")))
    pipeline, _ = _pipeline(validator=validator, settings=settings)
    collection = pipeline.create(None, urls=[f"https://site.test/{i}" for i in range(5)])

    pipeline.start(collection.id, concurrency=3).result(timeout=10)

    state = pipeline.status(collection.id)
    assert state.total_batches == 3
    assert state.current_batch == 3
    stored = pipeline.get(collection.id)
    assert len(stored.results) == 5
    assert stored.valid_count == 5
