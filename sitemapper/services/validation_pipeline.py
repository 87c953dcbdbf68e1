import logging
import threading
import time
import uuid
from concurrent.futures import Future, ThreadPoolExecutor, as_completed, wait
from dataclasses import replace
from typing import Callable, Dict, List, Optional, Sequence

from sitemapper.domain.crawl_result import CrawlStatus
from sitemapper.domain.events import VALIDATION, RunFinishedEvent, StatusEvent, ValidationProgressEvent
from sitemapper.domain.run_state import RunState, ValidationRunState
from sitemapper.domain.settings import EngineSettings
from sitemapper.domain.validation import CollectionStatus, ValidationCollection, ValidationResult, ValidationStatus
from sitemapper.exceptions import CollectionNotFoundError, InvalidInputError
from sitemapper.services.run_registry.models import COMPLETED, FAILED, STOPPED

logger = logging.getLogger(__name__)

NO_URLS_MESSAGE = "No URLs found to validate"


def should_save(count: int, total: int) -> bool:
    """Throttled persistence schedule: frequent for small runs, sparse for large ones."""
    if count <= 20 or count == total or count % 10_000 == 0:
        return True
    if total < 1_000:
        return count % 10 == 0
    if total < 10_000:
        return count % 100 == 0
    if total < 100_000:
        return count % 1_000 == 0
    return False


class CrawlResultsUrlSource:
    """Validation input taken from a project's crawl results (excluded URLs skipped)."""

    def __init__(self, results_store):
        self._results_store = results_store

    def load_urls(self, source_id: str) -> List[str]:
        return [r.url for r in self._results_store.load_set(source_id) if r.status is not CrawlStatus.EXCLUDED]


class ValidationPipeline:
    """Validates a collection's URLs concurrently with resumable persistence.

    Large inputs run as sequential outer batches, each on a fresh bounded
    thread pool. Stop requests are honored before each batch and each
    dispatch; pending work is cancelled rather than awaited.
    """

    def __init__(
        self,
        *,
        repository,
        validator,
        url_source,
        registry,
        events,
        settings: Optional[EngineSettings] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.repository = repository
        self.validator = validator
        self.url_source = url_source
        self.registry = registry
        self.events = events
        self.settings = settings or EngineSettings()
        self.clock = clock
        self.sleep = sleep
        self._live_lock = threading.Lock()
        self._live: Dict[str, ValidationRunState] = {}

    def create(self, source_id: Optional[str], name: Optional[str] = None,
               urls: Optional[Sequence[str]] = None) -> ValidationCollection:
        collection = ValidationCollection(
            id=str(uuid.uuid4()),
            name=name or f"Validation of {source_id or 'URL list'}",
            source_id=source_id,
            explicit_urls=list(urls or []),
        )
        self.repository.save(collection)
        logger.info("Created validation collection %s for source %s", collection.id, source_id)
        return collection

    def get(self, collection_id: str) -> Optional[ValidationCollection]:
        return self.repository.load(collection_id)

    def list_collections(self) -> List[ValidationCollection]:
        collections = []
        for collection_id in self.repository.list_ids():
            collection = self.repository.load(collection_id)
            if collection is not None:
                collections.append(collection)
        return sorted(collections, key=lambda c: c.created_at)

    def start(self, collection_id: str, concurrency: int = 10, enrich: bool = False) -> Future:
        if concurrency < 1:
            raise InvalidInputError("concurrency", "must be >= 1")
        collection = self._load_with_retry(collection_id)
        handle = self.registry.start(collection_id, VALIDATION)
        future: Future = Future()
        future.set_running_or_notify_cancel()
        state = ValidationRunState()
        with self._live_lock:
            self._live[collection_id] = state
        thread = threading.Thread(
            target=self._run,
            args=(collection, handle.stop_event, state, int(concurrency), bool(enrich), future),
            name=f"validate-{collection_id[:8]}",
            daemon=True,
        )
        thread.start()
        return future

    def stop(self, collection_id: str) -> bool:
        if not self.registry.cancel(collection_id):
            return False
        with self._live_lock:
            state = self._live.get(collection_id)
            if state is not None and not state.state.is_terminal:
                state.state = RunState.STOPPING
        self._publish_status(collection_id, "Stop requested")
        return True

    def status(self, collection_id: str) -> ValidationRunState:
        with self._live_lock:
            state = self._live.get(collection_id)
            if state is not None:
                return replace(state)
        record = self.registry.get(collection_id)
        snapshot = (record or {}).get("details", {}).get("state")
        if snapshot:
            return ValidationRunState(**{**snapshot, "state": RunState(snapshot["state"])})
        return ValidationRunState()

    def _load_with_retry(self, collection_id: str) -> ValidationCollection:
        attempts = max(1, self.settings.load_retries)
        for attempt in range(1, attempts + 1):
            collection = self.repository.load(collection_id)
            if collection is not None:
                return collection
            if attempt < attempts:
                logger.debug("Validation collection %s not found (attempt %d); retrying", collection_id, attempt)
                self.sleep(self.settings.load_retry_delay_seconds)
        raise CollectionNotFoundError(collection_id)

    def _resolve_urls(self, collection: ValidationCollection) -> List[str]:
        if collection.explicit_urls:
            urls = collection.explicit_urls
        elif collection.source_id:
            urls = self.url_source.load_urls(collection.source_id)
        else:
            urls = []
        return list(dict.fromkeys(urls))

    def _plan(self, total: int, concurrency: int):
        engine = self.settings
        if total > engine.very_large_validation_threshold:
            return min(engine.very_large_validation_workers, concurrency), engine.very_large_validation_batch_size
        workers = min(engine.validation_max_workers, concurrency)
        if total > engine.validation_batch_threshold:
            return workers, engine.validation_outer_batch_size
        return workers, max(1, total)

    def _run(self, collection: ValidationCollection, stop_event, state: ValidationRunState, concurrency: int,
             enrich: bool, future: Future) -> None:
        cid = collection.id
        large = False
        try:
            urls = self._resolve_urls(collection)
            total = len(urls)
            large = total > self.settings.snapshot_threshold
            collection.begin(total)
            if total == 0:
                collection.mark(CollectionStatus.COMPLETED, NO_URLS_MESSAGE, completed=True)
                self.repository.save(collection)
                state.state = RunState.COMPLETED
                state.progress = 1.0
                self._publish_status(cid, NO_URLS_MESSAGE)
                self._finish(cid, state, COMPLETED)
                future.set_result(collection)
                return

            workers, batch_size = self._plan(total, concurrency)
            batches = [urls[i:i + batch_size] for i in range(0, total, batch_size)]
            state.state = RunState.RUNNING
            state.total_count = total
            state.total_batches = len(batches)
            self._save(collection, large, final=False)
            self._publish_status(cid, f"Validating {total} URLs in {len(batches)} batches with {workers} workers")

            started = self.clock()
            for number, batch in enumerate(batches, start=1):
                if stop_event.is_set():
                    break
                state.current_batch = number
                self._run_batch(collection, batch, workers, stop_event, state, enrich, large, started)

            if stop_event.is_set():
                message = f"Validation stopped after {collection.validated_count} of {total} URLs"
                collection.mark(CollectionStatus.STOPPED, message)
                state.state = RunState.STOPPED
                status = STOPPED
            else:
                message = (
                    f"Validated {collection.validated_count} URLs: {collection.valid_count} valid, "
                    f"{collection.warning_count} warnings, {collection.invalid_count} invalid"
                )
                collection.mark(CollectionStatus.COMPLETED, message, completed=True)
                state.state = RunState.COMPLETED
                state.progress = 1.0
                status = COMPLETED
            self._save(collection, large, final=True)
            self._publish_status(cid, message)
            self._finish(cid, state, status)
            future.set_result(collection)
        except Exception as e:
            logger.exception("Validation run %s failed", cid)
            collection.mark(CollectionStatus.ERROR, str(e))
            try:
                self._save(collection, large, final=True)
            except Exception:
                logger.exception("Could not persist failed validation run %s", cid)
            state.state = RunState.ERROR
            state.error = str(e)
            self._finish(cid, state, FAILED, error=str(e))
            future.set_exception(e)

    def _run_batch(self, collection: ValidationCollection, urls: List[str], workers: int, stop_event,
                   state: ValidationRunState, enrich: bool, large: bool, started: float) -> None:
        executor = ThreadPoolExecutor(max_workers=max(1, workers), thread_name_prefix=f"validate-{collection.id[:8]}")
        futures = []
        try:
            for url in urls:
                if stop_event.is_set():
                    break
                futures.append(executor.submit(self._validate_one, url, enrich, stop_event))
            pending = set(futures)
            for f in as_completed(futures):
                pending.discard(f)
                if f.cancelled():
                    state.canceled_count += 1
                    continue
                result = f.result()
                if result.status is ValidationStatus.CANCELED:
                    state.canceled_count += 1
                else:
                    self._record(collection, result, state, large, started)
                if stop_event.is_set():
                    break
            if pending:
                for f in pending:
                    f.cancel()
                state.canceled_count += len(pending)
                logger.info("Cancelled %d pending validations for %s", len(pending), collection.id)
        finally:
            executor.shutdown(wait=False, cancel_futures=True)
            running = [f for f in futures if not f.done()]
            if running:
                wait(running, timeout=self.settings.executor_shutdown_grace_seconds)

    def _validate_one(self, url: str, enrich: bool, stop_event) -> ValidationResult:
        if stop_event.is_set():
            return ValidationResult(url, ValidationStatus.CANCELED, "Validation canceled")
        try:
            return self.validator.validate(url, enrich=enrich)
        except Exception as e:
            logger.warning("Unexpected error validating %s: %s", url, e, exc_info=True)
            return ValidationResult(url, ValidationStatus.ERROR, f"Validation error: {e}")

    def _record(self, collection: ValidationCollection, result: ValidationResult, state: ValidationRunState,
                large: bool, started: float) -> None:
        count = collection.record(result)
        total = collection.total_urls
        elapsed = self.clock() - started
        state.validated_count = count
        state.progress = count / total if total else 1.0
        state.urls_per_second = round(count / elapsed, 2) if elapsed > 0 else 0.0
        if should_save(count, total):
            self._save(collection, large, final=False)
            self.registry.update(collection.id, found=total, processed=count)
            self.events.publish(ValidationProgressEvent(collection.id, replace(state)))

    def _save(self, collection: ValidationCollection, large: bool, *, final: bool) -> bool:
        if not large:
            return self.repository.save(collection)
        if final:
            return self.repository.save_split(collection)
        return self.repository.save_snapshot(collection, recent_results=self.settings.snapshot_recent_results)

    def _finish(self, collection_id: str, state: ValidationRunState, status: str, error: Optional[str] = None) -> None:
        self.registry.update(collection_id, processed=state.validated_count, state=state.to_dict())
        self.registry.finish(collection_id, status=status, error=error)
        with self._live_lock:
            self._live.pop(collection_id, None)
        self.events.publish(RunFinishedEvent(collection_id, VALIDATION, state.state.value, error))

    def _publish_status(self, collection_id: str, message: str) -> None:
        logger.info("[%s] %s", collection_id, message)
        self.registry.update(collection_id, message=message)
        self.events.publish(StatusEvent(collection_id, VALIDATION, message))
