import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from typing import Callable, List, Optional

from sitemapper.domain.crawl_result import CrawlResult, CrawlStatus
from sitemapper.domain.dedup_index import DedupIndex
from sitemapper.domain.events import CRAWL, ResultsEvent, RunFinishedEvent, StatusEvent
from sitemapper.domain.project import Project, ProjectStatus
from sitemapper.domain.settings import EngineSettings
from sitemapper.exceptions import ProjectNotFoundError
from sitemapper.services.discovery_hints import DEFAULT_PATTERNS, analyze_seed
from sitemapper.services.run_registry.models import COMPLETED, FAILED, STOPPED
from sitemapper.services.url_generator import domain_of

logger = logging.getLogger(__name__)

SEED_TITLE = "Seed Page"


class _CrawlRun:
    """Mutable state of one crawl run, owned by its driver thread."""

    def __init__(self, project: Project, stop_event: threading.Event, stop_checker, cap: int, started_at: float):
        self.project = project
        self.domain = domain_of(project.seed_url)
        self.stop_event = stop_event
        self.stop_checker = stop_checker
        self.cap = cap
        self.lock = threading.Lock()
        self.results: List[CrawlResult] = []
        self.index: Optional[DedupIndex] = None
        self.resumed = 0
        self.unsaved = 0
        self.duplicates = 0
        self.rounds = 0
        self.idle_rounds = 0
        self.chunked_storage = False
        self.executor: Optional[ThreadPoolExecutor] = None
        self.executor_workers = 0
        self.refresh_pool = False
        self.started_at = started_at
        self.last_adjust_at = started_at
        self.found_at_last_adjust = 0

    @property
    def total(self) -> int:
        with self.lock:
            return len(self.results)

    def at_cap(self) -> bool:
        return self.total >= self.cap


class CrawlOrchestrator:
    """Runs URL discovery for a project on a background thread.

    The orchestrator owns the crawl control flow (seed analysis, initial
    exploration, generate/probe rounds, checkpoints, cancellation checks)
    and delegates dedup, candidate generation, fetching, pacing and storage
    to injected collaborators.
    """

    def __init__(
        self,
        *,
        projects,
        results_store,
        generator,
        fetcher,
        controller,
        registry,
        events,
        hint_provider=None,
        settings: Optional[EngineSettings] = None,
        dedup_index_factory: Callable[[int], DedupIndex] = DedupIndex,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.projects = projects
        self.results_store = results_store
        self.generator = generator
        self.fetcher = fetcher
        self.controller = controller
        self.registry = registry
        self.events = events
        self.hint_provider = hint_provider
        self.settings = settings or EngineSettings()
        self.dedup_index_factory = dedup_index_factory
        self.clock = clock

    def start(self, project_id: str, status_cb=None, results_cb=None, stop_checker=None) -> Future:
        """Start crawling `project_id` and return a future resolving to its results.

        Raises ProjectNotFoundError or RunAlreadyActiveError synchronously.
        """
        project = self.projects.get(project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)
        handle = self.registry.start(project_id, CRAWL)
        future: Future = Future()
        future.set_running_or_notify_cancel()
        token = self._subscribe_callbacks(project_id, status_cb, results_cb)

        project = project.with_status(ProjectStatus.CRAWLING)
        self.projects.save(project)
        thread = threading.Thread(
            target=self._run,
            args=(project, handle.stop_event, stop_checker, future, token),
            name=f"crawl-{project_id[:8]}",
            daemon=True,
        )
        try:
            thread.start()
        except RuntimeError as e:
            self.events.unsubscribe(token)
            self.projects.save(project.with_status(ProjectStatus.FAILED, str(e)))
            self.registry.finish(project_id, status=FAILED, error=str(e))
            raise
        return future

    def stop(self, project_id: str) -> bool:
        return self.registry.cancel(project_id)

    def status(self, project_id: str) -> Optional[dict]:
        return self.registry.get(project_id)

    def _subscribe_callbacks(self, run_id: str, status_cb, results_cb) -> Optional[int]:
        if status_cb is None and results_cb is None:
            return None

        def dispatch(event):
            if isinstance(event, StatusEvent) and status_cb is not None:
                status_cb(event.message)
            elif isinstance(event, ResultsEvent) and results_cb is not None:
                results_cb(list(event.new_results))

        return self.events.subscribe(dispatch, run_id=run_id)

    def _run(self, project: Project, stop_event, stop_checker, future: Future, token) -> None:
        max_pages = project.max_pages if project.max_pages and project.max_pages > 0 else self.settings.max_crawl_urls
        ctx = _CrawlRun(project, stop_event, stop_checker, min(max_pages, self.settings.max_crawl_urls), self.clock())
        try:
            results = self._crawl(ctx)
        except Exception as e:
            logger.exception("Crawl failed for project %s", project.id)
            if ctx.index is not None:
                try:
                    self._checkpoint(ctx, force=True)
                except Exception:
                    logger.exception("Final save failed for project %s", project.id)
            self.projects.save(project.with_status(ProjectStatus.FAILED, str(e)))
            self.registry.finish(project.id, status=FAILED, error=str(e))
            self.events.publish(RunFinishedEvent(project.id, CRAWL, ProjectStatus.FAILED.value, str(e)))
            future.set_exception(e)
        else:
            stopped = self._should_stop(ctx)
            final = ProjectStatus.STOPPED if stopped else ProjectStatus.COMPLETED
            self.projects.save(project.with_status(final))
            self._status(ctx, f"Crawl {final.value.lower()} with {len(results)} URLs")
            self.registry.finish(project.id, status=STOPPED if stopped else COMPLETED)
            self.events.publish(RunFinishedEvent(project.id, CRAWL, final.value))
            future.set_result(results)
        finally:
            if ctx.executor is not None:
                ctx.executor.shutdown(wait=True, cancel_futures=True)
            self.events.unsubscribe(token)

    def _crawl(self, ctx: _CrawlRun) -> List[CrawlResult]:
        project = ctx.project
        engine = self.settings
        self._status(ctx, f"Starting crawl of {project.seed_url}")

        # a partial load fails the run; the final checkpoint would otherwise overwrite unread chunks
        existing = self.results_store.load_set(project.id, strict=True)
        ctx.results = list(existing)
        ctx.resumed = ctx.found_at_last_adjust = len(existing)
        if ctx.resumed > self.controller.snapshot().storage_chunk_size:
            ctx.chunked_storage = True
            self.controller.update(use_chunked_storage=True)
        ctx.index = self.dedup_index_factory(ctx.resumed)
        rebuilt = ctx.index.seed((r.url for r in existing), rebuild_threshold=engine.filter_rebuild_threshold)
        if ctx.resumed:
            self._status(ctx, f"Resuming with {ctx.resumed} existing URLs")

        skip_seed = ctx.resumed > engine.resume_skip_seed_threshold
        self.registry.update(
            project.id,
            found=ctx.resumed,
            resumed_count=ctx.resumed,
            chunked_storage=ctx.chunked_storage,
            seed_analysis_skipped=skip_seed,
            filter_rebuilt=rebuilt,
            filter_capacity=ctx.index.filter_capacity,
            filter_false_positive_rate=ctx.index.false_positive_rate,
        )

        if skip_seed:
            patterns = self.projects.load_patterns(project.id) or list(DEFAULT_PATTERNS)
            self._status(ctx, f"Skipping seed analysis for resumed project; reusing {len(patterns)} patterns")
        else:
            patterns = analyze_seed(self.hint_provider, project.seed_url) or list(DEFAULT_PATTERNS)
            self.projects.save_patterns(project.id, patterns)
            self._status(ctx, f"Seed analysis produced {len(patterns)} patterns")
        self.registry.update(project.id, patterns=[p.to_dict() for p in patterns])
        if not skip_seed:
            self._explore(ctx, patterns)

        if project.crawl_depth > 1:
            self._discovery_loop(ctx)

        self._checkpoint(ctx, force=True)
        self.registry.update(project.id, rounds=ctx.rounds, duplicates=ctx.duplicates, dedup=ctx.index.stats())
        with ctx.lock:
            return list(ctx.results)

    def _explore(self, ctx: _CrawlRun, patterns) -> None:
        found = []
        for target in self.generator.initial_exploration(ctx.project.seed_url, patterns):
            if self._should_stop(ctx):
                break
            if ctx.index.seen(target.url):
                continue
            if target.pattern is None:
                found.append(CrawlResult(target.url, SEED_TITLE, CrawlStatus.OK))
            elif target.include:
                found.append(self._fetch(ctx, target.url))
            else:
                found.append(CrawlResult(target.url, f"Excluded by {target.pattern}", CrawlStatus.EXCLUDED))
        self._accept(ctx, found)

    def _discovery_loop(self, ctx: _CrawlRun) -> None:
        engine = self.settings
        while not self._should_stop(ctx) and not ctx.at_cap():
            ctx.rounds += 1
            round_started = self.clock()
            room = ctx.cap - ctx.total
            candidates = self.generator.generate(ctx.domain, ctx.index, min(engine.generation_limit, room))
            if not candidates and engine.fallback_guesses_enabled:
                self._status(ctx, "Archive patterns exhausted; trying direct guesses")
                candidates = self.generator.generate_direct_guesses(
                    ctx.domain, ctx.index, min(engine.fallback_generation_limit, room)
                )
            if not candidates:
                self._status(ctx, "No new candidate URLs; finishing crawl")
                break

            added = self._probe(ctx, candidates)
            logger.debug("Round %d for %s: %d candidates, %d new", ctx.rounds, ctx.project.id, len(candidates), added)
            if added == 0:
                ctx.idle_rounds += 1
                if ctx.idle_rounds >= engine.max_idle_rounds:
                    self._status(ctx, f"No new URLs in {ctx.idle_rounds} rounds; finishing crawl")
                    break
            else:
                ctx.idle_rounds = 0

            self._maybe_adjust(ctx)
            self._checkpoint(ctx)
            self._pause(ctx, self.clock() - round_started)

    def _probe(self, ctx: _CrawlRun, candidates: List[str]) -> int:
        settings = self.controller.snapshot()
        executor = self._executor_for(ctx, settings.concurrency)
        size = settings.batch_size
        futures = [
            executor.submit(self._probe_batch, ctx, candidates[i:i + size])
            for i in range(0, len(candidates), size)
        ]
        added = 0
        for f in as_completed(futures):
            added += self._accept(ctx, f.result())
        return added

    def _probe_batch(self, ctx: _CrawlRun, urls: List[str]) -> List[CrawlResult]:
        found = []
        duplicates = 0
        for url in urls:
            if self._should_stop(ctx):
                break
            if ctx.index.seen(url):
                duplicates += 1
                continue
            found.append(self._fetch(ctx, url))
        if duplicates:
            with ctx.lock:
                ctx.duplicates += duplicates
        return found

    def _fetch(self, ctx: _CrawlRun, url: str) -> CrawlResult:
        try:
            return self.fetcher.fetch(url, stop_event=ctx.stop_event)
        except Exception as e:
            logger.warning("Fetch error for %s: %s", url, e, exc_info=True)
            return CrawlResult(url, "", CrawlStatus.ERROR)

    def _accept(self, ctx: _CrawlRun, found: List[CrawlResult]) -> int:
        if not found:
            return 0
        with ctx.lock:
            room = max(0, ctx.cap - len(ctx.results))
            found = found[:room]
            ctx.results.extend(found)
            ctx.unsaved += len(found)
            total = len(ctx.results)
        if found:
            self.registry.update(ctx.project.id, found=total, current_url=found[-1].url)
            self.events.publish(ResultsEvent(ctx.project.id, tuple(found), total))
        return len(found)

    def _executor_for(self, ctx: _CrawlRun, workers: int) -> ThreadPoolExecutor:
        if ctx.executor is None or ctx.executor_workers != workers or ctx.refresh_pool:
            if ctx.executor is not None:
                ctx.executor.shutdown(wait=True)
                logger.debug("Recreating crawl worker pool for %s with %d workers", ctx.project.id, workers)
            ctx.executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix=f"crawl-{ctx.project.id[:8]}")
            ctx.executor_workers = workers
            ctx.refresh_pool = False
        return ctx.executor

    def _maybe_adjust(self, ctx: _CrawlRun) -> None:
        now = self.clock()
        elapsed = now - ctx.last_adjust_at
        if elapsed < self.settings.adjust_interval_seconds:
            return
        total = ctx.total
        current_rate = (total - ctx.found_at_last_adjust) / elapsed if elapsed > 0 else 0.0
        run_time = now - ctx.started_at
        average_rate = (total - ctx.resumed) / run_time if run_time > 0 else 0.0
        settings = self.controller.adjust(current_rate, average_rate, total)
        ctx.last_adjust_at = now
        ctx.found_at_last_adjust = total
        if settings.use_chunked_storage and not ctx.chunked_storage:
            ctx.chunked_storage = True
            self._status(ctx, "Chunked storage enabled for large dataset")
        if self.controller.adjustment_count % 10 == 0:
            ctx.refresh_pool = True
        self.registry.update(
            ctx.project.id,
            urls_per_second=round(current_rate, 2),
            chunked_storage=ctx.chunked_storage,
            throughput=settings.to_dict(),
        )

    def _pause(self, ctx: _CrawlRun, round_seconds: float) -> None:
        settings = self.controller.snapshot()
        delay_ms = settings.inter_batch_delay_ms
        if settings.use_time_based_throttling:
            overrun_ms = round_seconds * 1000 - settings.target_batch_duration_ms
            if overrun_ms > 0:
                delay_ms = max(0, delay_ms - overrun_ms)
        if delay_ms > 0 and not self._should_stop(ctx):
            ctx.stop_event.wait(delay_ms / 1000)

    def _checkpoint(self, ctx: _CrawlRun, force: bool = False) -> None:
        with ctx.lock:
            if not force and ctx.unsaved < self.settings.checkpoint_interval:
                return
            snapshot = list(ctx.results)
            pending = ctx.unsaved
            ctx.unsaved = 0
        chunk_size = self.controller.snapshot().storage_chunk_size
        if self.results_store.save_set(snapshot, ctx.project.id, chunk_size=chunk_size):
            self._status(ctx, f"Checkpoint saved: {len(snapshot)} URLs")
        else:
            # retried at the next checkpoint
            with ctx.lock:
                ctx.unsaved += pending
            logger.warning("Checkpoint failed for %s; will retry", ctx.project.id)

    def _should_stop(self, ctx: _CrawlRun) -> bool:
        if ctx.stop_event is not None and ctx.stop_event.is_set():
            return True
        if ctx.stop_checker is None:
            return False
        try:
            return bool(ctx.stop_checker())
        except Exception as e:
            logger.warning("Stop checker failed for %s: %s", ctx.project.id, e)
            return False

    def _status(self, ctx: _CrawlRun, message: str) -> None:
        logger.info("[%s] %s", ctx.project.id, message)
        self.registry.update(ctx.project.id, message=message)
        self.events.publish(StatusEvent(ctx.project.id, CRAWL, message))
