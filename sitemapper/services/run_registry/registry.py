from __future__ import annotations

import threading
from dataclasses import asdict
from typing import Any, Dict, List, Optional

from sitemapper.exceptions import RunAlreadyActiveError
from sitemapper.utils.datetime_utils import utc_now

from .cancellation import RunCancellationManager
from .models import RunHandle
from .store import RunRecordStore


class InMemoryRunRegistry:
    """Thread-safe registry of crawl and validation runs, keyed by run id.

    Each run id maps to its cancel signal and its progress record. At most
    one non-terminal run may exist per id. Finished records are retained up
    to `max_completed_records` so status queries still answer after a run
    ends.
    """

    def __init__(self, *, max_completed_records: int = 1000):
        self._lock = threading.Lock()
        self._records = RunRecordStore(max_completed_records=max_completed_records)
        self._cancellation = RunCancellationManager()

    def start(self, run_id: str, kind: str) -> RunHandle:
        with self._lock:
            existing = self._records.get(run_id)
            if existing is not None and existing.is_active:
                raise RunAlreadyActiveError(run_id)
            self._records.create_running(run_id=run_id, kind=kind, now=utc_now())
            stop_event = self._cancellation.create(run_id)
            return RunHandle(run_id=run_id, stop_event=stop_event)

    def update(
        self,
        run_id: str,
        *,
        found: Optional[int] = None,
        processed: Optional[int] = None,
        current_url: Optional[str] = None,
        message: Optional[str] = None,
        **details: Any,
    ) -> bool:
        with self._lock:
            return self._records.update(
                run_id,
                found=found,
                processed=processed,
                current_url=current_url,
                message=message,
                details=details,
                now=utc_now(),
            )

    def finish(self, run_id: str, *, status: str, error: Optional[str] = None) -> bool:
        with self._lock:
            ok = self._records.finish(run_id, status=status, error=error, now=utc_now())
            if ok:
                self._cancellation.cleanup(run_id)
                for evicted_id in self._records.evict_completed_overflow():
                    self._cancellation.cleanup(evicted_id)
            return ok

    def get(self, run_id: str) -> Optional[Dict]:
        with self._lock:
            rec = self._records.get(run_id)
            return asdict(rec) if rec else None

    def cancel(self, run_id: str) -> bool:
        """Request cooperative cancellation. The run stays registered as
        `stopping` until its driver calls `finish()`.
        """
        with self._lock:
            if not self._cancellation.request_cancel(run_id):
                return False
            return self._records.mark_stopping(run_id, now=utc_now())

    def list_active(self, kind: Optional[str] = None) -> List[Dict]:
        with self._lock:
            return [asdict(r) for r in self._records.list_active() if kind is None or r.kind == kind]
