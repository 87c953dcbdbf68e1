from __future__ import annotations

from collections import deque
from datetime import datetime
from typing import Any, Dict, List, Optional

from .models import RUNNING, STOPPING, RunRecord


class RunRecordStore:
    def __init__(self, *, max_completed_records: int):
        if max_completed_records < 0:
            raise ValueError("max_completed_records must be >= 0")
        self._records: Dict[str, RunRecord] = {}
        self._max_completed_records = max_completed_records
        self._completed_order = deque()

    def create_running(self, *, run_id: str, kind: str, now: datetime) -> RunRecord:
        if run_id in self._completed_order:
            self._completed_order.remove(run_id)
        rec = RunRecord(id=run_id, kind=kind, status=RUNNING, started_at=now, last_seen=now)
        self._records[run_id] = rec
        return rec

    def get(self, run_id: str) -> Optional[RunRecord]:
        return self._records.get(run_id)

    def update(
        self,
        run_id: str,
        *,
        found: Optional[int] = None,
        processed: Optional[int] = None,
        current_url: Optional[str] = None,
        message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        now: datetime,
    ) -> bool:
        rec = self._records.get(run_id)
        if not rec:
            return False
        if found is not None:
            rec.found = found
        if processed is not None:
            rec.processed = processed
        if message is not None:
            rec.message = message
        if details:
            rec.details.update(details)
        if current_url is not None:
            rec.current_url = current_url
            if current_url and current_url not in rec.recent_urls:
                rec.recent_urls.append(current_url)
        rec.last_seen = now
        return True

    def mark_stopping(self, run_id: str, *, now: datetime) -> bool:
        rec = self._records.get(run_id)
        if not rec or not rec.is_active:
            return False
        rec.status = STOPPING
        rec.last_seen = now
        return True

    def finish(self, run_id: str, *, status: str, error: Optional[str], now: datetime) -> bool:
        rec = self._records.get(run_id)
        if not rec:
            return False
        rec.status = status
        rec.finished_at = now
        rec.last_seen = now
        if error:
            rec.error = error
        self._completed_order.append(run_id)
        return True

    def evict_completed_overflow(self) -> List[str]:
        evicted: List[str] = []
        while len(self._completed_order) > self._max_completed_records:
            oldest = self._completed_order.popleft()
            rec = self._records.get(oldest)
            if rec is not None and not rec.is_active:
                del self._records[oldest]
                evicted.append(oldest)
        return evicted

    def list_active(self) -> List[RunRecord]:
        return [r for r in self._records.values() if r.status in (RUNNING, STOPPING)]
