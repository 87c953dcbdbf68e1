from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Deque, Dict, List, Optional

RUNNING = "running"
STOPPING = "stopping"
COMPLETED = "completed"
STOPPED = "stopped"
FAILED = "failed"

ACTIVE_STATUSES = (RUNNING, STOPPING)


@dataclass
class RunRecord:
    id: str
    kind: str
    status: str
    started_at: datetime
    last_seen: datetime
    finished_at: Optional[datetime] = None
    found: int = 0
    processed: int = 0
    current_url: Optional[str] = None
    message: Optional[str] = None
    error: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)
    recent_urls: Deque[str] = field(default_factory=lambda: deque(maxlen=20))

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    def get_recent_urls(self) -> List[str]:
        """Return recent URLs as a list (most recent first)."""
        return list(reversed(self.recent_urls))


@dataclass(frozen=True)
class RunHandle:
    run_id: str
    stop_event: threading.Event
