from __future__ import annotations

import threading
from typing import Dict, Optional


class RunCancellationManager:
    def __init__(self, *, event_factory=threading.Event):
        self._event_factory = event_factory
        self._cancel_events: Dict[str, threading.Event] = {}

    def create(self, run_id: str) -> threading.Event:
        ev = self._event_factory()
        self._cancel_events[run_id] = ev
        return ev

    def request_cancel(self, run_id: str) -> bool:
        ev = self._cancel_events.get(run_id)
        if not ev:
            return False
        ev.set()
        return True

    def cleanup(self, run_id: str) -> None:
        self._cancel_events.pop(run_id, None)
