import itertools
import logging
import queue
import threading
from typing import Callable, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)


class EventChannel:
    """Bounded queue of run events plus optional per-run subscribers.

    Runs publish from any thread. Callers either drain the queue or
    subscribe a callback; a failing callback is logged and never breaks the
    publishing run. When the queue is full the oldest event is dropped.
    """

    def __init__(self, *, maxsize: int = 10_000):
        self._queue: "queue.Queue" = queue.Queue(maxsize=maxsize)
        self._lock = threading.Lock()
        self._subscribers: Dict[int, Tuple[Optional[str], Callable]] = {}
        self._tokens = itertools.count(1)
        self.dropped = 0

    def publish(self, event) -> None:
        while True:
            try:
                self._queue.put_nowait(event)
                break
            except queue.Full:
                try:
                    self._queue.get_nowait()
                    with self._lock:
                        self.dropped += 1
                except queue.Empty:
                    pass
        with self._lock:
            subscribers = list(self._subscribers.values())
        for run_id, callback in subscribers:
            if run_id is not None and getattr(event, "run_id", None) != run_id:
                continue
            try:
                callback(event)
            except Exception:
                logger.exception("Event subscriber failed for %s", type(event).__name__)

    def subscribe(self, callback: Callable, run_id: Optional[str] = None) -> int:
        token = next(self._tokens)
        with self._lock:
            self._subscribers[token] = (run_id, callback)
        return token

    def unsubscribe(self, token: Optional[int]) -> None:
        if token is None:
            return
        with self._lock:
            self._subscribers.pop(token, None)

    def get(self, timeout: Optional[float] = None):
        """Return the next event, or None if none arrives within `timeout`."""
        try:
            return self._queue.get(timeout=timeout) if timeout else self._queue.get_nowait()
        except queue.Empty:
            return None

    def drain(self, max_items: int = 100) -> List:
        events = []
        while len(events) < max_items:
            try:
                events.append(self._queue.get_nowait())
            except queue.Empty:
                break
        return events
