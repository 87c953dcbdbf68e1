"""Typed events published by crawl and validation runs."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Tuple

from sitemapper.domain.crawl_result import CrawlResult
from sitemapper.domain.run_state import ValidationRunState
from sitemapper.utils.datetime_utils import utc_now

CRAWL = "crawl"
VALIDATION = "validation"


@dataclass(frozen=True)
class StatusEvent:
    run_id: str
    kind: str
    message: str
    timestamp: datetime = field(default_factory=utc_now)


@dataclass(frozen=True)
class ResultsEvent:
    """New crawl results found by one batch, plus the running total."""

    run_id: str
    new_results: Tuple[CrawlResult, ...]
    total: int
    timestamp: datetime = field(default_factory=utc_now)


@dataclass(frozen=True)
class ValidationProgressEvent:
    run_id: str
    state: ValidationRunState
    timestamp: datetime = field(default_factory=utc_now)


@dataclass(frozen=True)
class RunFinishedEvent:
    run_id: str
    kind: str
    state: str
    error: Optional[str] = None
    timestamp: datetime = field(default_factory=utc_now)


def event_to_dict(event) -> dict:
    """JSON-friendly view of an event for the HTTP surface."""
    data = {"type": type(event).__name__, "run_id": event.run_id, "timestamp": event.timestamp.isoformat()}
    if isinstance(event, StatusEvent):
        data.update(kind=event.kind, message=event.message)
    elif isinstance(event, ResultsEvent):
        data.update(total=event.total, new_results=[r.to_dict() for r in event.new_results])
    elif isinstance(event, ValidationProgressEvent):
        data.update(state=event.state.to_dict())
    elif isinstance(event, RunFinishedEvent):
        data.update(kind=event.kind, state=event.state, error=event.error)
    return data
