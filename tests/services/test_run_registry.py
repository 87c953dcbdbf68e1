import threading

import pytest

from sitemapper.exceptions import RunAlreadyActiveError
from sitemapper.services.run_registry import InMemoryRunRegistry


def test_only_one_active_run_per_id():
    registry = InMemoryRunRegistry()
    registry.start("p1", "crawl")

    with pytest.raises(RunAlreadyActiveError):
        registry.start("p1", "crawl")

    registry.finish("p1", status="completed")
    registry.start("p1", "crawl")
    assert registry.get("p1")["status"] == "running"


def test_cancel_sets_event_and_marks_stopping():
    registry = InMemoryRunRegistry()
    handle = registry.start("p1", "crawl")
    assert isinstance(handle.stop_event, threading.Event)

    assert registry.cancel("p1")

    assert handle.stop_event.is_set()
    assert registry.get("p1")["status"] == "stopping"
    with pytest.raises(RunAlreadyActiveError):
        registry.start("p1", "crawl")

    registry.finish("p1", status="stopped")
    assert registry.list_active() == []
    assert registry.cancel("p1") is False


def test_update_merges_details():
    registry = InMemoryRunRegistry()
    registry.start("c1", "validation")

    registry.update("c1", found=10, processed=3, current_url="https://example.com/a", rounds=1)
    registry.update("c1", message="halfway", rounds=2)

    rec = registry.get("c1")
    assert (rec["found"], rec["processed"], rec["message"]) == (10, 3, "halfway")
    assert rec["details"] == {"rounds": 2}
    assert registry.update("missing", found=1) is False


def test_bounded_completed_retention():
    registry = InMemoryRunRegistry(max_completed_records=2)
    for run_id in ("a", "b", "c"):
        registry.start(run_id, "crawl")
        registry.finish(run_id, status="completed")

    assert registry.get("a") is None
    assert registry.get("b") is not None
    assert registry.get("c") is not None


def test_list_active_filters_by_kind():
    registry = InMemoryRunRegistry()
    registry.start("p1", "crawl")
    registry.start("c1", "validation")

    assert [r["id"] for r in registry.list_active("validation")] == ["c1"]
    assert len(registry.list_active()) == 2
