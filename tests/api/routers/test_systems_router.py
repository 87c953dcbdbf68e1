from unittest.mock import Mock

import pytest
from fastapi import HTTPException

from sitemapper.api.routers.events import create_events_router
from sitemapper.api.routers.systems import create_systems_router
from sitemapper.api.routers.tuning import TuningUpdateRequest, create_tuning_router
from sitemapper.domain.events import CRAWL, StatusEvent
from sitemapper.domain.throughput import ThroughputSettings
from sitemapper.exceptions import InvalidInputError
from sitemapper.services.events import EventChannel


def _get_endpoint(router, path: str, method: str):
    for route in router.routes:
        if getattr(route, "path", None) != path:
            continue
        methods = getattr(route, "methods", set())
        if method.upper() in methods:
            return route.endpoint
    raise AssertionError(f"No route found for {method} {path}")


def test_health_and_config():
    router = create_systems_router({"SITEMAPPER_DATA_DIR": "data", "SITEMAPPER_PORT": None}, Mock())
    assert _get_endpoint(router, "/systems/health", "GET")() == {"status": "ok"}
    resp = _get_endpoint(router, "/systems/config", "GET")()
    assert resp == {"environment": {"SITEMAPPER_DATA_DIR": "data", "SITEMAPPER_PORT": None}}


def test_runs_lists_active_runs_by_kind():
    engine = Mock(active_runs=Mock(return_value=[{"id": "c1", "kind": "validation", "status": "running"}]))
    router = create_systems_router({}, engine)

    resp = _get_endpoint(router, "/systems/runs", "GET")(kind="validation")

    engine.active_runs.assert_called_once_with("validation")
    assert [r["id"] for r in resp["runs"]] == ["c1"]


def test_runs_unknown_kind_is_400():
    engine = Mock(active_runs=Mock(side_effect=InvalidInputError("kind", "bad")))
    router = create_systems_router({}, engine)
    with pytest.raises(HTTPException) as exc:
        _get_endpoint(router, "/systems/runs", "GET")(kind="other")
    assert exc.value.status_code == 400


def test_tuning_update_passes_only_given_fields():
    engine = Mock(update_tuning=Mock(return_value=ThroughputSettings(concurrency=6)))
    router = create_tuning_router(engine)
    endpoint = _get_endpoint(router, "/tuning", "PUT")

    resp = endpoint(TuningUpdateRequest(concurrency=6))

    engine.update_tuning.assert_called_once_with(concurrency=6)
    assert resp["concurrency"] == 6


def test_tuning_invalid_is_400():
    engine = Mock(update_tuning=Mock(side_effect=InvalidInputError("tuning", "bad")))
    router = create_tuning_router(engine)
    with pytest.raises(HTTPException) as exc:
        _get_endpoint(router, "/tuning", "PUT")(TuningUpdateRequest(batch_size=10))
    assert exc.value.status_code == 400


def test_events_drain():
    channel = EventChannel()
    channel.publish(StatusEvent("p1", CRAWL, "hello"))
    router = create_events_router(channel)

    resp = _get_endpoint(router, "/events", "GET")(max_items=10)

    assert [e["message"] for e in resp["events"]] == ["hello"]
    assert resp["dropped"] == 0
    assert _get_endpoint(router, "/events", "GET")(max_items=10)["events"] == []
