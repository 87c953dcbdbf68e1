from sitemapper.domain.validation import (
    CollectionStatus,
    ValidationCollection,
    ValidationResult,
    ValidationStatus,
)
from sitemapper.repository.blob_store import InMemoryProjectStore
from sitemapper.repository.validations import ValidationRepository


def _collection(n=3):
    c = ValidationCollection("c1", "Check", "p1")
    c.begin(n)
    for i in range(n):
        c.record(ValidationResult(f"https://example.com/{i}", ValidationStatus.VALID, "HTTP 200 OK"))
    return c


def test_small_collection_round_trips_as_one_blob():
    store = InMemoryProjectStore()
    repo = ValidationRepository(store)
    repo.save(_collection())

    assert store.list_names("c1") == ["validation"]
    loaded = repo.load("c1")
    assert loaded.valid_count == 3
    assert len(loaded.results) == 3
    assert repo.list_ids() == ["c1"]


def test_split_storage_loads_results_from_urls_blob():
    store = InMemoryProjectStore()
    repo = ValidationRepository(store)
    c = _collection(5)
    c.mark(CollectionStatus.COMPLETED, "done", completed=True)

    repo.save_split(c)

    assert store.load("c1", "metadata")["results"] == []
    assert store.load("c1", "metadata")["resultsStoredSeparately"] is True
    loaded = repo.load("c1")
    assert len(loaded.results) == 5
    assert loaded.status is CollectionStatus.COMPLETED


def test_snapshot_keeps_only_recent_results():
    store = InMemoryProjectStore()
    repo = ValidationRepository(store)

    repo.save_snapshot(_collection(5), recent_results=2)

    loaded = repo.load("c1")
    assert loaded.valid_count == 5
    assert [r.url for r in loaded.results] == ["https://example.com/3", "https://example.com/4"]


def test_old_schema_is_recovered_and_resaved():
    store = InMemoryProjectStore()
    store.save("c1", "validation", {
        "id": "c1",
        "name": "Legacy",
        "siteMapId": "p9",
        "status": "in_progress",
        "urls": [
            {"url": "https://example.com/a", "status": "Valid", "message": "HTTP 200 OK"},
            {"url": "https://example.com/b", "status": "Error", "message": "HTTP 404 Not Found"},
            {"status": "Valid"},
        ],
    })
    repo = ValidationRepository(store)

    loaded = repo.load("c1")

    assert loaded.source_id == "p9"
    assert loaded.status is CollectionStatus.IN_PROGRESS
    assert loaded.valid_count == 1
    assert loaded.invalid_count == 1
    assert loaded.total_urls == 2
    assert len(loaded.results) == 2
    # re-saved in the current schema
    assert ValidationCollection.from_dict(store.load("c1", "validation")).source_id == "p9"


def test_recover_prefers_counters_when_present():
    repo = ValidationRepository(InMemoryProjectStore())
    c = repo.recover("c2", {"validUrls": 7, "warningUrls": "2", "invalidUrls": 1, "completedAt": "2024-01-01T00:00:00"})
    assert (c.valid_count, c.warning_count, c.invalid_count) == (7, 2, 1)
    assert c.total_urls == 10
    assert c.status is CollectionStatus.COMPLETED


def test_missing_collection_returns_none():
    assert ValidationRepository(InMemoryProjectStore()).load("nope") is None
