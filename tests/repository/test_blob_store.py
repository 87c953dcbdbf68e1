import pytest

from sitemapper.exceptions import StorageError
from sitemapper.repository.blob_store import InMemoryProjectStore, JsonFileProjectStore


def test_json_store_round_trip(tmp_path):
    store = JsonFileProjectStore(base_dir=str(tmp_path))
    store.save("p1", "crawl", [{"url": "https://example.com/", "title": "Home"}])

    assert store.load("p1", "crawl") == [{"url": "https://example.com/", "title": "Home"}]
    assert store.load("p1", "missing") is None
    assert store.list_names("p1") == ["crawl"]
    assert store.list_ids() == ["p1"]


def test_json_store_leaves_no_temp_files(tmp_path):
    store = JsonFileProjectStore(base_dir=str(tmp_path))
    store.save("p1", "crawl", {"a": 1})
    store.save("p1", "crawl", {"a": 2})

    files = sorted(p.name for p in (tmp_path / "p1").iterdir())
    assert files == ["crawl.json"]
    assert store.load("p1", "crawl") == {"a": 2}


def test_json_store_failed_write_keeps_previous_blob(tmp_path):
    store = JsonFileProjectStore(base_dir=str(tmp_path))
    store.save("p1", "crawl", {"a": 1})

    with pytest.raises(StorageError):
        store.save("p1", "crawl", {"a": object()})

    assert store.load("p1", "crawl") == {"a": 1}
    assert sorted(p.name for p in (tmp_path / "p1").iterdir()) == ["crawl.json"]


def test_json_store_unreadable_blob_raises(tmp_path):
    store = JsonFileProjectStore(base_dir=str(tmp_path))
    (tmp_path / "p1").mkdir()
    (tmp_path / "p1" / "crawl.json").write_text("{not json", encoding="utf-8")

    with pytest.raises(StorageError):
        store.load("p1", "crawl")


@pytest.mark.parametrize("bad", ["../etc", "a/b", "", ".hidden"])
def test_json_store_rejects_unsafe_ids(tmp_path, bad):
    store = JsonFileProjectStore(base_dir=str(tmp_path))
    with pytest.raises(ValueError):
        store.save(bad, "crawl", {})


def test_memory_store_isolates_callers():
    store = InMemoryProjectStore()
    data = {"items": [1, 2]}
    store.save("p1", "crawl", data)
    data["items"].append(3)

    loaded = store.load("p1", "crawl")
    loaded["items"].append(4)

    assert store.load("p1", "crawl") == {"items": [1, 2]}
    assert store.delete("p1", "crawl") is True
    assert store.delete("p1", "crawl") is False
    assert store.list_ids() == []
