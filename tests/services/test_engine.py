import pytest

from sitemapper.container import Container
from sitemapper.domain import ProjectStatus
from sitemapper.exceptions import InvalidInputError, ProjectNotFoundError
from sitemapper.services.engine import validate_seed_url


def _engine(tmp_path):
    container = Container()
    container.config.SITEMAPPER_STORAGE.from_value("memory")
    container.config.SITEMAPPER_SETTINGS_FILE.from_value(str(tmp_path / "missing.yml"))
    return container.engine()


@pytest.mark.parametrize("seed,expected", [
    ("example.com", "https://example.com/"),
    ("https://Example.com/news", "https://example.com/news"),
])
def test_validate_seed_url_normalizes(seed, expected):
    assert validate_seed_url(seed) == expected


@pytest.mark.parametrize("seed", ["", "   ", None, "ftp://example.com", "https://", "bad host.com"])
def test_validate_seed_url_rejects(seed):
    with pytest.raises(InvalidInputError):
        validate_seed_url(seed)


def test_create_project_validates_parameters(tmp_path):
    engine = _engine(tmp_path)
    with pytest.raises(InvalidInputError):
        engine.create_project("x", "example.com", crawl_depth=0)
    with pytest.raises(InvalidInputError):
        engine.create_project("x", "example.com", max_pages=-1)

    project = engine.create_project(None, "example.com")
    assert project.name == "example.com"
    assert engine.get_project(project.id) == project
    assert [p.id for p in engine.list_projects()] == [project.id]


def test_crawl_then_validate_end_to_end(tmp_path):
    engine = _engine(tmp_path)
    project = engine.create_project("Example", "https://example.com/")

    results = engine.start_crawl(project.id).result(timeout=10)

    assert len(results) == 9
    assert engine.get_project(project.id).status is ProjectStatus.COMPLETED
    assert len(engine.get_results(project.id)) == 9
    assert len(engine.get_results_chunk(project.id, 0)) == 9
    assert engine.get_results_chunk(project.id, 1) == []
    assert engine.crawl_status(project.id)["status"] == "completed"

    collection = engine.create_validation(None, "Bad input", urls=["ftp://example.com/a", ""])
    done = engine.start_validation(collection.id).result(timeout=10)
    assert done.invalid_count == 2
    assert engine.validation_status(collection.id).validated_count == 2
    assert [c.id for c in engine.list_validations()] == [collection.id]


def test_missing_project_errors(tmp_path):
    engine = _engine(tmp_path)
    with pytest.raises(ProjectNotFoundError):
        engine.get_results("nope")
    with pytest.raises(ProjectNotFoundError):
        engine.create_validation("nope")
    with pytest.raises(InvalidInputError):
        engine.create_validation(None)


def test_tuning_updates_are_validated(tmp_path):
    engine = _engine(tmp_path)
    assert engine.update_tuning(concurrency=6).concurrency == 6
    assert engine.get_tuning().concurrency == 6
    with pytest.raises(InvalidInputError):
        engine.update_tuning(warp_speed=9)


def test_active_runs_filters_by_kind(tmp_path):
    engine = _engine(tmp_path)
    engine.registry.start("c9", "validation")

    assert [r["id"] for r in engine.active_runs("validation")] == ["c9"]
    assert engine.active_runs("crawl") == []
    assert len(engine.active_runs()) == 1
    with pytest.raises(InvalidInputError):
        engine.active_runs("indexing")

    engine.registry.finish("c9", status="completed")
    assert engine.active_runs() == []
