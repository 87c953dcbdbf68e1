"""
Test for run.py main() function with dependency injection.
"""
from unittest.mock import patch
from run import main
from sitemapper.container import Container


def _container(tmp_path):
    container = Container()
    container.config.SITEMAPPER_STORAGE.from_value("memory")
    container.config.SITEMAPPER_SETTINGS_FILE.from_value(str(tmp_path / "missing.yml"))
    container.config.USER_AGENT.from_value("TestBot/1.0")
    return container


def test_container_creates_dependencies(tmp_path):
    container = _container(tmp_path)

    assert container.projects_repository() is not None
    assert container.results_store().chunk_size == 50_000
    assert container.validations_repository() is not None
    assert container.http_service().user_agent == "TestBot/1.0"


def test_container_wires_same_registry_into_runs(tmp_path):
    container = _container(tmp_path)

    registry = container.run_registry()
    assert container.crawl_orchestrator().registry is registry
    assert container.validation_pipeline().registry is registry
    assert container.engine().controller is container.throughput_controller()


def test_main_accepts_injected_container(tmp_path):
    container = _container(tmp_path)

    # Mock uvicorn.run to prevent server startup
    with patch('run.uvicorn.run') as mock_uvicorn:
        main(container=container)

        assert mock_uvicorn.called
        app = mock_uvicorn.call_args.args[0]
        paths = {route.path for route in app.routes}
        assert "/projects" in paths
        assert "/validations/{collection_id}/start" in paths
        assert "/systems/health" in paths
