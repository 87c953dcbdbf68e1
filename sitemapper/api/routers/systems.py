from typing import Optional

from fastapi import APIRouter

from sitemapper.api.errors import to_http_exception
from sitemapper.exceptions import SitemapperError


def create_systems_router(container_env: dict, engine):
    """Create systems router with access to container environment config."""
    router = APIRouter(prefix="/systems", tags=["System"])

    @router.get("/health")
    def health():
        return {"status": "ok"}

    @router.get("/config")
    def get_config():
        """Return current environment configuration values."""
        return {
            "environment": {
                key: str(value) if value is not None else None
                for key, value in container_env.items()
            }
        }

    @router.get("/runs")
    def list_runs(kind: Optional[str] = None):
        """Crawl and validation runs currently running or stopping."""
        try:
            runs = engine.active_runs(kind)
        except SitemapperError as e:
            raise to_http_exception(e)
        return {"runs": runs}

    return router
