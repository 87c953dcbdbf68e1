from fastapi import FastAPI

from sitemapper.api.routers import (
    create_events_router,
    create_projects_router,
    create_systems_router,
    create_tuning_router,
    create_validations_router,
)
from sitemapper.container import ENV


def create_app(container) -> FastAPI:
    """Build the control API around the container's engine."""
    app = FastAPI(title="Sitemapper", version="0.1.0")
    engine = container.engine()
    app.include_router(create_systems_router(ENV, engine))
    app.include_router(create_projects_router(engine))
    app.include_router(create_validations_router(engine))
    app.include_router(create_tuning_router(engine))
    app.include_router(create_events_router(container.event_channel()))
    return app
