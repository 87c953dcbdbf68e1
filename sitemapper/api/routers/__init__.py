"""API router factory functions."""
from .events import create_events_router
from .projects import create_projects_router
from .systems import create_systems_router
from .tuning import create_tuning_router
from .validations import create_validations_router

__all__ = [
    "create_events_router",
    "create_projects_router",
    "create_systems_router",
    "create_tuning_router",
    "create_validations_router",
]
