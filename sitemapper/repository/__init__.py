from .blob_store import InMemoryProjectStore, JsonFileProjectStore
from .chunked_results import ChunkedResultStore
from .projects import ProjectRepository
from .validations import ValidationRepository

__all__ = [
    "InMemoryProjectStore",
    "JsonFileProjectStore",
    "ChunkedResultStore",
    "ProjectRepository",
    "ValidationRepository",
]
