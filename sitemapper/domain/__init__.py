"""Domain objects for sitemapper - explicit re-exports to satisfy linters."""
from .crawl_result import CrawlResult as CrawlResult, CrawlStatus as CrawlStatus
from .crawl_pattern import CrawlPattern as CrawlPattern
from .project import Project as Project, ProjectStatus as ProjectStatus
from .chunk_metadata import ChunkMetadata as ChunkMetadata
from .validation import (
    CollectionStatus as CollectionStatus,
    ValidationCollection as ValidationCollection,
    ValidationResult as ValidationResult,
    ValidationStatus as ValidationStatus,
)
from .run_state import RunState as RunState, ValidationRunState as ValidationRunState
from .throughput import ThroughputSettings as ThroughputSettings

__all__ = [
    "CrawlResult",
    "CrawlStatus",
    "CrawlPattern",
    "Project",
    "ProjectStatus",
    "ChunkMetadata",
    "CollectionStatus",
    "ValidationCollection",
    "ValidationResult",
    "ValidationStatus",
    "RunState",
    "ValidationRunState",
    "ThroughputSettings",
]
