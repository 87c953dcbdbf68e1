import logging
from typing import List, Optional, Sequence

from sitemapper.domain.crawl_pattern import CrawlPattern
from sitemapper.domain.project import Project
from sitemapper.exceptions import StorageError

logger = logging.getLogger(__name__)

PROJECT_BLOB = "project"
PATTERNS_BLOB = "patterns"


class ProjectRepository:
    def __init__(self, store):
        self._store = store

    def save(self, project: Project) -> bool:
        try:
            self._store.save(project.id, PROJECT_BLOB, project.to_dict())
        except StorageError as e:
            logger.warning("Failed to save project %s: %s", project.id, e)
            return False
        return True

    def get(self, project_id: str) -> Optional[Project]:
        try:
            raw = self._store.load(project_id, PROJECT_BLOB)
        except (StorageError, ValueError) as e:
            logger.warning("Failed to load project %s: %s", project_id, e)
            return None
        if raw is None:
            return None
        try:
            return Project.from_dict(raw)
        except (KeyError, TypeError, ValueError):
            logger.exception("Unreadable project record %s", project_id)
            return None

    def list_projects(self) -> List[Project]:
        projects = []
        for store_id in self._store.list_ids():
            if PROJECT_BLOB in self._store.list_names(store_id):
                project = self.get(store_id)
                if project is not None:
                    projects.append(project)
        return sorted(projects, key=lambda p: p.created_at)

    def save_patterns(self, project_id: str, patterns: Sequence[CrawlPattern]) -> bool:
        try:
            self._store.save(project_id, PATTERNS_BLOB, [p.to_dict() for p in patterns])
        except StorageError as e:
            logger.warning("Failed to save patterns for %s: %s", project_id, e)
            return False
        return True

    def load_patterns(self, project_id: str) -> List[CrawlPattern]:
        try:
            raw = self._store.load(project_id, PATTERNS_BLOB)
        except StorageError as e:
            logger.warning("Failed to load patterns for %s: %s", project_id, e)
            return []
        if not isinstance(raw, list):
            return []
        patterns = []
        for item in raw:
            try:
                patterns.append(CrawlPattern.from_dict(item))
            except (KeyError, TypeError):
                logger.debug("Skipping unreadable pattern for %s: %r", project_id, item)
        return patterns
