import logging
import os
from typing import Optional

import yaml

from sitemapper.domain.settings import EngineSettings

logger = logging.getLogger(__name__)


class SettingsFileStore:
    """Filesystem/YAML IO for the engine settings file.

    Responsibility: locate, read, and parse the YAML file on disk. A missing
    file means defaults.
    """

    def __init__(self, *, path: Optional[str]):
        self.path = path

    def load_yaml_dict(self) -> Optional[dict]:
        """Return the parsed YAML dict, or None if missing/invalid."""
        if not self.path or not os.path.isfile(self.path):
            return None
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError):
            logger.exception("Could not read settings file %s", self.path)
            return None
        if not isinstance(data, dict):
            logger.warning("Settings file %s does not contain a mapping; using defaults", self.path)
            return None
        return data

    def load_settings(self) -> EngineSettings:
        data = self.load_yaml_dict()
        if data is None:
            return EngineSettings()
        logger.info("Loaded engine settings from %s", self.path)
        return EngineSettings.from_mapping(data.get("engine", data))
