import copy
import json
import logging
import os
import re
import tempfile
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional

from sitemapper.exceptions import StorageError

logger = logging.getLogger(__name__)

_SAFE_NAME = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")


def _check_name(kind: str, value: str) -> str:
    if not isinstance(value, str) or not _SAFE_NAME.match(value) or ".." in value:
        raise ValueError(f"Invalid {kind}: {value!r}")
    return value


class JsonFileProjectStore:
    """Stores blobs as `<base_dir>/<store_id>/<name>.json`.

    Every write goes to a temp file in the target directory and is then
    moved over the destination with `os.replace`.
    """

    def __init__(self, *, base_dir: str):
        self.base_dir = Path(base_dir)

    def _dir(self, store_id: str) -> Path:
        return self.base_dir / _check_name("store id", store_id)

    def _path(self, store_id: str, name: str) -> Path:
        return self._dir(store_id) / f"{_check_name('blob name', name)}.json"

    def load(self, store_id: str, name: str) -> Optional[Any]:
        path = self._path(store_id, name)
        if not path.is_file():
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            raise StorageError(store_id, name, e) from e

    def save(self, store_id: str, name: str, data: Any) -> None:
        path = self._path(store_id, name)
        tmp_name = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{name}.", suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, path)
            tmp_name = None
        except (OSError, TypeError, ValueError) as e:
            raise StorageError(store_id, name, e) from e
        finally:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.remove(tmp_name)

    def delete(self, store_id: str, name: str) -> bool:
        path = self._path(store_id, name)
        try:
            path.unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageError(store_id, name, e) from e

    def list_names(self, store_id: str) -> List[str]:
        d = self._dir(store_id)
        if not d.is_dir():
            return []
        return sorted(p.stem for p in d.glob("*.json"))

    def list_ids(self) -> List[str]:
        if not self.base_dir.is_dir():
            return []
        return sorted(p.name for p in self.base_dir.iterdir() if p.is_dir() and _SAFE_NAME.match(p.name))


class InMemoryProjectStore:
    """Process-local store with the same contract as JsonFileProjectStore.

    Blobs are round-tripped through JSON on save so callers get the same
    serialization errors and isolation as with files.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._blobs: Dict[str, Dict[str, Any]] = {}

    def load(self, store_id: str, name: str) -> Optional[Any]:
        with self._lock:
            blob = self._blobs.get(store_id, {}).get(name)
            return copy.deepcopy(blob) if blob is not None else None

    def save(self, store_id: str, name: str, data: Any) -> None:
        _check_name("store id", store_id)
        _check_name("blob name", name)
        try:
            encoded = json.loads(json.dumps(data))
        except (TypeError, ValueError) as e:
            raise StorageError(store_id, name, e) from e
        with self._lock:
            self._blobs.setdefault(store_id, {})[name] = encoded

    def delete(self, store_id: str, name: str) -> bool:
        with self._lock:
            return self._blobs.get(store_id, {}).pop(name, None) is not None

    def list_names(self, store_id: str) -> List[str]:
        with self._lock:
            return sorted(self._blobs.get(store_id, {}))

    def list_ids(self) -> List[str]:
        with self._lock:
            return sorted(k for k, v in self._blobs.items() if v)
