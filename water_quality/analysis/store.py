"""
Key-value stores for trained model artifacts.

Payloads are JSON-serializable dicts: network weights with their
configuration, or scaler state `{"min": [...], "max": [...]}`.
"""

import json
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

import structlog

from .errors import ArtifactLoadError, PersistenceError

logger = structlog.get_logger(__name__)

ANOMALY_MODEL_KEY = "water-quality-anomaly-model"
ANOMALY_SCALER_KEY = "water-quality-anomaly-scaler"
CLASSIFICATION_MODEL_KEY = "water-quality-classification-model"
CLASSIFICATION_SCALER_KEY = "water-quality-classification-scaler"


class ArtifactStore(ABC):
    """Durable key-value storage for model artifacts

    save() and remove() raise PersistenceError on failure. load() returns
    None for a missing key and raises ArtifactLoadError for an unreadable one.
    """

    @abstractmethod
    def save(self, key: str, payload: dict[str, Any]) -> None:
        pass

    @abstractmethod
    def load(self, key: str) -> dict[str, Any] | None:
        pass

    @abstractmethod
    def remove(self, key: str) -> None:
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class MemoryArtifactStore(ArtifactStore):
    """Process-local store; payloads are copied through JSON on the way in"""

    def __init__(self):
        self._items: dict[str, str] = {}

    def save(self, key: str, payload: dict[str, Any]) -> None:
        try:
            self._items[key] = json.dumps(payload)
        except (TypeError, ValueError) as e:
            raise PersistenceError(f"Artifact {key} is not JSON-serializable: {e}") from e
        logger.debug("Artifact saved to memory", key=key)

    def load(self, key: str) -> dict[str, Any] | None:
        data = self._items.get(key)
        if data is None:
            return None
        return json.loads(data)

    def remove(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._items)


class FileArtifactStore(ArtifactStore):
    """One JSON file per key under a directory"""

    def __init__(self, directory: str | os.PathLike):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        if not key or "/" in key or key.startswith("."):
            raise ValueError(f"Invalid artifact key: {key!r}")
        return self.directory / f"{key}.json"

    def save(self, key: str, payload: dict[str, Any]) -> None:
        path = self._path(key)
        tmp_name = None
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            # Write to a temp file first so a crash never leaves half an artifact
            fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(payload, handle)
            os.replace(tmp_name, path)
        except (OSError, TypeError, ValueError) as e:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
            logger.error("Failed to save artifact", key=key, path=str(path), error=str(e))
            raise PersistenceError(f"Failed to save artifact {key}: {e}") from e
        logger.debug("Artifact saved", key=key, path=str(path))

    def load(self, key: str) -> dict[str, Any] | None:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            with path.open(encoding="utf-8") as handle:
                return json.load(handle)
        except (OSError, ValueError) as e:
            raise ArtifactLoadError(f"Failed to read artifact {key}: {e}") from e

    def remove(self, key: str) -> None:
        path = self._path(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise PersistenceError(f"Failed to remove artifact {key}: {e}") from e

    def __repr__(self) -> str:
        return f"FileArtifactStore(directory={str(self.directory)!r})"
