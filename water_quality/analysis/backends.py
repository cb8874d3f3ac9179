"""
Artifact store registry and factory.
"""

from .cache import RedisArtifactStore
from .database import PostgresArtifactStore
from .models import EngineConfig
from .store import ArtifactStore, FileArtifactStore, MemoryArtifactStore

STORE_REGISTRY = {
    "memory": lambda config: MemoryArtifactStore(),
    "file": lambda config: FileArtifactStore(config.artifact_dir),
    "redis": RedisArtifactStore,
    "postgres": PostgresArtifactStore,
}


def create_store(config: EngineConfig) -> ArtifactStore:
    """Build the artifact store named by config.store_backend

    Raises:
        ValueError: If the backend is not registered
    """
    backend = config.store_backend
    if backend not in STORE_REGISTRY:
        available = ", ".join(STORE_REGISTRY.keys())
        raise ValueError(f"Unknown artifact store '{backend}'. Available stores: {available}")
    return STORE_REGISTRY[backend](config)


def list_stores() -> list[str]:
    return list(STORE_REGISTRY.keys())
