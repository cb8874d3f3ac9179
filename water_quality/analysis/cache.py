"""
Redis artifact store for trained models.
"""

import json
from typing import Any, Optional

import redis
import structlog

from .errors import ArtifactLoadError, PersistenceError
from .models import EngineConfig
from .store import ArtifactStore

logger = structlog.get_logger(__name__)


class RedisArtifactStore(ArtifactStore):
    """Redis backend; each artifact is a JSON string under a prefixed key"""

    def __init__(self, config: EngineConfig, prefix: str = "water-quality:artifact:"):
        self.prefix = prefix
        self.ttl: Optional[int] = config.redis_ttl_seconds
        try:
            self.redis = redis.Redis(
                host=config.redis_host,
                port=config.redis_port,
                db=config.redis_db,
                password=config.redis_password,
                decode_responses=True,
            )
            self.redis.ping()
            logger.info("Redis artifact store initialized", host=config.redis_host, port=config.redis_port)
        except Exception as e:
            logger.error("Failed to initialize Redis", error=str(e))
            raise

    def save(self, key: str, payload: dict[str, Any]) -> None:
        redis_key = self._make_key(key)
        try:
            data = json.dumps(payload)
            if self.ttl:
                self.redis.setex(redis_key, self.ttl, data)
            else:
                self.redis.set(redis_key, data)
            logger.debug("Artifact saved to Redis", key=redis_key)
        except Exception as e:
            logger.error("Failed to save artifact to Redis", key=redis_key, error=str(e))
            raise PersistenceError(f"Failed to save artifact {key} to Redis: {e}") from e

    def load(self, key: str) -> dict[str, Any] | None:
        redis_key = self._make_key(key)
        try:
            data = self.redis.get(redis_key)
            if data is None:
                return None
            return json.loads(data)
        except Exception as e:
            logger.error("Failed to load artifact from Redis", key=redis_key, error=str(e))
            raise ArtifactLoadError(f"Failed to load artifact {key} from Redis: {e}") from e

    def remove(self, key: str) -> None:
        redis_key = self._make_key(key)
        try:
            self.redis.delete(redis_key)
        except Exception as e:
            logger.error("Failed to remove artifact from Redis", key=redis_key, error=str(e))
            raise PersistenceError(f"Failed to remove artifact {key} from Redis: {e}") from e

    def _make_key(self, key: str) -> str:
        return f"{self.prefix}{key}"
