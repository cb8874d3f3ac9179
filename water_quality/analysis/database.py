"""
PostgreSQL artifact store.

Artifacts live in one table keyed by artifact name, payload stored as JSONB.
"""

import json
from typing import Any

import structlog

from water_quality.core.database import PostgresConnection

from .errors import ArtifactLoadError, PersistenceError
from .models import EngineConfig
from .store import ArtifactStore

logger = structlog.get_logger(__name__)


class PostgresArtifactStore(PostgresConnection, ArtifactStore):
    """Model artifacts persisted in PostgreSQL"""

    def __init__(self, config: EngineConfig, table: str = "model_artifacts"):
        super().__init__(
            host=config.postgres_host,
            port=config.postgres_port,
            database=config.postgres_database,
            user=config.postgres_user,
            password=config.postgres_password,
        )
        self.table = table
        self.ensure_table_exists()

    def ensure_table_exists(self):
        """Create the artifact table if it doesn't exist"""
        query = f"""
            CREATE TABLE IF NOT EXISTS {self.table} (
                artifact_key VARCHAR(100) PRIMARY KEY,
                payload JSONB NOT NULL,
                saved_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
            );
        """
        self.execute(query)
        logger.info("Ensured artifact table exists", table=self.table)

    def save(self, key: str, payload: dict[str, Any]) -> None:
        query = f"""
            INSERT INTO {self.table} (artifact_key, payload, saved_at)
            VALUES (%(key)s, %(payload)s, NOW())
            ON CONFLICT (artifact_key)
            DO UPDATE SET
                payload = EXCLUDED.payload,
                saved_at = EXCLUDED.saved_at
        """
        try:
            self.execute(query, {"key": key, "payload": json.dumps(payload)})
            logger.debug("Artifact saved to PostgreSQL", key=key)
        except Exception as e:
            logger.error("Failed to save artifact", key=key, error=str(e))
            raise PersistenceError(f"Failed to save artifact {key} to PostgreSQL: {e}") from e

    def load(self, key: str) -> dict[str, Any] | None:
        query = f"SELECT payload FROM {self.table} WHERE artifact_key = %s"
        try:
            row = self.fetch_one(query, (key,))
        except Exception as e:
            logger.error("Failed to load artifact", key=key, error=str(e))
            raise ArtifactLoadError(f"Failed to load artifact {key} from PostgreSQL: {e}") from e

        if row is None:
            return None
        payload = row[0]
        # psycopg2 decodes JSONB to dicts, plain JSON text columns arrive as str
        if isinstance(payload, str):
            payload = json.loads(payload)
        return payload

    def remove(self, key: str) -> None:
        query = f"DELETE FROM {self.table} WHERE artifact_key = %s"
        try:
            self.execute(query, (key,))
        except Exception as e:
            logger.error("Failed to remove artifact", key=key, error=str(e))
            raise PersistenceError(f"Failed to remove artifact {key} from PostgreSQL: {e}") from e
