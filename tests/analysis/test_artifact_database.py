"""
Tests for the PostgreSQL artifact store.
"""

import json
from unittest.mock import MagicMock, patch

import pytest

from water_quality.analysis.database import PostgresArtifactStore
from water_quality.analysis.errors import ArtifactLoadError, PersistenceError
from water_quality.analysis.models import EngineConfig


@pytest.fixture
def pg_config():
    return EngineConfig(
        store_backend="postgres",
        postgres_host="db",
        postgres_port=5433,
        postgres_database="test_db",
        postgres_user="test_user",
        postgres_password="test_password",
    )


@pytest.fixture
def mock_cursor():
    with patch("water_quality.core.database.psycopg2.connect") as mock_connect:
        connection = MagicMock()
        cursor = MagicMock()
        connection.cursor.return_value = cursor
        mock_connect.return_value = connection
        yield cursor


class TestPostgresArtifactStore:
    """Tests for PostgresArtifactStore."""

    def test_initialization_creates_table(self, pg_config, mock_cursor):
        """Test the artifact table is created on startup."""
        store = PostgresArtifactStore(pg_config)

        assert store.host == "db"
        assert store.port == 5433
        assert store.table == "model_artifacts"
        query = mock_cursor.execute.call_args[0][0]
        assert "CREATE TABLE IF NOT EXISTS model_artifacts" in query
        assert "payload JSONB" in query

    def test_save_upserts_json(self, pg_config, mock_cursor):
        """Test save upserts the JSON-encoded payload."""
        store = PostgresArtifactStore(pg_config)
        mock_cursor.reset_mock()

        store.save("water-quality-classification-scaler", {"min": [0], "max": [1]})

        query, params = mock_cursor.execute.call_args[0]
        assert "ON CONFLICT (artifact_key)" in query
        assert params["key"] == "water-quality-classification-scaler"
        assert json.loads(params["payload"]) == {"min": [0], "max": [1]}

    def test_save_failure(self, pg_config, mock_cursor):
        """Test database errors on save become PersistenceError."""
        store = PostgresArtifactStore(pg_config)
        mock_cursor.execute.side_effect = Exception("connection reset")

        with pytest.raises(PersistenceError, match="connection reset"):
            store.save("k", {"a": 1})

    def test_load_jsonb_dict(self, pg_config, mock_cursor):
        """Test a JSONB payload decoded by the driver is returned as-is."""
        store = PostgresArtifactStore(pg_config)
        mock_cursor.fetchone.return_value = ({"a": 1},)

        assert store.load("k") == {"a": 1}
        assert mock_cursor.execute.call_args[0][1] == ("k",)

    def test_load_json_text(self, pg_config, mock_cursor):
        """Test a payload returned as text is decoded."""
        store = PostgresArtifactStore(pg_config)
        mock_cursor.fetchone.return_value = ('{"a": 2}',)

        assert store.load("k") == {"a": 2}

    def test_load_missing(self, pg_config, mock_cursor):
        """Test a missing row returns None."""
        store = PostgresArtifactStore(pg_config)
        mock_cursor.fetchone.return_value = None

        assert store.load("k") is None

    def test_load_failure(self, pg_config, mock_cursor):
        """Test query errors on load become ArtifactLoadError."""
        store = PostgresArtifactStore(pg_config)
        mock_cursor.execute.side_effect = Exception("relation does not exist")

        with pytest.raises(ArtifactLoadError):
            store.load("k")

    def test_remove(self, pg_config, mock_cursor):
        """Test remove deletes by key."""
        store = PostgresArtifactStore(pg_config)

        store.remove("k")

        query, params = mock_cursor.execute.call_args[0]
        assert query.startswith("DELETE FROM model_artifacts")
        assert params == ("k",)
