"""
Tests for the analysis engine.
"""

import asyncio
from unittest.mock import MagicMock, patch

import pytest

from water_quality.analysis.engine import AnalysisEngine
from water_quality.analysis.errors import AlreadyTrainingError, DataInsufficientError
from water_quality.analysis.models import EngineConfig, Reading
from water_quality.analysis.store import FileArtifactStore, MemoryArtifactStore


@pytest.fixture
def engine(memory_store):
    """Untrained engine on an empty in-memory store."""
    return AnalysisEngine(EngineConfig(store_backend="memory"), store=memory_store)


@pytest.fixture
def fast_engine(fast_engine_config, memory_store):
    """Engine with short training runs."""
    return AnalysisEngine(fast_engine_config, store=memory_store)


class TestInitialization:
    """Tests for engine construction."""

    def test_builds_store_from_config(self, tmp_path):
        """Test the configured backend is used when no store is injected."""
        engine = AnalysisEngine(EngineConfig(store_backend="file", artifact_dir=str(tmp_path)))

        assert isinstance(engine.store, FileArtifactStore)

    @patch("water_quality.analysis.cache.redis.Redis")
    def test_unreachable_store_starts_untrained(self, mock_redis, ideal_reading):
        """Test an unreachable backend leaves the engine usable without a store."""
        mock_redis.return_value.ping.side_effect = ConnectionError("refused")

        engine = AnalysisEngine(EngineConfig(store_backend="redis"))

        assert engine.store is None
        assert engine.anomaly_detector.store is None
        assert not any(s.trained for s in engine.get_model_status().values())
        assert engine.analyze_reading(ideal_reading).classification_label == "Excellent"

    @patch("water_quality.core.database.psycopg2.connect")
    def test_unreachable_postgres_starts_untrained(self, mock_connect):
        """Test a failed PostgreSQL connection does not raise from the constructor."""
        mock_connect.side_effect = Exception("could not connect")

        engine = AnalysisEngine(EngineConfig(store_backend="postgres"))

        assert engine.store is None
        assert engine.classifier.status().trained is False

    def test_unknown_store_backend_raises(self):
        """Test a misspelled backend is still a configuration error."""
        with pytest.raises(ValueError, match="Unknown artifact store"):
            AnalysisEngine(EngineConfig(store_backend="sqlite"))

    def test_injected_store(self, engine, memory_store):
        """Test an injected store is shared with both detectors."""
        assert engine.store is memory_store
        assert engine.anomaly_detector.store is memory_store
        assert engine.classifier.store is memory_store

    def test_method_configs_applied(self, memory_store):
        """Test per-method configuration reaches the detectors."""
        config = EngineConfig(anomaly_config={"epochs": 5}, classification_config={"epochs": 7})

        engine = AnalysisEngine(config, store=memory_store)

        assert engine.anomaly_detector.config.epochs == 5
        assert engine.classifier.config.epochs == 7

    def test_injected_detectors(self, memory_store):
        """Test detectors can be replaced."""
        anomaly, classifier = MagicMock(), MagicMock()

        engine = AnalysisEngine(
            EngineConfig(), store=memory_store, anomaly_detector=anomaly, classifier=classifier
        )

        assert engine.anomaly_detector is anomaly
        assert engine.classifier is classifier

    def test_cold_status(self, engine):
        """Test a fresh engine reports both models untrained."""
        status = engine.get_model_status()

        assert set(status) == {"anomaly", "classification"}
        assert all(not s.trained and not s.training for s in status.values())


class TestAnalyzeReading:
    """Tests for analyze_reading."""

    def test_cold_start_acidic(self, engine, acidic_reading):
        """Test rule-based results for a critically acidic sample."""
        result = engine.analyze_reading(acidic_reading)

        assert result.anomaly_score == 0.2
        assert result.classification_code == 4
        assert result.classification_label == "Poor"
        assert result.parameter_scores["ph"] == 0.0
        assert result.parameter_scores["tds"] == 1.0
        assert "Critical: PH is dangerously low (3.5)" in result.alerts
        assert (
            "Water quality classification is Poor or Critical - immediate attention required"
            in result.alerts
        )

    def test_ideal_reading(self, engine, ideal_reading):
        """Test a midpoint reading is Excellent with no alerts."""
        result = engine.analyze_reading(ideal_reading)

        assert result.anomaly_score == 0.0
        assert result.classification_code == 1
        assert result.classification_label == "Excellent"
        assert result.alerts == []

    def test_turbidity_clamped(self, engine):
        """Test turbidity 5000 is analyzed exactly as 1000."""
        base = {"ph": 7.5, "tds": 175, "temperature": 17.5, "conductivity": 500}

        extreme = engine.analyze_reading(Reading(turbidity=5000, **base))
        domain_max = engine.analyze_reading(Reading(turbidity=1000, **base))

        assert extreme.reading.turbidity == 1000
        assert extreme.anomaly_score == domain_max.anomaly_score
        assert extreme.classification_code == domain_max.classification_code
        assert extreme.parameter_scores == domain_max.parameter_scores
        assert extreme.alerts == domain_max.alerts

    def test_ranges(self, engine, critical_reading, acidic_reading, ideal_reading):
        """Test scores stay in range for any reading."""
        for reading in (critical_reading, acidic_reading, ideal_reading):
            result = engine.analyze_reading(reading)
            assert 0.0 <= result.anomaly_score <= 1.0
            assert result.classification_code in {1, 2, 3, 4, 5}

    def test_appends_to_window(self, engine, ideal_reading):
        """Test each analyzed reading enters the window."""
        for _ in range(3):
            engine.analyze_reading(ideal_reading)

        assert len(engine.recent_readings()) == 3

    def test_window_bounded(self, engine, ideal_reading):
        """Test the window never exceeds history_size."""
        for _ in range(150):
            engine.analyze_reading(ideal_reading)

        assert len(engine.recent_readings()) == 100

    def test_detectors_see_window(self, memory_store, ideal_reading, acidic_reading):
        """Test detectors receive the whole window, newest last."""
        anomaly = MagicMock()
        anomaly.score.return_value = 0.1
        classifier = MagicMock()
        classifier.score.return_value = 2
        engine = AnalysisEngine(
            EngineConfig(), store=memory_store, anomaly_detector=anomaly, classifier=classifier
        )
        engine.set_recent_readings([ideal_reading] * 5)

        result = engine.analyze_reading(acidic_reading)

        (window,), _ = anomaly.score.call_args
        assert len(window) == 6
        assert window[-1] == acidic_reading
        assert result.anomaly_score == 0.1
        assert result.classification_label == "Good"

    def test_to_dict(self, engine, acidic_reading):
        """Test results serialize."""
        data = engine.analyze_reading(acidic_reading).to_dict()

        assert data["classification_code"] == 4
        assert data["reading"]["ph"] == 3.5


class TestSetRecentReadings:
    """Tests for set_recent_readings."""

    def test_keeps_last_history_size(self, engine, in_band_readings):
        """Test seeding with more readings than fit keeps the newest."""
        engine.set_recent_readings(in_band_readings)

        assert engine.recent_readings() == in_band_readings[-100:]

    def test_clamps_turbidity(self, engine):
        """Test seeded readings are clamped like analyzed ones."""
        engine.set_recent_readings(
            [Reading(ph=7, tds=100, temperature=15, conductivity=400, turbidity=9999)]
        )

        assert engine.recent_readings()[0].turbidity == 1000


class TestTraining:
    """Tests for train_models."""

    def test_insufficient_data(self, fast_engine, in_band_readings):
        """Test 30 readings are rejected and the anomaly model stays untrained."""
        with pytest.raises(DataInsufficientError):
            asyncio.run(fast_engine.train_models(in_band_readings[:30]))

        status = fast_engine.get_model_status()
        assert status["anomaly"].trained is False
        assert fast_engine.is_training is False

    def test_trains_both_models(self, fast_engine, in_band_readings, memory_store):
        """Test both models train, report progress and persist."""
        progress = []

        history = asyncio.run(
            fast_engine.train_models(
                in_band_readings,
                on_progress=lambda name, epoch, logs: progress.append((name, epoch)),
            )
        )

        assert set(history) == {"anomaly", "classification"}
        assert progress == [
            ("anomaly", 0),
            ("anomaly", 1),
            ("classification", 0),
            ("classification", 1),
        ]
        assert all(s.trained for s in fast_engine.get_model_status().values())
        assert len(memory_store.keys()) == 4

    def test_training_guard(self, fast_engine, in_band_readings):
        """Test a concurrent train_models call raises while the first completes."""

        async def run_both():
            first = asyncio.create_task(fast_engine.train_models(in_band_readings))
            await asyncio.sleep(0)
            assert fast_engine.get_model_status()["anomaly"].training is True
            with pytest.raises(AlreadyTrainingError):
                await fast_engine.train_models(in_band_readings)
            return await first

        history = asyncio.run(run_both())

        assert set(history) == {"anomaly", "classification"}
        assert all(s.trained for s in fast_engine.get_model_status().values())

    def test_analyze_during_training(self, fast_engine, in_band_readings, acidic_reading):
        """Test readings are still analyzed while a training run is in flight."""

        async def analyze_mid_training():
            task = asyncio.create_task(fast_engine.train_models(in_band_readings))
            await asyncio.sleep(0)
            result = fast_engine.analyze_reading(acidic_reading)
            await task
            return result

        result = asyncio.run(analyze_mid_training())

        assert result.classification_code == 4

    def test_reload_from_store(self, fast_engine_config, in_band_readings, memory_store):
        """Test a second engine on the same store starts trained."""
        first = AnalysisEngine(fast_engine_config, store=memory_store)
        asyncio.run(first.train_models(in_band_readings))

        second = AnalysisEngine(fast_engine_config, store=memory_store)

        assert all(s.trained for s in second.get_model_status().values())


class TestReset:
    """Tests for reset_models."""

    def test_reset_after_training(self, fast_engine, in_band_readings, memory_store):
        """Test reset returns both detectors to rule-based mode."""
        asyncio.run(fast_engine.train_models(in_band_readings))

        fast_engine.reset_models()

        assert not any(s.trained for s in fast_engine.get_model_status().values())
        assert memory_store.keys() == []

    def test_reset_refused_while_training(self, engine):
        """Test reset is rejected during training."""
        engine.is_training = True

        with pytest.raises(AlreadyTrainingError):
            engine.reset_models()


class TestEndToEnd:
    """Train on clean history, then analyze an in-range reading with the models."""

    def test_in_range_reading_after_training(self, in_band_readings, ideal_reading):
        """Test trained models rate an in-range reading Excellent with a low anomaly score."""
        config = EngineConfig(
            store_backend="memory",
            anomaly_config={"epochs": 60, "learning_rate": 0.005},
            classification_config={"epochs": 20, "learning_rate": 0.005},
        )
        engine = AnalysisEngine(config, store=MemoryArtifactStore())

        asyncio.run(engine.train_models(in_band_readings))
        engine.set_recent_readings(in_band_readings)

        status = engine.get_model_status()
        assert status["anomaly"].trained and status["classification"].trained

        # Both scores must come from the networks, not the rule fallback
        with (
            patch.object(engine.anomaly_detector, "fallback", side_effect=AssertionError),
            patch.object(engine.classifier, "fallback", side_effect=AssertionError),
        ):
            result = engine.analyze_reading(ideal_reading)

        assert result.classification_label == "Excellent"
        assert result.anomaly_score < 0.3
