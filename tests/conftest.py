"""
Pytest configuration and shared fixtures.
"""

import math
import random
from datetime import UTC, datetime, timedelta

import pytest

from water_quality.analysis.models import EngineConfig, Reading
from water_quality.analysis.store import MemoryArtifactStore
from water_quality.generator.models import AnomalyType, GeneratorConfig


# Reading fixtures
@pytest.fixture
def ideal_reading():
    """Reading at the middle of every ideal band."""
    return Reading(ph=7.5, tds=175, temperature=17.5, conductivity=500, turbidity=25)


@pytest.fixture
def acidic_reading():
    """Reading with a critically low pH, everything else in band."""
    return Reading(ph=3.5, tds=250, temperature=22, conductivity=400, turbidity=2)


@pytest.fixture
def critical_reading():
    """Reading with several parameters past their critical bounds."""
    return Reading(ph=4.0, tds=600, temperature=40, conductivity=1500, turbidity=1200)


# Engine fixtures
@pytest.fixture
def memory_store():
    """Empty in-memory artifact store."""
    return MemoryArtifactStore()


@pytest.fixture
def fast_engine_config():
    """Engine configuration with short training runs for tests."""
    return EngineConfig(
        store_backend="memory",
        anomaly_config={"epochs": 2, "batch_size": 32},
        classification_config={"epochs": 2, "batch_size": 16},
    )


# Generator fixtures
@pytest.fixture
def start_time():
    """Fixed start time so generated timestamps are predictable."""
    return datetime(2024, 1, 1, tzinfo=UTC)


@pytest.fixture
def steady_config(start_time):
    """Seeded generator configuration without anomalies."""
    return GeneratorConfig(
        seed=7,
        start_time=start_time,
        interval_seconds=60.0,
        anomaly_probability=0.0,
    )


@pytest.fixture
def anomalous_config(start_time):
    """Seeded generator configuration that injects on every free reading."""
    return GeneratorConfig(
        seed=7,
        start_time=start_time,
        anomaly_probability=1.0,
    )


@pytest.fixture
def all_anomaly_types():
    """List of all anomaly types."""
    return list(AnomalyType)


# Training fixtures
def build_in_band_readings(count: int = 200, seed: int = 11) -> list[Reading]:
    """Deterministic history hugging the middle of every ideal band

    The first two readings sit near the band edges so the fitted scaler spans
    most of each band; the rest oscillate slightly around the midpoints.
    """
    rng = random.Random(seed)
    start = datetime(2024, 1, 1, tzinfo=UTC)
    readings = [
        Reading(ph=6.6, tds=60, temperature=11, conductivity=210, turbidity=1, timestamp=start),
        Reading(
            ph=8.4,
            tds=290,
            temperature=24,
            conductivity=790,
            turbidity=49,
            timestamp=start + timedelta(minutes=1),
        ),
    ]
    for i in range(count - 2):
        wave = math.sin(i / 6)
        readings.append(
            Reading(
                ph=7.5 + 0.02 * wave + rng.uniform(-0.01, 0.01),
                tds=175 + 2 * wave + rng.uniform(-1, 1),
                temperature=17.5 + 0.1 * wave + rng.uniform(-0.05, 0.05),
                conductivity=500 + 5 * wave + rng.uniform(-2.5, 2.5),
                turbidity=25 + 0.4 * wave + rng.uniform(-0.2, 0.2),
                timestamp=start + timedelta(minutes=i + 2),
            )
        )
    return readings


@pytest.fixture
def in_band_readings():
    """200 deterministic in-band readings."""
    return build_in_band_readings()


@pytest.fixture
def fast_anomaly_config():
    """Anomaly detector hyperparameters for quick training runs."""
    return {"epochs": 2}


@pytest.fixture
def fast_classifier_config():
    """Classifier hyperparameters for quick training runs."""
    return {"epochs": 2}
