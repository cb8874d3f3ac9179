"""
Data models, standards and configuration for water quality analysis.
"""

import os
from dataclasses import asdict, dataclass, field, replace
from datetime import datetime
from typing import Any, Optional

import numpy as np

# Feature order used by the scaler and the sequence models
FEATURES = ("ph", "tds", "temperature", "conductivity", "turbidity")
FEATURE_COUNT = len(FEATURES)
TURBIDITY_INDEX = FEATURES.index("turbidity")

# Turbidity is clamped to this domain (NTU) before any scoring or scaling
TURBIDITY_MIN = 0.0
TURBIDITY_MAX = 1000.0


def clamp_turbidity(value: float) -> float:
    return min(TURBIDITY_MAX, max(TURBIDITY_MIN, value))


@dataclass(frozen=True)
class ParameterStandard:
    """Ideal band and critical bounds for one parameter"""

    min: float
    max: float
    critical_low: float
    critical_high: float


WATER_QUALITY_STANDARDS: dict[str, ParameterStandard] = {
    "ph": ParameterStandard(min=6.5, max=8.5, critical_low=5.0, critical_high=9.5),
    "tds": ParameterStandard(min=50, max=300, critical_low=0, critical_high=500),
    "temperature": ParameterStandard(min=10, max=25, critical_low=5, critical_high=35),
    "conductivity": ParameterStandard(min=200, max=800, critical_low=50, critical_high=1200),
    "turbidity": ParameterStandard(min=0, max=50, critical_low=0, critical_high=1000),
}

CLASSIFICATION_LEVELS: dict[int, str] = {
    1: "Excellent",  # all parameters within ideal range
    2: "Good",  # minor deviations
    3: "Fair",  # some parameters outside ideal but acceptable
    4: "Poor",  # multiple violations or one critical
    5: "Critical",  # several parameters in critical range
}


@dataclass(frozen=True)
class Reading:
    """One timestamped water quality measurement"""

    ph: float
    tds: float
    temperature: float
    conductivity: float
    turbidity: float
    timestamp: Optional[datetime] = None

    def value(self, parameter: str) -> float:
        return getattr(self, parameter)

    def to_vector(self) -> list[float]:
        """Feature vector in FEATURES order, turbidity clamped"""
        values = [float(self.value(name)) for name in FEATURES]
        values[TURBIDITY_INDEX] = clamp_turbidity(values[TURBIDITY_INDEX])
        return values

    def with_clamped_turbidity(self) -> "Reading":
        clamped = clamp_turbidity(self.turbidity)
        if clamped == self.turbidity:
            return self
        return replace(self, turbidity=clamped)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["timestamp"] = self.timestamp.isoformat() if self.timestamp else None
        return data


def feature_matrix(readings) -> np.ndarray:
    """Stack readings into a (n, 5) float32 matrix with turbidity clamped"""
    return np.asarray([reading.to_vector() for reading in readings], dtype=np.float32).reshape(
        -1, FEATURE_COUNT
    )


@dataclass
class ModelStatus:
    """Training state of one detector"""

    trained: bool
    training: bool

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class AnalysisResult:
    """Composite output for one analyzed reading"""

    reading: Reading
    anomaly_score: float
    classification_code: int
    classification_label: str
    parameter_scores: dict[str, float]
    alerts: list[str]

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization"""
        return {
            "reading": self.reading.to_dict(),
            "anomaly_score": self.anomaly_score,
            "classification_code": self.classification_code,
            "classification_label": self.classification_label,
            "parameter_scores": dict(self.parameter_scores),
            "alerts": list(self.alerts),
        }


@dataclass
class EngineConfig:
    """Configuration for the analysis engine and its artifact store"""

    history_size: int = 100

    # Method-specific configuration (see methods.autoencoder / methods.classifier)
    anomaly_config: dict[str, Any] = field(default_factory=dict)
    classification_config: dict[str, Any] = field(default_factory=dict)

    # Artifact store: memory, file, redis or postgres
    store_backend: str = "file"
    artifact_dir: str = field(default_factory=lambda: os.getenv("WQ_ARTIFACT_DIR", "artifacts"))

    # Redis settings
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_db: int = 0
    redis_password: Optional[str] = None
    redis_ttl_seconds: Optional[int] = None  # None keeps artifacts until reset

    # PostgreSQL settings
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_database: str = "water_quality"
    postgres_user: str = "water_quality"
    postgres_password: str = "water_quality"
