"""
Data models and enums for the synthetic water sensor generator.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class AnomalyType(Enum):
    """Types of contamination events that can be injected"""

    PH_DROP = "ph_drop"
    PH_SPIKE = "ph_spike"
    TDS_SURGE = "tds_surge"
    TEMPERATURE_HIGH = "temperature_high"
    CONDUCTIVITY_SPIKE = "conductivity_spike"
    TURBIDITY_SPIKE = "turbidity_spike"


@dataclass
class GeneratorConfig:
    """Configuration for the reading generator"""

    # Reproducibility: same seed and start time give the same readings
    seed: int | None = None
    start_time: datetime | None = None
    interval_seconds: float = 60.0

    # Signal shape, as fractions of each parameter's ideal band width
    daily_amplitude: float = 0.2
    noise_level: float = 0.03

    # Anomaly settings
    anomaly_probability: float = 0.02  # chance per reading of a new event
    enabled_anomalies: list[AnomalyType] | None = None
    min_anomaly_duration: int = 3
    max_anomaly_duration: int = 12

    def __post_init__(self):
        if self.enabled_anomalies is None:
            self.enabled_anomalies = list(AnomalyType)
