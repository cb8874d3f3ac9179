"""
Sensor station state management and reading generation.
"""

import math
import random
from datetime import datetime

from water_quality.analysis.models import WATER_QUALITY_STANDARDS, Reading

from .models import AnomalyType, GeneratorConfig

# Values reported while a contamination event is active
ANOMALY_RANGES: dict[AnomalyType, tuple[str, float, float]] = {
    AnomalyType.PH_DROP: ("ph", 3.5, 5.5),
    AnomalyType.PH_SPIKE: ("ph", 9.0, 11.0),
    AnomalyType.TDS_SURGE: ("tds", 400.0, 900.0),
    AnomalyType.TEMPERATURE_HIGH: ("temperature", 28.0, 40.0),
    AnomalyType.CONDUCTIVITY_SPIKE: ("conductivity", 900.0, 1600.0),
    AnomalyType.TURBIDITY_SPIKE: ("turbidity", 80.0, 800.0),
}

# Dissolved solids drive conductivity (roughly EC = TDS / 0.6)
TDS_TO_CONDUCTIVITY = 1 / 0.6


class SensorState:
    """Tracks the state of one sensor station over time

    Normal readings follow a daily cycle around the middle of each ideal band
    with gaussian noise, clipped to the band. An injected event overrides one
    parameter for a few readings.
    """

    def __init__(self, config: GeneratorConfig, rng: random.Random):
        self.config = config
        self.rng = rng

        # Base values sit in the middle of the ideal band with a small offset
        self.baselines: dict[str, float] = {}
        for name, standard in WATER_QUALITY_STANDARDS.items():
            span = standard.max - standard.min
            midpoint = standard.min + span / 2
            self.baselines[name] = midpoint + rng.uniform(-0.05, 0.05) * span

        # Current anomaly state
        self.active_anomaly: AnomalyType | None = None
        self.anomaly_duration: int = 0

    def _normal_value(self, name: str, phase: float) -> float:
        standard = WATER_QUALITY_STANDARDS[name]
        span = standard.max - standard.min
        cycle = math.sin(phase) * self.config.daily_amplitude * span / 2
        noise = self.rng.gauss(0, self.config.noise_level * span)
        return min(standard.max, max(standard.min, self.baselines[name] + cycle + noise))

    def generate_reading(
        self, timestamp: datetime, inject_anomaly: AnomalyType | None = None
    ) -> Reading:
        """Generate one reading with optional anomaly injection

        Args:
            timestamp: Timestamp of the reading; its time of day sets the cycle phase
            inject_anomaly: Optional anomaly type to start at this reading
        """
        if inject_anomaly:
            self.active_anomaly = inject_anomaly
            self.anomaly_duration = self.rng.randint(
                self.config.min_anomaly_duration, self.config.max_anomaly_duration
            )

        seconds = timestamp.hour * 3600 + timestamp.minute * 60 + timestamp.second
        phase = 2 * math.pi * seconds / 86400
        values = {name: self._normal_value(name, phase) for name in WATER_QUALITY_STANDARDS}

        if self.active_anomaly:
            name, low, high = ANOMALY_RANGES[self.active_anomaly]
            values[name] = self.rng.uniform(low, high)
            if self.active_anomaly == AnomalyType.TDS_SURGE:
                values["conductivity"] = values["tds"] * TDS_TO_CONDUCTIVITY

            self.anomaly_duration -= 1
            if self.anomaly_duration <= 0:
                self.active_anomaly = None

        return Reading(
            ph=round(values["ph"], 2),
            tds=round(values["tds"], 1),
            temperature=round(values["temperature"], 1),
            conductivity=round(values["conductivity"], 1),
            turbidity=round(values["turbidity"], 2),
            timestamp=timestamp,
        )
