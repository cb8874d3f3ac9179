"""
Reading generator orchestrating a simulated sensor station.
"""

import random
from collections.abc import Iterator
from datetime import UTC, datetime, timedelta

import structlog

from water_quality.analysis.models import Reading

from .models import AnomalyType, GeneratorConfig
from .sensor_state import SensorState

logger = structlog.get_logger(__name__)


class ReadingGenerator:
    """Deterministic source of synthetic sensor readings"""

    def __init__(self, config: GeneratorConfig | None = None):
        self.config = config or GeneratorConfig()
        self.rng = random.Random(self.config.seed)
        self.state = SensorState(self.config, self.rng)

        self.next_timestamp = self.config.start_time or datetime.now(UTC)
        self.interval = timedelta(seconds=self.config.interval_seconds)
        self.generated_count = 0
        self.injected: list[tuple[int, AnomalyType]] = []

        logger.info(
            "Reading generator initialized",
            seed=self.config.seed,
            probability=self.config.anomaly_probability,
            enabled_anomalies=[a.value for a in self.config.enabled_anomalies],
        )

    def _pick_anomaly(self) -> AnomalyType | None:
        if self.state.active_anomaly or not self.config.enabled_anomalies:
            return None
        if self.rng.random() < self.config.anomaly_probability:
            return self.rng.choice(self.config.enabled_anomalies)
        return None

    def next_reading(self) -> Reading:
        anomaly = self._pick_anomaly()
        reading = self.state.generate_reading(self.next_timestamp, inject_anomaly=anomaly)

        if anomaly:
            self.injected.append((self.generated_count, anomaly))
            logger.debug(
                "Anomaly injected",
                anomaly_type=anomaly.value,
                index=self.generated_count,
                duration=self.state.anomaly_duration + 1,
            )

        self.next_timestamp += self.interval
        self.generated_count += 1
        return reading

    def stream(self) -> Iterator[Reading]:
        while True:
            yield self.next_reading()

    def generate(self, count: int) -> list[Reading]:
        """Generate `count` consecutive readings"""
        if count < 0:
            raise ValueError(f"count must be non-negative, got {count}")
        readings = [self.next_reading() for _ in range(count)]
        logger.info(
            "Generated readings",
            count=count,
            total=self.generated_count,
            anomalies=len(self.injected),
        )
        return readings
