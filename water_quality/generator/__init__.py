"""
Synthetic Water Sensor Generator
Simulates a sensor station's readings with configurable contamination events.
"""

from .config import CHAOS_CONFIG, CONTAMINATION_CONFIG, NORMAL_CONFIG, STEADY_CONFIG
from .generator import ReadingGenerator
from .models import AnomalyType, GeneratorConfig
from .sensor_state import SensorState

__all__ = [
    "AnomalyType",
    "GeneratorConfig",
    "ReadingGenerator",
    "SensorState",
    "STEADY_CONFIG",
    "NORMAL_CONFIG",
    "CONTAMINATION_CONFIG",
    "CHAOS_CONFIG",
]
