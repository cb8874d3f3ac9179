"""
Water Quality Analysis

Per-reading anomaly scoring, quality classification and alerting for water
sensor streams.

Architecture:
- Sequence Models: LSTM anomaly detector (24-reading windows) and LSTM
  classifier (12-reading windows), each with its own fitted scaler
- Rule-Based Fallback: deviation-from-standard scoring used whenever a model
  is untrained, the window is short, or inference fails
- Pluggable Stores: trained artifacts persist to memory, files, Redis or PostgreSQL

Usage:
    # Train both models from a readings file (or synthetic readings)
    python -m water_quality.analysis.train --input readings.csv

    # Replay readings through the engine
    python -m water_quality.analysis.detect --input readings.csv
"""

from .engine import AnalysisEngine
from .errors import (
    AlreadyTrainingError,
    DataInsufficientError,
    InvalidReadingError,
    PersistenceError,
    WaterQualityError,
)
from .ingest import load_readings, reading_from_dict
from .models import AnalysisResult, EngineConfig, ModelStatus, Reading

__all__ = [
    "AnalysisEngine",
    "AnalysisResult",
    "AlreadyTrainingError",
    "DataInsufficientError",
    "EngineConfig",
    "InvalidReadingError",
    "ModelStatus",
    "PersistenceError",
    "Reading",
    "WaterQualityError",
    "load_readings",
    "reading_from_dict",
]
