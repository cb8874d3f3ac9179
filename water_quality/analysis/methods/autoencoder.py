"""
LSTM reconstruction-error anomaly detector.

The network reads 24 normalized readings and reproduces a feature vector.
Trained on normal history (window [i, i + 24) targets the vector at i + 24),
a large error between its output and the latest reading means the window does
not look like the history it learned.

Score = min(1, RMSE x 10), rounded to 3 decimals. The factor 10 is a fixed
calibration constant, not a tunable.
"""

import math
from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np
import torch
from torch import nn

from ..models import FEATURE_COUNT, Reading
from ..store import ANOMALY_MODEL_KEY, ANOMALY_SCALER_KEY
from .base import SequenceModelConfig, SequenceModelMethod


@dataclass
class AutoencoderConfig(SequenceModelConfig):
    sequence_length: int = 24
    error_scale: float = 10.0


class AnomalyDetector(SequenceModelMethod):
    """Sequence autoencoder scoring in [0, 1]"""

    config_class = AutoencoderConfig
    model_key = ANOMALY_MODEL_KEY
    scaler_key = ANOMALY_SCALER_KEY
    metric_name = "mae"

    @property
    def name(self) -> str:
        return "anomaly"

    @property
    def output_size(self) -> int:
        return FEATURE_COUNT

    def build_targets(self, readings: Sequence[Reading], normalized: np.ndarray) -> np.ndarray:
        return np.asarray(normalized[self.sequence_length :], dtype=np.float32)

    def criterion(self) -> nn.Module:
        return nn.MSELoss()

    def batch_metric(self, outputs: torch.Tensor, targets: torch.Tensor) -> float:
        return torch.mean(torch.abs(outputs - targets)).item()

    def interpret(self, output: torch.Tensor, normalized: np.ndarray) -> float:
        predicted = output[0].cpu().numpy().astype(np.float64)
        actual = normalized[-1].astype(np.float64)
        rmse = math.sqrt(float(np.mean((actual - predicted) ** 2)))
        score = min(1.0, max(0.0, rmse * self.config.error_scale))
        return round(score, 3)

    def fallback(self, reading: Reading) -> float:
        return self.rules.score_anomaly(reading)
