"""
LSTM water quality classifier.

Self-supervised: labels are the rule-based classes of the historical
readings, so the network learns to reproduce (and smooth over time) the rule
table from 12-reading windows. Window [i, i + 12) targets the one-hot label of
reading i + 12.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field

import numpy as np
import torch
from torch import nn

from ..models import CLASSIFICATION_LEVELS, Reading
from ..store import CLASSIFICATION_MODEL_KEY, CLASSIFICATION_SCALER_KEY
from .base import SequenceModelConfig, SequenceModelMethod

NUM_CLASSES = len(CLASSIFICATION_LEVELS)


@dataclass
class ClassifierConfig(SequenceModelConfig):
    sequence_length: int = 12
    dense_units: list[int] = field(default_factory=lambda: [16, 8])
    dropout: float = 0.3
    dense_dropout: float = 0.2
    learning_rate: float = 0.0005
    epochs: int = 60
    batch_size: int = 16


class QualityClassifier(SequenceModelMethod):
    """Softmax over the 5 ordinal quality classes"""

    config_class = ClassifierConfig
    model_key = CLASSIFICATION_MODEL_KEY
    scaler_key = CLASSIFICATION_SCALER_KEY
    metric_name = "accuracy"

    @property
    def name(self) -> str:
        return "classification"

    @property
    def output_size(self) -> int:
        return NUM_CLASSES

    def labels(self, readings: Sequence[Reading]) -> list[int]:
        return [self.rules.score_classification(reading) for reading in readings]

    def build_targets(self, readings: Sequence[Reading], normalized: np.ndarray) -> np.ndarray:
        codes = np.asarray(self.labels(readings)[self.sequence_length :], dtype=np.int64)
        return np.eye(NUM_CLASSES, dtype=np.float32)[codes - 1]

    def criterion(self) -> nn.Module:
        # Accepts class probabilities, so one-hot targets give categorical cross-entropy
        return nn.CrossEntropyLoss()

    def batch_metric(self, outputs: torch.Tensor, targets: torch.Tensor) -> float:
        return (outputs.argmax(dim=1) == targets.argmax(dim=1)).float().mean().item()

    def interpret(self, output: torch.Tensor, normalized: np.ndarray) -> int:
        probabilities = torch.softmax(output, dim=-1)[0]
        return int(torch.argmax(probabilities).item()) + 1

    def fallback(self, reading: Reading) -> int:
        return self.rules.score_classification(reading)
