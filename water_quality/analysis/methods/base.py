"""
Base class for sequence-model detection methods.

A method wraps one LSTM network plus the scaler it was trained with and
implements:
- train(): fit a fresh scaler and network on historical readings, then persist
- score(): score the tail of a reading window, falling back to the rules when
  the model is missing, the window is too short, or inference fails
- status() / reset()

Subclasses supply the network output size, the training targets, the loss,
the epoch metric and how a network output becomes a score.
"""

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from typing import Any

import numpy as np
import structlog
import torch
from torch import nn
from torch.utils.data import DataLoader, TensorDataset

from ..errors import (
    AlreadyTrainingError,
    ArtifactLoadError,
    DataInsufficientError,
    InferenceError,
    PersistenceError,
)
from ..models import FEATURE_COUNT, ModelStatus, Reading, feature_matrix
from ..rules import RuleBasedScorer
from ..scaler import FeatureScaler
from ..store import ArtifactStore
from .networks import build_network, load_state_lists, state_dict_to_lists

logger = structlog.get_logger(__name__)

EpochCallback = Callable[[int, dict[str, float]], None]


@dataclass
class SequenceModelConfig:
    """Hyperparameters shared by the sequence models"""

    sequence_length: int = 24
    lstm_units: list[int] = field(default_factory=lambda: [64, 32])
    dense_units: list[int] = field(default_factory=lambda: [16])
    dropout: float = 0.2
    dense_dropout: float = 0.0
    learning_rate: float = 0.001
    epochs: int = 50
    batch_size: int = 32
    validation_split: float = 0.2
    seed: int = 42
    min_extra_points: int = 50  # training needs sequence_length + this many readings


@dataclass
class ModelArtifact:
    """Trained network weights and the config that built them (serializable)"""

    method_name: str
    config: dict[str, Any]
    state_dict: dict[str, list]
    trained_at: str
    metadata: dict[str, Any]

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "ModelArtifact":
        return cls(**data)


class SequenceModelMethod(ABC):
    """Abstract LSTM detection method with rule-based fallback"""

    config_class: type[SequenceModelConfig] = SequenceModelConfig
    model_key: str = ""
    scaler_key: str = ""
    metric_name: str = ""

    def __init__(
        self,
        config: dict | None = None,
        store: ArtifactStore | None = None,
        rules: RuleBasedScorer | None = None,
    ):
        self.config = self.config_class(**(config or {}))
        self.store = store
        self.rules = rules or RuleBasedScorer()

        self.model: nn.Module | None = None
        self.scaler: FeatureScaler | None = None
        self.is_training = False
        self.trained_at: str | None = None

        self._load()

    @property
    @abstractmethod
    def name(self) -> str:
        """Name of the method, used in logs and progress callbacks"""

    @property
    @abstractmethod
    def output_size(self) -> int:
        pass

    @abstractmethod
    def build_targets(self, readings: Sequence[Reading], normalized: np.ndarray) -> np.ndarray:
        """One target row per training window, aligned with build_sequences()"""

    @abstractmethod
    def criterion(self) -> nn.Module:
        pass

    @abstractmethod
    def batch_metric(self, outputs: torch.Tensor, targets: torch.Tensor) -> float:
        """Mean of the epoch metric over one batch"""

    @abstractmethod
    def interpret(self, output: torch.Tensor, normalized: np.ndarray) -> float | int:
        """Turn a (1, output_size) network output into a score"""

    @abstractmethod
    def fallback(self, reading: Reading) -> float | int:
        """Rule-based score for a single reading"""

    @property
    def sequence_length(self) -> int:
        return self.config.sequence_length

    @property
    def min_training_points(self) -> int:
        return self.config.sequence_length + self.config.min_extra_points

    def get_config(self) -> dict[str, Any]:
        return asdict(self.config)

    def status(self) -> ModelStatus:
        return ModelStatus(
            trained=self.model is not None and self.scaler is not None,
            training=self.is_training,
        )

    def build_network(self, config: dict[str, Any] | None = None) -> nn.Module:
        return build_network(config or self.get_config(), FEATURE_COUNT, self.output_size)

    def build_sequences(self, normalized: np.ndarray) -> np.ndarray:
        """Stride-1 windows [i, i + L) for every i with a target at i + L"""
        length = self.sequence_length
        count = len(normalized) - length
        windows = [normalized[i : i + length] for i in range(count)]
        return np.stack(windows).astype(np.float32)

    # ── Training ──────────────────────────────────────────────────

    async def train(
        self, readings: Sequence[Reading], on_epoch: EpochCallback | None = None
    ) -> list[dict[str, float]]:
        """Train a fresh scaler and network, then persist them

        Epochs run in a worker thread; `on_epoch(epoch, logs)` is called from
        the caller's event loop after each one. The new model replaces the
        current one only once all epochs are done.

        Returns:
            Per-epoch logs

        Raises:
            AlreadyTrainingError: If this method is already training
            DataInsufficientError: If fewer than min_training_points readings
            PersistenceError: If the trained artifacts could not be saved
        """
        if self.is_training:
            raise AlreadyTrainingError(self.name)

        if len(readings) < self.min_training_points:
            raise DataInsufficientError(self.name, len(readings), self.min_training_points)

        self.is_training = True
        try:
            logger.info(
                "Training model",
                method=self.name,
                n_readings=len(readings),
                epochs=self.config.epochs,
            )

            features = feature_matrix(readings)
            scaler = FeatureScaler().fit(features)
            normalized = scaler.transform(features)

            inputs = self.build_sequences(normalized)
            targets = self.build_targets(readings, normalized)

            torch.manual_seed(self.config.seed)
            network = self.build_network()
            history = await self._fit(network, inputs, targets, on_epoch)
            network.eval()

            self.model = network
            self.scaler = scaler
            self.trained_at = datetime.now(UTC).isoformat()

            logger.info(
                "Model trained",
                method=self.name,
                n_sequences=len(inputs),
                final_loss=round(history[-1]["loss"], 5) if history else None,
            )

            self._save(
                network,
                scaler,
                metadata={
                    "n_training_points": len(readings),
                    "n_sequences": len(inputs),
                    "epochs": len(history),
                    "final_logs": history[-1] if history else {},
                },
            )
            return history
        finally:
            self.is_training = False

    async def _fit(
        self,
        network: nn.Module,
        inputs: np.ndarray,
        targets: np.ndarray,
        on_epoch: EpochCallback | None,
    ) -> list[dict[str, float]]:
        # Validation is the tail of the sequence list, taken before shuffling
        split_at = int(len(inputs) * (1 - self.config.validation_split))
        split_at = min(max(split_at, 1), len(inputs))

        train_x = torch.from_numpy(inputs[:split_at])
        train_y = torch.from_numpy(targets[:split_at])
        val_x = torch.from_numpy(inputs[split_at:])
        val_y = torch.from_numpy(targets[split_at:])

        loader = DataLoader(
            TensorDataset(train_x, train_y),
            batch_size=self.config.batch_size,
            shuffle=True,
            generator=torch.Generator().manual_seed(self.config.seed),
        )
        criterion = self.criterion()
        optimizer = torch.optim.Adam(network.parameters(), lr=self.config.learning_rate)

        history = []
        for epoch in range(self.config.epochs):
            loss, metric = await asyncio.to_thread(
                self._run_epoch, network, loader, criterion, optimizer
            )
            logs = {"loss": loss, self.metric_name: metric}
            if len(val_x) > 0:
                val_loss, val_metric = self._evaluate(network, val_x, val_y, criterion)
                logs["val_loss"] = val_loss
                logs[f"val_{self.metric_name}"] = val_metric

            history.append(logs)
            logger.debug("Epoch finished", method=self.name, epoch=epoch, **logs)
            if on_epoch:
                on_epoch(epoch, logs)

        return history

    def _run_epoch(self, network, loader, criterion, optimizer) -> tuple[float, float]:
        network.train()
        total_loss = 0.0
        total_metric = 0.0
        for batch_x, batch_y in loader:
            optimizer.zero_grad()
            outputs = network(batch_x)
            loss = criterion(outputs, batch_y)
            loss.backward()
            optimizer.step()
            total_loss += loss.item() * batch_x.size(0)
            total_metric += self.batch_metric(outputs.detach(), batch_y) * batch_x.size(0)
        n = len(loader.dataset)
        return total_loss / n, total_metric / n

    def _evaluate(self, network, inputs, targets, criterion) -> tuple[float, float]:
        network.eval()
        with torch.no_grad():
            outputs = network(inputs)
            loss = criterion(outputs, targets).item()
            metric = self.batch_metric(outputs, targets)
        return loss, metric

    # ── Inference ─────────────────────────────────────────────────

    def score(self, window: Sequence[Reading]) -> float | int:
        """Score the latest reading in its window context

        Never raises for a non-empty window: missing model, short window and
        inference errors all fall back to the rule-based score of the last
        reading.
        """
        if not window:
            raise ValueError(f"{self.name} scoring needs at least one reading")

        latest = window[-1]
        model, scaler = self.model, self.scaler

        if model is None or scaler is None:
            return self.fallback(latest)

        if len(window) < self.sequence_length:
            logger.debug(
                "Window too short for model, using rules",
                method=self.name,
                window=len(window),
                required=self.sequence_length,
            )
            return self.fallback(latest)

        try:
            return self._infer(model, scaler, window[-self.sequence_length :])
        except Exception as e:
            logger.warning("Inference failed, using rules", method=self.name, error=str(e))
            return self.fallback(latest)

    def _infer(self, model: nn.Module, scaler: FeatureScaler, window: Sequence[Reading]):
        normalized = scaler.transform(feature_matrix(window))
        with torch.no_grad():
            output = model(torch.from_numpy(normalized).unsqueeze(0))
        if tuple(output.shape) != (1, self.output_size):
            raise InferenceError(
                f"Unexpected output shape {tuple(output.shape)}, wanted (1, {self.output_size})"
            )
        if not torch.isfinite(output).all():
            raise InferenceError("Model produced non-finite output")
        return self.interpret(output, normalized)

    # ── Persistence ───────────────────────────────────────────────

    def _save(self, network: nn.Module, scaler: FeatureScaler, metadata: dict[str, Any]) -> None:
        if self.store is None:
            logger.debug("No artifact store configured, model kept in memory", method=self.name)
            return

        artifact = ModelArtifact(
            method_name=self.name,
            config=self.get_config(),
            state_dict=state_dict_to_lists(network),
            trained_at=self.trained_at,
            metadata=metadata,
        )
        self.store.save(self.model_key, artifact.to_dict())
        try:
            self.store.save(self.scaler_key, scaler.to_dict())
        except PersistenceError:
            # A stored model must never pair with another run's scaler
            try:
                self.store.remove(self.model_key)
            except PersistenceError as e:
                logger.error(
                    "Failed to remove unpaired model",
                    method=self.name,
                    key=self.model_key,
                    error=str(e),
                )
            raise
        logger.info("Model saved", method=self.name, key=self.model_key)

    def _load(self) -> None:
        """Best-effort restore of stored artifacts; failures leave the method untrained"""
        if self.store is None:
            return

        try:
            data = self.store.load(self.model_key)
            if data is None:
                logger.info("No stored model found", method=self.name, key=self.model_key)
                return

            scaler_data = self.store.load(self.scaler_key)
            if scaler_data is None:
                raise ArtifactLoadError(f"Scaler {self.scaler_key} missing for stored model")

            artifact = ModelArtifact.from_dict(data)
            stored_length = artifact.config.get("sequence_length")
            if stored_length != self.sequence_length:
                raise ArtifactLoadError(
                    f"Stored model uses sequence length {stored_length}, "
                    f"configured {self.sequence_length}"
                )

            network = load_state_lists(self.build_network(artifact.config), artifact.state_dict)
            scaler = FeatureScaler.from_dict(scaler_data)
        except Exception as e:
            logger.warning(
                "Failed to load stored model, starting untrained",
                method=self.name,
                key=self.model_key,
                error=str(e),
            )
            return

        self.model = network
        self.scaler = scaler
        self.trained_at = artifact.trained_at
        logger.info("Model loaded", method=self.name, trained_at=artifact.trained_at)

    def reset(self) -> None:
        """Drop the in-memory model and remove stored artifacts

        Raises:
            AlreadyTrainingError: If a training run is in flight
            PersistenceError: If the store could not remove an artifact
        """
        if self.is_training:
            raise AlreadyTrainingError(self.name)

        self.model = None
        self.scaler = None
        self.trained_at = None
        if self.store is not None:
            self.store.remove(self.model_key)
            self.store.remove(self.scaler_key)
        logger.info("Model reset", method=self.name)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(config={self.get_config()})"
