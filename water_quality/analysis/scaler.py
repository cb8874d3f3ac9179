"""
Min/max feature scaler.

Each sequence model owns one scaler, fitted on its own training set. The
scaler is frozen after fitting; retraining builds a new instance.
"""

import numpy as np
import structlog

from .errors import ScalerError
from .models import FEATURE_COUNT, TURBIDITY_INDEX, TURBIDITY_MAX, TURBIDITY_MIN

logger = structlog.get_logger(__name__)


class FeatureScaler:
    """Per-feature min/max normalization to [0, 1]"""

    def __init__(self):
        self.min: np.ndarray | None = None
        self.max: np.ndarray | None = None

    @property
    def is_fitted(self) -> bool:
        return self.min is not None and self.max is not None

    def fit(self, features: np.ndarray) -> "FeatureScaler":
        """Compute per-feature bounds from a (n, 5) matrix

        Turbidity is clamped to its domain before folding so outliers cannot
        widen the scale.

        Raises:
            ScalerError: If the scaler was already fitted or the batch is empty
        """
        if self.is_fitted:
            raise ScalerError("Scaler is already fitted; build a new scaler to refit")

        data = np.array(features, dtype=np.float64).reshape(-1, FEATURE_COUNT)
        if len(data) == 0:
            raise ScalerError("Cannot fit scaler on an empty batch")

        data[:, TURBIDITY_INDEX] = np.clip(data[:, TURBIDITY_INDEX], TURBIDITY_MIN, TURBIDITY_MAX)

        self.min = data.min(axis=0)
        self.max = data.max(axis=0)

        logger.debug(
            "Scaler fitted",
            n_rows=len(data),
            min=[round(v, 3) for v in self.min.tolist()],
            max=[round(v, 3) for v in self.max.tolist()],
        )
        return self

    def transform(self, features: np.ndarray) -> np.ndarray:
        """Normalize a (n, 5) matrix; zero-range features map to 0"""
        if not self.is_fitted:
            raise ScalerError("Scaler has not been fitted")

        data = np.asarray(features, dtype=np.float64).reshape(-1, FEATURE_COUNT)
        span = self.max - self.min
        degenerate = span == 0
        safe_span = np.where(degenerate, 1.0, span)

        normalized = (data - self.min) / safe_span
        normalized[:, degenerate] = 0.0
        return normalized.astype(np.float32)

    def to_dict(self) -> dict:
        if not self.is_fitted:
            raise ScalerError("Scaler has not been fitted")
        return {"min": self.min.tolist(), "max": self.max.tolist()}

    @classmethod
    def from_dict(cls, data: dict) -> "FeatureScaler":
        """Restore a fitted scaler from its JSON form"""
        lows = np.asarray(data["min"], dtype=np.float64)
        highs = np.asarray(data["max"], dtype=np.float64)
        if lows.shape != (FEATURE_COUNT,) or highs.shape != (FEATURE_COUNT,):
            raise ScalerError(
                f"Scaler state must hold {FEATURE_COUNT} min and max values, "
                f"got {lows.shape} and {highs.shape}"
            )
        scaler = cls()
        scaler.min = lows
        scaler.max = highs
        return scaler

    def __repr__(self) -> str:
        if not self.is_fitted:
            return "FeatureScaler(unfitted)"
        return f"FeatureScaler(min={self.min.tolist()}, max={self.max.tolist()})"
