"""
Exceptions raised by the analysis engine.

Only DataInsufficientError, AlreadyTrainingError and PersistenceError reach
callers of the training API. InferenceError and ArtifactLoadError are raised
and handled internally; they turn into a rule-based score or an untrained
detector respectively.
"""


class WaterQualityError(Exception):
    """Base class for engine errors"""


class DataInsufficientError(WaterQualityError):
    def __init__(self, model_name: str, available: int, required: int):
        self.model_name = model_name
        self.available = available
        self.required = required
        super().__init__(
            f"{model_name} model needs at least {required} readings for training, got {available}"
        )


class AlreadyTrainingError(WaterQualityError):
    def __init__(self, model_name: str):
        self.model_name = model_name
        super().__init__(f"{model_name} model is already training")


class InferenceError(WaterQualityError):
    pass


class ArtifactLoadError(WaterQualityError):
    pass


class PersistenceError(WaterQualityError):
    pass


class ScalerError(WaterQualityError):
    pass


class InvalidReadingError(WaterQualityError, ValueError):
    pass
