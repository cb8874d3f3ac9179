"""
Water quality analysis engine.

Owns the rolling window of recent readings and the two sequence-model
detectors, and turns each new reading into an AnalysisResult.
"""

from collections.abc import Callable, Iterable, Sequence

import structlog

from .alerts import generate_alerts
from .backends import create_store
from .errors import AlreadyTrainingError
from .methods import AnomalyDetector, QualityClassifier, SequenceModelMethod
from .models import CLASSIFICATION_LEVELS, AnalysisResult, EngineConfig, ModelStatus, Reading
from .rules import RuleBasedScorer
from .store import ArtifactStore
from .window import RollingWindow

logger = structlog.get_logger(__name__)

ProgressCallback = Callable[[str, int, dict[str, float]], None]


class AnalysisEngine:
    """Single entry point for scoring readings and training the models

    Not thread-safe: callers serialize analyze_reading() calls on one engine.
    Training is a coroutine and may run while readings are analyzed on the
    same event loop; the current models keep serving until training commits.
    """

    def __init__(
        self,
        config: EngineConfig | None = None,
        store: ArtifactStore | None = None,
        anomaly_detector: SequenceModelMethod | None = None,
        classifier: SequenceModelMethod | None = None,
    ):
        self.config = config or EngineConfig()
        self.store = store if store is not None else self._connect_store()
        self.rules = RuleBasedScorer()

        # Each detector fits and owns its own scaler
        self.anomaly_detector = anomaly_detector or AnomalyDetector(
            self.config.anomaly_config, store=self.store, rules=self.rules
        )
        self.classifier = classifier or QualityClassifier(
            self.config.classification_config, store=self.store, rules=self.rules
        )

        self.window = RollingWindow(self.config.history_size)
        self.is_training = False

        logger.info(
            "Analysis engine initialized",
            store=repr(self.store),
            history_size=self.config.history_size,
            anomaly_trained=self.anomaly_detector.status().trained,
            classification_trained=self.classifier.status().trained,
        )

    def _connect_store(self) -> ArtifactStore | None:
        """Build the configured store; an unreachable backend leaves models in memory only

        Raises:
            ValueError: If the configured backend is not registered
        """
        try:
            return create_store(self.config)
        except ValueError:
            raise
        except Exception as e:
            logger.warning(
                "Artifact store unavailable, models will not be loaded or persisted",
                backend=self.config.store_backend,
                error=str(e),
            )
            return None

    def analyze_reading(self, reading: Reading) -> AnalysisResult:
        """Score one reading in the context of the recent window

        Always returns a result: detectors fall back to the rules when they
        cannot use their model.
        """
        processed = reading.with_clamped_turbidity()
        self.window.append(processed)

        recent = self.window.to_list()
        anomaly_score = self.anomaly_detector.score(recent)
        classification_code = self.classifier.score(recent)

        parameter_scores = self.rules.parameter_scores(processed)
        alerts = generate_alerts(processed, anomaly_score, classification_code)

        result = AnalysisResult(
            reading=processed,
            anomaly_score=anomaly_score,
            classification_code=classification_code,
            classification_label=CLASSIFICATION_LEVELS[classification_code],
            parameter_scores=parameter_scores,
            alerts=[alert.message for alert in alerts],
        )

        if alerts:
            logger.info(
                "Reading raised alerts",
                anomaly_score=anomaly_score,
                classification=result.classification_label,
                alerts=[alert.tag for alert in alerts],
            )
        return result

    def set_recent_readings(self, readings: Iterable[Reading]) -> None:
        """Seed the window, keeping the last history_size readings"""
        self.window.replace(reading.with_clamped_turbidity() for reading in readings)
        logger.info("Recent readings set", size=len(self.window))

    async def train_models(
        self, readings: Sequence[Reading], on_progress: ProgressCallback | None = None
    ) -> dict[str, list[dict[str, float]]]:
        """Train the anomaly detector, then the classifier

        Raises:
            AlreadyTrainingError: If the engine or a detector is already training
            DataInsufficientError: If there are too few readings for a model
            PersistenceError: If a trained model could not be saved
        """
        if self.is_training:
            raise AlreadyTrainingError("engine")

        self.is_training = True
        try:
            logger.info("Training analysis models", n_readings=len(readings))
            history = {}
            for method in (self.anomaly_detector, self.classifier):
                history[method.name] = await method.train(
                    readings, on_epoch=self._progress_relay(method.name, on_progress)
                )
            logger.info("Model training complete")
            return history
        finally:
            self.is_training = False

    @staticmethod
    def _progress_relay(model_name: str, on_progress: ProgressCallback | None):
        if on_progress is None:
            return None

        def relay(epoch: int, logs: dict[str, float]) -> None:
            on_progress(model_name, epoch, logs)

        return relay

    def get_model_status(self) -> dict[str, ModelStatus]:
        return {
            "anomaly": self.anomaly_detector.status(),
            "classification": self.classifier.status(),
        }

    def reset_models(self) -> None:
        """Forget both trained models and delete their stored artifacts"""
        if self.is_training:
            raise AlreadyTrainingError("engine")
        self.anomaly_detector.reset()
        self.classifier.reset()
        logger.info("Models reset")

    def recent_readings(self) -> list[Reading]:
        return self.window.to_list()
