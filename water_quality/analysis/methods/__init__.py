"""
Sequence-model detection methods registry and factory.
"""

from ..store import ArtifactStore
from .autoencoder import AnomalyDetector, AutoencoderConfig
from .base import ModelArtifact, SequenceModelConfig, SequenceModelMethod
from .classifier import ClassifierConfig, QualityClassifier

# Registry of available methods, keyed by the name used in progress callbacks
METHOD_REGISTRY = {
    "anomaly": AnomalyDetector,
    "classification": QualityClassifier,
}


def get_method(
    method_name: str, config: dict | None = None, store: ArtifactStore | None = None
) -> SequenceModelMethod:
    """Factory to create a detection method

    Args:
        method_name: Name of the method ('anomaly' or 'classification')
        config: Hyperparameter overrides for the method
        store: Artifact store to load from and save to

    Returns:
        Instance of the detection method, with any stored model loaded

    Raises:
        ValueError: If method_name is not registered
    """
    if method_name not in METHOD_REGISTRY:
        available = ", ".join(METHOD_REGISTRY.keys())
        raise ValueError(f"Unknown method '{method_name}'. Available methods: {available}")

    method_class = METHOD_REGISTRY[method_name]
    return method_class(config, store=store)


def list_methods() -> list[str]:
    """List all available detection methods"""
    return list(METHOD_REGISTRY.keys())


__all__ = [
    "AnomalyDetector",
    "AutoencoderConfig",
    "ClassifierConfig",
    "ModelArtifact",
    "QualityClassifier",
    "SequenceModelConfig",
    "SequenceModelMethod",
    "get_method",
    "list_methods",
]
