"""
Predefined configurations for different monitoring scenarios.
"""

from .models import AnomalyType, GeneratorConfig

# Clean in-band signal, no events (training data)
STEADY_CONFIG = GeneratorConfig(
    daily_amplitude=0.1,
    noise_level=0.01,
    anomaly_probability=0.0,
)


# Normal operation (rare events)
NORMAL_CONFIG = GeneratorConfig(
    anomaly_probability=0.005,  # 0.5%
)


# Contamination focus: pH, dissolved solids and turbidity events
CONTAMINATION_CONFIG = GeneratorConfig(
    anomaly_probability=0.03,
    enabled_anomalies=[
        AnomalyType.PH_DROP,
        AnomalyType.TDS_SURGE,
        AnomalyType.TURBIDITY_SPIKE,
    ],
)


# Chaos mode (frequent events of every type)
CHAOS_CONFIG = GeneratorConfig(
    noise_level=0.06,
    anomaly_probability=0.1,  # 10%
    interval_seconds=10.0,
)
