"""
Tests for generator models and presets.
"""

from water_quality.generator import (
    CHAOS_CONFIG,
    CONTAMINATION_CONFIG,
    NORMAL_CONFIG,
    STEADY_CONFIG,
)
from water_quality.generator.models import AnomalyType, GeneratorConfig


class TestAnomalyType:
    """Tests for AnomalyType enum."""

    def test_values(self, all_anomaly_types):
        """Test the anomaly identifiers."""
        assert [a.value for a in all_anomaly_types] == [
            "ph_drop",
            "ph_spike",
            "tds_surge",
            "temperature_high",
            "conductivity_spike",
            "turbidity_spike",
        ]


class TestGeneratorConfig:
    """Tests for GeneratorConfig."""

    def test_defaults(self):
        """Test default configuration."""
        config = GeneratorConfig()

        assert config.seed is None
        assert config.interval_seconds == 60.0
        assert config.enabled_anomalies == list(AnomalyType)

    def test_explicit_anomalies_kept(self):
        """Test an explicit anomaly list is not replaced."""
        config = GeneratorConfig(enabled_anomalies=[AnomalyType.TURBIDITY_SPIKE])

        assert config.enabled_anomalies == [AnomalyType.TURBIDITY_SPIKE]


class TestPresets:
    """Tests for predefined configurations."""

    def test_steady_has_no_anomalies(self):
        """Test the steady preset never injects events."""
        assert STEADY_CONFIG.anomaly_probability == 0.0

    def test_anomaly_rates_increase(self):
        """Test presets are ordered by event rate."""
        assert (
            STEADY_CONFIG.anomaly_probability
            < NORMAL_CONFIG.anomaly_probability
            < CONTAMINATION_CONFIG.anomaly_probability
            < CHAOS_CONFIG.anomaly_probability
        )

    def test_contamination_types(self):
        """Test the contamination preset focuses on contaminants."""
        assert set(CONTAMINATION_CONFIG.enabled_anomalies) == {
            AnomalyType.PH_DROP,
            AnomalyType.TDS_SURGE,
            AnomalyType.TURBIDITY_SPIKE,
        }
