"""
Rule-based scoring against the water quality standards table.

Used as the fallback whenever a sequence model cannot score a window, and as
the label generator for classifier training. Scores stay in the same ranges
as the learned models: anomaly in [0, 1], class code in 1..5.
"""

from .models import WATER_QUALITY_STANDARDS, ParameterStandard, Reading

# Turbidity is weighted twice: the generic band check plus these extra points
TURBIDITY_HIGH_NTU = 100
TURBIDITY_VERY_HIGH_NTU = 500
TURBIDITY_HIGH_POINTS = 2
TURBIDITY_VERY_HIGH_POINTS = 3

CRITICAL_POINTS = 3
MINOR_POINTS = 1


def parameter_deviation(value: float, standard: ParameterStandard) -> float:
    """Normalized deviation from the ideal band, 0 inside, 1 at or past critical"""
    if value < standard.min:
        span = standard.min - standard.critical_low
        deviation = (standard.min - value) / span if span > 0 else 1.0
    elif value > standard.max:
        span = standard.critical_high - standard.max
        deviation = (value - standard.max) / span if span > 0 else 1.0
    else:
        return 0.0
    return min(1.0, abs(deviation))


def is_critical(value: float, standard: ParameterStandard) -> bool:
    return value < standard.critical_low or value > standard.critical_high


def is_out_of_band(value: float, standard: ParameterStandard) -> bool:
    return value < standard.min or value > standard.max


class RuleBasedScorer:
    """Stateless deviation-from-standard scorer"""

    def __init__(self, standards: dict[str, ParameterStandard] | None = None):
        self.standards = standards or WATER_QUALITY_STANDARDS

    def score_anomaly(self, reading: Reading) -> float:
        """Mean parameter deviation, rounded to 3 decimals"""
        deviations = [
            parameter_deviation(reading.value(param), standard)
            for param, standard in self.standards.items()
        ]
        return round(sum(deviations) / len(deviations), 3)

    def violations(self, reading: Reading) -> tuple[int, int]:
        """Return (violation_score, critical_violations) for a reading"""
        violation_score = 0
        critical_violations = 0

        for param, standard in self.standards.items():
            value = reading.value(param)

            if is_critical(value, standard):
                critical_violations += 1
                violation_score += CRITICAL_POINTS
            elif is_out_of_band(value, standard):
                violation_score += MINOR_POINTS

            if param == "turbidity":
                if value > TURBIDITY_HIGH_NTU:
                    violation_score += TURBIDITY_HIGH_POINTS
                if value > TURBIDITY_VERY_HIGH_NTU:
                    violation_score += TURBIDITY_VERY_HIGH_POINTS

        return violation_score, critical_violations

    def score_classification(self, reading: Reading) -> int:
        """Quality class 1 (Excellent) .. 5 (Critical)"""
        violation_score, critical_violations = self.violations(reading)

        if critical_violations >= 2:
            return 5
        if critical_violations >= 1:
            return 4
        if violation_score >= 4:
            return 4
        if violation_score >= 2:
            return 3
        if violation_score >= 1:
            return 2
        return 1

    def parameter_scores(self, reading: Reading) -> dict[str, float]:
        """Per-parameter score, 1.0 inside the band falling to 0 at critical"""
        return {
            param: round(max(0.0, 1.0 - parameter_deviation(reading.value(param), standard)), 3)
            for param, standard in self.standards.items()
        }
