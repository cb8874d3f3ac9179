"""
Threshold-driven alert rules.

Rules are tagged and evaluated independently. The turbidity extras fire on
top of the generic turbidity band alert, so a very turbid sample produces
three turbidity alerts.
"""

from dataclasses import dataclass

from .models import WATER_QUALITY_STANDARDS, ParameterStandard, Reading
from .rules import TURBIDITY_HIGH_NTU, TURBIDITY_VERY_HIGH_NTU

ANOMALY_ALERT_THRESHOLD = 0.7
CLASSIFICATION_ALERT_CODE = 4


@dataclass(frozen=True)
class Alert:
    tag: str
    message: str
    parameter: str | None = None

    def __str__(self) -> str:
        return self.message


def format_value(value: float) -> str:
    """Render whole numbers without a trailing .0"""
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return str(value)


def anomaly_alert(anomaly_score: float) -> Alert | None:
    if anomaly_score > ANOMALY_ALERT_THRESHOLD:
        return Alert(
            tag="anomaly",
            message="High anomaly detected - readings are significantly different from normal patterns",
        )
    return None


def classification_alert(classification_code: int) -> Alert | None:
    if classification_code >= CLASSIFICATION_ALERT_CODE:
        return Alert(
            tag="classification",
            message="Water quality classification is Poor or Critical - immediate attention required",
        )
    return None


def parameter_alert(param: str, value: float, standard: ParameterStandard) -> Alert | None:
    """Band alert for one parameter; tiers are mutually exclusive"""
    name = param.upper()
    shown = format_value(value)

    if value < standard.critical_low:
        return Alert("critical_low", f"Critical: {name} is dangerously low ({shown})", param)
    if value > standard.critical_high:
        return Alert("critical_high", f"Critical: {name} is dangerously high ({shown})", param)
    if value < standard.min:
        return Alert("below_range", f"Warning: {name} is below recommended range ({shown})", param)
    if value > standard.max:
        return Alert("above_range", f"Warning: {name} is above recommended range ({shown})", param)
    return None


def turbidity_alerts(value: float) -> list[Alert]:
    shown = format_value(value)
    alerts = []
    if value > TURBIDITY_HIGH_NTU:
        alerts.append(
            Alert(
                "turbidity_high",
                f"High turbidity detected ({shown} NTU) - water clarity may be compromised",
                "turbidity",
            )
        )
    if value > TURBIDITY_VERY_HIGH_NTU:
        alerts.append(
            Alert(
                "turbidity_very_high",
                f"Very high turbidity ({shown} NTU) - immediate filtration required",
                "turbidity",
            )
        )
    return alerts


def generate_alerts(
    reading: Reading,
    anomaly_score: float,
    classification_code: int,
    standards: dict[str, ParameterStandard] | None = None,
) -> list[Alert]:
    """Assemble alerts in order: anomaly, classification, then per parameter"""
    standards = standards or WATER_QUALITY_STANDARDS
    alerts: list[Alert] = []

    for alert in (anomaly_alert(anomaly_score), classification_alert(classification_code)):
        if alert:
            alerts.append(alert)

    for param, standard in standards.items():
        value = reading.value(param)
        alert = parameter_alert(param, value, standard)
        if alert:
            alerts.append(alert)
        if param == "turbidity":
            alerts.extend(turbidity_alerts(value))

    return alerts
