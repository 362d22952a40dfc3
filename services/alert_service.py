"""
Alert service.

Derives actionable alerts from classified pots. Read-only: pots are never
mutated and the same input always yields the same alerts in the same order
(pot order first, then a fixed dimension order within each pot).

Alert generators, per pot above NORMAL risk:
- fe_high       Fe at/above the moderate threshold
- si_high       Si at/above the moderate threshold
- temp_high     temperature above the normal band
- temp_low      temperature below the normal band
- ae_frequency  any anode effects
- prediction    low health score on a non-critical pot, or rising Fe
"""

from collections import Counter
from typing import Iterable, Optional

import structlog

from models.alert import ALERT_TITLES, Alert, AlertSeverity, AlertType
from models.pot import Pot, RiskLevel
from models.thresholds import ScoreThresholds
from services.health_score_service import HealthScoreService

logger = structlog.get_logger(__name__)


SEVERITY_BY_RISK = {
    RiskLevel.CRITICAL: AlertSeverity.CRITICAL,
    RiskLevel.HIGH: AlertSeverity.HIGH,
    RiskLevel.MODERATE: AlertSeverity.MODERATE,
}


class AlertService:
    """Derives alerts from classified pots."""

    def __init__(
        self,
        thresholds: Optional[ScoreThresholds] = None,
        health_service: Optional[HealthScoreService] = None,
    ):
        self.health_service = health_service or HealthScoreService(thresholds=thresholds)
        self.thresholds = thresholds or self.health_service.thresholds

    # ===================
    # ALERT GENERATORS
    # ===================

    def derive_alerts(self, pots: Iterable[Pot]) -> list[Alert]:
        """
        Derive alerts for every pot above NORMAL risk.

        Unclassified pots are assessed first (on a copy).

        Returns:
            Alerts in pot order, one per violated dimension
        """
        alerts: list[Alert] = []
        pot_count = 0

        for pot in pots:
            pot_count += 1
            alerts.extend(self.alerts_for_pot(pot))

        logger.info(
            "alerts_derived",
            pots=pot_count,
            count=len(alerts)
        )

        return alerts

    def alerts_for_pot(self, pot: Pot) -> list[Alert]:
        """Alerts for a single pot; empty for NORMAL and SHUTDOWN pots."""
        if not pot.is_classified:
            pot = self.health_service.assess(pot)

        severity = SEVERITY_BY_RISK.get(pot.risk_level)
        if severity is None:
            return []

        t = self.thresholds
        m = pot.metrics
        alert_types: list[AlertType] = []

        if m.fe >= t.fe_moderate:
            alert_types.append(AlertType.FE_HIGH)
        if m.si >= t.si_moderate:
            alert_types.append(AlertType.SI_HIGH)
        if m.temperature > t.temp_normal_max:
            alert_types.append(AlertType.TEMP_HIGH)
        if m.temperature < t.temp_normal_min:
            alert_types.append(AlertType.TEMP_LOW)
        if m.ae_frequency > 0:
            alert_types.append(AlertType.AE_FREQUENCY)

        low_score = pot.ai_score < t.prediction_score_threshold and pot.risk_level is not RiskLevel.CRITICAL
        if low_score or m.fe_slope > t.fe_slope_warning:
            alert_types.append(AlertType.PREDICTION)

        return [
            Alert(
                id=f"ALT-{pot.id}-{alert_type.value}",
                pot_id=pot.id,
                type=alert_type,
                severity=severity,
                title=f"{ALERT_TITLES[alert_type]} - Pot {pot.id}",
                description=self._describe(alert_type, pot),
            )
            for alert_type in alert_types
        ]

    # ===================
    # QUERIES
    # ===================

    def critical_alerts(self, alerts: Iterable[Alert]) -> list[Alert]:
        return [a for a in alerts if a.severity is AlertSeverity.CRITICAL]

    def count_by_severity(self, alerts: Iterable[Alert]) -> dict[AlertSeverity, int]:
        """Alert counts per severity, every severity present."""
        counts = Counter(a.severity for a in alerts)
        return {severity: counts.get(severity, 0) for severity in AlertSeverity}

    # ===================
    # UTILITY METHODS
    # ===================

    def _describe(self, alert_type: AlertType, pot: Pot) -> str:
        """Human-readable alert description."""
        m = pot.metrics
        if alert_type is AlertType.FE_HIGH:
            return f"Iron content at {m.fe:.3f}% exceeds threshold. Recommend immediate inspection."
        if alert_type is AlertType.SI_HIGH:
            return f"Silicon content at {m.si:.3f}% exceeds threshold. Check for contamination."
        if alert_type is AlertType.TEMP_HIGH:
            return f"Temperature at {m.temperature:.1f}°C above normal range. Verify cooling system."
        if alert_type is AlertType.TEMP_LOW:
            return f"Temperature at {m.temperature:.1f}°C below normal range. Check power supply."
        if alert_type is AlertType.AE_FREQUENCY:
            return f"Anode effect frequency at {m.ae_frequency:g} events. Review alumina feeding."
        return (
            f"Model predicts elevated risk (score: {pot.ai_score:.1f}, "
            f"Fe slope: {m.fe_slope:+.4f}/day). Preventive action recommended."
        )


# Singleton instance
_alert_service: Optional[AlertService] = None


def get_alert_service() -> AlertService:
    """Get or create AlertService instance."""
    global _alert_service
    if _alert_service is None:
        _alert_service = AlertService()
    return _alert_service
