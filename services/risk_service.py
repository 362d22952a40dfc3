"""
Risk classification service.

Maps a pot's instantaneous metrics to a discrete RiskLevel using tiered
thresholds, evaluated in a fixed order so a pot matching several tiers
gets the most severe one:

1. CRITICAL  - Fe or Si at/above its critical threshold
2. HIGH      - temperature or molar ratio outside its normal band
3. MODERATE  - Fe or Si at/above its moderate threshold
4. NORMAL    - everything else

SHUTDOWN is never derived here; it is set externally when a pot is taken
offline and is preserved by classify_pot().
"""

from typing import Iterable, Optional

import structlog

from config import settings
from models.pot import HealthSummary, Pot, PotMetrics, RiskLevel
from models.thresholds import RiskThresholds

logger = structlog.get_logger(__name__)


# Weights for the potline health roll-up
HEALTH_WEIGHTS = {
    RiskLevel.NORMAL: 100,
    RiskLevel.MODERATE: 60,
    RiskLevel.HIGH: 30,
    RiskLevel.CRITICAL: 10,
}


class RiskService:
    """Classifies pots by risk level. Stateless and read-only."""

    def __init__(self, thresholds: Optional[RiskThresholds] = None):
        self.thresholds = thresholds or settings.risk_thresholds()

    def classify(self, metrics: PotMetrics) -> RiskLevel:
        """
        Classify instantaneous metrics.

        Never raises; always returns one of CRITICAL, HIGH, MODERATE, NORMAL.
        """
        t = self.thresholds

        if metrics.fe >= t.fe_critical or metrics.si >= t.si_critical:
            return RiskLevel.CRITICAL

        temp_out = not (t.temp_normal_min <= metrics.temperature <= t.temp_normal_max)
        ratio_out = not (t.molar_ratio_min <= metrics.molar_ratio <= t.molar_ratio_max)
        if temp_out or ratio_out:
            return RiskLevel.HIGH

        if metrics.fe >= t.fe_moderate or metrics.si >= t.si_moderate:
            return RiskLevel.MODERATE

        return RiskLevel.NORMAL

    def classify_pot(self, pot: Pot) -> RiskLevel:
        """Classify a pot, keeping an externally assigned SHUTDOWN."""
        if pot.is_shutdown:
            return RiskLevel.SHUTDOWN
        return self.classify(pot.metrics)

    def summarize(self, pots: Iterable[Pot]) -> HealthSummary:
        """
        Count pots per risk level and compute an overall health score.

        The score is the weighted mean over active pots
        (normal 100, moderate 60, high 30, critical 10).
        Unclassified pots are classified on the fly.
        """
        counts = {level: 0 for level in RiskLevel}
        for pot in pots:
            level = pot.risk_level or self.classify(pot.metrics)
            counts[level] += 1

        active = sum(counts[level] for level in HEALTH_WEIGHTS)
        if active > 0:
            weighted = sum(counts[level] * weight for level, weight in HEALTH_WEIGHTS.items())
            overall = round(weighted / active, 1)
        else:
            overall = 0.0

        summary = HealthSummary(
            total=sum(counts.values()),
            critical=counts[RiskLevel.CRITICAL],
            high=counts[RiskLevel.HIGH],
            moderate=counts[RiskLevel.MODERATE],
            normal=counts[RiskLevel.NORMAL],
            shutdown=counts[RiskLevel.SHUTDOWN],
            overall_score=overall,
        )

        logger.debug(
            "health_summary_computed",
            total=summary.total,
            critical=summary.critical,
            overall_score=summary.overall_score
        )

        return summary


# Singleton instance
_risk_service: Optional[RiskService] = None


def get_risk_service() -> RiskService:
    """Get or create RiskService instance."""
    global _risk_service
    if _risk_service is None:
        _risk_service = RiskService()
    return _risk_service
