"""
Health score service.

Turns metrics and a risk level into a continuous 0-100 score. Starts at
100 and subtracts one tiered deduction per dimension:

    iron          30 / 15 / 5
    silicon       25 / 12 / 4
    temperature   20 / 8
    Fe slope      15 / 7
    Si slope      10 / 4
    anode effects 10 / 5

Slope terms penalize rising trends while the instantaneous value is still
acceptable, which is what lets the score anticipate violations the
classifier cannot see. Each deduction only grows as its input worsens, so
the score is monotonic in every metric. SHUTDOWN scores 0.
"""

from typing import Iterable, Optional

import structlog

from config import settings
from models.pot import Pot, PotMetrics, RiskLevel
from models.thresholds import ScoreThresholds
from services.risk_service import RiskService

logger = structlog.get_logger(__name__)


MAX_SCORE = 100.0


class HealthScoreService:
    """
    Scores pot health. Stateless and read-only.

    The scorer and its classifier share Fe/Si tiers: whichever side is
    given, the other is derived from it.
    """

    def __init__(
        self,
        thresholds: Optional[ScoreThresholds] = None,
        risk_service: Optional[RiskService] = None,
    ):
        if risk_service is None:
            base = settings.risk_thresholds()
            risk_service = RiskService(thresholds.risk_thresholds(base) if thresholds else base)
        if thresholds is None:
            thresholds = settings.score_thresholds(risk_service.thresholds)
        elif not thresholds.shares_tiers_with(risk_service.thresholds):
            logger.warning("score_thresholds_diverge_from_risk_thresholds")

        self.thresholds = thresholds
        self.risk_service = risk_service

    def deductions(self, metrics: PotMetrics) -> dict[str, float]:
        """
        Per-dimension deductions for the given metrics.

        Returns:
            Mapping of dimension name to points deducted (0 when healthy)
        """
        t = self.thresholds

        if metrics.fe >= t.fe_critical:
            fe = 30
        elif metrics.fe >= t.fe_moderate:
            fe = 15
        elif metrics.fe >= t.fe_watch:
            fe = 5
        else:
            fe = 0

        if metrics.si >= t.si_critical:
            si = 25
        elif metrics.si >= t.si_moderate:
            si = 12
        elif metrics.si >= t.si_watch:
            si = 4
        else:
            si = 0

        if metrics.temperature > t.temp_critical_max or metrics.temperature < t.temp_critical_min:
            temperature = 20
        elif metrics.temperature > t.temp_normal_max or metrics.temperature < t.temp_normal_min:
            temperature = 8
        else:
            temperature = 0

        if metrics.fe_slope > t.fe_slope_critical:
            fe_slope = 15
        elif metrics.fe_slope > t.fe_slope_warning:
            fe_slope = 7
        else:
            fe_slope = 0

        if metrics.si_slope > t.si_slope_critical:
            si_slope = 10
        elif metrics.si_slope > t.si_slope_warning:
            si_slope = 4
        else:
            si_slope = 0

        if metrics.ae_frequency >= t.ae_frequency_critical:
            ae = 10
        elif metrics.ae_frequency >= t.ae_frequency_moderate:
            ae = 5
        else:
            ae = 0

        return {
            "fe": fe,
            "si": si,
            "temperature": temperature,
            "fe_slope": fe_slope,
            "si_slope": si_slope,
            "ae_frequency": ae,
        }

    def score(self, metrics: PotMetrics, risk_level: RiskLevel) -> float:
        """
        Health score in [0, 100], rounded to one decimal.

        Args:
            metrics: Pot metrics
            risk_level: Classified risk level (SHUTDOWN short-circuits to 0)
        """
        if risk_level is RiskLevel.SHUTDOWN:
            return 0.0

        score = MAX_SCORE - sum(self.deductions(metrics).values())
        return round(max(0.0, min(MAX_SCORE, score)), 1)

    def assess(self, pot: Pot) -> Pot:
        """Return a copy of the pot carrying risk_level and ai_score."""
        risk_level = self.risk_service.classify_pot(pot)
        ai_score = self.score(pot.metrics, risk_level)
        return pot.model_copy(update={"risk_level": risk_level, "ai_score": ai_score})

    def assess_all(self, pots: Iterable[Pot]) -> list[Pot]:
        """Classify and score every pot, preserving input order."""
        assessed = [self.assess(pot) for pot in pots]

        logger.info(
            "pots_assessed",
            count=len(assessed),
            critical=sum(1 for p in assessed if p.risk_level is RiskLevel.CRITICAL),
            shutdown=sum(1 for p in assessed if p.risk_level is RiskLevel.SHUTDOWN),
        )

        return assessed


# Singleton instance
_health_score_service: Optional[HealthScoreService] = None


def get_health_score_service() -> HealthScoreService:
    """Get or create HealthScoreService instance."""
    global _health_score_service
    if _health_score_service is None:
        _health_score_service = HealthScoreService()
    return _health_score_service
