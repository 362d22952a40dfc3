"""
Unit tests for RiskService.

Tests cover tier ordering, band boundaries, shutdown handling and the
potline health roll-up.
"""

import pytest

from models.pot import RiskLevel
from models.thresholds import RiskThresholds
from services.risk_service import RiskService, get_risk_service
from tests.factories import MetricsFactory, PotFactory


# ===================
# FIXTURES
# ===================

@pytest.fixture
def risk_service(risk_thresholds):
    return RiskService(thresholds=risk_thresholds)


# ===================
# CLASSIFY TESTS
# ===================

class TestClassify:
    """Tests for classify()."""

    def test_healthy_metrics_are_normal(self, risk_service):
        assert risk_service.classify(MetricsFactory.create()) == RiskLevel.NORMAL

    @pytest.mark.parametrize("fe,si", [
        (0.18, 0.03),   # Fe exactly at critical
        (0.25, 0.03),
        (0.05, 0.07),   # Si exactly at critical
        (0.05, 0.09),
    ])
    def test_critical_chemistry(self, risk_service, fe, si):
        metrics = MetricsFactory.create(fe=fe, si=si)
        assert risk_service.classify(metrics) == RiskLevel.CRITICAL

    @pytest.mark.parametrize("temperature", [959.9, 975.1, 940.0, 990.0])
    def test_temperature_outside_band_is_high(self, risk_service, temperature):
        metrics = MetricsFactory.create(temperature=temperature)
        assert risk_service.classify(metrics) == RiskLevel.HIGH

    @pytest.mark.parametrize("temperature", [960.0, 975.0])
    def test_temperature_band_is_inclusive(self, risk_service, temperature):
        metrics = MetricsFactory.create(temperature=temperature)
        assert risk_service.classify(metrics) == RiskLevel.NORMAL

    @pytest.mark.parametrize("molar_ratio", [2.1, 2.9])
    def test_molar_ratio_outside_band_is_high(self, risk_service, molar_ratio):
        metrics = MetricsFactory.create(molar_ratio=molar_ratio)
        assert risk_service.classify(metrics) == RiskLevel.HIGH

    @pytest.mark.parametrize("fe,si", [(0.10, 0.03), (0.05, 0.05), (0.17, 0.06)])
    def test_moderate_chemistry(self, risk_service, fe, si):
        metrics = MetricsFactory.create(fe=fe, si=si)
        assert risk_service.classify(metrics) == RiskLevel.MODERATE

    def test_critical_beats_high(self, risk_service):
        """A pot matching several tiers gets the most severe one."""
        metrics = MetricsFactory.create(fe=0.20, temperature=990.0)
        assert risk_service.classify(metrics) == RiskLevel.CRITICAL

    def test_high_beats_moderate(self, risk_service):
        metrics = MetricsFactory.create(fe=0.12, temperature=990.0)
        assert risk_service.classify(metrics) == RiskLevel.HIGH

    def test_custom_thresholds(self):
        service = RiskService(thresholds=RiskThresholds(fe_critical=0.12, fe_moderate=0.08))
        assert service.classify(MetricsFactory.create(fe=0.12)) == RiskLevel.CRITICAL
        assert service.classify(MetricsFactory.create(fe=0.09)) == RiskLevel.MODERATE

    def test_inconsistent_thresholds_rejected(self):
        with pytest.raises(ValueError):
            RiskThresholds(fe_critical=0.05, fe_moderate=0.10)


# ===================
# CLASSIFY POT TESTS
# ===================

class TestClassifyPot:
    """Tests for classify_pot()."""

    def test_shutdown_is_preserved(self, risk_service):
        pot = PotFactory.create(risk_level=RiskLevel.SHUTDOWN, fe=0.30)
        assert risk_service.classify_pot(pot) == RiskLevel.SHUTDOWN

    def test_stale_level_is_recomputed(self, risk_service):
        pot = PotFactory.create(risk_level=RiskLevel.NORMAL, fe=0.30)
        assert risk_service.classify_pot(pot) == RiskLevel.CRITICAL

    def test_unclassified_pot(self, risk_service):
        pot = PotFactory.create(risk_level=None, ai_score=None, si=0.055)
        assert risk_service.classify_pot(pot) == RiskLevel.MODERATE


# ===================
# SUMMARY TESTS
# ===================

class TestSummarize:
    """Tests for summarize()."""

    def test_counts_per_level(self, risk_service):
        pots = [
            PotFactory.create(risk_level=RiskLevel.NORMAL),
            PotFactory.create(risk_level=RiskLevel.NORMAL),
            PotFactory.create(risk_level=RiskLevel.MODERATE),
            PotFactory.create(risk_level=RiskLevel.CRITICAL),
            PotFactory.create(risk_level=RiskLevel.SHUTDOWN),
        ]

        summary = risk_service.summarize(pots)

        assert summary.total == 5
        assert summary.normal == 2
        assert summary.moderate == 1
        assert summary.high == 0
        assert summary.critical == 1
        assert summary.shutdown == 1

    def test_overall_score_excludes_shutdown(self, risk_service):
        pots = [
            PotFactory.create(risk_level=RiskLevel.NORMAL),
            PotFactory.create(risk_level=RiskLevel.HIGH),
            PotFactory.create(risk_level=RiskLevel.SHUTDOWN),
        ]

        summary = risk_service.summarize(pots)

        # (100 + 30) / 2
        assert summary.overall_score == 65.0

    def test_unclassified_pots_are_classified(self, risk_service):
        pots = [PotFactory.create(risk_level=None, ai_score=None, fe=0.2)]

        summary = risk_service.summarize(pots)

        assert summary.critical == 1
        assert summary.overall_score == 10.0

    def test_empty_potline(self, risk_service):
        summary = risk_service.summarize([])

        assert summary.total == 0
        assert summary.overall_score == 0.0


# ===================
# SINGLETON TESTS
# ===================

class TestSingleton:

    def test_returns_same_instance(self):
        assert get_risk_service() is get_risk_service()
