"""
Unit tests for pot and grade models.
"""

from datetime import date

import pytest
from pydantic import ValidationError

from models.grade import ProductGrade, grade_sort_key
from models.pot import TREND_WINDOW, Pot, RiskLevel
from tests.factories import PotFactory, TrendFactory


class TestPot:

    def test_trend_is_sorted_and_capped(self):
        series = TrendFactory.create_series(40, start=date(2024, 3, 1))
        raw = PotFactory.create().model_dump()

        pot = Pot.model_validate({**raw, "trend": list(reversed(series))})

        assert len(pot.trend) == TREND_WINDOW
        assert pot.trend[0].recorded_on == series[10].recorded_on
        assert pot.trend[-1].recorded_on == series[-1].recorded_on

    def test_phase_bounds(self):
        with pytest.raises(ValidationError):
            PotFactory.create(phase=4)

    def test_negative_iron_rejected(self):
        with pytest.raises(ValidationError):
            PotFactory.create(fe=-0.01)

    def test_classification_flags(self):
        assert PotFactory.create().is_classified
        assert not PotFactory.create(ai_score=None).is_classified
        assert PotFactory.create(risk_level=RiskLevel.SHUTDOWN).is_shutdown


class TestRiskLevel:

    def test_severity_ordering(self):
        ranks = [level.severity_rank for level in (
            RiskLevel.NORMAL, RiskLevel.MODERATE, RiskLevel.HIGH, RiskLevel.CRITICAL
        )]
        assert ranks == sorted(ranks)
        assert not RiskLevel.SHUTDOWN.is_active


class TestGradePriority:

    def test_premium_first(self):
        ordered = sorted(ProductGrade, key=grade_sort_key, reverse=True)
        assert sorted(ordered, key=grade_sort_key) == [
            ProductGrade.PFA_NT,
            ProductGrade.WIRE_ROD_HEC,
            ProductGrade.BILLET,
            ProductGrade.P1020,
        ]
