"""
Unit tests for ConstraintService.

Tests cover weighted blending, every validation check and its message,
lifecycle state derivation and the grade table contract.
"""

import pytest

from exceptions import GradeConstraintsMissingError
from models.batch import BatchStatus, CapacityConfig, PotAssignment
from models.grade import GRADE_CONSTRAINTS, GradeConstraints, ProductGrade
from services.constraint_service import ConstraintService


# ===================
# FIXTURES
# ===================

@pytest.fixture
def constraint_service(capacity):
    return ConstraintService(capacity=capacity)


def assignment(pot_id: str, fe: float = 0.05, si: float = 0.03, weight: float = 2.5, **trace) -> PotAssignment:
    return PotAssignment(pot_id=pot_id, fe=fe, si=si, weight=weight, ai_score=90, **trace)


def four_pots(**overrides) -> list[PotAssignment]:
    return [assignment(f"P-{i}", **overrides) for i in range(4)]


# ===================
# BLEND TESTS
# ===================

class TestBlend:
    """Tests for blend()."""

    def test_empty_blend_is_zero(self, constraint_service):
        blend = constraint_service.blend([])

        assert blend.fe == 0
        assert blend.si == 0
        assert blend.total_weight == 0

    def test_equal_weights_average(self, constraint_service):
        blend = constraint_service.blend([
            assignment("A", fe=0.04, si=0.02),
            assignment("B", fe=0.08, si=0.04),
        ])

        assert blend.fe == pytest.approx(0.06)
        assert blend.si == pytest.approx(0.03)
        assert blend.total_weight == pytest.approx(5.0)

    def test_weighted_by_contribution(self, constraint_service):
        blend = constraint_service.blend([
            assignment("A", fe=0.10, weight=3.0),
            assignment("B", fe=0.04, weight=1.0),
        ])

        # (0.10*3 + 0.04*1) / 4
        assert blend.fe == pytest.approx(0.085)

    def test_order_does_not_change_blend(self, constraint_service):
        pots = [
            assignment("A", fe=0.10, si=0.02, weight=3.0, vn=0.001),
            assignment("B", fe=0.04, si=0.05, weight=1.5, cr=0.002),
            assignment("C", fe=0.07, si=0.03, weight=2.2, ni=0.001),
        ]

        forward = constraint_service.blend(pots)
        backward = constraint_service.blend(list(reversed(pots)))

        for element in ("fe", "si", "vn", "cr", "ni", "total_weight"):
            assert getattr(backward, element) == pytest.approx(getattr(forward, element))

    def test_trace_elements_blended(self, constraint_service):
        blend = constraint_service.blend([
            assignment("A", vn=0.002, cr=0.001, ni=0.0),
            assignment("B", vn=0.0, cr=0.001, ni=0.001),
        ])

        assert blend.vn == pytest.approx(0.001)
        assert blend.cr == pytest.approx(0.001)
        assert blend.ni == pytest.approx(0.0005)


# ===================
# VALIDATE TESTS
# ===================

class TestValidate:
    """Tests for validate()."""

    def test_four_clean_pots_pass(self, constraint_service):
        check = constraint_service.validate(ProductGrade.P1020, four_pots())

        assert check.constraints_met
        assert check.violations == []

    def test_exact_count_message(self, constraint_service):
        check = constraint_service.validate(ProductGrade.P1020, four_pots()[:3])

        assert check.violations == ["Requires exactly 4 pots (has 3)"]

    def test_range_count_message(self):
        service = ConstraintService(capacity=CapacityConfig.ranged(2, 6, target=4))

        assert service.validate(ProductGrade.P1020, four_pots()[:3]).constraints_met
        check = service.validate(ProductGrade.P1020, four_pots()[:1])
        assert check.violations == ["Requires between 2 and 6 pots (has 1)"]

    def test_blended_iron_over_limit(self, constraint_service):
        check = constraint_service.validate(ProductGrade.PFA_NT, four_pots(fe=0.08))

        assert check.violations == ["Fe 0.0800% exceeds max 0.075%"]

    def test_blended_silicon_over_limit(self, constraint_service):
        check = constraint_service.validate(ProductGrade.WIRE_ROD_HEC, four_pots(si=0.06))

        assert check.violations == ["Si 0.0600% exceeds max 0.05%"]

    def test_weight_over_limit(self, constraint_service):
        check = constraint_service.validate(ProductGrade.P1020, four_pots(weight=3.0))

        assert check.violations == ["Weight 12.00 MT exceeds max 10.5 MT"]

    def test_weight_at_cap_after_float_rounding(self):
        service = ConstraintService(capacity=CapacityConfig(max_weight_per_batch=8.1))
        pots = [assignment(f"P-{i}", weight=w) for i, w in enumerate([1.5, 1.5, 1.9, 3.2])]

        check = service.validate(ProductGrade.P1020, pots)

        assert check.violations == []
        assert not service.exceeds_max_weight(service.blend(pots).total_weight)

    def test_min_weight_only_when_configured(self):
        service = ConstraintService(capacity=CapacityConfig(min_weight_per_batch=9.0))

        check = service.validate(ProductGrade.P1020, four_pots(weight=2.0))

        assert check.violations == ["Weight 8.00 MT below min 9.0 MT"]

    def test_trace_elements_checked_when_restricted(self, constraint_service):
        check = constraint_service.validate(ProductGrade.PFA_NT, four_pots(vn=0.002))

        assert check.violations == ["V 0.0020% exceeds max 0.0015%"]

    def test_trace_elements_ignored_when_unrestricted(self):
        table = {ProductGrade.P1020: GradeConstraints(max_fe=0.1, max_si=0.1)}
        service = ConstraintService(constraints_table=table)

        check = service.validate(ProductGrade.P1020, four_pots(vn=0.5, cr=0.5, ni=0.5))

        assert check.constraints_met

    def test_all_checks_run_in_order(self, constraint_service):
        pots = [assignment(f"P-{i}", fe=0.09, si=0.06, weight=4.0, ni=0.001) for i in range(3)]

        check = constraint_service.validate(ProductGrade.PFA_NT, pots)

        assert [v.split()[0] for v in check.violations] == ["Requires", "Fe", "Si", "Weight", "Ni"]

    def test_blend_passes_although_one_member_fails(self):
        """The limit applies to the blend, not to each pot."""
        service = ConstraintService(capacity=CapacityConfig.exact(2))
        pots = [assignment("A", fe=0.09), assignment("B", fe=0.05)]

        check = service.validate(ProductGrade.PFA_NT, pots)

        assert pots[0].fe > GRADE_CONSTRAINTS[ProductGrade.PFA_NT].max_fe
        assert check.constraints_met

    def test_missing_grade_raises(self):
        service = ConstraintService(constraints_table={})

        with pytest.raises(GradeConstraintsMissingError):
            service.validate(ProductGrade.BILLET, four_pots())


# ===================
# STATUS TESTS
# ===================

class TestBatchStatus:
    """Tests for batch_status()."""

    @pytest.mark.parametrize("count,met,expected", [
        (0, False, BatchStatus.EMPTY),
        (3, False, BatchStatus.INCOMPLETE),
        (3, True, BatchStatus.INCOMPLETE),
        (4, False, BatchStatus.DRAFT),
        (4, True, BatchStatus.READY),
    ])
    def test_exact_mode(self, constraint_service, count, met, expected):
        assert constraint_service.batch_status(count, met) == expected

    def test_range_mode_uses_minimum(self):
        service = ConstraintService(capacity=CapacityConfig.ranged(2, 6))

        assert service.batch_status(1, False) == BatchStatus.INCOMPLETE
        assert service.batch_status(2, True) == BatchStatus.READY


# ===================
# GRADE TABLE TESTS
# ===================

class TestGradeTable:

    def test_every_grade_has_fe_and_si(self):
        for grade in ProductGrade:
            constraints = GRADE_CONSTRAINTS[grade]
            assert constraints.max_fe > 0
            assert constraints.max_si > 0

    def test_pfa_nt_is_strictest(self):
        pfa = GRADE_CONSTRAINTS[ProductGrade.PFA_NT]
        for grade in ProductGrade:
            assert pfa.max_fe <= GRADE_CONSTRAINTS[grade].max_fe
            assert pfa.max_si <= GRADE_CONSTRAINTS[grade].max_si

    def test_trace_limits_skip_unset(self):
        constraints = GradeConstraints(max_fe=0.1, max_si=0.1, max_cr=0.002)
        assert constraints.trace_limits() == [("cr", 0.002)]

    def test_pot_fits_grade(self, constraint_service):
        assert constraint_service.pot_fits_grade(0.07, 0.04, ProductGrade.PFA_NT)
        assert not constraint_service.pot_fits_grade(0.08, 0.04, ProductGrade.PFA_NT)
        assert constraint_service.pot_fits_grade(0.08, 0.04, ProductGrade.BILLET)
