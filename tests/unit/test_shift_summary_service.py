"""
Unit tests for ShiftSummaryService.
"""

import pytest

from models.batch import Batch, BatchStatus, CapacityConfig, PotAssignment
from models.grade import ProductGrade
from services.shift_summary_service import ShiftSummaryService


def make_batch(batch_id: str, grade: ProductGrade, pots: int, status: BatchStatus) -> Batch:
    """Batch carrying only the fields the summary reads."""
    assignments = [
        PotAssignment(pot_id=f"{batch_id}-{i}", fe=0.05, si=0.03, weight=2.5)
        for i in range(pots)
    ]
    return Batch(
        id=batch_id,
        target_grade=grade,
        assignments=assignments,
        total_weight=pots * 2.5,
        status=status,
    )


# ===================
# SUMMARIZE TESTS
# ===================

class TestSummarize:
    """Tests for summarize()."""

    def test_empty_shift(self, capacity):
        summary = ShiftSummaryService(capacity=capacity).summarize([])

        assert summary.total_batches == 0
        assert summary.max_batches == 16
        assert summary.max_pots == 64
        assert summary.batches_by_grade == {grade: 0 for grade in ProductGrade}
        assert not summary.is_over_capacity

    def test_totals(self, capacity):
        batches = [
            make_batch("T-001", ProductGrade.BILLET, 4, BatchStatus.READY),
            make_batch("T-002", ProductGrade.BILLET, 2, BatchStatus.INCOMPLETE),
            make_batch("T-003", ProductGrade.PFA_NT, 4, BatchStatus.DRAFT),
        ]

        summary = ShiftSummaryService(capacity=capacity).summarize(batches)

        assert summary.total_batches == 3
        assert summary.total_pots == 10
        assert summary.total_weight == pytest.approx(25.0)
        assert summary.ready_batches == 1
        assert summary.batches_by_grade[ProductGrade.BILLET] == 2
        assert summary.batches_by_grade[ProductGrade.PFA_NT] == 1
        assert summary.batches_by_grade[ProductGrade.P1020] == 0

    def test_over_capacity(self):
        service = ShiftSummaryService(capacity=CapacityConfig(max_batches_per_shift=2))
        batches = [
            make_batch(f"T-00{i}", ProductGrade.P1020, 0, BatchStatus.EMPTY)
            for i in range(1, 4)
        ]

        summary = service.summarize(batches)

        assert summary.is_over_capacity
        assert summary.max_pots == 8

    def test_at_capacity_is_not_over(self):
        service = ShiftSummaryService(capacity=CapacityConfig(max_batches_per_shift=2))
        batches = [make_batch(f"T-00{i}", ProductGrade.P1020, 0, BatchStatus.EMPTY) for i in (1, 2)]

        assert not service.summarize(batches).is_over_capacity

    def test_range_mode_max_pots(self):
        service = ShiftSummaryService(capacity=CapacityConfig.ranged(2, 6))

        assert service.summarize([]).max_pots == 96
