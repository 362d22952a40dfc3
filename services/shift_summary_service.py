"""
Shift summary service.

Pure fold over the batch list. Recomputed in full after every batch
mutation; no incremental bookkeeping.
"""

from typing import Iterable, Optional

import structlog

from config import settings
from models.batch import Batch, BatchStatus, CapacityConfig, ShiftSummary
from models.grade import ProductGrade

logger = structlog.get_logger(__name__)


class ShiftSummaryService:
    """Rolls batches up into shift totals."""

    def __init__(self, capacity: Optional[CapacityConfig] = None):
        self.capacity = capacity or settings.capacity_config()

    def summarize(self, batches: Iterable[Batch]) -> ShiftSummary:
        """
        Shift totals for the given batches.

        batches_by_grade always lists every grade, zero-filled.
        """
        by_grade = {grade: 0 for grade in ProductGrade}
        total_batches = 0
        total_pots = 0
        total_weight = 0.0
        ready = 0

        for batch in batches:
            total_batches += 1
            total_pots += batch.pot_count
            total_weight += batch.total_weight
            by_grade[batch.target_grade] = by_grade.get(batch.target_grade, 0) + 1
            if batch.status is BatchStatus.READY:
                ready += 1

        summary = ShiftSummary(
            total_batches=total_batches,
            max_batches=self.capacity.max_batches_per_shift,
            total_pots=total_pots,
            max_pots=self.capacity.max_pots_per_shift,
            total_weight=total_weight,
            batches_by_grade=by_grade,
            ready_batches=ready,
            is_over_capacity=total_batches > self.capacity.max_batches_per_shift,
        )

        if summary.is_over_capacity:
            logger.warning(
                "shift_over_capacity",
                total_batches=total_batches,
                max_batches=summary.max_batches
            )

        return summary


# Singleton instance
_shift_summary_service: Optional[ShiftSummaryService] = None


def get_shift_summary_service() -> ShiftSummaryService:
    """Get or create ShiftSummaryService instance."""
    global _shift_summary_service
    if _shift_summary_service is None:
        _shift_summary_service = ShiftSummaryService()
    return _shift_summary_service
