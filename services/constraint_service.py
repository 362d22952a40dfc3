"""
Constraint validation service.

Computes a batch's blended chemistry and checks it against its grade.
Every check runs (no short-circuit), producing one message per failure,
in this order:

1. Pot count within the configured bound (exact or range)
2. Blended Fe <= max_fe
3. Blended Si <= max_si
4. Total weight <= max_weight_per_batch
5. Total weight >= min_weight_per_batch (only when configured)
6. Blended Vn / Cr / Ni (only when the grade restricts them)
"""

from dataclasses import dataclass, field
from typing import Optional, Sequence

import structlog

from config import settings
from exceptions import GradeConstraintsMissingError
from models.batch import BatchStatus, CapacityConfig, PotAssignment
from models.grade import GRADE_CONSTRAINTS, GradeConstraints, ProductGrade

logger = structlog.get_logger(__name__)


TRACE_LABELS = {"vn": "V", "cr": "Cr", "ni": "Ni"}

# Float slack when comparing summed weights against the bounds
WEIGHT_TOLERANCE = 1e-9


@dataclass(frozen=True)
class Blend:
    """Weighted-average chemistry of a set of assignments."""
    fe: float = 0.0
    si: float = 0.0
    vn: float = 0.0
    cr: float = 0.0
    ni: float = 0.0
    total_weight: float = 0.0


@dataclass
class ConstraintCheck:
    """Validation outcome. constraints_met is True iff violations is empty."""
    violations: list[str] = field(default_factory=list)

    @property
    def constraints_met(self) -> bool:
        return not self.violations


class ConstraintService:
    """Blends and validates batches against the grade constraint table."""

    def __init__(
        self,
        capacity: Optional[CapacityConfig] = None,
        constraints_table: Optional[dict[ProductGrade, GradeConstraints]] = None,
    ):
        self.capacity = capacity or settings.capacity_config()
        self.constraints_table = constraints_table if constraints_table is not None else GRADE_CONSTRAINTS

    def get_constraints(self, grade: ProductGrade) -> GradeConstraints:
        """
        Constraint row for a grade.

        Raises:
            GradeConstraintsMissingError: If the table has no row for the grade
        """
        constraints = self.constraints_table.get(grade)
        if constraints is None:
            logger.error("grade_constraints_missing", grade=grade.value)
            raise GradeConstraintsMissingError(grade.value)
        return constraints

    def has_constraints(self, grade: ProductGrade) -> bool:
        return grade in self.constraints_table

    def blend(self, assignments: Sequence[PotAssignment]) -> Blend:
        """
        Weighted arithmetic mean of each element by assignment weight.

        Always recomputed from the full list; all zeros when total weight is 0.
        """
        total_weight = sum(a.weight for a in assignments)
        if total_weight <= 0:
            return Blend()

        def mean(element: str) -> float:
            return sum(getattr(a, element) * a.weight for a in assignments) / total_weight

        return Blend(
            fe=mean("fe"),
            si=mean("si"),
            vn=mean("vn"),
            cr=mean("cr"),
            ni=mean("ni"),
            total_weight=total_weight,
        )

    def validate(
        self,
        grade: ProductGrade,
        assignments: Sequence[PotAssignment],
        blend: Optional[Blend] = None,
    ) -> ConstraintCheck:
        """
        Run every check for a batch targeting the given grade.

        Args:
            grade: Target grade
            assignments: Current assignments
            blend: Precomputed blend (computed here when omitted)

        Raises:
            GradeConstraintsMissingError: If the grade has no constraint row
        """
        constraints = self.get_constraints(grade)
        if blend is None:
            blend = self.blend(assignments)

        capacity = self.capacity
        check = ConstraintCheck()
        count = len(assignments)

        if capacity.is_exact:
            if count != capacity.pots_per_batch:
                check.violations.append(
                    f"Requires exactly {capacity.pots_per_batch} pots (has {count})"
                )
        elif not capacity.min_pots <= count <= capacity.max_pots:
            check.violations.append(
                f"Requires between {capacity.min_pots} and {capacity.max_pots} pots (has {count})"
            )

        if blend.fe > constraints.max_fe:
            check.violations.append(
                f"Fe {blend.fe:.4f}% exceeds max {constraints.max_fe}%"
            )

        if blend.si > constraints.max_si:
            check.violations.append(
                f"Si {blend.si:.4f}% exceeds max {constraints.max_si}%"
            )

        if self.exceeds_max_weight(blend.total_weight):
            check.violations.append(
                f"Weight {blend.total_weight:.2f} MT exceeds max {capacity.max_weight_per_batch} MT"
            )

        if self.below_min_weight(blend.total_weight):
            check.violations.append(
                f"Weight {blend.total_weight:.2f} MT below min {capacity.min_weight_per_batch} MT"
            )

        for element, limit in constraints.trace_limits():
            value = getattr(blend, element)
            if value > limit:
                check.violations.append(
                    f"{TRACE_LABELS[element]} {value:.4f}% exceeds max {limit}%"
                )

        return check

    def batch_status(self, pot_count: int, constraints_met: bool) -> BatchStatus:
        """Lifecycle state from pot count and validation outcome."""
        if pot_count == 0:
            return BatchStatus.EMPTY
        if pot_count < self.capacity.min_pots:
            return BatchStatus.INCOMPLETE
        if not constraints_met:
            return BatchStatus.DRAFT
        return BatchStatus.READY

    def exceeds_max_weight(self, total_weight: float) -> bool:
        """Weight over the per-batch cap. Shared by the validator and the engine."""
        return total_weight > self.capacity.max_weight_per_batch + WEIGHT_TOLERANCE

    def below_min_weight(self, total_weight: float) -> bool:
        minimum = self.capacity.min_weight_per_batch
        return minimum is not None and total_weight < minimum - WEIGHT_TOLERANCE

    def pot_fits_grade(self, fe: float, si: float, grade: ProductGrade) -> bool:
        """Instantaneous Fe/Si individually within the grade's limits."""
        constraints = self.get_constraints(grade)
        return fe <= constraints.max_fe and si <= constraints.max_si


# Singleton instance
_constraint_service: Optional[ConstraintService] = None


def get_constraint_service() -> ConstraintService:
    """Get or create ConstraintService instance."""
    global _constraint_service
    if _constraint_service is None:
        _constraint_service = ConstraintService()
    return _constraint_service
