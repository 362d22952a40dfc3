"""
Allocation service: assigns pots to batches.

Every mutation runs under the state's lock and follows the same steps:

1. CHECK the pot is not claimed by another batch
2. BUILD the new assignment list
3. RECOMPUTE the blend from scratch over the new list
4. VALIDATE against the grade constraints
5. DERIVE the lifecycle state (empty / incomplete / draft / ready)
6. COMMIT the batch and recompute the shift summary

Nothing is committed until step 6, so a rejected mutation leaves the
state exactly as it was.

Two error classes:
- Business-rule rejections (pot already assigned, batch full, weight
  overflow, shift limit) are returned as AllocationResult.
- Contract errors (unknown batch or pot id, missing constraint row) raise.

Auto-fill is best-first greedy, not a search: eligible pots are ranked by
ai_score (ties by pot id) and taken until the batch reaches its target
count. A pot that would overflow the weight cap is skipped and the scan
continues.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional, Sequence

import structlog

from config import settings
from models.batch import Batch, CapacityConfig, PotAssignment
from models.grade import GradeConstraints, ProductGrade, grade_sort_key
from models.pot import Pot, RiskLevel
from services.allocation_state import AllocationState
from services.constraint_service import ConstraintService
from services.shift_summary_service import ShiftSummaryService

logger = structlog.get_logger(__name__)


# Never auto-selected
EXCLUDED_RISK_LEVELS = (RiskLevel.SHUTDOWN, RiskLevel.CRITICAL)


class AllocationCode(str, Enum):
    """Outcome codes for allocation mutations."""
    OK = "OK"
    POT_ALREADY_ASSIGNED = "POT_ALREADY_ASSIGNED"
    POT_NOT_IN_BATCH = "POT_NOT_IN_BATCH"
    POT_UNAVAILABLE = "POT_UNAVAILABLE"
    BATCH_FULL = "BATCH_FULL"
    WEIGHT_LIMIT_EXCEEDED = "WEIGHT_LIMIT_EXCEEDED"
    SHIFT_LIMIT_REACHED = "SHIFT_LIMIT_REACHED"
    GRADE_NOT_CONFIGURED = "GRADE_NOT_CONFIGURED"
    DUPLICATE_POT_IN_REQUEST = "DUPLICATE_POT_IN_REQUEST"


@dataclass
class AllocationResult:
    """Result of a mutation. On failure `batch` is the unchanged batch, if any."""
    success: bool
    code: AllocationCode
    message: str
    batch: Optional[Batch] = None


@dataclass
class AutoFillResult:
    """Result of auto-filling one batch."""
    batch: Batch
    added_pot_ids: list[str] = field(default_factory=list)
    shortfall: int = 0
    skipped_for_weight: list[str] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return self.shortfall == 0


class AllocationService:
    """
    Allocation engine.

    Stateless: every operation takes the AllocationState it acts on.
    """

    def __init__(
        self,
        constraints_table: Optional[dict[ProductGrade, GradeConstraints]] = None,
        capacity: Optional[CapacityConfig] = None,
    ):
        self.capacity = capacity or settings.capacity_config()
        self.constraint_service = ConstraintService(
            capacity=self.capacity,
            constraints_table=constraints_table,
        )
        self.summary_service = ShiftSummaryService(capacity=self.capacity)

    # ===================
    # BATCH LIFECYCLE
    # ===================

    def create_batch(self, state: AllocationState, grade: ProductGrade) -> AllocationResult:
        """
        Create an empty batch targeting a grade.

        Rejected when the grade has no constraint row or the shift is full.
        """
        with state.lock:
            if not self.constraint_service.has_constraints(grade):
                return self._reject(
                    AllocationCode.GRADE_NOT_CONFIGURED,
                    f"Grade {grade.value} has no constraints configured",
                    grade=grade.value,
                )

            if state.batch_count >= self.capacity.max_batches_per_shift:
                return self._reject(
                    AllocationCode.SHIFT_LIMIT_REACHED,
                    f"Shift already has {state.batch_count} of "
                    f"{self.capacity.max_batches_per_shift} batches",
                    grade=grade.value,
                )

            batch = self._build_batch(state.next_batch_id(), grade, [])
            self._commit(state, batch)

            logger.info("batch_created", batch_id=batch.id, grade=grade.value)

            return self._ok(batch, f"Batch {batch.id} created for {grade.value}")

    def remove_batch(self, state: AllocationState, batch_id: str) -> AllocationResult:
        """
        Destroy a batch, releasing its pots.

        Raises:
            BatchNotFoundError: If the batch does not exist
        """
        with state.lock:
            state.require_batch(batch_id)
            removed = state.drop_batch(batch_id)
            self._refresh_summary(state)

            logger.info(
                "batch_removed",
                batch_id=batch_id,
                released_pots=removed.pot_count
            )

            return self._ok(removed, f"Batch {batch_id} removed")

    def clear_all(self, state: AllocationState) -> None:
        """Destroy every batch and reset batch numbering."""
        with state.lock:
            count = state.batch_count
            state.drop_all_batches()
            self._refresh_summary(state)

            logger.info("batches_cleared", count=count)

    # ===================
    # MANUAL ASSIGNMENT
    # ===================

    def add_pot_to_batch(
        self,
        state: AllocationState,
        batch_id: str,
        pot_id: str
    ) -> AllocationResult:
        """
        Assign one pot to a batch.

        Raises:
            BatchNotFoundError: If the batch does not exist
            PotNotFoundError: If the pot is not in the pool
        """
        with state.lock:
            batch = state.require_batch(batch_id)
            pot = state.pot(pot_id)

            rejection = self._check_claim(state, batch, pot)
            if rejection:
                return rejection

            if batch.pot_count >= self.capacity.max_pots:
                return self._reject(
                    AllocationCode.BATCH_FULL,
                    f"Batch {batch_id} already has {batch.pot_count} of "
                    f"{self.capacity.max_pots} pots",
                    batch=batch,
                    pot_id=pot_id,
                )

            assignment = self._snapshot(pot)
            if self.constraint_service.exceeds_max_weight(batch.total_weight + assignment.weight):
                return self._reject(
                    AllocationCode.WEIGHT_LIMIT_EXCEEDED,
                    f"Adding pot {pot_id} ({assignment.weight:.2f} MT) would bring batch "
                    f"{batch_id} to {batch.total_weight + assignment.weight:.2f} MT, "
                    f"over the {self.capacity.max_weight_per_batch} MT limit",
                    batch=batch,
                    pot_id=pot_id,
                )

            updated = self._build_batch(
                batch.id, batch.target_grade, [*batch.assignments, assignment]
            )
            self._commit(state, updated)

            logger.info(
                "pot_added_to_batch",
                batch_id=batch_id,
                pot_id=pot_id,
                status=updated.status.value
            )

            return self._ok(updated, f"Pot {pot_id} added to batch {batch_id}")

    def remove_pot_from_batch(
        self,
        state: AllocationState,
        batch_id: str,
        pot_id: str
    ) -> AllocationResult:
        """
        Remove one pot from a batch.

        Removing a pot the batch does not hold is a no-op reported as
        POT_NOT_IN_BATCH.

        Raises:
            BatchNotFoundError: If the batch does not exist
            PotNotFoundError: If the pot is not in the pool
        """
        with state.lock:
            batch = state.require_batch(batch_id)
            state.pot(pot_id)

            if pot_id not in batch.pot_ids:
                logger.debug("pot_not_in_batch", batch_id=batch_id, pot_id=pot_id)
                return AllocationResult(
                    success=False,
                    code=AllocationCode.POT_NOT_IN_BATCH,
                    message=f"Pot {pot_id} is not in batch {batch_id}",
                    batch=batch.model_copy(deep=True),
                )

            remaining = [a for a in batch.assignments if a.pot_id != pot_id]
            updated = self._build_batch(batch.id, batch.target_grade, remaining)
            self._commit(state, updated)

            logger.info(
                "pot_removed_from_batch",
                batch_id=batch_id,
                pot_id=pot_id,
                status=updated.status.value
            )

            return self._ok(updated, f"Pot {pot_id} removed from batch {batch_id}")

    def replace_batch_pots(
        self,
        state: AllocationState,
        batch_id: str,
        pot_ids: Sequence[str]
    ) -> AllocationResult:
        """
        Replace a batch's pots with the given list, all or nothing.

        Pots the batch already holds keep their pinned snapshot.

        Raises:
            BatchNotFoundError: If the batch does not exist
            PotNotFoundError: If any pot is not in the pool
        """
        with state.lock:
            batch = state.require_batch(batch_id)
            pots = [state.pot(pot_id) for pot_id in pot_ids]

            seen: set[str] = set()
            for pot in pots:
                if pot.id in seen:
                    return self._reject(
                        AllocationCode.DUPLICATE_POT_IN_REQUEST,
                        f"Pot {pot.id} listed more than once",
                        batch=batch,
                        pot_id=pot.id,
                    )
                seen.add(pot.id)

            for pot in pots:
                if state.claimed_by(pot.id) == batch.id:
                    continue
                rejection = self._check_claim(state, batch, pot)
                if rejection:
                    return rejection

            if len(pots) > self.capacity.max_pots:
                return self._reject(
                    AllocationCode.BATCH_FULL,
                    f"Batch {batch_id} takes at most {self.capacity.max_pots} pots "
                    f"({len(pots)} given)",
                    batch=batch,
                )

            pinned = {a.pot_id: a for a in batch.assignments}
            assignments = [pinned.get(pot.id) or self._snapshot(pot) for pot in pots]

            total_weight = sum(a.weight for a in assignments)
            if self.constraint_service.exceeds_max_weight(total_weight):
                return self._reject(
                    AllocationCode.WEIGHT_LIMIT_EXCEEDED,
                    f"Pots total {total_weight:.2f} MT, over the "
                    f"{self.capacity.max_weight_per_batch} MT limit",
                    batch=batch,
                )

            updated = self._build_batch(batch.id, batch.target_grade, assignments)
            self._commit(state, updated)

            logger.info(
                "batch_pots_replaced",
                batch_id=batch_id,
                pot_count=updated.pot_count,
                status=updated.status.value
            )

            return self._ok(updated, f"Batch {batch_id} now has {updated.pot_count} pots")

    # ===================
    # AUTO-FILL
    # ===================

    def eligible_pots(self, state: AllocationState, grade: ProductGrade) -> list[Pot]:
        """
        Unassigned pots that could serve a grade, best first.

        Eligible: classified, not shutdown or critical, and instantaneous
        Fe/Si individually within the grade's limits. Sorted by ai_score
        descending, ties broken by pot id ascending.

        Raises:
            GradeConstraintsMissingError: If the grade has no constraint row
        """
        # Raises for an unconfigured grade even when no pot is unassigned
        self.constraint_service.get_constraints(grade)

        candidates = [
            pot for pot in state.unassigned_pots()
            if pot.is_classified
            and pot.risk_level not in EXCLUDED_RISK_LEVELS
            and self.constraint_service.pot_fits_grade(pot.metrics.fe, pot.metrics.si, grade)
        ]

        return sorted(candidates, key=lambda p: (-p.ai_score, p.id))

    def auto_fill_batch(self, state: AllocationState, batch_id: str) -> AutoFillResult:
        """
        Fill a batch up to its target pot count from the unassigned pool.

        Falling short is reported through `shortfall`, not raised.

        Raises:
            BatchNotFoundError: If the batch does not exist
            GradeConstraintsMissingError: If the batch's grade has no constraint row
        """
        with state.lock:
            batch = state.require_batch(batch_id)
            needed = self.capacity.pots_per_batch - batch.pot_count
            if needed <= 0:
                return AutoFillResult(batch=batch.model_copy(deep=True))

            total_weight = batch.total_weight
            picked: list[PotAssignment] = []
            skipped: list[str] = []

            for pot in self.eligible_pots(state, batch.target_grade):
                if len(picked) >= needed:
                    break

                assignment = self._snapshot(pot)
                if self.constraint_service.exceeds_max_weight(total_weight + assignment.weight):
                    skipped.append(pot.id)
                    logger.debug(
                        "auto_fill_pot_skipped_weight",
                        batch_id=batch_id,
                        pot_id=pot.id,
                        weight=assignment.weight
                    )
                    continue

                picked.append(assignment)
                total_weight += assignment.weight

            if picked:
                batch = self._build_batch(
                    batch.id, batch.target_grade, [*batch.assignments, *picked]
                )
                self._commit(state, batch)

            shortfall = needed - len(picked)
            result = AutoFillResult(
                batch=batch.model_copy(deep=True),
                added_pot_ids=[a.pot_id for a in picked],
                shortfall=shortfall,
                skipped_for_weight=skipped,
            )

            if shortfall:
                logger.warning(
                    "auto_fill_incomplete",
                    batch_id=batch_id,
                    grade=batch.target_grade.value,
                    added=len(picked),
                    shortfall=shortfall
                )
            else:
                logger.info(
                    "auto_fill_complete",
                    batch_id=batch_id,
                    added=len(picked),
                    status=batch.status.value
                )

            return result

    def auto_fill_all(self, state: AllocationState) -> list[AutoFillResult]:
        """
        Auto-fill every batch still below its target count.

        Batches are processed premium grades first, then in creation order,
        all drawing on the same unassigned pool.
        """
        with state.lock:
            order = {batch_id: i for i, batch_id in enumerate(b.id for b in state.batches)}
            pending = [
                b for b in state.batches
                if b.pot_count < self.capacity.pots_per_batch
            ]
            pending.sort(key=lambda b: (grade_sort_key(b.target_grade), order[b.id]))

            results = [self.auto_fill_batch(state, b.id) for b in pending]

            logger.info(
                "auto_fill_all_complete",
                batches=len(results),
                incomplete=sum(1 for r in results if not r.complete)
            )

            return results

    # ===================
    # UTILITY METHODS
    # ===================

    def _refresh_summary(self, state: AllocationState) -> None:
        state.summary = self.summary_service.summarize(state.batches)

    def _commit(self, state: AllocationState, batch: Batch) -> None:
        state.store_batch(batch)
        self._refresh_summary(state)

    def _build_batch(
        self,
        batch_id: str,
        grade: ProductGrade,
        assignments: Iterable[PotAssignment]
    ) -> Batch:
        """Batch with blend, validation and status recomputed from scratch."""
        assignments = list(assignments)
        blend = self.constraint_service.blend(assignments)
        check = self.constraint_service.validate(grade, assignments, blend)

        return Batch(
            id=batch_id,
            target_grade=grade,
            assignments=assignments,
            blended_fe=blend.fe,
            blended_si=blend.si,
            blended_vn=blend.vn,
            blended_cr=blend.cr,
            blended_ni=blend.ni,
            total_weight=blend.total_weight,
            constraints_met=check.constraints_met,
            violations=check.violations,
            status=self.constraint_service.batch_status(len(assignments), check.constraints_met),
        )

    def assignment_weight(self, pot: Pot) -> float:
        """Weight a pot contributes once assigned; unknown weights use the average."""
        return pot.weight or self.capacity.avg_weight_per_pot

    def _snapshot(self, pot: Pot) -> PotAssignment:
        """Pin the pot's current chemistry and weight."""
        m = pot.metrics
        return PotAssignment(
            pot_id=pot.id,
            fe=m.fe,
            si=m.si,
            vn=m.vn,
            cr=m.cr,
            ni=m.ni,
            ai_score=pot.ai_score,
            weight=self.assignment_weight(pot),
        )

    def _check_claim(
        self,
        state: AllocationState,
        batch: Batch,
        pot: Pot
    ) -> Optional[AllocationResult]:
        """Rejection if the pot cannot be claimed by this batch, else None."""
        owner = state.claimed_by(pot.id)
        if owner == batch.id:
            return self._reject(
                AllocationCode.POT_ALREADY_ASSIGNED,
                f"Pot {pot.id} is already in batch {batch.id}",
                batch=batch,
                pot_id=pot.id,
            )
        if owner is not None:
            return self._reject(
                AllocationCode.POT_ALREADY_ASSIGNED,
                f"Pot {pot.id} is already assigned to batch {owner}",
                batch=batch,
                pot_id=pot.id,
            )
        if pot.is_shutdown:
            return self._reject(
                AllocationCode.POT_UNAVAILABLE,
                f"Pot {pot.id} is shut down",
                batch=batch,
                pot_id=pot.id,
            )
        return None

    def _ok(self, batch: Batch, message: str) -> AllocationResult:
        return AllocationResult(
            success=True,
            code=AllocationCode.OK,
            message=message,
            batch=batch.model_copy(deep=True),
        )

    def _reject(
        self,
        code: AllocationCode,
        message: str,
        batch: Optional[Batch] = None,
        **context
    ) -> AllocationResult:
        logger.warning(
            "allocation_rejected",
            code=code.value,
            batch_id=batch.id if batch else None,
            reason=message,
            **context
        )
        return AllocationResult(
            success=False,
            code=code,
            message=message,
            batch=batch.model_copy(deep=True) if batch else None,
        )


# Singleton instance
_allocation_service: Optional[AllocationService] = None


def get_allocation_service() -> AllocationService:
    """Get or create AllocationService instance."""
    global _allocation_service
    if _allocation_service is None:
        _allocation_service = AllocationService()
    return _allocation_service
