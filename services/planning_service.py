"""
Planning service: builds a shift's batches from product requests.

Planning replaces whatever batches exist:

1. CLEAR existing batches (batch numbering restarts at T-001)
2. AGGREGATE requests per grade and size them in batches
3. For each grade, premium first:
   - rank the grade-eligible unassigned pots best first
   - carve consecutive, non-overlapping slices of pots_per_batch pots
   - one batch per slice until the request, the pool or the shift cap runs out
4. REPORT per-grade fulfillment with an explicit shortfall

Running out of pots or batch slots is reported, never raised.
"""

import math
from collections import defaultdict
from typing import Iterable, Optional

import structlog

from models.batch import (
    Batch,
    BatchStatus,
    FulfillmentStatus,
    PlanReport,
    ProductRequest,
    RequestFulfillment,
)
from models.grade import ProductGrade, grade_sort_key
from services.allocation_service import AllocationService
from services.allocation_state import AllocationState

logger = structlog.get_logger(__name__)


def fulfillment_status(tasks_needed: int, tasks_assigned: int) -> FulfillmentStatus:
    """Coverage of a request by its assigned batch count."""
    if tasks_assigned == 0:
        return FulfillmentStatus.PENDING
    if tasks_assigned < tasks_needed:
        return FulfillmentStatus.PARTIAL
    if tasks_assigned > tasks_needed:
        return FulfillmentStatus.EXCEEDED
    return FulfillmentStatus.FULFILLED


class PlanningService:
    """Turns product requests into a shift plan."""

    def __init__(self, allocation_service: Optional[AllocationService] = None):
        self.allocation_service = allocation_service or AllocationService()
        self.capacity = self.allocation_service.capacity

    def tasks_needed(self, target_quantity: float) -> int:
        """Batches needed to cover a quantity (MT) at the average batch weight."""
        if target_quantity <= 0:
            return 0
        return math.ceil(target_quantity / self.capacity.avg_weight_per_batch)

    def plan_from_requests(
        self,
        state: AllocationState,
        requests: Iterable[ProductRequest]
    ) -> PlanReport:
        """
        Replace the state's batches with a plan covering the requests.

        Args:
            state: Session to plan into
            requests: Requested quantities; repeated grades are summed

        Returns:
            PlanReport with the new batches, per-grade fulfillment and warnings
        """
        engine = self.allocation_service
        pots_per_batch = self.capacity.pots_per_batch

        with state.lock:
            targets = self._aggregate(requests)
            state.requests = [
                ProductRequest(grade=grade, target_quantity=quantity)
                for grade, quantity in targets.items()
            ]
            engine.clear_all(state)

            warnings: list[str] = []
            planned: dict[ProductGrade, int] = defaultdict(int)
            shortfalls: dict[ProductGrade, int] = {}
            shift_limit_reached = False

            for grade in sorted(targets, key=grade_sort_key):
                needed = self.tasks_needed(targets[grade])
                if needed == 0:
                    continue

                if not engine.constraint_service.has_constraints(grade):
                    shortfalls[grade] = needed
                    warnings.append(f"{grade.value}: no constraints configured, nothing planned")
                    continue

                pool = engine.eligible_pots(state, grade)
                offset = 0

                while planned[grade] < needed:
                    if state.batch_count >= self.capacity.max_batches_per_shift:
                        shift_limit_reached = True
                        break
                    if len(pool) - offset < pots_per_batch:
                        break

                    pots = pool[offset:offset + pots_per_batch]
                    offset += pots_per_batch
                    slice_ids = [p.id for p in pots]

                    # Checked before create_batch so skipped slices leave no id gaps
                    slice_weight = sum(engine.assignment_weight(p) for p in pots)
                    if engine.constraint_service.exceeds_max_weight(slice_weight):
                        warnings.append(
                            f"{grade.value}: pots {', '.join(slice_ids)} skipped, "
                            f"weight {slice_weight:.2f} MT exceeds max {self.capacity.max_weight_per_batch} MT"
                        )
                        continue

                    batch = self._build_from_slice(state, grade, slice_ids, warnings)
                    if batch is not None:
                        planned[grade] += 1

                shortfall = needed - planned[grade]
                if shortfall:
                    shortfalls[grade] = shortfall
                    reason = "shift batch limit reached" if shift_limit_reached else "not enough eligible pots"
                    warnings.append(
                        f"{grade.value}: planned {planned[grade]} of {needed} batches ({reason})"
                    )

            fulfillment = [
                RequestFulfillment(
                    grade=grade,
                    target_quantity=quantity,
                    tasks_needed=self.tasks_needed(quantity),
                    tasks_assigned=planned[grade],
                    shortfall=shortfalls.get(grade, 0),
                    status=fulfillment_status(self.tasks_needed(quantity), planned[grade]),
                )
                for grade, quantity in sorted(targets.items(), key=lambda item: grade_sort_key(item[0]))
            ]

            report = PlanReport(
                batches=state.batches,
                fulfillment=fulfillment,
                summary=state.summary.model_copy(deep=True),
                warnings=warnings,
                shift_limit_reached=shift_limit_reached,
            )

        logger.info(
            "plan_built",
            batches=len(report.batches),
            ready=report.summary.ready_batches,
            shortfall=sum(f.shortfall for f in fulfillment),
            shift_limit_reached=shift_limit_reached
        )

        return report

    def request_status(self, state: AllocationState) -> list[RequestFulfillment]:
        """Fulfillment of the state's requests against its current batches."""
        with state.lock:
            assigned: dict[ProductGrade, int] = defaultdict(int)
            for batch in state.batches:
                assigned[batch.target_grade] += 1

            result = []
            for request in sorted(state.requests, key=lambda r: grade_sort_key(r.grade)):
                needed = self.tasks_needed(request.target_quantity)
                count = assigned[request.grade]
                result.append(RequestFulfillment(
                    grade=request.grade,
                    target_quantity=request.target_quantity,
                    tasks_needed=needed,
                    tasks_assigned=count,
                    shortfall=max(needed - count, 0),
                    status=fulfillment_status(needed, count),
                ))

            return result

    # ===================
    # UTILITY METHODS
    # ===================

    def _aggregate(self, requests: Iterable[ProductRequest]) -> dict[ProductGrade, float]:
        targets: dict[ProductGrade, float] = defaultdict(float)
        for request in requests:
            targets[request.grade] += request.target_quantity
        return dict(targets)

    def _build_from_slice(
        self,
        state: AllocationState,
        grade: ProductGrade,
        pot_ids: list[str],
        warnings: list[str]
    ) -> Optional[Batch]:
        """Create one batch holding exactly these pots, or None if rejected."""
        engine = self.allocation_service

        created = engine.create_batch(state, grade)
        if not created.success:
            warnings.append(f"{grade.value}: {created.message}")
            return None

        batch_id = created.batch.id
        filled = engine.replace_batch_pots(state, batch_id, pot_ids)
        if not filled.success:
            engine.remove_batch(state, batch_id)
            warnings.append(f"{grade.value}: {filled.message}")
            return None

        if filled.batch.status is not BatchStatus.READY:
            warnings.append(
                f"{grade.value}: batch {batch_id} is {filled.batch.status.value}: "
                + "; ".join(filled.batch.violations)
            )

        return filled.batch


# Singleton instance
_planning_service: Optional[PlanningService] = None


def get_planning_service() -> PlanningService:
    """Get or create PlanningService instance."""
    global _planning_service
    if _planning_service is None:
        _planning_service = PlanningService()
    return _planning_service
