"""
Batch (task / crucible) schemas and planning capacity.

A batch groups pots whose metal is blended to meet one grade. Chemistry is
pinned at assignment time so a batch's blend is reproducible even if the
source pot data is regenerated.
"""

from enum import Enum
from typing import Optional

from pydantic import Field, model_validator

from models.base import BaseSchema, FrozenSchema
from models.grade import ProductGrade


class CapacityConfig(FrozenSchema):
    """
    Per-batch and per-shift capacity.

    Count bound is exact (pots_per_batch) unless min/max are given, in
    which case any count in [min, max] is valid and pots_per_batch is the
    count auto-fill and planning aim for.
    """

    pots_per_batch: int = Field(default=4, ge=1, le=20, description="Target pots per batch")
    min_pots_per_batch: Optional[int] = Field(None, ge=1, le=20)
    max_pots_per_batch: Optional[int] = Field(None, ge=1, le=20)
    max_batches_per_shift: int = Field(default=16, ge=1, le=200)
    max_weight_per_batch: float = Field(default=10.5, gt=0, description="MT")
    min_weight_per_batch: Optional[float] = Field(None, ge=0, description="MT")
    avg_weight_per_pot: float = Field(default=2.5, gt=0, description="MT, used when a pot has no weight")
    avg_weight_per_batch: float = Field(default=10.0, gt=0, description="MT, used to size requests")

    @model_validator(mode="after")
    def check_bounds(self) -> "CapacityConfig":
        if self.min_pots > self.max_pots:
            raise ValueError("min_pots_per_batch must not exceed max_pots_per_batch")
        if not self.min_pots <= self.pots_per_batch <= self.max_pots:
            raise ValueError("pots_per_batch must lie within [min_pots_per_batch, max_pots_per_batch]")
        if self.min_weight_per_batch is not None and self.min_weight_per_batch > self.max_weight_per_batch:
            raise ValueError("min_weight_per_batch must not exceed max_weight_per_batch")
        return self

    @classmethod
    def exact(cls, pots_per_batch: int, **kwargs) -> "CapacityConfig":
        return cls(pots_per_batch=pots_per_batch, **kwargs)

    @classmethod
    def ranged(cls, min_pots: int, max_pots: int, target: Optional[int] = None, **kwargs) -> "CapacityConfig":
        return cls(
            pots_per_batch=target if target is not None else max_pots,
            min_pots_per_batch=min_pots,
            max_pots_per_batch=max_pots,
            **kwargs
        )

    @property
    def min_pots(self) -> int:
        return self.min_pots_per_batch if self.min_pots_per_batch is not None else self.pots_per_batch

    @property
    def max_pots(self) -> int:
        return self.max_pots_per_batch if self.max_pots_per_batch is not None else self.pots_per_batch

    @property
    def is_exact(self) -> bool:
        return self.min_pots == self.max_pots

    @property
    def max_pots_per_shift(self) -> int:
        return self.max_batches_per_shift * self.max_pots


class PotAssignment(FrozenSchema):
    """Immutable snapshot of a pot's chemistry at assignment time."""

    pot_id: str
    fe: float = Field(..., ge=0)
    si: float = Field(..., ge=0)
    vn: float = Field(default=0.0, ge=0)
    cr: float = Field(default=0.0, ge=0)
    ni: float = Field(default=0.0, ge=0)
    ai_score: Optional[float] = Field(None, ge=0, le=100)
    weight: float = Field(..., gt=0, description="Contributed metal (MT)")


class BatchStatus(str, Enum):
    """Batch lifecycle state."""

    EMPTY = "empty"            # No pots yet
    INCOMPLETE = "incomplete"  # Below the minimum pot count
    DRAFT = "draft"            # Count satisfied, a constraint fails
    READY = "ready"            # All constraints met


class Batch(BaseSchema):
    """
    A production batch targeting one grade.

    Blended values and validation are derived; the allocation engine
    recomputes them from scratch after every mutation.
    """

    id: str
    target_grade: ProductGrade
    assignments: list[PotAssignment] = Field(default_factory=list)

    blended_fe: float = 0.0
    blended_si: float = 0.0
    blended_vn: float = 0.0
    blended_cr: float = 0.0
    blended_ni: float = 0.0
    total_weight: float = 0.0

    constraints_met: bool = False
    violations: list[str] = Field(default_factory=list)
    status: BatchStatus = BatchStatus.EMPTY

    @property
    def pot_ids(self) -> list[str]:
        return [a.pot_id for a in self.assignments]

    @property
    def pot_count(self) -> int:
        return len(self.assignments)


class ProductRequest(BaseSchema):
    """Requested output for one grade in a shift."""

    grade: ProductGrade
    target_quantity: float = Field(..., ge=0, description="Requested metal (MT)")


class FulfillmentStatus(str, Enum):
    """How far a request is covered by planned batches."""

    PENDING = "pending"
    PARTIAL = "partial"
    FULFILLED = "fulfilled"
    EXCEEDED = "exceeded"


class RequestFulfillment(BaseSchema):
    """Coverage of one product request."""

    grade: ProductGrade
    target_quantity: float = Field(..., ge=0)
    tasks_needed: int = Field(..., ge=0)
    tasks_assigned: int = Field(..., ge=0)
    shortfall: int = Field(default=0, ge=0, description="Batches that could not be planned")
    status: FulfillmentStatus


class ShiftSummary(BaseSchema):
    """Shift-level roll-up of all batches."""

    total_batches: int = 0
    max_batches: int = 0
    total_pots: int = 0
    max_pots: int = 0
    total_weight: float = 0.0
    batches_by_grade: dict[ProductGrade, int] = Field(default_factory=dict)
    ready_batches: int = 0
    is_over_capacity: bool = False


class PlanReport(BaseSchema):
    """Result of planning batches from product requests."""

    batches: list[Batch] = Field(default_factory=list)
    fulfillment: list[RequestFulfillment] = Field(default_factory=list)
    summary: ShiftSummary
    warnings: list[str] = Field(default_factory=list)
    shift_limit_reached: bool = False
