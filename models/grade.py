"""
Product grades and their chemistry limits.

The constraint table is pure data. The allocation engine's correctness
depends on its contract: max_fe and max_si always present, trace element
limits present only when the grade actually restricts them.
"""

from enum import Enum
from typing import Optional

from pydantic import Field

from models.base import FrozenSchema


class ProductGrade(str, Enum):
    """Closed set of product grades."""

    PFA_NT = "PFA-NT"
    WIRE_ROD_HEC = "Wire Rod H-EC"
    BILLET = "Billet"
    P1020 = "P1020"


class GradeConstraints(FrozenSchema):
    """
    Chemistry limits for one grade.

    Trace element limits are optional: None means "no constraint",
    never zero.
    """

    max_fe: float = Field(..., gt=0, description="Max blended Fe (%)")
    max_si: float = Field(..., gt=0, description="Max blended Si (%)")
    max_vn: Optional[float] = Field(None, gt=0, description="Max blended V (%)")
    max_cr: Optional[float] = Field(None, gt=0, description="Max blended Cr (%)")
    max_ni: Optional[float] = Field(None, gt=0, description="Max blended Ni (%)")

    def trace_limits(self) -> list[tuple[str, float]]:
        """(element, limit) pairs for the trace elements this grade restricts."""
        limits = [("vn", self.max_vn), ("cr", self.max_cr), ("ni", self.max_ni)]
        return [(element, limit) for element, limit in limits if limit is not None]


GRADE_CONSTRAINTS: dict[ProductGrade, GradeConstraints] = {
    ProductGrade.PFA_NT: GradeConstraints(
        max_fe=0.075, max_si=0.05, max_vn=0.0015, max_cr=0.001, max_ni=0.0005
    ),
    ProductGrade.WIRE_ROD_HEC: GradeConstraints(
        max_fe=0.100, max_si=0.05, max_vn=0.002, max_cr=0.0015, max_ni=0.001
    ),
    ProductGrade.BILLET: GradeConstraints(
        max_fe=0.100, max_si=0.10, max_vn=0.003, max_cr=0.002, max_ni=0.002
    ),
    ProductGrade.P1020: GradeConstraints(
        max_fe=0.100, max_si=0.10, max_vn=0.005, max_cr=0.005, max_ni=0.005
    ),
}

# Planning order: premium grades first
GRADE_PRIORITY: dict[ProductGrade, int] = {
    ProductGrade.PFA_NT: 1,
    ProductGrade.WIRE_ROD_HEC: 2,
    ProductGrade.BILLET: 3,
    ProductGrade.P1020: 4,
}


def grade_sort_key(grade: ProductGrade) -> tuple[int, str]:
    """Sort key putting premium grades first; unknown grades last."""
    return (GRADE_PRIORITY.get(grade, len(GRADE_PRIORITY) + 1), grade.value)
