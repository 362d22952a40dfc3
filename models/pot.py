"""
Pot schemas.

A pot is a single reduction cell. Its raw metrics are point-in-time
snapshots; risk_level and ai_score are derived by the classifier and the
health scorer and may be absent on raw input.
"""

from datetime import date
from enum import Enum
from typing import Optional

from pydantic import Field, field_validator

from models.base import BaseSchema


# Most recent trend points kept per pot
TREND_WINDOW = 30


class RiskLevel(str, Enum):
    """Pot risk classification."""

    CRITICAL = "critical"
    HIGH = "high"
    MODERATE = "moderate"
    NORMAL = "normal"
    SHUTDOWN = "shutdown"  # Assigned externally when a pot is taken offline

    @property
    def severity_rank(self) -> int:
        """
        Severity ordering for active pots (higher = worse).

        SHUTDOWN is terminal and sits outside the ordering (-1).
        """
        return _SEVERITY_RANK[self]

    @property
    def is_active(self) -> bool:
        return self is not RiskLevel.SHUTDOWN


_SEVERITY_RANK = {
    RiskLevel.NORMAL: 0,
    RiskLevel.MODERATE: 1,
    RiskLevel.HIGH: 2,
    RiskLevel.CRITICAL: 3,
    RiskLevel.SHUTDOWN: -1,
}


class PotMetrics(BaseSchema):
    """Raw chemistry and thermal metrics for a pot."""

    fe: float = Field(..., ge=0, description="Iron fraction (%)")
    si: float = Field(..., ge=0, description="Silicon fraction (%)")
    temperature: float = Field(..., description="Bath temperature (°C)")
    voltage: float = Field(default=0.0, ge=0, description="Cell voltage (V)")
    molar_ratio: float = Field(default=2.5, ge=0, description="Bath molar ratio")
    ae_frequency: float = Field(default=0.0, ge=0, description="Anode effects per day")
    fe_slope: float = Field(default=0.0, description="First difference of Fe per day")
    si_slope: float = Field(default=0.0, description="First difference of Si per day")

    # Trace elements
    vn: float = Field(default=0.0, ge=0, description="Vanadium fraction (%)")
    cr: float = Field(default=0.0, ge=0, description="Chromium fraction (%)")
    ni: float = Field(default=0.0, ge=0, description="Nickel fraction (%)")


class TrendPoint(BaseSchema):
    """One historical metrics snapshot."""

    recorded_on: date
    fe: float = Field(..., ge=0)
    si: float = Field(..., ge=0)
    temperature: float
    voltage: float = 0.0
    ai_score: Optional[float] = Field(None, ge=0, le=100)


class Pot(BaseSchema):
    """
    A reduction cell and its latest metrics.

    The allocation engine treats pots as immutable inputs: it copies the
    chemistry it needs into an assignment snapshot and never writes back.
    """

    id: str = Field(..., min_length=1, description="Pot identifier, e.g. 1-AB1-001")
    phase: int = Field(..., ge=1, le=3, description="Potline phase")
    area: str = Field(..., min_length=1, description="Area within the phase")
    position: int = Field(..., ge=1, description="Position within the area")
    metrics: PotMetrics

    risk_level: Optional[RiskLevel] = Field(None, description="Derived or externally set")
    ai_score: Optional[float] = Field(None, ge=0, le=100, description="Derived health score")

    age: int = Field(default=0, ge=0, description="Days since pot start")
    weight: Optional[float] = Field(
        None,
        gt=0,
        description="Metal available for tapping (MT); planner default when unset"
    )
    trend: list[TrendPoint] = Field(default_factory=list)

    @field_validator("trend")
    @classmethod
    def keep_recent_trend(cls, v: list[TrendPoint]) -> list[TrendPoint]:
        """Keep only the most recent TREND_WINDOW points, oldest first."""
        ordered = sorted(v, key=lambda p: p.recorded_on)
        return ordered[-TREND_WINDOW:]

    @property
    def is_shutdown(self) -> bool:
        return self.risk_level is RiskLevel.SHUTDOWN

    @property
    def is_classified(self) -> bool:
        return self.risk_level is not None and self.ai_score is not None


class HealthSummary(BaseSchema):
    """Potline-wide counts per risk level."""

    total: int = 0
    critical: int = 0
    high: int = 0
    moderate: int = 0
    normal: int = 0
    shutdown: int = 0
    overall_score: float = Field(default=0.0, ge=0, le=100)
