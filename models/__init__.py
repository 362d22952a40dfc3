"""
Pydantic models for validation and serialization.
"""

from models.base import BaseSchema, FrozenSchema
from models.thresholds import RiskThresholds, ScoreThresholds
from models.pot import (
    TREND_WINDOW,
    RiskLevel,
    PotMetrics,
    TrendPoint,
    Pot,
    HealthSummary,
)
from models.grade import (
    ProductGrade,
    GradeConstraints,
    GRADE_CONSTRAINTS,
    GRADE_PRIORITY,
    grade_sort_key,
)
from models.alert import AlertType, AlertSeverity, ALERT_TITLES, Alert
from models.batch import (
    CapacityConfig,
    PotAssignment,
    BatchStatus,
    Batch,
    ProductRequest,
    FulfillmentStatus,
    RequestFulfillment,
    ShiftSummary,
    PlanReport,
)

__all__ = [
    # Base
    "BaseSchema",
    "FrozenSchema",

    # Thresholds
    "RiskThresholds",
    "ScoreThresholds",

    # Pots
    "TREND_WINDOW",
    "RiskLevel",
    "PotMetrics",
    "TrendPoint",
    "Pot",
    "HealthSummary",

    # Grades
    "ProductGrade",
    "GradeConstraints",
    "GRADE_CONSTRAINTS",
    "GRADE_PRIORITY",
    "grade_sort_key",

    # Alerts
    "AlertType",
    "AlertSeverity",
    "ALERT_TITLES",
    "Alert",

    # Batches
    "CapacityConfig",
    "PotAssignment",
    "BatchStatus",
    "Batch",
    "ProductRequest",
    "FulfillmentStatus",
    "RequestFulfillment",
    "ShiftSummary",
    "PlanReport",
]
