"""
Business logic services.

Each service handles one domain area.
"""

from services.risk_service import RiskService, get_risk_service, HEALTH_WEIGHTS
from services.health_score_service import HealthScoreService, get_health_score_service
from services.alert_service import AlertService, get_alert_service
from services.constraint_service import (
    ConstraintService,
    get_constraint_service,
    Blend,
    ConstraintCheck,
)
from services.shift_summary_service import ShiftSummaryService, get_shift_summary_service
from services.allocation_state import AllocationState
from services.allocation_service import (
    AllocationService,
    get_allocation_service,
    AllocationCode,
    AllocationResult,
    AutoFillResult,
)
from services.planning_service import (
    PlanningService,
    get_planning_service,
    fulfillment_status,
)

__all__ = [
    "RiskService",
    "get_risk_service",
    "HEALTH_WEIGHTS",
    "HealthScoreService",
    "get_health_score_service",
    "AlertService",
    "get_alert_service",
    "ConstraintService",
    "get_constraint_service",
    "Blend",
    "ConstraintCheck",
    "ShiftSummaryService",
    "get_shift_summary_service",
    "AllocationState",
    "AllocationService",
    "get_allocation_service",
    "AllocationCode",
    "AllocationResult",
    "AutoFillResult",
    "PlanningService",
    "get_planning_service",
    "fulfillment_status",
]
