"""
Custom exception classes for the planner.

These are contract errors: they signal a caller defect (unknown ids,
missing constraint rows, inconsistent configuration) and are raised.
Expected business-rule rejections are returned as AllocationResult
values instead; see services.allocation_service.
"""

from datetime import datetime, timezone
from typing import Any, Optional


class AppError(Exception):
    """
    Base exception for all planner errors.

    All custom exceptions inherit from this.

    Attributes:
        code: Error code (e.g., "BATCH_NOT_FOUND")
        message: Human-readable message
        details: Additional context
    """

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to a serializable error payload."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "timestamp": self.timestamp
            }
        }


class NotFoundError(AppError):
    """Referenced resource does not exist."""

    def __init__(
        self,
        resource: str,
        identifier: str,
        code: Optional[str] = None
    ):
        super().__init__(
            code=code or f"{resource.upper()}_NOT_FOUND",
            message=f"{resource} not found: {identifier}",
            details={"id": identifier}
        )


class ValidationError(AppError):
    """Input or configuration is malformed."""

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            details=details
        )


class ConflictError(AppError):
    """Conflict with existing state."""

    def __init__(
        self,
        message: str,
        code: str = "CONFLICT",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            details=details
        )


# ===================
# ALLOCATION ERRORS
# ===================

class BatchNotFoundError(NotFoundError):
    """Batch id is not part of the allocation state."""

    def __init__(self, batch_id: str):
        super().__init__(
            resource="Batch",
            identifier=batch_id,
            code="BATCH_NOT_FOUND"
        )


class PotNotFoundError(NotFoundError):
    """Pot id is not registered in the allocation state."""

    def __init__(self, pot_id: str):
        super().__init__(
            resource="Pot",
            identifier=pot_id,
            code="POT_NOT_FOUND"
        )


class DuplicatePotError(ConflictError):
    """Same pot id registered twice in one pool."""

    def __init__(self, pot_id: str):
        super().__init__(
            code="POT_ID_EXISTS",
            message=f"Pot {pot_id} appears more than once in the pool",
            details={"pot_id": pot_id}
        )


# ===================
# CONSTRAINT ERRORS
# ===================

class GradeConstraintsMissingError(ValidationError):
    """Validation requires a constraint row the table does not have."""

    def __init__(self, grade: str):
        super().__init__(
            code="GRADE_CONSTRAINTS_MISSING",
            message=f"No constraints configured for grade {grade}",
            details={"grade": grade}
        )


class InvalidCapacityConfigError(ValidationError):
    """Capacity configuration is internally inconsistent."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(
            code="INVALID_CAPACITY_CONFIG",
            message=message,
            details=details
        )
