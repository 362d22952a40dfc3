"""
Custom exceptions module.

Contract errors only; business-rule rejections are returned as results.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    NotFoundError,
    ValidationError,
    ConflictError,

    # Allocation
    BatchNotFoundError,
    PotNotFoundError,
    DuplicatePotError,

    # Constraints
    GradeConstraintsMissingError,
    InvalidCapacityConfigError,
)

__all__ = [
    # Base
    "AppError",
    "NotFoundError",
    "ValidationError",
    "ConflictError",

    # Allocation
    "BatchNotFoundError",
    "PotNotFoundError",
    "DuplicatePotError",

    # Constraints
    "GradeConstraintsMissingError",
    "InvalidCapacityConfigError",
]
