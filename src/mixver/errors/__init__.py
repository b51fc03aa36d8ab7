"""mixver error handling module.

Provides the exception hierarchy with error codes and structured context.
"""

from mixver.errors.base import (
    ConfigValidationError,
    ErrorCode,
    ErrorContext,
    MixverError,
    MutationApplyError,
    MutatorConfigError,
    NodeNotFoundError,
    PlanConfigError,
    PlanLookupError,
    ValidationError,
    VersionParseError,
)

__all__ = [
    # Base exceptions
    "MixverError",
    "ErrorCode",
    "ErrorContext",
    # Validation errors
    "ValidationError",
    "ConfigValidationError",
    "MutatorConfigError",
    "VersionParseError",
    "PlanConfigError",
    # Lookup errors
    "PlanLookupError",
    "NodeNotFoundError",
    "MutationApplyError",
]
