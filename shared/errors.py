"""
Shared error handling for the compliance gate engine.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standard error response format."""

    code: str
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)


class ComplianceGateException(Exception):
    """Base exception for compliance gate failures.

    None of these are transient: they signal a policy violation, so callers
    must not retry the same input.
    """

    retryable = False

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            code=self.code,
            message=self.message,
            details=self.details
        )


class HardBlockError(ComplianceGateException):
    """Source is permanently forbidden; ingestion of the whole source must stop."""

    def __init__(self, message: str = "Source is hard blocked", details: Optional[Dict[str, Any]] = None):
        super().__init__("HARD_BLOCK", message, details)


class PolicyViolationError(ComplianceGateException):
    """Record-level violation. The offending record is rejected, siblings are unaffected."""

    def __init__(self, code: str = "POLICY_VIOLATION", message: str = "Policy violation", details: Optional[Dict[str, Any]] = None):
        super().__init__(code, message, details)


class MissingLicenseError(PolicyViolationError):
    """Record has no resolved license snapshot."""

    def __init__(self, message: str = "Missing license snapshot: production display blocked.", details: Optional[Dict[str, Any]] = None):
        super().__init__("MISSING_LICENSE", message, details)


class ForbiddenFieldError(PolicyViolationError):
    """Record carries publisher-owned content."""

    def __init__(self, field: str, details: Optional[Dict[str, Any]] = None):
        self.field = field
        merged = {"field": field}
        merged.update(details or {})
        super().__init__("FORBIDDEN_FIELD", f"Publisher content field is not allowed: {field}", merged)


class ValidationError(ComplianceGateException):
    """Validation-related errors."""

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("VALIDATION_ERROR", message, details)


class LicenseValidationError(ValidationError):
    """License metadata failed validation on ingestion."""

    def __init__(self, message: str = "Invalid license record", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
