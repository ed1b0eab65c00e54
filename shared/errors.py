"""
Shared error handling for the Realty Access Layer.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standard error response format."""

    code: str
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)


class AccessLayerException(Exception):
    """Base exception for Access Layer services."""

    status_code = 400

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


class ValidationError(AccessLayerException):
    """Validation-related errors."""

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("VALIDATION_ERROR", message, details)


class AuthorizationError(AccessLayerException):
    """Authorization-related errors."""

    status_code = 403

    def __init__(self, message: str = "Authorization failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("AUTHORIZATION_ERROR", message, details)


class CapabilityDeniedError(AuthorizationError):
    """A guarded capability is not available to the acting subject."""

    def __init__(self, capability_key: str, reason: str, details: Optional[Dict[str, Any]] = None):
        details = dict(details or {})
        details.setdefault("capability", capability_key)
        details.setdefault("reason", reason)
        super().__init__(f"Capability '{capability_key}' is not available", details)
        self.code = "CAPABILITY_DENIED"
        self.capability_key = capability_key
        self.reason = reason


class NotFoundError(AccessLayerException):
    """Lookup of a record that does not exist."""

    status_code = 404

    def __init__(self, message: str = "Not found", details: Optional[Dict[str, Any]] = None, code: str = "NOT_FOUND"):
        super().__init__(code, message, details)


class UnknownFeatureError(NotFoundError):
    """Feature key is not present in the feature registry.

    Signals drift between the registry and a capability map or caller, so
    it must reach the caller rather than be defaulted to allow/deny.
    """

    def __init__(self, feature_key: str):
        super().__init__(
            f"Unknown feature '{feature_key}'",
            {"feature_key": feature_key},
            code="UNKNOWN_FEATURE"
        )
        self.feature_key = feature_key


class FeatureLockedError(AccessLayerException):
    """Attempt to change the toggle of a locked feature."""

    status_code = 409

    def __init__(self, feature_key: str):
        super().__init__(
            "FEATURE_LOCKED",
            f"Feature '{feature_key}' is locked and cannot be disabled",
            {"feature_key": feature_key}
        )
        self.feature_key = feature_key


class ServiceError(AccessLayerException):
    """Service-related errors."""

    status_code = 500

    def __init__(self, message: str = "Service error", details: Optional[Dict[str, Any]] = None):
        super().__init__("SERVICE_ERROR", message, details)
