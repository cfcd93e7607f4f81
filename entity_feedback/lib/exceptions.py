"""Custom exception classes for the Entity Feedback backend."""

from typing import Optional, Dict, Any, List


class EntityFeedbackError(Exception):
    """Base exception for entity feedback errors."""

    ERROR_CODE = "FEEDBACK_001"
    STATUS_CODE = 500

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Any] = None
    ):
        """Initialize exception with message, code, and optional details.

        Args:
            message: Error message
            error_code: Optional error code override
            details: Optional additional error details (dict or list of field errors)
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.ERROR_CODE
        self.details = details if details is not None else {}

    @property
    def status_code(self) -> int:
        """HTTP status this error maps to."""
        return self.STATUS_CODE


class InputError(EntityFeedbackError):
    """Raised when request input is missing or malformed."""

    ERROR_CODE = "INPUT_001"
    STATUS_CODE = 400

    @classmethod
    def missing_fields(cls, message: str, fields: List[str]) -> "InputError":
        """Build an InputError whose details name each missing field."""
        return cls(
            message,
            details=[{"field": field, "message": f"{field} is required"} for field in fields],
        )


class AuthenticationError(EntityFeedbackError):
    """Raised when the caller has no valid credentials."""

    ERROR_CODE = "AUTH_001"
    STATUS_CODE = 401


class NotAllowedError(EntityFeedbackError):
    """Raised when the caller's principal type is not permitted."""

    ERROR_CODE = "AUTH_002"
    STATUS_CODE = 403


class UpstreamResolutionError(EntityFeedbackError):
    """Raised when a catalog lookup fails on the primary request path."""

    ERROR_CODE = "UPSTREAM_001"
    STATUS_CODE = 502

    # Upstream statuses passed through unchanged; anything else is a 502
    PASSTHROUGH_STATUSES = (401, 403, 404)

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Any] = None,
        upstream_status: Optional[int] = None
    ):
        """Initialize with the upstream HTTP status, if one was received."""
        super().__init__(message, error_code, details)
        self.upstream_status = upstream_status
        if upstream_status is not None and isinstance(self.details, dict):
            self.details["upstream_status"] = upstream_status

    @property
    def status_code(self) -> int:
        if self.upstream_status in self.PASSTHROUGH_STATUSES:
            return self.upstream_status
        return self.STATUS_CODE


class StorageError(EntityFeedbackError):
    """Raised during storage operations."""

    ERROR_CODE = "STORAGE_001"
    STATUS_CODE = 500


class NotificationError(EntityFeedbackError):
    """Raised when an owner notification cannot be delivered."""

    ERROR_CODE = "NOTIFY_001"


class ConfigurationError(EntityFeedbackError):
    """Raised when configuration is invalid."""

    ERROR_CODE = "CONFIG_001"
    STATUS_CODE = 500
