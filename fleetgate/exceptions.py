"""Custom exception hierarchy for FleetGate."""

from enum import Enum
from typing import Optional, Dict, Any


class ErrorCode(str, Enum):
    """Standardized error codes for API responses."""

    # Lookup errors
    ACCOUNT_NOT_FOUND = "ACCOUNT_NOT_FOUND"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    DEVICE_NOT_FOUND = "DEVICE_NOT_FOUND"
    DEVICE_GROUP_NOT_FOUND = "DEVICE_GROUP_NOT_FOUND"

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Storage errors
    STORAGE_ERROR = "STORAGE_ERROR"

    # Authorization
    FORBIDDEN = "FORBIDDEN"


class FleetGateException(Exception):
    """
    Base exception for all FleetGate errors.

    Provides structured error responses with:
    - Human-readable message
    - Machine-readable error code
    - HTTP status code the web layer should render
    - Optional additional details
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to dictionary for JSON response.

        Returns:
            Dictionary with error, message, and details fields
        """
        return {
            "error": self.error_code.value,
            "message": self.message,
            "details": self.details
        }


class NotFoundError(FleetGateException):
    """A referenced record does not exist."""

    def __init__(self, message: str, error_code: ErrorCode, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code, status_code=404, details=details)


class AccountNotFoundError(NotFoundError):
    """Account not found in database."""

    def __init__(self, account_id: str):
        super().__init__(
            f"Account not found: {account_id}",
            ErrorCode.ACCOUNT_NOT_FOUND,
            details={"account_id": account_id}
        )


class UserNotFoundError(NotFoundError):
    """User not found in database."""

    def __init__(self, account_id: str, user_id: str):
        super().__init__(
            f"User not found: {account_id}/{user_id}",
            ErrorCode.USER_NOT_FOUND,
            details={"account_id": account_id, "user_id": user_id}
        )


class DeviceNotFoundError(NotFoundError):
    """Device not found in database."""

    def __init__(self, account_id: str, device_id: str):
        super().__init__(
            f"Device not found: {account_id}/{device_id}",
            ErrorCode.DEVICE_NOT_FOUND,
            details={"account_id": account_id, "device_id": device_id}
        )


class DeviceGroupNotFoundError(NotFoundError):
    """Device group not found in database."""

    def __init__(self, account_id: str, group_id: str):
        super().__init__(
            f"DeviceGroup does not exist: {account_id}/{group_id}",
            ErrorCode.DEVICE_GROUP_NOT_FOUND,
            details={"account_id": account_id, "group_id": group_id}
        )


class ValidationError(FleetGateException):
    """Validation failed for caller input."""

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(
            message,
            ErrorCode.VALIDATION_ERROR,
            status_code=400,
            details=details
        )


class ForbiddenError(FleetGateException):
    """User lacks permission for the requested device."""

    def __init__(self, message: str = "Access denied"):
        super().__init__(
            message,
            ErrorCode.FORBIDDEN,
            status_code=403,
        )


class StorageError(FleetGateException):
    """Underlying database read or write failed."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        details = {}
        if original_error:
            details["original_error"] = str(original_error)

        super().__init__(
            message,
            ErrorCode.STORAGE_ERROR,
            status_code=500,
            details=details
        )
        self.original_error = original_error
