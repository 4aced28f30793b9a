"""
Custom exceptions for the AppDrive adapter.

This module defines the error taxonomy surfaced to callers: a missing
remote file, a failed transport call, and a cancelled operation are
always distinguishable from each other.
"""

from typing import Optional, Dict, Any


class AppDriveError(Exception):
    """Base exception for all AppDrive errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}


class ConfigurationError(AppDriveError):
    """Raised when there are configuration-related errors."""

    def __init__(self, message: str, config_key: Optional[str] = None) -> None:
        super().__init__(message, "CONFIG_ERROR")
        self.config_key = config_key


class RemoteFileNotFoundError(AppDriveError, FileNotFoundError):
    """Raised when no stored object resolves for a remote file."""

    def __init__(
        self,
        message: str,
        name: Optional[str] = None,
        folder_path: Optional[str] = None
    ) -> None:
        super().__init__(message, "NOT_FOUND", {"name": name, "folder_path": folder_path})
        self.name = name
        self.folder_path = folder_path


class TransportError(AppDriveError):
    """Raised when a Google Drive API call fails (network, HTTP, quota)."""

    def __init__(
        self,
        message: str,
        drive_error: Optional[str] = None,
        status_code: Optional[int] = None,
        file_id: Optional[str] = None,
        error_code: str = "TRANSPORT_ERROR"
    ) -> None:
        super().__init__(message, error_code)
        self.drive_error = drive_error
        self.status_code = status_code
        self.file_id = file_id


class AuthenticationError(TransportError):
    """Raised when authentication or token refresh fails."""

    def __init__(
        self,
        message: str,
        service: Optional[str] = None,
        auth_type: Optional[str] = None
    ) -> None:
        super().__init__(message, error_code="AUTH_ERROR")
        self.service = service
        self.auth_type = auth_type


class OperationCancelledError(AppDriveError):
    """Raised when an operation observes a cancellation request."""

    def __init__(self, message: str = "Operation cancelled", operation: Optional[str] = None) -> None:
        super().__init__(message, "CANCELLED")
        self.operation = operation


class ValidationError(AppDriveError):
    """Raised when input validation fails."""

    def __init__(
        self,
        message: str,
        field_name: Optional[str] = None,
        invalid_value: Optional[Any] = None
    ) -> None:
        super().__init__(message, "VALIDATION_ERROR")
        self.field_name = field_name
        self.invalid_value = invalid_value
