"""Core application modules and shared utilities."""

from .exceptions import (
    AppDriveError,
    RemoteFileNotFoundError,
    TransportError,
    AuthenticationError,
    OperationCancelledError,
)
from .cancellation import CancellationToken
from .logging import setup_logging, get_logger

__all__ = [
    "AppDriveError",
    "RemoteFileNotFoundError",
    "TransportError",
    "AuthenticationError",
    "OperationCancelledError",
    "CancellationToken",
    "setup_logging",
    "get_logger"
]
