"""
Logging configuration and utilities for AppDrive.

This module provides centralized logging setup using Loguru with
structured logging and configurable output formats.
"""

import sys
from typing import Optional, Dict, Any

from loguru import logger

from ..settings import LoggingSettings


# Store configured loggers to avoid reconfiguration
_configured_loggers: Dict[str, bool] = {}


def setup_logging(
    log_settings: LoggingSettings,
    logger_name: str = "appdrive",
    force: bool = False
) -> None:
    """
    Set up application logging with Loguru.

    Args:
        log_settings: Logging configuration settings
        logger_name: Name of the logger instance
        force: Replace the sinks even if already configured
    """
    if logger_name in _configured_loggers and not force:
        return  # Already configured

    # Remove default handler
    logger.remove()

    logger.add(
        sys.stderr,
        level=log_settings.level,
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{extra[module]}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
            "<level>{message}</level>"
        ),
        colorize=True,
        backtrace=True,
        diagnose=False
    )

    if log_settings.file:
        log_settings.file.parent.mkdir(parents=True, exist_ok=True)

        logger.add(
            log_settings.file,
            level=log_settings.level,
            format=(
                "{time:YYYY-MM-DD HH:mm:ss} | "
                "{level: <8} | "
                "{extra[module]}:{function}:{line} | "
                "{message}"
            ),
            rotation="10 MB",
            retention="1 month",
            compression="gz",
            backtrace=True,
            diagnose=False
        )

    # Records logged without get_logger() still need a module for the format
    logger.configure(extra={"module": logger_name})

    _configured_loggers[logger_name] = True
    logger.info(f"Logging configured for {logger_name} at level {log_settings.level}")


def get_logger(module_name: str) -> Any:
    """
    Get a logger instance for a specific module.

    Args:
        module_name: Name of the module requesting the logger

    Returns:
        Configured logger instance
    """
    return logger.bind(module=module_name)


def log_api_call(
    service: str,
    method: str,
    status_code: Optional[int] = None,
    response_time: Optional[float] = None,
    **context: Any
) -> None:
    """Log external API calls."""
    log_data = {
        "service": service,
        "method": method,
        "status_code": status_code,
        "response_time": response_time,
        **context
    }

    if status_code is None or 200 <= status_code < 300:
        logger.debug(f"API call {service}.{method} completed in {response_time or 0:.3f}s", **log_data)
    else:
        logger.warning(f"API call {service}.{method} failed with status {status_code}", **log_data)
