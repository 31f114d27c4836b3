"""
Centralized logging configuration for the CallingBird dashboard core.

This module provides standardized logging with timestamps, function names,
and appropriate log levels for the API client, mappers and change trackers.
"""

import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Optional


class CallingBirdLogger:
    """
    Centralized logger for the dashboard core.
    Provides consistent formatting and handling across all modules.
    """

    _loggers = {}
    _configured = False

    @classmethod
    def setup_logging(
        cls,
        log_level: str = "INFO",
        log_file: Optional[str] = None,
        console_output: bool = True,
        force: bool = False
    ) -> None:
        """
        Configure the logging system for the entire application.

        Args:
            log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            log_file: Optional log file path. If None, no file handler is added
            console_output: Whether to output logs to console
            force: Reconfigure even if logging was already set up
        """
        if cls._configured and not force:
            return

        level = getattr(logging, log_level.upper(), logging.INFO)

        # Configure root logger
        root_logger = logging.getLogger()
        root_logger.setLevel(level)

        # Clear any existing handlers
        root_logger.handlers.clear()

        # Create formatter with function names and timestamps
        formatter = logging.Formatter(
            fmt='%(asctime)s | %(levelname)-8s | %(name)-25s | %(funcName)-20s | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

        # Console handler
        if console_output:
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setFormatter(formatter)
            console_handler.setLevel(level)
            root_logger.addHandler(console_handler)

        # File handler with rotation
        if log_file:
            Path(log_file).parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.handlers.RotatingFileHandler(
                filename=log_file,
                maxBytes=10 * 1024 * 1024,  # 10MB
                backupCount=5
            )
            file_handler.setFormatter(formatter)
            file_handler.setLevel(logging.DEBUG)  # File gets all levels
            root_logger.addHandler(file_handler)

        cls._configured = True

        logger = cls.get_logger("logging_config")
        logger.debug(f"Logging system configured - Level: {log_level}, File: {log_file}")

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        """
        Get a logger for a specific module or component.

        Args:
            name: Logger name (typically module name)

        Returns:
            Configured logger instance
        """
        if name not in cls._loggers:
            # Ensure logging is configured
            if not cls._configured:
                cls.setup_logging(log_level=os.getenv("LOG_LEVEL", "INFO"))

            logger = logging.getLogger(name)
            cls._loggers[name] = logger

        return cls._loggers[name]


def get_api_logger() -> logging.Logger:
    """Get logger specifically for backend API calls."""
    return CallingBirdLogger.get_logger("callingbird.api")


def get_availability_logger() -> logging.Logger:
    """Get logger specifically for availability mapping."""
    return CallingBirdLogger.get_logger("callingbird.availability")


def get_tracker_logger() -> logging.Logger:
    """Get logger specifically for dirty-state tracking."""
    return CallingBirdLogger.get_logger("callingbird.tracker")


def get_main_logger() -> logging.Logger:
    """Get logger for the command line application."""
    return CallingBirdLogger.get_logger("callingbird.main")


def log_api_request(
    logger: logging.Logger,
    method: str,
    path: str,
    status: Optional[int],
    success: bool = True,
    error: Optional[Exception] = None
) -> None:
    """
    Standardized logging for backend API requests.

    Args:
        logger: Logger instance to use
        method: HTTP method
        path: Backend path, without the base URL
        status: HTTP status code, None when no response was received
        success: Whether the request succeeded
        error: Exception if the request failed
    """
    message = f"API_{method.upper()} | Path: {path} | Status: {status}"

    if success:
        logger.info(message)
    elif error:
        logger.error(f"{message} | Error: {error}")
    else:
        logger.error(message)


def log_hours_operation(
    logger: logging.Logger,
    operation: str,
    day: str,
    success: bool,
    details: Optional[str] = None
) -> None:
    """
    Standardized logging for per-day company hours operations.

    Args:
        logger: Logger instance to use
        operation: Operation (SAVE, LOAD)
        day: Day key
        success: Whether the operation was successful
        details: Additional details
    """
    message_parts = [f"HOURS_{operation.upper()}", f"Day: {day}"]

    if details:
        message_parts.append(f"Details: {details}")

    message = " | ".join(message_parts)

    if success:
        logger.info(message)
    else:
        logger.warning(message)


def log_tracker_transition(
    logger: logging.Logger,
    screen: str,
    old_state: str,
    new_state: str,
    is_dirty: bool
) -> None:
    """
    Standardized logging for dirty tracker state transitions.

    Args:
        logger: Logger instance to use
        screen: Name of the tracked screen or form
        old_state: State before the transition
        new_state: State after the transition
        is_dirty: Dirty flag after the transition
    """
    logger.debug(
        f"TRACKER_TRANSITION | Screen: {screen} | {old_state} -> {new_state} | Dirty: {is_dirty}"
    )
