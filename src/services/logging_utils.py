"""Service layer logging utilities.

Provides structured logging functions for service operations, enabling
consistent log format and context across the report store, the scan
ledger, the delivery state machine and the delivery check controller.

Usage:
    from src.services.logging_utils import get_service_logger, log_operation

    logger = get_service_logger(__name__)

    log_operation(
        logger,
        operation="advance_report",
        outcome="success",
        report_id="R-100",
        new_status="In Progress",
    )

    log_operation(
        logger,
        operation="fetch_packages",
        outcome="error",
        level=logging.ERROR,
        report_id="R-100",
        error="connection refused",
    )
"""

import logging
from typing import Any


def get_service_logger(name: str) -> logging.Logger:
    """
    Get a logger configured for service operations.

    Args:
        name: Logger name (typically __name__ of the calling module)

    Returns:
        Logger instance with the 'delivery_tracker.services' prefix.

    Example:
        >>> logger = get_service_logger(__name__)
        >>> logger.name
        'delivery_tracker.services.report_service'
    """
    if "." in name:
        name = name.split(".")[-1]
    return logging.getLogger(f"delivery_tracker.services.{name}")


def log_operation(
    logger: logging.Logger,
    operation: str,
    outcome: str,
    level: int = logging.INFO,
    **context: Any,
) -> None:
    """
    Log a service operation with structured context.

    The context is passed via the 'extra' parameter for structured logging.

    Args:
        logger: Logger instance to use
        operation: Operation name (e.g., "advance_report", "reset_scans")
        outcome: Outcome description (e.g., "success", "rejected", "error")
        level: Log level (default: INFO). Use DEBUG for verbose/frequent logs.
        **context: Additional context fields
            Common fields:
            - report_id: Report being processed
            - package_id: Package being scanned
            - previous_status / new_status: Lifecycle statuses
            - error: Error message if outcome is "error"
    """
    extra = {
        "operation": operation,
        "outcome": outcome,
        **context,
    }
    logger.log(level, f"{operation}: {outcome}", extra=extra)
