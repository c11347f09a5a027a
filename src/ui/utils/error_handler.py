"""Error message mapping for the UI layer.

Maps service exceptions to short user-facing messages while the
technical details go to the log.
"""

import logging
from typing import Tuple

from src.services.exceptions import (
    DatabaseError,
    LedgerWriteError,
    MissingPackageIdsError,
    RemoteTimeoutError,
    ReportNotFound,
    ServiceError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def get_user_message(exception: Exception, operation: str = "Operation") -> Tuple[str, str]:
    """Convert exception to user-friendly title and message.

    Args:
        exception: The exception to convert
        operation: Description of what was being attempted

    Returns:
        Tuple of (title, message) suitable for user display
    """
    if isinstance(exception, MissingPackageIdsError):
        return "No Packages", "No packages were provided for this delivery."

    if isinstance(exception, ReportNotFound):
        return "Not Found", f"Report '{exception.report_id}' not found."

    # Generic validation exceptions - check AFTER more specific subtypes
    if isinstance(exception, ValidationError):
        return "Validation Error", "; ".join(str(e) for e in exception.errors)

    if isinstance(exception, RemoteTimeoutError):
        return "Timed Out", f"{operation} timed out. Please try again."

    if isinstance(exception, LedgerWriteError):
        return "Storage Error", "Scan records on this device could not be saved."

    if isinstance(exception, DatabaseError):
        return "Database Error", f"{operation} failed: a database error occurred. Please try again."

    if isinstance(exception, ServiceError):
        return "Error", f"{operation} failed: {exception}"

    return "Unexpected Error", f"{operation} failed unexpectedly. Please try again."


def log_error(exception: Exception, operation: str, **context) -> None:
    """Log technical error details.

    Service errors log at ERROR with their type; anything else logs the
    full stack trace. Extra keyword context (report_id etc.) is attached
    to the log record.
    """
    extra = {"operation": operation, "exception_type": exception.__class__.__name__, **context}
    if isinstance(exception, ServiceError):
        logger.error(
            f"{operation} failed: {exception.__class__.__name__}: {exception}",
            extra=extra,
        )
    else:
        logger.exception(
            f"{operation} failed with unexpected error: {exception.__class__.__name__}",
            extra=extra,
        )
