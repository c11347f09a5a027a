"""Service layer exception classes for the Delivery Scan Tracker.

This module defines the custom exceptions used by the service layer to provide
consistent error handling. The delivery check controller is the single place
these are caught and turned into logged, non-fatal outcomes.

Exception Hierarchy:
    ServiceError (base)
    ├── ValidationError
    ├── MissingPackageIdsError
    ├── DatabaseError
    ├── ReportNotFound
    ├── LedgerWriteError
    └── RemoteTimeoutError
"""


class ServiceError(Exception):
    """Base exception for all service layer errors.

    All service-specific exceptions should inherit from this class.
    """

    pass


class ValidationError(ServiceError):
    """Raised when data validation fails."""

    def __init__(self, errors: list):
        self.errors = errors
        error_msg = "; ".join(errors)
        super().__init__(f"Validation failed: {error_msg}")


class MissingPackageIdsError(ValidationError):
    """Raised when a delivery check is opened without any package identifiers."""

    def __init__(self, report_id=None):
        self.report_id = report_id
        super().__init__([f"No package IDs provided for report {report_id}"])


class DatabaseError(ServiceError):
    """Raised when a database operation fails."""

    def __init__(self, message: str, original_error: Exception = None):
        self.original_error = original_error
        super().__init__(f"Database error: {message}")


class ReportNotFound(ServiceError):
    """Raised when a report cannot be found by its report ID."""

    def __init__(self, report_id: str):
        self.report_id = report_id
        super().__init__(f"Report '{report_id}' not found")


class LedgerWriteError(ServiceError):
    """Raised when the local scan ledger cannot be written."""

    def __init__(self, path, original_error: Exception = None):
        self.path = path
        self.original_error = original_error
        super().__init__(f"Failed to write scan ledger at {path}: {original_error}")


class RemoteTimeoutError(ServiceError):
    """Raised when a store call does not finish within its timeout."""

    def __init__(self, operation: str, timeout: float):
        self.operation = operation
        self.timeout = timeout
        super().__init__(f"{operation} timed out after {timeout}s")
