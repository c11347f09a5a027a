"""Services package - Delivery and scan tracking logic.

Architecture:
- Services: Module-level functions and small classes, one concern per module
- Transactions: Managed via session_scope() context manager
- Exceptions: Consistent error handling via ServiceError hierarchy

Service Modules:
- report_service: Report/package store (manifest lookup, status read and update)
- scan_ledger_service: Local per-report record of scanned package IDs
- completion_service: Whether every package on a manifest has been scanned
- delivery_state_machine: Report lifecycle transitions and control rules

Infrastructure:
- exceptions: Custom exception classes for service layer errors
- database: Engine and session management
- logging_utils: Structured operation logging
- remote_call: Timeout-bounded calls into blocking services
"""

from . import (
    completion_service,
    database,
    delivery_state_machine,
    report_service,
    scan_ledger_service,
)
from .exceptions import (
    DatabaseError,
    LedgerWriteError,
    MissingPackageIdsError,
    RemoteTimeoutError,
    ReportNotFound,
    ServiceError,
    ValidationError,
)

__all__ = [
    "completion_service",
    "database",
    "delivery_state_machine",
    "report_service",
    "scan_ledger_service",
    "ServiceError",
    "ValidationError",
    "MissingPackageIdsError",
    "DatabaseError",
    "ReportNotFound",
    "LedgerWriteError",
    "RemoteTimeoutError",
]
