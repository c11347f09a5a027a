"""
Report status enum for delivery lifecycle tracking.

This enum defines the three-state lifecycle for a delivery report.
"""

import enum
from typing import Optional


class ReportStatus(str, enum.Enum):
    """
    Delivery report lifecycle status.

    Status transitions:
        NOT_STARTED -> IN_PROGRESS (delivery started)
        IN_PROGRESS -> COMPLETED (all packages scanned, delivery confirmed)

    Invalid transitions:
        NOT_STARTED -> COMPLETED (must start first)
        IN_PROGRESS -> NOT_STARTED (no rollback)
        COMPLETED -> * (terminal)
    """

    NOT_STARTED = "Not Started"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"

    @classmethod
    def from_value(cls, raw: Optional[str]) -> "ReportStatus":
        """
        Map a stored status string to a ReportStatus.

        Reports created outside this application may carry NULL or
        free-form values; anything other than the two active states
        reads as NOT_STARTED.
        """
        if raw == cls.IN_PROGRESS.value:
            return cls.IN_PROGRESS
        if raw == cls.COMPLETED.value:
            return cls.COMPLETED
        return cls.NOT_STARTED
