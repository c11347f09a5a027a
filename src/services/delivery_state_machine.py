"""
Delivery State Machine - Report lifecycle transitions.

This module provides:
- The valid transition map for report status
- Control label and enablement rules for the transition control
- DeliveryStateMachine, which owns a report's confirmed status and
  advances it one step per request through the report store

The visible status only changes after the store confirms the write
updated exactly one row. Failed, timed out or unconfirmed writes leave
it untouched and are reported through TransitionResult.

The completion gate (every package scanned before IN_PROGRESS ->
COMPLETED) is enforced by the caller, which only invokes advance()
while is_control_enabled() is true.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Set

from src.models.report_status import ReportStatus
from src.services.exceptions import ServiceError
from src.services.logging_utils import get_service_logger, log_operation
from src.services.remote_call import call_with_timeout
from src.utils.constants import (
    LABEL_COMPLETE_DELIVERY,
    LABEL_DELIVERY_COMPLETED,
    LABEL_START_DELIVERY,
)

logger = get_service_logger(__name__)


VALID_TRANSITIONS: Dict[ReportStatus, Set[ReportStatus]] = {
    ReportStatus.NOT_STARTED: {ReportStatus.IN_PROGRESS},
    ReportStatus.IN_PROGRESS: {ReportStatus.COMPLETED},
    ReportStatus.COMPLETED: set(),  # Terminal
}

_CONTROL_LABELS: Dict[ReportStatus, str] = {
    ReportStatus.NOT_STARTED: LABEL_START_DELIVERY,
    ReportStatus.IN_PROGRESS: LABEL_COMPLETE_DELIVERY,
    ReportStatus.COMPLETED: LABEL_DELIVERY_COMPLETED,
}


def next_status(current: ReportStatus) -> Optional[ReportStatus]:
    """
    Get the status one step after current.

    Returns:
        The next status, or None if current is terminal
    """
    targets = VALID_TRANSITIONS.get(current, set())
    return next(iter(targets), None)


def control_label(status: Optional[ReportStatus]) -> str:
    """Transition control label for a status; unknown reads as not started."""
    return _CONTROL_LABELS.get(status, LABEL_START_DELIVERY)


def is_control_enabled(
    status: ReportStatus,
    is_complete: bool,
    transition_pending: bool = False,
) -> bool:
    """
    Whether the transition control may be pressed.

    Enabled only when every package is scanned, the report isn't
    completed and no transition request is awaiting acknowledgment.
    """
    return is_complete and status != ReportStatus.COMPLETED and not transition_pending


@dataclass(frozen=True)
class TransitionResult:
    """
    Result of a transition attempt.

    Attributes:
        success: Whether the visible status is now new_status
        previous_status: Status before the attempt
        new_status: Status after the attempt (equals previous_status on failure)
        issued: Whether a write was sent to the store
        error: Error message if the attempt failed
    """

    success: bool
    previous_status: ReportStatus
    new_status: ReportStatus
    issued: bool
    error: Optional[str] = None

    @property
    def changed(self) -> bool:
        return self.new_status != self.previous_status


class DeliveryStateMachine:
    """
    Confirmed lifecycle status of one report.

    Args:
        report_id: Report whose status this machine owns
        store: Object exposing update_report_status(report_id, new_status,
            expected_status=...) -> rows updated (the report_service module
            by default in the controller)
        timeout: Seconds before a store write is treated as failed
        status: Initial status until a remote read confirms one
    """

    def __init__(
        self,
        report_id: str,
        store,
        timeout: Optional[float] = None,
        status: ReportStatus = ReportStatus.NOT_STARTED,
    ):
        self.report_id = report_id
        self._store = store
        self._timeout = timeout
        self._status = status
        self._pending = False
        self._version = 0
        self._listeners: List[Callable[[], None]] = []

    @property
    def status(self) -> ReportStatus:
        """Last status confirmed by the store."""
        return self._status

    @property
    def transition_pending(self) -> bool:
        """True while a write is awaiting acknowledgment."""
        return self._pending

    @property
    def version(self) -> int:
        """Bumped on every status change; used to drop stale reads."""
        return self._version

    def subscribe(self, callback: Callable[[], None]) -> None:
        """Register a callback invoked after status or pending flag changes."""
        self._listeners.append(callback)

    def _notify(self) -> None:
        for callback in list(self._listeners):
            callback()

    def confirm_status(self, status: ReportStatus, observed_version: Optional[int] = None) -> bool:
        """
        Adopt a status read from the store.

        Reads are dropped while a write is pending, or when the machine
        has changed since the read was started (observed_version).

        Returns:
            True if the status was adopted
        """
        if self._pending or (observed_version is not None and observed_version != self._version):
            log_operation(
                logger,
                operation="confirm_status",
                outcome="stale_read_dropped",
                level=logging.DEBUG,
                report_id=self.report_id,
                read_status=status.value,
            )
            return False

        if status != self._status:
            self._status = status
            self._version += 1
            self._notify()
        return True

    async def advance(self) -> TransitionResult:
        """
        Advance the report one lifecycle step.

        NOT_STARTED -> IN_PROGRESS and IN_PROGRESS -> COMPLETED each issue
        exactly one compare-and-set write. COMPLETED is a no-op with no write.
        A call made while another is in flight is rejected without a write.

        Returns:
            TransitionResult describing the outcome
        """
        previous = self._status

        if self._pending:
            log_operation(
                logger,
                operation="advance_report",
                outcome="rejected_in_flight",
                level=logging.WARNING,
                report_id=self.report_id,
            )
            return TransitionResult(
                success=False,
                previous_status=previous,
                new_status=previous,
                issued=False,
                error="A status change is already in progress",
            )

        target = next_status(previous)
        if target is None:
            return TransitionResult(
                success=True, previous_status=previous, new_status=previous, issued=False
            )

        # Set before the first await so a second tap sees it
        self._pending = True
        self._notify()

        error: Optional[str] = None
        try:
            rows = await call_with_timeout(
                self._store.update_report_status,
                self.report_id,
                target,
                expected_status=previous,
                timeout=self._timeout,
                operation="update_report_status",
            )
            if rows != 1:
                error = f"Status update not confirmed: {rows} rows updated"
        except ServiceError as e:
            error = str(e)
        except Exception as e:
            logger.exception(f"Unexpected error updating report {self.report_id}")
            error = f"Unexpected error: {e}"
        finally:
            self._pending = False

        if error is None:
            self._status = target
            self._version += 1

        self._notify()

        if error is not None:
            log_operation(
                logger,
                operation="advance_report",
                outcome="error",
                level=logging.ERROR,
                report_id=self.report_id,
                previous_status=previous.value,
                target_status=target.value,
                error=error,
            )
            return TransitionResult(
                success=False,
                previous_status=previous,
                new_status=previous,
                issued=True,
                error=error,
            )

        log_operation(
            logger,
            operation="advance_report",
            outcome="success",
            report_id=self.report_id,
            previous_status=previous.value,
            new_status=target.value,
        )
        return TransitionResult(
            success=True, previous_status=previous, new_status=target, issued=True
        )
