"""
Delivery Check Controller - Orchestration for the delivery check screen.

Loads a report's package manifest and status from the report store and
the scanned set from the local scan ledger, derives completion and the
transition control state from them, and turns user actions (scan
result, advance, reset) into store and ledger calls.

Every failure is recovered here: it is logged, recorded in last_error for
display, and leaves the previously loaded state in place.

Usage:
    controller = DeliveryCheckController("R-100", "E-7", "P1,P2")
    controller.subscribe(lambda: render(controller.state))
    await controller.mount()
    await controller.request_transition()
"""

import asyncio
import logging
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, List, Optional, Sequence, Set, Tuple

from src.models.report_status import ReportStatus
from src.services import report_service
from src.services.completion_service import (
    PackageRow,
    build_package_rows,
    count_scanned,
    is_complete,
)
from src.services.delivery_state_machine import (
    DeliveryStateMachine,
    TransitionResult,
    control_label,
    is_control_enabled,
)
from src.services.exceptions import MissingPackageIdsError
from src.services.logging_utils import log_operation
from src.services.remote_call import call_with_timeout
from src.services.scan_ledger_service import ScanLedger, get_scan_ledger
from src.ui.utils.error_handler import get_user_message, log_error
from src.utils.config import get_config

logger = logging.getLogger(__name__)

_OPERATION_LABELS = {
    "fetch_packages": "Loading packages",
    "fetch_report_status": "Loading report status",
    "load_scans": "Loading scans",
    "record_scan": "Saving scan",
    "reset_scans": "Resetting scans",
    "reset_all_scans": "Resetting all scans",
}


@dataclass(frozen=True)
class ScreenState:
    """Everything the delivery check screen renders, derived from current inputs."""

    rows: Tuple[PackageRow, ...]
    status: ReportStatus
    is_complete: bool
    control_label: str
    control_enabled: bool
    transition_pending: bool
    scanned_count: int

    @property
    def total_count(self) -> int:
        return len(self.rows)


def derive_screen_state(
    manifest: Sequence[Dict[str, Any]],
    scanned: Set[str],
    status: ReportStatus,
    transition_pending: bool = False,
) -> ScreenState:
    """
    Derive the screen state from the manifest, scanned set and status.

    Pure; called on every read of DeliveryCheckController.state so
    completion and control enablement always reflect the latest inputs.
    """
    complete = is_complete(manifest, scanned)
    return ScreenState(
        rows=tuple(build_package_rows(manifest, scanned)),
        status=status,
        is_complete=complete,
        control_label=control_label(status),
        control_enabled=is_control_enabled(status, complete, transition_pending),
        transition_pending=transition_pending,
        scanned_count=count_scanned(manifest, scanned),
    )


def parse_package_ids(raw: Optional[str], report_id: Optional[str] = None) -> List[str]:
    """
    Split a comma-separated package ID list.

    Segments are stripped of surrounding whitespace; empty segments and
    repeats are dropped, first occurrence order kept. IDs are otherwise
    opaque.

    Raises:
        MissingPackageIdsError: If no IDs remain
    """
    package_ids: List[str] = []
    for segment in (raw or "").split(","):
        package_id = segment.strip()
        if package_id and package_id not in package_ids:
            package_ids.append(package_id)

    if not package_ids:
        raise MissingPackageIdsError(report_id)
    return package_ids


class DeliveryCheckController:
    """
    Controller for one report's delivery check screen.

    Args:
        report_id: Report being delivered
        employee_id: Employee performing the delivery
        package_ids: Raw comma-separated package IDs passed to the screen
        store: Report store (defaults to the report_service module)
        ledger: Scan ledger (defaults to the configured ledger)
        timeout: Seconds per store/ledger call (defaults to config)
    """

    def __init__(
        self,
        report_id: str,
        employee_id: Optional[str],
        package_ids: Optional[str],
        store=None,
        ledger: Optional[ScanLedger] = None,
        timeout: Optional[float] = None,
    ):
        self.report_id = report_id
        self.employee_id = employee_id
        self._store = store if store is not None else report_service
        self._ledger = ledger if ledger is not None else get_scan_ledger()
        self._timeout = timeout if timeout is not None else get_config().remote_timeout

        self._manifest: List[Dict[str, Any]] = []
        self._manifest_loaded = False
        self._transition_claimed = False
        self._scanned: Set[str] = set()
        self._listeners: List[Callable[[], None]] = []
        self.last_error: Optional[str] = None

        self.machine = DeliveryStateMachine(report_id, self._store, timeout=self._timeout)
        self.machine.subscribe(self._notify)

        try:
            self.package_ids = parse_package_ids(package_ids, report_id)
            self.input_error: Optional[str] = None
        except MissingPackageIdsError as e:
            logger.error(f"Delivery check for report {report_id}: {e}")
            self.package_ids = []
            _, self.input_error = get_user_message(e)

    # ------------------------------------------------------------------
    # Derived state
    # ------------------------------------------------------------------

    @property
    def state(self) -> ScreenState:
        state = derive_screen_state(
            self._manifest,
            self._scanned,
            self.machine.status,
            self.machine.transition_pending or self._transition_claimed,
        )
        # No package IDs: an empty manifest must not unlock the transition
        if self.input_error is not None:
            state = replace(state, control_enabled=False)
        return state

    @property
    def scanned(self) -> Set[str]:
        return set(self._scanned)

    @property
    def manifest(self) -> List[Dict[str, Any]]:
        return list(self._manifest)

    def subscribe(self, callback: Callable[[], None]) -> None:
        """Register a callback invoked after any input to the screen state changes."""
        self._listeners.append(callback)

    def _notify(self) -> None:
        for callback in list(self._listeners):
            callback()

    def _set_manifest(self, manifest: List[Dict[str, Any]]) -> None:
        self._manifest = list(manifest)
        self._notify()

    def _set_scanned(self, scanned: Set[str]) -> None:
        self._scanned = set(scanned)
        self._notify()

    # ------------------------------------------------------------------
    # Guarded calls
    # ------------------------------------------------------------------

    async def _call(self, operation: str, func: Callable[..., Any], *args: Any, **kwargs: Any):
        """
        Await a store or ledger call, converting failures into (False, None).

        Returns:
            Tuple of (succeeded, result)
        """
        try:
            result = await call_with_timeout(
                func, *args, timeout=self._timeout, operation=operation, **kwargs
            )
        except Exception as e:
            self._record_failure(operation, e)
            return False, None
        return True, result

    def _record_failure(self, operation: str, exception: Exception) -> None:
        _, self.last_error = get_user_message(
            exception, _OPERATION_LABELS.get(operation, operation)
        )
        log_error(exception, operation, report_id=self.report_id, employee_id=self.employee_id)
        self._notify()

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def mount(self) -> None:
        """Load packages, status and scans concurrently."""
        await asyncio.gather(
            self.refresh_packages(),
            self.refresh_status(),
            self.refresh_scans(),
        )

    async def refresh_packages(self) -> bool:
        """
        Reload the package manifest from the store.

        With no package IDs the manifest is emptied so no stale rows show.

        Returns:
            True if the manifest was loaded
        """
        if not self.package_ids:
            self.last_error = self.input_error
            self._set_manifest([])
            return False

        ok, packages = await self._call(
            "fetch_packages", self._store.fetch_packages, self.report_id, self.package_ids
        )
        if ok:
            self._manifest_loaded = True
            self._set_manifest(packages)
        return ok

    async def refresh_status(self) -> bool:
        """
        Reload the report status from the store.

        Returns:
            True if a status was read (it may still be dropped as stale)
        """
        observed_version = self.machine.version
        ok, status = await self._call(
            "fetch_report_status", self._store.fetch_report_status, self.report_id
        )
        if ok:
            self.machine.confirm_status(status, observed_version)
        return ok

    async def refresh_scans(self) -> bool:
        """
        Reload the scanned set from the ledger.

        Returns:
            True if the ledger was read
        """
        ok, scanned = await self._call("load_scans", self._ledger.load, self.report_id)
        if ok:
            self._set_scanned(scanned)
        return ok

    # ------------------------------------------------------------------
    # User actions
    # ------------------------------------------------------------------

    def _accepts_package(self, package_id: str) -> bool:
        """Whether a scanned ID belongs to this delivery."""
        if self._manifest_loaded:
            return any(package["package_id"] == package_id for package in self._manifest)
        # Manifest still loading: the requested IDs are the best available bound
        return package_id in self.package_ids

    async def handle_scan_result(self, package_id: str) -> bool:
        """
        Record a decoded package ID from the scanner.

        IDs that are not on this report's manifest are ignored. Before the
        manifest has loaded, IDs are checked against the requested package IDs.

        Returns:
            True if the scan was recorded
        """
        package_id = (package_id or "").strip()
        if not self._accepts_package(package_id):
            log_operation(
                logger,
                operation="handle_scan_result",
                outcome="not_on_manifest",
                level=logging.WARNING,
                report_id=self.report_id,
                package_id=package_id,
            )
            self.last_error = f"Package '{package_id}' is not part of report {self.report_id}"
            self._notify()
            return False

        ok, scanned = await self._call(
            "record_scan", self._ledger.record_scan, self.report_id, package_id
        )
        if ok:
            self.last_error = None
            self._set_scanned(scanned)
        return ok

    def claim_transition(self) -> bool:
        """
        Reserve the transition control from the UI thread.

        Marks a request as pending before its coroutine reaches the event
        loop, so a re-render cannot re-enable the control and a second
        press is refused. Pass claimed=True to the matching
        request_transition() call.

        Returns:
            True if the control was enabled and is now reserved
        """
        if not self.state.control_enabled:
            return False
        self._transition_claimed = True
        self._notify()
        return True

    async def request_transition(self, claimed: bool = False) -> Optional[TransitionResult]:
        """
        Advance the report status if the transition control is enabled.

        A write that was issued but not confirmed (error, timeout, zero
        rows) may still have reached the store, so the status is re-read
        before returning and the control reflects the confirmed remote state.

        Args:
            claimed: True when claim_transition() reserved the control

        Returns:
            TransitionResult, or None if the control was disabled
        """
        if claimed:
            self._transition_claimed = False

        state = self.state
        if not state.control_enabled:
            log_operation(
                logger,
                operation="request_transition",
                outcome="control_disabled",
                level=logging.DEBUG,
                report_id=self.report_id,
                status=state.status.value,
                is_complete=state.is_complete,
                transition_pending=state.transition_pending,
            )
            self._notify()
            return None

        result = await self.machine.advance()
        if result.issued and not result.success:
            await self.refresh_status()
        self.last_error = result.error
        self._notify()
        return result

    async def reset_scans(self) -> bool:
        """
        Clear this report's scanned set in the ledger.

        Returns:
            True if the ledger was reset
        """
        ok, _ = await self._call("reset_scans", self._ledger.reset, self.report_id)
        if ok:
            self.last_error = None
            self._set_scanned(set())
        return ok

    async def reset_all_scans(self) -> bool:
        """
        Clear the scanned sets of every report on this device.

        Returns:
            True if the ledger was reset
        """
        ok, _ = await self._call("reset_all_scans", self._ledger.reset_all)
        if ok:
            self.last_error = None
            self._set_scanned(set())
        return ok
