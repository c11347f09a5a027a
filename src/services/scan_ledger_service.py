"""
Scan Ledger Service - Durable local record of scanned packages.

Stores which package IDs have been scanned, per report, in a JSON file on
the device. The file holds one fixed storage key whose value maps report
ID to a list of scanned package IDs:

    {"@QRDATA": {"R-100": ["P1", "P2"], "R-101": []}}

Reads never fail: a missing, unreadable or corrupt file is the same as
"nothing scanned yet". Writes are read-modify-write under an in-process
lock plus an exclusive file lock, so the scanner flow appending an ID and
the delivery check screen resetting the ledger cannot lose each other's
update.

Usage:
    from src.services.scan_ledger_service import ScanLedger

    ledger = ScanLedger(path)
    ledger.record_scan("R-100", "P1")
    scanned = ledger.load("R-100")   # {"P1"}
    ledger.reset("R-100")
"""

import json
import logging
import threading
from pathlib import Path
from typing import Callable, Dict, List, Optional, Set

import portalocker

from src.services.exceptions import LedgerWriteError
from src.services.logging_utils import get_service_logger, log_operation
from src.utils.constants import LEDGER_STORAGE_KEY

logger = get_service_logger(__name__)

ScanMap = Dict[str, List[str]]


def _parse_scan_map(raw: bytes, source: Path) -> ScanMap:
    """
    Extract the per-report scan map from raw file bytes.

    Anything that doesn't decode as UTF-8 JSON of the expected shape is
    dropped with a warning. A legacy payload that stored one global list
    under the key carries no report scoping and is discarded.
    """
    try:
        content = raw.decode("utf-8")
    except UnicodeDecodeError as e:
        logger.warning(f"Scan ledger at {source} is not valid UTF-8, treating as empty: {e}")
        return {}

    if not content.strip():
        return {}

    try:
        payload = json.loads(content)
    except json.JSONDecodeError as e:
        logger.warning(f"Scan ledger at {source} is not valid JSON, treating as empty: {e}")
        return {}

    if not isinstance(payload, dict):
        logger.warning(f"Scan ledger at {source} is not a JSON object, treating as empty")
        return {}

    raw_map = payload.get(LEDGER_STORAGE_KEY, {})
    if not isinstance(raw_map, dict):
        logger.warning(
            f"Scan ledger key '{LEDGER_STORAGE_KEY}' in {source} holds "
            f"{type(raw_map).__name__}, not a per-report map; treating as empty"
        )
        return {}

    scan_map: ScanMap = {}
    for report_id, package_ids in raw_map.items():
        if not isinstance(package_ids, list):
            logger.warning(f"Discarding malformed scan entry for report {report_id}")
            continue
        scan_map[report_id] = [pid for pid in package_ids if isinstance(pid, str)]
    return scan_map


class ScanLedger:
    """
    Per-report set of scanned package IDs persisted to a JSON file.

    Attributes:
        path: Location of the ledger file
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _read(self) -> ScanMap:
        """Read the scan map under a shared file lock; failures read as empty."""
        with self._lock:
            try:
                with open(self.path, "rb") as f:
                    portalocker.lock(f, portalocker.LOCK_SH)
                    try:
                        content = f.read()
                    finally:
                        portalocker.unlock(f)
            except FileNotFoundError:
                return {}
            except (OSError, portalocker.LockException) as e:
                logger.warning(
                    f"Failed to read scan ledger at {self.path}, treating as empty: {e}"
                )
                return {}
        return _parse_scan_map(content, self.path)

    def _modify(self, modifier: Callable[[ScanMap], ScanMap]) -> ScanMap:
        """
        Read the scan map, apply modifier, write it back, holding both locks.

        Raises:
            LedgerWriteError: If the file cannot be opened, locked or written
        """
        with self._lock:
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                # Binary so undecodable content is parsed as empty instead of raising
                with open(self.path, "a+b") as f:
                    portalocker.lock(f, portalocker.LOCK_EX)
                    try:
                        f.seek(0)
                        scan_map = _parse_scan_map(f.read(), self.path)
                        modified = modifier(scan_map)

                        f.seek(0)
                        f.truncate()
                        payload = json.dumps({LEDGER_STORAGE_KEY: modified}, indent=2)
                        f.write(payload.encode("utf-8"))
                        f.flush()
                    finally:
                        portalocker.unlock(f)
            except (OSError, portalocker.LockException) as e:
                raise LedgerWriteError(self.path, e)
        return modified

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def load(self, report_id: str) -> Set[str]:
        """
        Get the set of package IDs scanned for a report.

        If the report has no entry yet, an empty entry is persisted. Read
        and parse failures are logged and reported as an empty set.

        Args:
            report_id: Report whose scans to load

        Returns:
            Set of scanned package IDs
        """
        scan_map = self._read()

        if report_id in scan_map:
            return set(scan_map[report_id])

        def ensure_entry(current: ScanMap) -> ScanMap:
            current.setdefault(report_id, [])
            return current

        try:
            scan_map = self._modify(ensure_entry)
        except LedgerWriteError as e:
            logger.warning(f"Could not initialize scan ledger entry for report {report_id}: {e}")
            return set()
        return set(scan_map.get(report_id, []))

    def record_scan(self, report_id: str, package_id: str) -> Set[str]:
        """
        Mark a package as scanned for a report.

        Recording an already scanned ID is a no-op.

        Args:
            report_id: Report the package belongs to
            package_id: Decoded package ID

        Returns:
            The report's scanned set after the append

        Raises:
            LedgerWriteError: If the ledger cannot be written
        """

        def append(current: ScanMap) -> ScanMap:
            scanned = current.setdefault(report_id, [])
            if package_id not in scanned:
                scanned.append(package_id)
            return current

        scan_map = self._modify(append)
        log_operation(
            logger,
            operation="record_scan",
            outcome="success",
            level=logging.DEBUG,
            report_id=report_id,
            package_id=package_id,
        )
        return set(scan_map[report_id])

    def reset(self, report_id: str) -> None:
        """
        Clear the scanned set for a report. Idempotent.

        Args:
            report_id: Report to reset

        Raises:
            LedgerWriteError: If the ledger cannot be written
        """

        def clear(current: ScanMap) -> ScanMap:
            current[report_id] = []
            return current

        self._modify(clear)
        log_operation(logger, operation="reset_scans", outcome="success", report_id=report_id)

    def reset_all(self) -> None:
        """
        Clear the scanned sets of every report.

        Raises:
            LedgerWriteError: If the ledger cannot be written
        """
        self._modify(lambda current: {})
        log_operation(logger, operation="reset_all_scans", outcome="success")


_default_ledger: Optional[ScanLedger] = None


def get_scan_ledger() -> ScanLedger:
    """
    Get the ledger stored at the configured ledger path.

    Returns:
        Shared ScanLedger instance
    """
    global _default_ledger

    if _default_ledger is None:
        from src.utils.config import get_ledger_path

        _default_ledger = ScanLedger(get_ledger_path())
    return _default_ledger
