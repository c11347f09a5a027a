"""Test doubles for the report store."""

import threading
from typing import Dict, List, Optional

from src.models.report_status import ReportStatus


class FakeReportStore:
    """
    In-memory report store recording every call.

    Attributes:
        packages: Package dicts returned by fetch_packages
        status: Status returned by fetch_report_status
        update_rows: Row count returned by update_report_status when the
            expected status matches (a mismatch updates 0 rows)
        fail_fetch_packages / fail_fetch_status / fail_update: Exceptions to raise
        update_calls: (report_id, new_status, expected_status) per update
    """

    def __init__(
        self,
        packages: Optional[List[Dict]] = None,
        status: ReportStatus = ReportStatus.NOT_STARTED,
    ):
        self.packages = packages or []
        self.status = status
        self.update_rows = 1
        self.fail_fetch_packages: Optional[Exception] = None
        self.fail_fetch_status: Optional[Exception] = None
        self.fail_update: Optional[Exception] = None
        self.fetch_package_calls: List = []
        self.update_calls: List = []

    def fetch_packages(self, report_id, package_ids=None):
        self.fetch_package_calls.append((report_id, list(package_ids or [])))
        if self.fail_fetch_packages:
            raise self.fail_fetch_packages
        if package_ids is None:
            return list(self.packages)
        return [p for p in self.packages if p["package_id"] in package_ids]

    def fetch_report_status(self, report_id):
        if self.fail_fetch_status:
            raise self.fail_fetch_status
        return self.status

    def update_report_status(self, report_id, new_status, expected_status=None):
        self.update_calls.append((report_id, new_status, expected_status))
        if self.fail_update:
            raise self.fail_update
        if expected_status is not None and expected_status != self.status:
            return 0
        if self.update_rows == 1:
            self.status = new_status
        return self.update_rows


class BlockingStore(FakeReportStore):
    """Store whose update blocks until released from the test."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.started = threading.Event()
        self.release = threading.Event()

    def update_report_status(self, report_id, new_status, expected_status=None):
        self.started.set()
        self.release.wait(timeout=5)
        return super().update_report_status(report_id, new_status, expected_status)


def make_packages(*package_ids: str, report_id: str = "R-100") -> List[Dict]:
    """Build package dicts like report_service.fetch_packages returns."""
    return [
        {"package_id": pid, "product_name": f"Product {pid}", "report_id": report_id}
        for pid in package_ids
    ]
