"""Unit tests for the UI error message mapping."""

import logging
from pathlib import Path

import pytest

from src.ui.utils.error_handler import get_user_message, log_error
from src.services.exceptions import (
    DatabaseError,
    LedgerWriteError,
    MissingPackageIdsError,
    RemoteTimeoutError,
    ReportNotFound,
    ServiceError,
    ValidationError,
)


class TestGetUserMessage:
    """Tests for exception to user message mapping."""

    def test_missing_package_ids(self):
        title, msg = get_user_message(MissingPackageIdsError("R-100"), "Loading packages")
        assert title == "No Packages"
        assert "No packages" in msg

    def test_report_not_found(self):
        title, msg = get_user_message(ReportNotFound("R-404"), "Loading report status")
        assert title == "Not Found"
        assert "R-404" in msg
        assert "ReportNotFound" not in msg  # No class names

    def test_validation_error(self):
        title, msg = get_user_message(ValidationError(["Report ID is required"]))
        assert title == "Validation Error"
        assert msg == "Report ID is required"

    def test_remote_timeout(self):
        title, msg = get_user_message(
            RemoteTimeoutError("fetch_packages", 10.0), "Loading packages"
        )
        assert title == "Timed Out"
        assert msg.startswith("Loading packages timed out")

    def test_ledger_write_error(self):
        exc = LedgerWriteError(Path("/tmp/scan_ledger.json"), PermissionError("denied"))
        title, msg = get_user_message(exc, "Saving scan")
        assert title == "Storage Error"
        assert "/tmp" not in msg

    def test_database_error_hides_details(self):
        exc = DatabaseError("Failed to fetch", Exception("secret connection string"))
        title, msg = get_user_message(exc, "Loading packages")
        assert title == "Database Error"
        assert "secret" not in msg

    def test_generic_service_error(self):
        title, msg = get_user_message(ServiceError("something odd"), "Saving scan")
        assert title == "Error"
        assert "something odd" in msg

    def test_unexpected_error(self):
        title, msg = get_user_message(KeyError("x"), "Saving scan")
        assert title == "Unexpected Error"
        assert "KeyError" not in msg


class TestLogError:
    """Tests for technical error logging."""

    def test_service_error_logged_without_traceback(self, caplog):
        with caplog.at_level(logging.ERROR):
            log_error(ReportNotFound("R-404"), "fetch_report_status", report_id="R-404")

        record = caplog.records[-1]
        assert record.levelno == logging.ERROR
        assert record.exc_info is None
        assert record.report_id == "R-404"
        assert record.exception_type == "ReportNotFound"

    def test_unexpected_error_logs_traceback(self, caplog):
        try:
            raise RuntimeError("boom")
        except RuntimeError as e:
            with caplog.at_level(logging.ERROR):
                log_error(e, "record_scan")

        record = caplog.records[-1]
        assert record.exc_info is not None
        assert "unexpected error" in record.getMessage()


@pytest.mark.parametrize(
    "exc",
    [
        ValidationError(["x"]),
        MissingPackageIdsError("R-1"),
        DatabaseError("x"),
        ReportNotFound("R-1"),
        LedgerWriteError("ledger.json"),
        RemoteTimeoutError("op", 1.0),
    ],
)
def test_all_service_exceptions_inherit_service_error(exc):
    assert isinstance(exc, ServiceError)
