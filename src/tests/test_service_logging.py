"""Tests for service layer structured logging.

These tests verify that report store, scan ledger and state machine
operations emit structured log entries with appropriate context information.
"""

import asyncio
import logging

from src.models.report_status import ReportStatus
from src.services import report_service
from src.services.delivery_state_machine import DeliveryStateMachine
from src.services.exceptions import DatabaseError
from src.services.logging_utils import get_service_logger, log_operation
from src.tests.fakes import FakeReportStore


class TestLoggingUtilities:
    """Tests for logging utility functions."""

    def test_get_service_logger_returns_logger(self):
        """get_service_logger returns a configured Logger instance."""
        logger = get_service_logger("test_module")
        assert isinstance(logger, logging.Logger)
        assert logger.name == "delivery_tracker.services.test_module"

    def test_get_service_logger_extracts_module_name(self):
        """get_service_logger extracts module name from full path."""
        logger = get_service_logger("src.services.scan_ledger_service")
        assert logger.name == "delivery_tracker.services.scan_ledger_service"

    def test_log_operation_logs_at_info_level(self, caplog):
        """log_operation logs at INFO level by default."""
        logger = get_service_logger("test")

        with caplog.at_level(logging.INFO):
            log_operation(logger, operation="test_op", outcome="success", report_id="R-1")

        assert "test_op: success" in caplog.text
        assert caplog.records[0].levelno == logging.INFO

    def test_log_operation_logs_at_custom_level(self, caplog):
        """log_operation respects custom log level."""
        logger = get_service_logger("test")

        with caplog.at_level(logging.DEBUG):
            log_operation(
                logger,
                operation="debug_op",
                outcome="debug_outcome",
                level=logging.DEBUG,
            )

        assert "debug_op: debug_outcome" in caplog.text

    def test_log_operation_includes_extra_context(self, caplog):
        """log_operation includes extra context in log records."""
        logger = get_service_logger("test")

        with caplog.at_level(logging.INFO):
            log_operation(
                logger,
                operation="context_test",
                outcome="success",
                report_id="R-100",
                package_id="P1",
            )

        assert len(caplog.records) == 1
        record = caplog.records[0]
        assert record.operation == "context_test"
        assert record.outcome == "success"
        assert record.report_id == "R-100"
        assert record.package_id == "P1"


class TestReportServiceLogging:
    """Tests for report_service logging."""

    def test_status_update_logs_success(self, test_db, caplog):
        report_service.create_report("R-100")

        with caplog.at_level(logging.INFO):
            report_service.update_report_status("R-100", ReportStatus.IN_PROGRESS)

        records = [r for r in caplog.records if getattr(r, "operation", None) == "update_report_status"]
        assert len(records) == 1
        assert records[0].outcome == "success"
        assert records[0].new_status == "In Progress"

    def test_unmatched_update_logs_warning(self, test_db, caplog):
        with caplog.at_level(logging.INFO):
            report_service.update_report_status("R-404", ReportStatus.IN_PROGRESS)

        records = [r for r in caplog.records if getattr(r, "operation", None) == "update_report_status"]
        assert records[0].outcome == "no_match"
        assert records[0].levelno == logging.WARNING


class TestLedgerLogging:
    """Tests for scan ledger logging."""

    def test_reset_logs_report(self, ledger, caplog):
        with caplog.at_level(logging.INFO):
            ledger.reset("R-100")

        record = [r for r in caplog.records if getattr(r, "operation", None) == "reset_scans"][0]
        assert record.report_id == "R-100"

    def test_corrupt_ledger_logs_warning(self, ledger, caplog):
        ledger.path.write_text("{broken", encoding="utf-8")

        with caplog.at_level(logging.WARNING):
            ledger.load("R-100")

        assert "not valid JSON" in caplog.text


class TestStateMachineLogging:
    """Tests for delivery state machine logging."""

    def test_successful_advance_logs_statuses(self, caplog):
        machine = DeliveryStateMachine("R-100", FakeReportStore())

        with caplog.at_level(logging.INFO):
            asyncio.run(machine.advance())

        record = [r for r in caplog.records if getattr(r, "operation", None) == "advance_report"][0]
        assert record.outcome == "success"
        assert record.previous_status == "Not Started"
        assert record.new_status == "In Progress"

    def test_failed_advance_logs_error(self, caplog):
        store = FakeReportStore()
        store.fail_update = DatabaseError("connection lost")
        machine = DeliveryStateMachine("R-100", store)

        with caplog.at_level(logging.INFO):
            asyncio.run(machine.advance())

        record = [r for r in caplog.records if getattr(r, "operation", None) == "advance_report"][0]
        assert record.outcome == "error"
        assert record.levelno == logging.ERROR
        assert "connection lost" in record.error
