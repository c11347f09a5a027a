"""
Tests for the delivery state machine.

Tests cover:
- Transition map, control labels and enablement
- advance() issuing exactly one compare-and-set write per step
- Failed, unconfirmed and timed out writes leaving the status unchanged
- In-flight rejection and stale read handling
"""

import asyncio

import pytest

from src.models.report_status import ReportStatus
from src.services.delivery_state_machine import (
    VALID_TRANSITIONS,
    DeliveryStateMachine,
    TransitionResult,
    control_label,
    is_control_enabled,
    next_status,
)
from src.services.exceptions import DatabaseError
from src.tests.fakes import BlockingStore, FakeReportStore


class TestTransitionRules:
    """Tests for the pure transition helpers."""

    def test_valid_transitions_are_linear(self):
        assert VALID_TRANSITIONS[ReportStatus.NOT_STARTED] == {ReportStatus.IN_PROGRESS}
        assert VALID_TRANSITIONS[ReportStatus.IN_PROGRESS] == {ReportStatus.COMPLETED}
        assert VALID_TRANSITIONS[ReportStatus.COMPLETED] == set()

    def test_next_status(self):
        assert next_status(ReportStatus.NOT_STARTED) == ReportStatus.IN_PROGRESS
        assert next_status(ReportStatus.IN_PROGRESS) == ReportStatus.COMPLETED
        assert next_status(ReportStatus.COMPLETED) is None

    @pytest.mark.parametrize(
        "status,label",
        [
            (ReportStatus.NOT_STARTED, "Start Delivery"),
            (ReportStatus.IN_PROGRESS, "Complete"),
            (ReportStatus.COMPLETED, "Delivery Completed"),
            (None, "Start Delivery"),
        ],
    )
    def test_control_label(self, status, label):
        assert control_label(status) == label

    @pytest.mark.parametrize("status", list(ReportStatus))
    def test_control_disabled_until_complete(self, status):
        assert is_control_enabled(status, is_complete=False) is False

    def test_control_enabled_when_complete_and_active(self):
        assert is_control_enabled(ReportStatus.NOT_STARTED, is_complete=True) is True
        assert is_control_enabled(ReportStatus.IN_PROGRESS, is_complete=True) is True

    def test_control_disabled_when_completed(self):
        assert is_control_enabled(ReportStatus.COMPLETED, is_complete=True) is False

    def test_control_disabled_while_pending(self):
        assert (
            is_control_enabled(ReportStatus.IN_PROGRESS, is_complete=True, transition_pending=True)
            is False
        )


class TestAdvance:
    """Tests for DeliveryStateMachine.advance()."""

    def test_start_delivery(self):
        store = FakeReportStore()
        machine = DeliveryStateMachine("R-100", store)

        result = asyncio.run(machine.advance())

        assert result == TransitionResult(
            success=True,
            previous_status=ReportStatus.NOT_STARTED,
            new_status=ReportStatus.IN_PROGRESS,
            issued=True,
        )
        assert result.changed is True
        assert machine.status == ReportStatus.IN_PROGRESS
        assert store.update_calls == [
            ("R-100", ReportStatus.IN_PROGRESS, ReportStatus.NOT_STARTED)
        ]

    def test_complete_delivery(self):
        store = FakeReportStore(status=ReportStatus.IN_PROGRESS)
        machine = DeliveryStateMachine("R-100", store, status=ReportStatus.IN_PROGRESS)

        result = asyncio.run(machine.advance())

        assert result.success is True
        assert machine.status == ReportStatus.COMPLETED
        assert store.update_calls == [
            ("R-100", ReportStatus.COMPLETED, ReportStatus.IN_PROGRESS)
        ]

    def test_completed_is_noop_without_write(self):
        store = FakeReportStore(status=ReportStatus.COMPLETED)
        machine = DeliveryStateMachine("R-100", store, status=ReportStatus.COMPLETED)

        result = asyncio.run(machine.advance())

        assert result.success is True
        assert result.issued is False
        assert result.changed is False
        assert machine.status == ReportStatus.COMPLETED
        assert store.update_calls == []

    def test_full_lifecycle_one_write_per_step(self):
        store = FakeReportStore()
        machine = DeliveryStateMachine("R-100", store)

        async def run_all():
            return [await machine.advance() for _ in range(3)]

        results = asyncio.run(run_all())

        assert [r.new_status for r in results] == [
            ReportStatus.IN_PROGRESS,
            ReportStatus.COMPLETED,
            ReportStatus.COMPLETED,
        ]
        assert len(store.update_calls) == 2

    def test_store_error_leaves_status_unchanged(self):
        store = FakeReportStore()
        store.fail_update = DatabaseError("connection lost")
        machine = DeliveryStateMachine("R-100", store)

        result = asyncio.run(machine.advance())

        assert result.success is False
        assert result.issued is True
        assert result.new_status == ReportStatus.NOT_STARTED
        assert "connection lost" in result.error
        assert machine.status == ReportStatus.NOT_STARTED
        assert machine.transition_pending is False

    def test_unexpected_error_is_captured(self):
        store = FakeReportStore()
        store.fail_update = RuntimeError("boom")
        machine = DeliveryStateMachine("R-100", store)

        result = asyncio.run(machine.advance())

        assert result.success is False
        assert "boom" in result.error
        assert machine.status == ReportStatus.NOT_STARTED

    @pytest.mark.parametrize("rows", [0, 2])
    def test_unconfirmed_write_leaves_status_unchanged(self, rows):
        """Only an update that touched exactly one row counts as confirmed."""
        store = FakeReportStore()
        store.update_rows = rows
        machine = DeliveryStateMachine("R-100", store)

        result = asyncio.run(machine.advance())

        assert result.success is False
        assert f"{rows} rows" in result.error
        assert machine.status == ReportStatus.NOT_STARTED

    def test_timeout_leaves_status_unchanged(self):
        store = BlockingStore()
        machine = DeliveryStateMachine("R-100", store, timeout=0.05)

        async def advance_then_release():
            try:
                return await machine.advance()
            finally:
                store.release.set()

        result = asyncio.run(advance_then_release())

        assert result.success is False
        assert "timed out" in result.error
        assert machine.status == ReportStatus.NOT_STARTED
        assert machine.transition_pending is False

    def test_retry_after_failure_succeeds(self):
        store = FakeReportStore()
        store.fail_update = DatabaseError("connection lost")
        machine = DeliveryStateMachine("R-100", store)

        assert asyncio.run(machine.advance()).success is False

        store.fail_update = None
        assert asyncio.run(machine.advance()).success is True
        assert machine.status == ReportStatus.IN_PROGRESS

    def test_second_request_while_in_flight_is_rejected(self):
        store = BlockingStore()
        machine = DeliveryStateMachine("R-100", store)

        async def double_tap():
            first = asyncio.ensure_future(machine.advance())
            await asyncio.sleep(0)
            assert machine.transition_pending is True
            second = await machine.advance()
            store.release.set()
            return await first, second

        try:
            first, second = asyncio.run(double_tap())
        finally:
            store.release.set()

        assert first.success is True
        assert second.success is False
        assert second.issued is False
        assert len(store.update_calls) == 1
        assert machine.status == ReportStatus.IN_PROGRESS

    def test_concurrent_requests_issue_one_write(self):
        store = FakeReportStore()
        machine = DeliveryStateMachine("R-100", store)

        async def tap_twice():
            return await asyncio.gather(machine.advance(), machine.advance())

        results = asyncio.run(tap_twice())

        assert [r.issued for r in results] == [True, False]
        assert len(store.update_calls) == 1
        assert machine.status == ReportStatus.IN_PROGRESS

    def test_listeners_see_pending_then_result(self):
        store = FakeReportStore()
        machine = DeliveryStateMachine("R-100", store)
        seen = []
        machine.subscribe(lambda: seen.append((machine.status, machine.transition_pending)))

        asyncio.run(machine.advance())

        assert seen == [
            (ReportStatus.NOT_STARTED, True),
            (ReportStatus.IN_PROGRESS, False),
        ]


class TestConfirmStatus:
    """Tests for DeliveryStateMachine.confirm_status()."""

    def test_adopts_read_status(self):
        machine = DeliveryStateMachine("R-100", FakeReportStore())

        assert machine.confirm_status(ReportStatus.IN_PROGRESS) is True
        assert machine.status == ReportStatus.IN_PROGRESS
        assert machine.version == 1

    def test_same_status_does_not_bump_version(self):
        machine = DeliveryStateMachine("R-100", FakeReportStore())

        assert machine.confirm_status(ReportStatus.NOT_STARTED) is True
        assert machine.version == 0

    def test_drops_read_started_before_a_change(self):
        store = FakeReportStore()
        machine = DeliveryStateMachine("R-100", store)
        observed = machine.version

        asyncio.run(machine.advance())

        assert machine.confirm_status(ReportStatus.NOT_STARTED, observed) is False
        assert machine.status == ReportStatus.IN_PROGRESS

    def test_drops_read_while_write_pending(self):
        store = BlockingStore()
        machine = DeliveryStateMachine("R-100", store)

        async def read_during_write():
            pending = asyncio.ensure_future(machine.advance())
            await asyncio.sleep(0)
            adopted = machine.confirm_status(ReportStatus.NOT_STARTED)
            store.release.set()
            await pending
            return adopted

        try:
            adopted = asyncio.run(read_during_write())
        finally:
            store.release.set()

        assert adopted is False
        assert machine.status == ReportStatus.IN_PROGRESS
