"""
tests/unit/test_worker_supervisor.py

Tests for the worker supervisor against a scripted fake worker process.
"""

import threading
from concurrent.futures import Future
from unittest.mock import MagicMock

import pytest

from blinkit_agent.core.worker_supervisor import PendingCall, WorkerSupervisor
from blinkit_agent.data_models.protocol import InitParams, ItemParams, WorkerAction
from blinkit_agent.exceptions import (
    WorkerCrashedError,
    WorkerNotRunningError,
    WorkerStartupError,
    WorkerTimeoutError,
)


class TestLifecycle:
    """Launch, probe, restart and close."""

    def test_ensure_ready_launches_and_initialises(self, make_supervisor) -> None:
        supervisor = make_supervisor()
        supervisor.ensure_ready()
        assert supervisor.is_running()
        assert supervisor.init_result is not None
        assert not supervisor.init_result.restored_session

    def test_ensure_ready_reuses_healthy_worker(self, make_supervisor) -> None:
        supervisor = make_supervisor()
        supervisor.ensure_ready()
        pid = supervisor._process.pid
        supervisor.ensure_ready()
        assert supervisor._process.pid == pid

    def test_close_stops_the_process(self, make_supervisor) -> None:
        supervisor = make_supervisor()
        supervisor.ensure_ready()
        supervisor.close()
        assert not supervisor.is_running()

    def test_send_without_worker_raises(self, make_supervisor) -> None:
        with pytest.raises(WorkerNotRunningError):
            make_supervisor().send_command(WorkerAction.IS_ALIVE)

    def test_silent_worker_fails_startup(self, make_supervisor, monkeypatch) -> None:
        monkeypatch.setenv("FAKE_WORKER_SILENT", "1")
        supervisor = make_supervisor(startup_timeout=0.5)
        with pytest.raises(WorkerStartupError):
            supervisor.ensure_ready()
        assert not supervisor.is_running()

    def test_init_failure_fails_startup(self, make_supervisor, monkeypatch) -> None:
        monkeypatch.setenv("FAKE_WORKER_INIT_ERROR", "Executable doesn't exist")
        supervisor = make_supervisor()
        with pytest.raises(WorkerStartupError) as exc_info:
            supervisor.ensure_ready()
        assert "Executable doesn't exist" in exc_info.value.message

    def test_missing_executable_fails_startup(self) -> None:
        supervisor = WorkerSupervisor(init_params=InitParams, worker_command=["/nonexistent/worker-binary"])
        with pytest.raises(WorkerStartupError):
            supervisor.ensure_ready()


class TestCorrelation:
    """Responses reach exactly the caller that sent the command."""

    def test_out_of_order_responses_are_correlated(self, make_supervisor, monkeypatch) -> None:
        monkeypatch.setenv("FAKE_WORKER_DELAY", "getOrders:0.5")
        supervisor = make_supervisor()
        supervisor.ensure_ready()

        slow = supervisor.send_command(WorkerAction.GET_ORDERS)
        fast = supervisor.send_command(WorkerAction.IS_LOGGED_IN)

        assert fast.result(timeout=5).data == {"logged_in": True}
        assert not slow.done()
        assert slow.result(timeout=5).data["orders"][0]["order_id"] == "order-0"
        assert supervisor.pending_count == 0

    def test_non_json_lines_are_ignored(self, make_supervisor, monkeypatch) -> None:
        monkeypatch.setenv("FAKE_WORKER_NOISE", "1")
        supervisor = make_supervisor()
        supervisor.ensure_ready()
        response = supervisor.call(WorkerAction.LOCATE_ITEM, ItemParams(item_id="1"))
        assert response.success
        assert response.data == {"present": True}

    def test_invalid_utf8_line_is_skipped(self, make_supervisor, monkeypatch) -> None:
        """Garbage bytes on stdout neither stop the reader nor block later calls."""
        monkeypatch.setenv("FAKE_WORKER_BAD_BYTES", "getOrders")
        supervisor = make_supervisor()
        supervisor.ensure_ready()

        orders = supervisor.call(WorkerAction.GET_ORDERS, timeout=2)
        assert orders.data["orders"][0]["order_id"] == "order-0"
        assert supervisor.call(WorkerAction.IS_ALIVE, timeout=2).success
        assert supervisor._reader.is_alive()

    def test_crash_after_invalid_utf8_fails_pending(self, make_supervisor, monkeypatch) -> None:
        monkeypatch.setenv("FAKE_WORKER_BAD_BYTES", "getOrders")
        monkeypatch.setenv("FAKE_WORKER_CRASH", "payNow")
        supervisor = make_supervisor()
        supervisor.ensure_ready()
        supervisor.call(WorkerAction.GET_ORDERS, timeout=2)

        with pytest.raises(WorkerCrashedError):
            supervisor.call(WorkerAction.PAY_NOW, timeout=2)
        assert not supervisor.is_running()


class TestFailures:
    """Timeouts and crashes settle every pending call exactly once."""

    def test_timeout_settles_call(self, make_supervisor, monkeypatch) -> None:
        monkeypatch.setenv("FAKE_WORKER_HANG", "checkout")
        supervisor = make_supervisor()
        supervisor.ensure_ready()
        with pytest.raises(WorkerTimeoutError):
            supervisor.call(WorkerAction.CHECKOUT, timeout=0.3)
        assert supervisor.pending_count == 0
        assert supervisor.call(WorkerAction.IS_ALIVE).success

    def test_late_response_is_discarded(self, make_supervisor, monkeypatch) -> None:
        """A response arriving after the deadline does not resurrect the call."""
        monkeypatch.setenv("FAKE_WORKER_DELAY", "getOrders:0.5")
        supervisor = make_supervisor()
        supervisor.ensure_ready()
        with pytest.raises(WorkerTimeoutError):
            supervisor.call(WorkerAction.GET_ORDERS, timeout=0.1)
        # the late answer arrives while this call is served
        assert supervisor.call(WorkerAction.IS_LOGGED_IN).data == {"logged_in": True}
        assert supervisor.pending_count == 0

    def test_crash_fails_pending_calls(self, make_supervisor, monkeypatch) -> None:
        monkeypatch.setenv("FAKE_WORKER_HANG", "getOrders")
        monkeypatch.setenv("FAKE_WORKER_CRASH", "payNow")
        supervisor = make_supervisor()
        supervisor.ensure_ready()

        hanging = supervisor.send_command(WorkerAction.GET_ORDERS)
        with pytest.raises(WorkerCrashedError):
            supervisor.call(WorkerAction.PAY_NOW)
        with pytest.raises(WorkerCrashedError):
            hanging.result(timeout=5)
        assert supervisor.pending_count == 0
        assert not supervisor.is_running()

    def test_restart_after_crash(self, make_supervisor, monkeypatch) -> None:
        monkeypatch.setenv("FAKE_WORKER_CRASH", "payNow")
        supervisor = make_supervisor()
        supervisor.ensure_ready()
        with pytest.raises(WorkerCrashedError):
            supervisor.call(WorkerAction.PAY_NOW)

        supervisor.ensure_ready()
        assert supervisor.is_running()
        assert supervisor.call(WorkerAction.IS_ALIVE).success


class TestReaderExit:

    def test_read_failure_still_fails_pending_calls(self) -> None:
        """A reader that cannot read stops the worker and settles its calls."""
        supervisor = WorkerSupervisor(init_params=InitParams, worker_command=["unused"])
        process = MagicMock()
        process.stdout.__iter__.side_effect = ValueError("I/O operation on closed file")
        process.wait.return_value = -9
        future: Future = Future()
        supervisor._process = process
        supervisor._pending["c1"] = PendingCall(
            command_id="c1",
            action=WorkerAction.GET_CART,
            future=future,
            timer=threading.Timer(60, lambda: None),
            process=process,
        )

        supervisor._read_loop(process)

        process.kill.assert_called_once()
        assert isinstance(future.exception(timeout=1), WorkerCrashedError)
        assert supervisor.pending_count == 0
        assert not supervisor.is_running()
