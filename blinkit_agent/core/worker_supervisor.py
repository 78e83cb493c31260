"""
blinkit_agent/core/worker_supervisor.py

Owns the single worker process that drives the browser session and exposes a
command/response call abstraction over its stdin/stdout.

Correlation model:
- every command gets a fresh id and a PendingCall holding its Future and deadline timer
- a PendingCall is removed exactly once: on its response, on its timeout, or on worker exit
- late responses for ids that already timed out are discarded
- undecodable bytes on stdout are replaced, so such a line is skipped as non-JSON
- when the worker exits, every call still pending on that process fails with WorkerCrashedError
"""

import json
import subprocess
import threading
import uuid
from collections.abc import Callable
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ValidationError

from blinkit_agent.config import Config
from blinkit_agent.constants import (
    WORKER_CLOSE_TIMEOUT,
    WORKER_COMMAND_TIMEOUT,
    WORKER_PROBE_TIMEOUT,
    WORKER_STARTUP_TIMEOUT,
)
from blinkit_agent.data_models.protocol import (
    InitParams,
    InitResult,
    WorkerAction,
    WorkerResponse,
    build_command,
    parse_result,
)
from blinkit_agent.exceptions import (
    ProtocolError,
    WorkerCrashedError,
    WorkerError,
    WorkerNotRunningError,
    WorkerStartupError,
    WorkerTimeoutError,
)
from blinkit_agent.utils.logger import get_logger

logger = get_logger(name=__name__)

_RETRY_HINT = "Retry the operation; the worker restarts automatically."


@dataclass
class PendingCall:
    """Ownership record for one in-flight command."""
    command_id: str
    action: WorkerAction
    future: "Future[WorkerResponse]"
    timer: threading.Timer
    process: subprocess.Popen


class WorkerSupervisor:
    """
    Launches, probes, restarts and closes the worker process, and correlates its responses.
    """

    def __init__(
        self,
        init_params: Callable[[], InitParams],
        worker_command: list[str] | None = None,
        command_timeout: float = WORKER_COMMAND_TIMEOUT,
        startup_timeout: float = WORKER_STARTUP_TIMEOUT,
        probe_timeout: float = WORKER_PROBE_TIMEOUT,
        close_timeout: float = WORKER_CLOSE_TIMEOUT,
    ) -> None:
        """
        Args:
            init_params: Called on every launch to build the init payload, so it reflects the current session.
            worker_command: argv that starts the worker. Defaults to `python -m blinkit_agent.worker`.
            command_timeout: Default per-command deadline in seconds.
            startup_timeout: Deadline for the freshly launched process to answer its first probe.
            probe_timeout: Deadline for the liveness probe of a running worker.
            close_timeout: Deadline for the close action and for the process to exit afterwards.
        """
        self._init_params = init_params
        self._worker_command = worker_command or [Config.WORKER_PYTHON, "-m", "blinkit_agent.worker"]
        self.command_timeout = command_timeout
        self.startup_timeout = startup_timeout
        self.probe_timeout = probe_timeout
        self.close_timeout = close_timeout

        self._process: subprocess.Popen | None = None
        self._reader: threading.Thread | None = None
        self._pending: dict[str, PendingCall] = {}
        self._init_result: InitResult | None = None

        # guards _process and _pending
        self._lock = threading.Lock()
        # one command line at a time on the worker's stdin
        self._write_lock = threading.Lock()
        # serializes launch, restart and close
        self._lifecycle_lock = threading.RLock()

    # Lifecycle ___________________________________________________________________________________

    def is_running(self) -> bool:
        with self._lock:
            return self._process is not None and self._process.poll() is None

    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending)

    @property
    def init_result(self) -> InitResult | None:
        """What the worker reported at its last init handshake."""
        return self._init_result

    def ensure_ready(self) -> None:
        """
        Start the worker if none is running; otherwise probe it and restart it when the probe fails.
        Raises:
            WorkerStartupError: If a new worker cannot be launched or initialised.
        """
        with self._lifecycle_lock:
            if self.is_running():
                if self._probe():
                    return
                logger.warning("Worker failed its liveness probe, restarting")
                self._terminate()
            self._launch()

    def close(self) -> None:
        """Ask the worker to persist its session state, then terminate it."""
        with self._lifecycle_lock:
            if not self.is_running():
                return
            try:
                response = self.call(WorkerAction.CLOSE, timeout=self.close_timeout)
                if not response.success:
                    logger.warning("Worker reported an error while closing: %s", response.error)
            except WorkerError as e:
                logger.warning("Worker did not acknowledge close: %s", e)
            self._terminate()

    def _probe(self) -> bool:
        try:
            response = self.call(WorkerAction.IS_ALIVE, timeout=self.probe_timeout)
        except WorkerError as e:
            logger.debug("Liveness probe failed: %s", e)
            return False
        return response.success

    def _launch(self) -> None:
        logger.info("Starting worker: %s", " ".join(self._worker_command))
        try:
            process = subprocess.Popen(
                self._worker_command,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
                bufsize=1,
            )
        except OSError as e:
            raise WorkerStartupError(
                f"Could not launch the worker process: {e}",
                next_action="Check that blinkit-agent is installed in the worker interpreter.",
            ) from e

        reader = threading.Thread(
            target=self._read_loop,
            args=(process,),
            name=f"worker-reader-{process.pid}",
            daemon=True,
        )
        with self._lock:
            self._process = process
            self._reader = reader
        reader.start()

        try:
            alive = self.call(WorkerAction.IS_ALIVE, timeout=self.startup_timeout)
            if not alive.success:
                raise WorkerStartupError(f"Worker rejected its first probe: {alive.error}")
            response = self.call(WorkerAction.INIT, self._init_params(), timeout=self.command_timeout)
            if not response.success:
                raise WorkerStartupError(f"Worker init failed: {response.error}")
            init_result = parse_result(WorkerAction.INIT, response)
            if not isinstance(init_result, InitResult):
                raise ProtocolError(f"Unexpected init result: {init_result!r}")
        except WorkerError as e:
            self._terminate()
            raise WorkerStartupError(
                f"Worker failed to start: {e.message}",
                next_action="Run `playwright install firefox` if the browser is missing, then retry.",
            ) from e

        self._init_result = init_result
        if init_result.store_warning:
            logger.warning("Store availability at startup: %s", init_result.store_warning)
        logger.info("Worker ready (pid %s)", process.pid)

    def _terminate(self) -> None:
        with self._lock:
            process = self._process
            reader = self._reader
            self._process = None
            self._reader = None
        if process is None:
            return

        if process.poll() is None:
            process.terminate()
            try:
                process.wait(timeout=self.close_timeout)
            except subprocess.TimeoutExpired:
                logger.warning("Worker did not exit after SIGTERM, killing it")
                process.kill()
                process.wait()

        # the reader fails any calls still pending on this process once it sees EOF
        if reader is not None and reader is not threading.current_thread():
            reader.join(timeout=self.close_timeout)

    # Calls _______________________________________________________________________________________

    def send_command(
        self,
        action: WorkerAction,
        params: BaseModel | dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> "Future[WorkerResponse]":
        """
        Send a command and return a Future for its response.

        The Future resolves with the WorkerResponse (success or not) or fails with
        WorkerTimeoutError, WorkerCrashedError or ProtocolError.
        Raises:
            ProtocolError: If params do not fit the action.
            WorkerNotRunningError: If no worker process is running.
        """
        timeout = self.command_timeout if timeout is None else timeout
        future: Future[WorkerResponse] = Future()

        with self._lock:
            process = self._process
            if process is None or process.poll() is not None:
                raise WorkerNotRunningError("The worker is not running.", next_action=_RETRY_HINT)

            command_id = uuid.uuid4().hex
            while command_id in self._pending:
                command_id = uuid.uuid4().hex
            command = build_command(command_id, action, params)

            timer = threading.Timer(timeout, self._expire, args=(command_id, timeout))
            timer.daemon = True
            self._pending[command_id] = PendingCall(
                command_id=command_id,
                action=action,
                future=future,
                timer=timer,
                process=process,
            )
            timer.start()

        logger.debug("-> %s %s", command_id[:8], action)
        try:
            with self._write_lock:
                process.stdin.write(command.model_dump_json() + "\n")
                process.stdin.flush()
        except (OSError, ValueError) as e:
            self._reject(
                command_id,
                WorkerCrashedError(f"Could not write '{action}' to the worker: {e}", next_action=_RETRY_HINT),
            )
        return future

    def call(
        self,
        action: WorkerAction,
        params: BaseModel | dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> WorkerResponse:
        """Send a command and block until its response, timeout or crash."""
        return self.send_command(action, params, timeout=timeout).result()

    def _settle(self, command_id: str) -> PendingCall | None:
        """Remove and return the PendingCall for an id; None if it was already settled."""
        with self._lock:
            pending = self._pending.pop(command_id, None)
        if pending is not None:
            pending.timer.cancel()
        return pending

    def _resolve(self, response: WorkerResponse) -> None:
        pending = self._settle(response.id)
        if pending is None:
            logger.debug("Discarding response for settled command %s", response.id[:8])
            return
        logger.debug("<- %s %s success=%s", response.id[:8], pending.action, response.success)
        pending.future.set_result(response)

    def _reject(self, command_id: str, error: WorkerError) -> None:
        pending = self._settle(command_id)
        if pending is not None:
            pending.future.set_exception(error)

    def _expire(self, command_id: str, timeout: float) -> None:
        pending = self._settle(command_id)
        if pending is None:
            return
        logger.warning("Worker command '%s' timed out after %gs", pending.action, timeout)
        pending.future.set_exception(WorkerTimeoutError(
            f"Worker command '{pending.action}' timed out after {timeout:g}s. The action may still complete.",
            next_action="Check the current state (for example with get_cart) before retrying.",
        ))

    # Reader ______________________________________________________________________________________

    def _read_loop(self, process: subprocess.Popen) -> None:
        # every exit path settles the calls still pending on this process
        try:
            self._read_responses(process)
        except (OSError, ValueError) as e:
            logger.error("Reading worker stdout failed, stopping the worker: %s", e)
            process.kill()
        finally:
            returncode = process.wait()
            self._handle_exit(process, returncode)

    def _read_responses(self, process: subprocess.Popen) -> None:
        if process.stdout is None:
            raise ValueError("worker stdout is not a pipe")
        for raw_line in process.stdout:
            line = raw_line.strip()
            if not line:
                continue
            try:
                payload = json.loads(line)
            except json.JSONDecodeError:
                logger.warning("Ignoring non-JSON line on worker stdout: %s", line[:200])
                continue
            try:
                response = WorkerResponse.model_validate(payload)
            except ValidationError as e:
                command_id = payload.get("id") if isinstance(payload, dict) else None
                if isinstance(command_id, str):
                    self._reject(command_id, ProtocolError(f"Malformed response for command {command_id[:8]}: {e}"))
                else:
                    logger.warning("Ignoring malformed response line: %s", line[:200])
                continue
            self._resolve(response)

    def _handle_exit(self, process: subprocess.Popen, returncode: int) -> None:
        with self._lock:
            if self._process is process:
                self._process = None
                self._reader = None
            orphaned = [p for p in self._pending.values() if p.process is process]
            for pending in orphaned:
                del self._pending[pending.command_id]

        if orphaned:
            logger.error("Worker exited with code %s, failing %d pending commands", returncode, len(orphaned))
        else:
            logger.info("Worker exited with code %s", returncode)

        for pending in orphaned:
            pending.timer.cancel()
            pending.future.set_exception(WorkerCrashedError(
                f"The worker exited (code {returncode}) before answering '{pending.action}'.",
                next_action=_RETRY_HINT,
            ))
