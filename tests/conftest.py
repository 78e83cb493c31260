"""
tests/conftest.py

Configuration for pytest.
"""

import sys
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest

from blinkit_agent.context import AppContext
from blinkit_agent.core.worker_supervisor import WorkerSupervisor
from blinkit_agent.data_models.catalog import Product
from blinkit_agent.data_models.protocol import InitParams, WorkerAction, WorkerResponse
from blinkit_agent.data_models.settings import Settings


class FakeClock:
    """Manual clock whose sleep advances time instead of blocking."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture(scope="session")
def tests_root() -> Path:
    """
    Root directory for tests.
    Returns:
        Path to the tests directory.
    """
    return Path(__file__).parent.resolve()


@pytest.fixture(scope="session")
def data_dir(tests_root: Path) -> Path:
    """
    Directory containing test data files.
    Returns:
        Path to tests/data.
    """
    return tests_root / "data"


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_worker_command(data_dir: Path) -> list[str]:
    """argv that starts the scripted fake worker."""
    return [sys.executable, str(data_dir / "fake_worker.py")]


@pytest.fixture
def make_supervisor(fake_worker_command: list[str]) -> Iterator[Callable[..., WorkerSupervisor]]:
    """
    Factory fixture for supervisors running the fake worker. Every supervisor
    created is closed at teardown.

    Usage:
        supervisor = make_supervisor(command_timeout=0.5)
    """
    created: list[WorkerSupervisor] = []

    def factory(**kwargs: Any) -> WorkerSupervisor:
        kwargs.setdefault("command_timeout", 5.0)
        kwargs.setdefault("startup_timeout", 5.0)
        kwargs.setdefault("probe_timeout", 2.0)
        kwargs.setdefault("close_timeout", 2.0)
        supervisor = WorkerSupervisor(init_params=InitParams, worker_command=fake_worker_command, **kwargs)
        created.append(supervisor)
        return supervisor

    yield factory
    for supervisor in created:
        supervisor.close()


@pytest.fixture
def make_product() -> Callable[..., Product]:
    """
    Factory fixture to create a Product with hardcoded defaults.

    Usage:
        product = make_product(id="123", name="Amul Milk")
    """
    def factory(**kwargs: Any) -> Product:
        defaults: dict[str, Any] = {"id": "10001", "name": "Amul Taaza Toned Milk", "price": 27.0, "unit": "500 ml"}
        defaults.update(kwargs)
        return Product(**defaults)

    return factory


@pytest.fixture
def app_context(tmp_path: Path) -> AppContext:
    """
    AppContext over a temporary data dir with a mocked supervisor.

    Calls made through ``app_context.supervisor.call`` are answered by
    ``app_context.worker_responses``: a dict from WorkerAction to response data
    (a dict for success, an Exception instance to raise, or a str for an error response).
    """
    context = AppContext(data_dir=tmp_path, settings=Settings(default_lat=28.6, default_lon=77.2, screenshot_on_error=False))
    context.rate_limiter = MagicMock()
    context.http_client = MagicMock()
    context.worker_responses = {}
    context.sent = []

    def call(action: WorkerAction, params: Any = None, timeout: float | None = None) -> WorkerResponse:
        context.sent.append((action, params))
        outcome = context.worker_responses.get(action, {})
        if callable(outcome) and not isinstance(outcome, type):
            outcome = outcome(params)
        if isinstance(outcome, Exception):
            raise outcome
        if isinstance(outcome, str):
            return WorkerResponse(id="x", success=False, error=outcome)
        return WorkerResponse(id="x", success=True, data=outcome)

    supervisor = MagicMock(spec=WorkerSupervisor)
    supervisor.call.side_effect = call
    supervisor.is_running.return_value = True
    context.supervisor = supervisor
    return context


@pytest.fixture
def logged_in_context(app_context: AppContext) -> AppContext:
    app_context.session_store.set_logged_in(True, phone="9999999999")
    return app_context
