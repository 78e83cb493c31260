"""
blinkit_agent/services/base.py

Shared dispatch for the workflow services.
"""

from typing import Any

from pydantic import BaseModel

from blinkit_agent.constants import CRITICAL_ERROR_PREFIX
from blinkit_agent.context import AppContext
from blinkit_agent.data_models.protocol import ScreenshotParams, WorkerAction, parse_result
from blinkit_agent.exceptions import LoginRequiredError, StoreUnavailableError, WorkerError, WorkflowError
from blinkit_agent.utils.logger import get_logger

logger = get_logger(name=__name__)


class BaseService:
    """
    Base class for services that drive the worker.

    `_dispatch` makes sure a worker is ready, waits for a rate-limit token,
    sends one typed command and returns its validated result model. Failure
    responses become StoreUnavailableError (``CRITICAL: `` prefix) or WorkflowError.
    """

    def __init__(self, context: AppContext) -> None:
        self.context = context

    def _dispatch(
        self,
        action: WorkerAction,
        params: BaseModel | dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> Any:
        supervisor = self.context.supervisor
        supervisor.ensure_ready()
        self.context.rate_limiter.acquire()
        response = supervisor.call(action, params, timeout=timeout)

        if response.success:
            return parse_result(action, response)

        error = response.error or f"Worker action '{action}' failed."
        self._capture_error_screenshot(action)
        if error.startswith(CRITICAL_ERROR_PREFIX):
            raise StoreUnavailableError(
                error[len(CRITICAL_ERROR_PREFIX):],
                next_action="Try again later or set a different delivery location.",
            )
        raise WorkflowError(error)

    def _capture_error_screenshot(self, action: WorkerAction) -> None:
        if not self.context.settings.screenshot_on_error:
            return
        try:
            response = self.context.supervisor.call(WorkerAction.SCREENSHOT, ScreenshotParams(label=action.value))
        except WorkerError as e:
            logger.warning("Error screenshot for %s failed: %s", action, e)
            return
        if response.success and isinstance(response.data, dict):
            logger.info("Saved error screenshot for %s: %s", action, response.data.get("path"))
        else:
            logger.warning("Error screenshot for %s failed: %s", action, response.error)

    def _require_login(self) -> None:
        if not self.context.session_store.is_authenticated():
            raise LoginRequiredError(
                "Not logged in.",
                next_action="Use login with your phone number, then enter_otp.",
            )
