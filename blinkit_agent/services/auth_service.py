"""
blinkit_agent/services/auth_service.py

Login, OTP entry, login status and logout.
"""

from typing import Any

from blinkit_agent.data_models.protocol import LoginParams, OtpParams, WorkerAction
from blinkit_agent.services.base import BaseService
from blinkit_agent.utils.logger import get_logger

logger = get_logger(name=__name__)


class AuthService(BaseService):

    def check_login_status(self) -> dict[str, Any]:
        """
        Report whether the user is logged in. Uses the cached session when no worker
        is running and there is no saved browser state to check against.
        """
        store = self.context.session_store
        if not self.context.supervisor.is_running() and not self.context.storage_state_path.exists():
            return {"logged_in": store.is_authenticated(), "phone": store.phone, "source": "cache"}

        status = self._dispatch(WorkerAction.IS_LOGGED_IN)
        if status.logged_in:
            self._dispatch(WorkerAction.SAVE_SESSION)
        store.set_logged_in(status.logged_in)
        return {"logged_in": status.logged_in, "phone": store.phone, "source": "browser"}

    def login(self, phone_number: str) -> dict[str, Any]:
        """Start phone login. Returns early when the session is already valid."""
        status = self.check_login_status()
        if status["logged_in"]:
            return {"success": True, "message": "Already logged in with valid session."}

        self._dispatch(WorkerAction.LOGIN, LoginParams(phone_number=phone_number))
        self.context.session_store.set_logged_in(False, phone=phone_number)
        return {"success": True, "message": "OTP sent to your phone. Use the enter_otp tool to complete login."}

    def enter_otp(self, otp: str) -> dict[str, Any]:
        result = self._dispatch(WorkerAction.ENTER_OTP, OtpParams(otp=otp))
        if result.logged_in:
            self.context.session_store.set_logged_in(True)
            return {"success": True, "logged_in": True, "message": "Successfully logged in!"}
        return {
            "success": True,
            "logged_in": False,
            "message": "OTP entered, but login could not be confirmed from the page. Use check_login_status to verify.",
        }

    def logout(self) -> dict[str, Any]:
        self.context.session_store.clear()
        self.context.supervisor.close()
        logger.info("Logged out")
        return {"success": True, "message": "Logged out."}
