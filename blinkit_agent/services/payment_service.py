"""
blinkit_agent/services/payment_service.py

UPI payment on the payment screen.
"""

from blinkit_agent.constants import PAYMENT_NAVIGATION_DEADLINE
from blinkit_agent.data_models.outcomes import NavigationOutcome
from blinkit_agent.data_models.protocol import NavigateParams, UpiParams, UpiIdsResult, WorkerAction
from blinkit_agent.services.base import BaseService


class PaymentService(BaseService):

    def navigate_to_payment(self, deadline_seconds: float = PAYMENT_NAVIGATION_DEADLINE) -> NavigationOutcome:
        self._require_login()
        return self._dispatch(WorkerAction.NAVIGATE_TO_PAYMENT, NavigateParams(deadline_seconds=deadline_seconds))

    def get_upi_ids(self) -> UpiIdsResult:
        """Saved UPI ids; the worker advances to the payment widget first if needed."""
        self._require_login()
        return self._dispatch(WorkerAction.GET_UPI_IDS)

    def select_upi_id(self, upi_id: str) -> bool:
        self._require_login()
        return self._dispatch(WorkerAction.SELECT_UPI_ID, UpiParams(upi_id=upi_id)).selected

    def pay_now(self) -> str:
        self._require_login()
        return self._dispatch(WorkerAction.PAY_NOW).message
