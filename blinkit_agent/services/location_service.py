"""
blinkit_agent/services/location_service.py

Delivery location and saved address selection.
"""

from typing import Any

from blinkit_agent.data_models.protocol import AddressIndexParams, LocationParams, WorkerAction
from blinkit_agent.exceptions import WorkflowError
from blinkit_agent.services.base import BaseService


class LocationService(BaseService):

    def set_location(self, address_query: str, lat: float | None = None, lon: float | None = None) -> dict[str, Any]:
        """
        Search for ``address_query`` and pick the first suggestion. When coordinates
        are given they become the session's delivery location for future workers.
        """
        self._require_login()
        if not address_query or not address_query.strip():
            raise WorkflowError("Address query must not be empty.")

        result = self._dispatch(WorkerAction.SET_LOCATION, LocationParams(address_query=address_query.strip()))
        if lat is not None and lon is not None:
            self.context.session_store.set_location(lat, lon)
        return result.model_dump()

    def get_saved_addresses(self) -> dict[str, Any]:
        self._require_login()
        return self._dispatch(WorkerAction.GET_ADDRESSES).model_dump()

    def select_address(self, index: int) -> dict[str, Any]:
        self._require_login()
        return self._dispatch(WorkerAction.SELECT_ADDRESS, AddressIndexParams(index=index)).model_dump()
