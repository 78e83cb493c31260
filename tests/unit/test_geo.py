"""
tests/unit/test_geo.py

Unit tests for IP geolocation.
"""

from unittest.mock import MagicMock, patch

import requests

from blinkit_agent.utils.geo import locate_from_ip


def fake_response(payload: object) -> MagicMock:
    response = MagicMock()
    response.json.return_value = payload
    return response


class TestLocateFromIp:

    def test_success(self) -> None:
        with patch("blinkit_agent.utils.geo.requests.get", return_value=fake_response(
            {"status": "success", "lat": 19.07, "lon": 72.87},
        )):
            assert locate_from_ip() == (19.07, 72.87)

    def test_failed_lookup_status(self) -> None:
        with patch("blinkit_agent.utils.geo.requests.get", return_value=fake_response({"status": "fail"})):
            assert locate_from_ip() is None

    def test_network_error_never_raises(self) -> None:
        with patch("blinkit_agent.utils.geo.requests.get", side_effect=requests.ConnectionError("offline")):
            assert locate_from_ip() is None

    def test_missing_coordinates(self) -> None:
        with patch("blinkit_agent.utils.geo.requests.get", return_value=fake_response({"status": "success"})):
            assert locate_from_ip() is None
