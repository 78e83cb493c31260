"""
blinkit_agent/utils/geo.py

Approximate geolocation from the machine's public IP address.
"""

import requests

from blinkit_agent.constants import GEO_LOOKUP_TIMEOUT, GEO_LOOKUP_URL
from blinkit_agent.utils.logger import get_logger

logger = get_logger(name=__name__)


def locate_from_ip(timeout: float = GEO_LOOKUP_TIMEOUT) -> tuple[float, float] | None:
    """
    Look up (lat, lon) for the current public IP.
    Returns:
        tuple[float, float] | None: Coordinates, or None when the lookup fails for any reason.
    """
    try:
        response = requests.get(GEO_LOOKUP_URL, timeout=timeout)
        data = response.json()
    except (requests.RequestException, ValueError) as e:
        logger.debug("IP geolocation failed: %s", e)
        return None

    if not isinstance(data, dict) or data.get("status") != "success":
        return None
    try:
        return float(data["lat"]), float(data["lon"])
    except (KeyError, TypeError, ValueError):
        return None
