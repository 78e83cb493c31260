"""
blinkit_agent/core/http_client.py

Rate-limited JSON HTTP client for the catalogue endpoints.

Every request waits on the shared RateLimiter before it goes out.
"""

from dataclasses import dataclass
from typing import Any

import requests

from blinkit_agent.constants import DEFAULT_HEADERS, HTTP_REQUEST_TIMEOUT
from blinkit_agent.core.rate_limiter import RateLimiter
from blinkit_agent.exceptions import WorkflowError
from blinkit_agent.utils.logger import get_logger

logger = get_logger(name=__name__)


@dataclass(frozen=True)
class HttpResult:
    """Decoded response: whether the status was 2xx, the status code and the JSON body."""
    ok: bool
    status: int
    data: Any


class BlinkitHttpClient:
    """
    Thin wrapper around a requests.Session with default headers and a timeout.
    """

    def __init__(
        self,
        rate_limiter: RateLimiter,
        timeout: float = HTTP_REQUEST_TIMEOUT,
        session: requests.Session | None = None,
    ) -> None:
        self.rate_limiter = rate_limiter
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(DEFAULT_HEADERS)

    def request(
        self,
        method: str,
        url: str,
        body: Any = None,
        extra_headers: dict[str, str] | None = None,
    ) -> HttpResult:
        """
        Send a request and decode the JSON body.
        Raises:
            WorkflowError: On timeout, connection failure or a non-JSON body.
        """
        self.rate_limiter.acquire()
        logger.debug("HTTP %s %s", method, url)

        try:
            response = self.session.request(
                method=method,
                url=url,
                json=body,
                headers=extra_headers,
                timeout=self.timeout,
            )
        except requests.Timeout as e:
            logger.error("HTTP request timed out: %s", url)
            raise WorkflowError(
                f"HTTP {method} request to {url} timed out after {self.timeout:g}s.",
                next_action="Blinkit may be slow or unreachable. Check your network connection.",
            ) from e
        except requests.RequestException as e:
            logger.error("HTTP request failed: %s: %s", url, e)
            raise WorkflowError(
                f"HTTP {method} request to {url} failed: {e}.",
                next_action="Check your network connection and that Blinkit is accessible.",
            ) from e

        try:
            data = response.json()
        except ValueError as e:
            raise WorkflowError(f"HTTP {method} {url} returned a non-JSON body (status {response.status_code}).") from e

        return HttpResult(ok=response.ok, status=response.status_code, data=data)

    def get(self, url: str, extra_headers: dict[str, str] | None = None) -> HttpResult:
        return self.request("GET", url, extra_headers=extra_headers)

    def post(self, url: str, body: Any = None, extra_headers: dict[str, str] | None = None) -> HttpResult:
        return self.request("POST", url, body=body, extra_headers=extra_headers)
