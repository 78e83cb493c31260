"""
blinkit_agent/context.py

Process-wide application context: one instance of each shared component.

Contains:
- AppContext: settings, session store, rate limiter, spend guard, known-item memory,
  HTTP client and worker supervisor, plus the worker init payload builder
"""

from pathlib import Path

from blinkit_agent.config import Config, load_settings
from blinkit_agent.constants import (
    COOKIES_DIR,
    DEFAULT_LAT,
    DEFAULT_LON,
    SCREENSHOTS_DIR,
    STORAGE_STATE_FILE,
)
from blinkit_agent.core.http_client import BlinkitHttpClient
from blinkit_agent.core.known_items import KnownItemMemory
from blinkit_agent.core.rate_limiter import RateLimiter
from blinkit_agent.core.session_store import SessionStore
from blinkit_agent.core.spend_guard import SpendGuard
from blinkit_agent.core.worker_supervisor import WorkerSupervisor
from blinkit_agent.data_models.protocol import InitParams
from blinkit_agent.data_models.settings import Settings
from blinkit_agent.utils.geo import locate_from_ip
from blinkit_agent.utils.logger import get_logger

logger = get_logger(name=__name__)


class AppContext:
    """
    Owns the components shared by all services. Known-item memory lives here,
    in the orchestrator, so a worker restart never loses it.
    """

    def __init__(
        self,
        data_dir: Path | None = None,
        settings: Settings | None = None,
        worker_command: list[str] | None = None,
    ) -> None:
        self.data_dir = Path(data_dir) if data_dir is not None else Config.DATA_DIR
        self.settings = settings or load_settings(self.data_dir)
        self.session_store = SessionStore(self.data_dir)
        self.session_store.load()
        self.rate_limiter = RateLimiter()
        self.spend_guard = SpendGuard.from_settings(self.settings)
        self.memory = KnownItemMemory()
        self.http_client = BlinkitHttpClient(rate_limiter=self.rate_limiter)
        self.supervisor = WorkerSupervisor(init_params=self.init_params, worker_command=worker_command)

    @property
    def storage_state_path(self) -> Path:
        return self.data_dir / COOKIES_DIR / STORAGE_STATE_FILE

    @property
    def screenshot_dir(self) -> Path:
        return self.data_dir / SCREENSHOTS_DIR

    def resolve_location(self) -> tuple[float, float]:
        """
        Delivery coordinates, taken from the first source that has them:
        the session, the settings defaults, IP geolocation, then the built-in default.
        """
        session = self.session_store.session
        if session.lat is not None and session.lon is not None:
            return session.lat, session.lon
        if self.settings.default_lat is not None and self.settings.default_lon is not None:
            return self.settings.default_lat, self.settings.default_lon
        located = locate_from_ip()
        if located is not None:
            logger.info("Using IP geolocation %.4f, %.4f", *located)
            return located
        return DEFAULT_LAT, DEFAULT_LON

    def init_params(self) -> InitParams:
        lat, lon = self.resolve_location()
        return InitParams(
            headless=self.settings.headless,
            debug=self.settings.debug,
            slow_mo=self.settings.slow_mo,
            lat=lat,
            lon=lon,
            storage_state_path=str(self.storage_state_path),
            screenshot_dir=str(self.screenshot_dir),
        )

    def close(self) -> None:
        self.supervisor.close()
