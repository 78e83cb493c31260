"""
blinkit_agent/core/session_store.py

Durable session record ({phone, lat, lon, logged_in}) kept in <DATA_DIR>/auth.json.

The file is rewritten after every mutation and is readable only by the owning user.
"""

import json
import os
from pathlib import Path

from pydantic import ValidationError

from blinkit_agent.constants import AUTH_FILE
from blinkit_agent.data_models.session import SessionData
from blinkit_agent.utils.logger import get_logger

logger = get_logger(name=__name__)


class SessionStore:
    """
    Loads, mutates and persists the user session.
    """

    def __init__(self, data_dir: Path) -> None:
        self.data_dir = Path(data_dir)
        self.path = self.data_dir / AUTH_FILE
        self._session = SessionData()

    @property
    def session(self) -> SessionData:
        return self._session

    def load(self) -> SessionData:
        """Read the session from disk, falling back to the default session."""
        if not self.path.exists():
            logger.debug("No session file at %s, using default session", self.path)
            return self._session
        try:
            self._session = SessionData.model_validate(json.loads(self.path.read_text(encoding="utf-8")))
            logger.info("Session loaded from %s", self.path)
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            logger.warning("Failed to load session file, using default session: %s", e)
            self._session = SessionData()
        return self._session

    def save(self) -> None:
        """Write the session to disk with owner-only permissions."""
        self.data_dir.mkdir(mode=0o700, parents=True, exist_ok=True)
        fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        # a file created earlier under a looser umask is tightened too
        os.fchmod(fd, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(self._session.model_dump_json(indent=2))
        logger.debug("Session saved to %s", self.path)

    def clear(self) -> None:
        """Delete the session file and reset to the default session."""
        self.path.unlink(missing_ok=True)
        self._session = SessionData()
        logger.info("Session cleared")

    def is_authenticated(self) -> bool:
        return self._session.logged_in

    @property
    def phone(self) -> str | None:
        return self._session.phone

    def set_location(self, lat: float, lon: float) -> None:
        self._session = self._session.model_copy(update={"lat": lat, "lon": lon})
        self.save()

    def set_logged_in(self, logged_in: bool, phone: str | None = None) -> None:
        update: dict[str, object] = {"logged_in": logged_in}
        if phone is not None:
            update["phone"] = phone
        self._session = self._session.model_copy(update=update)
        self.save()
