"""
blinkit_agent/config.py

Environment variable configuration and user settings loading.

Contains:
- Config: Process-level settings from environment variables
- load_settings(): User settings from <DATA_DIR>/config.json merged with BLINKIT_* overrides
"""

import json
import logging
import os
import sys
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import ValidationError

from blinkit_agent.constants import CONFIG_FILE, DEFAULT_DATA_DIR
from blinkit_agent.data_models.settings import Settings
from blinkit_agent.exceptions import ConfigurationError

load_dotenv()

# keep urllib3 connection chatter out of the worker side channel
logging.getLogger("urllib3").setLevel(logging.WARNING)


class Config():
    """
    Centralized configuration for environment variables.
    """

    # logging configuration
    LOG_LEVEL: int = logging.getLevelNamesMapping().get(
        os.getenv("LOG_LEVEL", "INFO").upper(),
        logging.INFO
    )
    LOG_DATE_FORMAT: str = os.getenv("LOG_DATE_FORMAT", "%Y-%m-%d %H:%M:%S")
    LOG_FORMAT: str = os.getenv("LOG_FORMAT", "[%(asctime)s] %(levelname)s:%(name)s:%(message)s")

    # on-disk state (session file, browser storage state, config.json, screenshots)
    DATA_DIR: Path = Path(os.getenv("BLINKIT_DATA_DIR", str(Path.home() / DEFAULT_DATA_DIR))).expanduser()

    # interpreter used to launch the worker process
    WORKER_PYTHON: str = os.getenv("BLINKIT_WORKER_PYTHON", sys.executable)

    @classmethod
    def as_dict(cls) -> dict[str, Any]:
        """
        Return a dictionary of all UPPERCASE class attributes and their values.
        Return:
            dict[str, Any]: A dictionary of all UPPERCASE class attributes and their values.
        """
        return {
            key: getattr(cls, key)
            for key in dir(cls)
            if key.isupper()
        }


# Private functions _______________________________________________________________________________

def _load_file_settings(path: Path) -> dict[str, Any]:
    """Read the JSON settings file; a missing or unreadable file is an empty layer."""
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError):
        return {}
    return data if isinstance(data, dict) else {}


def _load_env_overrides(env: dict[str, str]) -> dict[str, Any]:
    """Collect BLINKIT_* overrides. Values are left as strings for pydantic to coerce."""
    overrides: dict[str, Any] = {}
    if env.get("BLINKIT_DEFAULT_LAT"):
        overrides["default_lat"] = env["BLINKIT_DEFAULT_LAT"]
    if env.get("BLINKIT_DEFAULT_LON"):
        overrides["default_lon"] = env["BLINKIT_DEFAULT_LON"]
    if env.get("BLINKIT_WARN_THRESHOLD"):
        overrides["warn_threshold"] = env["BLINKIT_WARN_THRESHOLD"]
    if env.get("BLINKIT_MAX_ORDER_AMOUNT"):
        overrides["max_order_amount"] = env["BLINKIT_MAX_ORDER_AMOUNT"]
    if env.get("BLINKIT_HEADLESS"):
        overrides["headless"] = env["BLINKIT_HEADLESS"] != "false"
    if env.get("BLINKIT_DEBUG"):
        overrides["debug"] = env["BLINKIT_DEBUG"] == "true"
    if env.get("BLINKIT_SLOW_MO"):
        overrides["slow_mo"] = env["BLINKIT_SLOW_MO"]
    if env.get("BLINKIT_SCREENSHOT_ON_ERROR"):
        overrides["screenshot_on_error"] = env["BLINKIT_SCREENSHOT_ON_ERROR"] != "false"
    return overrides


# Exports _________________________________________________________________________________________

def load_settings(
    data_dir: Path | None = None,
    env: dict[str, str] | None = None,
) -> Settings:
    """
    Load user settings from the config file, with environment overrides taking precedence.
    Args:
        data_dir (Path | None): Directory holding config.json. Defaults to Config.DATA_DIR.
        env (dict[str, str] | None): Environment mapping. Defaults to os.environ.
    Returns:
        Settings: The validated settings.
    Raises:
        ConfigurationError: If the merged values fail validation.
    """
    data_dir = data_dir if data_dir is not None else Config.DATA_DIR
    env = dict(os.environ) if env is None else env
    merged = {
        **_load_file_settings(data_dir / CONFIG_FILE),
        **_load_env_overrides(env),
    }
    try:
        return Settings.model_validate(merged)
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid settings in {data_dir / CONFIG_FILE} or BLINKIT_* environment: {e}",
            next_action="Fix the offending value and restart.",
        ) from e
