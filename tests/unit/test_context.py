"""
tests/unit/test_context.py

Tests for delivery location resolution and the worker init payload.
"""

from pathlib import Path
from unittest.mock import patch

from blinkit_agent.constants import DEFAULT_LAT, DEFAULT_LON
from blinkit_agent.context import AppContext
from blinkit_agent.data_models.settings import Settings


class TestResolveLocation:
    """Session first, then settings, then IP lookup, then the built-in default."""

    def test_session_wins(self, tmp_path: Path) -> None:
        context = AppContext(data_dir=tmp_path, settings=Settings(default_lat=28.6, default_lon=77.2))
        context.session_store.set_location(12.97, 77.64)
        with patch("blinkit_agent.context.locate_from_ip") as locate:
            assert context.resolve_location() == (12.97, 77.64)
        locate.assert_not_called()

    def test_settings_before_ip(self, tmp_path: Path) -> None:
        context = AppContext(data_dir=tmp_path, settings=Settings(default_lat=28.6, default_lon=77.2))
        with patch("blinkit_agent.context.locate_from_ip") as locate:
            assert context.resolve_location() == (28.6, 77.2)
        locate.assert_not_called()

    def test_ip_lookup(self, tmp_path: Path) -> None:
        context = AppContext(data_dir=tmp_path, settings=Settings())
        with patch("blinkit_agent.context.locate_from_ip", return_value=(19.07, 72.87)):
            assert context.resolve_location() == (19.07, 72.87)

    def test_default_when_lookup_fails(self, tmp_path: Path) -> None:
        context = AppContext(data_dir=tmp_path, settings=Settings())
        with patch("blinkit_agent.context.locate_from_ip", return_value=None):
            assert context.resolve_location() == (DEFAULT_LAT, DEFAULT_LON)


def test_init_params_carry_paths_and_display(tmp_path: Path) -> None:
    context = AppContext(data_dir=tmp_path, settings=Settings(default_lat=28.6, default_lon=77.2, headless=False, slow_mo=50))
    params = context.init_params()
    assert not params.headless
    assert params.slow_mo == 50
    assert params.storage_state_path == str(tmp_path / "cookies" / "auth.json")
    assert params.lat == 28.6
