"""
tests/unit/test_session_store.py

Unit tests for the persisted session record.
"""

import os
import stat
from pathlib import Path

from blinkit_agent.core.session_store import SessionStore


class TestSessionStore:

    def test_missing_file_gives_default_session(self, tmp_path: Path) -> None:
        session = SessionStore(tmp_path).load()
        assert not session.logged_in
        assert session.phone is None

    def test_round_trip_through_disk(self, tmp_path: Path) -> None:
        store = SessionStore(tmp_path)
        store.set_logged_in(True, phone="9876543210")
        store.set_location(12.97, 77.59)

        reloaded = SessionStore(tmp_path)
        reloaded.load()
        assert reloaded.is_authenticated()
        assert reloaded.phone == "9876543210"
        assert reloaded.session.lat == 12.97
        assert reloaded.session.lon == 77.59

    def test_file_is_owner_only(self, tmp_path: Path) -> None:
        store = SessionStore(tmp_path / "state")
        store.set_logged_in(False)
        assert stat.S_IMODE(store.path.stat().st_mode) == 0o600

    def test_file_is_never_created_with_looser_mode(self, tmp_path: Path, monkeypatch) -> None:
        modes = []
        real_open = os.open

        def recording_open(path, flags, mode=0o777):
            if Path(path).name == "auth.json":
                modes.append(mode)
            return real_open(path, flags, mode)

        monkeypatch.setattr("blinkit_agent.core.session_store.os.open", recording_open)
        SessionStore(tmp_path).set_logged_in(True)
        assert modes == [0o600]

    def test_existing_loose_file_is_tightened(self, tmp_path: Path) -> None:
        path = tmp_path / "auth.json"
        path.write_text("{}", encoding="utf-8")
        path.chmod(0o644)
        SessionStore(tmp_path).set_logged_in(True)
        assert stat.S_IMODE(path.stat().st_mode) == 0o600

    def test_corrupt_file_falls_back(self, tmp_path: Path) -> None:
        (tmp_path / "auth.json").write_text("{broken", encoding="utf-8")
        assert not SessionStore(tmp_path).load().logged_in

    def test_logout_keeps_phone_unless_given(self, tmp_path: Path) -> None:
        store = SessionStore(tmp_path)
        store.set_logged_in(True, phone="111")
        store.set_logged_in(False)
        assert store.phone == "111"

    def test_clear_removes_file(self, tmp_path: Path) -> None:
        store = SessionStore(tmp_path)
        store.set_logged_in(True)
        store.clear()
        assert not store.path.exists()
        assert not store.is_authenticated()
