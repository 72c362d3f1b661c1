"""pytest configuration file."""

import io
import pytest

from skipmedia import TICKS_PER_SECOND, NowPlayingItem, PlaybackSession, PlayState, PlaystateCommandEvent
from skipmedia.session_manager import SessionManager

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (may take several seconds)"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests that open sockets or spawn threads"
    )

def make_session(session_id: str, path: str | None, seconds: float | None, user_id: str = "user1") -> PlaybackSession:
    ticks = int(seconds * TICKS_PER_SECOND) if seconds is not None else None
    return PlaybackSession(session_id, user_id, NowPlayingItem(path) if path is not None else None, PlayState(ticks))

@pytest.fixture
def log_output():
    return io.StringIO()

@pytest.fixture
def session_manager(log_output):
    return SessionManager(log_output)

@pytest.fixture
def commands(session_manager):
    """Every playstate command the session manager hands out"""
    received: list[PlaystateCommandEvent] = []
    session_manager.add_command_listener(received.append)
    return received

@pytest.fixture
def movie(tmp_path):
    media = tmp_path / "movies" / "foo.mkv"
    media.parent.mkdir()
    media.write_bytes(b"")
    (tmp_path / "movies" / "foo.edl").write_text("60 180\n300 330\n")
    return media
