import pytest

from conftest import make_session
from skipmedia import CommandDeliveryError, PlaystateCommand, PlaystateRequest, SessionNotFound


def test_snapshot_is_a_copy(session_manager):
    session_manager.update_sessions([make_session("s1", "/a.mkv", 1)])
    snapshot = session_manager.sessions
    snapshot.clear()
    assert [s.id for s in session_manager.sessions] == ["s1"]
    assert session_manager.get_session("s1").user_id == "user1"
    assert session_manager.get_session("nope") is None


def test_update_reports_vanished_sessions(session_manager):
    ended = []
    session_manager.subscribe_session_ended(lambda s: ended.append(s.id))
    session_manager.update_sessions([make_session("s1", "/a.mkv", 1), make_session("s2", "/b.mkv", 1)])
    session_manager.update_sessions([make_session("s2", "/b.mkv", 5)])
    assert ended == ["s1"]


def test_end_session(session_manager):
    ended = []
    session_manager.subscribe_session_ended(lambda s: ended.append(s.id))
    session_manager.update_sessions([make_session("s1", "/a.mkv", 1)])
    assert session_manager.end_session("s1") is True
    assert session_manager.end_session("s1") is False
    assert ended == ["s1"]
    assert session_manager.sessions == []


def test_unsubscribe(session_manager):
    ended = []
    handler = lambda s: ended.append(s.id)
    session_manager.subscribe_session_ended(handler)
    session_manager.unsubscribe_session_ended(handler)
    session_manager.unsubscribe_session_ended(handler)
    session_manager.update_sessions([make_session("s1", "/a.mkv", 1)])
    session_manager.end_session("s1")
    assert ended == []


def test_failing_handler_does_not_block_others(session_manager, log_output):
    ended = []
    def broken(session): raise RuntimeError("handler broke")
    session_manager.subscribe_session_ended(broken)
    session_manager.subscribe_session_ended(lambda s: ended.append(s.id))
    session_manager.update_sessions([make_session("s1", "/a.mkv", 1)])
    session_manager.end_session("s1")
    assert ended == ["s1"]
    assert "handler broke" in log_output.getvalue()


def test_send_command(session_manager, commands):
    session_manager.update_sessions([make_session("s1", "/a.mkv", 1)])
    request = PlaystateRequest(PlaystateCommand.SEEK, "u1", 42)
    session_manager.send_playstate_command("s1", "s1", request)
    assert len(commands) == 1
    assert commands[0].to_dict() == {
        "controlling_session_id": "s1",
        "session_id": "s1",
        "command": "Seek",
        "controlling_user_id": "u1",
        "seek_position_ticks": 42,
    }


def test_send_command_unknown_session(session_manager, commands):
    with pytest.raises(SessionNotFound):
        session_manager.send_playstate_command("x", "x", PlaystateRequest(PlaystateCommand.PAUSE))
    assert commands == []


def test_send_command_without_listener(session_manager):
    session_manager.update_sessions([make_session("s1", "/a.mkv", 1)])
    with pytest.raises(CommandDeliveryError):
        session_manager.send_playstate_command("s1", "s1", PlaystateRequest(PlaystateCommand.STOP))


def test_remove_listener(session_manager, commands):
    session_manager.update_sessions([make_session("s1", "/a.mkv", 1)])
    session_manager.remove_command_listener(commands.append)
    with pytest.raises(CommandDeliveryError):
        session_manager.send_playstate_command("s1", "s1", PlaystateRequest(PlaystateCommand.STOP))
