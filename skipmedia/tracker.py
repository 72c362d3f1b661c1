from dataclasses import dataclass
from threading import Lock
from . import log95, SkipRange

@dataclass(frozen=True)
class SkipMarker:
    edl_path: str
    skip_range: SkipRange

@dataclass
class SkipState:
    last_skipped: SkipMarker | None = None

class SkipStateTracker:
    """
    Remembers which range we already seeked out of for each session, so that a session still reporting a position inside it (the host hasn't caught up yet) doesn't get the same seek every tick

    Written from the scan thread and from session ended notifications, everything goes through the lock
    """
    def __init__(self, output: log95.TextIO) -> None:
        self.logger = log95.log95("TRACKER", output=output)
        self.lock = Lock()
        self.states: dict[str, SkipState] = {}

    def already_skipped(self, session_id: str, marker: SkipMarker) -> bool:
        with self.lock:
            state = self.states.get(session_id)
            return state is not None and state.last_skipped == marker

    def mark_skipped(self, session_id: str, marker: SkipMarker) -> None:
        with self.lock: self.states.setdefault(session_id, SkipState()).last_skipped = marker

    def left_range(self, session_id: str) -> None:
        """The session was seen outside every range, so coming back into one should skip again"""
        with self.lock:
            if state := self.states.get(session_id): state.last_skipped = None

    def forget(self, session_id: str) -> bool:
        with self.lock: removed = self.states.pop(session_id, None) is not None
        if removed: self.logger.info(f"Session ended: cleared skip state for session {session_id}")
        return removed

    def is_tracked(self, session_id: str) -> bool:
        with self.lock: return session_id in self.states

    def tracked_sessions(self) -> list[str]:
        with self.lock: return list(self.states)
