import traceback
from . import log95, TICKS_PER_SECOND, PlaybackSession, PlaystateCommand, PlaystateRequest, Skeleton_SessionManager, SkipRange
from .edl import EdlParser, resolve_edl_path
from .tracker import SkipMarker, SkipStateTracker

def find_skip_range(position: int, ranges: list[SkipRange]) -> SkipRange | None:
    """First range in file order that the position is in, overlapping ranges are not checked for"""
    return next((r for r in ranges if r.contains(position)), None)

class SkipEngine:
    def __init__(self, session_manager: Skeleton_SessionManager, output: log95.TextIO, parser: EdlParser | None = None) -> None:
        self.session_manager = session_manager
        self.logger = log95.log95("SKIP", output=output)
        self.parser = parser or EdlParser(output)
        self.tracker = SkipStateTracker(output)
        self.session_manager.subscribe_session_ended(self.on_session_ended)

    def scan(self) -> None:
        """One pass over every active session, a session that blows up is logged and the rest still get scanned"""
        for session in self.session_manager.sessions:
            try: self.process_session(session)
            except Exception as e:
                self.logger.error(f"Failed processing session {session.id}: {e}")
                traceback.print_exc(file=self.logger.output)

    def process_session(self, session: PlaybackSession) -> None:
        item = session.now_playing_item
        if item is None or not item.path: return

        edl_path = resolve_edl_path(item.path)
        skip_ranges = self.parser.load_skip_ranges(edl_path)
        if skip_ranges: self.apply_skip_logic(session, edl_path, skip_ranges)

    def apply_skip_logic(self, session: PlaybackSession, edl_path: str, skip_ranges: list[SkipRange]) -> bool:
        if session.play_state is None or (current_seconds := session.play_state.position_seconds) is None: return False

        if (skip_range := find_skip_range(current_seconds, skip_ranges)) is None:
            self.tracker.left_range(session.id)
            return False

        marker = SkipMarker(edl_path, skip_range)
        if self.tracker.already_skipped(session.id, marker):
            self.logger.verbose(f"Already skipped {skip_range.start}-{skip_range.end} for session {session.id}, waiting for the position to move")
            return False

        self.logger.info(f"Skipping from {skip_range.start} to {skip_range.end} for session {session.id}")
        request = PlaystateRequest(PlaystateCommand.SEEK, controlling_user_id=session.user_id, seek_position_ticks=skip_range.end * TICKS_PER_SECOND)
        try: self.session_manager.send_playstate_command(session.id, session.id, request)
        except Exception as e:
            self.logger.error(f"Seek command for session {session.id} failed: {e}")
            return False

        self.tracker.mark_skipped(session.id, marker)
        return True

    def on_session_ended(self, session: PlaybackSession | None) -> None:
        if session is not None: self.tracker.forget(session.id)

    def close(self) -> None: self.session_manager.unsubscribe_session_ended(self.on_session_ended)
