import traceback
from threading import Lock
from . import log95, CommandDeliveryError, CommandListener, PlaybackSession, PlaystateCommandEvent, PlaystateRequest, SessionEndedHandler, SessionNotFound, Skeleton_SessionManager

class SessionManager(Skeleton_SessionManager):
    """
    In-process copy of the host's sessions, fed by the host bridge (or directly when embedding)
    Commands are handed to the listeners, usually that's the bridge forwarding them to the host
    """
    def __init__(self, output: log95.TextIO) -> None:
        self.logger = log95.log95("SESSIONS", output=output)
        self.lock = Lock()
        self._sessions: dict[str, PlaybackSession] = {}
        self.session_ended_handlers: list[SessionEndedHandler] = []
        self.command_listeners: list[CommandListener] = []

    @property
    def sessions(self) -> list[PlaybackSession]:
        with self.lock: return list(self._sessions.values())

    def get_session(self, session_id: str) -> PlaybackSession | None:
        with self.lock: return self._sessions.get(session_id)

    def update_sessions(self, sessions: list[PlaybackSession]) -> None:
        """Replaces the snapshot, sessions missing from the new one are treated as ended"""
        with self.lock:
            ended = [s for sid, s in self._sessions.items() if sid not in {n.id for n in sessions}]
            self._sessions = {s.id: s for s in sessions}
        for session in ended: self._fire_session_ended(session)

    def end_session(self, session_id: str) -> bool:
        with self.lock: session = self._sessions.pop(session_id, None)
        if session is None: return False
        self._fire_session_ended(session)
        return True

    def _fire_session_ended(self, session: PlaybackSession) -> None:
        self.logger.info(f"Session {session.id} ended")
        with self.lock: handlers = list(self.session_ended_handlers)
        for handler in handlers:
            try: handler(session)
            except Exception:
                self.logger.error(f"Session ended handler failed for {session.id}")
                traceback.print_exc(file=self.logger.output)

    def subscribe_session_ended(self, handler: SessionEndedHandler) -> None:
        with self.lock: self.session_ended_handlers.append(handler)
    def unsubscribe_session_ended(self, handler: SessionEndedHandler) -> None:
        with self.lock:
            if handler in self.session_ended_handlers: self.session_ended_handlers.remove(handler)

    def add_command_listener(self, listener: CommandListener) -> None:
        with self.lock: self.command_listeners.append(listener)
    def remove_command_listener(self, listener: CommandListener) -> None:
        with self.lock:
            if listener in self.command_listeners: self.command_listeners.remove(listener)

    def send_playstate_command(self, controlling_session_id: str, session_id: str, request: PlaystateRequest) -> None:
        with self.lock:
            if session_id not in self._sessions: raise SessionNotFound(f"No active session {session_id}")
            listeners = list(self.command_listeners)
        if not listeners: raise CommandDeliveryError(f"Nothing to deliver the {request.command.value} command for {session_id} to")
        event = PlaystateCommandEvent(controlling_session_id, session_id, request)
        for listener in listeners: listener(event)
