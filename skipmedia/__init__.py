import log95
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

TICKS_PER_SECOND = 10_000_000

class SkipMediaError(Exception): pass
class SessionNotFound(SkipMediaError): pass
class CommandDeliveryError(SkipMediaError): pass
class ConfigError(SkipMediaError): pass

@dataclass(frozen=True)
class SkipRange:
    start: int
    end: int
    def contains(self, position: int) -> bool: return self.start <= position < self.end

@dataclass
class NowPlayingItem:
    path: str | None = None

@dataclass
class PlayState:
    position_ticks: int | None = None
    @property
    def position_seconds(self) -> int | None:
        if self.position_ticks is None: return None
        # toward zero, -0.5 s is second 0
        seconds = abs(self.position_ticks) // TICKS_PER_SECOND
        return seconds if self.position_ticks >= 0 else -seconds

@dataclass
class PlaybackSession:
    id: str
    user_id: str
    now_playing_item: NowPlayingItem | None = None
    play_state: PlayState | None = field(default_factory=PlayState)

class PlaystateCommand(Enum):
    SEEK = "Seek"
    PAUSE = "Pause"
    UNPAUSE = "Unpause"
    STOP = "Stop"

@dataclass
class PlaystateRequest:
    command: PlaystateCommand
    controlling_user_id: str | None = None
    seek_position_ticks: int | None = None

@dataclass
class PlaystateCommandEvent:
    controlling_session_id: str
    session_id: str
    request: PlaystateRequest
    def to_dict(self) -> dict:
        return {
            "controlling_session_id": self.controlling_session_id,
            "session_id": self.session_id,
            "command": self.request.command.value,
            "controlling_user_id": self.request.controlling_user_id,
            "seek_position_ticks": self.request.seek_position_ticks,
        }

SessionEndedHandler = Callable[[PlaybackSession], None]
CommandListener = Callable[[PlaystateCommandEvent], None]

class Skeleton_SessionManager:
    """
    What the skipper needs from the media server hosting it: the active sessions, a way to send them playstate commands and a notification when one ends
    """
    @property
    def sessions(self) -> list[PlaybackSession]:
        """
        A snapshot of the active sessions, the host owns them, we only read
        """
        return []
    def send_playstate_command(self, controlling_session_id: str, session_id: str, request: PlaystateRequest) -> None:
        """
        Delivery is asynchronous, raising only means the command could not be handed over
        """
        ...
    def subscribe_session_ended(self, handler: SessionEndedHandler) -> None: ...
    def unsubscribe_session_ended(self, handler: SessionEndedHandler) -> None: ...

__all__ = [
    "log95", "Path", "TICKS_PER_SECOND",
    "SkipMediaError", "SessionNotFound", "CommandDeliveryError", "ConfigError",
    "SkipRange", "NowPlayingItem", "PlayState", "PlaybackSession",
    "PlaystateCommand", "PlaystateRequest", "PlaystateCommandEvent",
    "SessionEndedHandler", "CommandListener", "Skeleton_SessionManager",
]
