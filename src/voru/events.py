"""Cross-module message models.

Frozen dataclasses make up the engine command stream and the remote actions
carried on it. `textual.message` types carry engine output to the UI.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Literal, Union

from textual.message import Message

if TYPE_CHECKING:
    from voru.services.player_engine import PlayerViewState


# Remote actions, one per remote-control method.


@dataclass(frozen=True)
class RemotePlay:
    pass


@dataclass(frozen=True)
class RemotePause:
    pass


@dataclass(frozen=True)
class RemoteStop:
    pass


@dataclass(frozen=True)
class RemotePlayPause:
    pass


@dataclass(frozen=True)
class RemoteSeek:
    """Relative seek; positive moves forward, negative backward."""

    offset_us: int


@dataclass(frozen=True)
class RemoteVolume:
    """Requested volume as a 0..1 fraction of the player's maximum."""

    volume: float


@dataclass(frozen=True)
class RemoteNext:
    pass


@dataclass(frozen=True)
class RemotePrev:
    pass


@dataclass(frozen=True)
class RemoteShuffle:
    pass


@dataclass(frozen=True)
class RemoteSetPosition:
    track_id: int
    position_us: int


@dataclass(frozen=True)
class RemoteSetLoop:
    loop_status: Literal["None", "Track", "Playlist"]


RemoteAction = Union[
    RemotePlay,
    RemotePause,
    RemoteStop,
    RemotePlayPause,
    RemoteSeek,
    RemoteVolume,
    RemoteNext,
    RemotePrev,
    RemoteShuffle,
    RemoteSetPosition,
    RemoteSetLoop,
]


# Engine command stream.


@dataclass(frozen=True)
class Tick:
    pass


@dataclass(frozen=True)
class EngineCommand:
    """Pre-decoded interactive input: an engine method name plus arguments."""

    name: str
    args: tuple[Any, ...] = ()


@dataclass(frozen=True)
class RemoteCommand:
    action: RemoteAction


@dataclass(frozen=True)
class Shutdown:
    pass


Command = Union[Tick, EngineCommand, RemoteCommand, Shutdown]


# UI messages.


class PlayerUpdated(Message):
    """Engine state after a command or tick."""

    def __init__(self, state: PlayerViewState) -> None:
        super().__init__()
        self.state = state


class NoticeRaised(Message):
    """User-facing notice: a visible error or an `echo` message."""

    def __init__(self, text: str, *, severity: str = "information") -> None:
        super().__init__()
        self.text = text
        self.severity = severity
