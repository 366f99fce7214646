"""Playback backend contract.

`PlayerEngine` depends on this protocol to stay backend-agnostic. A backend owns
at most one output session (the loaded media plus its sink) and knows nothing
about the queue. Every method is called from the engine thread only; track
completion is observed by polling `get_state()` on the tick.
"""

from __future__ import annotations

from typing import Literal, Protocol

BackendStatus = Literal["stopped", "playing", "paused", "ended"]

# Decoders tend to fail when asked to seek right up to end-of-stream.
SEEK_END_MARGIN_MS = 1000


def clamp_seek_ms(position_ms: int, duration_ms: int | None) -> int:
    """Clamp a seek target to `[0, duration - 1s]` when the duration is known."""
    position = max(0, int(position_ms))
    if duration_ms is not None and duration_ms > 0:
        position = min(position, max(0, duration_ms - SEEK_END_MARGIN_MS))
    return position


class PlaybackBackend(Protocol):
    """Single-session playback engine consumed by `PlayerEngine`."""

    def load(self, path: str, *, duration_ms: int | None = None) -> None: ...

    def resume(self) -> None: ...

    def pause(self) -> None: ...

    def stop(self) -> None: ...

    def seek_ms(self, position_ms: int) -> None: ...

    def set_volume(self, volume: float) -> None: ...

    def get_position_ms(self) -> int | None: ...

    def get_duration_ms(self) -> int | None: ...

    def get_state(self) -> BackendStatus: ...

    def shutdown(self) -> None: ...
