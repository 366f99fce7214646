"""Test configuration and shared fixtures."""

from __future__ import annotations

import random
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from voru.services.fake_backend import FakePlaybackBackend  # noqa: E402
from voru.services.player_engine import PlayerEngine  # noqa: E402
from voru.services.playlist_loader import Playlist  # noqa: E402
from voru.services.track_cache import Track  # noqa: E402


class FakeClock:
    """Manually advanced monotonic clock (seconds)."""

    def __init__(self, start: float = 100.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance_ms(self, ms: int) -> None:
        self.now += ms / 1000


def make_track(name: str, duration_ms: int | None = 10_000, **fields) -> Track:
    return Track(
        path=f"/music/{name}.mp3",
        filename=f"music/{name}.mp3",
        title=fields.pop("title", name),
        duration_ms=duration_ms,
        **fields,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def backend(clock: FakeClock) -> FakePlaybackBackend:
    return FakePlaybackBackend(clock=clock)


@pytest.fixture
def tracks() -> list[Track]:
    return [make_track(name) for name in ("a", "b", "c")]


@pytest.fixture
def engine(backend: FakePlaybackBackend, tracks: list[Track]) -> PlayerEngine:
    engine = PlayerEngine(
        backend,
        playlists=[Playlist("mix", tuple(tracks))],
        shuffle_random=random.Random(7),
    )
    engine.queue_add_tracks(tracks)
    return engine
