"""Tests for the engine command loop."""

from __future__ import annotations

import threading

from conftest import make_track

from voru.events import (
    EngineCommand,
    RemoteCommand,
    RemoteNext,
    Shutdown,
    Tick,
)
from voru.services.control_bridge import ControlBridge
from voru.services.engine_loop import EngineLoop
from voru.services.fake_backend import FakePlaybackBackend
from voru.services.player_engine import PlayerEngine, PlayerViewState
from voru.services.tick_scheduler import TickScheduler
from voru.services.track_cache import TrackCache


class _Recorder:
    def __init__(self) -> None:
        self.updates: list[PlayerViewState] = []
        self.notices: list[tuple[str, str]] = []
        self.quit_calls = 0

    def on_update(self, state: PlayerViewState) -> None:
        self.updates.append(state)

    def on_notice(self, text: str, severity: str) -> None:
        self.notices.append((text, severity))

    def on_quit(self) -> None:
        self.quit_calls += 1


def _loop(engine, clock) -> tuple[EngineLoop, _Recorder, ControlBridge]:
    recorder = _Recorder()
    holder: list[EngineLoop] = []
    bridge = ControlBridge(lambda command: holder[0].submit(command), clock=clock)
    ticks = TickScheduler(lambda command: holder[0].submit(command))
    loop = EngineLoop(
        engine,
        bridge,
        ticks,
        TrackCache(),
        on_update=recorder.on_update,
        on_notice=recorder.on_notice,
        on_quit=recorder.on_quit,
    )
    holder.append(loop)
    return loop, recorder, bridge


def test_commands_run_in_order_and_publish(engine, clock) -> None:
    loop, recorder, bridge = _loop(engine, clock)
    loop.submit(EngineCommand("play", (0,)))
    loop.submit(EngineCommand("play_next"))
    loop.submit(EngineCommand("set_volume", (0.5,)))

    assert loop.drain() == 3

    assert engine.current_index == 1
    assert len(recorder.updates) == 3
    assert recorder.updates[-1].volume == 0.5
    assert bridge.snapshot().status == "Playing"


def test_silent_errors_are_not_reported(engine, clock) -> None:
    loop, recorder, _bridge = _loop(engine, clock)
    loop.submit(EngineCommand("play_next"))
    loop.submit(EngineCommand("seek", (1_000,)))
    loop.submit(EngineCommand("queue_remove", (99,)))
    loop.drain()
    assert recorder.notices == []
    assert len(recorder.updates) == 3


def test_visible_errors_become_error_notices(clock) -> None:
    backend = FakePlaybackBackend(clock=clock, missing_paths={"/music/a.mp3"})
    engine = PlayerEngine(backend)
    engine.queue_add_tracks([make_track("a")])
    loop, recorder, _bridge = _loop(engine, clock)

    loop.submit(EngineCommand("play", (0,)))
    loop.drain()

    assert len(recorder.notices) == 1
    text, severity = recorder.notices[0]
    assert severity == "error"
    assert text.startswith("Couldn't play the track.")


def test_unknown_command_is_logged_not_raised(engine, clock, caplog) -> None:
    loop, recorder, _bridge = _loop(engine, clock)
    loop.submit(EngineCommand("__init__"))
    loop.drain()
    assert "Unexpected error" in caplog.text
    assert len(recorder.updates) == 1


def test_remote_commands_and_ticks(engine, clock) -> None:
    loop, _recorder, bridge = _loop(engine, clock)
    loop.submit(EngineCommand("play", (0,)))
    bridge.request(RemoteNext())
    loop.drain()
    assert engine.current_index == 1

    clock.advance_ms(10_000)
    loop.submit(Tick())
    loop.drain()
    assert engine.current_index == 2


def test_notify_and_quit(engine, clock) -> None:
    loop, recorder, _bridge = _loop(engine, clock)
    loop.submit(EngineCommand("notify", ("hey",)))
    loop.submit(EngineCommand("quit"))
    loop.drain()
    assert recorder.notices == [("hey", "information")]
    assert recorder.quit_calls == 1


def test_queue_add_paths(engine, clock, tmp_path) -> None:
    music = tmp_path / "music"
    music.mkdir()
    for name in ("one.mp3", "two.mp3"):
        (music / name).write_bytes(b"not really audio")
    (music / "nested").mkdir()
    loop, recorder, _bridge = _loop(engine, clock)

    loop.submit(EngineCommand("queue_add_paths", (f"{music}/*",)))
    loop.drain()

    assert len(engine.queue) == 5
    assert engine.queue.entries[-1].track.filename == "music/two.mp3"
    assert engine.queue.entries[-1].is_standalone
    assert recorder.notices == [("2 tracks were added", "information")]


def test_queue_add_missing_path_reports_error(engine, clock, tmp_path) -> None:
    loop, recorder, _bridge = _loop(engine, clock)
    loop.submit(EngineCommand("queue_add_paths", (str(tmp_path / "nope.mp3"),)))
    loop.drain()
    assert len(engine.queue) == 3
    assert recorder.notices[0][1] == "error"
    assert "No such file or directory" in recorder.notices[0][0]


def test_drain_stops_at_shutdown(engine, clock) -> None:
    loop, _recorder, _bridge = _loop(engine, clock)
    loop.submit(Shutdown())
    loop.submit(EngineCommand("play", (0,)))
    assert loop.drain() == 1
    assert engine.current_index is None


def test_thread_processes_until_shutdown(engine, clock) -> None:
    done = threading.Event()
    loop, _recorder, _bridge = _loop(engine, clock)
    loop._on_quit = done.set
    loop.start()
    try:
        loop.submit(EngineCommand("play", (2,)))
        loop.submit(EngineCommand("quit"))
        assert done.wait(2.0)
    finally:
        loop.shutdown()
    assert engine.current_index == 2


def test_remote_command_type_is_accepted(engine, clock) -> None:
    loop, _recorder, _bridge = _loop(engine, clock)
    engine.play(0)
    assert loop.process(RemoteCommand(RemoteNext())) is True
    assert engine.current_index == 1


def test_shutdown_reports_thread_still_running(engine, clock) -> None:
    entered = threading.Event()
    release = threading.Event()
    loop, _recorder, _bridge = _loop(engine, clock)

    def _blocking_update(_state) -> None:
        entered.set()
        release.wait(2.0)

    loop._on_update = _blocking_update
    loop.start()
    loop.submit(EngineCommand("play", (0,)))
    assert entered.wait(2.0)
    try:
        assert loop.shutdown(timeout=0.05) is False
    finally:
        release.set()
    assert loop.shutdown() is True
    assert loop.shutdown() is True
