"""Tests for PlayerEngine against the fake backend."""

from __future__ import annotations

import random

import pytest
from conftest import FakeClock, make_track

from voru.errors import (
    EmptyQueueError,
    NoAudioError,
    NoMoreTracksError,
    NoPlaylistError,
    NotPlayingError,
    NoTrackError,
    PlaybackDecodeError,
    PlaybackIoError,
)
from voru.services.fake_backend import FakePlaybackBackend
from voru.services.player_engine import (
    MAX_VOLUME,
    LoopMode,
    PlayerEngine,
    PlayState,
)
from voru.services.playlist_loader import ALL_TRACKS_NAME, Playlist


def _engine_with(*durations_s: int) -> tuple[PlayerEngine, FakePlaybackBackend, FakeClock]:
    clock = FakeClock()
    backend = FakePlaybackBackend(clock=clock)
    engine = PlayerEngine(backend, shuffle_random=random.Random(1))
    engine.queue_add_tracks(
        make_track(name, seconds * 1000)
        for name, seconds in zip("ABCDEFGH", durations_s)
    )
    return engine, backend, clock


def test_play_loads_entry_and_applies_volume(engine, backend) -> None:
    engine.set_volume(0.5)
    engine.play(1)

    assert engine.current_index == 1
    assert backend.loaded_path == "/music/b.mp3"
    assert backend.volume == 0.5
    assert engine.play_state() is PlayState.PLAYING
    assert engine.queue.elapsed_ms == 10_000


def test_play_out_of_range_raises_no_track(engine) -> None:
    with pytest.raises(NoTrackError):
        engine.play(3)
    assert engine.current_index is None


def test_play_missing_file_raises_io_and_clears_current() -> None:
    backend = FakePlaybackBackend(missing_paths={"/music/b.mp3"})
    engine = PlayerEngine(backend)
    engine.queue_add_tracks([make_track("a"), make_track("b")])
    engine.play(0)

    with pytest.raises(PlaybackIoError):
        engine.play(1)

    assert engine.current_index is None
    assert engine.play_state() is PlayState.STOPPED


def test_play_unplayable_file_raises_decode_error() -> None:
    backend = FakePlaybackBackend(unplayable_paths={"/music/a.mp3"})
    engine = PlayerEngine(backend)
    engine.queue_add_tracks([make_track("a")])
    with pytest.raises(PlaybackDecodeError):
        engine.play(0)


def test_remove_current_loads_entry_that_shifted_in() -> None:
    engine, backend, _clock = _engine_with(100, 200, 150)
    engine.play(1)

    engine.queue_remove(1)

    assert [entry.title for entry in engine.queue] == ["A", "C"]
    assert engine.current_index == 1
    assert backend.loaded_path == "/music/C.mp3"
    assert engine.queue.elapsed_ms == 100_000


def test_remove_current_last_entry_stops() -> None:
    engine, backend, _clock = _engine_with(100, 200)
    engine.play(1)

    engine.queue_remove(1)

    assert engine.current_index is None
    assert engine.play_state() is PlayState.STOPPED
    assert backend.loaded_path is None


def test_remove_on_empty_queue_raises() -> None:
    engine, _backend, _clock = _engine_with()
    with pytest.raises(EmptyQueueError):
        engine.queue_remove(0)


def test_remove_before_current_keeps_playing_same_track() -> None:
    engine, backend, _clock = _engine_with(100, 200, 150)
    engine.play(2)
    engine.queue_remove(0)
    assert engine.current_index == 1
    assert backend.loaded_path == "/music/C.mp3"
    assert backend.load_count == 1


def test_seek_forward_clamps_before_end() -> None:
    engine, backend, clock = _engine_with(300)
    engine.play(0)
    clock.advance_ms(299_000)

    engine.seek_forward(10_000)

    assert engine.position_ms() == 299_000
    assert backend.seek_calls == [299_000]


def test_seek_backward_saturates_at_zero(engine, clock) -> None:
    engine.play(0)
    clock.advance_ms(3_000)
    engine.seek_backward(10_000)
    assert engine.position_ms() == 0


def test_seek_without_session_raises_no_audio(engine) -> None:
    with pytest.raises(NoAudioError):
        engine.seek_forward(1_000)


def test_volume_up_and_clamp(engine) -> None:
    engine.set_volume(0.9)
    engine.volume_up(0.3)
    assert engine.volume == pytest.approx(1.2)

    engine.volume_up(5)
    assert engine.volume == MAX_VOLUME
    engine.volume_down(9)
    assert engine.volume == 0.0
    engine.volume_reset()
    assert engine.volume == 1.0


def test_mute_is_independent_of_stored_volume(engine, backend) -> None:
    engine.play(0)
    engine.set_muted(True)
    assert backend.volume == 0.0

    engine.set_volume(1.5)
    assert backend.volume == 0.0
    assert engine.volume == 1.5

    engine.set_muted(False)
    assert backend.volume == 1.5

    engine.mute_toggle()
    assert engine.muted is True
    assert engine.effective_volume == 0.0


def test_volume_without_session_is_applied_on_next_load(engine, backend) -> None:
    engine.set_volume(0.25)
    assert backend.volume == 1.0
    engine.play(0)
    assert backend.volume == 0.25


def test_play_next_without_loop_stops_at_end(engine, backend) -> None:
    engine.play(2)
    with pytest.raises(NoMoreTracksError):
        engine.play_next()
    assert engine.current_index == 2
    assert backend.loaded_path == "/music/c.mp3"
    assert backend.load_count == 1


def test_play_next_repeat_queue_wraps(engine, backend) -> None:
    engine.set_loop(LoopMode.REPEAT_QUEUE)
    engine.play(2)
    engine.play_next()
    assert engine.current_index == 0
    assert backend.loaded_path == "/music/a.mp3"


def test_play_next_repeat_shuffled_reshuffles_and_wraps(engine, backend) -> None:
    engine.set_loop(LoopMode.REPEAT_SHUFFLED)
    before = {id(entry) for entry in engine.queue}
    engine.play(2)

    engine.play_next()

    assert engine.current_index == 0
    assert {id(entry) for entry in engine.queue} == before
    assert backend.loaded_path == engine.queue.entries[0].path


def test_play_next_and_prev_require_current(engine) -> None:
    with pytest.raises(NotPlayingError):
        engine.play_next()
    with pytest.raises(NotPlayingError):
        engine.play_prev()


def test_play_prev_does_not_wrap(engine) -> None:
    engine.set_loop(LoopMode.REPEAT_QUEUE)
    engine.play(1)
    engine.play_prev()
    assert engine.current_index == 0
    with pytest.raises(NoMoreTracksError):
        engine.play_prev()


def test_pause_resume_and_toggle(engine, clock) -> None:
    engine.play(0)
    clock.advance_ms(2_000)
    engine.toggle()
    assert engine.play_state() is PlayState.PAUSED
    clock.advance_ms(5_000)
    assert engine.position_ms() == 2_000

    engine.toggle()
    assert engine.play_state() is PlayState.PLAYING


def test_resume_after_end_restarts_current_track(engine, backend, clock) -> None:
    engine.play(1)
    clock.advance_ms(11_000)
    assert engine.play_state() is PlayState.ENDED

    engine.resume()

    assert engine.current_index == 1
    assert engine.position_ms() == 0
    assert backend.load_count == 2


def test_resume_and_toggle_without_session_raise_no_audio(engine) -> None:
    with pytest.raises(NoAudioError):
        engine.resume()
    with pytest.raises(NoAudioError):
        engine.toggle()


def test_stop_clears_current(engine) -> None:
    engine.play(0)
    engine.stop()
    assert engine.current_index is None
    assert engine.play_state() is PlayState.STOPPED
    with pytest.raises(NoAudioError):
        engine.stop()


def test_loop_cycles_both_ways(engine) -> None:
    engine.cycle_loop()
    assert engine.loop_mode is LoopMode.REPEAT_QUEUE
    engine.cycle_loop()
    assert engine.loop_mode is LoopMode.REPEAT_SHUFFLED
    engine.cycle_loop()
    assert engine.loop_mode is LoopMode.NONE
    engine.cycle_loop_back()
    assert engine.loop_mode is LoopMode.REPEAT_SHUFFLED


def test_shuffle_keeps_current_track(engine) -> None:
    engine.queue_add_tracks(make_track(f"x{n}") for n in range(10))
    engine.play(4)
    current = engine.current_entry

    engine.queue_shuffle()

    assert engine.current_entry is current
    assert engine.queue.entries[engine.current_index] is current


def test_all_tracks_playlist_is_first(engine) -> None:
    names = [playlist.name for playlist in engine.playlists]
    assert names == [ALL_TRACKS_NAME, "mix"]
    assert len(engine.playlist(0)) == 3
    with pytest.raises(NoPlaylistError):
        engine.playlist(2)


def test_play_playlist_replaces_queue(engine, backend) -> None:
    engine.queue_add_tracks([make_track("extra")])
    engine.play_playlist(1, 2)

    assert len(engine.queue) == 3
    assert engine.current_index == 2
    assert engine.is_playlist_index_current(1)
    assert engine.view_state().current_playlist_index == 1
    assert engine.current_is_last()
    assert backend.loaded_path == "/music/c.mp3"


def test_play_playlist_shuffled_starts_with_chosen_track(engine, backend) -> None:
    chosen = engine.playlist(1).tracks[2]
    engine.play_playlist_shuffled(1, 2)
    assert engine.current_index == 0
    assert engine.current_entry.track is chosen
    assert backend.loaded_path == chosen.path


def test_queue_add_from_playlist_records_provenance(engine) -> None:
    engine.queue_clear()
    engine.queue_add_from_playlist(1, 1)
    engine.queue_add_playlist_slice(1, 0, 2)
    engine.queue_add_playlist(0)

    entries = engine.queue.entries
    assert len(entries) == 6
    assert entries[0].playlist_index == 1
    assert entries[0].title == "b"
    assert entries[3].playlist_index == 0
    with pytest.raises(NoTrackError):
        engine.queue_add_from_playlist(1, 9)


def test_queue_clear_and_set_stop_playback(engine, backend) -> None:
    engine.play(0)
    engine.queue_clear()
    assert engine.current_index is None
    assert backend.loaded_path is None
    assert engine.queue.duration_ms == 0

    engine.queue_set_playlist(1)
    assert len(engine.queue) == 3
    assert engine.current_index is None


def test_is_track_current_uses_track_identity(engine) -> None:
    engine.play(1)
    track = engine.current_entry.track
    assert engine.is_track_current(track.track_id)
    assert engine.is_track_index_current(1)
    assert not engine.is_track_current(engine.queue.entries[0].track.track_id)


def test_view_state_reflects_engine(engine, clock) -> None:
    engine.play(1)
    clock.advance_ms(1_500)
    engine.set_muted(True)

    state = engine.view_state()

    assert state.play_state is PlayState.PLAYING
    assert state.titles == ("a", "b", "c")
    assert state.current_index == 1
    assert state.current_title == "b"
    assert state.position_ms == 1_500
    assert state.duration_ms == 10_000
    assert state.elapsed_ms == 10_000
    assert state.queue_duration_ms == 30_000
    assert state.muted is True
    assert state.playlist_names == (ALL_TRACKS_NAME, "mix")
    assert state.playlist_sizes == (3, 3)
    assert state.current_playlist_index is None


def test_session_serial_increments_per_load(engine) -> None:
    assert engine.session_serial == 0
    engine.play(0)
    engine.play(0)
    assert engine.session_serial == 2


def test_playlist_tracks_are_shared_with_queue() -> None:
    track = make_track("shared")
    engine = PlayerEngine(FakePlaybackBackend(), playlists=[Playlist("p", (track,))])
    engine.queue_add_playlist(1)
    assert engine.queue.entries[0].track is track


def test_play_playlist_shuffled_on_empty_playlist_keeps_queue() -> None:
    backend = FakePlaybackBackend()
    engine = PlayerEngine(backend)
    engine.queue_add_tracks([make_track("a"), make_track("b")])
    engine.play(1)

    with pytest.raises(NoTrackError):
        engine.play_playlist_shuffled(0)

    assert len(engine.queue) == 2
    assert engine.current_index == 1
    assert backend.loaded_path == "/music/b.mp3"
    assert engine.play_state() is PlayState.PLAYING


def test_play_playlist_with_missing_track_keeps_queue(engine, backend) -> None:
    engine.queue_add_tracks([make_track("extra")])
    engine.play(3)

    with pytest.raises(NoTrackError):
        engine.play_playlist(1, 9)
    with pytest.raises(NoTrackError):
        engine.play_playlist_shuffled(1, -1)
    with pytest.raises(NoPlaylistError):
        engine.play_playlist(5)

    assert len(engine.queue) == 4
    assert engine.current_index == 3
    assert backend.loaded_path == "/music/extra.mp3"
