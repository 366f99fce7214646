"""Tests for the play queue model."""

from __future__ import annotations

import random

import pytest
from conftest import make_track

from voru.errors import EmptyQueueError, NoTrackError
from voru.services.play_queue import PlayQueue, QueueEntry


def _queue(*durations_s: int) -> PlayQueue:
    return PlayQueue(
        QueueEntry(make_track(f"t{index}", seconds * 1000))
        for index, seconds in enumerate(durations_s)
    )


def test_aggregates_follow_current_index() -> None:
    queue = _queue(100, 200, 150)
    assert queue.duration_ms == 450_000
    assert queue.elapsed_ms == 0

    queue.set_current(2)
    assert queue.elapsed_ms == 300_000
    assert queue.current_entry is queue.entries[2]

    queue.add(QueueEntry(make_track("extra", 50_000)))
    assert queue.duration_ms == 500_000


def test_unknown_durations_count_as_zero() -> None:
    queue = PlayQueue([QueueEntry(make_track("x", None)), QueueEntry(make_track("y"))])
    assert queue.duration_ms == 10_000


def test_entries_compare_by_identity() -> None:
    track = make_track("same")
    first, second = QueueEntry(track), QueueEntry(track)
    queue = PlayQueue([first, second])

    assert first != second
    assert queue.index_of(second) == 1
    assert first.is_standalone
    assert not QueueEntry(track, playlist_index=3).is_standalone


def test_remove_on_empty_queue_raises_and_keeps_state() -> None:
    queue = PlayQueue()
    with pytest.raises(EmptyQueueError):
        queue.remove(0)
    assert len(queue) == 0
    assert queue.current_index is None


def test_remove_out_of_range_raises_no_track() -> None:
    queue = _queue(1, 2)
    with pytest.raises(NoTrackError):
        queue.remove(5)
    assert len(queue) == 2


def test_remove_before_current_shifts_index() -> None:
    queue = _queue(100, 200, 150)
    queue.set_current(2)
    current = queue.current_entry

    removed = queue.remove(0)

    assert removed.duration_ms == 100_000
    assert queue.current_index == 1
    assert queue.current_entry is current
    assert queue.elapsed_ms == 200_000
    assert queue.duration_ms == 350_000


def test_remove_after_current_keeps_index() -> None:
    queue = _queue(100, 200, 150)
    queue.set_current(0)
    queue.remove(2)
    assert queue.current_index == 0
    assert queue.duration_ms == 300_000


def test_remove_current_clears_position() -> None:
    queue = _queue(100, 200, 150)
    queue.set_current(1)
    queue.remove(1)
    assert queue.current_index is None
    assert queue.current_entry is None
    assert queue.elapsed_ms == 0


def test_move_to_keeps_current_entry() -> None:
    queue = _queue(1, 2, 3, 4)
    queue.set_current(1)
    current = queue.current_entry

    assert queue.move_to(3, 0) == 0

    assert queue.current_entry is current
    assert queue.current_index == 2
    assert queue.entries[2] is current


def test_move_current_entry_follows_it() -> None:
    queue = _queue(1, 2, 3)
    queue.set_current(0)
    queue.move_to(0, 2)
    assert queue.current_index == 2
    assert queue.elapsed_ms == 5_000


def test_move_to_clamps_target_and_rejects_bad_source() -> None:
    queue = _queue(1, 2, 3)
    moved = queue.entries[0]
    assert queue.move_to(0, 99) == 2
    assert queue.entries[2] is moved
    assert queue.move_to(2, -4) == 0
    with pytest.raises(NoTrackError):
        queue.move_to(3, 0)


def test_shuffle_preserves_entries_and_current_identity() -> None:
    queue = _queue(*range(1, 21))
    queue.set_current(5)
    current = queue.current_entry
    before = {id(entry) for entry in queue}

    queue.shuffle(random.Random(3))

    assert {id(entry) for entry in queue} == before
    assert queue.current_entry is current
    assert queue.entries[queue.current_index] is current
    index = queue.current_index
    assert queue.elapsed_ms == sum(e.duration_ms for e in queue.entries[:index])


def test_replace_and_clear_reset_position() -> None:
    queue = _queue(1, 2)
    queue.set_current(1)
    queue.replace([QueueEntry(make_track("new", 7_000))])
    assert queue.current_index is None
    assert queue.duration_ms == 7_000

    queue.clear()
    assert len(queue) == 0
    assert queue.duration_ms == 0


def test_get_out_of_range_raises() -> None:
    queue = _queue(1)
    with pytest.raises(NoTrackError):
        queue.get(-1)
    with pytest.raises(NoTrackError):
        queue.set_current(1)
