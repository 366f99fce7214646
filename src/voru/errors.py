"""Typed failures raised by the player engine, its backends and collaborators.

Boundary conditions (nothing loaded, index out of range, end of queue) are
`silent`: the calling layer drops them without telling the user. Real failures
(file access, decoding, seeking, bad command input) are surfaced as error
notifications.
"""

from __future__ import annotations

from typing import ClassVar


def format_user_error(
    *, what_failed: str, likely_cause: str, next_step: str, detail: str | None = None
) -> str:
    message = f"{what_failed}\nLikely cause: {likely_cause}\nNext step: {next_step}"
    if detail:
        message = f"{message}\nDetails: {detail}"
    return message


class VoruError(Exception):
    """Base class for every error the player reports."""

    silent: ClassVar[bool] = False

    def user_message(self) -> str:
        return str(self)


class PlaybackError(VoruError):
    """Failure of an engine or backend operation."""


class PlaybackIoError(PlaybackError):
    """The media file could not be opened."""

    def __init__(self, path: str, cause: OSError | None = None) -> None:
        self.path = path
        self.cause = cause
        detail = f": {cause.strerror or cause}" if cause is not None else ""
        super().__init__(f"I/O error for {path}{detail}")

    def user_message(self) -> str:
        return format_user_error(
            what_failed="Couldn't play the track.",
            likely_cause="The file is missing, moved, or not readable.",
            next_step="Check the path and remove the entry from the queue.",
            detail=str(self),
        )


class PlaybackDecodeError(PlaybackError):
    """The backend could not start playback of the loaded media."""

    def user_message(self) -> str:
        return format_user_error(
            what_failed="Couldn't play the track.",
            likely_cause="Unrecognized format or playback backend failure.",
            next_step="Verify the file plays elsewhere and the backend is installed.",
            detail=str(self),
        )


class PlaybackSeekError(PlaybackError):
    """The backend rejected a seek request."""

    def user_message(self) -> str:
        return format_user_error(
            what_failed="Seeking failed.",
            likely_cause="The stream does not support seeking to that position.",
            next_step="Retry with a smaller jump.",
            detail=str(self),
        )


class NoAudioError(PlaybackError):
    silent = True

    def __init__(self, message: str = "No audio is currently loaded") -> None:
        super().__init__(message)


class NoTrackError(PlaybackError):
    silent = True

    def __init__(self, message: str = "No such track") -> None:
        super().__init__(message)


class NoPlaylistError(PlaybackError):
    silent = True

    def __init__(self, message: str = "No such playlist") -> None:
        super().__init__(message)


class NotPlayingError(PlaybackError):
    silent = True

    def __init__(self, message: str = "Nothing is being played") -> None:
        super().__init__(message)


class NoMoreTracksError(PlaybackError):
    silent = True

    def __init__(self, message: str = "No more tracks to play") -> None:
        super().__init__(message)


class EmptyQueueError(PlaybackError):
    silent = True

    def __init__(self, message: str = "Queue is empty") -> None:
        super().__init__(message)


class TrackLoadError(VoruError):
    """A track path could not be turned into a `Track`."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f'"{path}": {reason}')


class PlaylistLoadError(VoruError):
    """A playlist file or directory could not be loaded."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f'Unable to load playlist "{path}": {reason}')


class CommandError(VoruError):
    """Bad `:command` input."""
