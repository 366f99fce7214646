"""Tag reading for tracks, via TinyTag with a WAV header fallback."""

from __future__ import annotations

import logging
import math
import wave
from dataclasses import dataclass
from pathlib import Path

from tinytag import TinyTag

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AudioTags:
    title: str | None = None
    artist: str | None = None
    album: str | None = None
    duration_ms: int | None = None
    error: str | None = None


def read_audio_tags(path: Path) -> AudioTags:
    """Read tags for `path`; failures are reported in `AudioTags.error`."""
    tags = _read_with_tinytag(path)
    if tags.error is None:
        return tags
    wave_tags = _read_wave_fallback(path)
    if wave_tags is not None:
        return wave_tags
    logger.debug("No tags for %s: %s", path, tags.error)
    return tags


def _read_with_tinytag(path: Path) -> AudioTags:
    try:
        tag = TinyTag.get(str(path))
    except Exception as exc:
        return AudioTags(error=str(exc) or type(exc).__name__)
    return AudioTags(
        title=_clean_text(tag.title),
        artist=_clean_text(tag.artist),
        album=_clean_text(tag.album),
        duration_ms=_safe_duration_ms(getattr(tag, "duration", None)),
    )


def _read_wave_fallback(path: Path) -> AudioTags | None:
    try:
        with wave.open(str(path), "rb") as handle:
            frame_rate = int(handle.getframerate())
            frame_count = int(handle.getnframes())
    except Exception:
        return None
    if frame_rate <= 0:
        return None
    return AudioTags(duration_ms=max(1, int((frame_count * 1000) / frame_rate)))


def _clean_text(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _safe_duration_ms(value: object) -> int | None:
    if not isinstance(value, (int, float)):
        return None
    seconds = float(value)
    if not math.isfinite(seconds) or seconds <= 0:
        return None
    return int(seconds * 1000)
