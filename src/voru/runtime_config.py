"""Normalization of CLI flags and config values into runtime settings."""

from __future__ import annotations

import logging

BACKEND_CHOICES = ("fake", "vlc")
DEFAULT_BACKEND = "vlc"


def resolve_log_level(
    *, verbose: bool, quiet: bool, configured: str | None = None
) -> str:
    """Resolve the effective log level.

    `--quiet` overrides `--verbose`; either flag overrides the configured level.
    """
    if quiet:
        return "WARNING"
    if verbose:
        return "DEBUG"
    if configured is not None:
        return normalize_log_level(configured)
    return "INFO"


def normalize_log_level(value: str) -> str:
    normalized = value.strip().upper()
    if isinstance(logging.getLevelName(normalized), int):
        return normalized
    return "INFO"


def resolve_backend(cli_value: str | None, configured: str | None) -> str:
    """CLI choice first, then config, then the default backend."""
    for candidate in (cli_value, configured):
        if candidate is None:
            continue
        normalized = candidate.strip().lower()
        if normalized in BACKEND_CHOICES:
            return normalized
    return DEFAULT_BACKEND
