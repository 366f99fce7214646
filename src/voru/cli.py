"""Command-line entry point for voru."""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence
from pathlib import Path

from . import __version__
from .config import load_config_with_notice
from .logging_utils import setup_logging
from .paths import config_path, log_dir
from .runtime_config import BACKEND_CHOICES, resolve_log_level


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="voru", description="Keyboard-driven terminal music player."
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    parser.add_argument("--verbose", action="store_true", help="Enable verbose output")
    parser.add_argument(
        "--quiet", action="store_true", help="Only show warnings and errors"
    )
    parser.add_argument("--log-file", help="Write logs to a file path")
    parser.add_argument("--config", help="Read settings from this config.json")
    parser.add_argument(
        "--backend",
        choices=BACKEND_CHOICES,
        help="Playback backend to use (fake or vlc).",
    )
    parser.add_argument(
        "--no-mpris",
        action="store_true",
        help="Do not register the MPRIS remote control on the session bus.",
    )
    parser.add_argument("--echo", metavar="MSG", help="Show MSG once started")
    parser.add_argument(
        "command",
        nargs="*",
        help="Player command to run after startup, e.g. `queue-add ~/music/*`.",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logger = logging.getLogger(__name__)
    try:
        config, config_notice = load_config_with_notice(
            Path(args.config).expanduser() if args.config else config_path()
        )
        level = resolve_log_level(
            verbose=args.verbose, quiet=args.quiet, configured=config.log_level
        )
        setup_logging(
            log_dir=log_dir(),
            level=level,
            log_file=Path(args.log_file) if args.log_file else None,
            console=False,
        )
        logger.info("Starting voru")

        from .app import VoruApp

        VoruApp(
            config=config,
            backend_name=args.backend,
            mpris_enabled=False if args.no_mpris else None,
            startup_command=" ".join(args.command) or None,
            echo=args.echo,
            config_notice=config_notice,
        ).run()
        return 0
    except Exception as exc:  # pragma: no cover - top-level safety net
        logger.exception("Fatal startup error: %s", exc)
        print(
            "Startup failed. Verify backend/config/log paths and re-run with --verbose.",
            file=sys.stderr,
        )
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
