"""Maintenance tool for the authorization code store.

Two commands are available:

1. ``check`` instantiates ``AppSettings`` from the provided ``.env`` file so
   missing or malformed configuration is surfaced before the server starts.
2. ``purge`` deletes authorization codes whose expiry has passed. The token
   endpoint never removes expired codes itself; schedule this from cron or a
   systemd timer. DynamoDB tables rely on the table TTL instead.

Example usages::

    python -m scripts.sweep_codes check --env-file /opt/authserver/.env
    python -m scripts.sweep_codes purge --env-file /opt/authserver/.env
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Callable

from pydantic import ValidationError

from authserver.clients import SQLiteCodeStore, SupportsExpiryPurge
from authserver.core.clock import SystemClock
from authserver.core.config import AppSettings, _load_env_file
from authserver.core.logging import configure_logging

EXIT_OK = 0
EXIT_VALIDATION_ERROR = 2
EXIT_UNSUPPORTED_BACKEND = 4
EXIT_RUNTIME_ERROR = 5

logger = logging.getLogger("scripts.sweep_codes")


def _load_settings(env_file: Path) -> AppSettings:
    """Load settings after exporting the supplied env file."""
    _load_env_file(str(env_file))
    return AppSettings()  # type: ignore[call-arg]


def _purge(settings: AppSettings) -> int:
    """Delete expired codes from the configured persistent store."""
    backend = settings.code_store.backend
    if backend != "sqlite":
        print(
            f"The {backend} backend cannot be purged from here: in-memory codes "
            "die with the process and DynamoDB expires items through its TTL.",
            file=sys.stderr,
        )
        return EXIT_UNSUPPORTED_BACKEND

    store: SupportsExpiryPurge = SQLiteCodeStore(settings.code_store.sqlite_path)
    removed = store.purge_expired(SystemClock().now())
    logger.info("Purged %d expired authorization codes", removed)
    print(f"Purged {removed} expired authorization code(s).")
    return EXIT_OK


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Validate settings and sweep expired authorization codes."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    for name, help_text in (
        ("check", "Validate settings without touching the code store."),
        ("purge", "Validate settings and delete expired authorization codes."),
    ):
        subparser = subparsers.add_parser(name, help=help_text)
        subparser.add_argument(
            "--env-file",
            default=".env",
            type=Path,
            help="Path to the environment file (default: .env in the repo root).",
        )

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    env_file: Path = args.env_file
    if not env_file.exists():
        print(
            f"Environment file {env_file} does not exist. "
            "Ensure the path is correct or create it before running this tool.",
            file=sys.stderr,
        )
        return EXIT_RUNTIME_ERROR

    try:
        settings = _load_settings(env_file)
    except ValidationError as exc:
        print(
            "Settings validation failed. Missing or invalid values detected:\n"
            f"{exc.json(indent=2)}",
            file=sys.stderr,
        )
        return EXIT_VALIDATION_ERROR
    except ValueError as exc:
        print(f"Settings validation failed: {exc}", file=sys.stderr)
        return EXIT_VALIDATION_ERROR

    configure_logging(settings.log_level)

    handlers: dict[str, Callable[[], int]] = {
        "check": lambda: EXIT_OK,
        "purge": lambda: _purge(settings),
    }
    return handlers[args.command]()


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())
