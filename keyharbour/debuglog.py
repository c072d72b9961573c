"""Process-wide debug logging to standard error."""

from __future__ import annotations

import sys
from datetime import datetime

_enabled = False


def set_debug(on: bool) -> None:
    """Enable or disable debug logging globally."""
    global _enabled
    _enabled = bool(on)


def enabled() -> bool:
    """Report whether debug logging is enabled."""
    return _enabled


def _timestamp() -> str:
    now = datetime.now().astimezone()
    if not now.utcoffset():
        return now.strftime("%Y-%m-%dT%H:%M:%S") + "Z"
    return now.isoformat(timespec="seconds")


def _emit(message: str) -> None:
    sys.stderr.write(f"[DEBUG] {_timestamp()} {message}\n")


def debugf(fmt: str, *args: object) -> None:
    """Write a %-formatted debug message to stderr when enabled."""
    if not _enabled:
        return
    _emit(fmt % args if args else fmt)


def debug(*args: object) -> None:
    """Write the space-joined arguments to stderr when enabled."""
    if not _enabled:
        return
    _emit(" ".join(str(arg) for arg in args))