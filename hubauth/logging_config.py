"""Logging setup shared by the app and the scripts."""

from __future__ import annotations

import logging

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Install one stream handler on the root logger. Safe to call twice."""
    root = logging.getLogger()
    root.setLevel(level.upper())
    if not any(getattr(h, "_hubauth", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT))
        handler._hubauth = True  # type: ignore[attr-defined]
        root.addHandler(handler)


def redact_token(token: str) -> str:
    """Tokens are bearer secrets; only a prefix ever reaches the logs."""
    return f"{token[:10]}..."
