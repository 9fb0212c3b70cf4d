"""Schedule Sync: availability auto-fill and answer synchronization."""

from __future__ import annotations

from .cli import main as main

__all__ = ["main"]
