"""
Textual front end for browsing, editing and launching SSH connection profiles.

Only ``main`` lives here. Textual is imported when ``main`` runs, so
``python -m sshroster`` and the console script stay cheap to start and the
``app`` module is loaded once even when it is executed directly.
"""

from __future__ import annotations

from typing import Any

__all__ = ["main"]


def main(*args: Any, **kwargs: Any) -> Any:
    """Entry point used by the ``sshroster`` console script."""
    from .app import main as _app_main

    return _app_main(*args, **kwargs)
