"""Packaged resources for dbsandbox: connection descriptors, templates and static files."""

from __future__ import annotations

from importlib import resources
from importlib.resources.abc import Traversable

__all__ = ["static_file"]


def static_file(relative: str) -> Traversable:
    """Return a packaged static support file such as ``shell/bootstrap.sh``."""

    entry = resources.files(__name__) / "static"
    for part in relative.split("/"):
        entry = entry / part
    return entry
