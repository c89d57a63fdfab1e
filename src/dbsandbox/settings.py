"""Runtime settings for the dbsandbox CLI."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dbsandbox import __version__


@dataclass(frozen=True)
class RuntimeSettings:
    home_dir: Path
    log_dir: Path
    vagrant_path: str | None = None
    cli_version: str = __version__

    @property
    def vagrant_root(self) -> Path:
        return self.home_dir / "vagrant"

    @property
    def workspace_dir(self) -> Path:
        return self.home_dir / "workspace"


def _default_home_dir() -> Path:
    override = os.environ.get("DBSANDBOX_HOME", "").strip()
    if override:
        return Path(override).expanduser()
    return Path.home() / ".dbsandbox"


def load_settings() -> RuntimeSettings:
    base = _default_home_dir()
    vagrant_path = os.environ.get("DBSANDBOX_VAGRANT", "").strip() or None
    return RuntimeSettings(
        home_dir=base,
        log_dir=base / "logs",
        vagrant_path=vagrant_path,
    )


SETTINGS = load_settings()
