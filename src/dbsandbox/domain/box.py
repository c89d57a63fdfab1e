"""Box layout and the immutable environment descriptor."""

from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
from typing import Iterable

from .connection import ConnectionDescriptor
from .errors import BoxNameConflictError, HostNameConflictError, InvalidBoxNameError, MissingArgumentError

WINDOWS_MARKER = "windows"
LINUX_MARKER = "linux"


@dataclass(frozen=True)
class BoxInfo:
    """Working record for one lifecycle invocation against a box."""

    config_name: str
    root_dir: Path
    box_dir: Path
    box_name: str | None = None
    host_name: str | None = None

    @property
    def is_windows(self) -> bool:
        return WINDOWS_MARKER in (self.box_name or "")

    @property
    def is_linux(self) -> bool:
        return LINUX_MARKER in (self.box_name or "")


class BoxLayout:
    """Canonical on-disk layout of boxes under a fixed root directory."""

    def __init__(self, root_dir: Path) -> None:
        self._root = root_dir

    @property
    def root_dir(self) -> Path:
        return self._root

    def resolve(self, config_name: str) -> Path:
        if not config_name or not config_name.strip():
            raise MissingArgumentError("Missing vagrant box name")
        if config_name in {".", ".."} or "/" in config_name or "\\" in config_name:
            raise InvalidBoxNameError(f"Invalid vagrant box name '{config_name}'")
        return (self._root / config_name).resolve()

    def exists(self, config_name: str) -> bool:
        return self.resolve(config_name).is_dir()

    def describe(self, config_name: str) -> BoxInfo:
        return BoxInfo(
            config_name=config_name,
            root_dir=self._root,
            box_dir=self.resolve(config_name),
        )


def resolve_box(info: BoxInfo, descriptors: Iterable[ConnectionDescriptor]) -> BoxInfo:
    """Fold descriptors into ``info``, enforcing a single box image and host.

    The first descriptor sets both values; any later descriptor that disagrees
    aborts with a conflict error naming that descriptor.
    """

    box_name: str | None = None
    host_name: str | None = None
    for descriptor in descriptors:
        if box_name is None:
            box_name = descriptor.box_name
        elif descriptor.box_name != box_name:
            raise BoxNameConflictError(str(descriptor), box_name, descriptor.box_name)

        if host_name is None:
            host_name = descriptor.ip_address
        elif descriptor.ip_address != host_name:
            raise HostNameConflictError(str(descriptor), host_name, descriptor.ip_address)
    return replace(info, box_name=box_name, host_name=host_name)


__all__ = ["BoxInfo", "BoxLayout", "resolve_box", "WINDOWS_MARKER", "LINUX_MARKER"]
