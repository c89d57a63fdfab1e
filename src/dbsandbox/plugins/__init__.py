"""Entry-point discovery for third-party connection descriptors."""

from __future__ import annotations

from importlib import metadata
from typing import Any, Callable, Dict, Iterable, Iterator, Protocol

ENTRY_POINT_GROUP = "dbsandbox.connections"


class ConnectionProvider(Protocol):  # pragma: no cover
    def __call__(self) -> Iterable[Dict[str, Any]]:
        ...


def iter_entry_points() -> Iterable[metadata.EntryPoint]:
    return metadata.entry_points().select(group=ENTRY_POINT_GROUP)


def iter_plugin_payloads() -> Iterator[tuple[str, Dict[str, Any]]]:
    """Yield ``(source, payload)`` pairs contributed by installed plugins."""

    for entry_point in iter_entry_points():
        provider: Callable[[], Iterable[Dict[str, Any]]] = entry_point.load()
        for payload in provider():
            yield f"plugin:{entry_point.name}", dict(payload)


__all__ = ["ConnectionProvider", "ENTRY_POINT_GROUP", "iter_entry_points", "iter_plugin_payloads"]
