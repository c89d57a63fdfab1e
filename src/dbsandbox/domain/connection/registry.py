"""Registry resolving configuration names to connection descriptors."""

from __future__ import annotations

import json
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Sequence

import jsonschema
import yaml

from dbsandbox.domain.errors import InvalidConnectionError, UnknownConfigurationError
from dbsandbox.plugins import iter_plugin_payloads

from .value_objects import ConnectionDescriptor


@lru_cache(maxsize=1)
def _validator() -> jsonschema.protocols.Validator:
    schema_resource = resources.files("dbsandbox.resources") / "connection.schema.json"
    schema = json.loads(schema_resource.read_text(encoding="utf-8"))
    return jsonschema.Draft202012Validator(schema)


def _iter_yaml_payloads(documents: Iterable[tuple[str, str]]) -> Iterator[tuple[str, Dict[str, Any]]]:
    for source, text in documents:
        data = yaml.safe_load(text) or {}
        entries = data.get("connections", []) if isinstance(data, dict) else []
        if not isinstance(entries, list):
            raise InvalidConnectionError(f"{source}: 'connections' must be a list")
        for entry in entries:
            yield source, entry


def _packaged_documents() -> Iterator[tuple[str, str]]:
    directory = resources.files("dbsandbox.resources") / "connections"
    for entry in sorted(directory.iterdir(), key=lambda item: item.name):
        if entry.name.endswith((".yaml", ".yml")):
            yield entry.name, entry.read_text("utf-8")


class ConnectionRegistry:
    """In-memory index of connection descriptors keyed by name."""

    def __init__(self, descriptors: Iterable[ConnectionDescriptor] = ()) -> None:
        self._entries: Dict[str, ConnectionDescriptor] = {}
        for descriptor in descriptors:
            self.add(descriptor)

    @classmethod
    def from_payloads(cls, payloads: Iterable[tuple[str, Any]]) -> "ConnectionRegistry":
        registry = cls()
        validator = _validator()
        for source, payload in payloads:
            errors = sorted(validator.iter_errors(payload), key=lambda err: list(err.path))
            if errors:
                location = "/".join(str(part) for part in errors[0].path) or "<root>"
                raise InvalidConnectionError(f"{source}: invalid connection at {location}: {errors[0].message}")
            try:
                descriptor = ConnectionDescriptor.from_dict(payload)
            except ValueError as exc:
                raise InvalidConnectionError(f"{source}: {exc}") from exc
            registry.add(descriptor, source=source)
        return registry

    @classmethod
    def from_directory(cls, directory: Path) -> "ConnectionRegistry":
        documents = (
            (path.name, path.read_text(encoding="utf-8"))
            for path in sorted(directory.glob("*.y*ml"))
        )
        return cls.from_payloads(_iter_yaml_payloads(documents))

    @classmethod
    def load_default(cls, *, include_plugins: bool = True) -> "ConnectionRegistry":
        payloads: List[tuple[str, Any]] = list(_iter_yaml_payloads(_packaged_documents()))
        if include_plugins:
            payloads.extend(iter_plugin_payloads())
        return cls.from_payloads(payloads)

    def add(self, descriptor: ConnectionDescriptor, *, source: str | None = None) -> None:
        if descriptor.name in self._entries:
            origin = f" ({source})" if source else ""
            raise InvalidConnectionError(f"Connection '{descriptor.name}' already registered{origin}")
        self._entries[descriptor.name] = descriptor

    def get(self, name: str) -> ConnectionDescriptor | None:
        return self._entries.get(name)

    def list(self) -> List[ConnectionDescriptor]:
        return [self._entries[name] for name in sorted(self._entries)]

    def names(self) -> List[str]:
        return sorted(self._entries)

    def find(self, names: Sequence[str]) -> List[ConnectionDescriptor]:
        """Resolve ``names`` in request order, dropping repeated names."""

        missing = [name for name in names if name not in self._entries]
        if missing:
            raise UnknownConfigurationError(missing, self._entries)
        seen: set[str] = set()
        found: List[ConnectionDescriptor] = []
        for name in names:
            if name in seen:
                continue
            seen.add(name)
            found.append(self._entries[name])
        return found


__all__ = ["ConnectionRegistry"]
