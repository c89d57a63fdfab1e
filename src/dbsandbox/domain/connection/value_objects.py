"""Value objects describing database connection configurations."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any, Dict, List, Tuple

from dbsandbox.ports.template_renderer import TemplateRenderer

_NAME_PATTERN = re.compile(r"^[a-z0-9](?:[a-z0-9_.-]{0,63})$", re.IGNORECASE)
_URL_PLACEHOLDERS = ("host", "port", "catalog", "alt_catalog")


@dataclass(frozen=True)
class PuppetModule:
    name: str
    version: str | None = None

    def declaration(self) -> str:
        if self.version:
            return f'mod "{self.name}", "{self.version}"'
        return f'mod "{self.name}"'

    @classmethod
    def from_value(cls, value: Any) -> "PuppetModule":
        if isinstance(value, str):
            return cls(name=value)
        return cls(name=str(value["name"]), version=value.get("version"))


@dataclass(frozen=True)
class ConfigFile:
    template: str
    target: str


@dataclass(frozen=True)
class ConnectionDescriptor:
    """Connection and provisioning metadata for one database engine variant."""

    name: str
    database: str
    box_name: str
    ip_address: str
    username: str
    password: str
    url_template: str
    version: str = ""
    port: int | None = None
    catalog: str = "lbcat"
    alt_catalog: str = "lbcat2"
    description: str = ""
    requires: Tuple[str, ...] = ()
    required_packages: Tuple[str, ...] = ()
    puppet_forges: Tuple[str, ...] = ()
    puppet_modules: Tuple[PuppetModule, ...] = ()
    puppet_init: str | None = None
    config_files: Tuple[ConfigFile, ...] = ()
    metadata: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not _NAME_PATTERN.match(self.name):
            raise ValueError(
                "Connection name must be alphanumeric with optional '-', '_' or '.' and <=64 chars",
            )
        for attr in ("database", "box_name", "ip_address", "url_template"):
            if not str(getattr(self, attr)).strip():
                raise ValueError(f"Connection '{self.name}' requires a non-empty {attr}")
        self._check_url_template()
        for item in self.config_files:
            target = PurePosixPath(item.target.replace("\\", "/"))
            if target.is_absolute() or ".." in target.parts:
                raise ValueError(
                    f"Connection '{self.name}' config file target '{item.target}' must stay inside the conf directory"
                )
        normalised = {str(k): str(v) for k, v in self.metadata.items()}
        object.__setattr__(self, "metadata", normalised)

    def __str__(self) -> str:
        return self.name

    def _check_url_template(self) -> None:
        try:
            self.url_template.format(**dict.fromkeys(_URL_PLACEHOLDERS, ""))
        except (KeyError, IndexError, AttributeError) as exc:
            raise ValueError(
                f"Connection '{self.name}' url may only use the placeholders "
                + ", ".join("{" + item + "}" for item in _URL_PLACEHOLDERS)
                + f" (found {exc})"
            ) from exc
        except ValueError as exc:
            raise ValueError(f"Connection '{self.name}' has a malformed url: {exc}") from exc

    @property
    def jdbc_url(self) -> str:
        return self.url_template.format(
            host=self.ip_address,
            port="" if self.port is None else self.port,
            catalog=self.catalog,
            alt_catalog=self.alt_catalog,
        )

    def template_context(self, config_name: str) -> Dict[str, Any]:
        return {
            "config_name": config_name,
            "connection": self,
            "name": self.name,
            "database": self.database,
            "version": self.version,
            "host_name": self.ip_address,
            "port": self.port,
            "username": self.username,
            "password": self.password,
            "catalog": self.catalog,
            "alt_catalog": self.alt_catalog,
            "jdbc_url": self.jdbc_url,
            "metadata": dict(self.metadata),
        }

    def summary(self) -> str:
        lines = [
            f"Database: {self.database} {self.version}".rstrip(),
            f"JDBC Url: {self.jdbc_url}",
            f"Username: {self.username}",
            f"Password: {self.password}",
            f"Primary Catalog: {self.catalog}",
            f"Alternate Catalog: {self.alt_catalog}",
        ]
        if self.description:
            lines.append(self.description.strip())
        lines.extend(f"REQUIRES: {item}" for item in self.requires)
        return "\n".join(lines)

    def puppet_init_block(self, config_name: str, renderer: TemplateRenderer) -> str | None:
        if not self.puppet_init:
            return None
        return renderer.render(self.puppet_init, self.template_context(config_name))

    def write_config_files(self, conf_dir: Path, renderer: TemplateRenderer, config_name: str) -> List[Path]:
        context = self.template_context(config_name)
        written: List[Path] = []
        for item in self.config_files:
            written.append(renderer.write(item.template, conf_dir / item.target, context))
        return written

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "name": self.name,
            "database": self.database,
            "version": self.version,
            "box_name": self.box_name,
            "ip_address": self.ip_address,
            "username": self.username,
            "password": self.password,
            "url": self.url_template,
            "catalog": self.catalog,
            "alt_catalog": self.alt_catalog,
        }
        if self.port is not None:
            payload["port"] = self.port
        if self.description:
            payload["description"] = self.description
        if self.requires:
            payload["requires"] = list(self.requires)
        if self.required_packages:
            payload["required_packages"] = list(self.required_packages)
        puppet: Dict[str, Any] = {}
        if self.puppet_forges:
            puppet["forges"] = list(self.puppet_forges)
        if self.puppet_modules:
            puppet["modules"] = [
                {"name": module.name, "version": module.version} if module.version else module.name
                for module in self.puppet_modules
            ]
        if self.puppet_init:
            puppet["init"] = self.puppet_init
        if puppet:
            payload["puppet"] = puppet
        if self.config_files:
            payload["config_files"] = [{"template": item.template, "target": item.target} for item in self.config_files]
        if self.metadata:
            payload["metadata"] = dict(self.metadata)
        return payload

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConnectionDescriptor":
        puppet = data.get("puppet") or {}
        port = data.get("port")
        return cls(
            name=str(data["name"]),
            database=str(data["database"]),
            version=str(data.get("version", "")),
            box_name=str(data["box_name"]),
            ip_address=str(data["ip_address"]),
            port=int(port) if port is not None else None,
            username=str(data["username"]),
            password=str(data["password"]),
            url_template=str(data["url"]),
            catalog=str(data.get("catalog", "lbcat")),
            alt_catalog=str(data.get("alt_catalog", "lbcat2")),
            description=str(data.get("description", "")),
            requires=tuple(str(item) for item in data.get("requires", []) or []),
            required_packages=tuple(str(item) for item in data.get("required_packages", []) or []),
            puppet_forges=tuple(str(item) for item in puppet.get("forges", []) or []),
            puppet_modules=tuple(PuppetModule.from_value(item) for item in puppet.get("modules", []) or []),
            puppet_init=puppet.get("init"),
            config_files=tuple(
                ConfigFile(template=str(item["template"]), target=str(item["target"]))
                for item in data.get("config_files", []) or []
            ),
            metadata={k: str(v) for k, v in (data.get("metadata") or {}).items()},
        )


__all__ = ["ConnectionDescriptor", "PuppetModule", "ConfigFile"]
