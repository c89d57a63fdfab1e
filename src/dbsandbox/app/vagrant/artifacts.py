"""Generation of the files that make up a box: Vagrantfile, Puppet bundle, property files."""

from __future__ import annotations

import stat
import textwrap
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Sequence, Tuple

from dbsandbox.domain.box import BoxInfo
from dbsandbox.domain.connection import ConnectionDescriptor, PuppetModule
from dbsandbox.ports.template_renderer import TemplateRenderer
from dbsandbox.resources import static_file

VM_MEMORY = "8192"
BASELINE_PACKAGE = "unzip"

WINDOWS_VM_CONFIG = (
    "config.vm.guest = :windows\n"
    'config.vm.network :forwarded_port, guest: 3389, host: 3389, id: "rdp"\n'
    'config.vm.network :forwarded_port, guest: 5985, host: 5985, id: "winrm", auto_correct: true\n'
    "config.windows.halt_timeout = 30\n"
    "config.winrm.username = 'vagrant'\n"
)
WINDOWS_BOOTSTRAP = "shell/bootstrap.bat"
UNIX_BOOTSTRAP = "shell/bootstrap.sh"

LINUX_SERVICE_CONFIG = 'service { "iptables":\n  ensure => "stopped",\n}\n\n'

# (packaged source, destination directory inside the box, executable)
SUPPORT_FILES: Tuple[Tuple[str, str, bool], ...] = (
    ("shell/bootstrap.sh", "shell", True),
    ("shell/bootstrap.bat", "shell", True),
    ("my_firewall/manifests/pre.pp", "modules/my_firewall/manifests", False),
    ("my_firewall/manifests/post.pp", "modules/my_firewall/manifests", False),
)


def _unique(items: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(items))


def indent_block(text: str, width: int = 4) -> str:
    return textwrap.indent(text, " " * width)


def property_file_name(info: BoxInfo, descriptor: ConnectionDescriptor, shared: bool) -> str:
    if shared:
        return f"liquibase.{info.config_name}.properties"
    return f"liquibase.{info.config_name}-{descriptor.name}.properties"


@dataclass
class InitReport:
    box: BoxInfo
    written: List[Path] = field(default_factory=list)
    created_properties: List[Path] = field(default_factory=list)
    skipped_properties: List[Path] = field(default_factory=list)


class ArtifactWriter:
    """Materialises the generated artifact set for a resolved box.

    Steps run in order and stop at the first failure. Files already written
    stay on disk. Property files are never overwritten.
    """

    def __init__(self, renderer: TemplateRenderer, workspace_dir: Path) -> None:
        self._renderer = renderer
        self._workspace_dir = workspace_dir

    @property
    def workspace_dir(self) -> Path:
        return self._workspace_dir

    def write(self, info: BoxInfo, descriptors: Sequence[ConnectionDescriptor]) -> InitReport:
        report = InitReport(box=info)
        info.box_dir.mkdir(parents=True, exist_ok=True)
        report.written.append(self.write_vagrantfile(info))
        report.written.extend(self.copy_support_files(info))
        report.written.append(self.write_puppetfile(info, descriptors))
        report.written.append(self.write_manifest(info, descriptors))
        conf_dir = info.box_dir / "modules" / "conf"
        for descriptor in descriptors:
            report.written.extend(descriptor.write_config_files(conf_dir, self._renderer, info.config_name))
        created, skipped = self.write_property_files(info, descriptors)
        report.created_properties.extend(created)
        report.skipped_properties.extend(skipped)
        return report

    def write_vagrantfile(self, info: BoxInfo) -> Path:
        if info.is_windows:
            os_level_config = WINDOWS_VM_CONFIG
            provision_script = WINDOWS_BOOTSTRAP
        else:
            os_level_config = ""
            provision_script = UNIX_BOOTSTRAP
        context = {
            "config_name": info.config_name,
            "box_name": info.box_name,
            "host_name": info.host_name,
            "memory": VM_MEMORY,
            "os_level_config": indent_block(os_level_config),
            "provision_script": provision_script,
        }
        return self._renderer.write("Vagrantfile.j2", info.box_dir / "Vagrantfile", context)

    def copy_support_files(self, info: BoxInfo) -> List[Path]:
        copied: List[Path] = []
        for source, destination, executable in SUPPORT_FILES:
            resource = static_file(source)
            target_dir = info.box_dir / destination
            target_dir.mkdir(parents=True, exist_ok=True)
            target = target_dir / resource.name
            target.write_bytes(resource.read_bytes())
            if executable:
                target.chmod(target.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
            copied.append(target)
        return copied

    def write_puppetfile(self, info: BoxInfo, descriptors: Sequence[ConnectionDescriptor]) -> Path:
        forges = _unique(forge for descriptor in descriptors for forge in descriptor.puppet_forges)
        modules: dict[str, PuppetModule] = {}
        # first declaration of a module name wins
        for descriptor in descriptors:
            for module in descriptor.puppet_modules:
                modules.setdefault(module.name, module)
        context = {
            "config_name": info.config_name,
            "forges": forges,
            "modules": list(modules.values()),
        }
        return self._renderer.write("Puppetfile.j2", info.box_dir / "Puppetfile", context)

    def write_manifest(self, info: BoxInfo, descriptors: Sequence[ConnectionDescriptor]) -> Path:
        blocks: List[str] = []
        for descriptor in descriptors:
            block = descriptor.puppet_init_block(info.config_name, self._renderer)
            if block is not None:
                blocks.append(block)

        if info.is_linux:
            packages = _unique(
                [BASELINE_PACKAGE, *(pkg for descriptor in descriptors for pkg in descriptor.required_packages)]
            )
            os_level_config = LINUX_SERVICE_CONFIG + "".join(
                f'package {{ "{package}":\n    ensure => "installed"\n}}\n\n' for package in packages
            )
        else:
            os_level_config = ""

        context = {
            "config_name": info.config_name,
            "puppet_blocks": _unique(blocks),
            "os_level_config": os_level_config,
        }
        return self._renderer.write("manifests/init.pp.j2", info.box_dir / "manifests" / "init.pp", context)

    def write_property_files(
        self, info: BoxInfo, descriptors: Sequence[ConnectionDescriptor]
    ) -> Tuple[List[Path], List[Path]]:
        created: List[Path] = []
        skipped: List[Path] = []
        shared = len(descriptors) == 1
        self._workspace_dir.mkdir(parents=True, exist_ok=True)
        for descriptor in descriptors:
            file_name = property_file_name(info, descriptor, shared)
            target = self._workspace_dir / file_name
            if target.exists():
                skipped.append(target)
                continue
            context = {
                "box_name": info.box_name,
                "file_name": file_name,
                "username": descriptor.username,
                "password": descriptor.password,
                "jdbc_url": descriptor.jdbc_url,
            }
            created.append(self._renderer.write("liquibase.properties.j2", target, context))
        return created, skipped


__all__ = [
    "ArtifactWriter",
    "InitReport",
    "indent_block",
    "property_file_name",
    "SUPPORT_FILES",
    "VM_MEMORY",
    "WINDOWS_VM_CONFIG",
    "LINUX_SERVICE_CONFIG",
    "BASELINE_PACKAGE",
]
