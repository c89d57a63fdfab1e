"""Lifecycle dispatch for vagrant boxes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Mapping, Sequence

from dbsandbox.adapters.jinja_renderer import JinjaTemplateRenderer
from dbsandbox.domain.box import BoxInfo, BoxLayout, resolve_box
from dbsandbox.domain.connection.registry import ConnectionRegistry
from dbsandbox.domain.errors import (
    BoxNotFoundError,
    MissingArgumentError,
    NoConfigurationsError,
    UnknownCommandError,
)
from dbsandbox.settings import RuntimeSettings

from .artifacts import ArtifactWriter, InitReport, indent_block
from .runner import OutputSink, ProcessRunner, print_sink, resolve_vagrant_path

INIT = "init"
DIVIDER = "-" * 80


@dataclass(frozen=True)
class VerbSpec:
    requires_box: bool
    argv: tuple[str, ...] = ()
    help: str = ""


VERBS: Mapping[str, VerbSpec] = {
    INIT: VerbSpec(requires_box=False, help="Generate the Vagrantfile, Puppet manifests and property files"),
    "up": VerbSpec(requires_box=True, argv=("up",), help="Create and start the box"),
    "provision": VerbSpec(requires_box=True, argv=("provision",), help="Re-run Puppet provisioning"),
    "destroy": VerbSpec(requires_box=True, argv=("destroy", "--force"), help="Destroy the box without prompting"),
    "halt": VerbSpec(requires_box=True, argv=("halt",), help="Shut the box down"),
    "reload": VerbSpec(requires_box=True, argv=("reload",), help="Restart the box and reload the Vagrantfile"),
    "resume": VerbSpec(requires_box=True, argv=("resume",), help="Resume a suspended box"),
    "status": VerbSpec(requires_box=True, argv=("status",), help="Show the vagrant state of the box"),
    "suspend": VerbSpec(requires_box=True, argv=("suspend",), help="Suspend the box"),
}


class VagrantControl:
    """Entry point for box lifecycle commands.

    ``init`` resolves connection descriptors and writes the box files; every
    other verb runs vagrant inside an existing box directory.
    """

    def __init__(
        self,
        settings: RuntimeSettings,
        *,
        registry: ConnectionRegistry | None = None,
        writer: ArtifactWriter | None = None,
        runner: ProcessRunner | None = None,
        sink: OutputSink = print_sink,
        vagrant_locator: Callable[[RuntimeSettings], str] = resolve_vagrant_path,
    ) -> None:
        self._settings = settings
        self._layout = BoxLayout(settings.vagrant_root)
        self._registry = registry
        self._writer = writer or ArtifactWriter(JinjaTemplateRenderer(), settings.workspace_dir)
        self._runner = runner or ProcessRunner(sink=sink)
        self._out = sink
        self._vagrant_locator = vagrant_locator

    @property
    def layout(self) -> BoxLayout:
        return self._layout

    @property
    def registry(self) -> ConnectionRegistry:
        if self._registry is None:
            self._registry = ConnectionRegistry.load_default()
        return self._registry

    def dispatch(self, command_args: Sequence[str]) -> int:
        """Run ``[verb, config_name, *extra]`` and return the vagrant exit code (0 for init)."""

        if len(command_args) == 0:
            raise MissingArgumentError("Missing vagrant command")
        if len(command_args) == 1:
            raise MissingArgumentError("Missing vagrant box name")

        verb, config_name, *extra = command_args
        spec = VERBS.get(verb)
        if spec is None:
            raise UnknownCommandError(verb)

        info = self._layout.describe(config_name)
        if verb == INIT:
            self.init(info, extra)
            return 0
        return self.run_vagrant(info, verb)

    def init(self, info: BoxInfo, configs: Sequence[str]) -> InitReport:
        if not configs:
            raise NoConfigurationsError()

        self._out("Vagrant Machine Setup:")
        self._out(indent_block(f"Local Path: {info.box_dir}"))
        self._out(indent_block(f"Config Name: {info.config_name}"))
        self._out(indent_block(f"Database Config(s): {', '.join(configs)}"))

        descriptors = self.registry.find(configs)
        info = resolve_box(info, descriptors)

        self._out(indent_block(f"Vagrant Box: {info.box_name}"))
        self._out(indent_block(f"Hostname: {info.host_name}"))
        self._out("")
        for descriptor in descriptors:
            self._out(f"Database Configuration For '{descriptor}':")
            self._out(indent_block(descriptor.summary()))
            self._out("")

        report = self._writer.write(info, descriptors)

        for skipped in report.skipped_properties:
            self._out(f"NOTE: Not overwriting existing workspace properties file {skipped}")
        self._out(
            f"Vagrant Box {info.config_name} created. "
            f"To start the box, run 'dbsandbox up {info.config_name}'"
        )
        if report.created_properties:
            names = ", ".join(path.name for path in report.created_properties)
            self._out(f"Created workspace properties file(s): {names}")
        self._out("Make sure any needed JDBC drivers are added to LIQUIBASE_HOME/lib")
        self._out(
            f"NOTE: If you do not already have a vagrant box called {info.box_name} installed, "
            f"run 'vagrant box add {info.box_name} VALID_URL'"
        )
        return report

    def run_vagrant(self, info: BoxInfo, verb: str) -> int:
        spec = VERBS.get(verb)
        if spec is None or not spec.argv:
            raise UnknownCommandError(verb)
        if spec.requires_box and not self._layout.exists(info.config_name):
            raise BoxNotFoundError(info.box_dir)

        vagrant = self._vagrant_locator(self._settings)
        if verb == "up":
            self._out(f"Starting vagrant in {info.box_dir}")
            self._out(f"Config Name: {info.config_name}")
            self._out(DIVIDER)
        exit_code = self._runner.run(info.box_dir, vagrant, spec.argv)
        self._out(f"vagrant {verb} {info.config_name} finished with exit code {exit_code}")
        return exit_code


__all__ = ["VagrantControl", "VerbSpec", "VERBS", "INIT"]
