"""Error taxonomy for box orchestration."""

from __future__ import annotations

from typing import Iterable


class SandboxError(RuntimeError):
    """Base class for every failure that aborts a dbsandbox invocation."""


class MissingArgumentError(SandboxError):
    pass


class UnknownCommandError(SandboxError):
    def __init__(self, command: str) -> None:
        super().__init__(f"Unknown vagrant command '{command}'")
        self.command = command


class NoConfigurationsError(SandboxError):
    def __init__(self) -> None:
        super().__init__("No database configurations specified")


class InvalidBoxNameError(SandboxError):
    pass


class BoxNotFoundError(SandboxError):
    def __init__(self, box_dir: object) -> None:
        super().__init__(f"Vagrant box directory {box_dir} does not exist")
        self.box_dir = box_dir


class _ConflictError(SandboxError):
    def __init__(self, descriptor: str, expected: str, actual: str, message: str) -> None:
        super().__init__(message)
        self.descriptor = descriptor
        self.expected = expected
        self.actual = actual


class BoxNameConflictError(_ConflictError):
    def __init__(self, descriptor: str, expected: str, actual: str) -> None:
        super().__init__(
            descriptor,
            expected,
            actual,
            f"Configuration {descriptor} needs vagrant box {actual}, not {expected} like other configurations",
        )


class HostNameConflictError(_ConflictError):
    def __init__(self, descriptor: str, expected: str, actual: str) -> None:
        super().__init__(
            descriptor,
            expected,
            actual,
            f"Configuration {descriptor} uses host {actual} which does not match previously defined hostname {expected}",
        )


class ProcessLaunchError(SandboxError):
    def __init__(self, binary: str, reason: str) -> None:
        super().__init__(f"Error running vagrant: cannot start {binary}: {reason}")
        self.binary = binary


class VagrantNotFoundError(SandboxError):
    pass


class TemplateRenderError(SandboxError):
    def __init__(self, template: str, reason: str) -> None:
        super().__init__(f"Cannot render template {template}: {reason}")
        self.template = template


class UnknownConfigurationError(SandboxError):
    def __init__(self, names: Iterable[str], known: Iterable[str]) -> None:
        names = tuple(names)
        missing = ", ".join(names)
        available = ", ".join(sorted(known)) or "<none>"
        super().__init__(f"Unknown database configuration(s): {missing}. Available: {available}")
        self.names = names


class InvalidConnectionError(SandboxError):
    pass


__all__ = [
    "SandboxError",
    "MissingArgumentError",
    "UnknownCommandError",
    "NoConfigurationsError",
    "InvalidBoxNameError",
    "BoxNotFoundError",
    "BoxNameConflictError",
    "HostNameConflictError",
    "ProcessLaunchError",
    "VagrantNotFoundError",
    "TemplateRenderError",
    "UnknownConfigurationError",
    "InvalidConnectionError",
]
