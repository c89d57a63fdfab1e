"""Vagrant box lifecycle services."""

from .artifacts import ArtifactWriter, InitReport
from .runner import ProcessRunner, resolve_vagrant_path
from .service import INIT, VERBS, VagrantControl, VerbSpec

__all__ = [
    "ArtifactWriter",
    "InitReport",
    "ProcessRunner",
    "resolve_vagrant_path",
    "INIT",
    "VERBS",
    "VagrantControl",
    "VerbSpec",
]
