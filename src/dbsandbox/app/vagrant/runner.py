"""Synchronous execution of the vagrant binary with streamed output."""

from __future__ import annotations

import shutil
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Sequence

from dbsandbox.domain.errors import ProcessLaunchError, VagrantNotFoundError
from dbsandbox.settings import RuntimeSettings

OutputSink = Callable[[str], None]

VAGRANT_CANDIDATES = ("vagrant.bat", "vagrant.sh", "vagrant")


def print_sink(line: str) -> None:
    print(line, flush=True)


def resolve_vagrant_path(settings: RuntimeSettings) -> str:
    """Return the vagrant executable: explicit setting first, then PATH lookup."""

    if settings.vagrant_path:
        return settings.vagrant_path
    for candidate in VAGRANT_CANDIDATES:
        found = shutil.which(candidate)
        if found:
            return found
    raise VagrantNotFoundError(
        "Cannot find vagrant on PATH (looked for "
        + ", ".join(VAGRANT_CANDIDATES)
        + "). Install vagrant or set DBSANDBOX_VAGRANT."
    )


@dataclass
class ProcessRunner:
    """Runs one child process at a time and forwards its output line by line.

    stdout and stderr are merged. There is no timeout: a hung child blocks the
    caller until it exits.
    """

    sink: OutputSink = field(default=print_sink)

    def run(self, working_dir: Path, binary: str, argv: Sequence[str]) -> int:
        command = [binary, *argv]
        try:
            process = subprocess.Popen(
                command,
                cwd=working_dir,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                stdin=subprocess.DEVNULL,
                text=True,
                bufsize=1,
                errors="replace",
            )
        except OSError as exc:
            raise ProcessLaunchError(binary, exc.strerror or str(exc)) from exc

        with process:
            assert process.stdout is not None
            for line in process.stdout:
                self.sink(line.rstrip("\r\n"))
            exit_code = process.wait()

        if exit_code != 0:
            self.sink(f"Error running vagrant. Return code {exit_code}")
        return exit_code


__all__ = ["OutputSink", "ProcessRunner", "print_sink", "resolve_vagrant_path", "VAGRANT_CANDIDATES"]
