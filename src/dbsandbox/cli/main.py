#!/usr/bin/env python3
"""Entry point for the dbsandbox CLI."""

from __future__ import annotations

import argparse
import json
import sys
from textwrap import dedent

from dbsandbox import __version__
from dbsandbox.app.vagrant import INIT, VERBS, VagrantControl
from dbsandbox.domain.connection.registry import ConnectionRegistry
from dbsandbox.domain.errors import SandboxError
from dbsandbox.settings import SETTINGS
from dbsandbox.utils.telemetry import clear as telemetry_clear
from dbsandbox.utils.telemetry import recent_events, summarize, track_command


HELP_OVERVIEW = dedent(
    """
    Disposable vagrant boxes for database integration tests.

    Typical session:
      - dbsandbox configs                      - list available database configurations
      - dbsandbox init demo postgresql         - write Vagrantfile, Puppet manifests and property files
      - dbsandbox up demo                      - create and provision the box
      - dbsandbox destroy demo                 - tear it down again

    Several configurations can share one box when they use the same vagrant
    image and host address: dbsandbox init demo postgresql mysql
    """
)


def _build_control() -> VagrantControl:
    return VagrantControl(SETTINGS)


def _vagrant_cmd(args: argparse.Namespace) -> int:
    verb = args.verb
    config_name = getattr(args, "config_name", None)
    command_args = [verb]
    if config_name is not None:
        command_args.append(config_name)
    command_args.extend(getattr(args, "connections", None) or [])

    try:
        with track_command(SETTINGS, verb, config_name) as outcome:
            outcome.exit_code = _build_control().dispatch(command_args)
    except SandboxError as exc:
        print(f"vagrant {verb} failed: {exc}", file=sys.stderr)
        return 1

    if outcome.exit_code != 0 and getattr(args, "strict", False):
        return outcome.exit_code
    return 0


def _configs_cmd(args: argparse.Namespace) -> int:
    try:
        registry = ConnectionRegistry.load_default()
    except SandboxError as exc:
        print(f"configs failed: {exc}", file=sys.stderr)
        return 1
    descriptors = registry.list()
    if getattr(args, "json", False):
        payload = {"connections": [item.to_dict() for item in descriptors]}
        print(json.dumps(payload, ensure_ascii=False, indent=2))
        return 0
    if not descriptors:
        print("configs: no database configurations registered")
        return 0
    print("Available database configurations:")
    for item in descriptors:
        version = f" {item.version}" if item.version else ""
        print(f"  - {item.name}: {item.database}{version} @ {item.box_name} ({item.ip_address})")
    return 0


def _telemetry_cmd(args: argparse.Namespace) -> int:
    box = getattr(args, "box", None)
    if args.telemetry_command == "report":
        summary = summarize(recent_events(SETTINGS, args.recent, box=box))
        print(json.dumps(summary, indent=2, ensure_ascii=False))
        return 0
    if args.telemetry_command == "tail":
        for event in recent_events(SETTINGS, args.limit, box=box):
            print(json.dumps(event, ensure_ascii=False))
        return 0
    telemetry_clear(SETTINGS)
    print("Telemetry log cleared")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dbsandbox",
        description=HELP_OVERVIEW,
        formatter_class=argparse.RawTextHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"dbsandbox {__version__}")

    sub = parser.add_subparsers(dest="command", required=True)

    for verb, spec in VERBS.items():
        verb_cmd = sub.add_parser(verb, help=spec.help)
        verb_cmd.add_argument("config_name", nargs="?", help="Box name (directory under the vagrant root)")
        if verb == INIT:
            verb_cmd.add_argument("connections", nargs="*", help="Database configuration(s) hosted by the box")
        else:
            verb_cmd.add_argument(
                "--strict",
                action="store_true",
                help="Exit with vagrant's return code instead of reporting failures as warnings",
            )
        verb_cmd.set_defaults(func=_vagrant_cmd, verb=verb)

    configs_cmd = sub.add_parser("configs", help="List available database configurations")
    configs_cmd.add_argument("--json", action="store_true", help="Emit machine-readable output")
    configs_cmd.set_defaults(func=_configs_cmd)

    telemetry_cmd = sub.add_parser("telemetry", help="Inspect the history of vagrant commands")
    telemetry_sub = telemetry_cmd.add_subparsers(dest="telemetry_command", required=True)

    telemetry_report = telemetry_sub.add_parser("report", help="Summarise commands, outcomes and the latest state of each box")
    telemetry_report.add_argument("--recent", type=int, default=0, help="Only summarise the last N events")
    telemetry_report.add_argument("--box", help="Only include events for this box")
    telemetry_report.set_defaults(func=_telemetry_cmd)

    telemetry_clear_cmd = telemetry_sub.add_parser("clear", help="Remove telemetry log file")
    telemetry_clear_cmd.set_defaults(func=_telemetry_cmd)

    telemetry_tail = telemetry_sub.add_parser("tail", help="Print last N telemetry events")
    telemetry_tail.add_argument("--limit", type=int, default=20, help="Number of events to print")
    telemetry_tail.add_argument("--box", help="Only include events for this box")
    telemetry_tail.set_defaults(func=_telemetry_cmd)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(sys.argv[1:] if argv is None else argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
