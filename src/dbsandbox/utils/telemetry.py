"""Box lifecycle history: one JSON line per phase of a vagrant command (opt-out)."""

from __future__ import annotations

import json
import os
import time
from collections import Counter, deque
from contextlib import contextmanager
from dataclasses import dataclass
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any, Iterable, Iterator, List

import jsonschema

from dbsandbox.domain.errors import SandboxError
from dbsandbox.settings import RuntimeSettings

LOG_FILE = "telemetry.jsonl"
COMPONENT = "vagrant"

STATUS_LEVELS = {"start": "info", "success": "info", "warning": "warn", "error": "error"}

_DISABLE_VALUES = {"0", "false", "no", "off"}


def telemetry_enabled() -> bool:
    value = os.getenv("DBSANDBOX_TELEMETRY", "1").lower()
    return value not in _DISABLE_VALUES


def log_path(settings: RuntimeSettings) -> Path:
    return settings.log_dir / LOG_FILE


def record_vagrant_event(
    settings: RuntimeSettings,
    verb: str,
    box: str | None,
    status: str,
    *,
    duration_ms: float | None = None,
    exit_code: int | None = None,
    error: BaseException | None = None,
) -> dict[str, Any] | None:
    """Append one ``vagrant.<verb>`` record and return it (``None`` when disabled)."""

    if not telemetry_enabled():
        return None
    level = STATUS_LEVELS.get(status)
    if level is None:
        raise ValueError(f"Unknown vagrant event status '{status}'")

    payload: dict[str, Any] = {"command": verb, "box": box}
    if exit_code is not None:
        payload["exit_code"] = exit_code
    if error is not None:
        payload["error"] = str(error)
        payload["type"] = type(error).__name__
    record: dict[str, Any] = {
        "ts": time.time(),
        "event": f"{COMPONENT}.{verb}",
        "status": status,
        "level": level,
        "component": COMPONENT,
        "payload": payload,
    }
    if duration_ms is not None:
        record["durationMs"] = round(duration_ms, 3)
    _validator().validate(record)

    path = log_path(settings)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a", encoding="utf-8") as fh:
        fh.write(json.dumps(record, ensure_ascii=False) + "\n")
    return record


@dataclass
class CommandOutcome:
    exit_code: int = 0


@contextmanager
def track_command(settings: RuntimeSettings, verb: str, box: str | None) -> Iterator[CommandOutcome]:
    """Record start and outcome of one vagrant command.

    The body sets ``exit_code`` on the yielded outcome. A non-zero code is
    logged as ``warning``; a ``SandboxError`` is logged as ``error`` and
    re-raised.
    """

    record_vagrant_event(settings, verb, box, "start")
    outcome = CommandOutcome()
    start = time.perf_counter()
    try:
        yield outcome
    except SandboxError as exc:
        duration = (time.perf_counter() - start) * 1000
        record_vagrant_event(settings, verb, box, "error", duration_ms=duration, error=exc)
        raise
    duration = (time.perf_counter() - start) * 1000
    status = "success" if outcome.exit_code == 0 else "warning"
    record_vagrant_event(settings, verb, box, status, duration_ms=duration, exit_code=outcome.exit_code)


def iter_events(settings: RuntimeSettings, *, box: str | None = None) -> Iterator[dict[str, Any]]:
    path = log_path(settings)
    if not path.exists():
        return
    with path.open("r", encoding="utf-8") as fh:
        for line in fh:
            line = line.strip()
            if not line:
                continue
            try:
                event = json.loads(line)
            except json.JSONDecodeError:
                continue
            if box is not None and (event.get("payload") or {}).get("box") != box:
                continue
            yield event


def recent_events(settings: RuntimeSettings, limit: int, *, box: str | None = None) -> List[dict[str, Any]]:
    if limit <= 0:
        return list(iter_events(settings, box=box))
    return list(deque(iter_events(settings, box=box), maxlen=limit))


def summarize(events: Iterable[dict[str, Any]]) -> dict[str, Any]:
    """Count commands and outcomes, and keep the latest finished command per box."""

    by_command: Counter[str] = Counter()
    by_status: Counter[str] = Counter()
    boxes: dict[str, dict[str, Any]] = {}
    total = 0
    for event in events:
        total += 1
        payload = event.get("payload") or {}
        command = payload.get("command", "unknown")
        status = event.get("status", "unknown")
        by_command[command] += 1
        by_status[status] += 1
        box = payload.get("box")
        if box and status != "start":
            boxes[box] = {
                "command": command,
                "status": status,
                "exit_code": payload.get("exit_code"),
                "ts": event.get("ts"),
            }
    return {
        "total": total,
        "by_command": dict(by_command),
        "by_status": dict(by_status),
        "boxes": boxes,
    }


def clear(settings: RuntimeSettings) -> None:
    path = log_path(settings)
    if path.exists():
        path.unlink()


@lru_cache(maxsize=1)
def _validator() -> jsonschema.protocols.Validator:
    schema_resource = resources.files("dbsandbox.resources") / "telemetry.schema.json"
    schema = json.loads(schema_resource.read_text(encoding="utf-8"))
    return jsonschema.Draft202012Validator(schema)


__all__ = [
    "CommandOutcome",
    "LOG_FILE",
    "STATUS_LEVELS",
    "clear",
    "iter_events",
    "log_path",
    "recent_events",
    "record_vagrant_event",
    "summarize",
    "telemetry_enabled",
    "track_command",
]
