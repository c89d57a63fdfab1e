from __future__ import annotations

import json

import pytest

from dbsandbox import __version__
from dbsandbox.app.vagrant import VagrantControl
from dbsandbox.cli import main as cli_main
from dbsandbox.domain.connection import registry as registry_module
from dbsandbox.domain.connection.registry import ConnectionRegistry
from dbsandbox.settings import RuntimeSettings
from dbsandbox.utils.telemetry import iter_events
from factories import RecordingRunner


@pytest.fixture()
def cli_settings(runtime_settings: RuntimeSettings, monkeypatch: pytest.MonkeyPatch) -> RuntimeSettings:
    monkeypatch.delenv("DBSANDBOX_TELEMETRY", raising=False)
    monkeypatch.setattr(cli_main, "SETTINGS", runtime_settings, raising=False)
    return runtime_settings


@pytest.fixture()
def runner(cli_settings: RuntimeSettings, registry: ConnectionRegistry, monkeypatch: pytest.MonkeyPatch) -> RecordingRunner:
    recording = RecordingRunner()

    def build() -> VagrantControl:
        return VagrantControl(cli_settings, registry=registry, runner=recording)

    monkeypatch.setattr(cli_main, "_build_control", build)
    return recording


def _events(settings: RuntimeSettings) -> list[dict]:
    return list(iter_events(settings))


def test_init_then_up(cli_settings: RuntimeSettings, runner: RecordingRunner, capsys: pytest.CaptureFixture[str]) -> None:
    assert cli_main.main(["init", "demo", "pg"]) == 0
    out = capsys.readouterr().out
    assert "Vagrant Box demo created. To start the box, run 'dbsandbox up demo'" in out
    assert (cli_settings.vagrant_root / "demo" / "Vagrantfile").is_file()

    assert cli_main.main(["up", "demo"]) == 0
    assert runner.calls[0][2] == ["up"]
    assert "Config Name: demo" in capsys.readouterr().out

    events = _events(cli_settings)
    assert [(evt["event"], evt["status"]) for evt in events] == [
        ("vagrant.init", "start"),
        ("vagrant.init", "success"),
        ("vagrant.up", "start"),
        ("vagrant.up", "success"),
    ]
    assert events[-1]["payload"] == {"command": "up", "box": "demo", "exit_code": 0}


def test_missing_box_name_reports_error(
    cli_settings: RuntimeSettings, runner: RecordingRunner, capsys: pytest.CaptureFixture[str]
) -> None:
    assert cli_main.main(["up"]) == 1
    err = capsys.readouterr().err
    assert "vagrant up failed: Missing vagrant box name" in err
    assert runner.calls == []
    error_event = _events(cli_settings)[-1]
    assert error_event["status"] == "error"
    assert error_event["level"] == "error"
    assert error_event["payload"]["type"] == "MissingArgumentError"


def test_unknown_box_reports_error(
    cli_settings: RuntimeSettings, runner: RecordingRunner, capsys: pytest.CaptureFixture[str]
) -> None:
    assert cli_main.main(["destroy", "ghost"]) == 1
    assert "does not exist" in capsys.readouterr().err
    assert runner.calls == []


def test_init_conflict_reports_error(
    cli_settings: RuntimeSettings, runner: RecordingRunner, capsys: pytest.CaptureFixture[str]
) -> None:
    assert cli_main.main(["init", "demo", "pgA", "pgB"]) == 1
    assert "pgB" in capsys.readouterr().err
    assert not (cli_settings.vagrant_root / "demo").exists()


def test_init_without_connections(
    cli_settings: RuntimeSettings, runner: RecordingRunner, capsys: pytest.CaptureFixture[str]
) -> None:
    assert cli_main.main(["init", "demo"]) == 1
    assert "vagrant init failed" in capsys.readouterr().err


def test_vagrant_failure_is_warning_unless_strict(
    cli_settings: RuntimeSettings, runner: RecordingRunner, capsys: pytest.CaptureFixture[str]
) -> None:
    (cli_settings.vagrant_root / "demo").mkdir(parents=True)
    runner.exit_code = 2

    assert cli_main.main(["halt", "demo"]) == 0
    assert "vagrant halt demo finished with exit code 2" in capsys.readouterr().out
    warning = _events(cli_settings)[-1]
    assert warning["status"] == "warning"
    assert warning["level"] == "warn"

    assert cli_main.main(["halt", "demo", "--strict"]) == 2


def test_destroy_passes_force(cli_settings: RuntimeSettings, runner: RecordingRunner) -> None:
    (cli_settings.vagrant_root / "demo").mkdir(parents=True)
    assert cli_main.main(["destroy", "demo"]) == 0
    assert runner.calls == [
        ((cli_settings.vagrant_root / "demo").resolve(), "/opt/vagrant/bin/vagrant", ["destroy", "--force"])
    ]


def test_telemetry_disabled(
    cli_settings: RuntimeSettings, runner: RecordingRunner, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("DBSANDBOX_TELEMETRY", "0")
    (cli_settings.vagrant_root / "demo").mkdir(parents=True)
    assert cli_main.main(["status", "demo"]) == 0
    assert _events(cli_settings) == []


def test_unknown_verb_rejected_by_parser(cli_settings: RuntimeSettings, capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as exc:
        cli_main.main(["package", "demo"])
    assert exc.value.code == 2
    assert "invalid choice" in capsys.readouterr().err


def test_configs_lists_packaged_connections(
    cli_settings: RuntimeSettings, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setattr(registry_module, "iter_plugin_payloads", lambda: iter(()))
    assert cli_main.main(["configs", "--json"]) == 0
    payload = json.loads(capsys.readouterr().out)
    names = {entry["name"] for entry in payload["connections"]}
    assert {"postgresql", "postgresql-windows", "mysql", "mssql"} <= names

    assert cli_main.main(["configs"]) == 0
    out = capsys.readouterr().out
    assert out.startswith("Available database configurations:")
    assert "  - mysql: mysql" in out


def test_telemetry_report_tail_and_clear(
    cli_settings: RuntimeSettings, runner: RecordingRunner, capsys: pytest.CaptureFixture[str]
) -> None:
    (cli_settings.vagrant_root / "demo").mkdir(parents=True)
    cli_main.main(["status", "demo"])
    capsys.readouterr()

    assert cli_main.main(["telemetry", "report"]) == 0
    summary = json.loads(capsys.readouterr().out)
    assert summary["total"] == 2
    assert summary["by_command"] == {"status": 2}
    assert summary["boxes"]["demo"]["status"] == "success"

    assert cli_main.main(["telemetry", "report", "--box", "other"]) == 0
    assert json.loads(capsys.readouterr().out)["total"] == 0


    assert cli_main.main(["telemetry", "tail", "--limit", "1"]) == 0
    lines = capsys.readouterr().out.strip().splitlines()
    assert len(lines) == 1
    assert json.loads(lines[0])["status"] == "success"

    assert cli_main.main(["telemetry", "clear"]) == 0
    assert "Telemetry log cleared" in capsys.readouterr().out
    assert _events(cli_settings) == []


def test_version_flag(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as exc:
        cli_main.main(["--version"])
    assert exc.value.code == 0
    assert f"dbsandbox {__version__}" in capsys.readouterr().out


def test_init_with_unusable_plugin_url_reports_error(
    cli_settings: RuntimeSettings, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    payload = {
        "name": "odd",
        "database": "odd",
        "box_name": "liquibase.linux64",
        "ip_address": "10.0.0.5",
        "username": "lbuser",
        "password": "lbpass",
        "url": "jdbc:x://{host}/{db}",
    }
    monkeypatch.setattr(registry_module, "iter_plugin_payloads", lambda: iter([("plugin:odd", payload)]))

    assert cli_main.main(["init", "demo", "odd"]) == 1

    err = capsys.readouterr().err
    assert "vagrant init failed: plugin:odd" in err
    assert "placeholders" in err
    assert not (cli_settings.vagrant_root / "demo").exists()
    error_event = _events(cli_settings)[-1]
    assert error_event["payload"]["type"] == "InvalidConnectionError"
