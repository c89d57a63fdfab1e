from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Callable, List

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
PYTEST_HOME = Path(os.environ.get("PYTEST_DEBUG_TEMPROOT", "/tmp/dbsandbox-pytest")).resolve() / "home"
os.environ.setdefault("DBSANDBOX_HOME", str(PYTEST_HOME))
PYTEST_HOME.mkdir(parents=True, exist_ok=True)
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from dbsandbox.domain.connection.registry import ConnectionRegistry  # noqa: E402
from dbsandbox.settings import RuntimeSettings  # noqa: E402
from factories import make_descriptor  # noqa: E402


@pytest.fixture()
def runtime_settings(tmp_path: Path) -> RuntimeSettings:
    home = tmp_path / "dbsandbox-home"
    log_dir = home / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    return RuntimeSettings(home_dir=home, log_dir=log_dir, vagrant_path="/opt/vagrant/bin/vagrant")


@pytest.fixture()
def output() -> List[str]:
    return []


@pytest.fixture()
def sink(output: List[str]) -> Callable[[str], None]:
    return output.append


@pytest.fixture()
def registry() -> ConnectionRegistry:
    return ConnectionRegistry(
        [
            make_descriptor("pg"),
            make_descriptor("pgA", required_packages=("postgresql-devel",)),
            make_descriptor("pgB", box_name="liquibase.linux32"),
            make_descriptor("pgC", ip_address="10.0.0.9"),
            make_descriptor("mysql", database="mysql", port=3306, required_packages=("mysql-devel",)),
            make_descriptor(
                "mssql",
                database="mssql",
                box_name="liquibase.windows2012",
                ip_address="10.0.0.7",
                url_template="jdbc:sqlserver://{host}:{port};databaseName={catalog}",
                port=1433,
            ),
        ]
    )
