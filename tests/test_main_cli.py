from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import main
from main import _parse_args

_MANAGED_KEYS = ("API_PORT", "API_HOST", "LOG_LEVEL", "CSV_FILE_PATH", "USERSERVICE_ENV_FILE")


@pytest.fixture()
def isolated_environ(monkeypatch: pytest.MonkeyPatch) -> None:
    clean = {key: value for key, value in os.environ.items() if key not in _MANAGED_KEYS}
    monkeypatch.setattr(os, "environ", clean)


def test_default_command_invokes_serve() -> None:
    args = _parse_args([])
    assert args.command == "serve"


def test_default_command_accepts_options_without_subcommand() -> None:
    args = _parse_args(["--host", "127.0.0.1", "--port", "8081"])
    assert args.command == "serve"
    assert args.host == "127.0.0.1"
    assert args.port == 8081


def test_csv_subcommand_available() -> None:
    args = _parse_args(["csv", "--path", "input.csv"])
    assert args.command == "csv"
    assert args.path == "input.csv"


def test_missing_env_file_exits_with_error(tmp_path: Path, isolated_environ: None) -> None:
    assert main.main(["serve", "--env-file", str(tmp_path / "absent.env")]) == 1


def test_serve_runs_uvicorn_with_configured_port(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    isolated_environ: None,
) -> None:
    import uvicorn

    env_file = tmp_path / ".env"
    env_file.write_text("API_PORT=9191\n", encoding="utf-8")
    calls: list[dict] = []

    def fake_run(app, **kwargs):
        calls.append({"app": app, **kwargs})

    monkeypatch.setattr(uvicorn, "run", fake_run)

    assert main.main(["serve", "--env-file", str(env_file), "--host", "127.0.0.1"]) == 0

    assert len(calls) == 1
    assert calls[0]["port"] == 9191
    assert calls[0]["host"] == "127.0.0.1"
    assert calls[0]["app"].state.repository is not None


def test_csv_command_prints_records(
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
    isolated_environ: None,
) -> None:
    source = tmp_path / "records.csv"
    source.write_text(
        "id,name,value,category,timestamp\n1,Widget,2.5,tools,2024-01-01\n",
        encoding="utf-8",
    )
    env_file = tmp_path / ".env"
    env_file.write_text(f"CSV_FILE_PATH={source}\n", encoding="utf-8")

    assert main.main(["csv", "--env-file", str(env_file)]) == 0

    output = capsys.readouterr().out
    assert "ID: 1, Name: Widget, Value: 2.500000, Category: tools, Timestamp: 2024-01-01" in output
    assert "Processed 1 records successfully!" in output


def test_csv_command_without_source_fails(tmp_path: Path, isolated_environ: None) -> None:
    env_file = tmp_path / ".env"
    env_file.write_text("", encoding="utf-8")
    assert main.main(["csv", "--env-file", str(env_file)]) == 1
