from __future__ import annotations

import os
from pathlib import Path

import pytest

from userservice.config import (
    DEFAULT_HOST,
    DEFAULT_PORT,
    ConfigurationError,
    load_settings,
    resolve_env_path,
)

_MANAGED_KEYS = ("API_PORT", "API_HOST", "LOG_LEVEL", "CSV_FILE_PATH", "USERSERVICE_ENV_FILE")


@pytest.fixture(autouse=True)
def isolated_environ(monkeypatch: pytest.MonkeyPatch) -> None:
    # load_dotenv writes straight into os.environ; keep that out of other tests.
    clean = {key: value for key, value in os.environ.items() if key not in _MANAGED_KEYS}
    monkeypatch.setattr(os, "environ", clean)


def _write_env(tmp_path: Path, content: str) -> Path:
    env_file = tmp_path / ".env"
    env_file.write_text(content, encoding="utf-8")
    return env_file


def test_missing_env_file_is_fatal(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError):
        load_settings(tmp_path / "missing.env")


def test_defaults_apply_when_values_are_absent(tmp_path: Path) -> None:
    env_file = _write_env(tmp_path, "# nothing configured\n")

    settings = load_settings(env_file)

    assert settings.port == DEFAULT_PORT == 8080
    assert settings.host == DEFAULT_HOST
    assert settings.log_level == "INFO"
    assert settings.csv_file_path is None
    assert settings.env_file == env_file.resolve()


def test_empty_port_falls_back_to_default(tmp_path: Path) -> None:
    settings = load_settings(_write_env(tmp_path, "API_PORT=\n"))
    assert settings.port == 8080


def test_values_are_read_from_env_file(tmp_path: Path) -> None:
    env_file = _write_env(
        tmp_path,
        "API_PORT=9090\nAPI_HOST=127.0.0.1\nLOG_LEVEL=debug\nCSV_FILE_PATH=data/input.csv\n",
    )

    settings = load_settings(env_file)

    assert settings.port == 9090
    assert settings.host == "127.0.0.1"
    assert settings.log_level == "DEBUG"
    assert settings.csv_file_path == Path("data/input.csv")


def test_process_environment_wins_over_file(tmp_path: Path) -> None:
    os.environ["API_PORT"] = "7000"
    settings = load_settings(_write_env(tmp_path, "API_PORT=9090\n"))
    assert settings.port == 7000


@pytest.mark.parametrize("value", ["eighty", "0", "70000"])
def test_invalid_port_is_rejected(tmp_path: Path, value: str) -> None:
    with pytest.raises(ConfigurationError):
        load_settings(_write_env(tmp_path, f"API_PORT={value}\n"))


def test_unknown_log_level_is_rejected(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError):
        load_settings(_write_env(tmp_path, "LOG_LEVEL=chatty\n"))


def test_env_file_location_can_come_from_environment(tmp_path: Path) -> None:
    env_file = _write_env(tmp_path, "API_PORT=8181\n")
    os.environ["USERSERVICE_ENV_FILE"] = str(env_file)

    settings = load_settings()

    assert settings.port == 8181


def test_default_env_path_points_at_project_env_dir() -> None:
    path = resolve_env_path(None)
    assert path.name == ".env"
    assert path.parent.name == "env"
