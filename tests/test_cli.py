from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from semsel import cli

runner = CliRunner()


@pytest.fixture()
def logging_calls(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> list[tuple[str, Path | None]]:
    calls: list[tuple[str, Path | None]] = []
    monkeypatch.setenv("LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.setattr(cli, "setup_logging", lambda level, log_file=None: calls.append((level, log_file)))
    return calls


@pytest.fixture()
def mapping_dir(tmp_path: Path, logging_calls: list[tuple[str, Path | None]]) -> Path:
    elements = [
        {
            "tagName": "input",
            "xpath": "/html/body/form/input[1]",
            "semanticKey": "login_text_input_username",
            "attributes": {"data-testid": "login-username"},
        },
        {
            "tagName": "button",
            "xpath": "/html/body/form/button",
            "semanticKey": "login_button_submit",
            "innerText": "Sign in",
            "featureName": "login",
        },
    ]
    (tmp_path / "login.json").write_text(json.dumps(elements), encoding="utf-8")
    return tmp_path


def test_resolve_command(mapping_dir: Path) -> None:
    result = runner.invoke(cli.app, ["resolve", "username", "--mapping-dir", str(mapping_dir)])

    assert result.exit_code == 0
    assert '[data-testid="login-username"]' in result.output


def test_resolve_command_not_found(mapping_dir: Path) -> None:
    result = runner.invoke(cli.app, ["resolve", "shopping cart", "--mapping-dir", str(mapping_dir)])

    assert result.exit_code == 1
    assert "shopping cart" in result.output


def test_keys_command(mapping_dir: Path) -> None:
    result = runner.invoke(cli.app, ["keys", "--feature", "login", "--mapping-dir", str(mapping_dir)])

    assert result.exit_code == 0
    assert "login_button_submit" in result.output
    assert "login_text_input_username" in result.output


def test_suggest_command(mapping_dir: Path) -> None:
    result = runner.invoke(cli.app, ["suggest", "sign in button", "--mapping-dir", str(mapping_dir)])

    assert result.exit_code == 0
    assert "login_button_submit" in result.output


def test_commands_log_to_file_in_log_dir(
    mapping_dir: Path, logging_calls: list[tuple[str, Path | None]], tmp_path: Path
) -> None:
    result = runner.invoke(cli.app, ["keys", "--mapping-dir", str(mapping_dir)])

    assert result.exit_code == 0
    assert (tmp_path / "logs").is_dir()
    assert [log_file for _, log_file in logging_calls] == [tmp_path / "logs" / "semsel.log"]
