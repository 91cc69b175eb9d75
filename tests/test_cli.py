"""Tests for the command-line interface."""

from unittest.mock import MagicMock

import pytest
from click.testing import CliRunner

from ttdraw.cli import cli
from ttdraw.storage import DatabaseManager


@pytest.fixture
def config_path(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        f"database: {tmp_path / 'cli.sqlite'}\ndefault_qualifiers_per_group: 2\nlog_level: WARNING\n",
        encoding="utf-8",
    )
    return str(path)


@pytest.fixture
def run(config_path):
    runner = CliRunner()

    def _run(*args):
        return runner.invoke(cli, ["--config", config_path, *args])

    return _run


def register(run, firstname, affiliation):
    result = run(
        "register-player", "--firstname", firstname, "--lastname", "Test",
        "--category", "U18", "--affiliation", affiliation,
    )
    assert result.exit_code == 0, result.output
    return result


def test_register_approve_group_and_build(run):
    result = register(run, "Ana", "Club 1")
    assert "[SUCCESS] Registered #1" in result.output
    register(run, "Ben", "Club 2")
    register(run, "Cal", "Club 3")

    result = run("approve-player", "1", "2", "3")
    assert result.exit_code == 0, result.output
    assert result.output.count("[SUCCESS]") == 3

    result = run("assign-group", "--group", "A", "1", "2", "3")
    assert result.exit_code == 0, result.output
    assert "3 players assigned to group A" in result.output

    result = run("build-draw", "--category", "U18")
    assert result.exit_code == 0, result.output
    assert "U18 Tournament: 3 group matches" in result.output

    result = run("list-matches", "--category", "U18", "--round", "group")
    assert result.exit_code == 0, result.output
    assert "[INFO] 3 matches" in result.output

    result = run("list-matches", "--category", "U18", "--round", "semi", "--round", "final")
    assert "[INFO] 3 matches" in result.output


def test_results_standings_and_fill(run):
    for name in ("Ana", "Ben"):
        register(run, name, f"Club {name}")
    run("approve-player", "1", "2")
    run("assign-group", "--group", "A", "1", "2")
    run("build-draw", "--all")

    result = run("fill-bracket", "--category", "U18")
    assert result.exit_code == 0, result.output
    assert "[WARNING] Group stage not completed" in result.output

    # The only group match has id 1
    result = run("record-result", "1", "3", "1")
    assert result.exit_code == 0, result.output
    assert "winner: P1" in result.output

    result = run("standings", "--category", "U18")
    assert result.exit_code == 0, result.output
    assert "1. Ana Test - 2pts" in result.output
    assert "2. Ben Test - 1pts" in result.output

    result = run("fill-bracket", "--category", "U18")
    assert "[SUCCESS] Bracket generated successfully" in result.output

    result = run("fill-bracket", "--category", "U18")
    assert "[WARNING] Bracket already generated" in result.output


def test_build_draw_needs_a_target(run):
    result = run("build-draw")

    assert result.exit_code != 0
    assert "Use --category or --all" in result.output


def test_errors_reported(run):
    result = run("approve-player", "99")
    assert result.exit_code != 0
    assert "[ERROR] Player 99 not found" in result.output

    result = run("standings", "--category", "U18")
    assert result.exit_code != 0
    assert "Tournament not found" in result.output

    result = run("record-result", "5", "3", "0")
    assert result.exit_code != 0
    assert "Match 5 not found" in result.output


def test_session_closed_after_error(run, monkeypatch):
    sessions = []
    real_get_session = DatabaseManager.get_session

    def tracked_get_session(self):
        session = real_get_session(self)
        session.close = MagicMock(wraps=session.close)
        sessions.append(session)
        return session

    monkeypatch.setattr(DatabaseManager, "get_session", tracked_get_session)

    result = run("approve-player", "99")

    assert result.exit_code != 0
    assert len(sessions) == 1
    sessions[0].close.assert_called_once()


def test_bad_config(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("log_level: LOUD\n", encoding="utf-8")

    result = CliRunner().invoke(cli, ["--config", str(path), "list-matches"])

    assert result.exit_code != 0
    assert "log_level" in result.output
