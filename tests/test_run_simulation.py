"""Tests for the CLI runner."""

import pytest

import run_simulation


def test_demo_runs_clean(capsys):
    assert run_simulation.main(["--users", "40", "--churn", "0.5", "--seed", "7"]) == 0

    output = capsys.readouterr().out
    assert "Universe Status:" in output
    assert "user_count: 20" in output
    assert "cluster_count: 1" in output


def test_demo_full_churn(capsys):
    assert run_simulation.main(["--users", "10", "--churn", "1.0", "--seed", "3"]) == 0

    output = capsys.readouterr().out
    assert "user_count: 0" in output
    assert "(no clusters)" in output


def test_rejects_bad_churn():
    with pytest.raises(SystemExit):
        run_simulation.main(["--churn", "1.5"])


def test_interactive_session(monkeypatch, capsys):
    commands = iter(["add Alice", "status", "user user-0000", "remove user-0000", "clusters", "bogus", "quit"])
    monkeypatch.setattr("builtins.input", lambda prompt="": next(commands))

    assert run_simulation.main(["--interactive", "--seed", "1"]) == 0

    output = capsys.readouterr().out
    assert "user-0000 (Alice)" in output
    assert "Removed user-0000" in output
    assert "(no clusters)" in output
    assert "Unknown command: bogus" in output
