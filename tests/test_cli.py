"""End-to-end tests for the grim command line."""

import pytest

from grim import cli
from grim.errors import SessionSetupError

from conftest import FakeProvider, make_proc


def test_missing_targets(capsys, provider):
    """Test a scripted run without targets exits with status 1."""
    assert cli.run([], provider=provider) == 1
    assert "Missing targets" in capsys.readouterr().err
    assert provider.snapshots_taken == 0


def test_no_match_is_success(capsys, provider):
    """Test a run that matches nothing exits with status 0."""
    assert cli.run(["nonexistent-xyz", "--force"], provider=provider) == 0
    out = capsys.readouterr().out
    assert "Total processes killed: 0" in out
    assert provider.terminated == []


def test_forced_kill_by_name(capsys):
    """Test a forced kill by name through the CLI."""
    provider = FakeProvider([make_proc(10, "runaway"), make_proc(11, "other")])

    assert cli.run(["--force", "--exact", "RUNAWAY"], provider=provider) == 0

    assert provider.terminated == [10]
    assert "Total processes killed: 1" in capsys.readouterr().out


def test_interactive_reports_total(monkeypatch, capsys, provider):
    """Test the interactive total is reported after the app exits."""
    monkeypatch.setattr(cli, "run_interactive", lambda config, provider: 2)

    assert cli.run(["--interactive"], provider=provider) == 0
    assert "Total processes killed: 2" in capsys.readouterr().out


def test_interactive_setup_failure(monkeypatch, capsys, provider):
    """Test a terminal setup failure exits with status 1."""
    def broken(config, provider):
        """Fail the way a missing terminal does."""
        raise SessionSetupError("Could not start interactive session: no tty")

    monkeypatch.setattr(cli, "run_interactive", broken)

    assert cli.run(["--interactive"], provider=provider) == 1
    assert "no tty" in capsys.readouterr().err


def test_run_interactive_wraps_app_errors(monkeypatch, provider):
    """Test app errors surface as SessionSetupError."""
    def explode(self):
        """Raise from inside the app."""
        raise OSError("not a terminal")

    monkeypatch.setattr(cli.GrimApp, "run", explode)
    config = cli.parse_args(["--interactive"])

    with pytest.raises(SessionSetupError, match="not a terminal"):
        cli.run_interactive(config, provider)
