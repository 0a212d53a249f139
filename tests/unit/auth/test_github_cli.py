"""Tests for the GitHub CLI credential helper."""

import subprocess

import pytest

from gh_issue_mini.auth.exceptions import CredentialSourceUnavailable
from gh_issue_mini.auth.github_cli import (
    CommandResult,
    GitHubCLIAuth,
    is_well_formed_token,
    run_command,
)
from gh_issue_mini.auth.types import CredentialSource
from gh_issue_mini.testing import FakeCommandRunner
from gh_issue_mini.testing.fakes import LOGGED_IN_STATUS


class TestCheckAuthStatus:
    """Test ``gh auth status`` handling."""

    def test_logged_in(self):
        cli = GitHubCLIAuth(runner=FakeCommandRunner.logged_in())

        assert cli.check_auth_status() is True

    def test_logged_out(self):
        cli = GitHubCLIAuth(runner=FakeCommandRunner.logged_out())

        assert cli.check_auth_status() is False

    def test_cli_not_installed(self):
        runner = FakeCommandRunner({("auth", "status"): FileNotFoundError("gh")})
        cli = GitHubCLIAuth(runner=runner)

        assert cli.check_auth_status() is False

    def test_custom_executable(self):
        runner = FakeCommandRunner.logged_in()
        cli = GitHubCLIAuth("/opt/bin/gh", runner=runner)

        cli.check_auth_status()

        assert runner.calls[0][0] == "/opt/bin/gh"


class TestResolveExternalCredential:
    """Test token retrieval from the CLI."""

    def test_returns_cli_credential(self):
        cli = GitHubCLIAuth(runner=FakeCommandRunner.logged_in("gho_abc123"))

        credential = cli.resolve_external_credential()

        assert credential.token == "gho_abc123"
        assert credential.source is CredentialSource.EXTERNAL_CLI

    def test_not_logged_in(self):
        cli = GitHubCLIAuth(runner=FakeCommandRunner.logged_out())

        with pytest.raises(CredentialSourceUnavailable) as exc_info:
            cli.resolve_external_credential()

        assert exc_info.value.source is CredentialSource.EXTERNAL_CLI
        assert "gh auth login" in exc_info.value.reason

    def test_token_command_fails(self):
        runner = FakeCommandRunner(
            {
                ("auth", "status"): CommandResult(0, LOGGED_IN_STATUS, ""),
                ("auth", "token"): CommandResult(1, "", "no oauth token found"),
            }
        )
        cli = GitHubCLIAuth(runner=runner)

        with pytest.raises(CredentialSourceUnavailable) as exc_info:
            cli.resolve_external_credential()

        assert "no oauth token found" in exc_info.value.reason

    def test_empty_token(self):
        runner = FakeCommandRunner(
            {
                ("auth", "status"): CommandResult(0, LOGGED_IN_STATUS, ""),
                ("auth", "token"): CommandResult(0, "  \n", ""),
            }
        )
        cli = GitHubCLIAuth(runner=runner)

        with pytest.raises(CredentialSourceUnavailable, match="empty token"):
            cli.resolve_external_credential()

    def test_malformed_token(self):
        runner = FakeCommandRunner(
            {
                ("auth", "status"): CommandResult(0, LOGGED_IN_STATUS, ""),
                ("auth", "token"): CommandResult(0, "some warning text\ngho_abc\n", ""),
            }
        )
        cli = GitHubCLIAuth(runner=runner)

        with pytest.raises(CredentialSourceUnavailable, match="malformed"):
            cli.resolve_external_credential()

    def test_timeout(self):
        runner = FakeCommandRunner(
            {
                ("auth", "status"): CommandResult(0, LOGGED_IN_STATUS, ""),
                ("auth", "token"): subprocess.TimeoutExpired(["gh", "auth", "token"], 15),
            }
        )
        cli = GitHubCLIAuth(runner=runner)

        with pytest.raises(CredentialSourceUnavailable, match="timed out"):
            cli.resolve_external_credential()


class TestGetAuthInfo:
    """Test status parsing."""

    def test_parses_account(self):
        cli = GitHubCLIAuth(runner=FakeCommandRunner.logged_in())

        info = cli.get_auth_info()

        assert info.authenticated is True
        assert info.account == "octocat"
        assert info.hostname == "github.com"

    def test_status_on_stderr(self):
        runner = FakeCommandRunner({("auth", "status"): CommandResult(0, "", LOGGED_IN_STATUS)})

        info = GitHubCLIAuth(runner=runner).get_auth_info()

        assert info.authenticated is True

    def test_logged_out(self):
        info = GitHubCLIAuth(runner=FakeCommandRunner.logged_out()).get_auth_info()

        assert info.authenticated is False
        assert info.account is None


class TestPromptLogin:
    """Test the interactive login wrapper."""

    def test_failed_login(self, monkeypatch):
        def fake_run(argv, check):
            raise subprocess.CalledProcessError(1, argv)

        monkeypatch.setattr(subprocess, "run", fake_run)
        cli = GitHubCLIAuth(runner=FakeCommandRunner.logged_out())

        assert cli.prompt_login() is False

    def test_successful_login(self, monkeypatch):
        calls = []

        def fake_run(argv, check):
            calls.append(argv)

        monkeypatch.setattr(subprocess, "run", fake_run)
        cli = GitHubCLIAuth(runner=FakeCommandRunner.logged_in())

        assert cli.prompt_login() is True
        assert calls == [["gh", "auth", "login"]]


class TestRunCommand:
    """Test the subprocess wrapper."""

    def test_captures_output(self, monkeypatch):
        def fake_run(argv, capture_output, text, check, timeout):
            assert capture_output and text and not check
            return subprocess.CompletedProcess(argv, 0, stdout="out\n", stderr="err\n")

        monkeypatch.setattr(subprocess, "run", fake_run)

        result = run_command(["gh", "auth", "token"])

        assert result == CommandResult(exit_code=0, stdout="out\n", stderr="err\n")


@pytest.mark.parametrize(
    ("token", "expected"),
    [("gho_abc123", True), ("", False), ("two words", False), ("line\nbreak", False)],
)
def test_is_well_formed_token(token, expected):
    assert is_well_formed_token(token) is expected
