"""GitHub CLI (``gh``) as an external credential source.

The CLI keeps its own login session. This module shells out to it to check
whether that session is usable and to read the session token:

    gh auth status   -> exit code 0 when logged in
    gh auth token    -> prints the token on stdout

Every failure mode (CLI not installed, not logged in, non-zero exit, empty or
malformed output, timeout) is reported as ``CredentialSourceUnavailable`` so
the resolver can fall through to its next source.

Example:
    ```python
    from gh_issue_mini.auth.github_cli import GitHubCLIAuth

    cli = GitHubCLIAuth()
    if cli.check_auth_status():
        credential = cli.resolve_external_credential()
    ```
"""

import logging
import re
import subprocess
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from gh_issue_mini.auth.exceptions import CredentialSourceUnavailable
from gh_issue_mini.auth.types import Credential, CredentialSource

logger = logging.getLogger(__name__)

DEFAULT_HOSTNAME = "github.com"

_ACCOUNT_PATTERN = re.compile(r"account (\S+)")


@dataclass(frozen=True)
class CommandResult:
    """Captured result of one helper process invocation."""

    exit_code: int
    stdout: str
    stderr: str


CommandRunner = Callable[[Sequence[str]], CommandResult]


def run_command(argv: Sequence[str], timeout: float | None = 15.0) -> CommandResult:
    """Run a command with captured stdio and return its result.

    Args:
        argv: Program and arguments. Never passed through a shell.
        timeout: Seconds to wait before the process is killed.

    Returns:
        CommandResult with exit code and decoded output.

    Raises:
        FileNotFoundError: If the executable does not exist.
        subprocess.TimeoutExpired: If the process outlives ``timeout``.
    """
    completed = subprocess.run(
        list(argv),
        capture_output=True,
        text=True,
        check=False,
        timeout=timeout,
    )
    return CommandResult(exit_code=completed.returncode, stdout=completed.stdout, stderr=completed.stderr)


def is_well_formed_token(token: str) -> bool:
    """Check that helper output looks like a single bearer token."""
    return bool(token) and not any(ch.isspace() for ch in token)


@dataclass(frozen=True)
class CLIAuthInfo:
    """Parsed summary of ``gh auth status``."""

    authenticated: bool
    account: str | None = None
    hostname: str = DEFAULT_HOSTNAME


class GitHubCLIAuth:
    """Obtain credentials from a logged-in GitHub CLI.

    Attributes:
        executable: Name or path of the ``gh`` binary.

    Example:
        ```python
        # Use a custom binary location
        cli = GitHubCLIAuth(executable="/opt/homebrew/bin/gh")

        # Substitute the process runner in tests
        cli = GitHubCLIAuth(runner=fake_runner)
        ```
    """

    def __init__(
        self,
        executable: str = "gh",
        *,
        runner: CommandRunner | None = None,
        timeout: float = 15.0,
    ):
        """Initialize the CLI credential source.

        Args:
            executable: Name or path of the ``gh`` binary.
            runner: Callable used to run helper commands. Defaults to
                ``run_command`` with the given timeout.
            timeout: Seconds allowed per helper invocation.
        """
        self.executable = executable
        self._timeout = timeout
        self._runner = runner

    def _run(self, *args: str) -> CommandResult:
        argv = [self.executable, *args]
        if self._runner is not None:
            return self._runner(argv)
        return run_command(argv, timeout=self._timeout)

    def _invoke(self, *args: str) -> CommandResult:
        """Run a helper command, converting process errors to source unavailability."""
        command = " ".join([self.executable, *args])
        try:
            return self._run(*args)
        except FileNotFoundError:
            raise CredentialSourceUnavailable(
                CredentialSource.EXTERNAL_CLI,
                f"'{self.executable}' executable not found (install GitHub CLI)",
            ) from None
        except subprocess.TimeoutExpired:
            raise CredentialSourceUnavailable(
                CredentialSource.EXTERNAL_CLI,
                f"'{command}' timed out",
            ) from None
        except OSError as e:
            raise CredentialSourceUnavailable(
                CredentialSource.EXTERNAL_CLI,
                f"'{command}' could not be started: {e}",
            ) from e

    def check_auth_status(self) -> bool:
        """Return True if ``gh auth status`` reports a usable login."""
        logger.debug("Checking GitHub CLI authentication status")
        try:
            result = self._invoke("auth", "status")
        except CredentialSourceUnavailable as e:
            logger.debug(f"GitHub CLI authentication check failed: {e.reason}")
            return False

        if result.exit_code != 0:
            logger.debug(f"GitHub CLI authentication check failed with exit code {result.exit_code}")
            return False

        logger.debug("GitHub CLI is authenticated")
        return True

    def get_auth_info(self) -> CLIAuthInfo:
        """Parse ``gh auth status`` into a CLIAuthInfo.

        Older CLI releases print the status report on stderr, newer ones on
        stdout, so both streams are searched.
        """
        try:
            result = self._invoke("auth", "status")
        except CredentialSourceUnavailable:
            return CLIAuthInfo(authenticated=False)

        output = f"{result.stdout}\n{result.stderr}"
        authenticated = result.exit_code == 0 and "Logged in to" in output
        match = _ACCOUNT_PATTERN.search(output)
        return CLIAuthInfo(
            authenticated=authenticated,
            account=match.group(1) if match else None,
        )

    def resolve_external_credential(self) -> Credential:
        """Read the CLI session token.

        Returns:
            Credential labelled with ``CredentialSource.EXTERNAL_CLI``.

        Raises:
            CredentialSourceUnavailable: If the CLI is missing, not logged in,
                or prints no usable token.
        """
        logger.debug("Attempting to get token from GitHub CLI")

        if not self.check_auth_status():
            logger.warning("GitHub CLI is not authenticated")
            raise CredentialSourceUnavailable(
                CredentialSource.EXTERNAL_CLI,
                f"not logged in (run '{self.executable} auth login')",
            )

        result = self._invoke("auth", "token")
        if result.exit_code != 0:
            detail = result.stderr.strip() or f"exit code {result.exit_code}"
            raise CredentialSourceUnavailable(
                CredentialSource.EXTERNAL_CLI,
                f"'{self.executable} auth token' failed: {detail}",
            )

        token = result.stdout.strip()
        if not token:
            logger.warning("GitHub CLI returned empty token")
            raise CredentialSourceUnavailable(CredentialSource.EXTERNAL_CLI, "returned an empty token")

        if not is_well_formed_token(token):
            raise CredentialSourceUnavailable(CredentialSource.EXTERNAL_CLI, "returned malformed token output")

        logger.info("Successfully retrieved token from GitHub CLI")
        return Credential(token=token, source=CredentialSource.EXTERNAL_CLI)

    def prompt_login(self) -> bool:
        """Run the interactive ``gh auth login`` flow on the controlling terminal.

        This is a development convenience and never runs on the request path.

        Returns:
            True if the CLI reports a login afterwards.
        """
        logger.info("Prompting GitHub CLI authentication")
        try:
            subprocess.run([self.executable, "auth", "login"], check=True)
        except (OSError, subprocess.CalledProcessError) as e:
            logger.error(f"GitHub CLI authentication prompt failed: {e}")
            return False
        return self.check_auth_status()
