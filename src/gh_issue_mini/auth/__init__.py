"""Authentication components for the GitHub issue client.

This module provides:
- Credential and source types
- Multi-source credential resolution (PAT → GitHub CLI)
- The GitHub CLI credential helper

Example:
    ```python
    from gh_issue_mini.auth import CredentialResolver, GitHubCLIAuth

    resolver = CredentialResolver(token=token, external=GitHubCLIAuth())
    credential = resolver.resolve()
    ```
"""

from gh_issue_mini.auth.credentials import CredentialResolver, ExternalCredentialProvider
from gh_issue_mini.auth.exceptions import CredentialError, CredentialSourceUnavailable
from gh_issue_mini.auth.github_cli import CLIAuthInfo, CommandResult, GitHubCLIAuth, run_command
from gh_issue_mini.auth.types import Credential, CredentialSource, SourceAttempt

__all__ = [
    "CLIAuthInfo",
    "CommandResult",
    "Credential",
    "CredentialError",
    "CredentialResolver",
    "CredentialSource",
    "CredentialSourceUnavailable",
    "ExternalCredentialProvider",
    "GitHubCLIAuth",
    "SourceAttempt",
    "run_command",
]
