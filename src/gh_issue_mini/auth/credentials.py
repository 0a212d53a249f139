"""Multi-source credential resolution for the GitHub API.

Resolution order (highest to lowest priority):
1. Directly configured personal access token (explicit value or environment)
2. GitHub CLI session token (``gh auth token``)

The configured token is captured once, when the resolver is built, and is
treated as a value from then on. The CLI source is consulted on demand and
spawns a helper process each time it is tried.

Example:
    ```python
    from gh_issue_mini.auth import CredentialResolver, CredentialSource
    from gh_issue_mini.auth.github_cli import GitHubCLIAuth

    resolver = CredentialResolver(token=settings.github_token, external=GitHubCLIAuth())

    # First usable credential, PAT preferred
    credential = resolver.resolve()

    # Skip the PAT after it was rejected with 401
    credential = resolver.resolve(exclude=CredentialSource.PRIMARY_TOKEN)
    if credential is None:
        for attempt in resolver.last_attempts:
            print(attempt.describe())
    ```

Security Considerations:
    - Tokens are never logged; only their source label is
    - ``Credential.__repr__`` omits the token
"""

import logging
from typing import Protocol

from gh_issue_mini.auth.exceptions import CredentialSourceUnavailable
from gh_issue_mini.auth.types import Credential, CredentialSource, SourceAttempt

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_ENV_VAR = "GITHUB_PERSONAL_ACCESS_TOKEN"

SOURCE_PRIORITY: tuple[CredentialSource, ...] = (
    CredentialSource.PRIMARY_TOKEN,
    CredentialSource.EXTERNAL_CLI,
)


class ExternalCredentialProvider(Protocol):
    """Capability that obtains a credential from outside the process.

    Implementations raise ``CredentialSourceUnavailable`` (or return None)
    when no credential can be produced.
    """

    def resolve_external_credential(self) -> Credential | None: ...


class CredentialResolver:
    """Resolve a GitHub credential from its sources in priority order.

    Attributes:
        token_env_var: Name of the variable the primary token is read from,
            used in diagnostics.
        last_attempts: Sources tried by the most recent ``resolve`` call that
            did not yield a credential, with the reason for each.

    Example:
        ```python
        # PAT only, no CLI fallback
        resolver = CredentialResolver(token="ghp_example")

        # CLI only
        resolver = CredentialResolver(external=GitHubCLIAuth())
        ```
    """

    def __init__(
        self,
        *,
        token: str | None = None,
        external: ExternalCredentialProvider | None = None,
        token_env_var: str = DEFAULT_TOKEN_ENV_VAR,
    ):
        """Initialize credential resolver.

        Args:
            token: Directly configured personal access token. Blank values
                are treated as absent.
            external: Provider for the secondary, CLI-mediated credential.
                If None, the secondary source always reports unavailable.
            token_env_var: Environment variable name the token was configured
                through, for remediation messages.
        """
        self._token = token.strip() if token and token.strip() else None
        self._external = external
        self.token_env_var = token_env_var
        self.last_attempts: list[SourceAttempt] = []

    @property
    def has_primary_token(self) -> bool:
        return self._token is not None

    def _primary(self) -> Credential:
        if self._token is None:
            raise CredentialSourceUnavailable(
                CredentialSource.PRIMARY_TOKEN,
                f"{self.token_env_var} is not set",
            )
        return Credential(token=self._token, source=CredentialSource.PRIMARY_TOKEN)

    def _external_cli(self) -> Credential:
        if self._external is None:
            raise CredentialSourceUnavailable(CredentialSource.EXTERNAL_CLI, "no CLI helper configured")

        try:
            credential = self._external.resolve_external_credential()
        except CredentialSourceUnavailable:
            raise
        except Exception as e:
            logger.warning(f"GitHub CLI credential helper failed unexpectedly: {e}")
            raise CredentialSourceUnavailable(CredentialSource.EXTERNAL_CLI, f"helper failed: {e}") from e

        if credential is None:
            raise CredentialSourceUnavailable(CredentialSource.EXTERNAL_CLI, "helper returned no credential")
        return credential

    def resolve(self, exclude: CredentialSource | None = None) -> Credential | None:
        """Return the first credential available, in priority order.

        Args:
            exclude: Source to skip, typically one whose credential was just
                rejected. The next source is tried even if the excluded one
                would normally win.

        Returns:
            The resolved Credential, or None when every source is exhausted.
            In that case ``last_attempts`` explains each failure.
        """
        attempts: list[SourceAttempt] = []
        loaders = {
            CredentialSource.PRIMARY_TOKEN: self._primary,
            CredentialSource.EXTERNAL_CLI: self._external_cli,
        }

        for source in SOURCE_PRIORITY:
            if source is exclude:
                attempts.append(SourceAttempt(source, "skipped after it was rejected"))
                continue

            try:
                credential = loaders[source]()
            except CredentialSourceUnavailable as e:
                logger.debug(f"Credential source unavailable - {e}")
                attempts.append(SourceAttempt(source, e.reason))
                continue

            logger.debug(f"Resolved credential from {source.label}: ***")
            self.last_attempts = attempts
            return credential

        self.last_attempts = attempts
        logger.debug(
            "No credential source available (tried: " + "; ".join(a.describe() for a in attempts) + ")"
        )
        return None
