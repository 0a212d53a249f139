"""Authenticated request execution with a one-shot credential fallback.

Every call walks the same state machine (see ``request.next_phase``):

1. INIT: resolve a credential if the session has none. No credential means
   ``NoCredentialError`` before any network traffic.
2. ATTEMPT: send with the session credential and classify the outcome.
3. FALLBACK: only after a 401 while using the personal access token. The
   resolver is asked for a credential other than the PAT (the GitHub CLI
   session) and the session switches to it.
4. REPLAY: the identical request is sent once more with the new credential.
   Its outcome is final.

A successful fallback sticks: later calls start with the CLI credential.

Example:
    ```python
    from gh_issue_mini.transport import AuthenticatedExecutor, HttpxTransport, RequestSpec

    executor = AuthenticatedExecutor(resolver, HttpxTransport())
    issue = await executor.execute(RequestSpec("GET", "/repos/octocat/hello/issues/1"))
    print(executor.get_auth_status())
    ```
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

from gh_issue_mini import __version__
from gh_issue_mini.auth.credentials import CredentialResolver
from gh_issue_mini.auth.types import Credential, CredentialSource, SourceAttempt
from gh_issue_mini.errors.exceptions import (
    FallbackExhaustedError,
    GitHubAPIError,
    NoCredentialError,
    TransportError,
)
from gh_issue_mini.errors.handler import FALLBACK_NOTE, describe_body, error_for_status
from gh_issue_mini.errors.models import GitHubErrorDetail
from gh_issue_mini.transport.http import Transport
from gh_issue_mini.transport.request import (
    AuthFailure,
    Outcome,
    Phase,
    RequestSpec,
    Success,
    TransportFailure,
    classify,
    describe_outcome,
    next_phase,
)

logger = logging.getLogger(__name__)

DEFAULT_API_BASE_URL = "https://api.github.com"
USER_AGENT = f"gh-issue-mini/{__version__}"
GITHUB_API_VERSION = "2022-11-28"


class AuthState:
    """The credential currently used by one executor session."""

    def __init__(self, credential: Credential | None = None):
        self.credential = credential

    @property
    def source(self) -> CredentialSource | None:
        return self.credential.source if self.credential else None

    @property
    def authenticated(self) -> bool:
        return self.credential is not None

    def reset(self) -> None:
        """Forget the credential so the next call resolves again."""
        self.credential = None


@dataclass(frozen=True)
class AuthStatus:
    authenticated: bool
    source: str | None = None

    def as_dict(self) -> dict[str, Any]:
        status: dict[str, Any] = {"authenticated": self.authenticated}
        if self.source is not None:
            status["source"] = self.source
        return status


def no_credential_message(attempts: list[SourceAttempt], token_env_var: str) -> str:
    lines = ["GitHub authentication failed: no credential available. Tried:"]
    lines.extend(f"  - {attempt.describe()}" for attempt in attempts)
    lines.append(f"Set {token_env_var} or run 'gh auth login'.")
    return "\n".join(lines)


class AuthenticatedExecutor:
    """Send GitHub API requests with the session credential.

    Calls may run concurrently on one event loop; changes to the session
    credential are serialized with a lock.

    Args:
        resolver: Credential source chain.
        transport: Network layer.
        base_url: API root prepended to relative request paths.
        user_agent: User-Agent header value.
        state: Session state to use; a fresh one by default.
    """

    def __init__(
        self,
        resolver: CredentialResolver,
        transport: Transport,
        *,
        base_url: str = DEFAULT_API_BASE_URL,
        user_agent: str = USER_AGENT,
        state: AuthState | None = None,
    ) -> None:
        self._resolver = resolver
        self._transport = transport
        self.base_url = base_url.rstrip("/")
        self.user_agent = user_agent
        self.state = state if state is not None else AuthState()
        self._lock = asyncio.Lock()

    def get_auth_status(self) -> AuthStatus:
        source = self.state.source
        return AuthStatus(authenticated=self.state.authenticated, source=source.label if source else None)

    def build_headers(self, spec: RequestSpec, credential: Credential) -> dict[str, str]:
        """Default headers, then the request's overrides, then Authorization."""
        headers = {
            "Accept": "application/vnd.github.v3+json",
            "Content-Type": "application/json",
            "User-Agent": self.user_agent,
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
        }
        headers.update({k: v for k, v in spec.headers.items() if k.lower() != "authorization"})
        headers["Authorization"] = credential.authorization
        return headers

    async def _resolve(self, exclude: CredentialSource | None = None) -> Credential | None:
        # The CLI source spawns a process; keep it off the event loop
        return await asyncio.to_thread(self._resolver.resolve, exclude)

    async def ensure_credential(self) -> Credential:
        """Return the session credential, resolving it on first use.

        Raises:
            NoCredentialError: If every credential source failed.
        """
        if self.state.credential is not None:
            return self.state.credential

        async with self._lock:
            if self.state.credential is not None:
                return self.state.credential

            credential = await self._resolve()
            if credential is None:
                attempts = list(self._resolver.last_attempts)
                error = NoCredentialError(
                    no_credential_message(attempts, self._resolver.token_env_var),
                    attempts=attempts,
                )
                logger.error(str(error))
                raise error

            self.state.credential = credential
            logger.info(f"GitHub API authenticated using {credential.source.label}")
            return credential

    async def _fall_back(self, rejected: Credential) -> Credential | None:
        async with self._lock:
            current = self.state.credential
            if current is not None and current != rejected:
                logger.debug(f"Session already switched to {current.source.label}; replaying with it")
                return current

            credential = await self._resolve(exclude=CredentialSource.PRIMARY_TOKEN)
            if credential is None:
                return None

            self.state.credential = credential
            logger.info(f"Switched GitHub credential from {rejected.source.label} to {credential.source.label}")
            return credential

    async def _send(self, spec: RequestSpec, credential: Credential, attempt: int) -> Outcome:
        url = spec.url(self.base_url)
        headers = self.build_headers(spec, credential)
        logger.debug(f"Making request (attempt {attempt}, {credential.source.label}): {spec.method} {url}")

        try:
            response = await self._transport.send(spec.method, url, headers, spec.content)
        except TransportError as e:
            outcome: Outcome = TransportFailure(e)
        else:
            outcome = classify(response)

        logger.debug(f"Request outcome (attempt {attempt}): {describe_outcome(outcome)}")
        return outcome

    async def execute(self, spec: RequestSpec) -> Any:
        """Execute one logical request.

        Args:
            spec: The request to send.

        Returns:
            Parsed response body (JSON value, text, or None when empty).

        Raises:
            Same as ``fetch``.
        """
        return (await self.fetch(spec)).body

    async def fetch(self, spec: RequestSpec) -> Success:
        """Execute one logical request and return the successful outcome.

        Args:
            spec: The request to send.

        Returns:
            The 2xx status code and parsed body.

        Raises:
            NoCredentialError: No credential source available; nothing sent.
            AuthenticationError: 401 with a non-primary credential.
            FallbackExhaustedError: 401 with the PAT and the fallback failed.
            RequestFailedError: Any other non-2xx status.
            TransportError: No HTTP response was received.
        """
        phase = Phase.INIT
        credential: Credential | None = None
        outcome: Outcome | None = None
        rejected: AuthFailure | None = None

        while True:
            if phase is Phase.INIT:
                credential = await self.ensure_credential()
            elif phase is Phase.ATTEMPT:
                outcome = await self._send(spec, credential, attempt=1)
            elif phase is Phase.FALLBACK:
                rejected = outcome
                logger.warning(
                    f"{spec.method} {spec.path} was rejected with 401 using {credential.source.label}; "
                    f"falling back to {CredentialSource.EXTERNAL_CLI.label}"
                )
                fallback = await self._fall_back(credential)
                if fallback is None:
                    raise self._failed(spec, self._fallback_unavailable(rejected, credential))
                credential = fallback
            elif phase is Phase.REPLAY:
                outcome = await self._send(spec, credential, attempt=2)
            else:
                return self._finish(spec, outcome, credential, rejected)

            phase = next_phase(phase, outcome, credential.source)

    def _finish(
        self,
        spec: RequestSpec,
        outcome: Outcome,
        credential: Credential,
        rejected: AuthFailure | None,
    ) -> Success:
        if isinstance(outcome, Success):
            logger.debug(f"Request successful: {outcome.status_code}")
            return outcome

        fell_back = rejected is not None

        if isinstance(outcome, TransportFailure):
            error: GitHubAPIError = outcome.cause
            if fell_back:
                error = TransportError(
                    error.message + FALLBACK_NOTE,
                    cause=outcome.cause.cause,
                    fallback_attempted=True,
                    fallback_failed=True,
                )
        elif isinstance(outcome, AuthFailure) and fell_back:
            error = FallbackExhaustedError(
                f"GitHub API error! Status: 401 with {CredentialSource.PRIMARY_TOKEN.label} and again with "
                f"{credential.source.label} after fallback. Message: {describe_body(outcome.body)}. "
                f"{CredentialSource.PRIMARY_TOKEN.label} was rejected with: {describe_body(rejected.body)}",
                original_error=error_for_status(rejected.status_code, rejected.body),
                status_code=outcome.status_code,
                body=outcome.body,
                detail=GitHubErrorDetail.from_body(outcome.body),
            )
        else:
            headers = getattr(outcome, "headers", None)
            error = error_for_status(
                outcome.status_code,
                outcome.body,
                headers,
                fallback_attempted=fell_back,
                fallback_failed=fell_back,
            )

        raise self._failed(spec, error)

    def _fallback_unavailable(self, rejected: AuthFailure, credential: Credential) -> FallbackExhaustedError:
        attempts = list(self._resolver.last_attempts)
        reasons = "; ".join(a.describe() for a in attempts if a.source is not credential.source)
        return FallbackExhaustedError(
            f"GitHub API error! Status: 401 with {credential.source.label}. "
            f"Message: {describe_body(rejected.body)}. "
            f"Credential fallback failed: no alternative credential available ({reasons or 'no other source'})",
            original_error=error_for_status(rejected.status_code, rejected.body),
            attempts=attempts,
            status_code=rejected.status_code,
            body=rejected.body,
            detail=GitHubErrorDetail.from_body(rejected.body),
        )

    def _failed(self, spec: RequestSpec, error: GitHubAPIError) -> GitHubAPIError:
        logger.error(f"{spec.method} {spec.path} failed: {error}")
        return error
