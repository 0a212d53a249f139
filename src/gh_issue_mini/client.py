"""GitHub issue operations on top of the authenticated executor."""

import logging
from typing import Any, Literal
from urllib.parse import urlencode

from gh_issue_mini.auth.credentials import CredentialResolver
from gh_issue_mini.auth.github_cli import GitHubCLIAuth
from gh_issue_mini.config import Settings
from gh_issue_mini.errors.exceptions import GitHubAPIError, UnexpectedResponseError
from gh_issue_mini.errors.handler import describe_body
from gh_issue_mini.transport.executor import AuthenticatedExecutor, AuthStatus
from gh_issue_mini.transport.http import HttpxTransport, Transport
from gh_issue_mini.transport.request import RequestSpec

logger = logging.getLogger(__name__)

AI_COMMENT_IDENTIFIER = "[AI] Generated using MCP\n\n"

IssueState = Literal["open", "closed"]


class GitHubIssuesClient:
    """Issue and comment operations for one GitHub session.

    Each method builds a ``RequestSpec`` and hands it to the executor, so all
    of them share the session credential and its fallback behaviour.

    Example:
        ```python
        async with GitHubIssuesClient.from_settings(Settings.from_env()) as client:
            await client.initialize()
            for issue in await client.list_open_issues("octocat", "hello-world", limit=5):
                print(issue["number"], issue["title"])
        ```
    """

    def __init__(self, executor: AuthenticatedExecutor, transport: Transport | None = None):
        self.executor = executor
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings, *, transport: Transport | None = None) -> "GitHubIssuesClient":
        """Wire resolver, CLI helper, transport and executor from settings."""
        resolver = CredentialResolver(
            token=settings.github_token,
            external=GitHubCLIAuth(settings.gh_executable, timeout=settings.cli_timeout),
            token_env_var=settings.token_env_var,
        )
        transport = transport if transport is not None else HttpxTransport(timeout=settings.request_timeout)
        executor = AuthenticatedExecutor(resolver, transport, base_url=settings.api_base_url)
        return cls(executor, transport)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def aclose(self) -> None:
        aclose = getattr(self._transport, "aclose", None)
        if aclose is not None:
            await aclose()

    async def initialize(self) -> None:
        """Resolve the session credential up front.

        Raises:
            NoCredentialError: If neither the PAT nor the GitHub CLI is usable.
        """
        logger.debug("Initializing GitHub API client")
        await self.executor.ensure_credential()

    async def request(
        self,
        method: str,
        path: str,
        body: Any = None,
        headers: dict[str, str] | None = None,
        *,
        expect: type[dict] | type[list] | None = None,
    ) -> Any:
        """Send one request through the executor.

        Args:
            method: HTTP method.
            path: API path, relative to the base URL.
            body: JSON-serializable request body.
            headers: Header overrides.
            expect: Required JSON type of the response body (``dict`` or ``list``).

        Raises:
            UnexpectedResponseError: If ``expect`` is given and a 2xx response
                carried anything else, e.g. an HTML page from a proxy.
        """
        outcome = await self.executor.fetch(RequestSpec(method, path, headers=headers or {}, body=body))
        if expect is not None and not isinstance(outcome.body, expect):
            kind = "JSON object" if expect is dict else "JSON array"
            received = "an empty body" if outcome.body is None else describe_body(outcome.body)
            error = UnexpectedResponseError(
                f"GitHub API error! Status: {outcome.status_code}. Expected a {kind} from {method} {path}, "
                f"got: {received}",
                status_code=outcome.status_code,
                body=outcome.body,
            )
            logger.error(str(error))
            raise error
        return outcome.body

    # Issue management

    async def create_issue(self, owner: str, repo: str, title: str, body: str | None = None) -> dict[str, Any]:
        logger.debug(f"Creating issue in {owner}/{repo}: {title}")
        return await self.request(
            "POST",
            f"/repos/{owner}/{repo}/issues",
            body={"title": title, "body": body or ""},
            expect=dict,
        )

    async def list_open_issues(self, owner: str, repo: str, limit: int = 10) -> list[dict[str, Any]]:
        logger.debug(f"Listing {limit} open issues in {owner}/{repo}")
        query = urlencode({"state": "open", "per_page": limit})
        return await self.request("GET", f"/repos/{owner}/{repo}/issues?{query}", expect=list)

    async def get_issue(self, owner: str, repo: str, issue_number: int) -> dict[str, Any]:
        logger.debug(f"Getting issue #{issue_number} from {owner}/{repo}")
        return await self.request("GET", f"/repos/{owner}/{repo}/issues/{issue_number}", expect=dict)

    async def update_issue(
        self,
        owner: str,
        repo: str,
        issue_number: int,
        *,
        title: str | None = None,
        body: str | None = None,
        state: IssueState | None = None,
    ) -> dict[str, Any]:
        """Update the given fields of an issue.

        Raises:
            ValueError: If no field is given, or ``state`` is not open/closed.
        """
        updates: dict[str, Any] = {}
        if title:
            updates["title"] = title
        if body:
            updates["body"] = body
        if state:
            if state not in ("open", "closed"):
                raise ValueError(f"Invalid issue state: {state!r}")
            updates["state"] = state
        if not updates:
            raise ValueError("Nothing to update. Specify at least one field.")

        logger.debug(f"Updating issue #{issue_number} in {owner}/{repo}")
        return await self.request("PATCH", f"/repos/{owner}/{repo}/issues/{issue_number}", body=updates, expect=dict)

    async def close_issue(self, owner: str, repo: str, issue_number: int) -> dict[str, Any]:
        logger.debug(f"Closing issue #{issue_number} in {owner}/{repo}")
        return await self.update_issue(owner, repo, issue_number, state="closed")

    async def search_issues(self, owner: str, repo: str, query: str, limit: int = 10) -> list[dict[str, Any]]:
        logger.debug(f"Searching issues in {owner}/{repo} with query: {query}")
        params = urlencode({"q": f"repo:{owner}/{repo} is:issue {query}", "per_page": limit})
        response = await self.request("GET", f"/search/issues?{params}", expect=dict)
        return response.get("items") or []

    # Comments

    async def add_issue_comment(self, owner: str, repo: str, issue_number: int, body: str) -> dict[str, Any]:
        logger.debug(f"Adding comment to issue #{issue_number} in {owner}/{repo}")
        return await self.request(
            "POST",
            f"/repos/{owner}/{repo}/issues/{issue_number}/comments",
            body={"body": AI_COMMENT_IDENTIFIER + body},
            expect=dict,
        )

    async def get_issue_comments(self, owner: str, repo: str, issue_number: int) -> list[dict[str, Any]]:
        logger.debug(f"Getting comments for issue #{issue_number} in {owner}/{repo}")
        return await self.request("GET", f"/repos/{owner}/{repo}/issues/{issue_number}/comments", expect=list)

    # Utility

    def get_auth_status(self) -> AuthStatus:
        return self.executor.get_auth_status()

    async def test_connection(self) -> bool:
        try:
            await self.request("GET", "/user")
        except GitHubAPIError as e:
            logger.error(f"Connection test failed: {e}")
            return False
        return True
