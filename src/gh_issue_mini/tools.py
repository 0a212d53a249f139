"""Text-returning issue tools.

Each tool calls one client operation and renders the result for a chat
client. Failures are rendered too: a tool never raises, so one failed
operation cannot take down the server.
"""

import logging
from datetime import datetime
from typing import Any

from gh_issue_mini.client import GitHubIssuesClient
from gh_issue_mini.errors.exceptions import GitHubAPIError

logger = logging.getLogger(__name__)


def format_timestamp(value: str | None) -> str:
    if not value:
        return "unknown"
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return value
    return parsed.strftime("%Y-%m-%d %H:%M:%S %Z").strip()


def _login(item: dict[str, Any]) -> str:
    return (item.get("user") or {}).get("login", "unknown")


def format_error(error: Exception) -> str:
    """Render an operation failure as tool output."""
    lines = [f"Error: {error}"]
    if isinstance(error, GitHubAPIError) and error.fallback_attempted:
        outcome = "also failed" if error.fallback_failed else "succeeded"
        lines.append(f"(Fallback to GitHub CLI credentials was attempted and {outcome}.)")
    return "\n".join(lines)


def format_issue_summary(issue: dict[str, Any]) -> str:
    return (
        f"#{issue['number']}: {issue['title']}\n"
        f"By: {_login(issue)} | {format_timestamp(issue.get('created_at'))}\n"
        f"URL: {issue['html_url']}\n---"
    )


def format_issue_detail(issue: dict[str, Any]) -> str:
    labels = ", ".join(label["name"] for label in issue.get("labels") or []) or "(none)"
    return (
        f"#{issue['number']}: {issue['title']}\n"
        f"State: {issue['state']}\n"
        f"Author: {_login(issue)}\n"
        f"Created: {format_timestamp(issue.get('created_at'))}\n"
        f"Updated: {format_timestamp(issue.get('updated_at'))}\n"
        f"Labels: {labels}\n\n"
        f"{issue.get('body') or ''}\n\n"
        f"URL: {issue['html_url']}"
    )


def format_search_result(issue: dict[str, Any]) -> str:
    return (
        f"#{issue['number']}: {issue['title']}\n"
        f"State: {issue['state']} | By: {_login(issue)}\n"
        f"URL: {issue['html_url']}\n---"
    )


def format_comment(comment: dict[str, Any]) -> str:
    return (
        f"By: {_login(comment)} at {format_timestamp(comment.get('created_at'))}\n"
        f"{comment.get('body') or ''}\n"
        f"URL: {comment['html_url']}\n---"
    )


class IssueTools:
    """Tool implementations bound to one client."""

    def __init__(self, client: GitHubIssuesClient):
        self.client = client

    async def create_issue(self, owner: str, repo: str, title: str, body: str = "") -> str:
        try:
            issue = await self.client.create_issue(owner, repo, title, body)
        except GitHubAPIError as e:
            return format_error(e)
        return f"Issue created! #{issue['number']}: {issue['title']}\nURL: {issue['html_url']}"

    async def list_open_issues(self, owner: str, repo: str, limit: int = 10) -> str:
        try:
            issues = await self.client.list_open_issues(owner, repo, limit)
        except GitHubAPIError as e:
            return format_error(e)
        if not issues:
            return "No open issues 🎉"
        return "\n".join(format_issue_summary(issue) for issue in issues)

    async def get_issue(self, owner: str, repo: str, issue_number: int) -> str:
        try:
            issue = await self.client.get_issue(owner, repo, issue_number)
        except GitHubAPIError as e:
            return format_error(e)
        return format_issue_detail(issue)

    async def update_issue(
        self,
        owner: str,
        repo: str,
        issue_number: int,
        title: str | None = None,
        body: str | None = None,
        state: str | None = None,
    ) -> str:
        try:
            issue = await self.client.update_issue(owner, repo, issue_number, title=title, body=body, state=state)
        except ValueError as e:
            return str(e)
        except GitHubAPIError as e:
            return format_error(e)
        return (
            f"Issue #{issue['number']} updated.\n"
            f"Title: {issue['title']}\n"
            f"State: {issue['state']}\n"
            f"URL: {issue['html_url']}"
        )

    async def close_issue(self, owner: str, repo: str, issue_number: int) -> str:
        try:
            issue = await self.client.close_issue(owner, repo, issue_number)
        except GitHubAPIError as e:
            return format_error(e)
        return f"Issue #{issue['number']} closed. URL: {issue['html_url']}"

    async def search_issues(self, owner: str, repo: str, query: str, limit: int = 10) -> str:
        try:
            issues = await self.client.search_issues(owner, repo, query, limit)
        except GitHubAPIError as e:
            return format_error(e)
        if not issues:
            return "No issues matched your query."
        return "\n".join(format_search_result(issue) for issue in issues)

    async def add_issue_comment(self, owner: str, repo: str, issue_number: int, body: str) -> str:
        try:
            comment = await self.client.add_issue_comment(owner, repo, issue_number, body)
        except GitHubAPIError as e:
            return format_error(e)
        return f"Comment added to issue #{issue_number}\nURL: {comment['html_url']}"

    async def get_issue_comments(self, owner: str, repo: str, issue_number: int) -> str:
        try:
            comments = await self.client.get_issue_comments(owner, repo, issue_number)
        except GitHubAPIError as e:
            return format_error(e)
        if not comments:
            return f"No comments on issue #{issue_number}"
        return "\n".join(format_comment(comment) for comment in comments)

    async def auth_status(self) -> str:
        status = self.client.get_auth_status()
        if not status.authenticated:
            try:
                await self.client.initialize()
            except GitHubAPIError as e:
                return format_error(e)
            status = self.client.get_auth_status()
        return f"Authenticated: yes\nSource: {status.source}"
