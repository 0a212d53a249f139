"""MCP server exposing the GitHub issue tools over stdio.

Run with the ``gh-issue-mini`` console script. Authentication uses
``GITHUB_PERSONAL_ACCESS_TOKEN`` and falls back to a logged-in GitHub CLI.
"""

import argparse
import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from mcp.server.fastmcp import FastMCP

from gh_issue_mini import __version__
from gh_issue_mini.client import GitHubIssuesClient
from gh_issue_mini.config import Settings
from gh_issue_mini.errors.exceptions import NoCredentialError
from gh_issue_mini.tools import IssueTools

logger = logging.getLogger(__name__)

SERVER_NAME = "gh-issue-mini"


def configure_logging(level: str) -> None:
    """Send log records to stderr; stdout carries the MCP protocol."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.ERROR),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
        force=True,
    )


def create_server(tools: IssueTools) -> FastMCP:
    """Build the MCP server and register every issue tool."""

    @asynccontextmanager
    async def lifespan(server: FastMCP) -> AsyncIterator[None]:
        try:
            await tools.client.initialize()
        except NoCredentialError as e:
            logger.warning(f"Starting without GitHub credentials: {e}")
        try:
            yield
        finally:
            await tools.client.aclose()

    mcp = FastMCP(SERVER_NAME, lifespan=lifespan)

    @mcp.tool()
    async def create_issue(owner: str, repo: str, title: str, body: str = "") -> str:
        """Create a new issue in a GitHub repository."""
        return await tools.create_issue(owner, repo, title, body)

    @mcp.tool()
    async def list_open_issues(owner: str, repo: str, limit: int = 10) -> str:
        """List open issues in a GitHub repository."""
        return await tools.list_open_issues(owner, repo, limit)

    @mcp.tool()
    async def get_issue(owner: str, repo: str, issue_number: int) -> str:
        """Get details of a GitHub issue."""
        return await tools.get_issue(owner, repo, issue_number)

    @mcp.tool()
    async def update_issue(
        owner: str,
        repo: str,
        issue_number: int,
        title: str | None = None,
        body: str | None = None,
        state: str | None = None,
    ) -> str:
        """Update an existing GitHub issue. state is "open" or "closed"; body is markdown."""
        return await tools.update_issue(owner, repo, issue_number, title=title, body=body, state=state)

    @mcp.tool()
    async def close_issue(owner: str, repo: str, issue_number: int) -> str:
        """Close a GitHub issue."""
        return await tools.close_issue(owner, repo, issue_number)

    @mcp.tool()
    async def search_issues(owner: str, repo: str, query: str, limit: int = 10) -> str:
        """Search issues in a repository using GitHub search syntax."""
        return await tools.search_issues(owner, repo, query, limit)

    @mcp.tool()
    async def add_issue_comment(owner: str, repo: str, issue_number: int, body: str) -> str:
        """Add a comment to a GitHub issue."""
        return await tools.add_issue_comment(owner, repo, issue_number, body)

    @mcp.tool()
    async def get_issue_comments(owner: str, repo: str, issue_number: int) -> str:
        """Get comments from a GitHub issue."""
        return await tools.get_issue_comments(owner, repo, issue_number)

    @mcp.tool()
    async def auth_status() -> str:
        """Report whether the server is authenticated and with which credential source."""
        return await tools.auth_status()

    return mcp


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog=SERVER_NAME, description="GitHub issue tools over MCP stdio")
    parser.add_argument("--debug", action="store_true", help="log at DEBUG level")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    args = parser.parse_args(argv)

    settings = Settings.from_env(log_level="DEBUG" if args.debug else None)
    configure_logging(settings.log_level)
    logger.debug(f"Loaded {settings!r}")

    client = GitHubIssuesClient.from_settings(settings)
    server = create_server(IssueTools(client))
    logger.info("GitHub Issue MCP Server running on stdio")
    server.run(transport="stdio")


if __name__ == "__main__":
    main()
