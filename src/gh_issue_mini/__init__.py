"""gh-issue-mini - GitHub issue tools for tool-calling clients.

This library provides a small, authenticated GitHub issue client:
- Credential resolution from a personal access token or the GitHub CLI
- Authenticated request execution with a one-shot fallback on 401
- Structured errors carrying status codes, upstream messages and fallback context
- An MCP server exposing the issue operations as text-returning tools

Example:
    ```python
    from gh_issue_mini.client import GitHubIssuesClient
    from gh_issue_mini.config import Settings

    async with GitHubIssuesClient.from_settings(Settings.from_env()) as client:
        issue = await client.create_issue("octocat", "hello-world", "Found a bug")
        print(issue["html_url"])
    ```
"""

__version__ = "1.2.0"

__all__ = ["__version__"]
