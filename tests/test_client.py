"""Tests for the GitHub issue client operations."""

import json

import httpx
import pytest

from gh_issue_mini.auth.github_cli import GitHubCLIAuth
from gh_issue_mini.client import AI_COMMENT_IDENTIFIER, GitHubIssuesClient
from gh_issue_mini.config import Settings
from gh_issue_mini.errors.exceptions import NoCredentialError, NotFoundError, UnexpectedResponseError
from gh_issue_mini.testing import RecordingHandler, StaticCredentialProvider, build_executor
from gh_issue_mini.testing.fakes import TEST_BASE_URL
from gh_issue_mini.transport.http import HttpxTransport


def make_client(responses, **kwargs):
    executor, handler = build_executor(responses, **kwargs)
    return GitHubIssuesClient(executor), handler


def sent_json(handler, index=0):
    return json.loads(handler.requests[index].content)


class TestIssueOperations:
    """Test the request each issue operation sends."""

    @pytest.mark.unit
    async def test_create_issue(self, issue_payload):
        client, handler = make_client([httpx.Response(201, json=issue_payload)])

        issue = await client.create_issue("octocat", "hello-world", "Crash on startup", "Steps to reproduce...")

        assert issue["number"] == 42
        request = handler.requests[0]
        assert request.method == "POST"
        assert request.url == f"{TEST_BASE_URL}/repos/octocat/hello-world/issues"
        assert sent_json(handler) == {"title": "Crash on startup", "body": "Steps to reproduce..."}

    @pytest.mark.unit
    async def test_create_issue_without_body(self, issue_payload):
        client, handler = make_client([httpx.Response(201, json=issue_payload)])

        await client.create_issue("octocat", "hello-world", "Crash on startup")

        assert sent_json(handler) == {"title": "Crash on startup", "body": ""}

    @pytest.mark.unit
    async def test_list_open_issues(self, issue_payload):
        client, handler = make_client([httpx.Response(200, json=[issue_payload])])

        issues = await client.list_open_issues("octocat", "hello-world", limit=5)

        assert [i["number"] for i in issues] == [42]
        url = httpx.URL(handler.requests[0].url)
        assert url.path == "/repos/octocat/hello-world/issues"
        assert url.params["state"] == "open"
        assert url.params["per_page"] == "5"

    @pytest.mark.unit
    async def test_get_issue(self, issue_payload):
        client, handler = make_client([httpx.Response(200, json=issue_payload)])

        issue = await client.get_issue("octocat", "hello-world", 42)

        assert issue["title"] == "Crash on startup"
        assert handler.requests[0].method == "GET"
        assert handler.requests[0].url == f"{TEST_BASE_URL}/repos/octocat/hello-world/issues/42"
        assert handler.requests[0].content == b""

    @pytest.mark.unit
    async def test_get_missing_issue(self):
        client, _ = make_client([httpx.Response(404, json={"message": "Not Found"})])

        with pytest.raises(NotFoundError):
            await client.get_issue("octocat", "hello-world", 999)

    @pytest.mark.unit
    async def test_update_issue_sends_only_given_fields(self, issue_payload):
        client, handler = make_client([httpx.Response(200, json=issue_payload)])

        await client.update_issue("octocat", "hello-world", 42, title="New title")

        assert handler.requests[0].method == "PATCH"
        assert sent_json(handler) == {"title": "New title"}

    @pytest.mark.unit
    async def test_update_issue_requires_a_field(self):
        client, handler = make_client([])

        with pytest.raises(ValueError, match="Nothing to update"):
            await client.update_issue("octocat", "hello-world", 42)

        assert handler.call_count == 0

    @pytest.mark.unit
    async def test_update_issue_rejects_unknown_state(self):
        client, handler = make_client([])

        with pytest.raises(ValueError, match="Invalid issue state"):
            await client.update_issue("octocat", "hello-world", 42, state="merged")  # type: ignore[arg-type]

        assert handler.call_count == 0

    @pytest.mark.unit
    async def test_close_issue(self, issue_payload):
        client, handler = make_client([httpx.Response(200, json={**issue_payload, "state": "closed"})])

        issue = await client.close_issue("octocat", "hello-world", 42)

        assert issue["state"] == "closed"
        assert handler.requests[0].method == "PATCH"
        assert sent_json(handler) == {"state": "closed"}

    @pytest.mark.unit
    async def test_search_issues_scopes_query_to_repository(self, issue_payload):
        client, handler = make_client([httpx.Response(200, json={"total_count": 1, "items": [issue_payload]})])

        issues = await client.search_issues("octocat", "hello-world", "crash label:bug", limit=3)

        assert [i["number"] for i in issues] == [42]
        url = httpx.URL(handler.requests[0].url)
        assert url.path == "/search/issues"
        assert url.params["q"] == "repo:octocat/hello-world is:issue crash label:bug"
        assert url.params["per_page"] == "3"

    @pytest.mark.unit
    async def test_unexpected_body_shape_is_rejected(self):
        """A 2xx body of the wrong shape raises with status and raw body."""
        client, _ = make_client([httpx.Response(200, text="<html>proxy</html>", headers={"content-type": "text/html"})])

        with pytest.raises(UnexpectedResponseError) as exc_info:
            await client.get_issue("octocat", "hello-world", 42)

        assert exc_info.value.status_code == 200
        assert exc_info.value.body == "<html>proxy</html>"

    @pytest.mark.unit
    async def test_empty_body_for_list_is_rejected(self):
        client, _ = make_client([httpx.Response(204)])

        with pytest.raises(UnexpectedResponseError, match="got: an empty body"):
            await client.list_open_issues("octocat", "hello-world")

    @pytest.mark.unit
    async def test_raw_request_returns_any_body(self):
        client, _ = make_client([httpx.Response(200, text="ok", headers={"content-type": "text/plain"})])

        assert await client.request("GET", "/zen") == "ok"

    @pytest.mark.unit
    async def test_search_issues_without_items(self):
        client, _ = make_client([httpx.Response(200, json={"total_count": 0})])

        assert await client.search_issues("octocat", "hello-world", "nothing") == []


class TestCommentOperations:
    """Test comment operations."""

    @pytest.mark.unit
    async def test_add_issue_comment_is_marked(self):
        client, handler = make_client(
            [httpx.Response(201, json={"id": 1, "html_url": "https://github.com/o/r/issues/42#issuecomment-1"})]
        )

        await client.add_issue_comment("octocat", "hello-world", 42, "Looks like a regression.")

        assert handler.requests[0].url == f"{TEST_BASE_URL}/repos/octocat/hello-world/issues/42/comments"
        assert sent_json(handler) == {"body": "[AI] Generated using MCP\n\nLooks like a regression."}
        assert sent_json(handler)["body"].startswith(AI_COMMENT_IDENTIFIER)

    @pytest.mark.unit
    async def test_get_issue_comments(self):
        comments = [{"id": 1, "body": "first"}, {"id": 2, "body": "second"}]
        client, handler = make_client([httpx.Response(200, json=comments)])

        assert await client.get_issue_comments("octocat", "hello-world", 42) == comments
        assert handler.requests[0].method == "GET"


class TestSession:
    """Test initialization, status and wiring."""

    @pytest.mark.unit
    async def test_initialize_resolves_without_requests(self):
        client, handler = make_client([])

        assert client.get_auth_status().authenticated is False
        await client.initialize()

        assert client.get_auth_status().as_dict() == {"authenticated": True, "source": "PAT"}
        assert handler.call_count == 0

    @pytest.mark.unit
    async def test_initialize_without_credentials(self):
        client, _ = make_client([], token=None, external=StaticCredentialProvider(token=None))

        with pytest.raises(NoCredentialError):
            await client.initialize()

    @pytest.mark.unit
    async def test_operations_share_the_fallback(self, issue_payload):
        """After a fallback in one operation, the next one uses the CLI token."""
        client, handler = make_client(
            [
                httpx.Response(401, json={"message": "Bad credentials"}),
                httpx.Response(200, json=issue_payload),
                httpx.Response(200, json=[]),
            ],
            external=StaticCredentialProvider(token="gho_cli_token"),
        )

        await client.get_issue("octocat", "hello-world", 42)
        await client.get_issue_comments("octocat", "hello-world", 42)

        assert handler.requests[2].headers["authorization"] == "Bearer gho_cli_token"
        assert client.get_auth_status().source == "GitHub CLI"

    @pytest.mark.unit
    async def test_connection_ok(self):
        client, handler = make_client([httpx.Response(200, json={"login": "octocat"})])

        assert await client.test_connection() is True
        assert handler.requests[0].url == f"{TEST_BASE_URL}/user"

    @pytest.mark.unit
    async def test_connection_failed(self):
        client, _ = make_client([httpx.Response(500, text="down")])

        assert await client.test_connection() is False

    @pytest.mark.unit
    async def test_from_settings(self):
        handler = RecordingHandler([httpx.Response(200, json={"login": "octocat"})])
        transport = HttpxTransport(transport=httpx.MockTransport(handler))
        settings = Settings(github_token="ghp_settings", api_base_url=TEST_BASE_URL, gh_executable="/usr/bin/gh")

        async with GitHubIssuesClient.from_settings(settings, transport=transport) as client:
            await client.request("GET", "/user")

        assert handler.requests[0].url == f"{TEST_BASE_URL}/user"
        assert handler.requests[0].headers["authorization"] == "Bearer ghp_settings"
        external = client.executor._resolver._external
        assert isinstance(external, GitHubCLIAuth)
        assert external.executable == "/usr/bin/gh"
