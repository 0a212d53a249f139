"""Testing utilities for the GitHub issue client.

This module provides fakes for the two external collaborators of the
executor, so tests never spawn processes or touch the network.

Modules:
    fakes: Scripted command runner, credential provider and HTTP handler

Example:
    ```python
    from gh_issue_mini.testing import FakeCommandRunner, RecordingHandler

    runner = FakeCommandRunner.logged_in("gho_cli_token")
    handler = RecordingHandler([httpx.Response(401), httpx.Response(200, json={"number": 1})])
    ```
"""

from gh_issue_mini.testing.fakes import (
    FakeCommandRunner,
    RecordingHandler,
    StaticCredentialProvider,
    build_executor,
)

__all__ = [
    "FakeCommandRunner",
    "RecordingHandler",
    "StaticCredentialProvider",
    "build_executor",
]
