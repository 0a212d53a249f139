"""Request execution: HTTP transport, request specs and the authenticated executor.

Modules:
    http: Transport protocol and the httpx-backed implementation
    request: RequestSpec, outcome classification and the fallback state machine
    executor: AuthenticatedExecutor with its session AuthState

Example:
    ```python
    from gh_issue_mini.transport import AuthenticatedExecutor, HttpxTransport, RequestSpec

    executor = AuthenticatedExecutor(resolver, HttpxTransport(timeout=30.0))
    user = await executor.execute(RequestSpec("GET", "/user"))
    ```
"""

from gh_issue_mini.transport.executor import AuthenticatedExecutor, AuthState, AuthStatus
from gh_issue_mini.transport.http import HttpxTransport, RawResponse, Transport
from gh_issue_mini.transport.request import RequestSpec

__all__ = [
    "AuthState",
    "AuthStatus",
    "AuthenticatedExecutor",
    "HttpxTransport",
    "RawResponse",
    "RequestSpec",
    "Transport",
]
