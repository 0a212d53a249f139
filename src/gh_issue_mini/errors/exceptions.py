"""Structured exceptions for GitHub API errors."""

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from gh_issue_mini.auth.types import SourceAttempt
    from gh_issue_mini.errors.models import GitHubErrorDetail


class GitHubAPIError(Exception):
    """Base exception for every terminal failure of an API call.

    Attributes:
        status_code: HTTP status code, None when no response was received.
        body: Parsed upstream response body, if any.
        detail: Parsed GitHub error payload, if the body had one.
        fallback_attempted: True if the call was replayed with the fallback
            credential.
        fallback_failed: True if the fallback itself did not succeed.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body: Any = None,
        detail: "GitHubErrorDetail | None" = None,
        fallback_attempted: bool = False,
        fallback_failed: bool = False,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.body = body
        self.detail = detail
        self.fallback_attempted = fallback_attempted
        self.fallback_failed = fallback_failed


class NoCredentialError(GitHubAPIError):
    """No credential source yielded a credential; nothing was sent."""

    def __init__(self, message: str, attempts: "list[SourceAttempt] | None" = None, **kwargs):
        super().__init__(message, **kwargs)
        self.attempts = attempts if attempts is not None else []


class AuthenticationError(GitHubAPIError):
    """401 Unauthorized with the active credential."""

    pass


class FallbackExhaustedError(AuthenticationError):
    """401 persisted after the one permitted credential fallback.

    Raised both when the fallback credential was also rejected and when no
    fallback credential could be resolved at all.
    """

    def __init__(
        self,
        message: str,
        original_error: AuthenticationError | None = None,
        attempts: "list[SourceAttempt] | None" = None,
        **kwargs,
    ):
        kwargs.setdefault("fallback_attempted", True)
        kwargs.setdefault("fallback_failed", True)
        super().__init__(message, **kwargs)
        self.original_error = original_error
        self.attempts = attempts if attempts is not None else []


class RequestFailedError(GitHubAPIError):
    """Any non-2xx response other than 401. Never triggers a fallback."""

    pass


class BadRequestError(RequestFailedError):
    """400 Bad Request."""

    pass


class ForbiddenError(RequestFailedError):
    """403 Forbidden."""

    pass


class NotFoundError(RequestFailedError):
    """404 Not Found."""

    pass


class ConflictError(RequestFailedError):
    """409 Conflict."""

    pass


class ValidationError(RequestFailedError):
    """422 Unprocessable Entity (validation errors)."""

    def __init__(self, message: str, validation_errors: list[dict] | None = None, **kwargs):
        super().__init__(message, **kwargs)
        self.validation_errors = validation_errors if validation_errors is not None else []


class RateLimitError(RequestFailedError):
    """429 Too Many Requests."""

    def __init__(self, message: str, retry_after: int | None = None, **kwargs):
        super().__init__(message, **kwargs)
        self.retry_after = retry_after


class ServerError(RequestFailedError):
    """5xx server errors."""

    pass


class TransportError(GitHubAPIError):
    """The request produced no usable HTTP response (network fault, bad encoding, redirect loop)."""

    def __init__(self, message: str, cause: BaseException | None = None, **kwargs):
        super().__init__(message, **kwargs)
        self.cause = cause


class UnexpectedResponseError(GitHubAPIError):
    """A 2xx response whose body is not the JSON shape the operation needs.

    Typically an HTML or text page from a proxy in front of the API. The raw
    body is kept on ``body``.
    """

    pass
