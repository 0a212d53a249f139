"""Error handling utilities for HTTP responses."""

import json
import logging
from collections.abc import Mapping
from typing import Any

from gh_issue_mini.errors.exceptions import (
    AuthenticationError,
    BadRequestError,
    ConflictError,
    ForbiddenError,
    GitHubAPIError,
    NotFoundError,
    RateLimitError,
    RequestFailedError,
    ServerError,
    ValidationError,
)
from gh_issue_mini.errors.models import GitHubErrorDetail

logger = logging.getLogger(__name__)

FALLBACK_NOTE = " (request was retried with the GitHub CLI credential after a 401 and still failed)"

EXCEPTION_MAP: dict[int, type[GitHubAPIError]] = {
    400: BadRequestError,
    401: AuthenticationError,
    403: ForbiddenError,
    404: NotFoundError,
    409: ConflictError,
    422: ValidationError,
    429: RateLimitError,
}


def is_json_content_type(content_type: str) -> bool:
    media_type = content_type.split(";", 1)[0].strip().lower()
    return media_type == "application/json" or media_type.endswith("+json")


def parse_response_body(text: str, content_type: str) -> Any:
    """Decode a response body according to its declared content type.

    JSON bodies are decoded to Python values; anything else is returned as
    text. A JSON body that fails to decode degrades to its raw text.

    Args:
        text: Decoded response text
        content_type: Value of the Content-Type header ("" if absent)

    Returns:
        Parsed value, raw text, or None for an empty body
    """
    if not text:
        return None

    if not is_json_content_type(content_type):
        return text

    try:
        return json.loads(text)
    except ValueError as e:
        logger.error(f"Failed to parse response body as JSON: {e}")
        return text


def describe_body(body: Any) -> str:
    """Render a response body as the upstream message of an error."""
    detail = GitHubErrorDetail.from_body(body)
    if detail is not None:
        return detail.to_exception_message()
    if body is None:
        return ""
    if isinstance(body, str):
        return body[:200]
    return json.dumps(body)[:200]


def error_for_status(
    status_code: int,
    body: Any,
    headers: Mapping[str, str] | None = None,
    **context: Any,
) -> GitHubAPIError:
    """Build the appropriate exception for an HTTP error response.

    Args:
        status_code: HTTP status code (non-2xx)
        body: Parsed response body
        headers: Response headers, used for Retry-After on 429
        **context: Extra keyword arguments for the exception, such as
            ``fallback_attempted``

    Returns:
        GitHubAPIError subclass based on status code
    """
    if status_code in EXCEPTION_MAP:
        exc_class = EXCEPTION_MAP[status_code]
    elif 500 <= status_code < 600:
        exc_class = ServerError
    else:
        exc_class = RequestFailedError

    detail = GitHubErrorDetail.from_body(body)
    upstream = describe_body(body)
    message = f"GitHub API error! Status: {status_code}"
    if upstream:
        message += f". Message: {upstream}"
    if context.get("fallback_attempted"):
        message += FALLBACK_NOTE

    kwargs: dict[str, Any] = {"status_code": status_code, "body": body, "detail": detail, **context}

    if exc_class is RateLimitError:
        retry_after = None
        lowered = {k.lower(): v for k, v in (headers or {}).items()}
        if "retry-after" in lowered:
            try:
                retry_after = int(lowered["retry-after"])
            except (ValueError, TypeError):
                retry_after = None
        return RateLimitError(message, retry_after=retry_after, **kwargs)

    if exc_class is ValidationError:
        return ValidationError(message, validation_errors=detail.errors if detail else None, **kwargs)

    return exc_class(message, **kwargs)
