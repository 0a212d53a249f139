"""Error taxonomy and GitHub error payload handling."""

from gh_issue_mini.errors.exceptions import (
    AuthenticationError,
    BadRequestError,
    ConflictError,
    FallbackExhaustedError,
    ForbiddenError,
    GitHubAPIError,
    NoCredentialError,
    NotFoundError,
    RateLimitError,
    RequestFailedError,
    ServerError,
    TransportError,
    UnexpectedResponseError,
    ValidationError,
)
from gh_issue_mini.errors.handler import error_for_status, parse_response_body
from gh_issue_mini.errors.models import GitHubErrorDetail

__all__ = [
    "AuthenticationError",
    "BadRequestError",
    "ConflictError",
    "FallbackExhaustedError",
    "ForbiddenError",
    "GitHubAPIError",
    "GitHubErrorDetail",
    "NoCredentialError",
    "NotFoundError",
    "RateLimitError",
    "RequestFailedError",
    "ServerError",
    "TransportError",
    "UnexpectedResponseError",
    "ValidationError",
    "error_for_status",
    "parse_response_body",
]
