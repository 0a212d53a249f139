"""GitHub REST error payload model."""

from dataclasses import dataclass
from typing import Any


@dataclass
class GitHubErrorDetail:
    """Error body returned by the GitHub REST API.

    See: https://docs.github.com/en/rest/using-the-rest-api/troubleshooting-the-rest-api
    """

    message: str | None = None  # Human-readable summary
    documentation_url: str | None = None  # Link to the relevant docs page
    status: str | None = None  # Status code echoed in the body by newer endpoints
    errors: list[dict[str, Any]] | None = None  # Field-level validation errors

    # Any other members of the payload
    extensions: dict[str, Any] | None = None

    @classmethod
    def from_body(cls, body: Any) -> "GitHubErrorDetail | None":
        """Parse a GitHub error payload from a decoded response body.

        Args:
            body: Decoded JSON value or raw text.

        Returns:
            GitHubErrorDetail, or None if the body is not a GitHub error object
        """
        if not isinstance(body, dict):
            return None

        standard_fields = {"message", "documentation_url", "status", "errors"}
        if not any(field in body for field in standard_fields):
            return None

        errors = body.get("errors")
        if errors is not None and not isinstance(errors, list):
            errors = [errors]
        # GitHub sometimes lists errors as bare strings
        if errors is not None:
            errors = [e if isinstance(e, dict) else {"message": str(e)} for e in errors]

        status = body.get("status")
        extensions = {k: v for k, v in body.items() if k not in standard_fields}

        return cls(
            message=body.get("message"),
            documentation_url=body.get("documentation_url"),
            status=str(status) if status is not None else None,
            errors=errors,
            extensions=extensions if extensions else None,
        )

    def to_exception_message(self) -> str:
        """Convert the payload to the message part of an exception."""
        lines = [self.message or "Unknown GitHub API error"]

        for error in self.errors or []:
            parts = [str(error[key]) for key in ("resource", "field", "code") if error.get(key)]
            text = error.get("message")
            if text:
                parts.append(str(text))
            if parts:
                lines.append(f"  - {' '.join(parts)}")

        if self.documentation_url:
            lines.append(f"Documentation: {self.documentation_url}")

        return "\n".join(lines)
