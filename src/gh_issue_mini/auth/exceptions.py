"""Custom exceptions for credential resolution.

These exceptions are internal to the credential layer: the resolver catches
them while walking its sources and turns them into diagnostic attempts. They
never reach callers of the request executor.

Example:
    ```python
    from gh_issue_mini.auth.exceptions import CredentialSourceUnavailable
    from gh_issue_mini.auth.types import CredentialSource

    if not token:
        raise CredentialSourceUnavailable(CredentialSource.PRIMARY_TOKEN, "token is empty")
    ```
"""

from gh_issue_mini.auth.types import CredentialSource


class CredentialError(Exception):
    """Base exception for credential-related errors.

    All credential-specific exceptions inherit from this class,
    making it easy to catch any credential-related error.
    """

    pass


class CredentialSourceUnavailable(CredentialError):
    """Raised when a single credential source cannot produce a credential.

    The resolver treats this as "try the next source", never as fatal.

    Attributes:
        source: The source that was tried.
        reason: Human-readable explanation, shown to users when every
            source has failed.

    Example:
        ```python
        try:
            credential = provider.resolve_external_credential()
        except CredentialSourceUnavailable as e:
            print(f"{e.source.label}: {e.reason}")
        ```
    """

    def __init__(self, source: CredentialSource, reason: str):
        """Initialize CredentialSourceUnavailable.

        Args:
            source: The credential source that failed.
            reason: Why the source did not yield a credential.
        """
        super().__init__(f"{source.label}: {reason}")
        self.source = source
        self.reason = reason
