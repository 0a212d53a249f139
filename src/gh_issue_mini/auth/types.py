"""Credential value types."""

from dataclasses import dataclass, field
from enum import Enum


class CredentialSource(str, Enum):
    """Where a credential came from, in resolution priority order."""

    PRIMARY_TOKEN = "PAT"
    EXTERNAL_CLI = "GitHub CLI"

    @property
    def label(self) -> str:
        return self.value


@dataclass(frozen=True)
class Credential:
    """A bearer token together with the source that produced it.

    The token is excluded from ``repr`` so a credential can be logged safely.
    """

    token: str = field(repr=False)
    source: CredentialSource

    @property
    def authorization(self) -> str:
        return f"Bearer {self.token}"


@dataclass(frozen=True)
class SourceAttempt:
    """Why a source was skipped or failed during one resolution."""

    source: CredentialSource
    reason: str

    def describe(self) -> str:
        return f"{self.source.label}: {self.reason}"
