"""Replayable requests, outcome classification and the fallback state machine."""

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any

from gh_issue_mini.auth.types import CredentialSource
from gh_issue_mini.errors.exceptions import TransportError
from gh_issue_mini.errors.handler import parse_response_body
from gh_issue_mini.transport.http import RawResponse


@dataclass(frozen=True)
class RequestSpec:
    """One logical API call, replayable byte-for-byte.

    The JSON body is rendered to ``content`` once, so a replay after a
    credential fallback sends exactly the same bytes.

    Example:
        ```python
        spec = RequestSpec("POST", "/repos/octocat/hello/issues", body={"title": "Bug"})
        spec.url("https://api.github.com")
        ```
    """

    method: str
    path: str
    headers: Mapping[str, str] = field(default_factory=dict)
    body: Any = None
    content: bytes | None = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "method", self.method.upper())
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))
        content = None if self.body is None else json.dumps(self.body, separators=(",", ":")).encode("utf-8")
        object.__setattr__(self, "content", content)

    def url(self, base_url: str) -> str:
        if self.path.startswith(("http://", "https://")):
            return self.path
        return f"{base_url.rstrip('/')}{self.path}"


@dataclass(frozen=True)
class Success:
    status_code: int
    body: Any


@dataclass(frozen=True)
class AuthFailure:
    status_code: int
    body: Any


@dataclass(frozen=True)
class OtherFailure:
    status_code: int
    body: Any
    headers: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class TransportFailure:
    cause: TransportError


Outcome = Success | AuthFailure | OtherFailure | TransportFailure


def classify(response: RawResponse) -> Outcome:
    """Classify a response. Only 401 counts as an authentication failure."""
    body = parse_response_body(response.text, response.content_type)
    if 200 <= response.status_code < 300:
        return Success(response.status_code, body)
    if response.status_code == 401:
        return AuthFailure(response.status_code, body)
    return OtherFailure(response.status_code, body, response.headers)


def describe_outcome(outcome: Outcome) -> str:
    if isinstance(outcome, TransportFailure):
        return f"transport failure ({outcome.cause})"
    kind = {Success: "success", AuthFailure: "auth failure", OtherFailure: "failure"}[type(outcome)]
    return f"{kind} ({outcome.status_code})"


class Phase(Enum):
    """Steps of one ``execute`` call."""

    INIT = "init"
    ATTEMPT = "attempt"
    FALLBACK = "fallback"
    REPLAY = "replay"
    DONE = "done"


def next_phase(phase: Phase, outcome: Outcome | None, source: CredentialSource | None) -> Phase:
    """Transition table for one call.

    INIT -> ATTEMPT -> (FALLBACK -> REPLAY ->) DONE. FALLBACK is entered only
    from ATTEMPT, only on a 401, and only while the primary token is in use,
    so a call sends at most two requests.
    """
    if phase is Phase.INIT:
        return Phase.ATTEMPT
    if phase is Phase.ATTEMPT and isinstance(outcome, AuthFailure) and source is CredentialSource.PRIMARY_TOKEN:
        return Phase.FALLBACK
    if phase is Phase.FALLBACK:
        return Phase.REPLAY
    return Phase.DONE
