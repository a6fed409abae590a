from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional


class Representation(Enum):
    """
    Output formats a resource can be served as, in negotiation order.

    Each member carries (canonical MIME type, filename-extension alias).
    """
    MARKDOWN = ("text/markdown", "md")
    HTML = ("text/html", "html")
    JSON = ("application/json", "json")
    YAML = ("text/yaml", "yaml")
    IMAGE = ("image/png", "png")

    def __init__(self, mime: str, extension: str) -> None:
        self.mime = mime
        self.extension = extension

    @property
    def content_type(self) -> str:
        """Response Content-Type; text formats advertise utf8."""
        if self is Representation.IMAGE:
            return self.mime
        return f"{self.mime};charset=utf8"

    @classmethod
    def from_mime(cls, mime: str) -> Optional["Representation"]:
        for rep in cls:
            if rep.mime == mime:
                return rep
        return None


@dataclass(frozen=True)
class NegotiationInput:
    """
    Snapshot of the request signals used to pick a representation.

    Attributes:
        user_agent: raw User-Agent header or None.
        accept: raw Accept header or None.
        path: URL path, e.g. "/alice.json".
    """
    user_agent: Optional[str]
    accept: Optional[str]
    path: str

    @classmethod
    def from_headers(cls, headers: Dict[str, str], path: str) -> "NegotiationInput":
        lowered = {k.lower(): v for k, v in headers.items()}
        return cls(
            user_agent=lowered.get("user-agent"),
            accept=lowered.get("accept"),
            path=path,
        )


class GenerationMode(Enum):
    PREFETCH = "prefetch"
    IMMEDIATE = "immediate"


@dataclass(frozen=True)
class GenerationRequest:
    cache_key: str
    html: str
    mode: GenerationMode
    ttl_seconds: int


class ArtifactOutcome(Enum):
    HIT = "hit"
    GENERATED = "generated"
    QUEUED = "queued"
    FAILED = "failed"


@dataclass(frozen=True)
class ArtifactResult:
    """
    Outcome of one cache-aside call.

    `body` is set for HIT/GENERATED only; `error` for FAILED only.
    """
    outcome: ArtifactOutcome
    body: Optional[bytes] = None
    error: Optional[str] = None
    max_age: int = 86400
    timed_out: bool = False

    @property
    def status_code(self) -> int:
        if self.outcome is ArtifactOutcome.QUEUED:
            return 202
        if self.outcome is ArtifactOutcome.FAILED:
            return 504 if self.timed_out else 500
        return 200

    @property
    def media_type(self) -> str:
        if self.body is not None:
            return Representation.IMAGE.mime
        return "text/plain"

    @property
    def headers(self) -> Dict[str, str]:
        if self.body is not None:
            return {"Cache-Control": f"public, max-age={self.max_age}"}
        return {}

    @property
    def content(self) -> bytes:
        if self.body is not None:
            return self.body
        if self.outcome is ArtifactOutcome.QUEUED:
            return b"Created"
        return f"Preview generation failed: {self.error}".encode("utf-8")
