from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from common.utils import iso_now_ms


IDENTIFIER_RE = re.compile(r"^[A-Za-z0-9_-]{1,64}$")

_PARTICIPANTS = ["Alice", "Bob", "Charlie", "David", "Eve", "Frank"]


@dataclass(slots=True)
class DashboardRecord:
    """
    One dashboard as served in every representation.

    Attributes:
        title, subtitle, description: display text.
        total_items, content_count: headline stats.
        participants: contributor names (display order).
        avatar_urls: one avatar per participant, same order.
        created_at, updated_at: ISO-8601 (UTC) timestamps.
    """
    title: str
    subtitle: str
    total_items: int
    participants: List[str]
    avatar_urls: List[str]
    content_count: int
    description: str
    created_at: str = field(default_factory=iso_now_ms)
    updated_at: str = field(default_factory=iso_now_ms)

    def to_dict(self) -> Dict[str, Any]:
        """Public field names (camelCase), in display order."""
        return {
            "title": self.title,
            "subtitle": self.subtitle,
            "totalItems": self.total_items,
            "participants": list(self.participants),
            "avatarUrls": list(self.avatar_urls),
            "contentCount": self.content_count,
            "description": self.description,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }


def identifier_from_segment(segment: str) -> str:
    """'alice.json' -> 'alice'; the identifier is everything before the first '.'."""
    return segment.split(".")[0]


def get_data(identifier: str) -> Optional[DashboardRecord]:
    """Demo lookup: any well-formed identifier has a dashboard."""
    if not IDENTIFIER_RE.match(identifier or ""):
        return None
    display = identifier[:1].upper() + identifier[1:]
    return DashboardRecord(
        title=f"{display}'s Dashboard",
        subtitle="An example dashboard for demonstration purposes",
        total_items=1256,
        participants=list(_PARTICIPANTS),
        avatar_urls=[f"https://i.pravatar.cc/150?u={p.lower()}" for p in _PARTICIPANTS],
        content_count=42,
        description="This is a sample dashboard showing various metrics and statistics.",
    )
