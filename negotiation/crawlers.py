from __future__ import annotations

import re
from typing import List, Optional, Pattern, Tuple


# (name, pattern); scanned in order, first match wins. Case-sensitive.
CRAWLERS: List[Tuple[str, Pattern[str]]] = [
    ("Facebook", re.compile(r"facebookexternalhit|Facebot")),
    ("Twitter", re.compile(r"Twitterbot")),
    ("LinkedIn", re.compile(r"LinkedInBot")),
    ("Slack", re.compile(r"Slackbot-LinkExpanding")),
    ("Discord", re.compile(r"Discordbot")),
    ("WhatsApp", re.compile(r"WhatsApp")),
    ("Telegram", re.compile(r"TelegramBot")),
    ("Pinterest", re.compile(r"Pinterest")),
    ("Google", re.compile(r"Googlebot")),
    ("Bing", re.compile(r"bingbot")),
]


def detect_crawler(
    user_agent: Optional[str],
    registry: Optional[List[Tuple[str, Pattern[str]]]] = None,
) -> Optional[str]:
    """Return the crawler name matching `user_agent`, or None. Absent UA is ''."""
    ua = user_agent or ""
    for name, pattern in (CRAWLERS if registry is None else registry):
        if pattern.search(ua):
            return name
    return None
