"""
Open Graph card markup for a dashboard record.

Markup constraints (kept portable to satori-style render services):
- every container is `display: flex`; direction defaults to row
- no `position: absolute`
- sizes in px only
"""

from __future__ import annotations

from html import escape
from typing import List

from content.data import DashboardRecord


MAX_AVATARS = 6

FONT_STACK = (
    "-apple-system, BlinkMacSystemFont, 'Segoe UI', 'Roboto', 'Oxygen', 'Ubuntu', "
    "'Cantarell', 'Fira Sans', 'Droid Sans', 'Helvetica Neue', sans-serif"
)


def participants_text(participants: List[str]) -> str:
    """'A and B' for two or fewer, else 'A, B and N others'."""
    if len(participants) <= 2:
        return " and ".join(participants)
    return f"{', '.join(participants[:2])} and {len(participants) - 2} others"


def og_card_html(record: DashboardRecord, *, width: int = 1200, height: int = 630) -> str:
    e = escape
    avatars = "".join(
        f'<div style="width: 120px; height: 120px; border-radius: 50%; display: flex; margin-right: 10px;">'
        f'<img src="{e(url)}" alt="User {i + 1}" width="120" height="120" /></div>'
        for i, url in enumerate(record.avatar_urls[:MAX_AVATARS])
    )
    return f"""
<div style="font-family: {FONT_STACK}; background-color: #ffffff; width: {width}px; height: {height}px; display: flex; flex-direction: column;">
  <div style="background-color: #0066cc; height: 80px; display: flex; align-items: center; padding: 0 60px;">
    <svg width="32" height="32" viewBox="0 0 32 32" fill="#ffffff" xmlns="http://www.w3.org/2000/svg"><rect width="32" height="32" rx="6" fill="white"/></svg>
    <span style="color: #ffffff; font-size: 32px; margin-left: 16px; font-weight: bold; display: flex;">Content Preview</span>
  </div>
  <div style="display: flex; flex-direction: column; flex: 1; padding: 30px 60px;">
    <div style="font-size: 64px; font-weight: 800; margin-bottom: 16px; color: #000000; display: flex;">{e(record.title)}</div>
    <div style="font-size: 32px; color: #333333; margin-bottom: 32px; display: flex;">{e(record.subtitle)}</div>
    <div style="display: flex; margin-bottom: 24px;">
      <div style="display: flex; flex-direction: column; margin-right: 60px;">
        <span style="font-size: 24px; color: #666666; display: flex;">Total Items</span>
        <span style="font-size: 48px; font-weight: bold; display: flex;">{record.total_items:,}</span>
      </div>
      <div style="display: flex; flex-direction: column;">
        <span style="font-size: 24px; color: #666666; display: flex;">Contributors</span>
        <span style="font-size: 48px; font-weight: bold; display: flex;">{len(record.participants)}</span>
      </div>
    </div>
    <div style="display: flex; height: 120px; margin-bottom: 20px;">{avatars}</div>
    <div style="font-size: 24px; color: #555555; display: flex;">With contributions from {e(participants_text(record.participants))}</div>
  </div>
  <div style="background-color: #0066cc; color: #ffffff; height: 70px; padding: 20px 60px; font-size: 24px; display: flex; justify-content: center;">
    <span style="display: flex;">View full content - {record.content_count} items</span>
  </div>
</div>
"""
