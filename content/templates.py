from __future__ import annotations

import json
from html import escape

import yaml

from common.utils import human_timestamp
from content.data import DashboardRecord


def to_json(record: DashboardRecord) -> str:
    return json.dumps(record.to_dict(), indent=2, ensure_ascii=False)


def to_yaml(record: DashboardRecord) -> str:
    return yaml.safe_dump(record.to_dict(), sort_keys=False, allow_unicode=True)


def to_markdown(identifier: str, record: DashboardRecord) -> str:
    participants = "\n".join(f"- {p}" for p in record.participants)
    links = " | ".join([
        f"[View as HTML](/{identifier}.html)",
        f"[View as JSON](/{identifier}.json)",
        f"[View as YAML](/{identifier}.yaml)",
        f"[View Open Graph Image](/{identifier}.png)",
    ])
    return (
        f"# {record.title}\n"
        f"\n"
        f"{record.subtitle}\n"
        f"\n"
        f"## Stats\n"
        f"\n"
        f"- Total Items: {record.total_items:,}\n"
        f"- Contributors: {len(record.participants)}\n"
        f"- Content Count: {record.content_count}\n"
        f"\n"
        f"## Participants\n"
        f"\n"
        f"{participants}\n"
        f"\n"
        f"_Last updated: {human_timestamp(record.updated_at)}_\n"
        f"\n"
        f"{links}\n"
    )


_PAGE_STYLE = """
    body {
      font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, Oxygen, Ubuntu, Cantarell, 'Open Sans', 'Helvetica Neue', sans-serif;
      max-width: 800px;
      margin: 0 auto;
      padding: 20px;
      line-height: 1.6;
    }
    h1 { color: #0066cc; }
    .stats { display: flex; gap: 20px; margin: 20px 0; }
    .stat { padding: 15px; background: #f0f5ff; border-radius: 5px; }
    .avatars { display: flex; gap: 10px; margin: 20px 0; }
    .avatar { width: 50px; height: 50px; border-radius: 50%; }
"""


def to_html(identifier: str, record: DashboardRecord) -> str:
    """Server-rendered page; og:* tags point crawlers at /<identifier>.png."""
    e = escape
    # "</" would close the script element early
    ld_json = json.dumps(record.to_dict()).replace("</", "<\\/")
    avatars = "".join(
        f'<img class="avatar" src="{e(url)}" alt="{e(name)}" title="{e(name)}">'
        for url, name in zip(record.avatar_urls, record.participants)
    )
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{e(record.title)}</title>
  <meta name="description" content="{e(record.description)}">
  <meta property="og:title" content="{e(record.title)}">
  <meta property="og:description" content="{e(record.subtitle)}">
  <meta property="og:image" content="/{e(identifier)}.png">
  <meta property="og:type" content="website">
  <script type="application/ld+json">
    {ld_json}
  </script>
  <style>{_PAGE_STYLE}  </style>
</head>
<body>
  <h1>{e(record.title)}</h1>
  <p>{e(record.subtitle)}</p>

  <div class="stats">
    <div class="stat">
      <div>Total Items</div>
      <strong>{record.total_items:,}</strong>
    </div>
    <div class="stat">
      <div>Contributors</div>
      <strong>{len(record.participants)}</strong>
    </div>
    <div class="stat">
      <div>Content Count</div>
      <strong>{record.content_count}</strong>
    </div>
  </div>

  <h2>Participants</h2>
  <div class="avatars">
    {avatars}
  </div>

  <p>Contributors: {e(", ".join(record.participants))}</p>
  <p>Last updated: {e(human_timestamp(record.updated_at))}</p>
</body>
</html>"""
