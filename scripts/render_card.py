#!/usr/bin/env python3
"""
Render the Open Graph preview card for a dashboard to a PNG file, offline.

Useful for checking card layout without running the API.

Examples:
  python scripts/render_card.py alice
  python scripts/render_card.py alice --out runtime/alice.png --renderer http --url http://localhost:3000/render
  python scripts/render_card.py alice --html-only > alice_card.html
"""
from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from common.config import load_config
from common.logging_setup import get_logger, setup_logging
from common.utils import timer_ms
from content.data import get_data
from preview.card import og_card_html
from preview.errors import GenerationFailure
from preview.renderer import build_renderer


log = get_logger("render_card")


def main() -> int:
    ap = argparse.ArgumentParser()
    ap.add_argument("identifier", help="Dashboard identifier, e.g. alice")
    ap.add_argument("--config", default=None, help="YAML params (default: config/params.yaml)")
    ap.add_argument("--out", default="", help="Output PNG path (default: runtime/<identifier>.png)")
    ap.add_argument("--renderer", choices=["browser", "http"], default=None, help="Override renderer.kind")
    ap.add_argument("--url", default=None, help="Render service URL for --renderer http")
    ap.add_argument("--html-only", action="store_true", help="Print the card HTML and exit")
    ap.add_argument("--log-level", default=None, help="DEBUG/INFO/WARNING/ERROR")
    args = ap.parse_args()

    setup_logging(args.log_level, force=True)
    P = load_config(args.config)
    rcfg = dict(P["renderer"])
    if args.renderer:
        rcfg["kind"] = args.renderer
    if args.url:
        rcfg["url"] = args.url

    record = get_data(args.identifier)
    if record is None:
        print(f"[err] invalid identifier: {args.identifier!r}", file=sys.stderr)
        return 2

    width, height = int(rcfg["width"]), int(rcfg["height"])
    card = og_card_html(record, width=width, height=height)
    if args.html_only:
        print(card)
        return 0

    renderer = build_renderer(rcfg)
    try:
        data, ms = timer_ms(renderer.render)(card, width=width, height=height, fmt=rcfg["format"])
    except GenerationFailure as e:
        log.error("render failed: %s", e)
        return 1

    out = Path(args.out or f"runtime/{args.identifier}.{rcfg['format']}")
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_bytes(data)
    print(f"[ok] wrote {out} ({len(data)} bytes, {ms:.0f} ms, renderer={renderer.kind})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
