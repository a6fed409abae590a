"""
HTML card -> raster bytes.

BrowserRenderer screenshots the card in headless Chromium (playwright):
    viewport = width x height, set_content(html), screenshot(type=fmt)

HttpRenderer delegates to a remote render service (e.g. a satori/resvg worker):
    POST {url}  json={"html", "width", "height", "format"}  -> image bytes

Both decode-check what they produce with Pillow before handing it back.
"""

from __future__ import annotations

import io
import logging
from typing import Callable, Dict, Optional, Protocol

import requests
from PIL import Image
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import sync_playwright

from preview.errors import RenderError


log = logging.getLogger(__name__)

# requested format -> Pillow's name for it
FORMATS = {"png": "PNG", "jpeg": "JPEG", "jpg": "JPEG"}


class Renderer(Protocol):
    kind: str

    def render(self, html: str, *, width: int, height: int, fmt: str = "png") -> bytes: ...


def _pillow_format(fmt: str) -> str:
    try:
        return FORMATS[fmt.lower()]
    except KeyError:
        raise RenderError(f"unsupported image format: {fmt!r}") from None


def check_image(data: bytes, *, width: int, height: int, fmt: str = "png") -> bytes:
    """Reject output that is not a `fmt` image of exactly width x height."""
    want = _pillow_format(fmt)
    try:
        with Image.open(io.BytesIO(data)) as img:
            got, size = img.format, img.size
    except (OSError, ValueError) as e:
        raise RenderError(f"renderer output is not an image: {e}") from e
    if got != want:
        raise RenderError(f"renderer produced {got}, expected {want}")
    if size != (int(width), int(height)):
        raise RenderError(f"renderer produced {size[0]}x{size[1]}, expected {width}x{height}")
    return data


class BrowserRenderer:
    """
    One Chromium per render. Sync playwright objects are bound to the thread
    that made them, and renders arrive on arbitrary pool threads.
    """
    kind = "browser"

    def __init__(self, timeout: float = 10.0, launcher: Callable = sync_playwright):
        """
        Params:
            timeout: page load / screenshot limit in seconds
            launcher: playwright context manager factory (injectable for tests)
        """
        self.timeout = float(timeout)
        self._launcher = launcher

    def render(self, html: str, *, width: int, height: int, fmt: str = "png") -> bytes:
        pil_fmt = _pillow_format(fmt)
        timeout_ms = self.timeout * 1000
        try:
            with self._launcher() as pw:
                browser = pw.chromium.launch()
                try:
                    page = browser.new_page(viewport={"width": int(width), "height": int(height)})
                    # avatars are remote <img>; wait for them before the shot
                    page.set_content(html, wait_until="load", timeout=timeout_ms)
                    data = page.screenshot(type=pil_fmt.lower(), timeout=timeout_ms)
                finally:
                    browser.close()
        except PlaywrightError as e:
            log.warning("browser render failed: %s", e)
            raise RenderError(f"browser render failed: {e}") from e
        return check_image(data, width=width, height=height, fmt=fmt)


class HttpRenderer:
    kind = "http"

    def __init__(self, url: str, timeout: float = 10.0, session: Optional[requests.Session] = None):
        """
        Params:
            url: render service endpoint
            timeout: per-request timeout in seconds
            session: optional requests.Session for connection reuse
        """
        if not url:
            raise ValueError("HttpRenderer requires renderer.url")
        self.url = url
        self.timeout = float(timeout)
        self.session = session or requests.Session()

    def render(self, html: str, *, width: int, height: int, fmt: str = "png") -> bytes:
        payload = {"html": html, "width": int(width), "height": int(height), "format": fmt}
        try:
            r = self.session.post(self.url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise RenderError(f"render service unreachable: {e}") from e
        if r.status_code != 200 or not r.content:
            log.warning("render service failed: %s %s", r.status_code, r.text[:200])
            raise RenderError(f"render service returned {r.status_code}")
        return check_image(r.content, width=width, height=height, fmt=fmt)


def build_renderer(cfg: Dict) -> Renderer:
    """Renderer from the `renderer` config section."""
    kind = str(cfg.get("kind", "browser")).lower()
    timeout = float(cfg.get("timeout_s", 10.0))
    if kind == "browser":
        return BrowserRenderer(timeout=timeout)
    if kind == "http":
        return HttpRenderer(cfg.get("url", ""), timeout=timeout)
    raise ValueError(f"unknown renderer kind: {kind!r}")
