from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, Callable, Dict, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse, Response
from starlette.concurrency import run_in_threadpool

from common.config import load_config, merge_config
from common.logging_setup import get_logger, setup_logging
from common.types import NegotiationInput, Representation
from content.data import DashboardRecord, get_data, identifier_from_segment
from content.templates import to_html, to_json, to_markdown, to_yaml
from negotiation.formats import FormatResolver
from preview.cache import ArtifactCache, preview_cache_key
from preview.card import og_card_html
from preview.renderer import Renderer, build_renderer
from preview.store import CacheStore, build_store


log = get_logger(__name__)

# representation depends on both headers
VARY = {"Vary": "Accept, User-Agent"}

WELCOME = "Welcome to the dashboard example. Try /{name} to see a dashboard."


def _text_body(rep: Representation, identifier: str, record: DashboardRecord) -> str:
    if rep is Representation.JSON:
        return to_json(record)
    if rep is Representation.YAML:
        return to_yaml(record)
    if rep is Representation.MARKDOWN:
        return to_markdown(identifier, record)
    return to_html(identifier, record)


def create_app(
    config: Optional[Dict[str, Any]] = None,
    *,
    store: Optional[CacheStore] = None,
    renderer: Optional[Renderer] = None,
    source: Callable[[str], Optional[DashboardRecord]] = get_data,
) -> FastAPI:
    """
    Build the API. `config` overrides are merged over the defaults; without it
    config/params.yaml (or $CONTENT_CONFIG) is loaded.
    """
    P = merge_config(config) if config is not None else load_config()
    setup_logging(P.get("logging", {}).get("level"))

    cache_cfg = P.get("cache", {})
    render_cfg = P.get("renderer", {})
    width = int(render_cfg.get("width", 1200))
    height = int(render_cfg.get("height", 630))
    fmt = str(render_cfg.get("format", "png"))
    key_prefix = str(cache_cfg.get("key_prefix", "og:"))

    resolver = FormatResolver(png_path_alias=bool(P.get("negotiation", {}).get("png_path_alias", True)))
    store = store if store is not None else build_store(cache_cfg)
    renderer = renderer if renderer is not None else build_renderer(render_cfg)
    artifacts = ArtifactCache(
        store,
        ttl_seconds=int(cache_cfg.get("ttl_seconds", 86400)),
        max_age_seconds=int(cache_cfg.get("max_age_seconds", 86400)),
        render_timeout_s=render_cfg.get("render_timeout_s"),
        prefetch_workers=int(P.get("prefetch", {}).get("workers", 2)),
    )

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        yield
        # let in-flight prefetches finish writing before the process exits
        await run_in_threadpool(artifacts.close, 30.0)

    app = FastAPI(title="Negotiated Content API", version="1.0.0", lifespan=lifespan)
    app.state.artifacts = artifacts
    app.state.resolver = resolver
    app.state.store = store
    app.state.renderer = renderer

    def serve(segment: str, request: Request) -> Response:
        rep = resolver.resolve(NegotiationInput.from_headers(dict(request.headers), request.url.path))
        log.info("negotiated", extra={"extra": {
            "path": request.url.path, "format": rep.name.lower() if rep else None,
        }})
        if rep is None:
            return PlainTextResponse("Unacceptable format", status_code=400, headers=VARY)

        identifier = identifier_from_segment(segment)
        record = source(identifier)
        if record is None:
            return PlainTextResponse("Not found", status_code=404, headers=VARY)

        card = og_card_html(record, width=width, height=height)
        generate = lambda: renderer.render(card, width=width, height=height, fmt=fmt)  # noqa: E731
        key = preview_cache_key(identifier, key_prefix)

        # warm the preview for whoever shares this link next; not awaited
        artifacts.prefetch(key, generate)

        if rep is Representation.IMAGE:
            result = artifacts.fetch_or_render_transient(key, generate)
            return Response(
                content=result.content,
                status_code=result.status_code,
                media_type=result.media_type,
                headers={**result.headers, **VARY},
            )

        return Response(
            content=_text_body(rep, identifier, record),
            media_type=rep.content_type,
            headers=VARY,
        )

    @app.get("/")
    def index():
        return PlainTextResponse(WELCOME)

    # two segments, so no identifier can collide with it
    @app.get("/-/health")
    def health():
        return {
            "status": "ok",
            "store": store.stats(),
            "cache": artifacts.stats(),
            "renderer": getattr(renderer, "kind", type(renderer).__name__),
        }

    @app.get("/{segment}")
    def resource(segment: str, request: Request):
        try:
            return serve(segment, request)
        except Exception as e:
            log.exception("request failed: %s", e, extra={"extra": {"path": request.url.path}})
            return PlainTextResponse(f"Internal error: {e}", status_code=500)

    return app


# -------- local dev entrypoint --------
if __name__ == "__main__":
    P = load_config()
    # log_config=None keeps uvicorn on the JSON root handler
    uvicorn.run(create_app(P), host=P["server"]["host"], port=int(P["server"]["port"]), log_config=None)
