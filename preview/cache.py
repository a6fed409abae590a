"""
Cache-aside preview artifacts.

Two operations over the same pure generator:

    fetch_or_render_transient(key, generate)   # immediate: hit -> bytes, miss -> render -> bytes
                                               #   never writes the store
    render_and_store(key, generate, ttl)       # prefetch: hit -> hit, miss -> render -> put -> 202
                                               #   returns no artifact bytes on a miss

`prefetch()` runs render_and_store on a background pool and hands back the
Future; callers may drop it, failures are logged either way.

Neither operation raises: store/render errors come back as a FAILED result.
Two concurrent renders of one key are allowed; the later put wins.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Callable, Dict, Optional, Set

from common.types import ArtifactOutcome, ArtifactResult, GenerationMode, GenerationRequest
from common.utils import RunningStats, timer_ms
from preview.errors import RenderError, RenderTimeout
from preview.store import CacheStore


log = logging.getLogger(__name__)

Generator = Callable[[], bytes]


def preview_cache_key(identifier: str, prefix: str = "og:") -> str:
    """Key for the logical resource, shared by /alice, /alice.json, /alice.png, ..."""
    return f"{prefix}/{identifier}"


class ArtifactCache:
    def __init__(
        self,
        store: CacheStore,
        *,
        ttl_seconds: int = 86400,
        max_age_seconds: int = 86400,
        render_timeout_s: Optional[float] = None,
        prefetch_workers: int = 2,
        render_workers: int = 4,
    ):
        """
        Params:
            store: key/value store with TTL (MemoryStore, FileStore, ...)
            ttl_seconds: default TTL for prefetch writes
            max_age_seconds: Cache-Control max-age on served PNGs
            render_timeout_s: wait limit for one render; None waits forever
            prefetch_workers: background prefetch threads
            render_workers: render threads (only used when a timeout is set)
        """
        self.store = store
        self.ttl_seconds = int(ttl_seconds)
        self.max_age_seconds = int(max_age_seconds)
        self.render_timeout_s = render_timeout_s
        self._prefetch_pool = ThreadPoolExecutor(max_workers=max(1, int(prefetch_workers)), thread_name_prefix="prefetch")
        self._render_pool: Optional[ThreadPoolExecutor] = None
        if render_timeout_s is not None:
            self._render_pool = ThreadPoolExecutor(max_workers=max(1, int(render_workers)), thread_name_prefix="render")
        self._pending: Set[Future] = set()
        self._lock = threading.Lock()
        self._counts: Dict[str, int] = {
            "hits": 0, "misses": 0, "renders": 0, "stored": 0,
            "failures": 0, "read_errors": 0,
        }
        self._render_ms = RunningStats()

    # -------- public API --------

    def fetch_or_render_transient(self, key: str, generate: Generator) -> ArtifactResult:
        """Immediate mode. Returns bytes on hit or fresh render; does not populate the store."""
        try:
            cached = self._read(key)
            if cached is not None:
                return self._hit(cached)
            data = self._generate(key, generate)
            return ArtifactResult(ArtifactOutcome.GENERATED, body=data, max_age=self.max_age_seconds)
        except Exception as e:
            return self._failed(key, GenerationMode.IMMEDIATE, e)

    def render_and_store(self, key: str, generate: Generator, ttl_seconds: Optional[int] = None) -> ArtifactResult:
        """Prefetch mode. Renders and writes on a miss; answers QUEUED (202) without bytes."""
        ttl = self.ttl_seconds if ttl_seconds is None else int(ttl_seconds)
        try:
            cached = self._read(key)
            if cached is not None:
                return self._hit(cached)
            data = self._generate(key, generate)
            self.store.put(key, data, ttl)
            self._bump("stored")
            log.info("stored preview", extra={"extra": {"key": key, "bytes": len(data), "ttl": ttl}})
            return ArtifactResult(ArtifactOutcome.QUEUED, max_age=self.max_age_seconds)
        except Exception as e:
            return self._failed(key, GenerationMode.PREFETCH, e)

    def get_or_generate(self, request: GenerationRequest, render: Callable[[str], bytes]) -> ArtifactResult:
        """Single-entry form: dispatch on request.mode, rendering request.html."""
        generate = lambda: render(request.html)  # noqa: E731
        if request.mode is GenerationMode.PREFETCH:
            return self.render_and_store(request.cache_key, generate, request.ttl_seconds)
        return self.fetch_or_render_transient(request.cache_key, generate)

    def prefetch(self, key: str, generate: Generator, ttl_seconds: Optional[int] = None) -> "Future[ArtifactResult]":
        """Background render_and_store. The returned Future may be ignored."""
        try:
            fut = self._prefetch_pool.submit(self.render_and_store, key, generate, ttl_seconds)
        except RuntimeError as e:
            # pool already shut down
            done: "Future[ArtifactResult]" = Future()
            done.set_result(self._failed(key, GenerationMode.PREFETCH, e))
            return done
        with self._lock:
            self._pending.add(fut)
        fut.add_done_callback(self._prefetch_done)
        return fut

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait for outstanding prefetches. True if none are left running."""
        with self._lock:
            pending = list(self._pending)
        if not pending:
            return True
        _, not_done = wait(pending, timeout=timeout)
        return not not_done

    def close(self, timeout: Optional[float] = None) -> None:
        """Drain prefetches, then stop the pools. Hung renders are abandoned."""
        self.join(timeout)
        self._prefetch_pool.shutdown(wait=False, cancel_futures=True)
        if self._render_pool is not None:
            self._render_pool.shutdown(wait=False, cancel_futures=True)

    def stats(self) -> Dict[str, object]:
        with self._lock:
            out: Dict[str, object] = dict(self._counts)
            out["pending_prefetches"] = len(self._pending)
            out["render_ms_mean"] = round(self._render_ms.mean, 2)
            out["render_ms_std"] = round(self._render_ms.std, 2)
        return out

    # -------- internals --------

    def _read(self, key: str) -> Optional[bytes]:
        try:
            data = self.store.get(key)
        except Exception as e:
            # unreadable store: serve a fresh render instead
            self._bump("read_errors")
            log.warning("cache read failed, regenerating: %s", e, extra={"extra": {"key": key}})
            data = None
        self._bump("hits" if data is not None else "misses")
        return data

    def _generate(self, key: str, generate: Generator) -> bytes:
        timed = timer_ms(generate)
        if self._render_pool is None:
            data, ms = timed()
        else:
            fut = self._render_pool.submit(timed)
            # only the deadline is a timeout; a TimeoutError from the render is a plain failure
            _, not_done = wait([fut], timeout=self.render_timeout_s)
            if not_done:
                # a running render cannot be interrupted; its result is dropped
                fut.cancel()
                raise RenderTimeout(f"render timed out after {self.render_timeout_s}s")
            data, ms = fut.result()
        if not isinstance(data, (bytes, bytearray)) or not data:
            raise RenderError("renderer returned no image bytes")
        with self._lock:
            self._counts["renders"] += 1
            self._render_ms.add(ms)
        log.info("rendered preview", extra={"extra": {"key": key, "ms": round(ms, 1), "bytes": len(data)}})
        return bytes(data)

    def _hit(self, data: bytes) -> ArtifactResult:
        return ArtifactResult(ArtifactOutcome.HIT, body=data, max_age=self.max_age_seconds)

    def _failed(self, key: str, mode: GenerationMode, e: Exception) -> ArtifactResult:
        self._bump("failures")
        timed_out = isinstance(e, RenderTimeout)
        message = str(e) or type(e).__name__
        if timed_out:
            log.error("preview %s failed: %s", mode.value, message, extra={"extra": {"key": key}})
        else:
            log.exception("preview %s failed: %s", mode.value, message, extra={"extra": {"key": key}})
        return ArtifactResult(
            ArtifactOutcome.FAILED, error=message, max_age=self.max_age_seconds, timed_out=timed_out
        )

    def _bump(self, name: str) -> None:
        with self._lock:
            self._counts[name] += 1

    def _prefetch_done(self, fut: Future) -> None:
        with self._lock:
            self._pending.discard(fut)
        if fut.cancelled():
            log.warning("prefetch cancelled before it ran")
            return
        exc = fut.exception()
        if exc is not None:
            log.error("prefetch raised", exc_info=exc)
            return
        result = fut.result()
        log.debug("prefetch finished", extra={"extra": {"outcome": result.outcome.value}})
