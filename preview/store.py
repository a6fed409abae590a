from __future__ import annotations

import hashlib
import json
import logging
import threading
import time
from pathlib import Path
from typing import Callable, Dict, Optional, Protocol, Tuple

from preview.errors import StoreUnavailable


log = logging.getLogger(__name__)


class CacheStore(Protocol):
    def get(self, key: str) -> Optional[bytes]: ...
    def put(self, key: str, data: bytes, ttl_seconds: int) -> None: ...
    def stats(self) -> Dict[str, int]: ...


class MemoryStore:
    """
    Process-local store: key -> (expires_at, bytes).
    Expired entries are dropped when read, and swept on every put/stats.
    """
    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._items: Dict[str, Tuple[float, bytes]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[bytes]:
        with self._lock:
            item = self._items.get(key)
            if item is None:
                return None
            expires_at, data = item
            if self._clock() >= expires_at:
                del self._items[key]
                return None
            return data

    def put(self, key: str, data: bytes, ttl_seconds: int) -> None:
        with self._lock:
            now = self._clock()
            self._sweep(now)
            self._items[key] = (now + int(ttl_seconds), bytes(data))

    def stats(self) -> Dict[str, int]:
        with self._lock:
            self._sweep(self._clock())
            return {
                "entries": len(self._items),
                "bytes": sum(len(v) for _, v in self._items.values()),
            }

    def _sweep(self, now: float) -> None:
        # caller holds the lock
        expired = [k for k, (expires_at, _) in self._items.items() if now >= expires_at]
        for k in expired:
            del self._items[k]


class FileStore:
    """
    Directory-backed store. Each entry is a pair:

        root/
          ├─ {sha256(key)[:32]}.png   (artifact bytes)
          └─ {sha256(key)[:32]}.json  ({"key", "expires_at", "size"})

    `expires_at` is wall-clock epoch seconds so entries survive restarts.
    """
    def __init__(self, root: str = "data/previews", clock: Callable[[], float] = time.time):
        self.root = Path(root)
        self._clock = clock

    # -------- public API --------

    def get(self, key: str) -> Optional[bytes]:
        png, meta_path = self._paths(key)
        try:
            if not meta_path.exists():
                return None
            meta = json.loads(meta_path.read_text())
            if meta.get("key") != key:
                # hash prefix collision; treat as absent
                return None
            if self._clock() >= float(meta["expires_at"]):
                self._remove(png, meta_path)
                return None
            return png.read_bytes()
        except FileNotFoundError:
            # pair removed between the two reads
            return None
        except (OSError, ValueError, KeyError) as e:
            raise StoreUnavailable(f"read {key!r} failed: {e}") from e

    def put(self, key: str, data: bytes, ttl_seconds: int) -> None:
        png, meta_path = self._paths(key)
        meta = {"key": key, "expires_at": self._clock() + int(ttl_seconds), "size": len(data)}
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            # bytes first, sidecar last: a reader never sees metadata without an image
            tmp = png.parent / (png.name + ".tmp")
            tmp.write_bytes(data)
            tmp.replace(png)
            meta_path.write_text(json.dumps(meta))
        except OSError as e:
            raise StoreUnavailable(f"write {key!r} failed: {e}") from e

    def stats(self) -> Dict[str, int]:
        if not self.root.exists():
            return {"entries": 0, "bytes": 0}
        pngs = list(self.root.glob("*.png"))
        return {
            "entries": len(pngs),
            "bytes": sum(p.stat().st_size for p in pngs if p.exists()),
        }

    # -------- internals --------

    def _paths(self, key: str) -> Tuple[Path, Path]:
        stem = hashlib.sha256(key.encode("utf-8")).hexdigest()[:32]
        return self.root / f"{stem}.png", self.root / f"{stem}.json"

    @staticmethod
    def _remove(*paths: Path) -> None:
        for p in paths:
            try:
                p.unlink()
            except FileNotFoundError:
                pass


def build_store(cfg: Dict) -> CacheStore:
    """Store from the `cache` config section."""
    backend = str(cfg.get("backend", "memory")).lower()
    if backend == "memory":
        return MemoryStore()
    if backend == "file":
        root = cfg.get("root", "data/previews")
        log.info("using file cache store", extra={"extra": {"root": root}})
        return FileStore(root)
    raise ValueError(f"unknown cache backend: {backend!r}")
