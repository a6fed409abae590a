"""
Unit tests for preview cache stores
"""

import pytest
import json
import os
import sys

# Add project root to path
project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.append(project_root)

from preview.errors import GenerationFailure, StoreUnavailable
from preview.store import FileStore, MemoryStore, build_store


class FakeClock:
    def __init__(self, t=1000.0):
        self.t = t

    def __call__(self):
        return self.t


class TestMemoryStore:
    """Test cases for MemoryStore"""

    def test_get_missing(self):
        """Unknown key -> None"""
        assert MemoryStore().get("og:/nobody") is None

    def test_put_then_get(self):
        """Bytes come back unchanged before expiry"""
        store = MemoryStore()
        store.put("og:/alice", b"\x89PNG-data", 60)
        assert store.get("og:/alice") == b"\x89PNG-data"

    def test_entry_expires(self):
        """Entry is gone once the TTL has elapsed"""
        clock = FakeClock()
        store = MemoryStore(clock=clock)
        store.put("og:/alice", b"png", 60)
        clock.t += 59
        assert store.get("og:/alice") == b"png"
        clock.t += 1
        assert store.get("og:/alice") is None
        assert store.stats()["entries"] == 0

    def test_last_write_wins(self):
        """A second put replaces the first"""
        store = MemoryStore()
        store.put("og:/alice", b"first", 60)
        store.put("og:/alice", b"second", 60)
        assert store.get("og:/alice") == b"second"

    def test_stats(self):
        """Entry and byte counts"""
        store = MemoryStore()
        store.put("a", b"123", 60)
        store.put("b", b"45", 60)
        assert store.stats() == {"entries": 2, "bytes": 5}

    def test_expired_entries_are_swept_without_reads(self):
        """Keys that are never read again do not pile up"""
        clock = FakeClock()
        store = MemoryStore(clock=clock)
        for i in range(1000):
            store.put(f"og:/user{i}", b"x" * 1000, 10)
        assert store.stats()["entries"] == 1000

        clock.t += 10_000
        store.put("og:/fresh", b"png", 10)
        assert store.stats() == {"entries": 1, "bytes": 3}

    def test_stats_counts_only_live_entries(self):
        clock = FakeClock()
        store = MemoryStore(clock=clock)
        store.put("short", b"12", 5)
        store.put("long", b"345", 60)
        clock.t += 5
        assert store.stats() == {"entries": 1, "bytes": 3}


class TestFileStore:
    """Test cases for FileStore"""

    def test_put_then_get(self, tmp_path):
        """Bytes survive a round trip through the directory"""
        store = FileStore(str(tmp_path / "previews"))
        store.put("og:/alice", b"\x89PNG-data", 60)
        assert store.get("og:/alice") == b"\x89PNG-data"
        assert store.stats() == {"entries": 1, "bytes": len(b"\x89PNG-data")}

    def test_sidecar_layout(self, tmp_path):
        """A .png and a .json sidecar are written per key"""
        store = FileStore(str(tmp_path))
        store.put("og:/alice", b"png", 60)
        png, meta = store._paths("og:/alice")
        assert png.exists() and meta.exists()
        sidecar = json.loads(meta.read_text())
        assert sidecar["key"] == "og:/alice"
        assert sidecar["size"] == 3

    def test_visible_to_a_second_instance(self, tmp_path):
        """Entries persist across store instances (process restarts)"""
        FileStore(str(tmp_path)).put("og:/alice", b"png", 60)
        assert FileStore(str(tmp_path)).get("og:/alice") == b"png"

    def test_entry_expires_and_is_removed(self, tmp_path):
        """Expired pair is not served and is deleted"""
        clock = FakeClock()
        store = FileStore(str(tmp_path), clock=clock)
        store.put("og:/alice", b"png", 60)
        clock.t += 61
        assert store.get("og:/alice") is None
        png, meta = store._paths("og:/alice")
        assert not png.exists() and not meta.exists()

    def test_missing_root_reads_as_empty(self, tmp_path):
        """No directory yet -> misses and zero stats"""
        store = FileStore(str(tmp_path / "absent"))
        assert store.get("og:/alice") is None
        assert store.stats() == {"entries": 0, "bytes": 0}

    def test_corrupt_sidecar_raises_store_unavailable(self, tmp_path):
        """Unreadable metadata is a store failure, not a miss"""
        store = FileStore(str(tmp_path))
        store.put("og:/alice", b"png", 60)
        _, meta = store._paths("og:/alice")
        meta.write_text("not json")
        with pytest.raises(StoreUnavailable):
            store.get("og:/alice")

    def test_unwritable_root_raises_store_unavailable(self, tmp_path):
        """A file where the directory should be makes writes fail"""
        blocker = tmp_path / "blocker"
        blocker.write_text("x")
        store = FileStore(str(blocker))
        with pytest.raises(StoreUnavailable) as ei:
            store.put("og:/alice", b"png", 60)
        assert isinstance(ei.value, GenerationFailure)


class TestBuildStore:
    """Store selection from config"""

    def test_memory(self):
        assert isinstance(build_store({"backend": "memory"}), MemoryStore)

    def test_file(self, tmp_path):
        store = build_store({"backend": "file", "root": str(tmp_path)})
        assert isinstance(store, FileStore)
        assert store.root == tmp_path

    def test_unknown_backend(self):
        with pytest.raises(ValueError, match="unknown cache backend"):
            build_store({"backend": "redis"})
