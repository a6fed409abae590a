"""
Unit tests for YAML config loading and JSON logging
"""

import pytest
import json
import logging
import os
import sys
from unittest.mock import patch

# Add project root to path
project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.append(project_root)

from common.config import DEFAULTS, load_config, merge_config
from common.logging_setup import SERVER_LOGGERS, JsonFormatter, setup_logging
from common.types import ArtifactOutcome


class TestLoadConfig:
    """Test cases for load_config"""

    def test_missing_file_gives_defaults(self, tmp_path):
        cfg = load_config(str(tmp_path / "nope.yaml"))
        assert cfg == DEFAULTS
        assert cfg is not DEFAULTS

    def test_file_is_merged_over_defaults(self, tmp_path):
        p = tmp_path / "params.yaml"
        p.write_text("cache:\n  backend: file\n  ttl_seconds: 60\nnegotiation:\n  png_path_alias: false\n")
        cfg = load_config(str(p))
        assert cfg["cache"]["backend"] == "file"
        assert cfg["cache"]["ttl_seconds"] == 60
        assert cfg["cache"]["max_age_seconds"] == 86400
        assert cfg["negotiation"]["png_path_alias"] is False
        assert cfg["renderer"]["width"] == 1200

    def test_env_var_selects_file(self, tmp_path):
        p = tmp_path / "alt.yaml"
        p.write_text("server:\n  port: 9001\n")
        with patch.dict(os.environ, {"CONTENT_CONFIG": str(p)}):
            assert load_config()["server"]["port"] == 9001

    def test_empty_file(self, tmp_path):
        p = tmp_path / "empty.yaml"
        p.write_text("")
        assert load_config(str(p)) == DEFAULTS

    def test_non_mapping_is_rejected(self, tmp_path):
        p = tmp_path / "list.yaml"
        p.write_text("- a\n- b\n")
        with pytest.raises(ValueError, match="mapping"):
            load_config(str(p))

    def test_merge_config_does_not_mutate_defaults(self):
        cfg = merge_config({"renderer": {"kind": "http"}})
        assert cfg["renderer"]["kind"] == "http"
        assert DEFAULTS["renderer"]["kind"] == "browser"


class TestJsonFormatter:
    """One JSON object per log line"""

    def test_payload(self):
        record = logging.LogRecord("preview.cache", logging.INFO, __file__, 1, "stored %s", ("og:/alice",), None)
        record.extra = {"bytes": 10}
        out = json.loads(JsonFormatter().format(record))
        assert out["lvl"] == "INFO"
        assert out["name"] == "preview.cache"
        assert out["msg"] == "stored og:/alice"
        assert out["extra"] == {"bytes": 10}
        assert out["ts"].endswith("Z")
        assert out["thread"] == record.threadName

    def test_non_json_extra_is_stringified(self):
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "m", (), None)
        record.extra = {"outcome": ArtifactOutcome.QUEUED}
        out = json.loads(JsonFormatter().format(record))
        assert out["extra"] == {"outcome": str(ArtifactOutcome.QUEUED)}

    def test_exception_info(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = logging.LogRecord("x", logging.ERROR, __file__, 1, "failed", (), sys.exc_info())
        out = json.loads(JsonFormatter().format(record))
        assert "RuntimeError: boom" in out["exc_info"]


class TestSetupLogging:
    """Root JSON handler, level selection, uvicorn rerouting"""

    @pytest.fixture(autouse=True)
    def restore_root(self):
        # pytest swaps its own capture handlers per phase; only the JSON ones are ours
        def ours(h):
            return isinstance(h.formatter, JsonFormatter)

        root = logging.getLogger()
        saved = [h for h in root.handlers if ours(h)], root.level, getattr(root, "_content_configured", False)
        yield
        root.handlers[:] = [h for h in root.handlers if not ours(h)] + saved[0]
        root.setLevel(saved[1])
        root._content_configured = saved[2]

    def test_level_and_json_handler(self):
        setup_logging("warning", force=True)
        root = logging.getLogger()
        assert root.level == logging.WARNING
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JsonFormatter)

    def test_unknown_level_falls_back_to_info(self):
        setup_logging("chatty", force=True)
        assert logging.getLogger().level == logging.INFO

    def test_env_level(self):
        with patch.dict(os.environ, {"LOG_LEVEL": "DEBUG"}):
            setup_logging(force=True)
        assert logging.getLogger().level == logging.DEBUG

    def test_uvicorn_loggers_propagate_to_root(self):
        access = logging.getLogger("uvicorn.access")
        access.addHandler(logging.NullHandler())
        access.propagate = False
        setup_logging(force=True)
        for name in SERVER_LOGGERS:
            assert logging.getLogger(name).handlers == []
            assert logging.getLogger(name).propagate is True
