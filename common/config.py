from __future__ import annotations

import copy
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml


DEFAULT_CONFIG_PATH = "config/params.yaml"

DEFAULTS: Dict[str, Any] = {
    "server": {"host": "0.0.0.0", "port": 8000},
    "negotiation": {"png_path_alias": True},
    "cache": {
        "backend": "memory",          # memory | file
        "root": "data/previews",      # file backend only
        "ttl_seconds": 86400,
        "max_age_seconds": 86400,     # Cache-Control on served PNGs
        "key_prefix": "og:",
    },
    "prefetch": {"workers": 2},
    "renderer": {
        "kind": "browser",            # browser | http
        "width": 1200,
        "height": 630,
        "format": "png",
        "url": "",                    # http renderer endpoint
        "timeout_s": 10.0,            # browser page load / http request timeout
        "render_timeout_s": None,     # None = wait for the renderer indefinitely
    },
    "logging": {"level": None},
}


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    out = copy.deepcopy(base)
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = v
    return out


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load YAML params merged over DEFAULTS.

    Path precedence: explicit arg, env CONTENT_CONFIG, config/params.yaml.
    A missing file yields the defaults.
    """
    path = path or os.environ.get("CONTENT_CONFIG") or DEFAULT_CONFIG_PATH
    p = Path(path)
    if not p.exists():
        return copy.deepcopy(DEFAULTS)
    with p.open("r", encoding="utf-8") as f:
        loaded = yaml.safe_load(f) or {}
    if not isinstance(loaded, dict):
        raise ValueError(f"{path}: top-level YAML must be a mapping")
    return _deep_merge(DEFAULTS, loaded)


def merge_config(override: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """DEFAULTS with an in-memory override applied (tests, embedding)."""
    return _deep_merge(DEFAULTS, override or {})
