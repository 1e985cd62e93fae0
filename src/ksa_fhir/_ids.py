"""Deterministic identifiers derived from content."""

from __future__ import annotations

import hashlib
import json
from typing import Any


def stable_id(prefix: str, *parts: Any, length: int = 12) -> str:
    """Build ``<prefix>-<hex digest>`` from JSON-serializable *parts*.

    Identical inputs always give the identical id, so outputs stay
    reproducible without reading the clock.
    """
    content = json.dumps(parts, sort_keys=True, ensure_ascii=False, default=str)
    digest = hashlib.sha256(content.encode("utf-8")).hexdigest()
    return f"{prefix}-{digest[:length]}"
