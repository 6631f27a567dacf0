"""
Fingerprints for transform-node parameters and inline data specs.

Two pipelines share a derived dataset when their chains fingerprint equally, so a
fingerprint must not depend on dict insertion order or on tuple-versus-list spelling.

Examples
--------
>>> from chartc.core.hashing import hash_value
>>> hash_value({"b": 1, "a": [1, 2]}) == hash_value({"a": (1, 2), "b": 1})
True
"""

from __future__ import annotations

import hashlib
import json
from typing import Any

__all__ = ["hash_value"]


def hash_value(obj: Any) -> str:
    """SHA-256 hex digest of ``obj`` dumped as sorted, compact JSON."""
    text = json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return hashlib.sha256(text.encode("utf-8")).hexdigest()
