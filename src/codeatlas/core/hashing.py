"""Content fingerprints for change detection and cache keys."""

from __future__ import annotations

import hashlib

HASH_LENGTH = 16


def compute_content_hash(content: str | bytes) -> str:
    """Digest of file content, independent of timestamps or paths."""
    data = content.encode("utf-8", "surrogatepass") if isinstance(content, str) else content
    return hashlib.sha256(data).hexdigest()[:HASH_LENGTH]


def compute_composite_hash(*values: str) -> str:
    """Digest of several values fed in order (for composite cache keys)."""
    digest = hashlib.sha256()
    for value in values:
        digest.update(value.encode("utf-8"))
    return digest.hexdigest()[:HASH_LENGTH]
