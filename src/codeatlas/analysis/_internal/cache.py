"""Content-addressed incremental cache.

Entries are keyed by content hash (or a composite of content hash and
symbol id) and never expire: an entry stays valid for as long as the
content it was derived from is unchanged. Populating the cache is the
caller's job; a typical caller checks ``key in cache`` before deriving.

Durable form::

    {"version": 1, "entries": [{"key": ..., "value": ..., "generatedAt": ...}]}

A blob with a different version, or one that fails to parse, loads as an
empty cache. Corruption is logged and never raised.
"""

from __future__ import annotations

import json
import os
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ValidationError

from codeatlas.analysis.models import CacheEntry
from codeatlas.core.errors import CacheError
from codeatlas.core.hashing import compute_composite_hash
from codeatlas.core.logging import get_logger

log = get_logger(__name__)

CACHE_VERSION = 1


class _DurableCache(BaseModel):
    version: int
    entries: list[CacheEntry]


def composite_key(content_hash: str, symbol_id: str) -> str:
    """Key for a value derived from one symbol of one file version."""
    return compute_composite_hash(content_hash, symbol_id)


class IncrementalCache:
    """Thread-safe key/value store with a versioned JSON durable form."""

    def __init__(self, entries: list[CacheEntry] | None = None) -> None:
        self._lock = threading.Lock()
        self._entries: dict[str, CacheEntry] = {}
        for entry in entries or []:
            self._entries[entry.key] = entry

    def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._entries.get(key)
        return entry.value if entry is not None else None

    def set(self, key: str, value: Any, *, generated_at: str | None = None) -> None:
        entry = CacheEntry(
            key=key,
            value=value,
            generated_at=generated_at or datetime.now(timezone.utc).isoformat(),
        )
        with self._lock:
            self._entries[key] = entry

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def entries(self) -> list[CacheEntry]:
        with self._lock:
            return list(self._entries.values())

    # -------------------------------------------------------------------------
    # Durable form
    # -------------------------------------------------------------------------

    def to_durable_form(self) -> dict[str, Any]:
        return {
            "version": CACHE_VERSION,
            "entries": [e.model_dump(mode="json", by_alias=True) for e in self.entries()],
        }

    @classmethod
    def from_durable_form(cls, data: Any, *, source: str = "<memory>") -> IncrementalCache:
        """Rebuild a cache; incompatible or malformed data gives an empty cache."""
        try:
            if not isinstance(data, dict):
                raise CacheError.corrupt(source, f"expected an object, got {type(data).__name__}")
            version = data.get("version")
            if version != CACHE_VERSION:
                raise CacheError.version_mismatch(version, CACHE_VERSION)
            durable = _DurableCache.model_validate(data)
        except CacheError as e:
            log.warning("cache_discarded", source=source, error=e.error_name, reason=e.message)
            return cls()
        except ValidationError as e:
            error = CacheError.corrupt(source, str(e))
            log.warning("cache_discarded", source=source, error=error.error_name, reason=error.message)
            return cls()
        return cls(durable.entries)

    @classmethod
    def load(cls, path: Path) -> IncrementalCache:
        """Read a durable cache file. Missing or unreadable files give an empty cache."""
        if not path.exists():
            return cls()
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            error = CacheError.corrupt(str(path), str(e))
            log.warning("cache_discarded", source=str(path), error=error.error_name, reason=error.message)
            return cls()
        cache = cls.from_durable_form(data, source=str(path))
        log.debug("cache_loaded", path=str(path), entries=len(cache))
        return cache

    def save(self, path: Path) -> None:
        """Write the durable form, replacing the file atomically."""
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(path.suffix + ".tmp")
        tmp.write_text(json.dumps(self.to_durable_form(), indent=2), encoding="utf-8")
        os.replace(tmp, path)
        log.debug("cache_saved", path=str(path), entries=len(self))
