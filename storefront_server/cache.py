"""Durable key/value cache with per-entry TTL."""

import json
import logging
import os
import tempfile
import time
from typing import Any, Callable, Optional

from pydantic import ValidationError as PydanticValidationError

from .models import CacheEntry

logger = logging.getLogger(__name__)


class CacheStore:
    """Key/value store persisted to a JSON file.

    The file is re-read on every lookup so that several worker processes
    sharing the same path see each other's writes. Writes are last-writer-wins.
    """

    def __init__(self, cache_file: str, clock: Callable[[], float] = time.time) -> None:
        """
        Initialize the cache store.

        Args:
            cache_file: Path of the JSON file backing the cache
            clock: Returns the current time in epoch seconds
        """
        self.cache_file = cache_file
        self.clock = clock

    def _load(self) -> dict[str, CacheEntry]:
        """Load all entries from disk, skipping anything malformed."""
        if not os.path.exists(self.cache_file):
            return {}
        try:
            with open(self.cache_file, "r") as f:
                raw = json.load(f)
        except (json.JSONDecodeError, ValueError):
            # If file is corrupted, start fresh
            logger.warning(f"Ignoring corrupted cache file {self.cache_file}")
            return {}

        if not isinstance(raw, dict):
            return {}

        entries = {}
        for key, data in raw.items():
            try:
                entries[key] = CacheEntry.model_validate(data)
            except PydanticValidationError:
                logger.debug(f"Dropping malformed cache entry {key!r}")
        return entries

    def _save(self, entries: dict[str, CacheEntry]) -> None:
        """Atomically replace the cache file."""
        directory = os.path.dirname(os.path.abspath(self.cache_file))
        fd, tmp_path = tempfile.mkstemp(dir=directory, suffix=".tmp")
        try:
            with os.fdopen(fd, "w") as f:
                json.dump({key: entry.model_dump() for key, entry in entries.items()}, f)
            os.replace(tmp_path, self.cache_file)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    def get(self, key: str) -> Optional[Any]:
        """Return the cached value, or None when absent or expired."""
        entry = self._load().get(key)
        if entry is None:
            return None
        if entry.is_expired(self.clock()):
            logger.debug(f"Cache entry {key!r} expired")
            return None
        return entry.value

    def put(self, key: str, value: Any, ttl_seconds: int) -> None:
        """Store a JSON-serializable value that expires after ``ttl_seconds``."""
        now = self.clock()
        entries = {k: e for k, e in self._load().items() if not e.is_expired(now)}
        entries[key] = CacheEntry(value=value, expires_at=now + ttl_seconds)
        self._save(entries)

    def clear(self) -> None:
        """Remove the cache file."""
        if os.path.exists(self.cache_file):
            os.remove(self.cache_file)
