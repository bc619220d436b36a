"""
Persistent cache for the last resolved Location.

Stores a small JSON document on the local filesystem, keyed by a fixed
namespace, the same way a browser client would use localStorage.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import time
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import ValidationError

from fetchnews.models import Location

logger = logging.getLogger(__name__)


class LocationCache:
    """JSON-file cache holding one serialized Location under ``key``."""

    def __init__(self, path: Path, key: str = "fetchnews.location.v1"):
        """
        Initialize location cache.

        Args:
            path: JSON file to read and write; parent directories are created on save
            key: Namespace key of the cache entry
        """
        self.path = Path(path)
        self.key = key

    def _read_all(self) -> Dict[str, Any]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as e:
            logger.warning(f"Could not read location cache {self.path}: {e}")
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Corrupt location cache", extra={"path": str(self.path)})
            return {}
        return data if isinstance(data, dict) else {}

    def _write_all(self, data: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=".location-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh, indent=2)
            os.replace(tmp, self.path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

    def load(self) -> Optional[Location]:
        """Return the cached Location, or None when absent or unreadable."""
        entry = self._read_all().get(self.key)
        if not isinstance(entry, dict):
            return None
        try:
            return Location.model_validate(entry)
        except ValidationError:
            logger.warning("Ignoring invalid cached location", extra={"cache_key": self.key})
            return None

    def save(self, location: Location) -> None:
        """Persist ``location`` with a ``cachedAt`` timestamp (epoch ms)."""
        data = self._read_all()
        entry = location.model_dump(mode="json", by_alias=True)
        entry["cachedAt"] = int(time.time() * 1000)
        data[self.key] = entry
        self._write_all(data)
        logger.debug("Location cached", extra={"path": str(self.path)})

    def clear(self) -> None:
        """Remove the cache entry; other keys in the file are left alone."""
        data = self._read_all()
        if self.key not in data:
            return
        del data[self.key]
        if data:
            self._write_all(data)
        else:
            self.path.unlink(missing_ok=True)
