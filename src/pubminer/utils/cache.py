"""
On-disk cache of normalized abstract sections, one JSON file per record.

Only fetch_detail results land here; search-chain session tokens are never
written. A cache problem never fails a fetch: unreadable or mistyped entries
are discarded and write errors are logged.
"""

import hashlib
import logging
from datetime import datetime
from pathlib import Path

from pydantic import BaseModel, ValidationError

from pubminer.constants import CACHE_TTL, DETAIL_DB
from pubminer.models.model_eutils import AbstractSections

logger = logging.getLogger(__name__)


class AbstractCacheEntry(BaseModel):
    db: str
    record_id: str
    sections: AbstractSections
    cached_at: datetime
    ttl: int = CACHE_TTL

    def expired(self) -> bool:
        return (datetime.now() - self.cached_at).total_seconds() > self.ttl


class AbstractCache:
    """Abstract sections keyed by (database, record id)."""

    def __init__(self, cache_dir: Path, ttl: int = CACHE_TTL, db: str = DETAIL_DB):
        self.cache_dir = cache_dir
        self.ttl = ttl
        self.db = db

    def path_for(self, record_id: str) -> Path:
        digest = hashlib.sha256(f"{self.db}:{record_id}".encode()).hexdigest()
        return self.cache_dir / f"{digest}.json"

    def _discard(self, path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Could not remove cache entry %s: %s", path.name, e)

    def get(self, record_id: str) -> AbstractSections | None:
        """Return the cached sections for ``record_id``, or None on a miss."""
        path = self.path_for(record_id)
        try:
            raw = path.read_text()
        except FileNotFoundError:
            return None
        except UnicodeDecodeError:
            self._discard(path)
            return None
        except OSError as e:
            logger.warning("Unreadable cache entry for %s: %s", record_id, e)
            return None

        try:
            entry = AbstractCacheEntry.model_validate_json(raw)
        except ValidationError:
            logger.debug("Discarding malformed cache entry for %s", record_id)
            self._discard(path)
            return None

        if entry.record_id != record_id or entry.db != self.db:
            return None
        if entry.expired():
            logger.debug("Cache expired for %s", record_id)
            self._discard(path)
            return None
        if not entry.sections:
            return None

        logger.debug("Cache hit for %s", record_id)
        return entry.sections

    def put(self, record_id: str, sections: AbstractSections) -> bool:
        """Store ``sections``; returns False when the write failed."""
        entry = AbstractCacheEntry(
            db=self.db,
            record_id=record_id,
            sections=sections,
            cached_at=datetime.now(),
            ttl=self.ttl,
        )
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            self.path_for(record_id).write_text(entry.model_dump_json())
        except OSError as e:
            logger.warning("Could not cache abstract for %s: %s", record_id, e)
            return False
        return True
