#!/usr/bin/env python3
"""
In-memory storage backend.

Thread-safe implementations of the repository contracts, used for local
runs (``STORAGE_BACKEND=memory``) and tests.
"""

import itertools
import logging
from datetime import datetime, timezone
from threading import Lock
from typing import List, Optional, Dict, Any

from ..exceptions import DatabaseOperationError
from ..models.feed import StoredFeedRow
from ..models.brief import ResearchBrief, TenantProfile

logger = logging.getLogger(__name__)


class InMemoryRawEventRepository:
    """Raw feed rows kept in a dict keyed by id."""

    def __init__(self):
        self._rows: Dict[str, StoredFeedRow] = {}
        self._ids = itertools.count(1)
        self._lock = Lock()

    def insert_rows(self, rows: List[StoredFeedRow]) -> List[StoredFeedRow]:
        stored = []
        with self._lock:
            for row in rows:
                row.id = str(next(self._ids))
                row.created_at = datetime.now(timezone.utc)
                self._rows[row.id] = row
                stored.append(row)
        logger.debug(f"Stored {len(stored)} raw event rows in memory")
        return stored

    def list_unprocessed(self, limit: Optional[int] = None) -> List[StoredFeedRow]:
        with self._lock:
            pending = [row for row in self._rows.values() if not row.processed]
        pending.sort(key=lambda row: (row.created_at, int(row.id)))
        return pending[:limit] if limit else pending

    def mark_processed(self, row_id: str) -> None:
        with self._lock:
            row = self._rows.get(row_id)
            if row is None:
                raise DatabaseOperationError('update', 'raw_events', KeyError(row_id))
            row.processed = True

    def get(self, row_id: str) -> Optional[StoredFeedRow]:
        return self._rows.get(row_id)

    def all_rows(self) -> List[StoredFeedRow]:
        with self._lock:
            return list(self._rows.values())


class InMemoryBriefRepository:
    """Append-only list of briefs."""

    def __init__(self):
        self.briefs: List[ResearchBrief] = []
        self._lock = Lock()

    def insert_brief(self, brief: ResearchBrief) -> None:
        with self._lock:
            self.briefs.append(brief)


class InMemoryTenantRepository:
    """Fixed tenant roster."""

    def __init__(self, tenants: Optional[List[TenantProfile]] = None):
        self.tenants = list(tenants or [])

    def list_tenants(self) -> List[TenantProfile]:
        return list(self.tenants)


class InMemoryStorage:
    """All three in-memory repositories behind one object."""

    def __init__(self, tenants: Optional[List[TenantProfile]] = None):
        self.raw_events = InMemoryRawEventRepository()
        self.briefs = InMemoryBriefRepository()
        self.tenants = InMemoryTenantRepository(tenants)

    def health_check(self) -> Dict[str, Any]:
        return {
            'connected': True,
            'backend': 'memory',
            'tables': {
                'raw_events': len(self.raw_events.all_rows()),
                'research_briefs': len(self.briefs.briefs),
                'tenant_profiles': len(self.tenants.tenants),
            }
        }
