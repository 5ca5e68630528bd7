#!/usr/bin/env python3
"""
Persistence contracts for feeds, briefs and tenants.
"""

from typing import List, Optional, Protocol

from ..models.feed import StoredFeedRow
from ..models.brief import ResearchBrief, TenantProfile


class RawEventRepository(Protocol):
    """Stored feed blobs awaiting extraction."""

    def insert_rows(self, rows: List[StoredFeedRow]) -> List[StoredFeedRow]:
        """Insert rows in one call; returns them with ids assigned."""
        ...

    def list_unprocessed(self, limit: Optional[int] = None) -> List[StoredFeedRow]:
        """Unprocessed rows, oldest first."""
        ...

    def mark_processed(self, row_id: str) -> None:
        ...


class BriefRepository(Protocol):
    """Research brief sink."""

    def insert_brief(self, brief: ResearchBrief) -> None:
        ...


class TenantRepository(Protocol):
    """Read-only tenant roster."""

    def list_tenants(self) -> List[TenantProfile]:
        ...
