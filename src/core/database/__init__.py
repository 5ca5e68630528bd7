#!/usr/bin/env python3
"""
Database package for the event engine.

Provides repository contracts and the storage backends behind them.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict

from ..exceptions import DatabaseError, DatabaseConnectionError, DatabaseOperationError
from .repositories import RawEventRepository, BriefRepository, TenantRepository
from .memory import (
    InMemoryRawEventRepository, InMemoryBriefRepository, InMemoryTenantRepository, InMemoryStorage,
)

logger = logging.getLogger(__name__)


@dataclass
class Storage:
    """The repositories a scan or ingestion needs, plus a health probe."""
    raw_events: RawEventRepository
    briefs: BriefRepository
    tenants: TenantRepository
    backend: Any

    def health_check(self) -> Dict[str, Any]:
        return self.backend.health_check()


def create_storage(config) -> Storage:
    """
    Build the configured storage backend.

    Args:
        config: Application ``Config``

    Returns:
        Storage bundle
    """
    backend_name = config.database.backend
    if backend_name == 'memory':
        backend = InMemoryStorage()
        logger.info("Using in-memory storage backend")
        return Storage(backend.raw_events, backend.briefs, backend.tenants, backend)

    from ..supabase_adapter import SupabaseApiAdapter
    adapter = SupabaseApiAdapter(config.database.supabase_url, config.database.supabase_key)
    return Storage(adapter, adapter, adapter, adapter)


__all__ = [
    'DatabaseError', 'DatabaseConnectionError', 'DatabaseOperationError',
    'RawEventRepository', 'BriefRepository', 'TenantRepository',
    'InMemoryRawEventRepository', 'InMemoryBriefRepository', 'InMemoryTenantRepository',
    'InMemoryStorage', 'Storage', 'create_storage',
]
