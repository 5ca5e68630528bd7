#!/usr/bin/env python3
"""
Supabase REST API Database Adapter.

Stores raw feed rows and research briefs and reads the tenant roster
through the Supabase REST API over HTTPS.
"""

import logging
from typing import List, Dict, Any, Optional

from supabase import create_client, Client

from core.exceptions import DatabaseConnectionError, DatabaseOperationError
from core.models.feed import StoredFeedRow
from core.models.brief import ResearchBrief, TenantProfile

logger = logging.getLogger(__name__)

RAW_EVENTS_TABLE = 'raw_events'
BRIEFS_TABLE = 'research_briefs'
TENANTS_TABLE = 'tenant_profiles'


class SupabaseApiAdapter:
    """
    Database adapter using Supabase REST API.

    Implements the raw event, brief and tenant repository contracts.
    """

    def __init__(self, supabase_url: str, supabase_key: str, client: Optional[Client] = None):
        """
        Initialize Supabase API client.

        Args:
            supabase_url: Project URL
            supabase_key: Service key (preferred) or anon key
            client: Pre-built client, mainly for tests
        """
        self.client = client or self._create_client(supabase_url, supabase_key)
        logger.info("Supabase API adapter initialized")

    def _create_client(self, supabase_url: str, supabase_key: str) -> Client:
        """Create and configure Supabase client."""
        if not supabase_url or not supabase_key:
            raise DatabaseConnectionError('supabase_api', ValueError("SUPABASE_URL and a Supabase key are required"))
        try:
            return create_client(supabase_url, supabase_key)
        except Exception as e:
            raise DatabaseConnectionError('supabase_api', e) from e

    # Raw event operations

    def insert_rows(self, rows: List[StoredFeedRow]) -> List[StoredFeedRow]:
        """Insert a batch of raw feed rows in one request."""
        if not rows:
            return []

        payload = []
        for row in rows:
            data = row.to_dict()
            data.pop('id', None)
            data.pop('created_at', None)
            payload.append(data)

        try:
            result = (self.client.table(RAW_EVENTS_TABLE)
                      .insert(payload)
                      .execute())
        except Exception as e:
            logger.error(f"Failed to insert raw events via API: {e}")
            raise DatabaseOperationError('insert', RAW_EVENTS_TABLE, e) from e

        stored = [StoredFeedRow.from_dict(record) for record in (result.data or [])]
        logger.info(f"Stored {len(stored)} raw event rows via API")
        return stored

    def list_unprocessed(self, limit: Optional[int] = None) -> List[StoredFeedRow]:
        """Unprocessed rows, oldest first."""
        try:
            query = (self.client.table(RAW_EVENTS_TABLE)
                     .select('*')
                     .eq('is_processed', False)
                     .order('created_at', desc=False))
            if limit:
                query = query.limit(limit)
            result = query.execute()
        except Exception as e:
            logger.error(f"Failed to read unprocessed raw events via API: {e}")
            raise DatabaseOperationError('select', RAW_EVENTS_TABLE, e) from e

        return [StoredFeedRow.from_dict(record) for record in (result.data or [])]

    def mark_processed(self, row_id: str) -> None:
        """Flip the processed flag of one row."""
        try:
            (self.client.table(RAW_EVENTS_TABLE)
             .update({'is_processed': True})
             .eq('id', row_id)
             .execute())
        except Exception as e:
            logger.error(f"Failed to mark raw event {row_id} processed: {e}")
            raise DatabaseOperationError('update', RAW_EVENTS_TABLE, e) from e

    # Brief operations

    def insert_brief(self, brief: ResearchBrief) -> None:
        """Insert one research brief."""
        try:
            result = (self.client.table(BRIEFS_TABLE)
                      .insert(brief.to_dict())
                      .execute())
        except Exception as e:
            raise DatabaseOperationError('insert', BRIEFS_TABLE, e) from e

        if not result.data:
            raise DatabaseOperationError('insert', BRIEFS_TABLE, RuntimeError("No data returned from brief insert"))

    # Tenant operations

    def list_tenants(self) -> List[TenantProfile]:
        """Read the full tenant roster."""
        try:
            result = (self.client.table(TENANTS_TABLE)
                      .select('id, display_name, location')
                      .execute())
        except Exception as e:
            logger.error(f"Failed to read tenants via API: {e}")
            raise DatabaseOperationError('select', TENANTS_TABLE, e) from e

        return [TenantProfile.from_dict(record) for record in (result.data or [])]

    # Health

    def health_check(self) -> Dict[str, Any]:
        """Check API connectivity and count rows per table."""
        tables = {}
        try:
            for table in (RAW_EVENTS_TABLE, BRIEFS_TABLE, TENANTS_TABLE):
                result = (self.client.table(table)
                          .select('id', count='exact')
                          .limit(1)
                          .execute())
                tables[table] = result.count if result.count is not None else 0
        except Exception as e:
            logger.error(f"Supabase health check failed: {e}")
            return {'connected': False, 'backend': 'supabase', 'error': str(e)}

        return {'connected': True, 'backend': 'supabase', 'tables': tables}
