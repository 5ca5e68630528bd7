#!/usr/bin/env python3
"""
Brief fan-out.

Turns every (event, tenant) pair into one research brief and writes it
through a bounded worker pool. A failed write is logged and skipped; the
remaining pairs still run.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor, Future
from datetime import datetime, timezone
from threading import BoundedSemaphore, Lock
from typing import Callable, List, Optional, Tuple

from ..models.brief import ResearchBrief, TenantProfile, FanoutResult, brief_fingerprint
from ..models.event import DateWindow, EnrichedEvent

logger = logging.getLogger(__name__)

BRIEF_STATUS_LINE = "Status: Non-competitor event - safe for marketing"
EMPTY_ROSTER_MESSAGE = "Events found but no tenants to generate briefs for"


def build_brief(event: EnrichedEvent, tenant: TenantProfile, window: DateWindow,
                data_source: str, discovered_at: Optional[datetime] = None) -> ResearchBrief:
    """
    Build the brief for one event and one tenant.

    Args:
        event: Enriched event
        tenant: Receiving tenant
        window: Scan window, echoed in the key points
        data_source: Provenance tag of the scan
        discovered_at: Discovery timestamp (defaults to now, UTC)

    Returns:
        Unsaved research brief
    """
    discovered_at = discovered_at or datetime.now(timezone.utc)
    event_date = event.event_date.isoformat()

    key_points = [
        f"Event: {event.event_name}",
        f"Date: {event_date}",
        f"Location: {event.event_location}",
        f"Summary: {event.event_summary}",
        f"Event URL: {event.event_url}",
        f"Relevance Score: {event.relevance_score}/10",
        f"Source: {event.source_url}",
        f"Source Name: {event.source_name}",
        f"Discovered: {discovered_at.strftime('%Y-%m-%d %H:%M')}",
        f"Data Source: {data_source}",
        BRIEF_STATUS_LINE,
        f"Date Range: {window}",
    ]

    context_summary = (
        "REAL NON-COMPETITOR EVENT discovered by Event Engine with AI Gatekeeper filtering. "
        f"{event.event_summary} This is a verified non-competitive opportunity happening {event_date} "
        f"for {tenant.display_name} to engage with the local community and create relevant "
        f"marketing content. Event details and registration: {event.event_url}"
    )

    return ResearchBrief(
        tenant_id=tenant.id,
        theme=f"Event Opportunity: {event.event_name}",
        key_points=key_points,
        event_name=event.event_name,
        event_date=event.event_date,
        event_location=event.event_location,
        context_summary=context_summary,
        fingerprint=brief_fingerprint(event.event_name, event.source_url, tenant.id),
    )


class BriefFanout:
    """Writes one brief per (event, tenant) pair through a bounded pool."""

    def __init__(self, brief_repository, max_workers: int = 1, queue_size: int = 100,
                 write_delay_seconds: float = 0.05,
                 sleep: Callable[[float], None] = time.sleep):
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        if queue_size < 1:
            raise ValueError("queue_size must be at least 1")

        self.briefs = brief_repository
        self.max_workers = max_workers
        self.queue_size = queue_size
        self.write_delay_seconds = write_delay_seconds
        self._sleep = sleep

    def _write(self, brief: ResearchBrief) -> ResearchBrief:
        self.briefs.insert_brief(brief)
        if self.write_delay_seconds > 0:
            self._sleep(self.write_delay_seconds)
        return brief

    def run(self, events: List[EnrichedEvent], tenants: List[TenantProfile],
            window: DateWindow, data_source: str,
            discovered_at: Optional[datetime] = None) -> FanoutResult:
        """
        Create briefs for all event/tenant pairs.

        Args:
            events: Enriched events to announce
            tenants: Tenant roster
            window: Scan window
            data_source: Provenance tag of the scan
            discovered_at: Discovery timestamp shared by every brief

        Returns:
            FanoutResult with attempted, created and failed counts
        """
        result = FanoutResult(tenants=len(tenants))

        if not tenants:
            result.message = EMPTY_ROSTER_MESSAGE
            logger.info("No tenants found to generate briefs for")
            return result
        if not events:
            return result

        discovered_at = discovered_at or datetime.now(timezone.utc)
        logger.info(f"Creating research briefs for {len(tenants)} tenants across {len(events)} events")

        slots = BoundedSemaphore(self.queue_size)
        counter_lock = Lock()

        def on_done(future: Future, pair: Tuple[EnrichedEvent, TenantProfile]) -> None:
            event, tenant = pair
            try:
                future.result()
            except Exception as e:
                logger.error(f"Failed to create brief for {tenant.display_name} - {event.event_name}: {e}")
                with counter_lock:
                    result.failed += 1
                    result.errors.append(f"{tenant.id}: {e}")
            else:
                logger.debug(f"Created research brief for {tenant.display_name} - {event.event_name}")
                with counter_lock:
                    result.created += 1
            finally:
                slots.release()

        with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="brief-writer") as executor:
            for event in events:
                for tenant in tenants:
                    brief = build_brief(event, tenant, window, data_source, discovered_at)
                    # Blocks while queue_size writes are in flight
                    slots.acquire()
                    result.attempted += 1
                    future = executor.submit(self._write, brief)
                    future.add_done_callback(lambda f, pair=(event, tenant): on_done(f, pair))

        logger.info(f"Brief fan-out complete: {result.created}/{result.attempted} created, {result.failed} failed")
        return result
