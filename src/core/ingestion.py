#!/usr/bin/env python3
"""
Ingestion of scraped events pushed by the upstream scraper.

Each accepted event becomes one raw_events row whose content is a single
escaped ``<item>`` fragment, so stored-row scans read it back with the
same markup extractor used for inline feeds.
"""

import logging
import time
from html import escape
from typing import Any, Callable, Dict, List, Optional

from .exceptions import DatabaseError, RequestValidationError
from .models.feed import StoredFeedRow
from .models.run import IngestResult
from .sources.registry import resolve_source_label

logger = logging.getLogger(__name__)

PLACEHOLDER_SOURCE_URL = "https://google-apps-script-source"


def render_item_fragment(title: str, description: str, link: str, pub_date: str) -> str:
    """Serialize one event as an RSS ``<item>`` fragment with escaped text."""
    parts = [
        f"<title>{escape(title, quote=False)}</title>",
        f"<description>{escape(description, quote=False)}</description>",
    ]
    if link:
        parts.append(f"<link>{escape(link, quote=False)}</link>")
    if pub_date:
        parts.append(f"<pubDate>{escape(pub_date, quote=False)}</pubDate>")
    return "<item>" + "".join(parts) + "</item>"


class IngestionService:
    """Validates pushed events and stores them in batches."""

    def __init__(self, raw_events, batch_size: int = 50, batch_delay_seconds: float = 0.1,
                 min_title_length: int = 5, max_title_length: int = 500,
                 sleep: Callable[[float], None] = time.sleep):
        """
        Initialize ingestion service.

        Args:
            raw_events: Raw event repository
            batch_size: Rows per insert call
            batch_delay_seconds: Pause between consecutive batches
            min_title_length: Shortest accepted title
            max_title_length: Longest accepted title
            sleep: Sleep function, replaceable in tests
        """
        self.raw_events = raw_events
        self.batch_size = batch_size
        self.batch_delay_seconds = batch_delay_seconds
        self.min_title_length = min_title_length
        self.max_title_length = max_title_length
        self._sleep = sleep

    def _to_row(self, event: Any) -> Optional[StoredFeedRow]:
        if not isinstance(event, dict):
            return None

        title = event.get('title')
        description = event.get('description')
        if not isinstance(title, str) or not isinstance(description, str):
            return None

        title = title.strip()
        description = description.strip()
        if not title or not description:
            return None
        if not self.min_title_length <= len(title) <= self.max_title_length:
            return None

        link = event.get('link') if isinstance(event.get('link'), str) else ''
        link = link.strip()
        pub_date = event.get('pubDate') if isinstance(event.get('pubDate'), str) else ''

        return StoredFeedRow(
            source_url=link or PLACEHOLDER_SOURCE_URL,
            source_name=resolve_source_label(link),
            raw_content=render_item_fragment(title, description, link, pub_date.strip())
        )

    def ingest(self, events: Any) -> IngestResult:
        """
        Validate and store a pushed event list.

        Args:
            events: The ``events`` value of the request body

        Returns:
            Ingestion summary

        Raises:
            RequestValidationError: If ``events`` is missing or not a list
        """
        if events is None or not isinstance(events, list):
            raise RequestValidationError("Missing required field: events (must be an array)")

        result = IngestResult(events_received=len(events))
        if not events:
            logger.info("Ingestion request contained no events")
            return result

        rows: List[StoredFeedRow] = []
        for event in events:
            row = self._to_row(event)
            if row is None:
                result.events_skipped += 1
                continue
            rows.append(row)

        logger.info(f"Ingesting {len(rows)} events ({result.events_skipped} skipped)")

        sources_seen: Dict[str, None] = {}
        batches = [rows[i:i + self.batch_size] for i in range(0, len(rows), self.batch_size)]
        for number, batch in enumerate(batches, 1):
            try:
                stored = self.raw_events.insert_rows(batch)
            except DatabaseError as e:
                logger.error(f"Batch {number}/{len(batches)} failed: {e}")
                result.batches_failed += 1
            else:
                result.batches_processed += 1
                result.events_processed += len(stored)
                for row in stored:
                    sources_seen.setdefault(row.source_name, None)
                    result.rows.append({
                        'id': row.id,
                        'source_name': row.source_name,
                        'content_length': row.content_length,
                        'created_at': row.created_at.isoformat() if row.created_at else None,
                    })
                logger.debug(f"Batch {number}/{len(batches)} stored {len(stored)} rows")

            if number < len(batches) and self.batch_delay_seconds > 0:
                self._sleep(self.batch_delay_seconds)

        result.sources_summary = list(sources_seen)
        logger.info(
            f"Ingestion complete: {result.events_processed}/{result.events_received} stored "
            f"in {result.batches_processed} batches ({result.batches_failed} failed)"
        )
        return result
