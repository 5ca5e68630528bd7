#!/usr/bin/env python3
"""
Run summary models.

Summaries returned by a scan and by an ingestion push. Counters are always
present so that "found nothing" and "failed" stay distinguishable.
"""

from typing import Dict, Any, List, Optional
from dataclasses import dataclass, field

from .event import DateWindow, EnrichedEvent

DATA_SOURCE_INLINE = "inline_payload"
DATA_SOURCE_STORED = "stored_rows"
DATA_SOURCE_NONE = "none_found"


@dataclass
class SourceProcessed:
    """Per-feed line in a scan summary."""
    source_url: str
    content_length: int
    candidates: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'source_url': self.source_url,
            'content_length': self.content_length,
            'candidates': self.candidates,
        }


@dataclass
class ScanResult:
    """Summary of one scan request."""
    window: DateWindow
    success: bool = True
    message: str = ""
    data_source: str = DATA_SOURCE_NONE
    raw_sources_processed: int = 0
    events_extracted: int = 0
    events_after_gatekeeper: int = 0
    events_final: int = 0
    tenants_processed: int = 0
    briefs_created: int = 0
    briefs_failed: int = 0
    gatekeeper_status: str = "skipped"
    enrichment_status: str = "skipped"
    events: List[EnrichedEvent] = field(default_factory=list)
    sources_processed: List[SourceProcessed] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def competitor_events_filtered(self) -> int:
        return self.events_extracted - self.events_after_gatekeeper

    def to_dict(self) -> Dict[str, Any]:
        return {
            'success': self.success,
            'message': self.message,
            'data_source': self.data_source,
            'raw_sources_processed': self.raw_sources_processed,
            'events_extracted': self.events_extracted,
            'events_after_gatekeeper': self.events_after_gatekeeper,
            'competitor_events_filtered': self.competitor_events_filtered,
            'events_final': self.events_final,
            'tenants_processed': self.tenants_processed,
            'briefs_created': self.briefs_created,
            'briefs_failed': self.briefs_failed,
            'gatekeeper_status': self.gatekeeper_status,
            'enrichment_status': self.enrichment_status,
            'date_range': self.window.to_dict(),
            'events': [event.to_summary_dict() for event in self.events],
            'sources_processed': [source.to_dict() for source in self.sources_processed],
        }


@dataclass
class IngestResult:
    """Summary of one ingestion push."""
    events_received: int = 0
    events_processed: int = 0
    events_skipped: int = 0
    batches_processed: int = 0
    batches_failed: int = 0
    rows: List[Dict[str, Any]] = field(default_factory=list)
    sources_summary: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.batches_failed == 0

    @property
    def message(self) -> str:
        if self.events_received == 0:
            return "No events to process"
        text = f"Successfully processed {self.events_processed} events from {len(self.sources_summary)} sources"
        if self.batches_failed:
            text += f" ({self.batches_failed} batches failed)"
        return text

    def to_dict(self) -> Dict[str, Any]:
        return {
            'success': self.success,
            'message': self.message,
            'events_received': self.events_received,
            'events_processed': self.events_processed,
            'events_skipped': self.events_skipped,
            'batches_processed': self.batches_processed,
            'batches_failed': self.batches_failed,
            'data': list(self.rows),
            'sources_summary': list(self.sources_summary),
        }
