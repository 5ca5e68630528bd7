#!/usr/bin/env python3
"""
Scan orchestration.

One scan resolves the date window, gathers feed content (inline payloads
first, stored unprocessed rows otherwise), extracts candidates, runs the
gatekeeper and enrichment stages, and fans the surviving events out to
every tenant as research briefs.
"""

import logging
from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

from .analysis.pipeline import AnalysisPipeline
from .briefs.fanout import BriefFanout
from .exceptions import DatabaseError, RequestValidationError
from .extraction.candidates import CandidateBuilder
from .extraction.dates import current_date
from .models.event import CandidateEvent, DateWindow, EnrichedEvent
from .models.feed import RawFeedPayload
from .models.run import (
    ScanResult, SourceProcessed, DATA_SOURCE_INLINE, DATA_SOURCE_STORED, DATA_SOURCE_NONE,
)
from .sources.registry import resolve_source_label

logger = logging.getLogger(__name__)

NO_EVENTS_MESSAGE = "No events found in the specified date range"
NO_ADMITTED_MESSAGE = "No relevant non-competitor events found after filtering"
NO_FINAL_MESSAGE = "No events met final quality standards"


def _parse_request_date(value: Any, field_name: str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        raise RequestValidationError(f"Invalid {field_name}", [f"{field_name} must be a date string"])
    try:
        return date_parser.isoparse(value.strip()).date()
    except ValueError:
        try:
            return date_parser.parse(value.strip()).date()
        except (ValueError, OverflowError) as e:
            raise RequestValidationError(f"Invalid {field_name}: {value!r}", [str(e)]) from e


class ScanService:
    """Runs event scans end to end."""

    def __init__(self, raw_events, tenants, pipeline: AnalysisPipeline, fanout: BriefFanout,
                 candidate_builder: Optional[CandidateBuilder] = None,
                 default_window_months: int = 3, tz=None,
                 clock: Optional[Callable[[], date]] = None):
        """
        Initialize scan service.

        Args:
            raw_events: Raw event repository for the stored path
            tenants: Tenant repository
            pipeline: Gatekeeper + enrichment pipeline
            fanout: Brief fan-out
            candidate_builder: Candidate extraction (defaults built from ``tz``)
            default_window_months: Window length when the request names none
            tz: Timezone "today" is computed in
            clock: Returns today's date; replaceable in tests
        """
        self.raw_events = raw_events
        self.tenants = tenants
        self.pipeline = pipeline
        self.fanout = fanout
        self.candidate_builder = candidate_builder or CandidateBuilder(tz=tz)
        self.default_window_months = default_window_months
        self.tz = tz
        self._clock = clock or (lambda: current_date(self.tz))

    def today(self) -> date:
        return self._clock()

    def resolve_window(self, start_date: Any = None, end_date: Any = None,
                       today: Optional[date] = None) -> DateWindow:
        """
        Build the scan window from optional request dates.

        A missing start means today; a missing end means start plus the
        default number of months.

        Raises:
            RequestValidationError: If a date is unparsable or end precedes start
        """
        today = today or self.today()
        start = _parse_request_date(start_date, 'start_date') if start_date is not None else today
        if end_date is not None:
            end = _parse_request_date(end_date, 'end_date')
        else:
            end = start + relativedelta(months=self.default_window_months)

        if end < start:
            raise RequestValidationError(
                "Invalid date_range", [f"end_date {end.isoformat()} is before start_date {start.isoformat()}"]
            )
        return DateWindow(start, end)

    def _extract_inline(self, payloads: List[RawFeedPayload], window: DateWindow,
                        today: date) -> Tuple[List[CandidateEvent], List[SourceProcessed]]:
        candidates: List[CandidateEvent] = []
        sources: List[SourceProcessed] = []

        for payload in payloads:
            source_name = resolve_source_label(payload.source_url)
            logger.info(f"Processing: {source_name} ({payload.content_length} chars)")
            extracted = self.candidate_builder.build(payload, source_name, window, today=today)
            candidates.extend(extracted)
            sources.append(SourceProcessed(payload.source_url, payload.content_length, len(extracted)))

        return candidates, sources

    def _extract_stored(self, window: DateWindow,
                        today: date) -> Tuple[List[CandidateEvent], List[SourceProcessed], bool]:
        try:
            rows = self.raw_events.list_unprocessed()
        except DatabaseError as e:
            logger.error(f"Error fetching stored raw events: {e}")
            return [], [], False

        if not rows:
            return [], [], False

        logger.info(f"Found {len(rows)} unprocessed raw events in storage")
        candidates: List[CandidateEvent] = []
        sources: List[SourceProcessed] = []

        for row in rows:
            source_name = row.source_name or resolve_source_label(row.source_url)
            extracted = self.candidate_builder.build(row.to_payload(), source_name, window, today=today)
            candidates.extend(extracted)
            sources.append(SourceProcessed(row.source_url, row.content_length, len(extracted)))

            # Flipped even when the row yielded nothing
            try:
                self.raw_events.mark_processed(row.id)
            except DatabaseError as e:
                logger.error(f"Failed to mark stored raw event {row.id} processed: {e}")

        return candidates, sources, True

    def scan(self, window: Optional[DateWindow] = None,
             payloads: Optional[List[RawFeedPayload]] = None) -> ScanResult:
        """
        Run one scan.

        Args:
            window: Date window (defaults to today plus the default months)
            payloads: Inline feed payloads; ``None`` reads stored rows instead.
                An empty list is still an inline run and finds nothing

        Returns:
            ScanResult with per-stage counts

        Raises:
            DatabaseError: If the tenant roster cannot be read
        """
        today = self.today()
        window = window or self.resolve_window(today=today)
        result = ScanResult(window=window)
        discovered_at = datetime.now(timezone.utc)

        logger.info(f"Starting event scan for {window}")

        if payloads is not None:
            result.data_source = DATA_SOURCE_INLINE
            result.raw_sources_processed = len(payloads)
            candidates, sources = self._extract_inline(payloads, window, today)
        else:
            candidates, sources, found = self._extract_stored(window, today)
            result.data_source = DATA_SOURCE_STORED if found else DATA_SOURCE_NONE
            result.raw_sources_processed = len(sources)

        result.sources_processed = sources
        result.events_extracted = len(candidates)
        logger.info(f"Total candidate events extracted: {len(candidates)} ({result.data_source})")

        if not candidates:
            result.message = NO_EVENTS_MESSAGE
            return result

        context = self.pipeline.run(candidates, {'window': window, 'today': today})

        admitted: List[CandidateEvent] = context.get('admitted_events', [])
        final_events: List[EnrichedEvent] = context.get('enriched_events', [])
        result.gatekeeper_status = context.get('gatekeeper_status', result.gatekeeper_status)
        result.enrichment_status = context.get('enrichment_status', result.enrichment_status)
        result.events_after_gatekeeper = len(admitted)
        result.events_final = len(final_events)
        result.events = final_events

        if not admitted:
            result.message = NO_ADMITTED_MESSAGE
            return result
        if not final_events:
            result.message = NO_FINAL_MESSAGE
            return result

        for event in final_events:
            logger.info(
                f"Final event: {event.event_name} (score {event.relevance_score}/10, "
                f"{event.event_date.isoformat()}, {event.source_name})"
            )

        tenants = self.tenants.list_tenants()
        result.tenants_processed = len(tenants)

        fanout = self.fanout.run(final_events, tenants, window, result.data_source, discovered_at)
        result.briefs_created = fanout.created
        result.briefs_failed = fanout.failed

        if fanout.message:
            result.message = fanout.message
        else:
            result.message = (
                f"Event scan complete: processed {len(final_events)} non-competitor events "
                f"from {result.raw_sources_processed} sources for {len(tenants)} tenants"
            )

        logger.info(
            f"Scan results: extracted={result.events_extracted} "
            f"after_gatekeeper={result.events_after_gatekeeper} "
            f"filtered={result.competitor_events_filtered} final={result.events_final} "
            f"briefs={result.briefs_created} failed={result.briefs_failed}"
        )
        return result

    def scan_request(self, body: Dict[str, Any]) -> ScanResult:
        """
        Run a scan from a decoded request body.

        Args:
            body: ``{date_range?: {start_date, end_date}, raw_data?: [{source_url, raw_content}]}``

        Raises:
            RequestValidationError: If the body is malformed
        """
        if not isinstance(body, dict):
            raise RequestValidationError("Request body must be a JSON object")

        date_range = body.get('date_range')
        if date_range is not None and not isinstance(date_range, dict):
            raise RequestValidationError("Invalid date_range", ["date_range must be an object"])
        date_range = date_range or {}
        window = self.resolve_window(date_range.get('start_date'), date_range.get('end_date'))

        raw_data = body.get('raw_data')
        payloads: Optional[List[RawFeedPayload]] = None
        if raw_data is not None:
            payloads = []
            if not isinstance(raw_data, list):
                raise RequestValidationError("Invalid raw_data", ["raw_data must be an array"])
            problems = []
            for position, item in enumerate(raw_data):
                if not isinstance(item, dict) or not isinstance(item.get('raw_content'), str):
                    problems.append(f"raw_data[{position}].raw_content must be a string")
                    continue
                payloads.append(RawFeedPayload(
                    source_url=item.get('source_url') if isinstance(item.get('source_url'), str) else '',
                    raw_content=item['raw_content']
                ))
            if problems:
                raise RequestValidationError("Invalid raw_data", problems)

        return self.scan(window=window, payloads=payloads)
