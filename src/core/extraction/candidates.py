#!/usr/bin/env python3
"""
Candidate event builder.

Turns one feed payload into the candidate events that are worth sending
to classification: items with a usable title whose derived date (if any)
falls inside the requested window.
"""

import logging
from datetime import date
from typing import List, Optional

from ..models.event import CandidateEvent, DateWindow
from ..models.feed import RawFeedPayload
from ..sources.markup import MarkupExtractor, DEFAULT_MAX_ITEMS
from .dates import extract_event_date

logger = logging.getLogger(__name__)

MIN_TITLE_LENGTH = 5
MAX_TITLE_LENGTH = 500


class CandidateBuilder:
    """Extracts, cleans and window-filters candidate events from a feed."""

    def __init__(self, min_title_length: int = MIN_TITLE_LENGTH,
                 max_title_length: int = MAX_TITLE_LENGTH,
                 max_items: int = DEFAULT_MAX_ITEMS,
                 tz=None):
        self.min_title_length = min_title_length
        self.max_title_length = max_title_length
        self.extractor = MarkupExtractor(max_items=max_items)
        self.tz = tz

    def title_is_acceptable(self, title: str) -> bool:
        return self.min_title_length <= len(title) <= self.max_title_length

    def build(self, payload: RawFeedPayload, source_name: str, window: DateWindow,
              today: Optional[date] = None) -> List[CandidateEvent]:
        """
        Build the candidate events for one feed.

        Args:
            payload: Feed blob and the URL it came from
            source_name: Label for the feed's publisher
            window: Closed date window candidates must fall in
            today: Reference date for year inference

        Returns:
            Candidates in feed order. Undated items are always kept.
        """
        items = self.extractor.extract(payload.raw_content)
        candidates: List[CandidateEvent] = []
        short_titles = 0
        out_of_window = 0

        for item in items:
            if not self.title_is_acceptable(item.title):
                short_titles += 1
                continue

            event_date = extract_event_date(
                item.title, item.description, item.pub_date, today=today, tz=self.tz
            )
            if event_date is not None and not window.contains(event_date):
                out_of_window += 1
                continue

            candidates.append(CandidateEvent(
                title=item.title,
                description=item.description,
                link=item.link or payload.source_url,
                source_name=source_name,
                source_url=payload.source_url,
                published_hint=item.pub_date,
                event_date=event_date
            ))

        logger.info(
            f"{source_name}: {len(items)} items, {len(candidates)} candidates "
            f"({short_titles} bad titles, {out_of_window} outside {window})"
        )
        return candidates


def build_candidates(payload: RawFeedPayload, source_name: str, window: DateWindow,
                     today: Optional[date] = None, tz=None) -> List[CandidateEvent]:
    """Build candidates with default limits."""
    return CandidateBuilder(tz=tz).build(payload, source_name, window, today=today)
