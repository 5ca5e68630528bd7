#!/usr/bin/env python3
"""
Event data models.

Candidate events extracted from feeds, the enriched events that survive
classification, and the date window both are filtered against.
"""

from datetime import date, datetime
from typing import Dict, Any, Optional
from dataclasses import dataclass

from dateutil import parser as date_parser


def parse_date_safe(value: Any) -> Optional[date]:
    """Parse a date-ish value into a ``date``; ``None`` when unusable."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value or not isinstance(value, str):
        return None
    try:
        return date_parser.parse(value).date()
    except (ValueError, OverflowError):
        return None


@dataclass(frozen=True)
class DateWindow:
    """Closed calendar interval ``[start, end]``."""
    start: date
    end: date

    def __post_init__(self):
        if self.end < self.start:
            raise ValueError(f"Date window end {self.end} is before start {self.start}")

    def contains(self, value: date) -> bool:
        """Inclusive on both ends."""
        if isinstance(value, datetime):
            value = value.date()
        return self.start <= value <= self.end

    @property
    def duration_days(self) -> int:
        return (self.end - self.start).days

    def to_dict(self) -> Dict[str, Any]:
        return {
            'start': self.start.isoformat(),
            'end': self.end.isoformat(),
            'duration_days': self.duration_days,
        }

    def __str__(self):
        return f"{self.start.isoformat()} to {self.end.isoformat()}"


@dataclass
class CandidateEvent:
    """A feed item that passed cleanup, the title gate and the window filter."""
    title: str
    description: str
    link: str
    source_name: str
    source_url: str
    published_hint: str = ""
    event_date: Optional[date] = None

    def __post_init__(self):
        self.title = self.title.strip()
        self.description = (self.description or "").strip()
        self.link = (self.link or "").strip()
        self.published_hint = (self.published_hint or "").strip()

    def to_prompt_dict(self, index: int) -> Dict[str, Any]:
        """Shape sent to the completion service."""
        return {
            'id': index,
            'title': self.title,
            'description': self.description,
            'link': self.link,
            'derived_date': self.event_date.isoformat() if self.event_date else None,
            'source_name': self.source_name,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            'title': self.title,
            'description': self.description,
            'link': self.link,
            'source_name': self.source_name,
            'source_url': self.source_url,
            'published_hint': self.published_hint,
            'event_date': self.event_date.isoformat() if self.event_date else None,
        }

    def __repr__(self):
        return f"CandidateEvent(title='{self.title[:50]}', date={self.event_date}, source='{self.source_name}')"


@dataclass
class EnrichedEvent:
    """A classified, scored event ready for brief fan-out."""
    event_name: str
    event_date: date
    event_location: str
    event_summary: str
    event_url: str
    relevance_score: int
    source_url: str
    source_name: str

    def __post_init__(self):
        self.event_name = self.event_name.strip()
        self.event_location = (self.event_location or "").strip()
        self.event_summary = (self.event_summary or "").strip()
        self.event_url = (self.event_url or "").strip()
        self.relevance_score = max(1, min(10, int(self.relevance_score)))

    def to_summary_dict(self) -> Dict[str, Any]:
        """Compact form used in scan responses."""
        return {
            'name': self.event_name,
            'date': self.event_date.isoformat(),
            'location': self.event_location,
            'relevance': self.relevance_score,
            'source': self.source_name,
            'url': self.event_url,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            'event_name': self.event_name,
            'event_date': self.event_date.isoformat(),
            'event_location': self.event_location,
            'event_summary': self.event_summary,
            'event_url': self.event_url,
            'relevance_score': self.relevance_score,
            'source_url': self.source_url,
            'source_name': self.source_name,
        }
