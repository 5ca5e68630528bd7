#!/usr/bin/env python3
"""
Feed data models.

Raw feed payloads as they arrive, the rows they become in storage, and the
item records the markup extractor pulls out of them.
"""

from datetime import datetime, timezone
from typing import Dict, Any, Optional
from dataclasses import dataclass, field

from dateutil import parser as date_parser


def _parse_datetime_safe(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if not value:
        return None
    try:
        return date_parser.parse(value)
    except (ValueError, OverflowError):
        return None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class FeedItem:
    """One item block pulled out of a feed blob. Every field may be empty."""
    title: str = ""
    description: str = ""
    link: str = ""
    pub_date: str = ""
    guid: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            'title': self.title,
            'description': self.description,
            'link': self.link,
            'pub_date': self.pub_date,
            'guid': self.guid,
        }


@dataclass
class RawFeedPayload:
    """Feed content supplied inline with a scan request."""
    source_url: str
    raw_content: str
    received_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self):
        self.source_url = (self.source_url or "").strip()
        self.raw_content = self.raw_content or ""

    @property
    def content_length(self) -> int:
        return len(self.raw_content)


@dataclass
class StoredFeedRow:
    """
    A persisted feed blob awaiting (or done with) extraction.

    ``content_length`` is always derived from ``raw_content``; a value read
    back from storage is only trusted when it agrees.
    """
    source_url: str
    source_name: str
    raw_content: str
    id: Optional[str] = None
    processed: bool = False
    scraped_at: datetime = field(default_factory=_utcnow)
    created_at: Optional[datetime] = None
    content_length: int = 0

    def __post_init__(self):
        self.source_url = (self.source_url or "").strip()
        self.source_name = (self.source_name or "").strip()
        self.raw_content = self.raw_content or ""
        self.content_length = len(self.raw_content)

    def to_payload(self) -> RawFeedPayload:
        """View the stored row as a feed payload for extraction."""
        return RawFeedPayload(
            source_url=self.source_url,
            raw_content=self.raw_content,
            received_at=self.scraped_at
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the raw_events row layout."""
        data = {
            'source_url': self.source_url,
            'source_name': self.source_name,
            'raw_content': self.raw_content,
            'content_length': self.content_length,
            'is_processed': self.processed,
            'scrape_timestamp': self.scraped_at.isoformat(),
        }
        if self.id is not None:
            data['id'] = self.id
        if self.created_at is not None:
            data['created_at'] = self.created_at.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'StoredFeedRow':
        """Create a row from a raw_events record."""
        return cls(
            id=str(data['id']) if data.get('id') is not None else None,
            source_url=data.get('source_url', ''),
            source_name=data.get('source_name', ''),
            raw_content=data.get('raw_content', ''),
            processed=bool(data.get('is_processed', False)),
            scraped_at=_parse_datetime_safe(data.get('scrape_timestamp')) or _utcnow(),
            created_at=_parse_datetime_safe(data.get('created_at'))
        )

    def __repr__(self):
        return f"StoredFeedRow(id={self.id!r}, source='{self.source_name}', length={self.content_length}, processed={self.processed})"
