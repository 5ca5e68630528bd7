#!/usr/bin/env python3
"""
Tenant and research brief models.
"""

import hashlib
import uuid
from datetime import date, datetime, timezone
from typing import Dict, Any, List, Optional
from dataclasses import dataclass, field


@dataclass
class TenantProfile:
    """A subscribing business. Read-only for this system."""
    id: str
    display_name: str
    location: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TenantProfile':
        return cls(
            id=str(data['id']),
            display_name=data.get('display_name') or data.get('winery_name') or '',
            location=data.get('location') or ''
        )


def brief_fingerprint(event_name: str, source_url: str, tenant_id: str) -> str:
    """
    Stable content fingerprint for an (event, tenant) pair.

    Name casing and inner whitespace do not change the fingerprint.
    """
    normalized_name = ' '.join(event_name.lower().split())
    material = f"{normalized_name}|{source_url.strip().lower()}|{tenant_id}"
    return hashlib.sha256(material.encode('utf-8')).hexdigest()


@dataclass
class ResearchBrief:
    """Per-tenant advisory record derived from one enriched event."""
    tenant_id: str
    theme: str
    key_points: List[str]
    event_name: str
    event_date: date
    event_location: str
    context_summary: str
    fingerprint: str
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the research_briefs row layout."""
        return {
            'id': self.id,
            'tenant_id': self.tenant_id,
            'suggested_theme': self.theme,
            'key_points': list(self.key_points),
            'local_event_name': self.event_name,
            'local_event_date': self.event_date.isoformat(),
            'local_event_location': self.event_location,
            'seasonal_context': self.context_summary,
            'fingerprint': self.fingerprint,
            'created_at': self.created_at.isoformat(),
        }

    def __repr__(self):
        return f"ResearchBrief(tenant='{self.tenant_id}', event='{self.event_name[:40]}')"


@dataclass
class FanoutResult:
    """Outcome of one brief fan-out."""
    attempted: int = 0
    created: int = 0
    failed: int = 0
    tenants: int = 0
    message: Optional[str] = None
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'attempted': self.attempted,
            'created': self.created,
            'failed': self.failed,
            'tenants': self.tenants,
            'message': self.message,
        }
