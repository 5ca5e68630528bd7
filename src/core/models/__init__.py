#!/usr/bin/env python3
"""
Core data models for event discovery.

Contains all data structures used throughout the application.
"""

from .feed import FeedItem, RawFeedPayload, StoredFeedRow
from .event import DateWindow, CandidateEvent, EnrichedEvent, parse_date_safe
from .brief import TenantProfile, ResearchBrief, FanoutResult, brief_fingerprint
from .run import ScanResult, IngestResult, SourceProcessed

__all__ = [
    'FeedItem', 'RawFeedPayload', 'StoredFeedRow',
    'DateWindow', 'CandidateEvent', 'EnrichedEvent', 'parse_date_safe',
    'TenantProfile', 'ResearchBrief', 'FanoutResult', 'brief_fingerprint',
    'ScanResult', 'IngestResult', 'SourceProcessed',
]
