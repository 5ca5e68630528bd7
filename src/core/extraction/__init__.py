#!/usr/bin/env python3
"""
Event extraction: date heuristics and candidate building.
"""

from .dates import extract_event_date, find_date_in_text, current_date
from .candidates import CandidateBuilder, build_candidates

__all__ = [
    'extract_event_date', 'find_date_in_text', 'current_date',
    'CandidateBuilder', 'build_candidates',
]
