#!/usr/bin/env python3
"""
Event sources: publisher labels and feed markup extraction.
"""

from .registry import (
    SourceRegistry, register_source, resolve_source_label, list_available_sources,
    get_registry, UNKNOWN_SOURCE, INVALID_URL_SOURCE,
)
from .base import SourceDefinition, SourceError
from .markup import MarkupExtractor, extract_items

# Import to trigger auto-registration
from . import auto_register

__all__ = [
    'SourceRegistry', 'register_source', 'resolve_source_label', 'list_available_sources',
    'get_registry', 'UNKNOWN_SOURCE', 'INVALID_URL_SOURCE',
    'SourceDefinition', 'SourceError', 'MarkupExtractor', 'extract_items',
]
