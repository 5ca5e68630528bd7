#!/usr/bin/env python3
"""
Local event classification: competitor gatekeeping and enrichment.
"""

from .stages import (
    FailurePolicy, GatekeeperStage, EnrichmentStage, build_classification_pipeline,
    DEFAULT_LOCATION, DEFAULT_SUMMARY,
)
from .prompts import EventClassificationPrompts

__all__ = [
    'FailurePolicy', 'GatekeeperStage', 'EnrichmentStage', 'build_classification_pipeline',
    'DEFAULT_LOCATION', 'DEFAULT_SUMMARY', 'EventClassificationPrompts',
]
