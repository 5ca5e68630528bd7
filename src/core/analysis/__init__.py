#!/usr/bin/env python3
"""
Analysis pipeline for event classification.

Provides pluggable analysis system with support for different stages.
"""

from .pipeline import AnalysisPipeline, AnalysisStage
from .events import (
    FailurePolicy, GatekeeperStage, EnrichmentStage, build_classification_pipeline,
    EventClassificationPrompts,
)

__all__ = [
    'AnalysisPipeline', 'AnalysisStage',
    'FailurePolicy', 'GatekeeperStage', 'EnrichmentStage', 'build_classification_pipeline',
    'EventClassificationPrompts',
]
