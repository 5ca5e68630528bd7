#!/usr/bin/env python3
"""
Auto-registration of the built-in event publishers.

Import this module to automatically register all built-in sources.
"""

import logging
from .base import SourceDefinition, SourceError
from .registry import register_source

logger = logging.getLogger(__name__)

BUILTIN_SOURCES = [
    SourceDefinition('loudoun', 'visitloudoun', 'Visit Loudoun Events', region='Loudoun County'),
    SourceDefinition('fxva', 'fxva.com', 'FXVA Events', region='Fairfax County'),
    SourceDefinition('virginia', 'virginia.org', 'Virginia Tourism Events', region='Virginia'),
    SourceDefinition('pwc', 'visitpwc', 'Prince William County Events', region='Prince William County'),
    SourceDefinition('fauquier', 'visitfauquier', 'Visit Fauquier Events', region='Fauquier County'),
    SourceDefinition('novamag', 'northernvirginiamag', 'Northern Virginia Magazine Events', region='Northern Virginia'),
    SourceDefinition('clarke', 'discoverclarkecounty', 'Discover Clarke County Events', region='Clarke County'),
]


def register_all_sources():
    """Register all built-in event sources."""
    for definition in BUILTIN_SOURCES:
        try:
            register_source(definition)
        except SourceError as e:
            logger.error(f"Failed to register source {definition.name}: {e}")

    logger.debug(f"Registered {len(BUILTIN_SOURCES)} built-in event sources")


# Auto-register on import
register_all_sources()
