#!/usr/bin/env python3
"""
Event source registry.

Maps feed and item URLs to human-readable source labels. Known publishers
are matched by hostname fragment in registration order; anything else is
labelled with its bare hostname.
"""

import logging
from typing import Dict, List, Optional
from urllib.parse import urlsplit

from .base import SourceDefinition, SourceError

logger = logging.getLogger(__name__)

UNKNOWN_SOURCE = "Unknown Source"
INVALID_URL_SOURCE = "Invalid URL Source"


def extract_hostname(url: str) -> Optional[str]:
    """Lowercased hostname of ``url``, or ``None`` when it has none."""
    try:
        hostname = urlsplit(url.strip()).hostname
    except ValueError:
        return None
    return hostname.lower() if hostname else None


class SourceRegistry:
    """Registry of known event publishers."""

    def __init__(self):
        """Initialize empty registry."""
        self._sources: Dict[str, SourceDefinition] = {}

    def register_source(self, definition: SourceDefinition) -> None:
        """
        Register a publisher definition.

        Args:
            definition: Source to register

        Raises:
            SourceError: If a different source already uses the name
        """
        existing = self._sources.get(definition.name)
        if existing is not None and existing != definition:
            raise SourceError(f"Source '{definition.name}' is already registered")

        self._sources[definition.name] = definition
        logger.debug(f"Registered event source: {definition.name} ({definition.hostname_fragment})")

    def get_source(self, name: str) -> SourceDefinition:
        """
        Get a registered source by name.

        Raises:
            KeyError: If source not found
        """
        if name not in self._sources:
            available = list(self._sources.keys())
            raise KeyError(f"Source '{name}' not found. Available: {available}")
        return self._sources[name]

    def find_by_hostname(self, hostname: str) -> Optional[SourceDefinition]:
        """First registered source whose fragment occurs in ``hostname``."""
        hostname = hostname.lower()
        for definition in self._sources.values():
            if definition.matches(hostname):
                return definition
        return None

    def resolve_label(self, url: Optional[str]) -> str:
        """
        Derive a display label for the publisher of ``url``.

        Args:
            url: Item or feed URL, possibly empty

        Returns:
            Known display name, the bare hostname, or a sentinel label
        """
        if not url or not url.strip():
            return UNKNOWN_SOURCE

        hostname = extract_hostname(url)
        if not hostname:
            return INVALID_URL_SOURCE

        definition = self.find_by_hostname(hostname)
        if definition:
            return definition.display_name
        return hostname

    def list_available_sources(self) -> List[str]:
        """Get list of registered source names."""
        return list(self._sources.keys())


# Global registry instance
_global_registry = SourceRegistry()


def get_registry() -> SourceRegistry:
    """Get the global registry."""
    return _global_registry


def register_source(definition: SourceDefinition) -> None:
    """Register a source in the global registry."""
    _global_registry.register_source(definition)


def resolve_source_label(url: Optional[str]) -> str:
    """Resolve a label through the global registry."""
    return _global_registry.resolve_label(url)


def list_available_sources() -> List[str]:
    """List available sources in the global registry."""
    return _global_registry.list_available_sources()
