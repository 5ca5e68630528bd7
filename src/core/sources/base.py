#!/usr/bin/env python3
"""
Base types for event feed sources.
"""

from typing import Optional
from dataclasses import dataclass


class SourceError(Exception):
    """Exception raised by source registry operations."""
    pass


@dataclass(frozen=True)
class SourceDefinition:
    """A known event publisher, recognised by a fragment of its hostname."""
    name: str
    hostname_fragment: str
    display_name: str
    region: Optional[str] = None

    def __post_init__(self):
        """Validate definition."""
        if not self.hostname_fragment or self.hostname_fragment != self.hostname_fragment.lower():
            raise ValueError("hostname_fragment must be a non-empty lowercase string")
        if not self.display_name.strip():
            raise ValueError("display_name must not be empty")

    def matches(self, hostname: str) -> bool:
        return self.hostname_fragment in hostname
