#!/usr/bin/env python3
"""
Research brief generation for subscribing tenants.
"""

from .fanout import BriefFanout, build_brief, BRIEF_STATUS_LINE

__all__ = ['BriefFanout', 'build_brief', 'BRIEF_STATUS_LINE']
