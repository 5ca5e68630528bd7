#!/usr/bin/env python3
"""
HTTP surface for the event engine.
"""
