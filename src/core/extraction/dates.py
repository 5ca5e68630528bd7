#!/usr/bin/env python3
"""
Heuristic event date extraction.

Event listings rarely carry a machine-readable event date; the date is
buried in the title or blurb ("Wine Fest 3/15", "Saturday, March 15th").
Pattern families are tried in a fixed order and the first calendar-valid
match with a plausible year wins. The feed's published date is the last
resort.
"""

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, List, Optional

import pytz
from dateutil import parser as date_parser

logger = logging.getLogger(__name__)

# Years accepted from text, relative to the current year
MAX_YEARS_AHEAD = 2
# Oldest published-date year accepted, relative to the current year
MAX_PUBLISHED_YEARS_BACK = 1

MONTHS = {
    'january': 1, 'february': 2, 'march': 3, 'april': 4, 'may': 5, 'june': 6,
    'july': 7, 'august': 8, 'september': 9, 'october': 10, 'november': 11, 'december': 12,
    'jan': 1, 'feb': 2, 'mar': 3, 'apr': 4, 'jun': 6, 'jul': 7, 'aug': 8,
    'sep': 9, 'sept': 9, 'oct': 10, 'nov': 11, 'dec': 12,
}

# Longest names first so the alternation never stops at an abbreviation
_MONTH = r'(' + '|'.join(sorted(MONTHS, key=len, reverse=True)) + r')\.?'
_DAY = r'(\d{1,2})(?:st|nd|rd|th)?'
_YEAR = r'(\d{4})'


@dataclass(frozen=True)
class DatePattern:
    """One pattern family and how to read its groups as (year, month, day)."""
    name: str
    regex: re.Pattern
    to_parts: Callable[[re.Match, int], tuple]


def _month(token: str) -> int:
    return MONTHS[token.rstrip('.')]


DATE_PATTERNS: List[DatePattern] = [
    DatePattern(
        'numeric_full',
        re.compile(r'(?<![\d/-])(\d{1,2})[/-](\d{1,2})[/-](\d{4})(?!\d)'),
        lambda m, year: (int(m.group(3)), int(m.group(1)), int(m.group(2))),
    ),
    DatePattern(
        'numeric_short',
        re.compile(r'(?<![\d/-])(\d{1,2})[/-](\d{1,2})(?!\d|[/-]\d)'),
        lambda m, year: (year, int(m.group(1)), int(m.group(2))),
    ),
    DatePattern(
        'month_day_year',
        re.compile(r'\b' + _MONTH + r'\s+' + _DAY + r',?\s*' + _YEAR + r'(?!\d)'),
        lambda m, year: (int(m.group(3)), _month(m.group(1)), int(m.group(2))),
    ),
    DatePattern(
        'month_day',
        re.compile(r'\b' + _MONTH + r'\s+' + _DAY + r'(?!\d)'),
        lambda m, year: (year, _month(m.group(1)), int(m.group(2))),
    ),
    DatePattern(
        'day_month_year',
        re.compile(r'(?<!\d)' + _DAY + r'\s+(?:of\s+)?' + _MONTH + r',?\s+' + _YEAR + r'(?!\d)'),
        lambda m, year: (int(m.group(3)), _month(m.group(2)), int(m.group(1))),
    ),
    DatePattern(
        'day_month',
        re.compile(r'(?<!\d)' + _DAY + r'\s+(?:of\s+)?' + _MONTH + r'\b(?!,?\s+\d{4})'),
        lambda m, year: (year, _month(m.group(2)), int(m.group(1))),
    ),
]


def current_date(tz=None) -> date:
    """Today in ``tz`` (a pytz timezone or zone name), UTC when omitted."""
    if isinstance(tz, str):
        tz = pytz.timezone(tz)
    return datetime.now(tz or pytz.utc).date()


def _build_date(year: int, month: int, day: int, today: date) -> Optional[date]:
    if not today.year <= year <= today.year + MAX_YEARS_AHEAD:
        return None
    try:
        return date(year, month, day)
    except ValueError:
        return None


def find_date_in_text(text: str, today: date) -> Optional[date]:
    """
    First valid date found in ``text``.

    Args:
        text: Free text, any case
        today: Reference date supplying the current year

    Returns:
        The first match that forms a real calendar date with a year in
        ``[today.year, today.year + 2]``, else ``None``
    """
    if not text:
        return None

    lowered = text.lower()
    for pattern in DATE_PATTERNS:
        for match in pattern.regex.finditer(lowered):
            year, month, day = pattern.to_parts(match, today.year)
            found = _build_date(year, month, day, today)
            if found:
                logger.debug(f"Date {found} matched by {pattern.name}: '{match.group(0)}'")
                return found
    return None


def parse_published_hint(published_hint: str, today: date, tz=None) -> Optional[date]:
    """Parse a feed published date; accepted from last year onwards."""
    if not published_hint or not published_hint.strip():
        return None

    try:
        parsed = date_parser.parse(published_hint)
    except (ValueError, OverflowError):
        logger.debug(f"Unparseable published date: {published_hint!r}")
        return None

    if parsed.tzinfo is not None and tz is not None:
        if isinstance(tz, str):
            tz = pytz.timezone(tz)
        parsed = parsed.astimezone(tz)

    if parsed.year < today.year - MAX_PUBLISHED_YEARS_BACK:
        return None
    return parsed.date()


def extract_event_date(title: str, description: str, published_hint: str = "",
                       today: Optional[date] = None, tz=None) -> Optional[date]:
    """
    Derive an event date from an item's text, falling back to its published date.

    Args:
        title: Cleaned item title
        description: Cleaned item description
        published_hint: Raw published-date string from the feed
        today: Reference date (defaults to today in ``tz``)
        tz: Timezone for "today" and for converting aware published dates

    Returns:
        The derived date, or ``None`` when nothing usable was found
    """
    today = today or current_date(tz)

    found = find_date_in_text(f"{title or ''} {description or ''}", today)
    if found:
        return found

    return parse_published_hint(published_hint, today, tz)
