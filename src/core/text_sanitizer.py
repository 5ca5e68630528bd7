#!/usr/bin/env python3
"""
Text sanitization utilities for feed content.

Handles markup residue, character entities and typographic quotes that
show up in scraped event listings and in LLM responses.
"""

import html
import re
import logging

logger = logging.getLogger(__name__)

# Typographic quotation marks that can break JSON parsing
SMART_QUOTES_MAP = {
    "“": '"',  # Left double quotation mark
    "”": '"',  # Right double quotation mark
    "„": '"',  # Double low-9 quotation mark
    "‘": "'",  # Left single quotation mark
    "’": "'",  # Right single quotation mark
    "‚": "'",  # Single low-9 quotation mark
}

SMART_QUOTES_TRANSLATION = str.maketrans(SMART_QUOTES_MAP)

_TAG_PATTERN = re.compile(r'<[^>]*>')
_DECODED_TAG_PATTERN = re.compile(r'</?[A-Za-z][\w:-]*(?:\s[^<>]*)?/?>')
_WHITESPACE_PATTERN = re.compile(r'\s+')

_INJECTION_PATTERNS = [
    r'ignore\s+(?:all\s+)?previous\s+instructions?',
    r'forget\s+everything\s+above',
    r'new\s+instructions?:',
    r'system\s*:',
    r'assistant\s*:',
    r'act\s+as\s+if',
    r'pretend\s+to\s+be',
    r'role\s*:\s*system',
]


def normalize_quotes(text: str) -> str:
    """
    Normalize typographic quotation marks to ASCII equivalents.

    Args:
        text: Input text that may contain curly quotes

    Returns:
        Text with normalized ASCII quotes
    """
    if not text:
        return text

    return text.translate(SMART_QUOTES_TRANSLATION)


def strip_markup(text: str) -> str:
    """
    Remove tags, decode character entities and collapse whitespace.

    Feeds often double-escape HTML in descriptions, so tags that only
    appear after entity decoding are stripped too. A bare ``<`` used as
    text (``a < b``) is kept.

    Args:
        text: Raw feed field text

    Returns:
        Plain single-line text
    """
    if not text:
        return ""

    without_tags = _TAG_PATTERN.sub(' ', text)
    decoded = html.unescape(without_tags).replace('\xa0', ' ')
    decoded = _DECODED_TAG_PATTERN.sub(' ', decoded)
    return _WHITESPACE_PATTERN.sub(' ', decoded).strip()


def sanitize_prompt_text(text: str, max_length: int = 500) -> str:
    """
    Sanitize feed content before it is placed in a prompt.

    Args:
        text: Raw text from feeds
        max_length: Maximum characters to keep

    Returns:
        Sanitized text safe for prompt inclusion
    """
    if not text:
        return ""

    sanitized = text
    for pattern in _INJECTION_PATTERNS:
        sanitized = re.sub(pattern, '[FILTERED]', sanitized, flags=re.IGNORECASE)

    if len(sanitized) > max_length:
        sanitized = sanitized[:max_length - 3] + "..."

    return sanitized.strip()


def preprocess_llm_response(raw_response: str) -> str:
    """
    Preprocess LLM response before JSON parsing.

    This is a safety net for cases where structured outputs
    aren't used or as a fallback mechanism.

    Args:
        raw_response: Raw response from LLM

    Returns:
        Preprocessed response ready for JSON parsing
    """
    if not raw_response:
        return raw_response

    processed = normalize_quotes(raw_response)

    if processed != raw_response:
        logger.info("Normalized typographic quotes in LLM response")
        logger.debug(
            "Original length: %d, processed length: %d",
            len(raw_response),
            len(processed),
        )

    return processed
