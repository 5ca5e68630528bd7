#!/usr/bin/env python3
"""
Lenient feed markup extractor.

Scraped feeds are frequently malformed (unclosed tags, stray ampersands,
truncated bodies), so instead of an XML parser this module tokenises the
blob into tags, text and CDATA sections and walks the tokens with a small
explicit state machine. Anything it cannot make sense of is skipped; the
extractor never raises.

Recognised item blocks are RSS ``<item>`` and Atom ``<entry>``.
"""

import html
import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Optional

from ..models.feed import FeedItem
from ..text_sanitizer import strip_markup

logger = logging.getLogger(__name__)

DEFAULT_MAX_ITEMS = 100

ITEM_TAGS = frozenset({'item', 'entry'})

# Qualified names are checked before local names, so ``dc:date`` maps while
# other prefixed tags fall back to their local part.
FIELD_TAGS: Dict[str, str] = {
    'title': 'title',
    'description': 'description',
    'summary': 'description',
    'content': 'description',
    'content:encoded': 'description',
    'link': 'link',
    'pubdate': 'pub_date',
    'published': 'pub_date',
    'updated': 'pub_date',
    'dc:date': 'pub_date',
    'guid': 'guid',
    'id': 'guid',
}

_TAG_RE = re.compile(r'<(/?)([A-Za-z_][\w:.\-]*)((?:\s[^<>]*?)?)(/?)>', re.DOTALL)
_ATTR_RE = re.compile(r'([\w:.\-]+)\s*=\s*(?:"([^"]*)"|\'([^\']*)\'|([^\s"\'>]+))')


class TokenKind(Enum):
    TEXT = "text"
    CDATA = "cdata"
    OPEN = "open"
    CLOSE = "close"
    EMPTY = "empty"


@dataclass
class Token:
    kind: TokenKind
    value: str = ""
    name: str = ""
    attrs: Dict[str, str] = field(default_factory=dict)

    @property
    def local_name(self) -> str:
        return self.name.rsplit(':', 1)[-1]


class ParserState(Enum):
    OUTSIDE = "outside"
    IN_ITEM = "in_item"
    IN_FIELD = "in_field"


def _parse_attrs(raw: str) -> Dict[str, str]:
    attrs = {}
    for match in _ATTR_RE.finditer(raw or ''):
        name = match.group(1).lower()
        value = next((group for group in match.groups()[1:] if group is not None), '')
        attrs[name] = html.unescape(value)
    return attrs


def tokenize(content: str) -> Iterator[Token]:
    """
    Split markup into tokens.

    Comments, processing instructions and declarations are dropped. A ``<``
    that does not start a tag is emitted as text. An unterminated CDATA
    section runs to the end of the input.
    """
    pos = 0
    length = len(content)

    while pos < length:
        lt = content.find('<', pos)
        if lt == -1:
            yield Token(TokenKind.TEXT, content[pos:])
            return
        if lt > pos:
            yield Token(TokenKind.TEXT, content[pos:lt])

        if content.startswith('<![CDATA[', lt):
            end = content.find(']]>', lt + 9)
            if end == -1:
                yield Token(TokenKind.CDATA, content[lt + 9:])
                return
            yield Token(TokenKind.CDATA, content[lt + 9:end])
            pos = end + 3
            continue

        if content.startswith('<!--', lt):
            end = content.find('-->', lt + 4)
            if end == -1:
                return
            pos = end + 3
            continue

        if content.startswith('<!', lt) or content.startswith('<?', lt):
            end = content.find('>', lt + 2)
            if end == -1:
                return
            pos = end + 1
            continue

        match = _TAG_RE.match(content, lt)
        if match:
            closing, name, raw_attrs, self_closing = match.groups()
            name = name.lower()
            if closing:
                yield Token(TokenKind.CLOSE, name=name)
            elif self_closing:
                yield Token(TokenKind.EMPTY, name=name, attrs=_parse_attrs(raw_attrs))
            else:
                yield Token(TokenKind.OPEN, name=name, attrs=_parse_attrs(raw_attrs))
            pos = match.end()
            continue

        yield Token(TokenKind.TEXT, '<')
        pos = lt + 1


def _field_for(token: Token) -> Optional[str]:
    return FIELD_TAGS.get(token.name) or FIELD_TAGS.get(token.local_name)


def _is_item_tag(token: Token) -> bool:
    return token.local_name in ITEM_TAGS


class _ItemBuilder:
    """Accumulates field values for the item currently being read."""

    def __init__(self):
        self.values: Dict[str, str] = {}
        self.href: str = ""

    def commit(self, field_name: str, raw_value: str) -> None:
        # first non-empty occurrence wins
        if raw_value.strip() and not self.values.get(field_name, '').strip():
            self.values[field_name] = raw_value

    @property
    def has_title(self) -> bool:
        return bool(strip_markup(self.values.get('title', '')))

    def build(self) -> FeedItem:
        link = html.unescape(self.values.get('link', '')).strip() or self.href.strip()
        guid = html.unescape(self.values.get('guid', '')).strip()
        return FeedItem(
            title=strip_markup(self.values.get('title', '')),
            description=strip_markup(self.values.get('description', '')),
            link=link or guid,
            pub_date=strip_markup(self.values.get('pub_date', '')),
            guid=guid
        )


class MarkupExtractor:
    """Extracts feed items from loosely structured RSS/Atom markup."""

    def __init__(self, max_items: int = DEFAULT_MAX_ITEMS):
        self.max_items = max_items

    def extract(self, content: Optional[str]) -> List[FeedItem]:
        """
        Extract up to ``max_items`` items from ``content``.

        Args:
            content: Raw feed blob, possibly malformed or empty

        Returns:
            Items in document order; an empty list when nothing is found
        """
        if not content or not content.strip():
            return []

        try:
            items = self._run(content)
        except (ValueError, TypeError, IndexError) as e:
            logger.warning(f"Markup extraction aborted: {e}")
            return []

        logger.debug(f"Extracted {len(items)} items from {len(content)} characters of markup")
        return items

    def _run(self, content: str) -> List[FeedItem]:
        items: List[FeedItem] = []
        state = ParserState.OUTSIDE
        builder: Optional[_ItemBuilder] = None
        field_name = ""
        field_tag = ""
        field_depth = 0
        buffer: List[str] = []

        def finish_item():
            if builder is not None:
                items.append(builder.build())

        for token in tokenize(content):
            if len(items) >= self.max_items:
                break

            if state is ParserState.OUTSIDE:
                if token.kind is TokenKind.OPEN and _is_item_tag(token):
                    builder = _ItemBuilder()
                    state = ParserState.IN_ITEM

            elif state is ParserState.IN_ITEM:
                if token.kind is TokenKind.OPEN and _is_item_tag(token):
                    # previous item never closed
                    if builder.has_title:
                        finish_item()
                    builder = _ItemBuilder()
                elif token.kind is TokenKind.CLOSE and _is_item_tag(token):
                    if builder.has_title:
                        finish_item()
                    builder = None
                    state = ParserState.OUTSIDE
                elif token.kind is TokenKind.EMPTY and token.local_name == 'link':
                    if not builder.href and token.attrs.get('rel', 'alternate') == 'alternate':
                        builder.href = token.attrs.get('href', '')
                elif token.kind is TokenKind.OPEN and _field_for(token):
                    field_name = _field_for(token)
                    field_tag = token.name
                    field_depth = 0
                    buffer = []
                    if field_name == 'link' and token.attrs.get('href') and not builder.href:
                        builder.href = token.attrs['href']
                    state = ParserState.IN_FIELD

            elif state is ParserState.IN_FIELD:
                if token.kind in (TokenKind.TEXT, TokenKind.CDATA):
                    buffer.append(token.value)
                elif token.kind is TokenKind.OPEN:
                    if _is_item_tag(token):
                        builder.commit(field_name, ''.join(buffer))
                        if builder.has_title:
                            finish_item()
                        builder = _ItemBuilder()
                        state = ParserState.IN_ITEM
                    else:
                        field_depth += 1
                        buffer.append(' ')
                elif token.kind is TokenKind.CLOSE:
                    if token.name == field_tag and field_depth == 0:
                        builder.commit(field_name, ''.join(buffer))
                        state = ParserState.IN_ITEM
                    elif _is_item_tag(token):
                        builder.commit(field_name, ''.join(buffer))
                        if builder.has_title:
                            finish_item()
                        builder = None
                        state = ParserState.OUTSIDE
                    elif field_depth > 0:
                        field_depth -= 1
                        buffer.append(' ')
                elif token.kind is TokenKind.EMPTY:
                    buffer.append(' ')

        if len(items) < self.max_items and builder is not None:
            if state is ParserState.IN_FIELD:
                builder.commit(field_name, ''.join(buffer))
            # truncated feed: keep the partial item only if it is usable
            if builder.has_title:
                finish_item()

        return items[:self.max_items]


def extract_items(content: Optional[str], max_items: int = DEFAULT_MAX_ITEMS) -> List[FeedItem]:
    """Convenience wrapper around ``MarkupExtractor``."""
    return MarkupExtractor(max_items=max_items).extract(content)
