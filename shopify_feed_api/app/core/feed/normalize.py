"""
Text normalization for feed fields.

Shopify descriptions are HTML and frequently contain entities such as ``&nbsp;``
which are not valid XML entities. Everything that ends up in the feed goes
through these helpers first; ElementTree escapes ``&``, ``<`` and ``>`` itself.
"""

import re
from typing import Optional


ELLIPSIS = '...'
DEFAULT_DESCRIPTION_LIMIT = 320

_ENTITIES = {
    'nbsp': ' ',
    'amp': '&',
    'quot': '"',
    'apos': "'",
    'lt': '<',
    'gt': '>',
}
_ENTITY_RE = re.compile(r'&(nbsp|amp|quot|apos|lt|gt);', re.IGNORECASE)
_WHITESPACE_RE = re.compile(r'\s+')
# XML 1.0 forbids C0 controls other than tab, LF and CR
_CONTROL_RE = re.compile(r'[\x00-\x08\x0b\x0c\x0e-\x1f]')
# An unclosed block runs to the end of the input
_SCRIPT_RE = re.compile(r'<script\b[\s\S]*?(?:</script\s*>|\Z)', re.IGNORECASE)
_STYLE_RE = re.compile(r'<style\b[\s\S]*?(?:</style\s*>|\Z)', re.IGNORECASE)
_TAG_RE = re.compile(r'<[^>]+>')


def decode_entities(text: Optional[str]) -> str:
    """Decode the handful of HTML entities Shopify emits; leave anything else alone."""
    if not text:
        return ''
    return _ENTITY_RE.sub(lambda m: _ENTITIES[m.group(1).lower()], str(text))


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE_RE.sub(' ', text).strip()


def to_xml_safe_text(text: Optional[str]) -> str:
    """
    Make text safe for XML building.

    Decodes known entities, drops XML-illegal control characters,
    collapses whitespace runs (newlines and tabs included) and trims.
    """
    if not text:
        return ''
    decoded = _CONTROL_RE.sub('', decode_entities(text))
    return collapse_whitespace(decoded)


def strip_markup(html: Optional[str]) -> str:
    """Strip script/style blocks (with their content) and all remaining tags, returning plain text."""
    if not html:
        return ''
    text = _SCRIPT_RE.sub(' ', str(html))
    text = _STYLE_RE.sub(' ', text)
    text = _TAG_RE.sub(' ', text)
    return collapse_whitespace(text)


def truncate_description(text: str, limit: int = DEFAULT_DESCRIPTION_LIMIT) -> str:
    """Cut text to ``limit`` characters, ending with an ellipsis when shortened."""
    if len(text) <= limit:
        return text
    return text[:max(limit - len(ELLIPSIS), 0)] + ELLIPSIS


def clean_description(html: Optional[str], limit: int = DEFAULT_DESCRIPTION_LIMIT) -> str:
    """HTML description -> plain, XML-safe, truncated text."""
    return truncate_description(to_xml_safe_text(strip_markup(html)), limit)
