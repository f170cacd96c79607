"""Classifiers that separate real ad creative markup from loader noise.

Third-party ad loaders routinely leave stray nodes behind: a bare URL text
node for the script they fetched, or a "Loading..." placeholder that never
gets replaced. These helpers decide which fragments count as creative.

``has_meaningful_content`` is not a pure query: while scanning it removes
the children it classifies as noise from the container. Callers rely on
that cleaning pass, so it stays coupled to the check.
"""

from __future__ import annotations

import re

from bs4 import Tag

from .dom import element_children, inner_html, text_of
from .logging import jlog

URL_ONLY_PATTERNS = (
    re.compile(r"^https?://\S+$", re.IGNORECASE),
    re.compile(r"^//\S+$", re.IGNORECASE),
    re.compile(r"^cdn-fc\.com/creatives/universal/dynamic/\?\S+$", re.IGNORECASE),
    re.compile(r"^distortedwin\.com/\S+$", re.IGNORECASE),
)

# Ad-network URL stems are rejected even with an empty tail when judging whole elements.
INVALID_CONTENT_PATTERNS = (
    re.compile(r"^https?://\S+$", re.IGNORECASE),
    re.compile(r"^//\S+$", re.IGNORECASE),
    re.compile(r"^cdn-fc\.com/creatives/universal/dynamic/\?\S*$", re.IGNORECASE),
    re.compile(r"^distortedwin\.com/\S*$", re.IGNORECASE),
    re.compile(r"^Loading\.\.\.$", re.IGNORECASE),
    re.compile(r"^Ad loading\.\.\.$", re.IGNORECASE),
    re.compile(r"^Please wait\.\.\.$", re.IGNORECASE),
)

PLACEHOLDER_TEXTS = ("Loading...", "Ad loading...", "Please wait...")

# Substrings of the engine's own loading/fallback markup.
LOADING_MARKERS = ("External ad content loading", "Loading advertisement")

MIN_TEXT_LENGTH = 5


def is_url_only(text: str | None) -> bool:
    """True when ``text`` is nothing but a URL (absolute, protocol-relative or ad-network)."""

    if not text or not isinstance(text, str):
        return False
    trimmed = text.strip()
    return any(p.match(trimmed) for p in URL_ONLY_PATTERNS)


def is_invalid_content(element) -> bool:
    """True when the element's text is URL-only or exactly a known placeholder string."""

    trimmed = text_of(element).strip()
    return any(p.match(trimmed) for p in INVALID_CONTENT_PATTERNS)


def contains_loading_marker(html: str) -> bool:
    return any(marker in html for marker in LOADING_MARKERS)


def has_meaningful_content(container: Tag | None) -> bool:
    """Return True if some child of ``container`` looks like real creative.

    Children classified as URL-only or invalid are removed from the
    container during the scan.
    """

    if container is None:
        return False
    children = element_children(container)
    if not children:
        return False

    found = False
    for child in children:
        text = child.get_text()
        if is_url_only(text):
            jlog("info", event="content_removed", reason="url_only", preview=text.strip()[:50])
            child.extract()
            continue
        if is_invalid_content(child):
            jlog("info", event="content_removed", reason="invalid", preview=text.strip()[:50])
            child.extract()
            continue
        html = inner_html(child)
        if html.strip() and not contains_loading_marker(html) and len(text) > MIN_TEXT_LENGTH:
            found = True
    return found


__all__ = [
    "INVALID_CONTENT_PATTERNS",
    "LOADING_MARKERS",
    "MIN_TEXT_LENGTH",
    "PLACEHOLDER_TEXTS",
    "URL_ONLY_PATTERNS",
    "contains_loading_marker",
    "has_meaningful_content",
    "is_invalid_content",
    "is_url_only",
]
