"""Document helpers for the BeautifulSoup page model used by the ad slots."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from bs4 import BeautifulSoup, Tag

HTML_PARSER = "html.parser"
OVERLAY_ID = "interstitialAdOverlay"
CLOSE_BUTTON_ID = "closeInterstitialBtn"

_SLOT_TEMPLATE = """
<div class="ad-banner" id="{pos}-ad-banner">
  <div class="ad-content" id="{pos}-ad-content"></div>
  <div class="ad-fallback" id="{pos}-ad-fallback" style="display: block"><p>Advertisement</p></div>
  <div class="ad-dots" id="{pos}-ad-dots"></div>
</div>
"""

_FACTORY = BeautifulSoup("", HTML_PARSER)

_OVERLAY_TEMPLATE = """
<div class="interstitial-overlay hidden" id="{overlay_id}" style="display: none">
  <button class="interstitial-close" id="{close_id}" type="button">&times;</button>
  {slot}
</div>
"""


@dataclass(frozen=True)
class SlotHandles:
    """Explicit element references for one slot, resolved once by the page."""

    position: str
    container: Tag
    body: Tag
    fallback: Tag | None = None
    dots: Tag | None = None


@dataclass(frozen=True)
class OverlayHandles:
    overlay: Tag
    body: Tag
    close_button: Tag | None = None


def parse_page(markup: str) -> BeautifulSoup:
    return BeautifulSoup(markup, HTML_PARSER)


def new_element(name: str, attrs: dict[str, str] | None = None) -> Tag:
    """Create a detached element that can be inserted into any page."""

    return _FACTORY.new_tag(name, attrs=dict(attrs or {}))


def parse_fragment(markup: str) -> list:
    """Parse markup and return its top-level nodes detached from the scratch tree."""

    scratch = BeautifulSoup(markup or "", HTML_PARSER)
    return [node.extract() for node in list(scratch.contents)]


def skeleton_page(positions: Iterable[str], *, overlay_position: str | None = "interstitial") -> BeautifulSoup:
    """Return a minimal page carrying the slot and overlay elements the engine expects."""

    parts: list[str] = []
    for pos in positions:
        slot = _SLOT_TEMPLATE.format(pos=pos)
        if pos == overlay_position:
            slot = _OVERLAY_TEMPLATE.format(overlay_id=OVERLAY_ID, close_id=CLOSE_BUTTON_ID, slot=slot)
        parts.append(slot)
    body = "".join(parts)
    return parse_page(f"<html><head></head><body style=\"overflow: auto\">{body}</body></html>")


def page_body(soup: BeautifulSoup) -> Tag:
    body = soup.body
    if body is None:
        raise ValueError("document has no <body>")
    return body


def slot_handles(soup: BeautifulSoup, position: str) -> SlotHandles | None:
    """Resolve a slot's elements by their conventional ids; ``None`` if the page has no container."""

    container = soup.find(id=f"{position}-ad-content")
    if not isinstance(container, Tag):
        return None
    fallback = soup.find(id=f"{position}-ad-fallback")
    dots = soup.find(id=f"{position}-ad-dots")
    return SlotHandles(
        position=position,
        container=container,
        body=page_body(soup),
        fallback=fallback if isinstance(fallback, Tag) else None,
        dots=dots if isinstance(dots, Tag) else None,
    )


def overlay_handles(soup: BeautifulSoup) -> OverlayHandles | None:
    overlay = soup.find(id=OVERLAY_ID)
    if not isinstance(overlay, Tag):
        return None
    close_button = soup.find(id=CLOSE_BUTTON_ID)
    return OverlayHandles(
        overlay=overlay,
        body=page_body(soup),
        close_button=close_button if isinstance(close_button, Tag) else None,
    )


def element_children(tag: Tag) -> list[Tag]:
    return [child for child in tag.children if isinstance(child, Tag)]


def inner_html(tag: Tag) -> str:
    return tag.decode_contents()


def text_of(node) -> str:
    if isinstance(node, Tag):
        return node.get_text()
    return str(node or "")


def is_attached(tag: Tag | None) -> bool:
    return tag is not None and tag.parent is not None


def _parse_style(value: str | None) -> dict[str, str]:
    out: dict[str, str] = {}
    for decl in (value or "").split(";"):
        if ":" not in decl:
            continue
        prop, _, val = decl.partition(":")
        prop = prop.strip().lower()
        if prop:
            out[prop] = val.strip()
    return out


def get_style(tag: Tag, prop: str) -> str | None:
    return _parse_style(tag.get("style")).get(prop.lower())


def set_style(tag: Tag, prop: str, value: str) -> None:
    styles = _parse_style(tag.get("style"))
    styles[prop.lower()] = value
    tag["style"] = "; ".join(f"{k}: {v}" for k, v in styles.items())


def is_displayed(tag: Tag | None) -> bool:
    return tag is not None and get_style(tag, "display") != "none"


def _classes(tag: Tag) -> list[str]:
    value = tag.get("class") or []
    if isinstance(value, str):
        value = value.split()
    return list(value)


def has_class(tag: Tag, name: str) -> bool:
    return name in _classes(tag)


def add_class(tag: Tag, name: str) -> None:
    classes = _classes(tag)
    if name not in classes:
        classes.append(name)
    tag["class"] = classes


def remove_class(tag: Tag, name: str) -> None:
    tag["class"] = [c for c in _classes(tag) if c != name]


__all__ = [
    "CLOSE_BUTTON_ID",
    "HTML_PARSER",
    "OVERLAY_ID",
    "OverlayHandles",
    "SlotHandles",
    "add_class",
    "element_children",
    "get_style",
    "has_class",
    "inner_html",
    "is_attached",
    "is_displayed",
    "new_element",
    "overlay_handles",
    "page_body",
    "parse_fragment",
    "parse_page",
    "remove_class",
    "set_style",
    "skeleton_page",
    "slot_handles",
    "text_of",
]
