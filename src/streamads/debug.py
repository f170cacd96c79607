"""Debug artifact helpers for slot and page snapshots."""

from __future__ import annotations

import os

from bs4 import BeautifulSoup

from .dom import SlotHandles
from .logging import jlog

DEBUG_DIR = "media/debug"


def ensure_debug_dir() -> str:
    """Create the debug directory if it does not exist and return the path."""

    try:
        os.makedirs(DEBUG_DIR, exist_ok=True)
    except OSError:
        pass
    return DEBUG_DIR


def _write(filename: str, html: str) -> str:
    path = os.path.join(ensure_debug_dir(), filename)
    with open(path, "w", encoding="utf-8") as fh:
        fh.write(html)
    return path


def dump_page_html(soup: BeautifulSoup, label: str) -> str | None:
    """Persist the current page HTML for later debugging (best effort)."""

    try:
        return _write(f"page_{label}.html", soup.decode())
    except OSError as exc:  # pragma: no cover - logging only
        jlog("error", event="debug_save_page_error", label=label, error=str(exc))
        return None


def dump_slot_html(handles: SlotHandles) -> str | None:
    """Persist a slot's container and fallback markup (best effort)."""

    parts = [handles.container.decode()]
    if handles.fallback is not None:
        parts.append(handles.fallback.decode())
    try:
        return _write(f"slot_{handles.position}.html", "\n".join(parts))
    except OSError as exc:  # pragma: no cover - logging only
        jlog("error", event="debug_save_slot_error", position=handles.position, error=str(exc))
        return None


__all__ = ["DEBUG_DIR", "dump_page_html", "dump_slot_html", "ensure_debug_dir"]
