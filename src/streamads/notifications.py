"""Settings-update notifications over the admin WebSocket channel."""

from __future__ import annotations

import asyncio
import json
import os
import random
from collections.abc import Awaitable, Callable
from typing import Any

import websockets

from .logging import jlog

DEFAULT_NOTIFY_URL = "ws://localhost:3000"
SETTINGS_UPDATE = "settings_update"
RECONNECT_BASE_S = 0.5
RECONNECT_MAX_S = 30.0

UpdateHandler = Callable[[str | None], Awaitable[None] | None]


def default_notify_url() -> str:
    return os.getenv("STREAMADS_NOTIFY_URL", DEFAULT_NOTIFY_URL)


def parse_update(message: str | bytes) -> tuple[bool, str | None]:
    """Return ``(is_settings_update, section)`` for one raw channel message."""

    try:
        data: Any = json.loads(message)
    except (TypeError, ValueError):
        return False, None
    if not isinstance(data, dict) or data.get("type") != SETTINGS_UPDATE:
        return False, None
    section = data.get("section")
    return True, section if isinstance(section, str) else None


async def _dispatch(on_update: UpdateHandler, section: str | None) -> None:
    result = on_update(section)
    if asyncio.iscoroutine(result):
        await result


async def consume(websocket, on_update: UpdateHandler) -> int:
    """Feed every settings update from an open connection to ``on_update``; returns the count."""

    handled = 0
    async for message in websocket:
        is_update, section = parse_update(message)
        if not is_update:
            continue
        jlog("info", event="settings_update_received", section=section)
        await _dispatch(on_update, section)
        handled += 1
    return handled


async def watch_settings(
    on_update: UpdateHandler,
    url: str | None = None,
    *,
    max_reconnects: int | None = None,
    base_delay_s: float = RECONNECT_BASE_S,
) -> None:
    """Listen for settings updates, reconnecting with exponential backoff."""

    url = url or default_notify_url()
    attempt = 0
    while True:
        try:
            async with websockets.connect(url, ping_interval=20, ping_timeout=20) as ws:
                jlog("info", event="notify_connected", url=url)
                attempt = 0
                await consume(ws, on_update)
        except (OSError, websockets.WebSocketException) as exc:
            jlog("warning", event="notify_connection_lost", url=url, error=str(exc))
        if max_reconnects is not None and attempt >= max_reconnects:
            jlog("warning", event="notify_giving_up", url=url, attempts=attempt)
            return
        delay = min(RECONNECT_MAX_S, base_delay_s * (2**attempt)) + random.uniform(0, 0.3)
        jlog("info", event="notify_reconnect_backoff", attempt=attempt + 1, delay_s=round(delay, 3))
        await asyncio.sleep(delay)
        attempt += 1


__all__ = ["SETTINGS_UPDATE", "consume", "default_notify_url", "parse_update", "watch_settings"]
