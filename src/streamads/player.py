"""Video player configuration built around the validated VAST schedule."""

from __future__ import annotations

from collections import OrderedDict
from collections.abc import Callable, Sequence
from typing import Any, OrderedDict as OrderedDictType

from .logging import jlog
from .vast import VastEntry

PRIMARY_COLOR = "#3b82f6"
VAST_TIMEOUT_MS = 10_000
VAST_LOAD_TIMEOUT_MS = 8_000
MAX_VAST_REDIRECTS = 5
VPAID_FLASH_LOADER = "https://www.fluidplayer.com/vast/VPAIDFlash.swf"


def build_player_config(schedule: Sequence[VastEntry] | None = None) -> OrderedDictType[str, Any]:
    """Return playback config; the ``vastOptions`` block is present only for a non-empty schedule."""

    cfg: OrderedDictType[str, Any] = OrderedDict()
    cfg["layoutControls"] = {"primaryColor": PRIMARY_COLOR, "fillToContainer": True, "posterImage": ""}
    cfg["responsive"] = True
    if schedule:
        cfg["vastOptions"] = {
            "adList": [entry.to_player() for entry in schedule],
            "autoplay": False,
            "playAdAlways": False,
            "vpaidFlashLoaderPath": VPAID_FLASH_LOADER,
            "timeout": VAST_TIMEOUT_MS,
            "maxAllowedVastTagRedirects": MAX_VAST_REDIRECTS,
            "vastLoadTimeout": VAST_LOAD_TIMEOUT_MS,
        }
    return cfg


def _init_without_ads(init: Callable[[OrderedDictType[str, Any]], Any], *, fallback: bool) -> Any:
    jlog("info", event="player_init", path="no_ads_configured", fallback=fallback)
    try:
        return init(build_player_config(None))
    except Exception as exc:
        jlog("error", event="player_init_failed", fallback=fallback, error=repr(exc))
        return None


def initialize_player(init: Callable[[OrderedDictType[str, Any]], Any], schedule: Sequence[VastEntry] | None) -> Any:
    """Initialise the player, with ads only when the schedule has entries.

    If initialisation with ads fails, one more attempt is made without them.
    A failure without ads is logged and yields ``None``.
    """

    if not schedule:
        return _init_without_ads(init, fallback=False)

    jlog("info", event="player_init", path="ads_configured", ads=len(schedule))
    try:
        return init(build_player_config(schedule))
    except Exception as exc:
        jlog("warning", event="player_init_with_ads_failed", error=repr(exc))
    return _init_without_ads(init, fallback=True)


__all__ = ["build_player_config", "initialize_player"]
