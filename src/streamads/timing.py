"""Platform detection and the per-platform delay constants for ad slots."""

from __future__ import annotations

import re
from dataclasses import dataclass

MOBILE_UA_RE = re.compile(r"Android|webOS|iPhone|iPad|iPod|BlackBerry|IEMobile|Opera Mini", re.IGNORECASE)
MOBILE_MAX_VIEWPORT = 768

MAX_RETRIES = 3
RECHECK_DELAY_MS = 1000
ROTATION_INTERVAL_MS = 5000


def detect_mobile(user_agent: str | None = None, viewport_width: int | None = None) -> bool:
    if user_agent and MOBILE_UA_RE.search(user_agent):
        return True
    return viewport_width is not None and viewport_width <= MOBILE_MAX_VIEWPORT


@dataclass(frozen=True)
class SlotTiming:
    mobile: bool
    move_delay_ms: int
    check_delay_ms: int
    recheck_delay_ms: int = RECHECK_DELAY_MS
    rotation_interval_ms: int = ROTATION_INTERVAL_MS
    max_retries: int = MAX_RETRIES

    @classmethod
    def for_platform(cls, mobile: bool) -> "SlotTiming":
        if mobile:
            return cls(mobile=True, move_delay_ms=500, check_delay_ms=4000)
        return cls(mobile=False, move_delay_ms=200, check_delay_ms=3000)

    @property
    def retry_move_delay_ms(self) -> int:
        return self.move_delay_ms * 2

    @property
    def retry_check_delay_ms(self) -> int:
        return self.move_delay_ms * 3


__all__ = [
    "MAX_RETRIES",
    "MOBILE_MAX_VIEWPORT",
    "RECHECK_DELAY_MS",
    "ROTATION_INTERVAL_MS",
    "SlotTiming",
    "detect_mobile",
]
