"""VAST ad schedule construction for the video player.

Stored pre/mid/post-roll tags are probed for reachability before they are
handed to the player; unreachable tags are dropped with a logged reason.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

import requests

from .logging import jlog

PROBE_TIMEOUT_S = 5.0
MID_ROLL_OFFSET_SECONDS = 30
DEFAULT_USER_AGENT = "streamads-probe/1.0"


class Roll(str, Enum):
    PRE_ROLL = "preRoll"
    MID_ROLL = "midRoll"
    POST_ROLL = "postRoll"


ROLL_ORDER = (Roll.PRE_ROLL, Roll.MID_ROLL, Roll.POST_ROLL)


@dataclass(frozen=True)
class VastEntry:
    roll: Roll
    tag: str
    mid_roll_offset_seconds: int | None = None

    def to_player(self) -> dict[str, Any]:
        """Entry in the player's ``adList`` shape."""

        out: dict[str, Any] = {"roll": self.roll.value, "vastTag": self.tag}
        if self.mid_roll_offset_seconds is not None:
            out["timer"] = self.mid_roll_offset_seconds
        return out


@dataclass(frozen=True)
class ProbeResult:
    ok: bool
    status: int = 0
    content_type: str | None = None
    error: str | None = None


class Probe(Protocol):
    def __call__(self, url: str) -> ProbeResult: ...


class RequestsProbe:
    """HEAD-based reachability check; only 2xx responses count as reachable."""

    def __init__(
        self,
        session: requests.Session | None = None,
        *,
        timeout: float = PROBE_TIMEOUT_S,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": user_agent})
        self.timeout = timeout

    def __call__(self, url: str) -> ProbeResult:
        try:
            resp = self.session.head(url, timeout=self.timeout, allow_redirects=True)
        except requests.RequestException as exc:
            return ProbeResult(ok=False, error=str(exc) or exc.__class__.__name__)
        ok = 200 <= resp.status_code < 300
        return ProbeResult(
            ok=ok,
            status=resp.status_code,
            content_type=resp.headers.get("content-type"),
            error=None if ok else f"HTTP {resp.status_code}",
        )


def _clean_tag(value: Any) -> str | None:
    if not isinstance(value, str) or not value.strip():
        return None
    return value.strip()


def candidate_entries(settings: Mapping[str, Any] | None) -> list[VastEntry]:
    """Unvalidated entries from the ``vast_ads`` settings document, in roll order."""

    settings = settings or {}
    entries: list[VastEntry] = []
    for roll in ROLL_ORDER:
        tag = _clean_tag(settings.get(roll.value))
        if tag is None:
            continue
        offset = MID_ROLL_OFFSET_SECONDS if roll is Roll.MID_ROLL else None
        entries.append(VastEntry(roll=roll, tag=tag, mid_roll_offset_seconds=offset))

    # Older documents stored a flat ``vastAds`` list; those all play as pre-rolls.
    legacy = settings.get("vastAds")
    if not entries and isinstance(legacy, list):
        for value in legacy:
            tag = _clean_tag(value)
            if tag is not None:
                entries.append(VastEntry(roll=Roll.PRE_ROLL, tag=tag))
    return entries


class VastScheduleBuilder:
    def __init__(self, probe: Probe | None = None) -> None:
        self.probe = probe or RequestsProbe()

    def _safe_probe(self, url: str) -> ProbeResult:
        try:
            return self.probe(url)
        except Exception as exc:
            return ProbeResult(ok=False, error=f"probe_exception: {exc!r}")

    async def build(self, settings: Mapping[str, Any] | None) -> list[VastEntry]:
        """Return reachable entries in insertion order (preRoll, midRoll, postRoll)."""

        entries = candidate_entries(settings)
        if not entries:
            jlog("info", event="vast_no_tags")
            return []

        results = await asyncio.gather(*(asyncio.to_thread(self._safe_probe, e.tag) for e in entries))

        schedule: list[VastEntry] = []
        for entry, result in zip(entries, results):
            if result.ok:
                jlog("info", event="vast_tag_valid", roll=entry.roll.value, tag=entry.tag, status=result.status)
                schedule.append(entry)
            else:
                jlog(
                    "warning",
                    event="vast_tag_dropped",
                    roll=entry.roll.value,
                    tag=entry.tag,
                    status=result.status,
                    reason=result.error,
                )
        if not schedule:
            jlog("info", event="vast_schedule_empty", candidates=len(entries))
        return schedule


__all__ = [
    "MID_ROLL_OFFSET_SECONDS",
    "PROBE_TIMEOUT_S",
    "Probe",
    "ProbeResult",
    "RequestsProbe",
    "Roll",
    "VastEntry",
    "VastScheduleBuilder",
    "candidate_entries",
]
