"""Per-slot creative lists built from the banner-ad settings."""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

SLOT_POSITIONS = ("top", "middle", "bottom", "header", "sidebar", "footer", "interstitial")

# Stock loader snippets shipped as defaults; they never render real creative.
PLACEHOLDER_SCRIPT_MARKERS = (
    "header-ad-script",
    "sidebar-ad-script",
    "footer-ad-script",
    "interstitial-ad-script",
)

_SCRIPT_WRAPPER_RE = re.compile(r"<script>|</script>")


@dataclass(frozen=True)
class AdCreative:
    id: str
    payload: str
    width: str = "100%"
    height: str = "auto"

    @property
    def is_placeholder(self) -> bool:
        return any(marker in self.payload for marker in PLACEHOLDER_SCRIPT_MARKERS)

    @property
    def is_servable(self) -> bool:
        return bool(self.payload and self.payload.strip()) and not self.is_placeholder

    @property
    def script_body(self) -> str:
        """Payload with the literal ``<script>`` wrappers stripped, ready for an inline script tag."""
        return _SCRIPT_WRAPPER_RE.sub("", self.payload)


def has_servable(creatives: Iterable[AdCreative]) -> bool:
    return any(c.is_servable for c in creatives)


def _payloads(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple)):
        return [v for v in value if isinstance(v, str)]
    return []


@dataclass(frozen=True)
class SlotAdSource:
    """Ordered creatives per slot position; populated once per page load."""

    slots: Mapping[str, tuple[AdCreative, ...]] = field(default_factory=dict)

    @classmethod
    def from_banner_settings(cls, settings: Mapping[str, Any] | None) -> "SlotAdSource":
        """Build from the ``banner_ads`` settings document (position -> payload or list of payloads)."""

        settings = settings or {}
        slots: dict[str, tuple[AdCreative, ...]] = {}
        for position in SLOT_POSITIONS:
            height = "100%" if position == "interstitial" else "auto"
            creatives = [
                AdCreative(id=f"{position}-{n}", payload=payload, height=height)
                for n, payload in enumerate(_payloads(settings.get(position)), start=1)
            ]
            slots[position] = tuple(creatives)
        return cls(slots=slots)

    def creatives(self, position: str) -> tuple[AdCreative, ...]:
        return tuple(self.slots.get(position, ()))

    def has_servable(self, position: str) -> bool:
        return has_servable(self.creatives(position))

    def configured_positions(self) -> list[str]:
        return [p for p in SLOT_POSITIONS if self.has_servable(p)]


__all__ = [
    "AdCreative",
    "PLACEHOLDER_SCRIPT_MARKERS",
    "SLOT_POSITIONS",
    "SlotAdSource",
    "has_servable",
]
