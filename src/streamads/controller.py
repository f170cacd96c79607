"""Ad slot controller: inject, validate, retry, fall back, rotate.

One ``AdSlotController`` owns one page slot. Its lifecycle is a bounded
retry state machine driven entirely by scheduled callbacks:

    IDLE -> LOADING -> VALIDATING -> (retry) -> LOADED | FALLBACK

``show_ad`` is a fresh entry into LOADING and cancels every pending slot
timer first, so at most one load check per slot is ever pending. The
rotation timer is separate and keeps running until ``stop``.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum

from bs4 import Tag
from bs4.element import Script

from .clock import Scheduler, TimerHandle
from .content import has_meaningful_content, is_invalid_content, is_url_only
from .debug import dump_slot_html
from .dom import SlotHandles, element_children, is_attached, is_displayed, new_element, parse_fragment, set_style
from .logging import slotlog
from .runners import ScriptInjectionError, ScriptRunner
from .sources import AdCreative, has_servable
from .timing import SlotTiming


class SlotStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    VALIDATING = "validating"
    LOADED = "loaded"
    FALLBACK = "fallback"


TERMINAL_STATUSES = frozenset({SlotStatus.LOADED, SlotStatus.FALLBACK})

FALLBACK_HTML = (
    '<h4 style="margin: 0 0 10px 0;">Advertisement</h4>'
    '<p style="margin: 0; font-size: 14px;">{message}</p>'
)
LOADING_HTML = (
    '<div style="text-align: center; padding: 20px;">'
    '<div class="ad-spinner"></div>'
    '<p style="margin: 0; font-size: 14px;">Loading advertisement...</p>'
    "</div>"
)


@dataclass
class SlotState:
    current_index: int = 0
    retry_count: int = 0
    status: SlotStatus = SlotStatus.IDLE


class AdSlotController:
    def __init__(
        self,
        handles: SlotHandles,
        creatives: Sequence[AdCreative],
        *,
        scheduler: Scheduler,
        runner: ScriptRunner,
        mobile: bool = False,
        on_terminal: Callable[["AdSlotController"], None] | None = None,
        on_rotate: Callable[["AdSlotController"], None] | None = None,
        debug_html: bool = False,
    ) -> None:
        self.position = handles.position
        self.handles = handles
        self.creatives = tuple(creatives)
        self.scheduler = scheduler
        self.runner = runner
        self.timing = SlotTiming.for_platform(mobile)
        self.state = SlotState()
        self.on_terminal = on_terminal
        self.on_rotate = on_rotate
        self.rotations = 0
        self.debug_html = debug_html
        self._pending: list[TimerHandle] = []
        self._rotation: TimerHandle | None = None
        self._marker: Tag | None = None
        self._script: Tag | None = None

        self.active = has_servable(self.creatives)
        if not self.active:
            # Leave the slot alone so other renderers (e.g. a VAST overlay) can use it.
            slotlog("slot_skipped", position=self.position, reason="no_servable_creatives")
            if handles.fallback is not None:
                set_style(handles.fallback, "display", "none")
            return

        slotlog("slot_activate", position=self.position, creatives=len(self.creatives), mobile=mobile)
        self._create_dots()
        self.show_ad(0)
        if len(self.creatives) > 1:
            self._arm_rotation()

    # ------------------------------------------------------------------
    # Public surface
    # ------------------------------------------------------------------

    @property
    def status(self) -> SlotStatus:
        return self.state.status

    @property
    def terminal(self) -> bool:
        return self.state.status in TERMINAL_STATUSES

    @property
    def current_creative(self) -> AdCreative | None:
        if not self.creatives:
            return None
        return self.creatives[self.state.current_index]

    @property
    def fallback_visible(self) -> bool:
        return self.handles.fallback is not None and is_displayed(self.handles.fallback)

    def show_ad(self, index: int = 0) -> None:
        """Inject creative ``index`` and start a fresh load/validate cycle."""

        if not self.creatives:
            return
        index %= len(self.creatives)
        creative = self.creatives[index]

        self._cancel_pending()
        self._discard_injection()
        self.state.current_index = index
        self.state.retry_count = 0
        self._set_status(SlotStatus.LOADING)

        container = self.handles.container
        container.clear()
        self._hide_fallback()
        if self.timing.mobile:
            self._show_loading_indicator()

        marker = new_element("div", {"id": f"ad-marker-{creative.id}", "style": "display: none"})
        script = new_element("script", {"data-slot": self.position, "data-creative": creative.id})
        script.string = Script(creative.script_body)
        if self.timing.mobile:
            script["data-mobile"] = "true"
            script["data-viewport"] = "mobile"
            script["data-device"] = "mobile"
        self.handles.body.append(marker)
        self.handles.body.append(script)
        self._marker, self._script = marker, script
        self._update_dots()

        slotlog("ad_inject", position=self.position, creative_id=creative.id, index=index)
        try:
            self.runner.run(script, creative)
        except ScriptInjectionError as exc:
            slotlog("script_error", position=self.position, creative_id=creative.id, level="error", error=str(exc))
            self._discard_injection()
            self._show_fallback(reason="script_error")
            return

        self._schedule(self.timing.move_delay_ms, self._move_content)
        self._schedule(self.timing.check_delay_ms, self._check_load)

    def next_ad(self) -> None:
        if not self.creatives:
            return
        self.show_ad((self.state.current_index + 1) % len(self.creatives))

    def stop(self) -> None:
        """Cancel every timer this slot owns, rotation included."""

        self._cancel_pending()
        if self._rotation is not None:
            self._rotation.cancel()
            self._rotation = None
        self._discard_injection()
        slotlog("slot_stopped", position=self.position, status=self.state.status.value)

    # ------------------------------------------------------------------
    # Lifecycle steps
    # ------------------------------------------------------------------

    def _move_content(self) -> None:
        """Re-parent what the script rendered between marker and script into the container."""

        marker, script = self._marker, self._script
        creative_id = self.current_creative.id if self.current_creative else None
        if marker is not None and is_attached(marker):
            moved = 0
            node = marker.next_sibling
            while node is not None and node is not script:
                current, node = node, node.next_sibling
                if not isinstance(current, Tag):
                    continue
                if is_url_only(current.get_text()):
                    slotlog("url_only_skipped", position=self.position, creative_id=creative_id)
                    continue
                if self.timing.mobile and is_invalid_content(current):
                    slotlog("invalid_content_skipped", position=self.position, creative_id=creative_id)
                    continue
                self.handles.container.append(current)
                moved += 1
            marker.extract()
            if moved and self.timing.mobile:
                self._hide_loading_indicator()
            slotlog("content_moved", position=self.position, creative_id=creative_id, moved=moved)
        if script is not None and is_attached(script):
            script.extract()

    def _check_load(self) -> None:
        self._set_status(SlotStatus.VALIDATING)
        container = self.handles.container
        creative_id = self.current_creative.id if self.current_creative else None
        max_retries = self.timing.max_retries

        if not self._content_children():
            self.state.retry_count = min(self.state.retry_count + 1, max_retries)
            if self.state.retry_count < max_retries:
                slotlog("retry_load", position=self.position, creative_id=creative_id, attempt=self.state.retry_count)
                self._set_status(SlotStatus.LOADING)
                self._schedule(self.timing.retry_move_delay_ms, self._move_content)
                self._schedule(self.timing.retry_check_delay_ms, self._check_load)
            else:
                self._show_fallback(reason="empty")
            return

        if has_meaningful_content(container):
            self.state.retry_count = 0
            self._hide_loading_indicator()
            self._hide_fallback()
            self._set_status(SlotStatus.LOADED)
            slotlog("slot_loaded", position=self.position, creative_id=creative_id)
            self._notify_terminal()
            return

        if self.state.retry_count >= max_retries:
            self._show_fallback(reason="invalid_content")
            return
        self.state.retry_count += 1
        slotlog("retry_validate", position=self.position, creative_id=creative_id, attempt=self.state.retry_count)
        self._schedule(self.timing.recheck_delay_ms, self._check_load)

    def _show_fallback(self, *, reason: str) -> None:
        self._cancel_pending()
        self._hide_loading_indicator()
        fallback = self.handles.fallback
        if fallback is not None:
            if element_children(self.handles.container):
                set_style(fallback, "display", "none")
            else:
                message = "Mobile ad content loading..." if self.timing.mobile else "External ad content loading..."
                fallback.clear()
                for node in parse_fragment(FALLBACK_HTML.format(message=message)):
                    fallback.append(node)
                set_style(fallback, "display", "block")
        self._set_status(SlotStatus.FALLBACK)
        slotlog(
            "slot_fallback",
            position=self.position,
            creative_id=self.current_creative.id if self.current_creative else None,
            level="warning",
            reason=reason,
            retries=self.state.retry_count,
        )
        if self.debug_html:
            dump_slot_html(self.handles)
        self._notify_terminal()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _set_status(self, status: SlotStatus) -> None:
        self.state.status = status

    def _notify_terminal(self) -> None:
        if self.on_terminal is not None:
            self.on_terminal(self)

    def _schedule(self, delay_ms: float, callback: Callable[[], None]) -> None:
        self._pending = [h for h in self._pending if h.pending]
        self._pending.append(self.scheduler.call_later(delay_ms, callback))

    def _cancel_pending(self) -> None:
        for handle in self._pending:
            handle.cancel()
        self._pending = []

    def _discard_injection(self) -> None:
        for tag in (self._marker, self._script):
            if tag is not None and is_attached(tag):
                tag.extract()
        self._marker = self._script = None

    def _arm_rotation(self) -> None:
        self._rotation = self.scheduler.call_later(self.timing.rotation_interval_ms, self._rotate)

    def _rotate(self) -> None:
        self._arm_rotation()
        self.rotations += 1
        if self.on_rotate is not None:
            self.on_rotate(self)
        self.next_ad()

    def _hide_fallback(self) -> None:
        if self.handles.fallback is not None:
            set_style(self.handles.fallback, "display", "none")

    def _loading_id(self) -> str:
        return f"{self.position}-loading"

    def _content_children(self) -> list[Tag]:
        """Container elements other than the loading indicator."""

        loading_id = self._loading_id()
        return [child for child in element_children(self.handles.container) if child.get("id") != loading_id]

    def _show_loading_indicator(self) -> None:
        indicator = new_element("div", {"id": self._loading_id()})
        for node in parse_fragment(LOADING_HTML):
            indicator.append(node)
        self.handles.container.append(indicator)

    def _hide_loading_indicator(self) -> None:
        indicator = self.handles.container.find(id=self._loading_id())
        if isinstance(indicator, Tag):
            indicator.extract()

    def _create_dots(self) -> None:
        dots = self.handles.dots
        if dots is None or len(self.creatives) <= 1:
            return
        dots.clear()
        for index in range(len(self.creatives)):
            state = "active" if index == 0 else "inactive"
            dots.append(new_element("button", {"class": f"ad-dot {state}", "data-index": str(index)}))

    def _update_dots(self) -> None:
        dots = self.handles.dots
        if dots is None:
            return
        for dot in dots.find_all("button"):
            index = int(dot.get("data-index", -1))
            state = "active" if index == self.state.current_index else "inactive"
            dot["class"] = ["ad-dot", state]


__all__ = ["AdSlotController", "SlotState", "SlotStatus", "TERMINAL_STATUSES"]
