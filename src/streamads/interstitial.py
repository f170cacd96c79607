"""One-shot interstitial overlay gate."""

from __future__ import annotations

from .clock import Scheduler, TimerHandle
from .content import contains_loading_marker
from .controller import AdSlotController, SlotStatus
from .dom import OverlayHandles, add_class, element_children, inner_html, remove_class, set_style
from .logging import jlog

EVALUATE_DELAY_MS = 2000
SHOW_DELAY_MS = 3000


class InterstitialGate:
    """Show the overlay once per page load, only if its slot rendered real creative."""

    def __init__(self, overlay: OverlayHandles, scheduler: Scheduler) -> None:
        self.overlay = overlay
        self.scheduler = scheduler
        self.armed = False
        self.visible = False
        self.decision: bool | None = None
        self._timers: list[TimerHandle] = []
        self._watched: AdSlotController | None = None
        self._settled = False

    def should_show(self, controller: AdSlotController) -> bool:
        creative = controller.creatives[0] if controller.creatives else None
        if creative is None or not creative.is_servable:
            return False
        if controller.status is not SlotStatus.LOADED or controller.fallback_visible:
            return False
        for child in element_children(controller.handles.container):
            html = inner_html(child)
            if html.strip() and not contains_loading_marker(html):
                return True
        return False

    def arm(self, controller: AdSlotController) -> None:
        """Evaluate ``controller`` once after the settle delay; later rotations never re-trigger.

        A slot still mid-cycle when the delay elapses is evaluated as soon as
        it reports a terminal status through ``notify_terminal``, or when it
        rotates away first (``notify_rotation``), which decides against it.
        """

        if self.armed:
            return
        self.armed = True
        self._watched = controller
        self._timers.append(self.scheduler.call_later(EVALUATE_DELAY_MS, self._delay_elapsed))

    def retarget(self, controller: AdSlotController) -> None:
        """Watch a rebuilt slot instead, as long as no decision has been made."""

        if self.decision is not None:
            return
        self._watched = controller
        if self._settled and (controller.terminal or not controller.active):
            self._evaluate(controller)

    def notify_terminal(self, controller: AdSlotController) -> None:
        if self._settled and controller is self._watched:
            self._evaluate(controller)

    def notify_rotation(self, controller: AdSlotController) -> None:
        """A rotation abandons the current cycle; an undecided gate decides on it now."""

        if self._settled and controller is self._watched:
            self._evaluate(controller)

    def _delay_elapsed(self) -> None:
        self._settled = True
        controller = self._watched
        if controller is not None and (controller.terminal or not controller.active):
            self._evaluate(controller)

    def _evaluate(self, controller: AdSlotController) -> None:
        if self.decision is not None:
            return
        self.decision = self.should_show(controller)
        jlog(
            "info",
            event="interstitial_decision",
            position=controller.position,
            show=self.decision,
            status=controller.status.value,
        )
        if self.decision:
            self._timers.append(self.scheduler.call_later(SHOW_DELAY_MS, self.show))

    def show(self) -> None:
        remove_class(self.overlay.overlay, "hidden")
        set_style(self.overlay.overlay, "display", "flex")
        set_style(self.overlay.body, "overflow", "hidden")
        self.visible = True
        jlog("info", event="interstitial_shown")

    def close(self) -> None:
        add_class(self.overlay.overlay, "hidden")
        set_style(self.overlay.overlay, "display", "none")
        set_style(self.overlay.body, "overflow", "auto")
        self.visible = False
        jlog("info", event="interstitial_closed")

    def cancel(self) -> None:
        for timer in self._timers:
            timer.cancel()
        self._timers = []


__all__ = ["EVALUATE_DELAY_MS", "InterstitialGate", "SHOW_DELAY_MS"]
