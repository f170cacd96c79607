"""Page-level wiring: one controller per slot plus the interstitial gate."""

from __future__ import annotations

from bs4 import BeautifulSoup

from .clock import Scheduler
from .controller import AdSlotController, SlotStatus
from .dom import overlay_handles, slot_handles
from .interstitial import InterstitialGate
from .logging import jlog
from .runners import ScriptRunner
from .sources import SLOT_POSITIONS, SlotAdSource

INTERSTITIAL_POSITION = "interstitial"


class AdPage:
    """Owns every slot controller of one page load.

    ``rebuild`` is the reaction to a settings update: all controllers are
    stopped and reconstructed from ``IDLE``. The interstitial gate is armed
    on the first ``load`` only.
    """

    def __init__(
        self,
        document: BeautifulSoup,
        scheduler: Scheduler,
        runner: ScriptRunner,
        *,
        mobile: bool = False,
        interstitial_position: str | None = INTERSTITIAL_POSITION,
        positions: tuple[str, ...] = SLOT_POSITIONS,
        debug_html: bool = False,
    ) -> None:
        self.document = document
        self.scheduler = scheduler
        self.runner = runner
        self.mobile = mobile
        self.interstitial_position = interstitial_position
        self.positions = positions
        self.debug_html = debug_html
        self.controllers: dict[str, AdSlotController] = {}
        self.gate: InterstitialGate | None = None
        self.loads = 0

    def load(self, source: SlotAdSource) -> None:
        self._construct(source)
        self.loads += 1
        if self.loads == 1:
            self._arm_gate()

    def rebuild(self, source: SlotAdSource) -> None:
        jlog("info", event="page_rebuild", previous=self.outcomes())
        self.stop()
        self._construct(source)
        self.loads += 1
        replacement = self.controllers.get(self.interstitial_position or "")
        if self.gate is not None and self.gate.decision is None and replacement is not None:
            self.gate.retarget(replacement)

    def stop(self) -> None:
        for controller in self.controllers.values():
            controller.stop()
        self.controllers = {}

    def outcomes(self) -> dict[str, str]:
        return {pos: c.status.value for pos, c in self.controllers.items()}

    @property
    def settled(self) -> bool:
        """True once every active slot has reached a terminal status or rotated past its first cycle."""

        return all(c.terminal or c.rotations > 0 for c in self.controllers.values() if c.active)

    def _construct(self, source: SlotAdSource) -> None:
        for position in self.positions:
            handles = slot_handles(self.document, position)
            if handles is None:
                jlog("warning", event="slot_missing", position=position)
                continue
            self.controllers[position] = AdSlotController(
                handles,
                source.creatives(position),
                scheduler=self.scheduler,
                runner=self.runner,
                mobile=self.mobile,
                on_terminal=self._slot_terminal,
                on_rotate=self._slot_rotating,
                debug_html=self.debug_html,
            )

    def _slot_terminal(self, controller: AdSlotController) -> None:
        if self.gate is not None:
            self.gate.notify_terminal(controller)

    def _slot_rotating(self, controller: AdSlotController) -> None:
        if self.gate is not None:
            self.gate.notify_rotation(controller)

    def _arm_gate(self) -> None:
        if self.interstitial_position is None:
            return
        controller = self.controllers.get(self.interstitial_position)
        overlay = overlay_handles(self.document)
        if controller is None or overlay is None:
            jlog("info", event="interstitial_unavailable", position=self.interstitial_position)
            return
        if controller.status is SlotStatus.IDLE:
            jlog("info", event="interstitial_skipped", reason="no_servable_creatives")
            return
        self.gate = InterstitialGate(overlay, self.scheduler)
        self.gate.arm(controller)


__all__ = ["AdPage", "INTERSTITIAL_POSITION"]
