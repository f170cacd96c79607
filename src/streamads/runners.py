"""Script runners: what happens when a slot injects a creative's script tag.

The engine never executes JavaScript itself. A runner receives the freshly
appended ``<script>`` element and inserts whatever the creative rendered
directly in front of it, the way a third-party loader writes its markup
next to its own script in a browser.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Protocol

from bs4 import Tag

from .clock import Scheduler
from .dom import is_attached, parse_fragment
from .logging import jlog
from .sources import AdCreative


class ScriptInjectionError(RuntimeError):
    """The injected creative script failed to load or parse."""


class ScriptRunner(Protocol):
    def run(self, script: Tag, creative: AdCreative) -> None: ...


class NullScriptRunner:
    """Runner for creatives that never render anything."""

    def run(self, script: Tag, creative: AdCreative) -> None:
        return None


class MarkupScriptRunner:
    """Graft pre-rendered markup for each creative in front of its script tag.

    ``delay_ms`` defers the graft on ``scheduler`` to model loaders that
    render asynchronously after injection.
    """

    def __init__(
        self,
        rendered: Mapping[str, str],
        *,
        errors: Mapping[str, str] | None = None,
        scheduler: Scheduler | None = None,
        delay_ms: float = 0,
    ) -> None:
        if delay_ms and scheduler is None:
            raise ValueError("delay_ms requires a scheduler")
        self.rendered = dict(rendered)
        self.errors = dict(errors or {})
        self.scheduler = scheduler
        self.delay_ms = delay_ms

    def run(self, script: Tag, creative: AdCreative) -> None:
        if creative.id in self.errors:
            raise ScriptInjectionError(self.errors[creative.id])
        markup = self.rendered.get(creative.id)
        if markup is None:
            jlog("info", event="no_rendered_markup", creative_id=creative.id)
            return
        if self.delay_ms and self.scheduler is not None:
            self.scheduler.call_later(self.delay_ms, lambda: _graft(script, markup))
        else:
            _graft(script, markup)


def _graft(script: Tag, markup: str) -> None:
    # The slot may have moved on and removed its script already.
    if not is_attached(script):
        return
    for node in parse_fragment(markup):
        script.insert_before(node)


__all__ = ["MarkupScriptRunner", "NullScriptRunner", "ScriptInjectionError", "ScriptRunner"]
