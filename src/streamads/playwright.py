"""Playwright helpers: render creative payloads in headless Chromium.

The rendered markup feeds :class:`streamads.runners.MarkupScriptRunner`, so
slots can be exercised against what a third-party loader actually writes.
"""

from __future__ import annotations

import os
from collections.abc import Iterable
from dataclasses import dataclass

from playwright.async_api import BrowserContext, Page, async_playwright
from playwright.async_api import Error as PlaywrightError

from .debug import ensure_debug_dir
from .logging import jlog
from .runners import MarkupScriptRunner
from .sources import AdCreative

DEFAULT_SETTLE_MS = 3000
DEFAULT_PAGE_TIMEOUT_MS = 30_000
DESKTOP_VIEWPORT = {"width": 1280, "height": 800}
MOBILE_VIEWPORT = {"width": 390, "height": 844}
CREATIVE_ROOT_ID = "creative-root"
# Protocol-relative loader URLs resolve against this base.
HOST_BASE_URL = "https://localhost/"

_HOST_PAGE = '<!doctype html><html><head><base href="{base}"></head><body><div id="{root}">{payload}</div></body></html>'

_EXTRACT_JS = """
(rootId) => {
    const root = document.getElementById(rootId);
    if (!root) return '';
    const clone = root.cloneNode(true);
    clone.querySelectorAll('script').forEach((s) => s.remove());
    return clone.innerHTML;
}
"""

CHROMIUM_LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-dev-shm-usage",
    "--disable-setuid-sandbox",
    "--disable-gpu",
    "--single-process",
    "--no-zygote",
]


@dataclass(frozen=True)
class RenderedCreative:
    creative_id: str
    html: str | None
    error: str | None = None


async def wait_assets_ready(page: Page) -> None:
    """Wait for fonts and images to settle before reading the DOM."""

    try:
        await page.evaluate(
            """
            () => Promise.all([
                (document.fonts && document.fonts.ready) ? document.fonts.ready : Promise.resolve(),
                Promise.all(
                    Array.from(document.images || []).map(img => {
                        if (img.complete) return Promise.resolve();
                        return new Promise(res => {
                            img.addEventListener('load', () => res(), { once: true });
                            img.addEventListener('error', () => res(), { once: true });
                        });
                    })
                )
            ])
            """
        )
    except PlaywrightError:
        pass


async def cleanup_playwright(context, browser, trace: bool, label: str) -> None:
    """Stop tracing (if enabled) and close the browser resources."""

    try:
        if trace and context:
            await context.tracing.stop(path=os.path.join(ensure_debug_dir(), f"trace_{label}.zip"))
    except PlaywrightError:
        pass
    try:
        if context:
            await context.close()
    except PlaywrightError:
        pass
    try:
        if browser:
            await browser.close()
    except PlaywrightError:
        pass


async def _render_one(context: BrowserContext, creative: AdCreative, settle_ms: int, page_timeout_ms: int) -> RenderedCreative:
    page = await context.new_page()
    page_errors: list[str] = []
    page.on("pageerror", lambda exc: page_errors.append(str(exc)))
    try:
        await page.set_content(
            _HOST_PAGE.format(base=HOST_BASE_URL, root=CREATIVE_ROOT_ID, payload=creative.payload),
            wait_until="domcontentloaded",
            timeout=page_timeout_ms,
        )
        await page.wait_for_timeout(settle_ms)
        await wait_assets_ready(page)
        html = await page.evaluate(_EXTRACT_JS, CREATIVE_ROOT_ID)
    except PlaywrightError as exc:
        return RenderedCreative(creative_id=creative.id, html=None, error=str(exc))
    finally:
        await page.close()

    if page_errors and not (html or "").strip():
        return RenderedCreative(creative_id=creative.id, html=None, error=page_errors[0])
    return RenderedCreative(creative_id=creative.id, html=html or "")


async def render_creatives(
    creatives: Iterable[AdCreative],
    *,
    user_agent: str | None = None,
    mobile: bool = False,
    settle_ms: int = DEFAULT_SETTLE_MS,
    page_timeout_ms: int = DEFAULT_PAGE_TIMEOUT_MS,
    trace: bool = False,
) -> dict[str, RenderedCreative]:
    """Render each servable creative once and return the markup it produced, keyed by creative id."""

    out: dict[str, RenderedCreative] = {}
    todo = [c for c in creatives if c.is_servable]
    if not todo:
        return out
    async with async_playwright() as pw:
        browser = None
        context = None
        try:
            browser = await pw.chromium.launch(args=CHROMIUM_LAUNCH_ARGS)
            context = await browser.new_context(
                user_agent=user_agent,
                viewport=MOBILE_VIEWPORT if mobile else DESKTOP_VIEWPORT,
                is_mobile=mobile,
            )
            context.set_default_timeout(page_timeout_ms)
            if trace:
                await context.tracing.start(screenshots=True, snapshots=True, sources=True)
            for creative in todo:
                rendered = await _render_one(context, creative, settle_ms, page_timeout_ms)
                jlog(
                    "info" if rendered.error is None else "warning",
                    event="creative_rendered",
                    creative_id=creative.id,
                    bytes=len(rendered.html or ""),
                    error=rendered.error,
                )
                out[creative.id] = rendered
        finally:
            await cleanup_playwright(context, browser, trace, "render")
    return out


def runner_from_renders(renders: dict[str, RenderedCreative]) -> MarkupScriptRunner:
    """Runner that replays rendered markup and turns render errors into injection errors."""

    rendered = {cid: r.html for cid, r in renders.items() if r.html is not None}
    errors = {cid: r.error for cid, r in renders.items() if r.html is None and r.error}
    return MarkupScriptRunner(rendered, errors=errors)


__all__ = [
    "CHROMIUM_LAUNCH_ARGS",
    "RenderedCreative",
    "cleanup_playwright",
    "render_creatives",
    "runner_from_renders",
    "wait_assets_ready",
]
