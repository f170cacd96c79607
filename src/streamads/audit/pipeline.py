"""audit_page.py

Ad slot audit for the streaming front-end.

This module loads the live ad settings and replays a full page load against
them:
- Reads the ``banner_ads`` and ``vast_ads`` settings documents over HTTP.
- Renders every servable creative in headless Chromium (Playwright) to see
  what its third-party loader actually writes.
- Drives one ``AdSlotController`` per slot on a virtual clock until every
  slot is ``loaded`` or ``fallback``, and evaluates the interstitial gate.
- Probes the VAST tags and builds the player's ad schedule.
- Emits structured JSON logs with the per-slot outcome.

With ``--watch`` the audit stays connected to the settings notification
channel and replays the page after every settings update.

Usage (examples)
----------------
# One audit against a local front-end
python scripts/audit_page.py --settings-url http://127.0.0.1:3000

# Mobile timings and user agent, keep listening for updates
python scripts/audit_page.py --settings-url http://127.0.0.1:3000 \
  --user-agent "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X)" --watch

# Skip Chromium (every slot is expected to fall back)
python scripts/audit_page.py --no-render --debug-html
"""

from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass, field
from typing import Any

from streamads import (
    AdPage,
    ManualScheduler,
    NullScriptRunner,
    RequestsProbe,
    SettingsClient,
    SlotAdSource,
    VastEntry,
    VastScheduleBuilder,
    detect_mobile,
    dump_page_html,
    get_engine_version,
    initialize_player,
    jlog,
    skeleton_page,
)
from streamads.notifications import default_notify_url, watch_settings
from streamads.playwright import DEFAULT_PAGE_TIMEOUT_MS, DEFAULT_SETTLE_MS, render_creatives, runner_from_renders
from streamads.runners import ScriptRunner
from streamads.settings import default_settings_url
from streamads.sources import SLOT_POSITIONS
from streamads.vast import PROBE_TIMEOUT_S

# ============================
# Constants & configuration
# ============================
DEFAULT_USER_AGENT = "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0 Safari/537.36"
DEFAULT_VIEWPORT_WIDTH = 1280
DEFAULT_MAX_VIRTUAL_MS = 60_000
DRIVE_STEP_MS = 100

log = logging.getLogger("streamads")

SCRIPT_NAME = "audit"
SCRIPT_VERSION = "2025-11-04.1"


def audit_version() -> str:
    return get_engine_version(SCRIPT_NAME, SCRIPT_VERSION)


# ============================
# Argument parsing & validation
# ============================


@dataclass(frozen=True)
class CliArgs:
    settings_url: str
    notify_url: str
    user_agent: str
    viewport_width: int
    mobile: bool
    render: bool
    settle_ms: int
    page_timeout_ms: int
    probe_timeout_s: float
    max_virtual_ms: int
    interstitial_position: str | None
    trace: bool
    debug_html: bool
    watch: bool
    max_reconnects: int | None


def validate_args(args: argparse.Namespace) -> None:
    """Reject impossible values and warn about runs that cannot observe real creative."""

    if args.settle_ms < 0:
        raise ValueError(f"settle_ms must be >= 0 (got {args.settle_ms})")
    if args.probe_timeout_s <= 0:
        raise ValueError(f"probe_timeout_s must be > 0 (got {args.probe_timeout_s})")
    if args.max_virtual_ms <= 0:
        raise ValueError(f"max_virtual_ms must be > 0 (got {args.max_virtual_ms})")
    if args.interstitial_position not in (*SLOT_POSITIONS, "none"):
        raise ValueError(f"unknown interstitial position: {args.interstitial_position}")
    if not args.render:
        jlog(
            "warning",
            event="render_disabled",
            message="Creatives are not rendered; every configured slot is expected to fall back.",
        )


def parse_args(argv: list[str] | None = None) -> CliArgs:
    p = argparse.ArgumentParser(description="Audit ad slot delivery for the streaming front-end")
    p.add_argument("--settings-url", default=default_settings_url())
    p.add_argument("--notify-url", default=default_notify_url())
    p.add_argument("--user-agent", default=DEFAULT_USER_AGENT)
    p.add_argument("--viewport-width", type=int, default=DEFAULT_VIEWPORT_WIDTH)
    p.add_argument("--no-render", dest="render", action="store_false", help="Do not render creatives in Chromium")
    p.add_argument("--settle-ms", type=int, default=DEFAULT_SETTLE_MS, help="Time a creative gets to render")
    p.add_argument("--page-timeout-ms", type=int, default=DEFAULT_PAGE_TIMEOUT_MS)
    p.add_argument("--probe-timeout-s", type=float, default=PROBE_TIMEOUT_S)
    p.add_argument(
        "--max-virtual-ms",
        type=int,
        default=DEFAULT_MAX_VIRTUAL_MS,
        help="Upper bound of simulated page time per replay",
    )
    p.add_argument(
        "--interstitial-position",
        default="interstitial",
        help="Slot whose outcome gates the interstitial overlay ('none' disables it)",
    )
    p.add_argument("--trace", action="store_true", help="Save a Playwright trace of the render pass")
    p.add_argument("--debug-html", action="store_true", help="Dump page/slot HTML to media/debug/")
    p.add_argument("--watch", action="store_true", help="Replay the page on every settings update")
    p.add_argument("--max-reconnects", type=int, help="Give up watching after this many reconnects")

    ns = p.parse_args(argv)
    validate_args(ns)

    return CliArgs(
        settings_url=ns.settings_url,
        notify_url=ns.notify_url,
        user_agent=ns.user_agent,
        viewport_width=ns.viewport_width,
        mobile=detect_mobile(ns.user_agent, ns.viewport_width),
        render=ns.render,
        settle_ms=ns.settle_ms,
        page_timeout_ms=ns.page_timeout_ms,
        probe_timeout_s=ns.probe_timeout_s,
        max_virtual_ms=ns.max_virtual_ms,
        interstitial_position=None if ns.interstitial_position == "none" else ns.interstitial_position,
        trace=ns.trace,
        debug_html=ns.debug_html,
        watch=ns.watch,
        max_reconnects=ns.max_reconnects,
    )


# ============================
# Replay
# ============================


@dataclass
class AuditReport:
    slots: dict[str, str] = field(default_factory=dict)
    interstitial: bool | None = None
    vast: list[VastEntry] = field(default_factory=list)
    player_config: dict[str, Any] = field(default_factory=dict)
    virtual_ms: float = 0.0


def drive(page: AdPage, scheduler: ManualScheduler, limit_ms: int) -> float:
    """Advance virtual time until every slot settled and the gate decided; returns elapsed ms."""

    start = scheduler.now_ms()
    while scheduler.now_ms() - start < limit_ms:
        scheduler.advance(DRIVE_STEP_MS)
        gate_done = page.gate is None or page.gate.decision is not None
        if page.settled and gate_done:
            break
    return scheduler.now_ms() - start


async def _make_runner(args: CliArgs, source: SlotAdSource) -> ScriptRunner:
    if not args.render:
        return NullScriptRunner()
    creatives = [c for pos in SLOT_POSITIONS for c in source.creatives(pos)]
    renders = await render_creatives(
        creatives,
        user_agent=args.user_agent,
        mobile=args.mobile,
        settle_ms=args.settle_ms,
        page_timeout_ms=args.page_timeout_ms,
        trace=args.trace,
    )
    return runner_from_renders(renders)


async def replay(
    args: CliArgs,
    client: SettingsClient,
    builder: VastScheduleBuilder,
    *,
    page: AdPage | None = None,
    runner: ScriptRunner | None = None,
) -> tuple[AdPage, AuditReport]:
    """Replay one page load (or a rebuild of ``page``) and report the outcome."""

    source = SlotAdSource.from_banner_settings(client.banner_ads())
    runner = runner or await _make_runner(args, source)

    if page is None:
        page = AdPage(
            skeleton_page(SLOT_POSITIONS),
            ManualScheduler(),
            runner,
            mobile=args.mobile,
            interstitial_position=args.interstitial_position,
            debug_html=args.debug_html,
        )
        page.load(source)
    else:
        page.runner = runner
        page.rebuild(source)

    scheduler = page.scheduler
    assert isinstance(scheduler, ManualScheduler), "replay drives a virtual clock"
    elapsed = drive(page, scheduler, args.max_virtual_ms)

    schedule = await builder.build(client.vast_ads())
    player_config = initialize_player(dict, schedule)

    report = AuditReport(
        slots=page.outcomes(),
        interstitial=page.gate.decision if page.gate is not None else None,
        vast=schedule,
        player_config=player_config,
        virtual_ms=elapsed,
    )
    jlog(
        "info",
        event="audit_summary",
        slots=report.slots,
        interstitial=report.interstitial,
        vast=[e.to_player() for e in schedule],
        ads_configured="vastOptions" in player_config,
        virtual_ms=elapsed,
    )
    if args.debug_html:
        dump_page_html(page.document, f"audit_{page.loads}")
    return page, report


# ============================
# Entrypoint
# ============================


async def run(
    args: CliArgs,
    *,
    client: SettingsClient | None = None,
    builder: VastScheduleBuilder | None = None,
    runner: ScriptRunner | None = None,
) -> AuditReport:
    """Execute the audit for the supplied CLI arguments."""

    client = client or SettingsClient(args.settings_url, user_agent=args.user_agent)
    builder = builder or VastScheduleBuilder(RequestsProbe(timeout=args.probe_timeout_s, user_agent=args.user_agent))
    page, report = await replay(args, client, builder, runner=runner)

    if args.watch:

        async def on_update(section: str | None) -> None:
            nonlocal report
            jlog("info", event="audit_replay", section=section)
            _, report = await replay(args, client, builder, page=page, runner=runner)

        await watch_settings(on_update, args.notify_url, max_reconnects=args.max_reconnects)

    page.stop()
    return report


__all__ = ["AuditReport", "CliArgs", "audit_version", "drive", "parse_args", "replay", "run", "validate_args"]
