"""Ad delivery and validation engine for the streaming front-end."""

from .clock import AsyncioScheduler, ManualScheduler, TimerHandle
from .content import has_meaningful_content, is_invalid_content, is_url_only
from .controller import AdSlotController, SlotState, SlotStatus
from .debug import dump_page_html, dump_slot_html, ensure_debug_dir
from .dom import SlotHandles, overlay_handles, skeleton_page, slot_handles
from .interstitial import InterstitialGate
from .logging import configure_logging, jlog, logging_context, set_global_context, slotlog
from .notifications import watch_settings
from .page import AdPage
from .player import build_player_config, initialize_player
from .playwright import CHROMIUM_LAUNCH_ARGS, render_creatives, runner_from_renders
from .runners import MarkupScriptRunner, NullScriptRunner, ScriptInjectionError
from .settings import SettingsClient
from .sources import SLOT_POSITIONS, AdCreative, SlotAdSource
from .timing import SlotTiming, detect_mobile
from .vast import ProbeResult, RequestsProbe, Roll, VastEntry, VastScheduleBuilder
from .versioning import get_engine_version

__all__ = [
    "AdCreative",
    "AdPage",
    "AdSlotController",
    "AsyncioScheduler",
    "build_player_config",
    "CHROMIUM_LAUNCH_ARGS",
    "configure_logging",
    "detect_mobile",
    "dump_page_html",
    "dump_slot_html",
    "ensure_debug_dir",
    "get_engine_version",
    "has_meaningful_content",
    "initialize_player",
    "InterstitialGate",
    "is_invalid_content",
    "is_url_only",
    "jlog",
    "logging_context",
    "ManualScheduler",
    "MarkupScriptRunner",
    "NullScriptRunner",
    "overlay_handles",
    "ProbeResult",
    "render_creatives",
    "RequestsProbe",
    "Roll",
    "runner_from_renders",
    "ScriptInjectionError",
    "set_global_context",
    "SettingsClient",
    "skeleton_page",
    "SLOT_POSITIONS",
    "slot_handles",
    "SlotAdSource",
    "SlotHandles",
    "slotlog",
    "SlotState",
    "SlotStatus",
    "SlotTiming",
    "TimerHandle",
    "VastEntry",
    "VastScheduleBuilder",
    "watch_settings",
]
