from streamads.clock import ManualScheduler
from streamads.controller import AdSlotController, SlotStatus
from streamads.dom import element_children, get_style, skeleton_page, slot_handles
from streamads.runners import MarkupScriptRunner, NullScriptRunner
from streamads.sources import AdCreative

LOADER = "<script>(function(){ var s = document.createElement('script'); s.src = '//ads.example/tag.js'; })()</script>"
BANNER = '<div class="banner"><a href="https://shop.example">Summer sale, 50% off everything</a></div>'


def _creatives(n: int = 1, position: str = "top") -> list[AdCreative]:
    return [AdCreative(id=f"{position}-{i}", payload=LOADER) for i in range(1, n + 1)]


def _slot(creatives, runner=None, *, rendered=None, mobile=False, position="top"):
    soup = skeleton_page([position])
    scheduler = ManualScheduler()
    if runner is None:
        runner = MarkupScriptRunner(rendered or {})
    ctrl = AdSlotController(
        slot_handles(soup, position),
        creatives,
        scheduler=scheduler,
        runner=runner,
        mobile=mobile,
    )
    return soup, scheduler, ctrl


def test_no_creatives_stays_idle_and_hides_fallback():
    soup, scheduler, ctrl = _slot([])
    assert ctrl.status is SlotStatus.IDLE
    assert get_style(ctrl.handles.fallback, "display") == "none"
    assert scheduler.pending() == 0
    scheduler.advance(20_000)
    assert ctrl.status is SlotStatus.IDLE
    assert not ctrl.fallback_visible
    assert soup.find("script") is None


def test_placeholder_only_creatives_never_activate():
    creatives = [
        AdCreative(id="header-1", payload="<script>s.src='//distortedwin.com/header-ad-script'</script>"),
        AdCreative(id="header-2", payload="   "),
        AdCreative(id="header-3", payload=""),
    ]
    _, scheduler, ctrl = _slot(creatives, position="header")
    scheduler.advance(30_000)
    assert ctrl.status is SlotStatus.IDLE
    assert not ctrl.active
    assert not ctrl.fallback_visible
    assert element_children(ctrl.handles.container) == []


def test_valid_creative_loads_at_check_deadline():
    soup, scheduler, ctrl = _slot(_creatives(), rendered={"top-1": BANNER})
    assert ctrl.status is SlotStatus.LOADING
    scheduler.advance(2999)
    assert ctrl.status is SlotStatus.LOADING
    scheduler.advance(1)
    assert ctrl.status is SlotStatus.LOADED
    assert ctrl.state.retry_count == 0
    children = element_children(ctrl.handles.container)
    assert len(children) == 1
    assert "Summer sale" in children[0].get_text()
    assert soup.find("script") is None
    assert soup.find(id="ad-marker-top-1") is None
    assert not ctrl.fallback_visible


def test_url_only_siblings_are_left_out_of_the_container():
    rendered = {"top-1": "<div>https://ads.example/loader.js</div>" + BANNER}
    _, scheduler, ctrl = _slot(_creatives(), rendered=rendered)
    scheduler.advance(3000)
    assert ctrl.status is SlotStatus.LOADED
    text = ctrl.handles.container.get_text()
    assert "ads.example/loader.js" not in text
    assert len(element_children(ctrl.handles.container)) == 1


def test_never_populated_slot_falls_back_after_three_checks():
    _, scheduler, ctrl = _slot(_creatives(), NullScriptRunner())
    scheduler.advance(3000)
    assert ctrl.status is SlotStatus.LOADING
    assert ctrl.state.retry_count == 1
    scheduler.advance(599)
    assert ctrl.state.retry_count == 1
    scheduler.advance(1)
    assert ctrl.state.retry_count == 2
    assert ctrl.status is not SlotStatus.FALLBACK
    scheduler.advance(600)
    assert ctrl.status is SlotStatus.FALLBACK
    assert ctrl.state.retry_count == 3
    assert ctrl.fallback_visible
    assert "External ad content loading..." in ctrl.handles.fallback.get_text()

    scheduler.advance(60_000)
    assert ctrl.status is SlotStatus.FALLBACK
    assert ctrl.state.retry_count == 3
    assert scheduler.pending() == 0


def test_never_populated_mobile_slot_falls_back_after_three_checks():
    _, scheduler, ctrl = _slot(_creatives(), NullScriptRunner(), mobile=True)
    scheduler.advance(4000)
    # The loading indicator does not count as content.
    assert ctrl.handles.container.find(id="top-loading") is not None
    assert ctrl.status is SlotStatus.LOADING
    assert ctrl.state.retry_count == 1
    scheduler.advance(1500)
    assert ctrl.state.retry_count == 2
    assert ctrl.status is SlotStatus.LOADING
    scheduler.advance(1499)
    assert ctrl.status is not SlotStatus.FALLBACK
    scheduler.advance(1)
    assert ctrl.status is SlotStatus.FALLBACK
    assert ctrl.state.retry_count == 3
    assert ctrl.handles.container.find(id="top-loading") is None
    assert ctrl.fallback_visible
    assert "Mobile ad content loading..." in ctrl.handles.fallback.get_text()

    scheduler.advance(60_000)
    assert ctrl.state.retry_count == 3
    assert scheduler.pending() == 0


def test_short_content_is_rechecked_then_falls_back_without_placeholder():
    _, scheduler, ctrl = _slot(_creatives(), rendered={"top-1": "<div>Hi</div>"})
    scheduler.advance(3000)
    assert ctrl.status is SlotStatus.VALIDATING
    assert ctrl.state.retry_count == 1
    scheduler.advance(2999)
    assert ctrl.state.retry_count == 3
    assert ctrl.status is SlotStatus.VALIDATING
    scheduler.advance(1)
    assert ctrl.status is SlotStatus.FALLBACK
    assert ctrl.state.retry_count == 3
    # Something is in the container, so the placeholder stays hidden.
    assert len(element_children(ctrl.handles.container)) == 1
    assert not ctrl.fallback_visible


def test_placeholder_text_only_counts_as_empty():
    _, scheduler, ctrl = _slot(_creatives(), rendered={"top-1": "<div>Loading...</div>"})
    scheduler.run_until_idle()
    assert ctrl.status is SlotStatus.FALLBACK
    assert ctrl.state.retry_count == 3
    assert element_children(ctrl.handles.container) == []
    assert ctrl.fallback_visible


def test_script_injection_error_forces_immediate_fallback():
    runner = MarkupScriptRunner({}, errors={"top-1": "SyntaxError: Unexpected token"})
    soup, scheduler, ctrl = _slot(_creatives(), runner)
    assert ctrl.status is SlotStatus.FALLBACK
    assert scheduler.pending() == 0
    assert ctrl.fallback_visible
    assert soup.find("script") is None


def test_render_shortly_after_injection_is_still_moved():
    soup = skeleton_page(["top"])
    scheduler = ManualScheduler()
    runner = MarkupScriptRunner({"top-1": BANNER}, scheduler=scheduler, delay_ms=150)
    ctrl = AdSlotController(slot_handles(soup, "top"), _creatives(), scheduler=scheduler, runner=runner)
    scheduler.advance(3000)
    assert ctrl.status is SlotStatus.LOADED


def test_rotation_cycles_through_creatives():
    rendered = {f"top-{i}": BANNER for i in (1, 2, 3)}
    _, scheduler, ctrl = _slot(_creatives(3), rendered=rendered)
    seen = [ctrl.state.current_index]
    for _ in range(3):
        scheduler.advance(5000)
        seen.append(ctrl.state.current_index)
    assert seen == [0, 1, 2, 0]

    dots = ctrl.handles.dots.find_all("button")
    assert len(dots) == 3
    assert "active" in dots[0]["class"]
    assert "inactive" in dots[1]["class"]


def test_single_creative_does_not_rotate():
    _, scheduler, ctrl = _slot(_creatives(), rendered={"top-1": BANNER})
    scheduler.advance(20_000)
    assert ctrl.state.current_index == 0
    assert ctrl.status is SlotStatus.LOADED
    assert scheduler.pending() == 0
    assert ctrl.handles.dots.find_all("button") == []


def test_show_ad_cancels_the_previous_cycle():
    _, scheduler, ctrl = _slot(_creatives(), NullScriptRunner())
    scheduler.advance(1000)
    ctrl.show_ad(0)
    scheduler.advance(2500)
    assert ctrl.state.retry_count == 0
    assert ctrl.status is SlotStatus.LOADING
    scheduler.advance(500)
    assert ctrl.state.retry_count == 1


def test_mobile_uses_longer_delays_and_spinner():
    soup, scheduler, ctrl = _slot(_creatives(), rendered={"top-1": BANNER}, mobile=True)
    assert ctrl.handles.container.find(id="top-loading") is not None
    assert soup.find("script")["data-mobile"] == "true"
    scheduler.advance(500)
    assert ctrl.handles.container.find(id="top-loading") is None
    scheduler.advance(3499)
    assert ctrl.status is SlotStatus.LOADING
    scheduler.advance(1)
    assert ctrl.status is SlotStatus.LOADED


def test_mobile_move_skips_placeholder_elements():
    rendered = {"top-1": "<div>Please wait...</div>" + BANNER}
    _, scheduler, ctrl = _slot(_creatives(), rendered=rendered, mobile=True)
    scheduler.advance(4000)
    assert ctrl.status is SlotStatus.LOADED
    children = element_children(ctrl.handles.container)
    assert len(children) == 1
    assert "Please wait" not in children[0].get_text()


def test_stop_cancels_every_timer():
    _, scheduler, ctrl = _slot(_creatives(2), NullScriptRunner())
    assert scheduler.pending() > 0
    ctrl.stop()
    assert scheduler.pending() == 0
    scheduler.advance(30_000)
    assert ctrl.status is SlotStatus.LOADING


def test_rotation_reports_to_the_rotate_hook_before_moving_on():
    soup = skeleton_page(["top"])
    scheduler = ManualScheduler()
    seen = []
    ctrl = AdSlotController(
        slot_handles(soup, "top"),
        _creatives(2),
        scheduler=scheduler,
        runner=NullScriptRunner(),
        mobile=True,
        on_rotate=lambda c: seen.append((c.state.current_index, c.status)),
    )
    scheduler.advance(5000)
    assert seen == [(0, SlotStatus.LOADING)]
    assert ctrl.rotations == 1
    assert ctrl.state.current_index == 1
    ctrl.stop()
