import pytest

from streamads.clock import ManualScheduler
from streamads.dom import new_element, skeleton_page
from streamads.playwright import RenderedCreative, runner_from_renders
from streamads.runners import MarkupScriptRunner, ScriptInjectionError
from streamads.sources import AdCreative

CREATIVE = AdCreative(id="top-1", payload="<script>loadAd()</script>")


def _injected():
    soup = skeleton_page(["top"])
    script = new_element("script")
    soup.body.append(script)
    return soup, script


def test_markup_is_grafted_in_front_of_the_script():
    soup, script = _injected()
    MarkupScriptRunner({"top-1": "<div id='ad'>Hello there</div>"}).run(script, CREATIVE)
    assert script.find_previous_sibling("div")["id"] == "ad"


def test_delayed_graft_is_dropped_once_the_script_is_gone():
    soup, script = _injected()
    scheduler = ManualScheduler()
    MarkupScriptRunner({"top-1": "<div id='ad'>late</div>"}, scheduler=scheduler, delay_ms=500).run(script, CREATIVE)
    assert soup.find(id="ad") is None
    script.extract()
    scheduler.advance(500)
    assert soup.find(id="ad") is None


def test_delay_requires_a_scheduler():
    with pytest.raises(ValueError):
        MarkupScriptRunner({}, delay_ms=100)


def test_runner_from_renders_maps_render_failures_to_injection_errors():
    runner = runner_from_renders(
        {
            "top-1": RenderedCreative("top-1", "<div>ok</div>"),
            "top-2": RenderedCreative("top-2", None, error="ReferenceError: adsbygoogle is not defined"),
        }
    )
    assert runner.rendered == {"top-1": "<div>ok</div>"}
    _, script = _injected()
    with pytest.raises(ScriptInjectionError, match="adsbygoogle"):
        runner.run(script, AdCreative(id="top-2", payload="<script>x()</script>"))
