from streamads.content import contains_loading_marker, has_meaningful_content, is_invalid_content, is_url_only
from streamads.dom import element_children, parse_page


def _container(markup: str):
    return parse_page(f'<div id="c">{markup}</div>').find(id="c")


def test_is_url_only_matches_bare_urls():
    for text in (
        "https://ads.example.com/x?y=1",
        "http://a.b",
        "  //cdn.example.net/tag.js \n",
        "cdn-fc.com/creatives/universal/dynamic/?id=9",
        "distortedwin.com/abc",
    ):
        assert is_url_only(text), text


def test_is_url_only_rejects_prose_and_empty_values():
    assert not is_url_only("Visit https://example.com today")
    assert not is_url_only("Summer sale")
    assert not is_url_only("")
    assert not is_url_only(None)
    assert not is_url_only("distortedwin.com/")


def test_is_invalid_content_flags_placeholders():
    soup = parse_page(
        "<div id='a'>loading...</div><div id='b'>Ad Loading...</div>"
        "<div id='c'> Please wait... </div><div id='d'>Loading... now</div>"
        "<div id='e'>distortedwin.com/</div>"
    )
    assert is_invalid_content(soup.find(id="a"))
    assert is_invalid_content(soup.find(id="b"))
    assert is_invalid_content(soup.find(id="c"))
    assert not is_invalid_content(soup.find(id="d"))
    assert is_invalid_content(soup.find(id="e"))


def test_contains_loading_marker():
    assert contains_loading_marker("<p>Loading advertisement...</p>")
    assert contains_loading_marker("External ad content loading...")
    assert not contains_loading_marker("<p>Buy now</p>")


def test_has_meaningful_content_removes_noise_children():
    container = _container(
        "<div>https://tracker.example/p.js</div>"
        "<span>Loading...</span>"
        '<div><a href="/x">Buy shoes now</a></div>'
    )
    assert has_meaningful_content(container)
    children = element_children(container)
    assert len(children) == 1
    assert children[0].get_text() == "Buy shoes now"


def test_has_meaningful_content_rejects_short_or_loading_markup():
    container = _container("<div>Hi</div><div><p>Loading advertisement...</p></div>")
    assert not has_meaningful_content(container)
    # Neither child is noise, so both stay.
    assert len(element_children(container)) == 2


def test_has_meaningful_content_handles_missing_or_empty_container():
    assert not has_meaningful_content(None)
    assert not has_meaningful_content(_container(""))
    assert not has_meaningful_content(_container("just text, no elements"))
