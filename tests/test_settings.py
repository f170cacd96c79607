import requests

from streamads.settings import BANNER_ADS_PATH, VAST_ADS_PATH, SettingsClient


class FakeResponse:
    def __init__(self, payload=None, status_code=200, bad_json=False):
        self.payload = payload
        self.status_code = status_code
        self.bad_json = bad_json

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Server Error")

    def json(self):
        if self.bad_json:
            raise ValueError("Expecting value")
        return self.payload


class FakeSession:
    def __init__(self, routes):
        self.routes = routes
        self.headers = {}
        self.requested = []

    def get(self, url, timeout=None):
        self.requested.append(url)
        outcome = self.routes[url]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


BASE = "http://settings.test"


def test_reads_both_documents():
    session = FakeSession(
        {
            BASE + BANNER_ADS_PATH: FakeResponse({"top": "<script>a()</script>", "footer": ""}),
            BASE + VAST_ADS_PATH: FakeResponse({"preRoll": "http://pre"}),
        }
    )
    client = SettingsClient(BASE + "/", session=session, user_agent="audit-test")
    assert client.banner_ads() == {"top": "<script>a()</script>", "footer": ""}
    assert client.vast_ads() == {"preRoll": "http://pre"}
    assert session.requested == [BASE + BANNER_ADS_PATH, BASE + VAST_ADS_PATH]
    assert session.headers["User-Agent"] == "audit-test"


def test_failures_degrade_to_empty_documents():
    session = FakeSession(
        {
            BASE + BANNER_ADS_PATH: FakeResponse(status_code=500),
            BASE + VAST_ADS_PATH: requests.ConnectionError("refused"),
        }
    )
    client = SettingsClient(BASE, session=session)
    assert client.banner_ads() == {}
    assert client.vast_ads() == {}


def test_unexpected_bodies_degrade_to_empty_documents():
    session = FakeSession(
        {
            BASE + BANNER_ADS_PATH: FakeResponse(["not", "a", "dict"]),
            BASE + VAST_ADS_PATH: FakeResponse(bad_json=True),
        }
    )
    client = SettingsClient(BASE, session=session)
    assert client.banner_ads() == {}
    assert client.vast_ads() == {}


def test_base_url_comes_from_environment(monkeypatch):
    monkeypatch.setenv("STREAMADS_SETTINGS_URL", "http://env.test/")
    client = SettingsClient(session=FakeSession({}))
    assert client.base_url == "http://env.test"
