"""HTTP client for the public settings endpoints the ad engine reads."""

from __future__ import annotations

import os
from typing import Any

import requests

from .logging import jlog

DEFAULT_SETTINGS_URL = "http://localhost:3000"
DEFAULT_TIMEOUT_S = 10.0
BANNER_ADS_PATH = "/api/settings/banner_ads"
VAST_ADS_PATH = "/api/settings/vast_ads"


def default_settings_url() -> str:
    return os.getenv("STREAMADS_SETTINGS_URL", DEFAULT_SETTINGS_URL)


class SettingsClient:
    """Read-only access to the ``banner_ads`` and ``vast_ads`` settings documents.

    Failures never propagate: they are logged and an empty document is
    returned so the page carries on without those ads.
    """

    def __init__(
        self,
        base_url: str | None = None,
        *,
        session: requests.Session | None = None,
        timeout: float = DEFAULT_TIMEOUT_S,
        user_agent: str | None = None,
    ) -> None:
        self.base_url = (base_url or default_settings_url()).rstrip("/")
        self.session = session or requests.Session()
        if user_agent:
            self.session.headers.update({"User-Agent": user_agent})
        self.timeout = timeout

    def _get_document(self, path: str) -> dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            resp = self.session.get(url, timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as exc:
            jlog("error", event="settings_fetch_failed", url=url, error=str(exc))
            return {}
        if not isinstance(data, dict):
            jlog("warning", event="settings_unexpected_shape", url=url, kind=type(data).__name__)
            return {}
        return data

    def banner_ads(self) -> dict[str, Any]:
        data = self._get_document(BANNER_ADS_PATH)
        configured = sorted(k for k, v in data.items() if isinstance(v, (str, list)) and v and str(v).strip())
        jlog("info", event="banner_ads_loaded", configured=configured)
        return data

    def vast_ads(self) -> dict[str, Any]:
        return self._get_document(VAST_ADS_PATH)


__all__ = ["BANNER_ADS_PATH", "SettingsClient", "VAST_ADS_PATH", "default_settings_url"]
