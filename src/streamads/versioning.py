"""Engine version resolution helpers."""

from __future__ import annotations

import os

ENGINE_NAME = "streamads"
ENGINE_VERSION = "2025-11-04.1"


def get_engine_version(component: str = ENGINE_NAME, version: str = ENGINE_VERSION) -> str:
    """Return a human-readable version string with an env override."""

    return os.getenv("STREAMADS_VERSION", f"{component}:{version}")


__all__ = ["ENGINE_NAME", "ENGINE_VERSION", "get_engine_version"]
