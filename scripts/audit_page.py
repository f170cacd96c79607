#!/usr/bin/env python3
"""CLI shim for the ad slot audit."""
from __future__ import annotations

import asyncio

from streamads.audit import CliArgs, audit_version, parse_args, run
from streamads.logging import configure_logging, logging_context, set_global_context

SCRIPT_NAME = "audit"


def main() -> None:
    configure_logging()
    set_global_context(app="streamads", pipeline=SCRIPT_NAME)
    version = audit_version()
    with logging_context(script=SCRIPT_NAME, engine_version=version):
        args: CliArgs = parse_args()
        asyncio.run(run(args))


if __name__ == "__main__":
    main()
