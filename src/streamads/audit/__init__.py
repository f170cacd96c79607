"""Ad slot audit pipeline exports."""

from __future__ import annotations

from .pipeline import AuditReport, CliArgs, audit_version, parse_args, run

__all__ = ["AuditReport", "CliArgs", "audit_version", "parse_args", "run"]
