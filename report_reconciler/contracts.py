"""Versioned envelopes for report-reconciler JSON outputs.

Every JSON document the CLI writes carries the contract it follows and a
``run_summary`` describing the invocation that produced it.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from report_reconciler import __version__

TOOL_NAME = "report-reconciler"

CONTRACT_VERSIONS = {
    "reconciler.template": "1.0.0",
    "reconciler.weekly": "1.0.0",
    "reconciler.export_summary": "1.0.0",
}


def contract_version(name: str) -> str:
    try:
        return CONTRACT_VERSIONS[name]
    except KeyError:
        raise ValueError(f"Unknown output contract '{name}'") from None


def generated_at() -> str:
    stamp = datetime.now(timezone.utc).replace(microsecond=0)
    return stamp.strftime("%Y-%m-%dT%H:%M:%SZ")


def build_payload(
    name: str,
    body: dict[str, Any],
    *,
    command: str,
    input_path: Path,
    output_path: Path | None = None,
    metrics: dict[str, Any] | None = None,
    warnings: list[str] | None = None,
) -> dict[str, Any]:
    """Wrap ``body`` in the ``name`` contract with a run summary for ``command``."""
    version = contract_version(name)
    notes = list(warnings or [])
    return {
        "contract": {"name": name, "version": version},
        "tool_version": __version__,
        **body,
        "run_summary": {
            "tool": TOOL_NAME,
            "command": command,
            "status": "warning" if notes else "ok",
            "generated_at": generated_at(),
            "input_file": str(input_path),
            "output_file": str(output_path) if output_path else None,
            "warnings": notes,
            "metrics": dict(metrics or {}),
        },
    }
