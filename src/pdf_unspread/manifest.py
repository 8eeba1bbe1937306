"""
Manifest recording and logging.

Why this exists:
- Every run writes a JSON manifest with inputs/outputs, the per-page plan and
  a timeline of messages.
- Logging goes through one place so messages are consistent and captured.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
import json
from pathlib import Path
import sys
from typing import Any, Dict, List, TextIO

from .geometry import PageGeometry
from .planner import TWO_WAY, SplitPlan
from .utils import FileAccessError, ensure_dir


TOOL_NAME = "pdf-unspread"

LEVELS_BY_VERBOSITY = {
    "quiet": {"error"},
    "normal": {"info", "warning", "error"},
}


def _iso_now() -> str:
    """Return an ISO-8601 timestamp in UTC."""

    return datetime.now(timezone.utc).isoformat()


@dataclass
class ManifestRecorder:
    """
    Collect logs and per-page actions, then write a single manifest JSON file.
    """

    tool_version: str
    command: str
    options: Dict[str, Any]
    inputs: Dict[str, Any]
    outputs: Dict[str, Any]
    dry_run: bool
    verbosity: str = "normal"
    tool_name: str = TOOL_NAME
    console_stream: TextIO = field(default_factory=lambda: sys.stderr)
    started_at: str = field(default_factory=_iso_now)
    logs: List[Dict[str, Any]] = field(default_factory=list)
    actions: List[Dict[str, Any]] = field(default_factory=list)

    def log(self, message: str, level: str = "info") -> None:
        """Record a log message and also print it to the console."""

        entry = {"timestamp": _iso_now(), "level": level, "message": message}
        self.logs.append(entry)

        if self.verbosity == "verbose":
            print(f"[{level}] {message}", file=self.console_stream)
        elif level in LEVELS_BY_VERBOSITY.get(self.verbosity, LEVELS_BY_VERBOSITY["normal"]):
            print(message, file=self.console_stream)

    def add_action(self, action: str, status: str, **details: Any) -> None:
        """
        Add an action record.

        Action types: split_page, centered_single, pass_through, debug_overlay.
        """

        entry: Dict[str, Any] = {
            "timestamp": _iso_now(),
            "action": action,
            "status": status,
        }
        entry.update(details)
        self.actions.append(entry)

    def record_plan(self, page: PageGeometry, plan: SplitPlan) -> None:
        """Log one page decision and keep it as an action."""

        page_number = page.index + 1
        if plan.output_count == 1:
            self.log(f"Page {page_number}: {plan.kind} ({plan.reason}).", level="debug")
        else:
            self.log(
                f"Page {page_number}: split into {plan.output_count} ({plan.reason}).",
                level="debug",
            )
        action = "split_page" if plan.kind == TWO_WAY else plan.kind
        self.add_action(
            action=action,
            status="dry-run" if self.dry_run else "written",
            page=page_number,
            rotation=page.rotation,
            reason=plan.reason,
            views=[view.as_dict() for view in plan.views],
        )

    def _summarize_actions(self) -> Dict[str, int]:
        """Count actions by type (split_page, pass_through, ...)."""

        counts: Dict[str, int] = {}
        for action in self.actions:
            name = action.get("action", "unknown")
            counts[name] = counts.get(name, 0) + 1
        return counts

    def build_manifest(self, summary: Dict[str, Any]) -> Dict[str, Any]:
        """Assemble the final manifest structure."""

        return {
            "tool": self.tool_name,
            "version": self.tool_version,
            "command": self.command,
            "started_at": self.started_at,
            "ended_at": _iso_now(),
            "options": self.options,
            "inputs": self.inputs,
            "outputs": self.outputs,
            "summary": summary,
            "action_counts": self._summarize_actions(),
            "actions": self.actions,
            "logs": self.logs,
        }

    def write_manifest(self, path: Path, summary: Dict[str, Any]) -> None:
        """
        Write the manifest JSON, unless this is a dry-run.

        We treat the manifest itself as output, so dry-run avoids writing it.
        """

        if self.dry_run:
            self.log(f"[dry-run] Would write manifest to {path}")
            return

        manifest = self.build_manifest(summary)
        try:
            ensure_dir(path.parent, dry_run=False)
            with path.open("w", encoding="utf-8") as handle:
                json.dump(manifest, handle, indent=2, ensure_ascii=True)
        except OSError as exc:
            raise FileAccessError(f"Failed to write manifest {path}: {exc}") from exc
