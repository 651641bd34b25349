"""Markdown report for a single discovery run."""
from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

from jobsweep.log import get_logger

if TYPE_CHECKING:
    from jobsweep.pipeline import RunSummary

log = get_logger(__name__)

_MAX_ERRORS = 20


def _short(text: str, limit: int = 160) -> str:
    return text[:limit] + ("…" if len(text) > limit else "")


def build_run_report(summary: "RunSummary", when: datetime | None = None) -> str:
    when = when or datetime.now(timezone.utc)
    lines: list[str] = [f"# Search Run — {when.strftime('%Y-%m-%d %H:%M')} UTC", ""]

    if summary.message != "Done":
        lines.append(f"_{summary.message}_")
        lines.append("")

    lines.append(
        f"**{summary.searches_run}** searches | **{summary.jobs_found}** listings found | "
        f"**{summary.inserted}** inserted"
    )
    lines.append("")
    lines.append("| Outcome | Count |")
    lines.append("|---------|------:|")
    lines.append(f"| New (Review) | {summary.inserted - summary.reposted} |")
    lines.append(f"| Reposted | {summary.reposted} |")
    lines.append(f"| Reactivated | {summary.reactivated} |")
    lines.append(f"| Blocked by keyword | {summary.blocked} |")
    lines.append(f"| Skipped (already tracked) | {summary.skipped} |")
    lines.append(f"| Errors | {len(summary.errors)} |")
    lines.append("")

    if summary.errors:
        lines.append("## Errors")
        lines.append("")
        for err in summary.errors[:_MAX_ERRORS]:
            lines.append(f"- {_short(err)}")
        hidden = len(summary.errors) - _MAX_ERRORS
        if hidden > 0:
            lines.append(f"- _…and {hidden} more_")
        lines.append("")

    return "\n".join(lines)


def write_run_report(content: str, reports_dir: Path) -> Path:
    reports_dir.mkdir(parents=True, exist_ok=True)
    stamp = datetime.now(timezone.utc).strftime("%Y-%m-%d_%H%M%S")
    path = reports_dir / f"run_{stamp}.md"
    path.write_text(content, encoding="utf-8")
    log.info("Report written → %s", path)
    return path
