"""Run report formatting.

- ``format_run_report`` -- human-readable post-run summary.
- ``report_to_json`` -- structured dict for the context sidecar and CI.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .models import RunReport

# Longest id list printed before switching to a count.
_MAX_LISTED_IDS = 20


def _id_lines(title: str, ids: list[str]) -> list[str]:
    lines = [f"{title}:"]
    for entry_id in ids[:_MAX_LISTED_IDS]:
        lines.append(f"  {entry_id}")
    if len(ids) > _MAX_LISTED_IDS:
        lines.append(f"  ... and {len(ids) - _MAX_LISTED_IDS} more")
    lines.append("")
    return lines


def format_run_report(report: RunReport) -> str:
    """Format a run report as human-readable text.

    Id sections are only included when non-empty.

    Args:
        report: The completed run report.

    Returns:
        Multi-line formatted string.
    """
    if report.preview_only:
        source = "preview only"
    elif report.changelist_id:
        source = f"changelist [{report.changelist_id}]"
    else:
        source = "no changelist"

    lines = [
        f"Changelist sync for environment '{report.environment_id}' ({source})",
        f"Started: {report.started_at}",
    ]
    if report.completed_at:
        lines.append(f"Completed: {report.completed_at}")
    lines.append("")

    lines.append(
        f"Merged {report.total_entries} entries: "
        f"{report.baseline_entries} baseline, "
        f"{len(report.updated_ids)} updated, "
        f"{len(report.appended_ids)} appended, "
        f"{report.assets} assets passed through"
    )
    lines.append("")

    if report.updated_ids:
        lines.extend(_id_lines("Updated entries", report.updated_ids))
    if report.appended_ids:
        lines.extend(_id_lines("Appended entries", report.appended_ids))

    if report.warnings:
        lines.append("Warnings:")
        lines.extend(f"  {w}" for w in report.warnings)
        lines.append("")

    if report.snapshot_path:
        lines.append(f"Snapshot: {report.snapshot_path}")
    if report.next_sync_token:
        lines.append(f"Next sync token: {report.next_sync_token}")

    return "\n".join(lines).rstrip() + "\n"


def report_to_json(report: RunReport) -> dict[str, Any]:
    """Convert a run report to a JSON-serializable dict with summary counts."""
    data = report.model_dump(mode="json")
    data["summary"] = {
        "total": report.total_entries,
        "baseline": report.baseline_entries,
        "updated": len(report.updated_ids),
        "appended": len(report.appended_ids),
        "warnings": len(report.warnings),
    }
    return data
