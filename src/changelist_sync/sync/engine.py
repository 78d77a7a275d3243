"""Sync engine that orchestrates one changelist sync run.

The ``ChangelistSyncEngine`` ties the sources, resolver, merger and sink
together.  A run:

1. Fetches the full baseline snapshot and, when a changelist identifier is
   set and preview-only mode is off, looks up the changelist.  The two
   fetches run concurrently; the merge waits for both.
2. Merges the changelist entries into the baseline.
3. Writes the merged snapshot, then the optional context sidecar.
4. Returns a ``RunReport``.

Any error is fatal for the run and propagates to the caller.  Nothing is
written unless the merge succeeded.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from changelist_sync import __version__
from changelist_sync.config import Config
from changelist_sync.core.async_utils import join, run_sync
from changelist_sync.sync.merger import merge_snapshot, plan_merge
from changelist_sync.sync.models import RunReport, Snapshot
from changelist_sync.sync.reporter import report_to_json
from changelist_sync.sync.resolver import (
    ChangelistResolution,
    resolve_changelist,
)
from changelist_sync.sync.sink import persist_context, persist_snapshot
from changelist_sync.sync.sources import ChangelistSource, SnapshotSource

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class ChangelistSyncEngine:
    """Run the fetch, merge and persist steps for one invocation.

    Args:
        snapshot_source: Supplies the full baseline snapshot.
        changelist_source: Looks up changelists; may be ``None`` when the
            configuration never needs a lookup.
        config: Run configuration.
    """

    def __init__(
        self,
        snapshot_source: SnapshotSource,
        changelist_source: ChangelistSource | None,
        config: Config,
    ) -> None:
        self.snapshot_source = snapshot_source
        self.changelist_source = changelist_source
        self.config = config

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    async def fetch(self) -> tuple[Snapshot, ChangelistResolution]:
        """Fetch the baseline and resolve the changelist concurrently."""
        baseline, resolution = await join(
            run_sync(self.snapshot_source.fetch_full_snapshot),
            run_sync(
                resolve_changelist,
                self.changelist_source,
                self.config.changelist_id,
                self.config.preview_only,
            ),
        )
        return baseline, resolution

    def build_report(
        self,
        baseline: Snapshot,
        merged: Snapshot,
        resolution: ChangelistResolution,
        started_at: str,
    ) -> RunReport:
        overrides = resolution.overrides or []
        plan = plan_merge(baseline.entries, overrides)
        return RunReport(
            version=__version__,
            environment_id=self.config.environment_id,
            changelist_id=self.config.changelist_id,
            preview_only=self.config.preview_only,
            changelist_found=resolution.changelist is not None,
            baseline_entries=len(baseline.entries),
            override_entries=len(overrides),
            updated_ids=plan.updated_ids,
            appended_ids=plan.appended_ids,
            total_entries=len(merged.entries),
            assets=len(merged.assets),
            next_sync_token=merged.next_sync_token,
            warnings=[str(w) for w in resolution.warnings],
            started_at=started_at,
        )

    # ------------------------------------------------------------------
    # Main entry point
    # ------------------------------------------------------------------

    async def run(
        self, extra_context: dict[str, Any] | None = None
    ) -> RunReport:
        """Execute a full run.

        Args:
            extra_context: Additional invocation metadata for the sidecar.

        Returns:
            A ``RunReport`` describing the written snapshot.

        Raises:
            RemoteError: A fetch failed.
            MalformedEntryError: An override entry has no identifier.
            PersistenceError: The snapshot or sidecar could not be written.
        """
        started_at = _now()

        baseline, resolution = await self.fetch()
        merged = merge_snapshot(baseline, resolution.overrides)
        report = self.build_report(baseline, merged, resolution, started_at)

        path = persist_snapshot(merged, self.config.output_path)
        logger.info(
            "Wrote %d entries to %s", len(merged.entries), path
        )
        report = report.model_copy(
            update={"snapshot_path": str(path), "completed_at": _now()}
        )

        if self.config.context_path:
            context = {
                **report_to_json(report),
                **(extra_context or {}),
            }
            context_path = persist_context(
                context, Path(self.config.context_path)
            )
            logger.info("Wrote run context to %s", context_path)

        return report
