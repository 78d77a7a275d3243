"""Changelist sync engine.

Public API for merging a changelist of entry overrides into a full
Contentful sync snapshot.

Modules:

- ``models``    -- ``Entry``, ``Asset``, ``Snapshot``, ``Changelist``,
  ``RunReport``: core data contracts.
- ``merger``    -- ``merge_snapshot``: update-in-place / append-as-new merge.
- ``resolver``  -- ``resolve_changelist``: decide the merge's override input.
- ``sources``   -- Contentful-backed snapshot and changelist sources.
- ``sink``      -- Atomic JSON persistence of snapshots and context.
- ``engine``    -- ``ChangelistSyncEngine``: orchestrates a full run.
- ``reporter``  -- Human-readable and JSON run reports.

Usage example
-------------
::

    import asyncio
    from changelist_sync.config import load_config
    from changelist_sync.core.client import create_client
    from changelist_sync.sync import (
        ChangelistSyncEngine,
        ContentfulChangelistSource,
        ContentfulSnapshotSource,
        format_run_report,
    )

    config = load_config(changelist_id="release-42")
    engine = ChangelistSyncEngine(
        ContentfulSnapshotSource(create_client(config)),
        ContentfulChangelistSource(create_client(config, preview=True)),
        config,
    )
    report = asyncio.run(engine.run())
    print(format_run_report(report))
"""

from .engine import ChangelistSyncEngine
from .merger import MergePlan, merge_snapshot, plan_merge
from .models import (
    Asset,
    Changelist,
    Entry,
    ReviewState,
    RunReport,
    Snapshot,
    Tombstone,
)
from .reporter import format_run_report, report_to_json
from .resolver import ChangelistResolution, resolve_changelist
from .sink import load_snapshot, persist_context, persist_snapshot
from .sources import ContentfulChangelistSource, ContentfulSnapshotSource

__all__ = [
    "Asset",
    "Changelist",
    "ChangelistResolution",
    "ChangelistSyncEngine",
    "ContentfulChangelistSource",
    "ContentfulSnapshotSource",
    "Entry",
    "MergePlan",
    "ReviewState",
    "RunReport",
    "Snapshot",
    "Tombstone",
    "format_run_report",
    "load_snapshot",
    "merge_snapshot",
    "persist_context",
    "persist_snapshot",
    "plan_merge",
    "report_to_json",
    "resolve_changelist",
]
