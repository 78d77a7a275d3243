"""Merge changelist overrides into a baseline snapshot.

The merge is a pure function over two immutable inputs:

* Overrides whose id matches a baseline entry **replace** that entry in
  place (full replacement, not a field-level merge).
* Overrides whose id matches nothing are **appended** after all baseline
  entries, in their input order.
* When several overrides share an id the last one wins.  A duplicated new
  id is appended once, at the position of its first occurrence.
* Baseline entries are never removed; deletions only travel through the
  snapshot's tombstone lists.

Assets, tombstones and the continuation token are carried over as the same
objects.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from changelist_sync.errors import MalformedEntryError
from changelist_sync.sync.models import Entry, Snapshot

logger = logging.getLogger(__name__)


@dataclass
class MergePlan:
    """Partition of an override sequence against a baseline.

    Attributes:
        replacements: Resolved override per id, last occurrence wins.
        updated_ids: Ids already present in the baseline, in baseline order.
        appended_ids: Ids absent from the baseline, in first-seen order.
    """

    replacements: dict[str, Entry] = field(default_factory=dict)
    updated_ids: list[str] = field(default_factory=list)
    appended_ids: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.replacements


def _override_id(entry: Entry, index: int) -> str:
    entry_id = entry.sys.id
    if not isinstance(entry_id, str) or not entry_id.strip():
        raise MalformedEntryError(
            f"Override entry at position {index} has no sys.id",
            index=index,
        )
    return entry_id


def plan_merge(
    baseline_entries: Sequence[Entry], overrides: Sequence[Entry]
) -> MergePlan:
    """Partition *overrides* into updating and new entries.

    Args:
        baseline_entries: Entries of the baseline snapshot.
        overrides: Override entries from the changelist.

    Returns:
        A ``MergePlan`` describing the substitution and append sets.

    Raises:
        MalformedEntryError: If any override lacks a usable identifier.
    """
    plan = MergePlan()
    for index, entry in enumerate(overrides):
        plan.replacements[_override_id(entry, index)] = entry

    baseline_ids = {e.sys.id for e in baseline_entries if e.sys.id}
    plan.updated_ids = [
        e.sys.id
        for e in baseline_entries
        if e.sys.id in plan.replacements
    ]
    # dict preserves first insertion order, so this is first-seen order
    plan.appended_ids = [
        entry_id
        for entry_id in plan.replacements
        if entry_id not in baseline_ids
    ]
    return plan


def merge_snapshot(
    baseline: Snapshot, overrides: Sequence[Entry] | None
) -> Snapshot:
    """Apply changelist overrides to a baseline snapshot.

    Args:
        baseline: Full snapshot from the content repository.
        overrides: Override entries, or ``None`` when no changelist applies.

    Returns:
        The merged snapshot.  ``baseline`` itself is returned when there is
        nothing to apply.

    Raises:
        MalformedEntryError: If any override lacks a usable identifier.
    """
    if overrides is None:
        return baseline

    plan = plan_merge(baseline.entries, overrides)
    if plan.is_empty:
        return baseline

    entries = [
        plan.replacements.get(e.sys.id, e) if e.sys.id else e
        for e in baseline.entries
    ]
    entries.extend(plan.replacements[i] for i in plan.appended_ids)

    logger.debug(
        "Merged %d overrides: %d updated, %d appended",
        len(overrides),
        len(plan.updated_ids),
        len(plan.appended_ids),
    )

    # model_copy shares the untouched fields with the baseline
    return baseline.model_copy(update={"entries": entries})
