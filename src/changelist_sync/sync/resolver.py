"""Changelist resolution: decide the merge engine's override input.

``resolve_changelist`` turns a (possibly empty) changelist identifier and
the preview-only flag into the override sequence for ``merge_snapshot``:

- No identifier, or preview-only mode: ``overrides`` is ``None`` and the
  source is never queried.
- Identifier with no matching changelist: ``overrides`` is ``None`` and a
  ``NotFoundWarning`` is recorded and logged.  The run continues with the
  baseline only.
- Matching changelist: ``overrides`` is its entries (``[]`` when unset).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from changelist_sync.errors import NotFoundWarning
from changelist_sync.sync.models import Changelist, Entry
from changelist_sync.sync.sources import ChangelistSource

logger = logging.getLogger(__name__)


@dataclass
class ChangelistResolution:
    """Outcome of a changelist lookup.

    Attributes:
        changelist: The matched changelist, if any.
        overrides: Entries to merge, or ``None`` for a baseline-only run.
        warnings: Non-fatal diagnostics raised during resolution.
    """

    changelist: Changelist | None = None
    overrides: list[Entry] | None = None
    warnings: list[NotFoundWarning] = field(default_factory=list)


def should_lookup(changelist_id: str, preview_only: bool) -> bool:
    return bool(changelist_id.strip()) and not preview_only


def resolve_changelist(
    source: ChangelistSource | None,
    changelist_id: str,
    preview_only: bool = False,
) -> ChangelistResolution:
    """Resolve the override entries for a run.

    Args:
        source: Changelist source; may be ``None`` when no lookup is needed.
        changelist_id: Caller-supplied identifier, possibly empty.
        preview_only: Skip the lookup and run on the baseline only.

    Returns:
        A ``ChangelistResolution``.

    Raises:
        RemoteError: If the lookup itself fails.
    """
    if not should_lookup(changelist_id, preview_only):
        if changelist_id and preview_only:
            logger.info(
                "Preview-only mode, ignoring changelist [%s]", changelist_id
            )
        return ChangelistResolution()

    if source is None:
        raise ValueError(
            f"Changelist [{changelist_id}] requested without a changelist source"
        )

    changelist = source.find_changelist(changelist_id.strip())
    return resolution_from_changelist(changelist_id, changelist)


def resolution_from_changelist(
    changelist_id: str, changelist: Changelist | None
) -> ChangelistResolution:
    """Build the resolution for an already-fetched lookup result."""
    if changelist is None:
        warning = NotFoundWarning(
            f"Changelist [{changelist_id}] not found, using baseline snapshot only"
        )
        logger.warning("%s", warning)
        return ChangelistResolution(warnings=[warning])

    overrides = list(changelist.entries or [])
    logger.info(
        "Changelist [%s] contains %d entries", changelist_id, len(overrides)
    )
    return ChangelistResolution(changelist=changelist, overrides=overrides)
