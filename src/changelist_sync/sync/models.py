"""Pydantic models for content snapshots and changelists.

Defines the data contracts shared by the sources, the merger and the sink:

- ``SysMeta``: system metadata carried by every record.
- ``Entry`` / ``Asset`` / ``Tombstone``: content records and deletion markers.
- ``Snapshot``: a full sync collection (the merge input and output).
- ``ReviewState`` / ``Changelist``: the curated set of entry overrides.
- ``RunReport``: invocation metadata for one sync run.

Records are frozen and keep unknown keys (``extra="allow"``) so a snapshot
read from the content repository is written back without losing data.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

_RECORD_CONFIG = {
    "frozen": True,
    "extra": "allow",
    "populate_by_name": True,
}


class SysMeta(BaseModel):
    """System metadata of a record.

    ``id`` is optional at parse time; the merger rejects overrides without
    one instead of the model refusing to load them.
    """

    id: str | None = None
    type: str | None = None
    created_at: str | None = Field(default=None, alias="createdAt")
    updated_at: str | None = Field(default=None, alias="updatedAt")
    locale: str | None = None
    content_type: dict[str, Any] | None = Field(
        default=None, alias="contentType"
    )

    model_config = _RECORD_CONFIG


class _Record(BaseModel):
    sys: SysMeta = Field(default_factory=SysMeta)
    fields: dict[str, Any] = Field(default_factory=dict)

    model_config = _RECORD_CONFIG

    @property
    def id(self) -> str | None:
        return self.sys.id

    def to_document(self) -> dict[str, Any]:
        """Serialize back to the repository's JSON shape."""
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


class Entry(_Record):
    """A content record: ``sys`` metadata plus a field mapping.

    Field values are opaque.  References to other entries stay as link
    objects and are never resolved.
    """

    @property
    def content_type_id(self) -> str | None:
        ct = self.sys.content_type or {}
        return ct.get("sys", {}).get("id")

    @property
    def is_link(self) -> bool:
        """True when this is an unresolved ``Link`` to an entry."""
        return self.sys.type == "Link"


class Asset(_Record):
    """A binary-backed record, passed through untouched."""


class Tombstone(BaseModel):
    """A ``DeletedEntry`` or ``DeletedAsset`` marker."""

    sys: SysMeta = Field(default_factory=SysMeta)

    model_config = _RECORD_CONFIG

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


class Snapshot(BaseModel):
    """A full sync collection.

    Attributes:
        entries: Content entries; ids are unique after a merge.
        assets: Assets, untouched by the merge.
        deleted_entries: Deleted-entry markers since the cursor.
        deleted_assets: Deleted-asset markers since the cursor.
        next_sync_token: Opaque continuation token.
    """

    entries: list[Entry] = []
    assets: list[Asset] = []
    deleted_entries: list[Tombstone] = Field(
        default_factory=list, alias="deletedEntries"
    )
    deleted_assets: list[Tombstone] = Field(
        default_factory=list, alias="deletedAssets"
    )
    next_sync_token: str | None = Field(default=None, alias="nextSyncToken")

    model_config = {"frozen": True, "populate_by_name": True}

    def to_document(self) -> dict[str, Any]:
        """Serialize to the persisted document shape."""
        return {
            "entries": [e.to_document() for e in self.entries],
            "assets": [a.to_document() for a in self.assets],
            "deletedEntries": [t.to_document() for t in self.deleted_entries],
            "deletedAssets": [t.to_document() for t in self.deleted_assets],
            "nextSyncToken": self.next_sync_token,
        }

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> Snapshot:
        return cls.model_validate(document)


class ReviewState(str, Enum):
    """Editorial review states of a changelist."""

    INITIAL_AUTHORING = "Initial authoring"
    NEEDS_REVIEW = "Needs Review"
    NEEDS_CHANGES = "Needs changes"
    READY_TO_PUBLISH = "Ready to publish"


class Changelist(BaseModel):
    """A collection of content updates to be included in a deployment.

    Only ``changelist_id`` and ``entries`` are load-bearing; the remaining
    fields are informational and usually absent because the lookup selects
    a minimal projection.

    Attributes:
        id: The changelist's own ``sys.id``.
        changelist_id: The caller-facing changelist identifier.
        entry_title: Title shown in the editor UI.
        feature_name: Feature (branch) name.
        approved_by_legal: Legal approval marker (``["Yes"]`` when approved).
        review_state: Editorial review state.
        entries: Ordered override entries, ``None`` when the field is unset.
    """

    id: str | None = None
    changelist_id: str = Field(alias="changelistId")
    entry_title: str | None = Field(default=None, alias="entryTitle")
    feature_name: str | None = Field(default=None, alias="featureName")
    approved_by_legal: list[str] = Field(
        default_factory=list, alias="approvedByLegal"
    )
    review_state: ReviewState | None = Field(
        default=None, alias="reviewState"
    )
    entries: list[Entry] | None = None

    model_config = {"frozen": True, "populate_by_name": True}

    @property
    def is_approved(self) -> bool:
        return "Yes" in self.approved_by_legal


class RunReport(BaseModel):
    """Invocation metadata for a completed sync run.

    Attributes:
        version: Tool version that produced the snapshot.
        environment_id: Content environment both clients queried.
        changelist_id: Requested changelist identifier (may be empty).
        preview_only: Whether the changelist lookup was skipped.
        changelist_found: Whether a changelist matched the identifier.
        baseline_entries: Entry count of the baseline snapshot.
        override_entries: Number of override entries applied.
        updated_ids: Ids of baseline entries replaced by overrides.
        appended_ids: Ids of overrides appended as new entries.
        total_entries: Entry count of the merged snapshot.
        assets: Asset count (passed through).
        next_sync_token: Continuation token of the baseline.
        snapshot_path: Where the merged snapshot was written.
        warnings: Non-fatal diagnostics emitted during the run.
        started_at: ISO 8601 timestamp when the run started.
        completed_at: ISO 8601 timestamp when the run completed.
    """

    version: str
    environment_id: str
    changelist_id: str = ""
    preview_only: bool = False
    changelist_found: bool = False
    baseline_entries: int = 0
    override_entries: int = 0
    updated_ids: list[str] = []
    appended_ids: list[str] = []
    total_entries: int = 0
    assets: int = 0
    next_sync_token: str | None = None
    snapshot_path: str | None = None
    warnings: list[str] = []
    started_at: str
    completed_at: str | None = None

    model_config = {"frozen": True}
