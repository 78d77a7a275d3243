"""Snapshot and changelist sources backed by the Contentful APIs.

``SnapshotSource`` and ``ChangelistSource`` are the interfaces the engine
depends on; the Contentful implementations translate raw API payloads into
``Snapshot`` and ``Changelist`` models.

Changelist entries are stored as links.  The lookup requests ``include=1``
so the linked entries come back in ``includes.Entry``; each link is swapped
for its included entry.  Links inside those entries are left alone.

Payloads that fail model validation surface as ``MalformedEntryError``
(changelist entries) or ``RemoteError`` (sync items).
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

from pydantic import ValidationError

from changelist_sync.core.client import ContentfulClient
from changelist_sync.errors import MalformedEntryError, RemoteError
from changelist_sync.sync.models import (
    Asset,
    Changelist,
    Entry,
    Snapshot,
    Tombstone,
)

logger = logging.getLogger(__name__)


class SnapshotSource(Protocol):
    def fetch_full_snapshot(self) -> Snapshot: ...


class ChangelistSource(Protocol):
    def find_changelist(self, identifier: str) -> Changelist | None: ...


# ------------------------------------------------------------------
# Snapshot source
# ------------------------------------------------------------------


def snapshot_from_sync(payload: dict[str, Any]) -> Snapshot:
    """Split sync items by ``sys.type`` into a ``Snapshot``.

    Items of unknown type are logged and ignored.
    """
    entries: list[Entry] = []
    assets: list[Asset] = []
    deleted_entries: list[Tombstone] = []
    deleted_assets: list[Tombstone] = []

    for position, item in enumerate(payload.get("items", [])):
        sys = item.get("sys") if isinstance(item, dict) else None
        item_type = sys.get("type") if isinstance(sys, dict) else None
        try:
            match item_type:
                case "Entry":
                    entries.append(Entry.model_validate(item))
                case "Asset":
                    assets.append(Asset.model_validate(item))
                case "DeletedEntry":
                    deleted_entries.append(Tombstone.model_validate(item))
                case "DeletedAsset":
                    deleted_assets.append(Tombstone.model_validate(item))
                case _:
                    logger.warning("Ignoring sync item of type %r", item_type)
        except ValidationError as e:
            raise RemoteError(
                f"Malformed {item_type} at position {position} in sync response: {e}"
            ) from e

    return Snapshot(
        entries=entries,
        assets=assets,
        deleted_entries=deleted_entries,
        deleted_assets=deleted_assets,
        next_sync_token=payload.get("nextSyncToken"),
    )


class ContentfulSnapshotSource:
    """Fetch the full baseline through an initial sync of all types."""

    def __init__(self, client: ContentfulClient) -> None:
        self.client = client

    def fetch_full_snapshot(self) -> Snapshot:
        payload = self.client.sync(initial=True, sync_type="all")
        snapshot = snapshot_from_sync(payload)
        logger.info(
            "Initial sync: %d entries, %d assets, token [%s]",
            len(snapshot.entries),
            len(snapshot.assets),
            snapshot.next_sync_token,
        )
        return snapshot


# ------------------------------------------------------------------
# Changelist source
# ------------------------------------------------------------------


def _localized(value: Any, locale: str) -> Any:
    """Unwrap a ``{locale: value}`` mapping returned with ``locale=*``."""
    if isinstance(value, dict) and "sys" not in value:
        if locale in value:
            return value[locale]
        if value:
            return next(iter(value.values()))
        return None
    return value


def _hydrate(
    raw_entries: Any, included: dict[str, dict[str, Any]]
) -> list[Entry]:
    if not isinstance(raw_entries, list):
        raise MalformedEntryError(
            f"Changelist entries must be a list, got {type(raw_entries).__name__}"
        )

    entries: list[Entry] = []
    for index, raw in enumerate(raw_entries):
        if not isinstance(raw, dict):
            raise MalformedEntryError(
                f"Changelist entry at position {index} is not an object",
                index=index,
            )
        sys = raw.get("sys")
        if isinstance(sys, dict) and sys.get("type") == "Link":
            target = included.get(sys.get("id"))
            if target is None:
                raise MalformedEntryError(
                    f"Changelist entry link at position {index} "
                    f"({sys.get('id')!r}) was not returned in includes",
                    index=index,
                )
            raw = target
        try:
            entries.append(Entry.model_validate(raw))
        except ValidationError as e:
            raise MalformedEntryError(
                f"Changelist entry at position {index} is malformed: {e}",
                index=index,
            ) from e
    return entries


class ContentfulChangelistSource:
    """Look up a changelist by identifier through the preview API.

    Args:
        client: Preview API client.
        content_type: Content type id of changelists.
        id_field: Field holding the changelist identifier.
        locale: Locale used to unwrap localized field values.
    """

    def __init__(
        self,
        client: ContentfulClient,
        content_type: str = "changelist",
        id_field: str = "changelistId",
        locale: str = "en-US",
    ) -> None:
        self.client = client
        self.content_type = content_type
        self.id_field = id_field
        self.locale = locale

    def build_query(self, identifier: str) -> dict[str, Any]:
        return {
            "content_type": self.content_type,
            f"fields.{self.id_field}": identifier,
            "select": "sys.id,fields.entries",
            "include": 1,
            # all locales, matching the shape of sync payloads
            "locale": "*",
        }

    def find_changelist(self, identifier: str) -> Changelist | None:
        collection = self.client.get_entries(self.build_query(identifier))
        items = collection.get("items", [])
        if not items:
            return None
        if len(items) > 1:
            logger.warning(
                "Changelist [%s] matched %d entries, using the first (%s)",
                identifier,
                len(items),
                items[0].get("sys", {}).get("id"),
            )

        item = items[0]
        included = {
            e["sys"]["id"]: e
            for e in collection.get("includes", {}).get("Entry", [])
            if isinstance(e.get("sys"), dict) and e["sys"].get("id")
        }
        fields = item.get("fields", {})
        raw_entries = _localized(fields.get("entries"), self.locale)

        return Changelist(
            id=item.get("sys", {}).get("id"),
            changelist_id=identifier,
            entries=None
            if raw_entries is None
            else _hydrate(raw_entries, included),
        )
