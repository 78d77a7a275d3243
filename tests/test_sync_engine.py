"""Tests for the changelist sync engine."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import pytest

from changelist_sync.config import Config
from changelist_sync.errors import MalformedEntryError, RemoteError
from changelist_sync.sync.engine import ChangelistSyncEngine
from changelist_sync.sync.models import Changelist, Entry, Snapshot

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class FakeSnapshotSource:
    def __init__(self, snapshot: Snapshot, error: Exception | None = None):
        self.snapshot = snapshot
        self.error = error
        self.calls = 0

    def fetch_full_snapshot(self) -> Snapshot:
        self.calls += 1
        if self.error:
            raise self.error
        return self.snapshot


class FakeChangelistSource:
    """In-memory changelist store keyed by identifier."""

    def __init__(
        self,
        changelists: Optional[dict[str, Changelist]] = None,
        error: Exception | None = None,
    ):
        self.changelists = changelists or {}
        self.error = error
        self.lookups: list[str] = []

    def find_changelist(self, identifier: str) -> Changelist | None:
        self.lookups.append(identifier)
        if self.error:
            raise self.error
        return self.changelists.get(identifier)


def _config(tmp_path: Path, **overrides) -> Config:
    defaults = {
        "space_id": "space123",
        "delivery_token": "cda",
        "preview_token": "cpa",
        "output_path": str(tmp_path / "snapshot.json"),
    }
    defaults.update(overrides)
    return Config(**defaults)


def _changelist(entries: list[Entry] | None) -> Changelist:
    return Changelist(id="sys-cl", changelist_id="cl-1", entries=entries)


def _written_ids(path: Path) -> list[str]:
    document = json.loads(path.read_text())
    return [e["sys"]["id"] for e in document["entries"]]


# ---------------------------------------------------------------------------
# Runs
# ---------------------------------------------------------------------------


class TestEngineRun:
    async def test_baseline_only_without_changelist(self, tmp_path, baseline):
        changelists = FakeChangelistSource()
        engine = ChangelistSyncEngine(
            FakeSnapshotSource(baseline), changelists, _config(tmp_path)
        )

        report = await engine.run()

        assert changelists.lookups == []
        assert report.total_entries == 2
        assert report.changelist_found is False
        assert _written_ids(tmp_path / "snapshot.json") == ["1", "2"]

    async def test_changelist_applied(self, tmp_path, baseline, entry_factory):
        changelists = FakeChangelistSource(
            {
                "cl-1": _changelist(
                    [entry_factory("2", v="B"), entry_factory("9", v="new")]
                )
            }
        )
        engine = ChangelistSyncEngine(
            FakeSnapshotSource(baseline),
            changelists,
            _config(tmp_path, changelist_id="cl-1"),
        )

        report = await engine.run()

        assert changelists.lookups == ["cl-1"]
        assert report.changelist_found is True
        assert report.override_entries == 2
        assert report.updated_ids == ["2"]
        assert report.appended_ids == ["9"]
        assert report.total_entries == 3
        assert report.snapshot_path == str((tmp_path / "snapshot.json").resolve())
        assert report.completed_at is not None

        document = json.loads((tmp_path / "snapshot.json").read_text())
        assert [e["sys"]["id"] for e in document["entries"]] == ["1", "2", "9"]
        assert document["entries"][1]["fields"] == {"v": "B"}
        assert document["nextSyncToken"] == "token-abc"
        assert len(document["assets"]) == 1

    async def test_preview_only_skips_lookup(self, tmp_path, baseline):
        changelists = FakeChangelistSource({"cl-1": _changelist([])})
        engine = ChangelistSyncEngine(
            FakeSnapshotSource(baseline),
            changelists,
            _config(tmp_path, changelist_id="cl-1", preview_only=True),
        )

        report = await engine.run()

        assert changelists.lookups == []
        assert report.preview_only is True
        assert _written_ids(tmp_path / "snapshot.json") == ["1", "2"]

    async def test_missing_changelist_degrades_to_baseline(self, tmp_path, baseline, caplog):
        engine = ChangelistSyncEngine(
            FakeSnapshotSource(baseline),
            FakeChangelistSource(),
            _config(tmp_path, changelist_id="cl-missing"),
        )

        report = await engine.run()

        assert report.changelist_found is False
        assert len(report.warnings) == 1
        assert "cl-missing" in report.warnings[0]
        assert "cl-missing" in caplog.text
        assert _written_ids(tmp_path / "snapshot.json") == ["1", "2"]

    async def test_malformed_entry_persists_nothing(
        self, tmp_path, baseline, entry_factory
    ):
        changelists = FakeChangelistSource(
            {"cl-1": _changelist([entry_factory("2"), entry_factory(None)])}
        )
        engine = ChangelistSyncEngine(
            FakeSnapshotSource(baseline),
            changelists,
            _config(
                tmp_path,
                changelist_id="cl-1",
                context_path=str(tmp_path / "ctx.json"),
            ),
        )

        with pytest.raises(MalformedEntryError):
            await engine.run()

        assert not (tmp_path / "snapshot.json").exists()
        assert not (tmp_path / "ctx.json").exists()

    async def test_snapshot_fetch_failure_is_fatal(self, tmp_path, baseline):
        engine = ChangelistSyncEngine(
            FakeSnapshotSource(baseline, error=RemoteError("sync failed")),
            FakeChangelistSource(),
            _config(tmp_path),
        )

        with pytest.raises(RemoteError, match="sync failed"):
            await engine.run()

        assert not (tmp_path / "snapshot.json").exists()

    async def test_changelist_fetch_failure_is_fatal(self, tmp_path, baseline):
        engine = ChangelistSyncEngine(
            FakeSnapshotSource(baseline),
            FakeChangelistSource(error=RemoteError("preview down", status_code=503)),
            _config(tmp_path, changelist_id="cl-1"),
        )

        with pytest.raises(RemoteError, match="preview down"):
            await engine.run()

        assert not (tmp_path / "snapshot.json").exists()

    async def test_context_sidecar_written(self, tmp_path, baseline):
        context_path = tmp_path / "meta" / "context.json"
        engine = ChangelistSyncEngine(
            FakeSnapshotSource(baseline),
            None,
            _config(tmp_path, context_path=str(context_path)),
        )

        report = await engine.run(extra_context={"ci": {"sha": "abc123"}})

        context = json.loads(context_path.read_text())
        assert context["environment_id"] == "master"
        assert context["total_entries"] == report.total_entries
        assert context["summary"]["baseline"] == 2
        assert context["ci"] == {"sha": "abc123"}

    async def test_no_context_without_path(self, tmp_path, baseline):
        engine = ChangelistSyncEngine(
            FakeSnapshotSource(baseline), None, _config(tmp_path)
        )

        await engine.run()

        assert [p.name for p in tmp_path.iterdir()] == ["snapshot.json"]


class TestEngineFetch:
    async def test_fetch_joins_both_sources(self, tmp_path, baseline, entry_factory):
        snapshots = FakeSnapshotSource(baseline)
        changelists = FakeChangelistSource(
            {"cl-1": _changelist([entry_factory("1")])}
        )
        engine = ChangelistSyncEngine(
            snapshots, changelists, _config(tmp_path, changelist_id="cl-1")
        )

        fetched, resolution = await engine.fetch()

        assert fetched is baseline
        assert snapshots.calls == 1
        assert [e.id for e in resolution.overrides] == ["1"]
