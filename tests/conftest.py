"""Shared pytest fixtures for changelist-sync tests."""

from unittest.mock import MagicMock

import pytest

from changelist_sync.config import Config
from changelist_sync.sync.models import Asset, Entry, Snapshot, Tombstone

_CONFIG_ENV_VARS = (
    "CTF_SPACE_ID",
    "CTF_CDA_ACCESS_TOKEN",
    "CTF_CPA_ACCESS_TOKEN",
    "CTF_ENVIRONMENT_ID",
    "CTF_CHANGELIST_ID",
    "INPUT_CTF-QUERY",
    "CTF_PREVIEW_ONLY",
    "CTF_DEBUG_LEVEL",
    "ACTIONS_RUNNER_DEBUG",
    "CTF_OUTPUT_PATH",
    "CTF_CONTEXT_PATH",
    "CTF_CDA_HOST",
    "CTF_CPA_HOST",
    "CTF_LOCALE",
    "CHANGELIST_SYNC_CONFIG",
    "GITHUB_ACTIONS",
    "GITHUB_OUTPUT",
    "LOG_LEVEL",
)


def pytest_addoption(parser):
    """Add custom CLI options for test filtering."""
    parser.addoption(
        "--run-live",
        action="store_true",
        default=False,
        help="Run tests that require a live Contentful space",
    )


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "live: mark test as requiring a live Contentful space"
    )


def pytest_collection_modifyitems(config, items):
    """Skip live tests unless --run-live is passed."""
    if config.getoption("--run-live"):
        return
    skip_live = pytest.mark.skip(reason="need --run-live option to run")
    for item in items:
        if "live" in item.keywords:
            item.add_marker(skip_live)


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every variable the config layer reads."""
    for name in _CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def mock_config(tmp_path):
    """Create a Config instance for testing."""
    return Config(
        space_id="space123",
        delivery_token="cda-token",
        preview_token="cpa-token",
        environment_id="master",
        output_path=str(tmp_path / "out" / "snapshot.json"),
    )


@pytest.fixture
def mock_contentful_client():
    """Create a mock ContentfulClient instance for testing."""
    from changelist_sync.core.client import ContentfulClient

    return MagicMock(spec=ContentfulClient)


def make_entry(entry_id, content_type="page", **fields):
    """Build an Entry with the given id and plain field values."""
    sys = {
        "type": "Entry",
        "createdAt": "2024-01-01T00:00:00.000Z",
        "updatedAt": "2024-01-02T00:00:00.000Z",
        "contentType": {
            "sys": {"type": "Link", "linkType": "ContentType", "id": content_type}
        },
    }
    if entry_id is not None:
        sys["id"] = entry_id
    return Entry.model_validate({"sys": sys, "fields": fields})


@pytest.fixture
def entry_factory():
    return make_entry


@pytest.fixture
def baseline():
    """A baseline snapshot with two entries, an asset and tombstones."""
    return Snapshot(
        entries=[make_entry("1", v="a"), make_entry("2", v="b")],
        assets=[
            Asset.model_validate(
                {
                    "sys": {"id": "img", "type": "Asset"},
                    "fields": {"file": {"en-US": {"url": "//img.png"}}},
                }
            )
        ],
        deleted_entries=[
            Tombstone.model_validate({"sys": {"id": "gone", "type": "DeletedEntry"}})
        ],
        deleted_assets=[
            Tombstone.model_validate({"sys": {"id": "old", "type": "DeletedAsset"}})
        ],
        next_sync_token="token-abc",
    )
