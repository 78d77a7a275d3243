"""Durable output for a sync run.

Writes the merged snapshot and the optional context sidecar as JSON.

* **Atomic writes**: documents go to a temp file in the target directory,
  then ``os.replace()`` swaps it in, so readers never see partial data.
* Parent directories are created as needed.
* Any ``OSError`` is re-raised as ``PersistenceError``.
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from changelist_sync.errors import PersistenceError
from changelist_sync.sync.models import Snapshot


def write_json_atomic(path: Path, document: Any) -> int:
    """Write *document* as JSON to *path* atomically.

    Returns:
        Number of bytes written.

    Raises:
        PersistenceError: If the directory or file cannot be written.
    """
    encoded = json.dumps(document, indent=2, ensure_ascii=False) + "\n"
    data = encoded.encode("utf-8")

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp"
        )
    except OSError as e:
        raise PersistenceError(f"Cannot write {path}: {e}") from e

    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(data)
        os.replace(tmp_path, path)
    except BaseException as e:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        if isinstance(e, OSError):
            raise PersistenceError(f"Cannot write {path}: {e}") from e
        raise

    return len(data)


def persist_snapshot(snapshot: Snapshot, destination: str | Path) -> Path:
    """Write the merged snapshot document and return its resolved path."""
    path = Path(destination).resolve()
    write_json_atomic(path, snapshot.to_document())
    return path


def persist_context(context: dict[str, Any], destination: str | Path) -> Path:
    """Write the invocation-context sidecar.  The record is not inspected."""
    path = Path(destination).resolve()
    write_json_atomic(path, context)
    return path


def load_snapshot(source: str | Path) -> Snapshot:
    """Read a snapshot document written by ``persist_snapshot``."""
    path = Path(source)
    try:
        with open(path, encoding="utf-8") as fh:
            document = json.load(fh)
    except OSError as e:
        raise PersistenceError(f"Cannot read {path}: {e}") from e
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise PersistenceError(f"{path} is not valid JSON: {e}") from e

    try:
        return Snapshot.from_document(document)
    except ValidationError as e:
        raise PersistenceError(f"{path} is not a snapshot document: {e}") from e
