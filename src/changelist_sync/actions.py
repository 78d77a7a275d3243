"""GitHub Actions integration: step outputs, failure annotations, run metadata.

All helpers are no-ops outside a workflow run, so the CLI behaves the same
locally.
"""

import logging
import os
import sys
import uuid
from typing import Any

logger = logging.getLogger(__name__)

_CI_VARIABLES = (
    "GITHUB_REPOSITORY",
    "GITHUB_REF",
    "GITHUB_SHA",
    "GITHUB_RUN_ID",
    "GITHUB_RUN_NUMBER",
    "GITHUB_WORKFLOW",
    "GITHUB_ACTOR",
    "GITHUB_EVENT_NAME",
)


def in_actions() -> bool:
    return os.getenv("GITHUB_ACTIONS", "").lower() == "true"


def set_output(name: str, value: Any) -> None:
    """Append a step output to ``$GITHUB_OUTPUT`` if it is set.

    Multi-line values use the heredoc delimiter syntax.
    """
    output_file = os.getenv("GITHUB_OUTPUT")
    if not output_file:
        logger.debug("GITHUB_OUTPUT not set, skipping output %s", name)
        return

    text = "" if value is None else str(value)
    if "\n" in text:
        delimiter = f"ghadelimiter_{uuid.uuid4()}"
        line = f"{name}<<{delimiter}\n{text}\n{delimiter}\n"
    else:
        line = f"{name}={text}\n"
    with open(output_file, "a", encoding="utf-8") as fh:
        fh.write(line)


def _escape_data(message: str) -> str:
    return (
        message.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")
    )


def set_failed(message: str) -> None:
    """Emit an ``::error::`` workflow annotation when running in Actions."""
    if in_actions():
        print(f"::error::{_escape_data(message)}", file=sys.stdout, flush=True)


def annotate_warning(message: str) -> None:
    """Emit a ``::warning::`` workflow annotation when running in Actions."""
    if in_actions():
        print(f"::warning::{_escape_data(message)}", file=sys.stdout, flush=True)


def ci_context() -> dict[str, Any]:
    """Collect workflow metadata for the context sidecar."""
    values = {
        name.removeprefix("GITHUB_").lower(): os.environ[name]
        for name in _CI_VARIABLES
        if os.environ.get(name)
    }
    return {"ci": values} if values else {}
