"""GitHub Actions integration: log groups, step outputs and the job summary."""

from __future__ import annotations

import os
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Mapping

from .models import PipelineResult


def running_in_actions() -> bool:
    return os.environ.get("GITHUB_ACTIONS") == "true"


@contextmanager
def actions_group(title: str) -> Iterator[None]:
    """Fold the enclosed log lines under ``title`` in the Actions log viewer."""

    enabled = running_in_actions()
    if enabled:
        print(f"::group::{title}", flush=True)
    try:
        yield
    finally:
        if enabled:
            print("::endgroup::", flush=True)


def actions_error(message: str) -> None:
    if running_in_actions():
        safe_message = " ".join(message.splitlines()).strip()
        print(f"::error::{safe_message}", flush=True)


def _flag(value: bool | None) -> str:
    if value is None:
        return ""
    return "true" if value else "false"


def step_outputs(result: PipelineResult) -> dict[str, str]:
    """Values later workflow steps can read as ``steps.<id>.outputs.*``."""

    mirror = result.mirror
    return {
        "branch_conflict": _flag(result.conflict.conflict if result.conflict else None),
        "is_synced": _flag(result.sync_state.is_synced if result.sync_state else None),
        "is_first_commit": _flag(mirror.is_first_mirror if mirror else None),
        "commit_id": mirror.commit_sha if mirror else "",
        "commit_short_id": mirror.commit_short_sha if mirror else "",
        "mirror_pr": str(result.mirror_pr.number) if result.mirror_pr else "",
        "status": result.status.value if result.status else "",
    }


def write_step_outputs(result: PipelineResult, path: str | os.PathLike[str] | None = None) -> bool:
    """Append outputs to ``$GITHUB_OUTPUT``. Returns False when there is nowhere to write."""

    output_path = path or os.environ.get("GITHUB_OUTPUT")
    if not output_path:
        return False
    _append(Path(output_path), step_outputs(result))
    return True


def write_step_summary(result: PipelineResult, path: str | os.PathLike[str] | None = None) -> bool:
    summary_path = path or os.environ.get("GITHUB_STEP_SUMMARY")
    if not summary_path:
        return False
    with open(summary_path, "a", encoding="utf-8") as handle:
        handle.write("## Workflow Summary\n\n")
        for line in result.summary().splitlines():
            handle.write(f"- {line}\n")
        handle.write("\n")
    return True


def _append(path: Path, values: Mapping[str, str]) -> None:
    with open(path, "a", encoding="utf-8") as handle:
        for key, value in values.items():
            handle.write(f"{key}={value}\n")


__all__ = [
    "actions_error",
    "actions_group",
    "running_in_actions",
    "step_outputs",
    "write_step_outputs",
    "write_step_summary",
]
