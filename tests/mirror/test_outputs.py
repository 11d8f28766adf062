"""Tests for GitHub Actions log groups, step outputs and summaries."""

from __future__ import annotations

from pathlib import Path

import pytest

from src.mirror.models import ConflictResult, MirrorOutcome, MirrorPR, PipelineResult, PipelineStatus, SyncState
from src.mirror.outputs import (
    actions_error,
    actions_group,
    step_outputs,
    write_step_outputs,
    write_step_summary,
)

from .conftest import HEAD_SHA, make_event


def _mirrored_result() -> PipelineResult:
    return (
        PipelineResult(event=make_event())
        .record("branch-name-check", True, conflict=ConflictResult("feature-x", False))
        .record("check-sync", True, sync_state=SyncState("a", "a"))
        .record("process-pr", True, mirror=MirrorOutcome(True, HEAD_SHA))
        .record("create-upstream-pr", True, mirror_pr=MirrorPR(101, "https://x/pull/101", "feature-x"))
        .finish(PipelineStatus.MIRRORED)
    )


class TestActionsMarkers:
    def test_group_markers_only_in_actions(self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
        monkeypatch.setenv("GITHUB_ACTIONS", "true")
        with actions_group("Check sync"):
            print("inside")

        assert capsys.readouterr().out == "::group::Check sync\ninside\n::endgroup::\n"

    def test_group_closes_on_error(self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
        monkeypatch.setenv("GITHUB_ACTIONS", "true")
        with pytest.raises(RuntimeError):
            with actions_group("Boom"):
                raise RuntimeError("x")

        assert capsys.readouterr().out.endswith("::endgroup::\n")

    def test_no_markers_outside_actions(self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
        monkeypatch.delenv("GITHUB_ACTIONS", raising=False)
        with actions_group("Quiet"):
            pass
        actions_error("nope")

        assert capsys.readouterr().out == ""

    def test_error_is_single_line(self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
        monkeypatch.setenv("GITHUB_ACTIONS", "true")
        actions_error("first\nsecond")
        assert capsys.readouterr().out == "::error::first second\n"


class TestStepOutputs:
    def test_values_for_mirrored_run(self) -> None:
        assert step_outputs(_mirrored_result()) == {
            "branch_conflict": "false",
            "is_synced": "true",
            "is_first_commit": "true",
            "commit_id": HEAD_SHA,
            "commit_short_id": HEAD_SHA[:7],
            "mirror_pr": "101",
            "status": "mirrored",
        }

    def test_unknown_values_are_empty(self) -> None:
        result = (
            PipelineResult(event=make_event())
            .record("branch-name-check", False, conflict=ConflictResult("feature-x", True))
            .finish(PipelineStatus.CONFLICT)
        )

        outputs = step_outputs(result)

        assert outputs["branch_conflict"] == "true"
        assert outputs["is_synced"] == ""
        assert outputs["commit_id"] == ""
        assert outputs["status"] == "conflict"

    def test_write_appends_to_output_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        output = tmp_path / "output.txt"
        output.write_text("previous=1\n", encoding="utf-8")
        monkeypatch.setenv("GITHUB_OUTPUT", str(output))

        assert write_step_outputs(_mirrored_result()) is True

        lines = output.read_text(encoding="utf-8").splitlines()
        assert lines[0] == "previous=1"
        assert "is_first_commit=true" in lines
        assert f"commit_id={HEAD_SHA}" in lines

    def test_write_without_target(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("GITHUB_OUTPUT", raising=False)
        assert write_step_outputs(_mirrored_result()) is False


class TestStepSummary:
    def test_writes_markdown_summary(self, tmp_path: Path) -> None:
        summary = tmp_path / "summary.md"

        assert write_step_summary(_mirrored_result(), summary) is True

        text = summary.read_text(encoding="utf-8")
        assert text.startswith("## Workflow Summary\n\n")
        assert "- PR #7 processing completed" in text
        assert "- Mirror PR: #101 https://x/pull/101" in text

    def test_without_target(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("GITHUB_STEP_SUMMARY", raising=False)
        assert write_step_summary(_mirrored_result()) is False
