"""Data model for a single mirror run.

Nothing here is persisted. Each value is derived from the incoming event or
from remote state queried during the run, and is discarded when it ends.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import Any, Mapping

from .errors import MirrorError, UnsupportedEventError

SHORT_SHA_LENGTH = 7


class EventKind(str, Enum):
    OPENED = "opened"
    SYNCHRONIZE = "synchronize"


class PipelineStatus(str, Enum):
    MIRRORED = "mirrored"
    UPDATED = "updated"
    MIRROR_MISSING = "mirror_missing"
    INVALID_BRANCH = "invalid_branch"
    CONFLICT = "conflict"
    UNSYNCED = "unsynced"
    FAILED = "failed"


SUCCESS_STATUSES = frozenset(
    {
        PipelineStatus.MIRRORED,
        PipelineStatus.UPDATED,
        PipelineStatus.MIRROR_MISSING,
    }
)


def short_sha(sha: str) -> str:
    return sha[:SHORT_SHA_LENGTH]


def _mapping(value: object, label: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise MirrorError(f"Malformed event payload: '{label}' must be an object")
    return value


def _text(payload: Mapping[str, Any], key: str, label: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str) or not value:
        raise MirrorError(f"Malformed event payload: '{label}' is missing")
    return value


@dataclass(frozen=True)
class ForkPREvent:
    """A ``pull_request_target`` event for a PR opened from a fork."""

    event_kind: EventKind
    pr_number: int
    head_branch_name: str
    head_repo_clone_url: str
    head_repo_html_url: str
    head_repo_full_name: str
    head_commit_sha: str
    author_login: str
    fork_owner_login: str
    title: str
    body: str
    is_fork: bool = True

    @property
    def commit_short_sha(self) -> str:
        return short_sha(self.head_commit_sha)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "ForkPREvent":
        """Build an event from the webhook payload.

        Raises :class:`UnsupportedEventError` for anything this system does not
        act on (same-repo PRs, other actions, deleted forks) and
        :class:`MirrorError` when required fields are missing.
        """

        action = payload.get("action")
        try:
            kind = EventKind(action)
        except ValueError as exc:
            raise UnsupportedEventError(f"Unsupported pull request action: {action!r}") from exc

        pull_request = _mapping(payload.get("pull_request"), "pull_request")
        head = _mapping(pull_request.get("head"), "pull_request.head")
        head_repo = head.get("repo")
        if head_repo is None:
            raise UnsupportedEventError("Head repository no longer exists")
        head_repo = _mapping(head_repo, "pull_request.head.repo")
        if head_repo.get("fork") is not True:
            raise UnsupportedEventError("Pull request does not come from a fork")

        number = pull_request.get("number")
        if not isinstance(number, int) or isinstance(number, bool):
            raise MirrorError("Malformed event payload: 'pull_request.number' is missing")

        user = _mapping(pull_request.get("user") or {}, "pull_request.user")
        owner = _mapping(head_repo.get("owner") or {}, "pull_request.head.repo.owner")
        author = _text(user, "login", "pull_request.user.login")

        return cls(
            event_kind=kind,
            pr_number=number,
            head_branch_name=_text(head, "ref", "pull_request.head.ref"),
            head_repo_clone_url=_text(head_repo, "clone_url", "pull_request.head.repo.clone_url"),
            head_repo_html_url=str(head_repo.get("html_url") or ""),
            head_repo_full_name=str(head_repo.get("full_name") or ""),
            head_commit_sha=_text(head, "sha", "pull_request.head.sha"),
            author_login=author,
            fork_owner_login=str(owner.get("login") or author),
            title=str(pull_request.get("title") or ""),
            body=str(pull_request.get("body") or ""),
            is_fork=True,
        )


def load_event(path: Path) -> ForkPREvent:
    """Read the event JSON GitHub Actions writes to ``$GITHUB_EVENT_PATH``."""

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise MirrorError(f"Unable to read event payload {path}: {exc}") from exc
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise MirrorError(f"Event payload {path} is not valid JSON: {exc.msg}") from exc
    return ForkPREvent.from_payload(_mapping(payload, "event"))


@dataclass(frozen=True)
class UpstreamBranch:
    name: str
    exists: bool


@dataclass(frozen=True)
class ConflictResult:
    branch: str
    conflict: bool


@dataclass(frozen=True)
class SyncState:
    """Outcome of comparing the fork branch with trunk."""

    common_ancestor_sha: str
    trunk_head_sha: str
    fork_head_sha: str = ""

    @property
    def is_synced(self) -> bool:
        return self.common_ancestor_sha == self.trunk_head_sha


@dataclass(frozen=True)
class MirrorOutcome:
    is_first_mirror: bool
    commit_sha: str

    @property
    def commit_short_sha(self) -> str:
        return short_sha(self.commit_sha)


@dataclass(frozen=True)
class MirrorPR:
    number: int
    url: str
    branch_name: str
    state: str = "open"


@dataclass(frozen=True)
class StageOutcome:
    stage: str
    success: bool
    detail: str = ""


@dataclass(frozen=True)
class PipelineResult:
    """Immutable record threaded from stage to stage.

    Stages never mutate it; each returns a copy via :meth:`record` or
    :meth:`finish`.
    """

    event: ForkPREvent
    status: PipelineStatus | None = None
    stages: tuple[StageOutcome, ...] = ()
    conflict: ConflictResult | None = None
    sync_state: SyncState | None = None
    mirror: MirrorOutcome | None = None
    mirror_pr: MirrorPR | None = None
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.status in SUCCESS_STATUSES

    def record(self, stage: str, success: bool, detail: str = "", **changes: Any) -> "PipelineResult":
        outcome = StageOutcome(stage=stage, success=success, detail=detail)
        return replace(self, stages=(*self.stages, outcome), **changes)

    def finish(self, status: PipelineStatus, *, error: str | None = None) -> "PipelineResult":
        return replace(self, status=status, error=error)

    def to_dict(self) -> dict[str, Any]:
        return {
            "pr_number": self.event.pr_number,
            "branch": self.event.head_branch_name,
            "author": self.event.author_login,
            "event": self.event.event_kind.value,
            "status": self.status.value if self.status else None,
            "success": self.success,
            "branch_conflict": self.conflict.conflict if self.conflict else None,
            "is_synced": self.sync_state.is_synced if self.sync_state else None,
            "is_first_mirror": self.mirror.is_first_mirror if self.mirror else None,
            "commit_id": self.mirror.commit_sha if self.mirror else None,
            "commit_short_id": self.mirror.commit_short_sha if self.mirror else None,
            "mirror_pr": (
                {"number": self.mirror_pr.number, "url": self.mirror_pr.url}
                if self.mirror_pr
                else None
            ),
            "stages": [
                {"stage": item.stage, "success": item.success, "detail": item.detail}
                for item in self.stages
            ],
            "error": self.error,
        }

    def summary(self) -> str:
        """Human-readable run summary for the job log."""

        lines = [
            f"PR #{self.event.pr_number} processing completed",
            f"PR Author: {self.event.author_login}",
            f"PR Branch: {self.event.head_branch_name}",
            f"Status: {self.status.value if self.status else 'unknown'}",
        ]
        if self.sync_state is not None:
            lines.append(f"Sync Status: {str(self.sync_state.is_synced).lower()}")
        if self.mirror is not None:
            lines.append(f"First Commit: {str(self.mirror.is_first_mirror).lower()}")
            lines.append(f"Commit: {self.mirror.commit_sha}")
        if self.mirror_pr is not None:
            lines.append(f"Mirror PR: #{self.mirror_pr.number} {self.mirror_pr.url}")
        if self.error:
            lines.append(f"Error: {self.error}")
        return "\n".join(lines)


__all__ = [
    "ConflictResult",
    "EventKind",
    "ForkPREvent",
    "MirrorOutcome",
    "MirrorPR",
    "PipelineResult",
    "PipelineStatus",
    "SHORT_SHA_LENGTH",
    "StageOutcome",
    "SyncState",
    "UpstreamBranch",
    "load_event",
    "short_sha",
]
