"""Shared fixtures and an in-memory gateway for mirror stage tests."""

from __future__ import annotations

import copy
from typing import Any

import pytest

from src.integrations.github.api import CommentRecord, GitHubApiError, PullRequestRecord
from src.integrations.github.git import RemoteRef
from src.mirror.models import ForkPREvent

TRUNK_SHA = "1111111111111111111111111111111111111111"
STALE_SHA = "0000000000000000000000000000000000000000"
HEAD_SHA = "abcdef1234567890abcdef1234567890abcdef12"
FORK_URL = "https://github.com/contributor/widgets.git"


class FakeGateway:
    """Records every remote operation and serves canned remote state."""

    def __init__(
        self,
        *,
        owner: str = "acme",
        name: str = "widgets",
        upstream_branches: set[str] | None = None,
        fork_head: str = HEAD_SHA,
        trunk_sha: str = TRUNK_SHA,
        merge_base_sha: str | None = None,
    ) -> None:
        self._owner = owner
        self._name = name
        self.upstream: dict[str, str] = {branch: STALE_SHA for branch in upstream_branches or ()}
        self.local: dict[str, str] = {}
        self.fork_head = fork_head
        self.trunk_sha = trunk_sha
        self.merge_base_sha = merge_base_sha
        self.failures: dict[str, Exception] = {}
        self.failing_issues: set[int] = set()
        self.calls: list[tuple[Any, ...]] = []
        self.comments: list[tuple[int, str]] = []
        self.pull_requests: list[PullRequestRecord] = []
        self._next_number = 100

    # helpers

    def fail(self, operation: str, message: str = "boom") -> None:
        self.failures[operation] = GitHubApiError(message)

    def _enter(self, operation: str, *args: Any) -> None:
        self.calls.append((operation, *args))
        if operation in self.failures:
            raise self.failures[operation]

    def operations(self, name: str) -> list[tuple[Any, ...]]:
        return [call for call in self.calls if call[0] == name]

    def comments_on(self, number: int) -> list[str]:
        return [body for issue, body in self.comments if issue == number]

    def add_open_pr(self, number: int, branch: str, *, owner: str | None = None) -> PullRequestRecord:
        label_owner = owner or self._owner
        record = PullRequestRecord(
            number=number,
            url=f"https://api.github.com/repos/{self.repository}/pulls/{number}",
            html_url=f"https://github.com/{self.repository}/pull/{number}",
            state="open",
            head_ref=branch,
            head_label=f"{label_owner}:{branch}",
        )
        self.pull_requests.append(record)
        return record

    # identity

    @property
    def owner(self) -> str:
        return self._owner

    @property
    def repository(self) -> str:
        return f"{self._owner}/{self._name}"

    # git transport

    def list_remote_refs(self, pattern: str) -> list[RemoteRef]:
        self._enter("list_remote_refs", pattern)
        return [
            RemoteRef(sha=sha, name=f"refs/heads/{branch}")
            for branch, sha in self.upstream.items()
            if f"refs/heads/{branch}".endswith(pattern)
        ]

    def branch_exists(self, name: str) -> bool:
        self._enter("branch_exists", name)
        return name in self.upstream

    def fetch_trunk(self, trunk: str) -> None:
        self._enter("fetch_trunk", trunk)
        self.local[trunk] = self.trunk_sha

    def fetch_ref(
        self,
        remote_url: str,
        ref_name: str,
        local_name: str | None = None,
        *,
        force: bool = False,
        update_head_ok: bool = False,
    ) -> None:
        self._enter("fetch_ref", remote_url, ref_name, local_name, force)
        self.local["FETCH_HEAD"] = self.fork_head
        if local_name:
            self.local[local_name] = self.fork_head

    def push_ref(self, ref_name: str, *, force: bool = False) -> None:
        self._enter("push_ref", ref_name, force)
        self.upstream[ref_name] = self.local[ref_name]

    def merge_base(self, ref_a: str, ref_b: str) -> str:
        self._enter("merge_base", ref_a, ref_b)
        if self.merge_base_sha is not None:
            return self.merge_base_sha
        return self.trunk_sha

    def resolve_ref(self, ref: str) -> str:
        self._enter("resolve_ref", ref)
        if ref not in self.local:
            raise GitHubApiError(f"unknown ref {ref}")
        return self.local[ref]

    def force_branch(self, name: str, start_point: str) -> None:
        self._enter("force_branch", name, start_point)
        self.local[name] = self.local[start_point]

    def delete_branch(self, name: str) -> None:
        self._enter("delete_branch", name)
        self.local.pop(name, None)

    # REST

    def create_issue_comment(self, issue_number: int, body: str) -> CommentRecord:
        self._enter("create_issue_comment", issue_number)
        if issue_number in self.failing_issues:
            raise GitHubApiError(f"GitHub API error (403): comments locked on #{issue_number}")
        self.comments.append((issue_number, body))
        comment_id = len(self.comments)
        return CommentRecord(
            id=comment_id,
            url=f"https://api.github.com/repos/{self.repository}/issues/comments/{comment_id}",
            html_url=f"https://github.com/{self.repository}/pull/{issue_number}#issuecomment-{comment_id}",
        )

    def create_pull_request(self, *, title: str, body: str, head: str, base: str) -> PullRequestRecord:
        self._enter("create_pull_request", title, body, head, base)
        self._next_number += 1
        record = self.add_open_pr(self._next_number, head)
        return record

    def list_pull_requests(self, *, head: str, state: str = "open") -> list[PullRequestRecord]:
        self._enter("list_pull_requests", head, state)
        return [pr for pr in self.pull_requests if pr.head_label == head and pr.state == state]


def make_payload(
    *,
    action: str = "opened",
    branch: str = "feature-x",
    sha: str = HEAD_SHA,
    number: int = 7,
    fork: bool = True,
) -> dict[str, Any]:
    return {
        "action": action,
        "number": number,
        "pull_request": {
            "number": number,
            "title": "Add widget caching",
            "body": "Caches widgets.\n\n- keeps `main` untouched",
            "user": {"login": "contributor"},
            "head": {
                "ref": branch,
                "sha": sha,
                "label": f"contributor:{branch}",
                "repo": {
                    "full_name": "contributor/widgets",
                    "clone_url": FORK_URL,
                    "html_url": "https://github.com/contributor/widgets",
                    "fork": fork,
                    "owner": {"login": "contributor"},
                },
            },
            "base": {"ref": "main"},
        },
    }


def make_event(**overrides: Any) -> ForkPREvent:
    return ForkPREvent.from_payload(make_payload(**overrides))


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def opened_event() -> ForkPREvent:
    return make_event()


@pytest.fixture
def synchronize_event() -> ForkPREvent:
    return make_event(action="synchronize")


@pytest.fixture
def payload() -> dict[str, Any]:
    return copy.deepcopy(make_payload())
