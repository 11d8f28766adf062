"""Single facade over the git transport and the GitHub REST API."""

from __future__ import annotations

from .api import CommentRecord, GitHubClient, PullRequestRecord
from .git import GitRepository, RemoteRef


class RemoteGateway:
    """Every remote read and write the mirror performs goes through here.

    ``remote`` is the name of the trusted remote in the local clone
    (``origin`` under ``actions/checkout``).
    """

    def __init__(self, git: GitRepository, api: GitHubClient, *, remote: str = "origin") -> None:
        self.git = git
        self.api = api
        self.remote = remote

    @property
    def owner(self) -> str:
        return self.api.owner

    @property
    def repository(self) -> str:
        return self.api.repository

    # git transport

    def list_remote_refs(self, pattern: str) -> list[RemoteRef]:
        return self.git.list_remote_refs(self.remote, pattern)

    def branch_exists(self, name: str) -> bool:
        return self.git.branch_exists(self.remote, name)

    def fetch_ref(
        self,
        remote_url: str,
        ref_name: str,
        local_name: str | None = None,
        *,
        force: bool = False,
        update_head_ok: bool = False,
    ) -> None:
        self.git.fetch_ref(
            remote_url,
            ref_name,
            local_name,
            force=force,
            update_head_ok=update_head_ok,
        )

    def fetch_trunk(self, trunk: str) -> None:
        self.git.fetch_ref(self.remote, trunk, trunk, force=True, update_head_ok=True)

    def push_ref(self, ref_name: str, *, force: bool = False) -> None:
        self.git.push_ref(self.remote, ref_name, force=force)

    def merge_base(self, ref_a: str, ref_b: str) -> str:
        return self.git.merge_base(ref_a, ref_b)

    def resolve_ref(self, ref: str) -> str:
        return self.git.resolve_ref(ref)

    def force_branch(self, name: str, start_point: str) -> None:
        self.git.force_branch(name, start_point)

    def delete_branch(self, name: str) -> None:
        self.git.delete_branch(name)

    # REST

    def create_issue_comment(self, issue_number: int, body: str) -> CommentRecord:
        return self.api.create_issue_comment(issue_number, body)

    def create_pull_request(self, *, title: str, body: str, head: str, base: str) -> PullRequestRecord:
        return self.api.create_pull_request(title=title, body=body, head=head, base=base)

    def list_pull_requests(self, *, head: str, state: str = "open") -> list[PullRequestRecord]:
        return self.api.list_pull_requests(head=head, state=state)


__all__ = ["RemoteGateway"]
