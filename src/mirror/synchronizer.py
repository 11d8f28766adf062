"""Creates or updates the mirror branch in the trusted repository."""

from __future__ import annotations

import logging
from typing import Protocol

from src.integrations.github.api import GitHubApiError

from .conflict import lookup_branch
from .errors import TransportError
from .models import MirrorOutcome

STAGE = "process-pr"

logger = logging.getLogger(__name__)


class MirrorGateway(Protocol):
    def branch_exists(self, name: str) -> bool: ...

    def fetch_ref(
        self,
        remote_url: str,
        ref_name: str,
        local_name: str | None = None,
        *,
        force: bool = False,
        update_head_ok: bool = False,
    ) -> None: ...

    def force_branch(self, name: str, start_point: str) -> None: ...

    def delete_branch(self, name: str) -> None: ...

    def push_ref(self, ref_name: str, *, force: bool = False) -> None: ...


class MirrorSynchronizer:
    """Pushes the fork branch upstream under its own name.

    The push is always the final step, so any earlier failure leaves the
    trusted remote untouched.
    """

    def __init__(self, gateway: MirrorGateway, *, temp_branch_prefix: str = "temp-") -> None:
        self._gateway = gateway
        self._temp_prefix = temp_branch_prefix

    def sync(self, fork_repo_url: str, branch_name: str, commit_sha: str) -> MirrorOutcome:
        """Mirror ``branch_name`` and report whether it is new upstream.

        Branch existence is queried again here rather than reusing the
        conflict check, since fetching and comparing took time.
        """

        try:
            upstream = lookup_branch(self._gateway, branch_name)
            if upstream.exists:
                logger.info("Branch already exists in upstream repo")
                self._update_existing(fork_repo_url, branch_name)
            else:
                logger.info("Branch does not exist yet in upstream repo")
                self._create_new(fork_repo_url, branch_name)
        except GitHubApiError as exc:
            raise TransportError(STAGE, str(exc)) from exc

        outcome = MirrorOutcome(is_first_mirror=not upstream.exists, commit_sha=commit_sha)
        logger.info(
            "%s branch %s at %s",
            "Created new" if outcome.is_first_mirror else "Updated existing",
            branch_name,
            outcome.commit_short_sha,
        )
        return outcome

    def _update_existing(self, fork_repo_url: str, branch_name: str) -> None:
        temp_branch = f"{self._temp_prefix}{branch_name}"
        logger.info("Fetching the fork PR branch to %s...", temp_branch)
        self._gateway.fetch_ref(fork_repo_url, branch_name, temp_branch, force=True)
        self._gateway.force_branch(branch_name, temp_branch)
        self._gateway.delete_branch(temp_branch)
        logger.info("Pushing updated branch to origin...")
        # Forced: a rebased fork branch must replace the previous mirror tip.
        self._gateway.push_ref(branch_name, force=True)

    def _create_new(self, fork_repo_url: str, branch_name: str) -> None:
        logger.info("Creating new branch in upstream repo...")
        self._gateway.fetch_ref(fork_repo_url, branch_name, branch_name, force=True)
        logger.info("Pushing new branch to origin...")
        self._gateway.push_ref(branch_name)


def sync(
    gateway: MirrorGateway,
    fork_repo_url: str,
    branch_name: str,
    commit_sha: str,
    *,
    temp_branch_prefix: str = "temp-",
) -> MirrorOutcome:
    return MirrorSynchronizer(gateway, temp_branch_prefix=temp_branch_prefix).sync(
        fork_repo_url, branch_name, commit_sha
    )


__all__ = ["MirrorSynchronizer", "STAGE", "sync"]
