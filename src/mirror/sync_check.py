"""Checks that a fork branch already contains trunk's tip."""

from __future__ import annotations

import logging
from typing import Protocol

from src.integrations.github.api import GitHubApiError

from .errors import TransportError, UnsyncedError
from .models import SyncState

STAGE = "check-sync"
FETCH_HEAD = "FETCH_HEAD"

logger = logging.getLogger(__name__)


class SyncGateway(Protocol):
    def fetch_trunk(self, trunk: str) -> None: ...

    def fetch_ref(
        self,
        remote_url: str,
        ref_name: str,
        local_name: str | None = None,
        *,
        force: bool = False,
        update_head_ok: bool = False,
    ) -> None: ...

    def merge_base(self, ref_a: str, ref_b: str) -> str: ...

    def resolve_ref(self, ref: str) -> str: ...


def check_sync(gateway: SyncGateway, trunk_ref: str, fork_repo_url: str, fork_branch: str) -> SyncState:
    """Compare the fork branch with trunk.

    The branch is synced when the merge-base of the two equals trunk's head,
    i.e. trunk's tip is reachable from the fork's tip. A fork branch with no
    history in common with trunk has an empty merge-base and is unsynced.
    Any fetch failure is raised as :class:`TransportError`; nothing is retried.
    """

    try:
        logger.info("Fetching %s branch...", trunk_ref)
        gateway.fetch_trunk(trunk_ref)
        logger.info("Fetching PR branch %s from %s...", fork_branch, fork_repo_url)
        gateway.fetch_ref(fork_repo_url, fork_branch)
        fork_head = gateway.resolve_ref(FETCH_HEAD)
        common_ancestor = gateway.merge_base(trunk_ref, fork_head)
        trunk_head = gateway.resolve_ref(trunk_ref)
    except GitHubApiError as exc:
        raise TransportError(STAGE, str(exc)) from exc

    state = SyncState(
        common_ancestor_sha=common_ancestor,
        trunk_head_sha=trunk_head,
        fork_head_sha=fork_head,
    )
    logger.info("Common ancestor: %s", common_ancestor or "none")
    logger.info("%s HEAD: %s", trunk_ref, trunk_head)
    if state.is_synced:
        logger.info("Branch is synced with %s or ahead of it", trunk_ref)
    else:
        logger.error("PR branch is not synced with the latest %s branch", trunk_ref)
    return state


def require_synced(gateway: SyncGateway, trunk_ref: str, fork_repo_url: str, fork_branch: str) -> SyncState:
    """Like :func:`check_sync` but raises :class:`UnsyncedError` when stale."""

    state = check_sync(gateway, trunk_ref, fork_repo_url, fork_branch)
    if not state.is_synced:
        raise UnsyncedError(state.common_ancestor_sha, state.trunk_head_sha)
    return state


__all__ = ["STAGE", "check_sync", "require_synced"]
