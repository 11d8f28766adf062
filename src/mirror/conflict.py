"""Branch name collision check against the trusted remote."""

from __future__ import annotations

import logging
from typing import Collection, Protocol

from src.integrations.github.api import GitHubApiError

from .errors import ConflictError, TransportError
from .models import ConflictResult, EventKind, UpstreamBranch

STAGE = "branch-name-check"

logger = logging.getLogger(__name__)


class BranchLookup(Protocol):
    def branch_exists(self, name: str) -> bool: ...


def lookup_branch(gateway: BranchLookup, branch_name: str) -> UpstreamBranch:
    """Query the trusted remote for ``branch_name``; never cached across calls."""

    return UpstreamBranch(name=branch_name, exists=gateway.branch_exists(branch_name))


def check_conflict(
    gateway: BranchLookup,
    event_kind: EventKind,
    branch_name: str,
    *,
    protected_branches: Collection[str] = (),
) -> ConflictResult:
    """Decide whether mirroring ``branch_name`` would collide upstream.

    Only ``opened`` events query the remote. On ``synchronize`` the upstream
    branch is expected to be this PR's own mirror from an earlier run. A
    protected name (trunk) is a conflict for every event kind, since the
    mirror would otherwise push over it.
    """

    if branch_name in protected_branches:
        logger.error("Branch '%s' collides with a protected upstream branch", branch_name)
        return ConflictResult(branch=branch_name, conflict=True)

    if event_kind is not EventKind.OPENED:
        logger.info("PR update, skipping branch name conflict check for '%s'", branch_name)
        return ConflictResult(branch=branch_name, conflict=False)

    try:
        upstream = lookup_branch(gateway, branch_name)
    except GitHubApiError as exc:
        raise TransportError(STAGE, str(exc)) from exc

    if upstream.exists:
        logger.error("Branch '%s' already exists in the upstream repository", branch_name)
    else:
        logger.info("No branch name conflict for '%s'", branch_name)
    return ConflictResult(branch=branch_name, conflict=upstream.exists)


def require_no_conflict(
    gateway: BranchLookup,
    event_kind: EventKind,
    branch_name: str,
    *,
    protected_branches: Collection[str] = (),
) -> ConflictResult:
    """Like :func:`check_conflict` but raises :class:`ConflictError` on a collision."""

    result = check_conflict(
        gateway, event_kind, branch_name, protected_branches=protected_branches
    )
    if result.conflict:
        raise ConflictError(branch_name)
    return result


__all__ = ["STAGE", "check_conflict", "lookup_branch", "require_no_conflict"]
