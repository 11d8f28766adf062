"""Error taxonomy for the fork mirror pipeline."""

from __future__ import annotations

from src.integrations.github.api import GitHubApiError
from src.integrations.github.refs import InvalidRefError


class MirrorError(GitHubApiError):
    """Base class for failures raised by a mirror stage."""


class UnsupportedEventError(MirrorError):
    """The event is not a fork PR ``opened``/``synchronize`` and is ignored."""


class ConflictError(MirrorError):
    """An upstream branch already uses the fork branch's name."""

    def __init__(self, branch_name: str) -> None:
        super().__init__(f"Branch '{branch_name}' already exists in the upstream repository")
        self.branch_name = branch_name


class UnsyncedError(MirrorError):
    """The fork branch is missing commits from trunk."""

    def __init__(self, common_ancestor_sha: str, trunk_head_sha: str) -> None:
        super().__init__(
            f"Fork branch is not synced with trunk "
            f"(merge-base {common_ancestor_sha[:7] or 'none'}, trunk {trunk_head_sha[:7]})"
        )
        self.common_ancestor_sha = common_ancestor_sha
        self.trunk_head_sha = trunk_head_sha


class TransportError(MirrorError):
    """A fetch, push, or API call failed; ``stage`` names where."""

    def __init__(self, stage: str, message: str) -> None:
        super().__init__(message)
        self.stage = stage


class MirrorNotFoundError(MirrorError):
    """No open mirror PR exists for an updated branch."""

    def __init__(self, head: str) -> None:
        super().__init__(f"No open pull request found for head '{head}'")
        self.head = head


class AmbiguousMirrorError(MirrorError):
    """More than one open pull request claims the same mirror branch."""

    def __init__(self, head: str, numbers: tuple[int, ...]) -> None:
        listed = ", ".join(f"#{number}" for number in numbers)
        super().__init__(f"Expected one open pull request for head '{head}', found {listed}")
        self.head = head
        self.numbers = numbers


__all__ = [
    "AmbiguousMirrorError",
    "ConflictError",
    "InvalidRefError",
    "MirrorError",
    "MirrorNotFoundError",
    "TransportError",
    "UnsupportedEventError",
    "UnsyncedError",
]
