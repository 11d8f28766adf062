"""GitHub integration utilities."""

from .api import (
    CommentRecord,
    GitHubApiError,
    GitHubClient,
    PullRequestRecord,
    resolve_repository,
    resolve_token,
)
from .gateway import RemoteGateway
from .git import GitCommandError, GitRepository, RemoteRef
from .refs import InvalidRefError, validate_ref_name

__all__ = [
    "CommentRecord",
    "GitCommandError",
    "GitHubApiError",
    "GitHubClient",
    "GitRepository",
    "InvalidRefError",
    "PullRequestRecord",
    "RemoteGateway",
    "RemoteRef",
    "resolve_repository",
    "resolve_token",
    "validate_ref_name",
]
