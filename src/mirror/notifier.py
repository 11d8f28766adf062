"""Best-effort status comments on the originating fork PR."""

from __future__ import annotations

import logging
from typing import Protocol

from src.integrations.github.api import CommentRecord, GitHubApiError

logger = logging.getLogger(__name__)


class CommentSink(Protocol):
    def create_issue_comment(self, issue_number: int, body: str) -> CommentRecord: ...


class Notifier:
    """Posts one comment per stage back to the fork PR.

    A failure to comment is logged and swallowed: the pipeline is usually
    already reporting a failure by the time it gets here.
    """

    def __init__(self, gateway: CommentSink) -> None:
        self._gateway = gateway

    def notify(self, fork_pr_number: int, message: str) -> CommentRecord | None:
        try:
            comment = self._gateway.create_issue_comment(fork_pr_number, message)
        except GitHubApiError as exc:
            logger.warning("Failed to comment on PR #%s: %s", fork_pr_number, exc)
            return None
        logger.info("Commented on PR #%s: %s", fork_pr_number, comment.html_url)
        return comment


__all__ = ["CommentSink", "Notifier"]
