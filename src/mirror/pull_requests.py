"""Creates and annotates the mirror pull request."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Protocol
from zoneinfo import ZoneInfo

from src.integrations.github.api import CommentRecord, GitHubApiError, PullRequestRecord

from . import messages
from .errors import AmbiguousMirrorError, MirrorNotFoundError, TransportError
from .models import ForkPREvent, MirrorOutcome, MirrorPR
from .notifier import Notifier

CREATE_STAGE = "create-upstream-pr"
UPDATE_STAGE = "update-upstream-pr"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S %Z"

logger = logging.getLogger(__name__)


class PullRequestGateway(Protocol):
    @property
    def owner(self) -> str: ...

    @property
    def repository(self) -> str: ...

    def create_issue_comment(self, issue_number: int, body: str) -> CommentRecord: ...

    def create_pull_request(self, *, title: str, body: str, head: str, base: str) -> PullRequestRecord: ...

    def list_pull_requests(self, *, head: str, state: str = "open") -> list[PullRequestRecord]: ...


def _mirror_from_record(record: PullRequestRecord, branch_name: str) -> MirrorPR:
    return MirrorPR(
        number=record.number,
        url=record.html_url,
        branch_name=branch_name,
        state=record.state or "open",
    )


class MirrorPRManager:
    """Opens the mirror PR on first mirror and re-triggers it on updates.

    Every successful create or update ends with exactly one trigger marker
    comment on the mirror PR. The marker never goes to the fork PR.
    """

    def __init__(
        self,
        gateway: PullRequestGateway,
        notifier: Notifier,
        *,
        trunk_branch: str,
        title_prefix: str,
        trigger_marker: str,
        server_url: str,
        timezone: str = "UTC",
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._gateway = gateway
        self._notifier = notifier
        self._trunk = trunk_branch
        self._title_prefix = title_prefix
        self._marker = trigger_marker
        self._server_url = server_url
        self._timezone = ZoneInfo(timezone)
        self._clock = clock or (lambda: datetime.now(self._timezone))

    def head_spec(self, branch_name: str) -> str:
        return f"{self._gateway.owner}:{branch_name}"

    def create_mirror_pr(self, event: ForkPREvent, outcome: MirrorOutcome) -> MirrorPR:
        """Open a PR from the mirror branch against trunk.

        On failure the raw error is posted to the fork PR and
        :class:`TransportError` is raised; the PR is not retried.
        """

        branch_name = event.head_branch_name
        created_at = self._clock().astimezone(self._timezone).strftime(TIMESTAMP_FORMAT)
        original_url = messages.pull_request_url(
            self._server_url, self._gateway.repository, event.pr_number
        )
        title = messages.mirror_pr_title(self._title_prefix, event.title)
        body = messages.mirror_pr_body(
            event,
            commit_sha=outcome.commit_sha,
            created_at=created_at,
            original_pr_url=original_url,
        )

        logger.info("Creating new PR in upstream repository for branch %s", branch_name)
        try:
            record = self._gateway.create_pull_request(
                title=title,
                body=body,
                head=branch_name,
                base=self._trunk,
            )
        except GitHubApiError as exc:
            logger.error("Error creating upstream PR: %s", exc)
            self._notifier.notify(event.pr_number, messages.mirror_pr_error(str(exc)))
            raise TransportError(CREATE_STAGE, str(exc)) from exc

        mirror_pr = _mirror_from_record(record, branch_name)
        logger.info("Created new PR: %s - %s", mirror_pr.number, mirror_pr.url)

        self._notifier.notify(event.pr_number, messages.mirror_created(event, mirror_pr, outcome))
        self._post_trigger_marker(event, mirror_pr, CREATE_STAGE)
        return mirror_pr

    def find_mirror_pr(self, branch_name: str) -> MirrorPR:
        """Return the single open PR whose head is the mirror branch.

        Raises :class:`MirrorNotFoundError` when there is none and
        :class:`AmbiguousMirrorError` when there is more than one.
        """

        head = self.head_spec(branch_name)
        logger.info("Searching for PRs with head: %s", head)
        try:
            records = self._gateway.list_pull_requests(head=head, state="open")
        except GitHubApiError as exc:
            raise TransportError(UPDATE_STAGE, str(exc)) from exc

        # GitHub ignores a head filter it cannot resolve and lists everything.
        matches = [
            record
            for record in records
            if record.head_ref == branch_name and record.head_label in ("", head)
        ]
        logger.info("Found %d matching PRs", len(matches))
        if not matches:
            raise MirrorNotFoundError(head)
        if len(matches) > 1:
            raise AmbiguousMirrorError(head, tuple(record.number for record in matches))
        return _mirror_from_record(matches[0], branch_name)

    def update_mirror_pr(self, event: ForkPREvent, outcome: MirrorOutcome) -> MirrorPR | None:
        """Annotate the existing mirror PR after its branch was updated.

        Returns ``None`` when no open mirror PR exists; the fork author is told
        that manual attention is needed and the pushed branch stays as is.
        """

        try:
            mirror_pr = self.find_mirror_pr(event.head_branch_name)
        except MirrorNotFoundError:
            logger.warning("No matching upstream PR found for %s", event.head_branch_name)
            self._notifier.notify(event.pr_number, messages.mirror_missing())
            return None
        except AmbiguousMirrorError as exc:
            logger.error("%s", exc)
            self._notifier.notify(event.pr_number, messages.mirror_ambiguous(str(exc)))
            raise
        except TransportError as exc:
            logger.error("Error handling PR updates: %s", exc)
            self._notifier.notify(event.pr_number, messages.stage_failure(UPDATE_STAGE))
            raise

        logger.info("Found upstream PR #%s", mirror_pr.number)
        self._notifier.notify(event.pr_number, messages.mirror_updated(event, mirror_pr, outcome))
        self._comment_on_mirror(
            event, mirror_pr, messages.mirror_update_notice(event, outcome), UPDATE_STAGE
        )
        self._post_trigger_marker(event, mirror_pr, UPDATE_STAGE)
        return mirror_pr

    def _post_trigger_marker(self, event: ForkPREvent, mirror_pr: MirrorPR, stage: str) -> None:
        logger.info("Adding trigger marker comment to upstream PR #%s", mirror_pr.number)
        self._comment_on_mirror(event, mirror_pr, self._marker, stage)

    def _comment_on_mirror(self, event: ForkPREvent, mirror_pr: MirrorPR, body: str, stage: str) -> None:
        try:
            self._gateway.create_issue_comment(mirror_pr.number, body)
        except GitHubApiError as exc:
            logger.error("Error commenting on upstream PR #%s: %s", mirror_pr.number, exc)
            # The fork PR was already told the mirror succeeded.
            self._notifier.notify(event.pr_number, messages.build_trigger_failure(mirror_pr))
            raise TransportError(stage, str(exc)) from exc


__all__ = ["CREATE_STAGE", "MirrorPRManager", "UPDATE_STAGE"]
