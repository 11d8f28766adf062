"""Runs one fork PR event through every mirror stage.

Stages run in a fixed order and stop at the first failure::

    acknowledge -> validate branch -> conflict -> sync -> mirror -> mirror PR

Each stage hands a new :class:`PipelineResult` to the next one. Failures that
the fork author can act on are reported to the fork PR through the
:class:`Notifier`; the operator sees them in the job log.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable

from src.integrations.github.gateway import RemoteGateway
from src.integrations.github.refs import InvalidRefError, validate_ref_name
from src.utils.config_manager import MirrorConfig

from . import conflict, messages, sync_check, synchronizer
from .errors import AmbiguousMirrorError, ConflictError, TransportError, UnsyncedError
from .models import ConflictResult, ForkPREvent, PipelineResult, PipelineStatus, SyncState
from .notifier import Notifier
from .outputs import actions_error, actions_group
from .pull_requests import CREATE_STAGE, UPDATE_STAGE, MirrorPRManager

VALIDATE_STAGE = "validate-branch"
ACKNOWLEDGE_STAGE = "acknowledge"

logger = logging.getLogger(__name__)


class MirrorPipeline:
    """Wires the stages to one gateway and configuration."""

    def __init__(
        self,
        gateway: RemoteGateway,
        config: MirrorConfig,
        *,
        notifier: Notifier | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.gateway = gateway
        self.config = config
        self.notifier = notifier or Notifier(gateway)
        self.synchronizer = synchronizer.MirrorSynchronizer(
            gateway, temp_branch_prefix=config.temp_branch_prefix
        )
        self.pull_requests = MirrorPRManager(
            gateway,
            self.notifier,
            trunk_branch=config.trunk_branch,
            title_prefix=config.title_prefix,
            trigger_marker=config.trigger_marker,
            server_url=config.github.server_url,
            timezone=config.timezone,
            clock=clock,
        )

    def run(self, event: ForkPREvent) -> PipelineResult:
        result = PipelineResult(event=event)
        logger.info(
            "Processing %s event for PR #%s (%s from %s)",
            event.event_kind.value,
            event.pr_number,
            event.head_branch_name,
            event.head_repo_full_name or event.head_repo_clone_url,
        )

        if self.config.post_acknowledgement:
            comment = self.notifier.notify(event.pr_number, messages.acknowledgement())
            result = result.record(ACKNOWLEDGE_STAGE, comment is not None)

        stages = (
            ("Validate branch name", self._validate_branch),
            ("Check branch name conflict", self._check_conflict),
            ("Check sync with trunk", self._check_sync),
            ("Mirror branch", self._mirror_branch),
            ("Mirror pull request", self._mirror_pull_request),
        )
        for title, stage in stages:
            with actions_group(title):
                result = stage(result)
            if result.status is not None:
                break

        if result.status is None:
            result = result.finish(PipelineStatus.FAILED, error="Pipeline ended without a status")

        if result.success:
            logger.info("PR #%s finished with status %s", event.pr_number, result.status.value)
        else:
            logger.error("PR #%s finished with status %s: %s", event.pr_number, result.status.value, result.error)
            actions_error(result.error or result.status.value)
        return result

    # stages: each returns the result with ``status`` set only when the run ends

    def _validate_branch(self, result: PipelineResult) -> PipelineResult:
        branch_name = result.event.head_branch_name
        try:
            validate_ref_name(branch_name)
        except InvalidRefError as exc:
            logger.error("Refusing to mirror branch %r: %s", branch_name, exc)
            self.notifier.notify(result.event.pr_number, messages.invalid_branch(branch_name, str(exc)))
            return result.record(VALIDATE_STAGE, False, str(exc)).finish(
                PipelineStatus.INVALID_BRANCH, error=str(exc)
            )
        return result.record(VALIDATE_STAGE, True)

    def _check_conflict(self, result: PipelineResult) -> PipelineResult:
        event = result.event
        try:
            outcome = conflict.require_no_conflict(
                self.gateway,
                event.event_kind,
                event.head_branch_name,
                protected_branches=(self.config.trunk_branch,),
            )
        except ConflictError as exc:
            self.notifier.notify(event.pr_number, messages.branch_conflict(event.head_branch_name))
            return result.record(
                conflict.STAGE,
                False,
                str(exc),
                conflict=ConflictResult(branch=event.head_branch_name, conflict=True),
            ).finish(PipelineStatus.CONFLICT, error=str(exc))
        except TransportError as exc:
            return self._transport_failure(result, exc)
        return result.record(conflict.STAGE, True, conflict=outcome)

    def _check_sync(self, result: PipelineResult) -> PipelineResult:
        event = result.event
        trunk = self.config.trunk_branch
        try:
            state = sync_check.require_synced(
                self.gateway, trunk, event.head_repo_clone_url, event.head_branch_name
            )
        except UnsyncedError as exc:
            self.notifier.notify(event.pr_number, messages.not_synced(trunk))
            state = SyncState(
                common_ancestor_sha=exc.common_ancestor_sha,
                trunk_head_sha=exc.trunk_head_sha,
            )
            return result.record(sync_check.STAGE, False, str(exc), sync_state=state).finish(
                PipelineStatus.UNSYNCED, error=str(exc)
            )
        except TransportError as exc:
            return self._transport_failure(result, exc)

        if state.fork_head_sha and state.fork_head_sha != event.head_commit_sha:
            # The fork moved after the event fired; a later event will mirror the new tip.
            logger.warning(
                "Fetched head %s differs from event head %s",
                state.fork_head_sha,
                event.head_commit_sha,
            )
        return result.record(sync_check.STAGE, True, sync_state=state)

    def _mirror_branch(self, result: PipelineResult) -> PipelineResult:
        event = result.event
        try:
            outcome = self.synchronizer.sync(
                event.head_repo_clone_url, event.head_branch_name, event.head_commit_sha
            )
        except TransportError as exc:
            return self._transport_failure(result, exc)
        detail = "created" if outcome.is_first_mirror else "updated"
        return result.record(synchronizer.STAGE, True, detail, mirror=outcome)

    def _mirror_pull_request(self, result: PipelineResult) -> PipelineResult:
        event = result.event
        outcome = result.mirror
        if outcome is None:
            raise RuntimeError("Mirror pull request stage reached before the branch was mirrored")

        if outcome.is_first_mirror:
            try:
                mirror_pr = self.pull_requests.create_mirror_pr(event, outcome)
            except TransportError as exc:
                # The manager already told the fork PR what went wrong.
                return result.record(exc.stage, False, str(exc)).finish(
                    PipelineStatus.FAILED, error=str(exc)
                )
            return result.record(CREATE_STAGE, True, f"#{mirror_pr.number}", mirror_pr=mirror_pr).finish(
                PipelineStatus.MIRRORED
            )

        try:
            mirror_pr = self.pull_requests.update_mirror_pr(event, outcome)
        except (AmbiguousMirrorError, TransportError) as exc:
            return result.record(UPDATE_STAGE, False, str(exc)).finish(
                PipelineStatus.FAILED, error=str(exc)
            )
        if mirror_pr is None:
            return result.record(UPDATE_STAGE, False, "no open mirror PR").finish(
                PipelineStatus.MIRROR_MISSING
            )
        return result.record(UPDATE_STAGE, True, f"#{mirror_pr.number}", mirror_pr=mirror_pr).finish(
            PipelineStatus.UPDATED
        )

    def _transport_failure(self, result: PipelineResult, exc: TransportError) -> PipelineResult:
        logger.error("Stage %s failed: %s", exc.stage, exc)
        self.notifier.notify(result.event.pr_number, messages.stage_failure(exc.stage))
        return result.record(exc.stage, False, str(exc)).finish(PipelineStatus.FAILED, error=str(exc))


def run_pipeline(
    event: ForkPREvent,
    gateway: RemoteGateway,
    config: MirrorConfig,
    *,
    notifier: Notifier | None = None,
    clock: Callable[[], datetime] | None = None,
) -> PipelineResult:
    """Process ``event`` end to end and return the final result."""

    return MirrorPipeline(gateway, config, notifier=notifier, clock=clock).run(event)


__all__ = ["MirrorPipeline", "run_pipeline"]
