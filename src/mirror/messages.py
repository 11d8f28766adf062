"""Comment and pull request bodies posted by the mirror."""

from __future__ import annotations

from .models import ForkPREvent, MirrorOutcome, MirrorPR, short_sha


def commit_link(event: ForkPREvent, commit_sha: str) -> str:
    """Render ``<sha> ([<short>](<fork>/commit/<sha>))`` for comment bodies."""

    return f"{commit_sha} ({_commit_markdown(event, commit_sha)})"


def pull_request_url(server_url: str, repository: str, number: int) -> str:
    return f"{server_url.rstrip('/')}/{repository}/pull/{number}"


def acknowledgement() -> str:
    return "👋 Thanks for your contribution! We are performing a scan of your PR..."


def branch_conflict(branch_name: str) -> str:
    return (
        f"⚠️ A branch with the name `{branch_name}` already exists in the upstream repository. "
        "<br>This would cause conflicts when mirroring your PR. Please create a new branch "
        "with a different name and submit your PR from that branch instead."
    )


def invalid_branch(branch_name: str, reason: str) -> str:
    return (
        f"⚠️ The branch name `{branch_name}` cannot be mirrored into the upstream repository "
        f"({reason}). Please submit your PR from a branch with a plain name instead."
    )


def not_synced(trunk_branch: str) -> str:
    return (
        f"⚠️ Your branch is not synced with the latest changes from our `{trunk_branch}` branch. "
        "Please update your fork with the latest changes before we can run our workflows."
    )


def stage_failure(stage: str) -> str:
    return (
        f"⚠️ We could not mirror your PR because the `{stage}` step failed. "
        "A maintainer will need to look at the workflow logs; pushing a new commit will retry."
    )


def mirror_pr_error(error: str) -> str:
    return f"⚠️ We encountered an error while trying to create a mirror PR: {error}"


def mirror_created(event: ForkPREvent, mirror_pr: MirrorPR, outcome: MirrorOutcome) -> str:
    return (
        f"✅ Your PR has been mirrored to our repository as PR #{mirror_pr.number} ({mirror_pr.url})."
        f"<br>**Commit:** {commit_link(event, outcome.commit_sha)}."
        "<br>Our workflows will run in the mirrored PR linked above."
    )


def mirror_updated(event: ForkPREvent, mirror_pr: MirrorPR, outcome: MirrorOutcome) -> str:
    return (
        f"✅ Your updates have been mirrored to our repository in PR #{mirror_pr.number} "
        f"({mirror_pr.url}).<br>**Commit:** {commit_link(event, outcome.commit_sha)}"
    )


def mirror_update_notice(event: ForkPREvent, outcome: MirrorOutcome) -> str:
    return (
        f"♻️ This PR has been updated with the latest changes from the fork PR #{event.pr_number}."
        f"<br>**New Commit:** {commit_link(event, outcome.commit_sha)}"
    )


def mirror_missing() -> str:
    return (
        "⚠️ Your branch has been updated in our repository, but we couldn't find an open PR "
        "for it. This might happen if the PR was closed or merged."
    )


def mirror_ambiguous(error: str) -> str:
    return (
        f"⚠️ Your branch has been updated in our repository, but it is linked to more than one "
        f"open PR, so no build was triggered. A maintainer needs to close the extras: {error}"
    )


def build_trigger_failure(mirror_pr: MirrorPR) -> str:
    return (
        f"⚠️ Your changes were mirrored to PR #{mirror_pr.number} ({mirror_pr.url}), but we could not "
        "trigger its build. A maintainer will need to look at the workflow logs; pushing a new commit will retry."
    )


def mirror_pr_title(prefix: str, title: str) -> str:
    return f"{prefix}{title}"


def mirror_pr_body(
    event: ForkPREvent,
    *,
    commit_sha: str,
    created_at: str,
    original_pr_url: str,
) -> str:
    """Body for a newly created mirror PR.

    Back-references come first so automation and reviewers can find the
    original; the fork's description follows verbatim.
    """

    lines = [
        "## Mirror PR Summary",
        (
            f"This is a preview copy of PR #{event.pr_number} titled \"{event.title}\" "
            f"by @{event.fork_owner_login}, created at {created_at}."
        ),
        "## Original PR Details",
        f"- **Original PR:** #{event.pr_number} ({original_pr_url})",
        f"- **Author:** @{event.author_login}",
        f"- **Branch:** `{event.head_branch_name}`",
        f"- **Commit:** `{commit_sha}` ({_commit_markdown(event, commit_sha)})",
        "",
        "---",
        "",
        "### Original PR Description:",
        "",
        event.body,
        "",
        "---",
        "",
        (
            "> This is an automatically generated mirror of a fork PR. "
            "Changes here will not be reflected back to the original PR."
        ),
    ]
    return "\n".join(lines)


def _commit_markdown(event: ForkPREvent, commit_sha: str) -> str:
    short = short_sha(commit_sha)
    if not event.head_repo_html_url:
        return short
    return f"[{short}]({event.head_repo_html_url.rstrip('/')}/commit/{commit_sha})"
