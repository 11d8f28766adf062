"""REST helpers for the comment and pull request calls used by the mirror."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Mapping

import requests

DEFAULT_API_URL = "https://api.github.com"
DEFAULT_SERVER_URL = "https://github.com"
API_VERSION = "2022-11-28"
DEFAULT_TIMEOUT_SECONDS = 30

logger = logging.getLogger(__name__)


class GitHubApiError(RuntimeError):
    """Raised when the GitHub API (or the git transport behind it) fails."""


@dataclass(frozen=True)
class CommentRecord:
    """Represents a comment created on an issue or pull request."""

    id: int
    url: str
    html_url: str

    @classmethod
    def from_api_payload(cls, payload: Mapping[str, object]) -> "CommentRecord":
        try:
            comment_id = int(payload["id"])  # type: ignore[arg-type]
            url = str(payload["url"])
            html_url = str(payload.get("html_url") or url)
        except (KeyError, TypeError, ValueError) as exc:
            raise GitHubApiError("Unexpected GitHub comment payload") from exc
        return cls(id=comment_id, url=url, html_url=html_url)


@dataclass(frozen=True)
class PullRequestRecord:
    """Subset of a pull request payload the mirror cares about."""

    number: int
    url: str
    html_url: str
    state: str
    head_ref: str
    head_label: str

    @classmethod
    def from_api_payload(cls, payload: Mapping[str, object]) -> "PullRequestRecord":
        try:
            number = int(payload["number"])  # type: ignore[arg-type]
            url = str(payload["url"])
            html_url = str(payload.get("html_url") or url)
            state = str(payload.get("state", ""))
            head_payload = payload.get("head") or {}
            if not isinstance(head_payload, Mapping):
                raise TypeError("head must be a mapping")
            head_ref = str(head_payload.get("ref", ""))
            head_label = str(head_payload.get("label", ""))
        except (KeyError, TypeError, ValueError) as exc:
            raise GitHubApiError("Unexpected GitHub pull request payload") from exc
        return cls(
            number=number,
            url=url,
            html_url=html_url,
            state=state,
            head_ref=head_ref,
            head_label=head_label,
        )


def normalize_repository(repository: str | None) -> tuple[str, str]:
    """Split an ``owner/repo`` string into its two components."""

    if not repository:
        raise GitHubApiError("Repository must be provided as 'owner/repo'.")
    owner, sep, name = repository.partition("/")
    if not sep or not owner or not name or "/" in name:
        raise GitHubApiError(f"Invalid repository format: {repository!r}")
    return owner, name


def resolve_repository(explicit_repo: str | None) -> str:
    """Return the repository name, preferring explicit input over the environment."""

    if explicit_repo:
        return explicit_repo
    repo = os.environ.get("GITHUB_REPOSITORY")
    if not repo:
        raise GitHubApiError(
            "Repository not provided; set --repo or the GITHUB_REPOSITORY environment variable."
        )
    return repo


def resolve_token(explicit_token: str | None) -> str:
    """Return the token, preferring explicit input over GH_TOKEN and GITHUB_TOKEN."""

    if explicit_token:
        return explicit_token
    token = os.environ.get("GH_TOKEN") or os.environ.get("GITHUB_TOKEN")
    if not token:
        raise GitHubApiError(
            "Token not provided; set --token or the GITHUB_TOKEN environment variable."
        )
    return token


class GitHubClient:
    """Thin client over the issue comment and pull request endpoints.

    Requests are never retried. A failed or timed out call surfaces as
    :class:`GitHubApiError` and the caller decides what to do with it.
    """

    def __init__(
        self,
        *,
        token: str,
        repository: str,
        api_url: str = DEFAULT_API_URL,
        timeout: int = DEFAULT_TIMEOUT_SECONDS,
        session: requests.Session | None = None,
    ) -> None:
        if not token:
            raise GitHubApiError("A GitHub token is required.")
        self._owner, self._name = normalize_repository(repository)
        self._api_url = api_url.rstrip("/")
        self._timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": API_VERSION,
            }
        )

    @property
    def owner(self) -> str:
        return self._owner

    @property
    def repository(self) -> str:
        return f"{self._owner}/{self._name}"

    def create_issue_comment(self, issue_number: int, body: str) -> CommentRecord:
        """Post ``body`` on the issue (or pull request) conversation thread."""

        data = self._request(
            "POST",
            f"/repos/{self._owner}/{self._name}/issues/{issue_number}/comments",
            payload={"body": body},
        )
        if not isinstance(data, Mapping):
            raise GitHubApiError("Unexpected GitHub comment payload")
        return CommentRecord.from_api_payload(data)

    def create_pull_request(
        self,
        *,
        title: str,
        body: str,
        head: str,
        base: str,
    ) -> PullRequestRecord:
        """Open a pull request from ``head`` into ``base``."""

        data = self._request(
            "POST",
            f"/repos/{self._owner}/{self._name}/pulls",
            payload={"title": title, "body": body, "head": head, "base": base},
        )
        if not isinstance(data, Mapping):
            raise GitHubApiError("Unexpected GitHub pull request payload")
        return PullRequestRecord.from_api_payload(data)

    def list_pull_requests(self, *, head: str, state: str = "open") -> list[PullRequestRecord]:
        """Return pull requests whose head matches ``owner:branch``."""

        data = self._request(
            "GET",
            f"/repos/{self._owner}/{self._name}/pulls",
            params={"head": head, "state": state, "per_page": "100"},
        )
        if not isinstance(data, list):
            raise GitHubApiError("Unexpected GitHub pull request list payload")
        results: list[PullRequestRecord] = []
        for item in data:
            if not isinstance(item, Mapping):
                raise GitHubApiError("Unexpected entry in pull request list payload")
            results.append(PullRequestRecord.from_api_payload(item))
        return results

    def _request(
        self,
        method: str,
        path: str,
        *,
        payload: Mapping[str, Any] | None = None,
        params: Mapping[str, str] | None = None,
    ) -> Any:
        url = f"{self._api_url}{path}"
        logger.debug("GitHub API %s %s", method, path)
        try:
            response = self._session.request(
                method,
                url,
                json=dict(payload) if payload is not None else None,
                params=dict(params) if params is not None else None,
                timeout=self._timeout,
            )
        except requests.Timeout as exc:
            raise GitHubApiError(
                f"GitHub API request timed out after {self._timeout}s: {method} {path}"
            ) from exc
        except requests.RequestException as exc:
            raise GitHubApiError(f"Failed to reach GitHub API: {exc}") from exc

        if response.status_code >= 400:
            raise GitHubApiError(
                f"GitHub API error ({response.status_code}): {response.text.strip()}"
            )

        try:
            return response.json()
        except ValueError as exc:
            raise GitHubApiError(f"Invalid JSON response from {method} {path}") from exc


__all__ = [
    "API_VERSION",
    "DEFAULT_API_URL",
    "DEFAULT_SERVER_URL",
    "CommentRecord",
    "GitHubApiError",
    "GitHubClient",
    "PullRequestRecord",
    "normalize_repository",
    "resolve_repository",
    "resolve_token",
]
