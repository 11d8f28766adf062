"""Git transport helpers for the local clone of the trusted repository."""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from .api import GitHubApiError

DEFAULT_GIT_TIMEOUT_SECONDS = 300

logger = logging.getLogger(__name__)


class GitCommandError(GitHubApiError):
    """Raised when a git command exits non-zero or times out."""

    def __init__(
        self,
        command: Sequence[str],
        message: str,
        *,
        returncode: int | None = None,
        output: str = "",
    ) -> None:
        super().__init__(message)
        self.command = tuple(command)
        self.returncode = returncode
        self.output = output


@dataclass(frozen=True)
class RemoteRef:
    """A single line of ``git ls-remote`` output."""

    sha: str
    name: str

    @property
    def branch(self) -> str | None:
        prefix = "refs/heads/"
        if self.name.startswith(prefix):
            return self.name[len(prefix):]
        return None


class GitRepository:
    """Run git against a working clone.

    Every call passes an argument list to ``subprocess.run``; nothing is ever
    routed through a shell, so branch names and URLs are never re-parsed.
    """

    def __init__(
        self,
        workdir: Path | None = None,
        *,
        timeout: int = DEFAULT_GIT_TIMEOUT_SECONDS,
    ) -> None:
        self.workdir = workdir
        self.timeout = timeout

    def run(self, *args: str) -> str:
        command = ["git", *args]
        logger.debug("Running %s", " ".join(command))
        try:
            completed = subprocess.run(
                command,
                cwd=self.workdir,
                check=True,
                text=True,
                capture_output=True,
                timeout=self.timeout,
            )
        except subprocess.CalledProcessError as exc:
            stdout = (exc.stdout or "").strip()
            stderr = (exc.stderr or "").strip()
            details = "\n".join(part for part in (stdout, stderr) if part)
            message = f"Command '{' '.join(command)}' failed"
            if details:
                message = f"{message}: {details}"
            raise GitCommandError(command, message, returncode=exc.returncode, output=stdout) from exc
        except subprocess.TimeoutExpired as exc:
            raise GitCommandError(
                command, f"Command '{' '.join(command)}' timed out after {self.timeout}s"
            ) from exc
        except FileNotFoundError as exc:
            raise GitCommandError(command, "git executable not found") from exc
        return (completed.stdout or "").strip()

    def configure_identity(self, name: str, email: str) -> None:
        self.run("config", "user.name", name)
        self.run("config", "user.email", email)

    def list_remote_refs(self, remote: str, pattern: str) -> list[RemoteRef]:
        """Return the branch heads on ``remote`` matching ``pattern``."""

        output = self.run("ls-remote", "--heads", remote, pattern)
        refs: list[RemoteRef] = []
        for line in output.splitlines():
            sha, _, name = line.partition("\t")
            if sha and name:
                refs.append(RemoteRef(sha=sha.strip(), name=name.strip()))
        return refs

    def branch_exists(self, remote: str, name: str) -> bool:
        """True when ``remote`` has a branch named exactly ``name``.

        ``ls-remote`` matches patterns by path suffix, so ``feature`` would
        also match ``refs/heads/team/feature``; only the exact ref counts.
        """

        full_name = f"refs/heads/{name}"
        return any(ref.name == full_name for ref in self.list_remote_refs(remote, full_name))

    def fetch_ref(
        self,
        remote_url: str,
        ref_name: str,
        local_name: str | None = None,
        *,
        force: bool = False,
        update_head_ok: bool = False,
    ) -> None:
        """Fetch ``ref_name`` from ``remote_url``.

        Without ``local_name`` the result is only available as ``FETCH_HEAD``.
        """

        source = f"refs/heads/{ref_name}"
        refspec = f"{source}:refs/heads/{local_name}" if local_name else source
        if force and local_name:
            refspec = f"+{refspec}"
        args = ["fetch", "--no-tags"]
        if update_head_ok:
            args.append("--update-head-ok")
        args.extend([remote_url, refspec])
        self.run(*args)

    def push_ref(self, remote: str, ref_name: str, *, force: bool = False) -> None:
        refspec = f"refs/heads/{ref_name}:refs/heads/{ref_name}"
        if force:
            refspec = f"+{refspec}"
        self.run("push", remote, refspec)

    def merge_base(self, ref_a: str, ref_b: str) -> str:
        """Return the best common ancestor, or an empty string when there is none."""

        try:
            return self.run("merge-base", ref_a, ref_b)
        except GitCommandError as exc:
            # Unrelated histories: git exits 1 and prints nothing.
            if exc.returncode == 1 and not exc.output:
                return ""
            raise

    def resolve_ref(self, ref: str) -> str:
        return self.run("rev-parse", "--verify", f"{ref}^{{commit}}")

    def force_branch(self, name: str, start_point: str) -> None:
        """Point ``refs/heads/<name>`` at ``start_point`` without touching the worktree."""

        sha = self.resolve_ref(start_point)
        self.run("update-ref", f"refs/heads/{name}", sha)

    def delete_branch(self, name: str) -> None:
        self.run("update-ref", "-d", f"refs/heads/{name}")


__all__ = [
    "DEFAULT_GIT_TIMEOUT_SECONDS",
    "GitCommandError",
    "GitRepository",
    "RemoteRef",
]
