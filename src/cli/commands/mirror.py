"""CLI command that mirrors a fork pull request into the trusted repository."""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path

from src.integrations.github.api import (
    DEFAULT_API_URL,
    DEFAULT_SERVER_URL,
    GitHubApiError,
    GitHubClient,
    resolve_repository,
    resolve_token,
)
from src.integrations.github.gateway import RemoteGateway
from src.integrations.github.git import GitRepository
from src.mirror.errors import MirrorError, UnsupportedEventError
from src.mirror.models import load_event
from src.mirror.outputs import write_step_outputs, write_step_summary
from src.mirror.pipeline import run_pipeline
from src.utils.config_manager import MirrorConfig, load_mirror_config

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_USAGE = 2

logger = logging.getLogger(__name__)


def register_commands(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    """Register the mirror command."""

    mirror_parser = subparsers.add_parser(
        "mirror",
        help="Mirror a fork pull request into this repository and trigger its build.",
    )
    mirror_parser.add_argument(
        "--event-path",
        type=Path,
        help="Path to the pull_request_target event JSON. Defaults to $GITHUB_EVENT_PATH.",
    )
    mirror_parser.add_argument(
        "--repo",
        help="Trusted repository in owner/repo form. Defaults to $GITHUB_REPOSITORY.",
    )
    mirror_parser.add_argument(
        "--token",
        help="GitHub token. Defaults to $GH_TOKEN or $GITHUB_TOKEN.",
    )
    mirror_parser.add_argument(
        "--api-url",
        help="Base URL for the GitHub API. Defaults to $GITHUB_API_URL, then the config file.",
    )
    mirror_parser.add_argument(
        "--server-url",
        help="Base URL for GitHub web links. Defaults to $GITHUB_SERVER_URL, then the config file.",
    )
    mirror_parser.add_argument(
        "--config",
        type=Path,
        help="Path to the mirror YAML configuration (defaults to config/mirror.yaml when present).",
    )
    mirror_parser.add_argument(
        "--workdir",
        type=Path,
        help="Local clone of the trusted repository. Defaults to the current directory.",
    )
    mirror_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the run result as JSON.",
    )
    mirror_parser.set_defaults(func=mirror_cli)


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _resolve_event_path(explicit: Path | None) -> Path:
    if explicit is not None:
        return explicit
    env_path = os.environ.get("GITHUB_EVENT_PATH")
    if not env_path:
        raise MirrorError(
            "Event payload not provided; set --event-path or the GITHUB_EVENT_PATH environment variable."
        )
    return Path(env_path)


def _resolve_urls(args: argparse.Namespace, config: MirrorConfig) -> tuple[str, str]:
    api_url = args.api_url or os.environ.get("GITHUB_API_URL") or config.github.api_url or DEFAULT_API_URL
    server_url = (
        args.server_url
        or os.environ.get("GITHUB_SERVER_URL")
        or config.github.server_url
        or DEFAULT_SERVER_URL
    )
    return api_url, server_url


def build_gateway(args: argparse.Namespace, config: MirrorConfig) -> RemoteGateway:
    """Assemble the git and REST clients for the trusted repository."""

    token = resolve_token(args.token)
    repository = resolve_repository(args.repo)
    api_url, _ = _resolve_urls(args, config)
    api = GitHubClient(
        token=token,
        repository=repository,
        api_url=api_url,
        timeout=config.github.timeout_seconds,
    )
    git = GitRepository(args.workdir, timeout=config.git.timeout_seconds)
    return RemoteGateway(git, api, remote=config.remote)


def mirror_cli(args: argparse.Namespace) -> int:
    """Handler for the mirror command."""

    try:
        config = load_mirror_config(args.config)
    except (FileNotFoundError, ValueError) as err:
        print(f"Error: {err}", file=sys.stderr)
        return EXIT_USAGE

    _configure_logging(config.log_level)

    try:
        event = load_event(_resolve_event_path(args.event_path))
    except UnsupportedEventError as err:
        logger.info("Ignoring event: %s", err)
        if args.json:
            print(json.dumps({"status": "ignored", "reason": str(err)}, indent=2))
        else:
            print(f"Ignored: {err}")
        return EXIT_OK
    except MirrorError as err:
        print(f"Error: {err}", file=sys.stderr)
        return EXIT_USAGE

    try:
        gateway = build_gateway(args, config)
    except GitHubApiError as err:
        print(f"Error: {err}", file=sys.stderr)
        return EXIT_USAGE

    # Server URL only affects links in comment bodies.
    _, config.github.server_url = _resolve_urls(args, config)

    try:
        gateway.git.configure_identity(config.git.user_name, config.git.user_email)
    except GitHubApiError as err:
        print(f"Error: {err}", file=sys.stderr)
        return EXIT_FAILED

    result = run_pipeline(event, gateway, config)

    write_step_outputs(result)
    write_step_summary(result)

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        print(result.summary())

    return EXIT_OK if result.success else EXIT_FAILED
