#!/usr/bin/env python3

from __future__ import annotations

import argparse
import sys

from src.cli.commands.mirror import register_commands as register_mirror_commands


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Mirror fork pull requests into the trusted repository.",
        prog="python -m main",
    )
    subcommands = parser.add_subparsers(dest="command", required=True)
    register_mirror_commands(subcommands)
    return parser


def main(argv: list[str] | None = None) -> int:
    raw_args = sys.argv[1:] if argv is None else argv

    parser = build_parser()
    args = parser.parse_args(raw_args)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
