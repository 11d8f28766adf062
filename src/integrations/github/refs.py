"""Validation for git ref names taken from untrusted fork events."""

from __future__ import annotations

_DISALLOWED_CHARS = {"~", "^", ":", "?", "*", "[", "\\"}


class InvalidRefError(ValueError):
    """Raised when a branch name is not safe to hand to git."""


def _has_control_or_space(value: str) -> bool:
    for ch in value:
        if ch <= " " or ch == "\x7f":
            return True
    return False


def _component_invalid(component: str) -> bool:
    return (
        not component
        or component.startswith(".")
        or component.endswith(".")
        or component.endswith(".lock")
    )


def validate_ref_name(name: str, *, label: str = "branch") -> str:
    """Return ``name`` unchanged if it is a valid branch name, else raise.

    Follows ``git check-ref-format --branch`` and additionally rejects a
    leading dash so a name can never be read as a command-line option.
    """

    if not name or name.strip() != name:
        raise InvalidRefError(f"{label} name is empty or has leading/trailing whitespace")
    if name == "@":
        raise InvalidRefError(f"{label} name cannot be '@'")
    if name.startswith("-"):
        raise InvalidRefError(f"{label} name cannot start with '-': {name}")
    if name.startswith("/") or name.endswith("/"):
        raise InvalidRefError(f"{label} name has leading/trailing slash: {name}")
    if "//" in name:
        raise InvalidRefError(f"{label} name contains '//': {name}")
    if ".." in name:
        raise InvalidRefError(f"{label} name contains '..': {name}")
    if "@{" in name:
        raise InvalidRefError(f"{label} name contains '@{{': {name}")
    if _has_control_or_space(name):
        raise InvalidRefError(f"{label} name contains whitespace/control chars: {name!r}")
    if any(ch in _DISALLOWED_CHARS for ch in name):
        raise InvalidRefError(f"{label} name contains invalid characters: {name}")
    if any(_component_invalid(component) for component in name.split("/")):
        raise InvalidRefError(f"{label} name has invalid path component: {name}")
    return name


__all__ = ["InvalidRefError", "validate_ref_name"]
