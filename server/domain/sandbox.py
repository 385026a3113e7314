"""Filesystem sandbox utilities for safe path resolution."""

from pathlib import Path


class ForbiddenPath(Exception):
    """Raised when a requested path cannot be resolved inside the static root."""


def resolve_static_path(directory: str, sub_path: str) -> Path:
    """Resolve ``sub_path`` against the static root, following symlinks.

    The root itself must exist; a missing root raises ``FileNotFoundError``.
    A target that does not exist or lands outside the root raises
    ``ForbiddenPath``.
    """
    directory_root = Path(directory).resolve(strict=True)
    try:
        target = (directory_root / sub_path).resolve(strict=True)
    except (OSError, RuntimeError, ValueError) as exc:
        raise ForbiddenPath(sub_path) from exc

    if not (target == directory_root or directory_root in target.parents):
        raise ForbiddenPath(sub_path)
    return target
