"""Candidate file discovery under the configured source roots."""

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)


def list_files(
    root: Path,
    extensions: list[str],
    exclude: list[str] | None = None,
    include: list[str] | None = None,
) -> list[Path]:
    """Recursively list files under root that end with one of the extensions.

    A file or directory whose path contains any exclude substring is skipped.
    When include is non-empty, a file is kept only if its path contains at
    least one include substring. A missing root yields an empty list.
    """
    exclude = exclude or []
    include = include or []
    if not root.is_dir():
        logger.debug("Skipping missing directory %s", root)
        return []

    files: list[Path] = []
    seen_dirs: set[tuple[int, int]] = set()

    for current, dirnames, filenames in os.walk(root, followlinks=True):
        stat = os.stat(current)
        identity = (stat.st_dev, stat.st_ino)
        if identity in seen_dirs:
            # Symlink cycle back into a directory we already walked
            dirnames[:] = []
            continue
        seen_dirs.add(identity)

        dirnames[:] = sorted(
            d for d in dirnames if not _matches_any(os.path.join(current, d), exclude)
        )
        for name in sorted(filenames):
            full_path = os.path.join(current, name)
            if not name.endswith(tuple(extensions)):
                continue
            if _matches_any(full_path, exclude):
                continue
            if include and not _matches_any(full_path, include):
                continue
            files.append(Path(full_path))

    return files


def _matches_any(path: str, patterns: list[str]) -> bool:
    normalized = path.replace(os.sep, "/")
    return any(p in path or p in normalized for p in patterns)


def normalize_path(path: Path) -> Path:
    """Absolute, lexically normalized path used as the identity of a file."""
    return Path(os.path.normpath(path.absolute()))
