"""Locate git repositories beneath a folder for multi-repository runs."""

from __future__ import annotations

from pathlib import Path

SKIP_SCAN_DIRS = frozenset({
    "node_modules", "vendor", "target", "dist", "build",
    ".cache", ".git", "__pycache__", ".npm", ".yarn",
})

MAX_DEPTH = 6


def find_git_repos(root: str | Path, max_depth: int = MAX_DEPTH) -> list[str]:
    """Return *root* itself if it is a repository, else every nested one.

    Descent stops at the first repository on each branch, so submodules and
    vendored checkouts inside a repository are not reported separately.
    """
    return sorted(_walk(Path(root).resolve(), 0, max_depth))


def _walk(path: Path, depth: int, max_depth: int) -> list[str]:
    if depth > max_depth:
        return []
    if (path / ".git").exists():
        return [str(path)]
    repos: list[str] = []
    try:
        entries = sorted(path.iterdir())
    except OSError:
        return []
    for entry in entries:
        if not entry.is_dir() or entry.is_symlink():
            continue
        if entry.name.startswith(".") or entry.name in SKIP_SCAN_DIRS:
            continue
        repos.extend(_walk(entry, depth + 1, max_depth))
    return repos
