"""Removes paths that carry no hotspot signal (deps, lock files, binaries)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from git_scanline.domain.models import Commit

EXCLUDED_DIRS = frozenset({
    "node_modules", ".git", "vendor", "dist", "build", "coverage",
    ".nyc_output", "__pycache__", ".pytest_cache", "venv", ".venv",
    "env", ".next", ".nuxt", "target", "out", ".cache", ".turbo",
    ".parcel-cache", "public", "static",
})

EXCLUDED_FILENAMES = frozenset({
    # Dependency manifests and lock files change for non-code reasons
    "package.json", "package-lock.json", "yarn.lock", "pnpm-lock.yaml",
    "composer.lock", "Gemfile.lock", "Pipfile.lock", "poetry.lock",
    "go.sum", "Cargo.lock", "packages.lock.json", "npm-shrinkwrap.json",
    # Editor config and OS files
    ".gitignore", ".gitattributes", ".editorconfig", ".eslintrc", ".prettierrc",
    ".browserslistrc", "CHANGELOG.md", "CHANGELOG", ".DS_Store", "Thumbs.db",
})

EXCLUDED_EXTENSIONS = (
    ".lock", ".map", ".snap",
    # Images and fonts
    ".png", ".jpg", ".jpeg", ".gif", ".svg", ".ico", ".webp", ".avif",
    ".woff", ".woff2", ".ttf", ".eot", ".otf",
    # Media
    ".mp4", ".mp3", ".wav", ".ogg", ".webm",
    # Archives and binaries
    ".pdf", ".zip", ".tar", ".gz", ".bz2", ".xz", ".7z", ".dmg", ".exe",
    # Minified assets
    ".min.js", ".min.css",
)


@dataclass(frozen=True)
class FilterOverrides:
    """User additions to (and removals from) the built-in exclusion lists."""

    extra_exclude_dirs: tuple[str, ...] = ()
    allow_dirs: tuple[str, ...] = ()
    extra_exclude_files: tuple[str, ...] = ()
    extra_exclude_extensions: tuple[str, ...] = ()


def collect_files(commits: Iterable[Commit]) -> list[str]:
    """Distinct file paths across *commits*, in first-seen order."""
    seen: dict[str, None] = {}
    for commit in commits:
        for f in commit.files:
            seen.setdefault(f, None)
    return list(seen)


def filter_files(
    files: Iterable[str],
    path_filter: str | None = None,
    overrides: FilterOverrides | None = None,
) -> list[str]:
    overrides = overrides or FilterOverrides()
    dirs = (EXCLUDED_DIRS | set(overrides.extra_exclude_dirs)) - set(overrides.allow_dirs)
    names = EXCLUDED_FILENAMES | set(overrides.extra_exclude_files)
    extensions = tuple(
        ext.lower() for ext in (*EXCLUDED_EXTENSIONS, *overrides.extra_exclude_extensions)
    )

    scope = None
    if path_filter:
        path_filter = path_filter.rstrip("/")
        scope = path_filter + "/"

    kept: list[str] = []
    for file_path in files:
        if not file_path:
            continue
        if scope is not None and file_path != path_filter and not file_path.startswith(scope):
            continue
        segments = file_path.split("/")
        filename = segments[-1]
        if any(seg in dirs for seg in segments):
            continue
        if filename in names:
            continue
        if filename.lower().endswith(extensions):
            continue
        kept.append(file_path)
    return kept
