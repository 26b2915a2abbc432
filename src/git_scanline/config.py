"""Configuration loading for git-scanline.

Sources are merged in priority order (lowest to highest):
    1. Defaults (ScanConfig field defaults)
    2. Project config (``<repo>/.git-scanline.toml``), or an explicit file
    3. CLI overrides (keyword arguments; ``None`` means "not given")

Example:
    >>> config = load_config(top=10, weights={"bugs": 0.5})
    >>> config.top
    10
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Mapping

from git_scanline.domain.errors import ConfigError, ScanlineError
from git_scanline.domain.models import DEFAULT_WEIGHTS, Weights
from git_scanline.infrastructure.file_filter import FilterOverrides

CONFIG_FILENAME = ".git-scanline.toml"
OUTPUT_FORMATS = ("terminal", "json", "html")

_LIST_FIELDS = ("exclude_dirs", "include_dirs", "exclude_files", "exclude_extensions")


@dataclass(frozen=True)
class ScanConfig:
    """Settings for one analysis run, constructed once and passed explicitly."""

    # Analysis scope
    since: str = ""
    path: str | None = None
    # Presentation only; the engine always scores every file
    top: int = 20
    bugs_only: bool = False
    format: str = "terminal"
    output: str | None = None

    # File-filter overrides
    exclude_dirs: tuple[str, ...] = ()
    include_dirs: tuple[str, ...] = ()
    exclude_files: tuple[str, ...] = ()
    exclude_extensions: tuple[str, ...] = ()

    weights: Weights = field(default_factory=lambda: DEFAULT_WEIGHTS)
    workers: int = 1

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        if self.format not in OUTPUT_FORMATS:
            raise ConfigError(
                f"Invalid 'format' value: \"{self.format}\". "
                f"Expected one of: {', '.join(OUTPUT_FORMATS)}"
            )
        if self.top < 1:
            raise ConfigError(
                f"Invalid 'top' value: {self.top}. Must be 1 or greater"
            )
        if self.workers < 1:
            raise ConfigError(f"Invalid 'workers' value: {self.workers}. Must be 1 or greater")
        # Raises InvalidWeightError / DegenerateWeightsError
        self.weights.normalized()

    def filter_overrides(self) -> FilterOverrides:
        return FilterOverrides(
            extra_exclude_dirs=self.exclude_dirs,
            allow_dirs=self.include_dirs,
            extra_exclude_files=self.exclude_files,
            extra_exclude_extensions=self.exclude_extensions,
        )

    def with_weights(self, overrides: Mapping[str, float | None]) -> ScanConfig:
        return replace(self, weights=self.weights.merged(overrides))


def load_config(
    config_file: Path | None = None,
    repo_path: str | None = None,
    weights: Mapping[str, float | None] | None = None,
    **overrides: Any,
) -> ScanConfig:
    """Load configuration, merging the config file and CLI overrides.

    Raises:
        ConfigError: If the config file is missing, unreadable or invalid.
    """
    merged: dict[str, Any] = {}
    file_weights: dict[str, Any] = {}

    source = config_file
    if source is None and repo_path is not None:
        candidate = Path(repo_path) / CONFIG_FILENAME
        if candidate.is_file():
            source = candidate

    if source is not None:
        if not source.exists():
            raise ConfigError(f"Config file not found: {source}")
        data = _load_toml_file(source)
        file_weights = data.pop("weights", {}) or {}
        if not isinstance(file_weights, dict):
            raise ConfigError(f"Config file '{source}': [weights] must be a table")
        merged.update(data)

    merged.update({k: v for k, v in overrides.items() if v is not None})

    known = {f.name for f in fields(ScanConfig)} - {"weights"}
    unknown = sorted(set(merged) - known)
    if unknown:
        raise ConfigError(f"Unknown configuration field(s): {', '.join(unknown)}")

    for name in _LIST_FIELDS:
        if name in merged:
            if not isinstance(merged[name], (list, tuple)):
                raise ConfigError(f"Invalid '{name}' value: expected a list of strings")
            merged[name] = tuple(str(v) for v in merged[name])

    try:
        w = DEFAULT_WEIGHTS.merged(file_weights).merged(weights)
        return ScanConfig(weights=w, **merged)
    except ScanlineError:
        raise
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid configuration: {e}") from e


def _load_toml_file(path: Path) -> dict[str, Any]:
    try:
        with path.open("rb") as fh:
            return tomllib.load(fh)
    except OSError as e:
        raise ConfigError(f"Cannot read config file '{path}': {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid config file '{path}': {e}") from e


TEMPLATE = """\
# git-scanline configuration file
# Generated by: git-scanline --generate-config
#
# All settings are optional. Omit any field to use the built-in default.
# CLI flags always take precedence over values in this file.
# Save this file as .git-scanline.toml in your repository root, or pass it
# explicitly:
#
#   git-scanline --config .git-scanline.toml [path]

# -- Analysis scope ------------------------------------------------------------

# Analyze commits since this date. Leave empty (or omit) for all history.
# Accepts any git date format: "6 months ago", "2024-01-01", "1 year ago"
# since = ""

# Limit analysis to a subdirectory (relative path from the repo root).
# path = "src"

# Number of hotspot results to display. All files are always analyzed.
# top = 20

# Only show files that appear in bug-fix commits.
# bugs_only = false

# -- Output --------------------------------------------------------------------

# Output format: terminal, json, html
# format = "terminal"

# Output file path (json/html).
# output = "hotspot-report.json"

# -- File filtering ------------------------------------------------------------

# Additional directories to exclude (merged with the built-in list).
# exclude_dirs = ["generated", "proto", "migrations", "fixtures"]

# Built-in excluded directories to allow back into analysis.
# include_dirs = ["dist", "public"]

# Additional filenames to exclude (exact match against the file name).
# exclude_files = ["schema.graphql", "openapi.json"]

# Additional file extensions to exclude.
# exclude_extensions = [".pb.go", ".generated.ts", ".d.ts"]

# -- Scoring weights -----------------------------------------------------------
# Weights are normalized at runtime so they always sum to 1.0.

# [weights]
# churn = 0.27           # Commit frequency with recency decay
# bugs = 0.27            # Correlation with bug-fix commit messages
# reverts = 0.14         # Files that have been reverted
# bursts = 0.09          # Rapid-commit windows (3+ commits in 24 h)
# coupling = 0.09        # Files that always change together
# silo = 0.05            # Single-author concentration risk
# commit_quality = 0.09  # WIP and oversized commits
"""


def write_template(output_path: Path | None = None) -> str:
    """Return the config template, also writing it to *output_path* if given."""
    if output_path is not None:
        try:
            output_path.write_text(TEMPLATE, encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Cannot write config template to '{output_path}': {e}") from e
    return TEMPLATE
