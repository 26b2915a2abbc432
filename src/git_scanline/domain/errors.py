"""Exception hierarchy for git-scanline."""

from __future__ import annotations


class ScanlineError(Exception):
    """Base exception for all git-scanline errors."""

    def __init__(self, message: str, details: dict[str, str] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class HistoryUnavailableError(ScanlineError):
    """git log could not be run, or the target is not a git repository."""


class ConfigError(ScanlineError):
    """Invalid configuration file or option value."""


class InvalidWeightError(ConfigError):
    """A scoring weight is negative, non-finite, or unknown."""


class DegenerateWeightsError(ConfigError):
    """Every scoring weight is zero, so they cannot be normalized."""
