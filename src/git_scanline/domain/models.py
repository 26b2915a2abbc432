from __future__ import annotations

import math
from dataclasses import asdict, dataclass, fields
from enum import Enum
from typing import Mapping

from git_scanline.domain.errors import DegenerateWeightsError, InvalidWeightError


@dataclass(frozen=True)
class Commit:
    """One change-set parsed from the git log."""

    hash: str
    author: str  # author email
    timestamp: int  # author date, seconds since epoch
    subject: str
    files: tuple[str, ...] = ()  # post-rename paths, in log order


@dataclass
class DiffStats:
    """Cumulative line counts for one file across the scanned range."""

    additions: int = 0
    deletions: int = 0


# ---------------------------------------------------------------------------
# Per-signal metric types.  Each has an explicit neutral value used for
# zero-filling analyzer output and for the scorer's fallback lookups.
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ChurnData:
    commit_count: int
    weighted_score: int  # 0-100, recency-decayed
    raw_score: int  # 0-100, plain frequency

    @classmethod
    def empty(cls) -> ChurnData:
        return cls(commit_count=0, weighted_score=0, raw_score=0)


@dataclass(frozen=True)
class BugData:
    bug_commits: int
    bug_score: int

    @classmethod
    def empty(cls) -> BugData:
        return cls(bug_commits=0, bug_score=0)


@dataclass(frozen=True)
class RevertData:
    revert_count: int
    revert_score: int

    @classmethod
    def empty(cls) -> RevertData:
        return cls(revert_count=0, revert_score=0)


@dataclass(frozen=True)
class BurstData:
    burst_incidents: int
    burst_score: int

    @classmethod
    def empty(cls) -> BurstData:
        return cls(burst_incidents=0, burst_score=0)


@dataclass(frozen=True)
class SiloData:
    top_author: str
    top_author_percent: int
    author_count: int

    @classmethod
    def empty(cls) -> SiloData:
        # No recorded touches is treated as worst-case single ownership
        return cls(top_author="unknown", top_author_percent=100, author_count=1)


@dataclass(frozen=True)
class CommitQualityData:
    wip_commits: int
    large_commit_count: int
    commit_quality_score: int

    @classmethod
    def empty(cls) -> CommitQualityData:
        return cls(wip_commits=0, large_commit_count=0, commit_quality_score=0)


@dataclass(frozen=True)
class CouplingEntry:
    """Co-change coupling between two files."""

    file_a: str  # alphabetically first
    file_b: str  # alphabetically second
    co_changes: int
    strength: int  # Jaccard similarity, 0-100


@dataclass(frozen=True)
class SignalSet:
    """Output of the seven analyzers for one run."""

    churn: dict[str, ChurnData]
    bugs: dict[str, BugData]
    reverts: dict[str, RevertData]
    bursts: dict[str, BurstData]
    couplings: list[CouplingEntry]
    silo: dict[str, SiloData]
    commit_quality: dict[str, CommitQualityData]


@dataclass(frozen=True)
class SecurityRisk:
    """A security-sensitive file found anywhere in history."""

    file: str
    risk_type: str  # "env-file" | "key-or-cert" | "credential-file"
    commit_count: int
    first_seen: str  # YYYY-MM-DD (UTC)
    last_seen: str


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Weights:
    """Per-signal scoring weights.

    Inputs need not sum to 1; ``normalized()`` divides each by the total.
    """

    churn: float = 0.27
    bugs: float = 0.27
    reverts: float = 0.14
    bursts: float = 0.09
    coupling: float = 0.09
    silo: float = 0.05
    commit_quality: float = 0.09

    @classmethod
    def names(cls) -> list[str]:
        return [f.name for f in fields(cls)]

    def merged(self, overrides: Mapping[str, float | None] | None) -> Weights:
        """Return a copy with every non-None override applied."""
        if not overrides:
            return self
        values = asdict(self)
        for name, value in overrides.items():
            if name not in values:
                raise InvalidWeightError(f"Unknown weight '{name}'", {"weight": name})
            if value is not None:
                values[name] = float(value)
        return Weights(**values)

    def validate(self) -> None:
        for name, value in asdict(self).items():
            if not math.isfinite(value):
                raise InvalidWeightError(
                    f"Invalid weight '{name}': {value} is not a finite number",
                    {"weight": name},
                )
            if value < 0:
                raise InvalidWeightError(
                    f"Invalid weight '{name}': {value}. Weights must not be negative",
                    {"weight": name},
                )

    def normalized(self) -> Weights:
        self.validate()
        total = sum(asdict(self).values())
        if total <= 0:
            raise DegenerateWeightsError(
                "All scoring weights are zero; at least one must be positive"
            )
        return Weights(**{k: v / total for k, v in asdict(self).items()})


DEFAULT_WEIGHTS = Weights()


class Tier(str, Enum):
    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


TIER_THRESHOLDS: tuple[tuple[int, Tier], ...] = (
    (75, Tier.CRITICAL),
    (50, Tier.HIGH),
    (25, Tier.MEDIUM),
)


def tier_for(score: int) -> Tier:
    for threshold, tier in TIER_THRESHOLDS:
        if score >= threshold:
            return tier
    return Tier.LOW


@dataclass(frozen=True)
class HotspotDetails:
    commit_count: int
    bug_commits: int
    revert_count: int
    burst_incidents: int
    wip_commits: int
    large_commit_count: int
    top_author: str
    top_author_percent: int
    author_count: int
    additions: int
    deletions: int


@dataclass(frozen=True)
class HotspotResult:
    file: str
    hotspot_score: int
    churn_score: int
    bug_fix_score: int
    revert_score: int
    burst_score: int
    coupling_score: int
    silo_score: int
    commit_quality_score: int
    tier: Tier
    details: HotspotDetails


@dataclass(frozen=True)
class ReportMeta:
    since: str  # "all history" when no bound was given
    commit_count: int
    file_count: int
    analyzed_at: str  # ISO-8601, UTC


@dataclass(frozen=True)
class Report:
    meta: ReportMeta
    results: list[HotspotResult]  # one per filtered file, unsorted
    couplings: list[CouplingEntry]  # sorted by co_changes descending
    security_risks: list[SecurityRisk]  # sorted by commit_count descending

    def ranked(self) -> list[HotspotResult]:
        return sorted(self.results, key=lambda r: (-r.hotspot_score, r.file))

    def to_dict(self) -> dict:
        """Serialize with the camelCase keys of the JSON report format."""
        return {
            "meta": {
                "since": self.meta.since,
                "commitCount": self.meta.commit_count,
                "fileCount": self.meta.file_count,
                "analyzedAt": self.meta.analyzed_at,
            },
            "results": [_result_to_dict(r) for r in self.results],
            "couplings": [
                {
                    "fileA": c.file_a,
                    "fileB": c.file_b,
                    "coChanges": c.co_changes,
                    "strength": c.strength,
                }
                for c in self.couplings
            ],
            "securityRisks": [
                {
                    "file": s.file,
                    "riskType": s.risk_type,
                    "commitCount": s.commit_count,
                    "firstSeen": s.first_seen,
                    "lastSeen": s.last_seen,
                }
                for s in self.security_risks
            ],
        }


def _result_to_dict(r: HotspotResult) -> dict:
    d = r.details
    return {
        "file": r.file,
        "hotspotScore": r.hotspot_score,
        "churnScore": r.churn_score,
        "bugFixScore": r.bug_fix_score,
        "revertScore": r.revert_score,
        "burstScore": r.burst_score,
        "couplingScore": r.coupling_score,
        "siloScore": r.silo_score,
        "commitQualityScore": r.commit_quality_score,
        "tier": r.tier.value,
        "details": {
            "commitCount": d.commit_count,
            "bugCommits": d.bug_commits,
            "revertCount": d.revert_count,
            "burstIncidents": d.burst_incidents,
            "wipCommits": d.wip_commits,
            "largeCommitCount": d.large_commit_count,
            "topAuthor": d.top_author,
            "topAuthorPercent": d.top_author_percent,
            "authorCount": d.author_count,
            "additions": d.additions,
            "deletions": d.deletions,
        },
    }


class OutcomeStatus(str, Enum):
    OK = "ok"
    EMPTY_HISTORY = "empty-history"
    EMPTY_FILTERED_SET = "empty-filtered-set"
    HISTORY_UNAVAILABLE = "history-unavailable"


@dataclass(frozen=True)
class RepoOutcome:
    """Result of analyzing one repository in a (possibly multi-repo) run."""

    repo_path: str
    status: OutcomeStatus
    report: Report | None = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.status is OutcomeStatus.OK
