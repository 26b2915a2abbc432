"""Weighted combination of the seven signals into one hotspot score per file."""

from __future__ import annotations

from typing import Mapping

from git_scanline.domain.models import (
    DEFAULT_WEIGHTS,
    BugData,
    BurstData,
    ChurnData,
    CommitQualityData,
    DiffStats,
    HotspotDetails,
    HotspotResult,
    RevertData,
    SignalSet,
    SiloData,
    Weights,
    tier_for,
)
from git_scanline.infrastructure.coupling_analyzer import coupling_scores
from git_scanline.infrastructure.normalization import clamp_score

# Neutral silo value for a file the silo analyzer never saw
_SILO_FALLBACK = SiloData(top_author="unknown", top_author_percent=0, author_count=0)


def effective_weights(
    overrides: Weights | Mapping[str, float | None] | None = None,
) -> Weights:
    """Merge overrides onto the defaults and renormalize to sum to 1."""
    if isinstance(overrides, Weights):
        return overrides.normalized()
    return DEFAULT_WEIGHTS.merged(overrides).normalized()


def score_hotspots(
    files: list[str],
    signals: SignalSet,
    diff_stats: Mapping[str, DiffStats],
    weights: Weights | Mapping[str, float | None] | None = None,
) -> list[HotspotResult]:
    """Score every file. The result follows the order of *files*; it is not ranked."""
    w = effective_weights(weights)
    couplings = coupling_scores(files, signals.couplings)

    results: list[HotspotResult] = []
    for f in files:
        churn = signals.churn.get(f) or ChurnData.empty()
        bugs = signals.bugs.get(f) or BugData.empty()
        reverts = signals.reverts.get(f) or RevertData.empty()
        bursts = signals.bursts.get(f) or BurstData.empty()
        silo = signals.silo.get(f) or _SILO_FALLBACK
        quality = signals.commit_quality.get(f) or CommitQualityData.empty()
        diff = diff_stats.get(f) or DiffStats()
        coupling = couplings.get(f, 0)

        hotspot = clamp_score(
            churn.weighted_score * w.churn
            + bugs.bug_score * w.bugs
            + reverts.revert_score * w.reverts
            + bursts.burst_score * w.bursts
            + coupling * w.coupling
            + silo.top_author_percent * w.silo
            + quality.commit_quality_score * w.commit_quality
        )

        results.append(HotspotResult(
            file=f,
            hotspot_score=hotspot,
            churn_score=churn.weighted_score,
            bug_fix_score=bugs.bug_score,
            revert_score=reverts.revert_score,
            burst_score=bursts.burst_score,
            coupling_score=coupling,
            silo_score=silo.top_author_percent,
            commit_quality_score=quality.commit_quality_score,
            tier=tier_for(hotspot),
            details=HotspotDetails(
                commit_count=churn.commit_count,
                bug_commits=bugs.bug_commits,
                revert_count=reverts.revert_count,
                burst_incidents=bursts.burst_incidents,
                wip_commits=quality.wip_commits,
                large_commit_count=quality.large_commit_count,
                top_author=silo.top_author,
                top_author_percent=silo.top_author_percent,
                author_count=silo.author_count,
                additions=diff.additions,
                deletions=diff.deletions,
            ),
        ))
    return results
