"""Co-change coupling: files that keep changing in the same commits.

Strength is the Jaccard similarity of the two files' commit sets,
``co_changes / (commits_a + commits_b - co_changes)``, on a 0-100 scale.
"""

from __future__ import annotations

from collections import defaultdict

from git_scanline.domain.models import Commit, CouplingEntry
from git_scanline.infrastructure.normalization import clamp_score

# Commits wider than this are merges or reformats; their O(k^2) pairs are noise
MAX_FILES_PER_COMMIT = 20
MIN_CO_CHANGES = 3


def analyze_coupling(
    commits: list[Commit],
    files: list[str],
    max_files_per_commit: int = MAX_FILES_PER_COMMIT,
    min_co_changes: int = MIN_CO_CHANGES,
) -> list[CouplingEntry]:
    file_set = set(files)
    file_commit_count: defaultdict[str, int] = defaultdict(int)
    pair_shared: defaultdict[tuple[str, str], int] = defaultdict(int)

    for commit in commits:
        touched = sorted({f for f in commit.files if f in file_set})
        for f in touched:
            file_commit_count[f] += 1
        if len(touched) > max_files_per_commit:
            continue
        for i in range(len(touched)):
            for j in range(i + 1, len(touched)):
                pair_shared[(touched[i], touched[j])] += 1

    couplings: list[CouplingEntry] = []
    for (fa, fb), shared in pair_shared.items():
        if shared < min_co_changes:
            continue
        union = file_commit_count[fa] + file_commit_count[fb] - shared
        strength = clamp_score(shared / union * 100) if union > 0 else 0
        couplings.append(CouplingEntry(file_a=fa, file_b=fb, co_changes=shared, strength=strength))

    couplings.sort(key=lambda c: (-c.co_changes, -c.strength, c.file_a, c.file_b))
    return couplings


def coupling_scores(files: list[str], couplings: list[CouplingEntry]) -> dict[str, int]:
    """Per-file coupling score: the strongest coupling with any partner."""
    scores = {f: 0 for f in files}
    for c in couplings:
        if c.file_a in scores:
            scores[c.file_a] = max(scores[c.file_a], c.strength)
        if c.file_b in scores:
            scores[c.file_b] = max(scores[c.file_b], c.strength)
    return scores
