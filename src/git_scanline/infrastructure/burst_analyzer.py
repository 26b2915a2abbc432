from collections import defaultdict

from git_scanline.domain.models import BurstData, Commit
from git_scanline.infrastructure.normalization import max_normalize

BURST_WINDOW_SECONDS = 24 * 3600
BURST_MIN_COMMITS = 3


def count_bursts(
    timestamps: list[int],
    window_seconds: int = BURST_WINDOW_SECONDS,
    min_commits: int = BURST_MIN_COMMITS,
) -> int:
    """Count non-overlapping runs of *min_commits*+ commits within a window.

    The window is measured from each run's first timestamp. Once a run
    qualifies, scanning resumes after its last member.
    """
    ordered = sorted(timestamps)
    incidents = 0
    i = 0
    while i < len(ordered):
        j = i + 1
        while j < len(ordered) and ordered[j] - ordered[i] <= window_seconds:
            j += 1
        if j - i >= min_commits:
            incidents += 1
            i = j
        else:
            i += 1
    return incidents


def analyze_bursts(commits: list[Commit], files: list[str]) -> dict[str, BurstData]:
    file_set = set(files)
    timestamps: defaultdict[str, list[int]] = defaultdict(list)
    for commit in commits:
        for f in commit.files:
            if f in file_set:
                timestamps[f].append(commit.timestamp)

    incidents = {f: count_bursts(timestamps[f]) for f in files}
    scores = max_normalize(incidents, files)
    return {
        f: BurstData(burst_incidents=incidents[f], burst_score=scores[f])
        for f in files
    }
