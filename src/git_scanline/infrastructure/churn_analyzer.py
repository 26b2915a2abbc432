import math
from collections import defaultdict
from datetime import datetime, timezone

from git_scanline.domain.models import ChurnData, Commit
from git_scanline.infrastructure.normalization import EPSILON, clamp_score

# Exponential decay constant: half-life = ln(2) / 0.005 ~ 139 days.
# A commit from yesterday weighs ~1.0, one from nine months ago ~0.25.
DECAY_LAMBDA = 0.005

# A file touched by more than 1/RAW_MULTIPLIER*100 = 20% of commits maxes out
RAW_MULTIPLIER = 500


def decay_weight(commit_timestamp: int, now: datetime) -> float:
    """Recency weight of a commit, counting whole days elapsed."""
    age_seconds = now.timestamp() - commit_timestamp
    days_ago = max(0, math.floor(age_seconds / 86400))
    return math.exp(-DECAY_LAMBDA * days_ago)


def analyze_churn(
    commits: list[Commit],
    files: list[str],
    current_time: datetime | None = None,
) -> dict[str, ChurnData]:
    now = current_time or datetime.now(timezone.utc)
    file_set = set(files)

    commit_count: defaultdict[str, int] = defaultdict(int)
    weighted: defaultdict[str, float] = defaultdict(float)

    for commit in commits:
        weight = decay_weight(commit.timestamp, now)
        for f in commit.files:
            if f not in file_set:
                continue
            commit_count[f] += 1
            weighted[f] += weight

    total_commits = max(len(commits), 1)
    max_weighted = max([EPSILON, *weighted.values()])

    return {
        f: ChurnData(
            commit_count=commit_count[f],
            weighted_score=clamp_score(weighted[f] / max_weighted * 100),
            raw_score=clamp_score(commit_count[f] / total_commits * RAW_MULTIPLIER),
        )
        for f in files
    }
