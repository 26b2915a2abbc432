import re
from collections import defaultdict

from git_scanline.domain.models import Commit, CommitQualityData
from git_scanline.infrastructure.normalization import clamp_score

# WIP/rebase markers anywhere in the subject, or a bare generic subject
LOW_QUALITY_PATTERN = re.compile(
    r"\b(?:wip|temp|tmp|fixup|squash|hack|dirty|oops|typo|debug|draft)\b"
    r"|^(?:fix|update|changes|stuff|misc|test|cleanup|commit|save|ok|done)\s*[.!]?\s*$",
    re.IGNORECASE,
)

SHORT_MESSAGE_MIN_LENGTH = 10
LARGE_COMMIT_THRESHOLD = 30

WIP_WEIGHT = 60
LARGE_WEIGHT = 40


def is_low_quality(subject: str) -> bool:
    subject = subject.strip()
    return (
        len(subject) < SHORT_MESSAGE_MIN_LENGTH
        or LOW_QUALITY_PATTERN.search(subject) is not None
    )


def analyze_commit_quality(
    commits: list[Commit], files: list[str]
) -> dict[str, CommitQualityData]:
    file_set = set(files)
    wip: defaultdict[str, int] = defaultdict(int)
    large: defaultdict[str, int] = defaultdict(int)

    for commit in commits:
        touched = [f for f in commit.files if f in file_set]
        low_quality = is_low_quality(commit.subject)
        is_large = len(touched) > LARGE_COMMIT_THRESHOLD
        for f in touched:
            if low_quality:
                wip[f] += 1
            if is_large:
                large[f] += 1

    max_wip = max([1, *wip.values()])
    max_large = max([1, *large.values()])

    return {
        f: CommitQualityData(
            wip_commits=wip[f],
            large_commit_count=large[f],
            commit_quality_score=clamp_score(
                wip[f] / max_wip * WIP_WEIGHT + large[f] / max_large * LARGE_WEIGHT
            ),
        )
        for f in files
    }
