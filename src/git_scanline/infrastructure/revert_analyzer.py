import re
from collections import defaultdict

from git_scanline.domain.models import Commit, RevertData
from git_scanline.infrastructure.normalization import max_normalize

REVERT_PATTERN = re.compile(r"^revert\b", re.IGNORECASE)


def is_revert(subject: str) -> bool:
    return REVERT_PATTERN.match(subject.strip()) is not None


def analyze_reverts(commits: list[Commit], files: list[str]) -> dict[str, RevertData]:
    file_set = set(files)
    counts: defaultdict[str, int] = defaultdict(int)
    for commit in commits:
        if not is_revert(commit.subject):
            continue
        for f in commit.files:
            if f in file_set:
                counts[f] += 1

    scores = max_normalize(counts, files)
    return {f: RevertData(revert_count=counts[f], revert_score=scores[f]) for f in files}
