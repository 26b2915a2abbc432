import re
from collections import defaultdict

from git_scanline.domain.models import BugData, Commit
from git_scanline.infrastructure.normalization import max_normalize

BUG_PATTERN = re.compile(
    r"\b(?:fix|bug|patch|hotfix|regression|broken|crash|defect|issue|error)\b",
    re.IGNORECASE,
)


def is_bug_fix(subject: str) -> bool:
    return BUG_PATTERN.search(subject) is not None


def analyze_bug_correlation(commits: list[Commit], files: list[str]) -> dict[str, BugData]:
    """Count bug-fix commits per file; score relative to the worst file."""
    file_set = set(files)
    counts: defaultdict[str, int] = defaultdict(int)
    for commit in commits:
        if not is_bug_fix(commit.subject):
            continue
        for f in commit.files:
            if f in file_set:
                counts[f] += 1

    scores = max_normalize(counts, files)
    return {f: BugData(bug_commits=counts[f], bug_score=scores[f]) for f in files}
