from collections import Counter, defaultdict

from git_scanline.domain.models import Commit, SiloData
from git_scanline.infrastructure.normalization import clamp_score


def analyze_authors(commits: list[Commit], files: list[str]) -> dict[str, SiloData]:
    """Author concentration per file, from commit authorship rather than blame."""
    file_set = set(files)
    authors: defaultdict[str, Counter[str]] = defaultdict(Counter)
    for commit in commits:
        for f in commit.files:
            if f in file_set:
                authors[f][commit.author] += 1

    result: dict[str, SiloData] = {}
    for f in files:
        tally = authors.get(f)
        if not tally:
            result[f] = SiloData.empty()
            continue
        # most_common keeps first-inserted order among equal counts
        top_author, top_count = tally.most_common(1)[0]
        total = sum(tally.values())
        result[f] = SiloData(
            top_author=top_author,
            top_author_percent=clamp_score(top_count / total * 100),
            author_count=len(tally),
        )
    return result
