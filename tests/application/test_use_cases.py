from datetime import datetime, timedelta, timezone

import pytest

from git_scanline.application.use_cases import (
    ALL_HISTORY,
    analyze_history,
    analyze_repositories,
    analyze_repository,
    run_analyzers,
)
from git_scanline.config import ScanConfig
from git_scanline.domain.models import Commit, DiffStats, OutcomeStatus, Tier

from tests.application.fakes import BrokenGitHistory, FakeGitHistory

NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


def _commit(
    sha: str, subject: str, *files: str,
    days_ago: float = 1, author: str = "dev@example.com",
) -> Commit:
    ts = int((NOW - timedelta(days=days_ago)).timestamp())
    return Commit(sha, author, ts, subject, files)


def _history() -> list[Commit]:
    return [
        _commit("6", "Revert \"Speed up parser\"", "src/parser.py", days_ago=2),
        _commit("5", "Speed up parser", "src/parser.py", "src/lexer.py", days_ago=3),
        _commit("4", "fix crash in lexer", "src/lexer.py", "src/parser.py", days_ago=10,
                author="other@example.com"),
        _commit("3", "wip", "src/parser.py", "src/lexer.py", days_ago=20),
        _commit("2", "Add secrets for staging", ".env.staging", "yarn.lock", days_ago=30),
        _commit("1", "Initial project layout", "src/parser.py", "README.md", "package.json", days_ago=60),
    ]


class TestRunAnalyzers:
    def test_sequential_and_threaded_agree(self):
        files = ["src/parser.py", "src/lexer.py", "README.md"]
        sequential = run_analyzers(_history(), files, current_time=NOW, workers=1)
        threaded = run_analyzers(_history(), files, current_time=NOW, workers=4)
        assert sequential == threaded

    def test_every_file_zero_filled(self):
        signals = run_analyzers([], ["a.py"], current_time=NOW)
        assert signals.churn["a.py"].commit_count == 0
        assert signals.silo["a.py"].top_author == "unknown"
        assert signals.couplings == []


class TestAnalyzeHistory:
    def test_full_pipeline(self):
        stats = {"src/parser.py": DiffStats(40, 10)}
        outcome = analyze_history(_history(), stats, ScanConfig(), current_time=NOW)
        assert outcome.status is OutcomeStatus.OK
        report = outcome.report
        assert report.meta.since == ALL_HISTORY
        assert report.meta.commit_count == 6
        assert report.meta.analyzed_at == "2024-06-01T12:00:00+00:00"

        files = {r.file for r in report.results}
        # Lock files and manifests never reach the scorer
        assert files == {"src/parser.py", "src/lexer.py", "README.md", ".env.staging"}
        assert report.meta.file_count == 4

        top = report.ranked()[0]
        assert top.file == "src/parser.py"
        assert top.details.commit_count == 5
        assert top.details.bug_commits == 1
        assert top.details.revert_count == 1
        assert top.details.additions == 40

    def test_security_risks_reported(self):
        outcome = analyze_history(_history(), {}, ScanConfig(), current_time=NOW)
        assert [r.file for r in outcome.report.security_risks] == [".env.staging"]

    def test_parser_lexer_coupling(self):
        outcome = analyze_history(_history(), {}, ScanConfig(), current_time=NOW)
        [coupling] = outcome.report.couplings
        assert (coupling.file_a, coupling.file_b) == ("src/lexer.py", "src/parser.py")
        assert coupling.co_changes == 3

    def test_single_commit_scenario(self):
        commits = [_commit("1", "Initial commit", "a.ts", "package.json")]
        outcome = analyze_history(commits, {}, ScanConfig(), current_time=NOW)
        [result] = outcome.report.results
        assert result.file == "a.ts"
        assert result.details.commit_count == 1
        assert result.details.bug_commits == 0
        # Churn is relative to the busiest file, so a lone file maxes it out
        assert result.churn_score == 100
        assert result.hotspot_score == 32
        assert result.tier is Tier.MEDIUM

    def test_since_echoed(self):
        outcome = analyze_history(_history(), {}, ScanConfig(since="3 months ago"), current_time=NOW)
        assert outcome.report.meta.since == "3 months ago"

    def test_empty_history(self):
        outcome = analyze_history([], {}, ScanConfig(), current_time=NOW)
        assert outcome.status is OutcomeStatus.EMPTY_HISTORY
        assert outcome.report is None

    def test_empty_filtered_set(self):
        commits = [_commit("1", "Bump deps", "package-lock.json", "yarn.lock")]
        outcome = analyze_history(commits, {}, ScanConfig(), current_time=NOW)
        assert outcome.status is OutcomeStatus.EMPTY_FILTERED_SET
        assert outcome.report.meta.commit_count == 1
        assert outcome.report.meta.file_count == 0
        assert outcome.report.results == []

    def test_idempotent_with_fixed_clock(self):
        config = ScanConfig()
        first = analyze_history(_history(), {}, config, current_time=NOW)
        second = analyze_history(_history(), {}, config, current_time=NOW)
        assert first.report == second.report
        assert first.report.to_dict() == second.report.to_dict()

    def test_weights_change_ranking(self):
        config = ScanConfig().with_weights(
            {"churn": 0, "bugs": 0, "reverts": 0, "bursts": 0, "coupling": 0, "silo": 1, "commit_quality": 0}
        )
        outcome = analyze_history(_history(), {}, config, current_time=NOW)
        readme = next(r for r in outcome.report.results if r.file == "README.md")
        assert readme.hotspot_score == 100

    def test_filter_overrides_applied(self):
        config = ScanConfig(exclude_files=("README.md",))
        outcome = analyze_history(_history(), {}, config, current_time=NOW)
        assert "README.md" not in {r.file for r in outcome.report.results}

    def test_logs_progress(self, caplog):
        with caplog.at_level("INFO", logger="git_scanline"):
            analyze_history(_history(), {}, ScanConfig(), current_time=NOW)
        assert "Scoring hotspots" in caplog.text


class TestAnalyzeRepository:
    def test_passes_scope_to_reader(self):
        repo = FakeGitHistory(_history())
        config = ScanConfig(since="1 year ago", path="src")
        outcome = analyze_repository(repo, "/repo", config, current_time=NOW)
        assert repo.calls == [("1 year ago", "src")]
        assert outcome.repo_path == "/repo"
        assert {r.file for r in outcome.report.results} == {"src/parser.py", "src/lexer.py"}


class TestAnalyzeRepositories:
    def test_failure_does_not_stop_batch(self, caplog):
        readers = {"/good": FakeGitHistory(_history()), "/broken": BrokenGitHistory(), "/empty": FakeGitHistory()}
        with caplog.at_level("WARNING", logger="git_scanline"):
            outcomes = analyze_repositories(
                ["/broken", "/good", "/empty"], ScanConfig(),
                current_time=NOW, reader_factory=readers.__getitem__,
            )
        assert [o.status for o in outcomes] == [
            OutcomeStatus.HISTORY_UNAVAILABLE,
            OutcomeStatus.OK,
            OutcomeStatus.EMPTY_HISTORY,
        ]
        assert "git log failed" in outcomes[0].message
        assert "/broken" in caplog.text

    def test_reader_construction_failure(self, tmp_path):
        [outcome] = analyze_repositories([str(tmp_path / "nope")], ScanConfig(), current_time=NOW)
        assert outcome.status is OutcomeStatus.HISTORY_UNAVAILABLE

    @pytest.mark.parametrize("workers", [1, 3])
    def test_real_repository(self, git_repo_with_history, workers):
        [outcome] = analyze_repositories([str(git_repo_with_history)], ScanConfig(workers=workers))
        assert outcome.ok
        files = {r.file for r in outcome.report.results}
        assert files == {"src/app.py", "src/utils.py", "README.md"}
        app = next(r for r in outcome.report.results if r.file == "src/app.py")
        assert app.details.revert_count == 1
        assert app.details.bug_commits == 2
