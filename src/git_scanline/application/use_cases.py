import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Callable, Iterable, Mapping

from git_scanline.config import ScanConfig
from git_scanline.domain.errors import HistoryUnavailableError
from git_scanline.domain.models import (
    Commit,
    DiffStats,
    OutcomeStatus,
    Report,
    ReportMeta,
    RepoOutcome,
    SignalSet,
)
from git_scanline.domain.ports import GitHistory
from git_scanline.infrastructure.bug_analyzer import analyze_bug_correlation
from git_scanline.infrastructure.burst_analyzer import analyze_bursts
from git_scanline.infrastructure.churn_analyzer import analyze_churn
from git_scanline.infrastructure.commit_quality_analyzer import analyze_commit_quality
from git_scanline.infrastructure.coupling_analyzer import analyze_coupling
from git_scanline.infrastructure.file_filter import collect_files, filter_files
from git_scanline.infrastructure.git_cli_reader import GitCliReader
from git_scanline.infrastructure.hotspot_scorer import score_hotspots
from git_scanline.infrastructure.revert_analyzer import analyze_reverts
from git_scanline.infrastructure.security_scanner import scan_security_risks
from git_scanline.infrastructure.silo_analyzer import analyze_authors

logger = logging.getLogger(__name__)

ALL_HISTORY = "all history"


def run_analyzers(
    commits: list[Commit],
    files: list[str],
    current_time: datetime | None = None,
    workers: int = 1,
) -> SignalSet:
    """Run the seven signal analyzers over the same read-only inputs.

    With ``workers > 1`` they run in a thread pool; each analyzer returns its
    own map, so the result is the same either way.
    """
    now = current_time or datetime.now(timezone.utc)
    commits = tuple(commits)
    files = tuple(files)

    tasks: dict[str, Callable[[], object]] = {
        "churn": lambda: analyze_churn(commits, files, current_time=now),
        "bugs": lambda: analyze_bug_correlation(commits, files),
        "reverts": lambda: analyze_reverts(commits, files),
        "bursts": lambda: analyze_bursts(commits, files),
        "couplings": lambda: analyze_coupling(commits, files),
        "silo": lambda: analyze_authors(commits, files),
        "commit_quality": lambda: analyze_commit_quality(commits, files),
    }

    if workers <= 1:
        outputs = {name: task() for name, task in tasks.items()}
    else:
        with ThreadPoolExecutor(max_workers=min(workers, len(tasks))) as executor:
            futures = {name: executor.submit(task) for name, task in tasks.items()}
            outputs = {name: future.result() for name, future in futures.items()}

    return SignalSet(**outputs)


def analyze_history(
    commits: list[Commit],
    diff_stats: Mapping[str, DiffStats],
    config: ScanConfig,
    current_time: datetime | None = None,
) -> RepoOutcome:
    """Filter, scan, analyze and score an already-parsed history.

    ``current_time`` fixes both the decay reference point and the report's
    ``analyzed_at`` stamp, so equal inputs give equal reports.
    """
    now = current_time or datetime.now(timezone.utc)
    since = config.since or ALL_HISTORY
    analyzed_at = now.astimezone(timezone.utc).isoformat()

    if not commits:
        return RepoOutcome(
            repo_path="",
            status=OutcomeStatus.EMPTY_HISTORY,
            message="No commits found in the requested range",
        )

    logger.info("Scanning for security risks...")
    security_risks = scan_security_risks(commits)

    logger.info("Filtering files...")
    files = filter_files(collect_files(commits), config.path, config.filter_overrides())
    if not files:
        report = Report(
            meta=ReportMeta(since=since, commit_count=len(commits), file_count=0, analyzed_at=analyzed_at),
            results=[], couplings=[], security_risks=security_risks,
        )
        return RepoOutcome(
            repo_path="",
            status=OutcomeStatus.EMPTY_FILTERED_SET,
            report=report,
            message="No files left after filtering",
        )

    logger.info("Analyzing %d files across %d commits...", len(files), len(commits))
    signals = run_analyzers(commits, files, current_time=now, workers=config.workers)

    logger.info("Scoring hotspots...")
    results = score_hotspots(files, signals, diff_stats, config.weights)

    report = Report(
        meta=ReportMeta(
            since=since,
            commit_count=len(commits),
            file_count=len(files),
            analyzed_at=analyzed_at,
        ),
        results=results,
        couplings=signals.couplings,
        security_risks=security_risks,
    )
    return RepoOutcome(repo_path="", status=OutcomeStatus.OK, report=report)


def analyze_repository(
    repo: GitHistory,
    repo_path: str,
    config: ScanConfig,
    current_time: datetime | None = None,
) -> RepoOutcome:
    logger.info("Parsing commit log for %s...", repo_path)
    commits, diff_stats = repo.read_history(since=config.since, path_filter=config.path)
    outcome = analyze_history(commits, diff_stats, config, current_time=current_time)
    return RepoOutcome(
        repo_path=repo_path,
        status=outcome.status,
        report=outcome.report,
        message=outcome.message,
    )


def analyze_repositories(
    repo_paths: Iterable[str],
    config: ScanConfig,
    current_time: datetime | None = None,
    reader_factory: Callable[[str], GitHistory] = GitCliReader,
) -> list[RepoOutcome]:
    """Analyze each repository in turn; one failure never stops the batch."""
    outcomes: list[RepoOutcome] = []
    for repo_path in repo_paths:
        try:
            repo = reader_factory(repo_path)
            outcome = analyze_repository(repo, repo_path, config, current_time=current_time)
        except HistoryUnavailableError as e:
            logger.warning("%s: history unavailable, skipping (%s)", repo_path, e.message)
            outcome = RepoOutcome(
                repo_path=repo_path,
                status=OutcomeStatus.HISTORY_UNAVAILABLE,
                message=e.message,
            )
        else:
            if outcome.status is OutcomeStatus.EMPTY_HISTORY:
                logger.warning("%s: no commits found, skipping", repo_path)
            elif outcome.status is OutcomeStatus.EMPTY_FILTERED_SET:
                logger.warning("%s: no files after filtering, skipping", repo_path)
        outcomes.append(outcome)
    return outcomes
