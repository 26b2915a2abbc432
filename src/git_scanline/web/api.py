from __future__ import annotations

from dataclasses import asdict

from fastapi import FastAPI, HTTPException, Query

from git_scanline import __version__
from git_scanline.application.use_cases import analyze_repository
from git_scanline.config import ScanConfig, load_config
from git_scanline.domain.errors import ConfigError, HistoryUnavailableError
from git_scanline.domain.models import RepoOutcome
from git_scanline.infrastructure.git_cli_reader import GitCliReader
from git_scanline.interface.reporters import select_for_display
from git_scanline.web.models import (
    CouplingRow,
    HealthResponse,
    HotspotRow,
    ReportMetaRow,
    ReportResponse,
    SecurityRiskRow,
)


app = FastAPI(title="git-scanline", version=__version__)


def _run(
    repo: str,
    since: str | None,
    path: str | None,
    top: int | None,
    bugs_only: bool | None,
    weights: dict[str, float | None],
) -> tuple[RepoOutcome, ScanConfig]:
    try:
        config = load_config(
            repo_path=repo, weights=weights,
            since=since, path=path, top=top, bugs_only=bugs_only,
        )
        reader = GitCliReader(repo)
        outcome = analyze_repository(reader, repo, config)
    except HistoryUnavailableError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ConfigError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return outcome, config


def _to_response(outcome: RepoOutcome, config: ScanConfig) -> ReportResponse:
    if outcome.report is None:
        return ReportResponse(repo_path=outcome.repo_path, status=outcome.status.value)
    report = select_for_display(outcome.report, config.top, config.bugs_only)
    return ReportResponse(
        repo_path=outcome.repo_path,
        status=outcome.status.value,
        meta=ReportMetaRow(**asdict(report.meta)),
        results=[
            HotspotRow(**{**asdict(r), "tier": r.tier.value})
            for r in report.results
        ],
        couplings=[CouplingRow(**asdict(c)) for c in report.couplings],
        security_risks=[SecurityRiskRow(**asdict(s)) for s in report.security_risks],
    )


@app.get("/api/health", response_model=HealthResponse)
def health():
    return HealthResponse(status="ok", version=__version__)


@app.get("/api/report", response_model=ReportResponse)
def get_report(
    repo: str = Query(..., description="Repository path"),
    since: str | None = Query(None, description='e.g. "6 months ago"; omit for all history'),
    path: str | None = Query(None, description="Limit to a subdirectory"),
    top: int | None = Query(None, ge=1),
    bugs_only: bool | None = Query(None),
    weight_churn: float | None = Query(None, ge=0),
    weight_bugs: float | None = Query(None, ge=0),
    weight_reverts: float | None = Query(None, ge=0),
    weight_bursts: float | None = Query(None, ge=0),
    weight_coupling: float | None = Query(None, ge=0),
    weight_silo: float | None = Query(None, ge=0),
    weight_commit_quality: float | None = Query(None, ge=0),
):
    weights = {
        "churn": weight_churn,
        "bugs": weight_bugs,
        "reverts": weight_reverts,
        "bursts": weight_bursts,
        "coupling": weight_coupling,
        "silo": weight_silo,
        "commit_quality": weight_commit_quality,
    }
    outcome, config = _run(repo, since, path, top, bugs_only, weights)
    return _to_response(outcome, config)


@app.get("/api/report/couplings", response_model=list[CouplingRow])
def get_couplings(
    repo: str = Query(..., description="Repository path"),
    since: str | None = Query(None),
    path: str | None = Query(None),
):
    outcome, _config = _run(repo, since, path, None, None, {})
    if outcome.report is None:
        return []
    return [CouplingRow(**asdict(c)) for c in outcome.report.couplings]


@app.get("/api/report/security", response_model=list[SecurityRiskRow])
def get_security_risks(
    repo: str = Query(..., description="Repository path"),
    since: str | None = Query(None),
):
    outcome, _config = _run(repo, since, None, None, None, {})
    if outcome.report is None:
        return []
    return [SecurityRiskRow(**asdict(s)) for s in outcome.report.security_risks]
