from __future__ import annotations

from pydantic import BaseModel


class HotspotDetailsRow(BaseModel):
    commit_count: int
    bug_commits: int
    revert_count: int
    burst_incidents: int
    wip_commits: int
    large_commit_count: int
    top_author: str
    top_author_percent: int
    author_count: int
    additions: int
    deletions: int


class HotspotRow(BaseModel):
    file: str
    hotspot_score: int
    churn_score: int
    bug_fix_score: int
    revert_score: int
    burst_score: int
    coupling_score: int
    silo_score: int
    commit_quality_score: int
    tier: str
    details: HotspotDetailsRow


class CouplingRow(BaseModel):
    file_a: str
    file_b: str
    co_changes: int
    strength: int


class SecurityRiskRow(BaseModel):
    file: str
    risk_type: str
    commit_count: int
    first_seen: str
    last_seen: str


class ReportMetaRow(BaseModel):
    since: str
    commit_count: int
    file_count: int
    analyzed_at: str


class ReportResponse(BaseModel):
    repo_path: str
    status: str
    meta: ReportMetaRow | None = None
    results: list[HotspotRow] = []
    couplings: list[CouplingRow] = []
    security_risks: list[SecurityRiskRow] = []


class HealthResponse(BaseModel):
    status: str
    version: str
