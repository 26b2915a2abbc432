"""Report rendering: terminal tables, JSON documents and a standalone HTML page."""

from __future__ import annotations

import html
import json
from dataclasses import replace
from pathlib import Path

from git_scanline.domain.models import HotspotResult, Report, Tier

TOP_COUPLINGS = 10
NOTABLE_CO_CHANGES = 5


def select_for_display(report: Report, top: int, bugs_only: bool = False) -> Report:
    """Rank results, keep the top N and the ten strongest co-change pairs."""
    results = report.ranked()[:top]
    if bugs_only:
        results = [r for r in results if r.details.bug_commits > 0]
    return replace(report, results=results, couplings=report.couplings[:TOP_COUPLINGS])


# ---------------------------------------------------------------------------
# JSON
# ---------------------------------------------------------------------------

def render_json(report: Report) -> str:
    return json.dumps(report.to_dict(), indent=2)


# ---------------------------------------------------------------------------
# Terminal
# ---------------------------------------------------------------------------

_MAX_PATH = 60


def _print_table(rows: list[_RankedRow], columns) -> None:
    """Print *columns* of (header, width_spec, value_fn) with a file column.

    A None width_spec marks the file column, sized to the longest path and
    left-truncated past ``_MAX_PATH``.
    """
    if not rows:
        return
    path_width = max(min(max(len(r.file) for r in rows), _MAX_PATH), 4)

    def cell(spec, value) -> str:
        if spec is None:
            if len(value) > path_width:
                value = "..." + value[-(path_width - 3):]
            return f"{value:<{path_width}}"
        return f"{value:{spec}}"

    header_line = "  ".join(cell(spec, header) for header, spec, _fn in columns)
    print(header_line)
    print("-" * len(header_line))
    for r in rows:
        print("  ".join(cell(spec, r.file if fn is None else fn(r)) for _h, spec, fn in columns))


def _plural(count: int, word: str) -> str:
    return f"{count} {word}" if count == 1 else f"{count} {word}s"


def print_terminal(report: Report, repo_name: str | None = None) -> None:
    meta = report.meta
    if repo_name:
        print(f"\n=== {repo_name} ===")
    print(f"\ngit-scanline: since \"{meta.since}\" ({meta.commit_count} commits, {meta.file_count} files)\n")

    if report.security_risks:
        print("--- Security Risks (sensitive files found in git history) ---")
        print("Even deleted files remain accessible via git history!\n")
        for risk in report.security_risks:
            print(
                f"  ! {risk.file}  [{risk.risk_type}]  {_plural(risk.commit_count, 'commit')}"
                f"  (first: {risk.first_seen}, last: {risk.last_seen})"
            )
        print()

    if not report.results:
        print("No hotspots found with current filters.\n")
        return

    print("--- Hotspots ---\n")
    ranked = list(enumerate(report.results, start=1))
    rows = [_RankedRow(rank, r) for rank, r in ranked]
    columns = [
        ("Rank", ">4", lambda r: r.rank),
        ("File", None, None),
        ("Score", ">5", lambda r: r.result.hotspot_score),
        ("Churn", ">5", lambda r: r.result.churn_score),
        ("Bugs", ">4", lambda r: r.result.details.bug_commits),
        ("Reverts", ">7", lambda r: r.result.details.revert_count),
        ("Bursts", ">6", lambda r: r.result.details.burst_incidents),
        ("WIP", ">3", lambda r: r.result.details.wip_commits),
        ("Tier", "<8", lambda r: r.result.tier.value),
    ]
    _print_table(rows, columns)

    notable = [c for c in report.couplings if c.co_changes >= NOTABLE_CO_CHANGES]
    if notable:
        print("\n--- Co-change Coupling ---\n")
        for c in notable[:5]:
            print(f"  {c.file_a} <-> {c.file_b} (changed together {c.co_changes}x, strength {c.strength}%)")

    recommendations = build_recommendations(report.results)
    if recommendations:
        print("\n--- Recommendations ---\n")
        for rec in recommendations:
            print(f"  * {rec}")
    print()


class _RankedRow:
    def __init__(self, rank: int, result: HotspotResult) -> None:
        self.rank = rank
        self.result = result
        self.file = result.file


def build_recommendations(results: list[HotspotResult]) -> list[str]:
    recs: list[str] = []
    for r in results[:10]:
        name = r.file.rsplit("/", 1)[-1]
        d = r.details
        if d.top_author_percent >= 80 and d.author_count <= 2:
            recs.append(
                f"{name} has {d.top_author_percent}% single-author commits"
                " - consider a knowledge-transfer session"
            )
        if d.burst_incidents >= 3:
            recs.append(f"{name} shows burst patterns: {d.burst_incidents} rapid-commit windows detected")
        if d.revert_count >= 2:
            recs.append(
                f"{name} has been reverted {d.revert_count} times"
                " - consider adding tests or stricter review"
            )
        if d.wip_commits >= 3:
            recs.append(
                f"{name} appears in {d.wip_commits} WIP/low-quality commits"
                " - this area may need more careful review practices"
            )
    return recs


# ---------------------------------------------------------------------------
# HTML
# ---------------------------------------------------------------------------

_TIER_BADGE = {
    Tier.CRITICAL: "badge-critical",
    Tier.HIGH: "badge-high",
    Tier.MEDIUM: "badge-medium",
    Tier.LOW: "badge-low",
}

_STYLE = """
body { font-family: -apple-system, "Segoe UI", sans-serif; background: #0f172a; color: #e2e8f0; margin: 0; padding: 2rem; }
h1 { margin: 0 0 .25rem; }
.meta { color: #94a3b8; margin-bottom: 1.5rem; }
.stats { display: flex; gap: 1rem; margin-bottom: 1.5rem; flex-wrap: wrap; }
.stat { background: #1e293b; border: 1px solid #334155; border-radius: 8px; padding: .75rem 1.25rem; }
.stat-label { color: #94a3b8; font-size: .8rem; }
.stat-value { font-size: 1.6rem; font-weight: 700; }
.card { background: #1e293b; border: 1px solid #334155; border-radius: 8px; padding: 1rem 1.25rem; margin-bottom: 1.5rem; }
table { width: 100%; border-collapse: collapse; font-size: .9rem; }
th, td { text-align: left; padding: .4rem .6rem; border-bottom: 1px solid #334155; }
td.num, th.num { text-align: right; font-variant-numeric: tabular-nums; }
td.path { font-family: ui-monospace, monospace; word-break: break-all; }
.badge { border-radius: 4px; padding: .1rem .45rem; font-size: .75rem; font-weight: 700; }
.badge-critical { background: #7f1d1d; color: #fecaca; }
.badge-high { background: #7c2d12; color: #fed7aa; }
.badge-medium { background: #713f12; color: #fef08a; }
.badge-low { background: #14532d; color: #bbf7d0; }
.dim { color: #94a3b8; }
.footer { color: #64748b; font-size: .8rem; }
"""


def _esc(value: object) -> str:
    return html.escape(str(value), quote=True)


def render_html(report: Report) -> str:
    meta = report.meta
    critical = sum(1 for r in report.results if r.tier is Tier.CRITICAL)
    high = sum(1 for r in report.results if r.tier is Tier.HIGH)
    bug_commits = sum(r.details.bug_commits for r in report.results)

    result_rows = "\n".join(
        f"<tr><td class=\"num\">{i}</td><td class=\"path\">{_esc(r.file)}</td>"
        f"<td class=\"num\"><strong>{r.hotspot_score}</strong></td>"
        f"<td class=\"num\">{r.details.commit_count}</td>"
        f"<td class=\"num\">{r.details.bug_commits}</td>"
        f"<td class=\"num\">{r.details.revert_count}</td>"
        f"<td class=\"num\">{r.details.wip_commits}</td>"
        f"<td class=\"num\">{r.details.large_commit_count}</td>"
        f"<td>{_esc(r.details.top_author)} <span class=\"dim\">({r.details.top_author_percent}%)</span></td>"
        f"<td><span class=\"badge {_TIER_BADGE[r.tier]}\">{r.tier.value}</span></td></tr>"
        for i, r in enumerate(report.results, start=1)
    )

    sections = [
        "<div class=\"card\"><h2>Hotspot Details</h2><table>"
        "<thead><tr><th>#</th><th>File</th><th class=\"num\">Score</th><th class=\"num\">Commits</th>"
        "<th class=\"num\">Bug Commits</th><th class=\"num\">Reverts</th><th class=\"num\">WIP</th>"
        "<th class=\"num\">Large</th><th>Top Author</th><th>Risk</th></tr></thead>"
        f"<tbody>{result_rows}</tbody></table></div>"
    ]

    if report.couplings:
        coupling_rows = "\n".join(
            f"<tr><td class=\"path\">{_esc(c.file_a)}</td><td class=\"path\">{_esc(c.file_b)}</td>"
            f"<td class=\"num\">{c.co_changes}</td><td class=\"num\">{c.strength}%</td></tr>"
            for c in report.couplings
        )
        sections.append(
            "<div class=\"card\"><h2>Co-change Coupling</h2><table>"
            "<thead><tr><th>File A</th><th>File B</th><th class=\"num\">Co-changes</th>"
            "<th class=\"num\">Coupling Strength</th></tr></thead>"
            f"<tbody>{coupling_rows}</tbody></table></div>"
        )

    if report.security_risks:
        risk_rows = "\n".join(
            f"<tr><td class=\"path\">{_esc(s.file)}</td>"
            f"<td><span class=\"badge badge-critical\">{_esc(s.risk_type)}</span></td>"
            f"<td class=\"num\">{s.commit_count}</td><td class=\"num\">{_esc(s.first_seen)}</td>"
            f"<td class=\"num\">{_esc(s.last_seen)}</td></tr>"
            for s in report.security_risks
        )
        sections.insert(0,
            "<div class=\"card\"><h2>Security Risks</h2>"
            "<p class=\"dim\">Sensitive files found in git history. Even deleted files remain "
            "accessible via <code>git log</code>.</p><table>"
            "<thead><tr><th>File</th><th>Risk Type</th><th class=\"num\">Commits</th>"
            "<th>First Seen</th><th>Last Seen</th></tr></thead>"
            f"<tbody>{risk_rows}</tbody></table></div>"
        )

    body = "\n".join(sections)
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>git-scanline report</title>
<style>{_STYLE}</style>
</head>
<body>
<h1>git-scanline</h1>
<p class="meta">Since {_esc(meta.since)} &middot; {meta.commit_count} commits &middot; {meta.file_count} files</p>
<div class="stats">
<div class="stat"><div class="stat-label">Critical Hotspots</div><div class="stat-value">{critical}</div></div>
<div class="stat"><div class="stat-label">High Risk Files</div><div class="stat-value">{high}</div></div>
<div class="stat"><div class="stat-label">Total Commits</div><div class="stat-value">{meta.commit_count}</div></div>
<div class="stat"><div class="stat-label">Bug-fix Commits</div><div class="stat-value">{bug_commits}</div></div>
<div class="stat"><div class="stat-label">Security Risks</div><div class="stat-value">{len(report.security_risks)}</div></div>
</div>
{body}
<p class="footer">Generated by git-scanline at {_esc(meta.analyzed_at)}</p>
</body>
</html>
"""


def write_output(content: str, path: str | Path) -> Path:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(content, encoding="utf-8")
    return target


def output_path_for(base: str, repo_name: str) -> str:
    """Insert the repo name before the extension: report.html -> report-my-app.html."""
    base_path = Path(base)
    safe = "".join(ch if ch.isalnum() or ch in "_-" else "-" for ch in repo_name)
    return str(base_path.with_name(f"{base_path.stem}-{safe}{base_path.suffix}"))
