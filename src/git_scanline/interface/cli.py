import argparse
import logging
import sys
from pathlib import Path

from git_scanline.application.use_cases import analyze_repositories
from git_scanline.config import OUTPUT_FORMATS, ScanConfig, load_config, write_template
from git_scanline.domain.errors import ScanlineError
from git_scanline.domain.models import OutcomeStatus, RepoOutcome, Weights
from git_scanline.infrastructure.repo_discovery import find_git_repos
from git_scanline.interface.reporters import (
    output_path_for,
    print_terminal,
    render_html,
    render_json,
    select_for_display,
    write_output,
)
from git_scanline.logging_config import setup_logging

logger = logging.getLogger(__name__)


def _error_exit(msg: str) -> None:
    """Print error message to stderr and exit with code 1."""
    print(f"Error: {msg}", file=sys.stderr)
    sys.exit(1)


def _non_negative_float(value: str) -> float:
    try:
        number = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid weight '{value}'. Expected a number")
    if number < 0:
        raise argparse.ArgumentTypeError(f"Invalid weight '{value}'. Must be 0 or greater")
    return number


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="git-scanline",
        description="Find risky files in a git repository from its commit history",
    )
    parser.add_argument(
        "repo_path", nargs="?", default=".",
        help="Repository, or a folder containing repositories (default: .)",
    )
    parser.add_argument(
        "--since",
        default=None,
        metavar="DATE",
        help='Analyze commits since this date, e.g. "6 months ago" (default: all history)',
    )
    parser.add_argument(
        "--path",
        default=None,
        metavar="DIR",
        help="Limit analysis to a subdirectory",
    )
    parser.add_argument(
        "--top",
        type=int,
        default=None,
        metavar="N",
        help="Number of results to show (default: 20)",
    )
    parser.add_argument(
        "--bugs-only",
        dest="bugs_only",
        action="store_true",
        default=None,
        help="Only show files that appear in bug-fix commits",
    )
    parser.add_argument(
        "--format",
        choices=OUTPUT_FORMATS,
        default=None,
        help="Output format (default: terminal)",
    )
    parser.add_argument(
        "--output",
        default=None,
        metavar="FILE",
        help="Write json/html output to FILE instead of stdout",
    )
    parser.add_argument(
        "--config",
        default=None,
        metavar="PATH",
        help="Config file (default: <repo>/.git-scanline.toml when present)",
    )
    parser.add_argument(
        "--generate-config",
        dest="generate_config",
        nargs="?",
        const="-",
        default=None,
        metavar="PATH",
        help="Print a commented config template, or write it to PATH, then exit",
    )
    for name in Weights.names():
        flag = name.replace("_", "-")
        parser.add_argument(
            f"--weight-{flag}",
            dest=f"weight_{name}",
            type=_non_negative_float,
            default=None,
            metavar="W",
            help=f"Weight for the {name.replace('_', ' ')} signal",
        )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        metavar="N",
        help="Run the signal analyzers in N threads (default: 1)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Show debug logging",
    )
    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Only log errors",
    )
    parser.add_argument(
        "--serve",
        action="store_true",
        help="Serve reports over HTTP (requires pip install git-scanline[web])",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        metavar="PORT",
        help="API port for --serve (default: 8000)",
    )
    return parser


def _config_from_args(args: argparse.Namespace, repo_path: str | None) -> ScanConfig:
    weights = {name: getattr(args, f"weight_{name}") for name in Weights.names()}
    return load_config(
        config_file=Path(args.config) if args.config else None,
        repo_path=repo_path,
        weights=weights,
        since=args.since,
        path=args.path,
        top=args.top,
        bugs_only=args.bugs_only,
        format=args.format,
        output=args.output,
        workers=args.workers,
    )


def _emit(outcome: RepoOutcome, config: ScanConfig, multi: bool) -> None:
    repo_name = Path(outcome.repo_path).name or outcome.repo_path
    report = select_for_display(outcome.report, config.top, config.bugs_only)

    if config.format == "terminal":
        print_terminal(report, repo_name=repo_name if multi else None)
        return

    content = render_json(report) if config.format == "json" else render_html(report)
    if config.output is None:
        print(content)
        return

    target = output_path_for(config.output, repo_name) if multi else config.output
    written = write_output(content, target)
    print(f"Report written to {written}", file=sys.stderr)


def main(argv: list[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    setup_logging(verbose=args.verbose, quiet=args.quiet)

    if args.generate_config is not None:
        if args.generate_config == "-":
            print(write_template(), end="")
        else:
            try:
                write_template(Path(args.generate_config))
            except ScanlineError as e:
                _error_exit(str(e))
            print(f"Config template written to {args.generate_config}")
        return

    # Handle --serve early (no repo_path required)
    if args.serve:
        try:
            from git_scanline.web.server import launch
        except ImportError:
            _error_exit(
                "web dependencies not installed. "
                "Run: pip install git-scanline[web]"
            )
        launch(api_port=args.port)
        return

    root = Path(args.repo_path)
    if not root.is_dir():
        _error_exit(f"Not a directory: {args.repo_path}")

    repo_paths = find_git_repos(root)
    if not repo_paths:
        _error_exit(f"No git repositories found under {args.repo_path}")
    multi = len(repo_paths) > 1
    if multi:
        logger.info("Found %d repositories under %s", len(repo_paths), root)

    try:
        # A single repository picks up its own .git-scanline.toml
        config = _config_from_args(args, None if multi else repo_paths[0])
    except ScanlineError as e:
        _error_exit(str(e))

    outcomes = analyze_repositories(repo_paths, config)

    if not multi:
        outcome = outcomes[0]
        if outcome.status is OutcomeStatus.HISTORY_UNAVAILABLE:
            _error_exit(outcome.message)
        if outcome.status is OutcomeStatus.EMPTY_HISTORY:
            print("No commits found. Check your --since or --path options.")
            return
        if outcome.status is OutcomeStatus.EMPTY_FILTERED_SET:
            # Counts and security risks are still reported
            print("No files left to analyze after filtering.", file=sys.stderr)
        _emit(outcome, config, multi=False)
        return

    reported = [o for o in outcomes if o.report is not None]
    for outcome in reported:
        _emit(outcome, config, multi=True)

    skipped = len(outcomes) - len(reported)
    if skipped:
        logger.warning("%d of %d repositories skipped", skipped, len(outcomes))
    if not reported:
        _error_exit("No repository produced a report")
