import logging
import re
import subprocess
from pathlib import Path

from git_scanline.domain.errors import HistoryUnavailableError
from git_scanline.domain.models import Commit, DiffStats

logger = logging.getLogger(__name__)

HEADER_PREFIX = "COMMIT|"
LOG_FORMAT = f"--format={HEADER_PREFIX}%H|%ae|%ad|%s"

# "src/{old => new}/file.py" -> group 1 is the new part (may be empty)
_BRACE_RENAME = re.compile(r"\{[^}]* => ([^}]*)\}")

_OCTAL_ESCAPE = re.compile(r"[0-7]{3}")
_C_ESCAPES = {
    "a": 0x07, "b": 0x08, "t": 0x09, "n": 0x0A, "v": 0x0B,
    "f": 0x0C, "r": 0x0D, '"': 0x22, "\\": 0x5C,
}


class GitCliReader:
    def __init__(self, repo_path: str) -> None:
        path = Path(repo_path).resolve()
        if not path.is_dir():
            raise HistoryUnavailableError(
                f"Not a directory: {path}", {"repo": str(path)}
            )
        if not (path / ".git").exists():
            raise HistoryUnavailableError(
                f"Not a git repository: {path}", {"repo": str(path)}
            )
        self._path = str(path)

    @property
    def path(self) -> str:
        return self._path

    def _run(self, *args: str) -> str:
        try:
            # quotePath=false keeps non-ASCII names as raw UTF-8
            result = subprocess.run(
                ["git", "-C", self._path, "-c", "core.quotePath=false", *args],
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except OSError as e:
            raise HistoryUnavailableError(
                f"Cannot run git: {e}", {"repo": self._path}
            ) from e
        if result.returncode != 0:
            raise HistoryUnavailableError(
                f"git log failed: {result.stderr.strip()}", {"repo": self._path}
            )
        return result.stdout

    def read_history(
        self, since: str = "", path_filter: str | None = None
    ) -> tuple[list[Commit], dict[str, DiffStats]]:
        """Run one ``git log --numstat`` and parse commits plus line stats."""
        args = [
            "log",
            LOG_FORMAT,
            "--date=unix",
            "--numstat",
            "--diff-filter=ACDMRT",
        ]
        if since:
            args.append(f"--since={since}")
        if path_filter:
            args.extend(["--", path_filter])
        try:
            output = self._run(*args)
        except HistoryUnavailableError as e:
            # A repository with no commits yet is empty, not broken
            if "does not have any commits" in e.message:
                return [], {}
            raise
        return parse_log_output(output)


def parse_log_output(output: str) -> tuple[list[Commit], dict[str, DiffStats]]:
    commits: list[Commit] = []
    diff_stats: dict[str, DiffStats] = {}
    header: tuple[str, str, int, str] | None = None
    files: list[str] = []
    skipped = 0

    def flush() -> None:
        if header is not None:
            commits.append(Commit(*header, files=tuple(files)))

    for line in output.splitlines():
        line = line.strip()
        if not line:
            continue
        if line.startswith(HEADER_PREFIX):
            flush()
            files = []
            header = _parse_header(line[len(HEADER_PREFIX):])
            if header is None:
                skipped += 1
            continue
        if header is None:
            skipped += 1
            continue

        # numstat line: <added>\t<deleted>\t<file>
        parts = line.split("\t", 2)
        if len(parts) == 3:
            added_str, deleted_str, raw_name = parts
            if not _is_stat(added_str) or not _is_stat(deleted_str):
                skipped += 1
                continue
        else:
            added_str = deleted_str = "-"
            raw_name = line

        file_path = normalize_filename(raw_name)
        if file_path is None:
            skipped += 1
            continue
        # Binary files show "-" for added/deleted
        if added_str != "-" and deleted_str != "-":
            stats = diff_stats.setdefault(file_path, DiffStats())
            stats.additions += int(added_str)
            stats.deletions += int(deleted_str)
        files.append(file_path)

    flush()
    if skipped:
        logger.debug("Skipped %d malformed git log line(s)", skipped)
    return commits, diff_stats


def _parse_header(rest: str) -> tuple[str, str, int, str] | None:
    parts = rest.split("|", 3)
    if len(parts) < 3:
        return None
    commit_hash, author, timestamp = parts[0], parts[1], parts[2]
    subject = parts[3] if len(parts) == 4 else ""
    try:
        return commit_hash, author, int(timestamp), subject
    except ValueError:
        return None


def _is_stat(value: str) -> bool:
    return value == "-" or value.isdigit()


def normalize_filename(raw: str) -> str | None:
    """Resolve git rename notation to the post-rename path.

    ``src/{old => new}/file.py`` -> ``src/new/file.py``;
    ``old.py => new.py`` -> ``new.py``.  C-quoted names are unquoted.
    Returns None for names that do not resolve cleanly.
    """
    raw = raw.strip()
    if "{" in raw and "=>" in raw:
        resolved = _BRACE_RENAME.sub(lambda m: m.group(1), raw, count=1)
        resolved = resolved.replace("//", "/")
        if "{" in resolved:
            return None
        return resolved.strip() or None
    if " => " in raw:
        raw = raw.split(" => ")[-1].strip()
    return unquote_path(raw) or None


def unquote_path(name: str) -> str:
    """Undo git's C-style quoting: ``"tab\\there.py"`` -> ``tab<TAB>here.py``.

    Octal escapes are UTF-8 bytes, so ``"caf\\303\\251.py"`` -> ``café.py``.
    Unquoted names are returned unchanged.
    """
    if len(name) < 2 or name[0] != '"' or name[-1] != '"':
        return name
    body = name[1:-1]
    out = bytearray()
    i = 0
    while i < len(body):
        if body[i] == "\\" and i + 1 < len(body):
            octal = _OCTAL_ESCAPE.match(body, i + 1)
            if octal:
                out.append(int(octal.group(), 8) & 0xFF)
                i = octal.end()
                continue
            escaped = _C_ESCAPES.get(body[i + 1])
            if escaped is not None:
                out.append(escaped)
                i += 2
                continue
        out.extend(body[i].encode("utf-8"))
        i += 1
    return out.decode("utf-8", errors="replace")
