import os
import subprocess
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest


def _git(repo: Path, *args: str, env: dict | None = None) -> None:
    subprocess.run(
        ["git", "-C", str(repo), *args],
        capture_output=True, check=True, env=env,
    )


def init_repo(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    subprocess.run(["git", "init", str(path)], capture_output=True, check=True)
    _git(path, "config", "user.name", "Test User")
    _git(path, "config", "user.email", "test@example.com")
    _git(path, "config", "commit.gpgsign", "false")
    return path


@pytest.fixture
def tmp_git_repo(tmp_path: Path) -> Path:
    """Create a temporary git repository."""
    return init_repo(tmp_path / "repo")


def commit_files(
    repo: Path,
    files: dict[str, str],
    message: str,
    days_ago: float = 0,
    author_name: str = "Test User",
    author_email: str = "test@example.com",
    delete: tuple[str, ...] = (),
) -> None:
    """Create a single commit touching several files at a known relative date."""
    for file_path, content in files.items():
        full_path = repo / file_path
        full_path.parent.mkdir(parents=True, exist_ok=True)
        full_path.write_text(content)
        _git(repo, "add", file_path)
    for file_path in delete:
        _git(repo, "rm", "-q", file_path)

    date = datetime.now(timezone.utc) - timedelta(days=days_ago)
    date_str = date.strftime("%Y-%m-%dT%H:%M:%S %z")
    env = {
        **os.environ,
        "GIT_AUTHOR_DATE": date_str,
        "GIT_COMMITTER_DATE": date_str,
        "GIT_AUTHOR_NAME": author_name,
        "GIT_AUTHOR_EMAIL": author_email,
        "GIT_COMMITTER_NAME": author_name,
        "GIT_COMMITTER_EMAIL": author_email,
    }
    _git(repo, "commit", "-m", message, env=env)


def commit_file(
    repo: Path,
    file_path: str,
    content: str,
    message: str,
    days_ago: float = 0,
    author_name: str = "Test User",
    author_email: str = "test@example.com",
) -> None:
    """Create a commit touching one file at a known relative date."""
    commit_files(
        repo, {file_path: content}, message, days_ago=days_ago,
        author_name=author_name, author_email=author_email,
    )


@pytest.fixture
def git_repo_with_history(tmp_git_repo: Path) -> Path:
    """Five commits over 60 days: a bug fix, a revert and a lock file."""
    commit_files(tmp_git_repo, {
        "src/app.py": "print('hello')\n",
        "package-lock.json": "{}\n",
    }, "Initial commit", days_ago=60)
    commit_file(tmp_git_repo, "src/utils.py", "def helper(): pass\n", "Add utils", days_ago=45)
    commit_file(tmp_git_repo, "src/app.py", "print('hello world')\n", "fix crash on startup", days_ago=30)
    commit_file(tmp_git_repo, "src/app.py", "print('hello')\n", "Revert \"fix crash on startup\"", days_ago=15)
    commit_file(tmp_git_repo, "README.md", "# Project\n", "Document the project setup", days_ago=5)
    return tmp_git_repo


@pytest.fixture
def coupled_repo(tmp_git_repo: Path) -> Path:
    """a+b change together in 3 commits, a+c in 2, d alone once."""
    for i in range(3):
        commit_files(tmp_git_repo, {
            "a.py": f"a_v{i}\n",
            "b.py": f"b_v{i}\n",
        }, f"Update a and b together, round {i}", days_ago=30 - i)
    for i in range(2):
        commit_files(tmp_git_repo, {
            "a.py": f"a_v{i + 10}\n",
            "c.py": f"c_v{i}\n",
        }, f"Update a and c together, round {i}", days_ago=20 - i)
    commit_file(tmp_git_repo, "d.py", "d_v1\n", "Add the d module alone", days_ago=5)
    return tmp_git_repo


@pytest.fixture
def multi_repo_root(tmp_path: Path) -> Path:
    """A folder holding two repositories and one plain directory."""
    root = tmp_path / "workspace"
    first = init_repo(root / "alpha")
    second = init_repo(root / "nested" / "beta")
    (root / "notes").mkdir(parents=True)
    commit_file(first, "main.py", "x = 1\n", "Add main module", days_ago=3)
    commit_file(second, "lib.py", "y = 2\n", "Add library module", days_ago=2)
    return root
