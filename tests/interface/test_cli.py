import argparse
import json
import sys
from pathlib import Path

import pytest

from git_scanline.config import CONFIG_FILENAME, TEMPLATE
from git_scanline.interface.cli import _non_negative_float, main
from tests.conftest import commit_file, commit_files


class TestNonNegativeFloat:
    def test_valid(self):
        assert _non_negative_float("0.5") == 0.5

    def test_zero(self):
        assert _non_negative_float("0") == 0.0

    def test_negative(self):
        with pytest.raises(argparse.ArgumentTypeError):
            _non_negative_float("-1")

    def test_not_a_number(self):
        with pytest.raises(argparse.ArgumentTypeError):
            _non_negative_float("abc")


class TestMainCli:
    def test_terminal_report(self, git_repo_with_history, capsys, monkeypatch):
        monkeypatch.setattr(sys, "argv", ["git-scanline", str(git_repo_with_history)])
        main()
        out = capsys.readouterr().out
        assert "5 commits" in out
        assert "src/app.py" in out
        assert "package-lock.json" not in out

    def test_json_to_stdout(self, git_repo_with_history, capsys):
        main([str(git_repo_with_history), "--format", "json", "-q"])
        doc = json.loads(capsys.readouterr().out)
        assert doc["meta"]["since"] == "all history"
        assert doc["meta"]["commitCount"] == 5
        assert doc["results"][0]["file"] == "src/app.py"

    def test_top_limits_results(self, git_repo_with_history, capsys):
        main([str(git_repo_with_history), "--format", "json", "--top", "1", "-q"])
        doc = json.loads(capsys.readouterr().out)
        assert len(doc["results"]) == 1

    def test_bugs_only(self, git_repo_with_history, capsys):
        main([str(git_repo_with_history), "--format", "json", "--bugs-only", "-q"])
        doc = json.loads(capsys.readouterr().out)
        assert [r["file"] for r in doc["results"]] == ["src/app.py"]

    def test_html_to_file(self, git_repo_with_history, tmp_path, capsys):
        target = tmp_path / "out" / "report.html"
        main([str(git_repo_with_history), "--format", "html", "--output", str(target), "-q"])
        assert "Hotspot Details" in target.read_text()
        assert "Report written to" in capsys.readouterr().err

    def test_weight_flags(self, git_repo_with_history, capsys):
        main([
            str(git_repo_with_history), "--format", "json", "-q",
            "--weight-churn", "0", "--weight-bugs", "0", "--weight-reverts", "0",
            "--weight-bursts", "0", "--weight-coupling", "0", "--weight-commit-quality", "0",
            "--weight-silo", "1",
        ])
        doc = json.loads(capsys.readouterr().out)
        assert all(r["hotspotScore"] == 100 for r in doc["results"])

    def test_all_zero_weights_exit_with_error(self, git_repo_with_history, capsys):
        argv = [str(git_repo_with_history)]
        for flag in ("churn", "bugs", "reverts", "bursts", "coupling", "silo", "commit-quality"):
            argv += [f"--weight-{flag}", "0"]
        with pytest.raises(SystemExit) as exc_info:
            main(argv)
        assert exc_info.value.code == 1
        assert "Error" in capsys.readouterr().err

    def test_repo_config_file_used(self, git_repo_with_history, capsys):
        (git_repo_with_history / CONFIG_FILENAME).write_text('format = "json"\ntop = 2\n')
        main([str(git_repo_with_history), "-q"])
        doc = json.loads(capsys.readouterr().out)
        assert len(doc["results"]) == 2

    def test_invalid_path_exits_with_error(self, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main([str(tmp_path / "nonexistent")])
        assert exc_info.value.code == 1
        assert "Error" in capsys.readouterr().err

    def test_folder_without_repos(self, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main([str(tmp_path)])
        assert exc_info.value.code == 1
        assert "No git repositories" in capsys.readouterr().err

    def test_empty_repo_prints_no_commits(self, tmp_git_repo, capsys):
        main([str(tmp_git_repo), "-q"])
        assert "No commits found" in capsys.readouterr().out

    def test_only_filtered_files(self, tmp_git_repo, capsys):
        commit_file(tmp_git_repo, "yarn.lock", "# lock\n", "Bump lockfile", days_ago=1)
        main([str(tmp_git_repo), "-q"])
        captured = capsys.readouterr()
        assert "No files left" in captured.err
        assert "(1 commits, 0 files)" in captured.out
        assert "No hotspots found" in captured.out

    def test_only_filtered_files_still_reports_secrets(self, tmp_git_repo, capsys):
        commit_files(tmp_git_repo, {
            "package.json": "{}\n",
            "build/server.key": "-----BEGIN KEY-----\n",
        }, "Add build output", days_ago=1)
        main([str(tmp_git_repo), "--format", "json", "-q"])
        doc = json.loads(capsys.readouterr().out)
        assert doc["meta"]["commitCount"] == 1
        assert doc["meta"]["fileCount"] == 0
        assert doc["results"] == []
        assert [r["file"] for r in doc["securityRisks"]] == ["build/server.key"]

    def test_only_filtered_files_terminal_shows_secrets(self, tmp_git_repo, capsys):
        commit_files(tmp_git_repo, {
            "package.json": "{}\n",
            "build/server.key": "-----BEGIN KEY-----\n",
        }, "Add build output", days_ago=1)
        main([str(tmp_git_repo), "-q"])
        assert "! build/server.key  [key-or-cert]" in capsys.readouterr().out

    def test_path_scope(self, git_repo_with_history, capsys):
        main([str(git_repo_with_history), "--path", "src", "--format", "json", "-q"])
        doc = json.loads(capsys.readouterr().out)
        assert {r["file"] for r in doc["results"]} == {"src/app.py", "src/utils.py"}


class TestMultiRepo:
    def test_each_repo_reported(self, multi_repo_root, capsys):
        main([str(multi_repo_root), "-q"])
        out = capsys.readouterr().out
        assert "=== alpha ===" in out
        assert "=== beta ===" in out

    def test_per_repo_output_files(self, multi_repo_root, tmp_path):
        target = tmp_path / "reports" / "scan.json"
        main([str(multi_repo_root), "--format", "json", "--output", str(target), "-q"])
        assert json.loads((tmp_path / "reports" / "scan-alpha.json").read_text())["meta"]["commitCount"] == 1
        assert (tmp_path / "reports" / "scan-beta.json").exists()

    def test_one_empty_repo_skipped(self, multi_repo_root, capsys):
        from tests.conftest import init_repo

        init_repo(multi_repo_root / "gamma")
        main([str(multi_repo_root), "-q"])
        out = capsys.readouterr().out
        assert "=== alpha ===" in out
        assert "=== gamma ===" not in out

    def test_repo_with_only_filtered_files_still_reported(self, multi_repo_root, capsys):
        from tests.conftest import init_repo

        gamma = init_repo(multi_repo_root / "gamma")
        commit_files(gamma, {"yarn.lock": "# lock\n", "dist/app.pem": "cert\n"}, "Add build", days_ago=1)
        main([str(multi_repo_root), "-q"])
        out = capsys.readouterr().out
        assert "=== gamma ===" in out
        assert "dist/app.pem" in out


class TestGenerateConfig:
    def test_prints_template(self, capsys):
        main(["--generate-config"])
        assert capsys.readouterr().out == TEMPLATE

    def test_writes_template(self, tmp_path: Path, capsys):
        target = tmp_path / CONFIG_FILENAME
        main(["--generate-config", str(target)])
        assert target.read_text() == TEMPLATE


class TestServeFlag:
    def test_launch_called_with_port(self, monkeypatch):
        calls = []
        monkeypatch.setattr("git_scanline.web.server.launch", lambda api_port: calls.append(api_port))
        main(["--serve", "--port", "9123"])
        assert calls == [9123]
