from __future__ import annotations

from typing import Protocol

from git_scanline.domain.models import Commit, DiffStats


class GitHistory(Protocol):
    def read_history(
        self, since: str = "", path_filter: str | None = None
    ) -> tuple[list[Commit], dict[str, DiffStats]]: ...
