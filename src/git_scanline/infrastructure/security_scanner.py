"""Flags secret-looking files ever committed, including since-deleted ones.

Runs over the unfiltered history: a deleted ``.env`` is still readable
through git history even though it never reaches the hotspot scorer.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable

from git_scanline.domain.models import Commit, SecurityRisk

ENV_FILE = "env-file"
KEY_OR_CERT = "key-or-cert"
CREDENTIAL_FILE = "credential-file"

# .env, .env.production, config/.env.local
_ENV_PATTERN = re.compile(r"(?:^|/)\.env(?:\.|$)", re.IGNORECASE)
# Private keys, certificates, keystores
_KEY_PATTERN = re.compile(r"\.(?:pem|key|p12|pfx|cer|crt|jks|ppk|keystore)$", re.IGNORECASE)
_CREDENTIAL_PATTERN = re.compile(
    r"(?:^|/)(?:credential|secret|password|passwd|private[_-]?key|api[_-]?key|auth[_-]?token)[^/]*$",
    re.IGNORECASE,
)

_RISK_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = (
    (ENV_FILE, _ENV_PATTERN),
    (KEY_OR_CERT, _KEY_PATTERN),
    (CREDENTIAL_FILE, _CREDENTIAL_PATTERN),
)


def classify_risk(file_path: str) -> str | None:
    for risk_type, pattern in _RISK_PATTERNS:
        if pattern.search(file_path):
            return risk_type
    return None


@dataclass
class _Sighting:
    risk_type: str
    count: int
    first: int
    last: int


def scan_security_risks(commits: Iterable[Commit]) -> list[SecurityRisk]:
    sightings: dict[str, _Sighting] = {}
    for commit in commits:
        for file_path in commit.files:
            risk_type = classify_risk(file_path)
            if risk_type is None:
                continue
            s = sightings.get(file_path)
            if s is None:
                sightings[file_path] = _Sighting(risk_type, 1, commit.timestamp, commit.timestamp)
                continue
            s.count += 1
            s.first = min(s.first, commit.timestamp)
            s.last = max(s.last, commit.timestamp)

    risks = [
        SecurityRisk(
            file=file_path,
            risk_type=s.risk_type,
            commit_count=s.count,
            first_seen=_as_date(s.first),
            last_seen=_as_date(s.last),
        )
        for file_path, s in sightings.items()
    ]
    risks.sort(key=lambda r: r.commit_count, reverse=True)
    return risks


def _as_date(timestamp: int) -> str:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime("%Y-%m-%d")
