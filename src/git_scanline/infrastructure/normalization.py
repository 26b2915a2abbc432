"""Shared score arithmetic for the signal analyzers and the scorer."""

from __future__ import annotations

import math
from typing import Iterable

# Floor for max-normalization denominators so an all-zero signal yields 0
EPSILON = 0.0001


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves going up (2.5 -> 3)."""
    return int(math.floor(value + 0.5))


def clamp_score(value: float) -> int:
    """Round and clamp a score to [0, 100]."""
    return max(0, min(100, round_half_up(value)))


def max_normalize(counts: dict[str, int], files: Iterable[str]) -> dict[str, int]:
    """Scale each file's count against the largest count, on a 0-100 scale.

    Files missing from *counts* score 0.
    """
    peak = max([EPSILON, *counts.values()])
    return {f: clamp_score(counts.get(f, 0) / peak * 100) for f in files}
