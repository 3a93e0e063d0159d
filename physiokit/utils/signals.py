"""Small signal utilities used across the pipeline."""
from __future__ import annotations

import numpy as np


def nan_runs(x: np.ndarray) -> list[tuple[int, int]]:
    """Maximal runs of NaN samples as ``(start, stop)`` index pairs (stop exclusive)."""
    missing = np.isnan(np.asarray(x, dtype=float))
    if not missing.any():
        return []
    edges = np.diff(np.concatenate(([0], missing.astype(np.int8), [0])))
    starts = np.flatnonzero(edges == 1)
    stops = np.flatnonzero(edges == -1)
    return [(int(a), int(b)) for a, b in zip(starts, stops)]


def nan_zscore(x: np.ndarray) -> np.ndarray:
    """Z-score ignoring NaN samples; NaN stays NaN."""
    x = np.asarray(x, dtype=float)
    std = np.nanstd(x)
    return (x - np.nanmean(x)) / (std + 1e-12)
