"""Artifact detection helpers for waveform channels.

Detectors return boolean masks over the samples so that flagged samples can
be blanked (set to NaN) and filled by interpolation afterwards.
"""
from __future__ import annotations

import numpy as np

from ..utils.signals import nan_zscore


def spike_mask(x: np.ndarray, z_thresh: float = 6.0) -> np.ndarray:
    """Flag outlier spikes by z-score thresholding."""
    x = np.asarray(x, dtype=float)
    if np.count_nonzero(np.isfinite(x)) < 2:
        return np.zeros(x.shape, dtype=bool)
    z = nan_zscore(x)
    return np.abs(np.nan_to_num(z, nan=0.0)) > z_thresh


def clipping_mask(x: np.ndarray, clip_value: float | None = None) -> np.ndarray:
    """Flag samples at or beyond a clip value.

    If clip_value is None, uses the maximum absolute value of the signal,
    which flags flat-topped saturation at the recording range.
    """
    x = np.asarray(x, dtype=float)
    finite = np.isfinite(x)
    if not finite.any():
        return np.zeros(x.shape, dtype=bool)
    if clip_value is None:
        clip_value = float(np.max(np.abs(x[finite])))
    return finite & (np.abs(x) >= clip_value)


def blank(x: np.ndarray, mask: np.ndarray) -> np.ndarray:
    """Copy of ``x`` with masked samples set to NaN."""
    out = np.array(x, dtype=float)
    out[np.asarray(mask, dtype=bool)] = np.nan
    return out
