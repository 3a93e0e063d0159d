r"""Envelope extraction for EMG-like signals.

The envelope approximates the amplitude modulation of a bipolar signal.
It is obtained by full-wave rectification followed by a Butterworth
low-pass filter.

Time Constant
-------------
Smoothing is specified as a time constant :math:`\tau` (seconds) rather than
a cutoff, using the first-order relation

.. math:: f_c = \frac{1}{2 \pi \tau}

so a 3 ms time constant corresponds to a cutoff of about 53.05 Hz.
"""
from __future__ import annotations

import math

import numpy as np

from ..exceptions import InvalidInput
from .filters import butter_stage


def full_wave_rectify(x: np.ndarray) -> np.ndarray:
    """Absolute value of the input signal."""
    return np.abs(np.asarray(x, dtype=float))


def cutoff_from_time_constant(tau: float) -> float:
    """Cutoff frequency (Hz) of a first-order system with time constant ``tau`` (s)."""
    if not tau > 0:
        raise InvalidInput(f"time constant must be positive, got {tau}")
    return 1.0 / (2.0 * math.pi * float(tau))


def smoothed_envelope(
    x: np.ndarray,
    sr: float,
    time_constant: float = 0.003,
    order: int = 4,
    direction: str = "uni",
) -> np.ndarray:
    """Rectify, then low-pass filter to obtain an envelope.

    Args:
        x: Samples (typically band-passed EMG).
        sr: Sampling rate (Hz).
        time_constant: Smoothing time constant (s).
        order: Butterworth order.
        direction: 'uni' or 'bi'.
    Returns:
        Smoothed envelope, same length as input.
    """
    cutoff = cutoff_from_time_constant(time_constant)
    return butter_stage(full_wave_rectify(x), sr, cutoff, order, "low", direction)
