"""Gap filling for waveform samples.

Missing samples are NaN. The chosen 1-D interpolant is fitted to the
(index, value) pairs of the valid samples and evaluated at the missing
indices:

- ``linear``, ``nearest``, ``previous``, ``next``: piecewise interpolation
  as in ``scipy.interpolate.interp1d``.
- ``spline``: not-a-knot cubic spline (``CubicSpline``).
- ``pchip`` and ``cubic``: shape-preserving piecewise cubic Hermite
  interpolation (``PchipInterpolator``).

Gaps before the first or after the last valid sample can only be filled by
extrapolation. When extrapolation is not allowed it is carried out anyway
with a :class:`~physiokit.exceptions.ForcedExtrapolationWarning`, since
leaving NaN behind is not an option once interpolation was requested.
``previous`` cannot fill a leading gap and ``next`` cannot fill a trailing
one; both raise :class:`~physiokit.exceptions.OutOfRange`.
"""
from __future__ import annotations

import logging
import warnings
from typing import Callable

import numpy as np
from scipy.interpolate import CubicSpline, PchipInterpolator, interp1d

from ..channels.model import Channel
from ..exceptions import ForcedExtrapolationWarning, InsufficientData, InvalidInput, OutOfRange
from ..utils.signals import nan_runs

log = logging.getLogger(__name__)

METHODS = ("linear", "nearest", "previous", "next", "spline", "pchip", "cubic")


def check_method(method: str) -> str:
    if method not in METHODS:
        raise InvalidInput(f"interpolation method must be one of {METHODS}, got {method!r}")
    return method


def _interpolant(method: str, x: np.ndarray, y: np.ndarray) -> Callable[[np.ndarray], np.ndarray]:
    if method == "spline":
        return CubicSpline(x, y, extrapolate=True)
    if method in ("pchip", "cubic"):
        return PchipInterpolator(x, y, extrapolate=True)
    return interp1d(x, y, kind=method, fill_value="extrapolate", assume_sorted=True)


def interpolate(
    samples: np.ndarray,
    method: str = "linear",
    extrapolate: bool = False,
) -> tuple[np.ndarray, float]:
    """Fill NaN samples.

    Args:
        samples: 1-D waveform samples.
        method: One of :data:`METHODS`.
        extrapolate: Whether filling leading/trailing gaps is allowed without
            a warning.
    Returns:
        ``(filled, interpolated_fraction)`` where the fraction is the share of
        samples that were filled.
    Raises:
        InsufficientData: fewer than two valid samples.
        OutOfRange: ``previous`` with a leading gap or ``next`` with a trailing gap.
    """
    check_method(method)
    y = np.array(samples, dtype=float)
    if y.ndim != 1:
        raise InvalidInput(f"expected a 1-D array of samples, got shape {y.shape}")
    missing = np.isnan(y)
    n_missing = int(missing.sum())
    if n_missing == 0:
        return y, 0.0

    known = np.flatnonzero(~missing)
    if known.size < 2:
        raise InsufficientData(
            f"need at least two valid samples to interpolate, got {known.size}"
        )
    runs = nan_runs(y)
    leading = runs[0][0] == 0
    trailing = runs[-1][1] == y.size
    if leading and method == "previous":
        raise OutOfRange("cannot extrapolate with method 'previous' and a gap at the start")
    if trailing and method == "next":
        raise OutOfRange("cannot extrapolate with method 'next' and a gap at the end")
    if (leading or trailing) and not extrapolate:
        msg = "extrapolation was forced because missing samples lie outside the valid data"
        log.warning(msg)
        warnings.warn(msg, ForcedExtrapolationWarning, stacklevel=2)

    log.debug("filling %d samples in %d gaps (%s)", n_missing, len(runs), method)
    gaps = np.flatnonzero(missing)
    y[gaps] = _interpolant(method, known, y[known])(gaps)
    return y, n_missing / y.size


def interpolate_channel(
    channel: Channel,
    method: str = "linear",
    extrapolate: bool = False,
) -> tuple[Channel, float]:
    """Interpolate a waveform channel; events channels are rejected."""
    samples = channel.require_waveform("interpolation")
    filled, fraction = interpolate(samples, method, extrapolate)
    return channel.with_data(filled), fraction
