r"""Filtering utilities for waveform channels.

Overview
--------
Every operator here takes a 1-D array of samples plus its sample rate and
returns ``(samples, sample_rate)``. Only the Butterworth operator can change
the rate (through decimation); the others return the rate unchanged.

Direction
---------
``uni`` applies a filter causally (forward only, ``scipy.signal.sosfilt`` /
``lfilter``); the output is delayed but never depends on future samples.
``bi`` applies it forward and then backward over the time-reversed output
(``sosfiltfilt`` / ``filtfilt``), cancelling the phase delay and squaring the
magnitude response.

Butterworth Stages
------------------
Low-pass and high-pass stages are designed separately with
``signal.butter(..., output='sos')`` and applied low-pass first. For an
Nth-order analog prototype the squared magnitude is:

.. math:: |H(j\Omega)|^2 = \frac{1}{1 + (\Omega/\Omega_c)^{2N}}

Second-order sections keep very low normalized cutoffs (e.g. 0.01 Hz at
1 kHz) numerically stable where transfer-function coefficients would not be.

Downsampling
------------
With a target rate below the current one, the decimation factor is the
integer whose achievable rate ``sr / factor`` lies nearest to ``down``
(the smaller factor on a tie), and that actual rate is returned. A low-pass
at the new Nyquist frequency is applied first, replacing the requested
low-pass when that one is absent or above the new Nyquist.

Notch Filter
------------
A pole-zero design: zeros on the unit circle at the mains frequency and
poles at the same angle pulled inwards by ``width``:

.. math:: H(z) = \frac{(1 - e^{j\omega_0} z^{-1})(1 - e^{-j\omega_0} z^{-1})}
                      {(1 - r e^{j\omega_0} z^{-1})(1 - r e^{-j\omega_0} z^{-1})},
          \quad r = 1 - \text{width}

Leaky Integrator
----------------
Exponential smoothing :math:`y[n] = a\,y[n-1] + (1-a)\,x[n]` with
:math:`a = e^{-1/\tau}` and :math:`\tau` in samples, started at
:math:`y[0] = x[0]`.

Invalid parameters raise instead of passing the input through unchanged.
Samples must not contain NaN: gaps are filled with
:mod:`physiokit.preprocessing.interpolate` before filtering.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

import numpy as np
from scipy import signal

from ..exceptions import InsufficientData, InvalidInput, InvalidSpec

DIRECTIONS = ("uni", "bi")


def _as_samples(data) -> np.ndarray:
    x = np.asarray(data, dtype=float)
    if x.ndim != 1:
        x = np.squeeze(x)
        if x.ndim != 1:
            raise InvalidInput(f"expected a 1-D array of samples, got shape {np.shape(data)}")
    # a single NaN spreads through every recursive filter
    missing = int(np.count_nonzero(np.isnan(x)))
    if missing:
        raise InvalidInput(
            f"{missing} of {x.size} samples are missing (NaN); "
            "fill them with interpolate_file before filtering"
        )
    return x


def _check_rate(sr: float) -> float:
    try:
        sr = float(sr)
    except (TypeError, ValueError) as e:
        raise InvalidInput(f"sample rate must be numeric, got {sr!r}") from e
    if not math.isfinite(sr) or sr <= 0:
        raise InvalidInput(f"sample rate must be positive, got {sr}")
    return sr


def check_direction(direction: str) -> str:
    if direction not in DIRECTIONS:
        raise InvalidInput(f"direction must be 'uni' or 'bi', got {direction!r}")
    return direction


def _optional_freq(value: Any, name: str) -> float | None:
    """Map 'none', None and NaN to None; everything else must be a number."""
    if value is None or (isinstance(value, str) and value.lower() == "none"):
        return None
    try:
        f = float(value)
    except (TypeError, ValueError) as e:
        raise InvalidInput(f"{name} must be a frequency or 'none', got {value!r}") from e
    return None if math.isnan(f) else f


def _positive_int(value: Any, name: str) -> int:
    try:
        ok = not isinstance(value, bool) and float(value).is_integer() and value >= 1
    except (TypeError, ValueError, OverflowError):
        ok = False
    if not ok:
        raise InvalidInput(f"{name} must be a positive integer, got {value!r}")
    return int(value)


# ---- filter specification ----

@dataclass(frozen=True)
class FilterSpec:
    """Butterworth filter and downsampling specification.

    Attributes:
        lpfreq: Low-pass cutoff (Hz); None/'none'/NaN disables the stage.
        lporder: Low-pass order.
        hpfreq: High-pass cutoff (Hz); None/'none'/NaN disables the stage.
        hporder: High-pass order.
        direction: 'uni' (causal) or 'bi' (zero-phase).
        down: Target sample rate (Hz) after downsampling, or None.
    """

    lpfreq: float | None = None
    lporder: int = 1
    hpfreq: float | None = None
    hporder: int = 1
    direction: str = "uni"
    down: float | None = None

    def __post_init__(self):
        lp = _optional_freq(self.lpfreq, "lpfreq")
        hp = _optional_freq(self.hpfreq, "hpfreq")
        down = _optional_freq(self.down, "down")
        object.__setattr__(self, "lpfreq", lp)
        object.__setattr__(self, "hpfreq", hp)
        object.__setattr__(self, "down", down)
        check_direction(self.direction)
        for name, freq in (("lp", lp), ("hp", hp)):
            attr = f"{name}order"
            if freq is None:
                # order of a disabled stage is irrelevant (may be NaN in presets)
                object.__setattr__(self, attr, 1)
                continue
            if freq <= 0:
                raise InvalidSpec(f"{name}freq must be positive, got {freq}")
            object.__setattr__(self, attr, _positive_int(getattr(self, attr), attr))
        if down is not None and down <= 0:
            raise InvalidSpec(f"down must be positive, got {down}")

    @classmethod
    def from_options(cls, options: dict[str, Any]) -> "FilterSpec":
        """Build a spec from a loose option mapping, rejecting unknown keys."""
        unknown = set(options) - {"lpfreq", "lporder", "hpfreq", "hporder", "direction", "down"}
        if unknown:
            raise InvalidInput(f"unknown filter option(s): {sorted(unknown)}")
        return cls(**options)

    def describe(self) -> str:
        parts = []
        if self.lpfreq is not None:
            parts.append(f"low-pass {self.lpfreq:g} Hz order {self.lporder}")
        if self.hpfreq is not None:
            parts.append(f"high-pass {self.hpfreq:g} Hz order {self.hporder}")
        if self.down is not None:
            parts.append(f"downsampled to {self.down:g} Hz")
        parts.append(self.direction + "directional")
        return "butterworth filter (" + ", ".join(parts) + ")"


# ---- primitives ----

def _run_sos(sos: np.ndarray, x: np.ndarray, direction: str) -> np.ndarray:
    if direction == "uni":
        return signal.sosfilt(sos, x)
    try:
        return signal.sosfiltfilt(sos, x)
    except ValueError as e:
        raise InsufficientData(f"{x.size} samples are too few for zero-phase filtering") from e


def butter_stage(
    data: np.ndarray,
    sr: float,
    cutoff: float,
    order: int,
    btype: str,
    direction: str = "uni",
) -> np.ndarray:
    """One Butterworth low- or high-pass stage.

    Raises:
        InvalidSpec: if ``cutoff`` is not strictly between 0 and Nyquist.
    """
    x = _as_samples(data)
    sr = _check_rate(sr)
    nyq = 0.5 * sr
    if not 0 < cutoff < nyq:
        raise InvalidSpec(
            f"{btype}-pass cutoff {cutoff:g} Hz must lie in (0, {nyq:g}) Hz at {sr:g} Hz"
        )
    sos = signal.butter(int(order), cutoff / nyq, btype=btype, output="sos")
    return _run_sos(sos, x, check_direction(direction))


def decimation_factor(sr: float, down: float) -> int:
    """Integer factor whose rate ``sr / factor`` is nearest to ``down``."""
    sr, down = float(sr), float(down)
    low = max(1, math.floor(sr / down))
    # sr / f is monotonic in f, so the best factor brackets sr / down
    return min((low, low + 1), key=lambda f: abs(sr / f - down))


def apply_filter(data: np.ndarray, spec: FilterSpec, sr: float) -> tuple[np.ndarray, float]:
    """Butterworth filtering with optional downsampling.

    Args:
        data: 1-D samples.
        spec: Filter specification.
        sr: Current sample rate (Hz).
    Returns:
        ``(filtered, resulting_sample_rate)``. The resulting rate equals ``sr``
        divided by an integer decimation factor.
    """
    x = _as_samples(data)
    sr = _check_rate(sr)
    nyq = 0.5 * sr
    for name, freq in (("lpfreq", spec.lpfreq), ("hpfreq", spec.hpfreq)):
        if freq is not None and freq >= nyq:
            raise InvalidSpec(f"{name} {freq:g} Hz is not below Nyquist ({nyq:g} Hz)")

    factor = 1
    lp = spec.lpfreq
    if spec.down is not None and spec.down < sr:
        factor = decimation_factor(sr, spec.down)
        if factor > 1:
            anti_alias = 0.5 * sr / factor
            if lp is None or lp > anti_alias:
                lp = anti_alias
    if lp is not None and spec.hpfreq is not None and spec.hpfreq >= lp:
        raise InvalidSpec(f"high-pass {spec.hpfreq:g} Hz is not below low-pass {lp:g} Hz")

    y = x
    if lp is not None:
        y = butter_stage(y, sr, lp, spec.lporder, "low", spec.direction)
    if spec.hpfreq is not None:
        y = butter_stage(y, sr, spec.hpfreq, spec.hporder, "high", spec.direction)
    if factor > 1:
        y = y[::factor]
    return np.asarray(y, dtype=float), sr / factor


def check_median_window(n) -> int:
    n = _positive_int(n, "median window")
    if n % 2 == 0:
        raise InvalidInput(f"median window must be odd, got {n}")
    return n


def median_filter(data: np.ndarray, n: int) -> np.ndarray:
    """Sliding-window median over ``n`` (odd) samples, zero-padded at the edges."""
    x = _as_samples(data)
    n = check_median_window(n)
    if x.size == 0:
        return x
    return signal.medfilt(x, kernel_size=n)


def notch_coefficients(freq: float, sr: float, width: float = 0.1) -> tuple[np.ndarray, np.ndarray]:
    """Pole-zero notch design; returns ``(b, a)``."""
    sr = _check_rate(sr)
    nyq = 0.5 * sr
    if not 0 < freq < nyq:
        raise InvalidSpec(f"notch frequency {freq:g} Hz must lie in (0, {nyq:g}) Hz")
    if not 0 < width < 1:
        raise InvalidInput(f"notch width must lie in (0, 1), got {width}")
    ratio = freq / nyq
    zeros = np.array([np.exp(1j * np.pi * ratio), np.exp(-1j * np.pi * ratio)])
    poles = (1.0 - width) * zeros
    return np.real(np.poly(zeros)), np.real(np.poly(poles))


def notch_filter(
    data: np.ndarray,
    freq: float,
    sr: float,
    width: float = 0.1,
    direction: str = "uni",
) -> np.ndarray:
    """Suppress a single interference frequency (e.g. mains)."""
    x = _as_samples(data)
    b, a = notch_coefficients(freq, sr, width)
    if check_direction(direction) == "uni":
        return signal.lfilter(b, a, x)
    try:
        return signal.filtfilt(b, a, x)
    except ValueError as e:
        raise InsufficientData(f"{x.size} samples are too few for zero-phase filtering") from e


def leaky_integrator(data: np.ndarray, tau_samples: float) -> np.ndarray:
    """Exponential-decay running average with time constant in samples."""
    x = _as_samples(data)
    if not np.isfinite(tau_samples) or tau_samples <= 0:
        raise InvalidInput(f"time constant must be positive, got {tau_samples}")
    if x.size == 0:
        return x
    a = math.exp(-1.0 / float(tau_samples))
    y, _ = signal.lfilter([1.0 - a], [1.0, -a], x, zi=[a * x[0]])
    return y
