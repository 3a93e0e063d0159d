"""Filter operators with a common ``apply`` interface.

Each operator is configured once and then applied to waveform samples.
Pipelines pick an operator when they are built and never dispatch on method
names afterwards.
"""
from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from ..channels.model import Channel
from ..exceptions import InvalidInput
from . import filters
from .envelope import cutoff_from_time_constant, smoothed_envelope
from .filters import FilterSpec


class Operator:
    """Base class: ``apply(samples, sr) -> (samples, sr)``."""

    name = "operator"

    def apply(self, samples: np.ndarray, sr: float) -> tuple[np.ndarray, float]:
        raise NotImplementedError

    def describe(self, sr: float) -> str:
        """History text for this operator at sample rate ``sr``."""
        return self.name

    def apply_channel(self, channel: Channel) -> Channel:
        """Run the operator on a waveform channel, returning a new channel."""
        samples = channel.require_waveform(self.name)
        out, sr = self.apply(samples, channel.sr)
        return channel.with_data(out, sr=sr)


@dataclass(frozen=True)
class Butterworth(Operator):
    spec: FilterSpec = FilterSpec()
    name = "butter"

    def apply(self, samples, sr):
        return filters.apply_filter(samples, self.spec, sr)

    def describe(self, sr):
        return self.spec.describe()


@dataclass(frozen=True)
class Median(Operator):
    n: int = 3
    name = "median"

    def __post_init__(self):
        filters.check_median_window(self.n)

    def apply(self, samples, sr):
        return filters.median_filter(samples, self.n), float(sr)

    def describe(self, sr):
        return f"median filter over {self.n:.0f} timepoints"


@dataclass(frozen=True)
class Notch(Operator):
    freq: float = 50.0
    width: float = 0.1
    direction: str = "uni"
    name = "notch"

    def __post_init__(self):
        if not self.freq > 0:
            raise InvalidInput(f"notch frequency must be positive, got {self.freq!r}")
        if not 0 < self.width < 1:
            raise InvalidInput(f"notch width must lie in (0, 1), got {self.width!r}")
        filters.check_direction(self.direction)

    def apply(self, samples, sr):
        return filters.notch_filter(samples, self.freq, sr, self.width, self.direction), float(sr)

    def describe(self, sr):
        return f"notch filter at {self.freq:g} Hz"


@dataclass(frozen=True)
class LeakyIntegrator(Operator):
    """Leaky integrator; ``tau`` is given in seconds."""

    tau: float = 1.0
    name = "leaky_integrator"

    def __post_init__(self):
        if isinstance(self.tau, bool) or not isinstance(self.tau, (int, float)) or not self.tau > 0:
            raise InvalidInput(f"tau must be a positive number of seconds, got {self.tau!r}")

    def apply(self, samples, sr):
        return filters.leaky_integrator(samples, self.tau * float(sr)), float(sr)

    def describe(self, sr):
        return f"leaky integrator with tau {self.tau * float(sr):.0f} samples"


@dataclass(frozen=True)
class Envelope(Operator):
    """Full-wave rectification followed by a Butterworth low-pass."""

    time_constant: float = 0.003
    order: int = 4
    direction: str = "uni"
    name = "envelope"

    def __post_init__(self):
        cutoff_from_time_constant(self.time_constant)
        filters.check_direction(self.direction)

    def apply(self, samples, sr):
        return smoothed_envelope(samples, sr, self.time_constant, self.order, self.direction), float(sr)

    def describe(self, sr):
        return f"rectified envelope with time constant {self.time_constant * 1000:g} ms"
