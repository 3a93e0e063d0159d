"""Import hooks turning a vendor parser's raw output into a canonical channel.

Vendor parsers hand over a :class:`RawImport`; the registry entry for the
requested channel type names the hook that shapes it into a
:class:`~physiokit.channels.model.Channel`.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

import numpy as np

from ..exceptions import InvalidInput
from .model import Channel, MarkerInfo


@dataclass
class RawImport:
    """Raw channel payload as produced by a vendor parser.

    Attributes:
        data: Samples, or timestamps when ``timestamps`` is True.
        sr: Sample rate (Hz) of ``data``.
        units: Unit string reported by the source.
        timestamps: Whether ``data`` already holds event times in seconds.
        marker_values: Optional per-event values (events only).
        marker_names: Optional per-event labels (events only).
    """

    data: np.ndarray
    sr: float
    units: str = "unknown"
    timestamps: bool = False
    marker_values: Sequence[float] | None = None
    marker_names: Sequence[str] | None = field(default=None, repr=False)


def import_wave(raw: RawImport, chantype: str) -> Channel:
    """Shape continuous data into a waveform channel."""
    data = np.asarray(raw.data, dtype=float).ravel()
    return Channel.wave(chantype, data, sr=raw.sr, units=raw.units)


def rising_edges(trace: np.ndarray, sr: float) -> np.ndarray:
    """Onset times (s) of pulses in a continuous marker trace.

    A pulse starts where the trace crosses the midpoint between its minimum
    and maximum from below. A flat trace has no pulses.
    """
    x = np.asarray(trace, dtype=float).ravel()
    finite = x[np.isfinite(x)]
    if finite.size < 2 or np.ptp(finite) == 0:
        return np.zeros(0)
    mid = 0.5 * (finite.min() + finite.max())
    high = np.nan_to_num(x, nan=finite.min()) > mid
    onsets = np.flatnonzero(high[1:] & ~high[:-1]) + 1
    if high[0]:
        onsets = np.concatenate(([0], onsets))
    return onsets / float(sr)


def import_events(raw: RawImport, chantype: str) -> Channel:
    """Shape timestamps, or a continuous marker trace, into an events channel."""
    if raw.timestamps:
        times = np.asarray(raw.data, dtype=float).ravel()
        values = raw.marker_values
        names = raw.marker_names
    else:
        times = rising_edges(raw.data, raw.sr)
        # per-event values are sampled from the trace at each onset
        trace = np.asarray(raw.data, dtype=float).ravel()
        idx = np.round(times * raw.sr).astype(int)
        values = trace[idx] if idx.size else np.zeros(0)
        names = None

    markerinfo = None
    if values is not None or names is not None:
        n = times.size
        values = np.full(n, np.nan) if values is None else np.asarray(values, dtype=float)
        names = np.full(n, "", dtype=str) if names is None else np.asarray(names, dtype=str)
        if values.size != n or names.size != n:
            raise InvalidInput(
                f"{chantype}: marker info length does not match {n} events"
            )
        markerinfo = MarkerInfo(value=values, name=names)

    return Channel.events(chantype, times, sr=raw.sr, units="events", markerinfo=markerinfo)
