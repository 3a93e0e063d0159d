"""Channel model: one typed waveform or event series.

A channel is immutable once created. Transformations produce a new channel
through ``with_data`` / ``with_type`` so that a store only ever sees whole
payload substitutions.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum

import numpy as np

from ..exceptions import InvalidInput, UnsupportedChannelCategory


class Category(str, Enum):
    """Semantic category of a channel type."""

    WAVE = "wave"
    EVENTS = "events"


@dataclass(frozen=True)
class MarkerInfo:
    """Per-event auxiliary information of an events channel.

    Attributes:
        value: Numeric value per event (e.g. trigger code), NaN when unknown.
        name: Label per event, empty string when unknown.
    """

    value: np.ndarray
    name: np.ndarray

    def __post_init__(self):
        value = np.asarray(self.value, dtype=float).ravel()
        name = np.asarray(self.name, dtype=str).ravel()
        if value.size != name.size:
            raise InvalidInput("markerinfo value and name must have the same length")
        object.__setattr__(self, "value", value)
        object.__setattr__(self, "name", name)

    def __len__(self) -> int:
        return int(self.value.size)

    @classmethod
    def empty(cls, n: int) -> "MarkerInfo":
        return cls(value=np.full(n, np.nan), name=np.full(n, "", dtype=str))


@dataclass(frozen=True)
class Channel:
    """A single signal stream.

    Attributes:
        chantype: Type tag from the channel type registry (lower case).
        data: Samples (waveform) or timestamps in seconds (events).
        sr: Sample rate in Hz. Kept for bookkeeping on events channels.
        units: Physical unit string.
        category: ``Category.WAVE`` or ``Category.EVENTS``; fixed at creation.
        markerinfo: Optional per-event values/labels (events only).
    """

    chantype: str
    data: np.ndarray
    sr: float
    units: str
    category: Category
    markerinfo: MarkerInfo | None = field(default=None, repr=False)

    def __post_init__(self):
        if not isinstance(self.chantype, str) or not self.chantype.strip():
            raise InvalidInput("channel type must be a non-empty string")
        object.__setattr__(self, "chantype", self.chantype.strip().lower())
        try:
            category = Category(self.category)
        except ValueError as e:
            raise InvalidInput(f"unknown channel category {self.category!r}") from e
        object.__setattr__(self, "category", category)

        try:
            sr = float(self.sr)
        except (TypeError, ValueError) as e:
            raise InvalidInput(f"sample rate must be numeric, got {self.sr!r}") from e
        if not np.isfinite(sr) or sr <= 0:
            raise InvalidInput(f"sample rate must be positive and finite, got {sr}")
        object.__setattr__(self, "sr", sr)

        data = np.asarray(self.data, dtype=float)
        if data.ndim > 1:
            if min(data.shape) > 1:
                raise InvalidInput(f"channel data must be one-dimensional, got shape {data.shape}")
            data = data.ravel()
        data = np.atleast_1d(data)
        object.__setattr__(self, "data", data)
        object.__setattr__(self, "units", "unknown" if not self.units else str(self.units))

        if category is Category.EVENTS:
            if data.size and np.any(np.diff(data) < 0):
                order = np.argsort(data, kind="stable")
                object.__setattr__(self, "data", data[order])
                if self.markerinfo is not None and len(self.markerinfo) == data.size:
                    object.__setattr__(
                        self,
                        "markerinfo",
                        MarkerInfo(self.markerinfo.value[order], self.markerinfo.name[order]),
                    )
            if self.markerinfo is not None and len(self.markerinfo) != data.size:
                raise InvalidInput(
                    f"markerinfo has {len(self.markerinfo)} entries for {data.size} events"
                )
        elif self.markerinfo is not None:
            raise InvalidInput("markerinfo is only valid on events channels")

    # ---- constructors ----
    @classmethod
    def wave(cls, chantype: str, data, sr: float, units: str) -> "Channel":
        return cls(chantype=chantype, data=data, sr=sr, units=units, category=Category.WAVE)

    @classmethod
    def events(
        cls,
        chantype: str,
        timestamps,
        sr: float = 1.0,
        units: str = "events",
        markerinfo: MarkerInfo | None = None,
    ) -> "Channel":
        return cls(
            chantype=chantype,
            data=timestamps,
            sr=sr,
            units=units,
            category=Category.EVENTS,
            markerinfo=markerinfo,
        )

    # ---- properties ----
    @property
    def is_waveform(self) -> bool:
        return self.category is Category.WAVE

    @property
    def n(self) -> int:
        return int(self.data.size)

    @property
    def duration(self) -> float:
        """Length of the recording covered by this channel, in seconds."""
        if self.is_waveform:
            return self.n / self.sr
        return float(self.data[-1]) if self.n else 0.0

    def require_waveform(self, operation: str = "this operation") -> np.ndarray:
        """Return the samples, rejecting events channels."""
        if not self.is_waveform:
            raise UnsupportedChannelCategory(
                f"{operation} needs a waveform channel; '{self.chantype}' holds events"
            )
        return self.data

    # ---- transformations ----
    def with_data(self, data, sr: float | None = None) -> "Channel":
        """Return a copy with a new payload (and optionally a new sample rate)."""
        return replace(self, data=data, sr=self.sr if sr is None else sr)

    def with_type(self, chantype: str) -> "Channel":
        return replace(self, chantype=chantype)

    def same_payload(self, other: "Channel") -> bool:
        """True when type, units, rate and data (NaN-aware) are identical."""
        return (
            self.chantype == other.chantype
            and self.units == other.units
            and self.category is other.category
            and self.sr == other.sr
            and self.data.shape == other.data.shape
            and bool(np.array_equal(self.data, other.data, equal_nan=True))
        )
