"""Configuration for the toolbox.

Process-wide settings come from the environment (``PHYSIOKIT_*``) through
:class:`Settings`. Per-operation options are frozen dataclasses whose fields
are all defaulted and validated once at construction, so that a pipeline can
reject bad options before it touches a store file.

:func:`get_defaults` builds the immutable :class:`ToolboxDefaults` (registry,
settings, modality filter presets) once per process; components accept it
through an optional ``defaults`` argument.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import lru_cache
from types import MappingProxyType
from typing import Mapping

from pydantic_settings import BaseSettings, SettingsConfigDict

from .channels.registry import ChannelTypeRegistry, default_registry
from .exceptions import InvalidInput, NotFound
from .preprocessing.filters import FilterSpec
from .preprocessing.interpolate import check_method

CHANNEL_ACTIONS = ("add", "replace")


class Settings(BaseSettings):
    """Environment-driven settings.

    Attributes:
        mains_frequency: Power-line frequency (50 or 60 Hz) used by default
            for notch filtering.
        log_level: Level of the ``physiokit`` logger.
        interpolated_file_prefix: File name prefix of stores written by
            whole-file interpolation.
    """

    model_config = SettingsConfigDict(env_prefix="PHYSIOKIT_", env_file=".env", extra="ignore")

    mains_frequency: float = 50.0
    log_level: str = "WARNING"
    interpolated_file_prefix: str = "i"


def check_channel_action(action: str) -> str:
    if action not in CHANNEL_ACTIONS:
        raise InvalidInput(f"channel_action must be 'add' or 'replace', got {action!r}")
    return action


def _check_channel(channel) -> None:
    if isinstance(channel, bool) or not isinstance(channel, (int, str)):
        raise InvalidInput(f"channel must be an id or a channel type, got {channel!r}")


@dataclass(frozen=True)
class EMGConfig:
    """Options of the EMG preprocessing pipeline.

    The band-pass, notch width and smoothing constants follow the startle
    eyeblink EMG literature and are not meant to be tuned per recording;
    only the mains frequency, channel and write mode are user options.

    Attributes:
        mains_frequency: Notch frequency (Hz).
        channel: Channel id or type to preprocess.
        channel_action: 'add' a new channel or 'replace' the last
            preprocessed EMG channel.
    """

    mains_frequency: float = 50.0
    channel: int | str = "emg"
    channel_action: str = "replace"

    # fixed pipeline constants
    bandpass_low_hz: float = field(default=50.0, init=False)
    bandpass_high_hz: float = field(default=470.0, init=False)
    bandpass_order: int = field(default=4, init=False)
    notch_width: float = field(default=0.1, init=False)
    smoothing_time_constant: float = field(default=0.003, init=False)
    smoothing_order: int = field(default=4, init=False)
    output_type: str = field(default="emg_pp", init=False)

    def __post_init__(self):
        if isinstance(self.mains_frequency, bool) or not isinstance(self.mains_frequency, (int, float)):
            raise InvalidInput(f"mains_frequency must be numeric, got {self.mains_frequency!r}")
        if not self.mains_frequency > 0:
            raise InvalidInput(f"mains_frequency must be positive, got {self.mains_frequency}")
        _check_channel(self.channel)
        check_channel_action(self.channel_action)


@dataclass(frozen=True)
class InterpolationConfig:
    """Options of the interpolation pipeline.

    Attributes:
        method: Interpolation method (see ``physiokit.preprocessing.interpolate``).
        extrapolate: Allow filling leading/trailing gaps without a warning.
        channel_action: Write mode for single-channel runs.
        overwrite: Overwrite an existing output file for whole-file runs.
    """

    method: str = "linear"
    extrapolate: bool = False
    channel_action: str = "add"
    overwrite: bool = False

    def __post_init__(self):
        check_method(self.method)
        check_channel_action(self.channel_action)


@dataclass(frozen=True)
class ArtifactConfig:
    """Options of the artifact removal pipeline.

    Attributes:
        z_threshold: Samples whose absolute z-score exceeds this are spikes.
        clip_value: Absolute amplitude treated as clipping; None disables
            clipping detection.
        method: Interpolation method used to fill flagged samples.
        channel_action: Write mode.
    """

    z_threshold: float = 6.0
    clip_value: float | None = None
    method: str = "linear"
    channel_action: str = "add"

    def __post_init__(self):
        if not self.z_threshold > 0:
            raise InvalidInput(f"z_threshold must be positive, got {self.z_threshold}")
        if self.clip_value is not None and not self.clip_value > 0:
            raise InvalidInput(f"clip_value must be positive, got {self.clip_value}")
        check_method(self.method)
        check_channel_action(self.channel_action)


# default filters per modality of the first-level models
MODALITY_FILTERS: Mapping[str, FilterSpec] = MappingProxyType({
    "scr": FilterSpec(lpfreq=5, lporder=1, hpfreq=0.05, hporder=1, down=10, direction="uni"),
    "hp": FilterSpec(lpfreq=2, lporder=2, hpfreq=0.01, hporder=2, down=10, direction="uni"),
    "pupil": FilterSpec(lpfreq=50, lporder=1, hpfreq=None, down=100, direction="bi"),
    "ra": FilterSpec(lpfreq=1, lporder=1, hpfreq=0.001, hporder=1, down=10, direction="uni"),
    "rp": FilterSpec(lpfreq=1, lporder=1, hpfreq=0.01, hporder=1, down=10, direction="uni"),
    "rfr": FilterSpec(lpfreq=1, lporder=1, hpfreq=0.001, hporder=1, down=10, direction="uni"),
    "emg_pp": FilterSpec(lpfreq=None, hpfreq=None, down=1000, direction="uni"),
    "sps": FilterSpec(lpfreq=None, hpfreq=None, down=1000, direction="uni"),
    "dcm": FilterSpec(lpfreq=5, lporder=1, hpfreq=0.0159, hporder=1, down=10, direction="bi"),
})


@dataclass(frozen=True)
class ToolboxDefaults:
    """Immutable process-wide configuration."""

    registry: ChannelTypeRegistry
    settings: Settings
    modality_filters: Mapping[str, FilterSpec] = field(default_factory=lambda: MODALITY_FILTERS)

    def modality_filter(self, modality: str) -> FilterSpec:
        try:
            return self.modality_filters[modality.lower()]
        except KeyError as e:
            raise NotFound(
                f"no default filter for modality {modality!r}; "
                f"known: {sorted(self.modality_filters)}"
            ) from e


@lru_cache(maxsize=None)
def get_defaults() -> ToolboxDefaults:
    """Build (once) the process-wide defaults and configure logging."""
    settings = Settings()
    configure_logging(settings)
    return ToolboxDefaults(registry=default_registry(), settings=settings)


def configure_logging(settings: Settings) -> None:
    """Set the level of the package logger from settings."""
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        raise InvalidInput(f"unknown log level {settings.log_level!r}")
    logging.getLogger("physiokit").setLevel(level)
