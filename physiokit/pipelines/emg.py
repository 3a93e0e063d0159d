"""EMG preprocessing pipeline.

Reduces noise in EMG recordings in three stages, following Khemka et al.
(2016), *Modeling startle eyeblink electromyogram to assess fear learning*,
Psychophysiology:

1. 4th-order Butterworth band-pass, 50-470 Hz, to remove baseline drift and
   movement artifacts.
2. Notch filter at the mains frequency.
3. Rectification and a 4th-order Butterworth low-pass with a 3 ms time
   constant (cutoff ~53.05 Hz) giving a smoothed envelope.

All stages are causal. The result is written as an ``emg_pp`` channel,
either added or replacing the last existing ``emg_pp`` channel.
"""
from __future__ import annotations

import logging
import os

from ..config import EMGConfig, ToolboxDefaults, get_defaults
from ..io.store_file import load_channel, write_channel
from ..preprocessing.filters import FilterSpec
from ..preprocessing.operators import Butterworth, Envelope, Notch
from .base import Pipeline

log = logging.getLogger(__name__)


def emg_pipeline(config: EMGConfig) -> Pipeline:
    """The three EMG stages configured from ``config``."""
    bandpass = FilterSpec(
        lpfreq=config.bandpass_high_hz,
        lporder=config.bandpass_order,
        hpfreq=config.bandpass_low_hz,
        hporder=config.bandpass_order,
        direction="uni",
    )
    return Pipeline([
        Butterworth(bandpass),
        Notch(freq=config.mains_frequency, width=config.notch_width, direction="uni"),
        Envelope(
            time_constant=config.smoothing_time_constant,
            order=config.smoothing_order,
            direction="uni",
        ),
    ])


def emg_pp(
    path: str | os.PathLike,
    config: EMGConfig | None = None,
    defaults: ToolboxDefaults | None = None,
) -> int:
    """Preprocess an EMG channel of a store file.

    Args:
        path: Store file.
        config: Pipeline options; the mains frequency defaults to
            ``Settings.mains_frequency``.
        defaults: Toolbox defaults (registry, settings).
    Returns:
        Id of the written ``emg_pp`` channel.
    """
    defaults = defaults or get_defaults()
    if config is None:
        config = EMGConfig(mains_frequency=defaults.settings.mains_frequency)
    pipeline = emg_pipeline(config)

    channel, channel_id = load_channel(path, config.channel, registry=defaults.registry)
    log.info("EMG preprocessing of channel %d in %s", channel_id, path)
    out = pipeline.run_channel(channel).with_type(config.output_type)

    message = (
        f"EMG preprocessing of channel {channel_id} "
        f"(notch at {config.mains_frequency:g} Hz)"
    )
    if config.channel_action == "add":
        ids = write_channel(path, out, "add", message=message, registry=defaults.registry)
    else:
        ids = write_channel(
            path, out, "replace", channel=config.output_type, message=message, registry=defaults.registry
        )
    return ids[0]
