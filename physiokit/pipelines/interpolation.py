"""Interpolation of missing samples in store files.

A single channel is filled and written back to the same file. With
``channel='all'`` every waveform channel is filled and the result goes to a
new file named ``<prefix><name>`` next to the source; channels that cannot
be filled are kept as they were and reported in the returned
:class:`BatchResult`.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path

import numpy as np

from ..config import InterpolationConfig, ToolboxDefaults, get_defaults
from ..exceptions import InvalidInput, PhysioError
from ..io.store_file import load_channel, load_store, save_store, write_channel
from ..preprocessing.interpolate import interpolate, interpolate_channel
from .base import BatchResult

log = logging.getLogger(__name__)

HISTORY_PREFIX = "Interpolated channel"


def interpolate_data(samples, config: InterpolationConfig | None = None) -> tuple[np.ndarray, float]:
    """Fill NaN in an inline array; returns ``(filled, fraction)``."""
    config = config or InterpolationConfig()
    return interpolate(samples, config.method, config.extrapolate)


def interpolate_file(
    path: str | os.PathLike,
    channel: int | str,
    config: InterpolationConfig | None = None,
    defaults: ToolboxDefaults | None = None,
):
    """Interpolate one channel of a store file, or all of them.

    Returns:
        The id of the written channel for a single channel, or a
        :class:`BatchResult` mapping channel ids to filled fractions for
        ``channel='all'``.
    """
    config = config or InterpolationConfig()
    defaults = defaults or get_defaults()
    if isinstance(channel, str) and channel.strip().lower() == "all":
        return interpolate_all(path, config, defaults)

    source, channel_id = load_channel(path, channel, registry=defaults.registry)
    filled, fraction = interpolate_channel(source, config.method, config.extrapolate)
    log.info("interpolated %.1f%% of channel %d in %s", 100 * fraction, channel_id, path)
    if config.channel_action == "add":
        ids = write_channel(path, filled, "add", message=HISTORY_PREFIX, registry=defaults.registry)
    else:
        ids = write_channel(
            path, filled, "replace", channel=channel_id, message=HISTORY_PREFIX, registry=defaults.registry
        )
    return ids[0]


def interpolate_all(
    path: str | os.PathLike,
    config: InterpolationConfig | None = None,
    defaults: ToolboxDefaults | None = None,
) -> BatchResult:
    """Fill every waveform channel and save the store under a new name."""
    config = config or InterpolationConfig()
    defaults = defaults or get_defaults()
    path = Path(path)
    out_path = path.with_name(defaults.settings.interpolated_file_prefix + path.name)
    if out_path == path:
        raise InvalidInput("the interpolated file name must differ from the source")
    if out_path.exists() and not config.overwrite:
        raise InvalidInput(f"{out_path} exists and overwrite is disabled")

    store = load_store(path, registry=defaults.registry)
    result = BatchResult(output=out_path)
    for channel_id in store.resolve("wave"):
        try:
            filled, fraction = interpolate_channel(store.channel(channel_id), config.method, config.extrapolate)
        except PhysioError as e:
            result.record_failure(channel_id, e)
            continue
        if fraction > 0:
            store.replace(channel_id, filled, message=HISTORY_PREFIX)
        result.succeeded[channel_id] = fraction
    store.append_history(f"Interpolated from {path.name}")
    save_store(out_path, store, overwrite=True)
    log.info("wrote %s (%d channels filled, %d failed)", out_path, len(result.succeeded), len(result.failed))
    return result
