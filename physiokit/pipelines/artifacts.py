"""Artifact removal: flag outlier and clipped samples, then fill them."""
from __future__ import annotations

import logging
import os

import numpy as np

from ..artifacts.detectors import blank, clipping_mask, spike_mask
from ..config import ArtifactConfig, ToolboxDefaults, get_defaults
from ..io.store_file import load_channel, write_channel
from ..preprocessing.interpolate import interpolate

log = logging.getLogger(__name__)


def artifact_mask(samples: np.ndarray, config: ArtifactConfig) -> np.ndarray:
    mask = spike_mask(samples, config.z_threshold)
    if config.clip_value is not None:
        mask |= clipping_mask(samples, config.clip_value)
    return mask


def remove_artifacts(
    path: str | os.PathLike,
    channel: int | str,
    config: ArtifactConfig | None = None,
    defaults: ToolboxDefaults | None = None,
) -> int:
    """Blank artifacts in one waveform channel and interpolate over them.

    Samples whose absolute z-score exceeds ``config.z_threshold`` (and, with
    ``clip_value`` set, samples at or beyond it) are treated as missing.
    Edge artifacts are extrapolated.

    Returns:
        Id of the written channel.
    """
    config = config or ArtifactConfig()
    defaults = defaults or get_defaults()
    source, channel_id = load_channel(path, channel, registry=defaults.registry)
    samples = source.require_waveform("artifact removal")

    mask = artifact_mask(samples, config)
    flagged = int(mask.sum())
    log.info("flagged %d artifact samples in channel %d of %s", flagged, channel_id, path)
    cleaned = samples
    if flagged:
        cleaned, _ = interpolate(blank(samples, mask), config.method, extrapolate=True)

    message = f"Artifact removal (|z| > {config.z_threshold:g}, {flagged} samples) of channel {channel_id}"
    out = source.with_data(cleaned)
    if config.channel_action == "add":
        ids = write_channel(path, out, "add", message=message, registry=defaults.registry)
    else:
        ids = write_channel(path, out, "replace", channel=channel_id, message=message, registry=defaults.registry)
    return ids[0]
