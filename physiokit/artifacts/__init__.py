"""Artifact and outlier detection."""
from .detectors import blank, clipping_mask, spike_mask
