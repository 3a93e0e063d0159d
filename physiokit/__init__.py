"""Psychophysiological channel processing toolbox.

Modules are organized by the path a signal takes through the toolbox:
- channels: channel type registry, channel model and the channel store
- io: store files, import hooks and simple text importers
- preprocessing: filters, envelopes and interpolation on single waveforms
- artifacts: outlier and clipping detection
- pipelines: orchestrators that read, transform and write back channels
- utils: small helpers
"""
from .config import Settings, ToolboxDefaults, get_defaults
from .exceptions import PhysioError, PhysioWarning

__version__ = "0.1.0"
