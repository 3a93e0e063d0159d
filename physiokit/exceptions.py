"""Error and warning classes shared across the toolbox."""
from __future__ import annotations


class PhysioError(Exception):
    """Base error for all toolbox failures."""


# ---- argument / configuration errors ----
class InvalidInput(PhysioError, ValueError):
    """Malformed arguments or options, detected before any mutation."""


class InvalidSpec(PhysioError, ValueError):
    """A filter specification is numerically inconsistent for the data."""


# ---- lookup errors ----
class NotFound(PhysioError, LookupError):
    """A referenced channel, type or file does not exist."""


class ChannelNotFound(NotFound):
    """No channel in the store matches the selector."""


class ChannelTypeNotFound(NotFound):
    """The type tag is not in the channel type registry."""


class StoreFileNotFound(NotFound):
    """The store file does not exist on disk."""


class AmbiguousTarget(PhysioError):
    """An operation on a single channel matched several channels."""


# ---- data errors ----
class UnsupportedChannelCategory(PhysioError, TypeError):
    """A waveform-only operator was given an events channel (or vice versa)."""


class InsufficientData(PhysioError):
    """Not enough valid samples to carry out the operation."""


class OutOfRange(PhysioError):
    """The requested evaluation lies outside what the method can produce."""


class CorruptStoreFile(PhysioError):
    """The store file exists but cannot be decoded."""


# ---- warnings ----
class PhysioWarning(UserWarning):
    """Base class for recoverable anomalies."""


class ForcedExtrapolationWarning(PhysioWarning):
    """Missing samples at the edges were extrapolated although not allowed."""


class ReplaceAsAddWarning(PhysioWarning):
    """A replace found no channel to replace and added the channel instead."""
