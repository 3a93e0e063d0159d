"""Channel data model: type registry, channels and the channel store."""
from .model import Category, Channel, MarkerInfo
from .importers import RawImport, import_events, import_wave
from .registry import ChannelType, ChannelTypeRegistry, default_registry
from .store import ChannelStore

__all__ = [
    "Category",
    "Channel",
    "MarkerInfo",
    "RawImport",
    "import_events",
    "import_wave",
    "ChannelType",
    "ChannelTypeRegistry",
    "default_registry",
    "ChannelStore",
]
