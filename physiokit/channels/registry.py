"""Channel type registry.

Static catalog of the channel types a store may contain. Each entry names
the semantic category of the type (continuous waveform or discrete events)
and, for types that can be read directly from vendor files, the import hook
that shapes raw data into a channel. Types without a hook are derived by
preprocessing only.

Adding a channel type means adding one entry here; every other component
queries the registry instead of keeping its own list of types.
"""
from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache, partial
from types import MappingProxyType
from typing import Callable, Iterable, Iterator, Mapping

from ..exceptions import ChannelTypeNotFound, InvalidInput
from .importers import RawImport, import_events, import_wave
from .model import Category, Channel

ImportHook = Callable[[RawImport], Channel]


@dataclass(frozen=True)
class ChannelType:
    """One registry entry."""

    type: str
    description: str
    category: Category
    importer: ImportHook | None = None

    @property
    def importable(self) -> bool:
        return self.importer is not None

    @property
    def is_waveform(self) -> bool:
        return self.category is Category.WAVE


class ChannelTypeRegistry:
    """Immutable, case-insensitive lookup of channel types.

    Args:
        entries: Registry entries; type tags must be unique ignoring case.
        aliases: Optional mapping of type tag to vendor channel-name fragments,
            used by :meth:`guess_type`.
    """

    def __init__(self, entries: Iterable[ChannelType], aliases: Mapping[str, Iterable[str]] | None = None):
        table: dict[str, ChannelType] = {}
        for entry in entries:
            key = entry.type.lower()
            if key in table:
                raise InvalidInput(f"duplicate channel type '{entry.type}'")
            table[key] = entry
        self._entries = MappingProxyType(table)

        alias_table: dict[str, tuple[str, ...]] = {}
        for chantype, names in (aliases or {}).items():
            if chantype.lower() not in table:
                raise InvalidInput(f"alias for unknown channel type '{chantype}'")
            alias_table[chantype.lower()] = tuple(n.lower() for n in names)
        self._aliases = MappingProxyType(alias_table)

    # ---- mapping-like API ----
    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[ChannelType]:
        return iter(self._entries.values())

    def __contains__(self, chantype: object) -> bool:
        return isinstance(chantype, str) and chantype.lower() in self._entries

    def lookup(self, chantype: str) -> ChannelType:
        try:
            return self._entries[chantype.lower()]
        except (KeyError, AttributeError) as e:
            raise ChannelTypeNotFound(f"unknown channel type {chantype!r}") from e

    # ---- queries ----
    def importable_types(self) -> frozenset[str]:
        return frozenset(k for k, e in self._entries.items() if e.importable)

    def waveform_types(self) -> frozenset[str]:
        return frozenset(k for k, e in self._entries.items() if e.is_waveform)

    def event_types(self) -> frozenset[str]:
        return frozenset(k for k, e in self._entries.items() if not e.is_waveform)

    def is_waveform(self, chantype: str) -> bool:
        return self.lookup(chantype).is_waveform

    def guess_type(self, channel_name: str) -> str:
        """Resolve a vendor channel name (e.g. 'GSR left') to a type tag."""
        name = channel_name.lower()
        for chantype, fragments in self._aliases.items():
            if any(f in name for f in fragments):
                return chantype
        raise ChannelTypeNotFound(f"no channel type matches channel name {channel_name!r}")

    def import_channel(self, chantype: str, raw: RawImport) -> Channel:
        """Run the import hook of ``chantype`` on raw data."""
        entry = self.lookup(chantype)
        if entry.importer is None:
            raise InvalidInput(f"channel type '{entry.type}' cannot be imported directly")
        return entry.importer(raw)

    def with_entry(self, entry: ChannelType) -> "ChannelTypeRegistry":
        """Return a new registry extended by ``entry``; this one is unchanged."""
        return ChannelTypeRegistry(list(self) + [entry], aliases=dict(self._aliases))


def _wave(chantype: str, description: str, importable: bool = True) -> ChannelType:
    hook = partial(import_wave, chantype=chantype) if importable else None
    return ChannelType(chantype, description, Category.WAVE, hook)


def _events(chantype: str, description: str, importable: bool = True) -> ChannelType:
    hook = partial(import_events, chantype=chantype) if importable else None
    return ChannelType(chantype, description, Category.EVENTS, hook)


def _lateral(base: str, description: str, suffixes: str, importable: bool) -> list[ChannelType]:
    full = {"c": "combined", "l": "left", "r": "right"}
    return [_wave(f"{base}_{s}", f"{description} {full[s]}", importable) for s in suffixes]


CHANNEL_NAME_ALIASES: Mapping[str, tuple[str, ...]] = {
    "scr": ("scr", "scl", "gsr", "eda"),
    "hr": ("rate", "hr"),
    "hb": ("beat", "hb"),
    "ecg": ("ecg", "ekg"),
    "hp": ("hp",),
    "resp": ("resp", "breath"),
    "pupil": ("pupil", "eye", "track"),
    "ppg": ("ppg",),
    "marker": ("trig", "mark", "event", "scanner"),
    "snd": ("sound",),
    "custom": ("custom",),
}


def _default_entries() -> list[ChannelType]:
    entries = [
        _wave("scr", "SCR"),
        _wave("ecg", "ECG"),
        _wave("hr", "Heart rate"),
        _wave("hp", "Heart period"),
        _events("hb", "Heart beat"),
        _wave("resp", "Respiration"),
        _wave("rr", "Respiration rate", importable=False),
        _wave("rp", "Respiration period", importable=False),
        _wave("ra", "Respiration amplitude", importable=False),
        _wave("rfr", "Respiratory flow rate", importable=False),
        _events("rs", "Respiration time stamp", importable=False),
        _wave("emg", "EMG"),
        _wave("emg_pp", "EMG preprocessed", importable=False),
        _events("marker", "Marker"),
        _wave("snd", "Sound channel"),
        _wave("ppg", "Photoplethysmography"),
    ]
    for axis in ("x", "y"):
        entries.append(_wave(f"gaze_pp_{axis}", f"Gaze preprocessed {axis}", importable=False))
        entries += _lateral(f"gaze_pp_{axis}", f"Gaze preprocessed {axis}", "clr", importable=False)
    for axis in ("x", "y"):
        entries.append(_wave(f"gaze_{axis}", f"Gaze {axis}"))
        entries += _lateral(f"gaze_{axis}", f"Gaze {axis}", "lrc", importable=True)
    entries.append(_wave("pupil", "Pupil"))
    entries += _lateral("pupil", "Pupil", "lrc", importable=True)
    entries.append(_wave("pupil_missing", "Pupil data missing/interpolated", importable=False))
    entries += _lateral("pupil_missing", "Pupil data missing/interpolated", "lrc", importable=False)
    entries.append(_wave("pupil_pp", "Pupil preprocessed", importable=False))
    entries += _lateral("pupil_pp", "Pupil preprocessed", "clr", importable=False)
    entries += [
        _wave("blink_l", "Blink left"),
        _wave("blink_r", "Blink right"),
        _wave("saccade_l", "Saccade left"),
        _wave("saccade_r", "Saccade right"),
        _wave("sps", "Scanpath speed"),
    ]
    entries += _lateral("sps", "Scanpath speed", "lrc", importable=True)
    entries.append(_wave("custom", "Custom"))
    return entries


@lru_cache(maxsize=None)
def default_registry() -> ChannelTypeRegistry:
    """The registry of all channel types known to the toolbox."""
    return ChannelTypeRegistry(_default_entries(), aliases=CHANNEL_NAME_ALIASES)
