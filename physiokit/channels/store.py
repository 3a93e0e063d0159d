"""In-memory channel store: ordered channels plus session metadata.

Channels live in an arena keyed by stable handles that are never reused.
The externally visible channel *id* is the 1-based position of a channel in
the current order and is recomputed after every mutation: ids are only valid
until the next add, replace or delete, so callers must re-resolve them after
any change to the store.

Every mutating operation appends exactly one entry to ``history``.
"""
from __future__ import annotations

import logging
import warnings
from datetime import datetime
from typing import Any, Callable, Iterable, Iterator, Sequence, Union

from ..exceptions import (
    AmbiguousTarget,
    ChannelNotFound,
    InvalidInput,
    ReplaceAsAddWarning,
)
from .model import Category, Channel
from .registry import ChannelTypeRegistry, default_registry

log = logging.getLogger(__name__)

DEFAULT_DATE_FORMAT = "%d-%b-%Y %H:%M:%S"
DEFAULT_PREFIX = "Channel #{id:02d} of type '{chantype}'"
POLICIES = ("first", "last", "all")
CATEGORY_SELECTORS = ("wave", "events", "all")

Selector = Union[int, Sequence[int], str, Callable[[Channel], bool]]

_VERBS = {"add": "added", "replace": "replaced", "delete": "deleted"}


class ChannelStore:
    """Ordered, typed channels of one session.

    Args:
        channels: Initial channels, in id order.
        history: Existing provenance log.
        duration: Session duration in seconds; derived from the channels
            when not given.
        infos: Free-form session metadata (source file, import date, ...).
        registry: Channel type registry used to validate channels.
        date_format: ``strftime`` format for history timestamps.
    """

    def __init__(
        self,
        channels: Iterable[Channel] = (),
        *,
        history: Iterable[str] = (),
        duration: float | None = None,
        infos: dict[str, Any] | None = None,
        registry: ChannelTypeRegistry | None = None,
        date_format: str = DEFAULT_DATE_FORMAT,
    ):
        self.registry = registry or default_registry()
        self.date_format = date_format
        self.infos: dict[str, Any] = dict(infos or {})
        self._duration = None if duration is None else float(duration)
        self._history: list[str] = list(history)
        self._slots: dict[int, Channel] = {}
        self._order: list[int] = []
        self._next_handle = 0
        for ch in channels:
            self._insert(self._validated(ch))

    # ---- arena ----
    def _insert(self, channel: Channel) -> int:
        handle = self._next_handle
        self._next_handle += 1
        self._slots[handle] = channel
        self._order.append(handle)
        return handle

    def handle(self, channel_id: int) -> int:
        """Stable handle of the channel currently at ``channel_id``."""
        self._check_id(channel_id)
        return self._order[channel_id - 1]

    def id_of(self, handle: int) -> int:
        """Current id of the channel behind ``handle``."""
        try:
            return self._order.index(handle) + 1
        except ValueError as e:
            raise ChannelNotFound(f"channel handle {handle} no longer exists") from e

    # ---- read API ----
    def __len__(self) -> int:
        return len(self._order)

    def __iter__(self) -> Iterator[Channel]:
        return (self._slots[h] for h in self._order)

    def __getitem__(self, channel_id: int) -> Channel:
        return self.channel(channel_id)

    @property
    def channels(self) -> list[Channel]:
        return list(self)

    @property
    def history(self) -> tuple[str, ...]:
        return tuple(self._history)

    @property
    def declared_duration(self) -> float | None:
        """Duration set explicitly (e.g. by the importer), or None."""
        return self._duration

    @property
    def duration(self) -> float:
        if self._duration is not None:
            return self._duration
        return max((ch.duration for ch in self), default=0.0)

    def ids(self) -> list[int]:
        return list(range(1, len(self) + 1))

    def channel(self, channel_id: int) -> Channel:
        self._check_id(channel_id)
        return self._slots[self._order[channel_id - 1]]

    def _check_id(self, channel_id) -> None:
        if isinstance(channel_id, bool) or not isinstance(channel_id, int):
            raise InvalidInput(f"channel id must be an integer, got {channel_id!r}")
        if not 1 <= channel_id <= len(self):
            raise ChannelNotFound(
                f"channel id {channel_id} out of range (store has {len(self)} channels)"
            )

    def resolve(self, selector: Selector, policy: str = "last") -> list[int]:
        """Ids of the channels matching ``selector``, in store order.

        ``selector`` is an id, a sequence of ids, a type tag, one of
        ``'wave'``/``'events'``/``'all'`` or a predicate on channels.
        ``policy`` (``first``/``last``/``all``) applies to type tags.
        An empty match is returned as an empty list.
        """
        if policy not in POLICIES:
            raise InvalidInput(f"policy must be one of {POLICIES}, got {policy!r}")
        if isinstance(selector, bool):
            raise InvalidInput("channel selector must not be a boolean")
        if isinstance(selector, int):
            self._check_id(selector)
            return [selector]
        if isinstance(selector, str):
            key = selector.strip().lower()
            if key in CATEGORY_SELECTORS:
                return [
                    i for i, ch in zip(self.ids(), self)
                    if key == "all" or ch.category is Category(key)
                ]
            self.registry.lookup(key)
            matches = [i for i, ch in zip(self.ids(), self) if ch.chantype == key]
            if not matches or policy == "all":
                return matches
            return [matches[0]] if policy == "first" else [matches[-1]]
        if callable(selector):
            return [i for i, ch in zip(self.ids(), self) if selector(ch)]
        try:
            ids = [int(i) for i in selector]
        except (TypeError, ValueError) as e:
            raise InvalidInput(f"invalid channel selector {selector!r}") from e
        for i in ids:
            self._check_id(i)
        return sorted(set(ids))

    def select(self, selector: Selector, policy: str = "last") -> list[tuple[int, Channel]]:
        """Matching ``(id, channel)`` pairs; raises ChannelNotFound on no match."""
        ids = self.resolve(selector, policy)
        if not ids:
            raise ChannelNotFound(f"no channel matches {selector!r}")
        return [(i, self.channel(i)) for i in ids]

    def select_one(self, selector: Selector, policy: str = "last") -> tuple[int, Channel]:
        matches = self.select(selector, policy)
        if len(matches) > 1:
            raise AmbiguousTarget(
                f"{selector!r} matches {len(matches)} channels, expected exactly one"
            )
        return matches[0]

    # ---- write API ----
    def add(self, new: Channel | Sequence[Channel], message: str | None = None) -> list[int]:
        """Append channel(s); returns their ids."""
        channels = self._as_list(new)
        validated = [self._validated(ch) for ch in channels]
        for ch in validated:
            self._insert(ch)
        ids = list(range(len(self) - len(validated) + 1, len(self) + 1))
        self._log_action("add", ids, [ch.chantype for ch in validated], message)
        return ids

    def replace(
        self,
        target: int | str | None,
        new: Channel,
        message: str | None = None,
        policy: str = "last",
    ) -> int:
        """Substitute the payload of one channel; returns its id.

        ``target`` is an id or a type tag (``None`` means the type of ``new``).
        When the target resolves to no channel the call falls back to
        :meth:`add` and emits a :class:`ReplaceAsAddWarning`.
        """
        if isinstance(new, (list, tuple)):
            if len(new) != 1:
                raise InvalidInput("replace takes exactly one channel")
            new = new[0]
        new = self._validated(new)
        if target is None:
            target = new.chantype
        if not isinstance(target, (int, str)) or isinstance(target, bool):
            raise InvalidInput(f"replace target must be an id or a type tag, got {target!r}")
        ids = self.resolve(target, policy)
        if not ids:
            msg = f"no channel of type '{target}' to replace, adding the channel instead"
            log.warning(msg)
            warnings.warn(msg, ReplaceAsAddWarning, stacklevel=2)
            return self.add(new, message=message)[0]
        if len(ids) > 1:
            raise AmbiguousTarget(f"replace target {target!r} matches channels {ids}")
        channel_id = ids[0]
        self._slots[self._order[channel_id - 1]] = new
        self._log_action("replace", [channel_id], [new.chantype], message)
        return channel_id

    def delete(self, target: Selector, policy: str = "last", message: str | None = None) -> list[int]:
        """Remove matching channels; returns the ids they had before removal.

        Later channels move down to fill the gap. With ``policy='all'`` an
        empty match is a no-op; otherwise it raises ChannelNotFound.
        """
        ids = self.resolve(target, policy)
        if not ids:
            if policy == "all":
                return []
            raise ChannelNotFound(f"no channel matches {target!r}")
        chantypes = [self.channel(i).chantype for i in ids]
        doomed = {self._order[i - 1] for i in ids}
        self._order = [h for h in self._order if h not in doomed]
        for h in doomed:
            del self._slots[h]
        self._log_action("delete", ids, chantypes, message)
        return ids

    def append_history(self, entry: str) -> None:
        """Record a provenance entry for a change made outside add/replace/delete."""
        self._history.append(f"{entry} on {self._now()}")

    def copy(self) -> "ChannelStore":
        return ChannelStore(
            self,
            history=self._history,
            duration=self._duration,
            infos=self.infos,
            registry=self.registry,
            date_format=self.date_format,
        )

    # ---- helpers ----
    @staticmethod
    def _as_list(new) -> list[Channel]:
        if isinstance(new, Channel):
            return [new]
        channels = list(new)
        if not channels:
            raise InvalidInput("got no channel to write")
        return channels

    def _validated(self, channel: Channel) -> Channel:
        if not isinstance(channel, Channel):
            raise InvalidInput(f"expected a Channel, got {type(channel).__name__}")
        entry = self.registry.lookup(channel.chantype)
        if entry.category is not channel.category:
            raise InvalidInput(
                f"channel type '{entry.type}' is {entry.category.value}, "
                f"got a {channel.category.value} channel"
            )
        return channel

    def _now(self) -> str:
        return datetime.now().strftime(self.date_format)

    def _log_action(self, action: str, ids: list[int], chantypes: list[str], message: str | None) -> None:
        verb = _VERBS[action]
        stamp = self._now()
        parts = []
        for channel_id, chantype in zip(ids, chantypes):
            prefix = message if message else DEFAULT_PREFIX.format(id=channel_id, chantype=chantype)
            parts.append(f"{prefix} {verb} on {stamp}")
        entry = "; ".join(parts)
        self._history.append(entry)
        log.debug("history: %s", entry)
