"""Whole-file persistence of channel stores.

A store file is a NumPy ``.npz`` container holding one array per channel
payload plus a JSON header (validated with pydantic) describing the session
and every channel. Files are always read and written as a unit: saving goes
to a temporary file next to the target which then replaces it atomically,
so a failed save leaves the previous file untouched.

:func:`write_channel` is the single read-modify-write transaction used by
the pipelines. It assumes exclusive access to the file for its duration;
concurrent writers to the same file must be serialized by the caller.
"""
from __future__ import annotations

import logging
import os
import stat
import tempfile
import zipfile
from pathlib import Path
from typing import Any, Literal, Sequence

import numpy as np
from pydantic import BaseModel, Field

from ..channels.model import Category, Channel, MarkerInfo
from ..channels.registry import ChannelTypeRegistry
from ..channels.store import ChannelStore, Selector
from ..exceptions import CorruptStoreFile, InvalidInput, StoreFileNotFound

log = logging.getLogger(__name__)

FORMAT_VERSION = 1
WRITE_ACTIONS = ("add", "replace", "delete")


class ChannelHeader(BaseModel):
    """Header record of one channel."""

    chantype: str
    sr: float = Field(gt=0)
    units: str
    category: Literal["wave", "events"]
    has_markerinfo: bool = False


class SessionInfo(BaseModel):
    """Session metadata shared by all channels of a file."""

    duration: float | None = None
    history: list[str] = Field(default_factory=list)
    infos: dict[str, Any] = Field(default_factory=dict)


class StoreFileHeader(BaseModel):
    format_version: int = FORMAT_VERSION
    session: SessionInfo
    channels: list[ChannelHeader]


def _key(kind: str, index: int) -> str:
    return f"{kind}_{index:03d}"


def _target_mode(path: Path) -> int:
    """Permission bits for ``path``: its current mode, or the umask default for a new file."""
    if path.exists():
        return stat.S_IMODE(path.stat().st_mode)
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


def save_store(path: str | os.PathLike, store: ChannelStore, overwrite: bool = True) -> Path:
    """Persist ``store`` to ``path`` atomically."""
    path = Path(path)
    if path.exists() and not overwrite:
        raise InvalidInput(f"{path} exists and overwrite is disabled")

    headers = []
    arrays: dict[str, np.ndarray] = {}
    for i, ch in enumerate(store):
        headers.append(ChannelHeader(
            chantype=ch.chantype,
            sr=ch.sr,
            units=ch.units,
            category=ch.category.value,
            has_markerinfo=ch.markerinfo is not None,
        ))
        arrays[_key("data", i)] = ch.data
        if ch.markerinfo is not None:
            arrays[_key("marker_value", i)] = ch.markerinfo.value
            arrays[_key("marker_name", i)] = ch.markerinfo.name
    header = StoreFileHeader(
        session=SessionInfo(
            duration=store.declared_duration,
            history=list(store.history),
            infos=store.infos,
        ),
        channels=headers,
    )
    arrays["header"] = np.array(header.model_dump_json())

    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "wb") as fh:
            np.savez(fh, **arrays)
            fh.flush()
            os.fsync(fh.fileno())
        # mkstemp creates the file 0600; keep the permissions of the file being replaced
        os.chmod(tmp_name, _target_mode(path))
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise
    log.debug("saved %d channels to %s", len(store), path)
    return path


def load_store(path: str | os.PathLike, registry: ChannelTypeRegistry | None = None) -> ChannelStore:
    """Read a whole store file."""
    path = Path(path)
    if not path.is_file():
        raise StoreFileNotFound(f"no store file at {path}")
    try:
        with np.load(path, allow_pickle=False) as npz:
            header = StoreFileHeader.model_validate_json(str(npz["header"][()]))
            channels = []
            for i, h in enumerate(header.channels):
                markerinfo = None
                if h.has_markerinfo:
                    markerinfo = MarkerInfo(
                        value=npz[_key("marker_value", i)],
                        name=npz[_key("marker_name", i)],
                    )
                channels.append(Channel(
                    chantype=h.chantype,
                    data=npz[_key("data", i)],
                    sr=h.sr,
                    units=h.units,
                    category=Category(h.category),
                    markerinfo=markerinfo,
                ))
    except (OSError, KeyError, ValueError, zipfile.BadZipFile) as e:
        raise CorruptStoreFile(f"cannot read store file {path}: {e}") from e
    if header.format_version != FORMAT_VERSION:
        raise CorruptStoreFile(f"{path}: unsupported format version {header.format_version}")
    return ChannelStore(
        channels,
        history=header.session.history,
        duration=header.session.duration,
        infos=header.session.infos,
        registry=registry,
    )


def create_store(
    path: str | os.PathLike,
    channels: Sequence[Channel],
    infos: dict[str, Any] | None = None,
    duration: float | None = None,
    overwrite: bool = False,
    registry: ChannelTypeRegistry | None = None,
) -> ChannelStore:
    """Materialize a new store file from imported channels."""
    store = ChannelStore(channels, duration=duration, infos=infos, registry=registry)
    store.append_history(f"Created with {len(store)} channels")
    save_store(path, store, overwrite=overwrite)
    return store


def load_channel(
    path: str | os.PathLike,
    channel: Selector,
    policy: str = "last",
    registry: ChannelTypeRegistry | None = None,
) -> tuple[Channel, int]:
    """Load exactly one channel; returns ``(channel, id)``."""
    store = load_store(path, registry=registry)
    channel_id, ch = store.select_one(channel, policy)
    return ch, channel_id


def write_channel(
    path: str | os.PathLike,
    new: Channel | Sequence[Channel] | None,
    action: str,
    channel: Selector | None = None,
    delete_policy: str = "last",
    message: str | None = None,
    registry: ChannelTypeRegistry | None = None,
) -> list[int]:
    """Add, replace or delete channels in a store file.

    Args:
        path: Store file.
        new: Channel(s) to write; may be None for ``delete``.
        action: 'add', 'replace' or 'delete'.
        channel: Target id or type tag for replace/delete. Defaults to the
            type of ``new`` (last channel of that type).
        delete_policy: 'first', 'last' or 'all' for type-tag targets.
        message: History text replacing the default channel description.
    Returns:
        Ids of the added, replaced or deleted channels.
    """
    if action not in WRITE_ACTIONS:
        raise InvalidInput(f"action must be one of {WRITE_ACTIONS}, got {action!r}")
    if new is None and action != "delete":
        raise InvalidInput(f"got nothing to {action}")
    new_list = [new] if isinstance(new, Channel) else list(new or [])
    if action == "replace" and len(new_list) != 1:
        raise InvalidInput("replace writes exactly one channel")
    if channel is None:
        if not new_list:
            raise InvalidInput("delete needs a channel or a template channel")
        channel = new_list[0].chantype

    store = load_store(path, registry=registry)
    if action == "add":
        ids = store.add(new_list, message=message)
    elif action == "replace":
        if not isinstance(channel, (int, str)):
            raise InvalidInput("replace needs a single channel id or type")
        ids = [store.replace(channel, new_list[0], message=message, policy=delete_policy)]
    else:
        ids = store.delete(channel, policy=delete_policy, message=message)
        if not ids:
            return ids
    save_store(path, store)
    return ids
