"""Delimited-text importer.

Reads a table of equally sampled columns (CSV, TSV, ...) and turns the
selected columns into canonical channels through the registry's import
hooks. Marker columns are continuous traces whose pulse onsets become
events.
"""
from __future__ import annotations

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Mapping

import pandas as pd

from ..channels.importers import RawImport
from ..channels.model import Channel
from ..channels.registry import ChannelTypeRegistry, default_registry
from ..exceptions import ChannelTypeNotFound, NotFound, StoreFileNotFound

log = logging.getLogger(__name__)


def import_text(
    path: str | os.PathLike,
    sr: float,
    channels: Mapping[str | int, str] | None = None,
    delimiter: str = ",",
    units: Mapping[str, str] | None = None,
    registry: ChannelTypeRegistry | None = None,
) -> tuple[list[Channel], dict[str, Any]]:
    """Import columns of a delimited text file.

    Args:
        path: Text file with a header row.
        sr: Sample rate (Hz) of every column.
        channels: ``{column: channel type}``; columns may be given by name or
            0-based position. When omitted, every column whose header matches
            a known channel-name alias is imported.
        delimiter: Column separator.
        units: Optional ``{column name: unit}``.
    Returns:
        ``(channels, provenance)`` where provenance names the source file,
        import date and imported columns.
    """
    path = Path(path)
    if not path.is_file():
        raise StoreFileNotFound(f"no file at {path}")
    registry = registry or default_registry()
    units = dict(units or {})
    df = pd.read_csv(path, sep=delimiter)

    if channels is None:
        selection: dict[str, str] = {}
        for column in df.columns:
            try:
                selection[column] = registry.guess_type(str(column))
            except ChannelTypeNotFound:
                log.info("skipping column %r: no matching channel type", column)
        if not selection:
            raise NotFound(f"no column of {path.name} matches a known channel type")
    else:
        selection = {}
        for column, chantype in channels.items():
            if isinstance(column, int):
                if not 0 <= column < len(df.columns):
                    raise NotFound(f"{path.name} has no column {column}")
                column = df.columns[column]
            elif column not in df.columns:
                raise NotFound(f"{path.name} has no column {column!r}")
            selection[column] = chantype

    imported = []
    for column, chantype in selection.items():
        values = pd.to_numeric(df[column], errors="coerce").to_numpy(dtype=float)
        raw = RawImport(data=values, sr=sr, units=units.get(str(column), "unknown"))
        imported.append(registry.import_channel(chantype, raw))

    provenance = {
        "source_file": str(path),
        "import_date": datetime.now().isoformat(timespec="seconds"),
        "columns": [str(c) for c in selection],
    }
    return imported, provenance
