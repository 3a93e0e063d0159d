"""Generic single-operator preprocessing.

``preprocess`` loads one channel, applies one operator (median, butter,
leaky_integrator or notch) and writes the result back with a history entry
describing the operator. Inline arrays and channels are transformed without
touching any store.
"""
from __future__ import annotations

import logging
import os
from typing import Any, Callable, Iterable, Mapping, Union

import numpy as np

from ..channels.model import Channel
from ..config import ToolboxDefaults, check_channel_action, get_defaults
from ..exceptions import InvalidInput
from ..io.store_file import load_channel, write_channel
from ..preprocessing.filters import FilterSpec
from ..preprocessing.operators import Butterworth, LeakyIntegrator, Median, Notch, Operator
from .base import BatchResult, run_batch

log = logging.getLogger(__name__)

Target = Union[str, os.PathLike, np.ndarray, Channel]


def _median(params) -> Operator:
    if isinstance(params, Mapping):
        return Median(**params)
    return Median(n=params)


def _butter(params) -> Operator:
    if isinstance(params, FilterSpec):
        return Butterworth(params)
    if isinstance(params, Mapping):
        return Butterworth(FilterSpec.from_options(dict(params)))
    raise InvalidInput(f"butter needs a FilterSpec or a mapping of filter options, got {params!r}")


def _leaky_integrator(params) -> Operator:
    if isinstance(params, Mapping):
        return LeakyIntegrator(**params)
    return LeakyIntegrator(tau=params)


def _notch(params) -> Operator:
    if isinstance(params, Mapping):
        return Notch(**params)
    return Notch(freq=params)


OPERATORS: Mapping[str, Callable[[Any], Operator]] = {
    "median": _median,
    "butter": _butter,
    "leaky_integrator": _leaky_integrator,
    "notch": _notch,
}


def build_operator(method: str, params: Any) -> Operator:
    """Validate ``params`` for ``method`` and return the configured operator."""
    try:
        factory = OPERATORS[method]
    except (KeyError, TypeError) as e:
        raise InvalidInput(f"unknown method {method!r}; expected one of {sorted(OPERATORS)}") from e
    try:
        return factory(params)
    except TypeError as e:
        raise InvalidInput(f"invalid parameters for {method}: {e}") from e


def preprocess(
    target: Target,
    method: str,
    params: Any,
    channel: int | str | None = None,
    channel_action: str = "add",
    sr: float | None = None,
    defaults: ToolboxDefaults | None = None,
):
    """Apply one operator to a store channel or to inline data.

    Args:
        target: Store file path, a :class:`Channel`, or a sample array.
        method: 'median', 'butter', 'leaky_integrator' or 'notch'.
        params: Window length, :class:`FilterSpec` / option mapping, tau in
            seconds, or notch frequency respectively (or a mapping of the
            operator's fields).
        channel: Channel id or type to process (store files only).
        channel_action: 'add' a new channel or 'replace' the processed one.
        sr: Sample rate of an inline array.
    Returns:
        The id of the written channel for a store file, the transformed
        channel for a channel, or the transformed array for an array.
    """
    operator = build_operator(method, params)
    check_channel_action(channel_action)

    if isinstance(target, Channel):
        return operator.apply_channel(target)
    if isinstance(target, np.ndarray) or isinstance(target, (list, tuple)):
        if sr is None:
            raise InvalidInput("inline data needs a sample rate")
        return operator.apply(np.asarray(target, dtype=float), sr)[0]
    if not isinstance(target, (str, os.PathLike)):
        raise InvalidInput(f"cannot preprocess {type(target).__name__}")
    if channel is None:
        raise InvalidInput("a channel id or type is needed to preprocess a store file")

    defaults = defaults or get_defaults()
    source, channel_id = load_channel(target, channel, registry=defaults.registry)
    log.info("%s on channel %d of %s", operator.name, channel_id, target)
    out = operator.apply_channel(source)
    message = operator.describe(source.sr)
    if channel_action == "add":
        ids = write_channel(target, out, "add", message=message, registry=defaults.registry)
    else:
        ids = write_channel(target, out, "replace", channel=channel_id, message=message, registry=defaults.registry)
    return ids[0]


def preprocess_files(
    paths: Iterable[Union[str, os.PathLike]],
    func: Callable[..., Any] = preprocess,
    **kwargs,
) -> BatchResult:
    """Run one orchestrator per file; failures are collected, not raised.

    For instance ``preprocess_files(paths, emg_pp, config=EMGConfig(mains_frequency=60))``
    """
    log.info("batch %s over files", getattr(func, "__name__", func))
    return run_batch(paths, lambda path: func(path, **kwargs))
