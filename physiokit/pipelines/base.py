"""Pipeline abstractions shared by the orchestrators."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Hashable, Iterable, Protocol

import numpy as np

from ..channels.model import Channel
from ..exceptions import PhysioError

log = logging.getLogger(__name__)


class Stage(Protocol):
    """A pipeline stage transforming samples at a given rate."""

    name: str

    def apply(self, samples: np.ndarray, sr: float) -> tuple[np.ndarray, float]: ...


class Pipeline:
    """Simple sequential pipeline.

    Stages run in order; the first failing stage aborts the run and its
    exception propagates, so nothing downstream sees a partial result.
    """

    def __init__(self, stages: Iterable[Stage]):
        self.stages = list(stages)

    def run(self, samples: np.ndarray, sr: float) -> tuple[np.ndarray, float]:
        y, rate = np.asarray(samples, dtype=float), float(sr)
        for stage in self.stages:
            log.debug("stage %s at %g Hz", stage.name, rate)
            y, rate = stage.apply(y, rate)
        return y, rate

    def run_channel(self, channel: Channel) -> Channel:
        samples = channel.require_waveform("pipeline " + " > ".join(s.name for s in self.stages))
        y, rate = self.run(samples, channel.sr)
        return channel.with_data(y, sr=rate)


@dataclass
class BatchResult:
    """Aggregate outcome of a multi-item run.

    Attributes:
        succeeded: Result per item that went through.
        failed: Failure reason per item that was skipped.
        output: Output file written by the run, if any.
    """

    succeeded: dict[Hashable, Any] = field(default_factory=dict)
    failed: dict[Hashable, str] = field(default_factory=dict)
    output: Path | None = None

    @property
    def ok(self) -> bool:
        return not self.failed

    def record_failure(self, item: Hashable, error: Exception) -> None:
        reason = f"{type(error).__name__}: {error}"
        self.failed[item] = reason
        log.warning("skipping %s: %s", item, reason)


def run_batch(items: Iterable[Hashable], func: Callable[[Any], Any]) -> BatchResult:
    """Apply ``func`` to every item, recording failures instead of raising."""
    result = BatchResult()
    for item in items:
        try:
            result.succeeded[item] = func(item)
        except PhysioError as e:
            result.record_failure(item, e)
    return result
