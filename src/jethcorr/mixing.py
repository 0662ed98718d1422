"""Event-mixing pools keyed by (z-vertex, multiplicity) bins.

Each pool keeps the most recent `events_mixed` events of its bin (FIFO). A new
event is paired with every buffered event of the same bin, most recent first,
and is buffered afterwards, so an event is never paired with itself.
"""

from __future__ import annotations

import logging
from bisect import bisect_right
from collections import deque
from dataclasses import dataclass
from typing import Generic, Iterable, Iterator, Protocol, TypeVar

from .models import MixingConfig

logger = logging.getLogger(__name__)


class _Binnable(Protocol):
    pos_z: float

    def multiplicity(self, estimator: str = ...) -> float: ...


class MixableEvent(Protocol):
    @property
    def event_id(self) -> str: ...

    @property
    def collision(self) -> _Binnable: ...


E = TypeVar("E", bound=MixableEvent)

OUTSIDE_BINS = -1


@dataclass(frozen=True)
class VariableBinning:
    """Variable-width axis; values outside `[edges[0], edges[-1])` are dropped."""

    edges: tuple[float, ...]

    @property
    def n_bins(self) -> int:
        return len(self.edges) - 1

    def index(self, value: float) -> int:
        if not self.edges[0] <= value < self.edges[-1]:
            return OUTSIDE_BINS
        return bisect_right(self.edges, value) - 1


@dataclass(frozen=True)
class PoolBinning:
    """Two-dimensional pool key built from z-vertex and multiplicity."""

    z: VariableBinning
    multiplicity: VariableBinning
    multiplicity_estimator: str = "ntracks_global"

    @classmethod
    def from_config(cls, config: MixingConfig) -> "PoolBinning":
        return cls(
            z=VariableBinning(tuple(config.bins_z)),
            multiplicity=VariableBinning(tuple(config.bins_multiplicity)),
            multiplicity_estimator=config.multiplicity_estimator,
        )

    @property
    def n_bins(self) -> int:
        return self.z.n_bins * self.multiplicity.n_bins

    def bin(self, pos_z: float, multiplicity: float) -> int:
        """Flattened pool index `iz * n_mult + imult`, or -1 outside the axes."""
        iz = self.z.index(pos_z)
        im = self.multiplicity.index(multiplicity)
        if iz == OUTSIDE_BINS or im == OUTSIDE_BINS:
            return OUTSIDE_BINS
        return iz * self.multiplicity.n_bins + im

    def bin_of(self, event: MixableEvent) -> int:
        collision = event.collision
        return self.bin(collision.pos_z, collision.multiplicity(self.multiplicity_estimator))


@dataclass(frozen=True)
class MixedPair(Generic[E]):
    """Current event (jets side) paired with a buffered partner (tracks side)."""

    current: E
    partner: E
    pool_bin: int


class EventMixer(Generic[E]):
    """Bounded FIFO pools producing pairs of distinct, similar events.

    Pools live until `reset()`; the per-event bin cache is rebuilt for every
    processing step passed to `mix`.
    """

    def __init__(self, binning: PoolBinning, depth: int) -> None:
        if depth < 1:
            raise ValueError("Mixing depth must be at least 1.")
        self.binning = binning
        self.depth = depth
        self._pools: dict[int, deque[E]] = {}
        self._bin_cache: dict[str, int] = {}

    @classmethod
    def from_config(cls, config: MixingConfig) -> "EventMixer[E]":
        return cls(PoolBinning.from_config(config), config.events_mixed)

    def bin_of(self, event: E) -> int:
        key = self._bin_cache.get(event.event_id)
        if key is None:
            key = self.binning.bin_of(event)
            self._bin_cache[event.event_id] = key
        return key

    def begin_step(self) -> None:
        """Invalidate the per-step bin cache."""
        self._bin_cache.clear()

    def reset(self) -> None:
        """Drop every buffered event, e.g. between independent runs."""
        self._pools.clear()
        self._bin_cache.clear()

    def partners(self, event: E) -> list[E]:
        """Buffered partners of an event's bin, most recent first."""
        key = self.bin_of(event)
        if key == OUTSIDE_BINS:
            return []
        pool = self._pools.get(key)
        if not pool:
            return []
        return [p for p in reversed(pool) if p.event_id != event.event_id]

    def buffer(self, event: E) -> None:
        key = self.bin_of(event)
        if key == OUTSIDE_BINS:
            return
        pool = self._pools.get(key)
        if pool is None:
            pool = deque(maxlen=self.depth)
            self._pools[key] = pool
        pool.append(event)

    def mix(self, events: Iterable[E]) -> Iterator[MixedPair[E]]:
        """Yield mixed pairs for one processing step, buffering as it goes.

        Closing the generator early stops buffering; the events not yet reached
        are neither paired nor buffered.
        """
        self.begin_step()
        n_events = 0
        n_pairs = 0
        complete = False
        try:
            for event in events:
                n_events += 1
                key = self.bin_of(event)
                for partner in self.partners(event):
                    n_pairs += 1
                    yield MixedPair(current=event, partner=partner, pool_bin=key)
                self.buffer(event)
            complete = True
        finally:
            logger.debug(
                "Mixed %d pairs from %d events (%d pools)%s",
                n_pairs,
                n_events,
                len(self._pools),
                "" if complete else ", stopped early",
            )

    def pool_sizes(self) -> dict[int, int]:
        return {key: len(pool) for key, pool in sorted(self._pools.items())}
