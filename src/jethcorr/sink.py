"""Output sinks for fills and diagnostic counters.

The correlator never owns histograms; it emits named fills
(`fill(name, *values, weight=...)`) and monotonic counters
(`increment(name, amount)`) to whatever sink the caller provides.
"""

from __future__ import annotations

from collections import Counter, defaultdict
from dataclasses import dataclass, field
from typing import Any, Protocol


class FillSink(Protocol):
    """Interface every output sink implements."""

    def fill(self, name: str, *values: float, weight: float = 1.0) -> None: ...

    def increment(self, counter: str, amount: float = 1.0) -> None: ...


@dataclass
class MemorySink:
    """Keep every fill and counter in memory for later export."""

    fills: dict[str, list[tuple[tuple[float, ...], float]]] = field(
        default_factory=lambda: defaultdict(list)
    )
    counters: Counter = field(default_factory=Counter)

    def fill(self, name: str, *values: float, weight: float = 1.0) -> None:
        self.fills[name].append((tuple(float(v) for v in values), float(weight)))

    def increment(self, counter: str, amount: float = 1.0) -> None:
        self.counters[counter] += amount

    def entries(self, name: str) -> list[tuple[tuple[float, ...], float]]:
        """Recorded `(values, weight)` entries of one fill name."""
        return list(self.fills.get(name, ()))

    def values(self, name: str) -> list[tuple[float, ...]]:
        return [values for values, _ in self.fills.get(name, ())]

    def count(self, counter: str) -> float:
        return self.counters.get(counter, 0)

    def to_frames(self) -> dict[str, Any]:
        """Return one pandas DataFrame per fill name (`x0..xN`, `weight`)."""
        pd = _require_pandas()
        frames = {}
        for name, entries in self.fills.items():
            width = max((len(values) for values, _ in entries), default=0)
            rows = []
            for values, weight in entries:
                row = {f"x{i}": v for i, v in enumerate(values)}
                row["weight"] = weight
                rows.append(row)
            frames[name] = pd.DataFrame(rows, columns=[f"x{i}" for i in range(width)] + ["weight"])
        return frames

    def counters_frame(self):
        pd = _require_pandas()
        return pd.DataFrame(
            sorted(self.counters.items()), columns=["counter", "value"]
        )


class NullSink:
    """Discard everything; for callers that only want the returned tuples."""

    def fill(self, name: str, *values: float, weight: float = 1.0) -> None:
        return None

    def increment(self, counter: str, amount: float = 1.0) -> None:
        return None


def _require_pandas():
    """Import pandas lazily and provide a clear installation hint on failure."""
    try:
        import pandas as pd  # type: ignore
    except ModuleNotFoundError as exc:
        raise ModuleNotFoundError(
            "pandas is required to export sink contents. Install pandas and pyarrow."
        ) from exc
    return pd
