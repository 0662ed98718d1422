"""Input/output helpers for JSON inputs and tabular result export."""

from __future__ import annotations

import dataclasses
import json
from pathlib import Path
from typing import Any, Sequence

from .models import (
    AnalysisConfig,
    Collision,
    CorrelationTuple,
    EventCuts,
    EventInput,
    Jet,
    JetCuts,
    McCollision,
    McEventInput,
    MixingConfig,
    Particle,
    PtHatCuts,
    RegionCuts,
    Track,
    TrackCuts,
)
from .selection import event_selection_bits_from_names, track_selection_bits_from_names
from .sink import MemorySink

_CONFIG_SECTIONS: dict[str, type] = {
    "event": EventCuts,
    "track": TrackCuts,
    "jet": JetCuts,
    "pthat": PtHatCuts,
    "mixing": MixingConfig,
    "regions": RegionCuts,
}

_CORRELATION_COLUMNS = [f.name for f in dataclasses.fields(CorrelationTuple)]


def load_events_json(path: str | Path) -> list[EventInput]:
    """Load reconstructed events (data or detector-level simulation).

    Expected shape:
    {
      "events": [
        {"collision": {...}, "jets": [...], "tracks": [...]},
        ...
      ]
    }
    """
    data = _load_json(path)
    events_data = data.get("events")
    if not isinstance(events_data, list):
        raise ValueError("Events JSON must contain a list under key 'events'.")
    out: list[EventInput] = []
    for idx, event in enumerate(events_data):
        if not isinstance(event, dict):
            raise ValueError(f"Event entry at index {idx} must be an object.")
        collision = _parse_collision_item(event.get("collision"), idx=idx, context=f"{path}")
        context = f"event '{collision.collision_id}'"
        jets = tuple(
            _parse_jet_item(item, jidx, context, default_weight=collision.weight)
            for jidx, item in enumerate(_list_field(event, "jets", context))
        )
        tracks = tuple(
            _parse_track_item(item, tidx, context)
            for tidx, item in enumerate(_list_field(event, "tracks", context))
        )
        out.append(EventInput(collision=collision, jets=jets, tracks=tracks))
    return out


def load_mc_events_json(path: str | Path) -> list[McEventInput]:
    """Load truth events with their associated reconstructed collisions.

    Expected shape:
    {
      "mc_events": [
        {"mc_collision": {...}, "reco_collisions": [...], "jets": [...], "particles": [...]},
        ...
      ]
    }
    """
    data = _load_json(path)
    events_data = data.get("mc_events")
    if not isinstance(events_data, list):
        raise ValueError("MC events JSON must contain a list under key 'mc_events'.")
    out: list[McEventInput] = []
    for idx, event in enumerate(events_data):
        if not isinstance(event, dict):
            raise ValueError(f"MC event entry at index {idx} must be an object.")
        mc_collision = _parse_mc_collision_item(event.get("mc_collision"), idx=idx, context=f"{path}")
        context = f"MC event '{mc_collision.mc_collision_id}'"
        reco = tuple(
            _parse_collision_item(item, cidx, context)
            for cidx, item in enumerate(_list_field(event, "reco_collisions", context, required=False))
        )
        jets = tuple(
            _parse_jet_item(item, jidx, context, default_weight=mc_collision.weight)
            for jidx, item in enumerate(_list_field(event, "jets", context))
        )
        particles = tuple(
            _parse_particle_item(item, pidx, context)
            for pidx, item in enumerate(_list_field(event, "particles", context))
        )
        out.append(
            McEventInput(mc_collision=mc_collision, reco_collisions=reco, jets=jets, particles=particles)
        )
    return out


def load_config_json(path: str | Path) -> AnalysisConfig:
    """Build an `AnalysisConfig` from a JSON object of optional sections.

    Sections: `event`, `track`, `jet`, `pthat`, `mixing`, `regions`. Keys not
    known to a section are rejected rather than ignored.
    """
    data = _load_json(path)
    unknown = sorted(set(data) - set(_CONFIG_SECTIONS))
    if unknown:
        raise ValueError(
            f"Unknown configuration section(s) {', '.join(unknown)}. "
            f"Supported: {', '.join(_CONFIG_SECTIONS)}"
        )
    kwargs: dict[str, Any] = {}
    for section, cls in _CONFIG_SECTIONS.items():
        if section in data:
            kwargs[section] = _parse_config_section(cls, data[section], section)
    return AnalysisConfig(**kwargs)


def write_correlations_table(path: str | Path, tuples: Sequence[CorrelationTuple]) -> None:
    """Write correlation tuples into Parquet/CSV/Pickle table."""
    pd = _require_pandas()
    df = pd.DataFrame(_correlation_rows(tuples), columns=_CORRELATION_COLUMNS)
    out = Path(path)
    suffix = out.suffix.lower()
    if suffix == ".parquet":
        df.to_parquet(out, index=False)
    elif suffix in (".pkl", ".pickle"):
        df.to_pickle(out)
    elif suffix == ".csv":
        df.to_csv(out, index=False)
    else:
        raise ValueError(
            f"Unsupported output format '{suffix}'. Use .parquet, .csv, or .pkl"
        )


def write_counters_json(path: str | Path, sink: MemorySink) -> None:
    """Dump the sink counters as a flat, sorted JSON object."""
    counters = {name: sink.counters[name] for name in sorted(sink.counters)}
    Path(path).write_text(json.dumps(counters, indent=2) + "\n", encoding="utf-8")


def _correlation_rows(tuples: Sequence[CorrelationTuple]) -> list[dict[str, Any]]:
    """Flatten correlation tuples into DataFrame-ready row dictionaries."""
    rows: list[dict[str, Any]] = []
    for item in tuples:
        row = dataclasses.asdict(item)
        row["regions"] = ",".join(item.regions)
        rows.append(row)
    return rows


def _require_pandas():
    """Import pandas lazily and provide a clear installation hint on failure."""
    try:
        import pandas as pd  # type: ignore
    except ModuleNotFoundError as exc:
        raise ModuleNotFoundError(
            "pandas is required to write output tables. Install pandas and pyarrow."
        ) from exc
    return pd


def _parse_config_section(cls: type, item: Any, section: str):
    if not isinstance(item, dict):
        raise ValueError(f"Configuration section '{section}' must be an object.")
    known = {f.name: f for f in dataclasses.fields(cls)}
    unknown = sorted(set(item) - set(known))
    if unknown:
        raise ValueError(
            f"Unknown key(s) in configuration section '{section}': {', '.join(unknown)}"
        )
    values: dict[str, Any] = {}
    for key, value in item.items():
        # Bin edges arrive as JSON lists.
        values[key] = tuple(float(v) for v in value) if isinstance(value, list) else value
    try:
        return cls(**values)
    except TypeError as exc:
        raise ValueError(f"Invalid configuration section '{section}': {exc}") from exc


def _parse_collision_item(item: Any, idx: int, context: str) -> Collision:
    """Parse one reconstructed-collision dictionary into a `Collision`."""
    if not isinstance(item, dict):
        raise ValueError(f"Collision at index {idx} in {context} must be an object.")
    if "selections" in item:
        bits = event_selection_bits_from_names(_string_list(item["selections"], "selections"))
    else:
        bits = int(item.get("selection_bits", 0))
    mc_id = item.get("mc_collision_id")
    return Collision(
        collision_id=str(item.get("collision_id", f"coll{idx}")),
        pos_z=float(item["pos_z"]),
        cent_ft0c=float(item.get("cent_ft0c", -1.0)),
        cent_ft0a=float(item.get("cent_ft0a", -1.0)),
        cent_ft0m=float(item.get("cent_ft0m", -1.0)),
        mult_ntracks_global=float(item.get("mult_ntracks_global", 0.0)),
        mult_ft0m=float(item.get("mult_ft0m", 0.0)),
        mult_ft0a=float(item.get("mult_ft0a", 0.0)),
        occupancy=int(item.get("occupancy", 0)),
        rho=float(item.get("rho", 0.0)),
        weight=float(item.get("weight", 1.0)),
        selection_bits=bits,
        is_mb_gap=bool(item.get("is_mb_gap", False)),
        mc_collision_id=str(mc_id) if mc_id is not None else None,
    )


def _parse_mc_collision_item(item: Any, idx: int, context: str) -> McCollision:
    if not isinstance(item, dict):
        raise ValueError(f"MC collision at index {idx} in {context} must be an object.")
    return McCollision(
        mc_collision_id=str(item.get("mc_collision_id", f"mccoll{idx}")),
        pos_z=float(item["pos_z"]),
        rho=float(item.get("rho", 0.0)),
        weight=float(item.get("weight", 1.0)),
        mult_ft0a=float(item.get("mult_ft0a", 0.0)),
        mult_ntracks_global=float(item.get("mult_ntracks_global", 0.0)),
        is_mb_gap=bool(item.get("is_mb_gap", False)),
    )


def _parse_jet_item(item: Any, idx: int, context: str, default_weight: float = 1.0) -> Jet:
    """Parse one jet dictionary; `radius` (0.4) is accepted in place of `r` (40)."""
    if not isinstance(item, dict):
        raise ValueError(f"Jet entry at index {idx} in {context} must be an object.")
    if "r" in item:
        r = int(item["r"])
    elif "radius" in item:
        r = int(round(float(item["radius"]) * 100.0))
    else:
        raise ValueError(f"Jet at index {idx} in {context} must define 'r' or 'radius'.")
    constituents = item.get("constituent_ids", [])
    return Jet(
        jet_id=str(item.get("jet_id", f"jet{idx}")),
        pt=float(item["pt"]),
        eta=float(item["eta"]),
        phi=float(item["phi"]),
        r=r,
        area=float(item.get("area", 0.0)),
        constituent_ids=tuple(_string_list(constituents, "constituent_ids")),
        event_weight=float(item.get("event_weight", default_weight)),
    )


def _parse_track_item(item: Any, idx: int, context: str) -> Track:
    if not isinstance(item, dict):
        raise ValueError(f"Track entry at index {idx} in {context} must be an object.")
    if "selections" in item:
        bits = track_selection_bits_from_names(_string_list(item["selections"], "selections"))
    else:
        bits = int(item.get("selection_bits", 0))
    return Track(
        track_id=str(item.get("track_id", f"trk{idx}")),
        pt=float(item["pt"]),
        eta=float(item["eta"]),
        phi=float(item["phi"]),
        selection_bits=bits,
    )


def _parse_particle_item(item: Any, idx: int, context: str) -> Particle:
    if not isinstance(item, dict):
        raise ValueError(f"Particle entry at index {idx} in {context} must be an object.")
    return Particle(
        particle_id=str(item.get("particle_id", f"part{idx}")),
        pt=float(item["pt"]),
        eta=float(item["eta"]),
        phi=float(item["phi"]),
    )


def _list_field(data: dict[str, Any], key: str, context: str, required: bool = True) -> list[Any]:
    value = data.get(key)
    if value is None and not required:
        return []
    if not isinstance(value, list):
        raise ValueError(f"{context} must contain a list under key '{key}'.")
    return value


def _string_list(value: Any, field_name: str) -> list[str]:
    if not isinstance(value, list):
        raise ValueError(f"Field '{field_name}' must be a list of strings.")
    return [str(x) for x in value]


def _load_json(path: str | Path) -> dict[str, Any]:
    """Read and validate a JSON object document from disk."""
    raw = Path(path).read_text(encoding="utf-8")
    data = json.loads(raw)
    if not isinstance(data, dict):
        raise ValueError(f"JSON document at {path} must be an object.")
    return data
