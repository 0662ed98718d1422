"""Event- and track-selection helpers.

Selection names are resolved once at startup into integer bit sets; the
per-event and per-track predicates below only test bits and numeric windows.
"""

from __future__ import annotations

import enum
from typing import Iterable, Sequence

from .models import (
    CentralityEstimator,
    Collision,
    EventCuts,
    Hadron,
    McEventInput,
    SplitCollisionMode,
    TrackCuts,
)


class EventSelectionBit(enum.IntFlag):
    """Event-selection bits attached to each collision by the ingestion layer."""

    SEL8 = 1 << 0
    SEL7 = 1 << 1
    SEL_KINT7 = 1 << 2
    SEL_TVX = 1 << 3
    SEL_NO_TIME_FRAME_BORDER = 1 << 4
    SEL_NO_ITS_RO_FRAME_BORDER = 1 << 5
    SEL_NO_SAME_BUNCH_PILEUP = 1 << 6
    SEL_IS_GOOD_ZVTX_FT0_VS_PV = 1 << 7
    SEL_NO_COLL_IN_TIME_RANGE_STANDARD = 1 << 8
    SEL_NO_COLL_IN_ROF_STANDARD = 1 << 9
    SEL_MC = 1 << 10


class TrackSelectionBit(enum.IntFlag):
    """Track-selection classes attached to each track by the ingestion layer."""

    GLOBAL = 1 << 0
    QUALITY = 1 << 1
    HYBRID = 1 << 2
    UNIFORM = 1 << 3
    QUALITY_WDCA = 1 << 4


_B = EventSelectionBit
_EVENT_SELECTIONS: dict[str, int] = {
    "": 0,
    "none": 0,
    "sel8": _B.SEL8,
    "sel7": _B.SEL7,
    "selkint7": _B.SEL_KINT7,
    "seltvx": _B.SEL_TVX,
    "selmc": _B.SEL_MC,
    "selnotimeframeborder": _B.SEL_NO_TIME_FRAME_BORDER,
    "selnoitsroframeborder": _B.SEL_NO_ITS_RO_FRAME_BORDER,
    "selnosamebunchpileup": _B.SEL_NO_SAME_BUNCH_PILEUP,
    "selisgoodzvtxft0vspv": _B.SEL_IS_GOOD_ZVTX_FT0_VS_PV,
    "selnocollintimerangestandard": _B.SEL_NO_COLL_IN_TIME_RANGE_STANDARD,
    "selnocollinrofstandard": _B.SEL_NO_COLL_IN_ROF_STANDARD,
    "sel8full": _B.SEL8 | _B.SEL_NO_SAME_BUNCH_PILEUP,
    "sel8fullpbpb": _B.SEL8 | _B.SEL_NO_COLL_IN_TIME_RANGE_STANDARD | _B.SEL_NO_COLL_IN_ROF_STANDARD,
    "selmcfull": _B.SEL_MC | _B.SEL_NO_SAME_BUNCH_PILEUP,
}

_TRACK_SELECTIONS: dict[str, int] = {
    "globaltracks": TrackSelectionBit.GLOBAL,
    "qualitytracks": TrackSelectionBit.QUALITY,
    "hybridtracks": TrackSelectionBit.HYBRID,
    "uniformtracks": TrackSelectionBit.UNIFORM,
    "qualitytrackswdca": TrackSelectionBit.QUALITY_WDCA,
}

NO_TRACK_SELECTION = -1


def event_selection_bits(selections: str) -> int:
    """Resolve a `+`-joined list of event-selection names into a bit set."""
    bits = 0
    for raw in selections.split("+"):
        key = raw.strip().lower()
        try:
            bits |= int(_EVENT_SELECTIONS[key])
        except KeyError as exc:
            supported = ", ".join(sorted(k for k in _EVENT_SELECTIONS if k))
            raise ValueError(
                f"Unknown event selection '{raw.strip()}'. Supported names: {supported}"
            ) from exc
    return bits


def event_selection_bits_from_names(names: Iterable[str]) -> int:
    """Encode the selection names an event passed into its bit set."""
    bits = 0
    for name in names:
        bits |= event_selection_bits(name)
    return bits


def track_selection_bit(name: str) -> int:
    """Resolve a track-selection name; `none` (or empty) disables the check."""
    key = name.strip().lower()
    if key in ("", "none"):
        return NO_TRACK_SELECTION
    try:
        return int(_TRACK_SELECTIONS[key])
    except KeyError as exc:
        supported = ", ".join(sorted(_TRACK_SELECTIONS))
        raise ValueError(
            f"Unknown track selection '{name}'. Supported names: {supported}, none"
        ) from exc


def track_selection_bits_from_names(names: Iterable[str]) -> int:
    """Encode the selection classes a track belongs to into its bit set."""
    bits = 0
    for name in names:
        bit = track_selection_bit(name)
        if bit != NO_TRACK_SELECTION:
            bits |= bit
    return bits


def select_collision(collision: Collision, required_bits: int, skip_mb_gap_events: bool = False) -> bool:
    """All required selection bits must be set; MB-gap events optionally rejected."""
    if skip_mb_gap_events and collision.is_mb_gap:
        return False
    return (collision.selection_bits & required_bits) == required_bits


def select_track(partner: Hadron, track_selection: int) -> bool:
    """Track-class check; particles (no selection class) always pass."""
    if track_selection == NO_TRACK_SELECTION:
        return True
    selection_class = partner.selection_class()
    if selection_class is None:
        return True
    return bool(selection_class & track_selection)


def in_occupancy_window(collision: Collision, cuts: EventCuts) -> bool:
    """Inclusive occupancy window used for reconstructed-level processing."""
    return cuts.occupancy_min <= collision.occupancy <= cuts.occupancy_max


def in_centrality_window(collision: Collision, cuts: EventCuts) -> bool:
    """Centrality window `[min, max)` for the configured estimator."""
    centrality = collision.centrality(CentralityEstimator(cuts.centrality_estimator))
    return cuts.centrality_min <= centrality < cuts.centrality_max


def in_vertex_window(pos_z: float, cuts: EventCuts) -> bool:
    return abs(pos_z) < cuts.vertex_z_cut


def in_track_window(partner: Hadron, cuts: TrackCuts) -> bool:
    """Kinematic acceptance `pt_min <= pt < pt_max`, `eta_min < eta < eta_max`."""
    return cuts.pt_min <= partner.pt < cuts.pt_max and cuts.eta_min < partner.eta < cuts.eta_max


def select_partners(partners: Sequence[Hadron], cuts: TrackCuts) -> list[Hadron]:
    """Apply the kinematic partner window before any correlation."""
    return [p for p in partners if in_track_window(p, cuts)]


def is_good_collision(collision: Collision, cuts: EventCuts, required_bits: int | None = None) -> bool:
    """Full reconstructed-event goodness predicate used by every path."""
    bits = event_selection_bits(cuts.event_selections) if required_bits is None else required_bits
    if not in_vertex_window(collision.pos_z, cuts):
        return False
    if not in_centrality_window(collision, cuts):
        return False
    if not select_collision(collision, bits, cuts.skip_mb_gap_events):
        return False
    return in_occupancy_window(collision, cuts)


MC_STAGES: tuple[str, ...] = (
    "allMcColl",
    "vertexZ",
    "noRecoColl",
    "splitColl",
    "recoEvtSel",
    "centralitycut",
    "occupancycut",
)


def mc_collision_stages(
    event: McEventInput,
    cuts: EventCuts,
    required_bits: int | None = None,
) -> tuple[tuple[str, ...], bool]:
    """Walk the truth-event gates in order.

    Returns the stages the event passed and whether it passed all of them.
    Centrality and occupancy are tested with strict inequalities; with the
    accept-first split mode only the first associated collision is inspected.
    """
    bits = event_selection_bits(cuts.event_selections) if required_bits is None else required_bits
    passed = ["allMcColl"]
    if abs(event.mc_collision.pos_z) > cuts.vertex_z_cut:
        return tuple(passed), False
    passed.append("vertexZ")
    collisions = event.reco_collisions
    if len(collisions) < 1:
        return tuple(passed), False
    passed.append("noRecoColl")
    if cuts.split_collisions == SplitCollisionMode.REJECT and len(collisions) > 1:
        return tuple(passed), False
    passed.append("splitColl")
    if cuts.split_collisions == SplitCollisionMode.ACCEPT_FIRST:
        collisions = collisions[:1]

    estimator = CentralityEstimator(cuts.centrality_estimator)
    if not any(select_collision(c, bits, cuts.skip_mb_gap_events) for c in collisions):
        return tuple(passed), False
    passed.append("recoEvtSel")
    if not any(cuts.centrality_min < c.centrality(estimator) < cuts.centrality_max for c in collisions):
        return tuple(passed), False
    passed.append("centralitycut")
    if not any(cuts.occupancy_min < c.occupancy < cuts.occupancy_max for c in collisions):
        return tuple(passed), False
    passed.append("occupancycut")
    return tuple(passed), True
