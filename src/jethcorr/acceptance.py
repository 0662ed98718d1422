"""Per-jet admissibility checks applied before any correlation."""

from __future__ import annotations

from typing import Mapping, Sequence

from .kinematics import jet_area_limit, pt_hat
from .models import (
    SENTINEL_DISABLED_MAX,
    SENTINEL_DISABLED_MIN,
    Hadron,
    Jet,
    JetCuts,
    PtHatCuts,
    TrackCuts,
)


def is_accepted_jet(
    jet: Jet,
    constituents: Sequence[Hadron],
    cuts: JetCuts,
    particle_level: bool = False,
) -> bool:
    """Apply the area-fraction and leading-constituent pT cuts to one jet.

    The constituent window is skipped when both bounds sit at their sentinels,
    and for particle-level jets unless `check_lead_constituent_pt_for_mcp` is on.
    """
    if cuts.area_fraction_min > SENTINEL_DISABLED_MIN:
        if jet.area < jet_area_limit(cuts.area_fraction_min, jet.r):
            return False

    check_min = cuts.leading_constituent_pt_min > SENTINEL_DISABLED_MIN
    check_max = cuts.leading_constituent_pt_max < SENTINEL_DISABLED_MAX
    if not check_min and not check_max:
        return True
    if particle_level and not cuts.check_lead_constituent_pt_for_mcp:
        return True

    has_min_constituent = not check_min
    below_max = True
    for constituent in constituents:
        if check_min and constituent.pt >= cuts.leading_constituent_pt_min:
            has_min_constituent = True
        if check_max and constituent.pt > cuts.leading_constituent_pt_max:
            below_max = False
    return has_min_constituent and below_max


def is_in_eta_acceptance(jet: Jet, jet_cuts: JetCuts, track_cuts: TrackCuts) -> bool:
    """Keep the full jet cone inside the track acceptance and the jet window.

    A jet-eta bound left at its sentinel (below -98 / above 98) falls back to
    the fiducial track bound shrunk by the jet radius.
    """
    radius = jet.radius
    lower = track_cuts.eta_min + radius
    upper = track_cuts.eta_max - radius
    if jet_cuts.eta_min >= SENTINEL_DISABLED_MIN:
        lower = max(lower, jet_cuts.eta_min)
    if jet_cuts.eta_max <= -SENTINEL_DISABLED_MIN:
        upper = min(upper, jet_cuts.eta_max)
    return lower <= jet.eta <= upper


def is_selected_radius(jet: Jet, cuts: JetCuts) -> bool:
    """Exact match against the selected resolution parameter (R x 100)."""
    return jet.r == cuts.selected_r


def passes_pt_hat(jet: Jet, weight: float, cuts: PtHatCuts, particle_level: bool = False) -> bool:
    """Reject jets far above the scale implied by their generation weight."""
    scale = pt_hat(weight, cuts.exponent)
    max_factor = cuts.max_mcp if particle_level else cuts.max_mcd
    if jet.pt > max_factor * scale:
        return False
    return not scale < cuts.absolute_min


def constituents_of(jet: Jet, by_id: Mapping[str, Hadron]) -> list[Hadron]:
    """Resolve a jet's constituent ids against its event's track/particle table."""
    return [by_id[cid] for cid in jet.constituent_ids if cid in by_id]
