"""Leading/subleading jet selection and the dijet gates."""

from __future__ import annotations

from dataclasses import dataclass
from functools import reduce
from typing import Iterable

from .kinematics import PI_HALF, dijet_asymmetry, eta_flip, wrap_angle
from .models import Jet, RegionCuts


@dataclass(frozen=True)
class LeadingPair:
    """Running state of the leading-pair reduction.

    `inclusive_pt` records the corrected pT of every jet folded in, in order,
    so callers can fill the inclusive spectrum before the pair gate.
    """

    leading: Jet | None = None
    leading_pt: float = -1.0
    subleading: Jet | None = None
    subleading_pt: float = -1.0
    inclusive_pt: tuple[float, ...] = ()

    @property
    def complete(self) -> bool:
        return self.leading is not None and self.subleading is not None


@dataclass(frozen=True)
class Dijet:
    """Leading/subleading pair that passed the back-to-back gate."""

    leading: Jet
    subleading: Jet
    leading_pt: float
    subleading_pt: float
    delta_phi_raw: float
    delta_phi: float
    delta_eta_noflip: float
    delta_eta: float
    flip: float

    @property
    def asymmetry(self) -> float:
        return dijet_asymmetry(self.leading_pt, self.subleading_pt)

    def passes_thresholds(self, leading_pt_min: float, subleading_pt_min: float) -> bool:
        """Strict corrected-pT thresholds on both jets."""
        return self.leading_pt > leading_pt_min and self.subleading_pt > subleading_pt_min


def update_leading_pair(state: LeadingPair, candidate: tuple[Jet, float]) -> LeadingPair:
    """Fold one `(jet, corrected_pt)` into the running state.

    Only strictly larger values promote, so ties keep the first-seen jet.
    """
    jet, pt = candidate
    inclusive = state.inclusive_pt + (pt,)
    if pt > state.leading_pt:
        return LeadingPair(
            leading=jet,
            leading_pt=pt,
            subleading=state.leading,
            subleading_pt=state.leading_pt,
            inclusive_pt=inclusive,
        )
    if pt > state.subleading_pt:
        return LeadingPair(
            leading=state.leading,
            leading_pt=state.leading_pt,
            subleading=jet,
            subleading_pt=pt,
            inclusive_pt=inclusive,
        )
    return LeadingPair(
        leading=state.leading,
        leading_pt=state.leading_pt,
        subleading=state.subleading,
        subleading_pt=state.subleading_pt,
        inclusive_pt=inclusive,
    )


def find_leading_pair(jets: Iterable[Jet], rho: float) -> LeadingPair:
    """Single-pass reduction over accepted jets using `pt - rho * area`."""
    return reduce(update_leading_pair, ((jet, jet.corrected_pt(rho)) for jet in jets), LeadingPair())


def make_dijet(pair: LeadingPair) -> Dijet | None:
    """Apply the pair gate and compute the dijet angular quantities.

    Returns `None` when fewer than two jets were folded in or when the raw
    azimuthal separation is below pi/2.
    """
    if pair.leading is None or pair.subleading is None:
        return None
    leading = pair.leading
    subleading = pair.subleading
    delta_phi_raw = leading.phi - subleading.phi
    if abs(delta_phi_raw) < PI_HALF:
        return None
    flip = eta_flip(leading.eta, subleading.eta)
    return Dijet(
        leading=leading,
        subleading=subleading,
        leading_pt=pair.leading_pt,
        subleading_pt=pair.subleading_pt,
        delta_phi_raw=delta_phi_raw,
        delta_phi=wrap_angle(delta_phi_raw, 0.0),
        delta_eta_noflip=leading.eta - subleading.eta,
        delta_eta=flip * leading.eta - flip * subleading.eta,
        flip=flip,
    )


def classify_regions(dijet: Dijet, partner_pt: float, cuts: RegionCuts) -> tuple[str, ...]:
    """Physical-cut regions a low-pT partner of this dijet falls in.

    Bands on `|delta_eta_jets|`: `dw` below the low gap, `md` between the
    gaps, `up` above the high gap. `hup`/`hdw` additionally require the
    leading jet at larger raw eta and a forward subleading jet. The regions
    are independent selections, not a partition.
    """
    if partner_pt >= cuts.partner_pt_max:
        return ()
    gap = abs(dijet.delta_eta)
    regions: list[str] = []
    if gap >= cuts.eta_gap_high:
        regions.append("up")
    if cuts.eta_gap_low <= gap < cuts.eta_gap_high:
        regions.append("md")
    if gap < cuts.eta_gap_low:
        regions.append("dw")
    ordered = dijet.leading.eta > dijet.subleading.eta and dijet.subleading.eta >= cuts.subleading_eta_min
    if ordered and gap >= cuts.eta_gap_low:
        regions.append("hup")
    if ordered and gap < cuts.eta_gap_low:
        regions.append("hdw")
    return tuple(regions)
