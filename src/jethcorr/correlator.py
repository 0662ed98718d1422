"""High-level correlation engine for jets and associated hadrons."""

from __future__ import annotations

import logging
from contextlib import closing
from dataclasses import dataclass, field
from typing import Iterable, Sequence, Union

from .acceptance import (
    constituents_of,
    is_accepted_jet,
    is_in_eta_acceptance,
    is_selected_radius,
    passes_pt_hat,
)
from .dijet import Dijet, classify_regions, find_leading_pair, make_dijet
from .kinematics import delta_r, pt_hat, wrap_angle
from .mixing import EventMixer, MixedPair
from .models import (
    AnalysisConfig,
    CentralityEstimator,
    Collision,
    CorrelationTuple,
    EventInput,
    Jet,
    McEventInput,
    MixingFailurePolicy,
)
from .selection import (
    event_selection_bits,
    in_occupancy_window,
    in_vertex_window,
    is_good_collision,
    mc_collision_stages,
    select_collision,
    select_partners,
    select_track,
    track_selection_bit,
)
from .sink import FillSink, MemorySink

logger = logging.getLogger(__name__)

AnyEvent = Union[EventInput, McEventInput]

MODE_JET_HADRON = "jet-hadron"
MODE_LEADING_JET_HADRON = "leading-jet-hadron"
MODES = (MODE_JET_HADRON, MODE_LEADING_JET_HADRON)

PT_HAT_SCAN_STEPS = 20
PT_HAT_SCAN_STEP = 0.25


def _name(kind: str, base: str, mixed: bool = False, particle_level: bool = False) -> str:
    """Fill/counter name, e.g. `h_jeth_deta`, `h_mixjeth_deta`, `h_jeth_deta_part`."""
    if mixed:
        prefix = "mixmc_" if particle_level else "mix"
        return f"{kind}_{prefix}{base}"
    suffix = "_part" if particle_level else ""
    return f"{kind}_{base}{suffix}"


@dataclass
class JetHadronCorrelator:
    """Accumulate jet-hadron correlations and monitoring fills into a sink.

    One instance holds the mixing pools, so consecutive calls of the mixed
    variants keep pairing against earlier steps until `reset()`.
    """

    config: AnalysisConfig = field(default_factory=AnalysisConfig)
    sink: FillSink = field(default_factory=MemorySink)

    def __post_init__(self) -> None:
        self.event_bits = event_selection_bits(self.config.event.event_selections)
        self.track_selection = track_selection_bit(self.config.track.track_selections)
        self.failure_policy = MixingFailurePolicy(self.config.mixing.failure_policy)
        self.mixer: EventMixer[EventInput] = EventMixer.from_config(self.config.mixing)
        self.mc_mixer: EventMixer[McEventInput] = EventMixer.from_config(self.config.mixing)

    def reset(self) -> None:
        """Drop every buffered mixing partner."""
        self.mixer.reset()
        self.mc_mixer.reset()

    def is_good_collision(self, event: AnyEvent) -> bool:
        """Event goodness for a reconstructed or a truth event."""
        if isinstance(event, McEventInput):
            _, accepted = mc_collision_stages(event, self.config.event, self.event_bits)
            return accepted
        return is_good_collision(event.collision, self.config.event, self.event_bits)

    @staticmethod
    def event_weight(event: AnyEvent, weighted: bool) -> float:
        return event.collision.weight if weighted else 1.0

    def accepted_jets(self, event: AnyEvent, weighted: bool = False) -> list[Jet]:
        """Jets of the selected radius passing acceptance and, when weighted, pT-hat."""
        particle_level = isinstance(event, McEventInput)
        jet_cuts = self.config.jet
        by_id = {p.hadron_id: p for p in event.partners}
        out: list[Jet] = []
        for jet in event.jets:
            if not is_selected_radius(jet, jet_cuts):
                continue
            if not is_in_eta_acceptance(jet, jet_cuts, self.config.track):
                continue
            if not is_accepted_jet(jet, constituents_of(jet, by_id), jet_cuts, particle_level):
                continue
            if weighted and not passes_pt_hat(jet, jet.event_weight, self.config.pthat, particle_level):
                continue
            out.append(jet)
        return out

    def process_collision(self, collision: Collision, weighted: bool = False) -> bool:
        """Collision QC: staged counters and event-level fills.

        The vertex window acts as an ingestion filter and is not counted.
        """
        cuts = self.config.event
        if not in_vertex_window(collision.pos_z, cuts):
            return False
        weight = collision.weight if weighted else 1.0
        self.sink.increment("collisions.all", weight)
        if not select_collision(collision, self.event_bits, cuts.skip_mb_gap_events):
            return False
        self.sink.increment("collisions.selected", weight)
        if not in_occupancy_window(collision, cuts):
            return False
        self.sink.increment("collisions.occupancy", weight)

        centrality = collision.centrality(CentralityEstimator(cuts.centrality_estimator))
        multiplicity = collision.multiplicity(self.config.mixing.multiplicity_estimator)
        self.sink.fill("h_collisions_zvertex", collision.pos_z, weight=weight)
        self.sink.fill("h_collisions_multiplicity", multiplicity, weight=weight)
        self.sink.fill("h_centrality", centrality, weight=weight)
        self.sink.fill("h2_centrality_occupancy", centrality, collision.occupancy, weight=weight)
        return True

    def process_track_qc(self, event: AnyEvent, weighted: bool = False) -> int:
        """Fill pt and (eta, phi) of selected partners; returns how many."""
        if not self.is_good_collision(event):
            return 0
        particle_level = isinstance(event, McEventInput)
        weight = self.event_weight(event, weighted)
        n_selected = 0
        for partner in select_partners(event.partners, self.config.track):
            if not select_track(partner, self.track_selection):
                continue
            n_selected += 1
            self.sink.fill(_name("h", "track_pt", particle_level=particle_level), partner.pt, weight=weight)
            self.sink.fill(
                _name("h2", "track_eta_track_phi", particle_level=particle_level),
                partner.eta,
                partner.phi,
                weight=weight,
            )
        return n_selected

    def process_jet_spectra(self, event: AnyEvent, weighted: bool = False) -> list[Jet]:
        """Raw and area-subtracted jet spectra of the accepted jets.

        Weighted simulation additionally fills the pT-hat distribution and, at
        particle level, the `N x 0.25 x pTHat` cut scan.
        """
        if not self.is_good_collision(event):
            return []
        particle_level = isinstance(event, McEventInput)
        weight = self.event_weight(event, weighted)
        rho = event.collision.rho
        by_id = {p.hadron_id: p for p in event.partners}

        def fill(base: str, *values: float, kind: str = "h", w: float = weight) -> None:
            self.sink.fill(_name(kind, base, particle_level=particle_level), *values, weight=w)

        jets = self.accepted_jets(event, weighted)
        for jet in jets:
            if weighted:
                scale = pt_hat(jet.event_weight, self.config.pthat.exponent)
                fill("jet_pthat", scale, w=1.0)
                fill("jet_pthat_weighted", scale, w=jet.event_weight)
                if particle_level:
                    for step in range(1, PT_HAT_SCAN_STEPS + 1):
                        if jet.pt < step * PT_HAT_SCAN_STEP * scale:
                            fill("jet_ptcut", jet.pt, step * PT_HAT_SCAN_STEP, kind="h2", w=jet.event_weight)

            n_constituents = len(jet.constituent_ids)
            fill("jet_pt", jet.pt)
            fill("jet_eta", jet.eta)
            fill("jet_phi", jet.phi)
            fill("jet_area", jet.area)
            fill("jet_ntracks", n_constituents)
            for constituent in constituents_of(jet, by_id):
                fill("jet_pt_track_pt", jet.pt, constituent.pt, kind="h2")

            corrected = jet.corrected_pt(rho)
            fill("jet_pt_rhoareasubtracted", corrected)
            if corrected > 0:
                fill("jet_eta_rhoareasubtracted", jet.eta)
                fill("jet_phi_rhoareasubtracted", jet.phi)
                fill("jet_area_rhoareasubtracted", jet.area)
                fill("jet_ntracks_rhoareasubtracted", n_constituents)
        return jets

    def process_jet_hadron(self, event: AnyEvent, weighted: bool = False) -> list[CorrelationTuple]:
        """Same-event inclusive jet-hadron correlations."""
        if not self._accept_event(event, _name("stats", "jeth")):
            return []
        return self._jet_hadron_pairs(event, event, weighted)

    def process_mixed_jet_hadron(
        self,
        events: Iterable[AnyEvent],
        weighted: bool = False,
        particle_level: bool = False,
    ) -> list[CorrelationTuple]:
        """Inclusive jet-hadron correlations of jets with tracks of pooled events."""
        scope = _name("stats", "jeth", mixed=True)
        results: list[CorrelationTuple] = []
        with closing(self._mixer(particle_level).mix(events)) as pairs:
            for pair in pairs:
                self.sink.increment(f"{scope}.mixed_events")
                if not (self.is_good_collision(pair.current) and self.is_good_collision(pair.partner)):
                    if self._mixing_failed("bad_collision", pair):
                        break
                    continue
                results.extend(self._jet_hadron_pairs(pair.current, pair.partner, weighted, pair))
        return results

    def process_leading_jet_hadron(self, event: AnyEvent, weighted: bool = False) -> list[CorrelationTuple]:
        """Same-event leading-jet-hadron correlations.

        Truth events go through the split-collision stages; reconstructed ones
        through the collision goodness predicate.
        """
        particle_level = isinstance(event, McEventInput)
        if not self._accept_event(event, _name("stats", "leadjeth", particle_level=particle_level)):
            return []
        weight = self.event_weight(event, weighted)
        if not particle_level:
            centrality = event.collision.centrality(CentralityEstimator(self.config.event.centrality_estimator))
            self.sink.fill("h_leadjeth_centrality", centrality, weight=weight)
        tuples = self._leading_pairs(event, event, weighted)
        return tuples or []

    def process_mixed_leading_jet_hadron(
        self,
        events: Iterable[AnyEvent],
        weighted: bool = False,
        particle_level: bool = False,
    ) -> list[CorrelationTuple]:
        """Leading-jet-hadron correlations of a dijet with partners of pooled events.

        A pair whose events fail the goodness predicate, or whose current event
        has no dijet passing the azimuthal gate, follows the failure policy.
        """
        scope = _name("stats", "leadjeth", mixed=True, particle_level=particle_level)
        results: list[CorrelationTuple] = []
        with closing(self._mixer(particle_level).mix(events)) as pairs:
            for pair in pairs:
                self.sink.increment(f"{scope}.mixed_events")
                if not (self.is_good_collision(pair.current) and self.is_good_collision(pair.partner)):
                    if self._mixing_failed("bad_collision", pair):
                        break
                    continue
                tuples = self._leading_pairs(pair.current, pair.partner, weighted, pair)
                if tuples is None:
                    if self._mixing_failed("no_dijet", pair):
                        break
                    continue
                results.extend(tuples)
        logger.debug(
            "Mixed leading-jet-hadron step: %d tuples, pools %s",
            len(results),
            self._mixer(particle_level).pool_sizes(),
        )
        return results

    def process_events(
        self,
        events: Sequence[AnyEvent],
        mode: str = MODE_LEADING_JET_HADRON,
        mixed: bool = False,
        weighted: bool = False,
    ) -> list[CorrelationTuple]:
        """Run one processing step of events through the selected mode."""
        if mode not in MODES:
            raise ValueError(f"Unknown correlation mode '{mode}'. Use one of: {', '.join(MODES)}")
        if mixed:
            particle_level = bool(events) and isinstance(events[0], McEventInput)
            if mode == MODE_JET_HADRON:
                return self.process_mixed_jet_hadron(events, weighted, particle_level)
            return self.process_mixed_leading_jet_hadron(events, weighted, particle_level)
        out: list[CorrelationTuple] = []
        for event in events:
            if mode == MODE_JET_HADRON:
                out.extend(self.process_jet_hadron(event, weighted))
            else:
                out.extend(self.process_leading_jet_hadron(event, weighted))
        return out

    def _mixer(self, particle_level: bool) -> EventMixer:
        return self.mc_mixer if particle_level else self.mixer

    def _accept_event(self, event: AnyEvent, scope: str) -> bool:
        if isinstance(event, McEventInput):
            stages, accepted = mc_collision_stages(event, self.config.event, self.event_bits)
            for stage in stages:
                self.sink.increment(f"{scope}.{stage}")
            return accepted
        self.sink.increment(f"{scope}.all")
        if not is_good_collision(event.collision, self.config.event, self.event_bits):
            return False
        self.sink.increment(f"{scope}.selected")
        return True

    def _mixing_failed(self, reason: str, pair: MixedPair) -> bool:
        """Apply the failure policy; True stops the rest of the step."""
        self.sink.increment(f"mixing.failed.{reason}")
        if self.failure_policy is MixingFailurePolicy.ABORT:
            logger.warning(
                "Aborting mixed accumulation at pair (%s, %s): %s",
                pair.current.event_id,
                pair.partner.event_id,
                reason,
            )
            return True
        return False

    def _jet_hadron_pairs(
        self,
        trigger_event: AnyEvent,
        partner_event: AnyEvent,
        weighted: bool,
        mixed_pair: MixedPair | None = None,
    ) -> list[CorrelationTuple]:
        mixed = mixed_pair is not None
        particle_level = isinstance(trigger_event, McEventInput)
        scope = _name("stats", "jeth", mixed=mixed)
        weight = self.event_weight(trigger_event, weighted)
        rho = trigger_event.collision.rho
        pt_floor = self.config.jet.subleading_jet_pt_min
        partners = select_partners(partner_event.partners, self.config.track)

        results: list[CorrelationTuple] = []
        for jet in self.accepted_jets(trigger_event, weighted):
            self.sink.increment(f"{scope}.jets")
            trigger_pt = jet.corrected_pt(rho)
            if trigger_pt < pt_floor:
                continue
            self.sink.increment(f"{scope}.jets_above_floor")
            for partner in partners:
                self.sink.increment(f"{scope}.pairs")
                if not select_track(partner, self.track_selection):
                    continue
                self.sink.increment(f"{scope}.pairs_accepted")
                deta = partner.eta - jet.eta
                dphi = wrap_angle(partner.phi - jet.phi)
                dr = delta_r(deta, dphi)
                self.sink.fill(
                    _name("thn", "jeth_correlations", mixed, particle_level),
                    trigger_pt,
                    partner.pt,
                    deta,
                    dphi,
                    dr,
                    weight=weight,
                )
                results.append(
                    CorrelationTuple(
                        mode=MODE_JET_HADRON,
                        mixed=mixed,
                        event_id=trigger_event.event_id,
                        trigger_pt=trigger_pt,
                        partner_pt=partner.pt,
                        delta_eta_total=deta,
                        delta_eta=deta,
                        delta_phi=dphi,
                        weight=weight,
                        delta_r=dr,
                        pool_bin=mixed_pair.pool_bin if mixed else None,
                        partner_event_id=partner_event.event_id if mixed else None,
                    )
                )
        return results

    def _leading_pairs(
        self,
        trigger_event: AnyEvent,
        partner_event: AnyEvent,
        weighted: bool,
        mixed_pair: MixedPair | None = None,
    ) -> list[CorrelationTuple] | None:
        """Dijet monitoring and leading-jet x partner tuples.

        Returns `None` when there is no pair or the azimuthal gate fails, and an
        empty list when the dijet misses the pt thresholds.
        """
        mixed = mixed_pair is not None
        particle_level = isinstance(trigger_event, McEventInput)
        scope = _name("stats", "leadjeth", mixed, particle_level)
        weight = self.event_weight(trigger_event, weighted)

        def fill(kind: str, base: str, *values: float) -> None:
            self.sink.fill(_name(kind, base, mixed, particle_level), *values, weight=weight)

        pair = find_leading_pair(self.accepted_jets(trigger_event, weighted), trigger_event.collision.rho)
        for corrected in pair.inclusive_pt:
            fill("h", "inclusivejet_corrpt", corrected)
        dijet = make_dijet(pair)
        if dijet is None:
            return None
        self.sink.increment(f"{scope}.dijets")
        fill("h", "dijet_dphi", dijet.delta_phi_raw)
        fill("h", "leadjet_pt", dijet.leading.pt)
        fill("h", "subleadjet_pt", dijet.subleading.pt)
        fill("h", "leadjet_corrpt", dijet.leading_pt)
        fill("h", "subleadjet_corrpt", dijet.subleading_pt)

        jet_cuts = self.config.jet
        if not dijet.passes_thresholds(jet_cuts.leading_jet_pt_min, jet_cuts.subleading_jet_pt_min):
            return []
        self.sink.increment(f"{scope}.dijets_cut")
        self._fill_dijet(dijet, fill)

        results: list[CorrelationTuple] = []
        leading = dijet.leading
        for partner in select_partners(partner_event.partners, self.config.track):
            self.sink.increment(f"{scope}.pairs")
            if not select_track(partner, self.track_selection):
                continue
            self.sink.increment(f"{scope}.pairs_accepted")
            deta_total = partner.eta - leading.eta
            deta = dijet.flip * deta_total
            dphi = wrap_angle(partner.phi - leading.phi)
            regions = classify_regions(dijet, partner.pt, self.config.regions)

            fill("h", "jeth_detatot", deta_total)
            fill("h", "jeth_deta", deta)
            fill("h", "jeth_dphi", dphi)
            fill("h2", "jeth_deta_dphi", deta, dphi)
            fill(
                "thn",
                "ljeth_correlations",
                dijet.leading_pt,
                dijet.subleading_pt,
                partner.pt,
                dijet.delta_eta,
                deta,
                dphi,
            )
            for region in regions:
                fill("h2", f"jeth_physicalcuts{region}_deta_dphi", deta, dphi)
            results.append(
                CorrelationTuple(
                    mode=MODE_LEADING_JET_HADRON,
                    mixed=mixed,
                    event_id=trigger_event.event_id,
                    trigger_pt=dijet.leading_pt,
                    partner_pt=partner.pt,
                    delta_eta_total=deta_total,
                    delta_eta=deta,
                    delta_phi=dphi,
                    weight=weight,
                    subleading_pt=dijet.subleading_pt,
                    delta_eta_jets=dijet.delta_eta,
                    pool_bin=mixed_pair.pool_bin if mixed else None,
                    partner_event_id=partner_event.event_id if mixed else None,
                    regions=regions,
                )
            )
        return results

    @staticmethod
    def _fill_dijet(dijet: Dijet, fill) -> None:
        fill("h", "leadjet_eta", dijet.leading.eta)
        fill("h", "leadjet_phi", dijet.leading.phi)
        fill("h", "subleadjet_eta", dijet.subleading.eta)
        fill("h", "subleadjet_phi", dijet.subleading.phi)
        fill("h2", "dijet_detanoflip_dphi", dijet.delta_eta_noflip, dijet.delta_phi)
        fill("h2", "dijet_deta_dphi", dijet.delta_eta, dijet.delta_phi)
        fill("h", "dijet_asymmetry", dijet.asymmetry)
