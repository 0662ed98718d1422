"""Unit tests for event/track selection and jet acceptance."""

from __future__ import annotations

import unittest

from jethcorr import Collision, EventCuts, Jet, JetCuts, McCollision, McEventInput, Particle, PtHatCuts, Track, TrackCuts
from jethcorr.acceptance import is_accepted_jet, is_in_eta_acceptance, is_selected_radius, passes_pt_hat
from jethcorr.models import SplitCollisionMode
from jethcorr.selection import (
    NO_TRACK_SELECTION,
    EventSelectionBit,
    TrackSelectionBit,
    event_selection_bits,
    is_good_collision,
    mc_collision_stages,
    select_track,
    track_selection_bit,
)

SEL8 = int(EventSelectionBit.SEL8)


class TestSelection(unittest.TestCase):
    """Validate selection-name resolution and the goodness predicates."""

    @staticmethod
    def _collision(cid: str = "c0", **kwargs) -> Collision:
        values = {"pos_z": 0.0, "cent_ft0m": 10.0, "selection_bits": SEL8}
        values.update(kwargs)
        return Collision(collision_id=cid, **values)

    def test_event_selection_names_resolve_to_bits(self) -> None:
        bits = event_selection_bits("sel8+selNoSameBunchPileup")
        self.assertEqual(bits, int(EventSelectionBit.SEL8 | EventSelectionBit.SEL_NO_SAME_BUNCH_PILEUP))
        self.assertEqual(event_selection_bits("sel8Full"), bits)
        self.assertEqual(event_selection_bits("none"), 0)
        with self.assertRaises(ValueError):
            event_selection_bits("sel9")

    def test_track_selection_names(self) -> None:
        self.assertEqual(track_selection_bit("globalTracks"), int(TrackSelectionBit.GLOBAL))
        self.assertEqual(track_selection_bit("none"), NO_TRACK_SELECTION)
        with self.assertRaises(ValueError):
            track_selection_bit("goldenTracks")

    def test_select_track_checks_class_bits(self) -> None:
        track = Track("t0", pt=1.0, eta=0.0, phi=0.0, selection_bits=int(TrackSelectionBit.QUALITY))
        self.assertFalse(select_track(track, int(TrackSelectionBit.GLOBAL)))
        self.assertTrue(select_track(track, int(TrackSelectionBit.QUALITY)))
        self.assertTrue(select_track(track, NO_TRACK_SELECTION))
        self.assertTrue(select_track(Particle("p0", pt=1.0, eta=0.0, phi=0.0), int(TrackSelectionBit.GLOBAL)))

    def test_is_good_collision_windows(self) -> None:
        """Vertex cut is strict, centrality half-open, occupancy inclusive."""
        cuts = EventCuts(centrality_min=0.0, centrality_max=50.0, occupancy_min=0, occupancy_max=100)
        self.assertTrue(is_good_collision(self._collision(), cuts))
        self.assertFalse(is_good_collision(self._collision(pos_z=10.0), cuts))
        self.assertTrue(is_good_collision(self._collision(cent_ft0m=0.0), cuts))
        self.assertFalse(is_good_collision(self._collision(cent_ft0m=50.0), cuts))
        self.assertTrue(is_good_collision(self._collision(occupancy=100), cuts))
        self.assertFalse(is_good_collision(self._collision(occupancy=101), cuts))
        self.assertFalse(is_good_collision(self._collision(selection_bits=0), cuts))

    def test_mb_gap_events_are_skipped_on_request(self) -> None:
        collision = self._collision(is_mb_gap=True)
        self.assertTrue(is_good_collision(collision, EventCuts()))
        self.assertFalse(is_good_collision(collision, EventCuts(skip_mb_gap_events=True)))

    def test_invalid_estimator_and_split_mode_are_rejected(self) -> None:
        with self.assertRaises(ValueError):
            EventCuts(centrality_estimator=3)
        with self.assertRaises(ValueError):
            EventCuts(split_collisions=7)

    def test_truth_event_split_collision_modes(self) -> None:
        """Reject drops split events; accept-first inspects only the first collision."""
        bad = self._collision("c0", selection_bits=0)
        good = self._collision("c1")
        event = McEventInput(mc_collision=McCollision("mc0", pos_z=1.0), reco_collisions=(bad, good))

        stages, accepted = mc_collision_stages(event, EventCuts(split_collisions=SplitCollisionMode.REJECT))
        self.assertFalse(accepted)
        self.assertEqual(stages, ("allMcColl", "vertexZ", "noRecoColl"))

        _, accepted = mc_collision_stages(event, EventCuts(split_collisions=SplitCollisionMode.ACCEPT_ANY))
        self.assertTrue(accepted)

        stages, accepted = mc_collision_stages(event, EventCuts(split_collisions=SplitCollisionMode.ACCEPT_FIRST))
        self.assertFalse(accepted)
        self.assertEqual(stages[-1], "splitColl")

    def test_truth_event_without_reco_collision(self) -> None:
        event = McEventInput(mc_collision=McCollision("mc0", pos_z=1.0))
        stages, accepted = mc_collision_stages(event, EventCuts())
        self.assertFalse(accepted)
        self.assertEqual(stages, ("allMcColl", "vertexZ"))


class TestJetAcceptance(unittest.TestCase):
    """Validate area, constituent, eta, radius and pT-hat jet checks."""

    @staticmethod
    def _jet(**kwargs) -> Jet:
        values = {"pt": 30.0, "eta": 0.0, "phi": 0.0, "r": 40, "area": 0.5}
        values.update(kwargs)
        return Jet(jet_id="j0", **values)

    @staticmethod
    def _tracks(*pts: float) -> list[Track]:
        return [Track(f"t{i}", pt=pt, eta=0.0, phi=0.0) for i, pt in enumerate(pts)]

    def test_area_fraction_cut(self) -> None:
        """Area 0.05 is below 0.6 * pi * 0.4^2 and is rejected."""
        cuts = JetCuts(area_fraction_min=0.6)
        self.assertFalse(is_accepted_jet(self._jet(area=0.05), [], cuts))
        self.assertTrue(is_accepted_jet(self._jet(area=0.5), [], cuts))
        self.assertTrue(is_accepted_jet(self._jet(area=0.05), [], JetCuts()))

    def test_leading_constituent_window(self) -> None:
        cuts = JetCuts(leading_constituent_pt_min=5.0)
        self.assertFalse(is_accepted_jet(self._jet(), self._tracks(1.0, 2.0), cuts))
        self.assertTrue(is_accepted_jet(self._jet(), self._tracks(1.0, 6.0), cuts))
        cuts = JetCuts(leading_constituent_pt_max=50.0)
        self.assertFalse(is_accepted_jet(self._jet(), self._tracks(60.0), cuts))
        self.assertTrue(is_accepted_jet(self._jet(), self._tracks(40.0), cuts))

    def test_particle_level_jets_skip_constituent_window_by_default(self) -> None:
        cuts = JetCuts(leading_constituent_pt_min=5.0)
        self.assertTrue(is_accepted_jet(self._jet(), self._tracks(1.0), cuts, particle_level=True))
        cuts = JetCuts(leading_constituent_pt_min=5.0, check_lead_constituent_pt_for_mcp=True)
        self.assertFalse(is_accepted_jet(self._jet(), self._tracks(1.0), cuts, particle_level=True))

    def test_eta_acceptance_keeps_cone_inside_tracks(self) -> None:
        """Default R=0.4 jets must sit within |eta| <= 0.5."""
        jet_cuts = JetCuts()
        track_cuts = TrackCuts()
        self.assertTrue(is_in_eta_acceptance(self._jet(eta=0.45), jet_cuts, track_cuts))
        self.assertFalse(is_in_eta_acceptance(self._jet(eta=0.55), jet_cuts, track_cuts))
        self.assertFalse(is_in_eta_acceptance(self._jet(eta=-0.55), jet_cuts, track_cuts))

    def test_eta_acceptance_with_jet_window_disabled(self) -> None:
        jet_cuts = JetCuts(eta_min=-99.0, eta_max=99.0)
        track_cuts = TrackCuts()
        self.assertTrue(is_in_eta_acceptance(self._jet(eta=0.65, r=20), jet_cuts, track_cuts))
        self.assertFalse(is_in_eta_acceptance(self._jet(eta=0.65, r=40), jet_cuts, track_cuts))

    def test_selected_radius_matches_exactly(self) -> None:
        self.assertTrue(is_selected_radius(self._jet(r=40), JetCuts(selected_radius=0.4)))
        self.assertFalse(is_selected_radius(self._jet(r=20), JetCuts(selected_radius=0.4)))

    def test_pt_hat_outlier_rejection(self) -> None:
        """pT-hat for weight 50000 is about 1.65; the max factor scales it."""
        jet = self._jet(pt=30.0)
        self.assertTrue(passes_pt_hat(jet, 50000.0, PtHatCuts()))
        self.assertFalse(passes_pt_hat(jet, 50000.0, PtHatCuts(max_mcd=10.0)))
        self.assertTrue(passes_pt_hat(jet, 50000.0, PtHatCuts(max_mcd=10.0), particle_level=True))
        self.assertFalse(passes_pt_hat(jet, 50000.0, PtHatCuts(absolute_min=5.0)))
        self.assertTrue(passes_pt_hat(jet, 1e-6, PtHatCuts(max_mcd=0.5)))
        self.assertFalse(passes_pt_hat(self._jet(pt=60.0), 1e-6, PtHatCuts(max_mcd=0.5)))


if __name__ == "__main__":
    unittest.main()
