"""Unit tests for leading-pair selection, dijet gates and regions."""

from __future__ import annotations

import math
import unittest

from jethcorr import Jet, RegionCuts, classify_regions, find_leading_pair, make_dijet


class TestLeadingPair(unittest.TestCase):
    """Validate the one-pass leading/subleading reduction."""

    @staticmethod
    def _jets(*pts: float, area: float = 0.0) -> list[Jet]:
        return [
            Jet(jet_id=f"j{i}", pt=pt, eta=0.0, phi=0.0 if i % 2 == 0 else math.pi, r=40, area=area)
            for i, pt in enumerate(pts)
        ]

    def test_reduction_picks_two_largest(self) -> None:
        jets = self._jets(5.0, 30.0, 12.0, 30.0001)
        pair = find_leading_pair(jets, rho=0.0)
        self.assertIs(pair.leading, jets[3])
        self.assertIs(pair.subleading, jets[1])
        self.assertAlmostEqual(pair.leading_pt, 30.0001, places=12)
        self.assertAlmostEqual(pair.subleading_pt, 30.0, places=12)
        self.assertEqual(pair.inclusive_pt, (5.0, 30.0, 12.0, 30.0001))

    def test_ties_keep_first_seen_as_leading(self) -> None:
        jets = self._jets(30.0, 30.0)
        pair = find_leading_pair(jets, rho=0.0)
        self.assertIs(pair.leading, jets[0])
        self.assertIs(pair.subleading, jets[1])

    def test_uses_area_corrected_pt(self) -> None:
        jets = [
            Jet("j0", pt=25.0, eta=0.0, phi=0.0, r=40, area=0.3),
            Jet("j1", pt=15.0, eta=0.1, phi=math.pi, r=40, area=0.3),
        ]
        pair = find_leading_pair(jets, rho=2.0)
        self.assertAlmostEqual(pair.leading_pt, 24.4, places=12)
        self.assertAlmostEqual(pair.subleading_pt, 14.4, places=12)

    def test_fewer_than_two_jets_give_no_pair(self) -> None:
        self.assertIsNone(make_dijet(find_leading_pair([], rho=0.0)))
        single = find_leading_pair(self._jets(40.0), rho=0.0)
        self.assertFalse(single.complete)
        self.assertIsNone(make_dijet(single))
        self.assertEqual(single.inclusive_pt, (40.0,))


class TestDijet(unittest.TestCase):
    """Validate the azimuthal gate, eta flip, thresholds and regions."""

    @staticmethod
    def _dijet(lead_eta: float, sub_eta: float, lead_phi: float = 0.0, sub_phi: float = math.pi, lead_pt=30.0, sub_pt=20.0):
        jets = [
            Jet("lead", pt=lead_pt, eta=lead_eta, phi=lead_phi, r=40, area=0.0),
            Jet("sub", pt=sub_pt, eta=sub_eta, phi=sub_phi, r=40, area=0.0),
        ]
        return make_dijet(find_leading_pair(jets, rho=0.0))

    def test_azimuthal_gate(self) -> None:
        """Jets closer than pi/2 in azimuth do not form a dijet."""
        self.assertIsNone(self._dijet(0.0, 0.1, lead_phi=0.0, sub_phi=1.0))
        dijet = self._dijet(0.0, 0.1)
        self.assertIsNotNone(dijet)
        self.assertAlmostEqual(dijet.delta_phi_raw, -math.pi, places=12)
        self.assertAlmostEqual(dijet.delta_phi, math.pi, places=12)

    def test_eta_flip_makes_jet_separation_positive(self) -> None:
        dijet = self._dijet(-0.2, 0.3)
        self.assertEqual(dijet.flip, -1.0)
        self.assertAlmostEqual(dijet.delta_eta_noflip, -0.5, places=12)
        self.assertAlmostEqual(dijet.delta_eta, 0.5, places=12)
        dijet = self._dijet(0.3, -0.2)
        self.assertEqual(dijet.flip, 1.0)
        self.assertAlmostEqual(dijet.delta_eta, 0.5, places=12)

    def test_thresholds_are_strict(self) -> None:
        dijet = self._dijet(0.0, 0.1, lead_pt=20.0, sub_pt=15.0)
        self.assertFalse(dijet.passes_thresholds(20.0, 10.0))
        dijet = self._dijet(0.0, 0.1, lead_pt=20.5, sub_pt=10.0)
        self.assertFalse(dijet.passes_thresholds(20.0, 10.0))
        dijet = self._dijet(0.0, 0.1, lead_pt=20.5, sub_pt=10.5)
        self.assertTrue(dijet.passes_thresholds(20.0, 10.0))
        self.assertAlmostEqual(dijet.asymmetry, 10.5 / 20.5, places=12)

    def test_regions(self) -> None:
        """Regions are independent selections of low-pT partners."""
        cuts = RegionCuts()
        self.assertEqual(classify_regions(self._dijet(0.6, -0.6), 1.0, cuts), ("up",))
        self.assertEqual(classify_regions(self._dijet(0.8, 0.1), 1.0, cuts), ("md", "hup"))
        self.assertEqual(classify_regions(self._dijet(0.3, 0.1), 1.0, cuts), ("dw", "hdw"))
        self.assertEqual(classify_regions(self._dijet(0.1, 0.3), 1.0, cuts), ("dw",))
        self.assertEqual(classify_regions(self._dijet(0.3, 0.1), 2.0, cuts), ())


if __name__ == "__main__":
    unittest.main()
