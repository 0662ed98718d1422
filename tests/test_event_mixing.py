"""Unit tests for event-mixing pools."""

from __future__ import annotations

import unittest

from jethcorr import Collision, EventInput, EventMixer, MixingConfig, PoolBinning, VariableBinning


class TestEventMixing(unittest.TestCase):
    """Validate binning, pool depth, FIFO order and partner distinctness."""

    @staticmethod
    def _event(cid: str, pos_z: float = 0.0, mult: float = 20.0) -> EventInput:
        return EventInput(collision=Collision(collision_id=cid, pos_z=pos_z, mult_ntracks_global=mult))

    @staticmethod
    def _mixer(depth: int = 3) -> EventMixer:
        return EventMixer.from_config(MixingConfig(events_mixed=depth))

    def test_variable_binning_edges(self) -> None:
        axis = VariableBinning((-10.0, -2.5, 2.5, 10.0))
        self.assertEqual(axis.index(-10.0), 0)
        self.assertEqual(axis.index(-2.5), 1)
        self.assertEqual(axis.index(2.5), 2)
        self.assertEqual(axis.index(10.0), -1)
        self.assertEqual(axis.index(-11.0), -1)

    def test_pool_index_is_flattened(self) -> None:
        binning = PoolBinning.from_config(MixingConfig())
        self.assertEqual(binning.n_bins, 12)
        self.assertEqual(binning.bin(0.0, 20.0), 1 * 4 + 1)
        self.assertEqual(binning.bin(-5.0, 0.0), 0)
        self.assertEqual(binning.bin(0.0, 60.0), -1)

    def test_depth_limits_partners_to_most_recent(self) -> None:
        """With depth 3 and five earlier events, the newest three are paired."""
        mixer = self._mixer(depth=3)
        events = [self._event(f"e{i}") for i in range(6)]
        pairs = list(mixer.mix(events))
        last = [p for p in pairs if p.current.event_id == "e5"]
        self.assertEqual([p.partner.event_id for p in last], ["e4", "e3", "e2"])
        self.assertTrue(all(p.current.event_id != p.partner.event_id for p in pairs))
        self.assertEqual(mixer.pool_sizes(), {5: 3})

    def test_events_in_other_bins_are_not_paired(self) -> None:
        mixer = self._mixer()
        events = [self._event("a", pos_z=-5.0), self._event("b", pos_z=5.0), self._event("c", mult=60.0)]
        self.assertEqual(list(mixer.mix(events)), [])
        self.assertEqual(sum(mixer.pool_sizes().values()), 2)

    def test_same_event_id_is_never_its_own_partner(self) -> None:
        mixer = self._mixer()
        list(mixer.mix([self._event("a")]))
        pairs = list(mixer.mix([self._event("a"), self._event("b")]))
        self.assertEqual([(p.current.event_id, p.partner.event_id) for p in pairs], [("b", "a"), ("b", "a")])

    def test_pools_persist_across_steps_until_reset(self) -> None:
        mixer = self._mixer()
        list(mixer.mix([self._event("a")]))
        pairs = list(mixer.mix([self._event("b")]))
        self.assertEqual(len(pairs), 1)
        mixer.reset()
        self.assertEqual(list(mixer.mix([self._event("c")])), [])

    def test_closing_the_step_early_stops_buffering(self) -> None:
        """A closed step logs its summary and leaves later events unbuffered."""
        mixer = self._mixer()
        list(mixer.mix([self._event("a")]))
        pairs = mixer.mix([self._event("b"), self._event("c")])
        first = next(pairs)
        self.assertEqual(first.partner.event_id, "a")
        with self.assertLogs("jethcorr.mixing", level="DEBUG") as logs:
            pairs.close()
        self.assertIn("stopped early", logs.output[0])
        self.assertEqual(mixer.pool_sizes(), {5: 1})

    def test_completed_step_logs_summary(self) -> None:
        mixer = self._mixer()
        with self.assertLogs("jethcorr.mixing", level="DEBUG") as logs:
            list(mixer.mix([self._event("a"), self._event("b")]))
        self.assertIn("Mixed 1 pairs from 2 events", logs.output[0])
        self.assertNotIn("stopped early", logs.output[0])

    def test_invalid_mixing_config(self) -> None:
        with self.assertRaises(ValueError):
            MixingConfig(events_mixed=0)
        with self.assertRaises(ValueError):
            MixingConfig(bins_z=(0.0, 0.0, 1.0))
        with self.assertRaises(ValueError):
            MixingConfig(multiplicity_estimator="tpc")
        with self.assertRaises(ValueError):
            MixingConfig(failure_policy="retry")


if __name__ == "__main__":
    unittest.main()
