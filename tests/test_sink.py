"""Unit tests for fill/counter sinks."""

from __future__ import annotations

import unittest

from jethcorr import MemorySink, NullSink


class TestSinks(unittest.TestCase):
    """Validate in-memory bookkeeping and DataFrame export."""

    def test_memory_sink_records_fills_and_counters(self) -> None:
        sink = MemorySink()
        sink.fill("h_jet_pt", 25.0, weight=0.5)
        sink.fill("h2_jeth_deta_dphi", 0.1, 0.2)
        sink.increment("collisions.all")
        sink.increment("collisions.all", 2.0)
        self.assertEqual(sink.entries("h_jet_pt"), [((25.0,), 0.5)])
        self.assertEqual(sink.values("h2_jeth_deta_dphi"), [(0.1, 0.2)])
        self.assertEqual(sink.count("collisions.all"), 3.0)
        self.assertEqual(sink.count("missing"), 0)
        self.assertEqual(sink.values("missing"), [])

    def test_memory_sink_exports_frames(self) -> None:
        sink = MemorySink()
        sink.fill("h2_jeth_deta_dphi", 0.1, 0.2, weight=2.0)
        sink.increment("b")
        sink.increment("a", 4.0)
        frames = sink.to_frames()
        df = frames["h2_jeth_deta_dphi"]
        self.assertEqual(list(df.columns), ["x0", "x1", "weight"])
        self.assertEqual(df.loc[0, "weight"], 2.0)
        counters = sink.counters_frame()
        self.assertEqual(list(counters["counter"]), ["a", "b"])

    def test_null_sink_discards(self) -> None:
        sink = NullSink()
        self.assertIsNone(sink.fill("h", 1.0))
        self.assertIsNone(sink.increment("c"))


if __name__ == "__main__":
    unittest.main()
