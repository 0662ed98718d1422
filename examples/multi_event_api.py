"""Multi-event API example: same-event and mixed-event correlations.

Run from repository root without installation:
    PYTHONPATH=src python examples/multi_event_api.py
"""

from __future__ import annotations

from pathlib import Path

from jethcorr import AnalysisConfig, JetCuts, JetHadronCorrelator, MixingConfig
from jethcorr.correlator import MODE_JET_HADRON
from jethcorr.io import load_events_json, write_correlations_table


def main() -> int:
    """Load events, correlate inclusive jets with hadrons, and write parquet tables."""
    events = load_events_json("examples/events.json")
    config = AnalysisConfig(
        jet=JetCuts(subleading_jet_pt_min=15.0),
        mixing=MixingConfig(events_mixed=3, failure_policy="skip"),
    )
    correlator = JetHadronCorrelator(config=config)
    same = correlator.process_events(events, mode=MODE_JET_HADRON)
    mixed = correlator.process_events(events, mode=MODE_JET_HADRON, mixed=True)
    for name, results in (("same", same), ("mixed", mixed)):
        out_path = Path(f"examples/multi_event_{name}.parquet")
        write_correlations_table(out_path, results)
        print(f"Wrote {len(results)} {name}-event tuples to {out_path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
