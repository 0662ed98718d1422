"""Example custom callback: write a tiny near-side / away-side summary."""

from __future__ import annotations

import json
import math
from pathlib import Path


def process(results, context):
    """Split tuples by azimuth and save weighted yields as JSON."""
    near = sum(r.weight for r in results if r.delta_phi < 0.5 * math.pi)
    away = sum(r.weight for r in results if r.delta_phi >= 0.5 * math.pi)
    summary = {
        "mode": context["mode"],
        "mixed": context["mixed"],
        "n_results": len(results),
        "near_side_yield": near,
        "away_side_yield": away,
    }
    out_path = Path(context["output_path"]).with_name("summary.json")
    out_path.write_text(json.dumps(summary, indent=2), encoding="utf-8")
    print(f"Custom analysis summary written to {out_path}")
