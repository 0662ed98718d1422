"""Example custom callback: count low-pT partners per physical-cut region."""

from __future__ import annotations

import json
from collections import Counter
from pathlib import Path


def process(results, context):
    """Tally regions and the leading-jet pT of the tuples that fall in them."""
    counts = Counter(region for r in results for region in r.regions)
    mean_lead_pt = {
        region: sum(r.trigger_pt for r in results if region in r.regions) / n
        for region, n in counts.items()
    }
    payload = {
        "n_total": len(results),
        "regions": {region: {"pairs": counts[region], "mean_leading_pt": mean_lead_pt[region]} for region in sorted(counts)},
    }
    out = Path(context["output_path"]).with_name("region_yields.json")
    out.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    print(f"Wrote {out}")
