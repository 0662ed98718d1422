"""Summarize a correlation table: per-mode yields, region counts and a delta_phi plot."""

from __future__ import annotations

import argparse
from pathlib import Path

import pandas as pd

READERS = {".parquet": pd.read_parquet, ".csv": pd.read_csv, ".pkl": pd.read_pickle}


def summarize(df: pd.DataFrame) -> pd.DataFrame:
    """Weighted yield and pair count per (mode, mixed)."""
    return df.groupby(["mode", "mixed"]).agg(pairs=("weight", "size"), yield_=("weight", "sum"))


def region_counts(df: pd.DataFrame) -> pd.Series:
    regions = df["regions"].fillna("").astype(str)
    return regions[regions != ""].str.split(",").explode().value_counts()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Inspect a correlation table.")
    parser.add_argument("--input", required=True, help="Path to .parquet/.csv/.pkl output.")
    parser.add_argument("--plot", action="store_true", help="Save same vs mixed delta_phi (png).")
    args = parser.parse_args(argv)

    path = Path(args.input)
    reader = READERS.get(path.suffix.lower())
    if reader is None:
        raise ValueError(f"Unsupported input format '{path.suffix}'. Use one of: {', '.join(READERS)}")
    df = reader(path)
    if df.empty:
        print("No correlation tuples.")
        return 0
    print(summarize(df).to_string())
    counts = region_counts(df)
    if len(counts):
        print("\nRegions:")
        print(counts.to_string())

    if args.plot:
        import matplotlib.pyplot as plt  # type: ignore

        fig, ax = plt.subplots()
        for mixed, group in df.groupby("mixed"):
            label = "mixed" if mixed else "same"
            ax.hist(group["delta_phi"], bins=36, weights=group["weight"], histtype="step", label=label)
        ax.set_xlabel("delta_phi")
        ax.legend()
        fig.savefig(path.with_suffix(".png"), dpi=120)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
