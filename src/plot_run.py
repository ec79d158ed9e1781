import argparse
from pathlib import Path

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

from claisen.config import SimConfig
from claisen.kinetics import SPECIES, SPECIES_COLORS, SPECIES_LABELS, yield_percent
from claisen.simulation import run_headless


def plot_series(df, cfg, k_fwd, outpath):
    fig, ax = plt.subplots(figsize=(7, 4))
    for key in SPECIES:
        ax.plot(df["t"], df[key], color=SPECIES_COLORS[key], label=SPECIES_LABELS[key])
    ax.set_ylim(0.0, cfg.chart_y_max)
    ax.set_xlabel("t")
    ax.set_ylabel("Concentration (mol/L)")
    ax.set_title(f"k_fwd = {k_fwd:g}")
    ax.legend(loc="upper right")
    fig.tight_layout()
    fig.savefig(outpath, dpi=200)
    plt.close(fig)
    return outpath


def main():
    ap = argparse.ArgumentParser(description="Run one simulation and plot its chart series.")
    ap.add_argument("--k-fwd", type=float, default=0.5)
    ap.add_argument("--max-time", type=float, default=100.0)
    ap.add_argument("--out", type=str, default="plots")
    ap.add_argument("--csv", action="store_true", help="Also write the series as CSV")
    args = ap.parse_args()

    outdir = Path(args.out); outdir.mkdir(parents=True, exist_ok=True)
    cfg = SimConfig(max_time=args.max_time, seed=0)

    sim = run_headless(cfg, args.k_fwd)
    df = sim.chart.to_frame()

    stem = f"run_k{args.k_fwd:g}"
    path = plot_series(df, cfg, args.k_fwd, outdir / f"{stem}.png")
    print(f"Saved: {path}")
    if args.csv:
        csv_path = outdir / f"{stem}.csv"
        df.to_csv(csv_path, index=False)
        print(f"Saved: {csv_path}")
    print(f"Final yield: {yield_percent(sim.concentrations.prod, cfg.initial_eta):.1f}%")


if __name__ == "__main__":
    main()
