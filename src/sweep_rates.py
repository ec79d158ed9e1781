"""Sweep the forward rate constant and tabulate final yields."""
import argparse
import csv
import math
from pathlib import Path

import numpy as np
from tqdm import tqdm

from claisen.config import SimConfig
from claisen.kinetics import yield_percent
from claisen.logging_config import setup_logging
from claisen.scheduling import ManualScheduler
from claisen.simulation import Simulation


def run_once(cfg, k_fwd, threshold):
    """Run one headless simulation; return final state and time to ``threshold`` % yield."""
    scheduler = ManualScheduler()
    sim = Simulation(cfg, scheduler=scheduler)
    sim.controls.set_rate(k_fwd)

    t_threshold = math.nan

    def watch(message):
        nonlocal t_threshold
        if message["type"] != "state" or not math.isnan(t_threshold):
            return
        prod = message["payload"]["concentrations"]["Prod"]
        if yield_percent(prod, cfg.initial_eta) >= threshold:
            t_threshold = message["payload"]["t"]

    sim.add_listener(watch)
    sim.start()
    scheduler.run_until_idle()

    c = sim.concentrations
    return {
        "k_fwd": float(k_fwd),
        "t_final": sim.t,
        "EtA": c.eta,
        "Enol": c.enol,
        "Prod": c.prod,
        "yield": yield_percent(c.prod, cfg.initial_eta),
        f"t_yield_{threshold:g}": t_threshold,
    }


def main():
    ap = argparse.ArgumentParser(description="Sweep k_fwd and record final yields.")
    ap.add_argument("--k-min", type=float, default=0.05)
    ap.add_argument("--k-max", type=float, default=2.0)
    ap.add_argument("--num", type=int, default=40)
    ap.add_argument("--max-time", type=float, default=100.0)
    ap.add_argument("--threshold", type=float, default=50.0, help="Yield %% to time")
    ap.add_argument("--out", type=str, default="sweep_rates.csv")
    args = ap.parse_args()

    setup_logging()
    cfg = SimConfig(max_time=args.max_time, seed=0)

    rows = [
        run_once(cfg, k, args.threshold)
        for k in tqdm(np.linspace(args.k_min, args.k_max, args.num), desc="k_fwd")
    ]

    out = Path(args.out)
    out.parent.mkdir(parents=True, exist_ok=True)
    with out.open("w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=list(rows[0].keys()))
        writer.writeheader()
        writer.writerows(rows)

    best = max(rows, key=lambda r: r["yield"])
    print(f"Saved: {out}")
    print(f"Best yield {best['yield']:.1f}% at k_fwd={best['k_fwd']:.3f}")


if __name__ == "__main__":
    main()
