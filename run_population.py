import argparse
import logging
import os
from concurrent.futures import ProcessPoolExecutor

import numpy as np
import pandas as pd

from utils import ensure_dir, value_at
from params import RunConfig
from state import SPECIES
from scenarios import SCENARIOS
from analytics import series_dict, quick_metrics
from experiments import run_trials, simulate_deterministic, sensitivity_grid

logger = logging.getLogger("run_population")


def parse_args(argv=None):
    ap = argparse.ArgumentParser(description="Stochastic multi-phase energy metabolism trials")
    ap.add_argument("--scenario", choices=sorted(SCENARIOS), default="control")
    ap.add_argument("--repeats", type=int, default=RunConfig.repeats)
    ap.add_argument("--seed", type=int, default=None)
    ap.add_argument("--noise-level", type=float, default=RunConfig.noise_level)
    ap.add_argument("--observable", choices=SPECIES, default=RunConfig.observable)
    ap.add_argument("--include-phase-a", action="store_true",
                    help="keep the priming phase in the stochastic traces")
    ap.add_argument("--workers", type=int, default=1)
    ap.add_argument("--grid", type=int, default=0,
                    help="size of the ATP x k_oxygen_consumption sensitivity grid (0: skip)")
    ap.add_argument("--outdir", default="results_population")
    ap.add_argument("--no-plots", action="store_true")
    ap.add_argument("-v", "--verbose", action="store_true")
    return ap.parse_args(argv)


def deterministic_summary(run):
    m = quick_metrics(run.X, run.normalized)
    return {
        "fit_model": run.fit.model,
        "fitted_Y0": run.fit.Y0, "fitted_k": run.fit.k, "fitted_Yf": run.fit.Yf,
        "AUC": run.AUC,
        "peak_ratio": m["Peak"], "t_peak": m["t_peak"],
        "ratio_at_stimulus": value_at(run.stimulus - run.window_start, run.X, run.normalized),
        "ratio_end": m["End"],
    }


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format="%(asctime)s %(name)s %(levelname)s: %(message)s")

    base = SCENARIOS[args.scenario]()
    cfg = RunConfig(repeats=args.repeats, seed=args.seed, noise_level=args.noise_level,
                    observable=args.observable, include_phase_a=args.include_phase_a)
    out = ensure_dir(os.path.join(args.outdir, args.scenario))

    # stochastic trials
    if args.workers > 1:
        with ProcessPoolExecutor(max_workers=args.workers) as ex:
            res = run_trials(base, cfg, executor=ex)
    else:
        res = run_trials(base, cfg)
    res.summary.to_csv(os.path.join(out, "trial_summary.csv"))
    res.raw.to_csv(os.path.join(out, "raw_traces.csv"), index=False)
    res.normalized.to_csv(os.path.join(out, "normalized_traces.csv"), index=False)
    if res.failures:
        pd.DataFrame(res.failures, columns=["trial", "error"]).to_csv(
            os.path.join(out, "failed_trials.csv"), index=False)

    # deterministic reference trace
    det = simulate_deterministic(base, cfg)
    y, f = series_dict(det.T, det.Y, base)
    pd.DataFrame({"time": det.T, **y}).to_csv(os.path.join(out, "deterministic_trace.csv"), index=False)
    summary = deterministic_summary(det)
    pd.Series(summary).to_csv(os.path.join(out, "deterministic_summary.csv"), header=False)
    logger.info("deterministic trace: fit=%s AUC=%.4g", summary["fit_model"], summary["AUC"])

    grid = None
    if args.grid > 1:
        atp = np.linspace(1.0, 100.0, args.grid)
        k_o2 = np.linspace(0.0, 0.6, args.grid)
        grid = (atp, k_o2, sensitivity_grid(base, cfg, atp, k_o2, seed=args.seed))
        pd.DataFrame(grid[2], index=pd.Index(k_o2, name="k_oxygen_consumption"),
                     columns=pd.Index(atp, name="ATP")).to_csv(os.path.join(out, "sensitivity_auc.csv"))

    if not args.no_plots:
        from plotting import (plot_phases, plot_normalization, plot_ensemble,
                              plot_auc_scatter, sensitivity_heatmap)
        tag = args.scenario
        plot_phases(det.T, y, f, out, tag, stimulus=det.stimulus)
        plot_normalization(det.X, det.raw, det.reference, det.normalized, out, tag, cfg.fit_window)
        plot_ensemble(res.raw, out, f"{tag}_raw", ylabel=f"{cfg.observable} [mM]")
        plot_ensemble(res.normalized, out, f"{tag}_normalized")
        plot_auc_scatter(res.summary, out, tag)
        if grid is not None:
            atp, k_o2, Z = grid
            X, Y = np.meshgrid(atp, k_o2, indexing='xy')
            sensitivity_heatmap(X, Y, Z, xlab="ATP [mM]", ylab="k_oxygen_consumption",
                                title=f"Sensitivity: AUC — {tag}",
                                outpath=os.path.join(out, f"{tag}_sens_heatmap.png"))

    logger.info("%d trials (%d failed) written to %s", len(res.summary), len(res.failures), out)


if __name__ == "__main__":
    main()
